"""Core functionality for the code review engine."""

from .exceptions import (
    AuthError,
    CodeReviewError,
    CompletionCapabilityUnavailableError,
    CompletionError,
    ConfigError,
    ConfigInvalidError,
    ConfigValidationError,
    FieldError,
    FileUnreadableError,
    NotConfiguredError,
    ProviderError,
    ProviderRequestError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RateLimitedError,
    TargetNotFoundError,
    UnknownProviderError,
)
from .file_discovery import FileDiscovery, read_source_file
from .llm_client import CompletionCapability, LLMClient
from .settings import InMemorySettingsStore, JsonFileSettingsStore, SettingsStore

__all__ = [
    "AuthError",
    "CodeReviewError",
    "CompletionCapability",
    "CompletionCapabilityUnavailableError",
    "CompletionError",
    "ConfigError",
    "ConfigInvalidError",
    "ConfigValidationError",
    "FieldError",
    "FileDiscovery",
    "FileUnreadableError",
    "InMemorySettingsStore",
    "JsonFileSettingsStore",
    "LLMClient",
    "NotConfiguredError",
    "ProviderError",
    "ProviderRequestError",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
    "RateLimitedError",
    "SettingsStore",
    "TargetNotFoundError",
    "UnknownProviderError",
    "read_source_file",
]
