"""Typed exception hierarchy for the code review engine.

Hierarchy
---------
CodeReviewError (base)
├── ConfigError                 – configuration errors (surfaced before a run)
│   ├── ConfigInvalidError      – provider settings missing/bad at initialize time
│   ├── ConfigValidationError   – field-level validation failed (carries FieldError list)
│   ├── NotConfiguredError      – operation needs a configured provider
│   └── UnknownProviderError    – provider id not registered
├── ProviderError               – adapter-level failures (never escape a review run)
│   ├── ProviderUnavailableError
│   ├── ProviderTimeoutError
│   ├── AuthError
│   ├── RateLimitedError
│   └── ProviderRequestError    – non-retryable 4xx other than auth/rate limit
├── CompletionError             – LLM completion request failed
├── FileUnreadableError         – one file could not be read (skipped in directory runs)
├── TargetNotFoundError         – fatal: review target missing or unreadable
└── CompletionCapabilityUnavailableError – fatal: no completion capability configured

Only ``TargetNotFoundError``, ``CompletionCapabilityUnavailableError`` and
``ConfigError`` subclasses propagate out of ``ReviewEngine.review()``.
"""

from dataclasses import dataclass
from typing import Any


class CodeReviewError(Exception):
    """Base exception for the code review engine."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


# ── Configuration layer ─────────────────────────────────────────────────


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ConfigError(CodeReviewError):
    """Configuration errors."""

    pass


class ConfigInvalidError(ConfigError):
    """Provider configuration is missing required settings or is malformed."""

    pass


class ConfigValidationError(ConfigError):
    """Provider configuration failed field-level validation.

    Attributes:
        errors: One ``FieldError`` per failed field rule
    """

    def __init__(
        self,
        provider_id: str,
        errors: list[FieldError],
        context: dict[str, Any] | None = None,
    ) -> None:
        joined = ", ".join(str(e) for e in errors)
        super().__init__(
            f"Configuration validation failed for {provider_id}: {joined}", context
        )
        self.provider_id = provider_id
        self.errors = list(errors)

    @property
    def fields(self) -> list[str]:
        """Names of the fields that failed validation."""
        return [e.field for e in self.errors]


class NotConfiguredError(ConfigError):
    """Provider has no stored configuration."""

    pass


class UnknownProviderError(ConfigError):
    """Provider id is not registered."""

    pass


# ── Provider layer ──────────────────────────────────────────────────────


class ProviderError(CodeReviewError):
    """Third-party provider call failed.

    Always caught by the review engine and turned into a failed
    ``ProviderResult``.
    """

    pass


class ProviderUnavailableError(ProviderError):
    """Provider unreachable, or returned 5xx after all retries."""

    pass


class ProviderTimeoutError(ProviderError):
    """Provider did not answer within its deadline."""

    pass


class AuthError(ProviderError):
    """Provider rejected the credential (HTTP 401/403)."""

    pass


class RateLimitedError(ProviderError):
    """Provider (or the local limiter) refused the call for rate reasons."""

    pass


class ProviderRequestError(ProviderError):
    """Provider rejected the request (4xx other than auth/rate limit)."""

    pass


# ── Completion layer ────────────────────────────────────────────────────


class CompletionError(CodeReviewError):
    """LLM completion request failed."""

    pass


class CompletionCapabilityUnavailableError(CodeReviewError):
    """No completion capability is configured; reviews cannot run."""

    pass


# ── Target / file layer ─────────────────────────────────────────────────


class FileUnreadableError(CodeReviewError):
    """A file could not be read or decoded."""

    pass


class TargetNotFoundError(CodeReviewError):
    """Review target does not exist or cannot be read."""

    pass
