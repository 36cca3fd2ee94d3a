"""Field-level validation of provider configuration.

Validators are pure ``(value) -> message | None`` callables keyed by wire
field name. A common set applies to every provider; per-provider tables add
rules for vendor-specific keys.
"""

from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlsplit

from ...config.defaults import (
    MAX_RETRY_ATTEMPTS,
    MAX_TIMEOUT_MS,
    MIN_API_KEY_LENGTH,
    MIN_RETRY_ATTEMPTS,
    MIN_TIMEOUT_MS,
)
from ...core.exceptions import FieldError
from .providers.config import ProviderConfig, RateLimits
from .providers.templates import ProviderTemplate

FieldValidator = Callable[[Any], str | None]

REQUIRED_MESSAGE = "This field is required"

# Model attribute name -> wire name, e.g. retry_attempts -> retryAttempts
WIRE_NAMES: dict[str, str] = {
    name: field.alias
    for name, field in ProviderConfig.model_fields.items()
    if field.alias
}
RATE_LIMIT_WIRE_NAMES: dict[str, str] = {
    name: field.alias for name, field in RateLimits.model_fields.items() if field.alias
}


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def validate_url(value: Any) -> str | None:
    """Require an absolute http(s) URL with a host."""
    if not isinstance(value, str) or not value.strip():
        return "Please enter a valid URL"
    parts = urlsplit(value.strip())
    if parts.scheme not in ("http", "https") or not parts.netloc or " " in value.strip():
        return "Please enter a valid URL"
    return None


def validate_api_key(value: Any) -> str | None:
    if not isinstance(value, str) or len(value.strip()) < MIN_API_KEY_LENGTH:
        return f"API key must be at least {MIN_API_KEY_LENGTH} characters"
    return None


def validate_timeout(value: Any) -> str | None:
    timeout = _as_int(value)
    if timeout is None or not MIN_TIMEOUT_MS <= timeout <= MAX_TIMEOUT_MS:
        return f"Timeout must be between {MIN_TIMEOUT_MS} and {MAX_TIMEOUT_MS} ms"
    return None


def validate_retry_attempts(value: Any) -> str | None:
    attempts = _as_int(value)
    if attempts is None or not MIN_RETRY_ATTEMPTS <= attempts <= MAX_RETRY_ATTEMPTS:
        return (
            f"Retry attempts must be between {MIN_RETRY_ATTEMPTS} "
            f"and {MAX_RETRY_ATTEMPTS}"
        )
    return None


def validate_custom_headers(value: Any) -> str | None:
    if not isinstance(value, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        return "Custom headers must map header names to string values"
    return None


def validate_rate_limits(value: Any) -> str | None:
    if not isinstance(value, Mapping):
        return "Rate limits must be an object"
    for key in ("requestsPerMinute", "requestsPerDay"):
        if key in value and value[key] is not None:
            limit = _as_int(value[key])
            if limit is None or limit < 1:
                return f"{key} must be a positive integer"
    return None


def non_empty(label: str) -> FieldValidator:
    """Build a validator rejecting missing or blank values."""

    def validator(value: Any) -> str | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return f"{label} must not be empty"
        return None

    return validator


COMMON_VALIDATORS: dict[str, FieldValidator] = {
    "endpoint": validate_url,
    "apiKey": validate_api_key,
    "timeout": validate_timeout,
    "retryAttempts": validate_retry_attempts,
    "customHeaders": validate_custom_headers,
    "rateLimits": validate_rate_limits,
}

PROVIDER_VALIDATORS: dict[str, dict[str, FieldValidator]] = {
    "sonarqube": {"projectKey": non_empty("Project key")},
    "codeclimate": {"repoId": non_empty("Repository id")},
    "semgrep": {"rules": non_empty("Rules")},
}


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def wire_field_names(data: Mapping[str, Any]) -> dict[str, Any]:
    """Rename snake_case model attributes to their wire names.

    A key given under both spellings keeps the wire value.
    """
    renamed: dict[str, Any] = {}
    for key, value in data.items():
        wire = WIRE_NAMES.get(key, key)
        if wire != key and wire in data:
            continue
        if wire == "rateLimits" and isinstance(value, Mapping):
            value = {
                RATE_LIMIT_WIRE_NAMES.get(k, k): v
                for k, v in value.items()
                if RATE_LIMIT_WIRE_NAMES.get(k) not in value
            }
        renamed[wire] = value
    return renamed


def validate_field(
    provider_id: str,
    field_name: str,
    value: Any,
    template: ProviderTemplate | None = None,
) -> str | None:
    """Validate one field.

    Args:
        provider_id: Provider the field belongs to
        field_name: Wire (camelCase) field name; snake_case model names are
            accepted and checked under their wire name
        value: Candidate value
        template: Provider template, used for the required-field check

    Returns:
        Error message, or None when the value is acceptable
    """
    field_name = WIRE_NAMES.get(field_name, field_name)
    if template is not None and field_name in template.required_config:
        if _is_empty(value):
            return REQUIRED_MESSAGE

    validator = PROVIDER_VALIDATORS.get(provider_id, {}).get(
        field_name
    ) or COMMON_VALIDATORS.get(field_name)
    if validator is None:
        return None
    return validator(value)


def validate_config(
    provider_id: str,
    data: Mapping[str, Any],
    template: ProviderTemplate | None,
) -> list[FieldError]:
    """Validate a whole provider configuration.

    Returns every failure rather than stopping at the first one. An unknown
    provider is reported on the ``provider`` field; the common rules still
    run so callers see every problem at once. Snake_case model names are
    validated under their wire name, and giving both spellings is an error.
    """
    errors: list[FieldError] = []

    for key, wire in WIRE_NAMES.items():
        if key in data and wire in data:
            errors.append(FieldError(key, f"Duplicates {wire}"))
    data = wire_field_names(data)

    if template is None:
        errors.append(FieldError("provider", f"Unknown provider: {provider_id}"))
    else:
        for name in template.required_config:
            if name not in data:
                errors.append(FieldError(name, REQUIRED_MESSAGE))

    for name, value in data.items():
        message = validate_field(provider_id, name, value, template)
        if message is not None:
            errors.append(FieldError(name, message))

    return errors
