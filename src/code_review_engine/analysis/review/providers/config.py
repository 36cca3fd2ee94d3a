"""Provider configuration model.

Persisted and wire form uses camelCase keys (``apiKey``, ``retryAttempts``,
``customHeaders``, ``rateLimits``); Python code reads snake_case attributes.
Provider-specific keys such as ``projectKey`` or ``rules`` are kept as extras.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ....config.defaults import (
    DEFAULT_PROVIDER_TIMEOUT_MS,
    DEFAULT_RETRY_ATTEMPTS,
    MAX_RETRY_ATTEMPTS,
    MAX_TIMEOUT_MS,
    MIN_RETRY_ATTEMPTS,
    MIN_TIMEOUT_MS,
)


class RateLimits(BaseModel):
    """Client-side request budgets."""

    model_config = ConfigDict(populate_by_name=True)

    requests_per_minute: int | None = Field(
        default=None, ge=1, alias="requestsPerMinute"
    )
    requests_per_day: int | None = Field(default=None, ge=1, alias="requestsPerDay")


class ProviderConfig(BaseModel):
    """Settings for one third-party provider."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    api_key: str | None = Field(default=None, alias="apiKey")
    endpoint: str | None = Field(default=None, description="Base URL of the vendor API")
    timeout: int = Field(
        default=DEFAULT_PROVIDER_TIMEOUT_MS,
        ge=MIN_TIMEOUT_MS,
        le=MAX_TIMEOUT_MS,
        description="Per-request timeout in ms",
    )
    retry_attempts: int = Field(
        default=DEFAULT_RETRY_ATTEMPTS,
        ge=MIN_RETRY_ATTEMPTS,
        le=MAX_RETRY_ATTEMPTS,
        alias="retryAttempts",
    )
    custom_headers: dict[str, str] = Field(default_factory=dict, alias="customHeaders")
    rate_limits: RateLimits | None = Field(default=None, alias="rateLimits")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000.0

    def extra(self, key: str, default: Any = None) -> Any:
        """Provider-specific setting (e.g. ``projectKey``)."""
        return (self.model_extra or {}).get(key, default)

    def get_field(self, wire_name: str) -> Any:
        """Look up a setting by its wire (camelCase) name."""
        return self.to_wire().get(wire_name)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)
