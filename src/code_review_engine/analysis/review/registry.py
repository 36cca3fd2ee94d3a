"""Provider registry: known providers, their validated configs and enabled set."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import orjson
from loguru import logger
from pydantic import ValidationError

from ...config.defaults import CONFIGURED_PROVIDERS_KEY, ENABLED_PROVIDERS_KEY
from ...core.exceptions import (
    CodeReviewError,
    ConfigValidationError,
    FieldError,
    NotConfiguredError,
    UnknownProviderError,
)
from ...core.settings import InMemorySettingsStore, SettingsStore
from .models import ProviderHealthStatus, utc_now_iso
from .providers.base import ReviewProvider
from .providers.codeclimate import CodeClimateProvider
from .providers.config import ProviderConfig
from .providers.semgrep import SemgrepProvider
from .providers.sonarqube import SonarQubeProvider
from .providers.templates import (
    CODECLIMATE_TEMPLATE,
    PROVIDER_TEMPLATES,
    SEMGREP_TEMPLATE,
    SONARQUBE_TEMPLATE,
    ProviderTemplate,
)
from .validation import validate_config, wire_field_names
from .validation import validate_field as _validate_field

ProviderFactory = Callable[[], ReviewProvider]


@dataclass(frozen=True)
class _Registration:
    factory: ProviderFactory
    template: ProviderTemplate


def _pydantic_field_errors(e: ValidationError) -> list[FieldError]:
    return [
        FieldError(".".join(str(part) for part in err["loc"]) or "config", err["msg"])
        for err in e.errors()
    ]


class ProviderRegistry:
    """Owns provider configuration across runs.

    Configs are validated before they are stored and persisted through the
    settings store on every mutation. Mutations are serialized with an
    ``asyncio.Lock``; reads do not take the lock.
    """

    def __init__(self, store: SettingsStore | None = None) -> None:
        self.store = store if store is not None else InMemorySettingsStore()
        self._registrations: dict[str, _Registration] = {}
        self._configs: dict[str, ProviderConfig] = {}
        self._enabled: set[str] = set()
        self._lock = asyncio.Lock()

    # ── Registration ────────────────────────────────────────────────────

    def register(
        self,
        provider_id: str,
        factory: ProviderFactory,
        template: ProviderTemplate | None = None,
    ) -> None:
        """Register a provider factory.

        Args:
            provider_id: Unique provider id
            factory: Zero-argument callable building an unconfigured provider
            template: Provider template (defaults to the built-in one for the id)
        """
        template = template or PROVIDER_TEMPLATES.get(provider_id)
        if template is None:
            raise UnknownProviderError(f"No template for provider '{provider_id}'")
        self._registrations[provider_id] = _Registration(factory, template)
        logger.debug(f"Registered provider {provider_id}")

    def list_available(self) -> list[ProviderTemplate]:
        """Templates of every registered provider, in registration order."""
        return [reg.template for reg in self._registrations.values()]

    def is_registered(self, provider_id: str) -> bool:
        return provider_id in self._registrations

    def registered_ids(self) -> list[str]:
        return list(self._registrations)

    def get_template(self, provider_id: str) -> ProviderTemplate:
        return self._registration(provider_id).template

    def _registration(self, provider_id: str) -> _Registration:
        try:
            return self._registrations[provider_id]
        except KeyError:
            raise UnknownProviderError(
                f"Unknown provider: {provider_id}",
                context={"available": list(self._registrations)},
            ) from None

    # ── Reads ───────────────────────────────────────────────────────────

    def get_config(self, provider_id: str) -> ProviderConfig | None:
        return self._configs.get(provider_id)

    def configured_providers(self) -> dict[str, ProviderConfig]:
        return dict(self._configs)

    def enabled_providers(self) -> list[str]:
        """Enabled provider ids in registration order."""
        return [pid for pid in self._registrations if pid in self._enabled]

    def is_enabled(self, provider_id: str) -> bool:
        return provider_id in self._enabled

    def create_provider(self, provider_id: str) -> ReviewProvider:
        """Build a configured provider instance (no health check).

        Raises:
            UnknownProviderError: If the id is not registered
            NotConfiguredError: If the provider has no stored config
            ConfigInvalidError: If the stored config lacks required settings
        """
        registration = self._registration(provider_id)
        config = self._configs.get(provider_id)
        if config is None:
            raise NotConfiguredError(f"Provider {provider_id} is not configured")
        provider = registration.factory()
        provider.configure(config)
        return provider

    def validate_field(self, provider_id: str, field_name: str, value: Any) -> str | None:
        """Validate one field for a provider without storing anything."""
        registration = self._registrations.get(provider_id)
        if registration is None:
            return f"Unknown provider: {provider_id}"
        return _validate_field(provider_id, field_name, value, registration.template)

    # ── Mutations ───────────────────────────────────────────────────────

    async def set_config(
        self, provider_id: str, config: Mapping[str, Any] | ProviderConfig
    ) -> ProviderConfig:
        """Validate and store a provider config.

        Raises:
            ConfigValidationError: If any field fails validation (nothing is stored)
        """
        model = self._validated(provider_id, config)
        async with self._lock:
            self._configs[provider_id] = model
            self._save()
        logger.info(f"Saved configuration for provider {provider_id}")
        return model

    async def enable(self, provider_id: str) -> None:
        """Enable a configured provider.

        Raises:
            NotConfiguredError: If the provider has no stored config
        """
        async with self._lock:
            if provider_id not in self._configs:
                raise NotConfiguredError(
                    f"Provider {provider_id} must be configured before it can be enabled"
                )
            self._enabled.add(provider_id)
            self._save()
        logger.info(f"Enabled provider {provider_id}")

    async def disable(self, provider_id: str) -> None:
        async with self._lock:
            self._enabled.discard(provider_id)
            self._save()
        logger.info(f"Disabled provider {provider_id}")

    async def remove_config(self, provider_id: str) -> None:
        async with self._lock:
            self._configs.pop(provider_id, None)
            self._enabled.discard(provider_id)
            self._save()
        logger.info(f"Removed configuration for provider {provider_id}")

    async def test_connection(self, provider_id: str) -> ProviderHealthStatus:
        """Check a configured provider, whether or not it is enabled. Never raises."""
        start_time = time.perf_counter()
        try:
            provider = self.create_provider(provider_id)
        except CodeReviewError as e:
            return ProviderHealthStatus(
                is_healthy=False,
                response_time_ms=(time.perf_counter() - start_time) * 1000,
                last_checked=utc_now_iso(),
                error_message=str(e),
            )
        return await provider.health_check()

    # ── Persistence ─────────────────────────────────────────────────────

    def load(self) -> None:
        """Load configs and the enabled set from the settings store.

        Malformed persisted data is logged and treated as no configuration.
        """
        self._configs = {}
        self._enabled = set()

        raw = self.store.get(CONFIGURED_PROVIDERS_KEY)
        if raw:
            try:
                data = orjson.loads(raw) if isinstance(raw, (str, bytes)) else raw
            except orjson.JSONDecodeError as e:
                logger.warning(f"Ignoring malformed provider configuration: {e}")
                data = {}
            if not isinstance(data, dict):
                logger.warning("Ignoring provider configuration: not a JSON object")
                data = {}

            for provider_id, entry in data.items():
                try:
                    self._configs[provider_id] = ProviderConfig.model_validate(entry)
                except ValidationError as e:
                    logger.warning(
                        f"Ignoring malformed configuration for {provider_id}: "
                        f"{e.error_count()} error(s)"
                    )

        enabled = self.store.get(ENABLED_PROVIDERS_KEY)
        if isinstance(enabled, list):
            self._enabled = {
                pid for pid in enabled if isinstance(pid, str) and pid in self._configs
            }
        elif enabled is not None:
            logger.warning("Ignoring enabled provider list: not a list")

        logger.debug(
            f"Loaded {len(self._configs)} provider configs, "
            f"{len(self._enabled)} enabled"
        )

    def _save(self) -> None:
        serialized = {pid: cfg.to_wire() for pid, cfg in self._configs.items()}
        self.store.set(CONFIGURED_PROVIDERS_KEY, orjson.dumps(serialized).decode())
        self.store.set(ENABLED_PROVIDERS_KEY, sorted(self._enabled))

    def export_config(self) -> dict[str, Any]:
        """Export configs and the enabled list in wire form."""
        return {
            "providers": {pid: cfg.to_wire() for pid, cfg in self._configs.items()},
            "enabled": self.enabled_providers(),
        }

    async def import_config(self, data: Mapping[str, Any]) -> None:
        """Replace all configs from an export document.

        Every entry is validated first; on any failure nothing changes.

        Raises:
            ConfigValidationError: With fields prefixed by provider id
        """
        providers = data.get("providers") or {}
        enabled = data.get("enabled") or []
        if not isinstance(providers, Mapping) or not isinstance(enabled, list):
            raise ConfigValidationError(
                "import", [FieldError("document", "Malformed export document")]
            )

        errors: list[FieldError] = []
        models: dict[str, ProviderConfig] = {}
        for provider_id, entry in providers.items():
            try:
                models[provider_id] = self._validated(provider_id, entry)
            except ConfigValidationError as e:
                errors.extend(
                    FieldError(f"{provider_id}.{err.field}", err.message)
                    for err in e.errors
                )
        for provider_id in enabled:
            if provider_id not in models:
                errors.append(
                    FieldError(f"enabled.{provider_id}", "Provider is not configured")
                )
        if errors:
            raise ConfigValidationError("import", errors)

        async with self._lock:
            self._configs = models
            self._enabled = set(enabled)
            self._save()
        logger.info(f"Imported configuration for {len(models)} provider(s)")

    def _validated(
        self, provider_id: str, config: Mapping[str, Any] | ProviderConfig
    ) -> ProviderConfig:
        if isinstance(config, ProviderConfig):
            data = config.to_wire()
        elif isinstance(config, Mapping):
            data = dict(config)
        else:
            raise ConfigValidationError(
                provider_id, [FieldError("config", "Configuration must be an object")]
            )

        registration = self._registrations.get(provider_id)
        errors = validate_config(
            provider_id, data, registration.template if registration else None
        )
        if errors:
            raise ConfigValidationError(provider_id, errors)

        try:
            return ProviderConfig.model_validate(wire_field_names(data))
        except ValidationError as e:
            raise ConfigValidationError(provider_id, _pydantic_field_errors(e)) from e


def create_default_registry(
    store: SettingsStore | None = None, load: bool = True
) -> ProviderRegistry:
    """Build a registry with the built-in providers registered.

    Args:
        store: Settings store (in-memory when omitted)
        load: Load persisted configuration immediately
    """
    registry = ProviderRegistry(store)
    registry.register("sonarqube", SonarQubeProvider, SONARQUBE_TEMPLATE)
    registry.register("codeclimate", CodeClimateProvider, CODECLIMATE_TEMPLATE)
    registry.register("semgrep", SemgrepProvider, SEMGREP_TEMPLATE)
    if load:
        registry.load()
    return registry
