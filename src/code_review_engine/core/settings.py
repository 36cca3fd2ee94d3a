"""Key/value settings stores used to persist provider configuration."""

from pathlib import Path
from typing import Any, Protocol

import orjson
from loguru import logger

from ..config.defaults import get_default_settings_path
from .exceptions import ConfigError


class SettingsStore(Protocol):
    """Minimal key/value store the provider registry persists through."""

    def get(self, key: str) -> Any:
        """Return the stored value, or None when the key is absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under ``key``."""
        ...


class InMemorySettingsStore:
    """Process-local store, used by tests and embedding hosts."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class JsonFileSettingsStore:
    """Settings persisted as a single JSON document on disk.

    The file is read lazily on first access and rewritten on every ``set``.
    A missing file is an empty store; an unparseable file is logged and
    treated as empty so a corrupt settings file never blocks startup.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or get_default_settings_path()
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        if not self.path.exists():
            self._data = {}
            return self._data

        try:
            loaded = orjson.loads(self.path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            loaded = {}

        if not isinstance(loaded, dict):
            logger.warning(f"Ignoring settings file {self.path}: not a JSON object")
            loaded = {}

        self._data = loaded
        return self._data

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        except OSError as e:
            raise ConfigError(
                f"Failed to write settings to {self.path}: {e}",
                context={"path": str(self.path)},
            ) from e
        logger.debug(f"Saved setting '{key}' to {self.path}")
