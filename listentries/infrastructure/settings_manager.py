"""Runtime settings provider.

Holds named flags that can be flipped while the service runs. Values are
seeded from environment configuration.
"""

from typing import Any, Protocol

import structlog

from listentries.infrastructure.config import settings

logger = structlog.get_logger()

USE_INDEXED_SEARCH = "catalog.search.use_indexed_search_in_manager"


class SettingsProvider(Protocol):
    """Read access to boolean flags."""

    def get_flag(self, name: str, default: bool) -> bool: ...


class SettingsManager:
    """In-process settings store."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})

    def get_flag(self, name: str, default: bool) -> bool:
        """Get a boolean flag, falling back to ``default`` when unset."""
        value = self._values.get(name)
        if value is None:
            return default
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    def set_value(self, name: str, value: Any) -> None:
        """Set a setting value."""
        self._values[name] = value
        logger.info("Setting changed", name=name, value=value)


_settings_manager: SettingsManager | None = None


def get_settings_manager() -> SettingsManager:
    """Get the settings manager singleton."""
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager({USE_INDEXED_SEARCH: settings.use_indexed_search})
    return _settings_manager


def reset_settings_manager() -> None:
    """Drop the settings manager singleton (used by tests)."""
    global _settings_manager
    _settings_manager = None
