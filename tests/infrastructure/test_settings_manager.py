"""Tests for the runtime settings manager."""

from listentries.infrastructure.settings_manager import (
    USE_INDEXED_SEARCH,
    SettingsManager,
    get_settings_manager,
)


class TestSettingsManager:
    """Tests for SettingsManager."""

    def test_unset_flag_uses_default(self) -> None:
        """Missing values fall back to the caller's default."""
        manager = SettingsManager()
        assert manager.get_flag("x", True) is True
        assert manager.get_flag("x", False) is False

    def test_string_values_parsed(self) -> None:
        """String flags are parsed case-insensitively."""
        manager = SettingsManager({"a": "TRUE", "b": "off", "c": "1"})
        assert manager.get_flag("a", False) is True
        assert manager.get_flag("b", True) is False
        assert manager.get_flag("c", False) is True

    def test_set_value(self) -> None:
        """Values can be changed at runtime."""
        manager = SettingsManager()
        manager.set_value(USE_INDEXED_SEARCH, False)
        assert manager.get_flag(USE_INDEXED_SEARCH, True) is False

    def test_singleton_seeded_from_settings(self) -> None:
        """The shared manager starts with the indexed-search flag set."""
        assert get_settings_manager().get_flag(USE_INDEXED_SEARCH, False) is True
        assert get_settings_manager() is get_settings_manager()
