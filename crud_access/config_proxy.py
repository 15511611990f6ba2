"""
Configuration management for crud-access.

This module provides a settings proxy that resolves configuration from
runtime overrides, the Django ``CRUD_ACCESS`` setting and the library
defaults, in that order.
"""

from typing import Any

from django.conf import settings

from .defaults import LIBRARY_DEFAULTS

SETTINGS_NAME = "CRUD_ACCESS"

# Runtime storage for settings overrides (avoids modifying Django settings)
_RUNTIME_SETTINGS: dict[str, Any] = {}


class SettingsProxy:
    """
    Proxy for accessing crud-access settings with hierarchical resolution.

    Settings are resolved in the following order:
    1. Runtime overrides (via configure_settings)
    2. Global Django settings (CRUD_ACCESS)
    3. Library defaults (LIBRARY_DEFAULTS)
    """

    def __init__(self) -> None:
        self._cache: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value with hierarchical resolution and caching.

        Args:
            key: Setting key to retrieve, dot notation for nested sections
            default: Default value if setting is not found

        Returns:
            The setting value from the highest priority source
        """
        if key in self._cache:
            return self._cache[key]

        for source in (
            _RUNTIME_SETTINGS,
            self._get_django_settings(),
            LIBRARY_DEFAULTS,
        ):
            value = self._get_nested_value(source, key)
            if value is not None:
                self._cache[key] = value
                return value

        self._cache[key] = default
        return default

    def _get_django_settings(self) -> dict[str, Any]:
        """Return the CRUD_ACCESS dict from Django settings, if configured."""
        if not settings.configured:
            return {}
        value = getattr(settings, SETTINGS_NAME, None)
        return value if isinstance(value, dict) else {}

    def _get_nested_value(self, data: dict[str, Any], key: str) -> Any:
        """
        Get nested value from dictionary using dot notation.

        Args:
            data: Dictionary to search in
            key: Key to retrieve (supports dot notation for nested access)

        Returns:
            The value or None if not found
        """
        if not isinstance(data, dict):
            return None

        current = data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]
        return current

    def clear_cache(self) -> None:
        """Clear the settings cache."""
        self._cache.clear()


def get_settings_proxy() -> SettingsProxy:
    """Get a fresh settings proxy instance."""
    return SettingsProxy()


def get_setting(key: str, default: Any = None) -> Any:
    """
    Get a setting value using the hierarchical settings system.

    Args:
        key: Setting key to retrieve
        default: Default value if setting is not found

    Returns:
        The setting value from the highest priority source
    """
    return get_settings_proxy().get(key, default)


def _set_nested_value(data: dict[str, Any], key: str, value: Any) -> None:
    keys = key.split(".")
    current = data
    for part in keys[:-1]:
        current = current.setdefault(part, {})
    current[keys[-1]] = value


def configure_settings(clear_existing: bool = False, **overrides: Any) -> None:
    """
    Configure runtime settings overrides.

    Keys use double underscores for nesting so they can be passed as keyword
    arguments: ``configure_settings(permission_settings__fallback_role="root")``.

    Args:
        clear_existing: Whether to drop previously configured overrides
        **overrides: Setting key-value pairs
    """
    if clear_existing:
        _RUNTIME_SETTINGS.clear()
    for key, value in overrides.items():
        _set_nested_value(_RUNTIME_SETTINGS, key.replace("__", "."), value)


def clear_runtime_settings() -> None:
    """Clear all runtime settings overrides."""
    _RUNTIME_SETTINGS.clear()

