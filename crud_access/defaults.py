"""
Default configuration for the crud-access library.

This module exposes a single source of truth for every setting that the
library actually consumes. Each section mirrors one concern of the runtime:
role resolution and policy fallbacks, field resolution, and eager loading.
"""

from __future__ import annotations

from typing import Any

LIBRARY_VERSION = "0.1.0"
LIBRARY_NAME = "crud-access"


# --------------------------------------------------------------------------- #
# Library-wide defaults (grouped by feature area)
# --------------------------------------------------------------------------- #
LIBRARY_DEFAULTS: dict[str, Any] = {
    "permission_settings": {
        # Attribute (or zero-argument method) on the user holding role names.
        "role_attribute": "crud_roles",
        # Role used by policies that do not declare a default_role.
        "default_role": "viewer",
        # Role of the all-access policy used when no policy can be found.
        "fallback_role": "admin",
        # Name of the policy used for models without a policy of their own.
        "default_policy_name": "_default",
        # Drop user roles unknown to the role registry before matching.
        "validate_roles": False,
        # Dotted path to a callable returning the valid role names.
        "role_loader": None,
    },
    "field_settings": {
        # Field whose readability grants access to runtime-added fields.
        "dynamic_umbrella_field": "custom_data",
        # Method used to label associated records resolved via a FK column.
        "label_method": "to_label",
    },
    "optimization_settings": {
        "enable_eager_loading": True,
        # Apply distinct() when a to-many association is joined for querying.
        "distinct_on_filter_join": True,
    },
}


def get_default(key: str, default: Any = None) -> Any:
    """
    Read a library default using dot notation.

    Examples:
        >>> get_default("permission_settings.role_attribute")
        "crud_roles"
    """
    current: Any = LIBRARY_DEFAULTS
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current
