"""
Role configuration merging.

A user holding several roles gets the most permissive combination of their
configurations: CRUD, field, action and presenter grants are unioned and an
``"all"`` grant from any role wins. Denied actions only stay denied when
every role that declares a denied list denies them.
"""

import logging
from typing import Any, Iterable

from ...core.meta.config import ALL, PermissionDefinition
from .types import EffectivePolicy

logger = logging.getLogger(__name__)


def _unique(values: Iterable[Any]) -> list[str]:
    result: list[str] = []
    for value in values:
        value = str(value)
        if value not in result:
            result.append(value)
    return result


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def policy_from_config(config: dict[str, Any]) -> EffectivePolicy:
    """Wrap a single role configuration without merging."""
    crud = config.get("crud")
    return EffectivePolicy(
        crud=_unique(crud) if crud is not None else None,
        fields=dict(config.get("fields") or {}),
        actions=config.get("actions"),
        presenters=config.get("presenters"),
        scope=config.get("scope"),
    )


def merge_crud(configs: list[dict[str, Any]]) -> list[str]:
    return _unique(action for c in configs for action in _as_list(c.get("crud")))


def merge_field_list(configs: list[dict[str, Any]], key: str) -> Any:
    lists = [
        (c.get("fields") or {}).get(key)
        for c in configs
        if (c.get("fields") or {}).get(key) is not None
    ]
    if any(value == ALL for value in lists):
        return ALL
    return _unique(name for value in lists for name in _as_list(value))


def merge_actions(configs: list[dict[str, Any]]) -> Any:
    if any(c.get("actions") == ALL for c in configs):
        return ALL

    allowed: list[str] = []
    denied_lists: list[list[str]] = []
    allow_all = False
    for config in configs:
        actions = config.get("actions")
        if not isinstance(actions, dict):
            continue
        if actions.get("allowed") == ALL:
            allow_all = True
        else:
            allowed.extend(_as_list(actions.get("allowed")))
        if actions.get("denied") is not None:
            denied_lists.append(_unique(_as_list(actions["denied"])))

    denied: list[str] = []
    if denied_lists:
        denied = [
            action
            for action in denied_lists[0]
            if all(action in other for other in denied_lists[1:])
        ]

    return {"allowed": ALL if allow_all else _unique(allowed), "denied": denied}


def merge_presenters(configs: list[dict[str, Any]]) -> Any:
    lists = [c.get("presenters") for c in configs]
    if any(value == ALL for value in lists):
        return ALL
    return _unique(name for value in lists for name in _as_list(value))


def merge_scope(configs: list[dict[str, Any]], model_name: str) -> Any:
    """An unscoped role wins; otherwise the first declared scope applies."""
    if any(c.get("scope") == ALL for c in configs):
        return ALL

    scopes = [c["scope"] for c in configs if c.get("scope") is not None]
    if len(scopes) > 1:
        logger.warning(
            "Multiple scopes found for model '%s' during multi-role merge; "
            "using the scope of the first matching role, ignoring: %r",
            model_name,
            scopes[1:],
        )
    return scopes[0] if scopes else ALL


def merge_role_configs(
    definition: PermissionDefinition, role_names: list[str]
) -> EffectivePolicy:
    """
    Compute the effective policy for a set of role names.

    Args:
        definition: The model's permission definition.
        role_names: Roles already intersected with the declared role names.

    Returns:
        The merged EffectivePolicy. A single matching role is used as is.
    """
    configs = [definition.role_config_for(role) for role in role_names]
    configs = [config for config in configs if config]
    if not configs:
        return policy_from_config(definition.roles.get(definition.default_role) or {})
    if len(configs) == 1:
        return policy_from_config(configs[0])

    return EffectivePolicy(
        crud=merge_crud(configs),
        fields={
            "readable": merge_field_list(configs, "readable"),
            "writable": merge_field_list(configs, "writable"),
        },
        actions=merge_actions(configs),
        presenters=merge_presenters(configs),
        scope=merge_scope(configs, definition.model),
    )


__all__ = [
    "merge_actions",
    "merge_crud",
    "merge_field_list",
    "merge_presenters",
    "merge_role_configs",
    "merge_scope",
    "policy_from_config",
]
