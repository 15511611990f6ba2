"""
PermissionEvaluator - per-user, per-model authorization decisions.

An evaluator is built for one ``(policy, user, model_name)`` triple and is
immutable afterwards. It resolves the user's applicable roles, merges their
configurations into an EffectivePolicy and answers CRUD, record, field,
action and presenter questions. Every check is fail-closed: a missing model,
field or role never raises, it denies.
"""

import logging
from functools import cached_property
from typing import TYPE_CHECKING, Any, Iterable, Optional

from ...config_proxy import get_setting
from ...core.exceptions import ModelNotFoundError, PermissionDefinitionNotFound
from ...core.meta.config import (
    ALL,
    CANONICAL_ACTIONS,
    ModelDefinition,
    PermissionDefinition,
    normalize_action,
)
from .conditions import matches_condition
from .impersonation import ImpersonatedUser
from .policy import merge_role_configs
from .roles import RoleRegistry, role_registry
from .scope import ScopeBuilder
from .types import EffectivePolicy

if TYPE_CHECKING:
    from ...core.meta.registry import MetadataRegistry

logger = logging.getLogger(__name__)


def build_fallback_definition(model_name: str) -> PermissionDefinition:
    """All-access policy used when no policy can be found for a model."""
    role = str(get_setting("permission_settings.fallback_role", "admin"))
    return PermissionDefinition(
        model=str(model_name),
        roles={
            role: {
                "crud": list(CANONICAL_ACTIONS),
                "fields": {"readable": ALL, "writable": ALL},
                "actions": ALL,
                "presenters": ALL,
                "scope": ALL,
            }
        },
        default_role=role,
    )


def _get_registry(registry: Optional["MetadataRegistry"]) -> "MetadataRegistry":
    if registry is not None:
        return registry
    from ...core.meta.registry import metadata_registry

    return metadata_registry


class PermissionEvaluator:
    """
    Authorization decisions for one user on one model.

    Args:
        permission_definition: The model's policy. ``None`` selects the
            all-access fallback policy.
        user: The acting user, or None for anonymous access.
        model_name: Name of the model the policy applies to.
        registry: Metadata registry used to expand ``"all"`` field grants.
        role_source: Registry of valid role names; defaults to the global
            role registry when ``permission_settings.validate_roles`` is on.
    """

    def __init__(
        self,
        permission_definition: Optional[PermissionDefinition],
        user: Any,
        model_name: str,
        *,
        registry: Optional["MetadataRegistry"] = None,
        role_source: Optional[RoleRegistry] = None,
    ):
        if permission_definition is None:
            permission_definition = build_fallback_definition(model_name)
        self.permission_definition = permission_definition
        self.user = user
        self.model_name = str(model_name)
        self.registry = _get_registry(registry)
        self.role_source = role_source
        self.roles: list[str] = self.resolve_roles(user)
        self.effective_policy: EffectivePolicy = merge_role_configs(
            permission_definition, self.roles
        )

    @classmethod
    def for_model(
        cls,
        model_name: str,
        user: Any,
        *,
        registry: Optional["MetadataRegistry"] = None,
        role_source: Optional[RoleRegistry] = None,
    ) -> "PermissionEvaluator":
        """
        Build an evaluator from the registry's policy for ``model_name``.

        A model without a policy (and no default policy) gets the all-access
        fallback policy; the miss is logged as a warning.
        """
        registry = _get_registry(registry)
        try:
            definition = registry.permission_definition(model_name)
        except PermissionDefinitionNotFound:
            logger.warning(
                "No permission definition for model '%s', using the all-access "
                "fallback policy",
                model_name,
            )
            definition = None
        return cls(
            definition, user, model_name, registry=registry, role_source=role_source
        )

    # --- Role resolution ---

    def resolve_roles(self, user: Any) -> list[str]:
        """
        Roles of ``user`` that the policy declares, in the user's order.

        Falls back to the policy's default role when none match.
        """
        declared = self.permission_definition.role_names
        candidates = self._validate_roles(self._read_user_roles(user))
        roles: list[str] = []
        for role in candidates:
            if role in declared and role not in roles:
                roles.append(role)
        return roles or [self.permission_definition.default_role]

    def _read_user_roles(self, user: Any) -> list[str]:
        if user is None:
            return []
        if isinstance(user, ImpersonatedUser):
            return user.impersonated_roles
        attribute = str(get_setting("permission_settings.role_attribute", "crud_roles"))
        value = getattr(user, attribute, None)
        if callable(value):
            value = value()
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, Iterable):
            return [str(role) for role in value if role is not None]
        return [str(value)]

    def _validate_roles(self, roles: list[str]) -> list[str]:
        source = self.role_source
        if source is None and get_setting("permission_settings.validate_roles", False):
            source = role_registry
        if source is None or not source.available or not roles:
            return roles

        valid = [role for role in roles if source.valid_role(role)]
        unknown = [role for role in roles if role not in valid]
        if unknown:
            logger.warning(
                "Ignoring unknown roles %s for model '%s'", unknown, self.model_name
            )
        return valid

    def _has_any_role(self, role_names: Iterable[Any]) -> bool:
        names = {str(name) for name in role_names}
        return any(role in names for role in self.roles)

    # --- CRUD ---

    def can(self, action: Any) -> bool:
        """Whether the effective policy grants a CRUD action (aliases allowed)."""
        crud = self.effective_policy.crud
        if crud is None:
            return False
        return normalize_action(action) in crud

    def can_for_record(self, action: Any, record: Any) -> bool:
        """
        Whether the action is allowed on a specific record.

        Requires ``can(action)``, then applies record rules in declaration
        order; the first rule that denies the action for all of the user's
        roles vetoes it.
        """
        if not self.can(action):
            return False

        action_name = normalize_action(action)
        for rule in self.permission_definition.record_rules:
            if not matches_condition(record, rule.get("condition")):
                continue
            effect = rule.get("effect") or {}
            denied = [normalize_action(a) for a in effect.get("deny_crud") or []]
            if action_name in denied and not self._has_any_role(
                effect.get("except_roles") or []
            ):
                logger.debug(
                    "Record rule %s denies '%s' on model '%s'",
                    rule.get("name") or "(unnamed)",
                    action_name,
                    self.model_name,
                )
                return False
        return True

    # --- Fields ---

    @cached_property
    def model_definition(self) -> Optional[ModelDefinition]:
        try:
            return self.registry.model_definition(self.model_name)
        except ModelNotFoundError:
            logger.debug("Model definition '%s' not found", self.model_name)
            return None

    def _all_field_names(self) -> list[str]:
        """Model fields plus belongs_to FK columns plus dynamic fields."""
        model_def = self.model_definition
        if model_def is None:
            return []
        names = list(model_def.field_names)
        names.extend(model_def.belongs_to_fk_map.keys())
        names.extend(model_def.dynamic_field_names)
        return list(dict.fromkeys(names))

    def _field_list(self, key: str, override_key: str) -> list[str]:
        value = self.effective_policy.fields.get(key)
        if value is None:
            return []
        names = self._all_field_names() if value == ALL else [str(v) for v in value]
        return [name for name in names if not self._override_excludes(name, override_key)]

    def _override_excludes(self, field_name: str, override_key: str) -> bool:
        override = self.permission_definition.field_override(field_name)
        if not override or override.get(override_key) is None:
            return False
        return not self._has_any_role(override[override_key])

    @cached_property
    def readable_fields(self) -> list[str]:
        return self._field_list("readable", "readable_by")

    @cached_property
    def writable_fields(self) -> list[str]:
        return self._field_list("writable", "writable_by")

    def _field_allowed(self, field_name: Any, override_key: str, allowed: list[str]) -> bool:
        name = str(field_name)
        override = self.permission_definition.field_override(name)
        if override and override.get(override_key) is not None:
            return self._has_any_role(override[override_key])
        if name in allowed:
            return True
        return self._dynamic_field_allowed(name, allowed)

    def _dynamic_field_allowed(self, field_name: str, allowed: list[str]) -> bool:
        model_def = self.model_definition
        if model_def is None or field_name not in model_def.dynamic_field_names:
            return False
        umbrella = str(get_setting("field_settings.dynamic_umbrella_field", "custom_data"))
        return umbrella in allowed

    def field_readable(self, field_name: Any) -> bool:
        return self._field_allowed(field_name, "readable_by", self.readable_fields)

    def field_writable(self, field_name: Any) -> bool:
        return self._field_allowed(field_name, "writable_by", self.writable_fields)

    def field_masked(self, field_name: Any) -> bool:
        """Masked only when every one of the user's roles is in masked_for."""
        override = self.permission_definition.field_override(str(field_name))
        if not override or override.get("masked_for") is None:
            return False
        masked_for = set(override["masked_for"])
        return all(role in masked_for for role in self.roles)

    # --- Actions and presenters ---

    def can_execute_action(self, action_name: Any) -> bool:
        actions = self.effective_policy.actions
        if actions == ALL:
            return True
        if not isinstance(actions, dict):
            return False

        name = str(action_name)
        if name in (actions.get("denied") or []):
            return False
        allowed = actions.get("allowed")
        if allowed == ALL:
            return True
        return name in (allowed or [])

    def can_access_presenter(self, presenter_name: Any) -> bool:
        presenters = self.effective_policy.presenters
        if presenters == ALL:
            return True
        return str(presenter_name) in (presenters or [])

    # --- Scope ---

    def apply_scope(self, query: Any) -> Any:
        """Restrict a query to the records the user's scope allows."""
        return ScopeBuilder(
            self.effective_policy.scope, self.user, self.model_name
        ).apply(query)

    def __repr__(self) -> str:
        return f"<PermissionEvaluator model={self.model_name!r} roles={self.roles!r}>"


__all__ = ["PermissionEvaluator", "build_fallback_definition"]
