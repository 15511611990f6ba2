"""
Metadata Definition Dataclasses

This module contains the immutable, already-parsed metadata structures the
permission, resolution and eager-loading layers read: model definitions
(fields, associations, display templates), permission definitions (per-role
configuration, field overrides, record rules) and presenter definitions
(index, show and form declarations).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union

TEMPLATE_REF_PATTERN = re.compile(r"\{([^}]+)\}")

ASSOCIATION_TYPES = ("belongs_to", "has_one", "has_many")
TO_ONE_TYPES = ("belongs_to", "has_one")

CANONICAL_ACTIONS = ("index", "show", "create", "update", "destroy")
ACTION_ALIASES = {"edit": "update", "new": "create"}

ALL = "all"


def normalize_action(action: Any) -> str:
    """
    Map an action name to its canonical CRUD name.

    Examples:
        >>> normalize_action("edit")
        "update"
        >>> normalize_action("show")
        "show"
    """
    name = str(action)
    return ACTION_ALIASES.get(name, name)


@dataclass(frozen=True)
class FieldDefinition:
    """
    A single persisted field of a model.

    Attributes:
        name: Field (column) name.
        type: Declared field type, informational only.
        label: Human readable label.
    """

    name: str
    type: str = "string"
    label: Optional[str] = None


@dataclass(frozen=True)
class AssociationDefinition:
    """
    An association from one model to another.

    Attributes:
        name: Association name, also the attribute exposing it on records.
        type: One of belongs_to, has_one, has_many.
        target_model: Name of a model registered in the metadata registry.
        class_name: Name of an external class, used when target_model is unset.
        foreign_key: FK column; inferred as ``<name>_id`` for belongs_to.
    """

    name: str
    type: str
    target_model: Optional[str] = None
    class_name: Optional[str] = None
    foreign_key: Optional[str] = None

    @property
    def to_many(self) -> bool:
        return self.type == "has_many"

    @property
    def to_one(self) -> bool:
        return self.type in TO_ONE_TYPES

    @property
    def belongs_to(self) -> bool:
        return self.type == "belongs_to"

    @property
    def managed_target(self) -> bool:
        """Whether the target is a model described by the metadata registry."""
        return bool(self.target_model)


@dataclass(frozen=True)
class DisplayTemplateDefinition:
    """A named display template used to label records of a model."""

    name: str
    template: Optional[str] = None
    subtitle: Optional[str] = None
    badge: Optional[str] = None

    @property
    def referenced_fields(self) -> list[str]:
        """Unique ``{ref}`` field paths referenced by the template strings."""
        refs: list[str] = []
        for text in (self.template, self.subtitle, self.badge):
            if not text:
                continue
            for ref in TEMPLATE_REF_PATTERN.findall(text):
                ref = ref.strip()
                if ref and ref not in refs:
                    refs.append(ref)
        return refs


@dataclass(frozen=True)
class ModelDefinition:
    """
    Declarative description of a model.

    Attributes:
        name: Model name used as the registry key.
        fields: Persisted fields.
        associations: Associations to other models.
        display_templates: Display templates keyed by name.
        dynamic_field_names: Runtime-added (custom) field names.
        label_method: Method used to label records; falls back to the
            ``field_settings.label_method`` setting when unset.
    """

    name: str
    fields: tuple[FieldDefinition, ...] = ()
    associations: tuple[AssociationDefinition, ...] = ()
    display_templates: dict[str, DisplayTemplateDefinition] = field(
        default_factory=dict
    )
    dynamic_field_names: tuple[str, ...] = ()
    label_method: Optional[str] = None

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def field(self, name: str) -> Optional[FieldDefinition]:
        for definition in self.fields:
            if definition.name == str(name):
                return definition
        return None

    def association(self, name: Any) -> Optional[AssociationDefinition]:
        for assoc in self.associations:
            if assoc.name == str(name):
                return assoc
        return None

    @property
    def belongs_to_fk_map(self) -> dict[str, AssociationDefinition]:
        """FK column name to belongs_to association."""
        return {
            assoc.foreign_key: assoc
            for assoc in self.associations
            if assoc.belongs_to and assoc.foreign_key
        }

    def display_template(self, name: str = "default") -> Optional[DisplayTemplateDefinition]:
        return self.display_templates.get(name)

    @property
    def has_dynamic_fields(self) -> bool:
        return bool(self.dynamic_field_names)


ListOrAll = Union[str, list[str]]


@dataclass(frozen=True)
class PermissionDefinition:
    """
    Permission policy for one model.

    Attributes:
        model: Model name, or the default policy name for the shared fallback.
        roles: Role name to role configuration mapping. A role configuration
            holds ``crud``, ``fields``, ``actions``, ``presenters`` and
            ``scope`` keys.
        default_role: Role used when none of the user's roles is declared.
        field_overrides: Field name to ``readable_by``/``writable_by``/
            ``masked_for`` role lists.
        record_rules: Ordered ``{condition, effect}`` rules.
    """

    model: str
    roles: dict[str, dict[str, Any]] = field(default_factory=dict)
    default_role: str = "viewer"
    field_overrides: dict[str, dict[str, list[str]]] = field(default_factory=dict)
    record_rules: tuple[dict[str, Any], ...] = ()

    @property
    def role_names(self) -> list[str]:
        return list(self.roles.keys())

    def role_config_for(self, role_name: str) -> dict[str, Any]:
        """
        Configuration for a role, falling back to the default role.

        A declared role keeps its own configuration even when it is empty.
        """
        name = str(role_name)
        if name in self.roles:
            return self.roles[name]
        return self.roles.get(self.default_role) or {}

    def field_override(self, field_name: str) -> Optional[dict[str, list[str]]]:
        return self.field_overrides.get(str(field_name))


@dataclass(frozen=True)
class PresenterDefinition:
    """
    Presenter declarations for one model.

    Attributes:
        name: Presenter name.
        model: Name of the presented model.
        index_config: ``table_columns`` plus optional ``includes``/``eager_load``.
        show_config: ``layout`` sections plus optional overrides.
        form_config: ``sections`` plus optional overrides.
        search_config: ``searchable_fields`` list.
    """

    name: str
    model: str
    index_config: dict[str, Any] = field(default_factory=dict)
    show_config: dict[str, Any] = field(default_factory=dict)
    form_config: dict[str, Any] = field(default_factory=dict)
    search_config: dict[str, Any] = field(default_factory=dict)

    @property
    def table_columns(self) -> list[dict[str, Any]]:
        return list(self.index_config.get("table_columns") or [])

    @property
    def searchable_fields(self) -> list[str]:
        return [str(f) for f in self.search_config.get("searchable_fields") or []]

    def config_for(self, context: str) -> dict[str, Any]:
        return {
            "index": self.index_config,
            "show": self.show_config,
            "form": self.form_config,
        }.get(str(context), {})


__all__ = [
    "ALL",
    "ACTION_ALIASES",
    "ASSOCIATION_TYPES",
    "CANONICAL_ACTIONS",
    "TEMPLATE_REF_PATTERN",
    "AssociationDefinition",
    "DisplayTemplateDefinition",
    "FieldDefinition",
    "ModelDefinition",
    "PermissionDefinition",
    "PresenterDefinition",
    "normalize_action",
]
