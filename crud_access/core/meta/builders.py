"""
Definition Builders

This module builds the immutable metadata dataclasses from plain mappings
(as produced by YAML/JSON loaders or Python DSLs). Builders normalize keys to
strings, apply defaults and validate the declarations, raising
ConfigurationError for anything they cannot interpret. Validation happens
here, once, so per-request code never has to.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ...config_proxy import get_setting
from ..exceptions import ConfigurationError
from .config import (
    ALL,
    ASSOCIATION_TYPES,
    AssociationDefinition,
    DisplayTemplateDefinition,
    FieldDefinition,
    ModelDefinition,
    PermissionDefinition,
    PresenterDefinition,
)

logger = logging.getLogger(__name__)

MANUAL_OVERRIDE_KEYS = ("includes", "eager_load")


def stringify_deep(value: Any) -> Any:
    """
    Recursively convert mapping keys to strings.

    Examples:
        >>> stringify_deep({1: {"a": [{2: "b"}]}})
        {"1": {"a": [{"2": "b"}]}}
    """
    if isinstance(value, Mapping):
        return {str(k): stringify_deep(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [stringify_deep(item) for item in value]
    return value


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def build_field_definition(data: Any, model_name: str) -> FieldDefinition:
    if isinstance(data, str):
        return FieldDefinition(name=data)
    if not isinstance(data, Mapping) or not data.get("name"):
        raise ConfigurationError(
            f"Field definition in model '{model_name}' requires a name",
            model_name=model_name,
            key="fields",
        )
    return FieldDefinition(
        name=str(data["name"]),
        type=str(data.get("type") or "string"),
        label=data.get("label"),
    )


def build_association_definition(
    data: Mapping[str, Any], model_name: str
) -> AssociationDefinition:
    """
    Build an AssociationDefinition, inferring the belongs_to foreign key.

    Raises:
        ConfigurationError: for an unknown type, a missing name, or a missing
            target.
    """
    assoc_type = str(data.get("type") or "")
    name = str(data.get("name") or "")
    if assoc_type not in ASSOCIATION_TYPES:
        raise ConfigurationError(
            f"Association type '{assoc_type}' is invalid in model '{model_name}'",
            model_name=model_name,
            key="associations",
        )
    if not name:
        raise ConfigurationError(
            f"Association name is required in model '{model_name}'",
            model_name=model_name,
            key="associations",
        )
    target_model = data.get("target_model")
    class_name = data.get("class_name")
    if not target_model and not class_name:
        raise ConfigurationError(
            f"Association '{name}' requires either target_model or class_name",
            model_name=model_name,
            key="associations",
        )

    foreign_key = data.get("foreign_key")
    if not foreign_key and assoc_type == "belongs_to":
        foreign_key = f"{name}_id"

    return AssociationDefinition(
        name=name,
        type=assoc_type,
        target_model=str(target_model) if target_model else None,
        class_name=str(class_name) if class_name else None,
        foreign_key=str(foreign_key) if foreign_key else None,
    )


def build_model_definition(data: Mapping[str, Any]) -> ModelDefinition:
    """
    Build a ModelDefinition from a mapping.

    Expected keys: ``name``, ``fields``, ``associations``,
    ``display_templates`` (name -> ``{template, subtitle, badge}``),
    ``custom_fields`` (runtime-added field names) and ``label_method``.
    """
    data = stringify_deep(data)
    name = str(data.get("name") or "")
    if not name:
        raise ConfigurationError("Model name is required", key="name")

    fields = tuple(build_field_definition(f, name) for f in _as_list(data.get("fields")))
    names = [f.name for f in fields]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigurationError(
            f"Duplicate field names in model '{name}': {', '.join(duplicates)}",
            model_name=name,
            key="fields",
        )

    associations = tuple(
        build_association_definition(a, name) for a in _as_list(data.get("associations"))
    )

    templates: dict[str, DisplayTemplateDefinition] = {}
    for template_name, template_data in (data.get("display_templates") or {}).items():
        if isinstance(template_data, str):
            template_data = {"template": template_data}
        templates[template_name] = DisplayTemplateDefinition(
            name=template_name,
            template=template_data.get("template"),
            subtitle=template_data.get("subtitle"),
            badge=template_data.get("badge"),
        )

    return ModelDefinition(
        name=name,
        fields=fields,
        associations=associations,
        display_templates=templates,
        dynamic_field_names=tuple(str(f) for f in _as_list(data.get("custom_fields"))),
        label_method=data.get("label_method"),
    )


def _coerce_list_or_all(value: Any) -> Any:
    if value == ALL:
        return ALL
    if value is None:
        return None
    return [str(v) for v in _as_list(value)]


def _coerce_role_config(role_name: str, config: Any, model_name: str) -> dict[str, Any]:
    if config is None:
        return {}
    if not isinstance(config, Mapping):
        raise ConfigurationError(
            f"Role '{role_name}' configuration in '{model_name}' must be a mapping",
            model_name=model_name,
            key=f"roles.{role_name}",
        )
    result: dict[str, Any] = {}
    if "crud" in config:
        result["crud"] = [str(a) for a in _as_list(config["crud"])]
    if "fields" in config:
        fields = config["fields"] or {}
        result["fields"] = {
            key: _coerce_list_or_all(fields.get(key))
            for key in ("readable", "writable")
            if fields.get(key) is not None
        }
    if "actions" in config:
        actions = config["actions"]
        if actions == ALL or actions is None:
            result["actions"] = actions
        elif isinstance(actions, Mapping):
            result["actions"] = {
                "allowed": _coerce_list_or_all(actions.get("allowed")) or [],
                "denied": [str(a) for a in _as_list(actions.get("denied"))],
            }
        else:
            result["actions"] = {"allowed": _coerce_list_or_all(actions), "denied": []}
    if "presenters" in config:
        result["presenters"] = _coerce_list_or_all(config["presenters"])
    if "scope" in config:
        result["scope"] = config["scope"]
    return result


def build_permission_definition(data: Mapping[str, Any]) -> PermissionDefinition:
    """
    Build a PermissionDefinition from a mapping.

    Expected keys: ``model``, ``roles``, ``default_role``,
    ``field_overrides`` and ``record_rules``. The default role falls back to
    the ``permission_settings.default_role`` setting.
    """
    data = stringify_deep(data)
    model = str(data.get("model") or "")
    if not model:
        raise ConfigurationError("Permission definition requires a model", key="model")

    roles = {
        str(role): _coerce_role_config(str(role), config, model)
        for role, config in (data.get("roles") or {}).items()
    }

    overrides: dict[str, dict[str, list[str]]] = {}
    for field_name, override in (data.get("field_overrides") or {}).items():
        if not isinstance(override, Mapping):
            raise ConfigurationError(
                f"Field override for '{field_name}' in '{model}' must be a mapping",
                model_name=model,
                key=f"field_overrides.{field_name}",
            )
        overrides[field_name] = {
            key: [str(r) for r in _as_list(override[key])]
            for key in ("readable_by", "writable_by", "masked_for")
            if override.get(key) is not None
        }

    rules = []
    for index, rule in enumerate(_as_list(data.get("record_rules"))):
        if not isinstance(rule, Mapping):
            raise ConfigurationError(
                f"Record rule #{index} in '{model}' must be a mapping",
                model_name=model,
                key="record_rules",
            )
        effect = rule.get("effect") or {}
        rules.append(
            {
                "name": rule.get("name"),
                "condition": rule.get("condition"),
                "effect": {
                    "deny_crud": [str(a) for a in _as_list(effect.get("deny_crud"))],
                    "except_roles": [str(r) for r in _as_list(effect.get("except_roles"))],
                },
            }
        )

    return PermissionDefinition(
        model=model,
        roles=roles,
        default_role=str(
            data.get("default_role")
            or get_setting("permission_settings.default_role", "viewer")
        ),
        field_overrides=overrides,
        record_rules=tuple(rules),
    )


def coerce_association_spec(
    value: Any, model_name: Optional[str] = None, key: Optional[str] = None
) -> Any:
    """
    Normalize a manual includes/eager_load entry.

    Accepts a name, a list of entries, or a mapping of name to a nested
    entry. Returns strings, lists and dicts only.

    Raises:
        ConfigurationError: for any other literal type.

    Examples:
        >>> coerce_association_spec({"company": ["industry", "country"]})
        {"company": ["industry", "country"]}
    """
    if isinstance(value, str):
        if not value:
            raise ConfigurationError(
                "Association path cannot be empty", model_name=model_name, key=key
            )
        return value
    if isinstance(value, (list, tuple)):
        return [coerce_association_spec(item, model_name, key) for item in value]
    if isinstance(value, Mapping):
        return {
            str(name): coerce_association_spec(nested, model_name, key)
            for name, nested in value.items()
        }
    raise ConfigurationError(
        f"Invalid association path {value!r}", model_name=model_name, key=key
    )


def _coerce_context_config(config: Any, presenter: str, model: str, context: str) -> dict[str, Any]:
    if config is None:
        return {}
    if not isinstance(config, Mapping):
        raise ConfigurationError(
            f"Presenter '{presenter}' {context} config must be a mapping",
            model_name=model,
            key=context,
        )
    result = dict(config)
    for override_key in MANUAL_OVERRIDE_KEYS:
        if override_key in result:
            result[override_key] = _as_list(
                coerce_association_spec(
                    result[override_key], model, f"{context}.{override_key}"
                )
            )
    return result


def build_presenter_definition(data: Mapping[str, Any]) -> PresenterDefinition:
    """
    Build a PresenterDefinition from a mapping.

    Expected keys: ``name``, ``model``, ``index``, ``show``, ``form`` and
    ``search``. Manual ``includes``/``eager_load`` entries are validated here.
    """
    data = stringify_deep(data)
    name = str(data.get("name") or "")
    model = str(data.get("model") or "")
    if not name or not model:
        raise ConfigurationError(
            "Presenter definition requires a name and a model",
            model_name=model or None,
            key="name" if not name else "model",
        )

    search = data.get("search") or {}
    if not isinstance(search, Mapping):
        raise ConfigurationError(
            f"Presenter '{name}' search config must be a mapping",
            model_name=model,
            key="search",
        )

    return PresenterDefinition(
        name=name,
        model=model,
        index_config=_coerce_context_config(data.get("index"), name, model, "index"),
        show_config=_coerce_context_config(data.get("show"), name, model, "show"),
        form_config=_coerce_context_config(data.get("form"), name, model, "form"),
        search_config=dict(search),
    )


__all__ = [
    "build_association_definition",
    "build_field_definition",
    "build_model_definition",
    "build_permission_definition",
    "build_presenter_definition",
    "coerce_association_spec",
    "stringify_deep",
]
