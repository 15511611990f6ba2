"""
FieldValueResolver - permission-aware field value resolution.

Resolves the field paths a presenter declares against a record:

- ``name``: plain attribute read
- ``company.name``: association walk, terminal field checked against the
  ``company`` policy
- ``contacts.first_name``: to-many walk, one value per related record
- ``{first_name} {last_name}``: template, every placeholder resolved

Resolution never raises for missing associations, records or fields, and
never for unreadable fields: all of them resolve to ``None`` (or a compacted
list for to-many walks).
"""

import logging
from typing import Any, Mapping, Optional, Union

from ..config_proxy import get_setting
from ..core.meta.config import (
    TEMPLATE_REF_PATTERN,
    AssociationDefinition,
    ModelDefinition,
)
from ..core.meta.registry import MetadataRegistry
from ..security.rbac.evaluator import PermissionEvaluator
from ..utils.field_paths import is_dot_path, is_template_field
from ..utils.records import has_attribute, iter_related, label_for, read_attribute
from .lookup import EvaluatorFactory

logger = logging.getLogger(__name__)

FkMap = Union[None, bool, Mapping[str, AssociationDefinition]]


class FieldValueResolver:
    """
    Resolve field paths for one model and one root permission evaluator.

    Args:
        model_definition: Metadata of the records being resolved.
        permission_evaluator: Evaluator for ``model_definition`` and the
            acting user.
        registry: Metadata registry used to load association targets.
        evaluator_factory: Shared per-hop evaluator factory. When omitted, a
            fresh factory is built for every ``resolve`` call.
    """

    def __init__(
        self,
        model_definition: ModelDefinition,
        permission_evaluator: PermissionEvaluator,
        registry: Optional[MetadataRegistry] = None,
        evaluator_factory: Optional[EvaluatorFactory] = None,
    ):
        self.model_definition = model_definition
        self.permission_evaluator = permission_evaluator
        self.registry = registry or permission_evaluator.registry
        self.evaluator_factory = evaluator_factory

    def resolve(self, record: Any, field_path: Any, fk_map: FkMap = None) -> Any:
        """
        Resolve ``field_path`` against ``record``.

        Args:
            record: Object exposing the model's attributes and associations.
            field_path: Plain field, dot-path or template.
            fk_map: FK column to belongs_to association; listed columns resolve
                to the label of the associated record. ``True`` uses the
                model's own belongs_to FK map.

        Returns:
            The resolved value, a list for to-many paths, a string for
            templates, or None.
        """
        path = "" if field_path is None else str(field_path)
        if not path.strip():
            return None

        factory = self.evaluator_factory or EvaluatorFactory(
            self.permission_evaluator, self.registry, self.model_definition.name
        )
        fk_map = self._normalize_fk_map(fk_map)

        if is_template_field(path):
            return self._resolve_template(record, path, fk_map, factory)
        if is_dot_path(path):
            return self._resolve_dot_path(record, path.split("."), factory)
        return self._resolve_ref(record, path, fk_map, factory)

    def _normalize_fk_map(self, fk_map: FkMap) -> Mapping[str, AssociationDefinition]:
        if fk_map is True:
            return self.model_definition.belongs_to_fk_map
        if not fk_map:
            return {}
        return fk_map

    # --- Templates ---

    def _resolve_template(
        self,
        record: Any,
        template: str,
        fk_map: Mapping[str, AssociationDefinition],
        factory: EvaluatorFactory,
    ) -> str:
        def substitute(match: Any) -> str:
            value = self._resolve_ref(record, match.group(1).strip(), fk_map, factory)
            if isinstance(value, list):
                return ", ".join(str(item) for item in value)
            return "" if value is None else str(value)

        return TEMPLATE_REF_PATTERN.sub(substitute, template)

    def _resolve_ref(
        self,
        record: Any,
        ref: str,
        fk_map: Mapping[str, AssociationDefinition],
        factory: EvaluatorFactory,
    ) -> Any:
        if is_dot_path(ref):
            return self._resolve_dot_path(record, ref.split("."), factory)
        if ref in fk_map:
            return self._resolve_fk(record, ref, fk_map[ref], factory)
        return self._resolve_simple(record, ref)

    # --- Association walks ---

    def _resolve_dot_path(
        self, record: Any, parts: list[str], factory: EvaluatorFactory
    ) -> Any:
        current_record = record
        current_model = self.model_definition

        for index, part in enumerate(parts[:-1]):
            assoc = current_model.association(part)
            if assoc is None:
                logger.debug(
                    "Association '%s' not found on model '%s'", part, current_model.name
                )
                return None
            target_model = factory.model_definition(assoc.target_model)
            if target_model is None:
                return None
            if assoc.to_many:
                return self._resolve_has_many(
                    current_record, part, parts[index + 1 :], target_model, factory
                )

            current_record = read_attribute(current_record, part)
            if current_record is None:
                return None
            current_model = target_model

        return self._read_terminal(current_record, parts[-1], current_model, factory)

    def _resolve_has_many(
        self,
        record: Any,
        assoc_name: str,
        remaining: list[str],
        target_model: ModelDefinition,
        factory: EvaluatorFactory,
    ) -> Optional[list[Any]]:
        if not has_attribute(record, assoc_name):
            return None
        related = iter_related(read_attribute(record, assoc_name))
        if related is None:
            return []

        sub_resolver = FieldValueResolver(
            target_model,
            factory.evaluator_for(target_model.name),
            self.registry,
            evaluator_factory=factory,
        )
        values = (
            sub_resolver._resolve_dot_path(related_record, remaining, factory)
            for related_record in related
        )
        return [value for value in values if value is not None]

    def _read_terminal(
        self,
        record: Any,
        field_name: str,
        model: ModelDefinition,
        factory: EvaluatorFactory,
    ) -> Any:
        if record is None:
            return None
        if not factory.evaluator_for(model.name).field_readable(field_name):
            return None
        return read_attribute(record, field_name)

    # --- Plain fields ---

    def _resolve_fk(
        self,
        record: Any,
        field_name: str,
        assoc: AssociationDefinition,
        factory: EvaluatorFactory,
    ) -> Any:
        target_model = factory.model_definition(assoc.target_model)
        if target_model is None:
            return self._resolve_simple(record, field_name)

        related = read_attribute(record, assoc.name)
        if related is None:
            return None
        label_method = target_model.label_method or get_setting(
            "field_settings.label_method", "to_label"
        )
        return label_for(related, label_method)

    def _resolve_simple(self, record: Any, field_name: str) -> Any:
        return read_attribute(record, field_name)


__all__ = ["FieldValueResolver"]
