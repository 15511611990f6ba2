"""
Dependency analyzer for eager-load planning.

Collects the associations a presenter context will touch, from its declared
columns, sections and templates, from the active sort field and search
fields, and from manual ``includes``/``eager_load`` overrides.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from ...core.exceptions import MetadataError
from ...core.meta.config import ModelDefinition, PresenterDefinition
from ...core.meta.registry import MetadataRegistry
from ...utils.field_paths import is_template_field, split_path, template_refs
from .paths import AssociationPath

logger = logging.getLogger(__name__)


class DependencyReason(Enum):
    """Why an association has to be loaded."""

    # Associated records are rendered (labels, association lists)
    DISPLAY = "display"
    # The association's table is needed for filtering or ordering
    QUERY = "query"


@dataclass(frozen=True)
class AssociationDependency:
    """An association path the query needs, and why."""

    path: AssociationPath
    reason: DependencyReason

    @property
    def association_name(self) -> str:
        return self.path.name

    @property
    def nested(self) -> bool:
        return not self.path.is_leaf

    @property
    def is_query(self) -> bool:
        return self.reason is DependencyReason.QUERY


class DependencyCollector:
    """
    Gather association dependencies for one model.

    Unknown associations are skipped. Duplicate ``(path, reason)`` pairs are
    recorded once.
    """

    def __init__(self, registry: Optional[MetadataRegistry] = None):
        if registry is None:
            from ...core.meta.registry import metadata_registry

            registry = metadata_registry
        self.registry = registry
        self.dependencies: list[AssociationDependency] = []

    # --- Sources ---

    def from_presenter(
        self, presenter: PresenterDefinition, model: ModelDefinition, context: str
    ) -> None:
        """Collect display dependencies declared for an index, show or form context."""
        context = str(context)
        if context == "index":
            self._collect_index(presenter, model)
        elif context == "show":
            self._collect_show(presenter, model)
        elif context == "form":
            self._collect_form(presenter, model)
        else:
            logger.debug("No presenter dependencies for context '%s'", context)

    def from_sort(self, sort_field: Optional[str], model: ModelDefinition) -> None:
        """A dot-path sort field needs its first association joined."""
        if sort_field and "." in str(sort_field):
            self._add_query_dependency(str(sort_field), model)

    def from_search(
        self, search_fields: Optional[Iterable[str]], model: ModelDefinition
    ) -> None:
        for field_path in search_fields or []:
            if "." in str(field_path):
                self._add_query_dependency(str(field_path), model)

    def from_manual(self, config: Optional[Mapping[str, Any]]) -> None:
        """
        Collect manual overrides: ``includes`` entries are display
        dependencies, ``eager_load`` entries query dependencies.
        """
        if not isinstance(config, Mapping):
            return
        for path in AssociationPath.from_spec(config.get("includes") or []):
            self.add_dependency(path, DependencyReason.DISPLAY)
        for path in AssociationPath.from_spec(config.get("eager_load") or []):
            self.add_dependency(path, DependencyReason.QUERY)

    def add_dependency(self, path: AssociationPath, reason: DependencyReason) -> None:
        dependency = AssociationDependency(path, reason)
        if dependency not in self.dependencies:
            self.dependencies.append(dependency)

    # --- Contexts ---

    def _collect_index(self, presenter: PresenterDefinition, model: ModelDefinition) -> None:
        fk_map = model.belongs_to_fk_map
        for column in presenter.table_columns:
            field_path = str(column.get("field") or "")
            if is_template_field(field_path) or "." in field_path:
                self._collect_field_path(field_path, model)
                continue
            assoc = fk_map.get(field_path)
            if assoc is not None:
                self.add_dependency(AssociationPath.leaf(assoc.name), DependencyReason.DISPLAY)

    def _collect_show(self, presenter: PresenterDefinition, model: ModelDefinition) -> None:
        for section in presenter.show_config.get("layout") or []:
            if section.get("type") == "association_list":
                self._collect_association_list(section, model)
                continue
            for field_config in section.get("fields") or []:
                self._collect_field_path(str(field_config.get("field") or ""), model)

    def _collect_form(self, presenter: PresenterDefinition, model: ModelDefinition) -> None:
        for section in presenter.form_config.get("sections") or []:
            if section.get("type") != "nested_fields":
                continue
            assoc_name = section.get("association")
            if assoc_name and self._find_association(model, assoc_name):
                self.add_dependency(
                    AssociationPath.leaf(assoc_name), DependencyReason.DISPLAY
                )

    def _collect_association_list(
        self, section: Mapping[str, Any], model: ModelDefinition
    ) -> None:
        assoc_name = section.get("association")
        if not assoc_name:
            return
        assoc = self._find_association(model, assoc_name)
        if assoc is None:
            return

        nested = self._template_associations(assoc.target_model, section.get("display"))
        path = AssociationPath.node(assoc.name, [AssociationPath.leaf(n) for n in nested])
        self.add_dependency(path, DependencyReason.DISPLAY)

    def _template_associations(
        self, target_model: Optional[str], template_name: Optional[str]
    ) -> list[str]:
        """First association of every dot-path in the target's display template."""
        if not target_model:
            return []
        try:
            target = self.registry.model_definition(target_model)
        except MetadataError:
            return []
        template = target.display_template(template_name or "default")
        if template is None:
            return []

        names: list[str] = []
        for ref in template.referenced_fields:
            if "." not in ref:
                continue
            name = ref.split(".", 1)[0]
            if name not in names and self._find_association(target, name):
                names.append(name)
        return names

    # --- Field paths ---

    def _collect_field_path(self, field_path: str, model: ModelDefinition) -> None:
        if is_template_field(field_path):
            for ref in template_refs(field_path):
                if "." in ref:
                    self._collect_dot_path(ref, model)
        elif "." in field_path:
            self._collect_dot_path(field_path, model)

    def _collect_dot_path(self, field_path: str, model: ModelDefinition) -> None:
        associations, _terminal = split_path(field_path)
        chain = self._association_chain(model, associations)
        if chain:
            self.add_dependency(AssociationPath.from_parts(chain), DependencyReason.DISPLAY)

    def _association_chain(self, model: ModelDefinition, names: list[str]) -> list[str]:
        """
        Longest prefix of ``names`` that walks known associations.

        The walk stops at the first name that is not an association of the
        current model, and after an association whose target is not
        registered.
        """
        chain: list[str] = []
        current: Optional[ModelDefinition] = model
        for name in names:
            if current is None:
                break
            assoc = self._find_association(current, name)
            if assoc is None:
                break
            chain.append(assoc.name)
            current = (
                self.registry.find_model_definition(assoc.target_model)
                if assoc.target_model
                else None
            )
        return chain

    def _add_query_dependency(self, field_path: str, model: ModelDefinition) -> None:
        assoc_name = field_path.split(".", 1)[0]
        if self._find_association(model, assoc_name):
            self.add_dependency(AssociationPath.leaf(assoc_name), DependencyReason.QUERY)

    def _find_association(self, model: ModelDefinition, name: Any):
        assoc = model.association(name)
        if assoc is None:
            logger.debug(
                "Skipping unknown association '%s' on model '%s'", name, model.name
            )
        return assoc


__all__ = ["AssociationDependency", "DependencyCollector", "DependencyReason"]
