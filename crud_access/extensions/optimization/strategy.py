"""
Loading strategies.

StrategyResolver turns collected dependencies into a LoadingStrategy:

    association     display only     query (or both)
    to-one          preload          single_join
    to-many         preload          filter_join + preload

Joining a to-many association to materialize it multiplies result rows and
breaks pagination counts, so a to-many association needed for filtering or
sorting is joined for the query only and loaded by a separate preload.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from ...core.meta.config import ModelDefinition
from .analyzer import AssociationDependency
from .paths import AssociationPath

logger = logging.getLogger(__name__)


@dataclass
class LoadingStrategy:
    """
    Eager-loading instructions for one query build.

    Attributes:
        preload: Paths loaded by separate queries (``prefetch_related``).
        filter_join: To-many paths joined for filtering/sorting; each is also
            in ``preload``.
        single_join: To-one paths loaded in the same query
            (``select_related``).
        distinct_on_filter_join: Apply ``distinct()`` when ``filter_join``
            is not empty.
    """

    preload: list[AssociationPath] = field(default_factory=list)
    filter_join: list[AssociationPath] = field(default_factory=list)
    single_join: list[AssociationPath] = field(default_factory=list)
    distinct_on_filter_join: bool = True

    @property
    def is_empty(self) -> bool:
        return not (self.preload or self.filter_join or self.single_join)

    @property
    def prefetch_lookups(self) -> list[str]:
        lookups = [lookup for path in self.preload for lookup in path.to_lookups()]
        # Associations reached through a joined to-one are prefetched through it
        lookups.extend(
            lookup
            for path in self.single_join
            if not path.is_leaf
            for lookup in path.to_lookups()
        )
        return list(dict.fromkeys(lookups))

    @property
    def select_related_lookups(self) -> list[str]:
        return list(dict.fromkeys(path.name for path in self.single_join))

    def apply(self, queryset: Any) -> Any:
        """
        Apply the strategy to a QuerySet.

        An empty strategy returns ``queryset`` itself.
        """
        if self.is_empty:
            return queryset

        if self.single_join:
            queryset = queryset.select_related(*self.select_related_lookups)
        prefetch_lookups = self.prefetch_lookups
        if prefetch_lookups:
            queryset = queryset.prefetch_related(*prefetch_lookups)
        if self.filter_join and self.distinct_on_filter_join:
            queryset = queryset.distinct()

        logger.debug(
            "Applied loading strategy: select_related=%s prefetch_related=%s distinct=%s",
            self.select_related_lookups,
            prefetch_lookups,
            bool(self.filter_join and self.distinct_on_filter_join),
        )
        return queryset


class StrategyResolver:
    """Classify dependencies per top-level association into a LoadingStrategy."""

    def __init__(
        self,
        dependencies: Iterable[AssociationDependency],
        model: ModelDefinition,
        distinct_on_filter_join: bool = True,
    ):
        self.dependencies = list(dependencies)
        self.model = model
        self.distinct_on_filter_join = distinct_on_filter_join

    @classmethod
    def resolve_dependencies(
        cls,
        dependencies: Iterable[AssociationDependency],
        model: ModelDefinition,
        distinct_on_filter_join: bool = True,
    ) -> LoadingStrategy:
        return cls(dependencies, model, distinct_on_filter_join).resolve()

    def resolve(self) -> LoadingStrategy:
        strategy = LoadingStrategy(distinct_on_filter_join=self.distinct_on_filter_join)

        for name, deps in self._group().items():
            assoc = self.model.association(name)
            if assoc is None:
                logger.debug(
                    "Skipping unknown association '%s' on model '%s'", name, self.model.name
                )
                continue

            path = self._merge(deps)
            if not any(dep.is_query for dep in deps):
                strategy.preload.append(path)
            elif assoc.to_many:
                strategy.filter_join.append(path)
                strategy.preload.append(path)
            else:
                strategy.single_join.append(path)

        return strategy

    def _group(self) -> dict[str, list[AssociationDependency]]:
        grouped: dict[str, list[AssociationDependency]] = {}
        for dependency in self.dependencies:
            grouped.setdefault(dependency.association_name, []).append(dependency)
        return grouped

    @staticmethod
    def _merge(deps: list[AssociationDependency]) -> AssociationPath:
        path = deps[0].path
        for dependency in deps[1:]:
            path = path.merge(dependency.path)
        return path


__all__ = ["LoadingStrategy", "StrategyResolver"]
