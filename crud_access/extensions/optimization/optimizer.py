"""
Eager-load planner for presenter-driven Django querysets.
"""

import logging
from typing import Any, Iterable, Optional

from ...core.meta.config import ModelDefinition, PresenterDefinition
from ...core.meta.registry import MetadataRegistry
from .analyzer import DependencyCollector
from .config import EagerLoadingConfig
from .strategy import LoadingStrategy, StrategyResolver

logger = logging.getLogger(__name__)


class EagerLoadOptimizer:
    """Plans and applies eager loading for one presenter context."""

    def __init__(
        self,
        config: Optional[EagerLoadingConfig] = None,
        registry: Optional[MetadataRegistry] = None,
    ):
        self.config = config or EagerLoadingConfig.from_settings()
        self.registry = registry

    def resolve(
        self,
        presenter: PresenterDefinition,
        model: ModelDefinition,
        context: str,
        sort_field: Optional[str] = None,
        search_fields: Optional[Iterable[str]] = None,
    ) -> LoadingStrategy:
        """
        Compute the loading strategy for a presenter context.

        Args:
            presenter: Presenter whose declarations drive the plan.
            model: Metadata of the presented model.
            context: ``index``, ``show`` or ``form``.
            sort_field: Active sort field, possibly a dot-path.
            search_fields: Searchable fields, possibly dot-paths.
        """
        if not self.config.enable_eager_loading:
            return LoadingStrategy()

        collector = DependencyCollector(self.registry)
        collector.from_presenter(presenter, model, context)
        collector.from_sort(sort_field, model)
        collector.from_search(search_fields, model)
        collector.from_manual(presenter.config_for(context))

        strategy = StrategyResolver.resolve_dependencies(
            collector.dependencies,
            model,
            distinct_on_filter_join=self.config.distinct_on_filter_join,
        )
        logger.debug(
            "Loading strategy for %s/%s: preload=%s filter_join=%s single_join=%s",
            presenter.name,
            context,
            [str(p) for p in strategy.preload],
            [str(p) for p in strategy.filter_join],
            [str(p) for p in strategy.single_join],
        )
        return strategy

    def optimize_queryset(
        self,
        queryset: Any,
        presenter: PresenterDefinition,
        model: ModelDefinition,
        context: str,
        sort_field: Optional[str] = None,
        search_fields: Optional[Iterable[str]] = None,
    ) -> Any:
        """Resolve the loading strategy and apply it to ``queryset``."""
        strategy = self.resolve(presenter, model, context, sort_field, search_fields)
        return strategy.apply(queryset)


def resolve_loading_strategy(
    presenter: PresenterDefinition,
    model: ModelDefinition,
    context: str,
    sort_field: Optional[str] = None,
    search_fields: Optional[Iterable[str]] = None,
    registry: Optional[MetadataRegistry] = None,
) -> LoadingStrategy:
    """
    Compute the loading strategy for a presenter context using the current
    ``optimization_settings``.

    Examples:
        >>> strategy = resolve_loading_strategy(presenter, model, "index",
        ...                                     sort_field="company.name")
        >>> deals = strategy.apply(Deal.objects.all())
    """
    return EagerLoadOptimizer(registry=registry).resolve(
        presenter, model, context, sort_field, search_fields
    )
