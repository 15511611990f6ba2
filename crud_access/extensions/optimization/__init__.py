"""
Eager-load planning for presenter-driven queries.

This package collects the associations a presenter context touches and
compiles them into a LoadingStrategy that avoids N+1 queries without
multiplying result rows under pagination.
"""

from .analyzer import AssociationDependency, DependencyCollector, DependencyReason
from .config import EagerLoadingConfig
from .optimizer import EagerLoadOptimizer, resolve_loading_strategy
from .paths import AssociationPath, merge_paths
from .strategy import LoadingStrategy, StrategyResolver

__all__ = [
    # Configuration
    "EagerLoadingConfig",
    # Paths
    "AssociationPath",
    "merge_paths",
    # Analyzer
    "AssociationDependency",
    "DependencyCollector",
    "DependencyReason",
    # Strategy
    "LoadingStrategy",
    "StrategyResolver",
    # Optimizer
    "EagerLoadOptimizer",
    "resolve_loading_strategy",
]
