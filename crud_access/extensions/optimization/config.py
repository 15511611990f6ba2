"""
Configuration classes for eager-load planning.
"""

from dataclasses import dataclass

from ...config_proxy import get_setting


@dataclass
class EagerLoadingConfig:
    """Configuration for eager-load planning."""

    # Planning (an empty strategy is returned when disabled)
    enable_eager_loading: bool = True

    # Row de-duplication for to-many associations joined for filtering/sorting
    distinct_on_filter_join: bool = True

    @classmethod
    def from_settings(cls) -> "EagerLoadingConfig":
        """Build the config from ``optimization_settings``."""
        return cls(
            enable_eager_loading=bool(
                get_setting("optimization_settings.enable_eager_loading", True)
            ),
            distinct_on_filter_join=bool(
                get_setting("optimization_settings.distinct_on_filter_join", True)
            ),
        )
