"""
Role registry.

Optional source of truth for which role names exist. When role validation is
enabled, user roles unknown to the registry are dropped before they are
matched against a permission definition.
"""

import logging
import threading
from typing import Callable, Iterable, Optional

logger = logging.getLogger(__name__)

RoleLoader = Callable[[], Iterable[str]]


class RoleRegistry:
    """Cached, thread-safe set of valid role names loaded from a callable."""

    def __init__(self, loader: Optional[RoleLoader] = None):
        self._lock = threading.RLock()
        self._loader = loader
        self._cache: Optional[list[str]] = None

    @property
    def available(self) -> bool:
        return self._loader is not None

    def set_loader(self, loader: Optional[RoleLoader]) -> None:
        """Replace the role loader and drop cached names."""
        with self._lock:
            self._loader = loader
            self._cache = None

    def all_role_names(self) -> list[str]:
        """Sorted role names, loaded once until reload() is called."""
        with self._lock:
            if self._cache is None:
                self._cache = self._load()
            return list(self._cache)

    def valid_role(self, name: str) -> bool:
        return str(name) in self.all_role_names()

    def reload(self) -> None:
        with self._lock:
            self._cache = None

    def _load(self) -> list[str]:
        if self._loader is None:
            return []
        try:
            names = self._loader()
        except Exception as exc:
            logger.warning("Failed to load role names: %s", exc)
            return []
        return sorted({str(name) for name in names or []})


# Global role registry (no loader until the host application sets one)
role_registry = RoleRegistry()


__all__ = ["RoleRegistry", "RoleLoader", "role_registry"]
