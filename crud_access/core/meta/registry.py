"""
Metadata Registry

In-memory provider of model, permission and presenter definitions. The
registry is the only shared object the permission and resolution layers
read; definitions are immutable once registered and the internal maps are
guarded by a lock so registration can happen while requests are served.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping, Optional, Union

from ...config_proxy import get_setting
from ..exceptions import (
    ModelNotFoundError,
    PermissionDefinitionNotFound,
    PresenterNotFoundError,
)
from .builders import (
    build_model_definition,
    build_permission_definition,
    build_presenter_definition,
)
from .config import ModelDefinition, PermissionDefinition, PresenterDefinition

logger = logging.getLogger(__name__)


class MetadataRegistry:
    """Thread-safe registry of metadata definitions keyed by name."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._models: dict[str, ModelDefinition] = {}
        self._permissions: dict[str, PermissionDefinition] = {}
        self._presenters: dict[str, PresenterDefinition] = {}
        self._permissions_version = 0

    # --- Registration ---

    def register_model(
        self, definition: Union[ModelDefinition, Mapping[str, Any]]
    ) -> ModelDefinition:
        if not isinstance(definition, ModelDefinition):
            definition = build_model_definition(definition)
        with self._lock:
            self._models[definition.name] = definition
        logger.debug("Model definition registered: %s", definition.name)
        return definition

    def register_permission(
        self, definition: Union[PermissionDefinition, Mapping[str, Any]]
    ) -> PermissionDefinition:
        if not isinstance(definition, PermissionDefinition):
            definition = build_permission_definition(definition)
        with self._lock:
            self._permissions[definition.model] = definition
            self._permissions_version += 1
        logger.debug("Permission definition registered: %s", definition.model)
        return definition

    def register_presenter(
        self, definition: Union[PresenterDefinition, Mapping[str, Any]]
    ) -> PresenterDefinition:
        if not isinstance(definition, PresenterDefinition):
            definition = build_presenter_definition(definition)
        with self._lock:
            self._presenters[definition.name] = definition
        logger.debug("Presenter definition registered: %s", definition.name)
        return definition

    @property
    def permissions_version(self) -> int:
        """Incremented whenever permission definitions change."""
        with self._lock:
            return self._permissions_version

    # --- Lookup ---

    def model_definition(self, name: Any) -> ModelDefinition:
        """
        Return the model definition registered under ``name``.

        Raises:
            ModelNotFoundError: when no such model is registered.
        """
        with self._lock:
            definition = self._models.get(str(name))
        if definition is None:
            raise ModelNotFoundError(str(name))
        return definition

    def find_model_definition(self, name: Any) -> Optional[ModelDefinition]:
        """Return the model definition or None when it is not registered."""
        with self._lock:
            return self._models.get(str(name))

    def permission_definition(self, model_name: Any) -> PermissionDefinition:
        """
        Return the policy for a model, falling back to the default policy.

        Raises:
            PermissionDefinitionNotFound: when neither exists.
        """
        default_name = get_setting("permission_settings.default_policy_name", "_default")
        with self._lock:
            definition = self._permissions.get(str(model_name)) or self._permissions.get(
                default_name
            )
        if definition is None:
            raise PermissionDefinitionNotFound(str(model_name))
        return definition

    def presenter_definition(self, name: Any) -> PresenterDefinition:
        """
        Return the presenter registered under ``name``.

        Raises:
            PresenterNotFoundError: when no such presenter is registered.
        """
        with self._lock:
            definition = self._presenters.get(str(name))
        if definition is None:
            raise PresenterNotFoundError(str(name))
        return definition

    def clear(self) -> None:
        """Drop every registered definition."""
        with self._lock:
            self._models.clear()
            self._permissions.clear()
            self._presenters.clear()
            self._permissions_version += 1


# Global registry instance
metadata_registry = MetadataRegistry()


__all__ = ["MetadataRegistry", "metadata_registry"]
