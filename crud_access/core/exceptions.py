"""
Custom exceptions for crud-access.

Lookup misses are distinguishable from configuration errors: callers in the
permission and resolution layers catch the former and turn them into silent
denials, while the latter surface when metadata is built.
"""

from typing import Optional

from django.core.exceptions import ImproperlyConfigured


class MetadataError(Exception):
    """Base exception for metadata errors."""

    def __init__(self, message: str, model_name: Optional[str] = None):
        self.model_name = model_name
        super().__init__(message)


class ModelNotFoundError(MetadataError, LookupError):
    """Raised when no model definition is registered under a name."""

    def __init__(self, model_name: str):
        super().__init__(f"Model '{model_name}' not found", model_name)


class PresenterNotFoundError(MetadataError, LookupError):
    """Raised when no presenter definition is registered under a name."""

    def __init__(self, presenter_name: str):
        self.presenter_name = presenter_name
        super().__init__(f"Presenter '{presenter_name}' not found")


class PermissionDefinitionNotFound(MetadataError, LookupError):
    """Raised when neither a model policy nor a default policy exists."""

    def __init__(self, model_name: str):
        super().__init__(
            f"No permission definition found for model '{model_name}'", model_name
        )


class ConfigurationError(MetadataError, ImproperlyConfigured):
    """Raised when a definition is malformed and cannot be interpreted."""

    def __init__(
        self,
        message: str,
        model_name: Optional[str] = None,
        key: Optional[str] = None,
    ):
        self.key = key
        super().__init__(message, model_name)


class ScopeConfigurationError(ConfigurationError):
    """Raised when a role scope declaration cannot be applied."""


__all__ = [
    "MetadataError",
    "ModelNotFoundError",
    "PresenterNotFoundError",
    "PermissionDefinitionNotFound",
    "ConfigurationError",
    "ScopeConfigurationError",
]
