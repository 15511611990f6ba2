"""
Metadata definitions, builders and registry.

This package provides the immutable metadata the permission, resolution and
eager-loading layers consume:

- config: ModelDefinition, PermissionDefinition, PresenterDefinition and the
  dataclasses they are made of
- builders: build_* functions turning plain mappings into definitions
- registry: MetadataRegistry and the global ``metadata_registry``
"""

from .builders import (
    build_model_definition,
    build_permission_definition,
    build_presenter_definition,
    coerce_association_spec,
)
from .config import (
    ACTION_ALIASES,
    ALL,
    CANONICAL_ACTIONS,
    AssociationDefinition,
    DisplayTemplateDefinition,
    FieldDefinition,
    ModelDefinition,
    PermissionDefinition,
    PresenterDefinition,
    normalize_action,
)
from .registry import MetadataRegistry, metadata_registry

__all__ = [
    "ACTION_ALIASES",
    "ALL",
    "CANONICAL_ACTIONS",
    "AssociationDefinition",
    "DisplayTemplateDefinition",
    "FieldDefinition",
    "ModelDefinition",
    "PermissionDefinition",
    "PresenterDefinition",
    "normalize_action",
    "build_model_definition",
    "build_permission_definition",
    "build_presenter_definition",
    "coerce_association_spec",
    "MetadataRegistry",
    "metadata_registry",
]
