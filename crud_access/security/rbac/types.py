"""
Type definitions for the RBAC (Role-Based Access Control) package.

This module contains the dataclasses used throughout the package:
- EffectivePolicy: the per-user merge of every matching role configuration
- ScopeType: the scope transformers a role configuration may declare
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

ListOrAll = Union[str, list[str]]


class ScopeType(Enum):
    """Scope transformers a role may declare."""

    FIELD_MATCH = "field_match"
    ASSOCIATION = "association"
    WHERE = "where"
    CUSTOM = "custom"


@dataclass(frozen=True)
class EffectivePolicy:
    """
    Effective policy for a user on one model.

    Attributes:
        crud: Canonical CRUD actions, or None when no role declares any.
        fields: ``readable``/``writable`` entries, each ``"all"`` or a list.
        actions: ``"all"`` or ``{"allowed": "all"|list, "denied": list}``.
        presenters: ``"all"`` or a list of presenter names.
        scope: ``"all"``, a scope mapping, or None when undeclared.
    """

    crud: Optional[list[str]] = None
    fields: dict[str, ListOrAll] = field(default_factory=dict)
    actions: Any = None
    presenters: Optional[ListOrAll] = None
    scope: Any = None


__all__ = ["EffectivePolicy", "ScopeType", "ListOrAll"]
