"""
Security module for crud-access.

This module provides role-based permission evaluation for metadata-driven
models: CRUD and record-level checks, field-level read/write/mask decisions
and query scoping.
"""

from .rbac import (
    EffectivePolicy,
    ImpersonatedUser,
    PermissionEvaluator,
    RoleRegistry,
    ScopeBuilder,
    ScopeType,
    policy_for,
    role_registry,
)

__all__ = [
    "EffectivePolicy",
    "ImpersonatedUser",
    "PermissionEvaluator",
    "RoleRegistry",
    "ScopeBuilder",
    "ScopeType",
    "policy_for",
    "role_registry",
]
