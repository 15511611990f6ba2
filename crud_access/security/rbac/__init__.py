"""
Role-Based Access Control (RBAC) package for crud-access.

This package provides the permission evaluation core:
- Role resolution against a model's permission definition
- Multi-role merging into an effective policy
- CRUD, record, field, action and presenter checks
- Scope transformers restricting a query to visible records

Quick Start:
    >>> from crud_access.security.rbac import PermissionEvaluator
    >>>
    >>> evaluator = PermissionEvaluator.for_model("deal", request.user)
    >>> if evaluator.can("update") and evaluator.can_for_record("update", deal):
    ...     deal.save()
    >>> deals = evaluator.apply_scope(Deal.objects.all())

Exports:
    - PermissionEvaluator: Per-user, per-model authorization decisions
    - EffectivePolicy: Dataclass for the merged role configuration
    - ScopeType: Enum for scope transformer kinds
    - ScopeBuilder: Applies one scope declaration to a query
    - RoleRegistry: Cached source of valid role names
    - ImpersonatedUser: Presents a real user under a single impersonated role
    - policy_for: Cached per-model policy (index, show, update, ...)
    - matches_condition: Record rule condition matching
    - merge_role_configs: Multi-role policy merge
    - role_registry: Global singleton instance of RoleRegistry
"""

from .conditions import OPERATORS, matches_condition
from .evaluator import PermissionEvaluator, build_fallback_definition
from .impersonation import ImpersonatedUser, real_user_of
from .policy import merge_role_configs
from .policy_factory import (
    ModelPolicy,
    ModelPolicyType,
    PolicyFactory,
    policy_factory,
    policy_for,
)
from .roles import RoleRegistry, role_registry
from .scope import ScopeBuilder
from .types import EffectivePolicy, ScopeType

__all__ = [
    # Types
    "EffectivePolicy",
    "ScopeType",
    # Evaluation
    "PermissionEvaluator",
    "build_fallback_definition",
    "merge_role_configs",
    "matches_condition",
    "OPERATORS",
    "ScopeBuilder",
    # Policies
    "ModelPolicy",
    "ModelPolicyType",
    "PolicyFactory",
    "policy_for",
    # Roles
    "RoleRegistry",
    "ImpersonatedUser",
    "real_user_of",
    # Singletons
    "policy_factory",
    "role_registry",
]
