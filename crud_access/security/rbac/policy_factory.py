"""
Per-model policies.

``policy_for("deal")`` returns a cached ModelPolicyType for the model. Calling
it with a user (and optionally a record) builds a ModelPolicy answering the
controller-level questions: ``index``, ``show``, ``create``/``new``,
``update``/``edit``, ``destroy``, the permitted attributes for writes and the
scoped queryset.

The cache is keyed by model name and dropped whenever the metadata registry
reports changed permission definitions, or when ``clear()`` is called.
"""

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from ...core.exceptions import PermissionDefinitionNotFound
from ...core.meta.config import PermissionDefinition
from .evaluator import PermissionEvaluator, _get_registry, build_fallback_definition
from .roles import RoleRegistry

if TYPE_CHECKING:
    from ...core.meta.registry import MetadataRegistry

logger = logging.getLogger(__name__)


class ModelPolicy:
    """Authorization answers for one user on one model, optionally one record."""

    def __init__(
        self,
        permission_definition: PermissionDefinition,
        model_name: str,
        user: Any,
        record: Any = None,
        *,
        registry: Optional["MetadataRegistry"] = None,
        role_source: Optional[RoleRegistry] = None,
    ):
        self.user = user
        self.record = record
        self.evaluator = PermissionEvaluator(
            permission_definition,
            user,
            model_name,
            registry=registry,
            role_source=role_source,
        )

    def index(self) -> bool:
        return self.evaluator.can("index")

    def show(self) -> bool:
        return self.evaluator.can_for_record("show", self.record)

    def create(self) -> bool:
        return self.evaluator.can("create")

    def new(self) -> bool:
        return self.create()

    def update(self) -> bool:
        return self.evaluator.can_for_record("update", self.record)

    def edit(self) -> bool:
        return self.update()

    def destroy(self) -> bool:
        return self.evaluator.can_for_record("destroy", self.record)

    def permitted_attributes_for_create(self) -> list[str]:
        return list(self.evaluator.writable_fields)

    def permitted_attributes_for_update(self) -> list[str]:
        return list(self.evaluator.writable_fields)

    def resolve_scope(self, queryset: Any) -> Any:
        """Restrict ``queryset`` to the records the user may see."""
        return self.evaluator.apply_scope(queryset)

    def __repr__(self) -> str:
        return f"<ModelPolicy model={self.evaluator.model_name!r} roles={self.evaluator.roles!r}>"


@dataclass(frozen=True)
class ModelPolicyType:
    """
    Policy builder for one model, holding its resolved permission definition.

    Examples:
        >>> DealPolicy = policy_for("deal")
        >>> DealPolicy(request.user, deal).update()
        True
        >>> DealPolicy.scope(request.user, Deal.objects.all())
        <QuerySet [...]>
    """

    model_name: str
    permission_definition: PermissionDefinition
    registry: Any = None

    def __call__(
        self, user: Any, record: Any = None, role_source: Optional[RoleRegistry] = None
    ) -> ModelPolicy:
        return ModelPolicy(
            self.permission_definition,
            self.model_name,
            user,
            record,
            registry=self.registry,
            role_source=role_source,
        )

    def scope(
        self, user: Any, queryset: Any, role_source: Optional[RoleRegistry] = None
    ) -> Any:
        return self(user, role_source=role_source).resolve_scope(queryset)


class PolicyFactory:
    """Thread-safe cache of ModelPolicyType objects keyed by model name."""

    def __init__(self, registry: Optional["MetadataRegistry"] = None):
        self._registry = registry
        self._lock = threading.RLock()
        self._policies: dict[str, ModelPolicyType] = {}
        self._version: Optional[int] = None

    @property
    def registry(self) -> "MetadataRegistry":
        return _get_registry(self._registry)

    def policy_for(self, model_name: Any) -> ModelPolicyType:
        name = str(model_name)
        registry = self.registry
        with self._lock:
            version = registry.permissions_version
            if version != self._version:
                self._policies.clear()
                self._version = version
            policy = self._policies.get(name)
            if policy is None:
                policy = ModelPolicyType(name, self._load_definition(registry, name), registry)
                self._policies[name] = policy
            return policy

    def clear(self) -> None:
        """Drop every cached policy."""
        with self._lock:
            self._policies.clear()
            self._version = None

    def _load_definition(self, registry: "MetadataRegistry", model_name: str) -> PermissionDefinition:
        try:
            return registry.permission_definition(model_name)
        except PermissionDefinitionNotFound:
            logger.warning(
                "No permission definition for model '%s', using the all-access "
                "fallback policy",
                model_name,
            )
            return build_fallback_definition(model_name)


# Global policy factory instance
policy_factory = PolicyFactory()


def policy_for(model_name: Any) -> ModelPolicyType:
    """Cached policy for ``model_name`` from the global metadata registry."""
    return policy_factory.policy_for(model_name)


__all__ = [
    "ModelPolicy",
    "ModelPolicyType",
    "PolicyFactory",
    "policy_factory",
    "policy_for",
]
