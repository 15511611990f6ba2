"""
Per-hop metadata and evaluator lookup.

Resolving ``company.industry.name`` crosses two association boundaries; the
terminal field must be checked against the policy of the model it belongs
to. EvaluatorFactory builds those per-model evaluators for the root user and
memoizes them for the lifetime of one resolution call.
"""

import logging
from typing import Any, Optional

from ..core.exceptions import MetadataError
from ..core.meta.config import ModelDefinition
from ..core.meta.registry import MetadataRegistry
from ..security.rbac.evaluator import PermissionEvaluator

logger = logging.getLogger(__name__)


class EvaluatorFactory:
    """
    Build permission evaluators for the models an association chain visits.

    The root model reuses the root evaluator. A model whose policy cannot be
    loaded also reuses the root evaluator.
    """

    def __init__(
        self,
        root_evaluator: PermissionEvaluator,
        registry: MetadataRegistry,
        root_model_name: Optional[str] = None,
    ):
        self.root_evaluator = root_evaluator
        self.registry = registry
        self.root_model_name = str(root_model_name or root_evaluator.model_name)
        self._evaluators: dict[str, PermissionEvaluator] = {}

    def evaluator_for(self, model_name: Any) -> PermissionEvaluator:
        name = str(model_name)
        if name == self.root_model_name:
            return self.root_evaluator
        evaluator = self._evaluators.get(name)
        if evaluator is None:
            evaluator = self._build(name)
            self._evaluators[name] = evaluator
        return evaluator

    def _build(self, model_name: str) -> PermissionEvaluator:
        try:
            definition = self.registry.permission_definition(model_name)
        except MetadataError:
            logger.debug(
                "No permission definition for '%s', reusing the '%s' evaluator",
                model_name,
                self.root_model_name,
            )
            return self.root_evaluator
        return PermissionEvaluator(
            definition,
            self.root_evaluator.user,
            model_name,
            registry=self.registry,
            role_source=self.root_evaluator.role_source,
        )

    def model_definition(self, model_name: Any) -> Optional[ModelDefinition]:
        """Model metadata for ``model_name``, or None when it is unknown."""
        if not model_name:
            return None
        return self.registry.find_model_definition(model_name)


__all__ = ["EvaluatorFactory"]
