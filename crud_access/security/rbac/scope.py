"""
Role scope transformers.

A role may restrict which records it sees. The scope declaration is
applied to a query object following the Django QuerySet protocol
(``filter(**lookups)``, ``filter(Q(...))`` and custom QuerySet methods).
"""

import logging
import re
from typing import Any, Mapping

from django.db.models import Q

from ...core.exceptions import ScopeConfigurationError
from ...core.meta.config import ALL
from ...utils.records import read_attribute
from .types import ScopeType

logger = logging.getLogger(__name__)

CURRENT_USER_ID = "current_user_id"
CURRENT_USER_ATTRIBUTE = re.compile(r"\Acurrent_user_(\w+)\Z")


class ScopeBuilder:
    """Apply one role scope declaration to a query for a user."""

    def __init__(self, scope_config: Any, user: Any, model_name: str = ""):
        self.scope_config = scope_config
        self.user = user
        self.model_name = model_name

    def apply(self, query: Any) -> Any:
        """
        Return the scoped query.

        ``"all"``, an absent scope or an unknown scope type leave the query
        untouched.

        Raises:
            ScopeConfigurationError: when the scope cannot be interpreted.
        """
        config = self.scope_config
        if config is None or config == ALL:
            return query
        if not isinstance(config, Mapping):
            raise self._error(f"Scope must be a mapping or 'all', got {config!r}")

        scope_type = str(config.get("type") or "")
        try:
            kind = ScopeType(scope_type)
        except ValueError:
            logger.debug(
                "Unknown scope type '%s' for model '%s', leaving query unscoped",
                scope_type,
                self.model_name,
            )
            return query

        if kind is ScopeType.FIELD_MATCH:
            return self._apply_field_match(query, config)
        if kind is ScopeType.ASSOCIATION:
            return self._apply_association(query, config)
        if kind is ScopeType.WHERE:
            return self._apply_where(query, config)
        return self._apply_custom(query, config)

    def _apply_field_match(self, query: Any, config: Mapping[str, Any]) -> Any:
        field_name = self._require(config, "field")
        value = self.resolve_value(config.get("value"))
        return query.filter(**{field_name: value})

    def _apply_association(self, query: Any, config: Mapping[str, Any]) -> Any:
        field_name = self._require(config, "field")
        method_name = self._require(config, "method")
        source = read_attribute(self.user, method_name)
        if source is None:
            return query
        values = source() if callable(source) else source
        if values is None:
            values = []
        elif isinstance(values, (str, bytes)) or not hasattr(values, "__iter__"):
            values = [values]
        return query.filter(**{f"{field_name}__in": list(values)})

    def _apply_where(self, query: Any, config: Mapping[str, Any]) -> Any:
        conditions = config.get("conditions")
        if isinstance(conditions, Q):
            return query.filter(conditions)
        if isinstance(conditions, Mapping) and conditions:
            return query.filter(**{str(k): v for k, v in conditions.items()})
        raise self._error("Scope of type 'where' requires a conditions mapping")

    def _apply_custom(self, query: Any, config: Mapping[str, Any]) -> Any:
        method_name = self._require(config, "method")
        method = getattr(query, method_name, None)
        if not callable(method):
            logger.debug(
                "Query for model '%s' has no scope method '%s'",
                self.model_name,
                method_name,
            )
            return query
        return method(self.user)

    def resolve_value(self, value_ref: Any) -> Any:
        """
        Resolve a field_match value.

        ``current_user_id`` reads the user's id; ``current_user_<name>``
        reads the named user attribute; anything else is a literal.
        """
        if not isinstance(value_ref, str):
            return value_ref
        if value_ref == CURRENT_USER_ID:
            user_id = read_attribute(self.user, "id")
            return user_id if user_id is not None else read_attribute(self.user, "pk")
        match = CURRENT_USER_ATTRIBUTE.match(value_ref)
        if match:
            value = read_attribute(self.user, match.group(1))
            return value() if callable(value) else value
        return value_ref

    def _require(self, config: Mapping[str, Any], key: str) -> str:
        value = config.get(key)
        if not value:
            raise self._error(
                f"Scope of type '{config.get('type')}' requires a '{key}' key"
            )
        return str(value)

    def _error(self, message: str) -> ScopeConfigurationError:
        return ScopeConfigurationError(message, model_name=self.model_name, key="scope")


__all__ = ["ScopeBuilder", "CURRENT_USER_ID"]
