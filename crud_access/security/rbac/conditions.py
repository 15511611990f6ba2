"""
Record rule condition matching.

A condition is a ``{field, operator, value}`` mapping evaluated against a
record. Equality operators compare string forms so a rule declared in YAML
(``value: 1``) matches an integer or string attribute alike.
"""

import logging
from typing import Any, Callable, Mapping

from ...utils.records import has_attribute, read_attribute

logger = logging.getLogger(__name__)


def _as_strings(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value]
    return [str(value)]


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _numeric(compare: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    def check(actual: Any, expected: Any) -> bool:
        try:
            return compare(float(actual), float(expected))
        except (TypeError, ValueError):
            return False

    return check


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return not value
    return False


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": lambda actual, expected: _as_text(actual) == _as_text(expected),
    "not_eq": lambda actual, expected: _as_text(actual) != _as_text(expected),
    "neq": lambda actual, expected: _as_text(actual) != _as_text(expected),
    "in": lambda actual, expected: _as_text(actual) in _as_strings(expected),
    "not_in": lambda actual, expected: _as_text(actual) not in _as_strings(expected),
    "gt": _numeric(lambda a, b: a > b),
    "gte": _numeric(lambda a, b: a >= b),
    "lt": _numeric(lambda a, b: a < b),
    "lte": _numeric(lambda a, b: a <= b),
    "present": lambda actual, _expected: not is_blank(actual),
    "blank": lambda actual, _expected: is_blank(actual),
}


def matches_condition(record: Any, condition: Any) -> bool:
    """
    Evaluate a record rule condition.

    An absent (non-mapping) condition always matches. A condition naming a
    field the record does not expose never matches. Unknown operators
    compare for equality.
    """
    if not isinstance(condition, Mapping):
        return True

    field_name = condition.get("field")
    if not field_name or not has_attribute(record, str(field_name)):
        return False

    operator = str(condition.get("operator") or "eq")
    check = OPERATORS.get(operator)
    if check is None:
        logger.debug("Unknown condition operator '%s', comparing for equality", operator)
        check = OPERATORS["eq"]

    return check(read_attribute(record, str(field_name)), condition.get("value"))


__all__ = ["OPERATORS", "is_blank", "matches_condition"]
