"""
Presenter-side field resolution.

FieldValueResolver turns the field paths a presenter declares (plain
fields, association dot-paths and templates) into values, enforcing read
permission on every association hop.
"""

from .field_resolver import FieldValueResolver
from .lookup import EvaluatorFactory

__all__ = ["EvaluatorFactory", "FieldValueResolver"]
