"""
Utility modules for crud-access.

This package contains record access and field path helpers used throughout
the permission, resolution and eager-loading layers.
"""

from .field_paths import is_dot_path, is_template_field, split_path, template_refs
from .records import has_attribute, iter_related, label_for, read_attribute

__all__ = [
    "has_attribute",
    "is_dot_path",
    "is_template_field",
    "iter_related",
    "label_for",
    "read_attribute",
    "split_path",
    "template_refs",
]
