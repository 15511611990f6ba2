"""
Field path syntax helpers.

A field path is a plain field name, a dot-path (``company.industry.name``)
traversing associations, or a template containing ``{ref}`` placeholders.
Template syntax takes precedence: a string with both braces is a template
even when it also contains dots.
"""

from typing import Any

from ..core.meta.config import TEMPLATE_REF_PATTERN


def is_template_field(field_path: Any) -> bool:
    text = str(field_path)
    return "{" in text and "}" in text


def is_dot_path(field_path: Any) -> bool:
    text = str(field_path)
    return "." in text and "{" not in text


def template_refs(template: Any) -> list[str]:
    """
    Stripped ``{ref}`` placeholders of a template, in order of appearance.

    Examples:
        >>> template_refs("{first_name} {company.name}")
        ["first_name", "company.name"]
    """
    return [ref.strip() for ref in TEMPLATE_REF_PATTERN.findall(str(template))]


def split_path(field_path: Any) -> tuple[list[str], str]:
    """
    Split a dot-path into its association chain and terminal field.

    Examples:
        >>> split_path("company.industry.name")
        (["company", "industry"], "name")
    """
    parts = str(field_path).split(".")
    return parts[:-1], parts[-1]


__all__ = ["is_dot_path", "is_template_field", "split_path", "template_refs"]
