"""
Record access helpers.

Records are opaque: any object exposing named attributes (Django model
instances, plain objects) or a mapping of values. These helpers read
attributes without raising so callers can degrade to ``None``.
"""

from typing import Any, Iterable, Mapping, Optional

_MISSING = object()


def has_attribute(record: Any, name: str) -> bool:
    """Whether the record exposes ``name`` as an attribute or mapping key."""
    if record is None or not name:
        return False
    if isinstance(record, Mapping):
        return name in record
    return read_attribute(record, name, _MISSING) is not _MISSING


def read_attribute(record: Any, name: str, default: Any = None) -> Any:
    """
    Read a named value from a record.

    Missing attributes yield ``default``. Django raises
    RelatedObjectDoesNotExist, an AttributeError subclass, for an absent
    reverse one-to-one record, so that case yields ``default`` as well.
    """
    if record is None or not name:
        return default
    if isinstance(record, Mapping):
        return record.get(name, default)
    try:
        return getattr(record, name)
    except AttributeError:
        return default


def iter_related(value: Any) -> Optional[Iterable[Any]]:
    """
    Return an iterable over a to-many association value.

    Django related managers are iterated through ``all()`` so prefetched
    results are reused. Strings and mappings are not collections here.
    """
    if value is None:
        return None
    all_method = getattr(value, "all", None)
    if callable(all_method):
        value = all_method()
    if isinstance(value, (str, bytes, Mapping)):
        return None
    try:
        iter(value)
    except TypeError:
        return None
    return value


def label_for(record: Any, label_method: Optional[str] = None) -> Any:
    """
    Label a record with ``label_method`` when present, else ``str(record)``.
    """
    if record is None:
        return None
    if label_method:
        method = read_attribute(record, label_method)
        if callable(method):
            return method()
        if method is not None:
            return method
    return str(record)
