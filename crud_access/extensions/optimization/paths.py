"""
Association path trees.

An AssociationPath names one association and, optionally, the associations
to load through it: ``company`` is a leaf, ``company -> (industry, country)``
is a node. Paths on the same association merge by unioning their children,
recursively.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from ...core.exceptions import ConfigurationError

LOOKUP_SEP = "__"


@dataclass(frozen=True)
class AssociationPath:
    """
    Recursive association reference.

    Attributes:
        name: Association name at this level.
        children: Nested association paths, unique by name, in declaration
            order. Empty for a leaf.
    """

    name: str
    children: tuple["AssociationPath", ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @classmethod
    def leaf(cls, name: Any) -> "AssociationPath":
        return cls(str(name))

    @classmethod
    def node(cls, name: Any, children: Iterable["AssociationPath"]) -> "AssociationPath":
        return cls(str(name), merge_paths(children))

    @classmethod
    def from_parts(cls, parts: Sequence[str]) -> "AssociationPath":
        """
        Build a chain from association names.

        Examples:
            >>> AssociationPath.from_parts(["company", "industry"]).to_spec()
            {"company": ["industry"]}
        """
        if not parts:
            raise ValueError("An association path needs at least one name")
        path = cls.leaf(parts[-1])
        for part in reversed(parts[:-1]):
            path = cls(str(part), (path,))
        return path

    @classmethod
    def from_spec(cls, spec: Any) -> list["AssociationPath"]:
        """
        Parse an includes-style declaration.

        Accepts a name, a list of declarations, or a mapping of name to a
        nested declaration.

        Raises:
            ConfigurationError: for any other value.
        """
        if isinstance(spec, str):
            if not spec:
                raise ConfigurationError("Association path cannot be empty")
            return [cls.leaf(spec)]
        if isinstance(spec, (list, tuple)):
            return [path for item in spec for path in cls.from_spec(item)]
        if isinstance(spec, Mapping):
            return [
                cls.node(name, cls.from_spec(nested) if nested else ())
                for name, nested in spec.items()
            ]
        raise ConfigurationError(f"Invalid association path {spec!r}")

    def merge(self, other: "AssociationPath") -> "AssociationPath":
        """
        Union two paths on the same association.

        Raises:
            ValueError: when the paths name different associations.
        """
        if other.name != self.name:
            raise ValueError(
                f"Cannot merge association paths '{self.name}' and '{other.name}'"
            )
        return AssociationPath(self.name, merge_paths(self.children + other.children))

    def to_lookups(self) -> list[str]:
        """
        Django lookups loading this path.

        Examples:
            >>> AssociationPath.node("company", [AssociationPath.leaf("industry")]).to_lookups()
            ["company__industry"]
        """
        if self.is_leaf:
            return [self.name]
        return [
            f"{self.name}{LOOKUP_SEP}{lookup}"
            for child in self.children
            for lookup in child.to_lookups()
        ]

    def to_spec(self) -> Any:
        if self.is_leaf:
            return self.name
        return {self.name: [child.to_spec() for child in self.children]}

    def __str__(self) -> str:
        return ", ".join(self.to_lookups())


def merge_paths(paths: Iterable[AssociationPath]) -> tuple[AssociationPath, ...]:
    """Merge paths sharing a name, keeping first-seen order."""
    merged: dict[str, AssociationPath] = {}
    for path in paths:
        existing = merged.get(path.name)
        merged[path.name] = path if existing is None else existing.merge(path)
    return tuple(merged.values())


__all__ = ["AssociationPath", "LOOKUP_SEP", "merge_paths"]
