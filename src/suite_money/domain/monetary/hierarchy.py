from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from suite_money.domain.monetary.errors import InvalidHierarchySpecError

_EMPTY: frozenset[str] = frozenset()


class Hierarchy:
    """Immutable multi-parent derivation graph over string tags.

    Each edge says "child is a parent". Ancestor and descendant closures are
    recomputed on every `derive` call, so queries are plain set lookups.
    Cycles are rejected.
    """

    __slots__ = ("_parents", "_ancestors", "_descendants")

    def __init__(self) -> None:
        self._parents: Mapping[str, frozenset[str]] = MappingProxyType({})
        self._ancestors: Mapping[str, frozenset[str]] = MappingProxyType({})
        self._descendants: Mapping[str, frozenset[str]] = MappingProxyType({})

    @classmethod
    def from_parent_map(cls, parents: Mapping[str, str | Iterable[str]]) -> Hierarchy:
        """Build a Hierarchy from a mapping of child -> parent (or parents).

        Edges are derived in sorted order, so the result does not depend on the
        iteration order of $parents.

        Raises:
            InvalidHierarchySpecError: If any edge is malformed or cyclic.
        """
        result = cls()
        for child in sorted(parents):
            value = parents[child]
            for parent in sorted([value] if isinstance(value, str) else value):
                result = result.derive(child, parent)
        return result

    # region Queries

    @property
    def tags(self) -> frozenset[str]:
        """Every tag that appears in at least one edge."""
        return frozenset(self._ancestors) | frozenset(self._descendants)

    def parents_of(self, tag: str) -> frozenset[str]:
        return self._parents.get(tag, _EMPTY)

    def ancestors_of(self, tag: str) -> frozenset[str]:
        return self._ancestors.get(tag, _EMPTY)

    def descendants_of(self, tag: str) -> frozenset[str]:
        return self._descendants.get(tag, _EMPTY)

    def is_ancestor(self, tag: str, ancestor: str) -> bool:
        """True when $ancestor is a strict (transitive) ancestor of $tag."""
        return ancestor in self._ancestors.get(tag, _EMPTY)

    def isa(self, tag: str | None, ancestor: str) -> bool:
        """True when $tag equals $ancestor or derives from it."""
        if tag is None:
            return False
        return tag == ancestor or self.is_ancestor(tag, ancestor)

    def edges(self) -> Iterator[tuple[str, str]]:
        """Yield every (child, parent) edge in sorted order."""
        for child in sorted(self._parents):
            for parent in sorted(self._parents[child]):
                yield child, parent

    # endregion

    # region Derivation

    def derive(self, child: str, parent: str) -> Hierarchy:
        """Return a new Hierarchy with the edge $child -> $parent added.

        Adding an edge that already exists returns self.

        Raises:
            InvalidHierarchySpecError: If a tag is malformed, $child equals $parent,
                or the edge would create a cycle.
        """
        _validate_tag(child, "child")
        _validate_tag(parent, "parent")

        # Raise: self edges are cycles of length one
        if child == parent:
            raise InvalidHierarchySpecError(
                f"Cannot call `Hierarchy.derive` because $child and $parent are the same tag ('{child}')",
                operation="Hierarchy.derive",
                child=child,
                parent=parent,
            )
        # Raise: $parent already derives from $child
        if child in self._ancestors.get(parent, _EMPTY):
            raise InvalidHierarchySpecError(
                f"Cannot call `Hierarchy.derive` because '{parent}' already derives from '{child}', so the edge would create a cycle",
                operation="Hierarchy.derive",
                child=child,
                parent=parent,
            )

        if parent in self._parents.get(child, _EMPTY):
            return self

        parents = dict(self._parents)
        parents[child] = parents.get(child, _EMPTY) | {parent}

        # Everything below $child (and $child itself) gains $parent and its ancestors
        new_ancestors = {parent} | self._ancestors.get(parent, _EMPTY)
        lower = {child} | self._descendants.get(child, _EMPTY)
        ancestors = dict(self._ancestors)
        for tag in lower:
            ancestors[tag] = ancestors.get(tag, _EMPTY) | new_ancestors

        # Everything above $parent (and $parent itself) gains $child and its descendants
        descendants = dict(self._descendants)
        for tag in new_ancestors:
            descendants[tag] = descendants.get(tag, _EMPTY) | lower

        result = Hierarchy.__new__(Hierarchy)
        result._parents = MappingProxyType(parents)
        result._ancestors = MappingProxyType(ancestors)
        result._descendants = MappingProxyType(descendants)
        return result

    def merge(self, other: Hierarchy) -> Hierarchy:
        """Return the edge-by-edge union of self and $other.

        Raises:
            InvalidHierarchySpecError: If the union would contain a cycle.
        """
        result = self
        for child, parent in other.edges():
            result = result.derive(child, parent)
        return result

    # endregion

    def to_dict(self) -> dict[str, list[str]]:
        """Plain child -> sorted parents mapping."""
        return {child: sorted(self._parents[child]) for child in sorted(self._parents)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Hierarchy):
            return False
        return dict(self._parents) == dict(other._parents)

    def __hash__(self) -> int:
        return hash(frozenset(self._parents.items()))

    def __len__(self) -> int:
        """Number of edges."""
        return sum(len(parents) for parents in self._parents.values())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_dict()!r})"


def _validate_tag(tag: Any, name: str) -> None:
    # Raise: tags are non-empty strings without whitespace
    if not isinstance(tag, str) or not tag or any(char.isspace() for char in tag):
        raise InvalidHierarchySpecError(
            f"Cannot call `Hierarchy.derive` because ${name} ({tag!r}) is not a valid tag",
            operation="Hierarchy.derive",
            **{name: tag},
        )


class CurrencyHierarchies:
    """The named hierarchies of a registry: kind, domain, traits and any extra ones."""

    KIND = "kind"
    DOMAIN = "domain"
    TRAITS = "traits"

    __slots__ = ("_graphs",)

    def __init__(self, graphs: Mapping[str, Hierarchy] | None = None) -> None:
        result = {self.KIND: Hierarchy(), self.DOMAIN: Hierarchy(), self.TRAITS: Hierarchy()}
        for name, graph in (graphs or {}).items():
            # Raise: only Hierarchy values are accepted
            if not isinstance(graph, Hierarchy):
                raise TypeError(f"Cannot init `CurrencyHierarchies` because hierarchy '{name}' is not a Hierarchy, but {type(graph).__name__}")
            result[name] = graph
        self._graphs: Mapping[str, Hierarchy] = MappingProxyType(result)

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, str | Iterable[str]]]) -> CurrencyHierarchies:
        """Build from a mapping of hierarchy name -> (child -> parents)."""
        return cls({name: Hierarchy.from_parent_map(parents) for name, parents in data.items()})

    @property
    def kind(self) -> Hierarchy:
        return self._graphs[self.KIND]

    @property
    def domain(self) -> Hierarchy:
        return self._graphs[self.DOMAIN]

    @property
    def traits(self) -> Hierarchy:
        return self._graphs[self.TRAITS]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._graphs)

    def get(self, name: str) -> Hierarchy:
        """Return the named hierarchy; unknown names give an empty one."""
        return self._graphs.get(name, Hierarchy())

    def derive(self, name: str, child: str, parent: str) -> CurrencyHierarchies:
        """Return a copy with the edge $child -> $parent added to hierarchy $name."""
        graphs = dict(self._graphs)
        graphs[name] = self.get(name).derive(child, parent)
        return CurrencyHierarchies(graphs)

    def merge(self, other: CurrencyHierarchies) -> CurrencyHierarchies:
        """Union every hierarchy of $other into the matching one of self."""
        graphs = dict(self._graphs)
        for name in other.names:
            graphs[name] = self.get(name).merge(other.get(name))
        return CurrencyHierarchies(graphs)

    def to_dict(self) -> dict[str, dict[str, list[str]]]:
        return {name: graph.to_dict() for name, graph in self._graphs.items()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CurrencyHierarchies):
            return False
        names = set(self._graphs) | set(other._graphs)
        return all(self.get(name) == other.get(name) for name in names)

    def __hash__(self) -> int:
        return hash(frozenset((name, graph) for name, graph in self._graphs.items() if len(graph)))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_dict()!r})"
