"""Data models for dependency graph nodes.

A node is either a ``Leaf`` wrapping one host entity, or a ``Cluster``
standing in for a group of entities that could not be told apart by
their outgoing edges.

Entities are opaque host objects. Nodes, clusters and every set the
builder keeps use the entities' own ``==`` and ``hash``, so hosts must hand
out handles that compare by identity, such as ``Entity``. Two host objects
that compare equal are treated as one entity; wrap value-like objects in
an ``Entity`` before passing them in.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Union

from relgraph.exceptions import GraphError

DEFAULT_CLUSTER_NAME = "Cycle Rep"


@dataclass(eq=False)
class Entity:
    """A named host object handle.

    Equality and hashing are inherited from ``object`` (identity), so two
    entities with the same name are still different entities.
    """

    name: str
    owner: Entity | None = None
    kind: str = ""

    def __repr__(self) -> str:
        return f"Entity({self.name!r})"


def entity_name(entity: Any) -> str:
    """Best-effort display name for an arbitrary host entity."""
    name = getattr(entity, "name", None)
    if isinstance(name, str) and name:
        return name
    return str(entity)


def member_key(members: Iterable[Any]) -> frozenset:
    """Canonical, order-independent key for a set of nodes or entities.

    Two collections produce equal keys iff they are set-equal. This is the
    one equality strategy used for grouping equal successor sets and for
    matching cluster memberships across scans; ``Cluster`` equality and
    hashing are defined in terms of it.
    """
    return frozenset(members)


@dataclass(frozen=True)
class Leaf:
    """A single host entity in the graph."""

    entity: Any
    label: str = field(default="", compare=False)

    @property
    def name(self) -> str:
        return self.label or entity_name(self.entity)

    def __repr__(self) -> str:
        return f"Leaf({self.name!r})"


@dataclass(frozen=True, eq=False)
class Cluster:
    """Synthetic aggregate node for a set of entities.

    Two clusters are equal iff their member sets are equal; the anchor and
    name do not take part in equality.
    """

    members: frozenset
    anchor: Any = None
    name: str = DEFAULT_CLUSTER_NAME

    def __post_init__(self) -> None:
        members = member_key(self.members)
        if not members:
            raise GraphError("A cluster needs at least one member")
        if any(isinstance(m, (Leaf, Cluster)) for m in members):
            raise GraphError("Cluster members must be entities, not graph nodes")
        object.__setattr__(self, "members", members)

    @classmethod
    def of(
        cls,
        members: Iterable[Any],
        owner_of: Callable[[Any], Any] | None = None,
        name: str = DEFAULT_CLUSTER_NAME,
    ) -> Cluster:
        """Create a cluster, resolving its anchor from the owner relation."""
        members = member_key(members)
        anchor = find_anchor(members, owner_of) if members else None
        if anchor is not None:
            name = entity_name(anchor)
        return cls(members=members, anchor=anchor, name=name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cluster):
            return NotImplemented
        return self.members == other.members

    def __hash__(self) -> int:
        return hash(self.members)

    def __repr__(self) -> str:
        inner = ", ".join(sorted(entity_name(m) for m in self.members))
        return f"Cluster({inner})"


Node = Union[Leaf, Cluster]
DependencyMap = dict  # dict[Node, set[Node]]


def find_anchor(members: frozenset, owner_of: Callable[[Any], Any] | None) -> Any:
    """Return the member that owns every other member, if there is one.

    A single-member set anchors to its member. Without an owner relation
    larger sets have no anchor.
    """
    if len(members) == 1:
        return next(iter(members))
    if owner_of is None:
        return None

    owners = {m: owner_of(m) for m in members}
    candidates = [m for m in members if owners[m] is None or owners[m] not in members]
    if len(candidates) != 1:
        return None
    anchor = candidates[0]
    for m in members:
        if m is not anchor and owners[m] is not anchor:
            return None
    return anchor


def display_identity(node: Node) -> Any:
    """Map a node to the host object that selecting it should select.

    Single-member clusters show as their member, anchored clusters as the
    anchor; any other cluster stays an aggregate. Leaves show as their
    entity.
    """
    if isinstance(node, Leaf):
        return node.entity
    if isinstance(node, Cluster):
        if len(node.members) == 1:
            return next(iter(node.members))
        if node.anchor is not None:
            return node.anchor
        return node
    raise GraphError(f"Not a graph node: {node!r}")


def node_label(node: Node, show_members: bool = True) -> str:
    """Human-readable label for a node."""
    if isinstance(node, Leaf):
        return node.name
    if node.anchor is not None:
        return node.name
    if len(node.members) == 1:
        return entity_name(next(iter(node.members)))
    if not show_members:
        return node.name
    members = ", ".join(sorted(entity_name(m) for m in node.members))
    return f"{node.name} [{members}]"


def iter_nodes(graph: DependencyMap) -> set:
    """All nodes of a map: its keys plus every successor."""
    nodes = set(graph)
    for successors in graph.values():
        nodes.update(successors)
    return nodes
