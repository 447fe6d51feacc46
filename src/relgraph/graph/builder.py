"""Build a compact, cycle-free display graph from dependency facts.

One scan runs four steps:

1. ``build_closure``: the two-hop neighborhood of a root entity.
2. ``filter_to_targets``: optionally keep only nodes referencing a target.
3. ``collapse_cycles``: merge nodes with identical successor sets.
4. ``reduce_graph``: pick a root and drop edges implied by siblings.

The result is merged into an accumulated graph by ``relgraph.graph.merge``.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable
from typing import Any

from relgraph.config import InspectorConfig
from relgraph.graph.merge import find_roots, merge_graphs
from relgraph.graph.oracle import DependencyOracle
from relgraph.models import Cluster, DependencyMap, Leaf, entity_name, member_key

logger = logging.getLogger("relgraph.graph")

ClusterFactory = Callable[[Iterable[Any]], Cluster]


def build_closure(root: Any, oracle: DependencyOracle) -> dict:
    """Map each direct dependency of ``root`` to its own direct dependencies.

    The root is not a key unless one of its dependencies depends on it.
    Coverage is deliberately bounded to two hops; wider graphs come from
    merging scans started at other roots.
    """
    if root is None:
        return {}
    return {dep: set(oracle.direct_dependencies(dep)) for dep in oracle.direct_dependencies(root)}


def filter_to_targets(deps: dict, targets: Iterable[Any]) -> dict:
    """Keep only keys that directly reference a target, and edges among them."""
    targets = set(targets)
    if not targets:
        return deps

    connected = {key for key, succ in deps.items() if succ & targets}
    return {key: deps[key] & connected for key in deps if key in connected}


def collapse_cycles(
    deps: dict,
    make_cluster: ClusterFactory = Cluster.of,
) -> DependencyMap:
    """Replace groups of keys with equal successor sets by one cluster.

    Grouping is a single pass over exact successor-set equality. Two nodes
    that only reference each other (``{X: {Y}, Y: {X}}``) have different
    successor sets and stay separate leaves.
    """
    groups: dict[frozenset, list] = {}
    for key, succ in deps.items():
        groups.setdefault(member_key(succ), []).append(key)

    substitution: dict[Any, Any] = {}
    cluster_edges: dict[Cluster, set] = {}
    for succ_key, members in groups.items():
        if len(members) < 2:
            continue
        cluster = make_cluster(members)
        for member in members:
            substitution[member] = cluster
        cluster_edges[cluster] = set(succ_key)

    def substitute(entity: Any) -> Any:
        node = substitution.get(entity)
        return node if node is not None else Leaf(entity)

    result: DependencyMap = {}
    for key, succ in deps.items():
        node = substitute(key)
        if node in result:
            continue
        edges = cluster_edges[node] if isinstance(node, Cluster) else succ
        result[node] = {substitute(e) for e in edges} - {node}

    logger.debug(
        "Collapsed %d keys into %d nodes (%d clusters)",
        len(deps), len(result), len(cluster_edges),
    )
    return result


def reduce_graph(
    cycle_free: DependencyMap,
    root: Any,
    fallback_roots: Iterable[Any] | None = None,
    make_cluster: ClusterFactory = Cluster.of,
) -> DependencyMap:
    """Resolve the scan root and remove edges implied by other open nodes.

    If neither ``Leaf(root)`` nor a cluster containing ``root`` is a key, a
    singleton cluster wrapping ``root`` is synthesized and linked to the
    fallback roots (the parentless nodes of ``cycle_free``).

    Starting from the root, each node keeps a successor ``c`` only if no
    other node still waiting to be expanded also references ``c``. Only
    nodes reachable from the root end up in the result; successors without
    an entry of their own map to the empty set.
    """
    if not cycle_free:
        return {}

    graph = dict(cycle_free)
    graph_root: Any = Leaf(root)
    if graph_root not in graph:
        graph_root = next(
            (k for k in graph if isinstance(k, Cluster) and root in k.members),
            None,
        )
    if graph_root is None:
        if fallback_roots is None:
            fallback_roots = find_roots(cycle_free)
        graph_root = make_cluster([root])
        graph[graph_root] = set(fallback_roots)
        logger.debug("Synthesized root cluster for %s", entity_name(root))

    open_nodes = set(graph)
    visited: set = set()
    to_expand = deque([graph_root])
    result: DependencyMap = {}

    while to_expand:
        item = to_expand.popleft()
        if item in visited:
            continue
        visited.add(item)
        open_nodes.discard(item)

        successors = set()
        for candidate in graph.get(item, set()):
            if candidate == item:
                continue
            if any(
                candidate in graph[other]
                for other in open_nodes
                if other != candidate
            ):
                continue
            successors.add(candidate)

        result[item] = successors
        to_expand.extend(successors)

    return result


class GraphBuilder:
    """Runs dependency scans against a host oracle.

    Each scan produces a small display graph rooted at the scanned entity.
    Clusters are created through ``cluster_factory`` so callers can track
    their lifetime; by default they are plain ``Cluster`` values whose
    anchor comes from the oracle's owner relation.
    """

    def __init__(
        self,
        oracle: DependencyOracle,
        config: InspectorConfig | None = None,
        cluster_factory: ClusterFactory | None = None,
    ) -> None:
        self.oracle = oracle
        self.config = config or InspectorConfig()
        self.cluster_factory = cluster_factory or self.make_cluster

    def make_cluster(self, members: Iterable[Any]) -> Cluster:
        return Cluster.of(members, owner_of=self.oracle.owner_of, name=self.config.cluster_name)

    def cycle_free_dependencies(self, root: Any, targets: Iterable[Any] = ()) -> DependencyMap:
        """Closure, target filter and cycle collapsing for one root."""
        deps = filter_to_targets(build_closure(root, self.oracle), targets)
        return collapse_cycles(deps, self.cluster_factory)

    def build(self, root: Any, targets: Iterable[Any] = ()) -> DependencyMap:
        """Run one full scan from ``root`` and return its display graph."""
        if root is None:
            return {}
        cycle_free = self.cycle_free_dependencies(root, targets)
        graph = reduce_graph(cycle_free, root, make_cluster=self.cluster_factory)
        logger.debug(
            "Scan of %s: %d nodes, %d edges",
            entity_name(root), len(graph), sum(len(s) for s in graph.values()),
        )
        return graph

    def build_many(self, roots: Iterable[Any], targets: Iterable[Any] = ()) -> DependencyMap:
        """Scan every root and merge the results into one fresh graph."""
        targets = list(targets)
        merged: DependencyMap = {}
        for root in roots:
            merge_graphs(merged, self.build(root, targets))
        return merged
