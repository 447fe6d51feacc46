"""Inspection sessions: accumulate scans into one display graph.

A session owns a single mutable accumulated graph. Every ``init`` call
scans, merges the result into that graph and returns the current roots.
Sessions are single-threaded; nothing here locks.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from relgraph.config import InspectorConfig
from relgraph.exceptions import SessionClosedError
from relgraph.graph.builder import GraphBuilder
from relgraph.graph.merge import find_roots, graph_stats, invert, merge_graphs, walk_nodes
from relgraph.graph.oracle import DependencyOracle
from relgraph.models import (
    Cluster,
    DependencyMap,
    Leaf,
    Node,
    display_identity,
    entity_name,
)

logger = logging.getLogger("relgraph.session")

ClusterHook = Callable[[Cluster], None]


class ClusterRegistry:
    """Tracks cluster lifetimes for hosts that attach resources to them.

    Clusters created inside ``scan()`` are pending until the scan ends.
    Those that made it into the accumulated graph become live; the rest
    (replaced by an equal existing cluster, or unreachable from the scan
    root) are released on the spot. ``close()`` releases every live one.
    """

    def __init__(
        self,
        on_create: ClusterHook | None = None,
        on_release: ClusterHook | None = None,
    ) -> None:
        self._on_create = on_create
        self._on_release = on_release
        self._live: dict[int, Cluster] = {}
        self._pending: list[Cluster] | None = None

    def create(self, members: Iterable[Any], factory: Callable[..., Cluster]) -> Cluster:
        cluster = factory(members)
        if self._on_create:
            self._on_create(cluster)
        if self._pending is not None:
            self._pending.append(cluster)
        else:
            self._live[id(cluster)] = cluster
        return cluster

    @contextmanager
    def scan(self, graph: DependencyMap) -> Iterator[None]:
        """Scope one scan; settle its clusters against ``graph`` on exit."""
        pending: list[Cluster] = []
        self._pending = pending
        try:
            yield
        finally:
            self._pending = None
            kept = {id(n) for n in walk_nodes(graph) if isinstance(n, Cluster)}
            for cluster in pending:
                if id(cluster) in kept:
                    self._live[id(cluster)] = cluster
                else:
                    self.release(cluster)

    def release(self, cluster: Cluster) -> None:
        self._live.pop(id(cluster), None)
        if self._on_release:
            self._on_release(cluster)

    @property
    def live(self) -> list[Cluster]:
        return list(self._live.values())

    def close(self) -> None:
        for cluster in list(self._live.values()):
            self.release(cluster)
        self._live.clear()


class DependencySession:
    """Accumulates "what does X depend on" scans for one inspection.

    Usage::

        with DependencySession(oracle) as session:
            roots = session.init(entity)
            for _, child, _ in session.relations_of(next(iter(roots))):
                ...
    """

    def __init__(
        self,
        oracle: DependencyOracle,
        config: InspectorConfig | None = None,
        on_create: ClusterHook | None = None,
        on_release: ClusterHook | None = None,
    ) -> None:
        self.oracle = oracle
        self.config = config or InspectorConfig()
        self.graph: DependencyMap = {}
        self.registry = ClusterRegistry(on_create=on_create, on_release=on_release)
        self._builder = GraphBuilder(oracle, self.config)
        self._builder.cluster_factory = self._create_cluster
        self._closed = False

    def _create_cluster(self, members: Iterable[Any]) -> Cluster:
        return self.registry.create(members, self._builder.make_cluster)

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosedError(type(self).__name__)

    def placeholder(self, target: Any) -> Leaf:
        """Stand-in node for a target nothing was found for."""
        return Leaf(target, label=f"{entity_name(target)}{self.config.placeholder_suffix}")

    def has_edges(self) -> bool:
        return any(self.graph.values())

    def init(self, target: Any) -> set[Node]:
        """Scan ``target``, merge the result and return the display roots.

        When no scan so far has produced a single edge, a placeholder leaf
        for ``target`` is returned instead of an empty root set.
        """
        self._check_open()
        with self.registry.scan(self.graph):
            scan_graph = self._builder.build(target)
            merge_graphs(self.graph, scan_graph)

        logger.info(
            "Scanned %s: %d node(s) accumulated", entity_name(target), len(self.graph)
        )
        if not self.has_edges():
            return {self.placeholder(target)} if target is not None else set()
        return find_roots(self.graph)

    def relations_of(self, node: Node) -> list[tuple[Node, Node, str]]:
        """Outgoing display relations of ``node`` as (node, successor, label)."""
        return [(node, succ, "") for succ in self.graph.get(node, ())]

    def display_identity(self, node: Node) -> Any:
        return display_identity(node)

    def roots(self) -> set[Node]:
        return find_roots(self.graph)

    def get_stats(self) -> dict:
        stats = graph_stats(self.graph)
        stats["live_clusters"] = len(self.registry.live)
        return stats

    def close(self) -> None:
        """Release every cluster created for this session."""
        if self._closed:
            return
        self._closed = True
        self.registry.close()
        logger.info("%s closed", type(self).__name__)

    def __enter__(self) -> DependencySession:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class ReferenceSession(DependencySession):
    """Accumulates "what references X" views across the host's roots.

    Every ``init`` scans each host root restricted to the target, merges
    those scans, flips the edges and unions the result into the session
    graph. A target nothing references is recorded as a placeholder leaf
    and stays visible for the rest of the session.
    """

    def __init__(
        self,
        oracle: DependencyOracle,
        roots: Callable[[], Iterable[Any]],
        config: InspectorConfig | None = None,
        on_create: ClusterHook | None = None,
        on_release: ClusterHook | None = None,
    ) -> None:
        super().__init__(oracle, config, on_create=on_create, on_release=on_release)
        self._roots = roots
        self._placeholders: dict[Leaf, Leaf] = {}

    def _replace_placeholders(self, scanned: DependencyMap) -> None:
        """Retire placeholders for entities that a scan has put in the graph.

        A placeholder is swapped for the scan's own leaf, so edges merged
        afterwards land on an unlabelled node. It is dropped outright when the
        entity turned up as a cluster member.
        """
        for node in walk_nodes(scanned):
            if isinstance(node, Cluster):
                for member in node.members:
                    stale = self._placeholders.pop(Leaf(member), None)
                    if stale is not None:
                        del self.graph[stale]
            elif not node.label and node in self._placeholders:
                stale = self._placeholders.pop(node)
                self.graph[node] = self.graph.pop(stale)

    def init(self, target: Any) -> set[Node]:
        self._check_open()
        with self.registry.scan(self.graph):
            scanned = self._builder.build_many(self._roots(), targets=[target])
            referenced_by = invert(scanned)
            if referenced_by:
                self._replace_placeholders(referenced_by)
            elif target is not None and Leaf(target) not in self.graph:
                placeholder = self.placeholder(target)
                self._placeholders[placeholder] = placeholder
                referenced_by = {placeholder: set()}
            merge_graphs(self.graph, referenced_by)

        logger.info(
            "Collected references to %s: %d node(s) accumulated",
            entity_name(target), len(self.graph),
        )
        return find_roots(self.graph)

