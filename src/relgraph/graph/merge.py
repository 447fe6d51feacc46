"""Operations on whole dependency maps: merging, roots, inversion, export."""

from __future__ import annotations

import logging

import networkx as nx

from relgraph.models import Cluster, DependencyMap, Leaf, entity_name, iter_nodes, node_label

logger = logging.getLogger("relgraph.graph")


def walk_nodes(graph: DependencyMap):
    """Every node occurrence, keys first, without collapsing equal clusters."""
    yield from graph
    for successors in graph.values():
        yield from successors


def merge_graphs(accumulated: DependencyMap, added: DependencyMap) -> list[Cluster]:
    """Fold ``added`` into ``accumulated`` in place.

    Clusters in ``added`` whose member set equals a cluster already in
    ``accumulated`` are replaced by the existing instance, so one canonical
    node carries the union of every scan's edges. Returns the cluster
    instances from ``added`` that were replaced; callers owning cluster
    resources must release them.

    Edges are only unioned, never re-reduced: an edge one scan dropped as
    implied by a sibling is not reconsidered against another scan's edges.
    """
    existing: dict[frozenset, Cluster] = {}
    for node in walk_nodes(accumulated):
        if isinstance(node, Cluster):
            existing.setdefault(node.members, node)

    matches: dict[int, Cluster] = {}
    discarded: list[Cluster] = []
    for node in walk_nodes(added):
        if not isinstance(node, Cluster):
            continue
        match = existing.get(node.members)
        if match is not None and match is not node and id(node) not in matches:
            matches[id(node)] = match
            discarded.append(node)

    def substitute(node):
        return matches.get(id(node), node)

    for key, edges in added.items():
        key = substitute(key)
        edges = {substitute(e) for e in edges}
        if key in accumulated:
            accumulated[key] |= edges
        else:
            accumulated[key] = edges

    if discarded:
        logger.debug("Merge reused %d existing cluster(s)", len(discarded))
    return discarded


def find_roots(graph: DependencyMap) -> set:
    """Keys that no other key lists as a successor."""
    referenced = set()
    for key, successors in graph.items():
        referenced.update(s for s in successors if s != key)
    return {key for key in graph if key not in referenced}


def invert(graph: DependencyMap) -> DependencyMap:
    """Flip every edge: "depends on" becomes "is referenced by"."""
    inverted: DependencyMap = {node: set() for node in iter_nodes(graph)}
    for key, successors in graph.items():
        for s in successors:
            inverted[s].add(key)
    return inverted


def to_digraph(graph: DependencyMap, show_members: bool = True) -> nx.DiGraph:
    """Convert a dependency map to a NetworkX directed graph."""
    g = nx.DiGraph()
    for node in iter_nodes(graph):
        if isinstance(node, Cluster):
            g.add_node(
                node,
                type="cluster",
                label=node_label(node, show_members),
                members=sorted(entity_name(m) for m in node.members),
                kind=getattr(node.anchor, "kind", ""),
            )
        else:
            g.add_node(
                node,
                type="leaf",
                label=node_label(node),
                members=[node.name],
                kind=getattr(node.entity, "kind", ""),
            )
    for key, successors in graph.items():
        for s in successors:
            g.add_edge(key, s)
    return g


def to_dict(graph: DependencyMap, show_members: bool = True) -> dict:
    """JSON-friendly node/edge listing with stable string ids."""
    g = to_digraph(graph, show_members)
    ordered = sorted(g.nodes, key=lambda n: (g.nodes[n]["type"], g.nodes[n]["label"]))
    ids = {node: f"n{i}" for i, node in enumerate(ordered)}
    return {
        "nodes": [{"id": ids[n], **g.nodes[n]} for n in ordered],
        "edges": sorted(
            ({"source": ids[u], "target": ids[v]} for u, v in g.edges),
            key=lambda e: (e["source"], e["target"]),
        ),
        "roots": sorted(ids[n] for n in find_roots(graph)),
    }


def graph_stats(graph: DependencyMap) -> dict:
    """Summary counts for a dependency map."""
    g = to_digraph(graph)
    clusters = sum(1 for n in g.nodes if isinstance(n, Cluster))
    return {
        "total_nodes": g.number_of_nodes(),
        "total_edges": g.number_of_edges(),
        "clusters": clusters,
        "leaves": sum(1 for n in g.nodes if isinstance(n, Leaf)),
        "roots": len(find_roots(graph)),
        "acyclic": nx.is_directed_acyclic_graph(g),
    }
