#!/usr/bin/env python3
"""Demo: Using RelGraph as a Python library.

This shows how to plug a host's dependency facts into RelGraph and read
back the collapsed display graph, not just use the CLI.
"""

from relgraph.graph.merge import graph_stats
from relgraph.graph.oracle import FactsOracle
from relgraph.graph.session import DependencySession, ReferenceSession
from relgraph.models import Entity, display_identity, node_label


def main():
    # 1. Describe a tiny scene. Entities must compare by identity, as Entity does.
    level = Entity("Level")
    player = Entity("Player")
    mesh = Entity("PlayerMesh", owner=player)
    enemy = Entity("Enemy")
    material = Entity("Shiny")
    texture = Entity("Checker")

    oracle = FactsOracle.from_mapping(
        {
            level: [player, enemy],
            player: [mesh, material],
            mesh: [material],
            enemy: [material],
            material: [texture],
        },
        roots=[level],
    )

    # 2. What does the level depend on?
    print("--- Dependencies of 'Level' ---")
    with DependencySession(oracle) as session:
        roots = session.init(level)
        for root in roots:
            _print_tree(session, root)

        stats = graph_stats(session.graph)
        print(f"  Nodes: {stats['total_nodes']}, edges: {stats['total_edges']}")

    # 3. What references the material?
    print("\n--- References to 'Shiny' ---")
    with ReferenceSession(oracle, oracle.root_entities) as session:
        for root in session.init(material):
            _print_tree(session, root)
            print(f"  (selecting it selects {display_identity(root)!r})")


def _print_tree(session, node, depth=0, seen=None):
    seen = set() if seen is None else seen
    print(f"{'  ' * (depth + 1)}{node_label(node)}")
    if node in seen:
        return
    seen.add(node)
    for _, child, _ in session.relations_of(node):
        _print_tree(session, child, depth + 1, seen)


if __name__ == "__main__":
    main()
