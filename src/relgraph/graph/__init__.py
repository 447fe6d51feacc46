"""Dependency graph engine: scan, collapse, reduce and merge."""

from relgraph.graph.builder import GraphBuilder
from relgraph.graph.oracle import DependencyOracle, FactsOracle
from relgraph.graph.session import DependencySession, ReferenceSession

__all__ = [
    "DependencyOracle",
    "DependencySession",
    "FactsOracle",
    "GraphBuilder",
    "ReferenceSession",
]
