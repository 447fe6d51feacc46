"""Dependency fact lookup.

The engine never decides by itself what references what. It asks a
``DependencyOracle`` supplied by the host, one entity at a time.
"""

from __future__ import annotations

import fnmatch
import json
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import networkx as nx

from relgraph.exceptions import OracleError
from relgraph.models import Entity, entity_name


class DependencyOracle(ABC):
    """Host capability answering "what does this entity reference directly?"

    Implementations may filter out entities the host does not want shown
    (generated artifacts, library files, sub-components); the engine uses
    whatever comes back as-is. Lookups must be side-effect free for the
    duration of a scan, and the entities returned must compare by identity
    (see ``relgraph.models``).
    """

    @abstractmethod
    def direct_dependencies(self, entity: Any) -> set:
        """Return the set of entities ``entity`` references directly."""

    def owner_of(self, entity: Any) -> Any:
        """Return the entity owning ``entity`` (e.g. its container), or None."""
        return None


class FactsOracle(DependencyOracle):
    """Oracle backed by a NetworkX directed graph of entities.

    Nodes are entity handles, an edge ``a -> b`` means ``a`` references
    ``b``. Entities whose name matches one of ``exclude_patterns`` are
    dropped from every answer.
    """

    def __init__(
        self,
        graph: nx.DiGraph | None = None,
        exclude_patterns: Iterable[str] = (),
        roots: Iterable[Any] = (),
    ) -> None:
        self.graph = graph if graph is not None else nx.DiGraph()
        self.exclude_patterns = list(exclude_patterns)
        self.roots = list(roots)
        self._by_name: dict[str, Any] = {}
        for node in self.graph.nodes:
            self._by_name.setdefault(entity_name(node), node)

    @classmethod
    def from_mapping(
        cls,
        facts: Mapping[Any, Iterable[Any]],
        owners: Mapping[Any, Any] | None = None,
        exclude_patterns: Iterable[str] = (),
        roots: Iterable[Any] = (),
    ) -> FactsOracle:
        """Build an oracle from ``{entity: referenced entities}``."""
        graph = nx.DiGraph()
        for entity, references in facts.items():
            graph.add_node(entity)
            for ref in references:
                graph.add_edge(entity, ref)
        for entity, owner in (owners or {}).items():
            graph.add_node(entity, owner=owner)
        return cls(graph, exclude_patterns=exclude_patterns, roots=roots)

    @classmethod
    def load(cls, path: str | Path, exclude_patterns: Iterable[str] = ()) -> FactsOracle:
        """Load a facts file.

        Format::

            {
              "entities": {
                "Player": {"references": ["Mesh"], "owner": null, "kind": "prefab"}
              },
              "roots": ["Player"]
            }

        Names referenced but not declared become plain entities.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text())
        except OSError as e:
            raise OracleError(f"Cannot read facts file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise OracleError(f"Facts file {path} is not valid JSON: {e}") from e

        declared = data.get("entities") if isinstance(data, dict) else None
        if not isinstance(declared, dict):
            raise OracleError(f"Facts file {path} needs an 'entities' object")

        entities: dict[str, Entity] = {}

        def _get(name: str) -> Entity:
            if not isinstance(name, str) or not name:
                raise OracleError(f"Invalid entity name in {path}: {name!r}")
            if name not in entities:
                entities[name] = Entity(name)
            return entities[name]

        graph = nx.DiGraph()
        for name, info in declared.items():
            info = info or {}
            entity = _get(name)
            entity.kind = info.get("kind", "")
            graph.add_node(entity)
            for ref in info.get("references", []):
                graph.add_edge(entity, _get(ref))

        for name, info in declared.items():
            owner = (info or {}).get("owner")
            if owner:
                if owner not in declared:
                    raise OracleError(f"Owner '{owner}' of '{name}' is not declared in {path}")
                entities[name].owner = entities[owner]
                graph.nodes[entities[name]]["owner"] = entities[owner]

        roots = [_get(r) for r in data.get("roots", [])]
        return cls(graph, exclude_patterns=exclude_patterns, roots=roots)

    def _excluded(self, entity: Any) -> bool:
        name = entity_name(entity)
        return any(fnmatch.fnmatch(name, pat) for pat in self.exclude_patterns)

    def direct_dependencies(self, entity: Any) -> set:
        if entity is None or not self.graph.has_node(entity):
            return set()
        return {dep for dep in self.graph.successors(entity) if not self._excluded(dep)}

    def owner_of(self, entity: Any) -> Any:
        if self.graph.has_node(entity):
            owner = self.graph.nodes[entity].get("owner")
            if owner is not None:
                return owner
        return getattr(entity, "owner", None)

    def get(self, name: str) -> Any:
        """Look up an entity by name."""
        entity = self._by_name.get(name)
        if entity is None:
            raise OracleError(f"Unknown entity: '{name}'")
        return entity

    def root_entities(self) -> list:
        """Top-level host entities used as scan roots for reference queries."""
        return list(self.roots)
