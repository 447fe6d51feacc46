"""Shared test fixtures for RelGraph."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from relgraph.models import Entity


class Entities(dict):
    """Lazily created named entities: ``ents["A"]`` is always the same object."""

    def __missing__(self, name: str) -> Entity:
        entity = Entity(name)
        self[name] = entity
        return entity

    def map(self, raw: dict[str, str]) -> dict:
        """Turn ``{"A": "BC"}`` into ``{A: {B, C}}`` over entities."""
        return {self[k]: {self[c] for c in v} for k, v in raw.items()}


@pytest.fixture
def ents() -> Entities:
    return Entities()


@pytest.fixture
def scene_facts() -> dict:
    """A small scene: a player prefab and an enemy sharing a material."""
    return {
        "entities": {
            "Level": {"references": ["Player", "Enemy"], "kind": "scene"},
            "Player": {"references": ["PlayerMesh", "Shiny"], "kind": "prefab"},
            "PlayerMesh": {"references": ["Shiny"], "owner": "Player"},
            "Enemy": {"references": ["Shiny", "EnemyAI"], "kind": "prefab"},
            "EnemyAI": {"references": ["Enemy"], "owner": "Enemy"},
            "Shiny": {"references": ["Checker"], "kind": "material"},
            "Checker": {"references": [], "kind": "texture"},
            "Shiny.meta": {"references": []},
            "Lonely": {"references": []},
        },
        "roots": ["Level"],
    }


@pytest.fixture
def facts_file(tmp_path: Path, scene_facts: dict) -> Path:
    path = tmp_path / "facts.json"
    path.write_text(json.dumps(scene_facts))
    return path
