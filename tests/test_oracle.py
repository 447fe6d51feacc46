"""Tests for dependency oracles."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from relgraph.exceptions import OracleError
from relgraph.graph.oracle import DependencyOracle, FactsOracle


class TestDependencyOracle:
    def test_custom_oracle(self, ents):
        class Static(DependencyOracle):
            def direct_dependencies(self, entity):
                return {ents["B"]} if entity is ents["A"] else set()

        oracle = Static()
        assert oracle.direct_dependencies(ents["A"]) == {ents["B"]}
        assert oracle.owner_of(ents["A"]) is None

    def test_abstract(self):
        with pytest.raises(TypeError):
            DependencyOracle()


class TestFactsOracle:
    def test_from_mapping(self, ents):
        oracle = FactsOracle.from_mapping(ents.map({"A": "BC"}))
        assert oracle.direct_dependencies(ents["A"]) == {ents["B"], ents["C"]}
        assert oracle.direct_dependencies(ents["B"]) == set()

    def test_unknown_entity(self, ents):
        oracle = FactsOracle.from_mapping(ents.map({"A": "B"}))
        assert oracle.direct_dependencies(ents["Z"]) == set()
        assert oracle.direct_dependencies(None) == set()

    def test_exclude_patterns(self, ents):
        oracle = FactsOracle.from_mapping(
            {ents["A"]: {ents["B"], ents["B.meta"]}},
            exclude_patterns=["*.meta"],
        )
        assert oracle.direct_dependencies(ents["A"]) == {ents["B"]}

    def test_owners(self, ents):
        oracle = FactsOracle.from_mapping(
            ents.map({"Player": "M"}), owners={ents["M"]: ents["Player"]}
        )
        assert oracle.owner_of(ents["M"]) is ents["Player"]
        assert oracle.owner_of(ents["Player"]) is None

    def test_get_by_name(self, ents):
        oracle = FactsOracle.from_mapping(ents.map({"A": "B"}))
        assert oracle.get("B") is ents["B"]
        with pytest.raises(OracleError):
            oracle.get("Nope")


class TestFactsFile:
    def test_load(self, facts_file: Path):
        oracle = FactsOracle.load(facts_file)
        player = oracle.get("Player")
        deps = oracle.direct_dependencies(player)

        assert {d.name for d in deps} == {"PlayerMesh", "Shiny"}
        assert player.kind == "prefab"
        assert oracle.owner_of(oracle.get("PlayerMesh")) is player
        assert [r.name for r in oracle.root_entities()] == ["Level"]

    def test_names_are_interned(self, facts_file: Path):
        oracle = FactsOracle.load(facts_file)
        (shiny_from_player,) = [
            d for d in oracle.direct_dependencies(oracle.get("Player")) if d.name == "Shiny"
        ]
        (shiny_from_enemy,) = [
            d for d in oracle.direct_dependencies(oracle.get("Enemy")) if d.name == "Shiny"
        ]
        assert shiny_from_player is shiny_from_enemy

    def test_undeclared_references_become_entities(self, tmp_path: Path):
        path = tmp_path / "facts.json"
        path.write_text(json.dumps({"entities": {"A": {"references": ["Ghost"]}}}))
        oracle = FactsOracle.load(path)
        assert oracle.get("Ghost").name == "Ghost"

    def test_exclusion_on_load(self, tmp_path: Path):
        path = tmp_path / "facts.json"
        path.write_text(json.dumps({"entities": {"A": {"references": ["B", "B.meta"]}}}))
        oracle = FactsOracle.load(path, exclude_patterns=["*.meta"])
        assert {d.name for d in oracle.direct_dependencies(oracle.get("A"))} == {"B"}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(OracleError):
            FactsOracle.load(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "facts.json"
        path.write_text("{not json")
        with pytest.raises(OracleError):
            FactsOracle.load(path)

    def test_missing_entities(self, tmp_path: Path):
        path = tmp_path / "facts.json"
        path.write_text(json.dumps({"roots": []}))
        with pytest.raises(OracleError):
            FactsOracle.load(path)

    def test_unknown_owner(self, tmp_path: Path):
        path = tmp_path / "facts.json"
        path.write_text(json.dumps({"entities": {"A": {"owner": "Nobody"}}}))
        with pytest.raises(OracleError):
            FactsOracle.load(path)
