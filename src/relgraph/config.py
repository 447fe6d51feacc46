"""Configuration management for RelGraph."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from relgraph.exceptions import ConfigError

RELGRAPH_DIR = ".relgraph"
CONFIG_FILE = "config.json"
FACTS_FILE = "facts.json"


class InspectorConfig(BaseModel):
    """Scan behavior configuration."""

    exclude_patterns: list[str] = Field(
        default_factory=lambda: [
            "*.meta",
            "*.generated",
            "Library/*",
        ]
    )
    placeholder_suffix: str = " (unreferenced)"
    cluster_name: str = "Cycle Rep"


class DisplayConfig(BaseModel):
    """Terminal rendering configuration."""

    max_depth: int = 8
    show_members: bool = True


class ProjectConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    facts_file: str = FACTS_FILE
    inspector: InspectorConfig = Field(default_factory=InspectorConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Nearest directory at or above ``start`` that holds a .relgraph dir."""
    here = (start or Path.cwd()).resolve()
    return next(
        (d for d in (here, *here.parents) if get_relgraph_dir(d).is_dir()),
        None,
    )


def get_relgraph_dir(root: Path) -> Path:
    return root / RELGRAPH_DIR


def load_config(root: Path) -> ProjectConfig:
    """Load ``.relgraph/config.json``, or defaults named after ``root``."""
    config_path = get_relgraph_dir(root) / CONFIG_FILE
    if not config_path.exists():
        return ProjectConfig(name=root.name, root_path=str(root))
    try:
        return ProjectConfig(**json.loads(config_path.read_text()))
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e


def save_config(root: Path, config: ProjectConfig) -> None:
    config_dir = get_relgraph_dir(root)
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / CONFIG_FILE).write_text(config.model_dump_json(indent=2))


def _locate(data: dict, key: str) -> tuple[dict, str]:
    """Resolve a dotted key to its parent section and final field name."""
    *sections, field = key.split(".")
    for section in sections:
        data = data.get(section)
        if not isinstance(data, dict):
            raise KeyError(f"Invalid config key: {key}")
    if field not in data:
        raise KeyError(f"Invalid config key: {key}")
    return data, field


def get_config_value(config: ProjectConfig, key: str) -> Any:
    """Read a value by dotted key, e.g. ``inspector.cluster_name``."""
    section, field = _locate(config.model_dump(), key)
    return section[field]


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Return a copy of ``config`` with the dotted ``key`` set to ``value``.

    Raises ``KeyError`` for unknown keys and pydantic's ``ValidationError``
    (a ``ValueError``) when the value does not fit the field.
    """
    data = config.model_dump()
    section, field = _locate(data, key)
    section[field] = value
    return ProjectConfig.model_validate(data)
