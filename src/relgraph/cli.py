"""Command-line interface for RelGraph."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from relgraph import __version__
from relgraph.config import (
    ProjectConfig,
    find_project_root,
    get_config_value,
    get_relgraph_dir,
    load_config,
    save_config,
    set_config_value,
)
from relgraph.exceptions import RelGraphError
from relgraph.ui.console import Console

console = Console()


def _get_project_root(path: str | None = None) -> Path | None:
    """Resolve the project root; None means run with default config."""
    if path:
        root = Path(path).resolve()
        if not root.exists():
            console.error(f"Path does not exist: {path}")
            sys.exit(1)
        return root
    return find_project_root()


def _load_project(path: str | None) -> tuple[Path | None, ProjectConfig]:
    root = _get_project_root(path)
    if root is None:
        return None, ProjectConfig()
    try:
        return root, load_config(root)
    except RelGraphError as e:
        console.error(str(e))
        sys.exit(1)


def _load_oracle(facts: str | None, root: Path | None, config: ProjectConfig):
    """Load the facts file given on the command line or from the project."""
    from relgraph.graph.oracle import FactsOracle

    if facts:
        facts_path = Path(facts)
    elif root is not None:
        facts_path = get_relgraph_dir(root) / config.facts_file
    else:
        console.error("No facts file given. Pass --facts or run 'relgraph init' first.")
        sys.exit(1)

    try:
        return FactsOracle.load(facts_path, exclude_patterns=config.inspector.exclude_patterns)
    except RelGraphError as e:
        console.error(str(e))
        sys.exit(1)


def _resolve(oracle, names: tuple[str, ...]) -> list:
    try:
        return [oracle.get(name) for name in names]
    except RelGraphError as e:
        console.error(str(e))
        sys.exit(1)


def _emit(session, roots, title: str, config: ProjectConfig, as_json: bool) -> None:
    from relgraph.graph.merge import to_dict

    if as_json:
        data = to_dict(session.graph, config.display.show_members)
        if not session.graph:
            data["placeholders"] = sorted(r.name for r in roots)
        click.echo(json.dumps(data, indent=2))
        return

    console.show_graph(
        session.graph,
        roots,
        title=title,
        max_depth=config.display.max_depth,
        show_members=config.display.show_members,
    )


@click.group()
@click.version_option(version=__version__, prog_name="relgraph")
def main():
    """RelGraph - compact, cycle-free views of what references what."""
    pass


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
def init(path: str | None):
    """Initialize a RelGraph project directory."""
    root = Path(path or ".").resolve()
    if not root.exists():
        console.error(f"Path does not exist: {root}")
        sys.exit(1)

    console.banner()
    console.info(f"Initializing RelGraph for: {root}")

    config = load_config(root)
    config.name = root.name
    config.root_path = str(root)
    save_config(root, config)
    console.success("Configuration saved")

    facts_path = get_relgraph_dir(root) / config.facts_file
    if not facts_path.exists():
        console.info(f"Put dependency facts in {facts_path} or pass --facts to each command")


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--facts", "-f", default=None, help="Dependency facts JSON file.")
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--json", "as_json", is_flag=True, help="Print the graph as JSON.")
def deps(names: tuple[str, ...], facts: str | None, path: str | None, as_json: bool):
    """Show what the named entities depend on.

    Each name is scanned in turn and merged into one graph, the way an
    inspector window accumulates targets.
    """
    from relgraph.graph.session import DependencySession

    root, config = _load_project(path)
    oracle = _load_oracle(facts, root, config)
    targets = _resolve(oracle, names)

    with DependencySession(oracle, config.inspector) as session:
        roots = set()
        for target in targets:
            roots = session.init(target)
        _emit(session, roots, "Dependencies of " + ", ".join(names), config, as_json)


@main.command()
@click.argument("name")
@click.option("--facts", "-f", default=None, help="Dependency facts JSON file.")
@click.option("--root", "-r", "root_names", multiple=True,
              help="Scan root entity (defaults to the facts file's roots).")
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--json", "as_json", is_flag=True, help="Print the graph as JSON.")
def refs(
    name: str, facts: str | None, root_names: tuple[str, ...],
    path: str | None, as_json: bool,
):
    """Show what references the named entity."""
    from relgraph.graph.session import ReferenceSession

    root, config = _load_project(path)
    oracle = _load_oracle(facts, root, config)
    (target,) = _resolve(oracle, (name,))
    scan_roots = _resolve(oracle, root_names) if root_names else oracle.root_entities()
    if not scan_roots:
        console.warning("No scan roots: pass --root or list 'roots' in the facts file")

    with ReferenceSession(oracle, lambda: scan_roots, config.inspector) as session:
        roots = session.init(target)
        _emit(session, roots, f"References to {name}", config, as_json)


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--facts", "-f", default=None, help="Dependency facts JSON file.")
@click.option("--path", "-p", default=None, help="Path to the project root.")
def stats(names: tuple[str, ...], facts: str | None, path: str | None):
    """Show statistics for the merged dependency graph of the named entities."""
    from relgraph.graph.session import DependencySession

    root, config = _load_project(path)
    oracle = _load_oracle(facts, root, config)
    targets = _resolve(oracle, names)

    with DependencySession(oracle, config.inspector) as session:
        for target in targets:
            session.init(target)
        console.show_stats(session.get_stats())


# =========================================================================
# Config Management
# =========================================================================

@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Show, read or change settings in .relgraph/config.json."""
    root, config = _load_project(path)
    if root is None:
        console.error("No RelGraph project here. Run 'relgraph init' or pass --path.")
        sys.exit(1)

    if action == "show":
        console.console.print_json(config.model_dump_json())
        return
    if not key or (action == "set" and value is None):
        args = "<key> <value>" if action == "set" else "<key>"
        console.error(f"Usage: relgraph config {action} {args}")
        sys.exit(1)

    try:
        if action == "get":
            console.console.print(f"{key} = {get_config_value(config, key)}")
            return
        # JSON literals (numbers, booleans, lists) are stored typed, anything else as text
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            parsed = value
        save_config(root, set_config_value(config, key, parsed))
        console.success(f"Set {key} = {parsed}")
    except KeyError:
        console.error(f"Unknown config key: {key}")
        sys.exit(1)
    except ValueError as e:
        console.error(f"Invalid value for {key}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
