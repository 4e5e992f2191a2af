"""Command-line interface for DepSlice."""

from __future__ import annotations

import json
import sys
import time
from pathlib import Path

import click

from depslice import __version__
from depslice.config import (
    ProjectConfig,
    find_project_root,
    load_config,
    parse_seed,
    resolve_paths,
    save_config,
    set_config_value,
)
from depslice.exceptions import DepSliceError
from depslice.ui.console import Console, configure_logging

console = Console()


def _get_project_root(path: str | None = None) -> Path:
    """Find the project root or error."""
    if path:
        root = Path(path).resolve()
        if not root.exists():
            console.error(f"Path does not exist: {path}")
            sys.exit(1)
        return root

    root = find_project_root()
    if root is None:
        console.error(
            "No DepSlice project found. Run 'depslice init' first, "
            "or specify a path with --path."
        )
        sys.exit(1)
    return root


def _load_config(root: Path) -> ProjectConfig:
    try:
        return load_config(root)
    except DepSliceError as e:
        console.error(str(e))
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="depslice")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def main(verbose: bool):
    """DepSlice - carve a Java project down to what its entry points need."""
    configure_logging(verbose, console)


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--base-path", default=None, help="Source root, relative to the project.")
@click.option("--output", "-o", default=None, help="Where the sliced project is written.")
@click.option("--manifest", default=None, help="Build manifest to copy (default: pom.xml).")
@click.option("--seed", "-s", multiple=True, help="Entry point, e.g. com.acme.Foo#bar.")
def init(
    path: str | None,
    base_path: str | None,
    output: str | None,
    manifest: str | None,
    seed: tuple[str, ...],
):
    """Initialize DepSlice for a repository. Writes .depslice/config.json."""
    root = Path(path or ".").resolve()
    if not root.exists():
        console.error(f"Path does not exist: {root}")
        sys.exit(1)

    console.banner()
    console.info(f"Initializing DepSlice for: {root}")

    config = _load_config(root)
    config.name = root.name
    config.root_path = str(root)

    if base_path:
        config.solver.base_path = base_path
    if output:
        config.solver.output_path = output
    if manifest:
        config.solver.manifest = manifest
    for s in seed:
        try:
            parse_seed(s)
        except DepSliceError as e:
            console.error(str(e))
            sys.exit(1)
        if s not in config.solver.methods:
            config.solver.methods.append(s)

    save_config(root, config)
    console.success("Configuration saved")
    if not config.solver.methods:
        console.warning("No seeds configured yet. Add some with --seed or 'depslice config set'.")


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--seed", "-s", multiple=True, help="Entry point; overrides the configured seeds.")
@click.option("--output", "-o", default=None, help="Override the output directory.")
@click.option("--dry-run", is_flag=True, help="Show the slice without writing anything.")
def run(path: str | None, seed: tuple[str, ...], output: str | None, dry_run: bool):
    """Compute the dependency closure of the seeds and write the sliced project."""
    from depslice.output.writer import copy_manifest, create_project_structure, write_files
    from depslice.parser.index import SourceIndex
    from depslice.solver.solver import DepSolver

    root = _get_project_root(path)
    config = _load_config(root)
    if output:
        config.solver.output_path = output

    seeds = list(seed) or list(config.solver.methods)
    if not seeds:
        console.error("No seeds given. Pass --seed or configure solver.methods.")
        sys.exit(1)

    base, out = resolve_paths(root, config)
    console.info(f"Parsing sources under {base}")
    start_time = time.time()

    try:
        with console.indexing_progress() as progress:
            task = progress.add_task("Indexing...", total=None)

            def on_progress(file_path: str, current: int, total: int):
                progress.update(
                    task, total=total, completed=current,
                    description=f"Parsing {file_path}",
                )

            index = SourceIndex.build(base, config.indexer, on_progress)

        solver = DepSolver(index)
        dependencies = solver.solve(seeds)
    except DepSliceError as e:
        console.error(str(e))
        sys.exit(1)

    elapsed = time.time() - start_time
    for unresolved in solver.unresolved_seeds:
        console.warning(f"Seed not found: {unresolved}")

    stats = solver.get_stats()
    stats["source_files"] = index.get_stats()["files"]
    console.success(f"Solved {len(seeds)} seed(s) into {len(dependencies)} file(s) in {elapsed:.1f}s")

    if dry_run:
        console.show_closure(dependencies)
        console.show_stats(stats)
        return

    try:
        create_project_structure(out)
        if config.solver.manifest:
            copy_manifest(base, out, config.solver.manifest)
        written = write_files(dependencies, out)
    except OSError as e:
        console.error(f"Could not write output: {e}")
        sys.exit(1)

    console.show_stats(stats)
    console.success(f"Wrote {len(written)} file(s) to {out}")


@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Manage DepSlice configuration."""
    root = _get_project_root(path)
    config = _load_config(root)

    if action == "show":
        console.console.print_json(json.dumps(config.model_dump(), indent=2))
    elif action == "get":
        if not key:
            console.error("Usage: depslice config get <key>")
            sys.exit(1)
        data = config.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                console.error(f"Unknown key: {key}")
                sys.exit(1)
        console.console.print(f"{key} = {data}")
    elif action == "set":
        if not key or value is None:
            console.error("Usage: depslice config set <key> <value>")
            sys.exit(1)
        # JSON first, so lists and null work
        try:
            parsed_value = json.loads(value)
        except json.JSONDecodeError:
            parsed_value = value
        try:
            config = set_config_value(config, key, parsed_value)
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except ValueError as e:
            console.error(f"Invalid value for {key}: {e}")
            sys.exit(1)
        save_config(root, config)
        console.success(f"Set {key} = {parsed_value}")


if __name__ == "__main__":
    main()
