"""Command-line interface for smite."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from smite import __version__
from smite.config import (
    ProjectConfig,
    find_project_root,
    get_smite_dir,
    load_config,
    save_config,
    set_config_value,
)
from smite.exceptions import ConfigError, SmiteError
from smite.ui.console import Console

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
            "No smite project found. Run 'smite init' first, "
            "or specify a path with --path."
        )
        sys.exit(1)
    return root


def _load_config(root: Path) -> ProjectConfig:
    try:
        return load_config(root)
    except ConfigError as e:
        console.error(str(e))
        sys.exit(1)


def _load_scheduler(root: Path, prd: str | None):
    """Load the work-item document and build a scheduler over it."""
    from smite.ralph import BatchScheduler, WorkItemGraph, load_project
    from smite.ralph.loader import default_prd_path

    config = _load_config(root)
    prd_path = Path(prd) if prd else default_prd_path(root, config.scheduler.prd_file)
    try:
        project = load_project(prd_path)
        graph = WorkItemGraph.from_project(project)
    except SmiteError as e:
        console.error(str(e))
        sys.exit(1)
    return project, BatchScheduler(graph, fingerprint=config.scheduler.fingerprint)


@click.group()
@click.version_option(version=__version__, prog_name="smite")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """smite - parallel work planning and routed code search."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
def init(path: str | None):
    """Initialize smite for a repository."""
    root = Path(path or ".").resolve()
    if not root.exists():
        console.error(f"Path does not exist: {root}")
        sys.exit(1)

    console.banner()
    console.info(f"Initializing smite for: {root}")

    config = _load_config(root)
    config.name = root.name
    config.root_path = str(root)
    save_config(root, config)
    console.success(f"Configuration saved to {get_smite_dir(root)}")

    prd_path = get_smite_dir(root) / config.scheduler.prd_file
    if not prd_path.exists():
        console.info(f"Add your work items to {prd_path} and run 'smite plan'.")


# =========================================================================
# Scheduling
# =========================================================================

@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--prd", default=None, help="Path to the work-item document.")
def plan(path: str | None, prd: str | None):
    """Compute the parallel execution plan for pending work items."""
    root = _get_project_root(path)
    project, scheduler = _load_scheduler(root, prd)

    try:
        batches = scheduler.generate_batches()
        summary = scheduler.execution_summary()
    except SmiteError as e:
        console.error(str(e))
        sys.exit(1)

    if not batches:
        console.success(f"All work items in '{project.project}' are complete.")
        return
    console.show_batches(batches)
    console.show_summary(summary)


@main.command("next")
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--prd", default=None, help="Path to the work-item document.")
@click.option("--prompt", "show_prompt", is_flag=True, help="Print the agent prompt for each item.")
def next_cmd(path: str | None, prd: str | None, show_prompt: bool):
    """Show the batch that can run right now."""
    from smite.ralph.loader import render_prompt

    root = _get_project_root(path)
    _, scheduler = _load_scheduler(root, prd)

    batch = scheduler.next_batch()
    if batch is None:
        if scheduler.graph.pending_ids():
            console.warning(
                "Nothing is runnable. Blocked: " + ", ".join(scheduler.blocked_ids())
            )
            sys.exit(1)
        console.success("All work items are complete.")
        return

    console.show_batch(batch)
    if show_prompt:
        for item in batch.items:
            console.console.print(render_prompt(item), markup=False)


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--prd", default=None, help="Path to the work-item document.")
@click.option("--tree", is_flag=True, help="Show the dependencies as a tree.")
def visualize(path: str | None, prd: str | None, tree: bool):
    """Show the dependency graph and plan summary."""
    root = _get_project_root(path)
    project, scheduler = _load_scheduler(root, prd)

    if tree:
        console.show_dependency_tree(scheduler.graph.items, title=project.project)
        return
    try:
        console.console.print(scheduler.visualize(), markup=False, highlight=False)
    except SmiteError as e:
        console.error(str(e))
        sys.exit(1)


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--prd", default=None, help="Path to the work-item document.")
def status(path: str | None, prd: str | None):
    """Show the status of every work item."""
    root = _get_project_root(path)
    project, scheduler = _load_scheduler(root, prd)

    graph = scheduler.graph
    console.show_status(graph.items, scheduler.blocked_ids())
    console.info(
        f"{len(graph.completed_ids())}/{len(graph)} complete, "
        f"{len(graph.failed_ids())} failed"
    )


# =========================================================================
# Search
# =========================================================================

@main.command()
@click.argument("query")
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option(
    "--strategy", "-s",
    type=click.Choice(["auto", "literal", "semantic", "hybrid"]),
    default="auto",
    help="Search strategy.",
)
@click.option(
    "--format", "fmt",
    type=click.Choice(["rich", "json", "table", "diff", "summary"]),
    default="rich",
    help="Output format.",
)
@click.option("--file-pattern", "-f", multiple=True, help="Glob on file paths (repeatable).")
@click.option("--language", "-l", multiple=True, help="Restrict to languages (repeatable).")
@click.option("--max-results", "-n", type=int, default=None, help="Maximum results.")
@click.option("--regex", is_flag=True, help="Treat the query as a regular expression.")
@click.option("--no-cache", is_flag=True, help="Bypass the semantic cache.")
@click.option("--stats", is_flag=True, help="Show search cache statistics after the results.")
def search(
    query: str,
    path: str | None,
    strategy: str,
    fmt: str,
    file_pattern: tuple[str, ...],
    language: tuple[str, ...],
    max_results: int | None,
    regex: bool,
    no_cache: bool,
    stats: bool,
):
    """Search the codebase, routing the query to the best strategy."""
    from smite.search import SearchFilters, SearchOptions, SearchRouter, SearchStrategy
    from smite.search.formatting import format_results

    root = Path(path).resolve() if path else (find_project_root() or Path.cwd())
    config = _load_config(root)
    router = SearchRouter.from_config(root, config)

    options = SearchOptions(
        strategy=SearchStrategy(strategy),
        max_results=max_results,
        regex=regex,
        use_cache=False if no_cache else None,
        filters=SearchFilters(file_patterns=list(file_pattern), languages=list(language)),
    )
    response = router.search(query, options)
    if not response.success:
        console.error(f"Search failed: {response.error}")
        sys.exit(1)

    if fmt == "rich":
        console.show_search_results(response)
    else:
        click.echo(format_results(response.results, fmt))

    if stats:
        console.show_cache_stats(router.cache_stats())


# =========================================================================
# Config Management
# =========================================================================

@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Manage smite configuration."""
    root = _get_project_root(path)
    config = _load_config(root)

    if action == "show":
        console.console.print_json(json.dumps(config.model_dump(), indent=2))
    elif action == "get":
        if not key:
            console.error("Usage: smite config get <key>")
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
            console.error("Usage: smite config set <key> <value>")
            sys.exit(1)
        # Non-string values are passed as JSON
        try:
            parsed_value = json.loads(value)
        except json.JSONDecodeError:
            parsed_value = value

        try:
            config = set_config_value(config, key, parsed_value)
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except ConfigError as e:
            console.error(str(e))
            sys.exit(1)
        save_config(root, config)
        console.success(f"Set {key} = {parsed_value}")


if __name__ == "__main__":
    main()
