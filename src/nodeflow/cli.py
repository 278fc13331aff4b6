# src/nodeflow/cli.py
"""nodeflow Command Line Interface.

Entry point for the nodeflow CLI tool.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError

from nodeflow import __version__
from nodeflow.contracts.errors import GraphValidationError, OperationNotFoundError, UsageError
from nodeflow.core.config import NodeflowSettings, load_settings

__all__ = [
    "app",
]

app = typer.Typer(
    name="nodeflow",
    help="nodeflow: pull-based data-flow graphs of Python operations.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"nodeflow version {__version__}")
        raise typer.Exit()


def _parse_params(pairs: list[str]) -> dict[str, object]:
    """Parse ``key=value`` pairs; values are read as literals when they look like one."""
    from nodeflow.engine.binder import parse_literal

    params: dict[str, object] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            typer.echo(f"Error: --param expects key=value, got '{pair}'", err=True)
            raise typer.Exit(1)
        try:
            params[key.strip()] = parse_literal(raw) if raw else ""
        except ValueError:
            params[key.strip()] = raw
    return params


def _load_settings_or_exit(settings: Path | None) -> NodeflowSettings:
    if settings is None:
        return NodeflowSettings()
    try:
        return load_settings(settings.expanduser())
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """nodeflow: pull-based data-flow graphs of Python operations."""
    from nodeflow.core.config import LoggingSettings
    from nodeflow.core.logging import configure_logging

    configure_logging(LoggingSettings(level="WARNING", json_output=json_logs), verbose=verbose)
    ctx.obj = {"verbose": verbose, "json_logs": json_logs}


@app.command()
def run(
    ctx: typer.Context,
    graph: Path = typer.Argument(..., help="Path to a graph document (YAML or JSON)."),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    param: list[str] = typer.Option(
        [],
        "--param",
        "-p",
        help="Run parameter as key=value (repeatable).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Build and validate the graph without running it.",
    ),
) -> None:
    """Run a graph document and print the run result as JSON.

    Exits with status 1 when any node failed.
    """
    from nodeflow.core.logging import configure_logging
    from nodeflow.engine.binder import ParameterBinder
    from nodeflow.engine.builder import build_graph, load_graph_document
    from nodeflow.engine.expression import build_evaluator
    from nodeflow.engine.runner import GraphRunner
    from nodeflow.plugins.manager import build_registry

    config = _load_settings_or_exit(settings)
    options = ctx.obj or {}
    if settings is not None:
        logging_settings = config.logging
        if options.get("json_logs"):
            logging_settings = logging_settings.model_copy(update={"json_output": True})
        configure_logging(logging_settings, verbose=bool(options.get("verbose")))
    params = _parse_params(param)

    try:
        document = load_graph_document(graph.expanduser())
        registry = build_registry(config.registry)
        built = build_graph(
            document,
            registry,
            binder=ParameterBinder(build_evaluator(config.templates)),
            validate=config.engine.validate_graph,
        )
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except yaml.YAMLError as e:
        typer.echo(f"YAML syntax error in {graph}: {e}", err=True)
        raise typer.Exit(1) from None
    except json.JSONDecodeError as e:
        typer.echo(f"JSON syntax error in {graph}: {e}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Graph document errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None
    except (OperationNotFoundError, GraphValidationError) as e:
        typer.echo(f"Graph error: {e}", err=True)
        raise typer.Exit(1) from None

    if dry_run:
        typer.echo(f"Graph is valid: {len(built)} nodes, {built.edge_count} connections")
        inputs = built.discover_inputs()
        if inputs:
            typer.echo(f"Run parameters: {', '.join(inputs)}")
        return

    try:
        result = asyncio.run(GraphRunner(built).run(params))
    except UsageError as e:
        typer.echo(f"Error during graph run: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(json.dumps(result.to_dict(), indent=2, default=str))
    if not result.succeeded:
        raise typer.Exit(1)


@app.command()
def operations(
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    category: str | None = typer.Option(
        None,
        "--category",
        "-c",
        help="Only list operations in this category.",
    ),
) -> None:
    """List registered operations with their ports."""
    from nodeflow.plugins.manager import build_registry

    registry = build_registry(_load_settings_or_exit(settings).registry)
    for spec in registry:
        if category is not None and spec.category.lower() != category.lower():
            continue
        ports = f" [ports: {', '.join(spec.ports)}]" if spec.ports else ""
        typer.echo(f"{spec.type_tag:<20} {spec.category:<12}{ports}")


if __name__ == "__main__":
    app()
