"""Typer-based CLI for tsgraph: import graphs and syntax attention reports."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from . import __version__, config
from .orchestrator import Orchestrator
from .parser import GrammarNotAvailable
from .report import (
    attention_csv,
    attention_json,
    attention_log,
    dependency_csv,
    directory_dependency_csv,
    directory_dependency_uml,
    file_dependency_uml,
)
from .tree_report import TREE_MODES, render_tree

err_console = Console(stderr=True)

app = typer.Typer(
    help="tsgraph: import dependency graphs and syntax attention reports for TypeScript projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

TARGETS = ("file", "dir")
DEPS_MODES = ("csv", "uml")
SCAN_MODES = ("csv", "json", "log")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"tsgraph CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    """tsgraph CLI: follow TypeScript imports and annotate their syntax trees."""
    pass


def _choice(value: str, choices: tuple, option: str) -> str:
    if value not in choices:
        raise typer.BadParameter(f"must be one of: {', '.join(choices)}", param_hint=option)
    return value


def _setup(debug: bool = False) -> dict:
    settings = config.load_config()
    config.configure_logging("DEBUG" if debug else config.log_level(settings))
    return settings


def _base_dir(base: Optional[str], settings: dict) -> str:
    return base if base is not None else str(settings.get("base", ""))


@app.command("deps")
def deps(
    source: Path = typer.Argument(..., help="Entry file whose import closure is scanned."),
    base: Optional[str] = typer.Option(None, "--base", "-b", help="Directory paths are reported relative to."),
    target: str = typer.Option("file", "--target", "-t", help="Graph granularity: file or dir."),
    mode: str = typer.Option("csv", "--mode", "-m", help="Output format: csv or uml."),
    title: Optional[str] = typer.Option(None, "--title", help="Title for directory CSV and PlantUML output."),
    debug: bool = typer.Option(False, "--debug", help="Log at DEBUG level."),
):
    """Print the import dependency graph of SOURCE."""
    _choice(target, TARGETS, "--target")
    _choice(mode, DEPS_MODES, "--mode")
    settings = _setup(debug)
    title = title or str(settings.get("title", config.DEFAULT_TITLE))

    edges = Orchestrator(_base_dir(base, settings)).dependencies(source)
    if target == "file":
        output = dependency_csv(edges) if mode == "csv" else file_dependency_uml(edges, title)
    else:
        output = directory_dependency_csv(edges, title) if mode == "csv" else directory_dependency_uml(edges, title)
    typer.echo(output)


@app.command("imports")
def imports(
    source: Path = typer.Argument(..., help="Entry file whose import closure is scanned."),
    base: Optional[str] = typer.Option(None, "--base", "-b", help="Directory paths are reported relative to."),
    debug: bool = typer.Option(False, "--debug", help="Log at DEBUG level."),
):
    """Print the resolved import edges of SOURCE as JSON."""
    settings = _setup(debug)
    edges = Orchestrator(_base_dir(base, settings)).dependencies(source)
    typer.echo(json.dumps([asdict(edge) for edge in edges], indent=2))


@app.command("scan")
def scan(
    source: Path = typer.Argument(..., help="Entry file whose import closure is annotated."),
    base: Optional[str] = typer.Option(None, "--base", "-b", help="Directory paths are reported relative to."),
    mode: str = typer.Option("csv", "--mode", "-m", help="Output format: csv, json or log."),
    debug: bool = typer.Option(False, "--debug", help="Log every visited ancestor path."),
):
    """Annotate every file reachable from SOURCE with its attention nodes."""
    _choice(mode, SCAN_MODES, "--mode")
    settings = _setup(debug)

    try:
        edges, reports = Orchestrator(_base_dir(base, settings)).attention(source)
    except GrammarNotAvailable as exc:
        raise typer.BadParameter(str(exc)) from exc

    if mode == "csv":
        typer.echo(attention_csv(reports))
    elif mode == "json":
        typer.echo(attention_json(reports))
    else:
        typer.echo(attention_log(reports, edges))


@app.command("tree")
def tree(
    source: Path = typer.Argument(..., help="File to dump."),
    mode: str = typer.Option("tree", "--mode", "-m", help=f"Dump format: {', '.join(TREE_MODES)}."),
    debug: bool = typer.Option(False, "--debug", help="Log at DEBUG level."),
):
    """Dump the flattened syntax tree of a single file."""
    _choice(mode, TREE_MODES, "--mode")
    _setup(debug)

    try:
        nodes = Orchestrator().file_tree(source)
    except (OSError, UnicodeDecodeError) as exc:
        err_console.print(f"[red]Could not read {source}:[/red] {exc}")
        raise typer.Exit(code=1)
    except GrammarNotAvailable as exc:
        raise typer.BadParameter(str(exc)) from exc

    typer.echo(render_tree(nodes, str(source), mode))


if __name__ == "__main__":
    app()
