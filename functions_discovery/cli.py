"""functions-discovery CLI: inspect a functions source directory.

Commands:
- detect: which runtime delegate applies, its runtime and SDK version
- validate: SDK and package.json sanity checks
- discover: print the discovered Build as JSON
- codebases: normalize and validate a functions project configuration
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn

import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from functions_discovery import project_config
from functions_discovery.errors import FunctionsError
from functions_discovery.logging import set_verbose
from functions_discovery.runtimes.base import get_runtime_delegate
from functions_discovery.types import DelegateContext

app = typer.Typer(add_completion=False, help="Discover deployable functions in source code")
console = Console()


def _context(
    path: str, project: str, runtime: str | None, project_dir: str | None
) -> DelegateContext:
    source = Path(path).resolve()
    return DelegateContext(
        project_id=project,
        project_dir=Path(project_dir).resolve() if project_dir else source.parent,
        source_dir=source,
        runtime=runtime,
    )


def _parse_env(pairs: list[str] | None) -> dict[str, str]:
    env: dict[str, str] = {}
    for kv in pairs or []:
        if "=" not in kv:
            raise typer.BadParameter(f"Expected KEY=VAL, got {kv!r}", param_hint="--env")
        k, v = kv.split("=", 1)
        env[k] = v
    return env


def _fail(e: FunctionsError) -> NoReturn:
    rprint(f"[red]Error:[/red] {escape(str(e))}")
    raise typer.Exit(code=1)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    set_verbose(verbose)


@app.command()
def detect(
    path: str = typer.Argument(".", help="Path to a functions source directory"),
    project: str = typer.Option("demo-project", "--project", help="Project id"),
    runtime: str | None = typer.Option(None, "--runtime", help="Requested runtime, e.g. nodejs20"),
) -> None:
    try:
        delegate = get_runtime_delegate(_context(path, project, runtime, None))
    except FunctionsError as e:
        _fail(e)

    table = Table(title="Runtime")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("delegate", delegate.name)
    table.add_row("runtime", delegate.runtime)
    table.add_row("sdk version", getattr(delegate, "sdk_version", "") or "<not found>")
    console.print(table)


@app.command()
def validate(
    path: str = typer.Argument(".", help="Path to a functions source directory"),
    project: str = typer.Option("demo-project", "--project", help="Project id"),
    runtime: str | None = typer.Option(None, "--runtime", help="Requested runtime"),
    project_dir: str | None = typer.Option(None, "--project-dir", help="Project root"),
) -> None:
    try:
        get_runtime_delegate(_context(path, project, runtime, project_dir)).validate()
    except FunctionsError as e:
        _fail(e)
    rprint("[green]Source directory is valid.[/green]")


@app.command()
def discover(
    path: str = typer.Argument(".", help="Path to a functions source directory"),
    project: str = typer.Option("demo-project", "--project", help="Project id"),
    runtime: str | None = typer.Option(None, "--runtime", help="Requested runtime"),
    project_dir: str | None = typer.Option(None, "--project-dir", help="Project root"),
    config: str | None = typer.Option(
        None, "--config", help="Runtime config as a JSON object", show_default=False
    ),
    env: list[str] | None = typer.Option(
        None, "--env", help="KEY=VAL env vars for the functions", show_default=False
    ),
    out: str | None = typer.Option(None, "--out", help="Write to file instead of stdout"),
) -> None:
    try:
        runtime_config = json.loads(config) if config else {}
    except ValueError as e:
        raise typer.BadParameter(f"--config is not valid JSON: {e}", param_hint="--config")

    try:
        delegate = get_runtime_delegate(_context(path, project, runtime, project_dir))
        delegate.validate()
        build = delegate.discover_build(runtime_config, _parse_env(env))
    except FunctionsError as e:
        _fail(e)

    payload = build.model_dump_json(indent=2)
    if out:
        Path(out).write_text(payload, encoding="utf-8")
        rprint(f"[green]Build written:[/green] {out}")
    else:
        print(payload)


@app.command()
def codebases(
    config_file: str = typer.Argument(..., help="JSON file holding the functions config"),
) -> None:
    try:
        raw = json.loads(Path(config_file).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise typer.BadParameter(f"Cannot read {config_file}: {e}", param_hint="config_file")

    try:
        configs = project_config.normalize_and_validate(raw)
    except FunctionsError as e:
        _fail(e)

    table = Table(title="Codebases")
    table.add_column("Codebase", style="cyan")
    table.add_column("Source")
    table.add_column("Runtime")
    for c in configs:
        table.add_row(project_config.codebase_of(c), c["source"], c.get("runtime") or "-")
    console.print(table)


if __name__ == "__main__":
    app()
