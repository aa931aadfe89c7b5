from __future__ import annotations

from pathlib import Path
from typing import Callable

import typer
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..config import AppConfig, dump_config, load_config
from ..core import ConversionEngine
from ..errors import ConversionError
from ..handles import LocalHandleProvider
from ..models import BatchResult, BatchState, OutcomeStatus, Selection
from ..selection import drop_entries, select_files, select_folder

console = Console()

app = typer.Typer(help="Convert device media (HEIC, MOV, ...) to JPG/MP4 in place")


def _load_config(path: Path | None) -> AppConfig:
    return load_config(path)


def _load(engine: ConversionEngine, loader: Callable[[], Selection]) -> BatchState:
    try:
        return engine.scan(loader)
    except ConversionError as exc:
        console.print(f"[red]{exc.code}[/red]: {exc}")
        raise typer.Exit(1) from exc
    except FileNotFoundError as exc:
        console.print(f"[red]NOT_FOUND[/red]: {exc}")
        raise typer.Exit(1) from exc


def _run(engine: ConversionEngine, yes: bool) -> BatchResult | None:
    state = engine.state
    console.print(state.summary)
    console.print(f"Convertible files: {state.total_convertible}")
    if state.total_convertible == 0:
        console.print("Nothing to convert.")
        return None
    if not yes:
        typer.confirm("Originals will be replaced in place. Continue?", abort=True)

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        bar = progress.add_task("Converting", total=state.total_convertible)

        def _update(snapshot: BatchState) -> None:
            progress.update(bar, completed=snapshot.converted + snapshot.failed)

        engine.set_progress_callback(_update)
        try:
            result = engine.process_items()
        finally:
            engine.set_progress_callback(None)
    return result


def _report(result: BatchResult | None) -> None:
    if result is None:
        return
    failures = [outcome for outcome in result.outcomes if outcome.status is OutcomeStatus.FAILED]
    if failures:
        table = Table(title="Failures")
        table.add_column("File")
        table.add_column("Reason")
        table.add_column("Detail")
        for outcome in failures:
            table.add_row(outcome.task.relative_path, outcome.error_code or "-", outcome.message or "-")
        console.print(table)
    for warning in result.warnings:
        console.print(f"[yellow]{warning}[/yellow]")
    console.print(f"[green]{result.state.summary}[/green]")


@app.command()
def scan(
    folder: Path,
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    """List what a folder conversion would touch."""

    cfg = _load_config(config)
    engine = ConversionEngine(cfg)
    _load(engine, lambda: select_folder(LocalHandleProvider(), folder))
    table = Table(title=f"Files under {folder}")
    table.add_column("Path")
    table.add_column("Kind")
    for task in engine.tasks:
        table.add_row(task.relative_path, engine.classify(task).value)
    console.print(table)
    state = engine.state
    console.print(f"{state.summary} Convertible: {state.total_convertible}.")


@app.command()
def convert(
    path: list[Path],
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Convert folders (recursively) and files, replacing originals."""

    cfg = _load_config(config)
    engine = ConversionEngine(cfg)
    try:
        if len(path) == 1 and path[0].is_dir():
            _load(engine, lambda: select_folder(LocalHandleProvider(), path[0]))
        else:
            _load(engine, lambda: drop_entries(LocalHandleProvider(), path))
        _report(_run(engine, yes))
    finally:
        engine.close()


@app.command()
def files(
    path: list[Path],
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Convert individual files, overwriting their content under the same name.

    The name is kept, so a converted clip.mov holds MP4 data afterwards.
    """

    cfg = _load_config(config)
    engine = ConversionEngine(cfg)
    try:
        _load(engine, lambda: select_files(LocalHandleProvider(), path))
        _report(_run(engine, yes))
    finally:
        engine.close()


@app.command()
def show_config(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    console.print_json(dump_config(_load_config(config)))


@app.command()
def serve(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    """Run the local HTTP API."""

    import uvicorn

    from ..api import create_app

    cfg = _load_config(config)
    try:
        api = create_app(config)
    except RuntimeError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    uvicorn.run(api, host=cfg.api.host, port=cfg.api.port)


if __name__ == "__main__":
    app()
