"""Command line interface for refgraph."""

from __future__ import annotations

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from refgraph.config import AppConfig
from refgraph.errors import QueryError, SchemaError
from refgraph.index.store import RecordStore
from refgraph.ingestion.loader import make_loader
from refgraph.query import QueryExecutor
from refgraph.schema import load_catalogue
from refgraph.web.app import create_app


console = Console()
app = typer.Typer(help="refgraph - query API over cross-referencing datafiles")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_config(data: Optional[Path], schema_file: Optional[Path]) -> AppConfig:
    try:
        config = AppConfig.from_env()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if data is not None:
        config.data_path = data
    if schema_file is not None:
        config.schema_file = schema_file
    return config


def _load_store(config: AppConfig) -> RecordStore:
    store = RecordStore(make_loader(config.resolve_data_path(Path.cwd())))
    store.load()
    return store


@app.command()
def check(
    data: Path = typer.Option(None, "--data", help="Bundle file or datafiles directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Load the datafiles and report what was found."""
    _setup_logging(verbose)
    config = _build_config(data, None)
    store = _load_store(config)

    if not store.ready:
        console.print(f"[red]No datafiles loaded from {config.resolve_data_path(Path.cwd())}[/red]")
        raise typer.Exit(code=1)

    counts = Counter(record.schema for record in store.snapshot.records)
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Schema")
    table.add_column("Records", justify="right")
    for schema, count in sorted(counts.items()):
        table.add_row(schema, str(count))

    console.print(table)
    console.print(f"Loaded: {store.count}, sha256: {store.sha256}")


@app.command()
def query(
    selection_file: Path = typer.Argument(..., help="JSON file with the field selection"),
    data: Path = typer.Option(None, "--data", help="Bundle file or datafiles directory"),
    schema_file: Path = typer.Option(None, "--schema-file", help="Type catalogue YAML"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Run a selection against the datafiles and print the JSON result."""
    _setup_logging(verbose)
    try:
        selection = json.loads(selection_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Unable to read selection {selection_file}: {exc}") from exc

    config = _build_config(data, schema_file)
    try:
        catalogue = load_catalogue(config.schema_file)
    except SchemaError as exc:
        raise typer.BadParameter(str(exc)) from exc

    store = _load_store(config)
    if not store.ready:
        console.print("[red]No loaded data.[/red]")
        raise typer.Exit(code=1)

    try:
        result = QueryExecutor(store, catalogue).execute(selection)
    except QueryError as exc:
        raise typer.BadParameter(str(exc)) from exc

    console.print_json(json.dumps({"data": result}, default=str))


@app.command()
def serve(
    host: str = typer.Option(None, help="Host interface"),
    port: int = typer.Option(None, help="Server port"),
    data: Path = typer.Option(None, "--data", help="Bundle file or datafiles directory"),
    schema_file: Path = typer.Option(None, "--schema-file", help="Type catalogue YAML"),
) -> None:
    """Start the query server."""
    import uvicorn

    config = _build_config(data, schema_file)
    if host is not None:
        config.host = host
    if port is not None:
        config.port = port

    resolved = config.resolve_data_path(Path.cwd())
    if not resolved.exists():
        console.print("[yellow]Warning: datafiles not found, the server will report no data.[/yellow]")

    console.print(f"Starting server on http://{config.host}:{config.port} (datafiles: {resolved})")
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    app()
