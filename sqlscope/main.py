"""sqlscope CLI - Main entry point."""

import json
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import settings
from .errors import ExplorerError
from .logging import configure_logging
from .registry import ConnectionDescriptor, ConnectionRegistry
from .service import ExplorerService

app = typer.Typer(
    name="sqlscope",
    help="Explore and query SQLite, libSQL, DuckDB, PostgreSQL, MySQL, ClickHouse and Snowflake databases",
    add_completion=False,
)

console = Console()

TARGET_HELP = "Database file, connection URL, or 'preview' for the sample database"


@contextmanager
def open_service(target: str) -> Iterator[ExplorerService]:
    """Open the target, yield a service over it, and always close it."""
    try:
        descriptor = ConnectionDescriptor.from_url(target)
        registry = ConnectionRegistry.open(descriptor, settings)
    except ExplorerError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        raise typer.Exit(1)

    try:
        yield ExplorerService(registry, settings)
    except ExplorerError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        raise typer.Exit(1)
    finally:
        registry.close()


def _cell(value: Any) -> str:
    if value is None:
        return "[dim]NULL[/dim]"
    if isinstance(value, list):
        return f"<{len(value)} bytes>"
    return escape(str(value))


def _print_rows(columns: List[str], rows: List[List[Any]], title: Optional[str] = None):
    table = Table(title=title)
    for column in columns:
        table.add_column(column, style="cyan", overflow="fold")
    for row in rows:
        table.add_row(*[_cell(v) for v in row])
    console.print(table)


def _print_json(data: Dict[str, Any]):
    console.print_json(json.dumps(data, default=str))


def _print_counts(title: str, counts: List[Dict[str, Any]]):
    if not counts:
        return
    table = Table(title=title)
    table.add_column("Table", style="cyan")
    table.add_column("Count", style="green", justify="right")
    for entry in counts:
        table.add_row(entry["name"], str(entry["count"]))
    console.print(table)


@app.command()
def overview(
    target: str = typer.Argument(..., help=TARGET_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Show database-wide statistics."""
    with open_service(target) as service:
        data = service.overview()

    if as_json:
        _print_json(data)
        return

    def show(value: Any) -> str:
        return "n/a" if value is None else str(value)

    lines = [
        f"[bold]Backend:[/bold] {data['backend']}",
        f"[bold]Version:[/bold] {show(data['version'])}",
        f"[bold]Size:[/bold] {show(data['db_size'])}",
        f"[bold]Created:[/bold] {show(data['created'])}",
        f"[bold]Modified:[/bold] {show(data['modified'])}",
        f"[bold]Tables:[/bold] {data['tables']}",
        f"[bold]Indexes:[/bold] {show(data['indexes'])}",
        f"[bold]Views:[/bold] {show(data['views'])}",
        f"[bold]Triggers:[/bold] {show(data['triggers'])}",
    ]
    console.print(Panel("\n".join(lines), title=data["file_name"], expand=False))

    row_title = "Rows per table (estimated)" if data["row_counts_estimated"] else "Rows per table"
    _print_counts(row_title, data["row_counts"])
    _print_counts("Columns per table", data["column_counts"])
    _print_counts("Indexes per table", data["index_counts"])


@app.command()
def tables(
    target: str = typer.Argument(..., help=TARGET_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """List tables with their row counts."""
    with open_service(target) as service:
        data = service.tables()

    if as_json:
        _print_json(data)
        return

    table = Table(title="Tables")
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="green", justify="right")
    for entry in data["tables"]:
        count = f"~{entry['count']}" if entry["count_is_estimate"] else str(entry["count"])
        table.add_row(entry["name"], count)
    console.print(table)


@app.command()
def describe(
    target: str = typer.Argument(..., help=TARGET_HELP),
    name: str = typer.Argument(..., help="Table name"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Show a table's columns and metadata."""
    with open_service(target) as service:
        data = service.table(name)

    if as_json:
        _print_json(data)
        return

    count = f"~{data['row_count']}" if data["row_count_is_estimate"] else str(data["row_count"])
    console.print(f"[bold]{data['name']}[/bold]  rows: {count}  columns: {data['column_count']}"
                  f"  indexes: {data['index_count'] if data['index_count'] is not None else 'n/a'}"
                  f"  size: {data['table_size'] or 'n/a'}")

    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Column", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Nullable")
    table.add_column("PK")
    for column in data["columns"]:
        table.add_row(
            str(column["ordinal_position"]),
            column["name"],
            column["data_type"],
            "yes" if column["is_nullable"] else "no",
            "yes" if column["is_primary_key"] else "",
        )
    console.print(table)

    if data["sql"]:
        console.print(Panel(data["sql"], title="DDL", expand=False))


@app.command()
def data(
    target: str = typer.Argument(..., help=TARGET_HELP),
    name: str = typer.Argument(..., help="Table name"),
    page: int = typer.Option(1, "--page", "-p", help="Page number, starting at 1"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Show one page of a table's rows."""
    with open_service(target) as service:
        result = service.table_data(name, page)

    if as_json:
        _print_json(result)
        return

    _print_rows(result["columns"], result["rows"], title=f"{name} (page {result['page']})")
    if result["has_more"]:
        console.print(f"[dim]More rows on page {result['page'] + 1}[/dim]")


@app.command()
def query(
    target: str = typer.Argument(..., help=TARGET_HELP),
    sql: str = typer.Argument(..., help="Statement to execute"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Execute a statement and print its result."""
    with open_service(target) as service:
        result = service.query(sql)

    if "error" in result:
        console.print(f"[red]Query failed: {escape(result['error']['message'])}[/red]")
        raise typer.Exit(1)

    if as_json:
        _print_json(result)
        return

    if not result["columns"]:
        console.print("[green]Statement executed[/green]")
        return
    _print_rows(result["columns"], result["rows"])
    console.print(f"[dim]{len(result['rows'])} row(s)[/dim]")


@app.command()
def schema(
    target: str = typer.Argument(..., help=TARGET_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Show tables and the foreign-key relationships between them."""
    with open_service(target) as service:
        data = service.schema()

    if as_json:
        _print_json(data)
        return

    table = Table(title="Relationships")
    table.add_column("From", style="cyan")
    table.add_column("To", style="green")
    for rel in data["relationships"]:
        table.add_row(f"{rel['from_table']}.{rel['from_column']}", f"{rel['to_table']}.{rel['to_column']}")
    console.print(f"[bold]{len(data['tables'])} tables[/bold]")
    console.print(table)


@app.command()
def autocomplete(
    target: str = typer.Argument(..., help=TARGET_HELP),
):
    """Print the table and column name index as JSON."""
    with open_service(target) as service:
        data = service.autocomplete()
    _print_json(data)


@app.command()
def config():
    """Show current configuration."""
    console.print("[bold]Current Configuration[/bold]")
    console.print(f"  Version: {__version__}")
    console.print(f"  Page size: {settings.page_size}")
    console.print(f"  Pool max size: {settings.pool_max_size}")
    console.print(f"  File pool size: {settings.file_pool_size}")
    console.print(f"  Exact row counts: {'Yes' if settings.exact_row_counts else 'No'}")
    console.print(f"  PostgreSQL schema: {settings.postgres_schema}")
    console.print(f"  DuckDB schema: {settings.duckdb_schema}")
    console.print(f"  Allow shutdown: {'Yes' if settings.allow_shutdown else 'No'}")
    console.print(f"  Preview path: {settings.preview_path}")
    console.print(f"  Log level: {settings.log_level}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    sqlscope - browse and query SQL databases from the terminal.

    Examples:

        sqlscope tables preview

        sqlscope describe ./chinook.db tracks

        sqlscope data postgresql://localhost/shop orders --page 2

        sqlscope query warehouse.duckdb "SELECT count(*) FROM events"
    """
    configure_logging("DEBUG" if verbose else settings.log_level)


if __name__ == "__main__":
    app()
