import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from cma_blocks.schema.repository import SchemaRepository
from cma_blocks.schema.snapshot import get_schema_source, get_snapshot_path

console = Console()

SCHEMA_OPTION_HELP = "Schema snapshot JSON. Defaults to $CMA_BLOCKS_SCHEMA_SNAPSHOT or ./schema.json."


def render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def get_repository(schema: Path | None) -> SchemaRepository:
    snapshot_path = schema if schema is not None else get_snapshot_path()
    try:
        return SchemaRepository(get_schema_source(snapshot_path))
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from None
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON in schema snapshot {snapshot_path}: {exc}[/red]")
        raise typer.Exit(1) from None
    except ValidationError as exc:
        console.print(f"[red]Malformed schema snapshot {snapshot_path}: {exc.error_count()} invalid value(s)[/red]")
        console.print(str(exc), markup=False)
        raise typer.Exit(1) from None
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from None
