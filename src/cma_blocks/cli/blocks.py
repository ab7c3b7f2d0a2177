"""Commands that walk, copy and build blocks read from JSON files."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer

from cma_blocks.cli._common import SCHEMA_OPTION_HELP, console, get_repository, render_table
from cma_blocks.core.duplicate import duplicate_block_record
from cma_blocks.core.field_types import is_block_field
from cma_blocks.core.field_values import find_all_blocks_in_field_value
from cma_blocks.core.ids import generate_id
from cma_blocks.core.items import block_form, block_item_type_id, build_block_record, is_block_object
from cma_blocks.errors import CmaBlocksError
from cma_blocks.schema.repository import SchemaRepository

logger = logging.getLogger(__name__)

blocks_app = typer.Typer(help="Inspect, copy and build the blocks embedded in records.")


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1) from None
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON in {path}: {exc}[/red]")
        raise typer.Exit(1) from None


def _format_path(path: tuple[Any, ...]) -> str:
    return ".".join(str(segment) for segment in path)


async def _block_rows(repository: SchemaRepository, record: dict[str, Any]) -> list[tuple[str, str, str, str]]:
    entity_type = await repository.get_entity_type_by_id(block_item_type_id(record))
    attributes = record.get("attributes") or {}
    rows: list[tuple[str, str, str, str]] = []

    for field in await repository.get_fields(entity_type):
        if not is_block_field(field) or field.api_key not in attributes:
            continue
        entries = await find_all_blocks_in_field_value(
            repository, field, attributes[field.api_key], lambda _item, _path: True
        )
        logger.debug("Field %s holds %d blocks", field.api_key, len(entries))
        for item, path in entries:
            if is_block_object(item):
                model = (await repository.get_entity_type_by_id(block_item_type_id(item))).api_key
                block_id = item.get("id") or ""
            else:
                model, block_id = "?", item
            rows.append((_format_path((field.api_key, *path)), model, block_id, block_form(item).value))
    return rows


@blocks_app.command("list")
def list_blocks(
    record_json: Annotated[Path, typer.Argument(help="JSON file holding one record as returned by the API.")],
    schema: Annotated[Path | None, typer.Option(help=SCHEMA_OPTION_HELP)] = None,
) -> None:
    """List every block in a record, nested blocks included."""
    repository = get_repository(schema)
    record = _read_json(record_json)

    async def _run() -> None:
        try:
            rows = await _block_rows(repository, record)
        except CmaBlocksError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1) from None
        render_table(["path", "model", "id", "form"], rows)

    asyncio.run(_run())


@blocks_app.command("duplicate")
def duplicate(
    block_json: Annotated[Path, typer.Argument(help="JSON file holding one block with its nested blocks.")],
    schema: Annotated[Path | None, typer.Option(help=SCHEMA_OPTION_HELP)] = None,
) -> None:
    """Print a request payload that creates a copy of a block."""
    repository = get_repository(schema)
    block = _read_json(block_json)

    async def _run() -> None:
        try:
            payload = await duplicate_block_record(repository, block)
        except CmaBlocksError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1) from None
        console.print_json(data=payload)

    asyncio.run(_run())


@blocks_app.command("build")
def build(
    body_json: Annotated[Path, typer.Argument(help="JSON file holding a flat block body with an item_type.")],
    new_id: Annotated[bool, typer.Option("--new-id", help="Give the block a freshly generated ID.")] = False,
) -> None:
    """Print the block object for a flat block body."""
    body = _read_json(body_json)
    if not isinstance(body, dict):
        console.print(f"[red]Expected a JSON object in {body_json}[/red]")
        raise typer.Exit(1)
    if new_id:
        body = {**body, "id": generate_id()}
    try:
        record = build_block_record(body)
    except CmaBlocksError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from None
    console.print_json(data=record)
