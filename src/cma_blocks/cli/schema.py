import asyncio
from pathlib import Path
from typing import Annotated

import typer

from cma_blocks.cli._common import SCHEMA_OPTION_HELP, console, get_repository, render_table
from cma_blocks.core.field_types import field_shape
from cma_blocks.errors import NotFoundError

schema_app = typer.Typer(help="Inspect the models, fields and fieldsets of a schema snapshot.")


@schema_app.command("models")
def models(
    blocks: Annotated[
        bool | None,
        typer.Option("--blocks/--models", help="Only block models, or only regular models."),
    ] = None,
    schema: Annotated[Path | None, typer.Option(help=SCHEMA_OPTION_HELP)] = None,
) -> None:
    """List entity types."""
    repository = get_repository(schema)

    async def _run() -> None:
        if blocks is None:
            entity_types = await repository.get_all_entity_types()
        elif blocks:
            entity_types = await repository.get_all_block_models()
        else:
            entity_types = await repository.get_all_models()
        render_table(
            ["id", "api_key", "name", "block"],
            [(et.id, et.api_key, et.name or "", "yes" if et.modular_block else "no") for et in entity_types],
        )

    asyncio.run(_run())


@schema_app.command("fields")
def fields(
    api_key: Annotated[str, typer.Argument(help="API key of the model or block model.")],
    schema: Annotated[Path | None, typer.Option(help=SCHEMA_OPTION_HELP)] = None,
) -> None:
    """List the fields of one entity type."""
    repository = get_repository(schema)

    async def _run() -> None:
        try:
            entity_type = await repository.get_entity_type_by_api_key(api_key)
        except NotFoundError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1) from None
        rows = [
            (
                field.api_key,
                field.field_type,
                field_shape(field.field_type).value,
                "yes" if field.localized else "no",
            )
            for field in await repository.get_fields(entity_type)
        ]
        render_table(["api_key", "type", "shape", "localized"], rows)

    asyncio.run(_run())


@schema_app.command("fieldsets")
def fieldsets(
    api_key: Annotated[str, typer.Argument(help="API key of the model or block model.")],
    schema: Annotated[Path | None, typer.Option(help=SCHEMA_OPTION_HELP)] = None,
) -> None:
    """List the fieldsets of one entity type, in position order."""
    repository = get_repository(schema)

    async def _run() -> None:
        try:
            entity_type = await repository.get_entity_type_by_api_key(api_key)
        except NotFoundError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1) from None
        rows = [
            (fieldset.id, fieldset.title, fieldset.position, "yes" if fieldset.collapsible else "no")
            for fieldset in await repository.get_fieldsets(entity_type)
        ]
        render_table(["id", "title", "position", "collapsible"], rows)

    asyncio.run(_run())
