"""Recursive block operations over a field value as stored on a record.

The functions in ``cma_blocks.core.recursive`` expect a single-locale value.
These wrap them with ``cma_blocks.core.normalized`` so a localized value is
processed locale by locale. Paths of blocks found in a localized value start
with the locale: ``("en", 0, "attributes", "rich_text", 0)``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from cma_blocks.core import recursive
from cma_blocks.core.blocks import AsyncBlockCallback
from cma_blocks.core.normalized import (
    map_field_value_async,
    to_entries,
    visit_field_value_async,
)
from cma_blocks.core.recursive import TraversalDirection
from cma_blocks.models import BlockEntry, Field, TreePath

if TYPE_CHECKING:
    from cma_blocks.schema.repository import SchemaRepository

R = TypeVar("R")


def _locale_path(locale: str | None) -> TreePath:
    return (locale,) if locale is not None else ()


async def visit_blocks_in_field_value(
    repository: SchemaRepository,
    field: Field,
    value: Any,
    visitor: AsyncBlockCallback[None],
) -> None:
    async def _visit_locale(locale: str | None, locale_value: Any) -> None:
        await recursive.visit_blocks_recursive(
            repository, field.field_type, locale_value, visitor, _locale_path(locale)
        )

    await visit_field_value_async(field, value, _visit_locale)


async def map_blocks_in_field_value(
    repository: SchemaRepository,
    field: Field,
    value: Any,
    mapper: AsyncBlockCallback[Any],
    direction: TraversalDirection = TraversalDirection.TOP_DOWN,
) -> Any:
    async def _map_locale(locale: str | None, locale_value: Any) -> Any:
        return await recursive.map_blocks_recursive(
            repository, field.field_type, locale_value, mapper, _locale_path(locale), direction
        )

    return await map_field_value_async(field, value, _map_locale)


async def filter_blocks_in_field_value(
    repository: SchemaRepository,
    field: Field,
    value: Any,
    predicate: AsyncBlockCallback[bool],
    direction: TraversalDirection = TraversalDirection.TOP_DOWN,
) -> Any:
    """Filter blocks in every locale; locales themselves are never dropped."""

    async def _filter_locale(locale: str | None, locale_value: Any) -> Any:
        return await recursive.filter_blocks_recursive(
            repository, field.field_type, locale_value, predicate, _locale_path(locale), direction
        )

    return await map_field_value_async(field, value, _filter_locale)


async def find_all_blocks_in_field_value(
    repository: SchemaRepository,
    field: Field,
    value: Any,
    predicate: AsyncBlockCallback[bool],
) -> list[BlockEntry]:
    results: list[BlockEntry] = []
    for locale, locale_value in to_entries(field, value):
        results.extend(
            await recursive.find_all_blocks_recursive(
                repository, field.field_type, locale_value, predicate, _locale_path(locale)
            )
        )
    return results


async def reduce_blocks_in_field_value(
    repository: SchemaRepository,
    field: Field,
    value: Any,
    reducer: Callable[[R, Any, TreePath], R | Awaitable[R]],
    initial: R,
) -> R:
    accumulator = initial
    for locale, locale_value in to_entries(field, value):
        accumulator = await recursive.reduce_blocks_recursive(
            repository, field.field_type, locale_value, reducer, accumulator, _locale_path(locale)
        )
    return accumulator


async def some_blocks_in_field_value(
    repository: SchemaRepository,
    field: Field,
    value: Any,
    predicate: AsyncBlockCallback[bool],
) -> bool:
    for locale, locale_value in to_entries(field, value):
        if await recursive.some_blocks_recursive(
            repository, field.field_type, locale_value, predicate, _locale_path(locale)
        ):
            return True
    return False


async def every_block_in_field_value(
    repository: SchemaRepository,
    field: Field,
    value: Any,
    predicate: AsyncBlockCallback[bool],
) -> bool:
    for locale, locale_value in to_entries(field, value):
        if not await recursive.every_block_recursive(
            repository, field.field_type, locale_value, predicate, _locale_path(locale)
        ):
            return False
    return True
