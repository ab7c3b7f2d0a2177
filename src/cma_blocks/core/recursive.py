"""Block operations that descend into blocks nested inside other blocks.

Each function walks the blocks of one single-locale field value, and for every
block given as a full object asks the ``SchemaRepository`` for the fields of
its block model, then repeats on each of those attributes. Blocks given as a
bare ID have no attributes to descend into and are handed to the callback as
leaves; callbacks that need a full object should use
``cma_blocks.core.items.require_block_object``.

Paths are relative to the value passed in: a block nested at index 0 of the
``rich_text`` field of the block at index 0 is reported at
``(0, "attributes", "rich_text", 0)``.

``visit`` handles each block and then everything nested in it before moving to
the next sibling. ``find_all``, ``find``, ``reduce``, ``some`` and ``every``
check all the blocks of a value first and only then descend into each of them,
so for ``[P0[C0], P1]`` the order is P0, P1, C0.

Callbacks may be plain or coroutine functions. They are awaited one at a time,
left to right, so shared state in a callback is never touched concurrently.
``map`` and ``filter`` accept a ``TraversalDirection``:

- ``TOP_DOWN`` (default): a block is handled before the blocks nested in it,
  so its callback sees the original, unprocessed nested blocks.
- ``BOTTOM_UP``: nested blocks are handled first, so the callback sees them
  already processed.

Inputs are never mutated; ``map`` and ``filter`` return new containers.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from cma_blocks.core.awaitables import resolve
from cma_blocks.core.blocks import (
    AsyncBlockCallback,
    filter_blocks_async,
    find_all_blocks_async,
    find_block_async,
    iter_blocks,
    map_blocks_async,
    reduce_blocks_async,
)
from cma_blocks.core.field_types import FieldType
from cma_blocks.core.items import block_item_type_id, is_block_object
from cma_blocks.models import BlockEntry, Field, TreePath

if TYPE_CHECKING:
    from cma_blocks.schema.repository import SchemaRepository

R = TypeVar("R")

_Rewrite = Callable[[str, Any, TreePath], Awaitable[Any]]


class TraversalDirection(str, Enum):
    TOP_DOWN = "top-down"
    BOTTOM_UP = "bottom-up"


async def _nested_fields(repository: SchemaRepository, item: Any) -> list[Field]:
    if not is_block_object(item):
        return []
    entity_type = await repository.get_entity_type_by_id(block_item_type_id(item))
    return await repository.get_fields(entity_type)


def _attribute_path(block_path: TreePath, field: Field) -> TreePath:
    return (*block_path, "attributes", field.api_key)


async def _rewrite_attributes(
    repository: SchemaRepository,
    item: Any,
    block_path: TreePath,
    rewrite: _Rewrite,
) -> Any:
    """Return a copy of ``item`` with every attribute passed through ``rewrite``.

    Attributes the block does not carry are left absent. Bare IDs come back
    unchanged.
    """
    fields = await _nested_fields(repository, item)
    if not fields:
        return item
    attributes = dict(item["attributes"] or {})
    for field in fields:
        if field.api_key in attributes:
            attributes[field.api_key] = await rewrite(
                field.field_type, attributes[field.api_key], _attribute_path(block_path, field)
            )
    return {**item, "attributes": attributes}


async def _iter_nested_values(
    repository: SchemaRepository, item: Any, block_path: TreePath
) -> AsyncIterator[tuple[str, Any, TreePath]]:
    attributes = (item["attributes"] or {}) if is_block_object(item) else {}
    for field in await _nested_fields(repository, item):
        yield field.field_type, attributes.get(field.api_key), _attribute_path(block_path, field)


async def iter_blocks_recursive(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    path: TreePath = (),
) -> AsyncIterator[BlockEntry]:
    """Yield every block at any depth, each block before the blocks nested in it."""
    for item, inner_path in iter_blocks(field_type, value):
        block_path = (*path, *inner_path)
        yield BlockEntry(item, block_path)
        async with aclosing(_iter_nested_values(repository, item, block_path)) as nested_values:
            async for nested_type, nested_value, nested_path in nested_values:
                async with aclosing(
                    iter_blocks_recursive(repository, nested_type, nested_value, nested_path)
                ) as entries:
                    async for entry in entries:
                        yield entry


async def _iter_level_values(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    path: TreePath,
) -> AsyncIterator[tuple[str, Any, TreePath]]:
    """Yield the attributes of every block of one level, block by block."""
    for item, inner_path in iter_blocks(field_type, value):
        async with aclosing(_iter_nested_values(repository, item, (*path, *inner_path))) as nested_values:
            async for nested in nested_values:
                yield nested


def _prefixed(path: TreePath, callback: Callable[..., Any]) -> Callable[..., Any]:
    def _call(*args: Any) -> Any:
        *head, inner_path = args
        return callback(*head, (*path, *inner_path))

    return _call


async def visit_blocks_recursive(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    visitor: AsyncBlockCallback[None],
    path: TreePath = (),
) -> None:
    async with aclosing(iter_blocks_recursive(repository, field_type, value, path)) as entries:
        async for item, block_path in entries:
            await resolve(visitor(item, block_path))


async def find_all_blocks_recursive(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    predicate: AsyncBlockCallback[bool],
    path: TreePath = (),
) -> list[BlockEntry]:
    """Return every matching block, level by level within each field.

    The blocks of ``value`` itself are checked first, then the blocks nested
    in each of them in turn, so for ``[P0[C0], P1]`` the order is P0, P1, C0.
    """
    found = await find_all_blocks_async(field_type, value, _prefixed(path, predicate))
    results = [BlockEntry(item, (*path, *inner_path)) for item, inner_path in found]
    async with aclosing(_iter_level_values(repository, field_type, value, path)) as nested_values:
        async for nested_type, nested_value, nested_path in nested_values:
            results.extend(
                await find_all_blocks_recursive(repository, nested_type, nested_value, predicate, nested_path)
            )
    return results


async def find_block_recursive(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    predicate: AsyncBlockCallback[bool],
    path: TreePath = (),
) -> BlockEntry | None:
    """Return the first block ``find_all_blocks_recursive`` would, or ``None``."""
    entry = await find_block_async(field_type, value, _prefixed(path, predicate))
    if entry is not None:
        return BlockEntry(entry.item, (*path, *entry.path))
    async with aclosing(_iter_level_values(repository, field_type, value, path)) as nested_values:
        async for nested_type, nested_value, nested_path in nested_values:
            entry = await find_block_recursive(repository, nested_type, nested_value, predicate, nested_path)
            if entry is not None:
                return entry
    return None


async def reduce_blocks_recursive(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    reducer: Callable[[R, Any, TreePath], R | Awaitable[R]],
    initial: R,
    path: TreePath = (),
) -> R:
    """Fold every block into ``initial`` in ``find_all_blocks_recursive`` order."""
    accumulator = await reduce_blocks_async(field_type, value, _prefixed(path, reducer), initial)
    async with aclosing(_iter_level_values(repository, field_type, value, path)) as nested_values:
        async for nested_type, nested_value, nested_path in nested_values:
            accumulator = await reduce_blocks_recursive(
                repository, nested_type, nested_value, reducer, accumulator, nested_path
            )
    return accumulator


async def some_blocks_recursive(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    predicate: AsyncBlockCallback[bool],
    path: TreePath = (),
) -> bool:
    return await find_block_recursive(repository, field_type, value, predicate, path) is not None


async def every_block_recursive(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    predicate: AsyncBlockCallback[bool],
    path: TreePath = (),
) -> bool:
    async def _fails(item: Any, block_path: TreePath) -> bool:
        return not await resolve(predicate(item, block_path))

    return not await some_blocks_recursive(repository, field_type, value, _fails, path)


# -- map ----------------------------------------------------------------------


async def _map_top_down(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    mapper: AsyncBlockCallback[Any],
    path: TreePath,
) -> Any:
    async def _descend(nested_type: str, nested_value: Any, nested_path: TreePath) -> Any:
        return await _map_top_down(repository, nested_type, nested_value, mapper, nested_path)

    async def _map_item(item: Any, inner_path: TreePath) -> Any:
        block_path = (*path, *inner_path)
        mapped = await resolve(mapper(item, block_path))
        return await _rewrite_attributes(repository, mapped, block_path, _descend)

    return await map_blocks_async(field_type, value, _map_item)


async def _map_bottom_up(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    mapper: AsyncBlockCallback[Any],
    path: TreePath,
) -> Any:
    async def _descend(nested_type: str, nested_value: Any, nested_path: TreePath) -> Any:
        return await _map_bottom_up(repository, nested_type, nested_value, mapper, nested_path)

    async def _map_item(item: Any, inner_path: TreePath) -> Any:
        block_path = (*path, *inner_path)
        updated = await _rewrite_attributes(repository, item, block_path, _descend)
        return await resolve(mapper(updated, block_path))

    return await map_blocks_async(field_type, value, _map_item)


async def map_blocks_recursive(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    mapper: AsyncBlockCallback[Any],
    path: TreePath = (),
    direction: TraversalDirection = TraversalDirection.TOP_DOWN,
) -> Any:
    """Replace every block at any depth with ``mapper``'s result.

    Top-down recursion follows the block returned by ``mapper``, so a mapper
    that returns a bare ID prunes everything below it.
    """
    if TraversalDirection(direction) is TraversalDirection.BOTTOM_UP:
        return await _map_bottom_up(repository, field_type, value, mapper, path)
    return await _map_top_down(repository, field_type, value, mapper, path)


# -- filter -------------------------------------------------------------------


async def _filter_top_down(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    predicate: AsyncBlockCallback[bool],
    path: TreePath,
) -> Any:
    keep: dict[TreePath, bool] = {}

    async def _descend(nested_type: str, nested_value: Any, nested_path: TreePath) -> Any:
        return await _filter_top_down(repository, nested_type, nested_value, predicate, nested_path)

    async def _judge_then_prefilter(item: Any, inner_path: TreePath) -> Any:
        block_path = (*path, *inner_path)
        keep[inner_path] = bool(await resolve(predicate(item, block_path)))
        return await _rewrite_attributes(repository, item, block_path, _descend)

    prefiltered = await map_blocks_async(field_type, value, _judge_then_prefilter)
    return await filter_blocks_async(field_type, prefiltered, lambda _item, inner_path: keep[inner_path])


async def _filter_bottom_up(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    predicate: AsyncBlockCallback[bool],
    path: TreePath,
) -> Any:
    async def _descend(nested_type: str, nested_value: Any, nested_path: TreePath) -> Any:
        return await _filter_bottom_up(repository, nested_type, nested_value, predicate, nested_path)

    async def _prefilter(item: Any, inner_path: TreePath) -> Any:
        return await _rewrite_attributes(repository, item, (*path, *inner_path), _descend)

    async def _judge(item: Any, inner_path: TreePath) -> bool:
        return bool(await resolve(predicate(item, (*path, *inner_path))))

    prefiltered = await map_blocks_async(field_type, value, _prefilter)
    return await filter_blocks_async(field_type, prefiltered, _judge)


async def filter_blocks_recursive(
    repository: SchemaRepository,
    field_type: str | FieldType,
    value: Any,
    predicate: AsyncBlockCallback[bool],
    path: TreePath = (),
    direction: TraversalDirection = TraversalDirection.TOP_DOWN,
) -> Any:
    """Remove the blocks failing ``predicate`` at every depth.

    The nested blocks of every block object are filtered, including those of
    blocks that end up removed, and ``predicate`` runs exactly once per block.
    Top-down, a block is judged with its original nested blocks; bottom-up,
    with its nested blocks already filtered.
    """
    if TraversalDirection(direction) is TraversalDirection.BOTTOM_UP:
        return await _filter_bottom_up(repository, field_type, value, predicate, path)
    return await _filter_top_down(repository, field_type, value, predicate, path)
