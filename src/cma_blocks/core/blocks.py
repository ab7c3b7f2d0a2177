"""One-level access to the blocks embedded in a single-locale field value.

Three field types can hold blocks, each storing them differently:

- ``rich_text``: a list of blocks, yielded with paths ``(0,)``, ``(1,)``...
- ``single_block``: one block (or ``None``), yielded with path ``()``
- ``structured_text``: a ``{"schema": "dast", "document": ...}`` tree whose
  ``block``/``inlineBlock`` nodes carry an ``item``; yielded with the node's
  tree path

Nothing here looks inside a block's own attributes; see
``cma_blocks.core.recursive`` for that. Values of any other field type are
returned untouched.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping
from typing import Any, TypeVar

from cma_blocks.core.awaitables import resolve
from cma_blocks.core.field_types import FieldShape, FieldType, field_shape
from cma_blocks.core.tree import filter_nodes, filter_nodes_async, find_all_nodes, map_nodes, map_nodes_async
from cma_blocks.models import BlockEntry, TreePath

R = TypeVar("R")

BLOCK_NODE_TYPES = frozenset({"block", "inlineBlock"})

BlockCallback = Callable[[Any, TreePath], R]
AsyncBlockCallback = Callable[[Any, TreePath], R | Awaitable[R]]


def is_block_node(node: Any) -> bool:
    return isinstance(node, Mapping) and node.get("type") in BLOCK_NODE_TYPES


def _with_document(value: Mapping[str, Any], document: Any) -> dict[str, Any]:
    return {**value, "schema": value.get("schema", "dast"), "document": document}


def iter_blocks(field_type: str | FieldType, value: Any) -> Iterator[BlockEntry]:
    shape = field_shape(field_type)

    if not value:
        return

    if shape is FieldShape.LIST_OF_BLOCKS:
        for index, item in enumerate(value):
            yield BlockEntry(item, (index,))

    elif shape is FieldShape.SINGLE_BLOCK:
        yield BlockEntry(value, ())

    elif shape is FieldShape.DOCUMENT:
        for node, path in find_all_nodes(value["document"], lambda n, _parent, _path: is_block_node(n)):
            yield BlockEntry(node["item"], path)


def visit_blocks(field_type: str | FieldType, value: Any, visitor: BlockCallback[None]) -> None:
    for item, path in iter_blocks(field_type, value):
        visitor(item, path)


async def visit_blocks_async(field_type: str | FieldType, value: Any, visitor: AsyncBlockCallback[None]) -> None:
    for item, path in iter_blocks(field_type, value):
        await resolve(visitor(item, path))


def map_blocks(field_type: str | FieldType, value: Any, mapper: BlockCallback[Any]) -> Any:
    shape = field_shape(field_type)

    if shape is FieldShape.LIST_OF_BLOCKS:
        return [mapper(item, path) for item, path in iter_blocks(field_type, value)] if value else value

    if shape is FieldShape.SINGLE_BLOCK:
        return mapper(value, ()) if value else None

    if shape is FieldShape.DOCUMENT:
        if not value:
            return None

        def _map_node(node: Any, _parent: Any, path: TreePath) -> Any:
            if is_block_node(node):
                return {**node, "item": mapper(node["item"], path)}
            return node

        return _with_document(value, map_nodes(value["document"], _map_node))

    return value


async def map_blocks_async(field_type: str | FieldType, value: Any, mapper: AsyncBlockCallback[Any]) -> Any:
    shape = field_shape(field_type)

    if shape is FieldShape.LIST_OF_BLOCKS:
        if not value:
            return value
        return [await resolve(mapper(item, path)) for item, path in iter_blocks(field_type, value)]

    if shape is FieldShape.SINGLE_BLOCK:
        return await resolve(mapper(value, ())) if value else None

    if shape is FieldShape.DOCUMENT:
        if not value:
            return None

        async def _map_node(node: Any, _parent: Any, path: TreePath) -> Any:
            if is_block_node(node):
                return {**node, "item": await resolve(mapper(node["item"], path))}
            return node

        return _with_document(value, await map_nodes_async(value["document"], _map_node))

    return value


def filter_blocks(field_type: str | FieldType, value: Any, predicate: BlockCallback[bool]) -> Any:
    """Drop the blocks that fail ``predicate``, keeping the field's shape.

    A single block collapses to ``None`` when rejected. In a document, a
    rejected block node is removed together with its subtree.
    """
    shape = field_shape(field_type)

    if shape is FieldShape.LIST_OF_BLOCKS:
        if not value:
            return value
        return [item for item, path in iter_blocks(field_type, value) if predicate(item, path)]

    if shape is FieldShape.SINGLE_BLOCK:
        for item, path in iter_blocks(field_type, value):
            if predicate(item, path):
                return item
        return None

    if shape is FieldShape.DOCUMENT:
        if not value:
            return None

        def _keep_node(node: Any, _parent: Any, path: TreePath) -> bool:
            return predicate(node["item"], path) if is_block_node(node) else True

        document = filter_nodes(value["document"], _keep_node)
        return _with_document(value, document) if document is not None else None

    return value


async def filter_blocks_async(field_type: str | FieldType, value: Any, predicate: AsyncBlockCallback[bool]) -> Any:
    shape = field_shape(field_type)

    if shape is FieldShape.LIST_OF_BLOCKS:
        if not value:
            return value
        kept = []
        for item, path in iter_blocks(field_type, value):
            if await resolve(predicate(item, path)):
                kept.append(item)
        return kept

    if shape is FieldShape.SINGLE_BLOCK:
        for item, path in iter_blocks(field_type, value):
            if await resolve(predicate(item, path)):
                return item
        return None

    if shape is FieldShape.DOCUMENT:
        if not value:
            return None

        async def _keep_node(node: Any, _parent: Any, path: TreePath) -> bool:
            return await resolve(predicate(node["item"], path)) if is_block_node(node) else True

        document = await filter_nodes_async(value["document"], _keep_node)
        return _with_document(value, document) if document is not None else None

    return value


def find_all_blocks(field_type: str | FieldType, value: Any, predicate: BlockCallback[bool]) -> list[BlockEntry]:
    return [entry for entry in iter_blocks(field_type, value) if predicate(entry.item, entry.path)]


async def find_all_blocks_async(
    field_type: str | FieldType, value: Any, predicate: AsyncBlockCallback[bool]
) -> list[BlockEntry]:
    results: list[BlockEntry] = []
    for entry in iter_blocks(field_type, value):
        if await resolve(predicate(entry.item, entry.path)):
            results.append(entry)
    return results


def find_block(field_type: str | FieldType, value: Any, predicate: BlockCallback[bool]) -> BlockEntry | None:
    for entry in iter_blocks(field_type, value):
        if predicate(entry.item, entry.path):
            return entry
    return None


async def find_block_async(
    field_type: str | FieldType, value: Any, predicate: AsyncBlockCallback[bool]
) -> BlockEntry | None:
    for entry in iter_blocks(field_type, value):
        if await resolve(predicate(entry.item, entry.path)):
            return entry
    return None


def reduce_blocks(
    field_type: str | FieldType,
    value: Any,
    reducer: Callable[[R, Any, TreePath], R],
    initial: R,
) -> R:
    accumulator = initial
    for item, path in iter_blocks(field_type, value):
        accumulator = reducer(accumulator, item, path)
    return accumulator


async def reduce_blocks_async(
    field_type: str | FieldType,
    value: Any,
    reducer: Callable[[R, Any, TreePath], R | Awaitable[R]],
    initial: R,
) -> R:
    accumulator = initial
    for item, path in iter_blocks(field_type, value):
        accumulator = await resolve(reducer(accumulator, item, path))
    return accumulator


def some_block(field_type: str | FieldType, value: Any, predicate: BlockCallback[bool]) -> bool:
    return find_block(field_type, value, predicate) is not None


async def some_block_async(field_type: str | FieldType, value: Any, predicate: AsyncBlockCallback[bool]) -> bool:
    return await find_block_async(field_type, value, predicate) is not None


def every_block(field_type: str | FieldType, value: Any, predicate: BlockCallback[bool]) -> bool:
    return not some_block(field_type, value, lambda item, path: not predicate(item, path))


async def every_block_async(field_type: str | FieldType, value: Any, predicate: AsyncBlockCallback[bool]) -> bool:
    async def _fails(item: Any, path: TreePath) -> bool:
        return not await resolve(predicate(item, path))

    return not await some_block_async(field_type, value, _fails)
