"""Pre-order traversal primitives over ``children``-bearing document trees.

Every callback receives ``(node, parent, path)`` where ``path`` is the
position of ``node`` below the starting node, e.g. ``("children", 0,
"children", 2)``. Async twins accept plain or coroutine callbacks and await
them one at a time, so side effects happen in the same order as the sync
variant.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from cma_blocks.core.awaitables import resolve
from cma_blocks.models import TreePath

R = TypeVar("R")

NodeCallback = Callable[[Any, Any, TreePath], R]
AsyncNodeCallback = Callable[[Any, Any, TreePath], R | Awaitable[R]]


def has_children(node: Any) -> bool:
    return isinstance(node, Mapping) and isinstance(node.get("children"), list | tuple)


def _child_paths(node: Any, path: TreePath) -> list[tuple[Any, TreePath]]:
    return [(child, (*path, "children", index)) for index, child in enumerate(node["children"])]


def visit_nodes(
    node: Any,
    visitor: NodeCallback[None],
    parent: Any = None,
    path: TreePath = (),
) -> None:
    visitor(node, parent, path)
    if has_children(node):
        for child, child_path in _child_paths(node, path):
            visit_nodes(child, visitor, node, child_path)


async def visit_nodes_async(
    node: Any,
    visitor: AsyncNodeCallback[None],
    parent: Any = None,
    path: TreePath = (),
) -> None:
    await resolve(visitor(node, parent, path))
    if has_children(node):
        for child, child_path in _child_paths(node, path):
            await visit_nodes_async(child, visitor, node, child_path)


def map_nodes(
    node: Any,
    mapper: NodeCallback[Any],
    parent: Any = None,
    path: TreePath = (),
) -> Any:
    """Replace every node with ``mapper``'s result.

    Children are taken from the *original* node and reattached to the mapped
    node whenever the mapped node is a mapping.
    """
    mapped = mapper(node, parent, path)
    if has_children(node) and isinstance(mapped, Mapping):
        children = [map_nodes(child, mapper, node, child_path) for child, child_path in _child_paths(node, path)]
        return {**mapped, "children": children}
    return mapped


async def map_nodes_async(
    node: Any,
    mapper: AsyncNodeCallback[Any],
    parent: Any = None,
    path: TreePath = (),
) -> Any:
    mapped = await resolve(mapper(node, parent, path))
    if has_children(node) and isinstance(mapped, Mapping):
        children = []
        for child, child_path in _child_paths(node, path):
            children.append(await map_nodes_async(child, mapper, node, child_path))
        return {**mapped, "children": children}
    return mapped


def filter_nodes(
    node: Any,
    predicate: NodeCallback[bool],
    parent: Any = None,
    path: TreePath = (),
) -> Any | None:
    """Return a copy of the tree without the subtrees whose root fails ``predicate``.

    Returns ``None`` when ``node`` itself is rejected.
    """
    if not predicate(node, parent, path):
        return None
    if not has_children(node):
        return node
    children = [filter_nodes(child, predicate, node, child_path) for child, child_path in _child_paths(node, path)]
    return {**node, "children": [child for child in children if child is not None]}


async def filter_nodes_async(
    node: Any,
    predicate: AsyncNodeCallback[bool],
    parent: Any = None,
    path: TreePath = (),
) -> Any | None:
    if not await resolve(predicate(node, parent, path)):
        return None
    if not has_children(node):
        return node
    children = []
    for child, child_path in _child_paths(node, path):
        kept = await filter_nodes_async(child, predicate, node, child_path)
        if kept is not None:
            children.append(kept)
    return {**node, "children": children}


def find_all_nodes(
    node: Any,
    predicate: NodeCallback[bool],
    parent: Any = None,
    path: TreePath = (),
) -> list[tuple[Any, TreePath]]:
    results: list[tuple[Any, TreePath]] = []

    def _collect(current: Any, current_parent: Any, current_path: TreePath) -> None:
        if predicate(current, current_parent, current_path):
            results.append((current, current_path))

    visit_nodes(node, _collect, parent, path)
    return results


async def find_all_nodes_async(
    node: Any,
    predicate: AsyncNodeCallback[bool],
    parent: Any = None,
    path: TreePath = (),
) -> list[tuple[Any, TreePath]]:
    results: list[tuple[Any, TreePath]] = []

    async def _collect(current: Any, current_parent: Any, current_path: TreePath) -> None:
        if await resolve(predicate(current, current_parent, current_path)):
            results.append((current, current_path))

    await visit_nodes_async(node, _collect, parent, path)
    return results


def reduce_nodes(
    node: Any,
    reducer: Callable[[R, Any, Any, TreePath], R],
    initial: R,
    parent: Any = None,
    path: TreePath = (),
) -> R:
    accumulator = initial

    def _fold(current: Any, current_parent: Any, current_path: TreePath) -> None:
        nonlocal accumulator
        accumulator = reducer(accumulator, current, current_parent, current_path)

    visit_nodes(node, _fold, parent, path)
    return accumulator


async def reduce_nodes_async(
    node: Any,
    reducer: Callable[[R, Any, Any, TreePath], R | Awaitable[R]],
    initial: R,
    parent: Any = None,
    path: TreePath = (),
) -> R:
    accumulator = initial

    async def _fold(current: Any, current_parent: Any, current_path: TreePath) -> None:
        nonlocal accumulator
        accumulator = await resolve(reducer(accumulator, current, current_parent, current_path))

    await visit_nodes_async(node, _fold, parent, path)
    return accumulator


def some_node(
    node: Any,
    predicate: NodeCallback[bool],
    parent: Any = None,
    path: TreePath = (),
) -> bool:
    if predicate(node, parent, path):
        return True
    if has_children(node):
        for child, child_path in _child_paths(node, path):
            if some_node(child, predicate, node, child_path):
                return True
    return False


async def some_node_async(
    node: Any,
    predicate: AsyncNodeCallback[bool],
    parent: Any = None,
    path: TreePath = (),
) -> bool:
    if await resolve(predicate(node, parent, path)):
        return True
    if has_children(node):
        for child, child_path in _child_paths(node, path):
            if await some_node_async(child, predicate, node, child_path):
                return True
    return False


def every_node(
    node: Any,
    predicate: NodeCallback[bool],
    parent: Any = None,
    path: TreePath = (),
) -> bool:
    return not some_node(node, lambda n, p, np: not predicate(n, p, np), parent, path)


async def every_node_async(
    node: Any,
    predicate: AsyncNodeCallback[bool],
    parent: Any = None,
    path: TreePath = (),
) -> bool:
    async def _fails(current: Any, current_parent: Any, current_path: TreePath) -> bool:
        return not await resolve(predicate(current, current_parent, current_path))

    return not await some_node_async(node, _fails, parent, path)
