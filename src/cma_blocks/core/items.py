"""Structural classification of block items.

A block item is either a bare ID string (a reference to an existing block),
a request payload (``type`` + ``attributes`` + ``relationships``, optional
``id``), or a resolved block as returned by the API (request payload plus
``id`` and ``meta``). Only the two object forms carry nested data.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from cma_blocks.errors import MalformedBlockError
from cma_blocks.models import TreePath

ITEM_TYPE_RELATIONSHIP = "item_type"

_BODY_RESERVED_KEYS = frozenset({"id", "type", "meta", ITEM_TYPE_RELATIONSHIP})


class BlockForm(str, Enum):
    REFERENCE = "reference"
    REQUEST = "request"
    RESOLVED = "resolved"


def is_block_reference(item: Any) -> bool:
    return isinstance(item, str)


def is_block_object(item: Any) -> bool:
    return isinstance(item, Mapping) and "type" in item and "attributes" in item


def block_form(item: Any) -> BlockForm:
    if is_block_reference(item):
        return BlockForm.REFERENCE
    if is_block_object(item):
        if isinstance(item.get("id"), str) and "meta" in item:
            return BlockForm.RESOLVED
        return BlockForm.REQUEST
    raise MalformedBlockError(f"Not a block item: {item!r}")


def block_item_type_id(item: Mapping[str, Any]) -> str:
    """Return the entity-type ID a block object points to."""
    try:
        return item["relationships"][ITEM_TYPE_RELATIONSHIP]["data"]["id"]
    except (KeyError, TypeError):
        raise MalformedBlockError(f"Block {item.get('id', '<new>')!r} has no item_type relationship") from None


def build_block_record(body: Mapping[str, Any]) -> dict[str, Any]:
    """Turn a flat block body into the block object the API expects.

    ``body`` holds the block's field values side by side with ``item_type``
    (an entity-type ID or a ``{"id": ..., "type": "item_type"}`` reference) and,
    optionally, ``id`` and ``meta``. Every other key becomes an attribute.

    ``attributes`` is always present, even when empty, so the result is a block
    object for ``is_block_object``.
    """
    item_type = body.get(ITEM_TYPE_RELATIONSHIP)
    item_type_id = item_type.get("id") if isinstance(item_type, Mapping) else item_type
    if not isinstance(item_type_id, str) or not item_type_id:
        raise MalformedBlockError(f"Block body needs an {ITEM_TYPE_RELATIONSHIP} ID, got {item_type!r}")

    record: dict[str, Any] = {}
    if body.get("id"):
        record["id"] = body["id"]
    record["type"] = "item"
    record["attributes"] = {key: value for key, value in body.items() if key not in _BODY_RESERVED_KEYS}
    record["relationships"] = {ITEM_TYPE_RELATIONSHIP: {"data": {"id": item_type_id, "type": "item_type"}}}
    if body.get("meta"):
        record["meta"] = body["meta"]
    return record


def require_block_object(item: Any, path: TreePath = ()) -> Mapping[str, Any]:
    """Return ``item`` if it is a full block object, else raise ``MalformedBlockError``.

    For callbacks that cannot work with a bare block ID.
    """
    if is_block_object(item):
        return item
    location = ".".join(str(segment) for segment in path) or "<root>"
    if is_block_reference(item):
        raise MalformedBlockError(
            f"Block at {location} is expressed as ID ({item}) instead of a full object"
        )
    raise MalformedBlockError(f"Block at {location} is not a block item: {item!r}")
