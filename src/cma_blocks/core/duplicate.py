from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from cma_blocks.core.field_values import map_blocks_in_field_value
from cma_blocks.core.items import block_item_type_id, is_block_reference, require_block_object
from cma_blocks.core.recursive import TraversalDirection
from cma_blocks.errors import MalformedBlockError
from cma_blocks.models import TreePath

if TYPE_CHECKING:
    from cma_blocks.schema.repository import SchemaRepository

_SERVER_KEYS = frozenset({"id", "meta"})


def _without_server_keys(block: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in block.items() if key not in _SERVER_KEYS}


async def duplicate_block_record(repository: SchemaRepository, block: Mapping[str, Any]) -> dict[str, Any]:
    """Turn an existing block into a request payload that creates a copy of it.

    ``id`` and ``meta`` are removed from the block and from every block nested
    in it, so the API creates new blocks all the way down. Nested blocks must
    be full objects: a nested bare ID raises ``MalformedBlockError``, since
    the block it points to cannot be copied without fetching it.
    """
    block = require_block_object(block)
    entity_type = await repository.get_entity_type_by_id(block_item_type_id(block))
    duplicate = _without_server_keys(block)
    attributes = dict(duplicate["attributes"] or {})

    for field in await repository.get_fields(entity_type):
        if field.api_key not in attributes:
            continue
        field_path: TreePath = ("attributes", field.api_key)

        def _strip(nested: Any, path: TreePath, field_path: TreePath = field_path) -> dict[str, Any]:
            if is_block_reference(nested):
                location = ".".join(str(segment) for segment in (*field_path, *path))
                raise MalformedBlockError(
                    f"Block cannot be duplicated as it contains nested block at {location} "
                    f"that is expressed as ID ({nested}) instead of full object"
                )
            return _without_server_keys(nested)

        attributes[field.api_key] = await map_blocks_in_field_value(
            repository, field, attributes[field.api_key], _strip, TraversalDirection.BOTTOM_UP
        )

    duplicate["attributes"] = attributes
    return duplicate
