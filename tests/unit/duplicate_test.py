from collections.abc import Callable
from typing import Any

import pytest

from cma_blocks.core.duplicate import duplicate_block_record
from cma_blocks.core.items import BlockForm, block_form
from cma_blocks.errors import MalformedBlockError
from cma_blocks.schema import SchemaRepository

BlockFactory = Callable[..., dict[str, Any]]


@pytest.mark.asyncio
async def test_strips_ids_and_meta_at_every_depth(repository: SchemaRepository, content_block: BlockFactory) -> None:
    block = content_block(
        "Parent",
        [content_block("Child", [content_block("Grandchild", id="b-3")], id="b-2")],
        id="b-1",
    )

    duplicate = await duplicate_block_record(repository, block)

    child = duplicate["attributes"]["rich_text"][0]
    grandchild = child["attributes"]["rich_text"][0]
    for copied in (duplicate, child, grandchild):
        assert "id" not in copied
        assert "meta" not in copied
        assert block_form(copied) is BlockForm.REQUEST
    assert grandchild["attributes"]["title"] == "Grandchild"
    assert duplicate["relationships"] == block["relationships"]


@pytest.mark.asyncio
async def test_does_not_mutate_the_original(repository: SchemaRepository, content_block: BlockFactory) -> None:
    block = content_block("Parent", [content_block("Child", id="b-2")], id="b-1")

    await duplicate_block_record(repository, block)

    assert block["id"] == "b-1"
    assert block["attributes"]["rich_text"][0]["id"] == "b-2"


@pytest.mark.asyncio
async def test_nested_reference_cannot_be_duplicated(
    repository: SchemaRepository, content_block: BlockFactory
) -> None:
    block = content_block("Parent", [content_block("Child", ["b-9"], id="b-2")], id="b-1")

    with pytest.raises(
        MalformedBlockError,
        match=r"nested block at attributes\.rich_text\.0\.attributes\.rich_text\.0 that is expressed as ID \(b-9\)",
    ):
        await duplicate_block_record(repository, block)


@pytest.mark.asyncio
async def test_top_level_reference_is_rejected(repository: SchemaRepository) -> None:
    with pytest.raises(MalformedBlockError):
        await duplicate_block_record(repository, "b-1")


@pytest.mark.asyncio
async def test_request_form_block_without_nested_blocks(
    repository: SchemaRepository, hero_block: BlockFactory
) -> None:
    block = hero_block("Welcome")

    assert await duplicate_block_record(repository, block) == block
