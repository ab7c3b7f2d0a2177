from collections.abc import Callable
from typing import Any

import pytest

from cma_blocks.core.items import (
    BlockForm,
    block_form,
    block_item_type_id,
    build_block_record,
    is_block_object,
    is_block_reference,
    require_block_object,
)
from cma_blocks.errors import MalformedBlockError


def test_block_forms(content_block: Callable[..., dict[str, Any]]) -> None:
    assert block_form("b-1") is BlockForm.REFERENCE
    assert block_form(content_block("new")) is BlockForm.REQUEST
    assert block_form(content_block("saved", id="b-2")) is BlockForm.RESOLVED


def test_request_with_id_but_no_meta_is_an_update_request(content_block: Callable[..., dict[str, Any]]) -> None:
    block = content_block("edited")
    block["id"] = "b-3"
    assert block_form(block) is BlockForm.REQUEST


@pytest.mark.parametrize("value", [None, 42, {"type": "item"}, ["b-1"]])
def test_block_form_rejects_non_items(value: Any) -> None:
    with pytest.raises(MalformedBlockError):
        block_form(value)


def test_is_block_reference_and_object(content_block: Callable[..., dict[str, Any]]) -> None:
    assert is_block_reference("b-1")
    assert not is_block_reference(content_block("x"))
    assert is_block_object(content_block("x"))
    assert not is_block_object("b-1")


def test_block_item_type_id(content_block: Callable[..., dict[str, Any]]) -> None:
    assert block_item_type_id(content_block("x")) == "content_block"


def test_block_item_type_id_without_relationship() -> None:
    with pytest.raises(MalformedBlockError, match="no item_type relationship"):
        block_item_type_id({"type": "item", "attributes": {}, "id": "b-9"})


class TestRequireBlockObject:
    def test_returns_objects(self, content_block: Callable[..., dict[str, Any]]) -> None:
        block = content_block("x")
        assert require_block_object(block) is block

    def test_reference_names_path(self) -> None:
        with pytest.raises(MalformedBlockError, match=r"Block at 0\.attributes\.rich_text\.1 is expressed as ID \(b-7\)"):
            require_block_object("b-7", (0, "attributes", "rich_text", 1))

    def test_garbage(self) -> None:
        with pytest.raises(MalformedBlockError, match="<root> is not a block item"):
            require_block_object(3)


class TestBuildBlockRecord:
    def test_flat_body_becomes_block_object(self) -> None:
        record = build_block_record({"item_type": "hero", "heading": "Hi", "image": None})

        assert record == {
            "type": "item",
            "attributes": {"heading": "Hi", "image": None},
            "relationships": {"item_type": {"data": {"id": "hero", "type": "item_type"}}},
        }
        assert block_form(record) is BlockForm.REQUEST
        assert block_item_type_id(record) == "hero"

    def test_keeps_id_and_meta_and_reads_item_type_reference(self) -> None:
        record = build_block_record(
            {
                "id": "b-1",
                "type": "item",
                "meta": {"created_at": "2024-01-01"},
                "item_type": {"id": "hero", "type": "item_type"},
                "heading": "Hi",
            }
        )

        assert record["id"] == "b-1"
        assert record["meta"] == {"created_at": "2024-01-01"}
        assert record["attributes"] == {"heading": "Hi"}
        assert block_form(record) is BlockForm.RESOLVED

    def test_body_without_fields_still_has_attributes(self) -> None:
        record = build_block_record({"item_type": "hero"})

        assert record["attributes"] == {}
        assert is_block_object(record)

    @pytest.mark.parametrize("body", [{}, {"item_type": None}, {"item_type": {"type": "item_type"}}])
    def test_item_type_is_required(self, body: dict[str, Any]) -> None:
        with pytest.raises(MalformedBlockError, match="needs an item_type ID"):
            build_block_record(body)
