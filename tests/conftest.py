"""Shared fixtures and helpers for tests."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from cma_blocks.models import SchemaSnapshot
from cma_blocks.schema import InMemorySchemaSource, SchemaRepository

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Schema: a Product model whose blocks can nest inside each other
# ---------------------------------------------------------------------------


def _raw_item_type(id: str, api_key: str, modular_block: bool) -> dict[str, Any]:
    return {
        "id": id,
        "type": "item_type",
        "attributes": {"api_key": api_key, "name": api_key.replace("_", " ").title(), "modular_block": modular_block},
    }


def _raw_field(
    id: str,
    item_type_id: str,
    api_key: str,
    field_type: str,
    localized: bool = False,
    validators: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "id": id,
        "type": "field",
        "attributes": {
            "api_key": api_key,
            "label": api_key.replace("_", " ").capitalize(),
            "field_type": field_type,
            "localized": localized,
            "validators": validators or {},
        },
        "relationships": {"item_type": {"data": {"id": item_type_id, "type": "item_type"}}},
    }


@pytest.fixture
def raw_schema() -> dict[str, Any]:
    """Raw snapshot: ``product`` holds ``content_block`` and ``hero`` blocks; ``content_block`` nests itself."""
    nested = {"item_types": ["content_block"]}
    return {
        "item_types": [
            _raw_item_type("product", "product", False),
            _raw_item_type("content_block", "content_block", True),
            _raw_item_type("hero", "hero", True),
        ],
        "fields": [
            _raw_field("f-name", "product", "name", "string"),
            _raw_field("f-content", "product", "content", "rich_text", validators={"rich_text_blocks": nested}),
            _raw_field(
                "f-hero", "product", "hero", "single_block", validators={"single_block_blocks": {"item_types": ["hero"]}}
            ),
            _raw_field(
                "f-body",
                "product",
                "body",
                "structured_text",
                validators={
                    "structured_text_blocks": nested,
                    "structured_text_inline_blocks": {"item_types": ["hero"]},
                    "structured_text_links": {"item_types": ["product"]},
                },
            ),
            _raw_field(
                "f-sections", "product", "sections", "rich_text", localized=True, validators={"rich_text_blocks": nested}
            ),
            _raw_field("f-related", "product", "related", "links", validators={"items_item_type": {"item_types": ["product"]}}),
            _raw_field("f-title", "content_block", "title", "string"),
            _raw_field("f-rich-text", "content_block", "rich_text", "rich_text", validators={"rich_text_blocks": nested}),
            _raw_field("f-heading", "hero", "heading", "string"),
        ],
        "plugins": [
            {"id": "p-1", "type": "plugin", "attributes": {"name": "Star rating", "package_name": "datocms-plugin-star-rating"}},
            {"id": "p-2", "type": "plugin", "attributes": {"name": "Private notes", "package_name": None}},
        ],
        "fieldsets": [
            {
                "id": "fs-seo",
                "type": "fieldset",
                "attributes": {"title": "SEO", "position": 2, "collapsible": True, "start_collapsed": True},
                "relationships": {"item_type": {"data": {"id": "product", "type": "item_type"}}},
            },
            {
                "id": "fs-main",
                "type": "fieldset",
                "attributes": {"title": "Main", "hint": None, "position": 1, "collapsible": False},
                "relationships": {"item_type": {"data": {"id": "product", "type": "item_type"}}},
            },
        ],
    }


@pytest.fixture
def schema_snapshot(raw_schema: dict[str, Any]) -> SchemaSnapshot:
    return SchemaSnapshot.from_raw(raw_schema)


@pytest.fixture
def schema_file(tmp_path: Path, raw_schema: dict[str, Any]) -> Path:
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(raw_schema), encoding="utf-8")
    return path


@pytest.fixture
def schema_source(schema_snapshot: SchemaSnapshot) -> InMemorySchemaSource:
    return InMemorySchemaSource(schema_snapshot)


@pytest.fixture
def repository(schema_source: InMemorySchemaSource) -> SchemaRepository:
    return SchemaRepository(schema_source)


# ---------------------------------------------------------------------------
# Block builders
# ---------------------------------------------------------------------------


def _block(item_type_id: str, attributes: dict[str, Any], id: str | None) -> dict[str, Any]:
    block: dict[str, Any] = {
        "type": "item",
        "attributes": attributes,
        "relationships": {"item_type": {"data": {"id": item_type_id, "type": "item_type"}}},
    }
    if id is not None:
        block["id"] = id
        block["meta"] = {"created_at": "2024-01-01T00:00:00Z"}
    return block


@pytest.fixture
def content_block() -> Callable[..., dict[str, Any]]:
    """Build a ``content_block``: resolved when given an ``id``, request form otherwise."""

    def _build(title: str, children: list[Any] | None = None, id: str | None = None) -> dict[str, Any]:
        return _block("content_block", {"title": title, "rich_text": children or []}, id)

    return _build


@pytest.fixture
def hero_block() -> Callable[..., dict[str, Any]]:
    def _build(heading: str, id: str | None = None) -> dict[str, Any]:
        return _block("hero", {"heading": heading}, id)

    return _build
