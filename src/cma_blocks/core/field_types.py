from enum import Enum
from typing import Any

from cma_blocks.models import Field


class FieldType(str, Enum):
    BOOLEAN = "boolean"
    COLOR = "color"
    DATE = "date"
    DATE_TIME = "date_time"
    FILE = "file"
    FLOAT = "float"
    GALLERY = "gallery"
    INTEGER = "integer"
    JSON = "json"
    LAT_LON = "lat_lon"
    LINK = "link"
    LINKS = "links"
    RICH_TEXT = "rich_text"
    SEO = "seo"
    SINGLE_BLOCK = "single_block"
    SLUG = "slug"
    STRING = "string"
    STRUCTURED_TEXT = "structured_text"
    TEXT = "text"
    VIDEO = "video"


class FieldShape(str, Enum):
    LIST_OF_BLOCKS = "list_of_blocks"
    SINGLE_BLOCK = "single_block"
    DOCUMENT = "document"
    OTHER = "other"


_FIELD_TYPE_SHAPES: dict[FieldType, FieldShape] = {
    FieldType.RICH_TEXT: FieldShape.LIST_OF_BLOCKS,
    FieldType.SINGLE_BLOCK: FieldShape.SINGLE_BLOCK,
    FieldType.STRUCTURED_TEXT: FieldShape.DOCUMENT,
}

BLOCK_FIELD_TYPES: frozenset[FieldType] = frozenset(_FIELD_TYPE_SHAPES)


def normalize_field_type(field_type: str | FieldType) -> FieldType | None:
    """Return the known ``FieldType`` for a tag, or ``None`` for tags added upstream since."""
    try:
        return FieldType(field_type)
    except ValueError:
        return None


def field_shape(field_type: str | FieldType) -> FieldShape:
    known = normalize_field_type(field_type)
    if known is None:
        return FieldShape.OTHER
    return _FIELD_TYPE_SHAPES.get(known, FieldShape.OTHER)


def is_block_field(field: Field) -> bool:
    return field_shape(field.field_type) is not FieldShape.OTHER


def _validator_item_types(validators: dict[str, Any], name: str) -> list[str]:
    validator = validators.get(name) or {}
    return list(validator.get("item_types") or [])


def block_model_ids_referenced_in_field(field: Field) -> list[str]:
    """Block models a block-bearing field accepts, read from its validators."""
    validators = field.validators
    match normalize_field_type(field.field_type):
        case FieldType.SINGLE_BLOCK:
            return _validator_item_types(validators, "single_block_blocks")
        case FieldType.RICH_TEXT:
            return _validator_item_types(validators, "rich_text_blocks")
        case FieldType.STRUCTURED_TEXT:
            return _validator_item_types(validators, "structured_text_blocks") + _validator_item_types(
                validators, "structured_text_inline_blocks"
            )
        case _:
            return []


def model_ids_referenced_in_field(field: Field) -> list[str]:
    """Models a link-bearing field may point to, read from its validators."""
    validators = field.validators
    match normalize_field_type(field.field_type):
        case FieldType.LINK:
            return _validator_item_types(validators, "item_item_type")
        case FieldType.LINKS:
            return _validator_item_types(validators, "items_item_type")
        case FieldType.STRUCTURED_TEXT:
            return _validator_item_types(validators, "structured_text_links")
        case _:
            return []
