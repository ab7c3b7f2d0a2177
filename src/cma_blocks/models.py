from typing import Any, NamedTuple

from pydantic import BaseModel, Field as PydanticField

TreePath = tuple[int | str, ...]


def _raw_attributes(raw: dict[str, Any]) -> dict[str, Any]:
    return dict(raw.get("attributes") or {})


def _raw_relationship_id(raw: dict[str, Any], name: str) -> str | None:
    relationship = (raw.get("relationships") or {}).get(name) or {}
    data = relationship.get("data")
    return data.get("id") if isinstance(data, dict) else None


class EntityType(BaseModel):
    id: str
    api_key: str
    name: str | None = None
    modular_block: bool = False

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "EntityType":
        """Build from the API's JSON:API ``item_type`` resource."""
        attributes = _raw_attributes(raw)
        return cls(
            id=raw.get("id"),
            api_key=attributes.get("api_key"),
            name=attributes.get("name"),
            modular_block=bool(attributes.get("modular_block", False)),
        )


class Field(BaseModel):
    id: str
    api_key: str
    field_type: str
    localized: bool = False
    label: str | None = None
    entity_type_id: str | None = None
    validators: dict[str, Any] = PydanticField(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "Field":
        """Build from the API's JSON:API ``field`` resource."""
        attributes = _raw_attributes(raw)
        return cls(
            id=raw.get("id"),
            api_key=attributes.get("api_key"),
            field_type=attributes.get("field_type"),
            localized=bool(attributes.get("localized", False)),
            label=attributes.get("label"),
            entity_type_id=_raw_relationship_id(raw, "item_type"),
            validators=attributes.get("validators") or {},
        )


class Fieldset(BaseModel):
    id: str
    title: str
    hint: str | None = None
    position: int = 0
    collapsible: bool = False
    start_collapsed: bool = False
    entity_type_id: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "Fieldset":
        """Build from the API's JSON:API ``fieldset`` resource."""
        attributes = _raw_attributes(raw)
        return cls(
            id=raw.get("id"),
            title=attributes.get("title"),
            hint=attributes.get("hint"),
            position=attributes.get("position") or 0,
            collapsible=bool(attributes.get("collapsible", False)),
            start_collapsed=bool(attributes.get("start_collapsed", False)),
            entity_type_id=_raw_relationship_id(raw, "item_type"),
        )


class Plugin(BaseModel):
    id: str
    name: str | None = None
    package_name: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "Plugin":
        """Build from the API's JSON:API ``plugin`` resource."""
        attributes = _raw_attributes(raw)
        return cls(
            id=raw.get("id"),
            name=attributes.get("name"),
            package_name=attributes.get("package_name"),
        )


class SchemaSnapshot(BaseModel):
    entity_types: list[EntityType] = PydanticField(default_factory=list)
    fields: list[Field] = PydanticField(default_factory=list)
    plugins: list[Plugin] = PydanticField(default_factory=list)
    fieldsets: list[Fieldset] = PydanticField(default_factory=list)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "SchemaSnapshot":
        """Build from ``{"item_types": [...], "fields": [...], "plugins": [...], "fieldsets": [...]}``."""
        return cls(
            entity_types=[EntityType.from_raw(r) for r in raw.get("item_types", [])],
            fields=[Field.from_raw(r) for r in raw.get("fields", [])],
            plugins=[Plugin.from_raw(r) for r in raw.get("plugins", [])],
            fieldsets=[Fieldset.from_raw(r) for r in raw.get("fieldsets", [])],
        )


class BlockEntry(NamedTuple):
    item: Any
    path: TreePath
