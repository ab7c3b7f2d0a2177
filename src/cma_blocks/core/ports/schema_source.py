from typing import Protocol

from cma_blocks.models import EntityType, Field, Fieldset, Plugin


class SchemaSource(Protocol):
    async def list_entity_types(self) -> list[EntityType]: ...

    async def list_fields(self, entity_type_id: str) -> list[Field]: ...

    async def list_fieldsets(self, entity_type_id: str) -> list[Fieldset]: ...

    async def list_plugins(self) -> list[Plugin]: ...
