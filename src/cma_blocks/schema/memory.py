import asyncio
from collections import Counter

from cma_blocks.models import EntityType, Field, Fieldset, Plugin, SchemaSnapshot


class InMemorySchemaSource:
    """Serve a fixed ``SchemaSnapshot`` through the ``SchemaSource`` protocol.

    Every call yields to the event loop once, like a real round-trip would,
    and is counted in ``calls`` so fetch coalescing can be observed.
    """

    def __init__(self, snapshot: SchemaSnapshot | None = None) -> None:
        self.snapshot = snapshot or SchemaSnapshot()
        self.calls: Counter[str] = Counter()

    async def list_entity_types(self) -> list[EntityType]:
        self.calls["list_entity_types"] += 1
        await asyncio.sleep(0)
        return list(self.snapshot.entity_types)

    async def list_fields(self, entity_type_id: str) -> list[Field]:
        self.calls[f"list_fields:{entity_type_id}"] += 1
        await asyncio.sleep(0)
        return [field for field in self.snapshot.fields if field.entity_type_id == entity_type_id]

    async def list_fieldsets(self, entity_type_id: str) -> list[Fieldset]:
        self.calls[f"list_fieldsets:{entity_type_id}"] += 1
        await asyncio.sleep(0)
        return [fieldset for fieldset in self.snapshot.fieldsets if fieldset.entity_type_id == entity_type_id]

    async def list_plugins(self) -> list[Plugin]:
        self.calls["list_plugins"] += 1
        await asyncio.sleep(0)
        return list(self.snapshot.plugins)
