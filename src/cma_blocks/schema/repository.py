"""Point-in-time cache of schema entities (entity types, fields, fieldsets, plugins).

Recursive block operations need the fields of every block model they meet,
often many times over. ``SchemaRepository`` fetches each of those lists from
its ``SchemaSource`` once and serves later lookups from memory.

The cache is never invalidated. Build one repository per session against a
schema that does not change while it is in use; if your code edits models or
fields, create a fresh repository afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from cma_blocks.core.ports.schema_source import SchemaSource
from cma_blocks.errors import NotFoundError
from cma_blocks.models import EntityType, Field, Fieldset, Plugin

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SchemaRepository:
    def __init__(self, source: SchemaSource) -> None:
        self._source = source
        self._entity_types: list[EntityType] | None = None
        self._entity_types_by_id: dict[str, EntityType] = {}
        self._entity_types_by_api_key: dict[str, EntityType] = {}
        self._fields_by_entity_type: dict[str, list[Field]] = {}
        self._fieldsets_by_entity_type: dict[str, list[Fieldset]] = {}
        self._plugins: list[Plugin] | None = None
        self._plugins_by_id: dict[str, Plugin] = {}
        self._plugins_by_package_name: dict[str, Plugin] = {}
        self._pending: dict[str, asyncio.Task[Any]] = {}

    async def _load_once(self, key: str, loader: Callable[[], Awaitable[T]]) -> T:
        """Run ``loader`` once per ``key``; concurrent callers share the in-flight task.

        The task is shielded so a cancelled caller does not cancel the fetch
        other callers are waiting on. A failed fetch is forgotten, so the next
        call tries again.
        """
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(loader())
            self._pending[key] = task

            def _forget(done: asyncio.Task[Any]) -> None:
                if self._pending.get(key) is done:
                    del self._pending[key]
                if not done.cancelled() and done.exception() is not None:
                    logger.warning("Schema fetch %r failed: %s", key, done.exception())

            task.add_done_callback(_forget)
        return await asyncio.shield(task)

    # -- entity types ---------------------------------------------------------

    async def _fetch_entity_types(self) -> list[EntityType]:
        logger.debug("Fetching entity types")
        entity_types = await self._source.list_entity_types()
        for entity_type in entity_types:
            self._entity_types_by_id.setdefault(entity_type.id, entity_type)
            self._entity_types_by_api_key.setdefault(entity_type.api_key, entity_type)
        self._entity_types = entity_types
        logger.info("Loaded %d entity types", len(entity_types))
        return entity_types

    async def _load_entity_types(self) -> list[EntityType]:
        if self._entity_types is not None:
            return self._entity_types
        return await self._load_once("entity_types", self._fetch_entity_types)

    async def get_all_entity_types(self) -> list[EntityType]:
        return list(await self._load_entity_types())

    async def get_all_models(self) -> list[EntityType]:
        """Entity types that are regular models (not block models)."""
        return [et for et in await self._load_entity_types() if not et.modular_block]

    async def get_all_block_models(self) -> list[EntityType]:
        return [et for et in await self._load_entity_types() if et.modular_block]

    async def get_entity_type_by_id(self, entity_type_id: str) -> EntityType:
        await self._load_entity_types()
        entity_type = self._entity_types_by_id.get(entity_type_id)
        if entity_type is None:
            raise NotFoundError("Entity type", "ID", entity_type_id)
        return entity_type

    async def get_entity_type_by_api_key(self, api_key: str) -> EntityType:
        await self._load_entity_types()
        entity_type = self._entity_types_by_api_key.get(api_key)
        if entity_type is None:
            raise NotFoundError("Entity type", "API key", api_key)
        return entity_type

    # -- fields ---------------------------------------------------------------

    def cached_fields(self, entity_type: EntityType | str) -> list[Field] | None:
        """Return the memoized fields of ``entity_type`` without fetching, or ``None``."""
        entity_type_id = entity_type if isinstance(entity_type, str) else entity_type.id
        cached = self._fields_by_entity_type.get(entity_type_id)
        return list(cached) if cached is not None else None

    async def get_fields(self, entity_type: EntityType | str) -> list[Field]:
        entity_type_id = entity_type if isinstance(entity_type, str) else entity_type.id
        cached = self._fields_by_entity_type.get(entity_type_id)
        if cached is not None:
            return list(cached)

        async def _fetch() -> list[Field]:
            logger.debug("Fetching fields for entity type %s", entity_type_id)
            fields = await self._source.list_fields(entity_type_id)
            self._fields_by_entity_type.setdefault(entity_type_id, fields)
            return self._fields_by_entity_type[entity_type_id]

        return list(await self._load_once(f"fields:{entity_type_id}", _fetch))

    # -- fieldsets ------------------------------------------------------------

    def cached_fieldsets(self, entity_type: EntityType | str) -> list[Fieldset] | None:
        entity_type_id = entity_type if isinstance(entity_type, str) else entity_type.id
        cached = self._fieldsets_by_entity_type.get(entity_type_id)
        return list(cached) if cached is not None else None

    async def get_fieldsets(self, entity_type: EntityType | str) -> list[Fieldset]:
        """Return the fieldsets grouping the fields of ``entity_type``, ordered by position."""
        entity_type_id = entity_type if isinstance(entity_type, str) else entity_type.id
        cached = self._fieldsets_by_entity_type.get(entity_type_id)
        if cached is not None:
            return list(cached)

        async def _fetch() -> list[Fieldset]:
            logger.debug("Fetching fieldsets for entity type %s", entity_type_id)
            fieldsets = sorted(await self._source.list_fieldsets(entity_type_id), key=lambda fs: fs.position)
            self._fieldsets_by_entity_type.setdefault(entity_type_id, fieldsets)
            return self._fieldsets_by_entity_type[entity_type_id]

        return list(await self._load_once(f"fieldsets:{entity_type_id}", _fetch))

    # -- plugins --------------------------------------------------------------

    async def _fetch_plugins(self) -> list[Plugin]:
        logger.debug("Fetching plugins")
        plugins = await self._source.list_plugins()
        for plugin in plugins:
            self._plugins_by_id.setdefault(plugin.id, plugin)
            if plugin.package_name:
                self._plugins_by_package_name.setdefault(plugin.package_name, plugin)
        self._plugins = plugins
        logger.info("Loaded %d plugins", len(plugins))
        return plugins

    async def _load_plugins(self) -> list[Plugin]:
        if self._plugins is not None:
            return self._plugins
        return await self._load_once("plugins", self._fetch_plugins)

    async def get_all_plugins(self) -> list[Plugin]:
        return list(await self._load_plugins())

    async def get_plugin_by_id(self, plugin_id: str) -> Plugin:
        await self._load_plugins()
        plugin = self._plugins_by_id.get(plugin_id)
        if plugin is None:
            raise NotFoundError("Plugin", "ID", plugin_id)
        return plugin

    async def get_plugin_by_package_name(self, package_name: str) -> Plugin:
        await self._load_plugins()
        plugin = self._plugins_by_package_name.get(package_name)
        if plugin is None:
            raise NotFoundError("Plugin", "package name", package_name)
        return plugin
