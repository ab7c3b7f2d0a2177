from cma_blocks.schema.memory import InMemorySchemaSource
from cma_blocks.schema.repository import SchemaRepository
from cma_blocks.schema.snapshot import (
    DEFAULT_SNAPSHOT_PATH,
    SNAPSHOT_ENV_VAR,
    get_schema_source,
    get_snapshot_path,
    load_schema_snapshot,
)

__all__ = [
    "DEFAULT_SNAPSHOT_PATH",
    "SNAPSHOT_ENV_VAR",
    "InMemorySchemaSource",
    "SchemaRepository",
    "get_schema_source",
    "get_snapshot_path",
    "load_schema_snapshot",
]
