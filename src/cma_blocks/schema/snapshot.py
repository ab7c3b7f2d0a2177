import json
import logging
import os
from pathlib import Path

from cma_blocks.models import SchemaSnapshot
from cma_blocks.schema.memory import InMemorySchemaSource

logger = logging.getLogger(__name__)

SNAPSHOT_ENV_VAR = "CMA_BLOCKS_SCHEMA_SNAPSHOT"
DEFAULT_SNAPSHOT_PATH = "schema.json"


def get_snapshot_path() -> Path:
    return Path(os.getenv(SNAPSHOT_ENV_VAR, DEFAULT_SNAPSHOT_PATH))


def load_schema_snapshot(path: str | Path) -> SchemaSnapshot:
    """Read a snapshot file.

    Raises ``FileNotFoundError`` when the file is missing, ``json.JSONDecodeError``
    when it is not JSON, and ``ValueError`` (pydantic's ``ValidationError``
    included) when its resources do not have the expected shape.
    """
    snapshot_path = Path(path)
    try:
        raw = json.loads(snapshot_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise FileNotFoundError(f"Schema snapshot not found: {snapshot_path}") from None

    if not isinstance(raw, dict):
        raise ValueError(f"Schema snapshot {snapshot_path} must be a JSON object, got {type(raw).__name__}")

    snapshot = SchemaSnapshot.from_raw(raw)
    logger.info(
        "Loaded schema snapshot %s (%d entity types, %d fields, %d fieldsets, %d plugins)",
        snapshot_path,
        len(snapshot.entity_types),
        len(snapshot.fields),
        len(snapshot.fieldsets),
        len(snapshot.plugins),
    )
    return snapshot


def get_schema_source(path: str | Path | None = None) -> InMemorySchemaSource:
    """Build a schema source from ``path``, or from ``$CMA_BLOCKS_SCHEMA_SNAPSHOT``."""
    return InMemorySchemaSource(load_schema_snapshot(path if path is not None else get_snapshot_path()))
