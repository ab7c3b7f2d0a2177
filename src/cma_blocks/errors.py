class CmaBlocksError(Exception):
    """Base class for errors raised by cma_blocks."""


class NotFoundError(CmaBlocksError, LookupError):
    """A schema entity is missing from a loaded snapshot."""

    def __init__(self, kind: str, key_name: str, key: str) -> None:
        self.kind = kind
        self.key_name = key_name
        self.key = key
        super().__init__(f"{kind} with {key_name} '{key}' not found")


class MalformedBlockError(CmaBlocksError, ValueError):
    """A block item does not have the shape the caller requires."""


class FieldValueEntriesError(CmaBlocksError, ValueError):
    """A field value cannot be rebuilt from the given entries."""
