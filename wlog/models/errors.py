# Rev 0.1.0
"""Error taxonomy shared by the repositories and the record store."""
from __future__ import annotations

from .types import EntityType


class WlogError(Exception):
    pass


class NotFound(WlogError, LookupError):
    """The referenced record key does not exist."""

    def __init__(self, entity: EntityType, key):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} {key!r} not found")


class ConstraintViolation(WlogError, ValueError):
    """A uniqueness, foreign-key or singleton rule would be broken."""


class StorageFailure(WlogError, RuntimeError):
    """The SQLite file or driver failed; surfaced as-is."""
