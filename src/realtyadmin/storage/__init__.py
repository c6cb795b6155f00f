from .storage import (
    Storage,
    StorageSession,
    StorageError,
    DuplicateEntry,
    MissingField,
    DatabaseBusy,
)
from .sqlite import SQLite

__all__ = [
    "Storage",
    "StorageSession",
    "StorageError",
    "DuplicateEntry",
    "MissingField",
    "DatabaseBusy",
    "SQLite",
]
