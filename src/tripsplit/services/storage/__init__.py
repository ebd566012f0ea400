"""
Storage Services Package

Provides the persistence gateway interfaces and concrete implementations.
Currently implements a local JSON file as the backend, but designed to be
swappable.
"""

from tripsplit.services.storage.interface import (
    AuditStorageInterface,
    CorruptStateError,
    StateStorageInterface,
    StorageError,
)
from tripsplit.services.storage.json_file import (
    JsonFileStateStorage,
    JsonLinesAuditStorage,
)
from tripsplit.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryStateStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "StateStorageInterface",
    # Exceptions
    "CorruptStateError",
    "StorageError",
    # Local file implementation
    "JsonFileStateStorage",
    "JsonLinesAuditStorage",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryStateStorage",
]
