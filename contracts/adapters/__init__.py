"""Adapters for external dependencies.

Provides abstraction layers for:
- Contract persistence (in-memory, SQLite)
- Notification delivery (email over SMTP, in-memory outbox)
"""

from contracts.adapters.memory_storage_adapter import InMemoryStorageAdapter
from contracts.adapters.notifier import Notifier, NullNotifier
from contracts.adapters.sqlite_storage_adapter import SQLiteStorageAdapter
from contracts.adapters.storage_adapter import StorageAdapter

__all__ = [
    "InMemoryStorageAdapter",
    "Notifier",
    "NullNotifier",
    "SQLiteStorageAdapter",
    "StorageAdapter",
]
