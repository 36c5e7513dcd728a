"""
Storage module for the association store.

Provides a unified key-value interface over multiple backends:
- SQLite (durable file on disk)
- Memory (local-storage model with a size quota)

Usage:
    from assocdb.storage import get_storage

    storage = get_storage()  # Uses STORAGE_TYPE env var
    raw = storage.get('assoc_members')
"""

from .base import KeyValueStorage
from .factory import create_storage, get_storage, reset_storage
from .memory_storage import MemoryStorage
from .sqlite_storage import SQLiteStorage
from .exceptions import (
    StorageError,
    StorageWriteError,
    CorruptDataError,
    ConfigurationError,
    SchemaError
)

__all__ = [
    'KeyValueStorage',
    'MemoryStorage',
    'SQLiteStorage',
    'create_storage',
    'get_storage',
    'reset_storage',
    'StorageError',
    'StorageWriteError',
    'CorruptDataError',
    'ConfigurationError',
    'SchemaError'
]
