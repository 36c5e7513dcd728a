"""
Factory function to create the appropriate storage implementation.

Reads configuration from environment variables to determine which
storage backend to use.
"""

import logging
import os
from typing import Optional

from .. import config
from .base import KeyValueStorage
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Singleton instance
_storage_instance: Optional[KeyValueStorage] = None


def create_storage(storage_type: Optional[str] = None) -> KeyValueStorage:
    """
    Build a new, initialized storage backend.

    Args:
        storage_type: "sqlite" or "memory"; defaults to the STORAGE_TYPE
                      environment variable

    Returns:
        KeyValueStorage implementation

    Raises:
        ConfigurationError: If the storage type is unknown
    """
    storage_type = (storage_type or os.environ.get('STORAGE_TYPE', config.STORAGE_TYPE)).lower()
    logger.info(f"Storage type: {storage_type}")

    if storage_type == 'sqlite':
        from .sqlite_storage import SQLiteStorage

        data_dir = os.environ.get('DATA_DIR') or config.DATA_DIR
        storage: KeyValueStorage = SQLiteStorage(db_path=os.path.join(data_dir, 'association.db'))

    elif storage_type == 'memory':
        from .memory_storage import MemoryStorage
        storage = MemoryStorage(quota_bytes=config.STORAGE_QUOTA_BYTES)

    else:
        raise ConfigurationError(
            f"Unknown STORAGE_TYPE: {storage_type}. "
            f"Valid options: sqlite, memory"
        )

    storage.initialize()
    return storage


def get_storage() -> KeyValueStorage:
    """
    Get or create the storage instance.

    Uses the STORAGE_TYPE environment variable to determine which implementation:
    - "sqlite" (default): SQLite file under DATA_DIR
    - "memory": Process-local dict with STORAGE_QUOTA_BYTES quota

    Returns:
        KeyValueStorage implementation

    Raises:
        ConfigurationError: If STORAGE_TYPE is unknown
    """
    global _storage_instance

    if _storage_instance is None:
        _storage_instance = create_storage()
    return _storage_instance


def reset_storage() -> None:
    """
    Reset the storage singleton.

    Used for testing or when switching configurations.
    """
    global _storage_instance
    if _storage_instance is not None:
        _storage_instance.close()
        _storage_instance = None
