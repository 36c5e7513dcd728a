"""
In-memory storage backend.

Models browser local storage: a process-local dict of strings with an
optional quota on the total stored size.
"""

import threading
from typing import Dict, Optional, List

from .base import KeyValueStorage
from .exceptions import StorageWriteError


class MemoryStorage(KeyValueStorage):
    """
    Dict-backed storage, lost when the process exits.

    Implements the KeyValueStorage abstract base class.
    """

    name = 'memory'

    def __init__(self, quota_bytes: int = 0):
        """
        Create in-memory storage.

        Args:
            quota_bytes: Maximum total size of stored values in characters
                         (0 means unlimited)
        """
        self.quota_bytes = quota_bytes
        self._data: Dict[str, str] = {}
        self._lock = threading.RLock()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Nothing to prepare for the in-memory backend."""

    def close(self) -> None:
        """Nothing to release; data stays available until the object is dropped."""

    def health_check(self) -> bool:
        return True

    # =========================================================================
    # KEY-VALUE OPERATIONS
    # =========================================================================

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageWriteError(f"Value for {key} must be a string, got {type(value).__name__}")

        with self._lock:
            if self.quota_bytes:
                previous = len(self._data.get(key, ''))
                used = sum(len(v) for v in self._data.values()) - previous
                if used + len(value) > self.quota_bytes:
                    raise StorageWriteError(
                        f"Quota exceeded writing {key}: "
                        f"{used + len(value)} > {self.quota_bytes} characters"
                    )
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())

    def size(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._data.values())
