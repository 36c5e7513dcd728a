"""
Abstract base class defining the key-value substrate interface.

All storage backends must inherit from this class and implement all
abstract methods. The substrate is opaque: it stores strings under string
keys and offers no atomicity across keys.
"""

from abc import ABC, abstractmethod
from typing import Optional, List


class KeyValueStorage(ABC):
    """
    Abstract interface for the persistent key-value substrate.

    All methods must be implemented by concrete storage classes.
    Methods should be thread-safe where applicable.
    """

    #: Short backend name reported by get_database_info()
    name = 'abstract'

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @abstractmethod
    def initialize(self) -> None:
        """
        Prepare the backend for use.

        Called once before the first read or write.
        Should be idempotent (safe to call multiple times).
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Release backend resources.

        Should be called when the application shuts down.
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """
        Check if the backend is usable.

        Returns:
            True if storage is accessible, False otherwise
        """
        pass

    # =========================================================================
    # KEY-VALUE OPERATIONS
    # =========================================================================

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the raw value stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored string, or None when the key is absent
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store a raw value under a key, replacing any previous value.

        Args:
            key: Storage key
            value: Encoded string to store

        Raises:
            StorageWriteError: If the backend rejects the write
                              (quota exceeded, I/O failure)
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """
        Delete a key. Removing an absent key is a no-op.
        """
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        """
        List every stored key.

        Returns:
            Keys in no particular order
        """
        pass

    # =========================================================================
    # DIAGNOSTICS
    # =========================================================================

    def size(self) -> int:
        """
        Get the total stored size in characters.

        Returns:
            Sum of the lengths of every stored value
        """
        total = 0
        for key in self.keys():
            value = self.get(key)
            if value is not None:
                total += len(value)
        return total
