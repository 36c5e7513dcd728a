"""
Custom exceptions for the storage layer.

These exceptions provide clear error categories for substrate operations:
- StorageError: Base exception for all storage errors
- StorageWriteError: The substrate rejected a write (quota, I/O, encoding)
- CorruptDataError: Stored bytes could not be decoded
- ConfigurationError: Missing or invalid storage configuration
- SchemaError: Schema initialization issues
"""

from ..exceptions import StoreError


class StorageError(StoreError):
    """Base exception for all storage errors."""
    pass


class StorageWriteError(StorageError):
    """Failed to write a value to the substrate."""
    pass


class CorruptDataError(StorageError):
    """Stored value could not be decoded."""
    pass


class ConfigurationError(StorageError):
    """Missing or invalid storage configuration."""
    pass


class SchemaError(StorageError):
    """Error initializing the storage schema."""
    pass
