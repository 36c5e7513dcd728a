"""
Domain exceptions raised by the association store.

- StoreError: Base exception for everything the core raises
- NotFoundError: An operation referenced an unknown id or name
- DuplicateNameError: A season with the same name already exists
- SeasonFrozenError: Mutation of a completed season's entities
- ValidationError: Malformed entity, rejected before any write

Storage-level failures live in assocdb.storage.exceptions and also derive
from StoreError, so the facade can convert every failure with one handler.
"""


class StoreError(Exception):
    """Base exception for all association store errors."""
    pass


class NotFoundError(StoreError):
    """Referenced entity or season does not exist."""
    pass


class DuplicateNameError(StoreError):
    """A season with this name already exists."""
    pass


class SeasonFrozenError(StoreError):
    """The season is completed; its entities are read-only."""
    pass


class ValidationError(StoreError):
    """Entity is missing a required field or has an invalid value."""
    pass
