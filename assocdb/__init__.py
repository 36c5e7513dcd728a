"""
Season-scoped data store for association management.

Usage:
    from assocdb import get_association_database

    db = get_association_database()
    db.save_member({'id': 'm1', 'name': 'Dupont'})
"""

from assocdb.database import AssociationDatabase, get_association_database, reset_association_database
from assocdb.exceptions import (
    DuplicateNameError,
    NotFoundError,
    SeasonFrozenError,
    StoreError,
    ValidationError,
)
from assocdb.logging_config import setup_logging

__version__ = "1.0.0"

__all__ = [
    "AssociationDatabase",
    "get_association_database",
    "reset_association_database",
    "setup_logging",
    "StoreError",
    "NotFoundError",
    "DuplicateNameError",
    "SeasonFrozenError",
    "ValidationError",
]
