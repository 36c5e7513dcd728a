"""
Type definitions for the association store.

Provides TypedDict classes for the dictionaries returned by the facade
and the season manager.
"""

from typing import TypedDict, Optional, List, Dict, Any


class CollectionStatsDict(TypedDict, total=False):
    """Record counts per collection (all seasons)."""
    members: int
    activities: int
    payments: int
    tasks: int
    calendarEvents: int
    membershipTypes: int
    paymentMethods: int
    eventTypes: int
    seasons: int


class CacheStatsDict(TypedDict, total=False):
    """Read-through cache statistics."""
    enabled: bool
    size: int
    maxsize: int
    version: int
    hits: int
    misses: int
    keys: List[str]


class DatabaseInfoDict(TypedDict, total=False):
    """Diagnostics returned by get_database_info()."""
    storage: str
    codec: str
    activeSeason: str
    stats: CollectionStatsDict
    cache: CacheStatsDict
    storageSize: int
    errors: List[str]
    copyInProgress: bool


class ExportMetadataDict(TypedDict):
    """Metadata block of an exported snapshot."""
    version: str
    exportDate: str
    stats: CollectionStatsDict


class SnapshotDict(TypedDict, total=False):
    """
    Full export of the store.

    Every collection is unfiltered (all seasons).
    """
    members: List[Dict[str, Any]]
    activities: List[Dict[str, Any]]
    payments: List[Dict[str, Any]]
    tasks: List[Dict[str, Any]]
    calendarEvents: List[Dict[str, Any]]
    membershipTypes: List[Dict[str, Any]]
    paymentMethods: List[Dict[str, Any]]
    eventTypes: List[Dict[str, Any]]
    seasons: List[Dict[str, Any]]
    settings: Dict[str, Any]
    metadata: ExportMetadataDict


class CopyResultDict(TypedDict):
    """Outcome of a forward copy into a new season."""
    source: str
    target: str
    members: int
    activities: int
    completed: bool
