"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

import os


def _get_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ('true', '1', 'yes')


def _get_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default)


# =============================================================================
# STORAGE SETTINGS
# =============================================================================
# Backend used by the storage factory: "sqlite" (file on disk) or "memory"
STORAGE_TYPE = _get_str('STORAGE_TYPE', 'sqlite')

# Directory holding the SQLite file
DATA_DIR = os.environ.get('DATA_DIR') or 'data'

# Quota for the in-memory backend, in characters (browser local storage is ~5MB)
# 0 disables the quota
STORAGE_QUOTA_BYTES = _get_int('STORAGE_QUOTA_BYTES', 5 * 1024 * 1024)

# Serialization codec: "compact" (shortened keys + zlib) or "json"
CODEC = _get_str('CODEC', 'compact')

# =============================================================================
# CACHE SETTINGS
# =============================================================================
# Read-through cache lifetime in milliseconds. 0 disables the cache.
CACHE_TTL_MS = _get_int('CACHE_TTL_MS', 500)

# Maximum number of cached keys (oldest inserted is evicted first)
CACHE_MAX_SIZE = _get_int('CACHE_MAX_SIZE', 50)

# =============================================================================
# SEASON SETTINGS
# =============================================================================
# Number of entities copied per chunk when a new season is created
COPY_CHUNK_SIZE = _get_int('COPY_CHUNK_SIZE', 50)

# Run the forward copy on a background worker (False runs it inline)
BACKGROUND_COPY = _get_bool('BACKGROUND_COPY', True)

# =============================================================================
# DIAGNOSTICS
# =============================================================================
# Number of recent error messages kept for get_database_info()
ERROR_HISTORY_SIZE = _get_int('ERROR_HISTORY_SIZE', 10)

# Version tag written into exported snapshots
EXPORT_FORMAT_VERSION = '1.0'

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = _get_str('LOG_LEVEL', 'INFO')
