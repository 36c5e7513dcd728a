"""
Shared test fixtures and configuration.

Provides reusable fixtures for all test files including storage backends,
a document store, a season manager, database facades and sample records.
"""

import pytest
import os
import shutil
import tempfile
from datetime import date
from typing import Dict, Any

from assocdb.codec import CompactCodec
from assocdb.database import AssociationDatabase
from assocdb.services.cache import ReadThroughCache
from assocdb.services.document_store import DocumentStore
from assocdb.services.season_manager import SeasonManager
from assocdb.storage import MemoryStorage, SQLiteStorage

# Fixed "today" so the default season is always 2025-2026
TODAY = date(2025, 10, 1)


# =============================================================================
# STORAGE FIXTURES
# =============================================================================

@pytest.fixture
def test_data_dir():
    """Provide a temporary directory for test data."""
    temp_dir = tempfile.mkdtemp(prefix="assocdb_test_")
    yield temp_dir

    # Cleanup
    if os.path.exists(temp_dir):
        try:
            shutil.rmtree(temp_dir)
        except PermissionError:
            pass  # Windows file locking, ignore


@pytest.fixture
def memory_storage():
    """Provide an empty in-memory storage without quota."""
    storage = MemoryStorage()
    storage.initialize()
    return storage


@pytest.fixture
def sqlite_storage(test_data_dir):
    """Provide an initialized SQLite storage in a temporary directory."""
    storage = SQLiteStorage(db_path=os.path.join(test_data_dir, 'association.db'))
    storage.initialize()
    yield storage
    storage.close()  # Close connection before cleanup


# =============================================================================
# SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def store(memory_storage):
    """Provide a document store with the cache disabled."""
    return DocumentStore(memory_storage, CompactCodec(), ReadThroughCache(ttl=0))


@pytest.fixture
def seasons(store):
    """Provide a season manager with the default 2025-2026 season active."""
    manager = SeasonManager(store, chunk_size=2, background_copy=False)
    manager.repair(TODAY)
    yield manager
    manager.shutdown()


@pytest.fixture(params=[0, 60], ids=["uncached", "cached"])
def db(request, memory_storage):
    """
    Provide an initialized database facade.

    Runs every test twice: once with the read-through cache disabled and
    once with a long-lived cache, since results must not depend on it.
    """
    database = AssociationDatabase(
        storage=memory_storage,
        cache=ReadThroughCache(ttl=request.param),
        background_copy=False,
        chunk_size=2,
    )
    database.open()
    assert database.init_store(today=TODAY)
    yield database
    database.close()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_member() -> Dict[str, Any]:
    """Provide a member without season or enrollments."""
    return {
        'id': 'm1',
        'name': 'Dupont',
        'firstName': 'Marie',
        'email': 'marie.dupont@example.org',
        'phone': '0600000000',
        'city': 'Lyon',
        'activityIds': [],
    }


@pytest.fixture
def sample_activity() -> Dict[str, Any]:
    """Provide an activity without season or members."""
    return {
        'id': 'a1',
        'name': 'Yoga',
        'description': 'Tuesday evening class',
        'price': 120,
        'memberIds': [],
    }


@pytest.fixture
def sample_payment() -> Dict[str, Any]:
    """Provide a payment of member m1 for activity a1."""
    return {
        'id': 'p1',
        'memberId': 'm1',
        'activityId': 'a1',
        'amount': 120,
        'method': 'Cash',
        'status': 'paid',
    }
