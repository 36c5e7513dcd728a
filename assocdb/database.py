"""
Association Database - Facade over the season-scoped store.

Every call made by the UI layer goes through this class. Failures never
cross the facade: each operation catches ``StoreError``, logs it, records
it in the recent-error history, and returns ``False`` or an empty value.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from . import config
from .codec import Codec, get_codec
from .exceptions import DuplicateNameError, StoreError, ValidationError
from .models import (
    Activity,
    CalendarEvent,
    EventType,
    Member,
    MembershipType,
    Payment,
    PaymentMethod,
    Season,
    Settings,
    Task,
)
from .models.base import StoredModel, coerce
from .repositories import ActivityRepository, EntityRepository, MemberRepository, SeasonScopedRepository
from .services.cache import ReadThroughCache
from .services.defaults import (
    DEFAULT_EVENT_TYPES,
    DEFAULT_MEMBERSHIP_TYPES,
    DEFAULT_PAYMENT_METHODS,
    season_options,
)
from .services.document_store import DocumentStore
from .services.season_manager import SeasonManager, repair_seasons
from .storage import create_storage, keys
from .storage.base import KeyValueStorage
from .types import CollectionStatsDict, DatabaseInfoDict, SnapshotDict
from .utils.ids import utc_now_iso

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Snapshot field name, storage key and record model, in export order
SNAPSHOT_COLLECTIONS: Tuple[Tuple[str, str, Type[StoredModel]], ...] = (
    ('members', keys.MEMBERS, Member),
    ('activities', keys.ACTIVITIES, Activity),
    ('payments', keys.PAYMENTS, Payment),
    ('tasks', keys.TASKS, Task),
    ('calendarEvents', keys.CALENDAR_EVENTS, CalendarEvent),
    ('membershipTypes', keys.MEMBERSHIP_TYPES, MembershipType),
    ('paymentMethods', keys.PAYMENT_METHODS, PaymentMethod),
    ('eventTypes', keys.EVENT_TYPES, EventType),
    ('seasons', keys.SEASONS, Season),
)

# Lookup tables refilled with their defaults whenever they are empty
DEFAULT_LOOKUPS: Tuple[Tuple[str, List[StoredModel]], ...] = (
    (keys.MEMBERSHIP_TYPES, DEFAULT_MEMBERSHIP_TYPES),
    (keys.PAYMENT_METHODS, DEFAULT_PAYMENT_METHODS),
    (keys.EVENT_TYPES, DEFAULT_EVENT_TYPES),
)


class AssociationDatabase:
    """
    Season-scoped data store for an association.

    Collaborators are injected; anything left out is built from config on
    ``open()``. Use as a context manager or call ``open()``/``close()``.

    Usage:
        with AssociationDatabase() as db:
            db.init_store()
            db.save_member({'id': 'm1', 'name': 'Dupont'})
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        codec: Optional[Codec] = None,
        cache: Optional[ReadThroughCache] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        background_copy: bool = config.BACKGROUND_COPY,
        chunk_size: int = config.COPY_CHUNK_SIZE,
    ):
        self._storage = storage
        self._codec = codec
        self._cache = cache
        self._executor = executor
        self._background_copy = background_copy
        self._chunk_size = chunk_size

        self.store: Optional[DocumentStore] = None
        self.seasons: Optional[SeasonManager] = None
        self._opened = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def open(self) -> 'AssociationDatabase':
        """
        Build the store and repositories. Idempotent.

        Raises:
            StorageError: If the storage backend cannot be initialized
        """
        if self._opened:
            return self

        if self._storage is None:
            self._storage = create_storage()
        else:
            self._storage.initialize()

        self.store = DocumentStore(
            self._storage,
            self._codec or get_codec(config.CODEC),
            self._cache if self._cache is not None else ReadThroughCache(),
        )
        self.seasons = SeasonManager(
            self.store,
            chunk_size=self._chunk_size,
            background_copy=self._background_copy,
            executor=self._executor,
        )

        self.members = MemberRepository(self.store, self.seasons)
        self.activities = ActivityRepository(self.store, self.seasons)
        self.payments: SeasonScopedRepository[Payment] = SeasonScopedRepository(
            self.store, self.seasons, Payment, keys.PAYMENTS,
            sort_key=lambda p: p.created_at, reverse=True,
        )
        self.tasks: EntityRepository[Task] = EntityRepository(
            self.store, Task, keys.TASKS,
            sort_key=lambda t: t.created_at, reverse=True,
        )
        self.calendar_events: EntityRepository[CalendarEvent] = EntityRepository(
            self.store, CalendarEvent, keys.CALENDAR_EVENTS,
            sort_key=lambda e: e.start_date,
        )
        self.membership_types: EntityRepository[MembershipType] = EntityRepository(
            self.store, MembershipType, keys.MEMBERSHIP_TYPES,
            sort_key=lambda t: t.name.lower(),
        )
        self.payment_methods: EntityRepository[PaymentMethod] = EntityRepository(
            self.store, PaymentMethod, keys.PAYMENT_METHODS,
            sort_key=lambda m: m.name.lower(),
        )
        self.event_types: EntityRepository[EventType] = EntityRepository(
            self.store, EventType, keys.EVENT_TYPES,
            sort_key=lambda t: t.name.lower(),
        )

        self._opened = True
        logger.info(f"Opened association store ({self._storage.name}, {self.store.codec.name} codec)")
        return self

    def close(self) -> None:
        """Wait for a running season copy, then release the storage backend."""
        if not self._opened:
            return
        # An injected executor is not shut down, so wait for its copy explicitly
        self.seasons.wait_for_copy()
        self.seasons.shutdown()
        self._storage.close()
        self._opened = False
        logger.info("Closed association store")

    def __enter__(self) -> 'AssociationDatabase':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _attempt(self, action: str, default: T, func: Callable[..., T], *args: Any) -> T:
        """Run one facade operation, converting store failures to ``default``."""
        self.open()
        try:
            return func(*args)
        except StoreError as e:
            logger.warning(f"{action} failed: {e}")
            self.store.record_error(f"{action}: {e}")
            return default

    def _save(self, action: str, repo: EntityRepository, item: Any) -> bool:
        def save() -> bool:
            repo.save(item)
            return True
        return self._attempt(action, False, save)

    def _delete(self, action: str, repo: EntityRepository, entity_id: str) -> bool:
        def delete() -> bool:
            repo.delete(entity_id)
            return True
        return self._attempt(action, False, delete)

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    def init_store(self, today: Optional[date] = None) -> bool:
        """
        Create first-run data or repair the stored invariants.

        Idempotent: missing collections are created empty, the season list
        is repaired (at least one season, exactly one active, settings in
        sync) and empty lookup tables get their defaults back.
        """
        def init() -> bool:
            with self.store.transaction():
                for key in keys.COLLECTIONS:
                    if key != keys.SEASONS and not self.store.exists(key):
                        self.store.save(key, [])
                self.seasons.repair(today)
                self._restore_lookups()
            logger.info(f"Store ready, active season {self.seasons.active_season_name()}")
            return True

        return self._attempt("Store initialization", False, init)

    def _restore_lookups(self) -> None:
        defaults = (
            (self.membership_types, DEFAULT_MEMBERSHIP_TYPES),
            (self.payment_methods, DEFAULT_PAYMENT_METHODS),
            (self.event_types, DEFAULT_EVENT_TYPES),
        )
        for repo, items in defaults:
            if not repo.load_all():
                repo.replace_all(items)
                logger.info(f"Restored default {repo.model.__name__} records")

    # =========================================================================
    # MEMBERS / ACTIVITIES / PAYMENTS (active season)
    # =========================================================================

    def get_all_members(self) -> List[Member]:
        return self._attempt("Loading members", [], self.members.get_all)

    def save_member(self, member: Union[Member, Mapping[str, Any]]) -> bool:
        return self._save("Saving member", self.members, member)

    def delete_member(self, member_id: str) -> bool:
        return self._delete("Deleting member", self.members, member_id)

    def get_all_activities(self) -> List[Activity]:
        return self._attempt("Loading activities", [], self.activities.get_all)

    def save_activity(self, activity: Union[Activity, Mapping[str, Any]]) -> bool:
        return self._save("Saving activity", self.activities, activity)

    def delete_activity(self, activity_id: str) -> bool:
        return self._delete("Deleting activity", self.activities, activity_id)

    def get_all_payments(self) -> List[Payment]:
        return self._attempt("Loading payments", [], self.payments.get_all)

    def save_payment(self, payment: Union[Payment, Mapping[str, Any]]) -> bool:
        return self._save("Saving payment", self.payments, payment)

    def delete_payment(self, payment_id: str) -> bool:
        return self._delete("Deleting payment", self.payments, payment_id)

    # =========================================================================
    # TASKS / CALENDAR (all seasons)
    # =========================================================================

    def get_all_tasks(self) -> List[Task]:
        return self._attempt("Loading tasks", [], self.tasks.get_all)

    def save_task(self, task: Union[Task, Mapping[str, Any]]) -> bool:
        return self._save("Saving task", self.tasks, task)

    def delete_task(self, task_id: str) -> bool:
        return self._delete("Deleting task", self.tasks, task_id)

    def get_all_calendar_events(self) -> List[CalendarEvent]:
        return self._attempt("Loading calendar events", [], self.calendar_events.get_all)

    def save_calendar_event(self, event: Union[CalendarEvent, Mapping[str, Any]]) -> bool:
        return self._save("Saving calendar event", self.calendar_events, event)

    def delete_calendar_event(self, event_id: str) -> bool:
        return self._delete("Deleting calendar event", self.calendar_events, event_id)

    # =========================================================================
    # LOOKUP TABLES
    # =========================================================================

    def get_all_membership_types(self) -> List[MembershipType]:
        return self._attempt("Loading membership types", [], self.membership_types.get_all)

    def save_membership_type(self, item: Union[MembershipType, Mapping[str, Any]]) -> bool:
        return self._save("Saving membership type", self.membership_types, item)

    def delete_membership_type(self, item_id: str) -> bool:
        return self._delete("Deleting membership type", self.membership_types, item_id)

    def get_all_payment_methods(self) -> List[PaymentMethod]:
        return self._attempt("Loading payment methods", [], self.payment_methods.get_all)

    def save_payment_method(self, item: Union[PaymentMethod, Mapping[str, Any]]) -> bool:
        return self._save("Saving payment method", self.payment_methods, item)

    def delete_payment_method(self, item_id: str) -> bool:
        return self._delete("Deleting payment method", self.payment_methods, item_id)

    def get_all_event_types(self) -> List[EventType]:
        return self._attempt("Loading event types", [], self.event_types.get_all)

    def save_event_type(self, item: Union[EventType, Mapping[str, Any]]) -> bool:
        return self._save("Saving event type", self.event_types, item)

    def delete_event_type(self, item_id: str) -> bool:
        return self._delete("Deleting event type", self.event_types, item_id)

    # =========================================================================
    # SEASONS & SETTINGS
    # =========================================================================

    def list_seasons(self) -> List[Season]:
        return self._attempt("Listing seasons", [], self.seasons.list_seasons)

    def get_active_season_name(self) -> str:
        return self._attempt("Reading active season", "", self.seasons.active_season_name)

    def is_active_season_completed(self) -> bool:
        return self._attempt("Reading season state", False, self.seasons.is_current_season_completed)

    def activate_season(self, season_id: str) -> bool:
        def activate() -> bool:
            self.seasons.activate(season_id)
            return True
        return self._attempt(f"Activating season {season_id}", False, activate)

    def create_season(
        self,
        name: str,
        start_date: Union[date, str, None] = None,
        end_date: Union[date, str, None] = None,
    ) -> bool:
        """Create a season; the active season's members and activities are copied into it."""
        def create() -> bool:
            self.seasons.create_season(name, start_date, end_date)
            return True
        return self._attempt(f"Creating season {name}", False, create)

    def update_season(self, season: Union[Season, Mapping[str, Any]]) -> bool:
        def update() -> bool:
            self.seasons.update_season(season)
            return True
        return self._attempt("Updating season", False, update)

    def delete_season(self, season_id: str) -> bool:
        return self._attempt(f"Deleting season {season_id}", False, self.seasons.delete_season, season_id)

    def get_settings(self) -> Settings:
        return self._attempt("Reading settings", Settings(), self.seasons.get_settings)

    def update_settings(self, settings: Union[Settings, Mapping[str, Any]]) -> bool:
        def update() -> bool:
            self.seasons.update_settings(settings)
            return True
        return self._attempt("Updating settings", False, update)

    def get_season_options(self) -> List[str]:
        return season_options()

    def wait_for_season_copy(self, timeout: Optional[float] = None) -> bool:
        """Block until the last season copy finishes; False on timeout or failure."""
        self.open()
        return self.seasons.wait_for_copy(timeout)

    # =========================================================================
    # EXPORT / IMPORT
    # =========================================================================

    def export_all(self) -> str:
        """
        Serialize every collection (all seasons) and the settings as JSON.

        Returns:
            The snapshot, or an empty string if the store cannot be read
        """
        def export() -> str:
            with self.store.transaction():
                snapshot: SnapshotDict = {
                    name: self.store.load(key, [], list)
                    for name, key, _ in SNAPSHOT_COLLECTIONS
                }
                snapshot['settings'] = self.store.load(keys.SETTINGS, {}, dict)
            snapshot['metadata'] = {
                'version': config.EXPORT_FORMAT_VERSION,
                'exportDate': utc_now_iso(),
                'stats': {name: len(snapshot[name]) for name, _, _ in SNAPSHOT_COLLECTIONS},
            }
            logger.info(f"Exported {sum(snapshot['metadata']['stats'].values())} records")
            return json.dumps(snapshot, ensure_ascii=False, indent=2)

        return self._attempt("Export", "", export)

    def import_all(self, payload: str) -> bool:
        """
        Replace every collection with the content of an exported snapshot.

        Every record is validated before anything is written; an invalid
        snapshot leaves the store untouched. Collections absent from the
        snapshot become empty. Season repair and default lookup tables are
        applied before the single write, so a failed import changes nothing.
        """
        def do_import() -> bool:
            updates = _parse_snapshot(payload)
            self.seasons.wait_for_copy()
            with self.store.transaction():
                self.store.save_many(updates)
                self.store.invalidate()
            logger.info(f"Imported {sum(len(v) for k, v in updates.items() if k != keys.SETTINGS)} records")
            return True

        return self._attempt("Import", False, do_import)

    # =========================================================================
    # DIAGNOSTICS
    # =========================================================================

    def _collection_stats(self) -> CollectionStatsDict:
        return {
            name: len(self.store.load(key, [], list))
            for name, key, _ in SNAPSHOT_COLLECTIONS
        }

    def get_database_info(self) -> DatabaseInfoDict:
        def info() -> DatabaseInfoDict:
            return {
                'storage': self._storage.name,
                'codec': self.store.codec.name,
                'activeSeason': self.seasons.active_season_name(),
                'stats': self._collection_stats(),
                'cache': self.store.cache.stats(),
                'storageSize': self._storage.size(),
                'errors': self.store.recent_errors(),
                'copyInProgress': self.seasons.copy_in_progress,
            }
        return self._attempt("Reading database info", {}, info)

    def clear_all(self) -> bool:
        """Remove every stored key, the cached values and the error history."""
        def clear() -> bool:
            self.seasons.wait_for_copy()
            with self.store.transaction():
                for key in keys.ALL_KEYS:
                    self.store.remove(key)
                self.store.invalidate()
                self.store.clear_errors()
            logger.info("Cleared all association data")
            return True
        return self._attempt("Clearing data", False, clear)


def _parse_snapshot(payload: str) -> Dict[str, Any]:
    """
    Validate an exported snapshot into storage updates.

    Raises:
        ValidationError: Malformed JSON, wrong shapes or invalid records
        DuplicateNameError: Two seasons share a name
    """
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Snapshot must be a JSON object")

    updates: Dict[str, Any] = {}
    for name, key, model in SNAPSHOT_COLLECTIONS:
        items = data.get(name) or []
        if not isinstance(items, list):
            raise ValidationError(f"Snapshot field {name} must be a list")
        updates[key] = [coerce(model, item).to_record() for item in items]

    names = [season['name'] for season in updates[keys.SEASONS]]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise DuplicateNameError(f"Duplicate season name(s): {', '.join(duplicates)}")

    settings = data.get('settings') or {}
    if not isinstance(settings, dict):
        raise ValidationError("Snapshot field settings must be an object")

    seasons, repaired, _ = repair_seasons(
        [Season.model_validate(record) for record in updates[keys.SEASONS]],
        coerce(Settings, settings),
    )
    updates[keys.SEASONS] = [season.to_record() for season in seasons]
    updates[keys.SETTINGS] = repaired.to_record()

    for key, items in DEFAULT_LOOKUPS:
        if not updates[key]:
            updates[key] = [item.to_record() for item in items]
    return updates


# Singleton instance
_database_instance: Optional[AssociationDatabase] = None


def get_association_database() -> AssociationDatabase:
    """
    Get or create the process-wide database, opened and initialized.

    The storage backend follows the STORAGE_TYPE environment variable.
    """
    global _database_instance

    if _database_instance is None:
        database = AssociationDatabase().open()
        database.init_store()
        _database_instance = database
    return _database_instance


def reset_association_database() -> None:
    """
    Close and forget the singleton.

    Used for testing or when switching configurations.
    """
    global _database_instance
    if _database_instance is not None:
        _database_instance.close()
        _database_instance = None
