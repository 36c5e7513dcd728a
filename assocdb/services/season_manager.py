"""
Season Manager - Owns the season collection and the active-season pointer.

Seasons partition members, activities and payments by name. Exactly one
season is active at a time and its name is mirrored in the settings record;
this class is the only writer of both. Creating a season copies the active
season's members and activities forward on a background worker.
"""

import concurrent.futures
import copy
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from .. import config
from ..exceptions import DuplicateNameError, NotFoundError, SeasonFrozenError, StoreError, ValidationError
from ..models import Season, Settings
from ..models.base import coerce
from ..models.season import season_dates_from_name
from ..storage import keys
from ..types import CopyResultDict
from ..utils.ids import new_id, utc_now_iso
from .defaults import default_season
from .document_store import DocumentStore

logger = logging.getLogger(__name__)


def repair_seasons(
    seasons: List[Season],
    settings: Settings,
    today: Optional[date] = None,
) -> Tuple[List[Season], Settings, bool]:
    """
    Apply the season invariants to in-memory records.

    Returns:
        The repaired seasons, the repaired settings, and whether anything changed
    """
    changed = False

    if not seasons:
        seasons = [default_season(today)]
        changed = True
        logger.info(f"Created default season {seasons[0].name}")

    actives = [s for s in seasons if s.active]
    if len(actives) != 1:
        by_name = {s.name: s for s in seasons}
        chosen = (
            next((s for s in actives if s.name == settings.active_season_name), None)
            or (actives[0] if actives else None)
            or by_name.get(settings.active_season_name)
            or max(seasons, key=lambda s: s.start_date)
        )
        seasons = [s.model_copy(update={'active': s.id == chosen.id}) for s in seasons]
        changed = True
        logger.warning(f"Found {len(actives)} active season(s); activated {chosen.name}")

    active = next(s for s in seasons if s.active)
    if settings.active_season_name != active.name:
        settings = settings.model_copy(update={'active_season_name': active.name})
        changed = True

    return seasons, settings, changed


class SeasonManager:
    """
    Season lifecycle: list, activate, create (with forward copy), update, delete.

    Flags ``active`` and ``completed`` are independent: an active season may
    be completed, in which case its scoped entities are read-only until the
    season is reopened with ``update_season``.
    """

    def __init__(
        self,
        store: DocumentStore,
        chunk_size: int = config.COPY_CHUNK_SIZE,
        background_copy: bool = config.BACKGROUND_COPY,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.store = store
        self.chunk_size = max(1, chunk_size)
        self.background_copy = background_copy

        # Copy worker (lazy initialization)
        self._executor = executor
        self._owns_executor = executor is None
        self._copy_future: Optional[Future] = None

    # =========================================================================
    # READS
    # =========================================================================

    def _load_seasons(self) -> List[Season]:
        seasons = []
        for record in self.store.load(keys.SEASONS, [], list):
            try:
                seasons.append(Season.model_validate(record))
            except PydanticValidationError as e:
                logger.warning(f"Skipping invalid season record {record!r}: {e}")
        return seasons

    def list_seasons(self) -> List[Season]:
        """All seasons, most recent start date first."""
        return sorted(self._load_seasons(), key=lambda s: s.start_date, reverse=True)

    def find_by_name(self, name: str) -> Optional[Season]:
        for season in self._load_seasons():
            if season.name == name:
                return season
        return None

    def get_settings(self) -> Settings:
        raw = self.store.load(keys.SETTINGS, {}, dict)
        try:
            return Settings.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning(f"Invalid settings record, using defaults: {e}")
            return Settings()

    def active_season_name(self) -> str:
        """Name of the active season, read from the settings mirror."""
        return self.get_settings().active_season_name

    def active_season(self) -> Optional[Season]:
        name = self.active_season_name()
        return self.find_by_name(name) if name else None

    def is_completed(self, name: str) -> bool:
        season = self.find_by_name(name)
        return season.completed if season else False

    def is_current_season_completed(self) -> bool:
        """True when the active season is flagged completed (False if not found)."""
        return self.is_completed(self.active_season_name())

    def ensure_writable(self, *season_names: Optional[str]) -> None:
        """
        Guard for mutations of season-scoped entities.

        Raises:
            SeasonFrozenError: If the active season, or any of the given
                               seasons, is completed
        """
        active = self.active_season_name()
        if self.is_completed(active):
            raise SeasonFrozenError(f"Season {active} is completed; its data is read-only")
        for name in season_names:
            if name and name != active and self.is_completed(name):
                raise SeasonFrozenError(f"Season {name} is completed; its data is read-only")

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def activate(self, season_id: str) -> Season:
        """
        Make one season active and every other inactive.

        Raises:
            NotFoundError: If no season has this id
        """
        with self.store.transaction():
            seasons = self._load_seasons()
            target = next((s for s in seasons if s.id == season_id), None)
            if target is None:
                raise NotFoundError(f"No season with id {season_id}")

            updated = [s.model_copy(update={'active': s.id == season_id}) for s in seasons]
            settings = self.get_settings().model_copy(update={'active_season_name': target.name})
            self.store.save_many({
                keys.SEASONS: [s.to_record() for s in updated],
                keys.SETTINGS: settings.to_record(),
            })
            self.store.invalidate()

        logger.info(f"Activated season {target.name}")
        return target.model_copy(update={'active': True})

    def create_season(
        self,
        name: str,
        start_date: Union[date, str, None] = None,
        end_date: Union[date, str, None] = None,
    ) -> Season:
        """
        Append a new, inactive season and copy the active season's data into it.

        Dates default to September 1 .. August 31 for ``YYYY-YYYY`` names.
        The first season ever created becomes active.

        Raises:
            ValidationError: Empty name, missing dates, or start after end
            DuplicateNameError: If a season with this name exists
        """
        name = (name or '').strip()
        if not name:
            raise ValidationError("Season name is required")

        if start_date is None or end_date is None:
            defaults = season_dates_from_name(name)
            if defaults is None:
                raise ValidationError(f"Dates are required for season {name}")
            start_date = start_date or defaults[0]
            end_date = end_date or defaults[1]

        with self.store.transaction():
            seasons = self._load_seasons()
            if any(s.name == name for s in seasons):
                raise DuplicateNameError(f"Season {name} already exists")

            first = not seasons
            season = coerce(Season, {
                'id': new_id('season'),
                'name': name,
                'startDate': start_date,
                'endDate': end_date,
                'active': first,
                'completed': False,
                'order': max((s.order for s in seasons), default=0) + 1,
            })

            updates: Dict[str, Any] = {keys.SEASONS: [s.to_record() for s in seasons] + [season.to_record()]}
            if first:
                settings = self.get_settings().model_copy(update={'active_season_name': name})
                updates[keys.SETTINGS] = settings.to_record()
            self.store.save_many(updates)
            source = self.active_season_name()

        logger.info(f"Created season {name} ({season.start_date} .. {season.end_date})")

        if not first and source and source != name:
            self._start_copy(source, name)
        return season

    def update_season(self, season: Union[Season, Mapping[str, Any]]) -> Season:
        """
        Replace the stored season with the same id.

        ``active=True`` activates the season. The active season cannot be
        deactivated here; activate another season instead. Renaming moves
        the season's members, activities and payments to the new name.

        Raises:
            ValidationError: If the season is malformed
            NotFoundError: If no season has this id
            DuplicateNameError: If renamed onto another season's name
        """
        incoming = coerce(Season, season)

        with self.store.transaction():
            seasons = self._load_seasons()
            index = next((i for i, s in enumerate(seasons) if s.id == incoming.id), None)
            if index is None:
                raise NotFoundError(f"No season with id {incoming.id}")

            existing = seasons[index]
            renamed = incoming.name != existing.name
            if renamed and any(s.name == incoming.name for s in seasons if s.id != incoming.id):
                raise DuplicateNameError(f"Season {incoming.name} already exists")

            make_active = incoming.active or existing.active
            changes: Dict[str, Any] = {'active': make_active}
            if 'order' not in incoming.model_fields_set:
                changes['order'] = existing.order
            stored = incoming.model_copy(update=changes)
            seasons[index] = stored
            if incoming.active and not existing.active:
                seasons = [s if s.id == stored.id else s.model_copy(update={'active': False}) for s in seasons]

            updates: Dict[str, Any] = {}
            if renamed:
                for key in keys.SEASON_SCOPED:
                    records = self.store.load(key, [], list)
                    for record in records:
                        if record.get('season') == existing.name:
                            record['season'] = stored.name
                    updates[key] = records
            updates[keys.SEASONS] = [s.to_record() for s in seasons]
            if make_active:
                settings = self.get_settings().model_copy(update={'active_season_name': stored.name})
                updates[keys.SETTINGS] = settings.to_record()

            self.store.save_many(updates)
            if renamed or make_active:
                self.store.invalidate()

        logger.info(f"Updated season {stored.name} (active={stored.active}, completed={stored.completed})")
        return stored

    def delete_season(self, season_id: str) -> bool:
        """
        Delete a season and every member, activity and payment stamped with its name.

        Returns:
            False without changing anything if the season is active or is
            the last one; True once deleted

        Raises:
            NotFoundError: If no season has this id
        """
        with self.store.transaction():
            seasons = self._load_seasons()
            target = next((s for s in seasons if s.id == season_id), None)
            if target is None:
                raise NotFoundError(f"No season with id {season_id}")
            if target.active:
                logger.warning(f"Refusing to delete active season {target.name}")
                return False
            if len(seasons) <= 1:
                logger.warning(f"Refusing to delete the only season {target.name}")
                return False

            updates: Dict[str, Any] = {}
            removed = 0
            for key in keys.SEASON_SCOPED:
                records = self.store.load(key, [], list)
                kept = [r for r in records if r.get('season') != target.name]
                if len(kept) != len(records):
                    removed += len(records) - len(kept)
                    updates[key] = kept
            updates[keys.SEASONS] = [s.to_record() for s in seasons if s.id != season_id]
            self.store.save_many(updates)

        logger.info(f"Deleted season {target.name} and {removed} scoped record(s)")
        return True

    def update_settings(self, settings: Union[Settings, Mapping[str, Any]]) -> Settings:
        """
        Store preferences. Changing ``activeSeasonName`` activates that season.

        Raises:
            ValidationError: If the settings are malformed
            NotFoundError: If ``activeSeasonName`` names no season
        """
        incoming = coerce(Settings, settings)

        with self.store.transaction():
            current = self.active_season_name()
            target = incoming.active_season_name or current

            if target != current:
                season = self.find_by_name(target)
                if season is None:
                    raise NotFoundError(f"No season named {target}")
                stored = incoming.model_copy(update={'active_season_name': season.name})
                seasons = [s.model_copy(update={'active': s.id == season.id}) for s in self._load_seasons()]
                self.store.save_many({
                    keys.SEASONS: [s.to_record() for s in seasons],
                    keys.SETTINGS: stored.to_record(),
                })
                self.store.invalidate()
                logger.info(f"Activated season {season.name} from settings")
            else:
                stored = incoming.model_copy(update={'active_season_name': current})
                self.store.save(keys.SETTINGS, stored.to_record())

        return stored

    def repair(self, today: Optional[date] = None) -> bool:
        """
        Restore the season invariants.

        - at least one season exists (the current school year is created)
        - exactly one season is active (the one named in settings wins,
          otherwise the most recent)
        - settings mirror the active season's name

        Returns:
            True if anything had to be rewritten
        """
        with self.store.transaction():
            seasons, settings, changed = repair_seasons(self._load_seasons(), self.get_settings(), today)
            if changed:
                self.store.save_many({
                    keys.SEASONS: [s.to_record() for s in seasons],
                    keys.SETTINGS: settings.to_record(),
                })
                self.store.invalidate()

        return changed

    # =========================================================================
    # FORWARD COPY
    # =========================================================================

    @property
    def copy_in_progress(self) -> bool:
        return self._copy_future is not None and not self._copy_future.done()

    @property
    def executor(self) -> ThreadPoolExecutor:
        """Lazy initialization of the copy worker."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='season-copy')
        return self._executor

    def wait_for_copy(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the last forward copy finishes.

        Returns:
            True if no copy was started or it completed; False on timeout,
            failure, or an aborted copy
        """
        future = self._copy_future
        if future is None:
            return True
        try:
            result = future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            return False
        except StoreError as e:
            logger.error(f"Season copy failed: {e}")
            return False
        return result['completed']

    def last_copy_result(self) -> Optional[CopyResultDict]:
        future = self._copy_future
        if future is None or not future.done() or future.exception() is not None:
            return None
        return future.result()

    def _start_copy(self, source: str, target: str) -> Future:
        if self.background_copy:
            future = self.executor.submit(self._copy_season_data, source, target)
        else:
            future = Future()
            try:
                future.set_result(self._copy_season_data(source, target))
            except StoreError as e:
                logger.error(f"Season copy {source} -> {target} failed: {e}")
                future.set_exception(e)
        self._copy_future = future
        return future

    def _copy_season_data(self, source: str, target: str) -> CopyResultDict:
        """Copy members and activities of ``source`` into ``target`` in chunks."""
        result: CopyResultDict = {
            'source': source,
            'target': target,
            'members': 0,
            'activities': 0,
            'completed': False,
        }
        logger.info(f"Copying data: {source} -> {target}")

        plan = (
            (keys.MEMBERS, 'mbr', 'activityIds', 'members'),
            (keys.ACTIVITIES, 'act', 'memberIds', 'activities'),
        )
        for key, prefix, link_field, counter in plan:
            records = [r for r in self.store.load(key, [], list) if r.get('season') == source]
            for start in range(0, len(records), self.chunk_size):
                chunk = [
                    self._clone(record, prefix, target, link_field)
                    for record in records[start:start + self.chunk_size]
                ]
                if not self._append_chunk(key, target, chunk):
                    logger.warning(f"Season copy to {target} aborted after {result[counter]} {counter}")
                    return result
                result[counter] += len(chunk)
                logger.debug(f"Copied {result[counter]}/{len(records)} {counter} to {target}")

                # Let foreground calls take the store lock between chunks
                time.sleep(0)

        result['completed'] = True
        logger.info(
            f"Copy finished: {result['members']} members, "
            f"{result['activities']} activities -> {target}"
        )
        return result

    @staticmethod
    def _clone(record: Dict[str, Any], prefix: str, target: str, link_field: str) -> Dict[str, Any]:
        clone = copy.deepcopy(record)
        clone.update({
            'id': new_id(prefix),
            'season': target,
            link_field: [],
            'createdAt': utc_now_iso(),
        })
        return clone

    def _append_chunk(self, key: str, target: str, chunk: List[Dict[str, Any]]) -> bool:
        with self.store.transaction():
            season = self.find_by_name(target)
            if season is None or season.completed:
                return False
            records = self.store.load(key, [], list)
            records.extend(chunk)
            self.store.save(key, records)
        return True

    def shutdown(self) -> None:
        """Wait for a running copy and stop the worker if this manager created it."""
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=True)
            self._executor = None
