"""
Entity repositories over the document store.

One collection per storage key, stored whole. Reads return validated
models; writes load the full collection, modify it, and store it back in
one unit under the store lock.
"""

import logging
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Type, Union

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import NotFoundError
from ..models.base import ModelT, coerce
from ..services.document_store import DocumentStore
from ..services.season_manager import SeasonManager

logger = logging.getLogger(__name__)


class EntityRepository(Generic[ModelT]):
    """
    Collection of one entity type, upserted and deleted by id.

    Subclasses hook ``_related_writes`` and ``_cascade_writes`` to keep
    other collections consistent; those writes are committed together
    with the collection itself via ``DocumentStore.save_many``.
    """

    def __init__(
        self,
        store: DocumentStore,
        model: Type[ModelT],
        storage_key: str,
        sort_key: Optional[Callable[[ModelT], Any]] = None,
        reverse: bool = False,
    ):
        self.store = store
        self.model = model
        self.storage_key = storage_key
        self.sort_key = sort_key
        self.reverse = reverse

    # =========================================================================
    # READS
    # =========================================================================

    def load_all(self) -> List[Dict[str, Any]]:
        """Full stored collection as records, unfiltered and unsorted."""
        return self.store.load(self.storage_key, [], list)

    def _visible(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return records

    def _to_models(self, records: List[Dict[str, Any]]) -> List[ModelT]:
        items = []
        for record in records:
            try:
                items.append(self.model.model_validate(record))
            except PydanticValidationError as e:
                logger.warning(
                    f"Skipping invalid {self.model.__name__} record "
                    f"{record.get('id') if isinstance(record, dict) else record!r}: "
                    f"{e.error_count()} error(s)"
                )
        return items

    def get_all(self) -> List[ModelT]:
        items = self._to_models(self._visible(self.load_all()))
        if self.sort_key is not None:
            items.sort(key=self.sort_key, reverse=self.reverse)
        return items

    def get(self, entity_id: str) -> ModelT:
        """
        Look up one entity by id, in any season.

        Raises:
            NotFoundError: If no stored record has this id
        """
        for record in self.load_all():
            if record.get('id') == entity_id:
                return self.model.model_validate(record)
        raise NotFoundError(f"No {self.model.__name__} with id {entity_id}")

    # =========================================================================
    # WRITES
    # =========================================================================

    def save(self, item: Union[ModelT, Mapping[str, Any]]) -> ModelT:
        """
        Insert or replace an entity by id.

        Raises:
            ValidationError: If the item is malformed
            StorageWriteError: If the write is rejected (nothing is changed)
        """
        entity = coerce(self.model, item)

        with self.store.transaction():
            records = self.load_all()
            index = _index_of(records, entity.id)
            previous = records[index] if index is not None else None

            record = self._prepare(entity, previous).to_record()
            related = self._related_writes(record, previous)

            if index is None:
                records.append(record)
            else:
                records[index] = record

            updates = {self.storage_key: records}
            updates.update(related)
            self.store.save_many(updates)

        logger.debug(f"Saved {self.model.__name__} {record['id']}")
        return self.model.model_validate(record)

    def delete(self, entity_id: str) -> None:
        """
        Remove an entity by id, with its cascades.

        Raises:
            NotFoundError: If no stored record has this id
            StorageWriteError: If the write is rejected (nothing is changed)
        """
        with self.store.transaction():
            self._check_delete(None)
            records = self.load_all()
            index = _index_of(records, entity_id)
            if index is None:
                raise NotFoundError(f"No {self.model.__name__} with id {entity_id}")

            removed = records.pop(index)
            self._check_delete(removed)

            updates = {self.storage_key: records}
            updates.update(self._cascade_writes(removed))
            self.store.save_many(updates)

        logger.debug(f"Deleted {self.model.__name__} {entity_id}")

    def replace_all(self, items: List[Union[ModelT, Mapping[str, Any]]]) -> None:
        """Store a whole collection at once (lookup tables, first-run defaults)."""
        records = [coerce(self.model, item).to_record() for item in items]
        with self.store.transaction():
            self.store.save(self.storage_key, records)

    # =========================================================================
    # HOOKS
    # =========================================================================

    def _prepare(self, entity: ModelT, previous: Optional[Dict[str, Any]]) -> ModelT:
        return entity

    def _check_delete(self, record: Optional[Dict[str, Any]]) -> None:
        pass

    def _related_writes(
        self, record: Dict[str, Any], previous: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Other keys to write with a save. May adjust ``record`` in place."""
        return {}

    def _cascade_writes(self, removed: Dict[str, Any]) -> Dict[str, Any]:
        """Other keys to write with a delete."""
        return {}


class SeasonScopedRepository(EntityRepository[ModelT]):
    """
    Repository whose entities carry a ``season`` name.

    Reads are filtered to the active season. Saves stamp unset seasons with
    the active one. Every mutation is refused while the season involved is
    completed.
    """

    def __init__(
        self,
        store: DocumentStore,
        seasons: SeasonManager,
        model: Type[ModelT],
        storage_key: str,
        sort_key: Optional[Callable[[ModelT], Any]] = None,
        reverse: bool = False,
    ):
        super().__init__(store, model, storage_key, sort_key=sort_key, reverse=reverse)
        self.seasons = seasons

    def _visible(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        active = self.seasons.active_season_name()
        return [r for r in records if r.get('season') == active]

    def _prepare(self, entity: ModelT, previous: Optional[Dict[str, Any]]) -> ModelT:
        self.seasons.ensure_writable(previous.get('season') if previous else None)
        if not entity.season:
            entity = entity.model_copy(update={'season': self.seasons.active_season_name()})
        if self.seasons.find_by_name(entity.season) is None:
            raise NotFoundError(f"No season named {entity.season}")
        self.seasons.ensure_writable(entity.season)
        return entity

    def _check_delete(self, record: Optional[Dict[str, Any]]) -> None:
        self.seasons.ensure_writable(record.get('season') if record else None)


def _index_of(records: List[Dict[str, Any]], entity_id: str) -> Optional[int]:
    for i, record in enumerate(records):
        if record.get('id') == entity_id:
            return i
    return None
