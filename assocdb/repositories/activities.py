"""Activity repository: enrollment reconciliation and payment cascade."""

from typing import Any, Dict, Optional

from ..models import Activity
from ..services.document_store import DocumentStore
from ..services.season_manager import SeasonManager
from ..storage import keys
from .base import SeasonScopedRepository
from .enrollment import reconcile_links, unlink


class ActivityRepository(SeasonScopedRepository[Activity]):

    def __init__(self, store: DocumentStore, seasons: SeasonManager):
        super().__init__(
            store,
            seasons,
            Activity,
            keys.ACTIVITIES,
            sort_key=lambda a: a.name.lower(),
        )

    def _related_writes(
        self, record: Dict[str, Any], previous: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        members = self.store.load(keys.MEMBERS, [], list)
        record['memberIds'], changed = reconcile_links(
            record['id'],
            record.get('memberIds', []),
            members,
            'activityIds',
            record.get('season'),
        )
        return {keys.MEMBERS: members} if changed else {}

    def _cascade_writes(self, removed: Dict[str, Any]) -> Dict[str, Any]:
        updates: Dict[str, Any] = {}

        members = self.store.load(keys.MEMBERS, [], list)
        if unlink(removed['id'], members, 'activityIds'):
            updates[keys.MEMBERS] = members

        payments = self.store.load(keys.PAYMENTS, [], list)
        kept = [p for p in payments if p.get('activityId') != removed['id']]
        if len(kept) != len(payments):
            updates[keys.PAYMENTS] = kept

        return updates
