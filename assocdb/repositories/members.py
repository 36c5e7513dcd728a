"""Member repository: enrollment reconciliation and payment cascade."""

from typing import Any, Dict, Optional

from ..models import Member
from ..services.document_store import DocumentStore
from ..services.season_manager import SeasonManager
from ..storage import keys
from .base import SeasonScopedRepository
from .enrollment import reconcile_links, unlink


class MemberRepository(SeasonScopedRepository[Member]):
    """Members of the active season, sorted by family then first name."""

    def __init__(self, store: DocumentStore, seasons: SeasonManager):
        super().__init__(
            store,
            seasons,
            Member,
            keys.MEMBERS,
            sort_key=lambda m: (m.name.lower(), m.first_name.lower()),
        )

    def _related_writes(
        self, record: Dict[str, Any], previous: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        activities = self.store.load(keys.ACTIVITIES, [], list)
        record['activityIds'], changed = reconcile_links(
            record['id'],
            record.get('activityIds', []),
            activities,
            'memberIds',
            record.get('season'),
        )
        return {keys.ACTIVITIES: activities} if changed else {}

    def _cascade_writes(self, removed: Dict[str, Any]) -> Dict[str, Any]:
        updates: Dict[str, Any] = {}

        activities = self.store.load(keys.ACTIVITIES, [], list)
        if unlink(removed['id'], activities, 'memberIds'):
            updates[keys.ACTIVITIES] = activities

        payments = self.store.load(keys.PAYMENTS, [], list)
        kept = [p for p in payments if p.get('memberId') != removed['id']]
        if len(kept) != len(payments):
            updates[keys.PAYMENTS] = kept

        return updates
