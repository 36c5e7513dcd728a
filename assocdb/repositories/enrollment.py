"""
Member/activity enrollment links.

Each member lists its activities (``activityIds``) and each activity lists
its members (``memberIds``). Both member and activity saves go through
``reconcile_links`` so the two sides never disagree.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def reconcile_links(
    owner_id: str,
    link_ids: List[str],
    targets: List[Dict[str, Any]],
    back_field: str,
    season: Optional[str],
) -> Tuple[List[str], bool]:
    """
    Make ``targets`` agree with the owner's link list.

    Args:
        owner_id: Id of the saved member or activity
        link_ids: Ids the owner links to (may hold duplicates or stale ids)
        targets: Full opposite collection, modified in place
        back_field: Field of each target listing owner ids
        season: Owner's season; only targets of this season can be linked

    Returns:
        Tuple of (cleaned link list for the owner, whether any target changed).
        Each linked target lists ``owner_id`` exactly once; every other
        target does not list it at all. Applying it twice changes nothing.
    """
    linkable = {t.get('id') for t in targets if t.get('season') == season}

    wanted: List[str] = []
    for link_id in link_ids:
        if link_id in wanted:
            continue
        if link_id not in linkable:
            logger.debug(f"Dropping link {owner_id} -> {link_id}: not in season {season}")
            continue
        wanted.append(link_id)

    changed = False
    for target in targets:
        current = target.get(back_field) or []
        if target.get('id') in wanted:
            updated = _once(current, owner_id)
        else:
            updated = [i for i in current if i != owner_id]
        if updated != current:
            target[back_field] = updated
            changed = True

    return wanted, changed


def unlink(owner_id: str, targets: List[Dict[str, Any]], back_field: str) -> bool:
    """Remove ``owner_id`` from every target. Returns whether any target changed."""
    changed = False
    for target in targets:
        current = target.get(back_field) or []
        if owner_id in current:
            target[back_field] = [i for i in current if i != owner_id]
            changed = True
    return changed


def _once(ids: List[str], owner_id: str) -> List[str]:
    result = []
    for i in ids:
        if i == owner_id and owner_id in result:
            continue
        result.append(i)
    if owner_id not in result:
        result.append(owner_id)
    return result
