"""
Repositories for the association store.

- EntityRepository: generic collection, upsert/delete by id
- SeasonScopedRepository: filtered to and stamped with the active season
- MemberRepository / ActivityRepository: keep enrollment links in sync
"""

from .activities import ActivityRepository
from .base import EntityRepository, SeasonScopedRepository
from .members import MemberRepository

__all__ = [
    'EntityRepository',
    'SeasonScopedRepository',
    'MemberRepository',
    'ActivityRepository',
]
