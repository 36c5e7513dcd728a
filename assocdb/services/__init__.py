"""Services for the association store."""

from assocdb.services.cache import ReadThroughCache
from assocdb.services.document_store import DocumentStore
from assocdb.services.season_manager import SeasonManager

__all__ = ["ReadThroughCache", "DocumentStore", "SeasonManager"]
