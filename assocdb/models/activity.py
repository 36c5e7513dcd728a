"""Activity data model."""

from typing import List, Optional

from pydantic import Field

from ..utils.ids import utc_now_iso
from .base import StoredModel


class Activity(StoredModel):
    """An activity offered during one season."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(default=0.0, ge=0)
    member_ids: List[str] = Field(default_factory=list, alias="memberIds")
    season: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
