"""Payment data model."""

from typing import Literal, Optional

from pydantic import Field

from ..utils.ids import utc_now_iso
from .base import StoredModel


class Payment(StoredModel):
    """A member's payment for an activity."""

    id: str = Field(..., min_length=1)
    member_id: str = Field(..., min_length=1, alias="memberId")
    activity_id: str = Field(..., min_length=1, alias="activityId")
    amount: float
    payment_date: Optional[str] = Field(default=None, alias="paymentDate")
    method: Optional[str] = None
    status: Literal["paid", "pending"] = "pending"
    season: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
