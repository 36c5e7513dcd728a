"""Member data model."""

from typing import List, Optional

from pydantic import Field

from ..utils.ids import utc_now_iso
from .base import StoredModel


class Member(StoredModel):
    """A member of the association for one season."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    first_name: str = Field(default="", alias="firstName")
    birth_date: Optional[str] = Field(default=None, alias="birthDate")
    gender: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, alias="postalCode")
    city: Optional[str] = None
    phone: Optional[str] = None
    phone2: Optional[str] = None
    email: Optional[str] = None
    email2: Optional[str] = None
    membership_type: Optional[str] = Field(default=None, alias="membershipType")
    activity_ids: List[str] = Field(default_factory=list, alias="activityIds")
    season: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")

    def full_name(self) -> str:
        return f"{self.first_name} {self.name}".strip()
