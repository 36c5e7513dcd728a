"""Lookup tables edited from the settings page."""

from pydantic import Field

from .base import StoredModel


class MembershipType(StoredModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    price: float = Field(default=0.0, ge=0)


class PaymentMethod(StoredModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class EventType(StoredModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    color: str = "#3B82F6"
