"""Data models for the association store."""

from assocdb.models.activity import Activity
from assocdb.models.lookups import EventType, MembershipType, PaymentMethod
from assocdb.models.member import Member
from assocdb.models.payment import Payment
from assocdb.models.season import Season, Settings
from assocdb.models.task import CalendarEvent, Task

__all__ = [
    "Season",
    "Settings",
    "Member",
    "Activity",
    "Payment",
    "Task",
    "CalendarEvent",
    "MembershipType",
    "PaymentMethod",
    "EventType",
]
