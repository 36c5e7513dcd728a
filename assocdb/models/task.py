"""Task and calendar event data models."""

from typing import Literal, Optional

from pydantic import Field

from ..utils.ids import utc_now_iso
from .base import StoredModel


class Task(StoredModel):
    """A to-do item for the association's board."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = ""
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    priority: Literal["urgent", "important", "normal"] = "normal"
    status: Literal["todo", "in_progress", "done"] = "todo"
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")


class CalendarEvent(StoredModel):
    """An entry in the association calendar."""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    start_date: str = Field(..., alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    location: Optional[str] = None
    type: str = "Activity"
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
