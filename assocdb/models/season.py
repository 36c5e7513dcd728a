"""Season and settings data models."""

import re
from datetime import date
from typing import Optional, Tuple

from pydantic import Field, model_validator

from .base import StoredModel

SEASON_NAME_PATTERN = re.compile(r'^(\d{4})-(\d{4})$')


class Season(StoredModel):
    """A named period (usually a school year) that partitions members, activities and payments."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    active: bool = False
    completed: bool = False
    order: int = 0

    @model_validator(mode="after")
    def _check_dates(self) -> "Season":
        if self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


def season_dates_from_name(name: str) -> Optional[Tuple[date, date]]:
    """Default dates for a ``YYYY-YYYY`` season name: September 1 to August 31."""
    match = SEASON_NAME_PATTERN.match(name)
    if not match:
        return None
    start_year, end_year = int(match.group(1)), int(match.group(2))
    if end_year != start_year + 1:
        return None
    return date(start_year, 9, 1), date(end_year, 8, 31)


class Settings(StoredModel):
    """Global preferences, including the mirror of the active season's name.

    Keys unknown to the store are UI preferences and are kept as-is.
    """

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
        extra = "allow"

    active_season_name: str = Field(default="", alias="activeSeasonName")
    theme: str = "light"
    language: str = "fr"
    notifications: bool = True
