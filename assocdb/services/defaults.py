"""Default records written on first run and restored by repair."""

from datetime import date
from typing import List, Optional

from ..models import EventType, MembershipType, PaymentMethod, Season
from ..models.season import season_dates_from_name

DEFAULT_MEMBERSHIP_TYPES = [
    MembershipType(id='type_1', name='Individual', price=50),
    MembershipType(id='type_2', name='Family', price=80),
]

DEFAULT_PAYMENT_METHODS = [
    PaymentMethod(id='method_1', name='Cash'),
    PaymentMethod(id='method_2', name='Cheque'),
    PaymentMethod(id='method_3', name='Bank transfer'),
]

DEFAULT_EVENT_TYPES = [
    EventType(id='evt_1', name='Activity', color='#3B82F6'),
    EventType(id='evt_2', name='Meeting', color='#10B981'),
    EventType(id='evt_3', name='Event', color='#8B5CF6'),
]


def current_season_name(today: Optional[date] = None) -> str:
    """Name of the school year containing today; years start on September 1."""
    today = today or date.today()
    start_year = today.year if today.month >= 9 else today.year - 1
    return f"{start_year}-{start_year + 1}"


def default_season(today: Optional[date] = None) -> Season:
    name = current_season_name(today)
    start_date, end_date = season_dates_from_name(name)
    return Season(
        id=f"season_{start_date.year}",
        name=name,
        start_date=start_date,
        end_date=end_date,
        active=True,
        completed=False,
        order=1,
    )


def season_options(start_year: int = 2025, count: int = 25) -> List[str]:
    """Season labels offered when creating a season."""
    return [f"{year}-{year + 1}" for year in range(start_year, start_year + count)]
