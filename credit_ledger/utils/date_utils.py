"""Date manipulation utilities"""

from datetime import date, datetime
from typing import Union


def as_date(value: Union[date, datetime]) -> date:
    """Calendar date of a date or datetime (datetimes are truncated, not rounded)"""
    if isinstance(value, datetime):
        return value.date()
    return value


def days_until(due: Union[date, datetime], today: Union[date, datetime]) -> int:
    """Whole calendar days from today to due; negative once due has passed"""
    return (as_date(due) - as_date(today)).days
