"""
Window cutoffs for per-person action counts.

Week is rolling (midnight seven days ago); month and quarter are calendar
periods: the previous month or quarter up to now.
"""
from datetime import datetime, timedelta
from typing import Optional

from survey_platform.utils.datetime import utcnow


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def get_start_date_of_last_week(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    return _midnight(now - timedelta(days=7))


def get_start_date_of_last_month(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    if now.month == 1:
        return datetime(now.year - 1, 12, 1)
    return datetime(now.year, now.month - 1, 1)


def get_start_date_of_last_quarter(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    current_quarter_first_month = ((now.month - 1) // 3) * 3 + 1
    if current_quarter_first_month == 1:
        return datetime(now.year - 1, 10, 1)
    return datetime(now.year, current_quarter_first_month - 3, 1)


def get_start_date_of_current_month(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    return datetime(now.year, now.month, 1)
