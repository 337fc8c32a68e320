"""
Tests for the window cutoffs used by per-person action counts.
"""
from datetime import datetime

import pytest

from survey_platform.services.action_utils import (
    get_start_date_of_current_month,
    get_start_date_of_last_month,
    get_start_date_of_last_quarter,
    get_start_date_of_last_week,
)
from survey_platform.utils.datetime import days_between


def test_last_week_starts_at_midnight_seven_days_ago():
    now = datetime(2024, 3, 15, 13, 45, 12)
    assert get_start_date_of_last_week(now) == datetime(2024, 3, 8)


def test_last_week_crosses_month_boundary():
    assert get_start_date_of_last_week(datetime(2024, 3, 3, 8, 0)) == datetime(2024, 2, 25)


@pytest.mark.parametrize("now, expected", [
    (datetime(2024, 3, 15, 10, 0), datetime(2024, 2, 1)),
    (datetime(2024, 1, 31, 23, 59), datetime(2023, 12, 1)),
    (datetime(2024, 12, 1, 0, 0), datetime(2024, 11, 1)),
])
def test_last_month_is_previous_calendar_month(now, expected):
    assert get_start_date_of_last_month(now) == expected


@pytest.mark.parametrize("now, expected", [
    (datetime(2024, 2, 10), datetime(2023, 10, 1)),
    (datetime(2024, 5, 10), datetime(2024, 1, 1)),
    (datetime(2024, 9, 30), datetime(2024, 4, 1)),
    (datetime(2024, 12, 31), datetime(2024, 7, 1)),
])
def test_last_quarter_is_previous_calendar_quarter(now, expected):
    assert get_start_date_of_last_quarter(now) == expected


def test_current_month_start():
    assert get_start_date_of_current_month(datetime(2024, 7, 19, 6, 30)) == datetime(2024, 7, 1)


def test_defaults_to_now():
    start = get_start_date_of_last_week()
    assert start.hour == 0 and start.minute == 0
    assert start.tzinfo is None


def test_days_between_truncates_partial_days():
    assert days_between(datetime(2024, 1, 10, 12), datetime(2024, 1, 8, 18)) == 1
    assert days_between(datetime(2024, 1, 10), datetime(2024, 1, 10)) == 0
