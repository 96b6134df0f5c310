from datetime import datetime

import pytest

from syncd.scrapers.dates import (
    UnparsableDate,
    normalize_event_date,
    parse_event_date,
    strip_range,
    to_24_hour,
)


def test_parse_afternoon_time():
    assert parse_event_date("Monday, March 3, 2025 2:30pm") == datetime(2025, 3, 3, 14, 30)


def test_parse_date_without_time_defaults_to_midnight():
    assert parse_event_date("Tuesday, April 1, 2025") == datetime(2025, 4, 1, 0, 0)


def test_parse_midnight_am():
    assert parse_event_date("Wednesday, May 5, 2025 12:00am") == datetime(2025, 5, 5, 0, 0)


def test_parse_noon_pm_unchanged():
    assert parse_event_date("Friday, June 6, 2025 12:15pm") == datetime(2025, 6, 6, 12, 15)


def test_parse_hour_without_minutes():
    assert parse_event_date("Thursday, January 9, 2025 7pm") == datetime(2025, 1, 9, 19, 0)


def test_parse_morning_time_uppercase_meridian():
    assert parse_event_date("Saturday, March 8, 2025 9:05 AM") == datetime(2025, 3, 8, 9, 5)


def test_parse_range_keeps_start_date():
    result = parse_event_date("Monday, March 3, 2025 to March 4, 2025")
    assert result == datetime(2025, 3, 3, 0, 0)


def test_parse_time_range_keeps_start_time():
    result = parse_event_date("Monday, March 3, 2025 2:30pm to 4:00pm")
    assert result == datetime(2025, 3, 3, 14, 30)


def test_october_is_not_treated_as_range_separator():
    assert parse_event_date("Friday, October 10, 2025 6pm") == datetime(2025, 10, 10, 18, 0)


def test_parse_abbreviated_month():
    assert parse_event_date("Mon, Sept 1, 2025") == datetime(2025, 9, 1)


@pytest.mark.parametrize(
    "text",
    [
        "March 3, 2025 2:30pm",
        "garbage text",
        "",
        "Monday, Smarch 3, 2025",
        "Friday, February 30, 2025",
        "Monday, March 3, 2025 25:00",
        None,
    ],
)
def test_malformed_dates_return_none(text):
    assert parse_event_date(text) is None


def test_normalize_raises_unparsable_date():
    with pytest.raises(UnparsableDate):
        normalize_event_date("no date here")


def test_strip_range_is_case_sensitive():
    assert strip_range("Monday, March 3, 2025 TO March 4") == "Monday, March 3, 2025 TO March 4"
    assert strip_range("Monday, March 3, 2025 to March 4") == "Monday, March 3, 2025"


def test_to_24_hour():
    assert to_24_hour(12, "am") == 0
    assert to_24_hour(12, "pm") == 12
    assert to_24_hour(1, "pm") == 13
    assert to_24_hour(11, "am") == 11
    assert to_24_hour(17, None) == 17
