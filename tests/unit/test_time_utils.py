from datetime import UTC, date, datetime

import pytest

from scout.utils.time_utils import (
    JST,
    format_jst_datetime_for_csv,
    format_jst_for_filename,
    get_jst_date,
    get_time_slot,
    parse_jst_wall_clock,
    to_jst,
)


@pytest.mark.parametrize(
    "utc_hour, utc_minute, expected",
    [
        (15, 0, "00-05"),  # 00:00 JST
        (20, 59, "00-05"),  # 05:59 JST
        (21, 0, "06-11"),  # 06:00 JST
        (2, 59, "06-11"),  # 11:59 JST
        (3, 0, "12-17"),  # 12:00 JST
        (9, 0, "18-23"),  # 18:00 JST
        (14, 59, "18-23"),  # 23:59 JST
    ],
)
def test_time_slot_boundaries(utc_hour, utc_minute, expected):
    assert get_time_slot(datetime(2026, 2, 24, utc_hour, utc_minute, tzinfo=UTC)) == expected


def test_send_date_rolls_over_in_jst():
    assert get_jst_date(datetime(2026, 2, 24, 15, 30, tzinfo=UTC)) == date(2026, 2, 25)
    assert get_jst_date(datetime(2026, 2, 24, 14, 59, tzinfo=UTC)) == date(2026, 2, 24)


def test_naive_values_are_treated_as_utc():
    assert to_jst(datetime(2026, 1, 1, 0, 0)).hour == 9


def test_csv_and_filename_formats():
    moment = datetime(2026, 2, 24, 15, 30, tzinfo=UTC)

    assert format_jst_datetime_for_csv(moment) == "2026-02-25 00:30"
    assert format_jst_datetime_for_csv(None) == ""
    assert format_jst_for_filename(moment) == "20260225_0030"


def test_wall_clock_parsing():
    assert parse_jst_wall_clock(2026, 2, 24, 15, 30) == datetime(2026, 2, 24, 15, 30, tzinfo=JST)
    assert parse_jst_wall_clock(2026, 2, 30, 10, 0) is None
