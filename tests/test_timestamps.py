"""
Tests for timestamp normalization
"""

import pytest
from datetime import date, datetime, timezone, timedelta

from cast_analytics.processing.timestamps import SECONDS_THRESHOLD, normalize_timestamp


def test_absent_values_unresolvable():
    """None / 0 / 空字串 -> None"""
    assert normalize_timestamp(None) is None
    assert normalize_timestamp(0) is None
    assert normalize_timestamp(0.0) is None
    assert normalize_timestamp("") is None
    assert normalize_timestamp("   ") is None
    assert normalize_timestamp("0") is None


def test_booleans_are_not_numbers():
    """bool 不視為 epoch"""
    assert normalize_timestamp(True) is None
    assert normalize_timestamp(False) is None


def test_seconds_below_threshold():
    """< 10_000_000_000 視為 seconds"""
    assert normalize_timestamp(1704067200) == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert normalize_timestamp(SECONDS_THRESHOLD - 1) == datetime.fromtimestamp(
        SECONDS_THRESHOLD - 1, tz=timezone.utc
    )


def test_milliseconds_at_or_above_threshold():
    """>= 10_000_000_000 視為 milliseconds"""
    assert normalize_timestamp(1704067200000) == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert normalize_timestamp(SECONDS_THRESHOLD) == datetime.fromtimestamp(
        SECONDS_THRESHOLD / 1000, tz=timezone.utc
    )


def test_numeric_strings_follow_numeric_rule():
    """數字字串先以數字規則處理"""
    assert normalize_timestamp("1704067200") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert normalize_timestamp(" 1704067200000 ") == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_iso_strings():
    """ISO-8601 (Z、offset、naive)"""
    expected = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert normalize_timestamp("2024-01-01T00:00:00Z") == expected
    assert normalize_timestamp("2024-01-01T08:00:00+08:00") == expected
    assert normalize_timestamp("2024-01-01T00:00:00") == expected
    assert normalize_timestamp("2024-01-01") == expected


def test_rfc2822_string():
    """RFC-2822 格式"""
    assert normalize_timestamp("Mon, 01 Jan 2024 00:00:00 GMT") == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_result_is_utc_aware():
    """輸出一律為 UTC tz-aware"""
    result = normalize_timestamp("2024-06-01T12:30:00-05:00")
    assert result.tzinfo is not None
    assert result.utcoffset() == timedelta(0)
    assert result.hour == 17


@pytest.mark.parametrize("value", [
    "not a date",
    "2024-13-45",
    float("nan"),
    float("inf"),
    "nan",
    10 ** 400,
    object(),
    {"seconds": 1},
])
def test_garbage_is_unresolvable(value):
    """無法解析的值回傳 None，不拋出例外"""
    assert normalize_timestamp(value) is None


def test_datetime_passthrough():
    """DB datetime：naive 視為 UTC，aware 轉成 UTC"""
    naive = datetime(2024, 1, 1, 12, 0)
    assert normalize_timestamp(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    aware = datetime(2024, 1, 1, 20, 0, tzinfo=timezone(timedelta(hours=8)))
    assert normalize_timestamp(aware) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_naive_datetime_with_store_timezone():
    """naive datetime 可指定來源時區"""
    naive = datetime(2024, 1, 1, 20, 0)
    assert normalize_timestamp(naive, "Asia/Taipei") == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_date_becomes_midnight_utc():
    assert normalize_timestamp(date(2024, 1, 2)) == datetime(2024, 1, 2, tzinfo=timezone.utc)
