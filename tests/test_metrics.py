"""
Tests for account metrics
"""

from datetime import date, datetime, timezone

from cast_analytics.models import AccountRecord, CanonicalPost, DayBucket
from cast_analytics.processing.metrics import (
    account_age_days,
    best_day,
    engagement_rate_percent,
    summarize,
)


NOW = datetime(2024, 1, 11, 12, 0, tzinfo=timezone.utc)


def create_test_post(post_id, created_at=None, impressions: int = 0, engagements: int = 0) -> CanonicalPost:
    """Helper to create test post"""
    return CanonicalPost(
        id=post_id,
        created_at=created_at,
        impressions=impressions,
        engagements=engagements,
        source="store"
    )


def test_summary_totals_and_rate():
    """totals 與 engagement rate"""
    account = AccountRecord(account_id="12345", created_at=datetime(2023, 1, 11, tzinfo=timezone.utc))
    posts = [
        create_test_post(1, datetime(2024, 1, 1, tzinfo=timezone.utc), impressions=100, engagements=10),
        create_test_post(2, datetime(2024, 1, 2, tzinfo=timezone.utc), impressions=50, engagements=2),
    ]

    summary = summarize(account, posts, now=NOW)

    assert summary.total_posts == 2
    assert summary.total_impressions == 150
    assert summary.total_engagements == 12
    assert summary.avg_engagement_rate_percent == 8.0
    assert summary.account_age_days == 365


def test_rate_zero_when_no_impressions():
    """impressions 為 0 時 rate 為 0，不會除以零"""
    assert engagement_rate_percent(5, 0) == 0.0
    assert engagement_rate_percent(0, 0) == 0.0


def test_live_summary_rate_is_zero():
    """live 貼文沒有曝光數 -> rate 0"""
    posts = [
        CanonicalPost(id="0x1", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc), engagements=9, source="live")
    ]

    summary = summarize(AccountRecord(account_id="774643"), posts, now=NOW)

    assert summary.total_engagements == 9
    assert summary.total_impressions == 0
    assert summary.avg_engagement_rate_percent == 0.0


def test_empty_posts_summary():
    summary = summarize(AccountRecord(account_id="1"), [], now=NOW)

    assert summary.total_posts == 0
    assert summary.avg_engagement_rate_percent == 0.0
    assert summary.account_age_days == 0


def test_age_from_explicit_creation_date():
    """優先使用帳號建立時間"""
    posts = [create_test_post(1, datetime(2020, 1, 1, tzinfo=timezone.utc))]

    assert account_age_days(datetime(2024, 1, 1, tzinfo=timezone.utc), posts, now=NOW) == 10


def test_age_falls_back_to_earliest_post():
    """沒有建立時間 -> 最早一篇貼文 (10 天前)"""
    posts = [
        create_test_post(1, datetime(2024, 1, 5, tzinfo=timezone.utc)),
        create_test_post(2, datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)),
        create_test_post(3, None),
    ]

    assert account_age_days(None, posts, now=NOW) == 10


def test_unparseable_creation_date_uses_posts():
    """建立時間無法解析時改用貼文"""
    posts = [create_test_post(1, datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))]

    assert account_age_days("not a date", posts, now=NOW) == 10


def test_age_floors_partial_days():
    """不足一天捨去"""
    created = datetime(2024, 1, 10, 12, 0, 1, tzinfo=timezone.utc)

    assert account_age_days(created, [], now=NOW) == 0


def test_age_never_negative():
    """建立時間在未來 -> 0"""
    future = datetime(2025, 1, 1, tzinfo=timezone.utc)

    assert account_age_days(future, [], now=NOW) == 0


def test_age_accepts_raw_creation_values():
    """建立時間可以是 epoch 或字串"""
    assert account_age_days(1704067200, [], now=NOW) == 10
    assert account_age_days("2024-01-01T00:00:00Z", [], now=NOW) == 10


def test_best_day_earliest_on_tie():
    """曝光最高的一天，同分取較早"""
    buckets = [
        DayBucket(date=date(2024, 1, 1), impressions=10),
        DayBucket(date=date(2024, 1, 2), impressions=40),
        DayBucket(date=date(2024, 1, 3), impressions=40),
    ]

    result = best_day(buckets)

    assert result.date == date(2024, 1, 2)
    assert result.impressions == 40


def test_best_day_none_without_impressions():
    buckets = [DayBucket(date=date(2024, 1, 1), post_count=3)]

    assert best_day(buckets) is None
    assert best_day([]) is None
