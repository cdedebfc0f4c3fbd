"""
Daily activity buckets

將 CanonicalPost 依 UTC 日曆日分桶。窗口內每一天都會輸出 (包含 0 篇的日子)，窗口外的貼文直接略過。
"""

from typing import Any, Dict, List, Tuple
from datetime import date
import logging

from cast_analytics.models import CanonicalPost, DayBucket
from cast_analytics.utils.numbers import parse_int
from cast_analytics.utils.time import utc_day, window_dates

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 7
MAX_WINDOW_DAYS = 30


def resolve_window_days(
    requested: Any,
    default: int = DEFAULT_WINDOW_DAYS,
    max_days: int = MAX_WINDOW_DAYS
) -> int:
    """
    解析呼叫端要求的天數

    Args:
        requested: 原始值 (None / int / 數字字串)
        default: 非數字時的預設值
        max_days: 上限

    Returns:
        夾在 [1, max_days] 的天數
    """
    days = parse_int(requested)
    if days is None:
        days = default
    return max(1, min(max_days, days))


def aggregate(
    posts: List[CanonicalPost],
    window_start: date,
    window_days: int
) -> List[DayBucket]:
    """
    依日分桶

    Args:
        posts: CanonicalPosts
        window_start: 窗口第一天 (UTC)
        window_days: 窗口天數

    Returns:
        List of DayBucket (由舊到新，恰好 window_days 筆)
    """
    buckets, _ = aggregate_with_stats(posts, window_start, window_days)
    return buckets


def aggregate_with_stats(
    posts: List[CanonicalPost],
    window_start: date,
    window_days: int
) -> Tuple[List[DayBucket], Dict[str, int]]:
    """
    依日分桶並回傳略過的數量

    Args:
        posts: CanonicalPosts
        window_start: 窗口第一天 (UTC)
        window_days: 窗口天數

    Returns:
        (List of DayBucket, 統計資訊)
    """
    if window_days < 1:
        raise ValueError(f"window_days must be >= 1, got {window_days}")

    stats = {
        'in_window': 0,
        'out_of_window': 0,
        'unresolved': 0
    }

    counters: Dict[date, Dict[str, int]] = {
        day: {'post_count': 0, 'impressions': 0, 'engagements': 0}
        for day in window_dates(window_start, window_days)
    }

    for post in posts:
        if not post.has_timestamp:
            stats['unresolved'] += 1
            continue

        counter = counters.get(utc_day(post.created_at))
        if counter is None:
            stats['out_of_window'] += 1
            continue

        counter['post_count'] += 1
        counter['impressions'] += post.impressions
        counter['engagements'] += post.engagements
        stats['in_window'] += 1

    # dict 保留插入順序 (由舊到新)
    buckets = [DayBucket(date=day, **counter) for day, counter in counters.items()]

    logger.debug(f"Bucketed {stats['in_window']} posts into {window_days} days " +
                 f"(out_of_window={stats['out_of_window']}, unresolved={stats['unresolved']})")
    return buckets, stats

