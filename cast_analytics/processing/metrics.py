"""
Account metrics

從 CanonicalPost 與帳號資料計算 totals、engagement rate、account age。缺少欄位時依序 fallback，不拋出例外。
"""

from typing import Any, List, Optional
from datetime import datetime
import logging
import math

from cast_analytics.models import AccountRecord, AccountSummary, BestDay, CanonicalPost, DayBucket
from cast_analytics.processing.timestamps import normalize_timestamp
from cast_analytics.utils.time import utcnow, whole_days_between

logger = logging.getLogger(__name__)


def summarize(
    account: Optional[AccountRecord],
    posts: List[CanonicalPost],
    now: Optional[datetime] = None
) -> AccountSummary:
    """
    計算帳號彙總指標

    Args:
        account: 帳號資料 (live 來源可能沒有 created_at)
        posts: CanonicalPosts
        now: 當前時間 (預設 UTC now)

    Returns:
        AccountSummary
    """
    total_impressions = sum(post.impressions for post in posts)
    total_engagements = sum(post.engagements for post in posts)
    created_at = account.created_at if account is not None else None

    summary = AccountSummary(
        total_posts=len(posts),
        total_impressions=total_impressions,
        total_engagements=total_engagements,
        avg_engagement_rate_percent=engagement_rate_percent(total_engagements, total_impressions),
        account_age_days=account_age_days(created_at, posts, now)
    )

    logger.debug(f"Summary: posts={summary.total_posts}, impressions={total_impressions}, " +
                 f"engagements={total_engagements}, age={summary.account_age_days}d")
    return summary


def engagement_rate_percent(engagements: int, impressions: int) -> float:
    """
    Engagement rate (%)

    Args:
        engagements: 總互動數
        impressions: 總曝光數

    Returns:
        engagements / impressions * 100；impressions 為 0 時回傳 0
    """
    if impressions <= 0:
        return 0.0

    rate = engagements / impressions * 100
    if not math.isfinite(rate) or rate < 0:
        return 0.0
    return rate


def account_age_days(
    account_created_at: Any,
    posts: List[CanonicalPost],
    now: Optional[datetime] = None
) -> int:
    """
    帳號年齡 (天)

    優先序:
    1. 帳號的建立時間
    2. 最早一篇貼文的時間 (live API 常缺少建立時間)
    3. 0

    Args:
        account_created_at: 帳號建立時間 (任意格式)
        posts: CanonicalPosts
        now: 當前時間

    Returns:
        天數 (>= 0)
    """
    now = now or utcnow()

    created_at = normalize_timestamp(account_created_at)
    if created_at is not None:
        return whole_days_between(created_at, now)

    timestamps = [post.created_at for post in posts if post.created_at is not None]
    if timestamps:
        logger.debug("Account creation date missing, approximating age from earliest post")
        return whole_days_between(min(timestamps), now)

    return 0


def best_day(buckets: List[DayBucket]) -> Optional[BestDay]:
    """
    曝光數最高的一天 (同分取較早)

    Args:
        buckets: DayBuckets (由舊到新)

    Returns:
        BestDay；全部為 0 則 None
    """
    best: Optional[DayBucket] = None
    for bucket in buckets:
        if bucket.impressions > 0 and (best is None or bucket.impressions > best.impressions):
            best = bucket

    if best is None:
        return None
    return BestDay(date=best.date, impressions=best.impressions)
