"""
Top posts selection

排序皆為 stable sort：同分保留原始順序。
"""

from typing import Any, List
import logging

from cast_analytics.models import CanonicalPost, PostSource, TopPostOrder
from cast_analytics.utils.numbers import parse_int

logger = logging.getLogger(__name__)

DEFAULT_TOP_LIMIT = 5

IMPRESSIONS_DESC = "impressions-desc"
RECENCY_DESC = "recency-desc"
ORDERS = (IMPRESSIONS_DESC, RECENCY_DESC)


def resolve_limit(requested: Any, default: int = DEFAULT_TOP_LIMIT) -> int:
    """
    解析 limit

    Args:
        requested: 原始值 (None / int / 數字字串)
        default: 非數字或 <= 0 時的預設值

    Returns:
        limit (>= 1)
    """
    limit = parse_int(requested)
    if limit is None or limit <= 0:
        return max(1, default)
    return limit


def default_order_for(source: PostSource) -> TopPostOrder:
    """Store 有曝光數 -> impressions-desc；live 沒有 -> recency-desc"""
    return IMPRESSIONS_DESC if source == "store" else RECENCY_DESC


def top_n(
    posts: List[CanonicalPost],
    limit: Any,
    order_by: TopPostOrder = IMPRESSIONS_DESC
) -> List[CanonicalPost]:
    """
    選出前 N 篇

    Args:
        posts: CanonicalPosts
        limit: 數量 (經 resolve_limit 處理)
        order_by: impressions-desc | recency-desc

    Returns:
        最多 limit 篇 (貼文不足時回傳全部)
    """
    if order_by not in ORDERS:
        raise ValueError(f"Unsupported order_by: {order_by}")

    limit = resolve_limit(limit)

    if order_by == IMPRESSIONS_DESC:
        ordered = sorted(posts, key=lambda p: -p.impressions)
    else:
        # 時間無法解析的排最後
        resolved = [p for p in posts if p.has_timestamp]
        unresolved = [p for p in posts if not p.has_timestamp]
        ordered = sorted(resolved, key=lambda p: p.created_at, reverse=True) + unresolved

    selected = ordered[:limit]
    logger.debug(f"Top {len(selected)}/{len(posts)} posts by {order_by}")
    return selected
