"""
Record adapters

將 store 資料列與 Hub / Neynar 不固定形狀的 payload 轉成 CanonicalPost。

Hub payload 的 container 位置不固定，依序嘗試 CAST_CONTAINER_STRATEGIES，
第一個回傳 list 的策略勝出；全部不符合則視為空集合 (不是錯誤)。
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import logging

from cast_analytics.models import AccountRecord, CanonicalPost, PostRow
from cast_analytics.processing.timestamps import normalize_timestamp
from cast_analytics.utils.numbers import parse_int

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Store rows
# ---------------------------------------------------------------------------

def adapt_store_post(row: PostRow, naive_tz: Optional[str] = None) -> CanonicalPost:
    """
    Store 資料列 -> CanonicalPost (欄位直接對應)

    Args:
        row: posts 資料列
        naive_tz: DB naive timestamp 的時區

    Returns:
        CanonicalPost
    """
    return CanonicalPost(
        id=row.id,
        external_id=row.external_post_id,
        text=row.text,
        created_at=normalize_timestamp(row.created_at, naive_tz),
        impressions=_non_negative(row.impressions),
        engagements=_non_negative(row.engagements),
        source="store"
    )


def adapt_store_posts(rows: List[PostRow], naive_tz: Optional[str] = None) -> List[CanonicalPost]:
    return [adapt_store_post(row, naive_tz) for row in rows]


# ---------------------------------------------------------------------------
# Hub / Neynar casts
# ---------------------------------------------------------------------------

def _top_level(key: str) -> Callable[[Any], Optional[list]]:
    def strategy(payload: Any) -> Optional[list]:
        if isinstance(payload, Mapping) and isinstance(payload.get(key), list):
            return payload[key]
        return None
    return strategy


def _under_result(key: str) -> Callable[[Any], Optional[list]]:
    def strategy(payload: Any) -> Optional[list]:
        if not isinstance(payload, Mapping):
            return None
        result = payload.get("result")
        if isinstance(result, Mapping) and isinstance(result.get(key), list):
            return result[key]
        return None
    return strategy


def _bare_list(payload: Any) -> Optional[list]:
    return payload if isinstance(payload, list) else None


# 順序即優先序
CAST_CONTAINER_STRATEGIES: List[Tuple[str, Callable[[Any], Optional[list]]]] = [
    ("messages", _top_level("messages")),
    ("result.messages", _under_result("messages")),
    ("result.casts", _under_result("casts")),
    ("casts", _top_level("casts")),
    ("list", _bare_list),
]


def extract_cast_messages(payload: Any) -> List[Any]:
    """
    從 payload 找出 cast container

    Args:
        payload: Hub / Neynar 原始 JSON

    Returns:
        原始 message list (找不到則為空 list)
    """
    for name, strategy in CAST_CONTAINER_STRATEGIES:
        messages = strategy(payload)
        if messages is not None:
            logger.debug(f"Cast container matched: {name} ({len(messages)} messages)")
            return messages

    logger.warning("No cast container matched payload shape, treating as empty")
    return []


def adapt_cast_message(message: Any) -> Optional[CanonicalPost]:
    """
    單一 Hub / Neynar message -> CanonicalPost

    Envelope 可能是 message.data、message.message.data 或 message 本身。
    impressions 固定為 0 (來源沒有曝光數)。

    Args:
        message: 原始 message

    Returns:
        CanonicalPost；結構上是空的 message 回傳 None
    """
    if not isinstance(message, Mapping):
        return None

    data = _first_mapping(
        message.get("data"),
        _dig(message, "message", "data"),
    ) or message
    body = _first_mapping(data.get("castAddBody"), data.get("body")) or {}

    text = body.get("text") or data.get("text") or message.get("text") or ""
    post_id = message.get("hash") or data.get("hash") or message.get("id") or ""
    if not isinstance(post_id, (int, str)) or isinstance(post_id, bool):
        post_id = str(post_id)

    raw_timestamp = data.get("timestamp")
    if raw_timestamp is None:
        raw_timestamp = message.get("timestamp")
    created_at = normalize_timestamp(raw_timestamp)

    if not post_id and not text and created_at is None:
        logger.debug("Dropping empty cast message")
        return None

    return CanonicalPost(
        id=post_id,
        external_id=post_id if isinstance(post_id, str) and post_id else None,
        text=text if isinstance(text, str) else str(text),
        created_at=created_at,
        impressions=0,
        engagements=_engagement_total(message, data),
        source="live"
    )


def adapt_cast_payload(payload: Any) -> List[CanonicalPost]:
    """
    整個 payload -> CanonicalPost list

    Args:
        payload: Hub / Neynar 原始 JSON

    Returns:
        List of CanonicalPost (保留來源順序)
    """
    messages = extract_cast_messages(payload)
    posts = []
    dropped = 0

    for message in messages:
        post = adapt_cast_message(message)
        if post is None:
            dropped += 1
            continue
        posts.append(post)

    if dropped:
        logger.info(f"Adapted {len(posts)} casts, dropped {dropped} unusable messages")
    return posts


def _engagement_total(message: Mapping, data: Mapping) -> int:
    """likes + recasts + replies，缺少的子計數視為 0"""
    reactions = _first_mapping(message.get("reactions"), data.get("reactions")) or {}
    replies = _first_mapping(message.get("replies"), data.get("replies")) or {}

    likes = _count(reactions.get("likes_count"), reactions.get("likes"))
    recasts = _count(reactions.get("recasts_count"), reactions.get("recasts"))
    reply_count = _count(
        replies.get("count"),
        message.get("replies_count"),
        data.get("replies_count"),
    )
    return likes + recasts + reply_count


# ---------------------------------------------------------------------------
# User profile
# ---------------------------------------------------------------------------

def adapt_user_profile(raw: Any, fid: int) -> Optional[AccountRecord]:
    """
    Neynar user (或 bulk users envelope) -> AccountRecord

    Args:
        raw: {"users": [...]} 或單一 user dict
        fid: 查詢的 fid

    Returns:
        AccountRecord；找不到 user 則為 None
    """
    user = raw
    if isinstance(raw, Mapping) and isinstance(raw.get("users"), list):
        users = raw["users"]
        user = users[0] if users else None
    elif isinstance(raw, Mapping) and isinstance(raw.get("user"), Mapping):
        user = raw["user"]

    if not isinstance(user, Mapping):
        return None

    username = user.get("username") or ""
    display_name = user.get("display_name") or user.get("displayName") or username
    follower_count = _first_int(user.get("follower_count"), user.get("followers_count"))
    created_at_raw = user.get("created_at")
    if created_at_raw is None:
        created_at_raw = user.get("createdAt")

    return AccountRecord(
        account_id=str(user.get("fid") or fid),
        handle=username,
        display_name=display_name,
        created_at=normalize_timestamp(created_at_raw),
        follower_count=follower_count if follower_count is not None else 0
    )


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

def _dig(mapping: Any, *keys: str) -> Any:
    current = mapping
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _first_mapping(*candidates: Any) -> Optional[Dict[str, Any]]:
    for candidate in candidates:
        if isinstance(candidate, Mapping) and candidate:
            return candidate
    return None


def _first_int(*candidates: Any) -> Optional[int]:
    for candidate in candidates:
        value = parse_int(candidate)
        if value is not None:
            return value
    return None


def _count(*candidates: Any) -> int:
    """第一個可用的計數 (int 或 list 長度)，皆無則 0"""
    for candidate in candidates:
        if isinstance(candidate, list):
            return len(candidate)
        value = _first_int(candidate)
        if value is not None:
            return max(0, value)
    return 0


def _non_negative(value: Optional[int]) -> int:
    if value is None:
        return 0
    return max(0, int(value))
