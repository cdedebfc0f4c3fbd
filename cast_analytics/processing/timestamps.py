"""
Timestamp normalization

所有來源的時間欄位都經過 normalize_timestamp，統一 seconds / milliseconds 判斷規則。
"""

from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional
import logging
import math

from cast_analytics.utils import time as time_utils

logger = logging.getLogger(__name__)

# 小於此值視為 Unix seconds，否則視為 milliseconds
SECONDS_THRESHOLD = 10_000_000_000


def normalize_timestamp(value: Any, tz_name: Optional[str] = None) -> Optional[datetime]:
    """
    將未知格式的時間轉成 UTC tz-aware datetime

    支援：
    1. None / 0 / 空字串 -> None
    2. 數字：< 10_000_000_000 為 seconds，否則為 milliseconds
    3. 字串：數字字串依規則 2，其他嘗試 ISO-8601 / RFC-2822 / YYYY-MM-DD
    4. datetime / date (DB 資料列)

    Args:
        value: 原始時間值
        tz_name: naive datetime 的時區 (預設 UTC)

    Returns:
        UTC tz-aware datetime，無法解析則為 None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return time_utils.to_utc(value, tz_name)

    if isinstance(value, date):
        return time_utils.start_of_day(value)

    if isinstance(value, (int, float)):
        return _from_epoch(value)

    if isinstance(value, str):
        return _from_string(value)

    return None


def _from_epoch(value: float) -> Optional[datetime]:
    try:
        if not math.isfinite(value) or value == 0:
            return None
        seconds = value if abs(value) < SECONDS_THRESHOLD else value / 1000
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.debug(f"Epoch value out of range: {value!r}")
        return None


def _from_string(value: str) -> Optional[datetime]:
    text = value.strip()
    if not text:
        return None

    numeric = _parse_number(text)
    if numeric is not None:
        return _from_epoch(numeric)

    # ISO-8601 (含 Z 與 YYYY-MM-DD)，naive 視為 UTC
    try:
        return time_utils.parse_iso8601(text)
    except ValueError:
        pass

    # RFC-2822 (e.g. "Mon, 01 Jan 2024 00:00:00 GMT")
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is not None:
        return time_utils.to_utc(parsed)

    logger.debug(f"Unparseable timestamp: {value!r}")
    return None


def _parse_number(text: str) -> Optional[float]:
    try:
        return float(text)
    except ValueError:
        return None
