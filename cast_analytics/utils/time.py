"""Time utilities for timezone-aware datetime handling."""

from datetime import date, datetime, time, timezone, timedelta
from typing import List, Optional, Tuple
import pytz


def utcnow() -> datetime:
    """取得當前 UTC 時間 (tz-aware)"""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    轉換時間為 UTC tz-aware datetime

    Args:
        dt: 輸入時間
        tz_name: 原時區名稱 (若 dt 為 naive)

    Returns:
        UTC tz-aware datetime
    """
    if dt.tzinfo is None:
        # Naive datetime，需要指定時區
        if tz_name and tz_name.upper() != "UTC":
            tz = pytz.timezone(tz_name)
            dt = tz.localize(dt)
        else:
            # 假設為 UTC
            dt = dt.replace(tzinfo=timezone.utc)

    # 轉換為 UTC
    return dt.astimezone(timezone.utc)


def utc_today(now: Optional[datetime] = None) -> date:
    """取得 UTC 日期 (今天)"""
    return to_utc(now or utcnow()).date()


def utc_day(dt: datetime) -> date:
    """
    取得 UTC 日曆日 (捨去時分秒)

    Args:
        dt: 時間 (會轉換為 UTC)

    Returns:
        UTC date
    """
    return to_utc(dt).date()


def start_of_day(day: date) -> datetime:
    """UTC 午夜 (tz-aware)"""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def build_window(window_days: int, today: Optional[date] = None) -> Tuple[date, date]:
    """
    計算以今天為結尾的日期窗口

    Args:
        window_days: 窗口天數 (>= 1)
        today: 窗口最後一天 (預設 UTC 今天)

    Returns:
        (window_start, window_end)，兩端皆包含
    """
    if window_days < 1:
        raise ValueError(f"window_days must be >= 1, got {window_days}")
    end = today or utc_today()
    start = end - timedelta(days=window_days - 1)
    return start, end


def window_dates(window_start: date, window_days: int) -> List[date]:
    """窗口內每一天 (由舊到新)"""
    return [window_start + timedelta(days=offset) for offset in range(window_days)]


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """
    兩個時間之間的完整天數 (floor)，不小於 0

    Args:
        earlier: 起始時間
        later: 結束時間

    Returns:
        天數
    """
    delta = to_utc(later) - to_utc(earlier)
    return max(0, delta // timedelta(days=1))


def parse_iso8601(date_str: str) -> datetime:
    """解析 ISO8601 字串為 tz-aware datetime"""
    dt = datetime.fromisoformat(date_str.replace('Z', '+00:00'))
    return to_utc(dt)
