"""Lenient integer parsing for query parameters and loosely typed payload fields."""

from typing import Any, Optional
import math


def parse_int(value: Any) -> Optional[int]:
    """
    轉成 int (小數捨去)，無法轉換則回傳 None

    數字字串與數字相同處理："3.5" 與 3.5 皆為 3。

    Args:
        value: int / float / 數字字串 (bool 不算數字)

    Returns:
        int 或 None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if math.isfinite(number) else None
    return None
