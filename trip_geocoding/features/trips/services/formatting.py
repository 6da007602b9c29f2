"""行程の表示用フォーマット"""
import math
from typing import Optional


def calculate_distance(start_km: Optional[float], end_km: Optional[float]) -> Optional[float]:
    """オドメーターの差分から走行距離を計算（どちらかが欠けている場合はNone）"""
    if start_km is not None and end_km is not None:
        return end_km - start_km
    return None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_duration(minutes: Optional[float]) -> str:
    """
    所要時間（分）を表示用文字列に変換

    Examples:
        45 -> "45分钟", 120 -> "2小时", 135 -> "2小时15分钟"
    """
    if not minutes or math.isnan(minutes):
        return "N/A"

    if minutes < 60:
        return f"{_round_half_up(minutes)}分钟"

    hours = int(minutes // 60)
    remaining_minutes = _round_half_up(minutes % 60)

    if remaining_minutes == 0:
        return f"{hours}小时"

    return f"{hours}小时{remaining_minutes}分钟"
