"""座標のドメインモデル"""
import math
from typing import Any, NamedTuple, Optional


class Coordinate(NamedTuple):
    """
    経緯度ペア（10進数の度）

    要素順は (経度, 緯度)。地図ウィジェットにそのまま渡せる順序。
    測地系（WGS-84 / GCJ-02）は型では区別せず、変数名で区別する。
    """

    longitude: float  # 経度
    latitude: float  # 緯度


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, str):
        value = value.strip()

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    return number if math.isfinite(number) else None


def parse_coordinate(longitude: Any, latitude: Any) -> Optional[Coordinate]:
    """
    数値または数値文字列から座標を作成

    Args:
        longitude: 経度
        latitude: 緯度

    Returns:
        Optional[Coordinate]: 座標（数値でない・有限でない場合はNone）
    """
    lng = _to_float(longitude)
    lat = _to_float(latitude)

    if lng is None or lat is None:
        return None

    return Coordinate(lng, lat)
