"""
WGS-84 → GCJ-02 座標変換

中国国内の地図サービス（高德地図など）はGCJ-02座標を要求するため、
GPSの生座標（WGS-84）をオフセット補正する。
中国国外の座標は変換しない。

演算順序は参照実装と同一にしてあるので、並べ替えないこと（浮動小数点の丸めが変わる）。
"""
import math
from typing import Iterable

from .domain.models import Coordinate

PI = 3.14159265358979324
A = 6378245.0  # 長半径
EE = 0.00669342162296594323  # 離心率の二乗


def is_point_in_china(wg_lat: float, wg_lon: float) -> bool:
    """座標が中国の範囲（矩形）内かどうか"""
    return 0.8293 <= wg_lat <= 55.8271 and 72.004 <= wg_lon <= 137.8347


def _transform_lat(x: float, y: float) -> float:
    ret = -100.0 + 2.0 * x + 3.0 * y + 0.2 * y * y + 0.1 * x * y + 0.2 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * PI) + 20.0 * math.sin(2.0 * x * PI)) * 2.0 / 3.0
    ret += (20.0 * math.sin(y * PI) + 40.0 * math.sin(y / 3.0 * PI)) * 2.0 / 3.0
    ret += (160.0 * math.sin(y / 12.0 * PI) + 320 * math.sin(y * PI / 30.0)) * 2.0 / 3.0
    return ret


def _transform_lon(x: float, y: float) -> float:
    ret = 300.0 + x + 2.0 * y + 0.1 * x * x + 0.1 * x * y + 0.1 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * PI) + 20.0 * math.sin(2.0 * x * PI)) * 2.0 / 3.0
    ret += (20.0 * math.sin(x * PI) + 40.0 * math.sin(x / 3.0 * PI)) * 2.0 / 3.0
    ret += (150.0 * math.sin(x / 12.0 * PI) + 300.0 * math.sin(x / 30.0 * PI)) * 2.0 / 3.0
    return ret


def wgs84_to_gcj02(wg_lat: float, wg_lon: float) -> Coordinate:
    """
    WGS-84座標をGCJ-02座標に変換

    Args:
        wg_lat: WGS-84緯度
        wg_lon: WGS-84経度

    Returns:
        Coordinate: GCJ-02座標 (経度, 緯度)
    """
    if not is_point_in_china(wg_lat, wg_lon):
        return Coordinate(wg_lon, wg_lat)

    d_lat = _transform_lat(wg_lon - 105.0, wg_lat - 35.0)
    d_lon = _transform_lon(wg_lon - 105.0, wg_lat - 35.0)
    rad_lat = wg_lat / 180.0 * PI
    magic = math.sin(rad_lat)
    magic = 1 - EE * magic * magic
    sqrt_magic = math.sqrt(magic)
    d_lat = (d_lat * 180.0) / ((A * (1 - EE)) / (magic * sqrt_magic) * PI)
    d_lon = (d_lon * 180.0) / (A / sqrt_magic * math.cos(rad_lat) * PI)

    return Coordinate(wg_lon + d_lon, wg_lat + d_lat)


def batch_wgs84_to_gcj02(coordinates: Iterable[Coordinate]) -> list[Coordinate]:
    """
    複数のWGS-84座標をまとめてGCJ-02座標に変換（順序は保持）

    Args:
        coordinates: WGS-84座標のリスト

    Returns:
        list[Coordinate]: GCJ-02座標のリスト
    """
    return [wgs84_to_gcj02(coord.latitude, coord.longitude) for coord in coordinates]
