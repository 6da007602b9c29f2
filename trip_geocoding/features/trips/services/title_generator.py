"""行程タイトルの生成"""

import asyncio
import re
from typing import Any, Optional

from ...geocoding.domain.models import UNKNOWN_LOCATION
from ...geocoding.services.geocoding_service import GeocodingService
from ....shared.logging.config import get_logger

logger = get_logger(__name__)

UNKNOWN_TRIP = "未知行程"
TITLE_SEPARATOR = " → "

_CITY_PREFIX = re.compile(r"^(中国|北京市|上海市|广州市|深圳市|杭州市|南京市|武汉市|成都市|重庆市)")
_ADMINISTRATIVE_SUFFIX = re.compile(r"(市|区|县|镇|街道|路|街|巷|号)$")
_WHITESPACE = re.compile(r"\s+")
_TOKEN_SEPARATORS = re.compile(r"[,，\s]+")


def simplify_database_address(address: Optional[str]) -> str:
    """
    データベースに保存された住所文字列を簡略化（ネットワーク不要）

    Args:
        address: 住所文字列

    Returns:
        str: 簡略化した住所（空の場合は "未知位置"）
    """
    if not address:
        return UNKNOWN_LOCATION

    simplified = _CITY_PREFIX.sub("", address, count=1)
    simplified = _ADMINISTRATIVE_SUFFIX.sub("", simplified, count=1)
    simplified = _WHITESPACE.sub(" ", simplified).strip()

    # まだ長い場合は先頭2トークンだけ残す
    if len(simplified) > 12:
        parts = _TOKEN_SEPARATORS.split(simplified)
        simplified = "".join(parts[:2])

    return simplified or UNKNOWN_LOCATION


def combine_title(start: str, end: str) -> str:
    """出発地と到着地からタイトルを組み立てる"""
    if start == UNKNOWN_LOCATION and end == UNKNOWN_LOCATION:
        return UNKNOWN_TRIP

    return f"{start}{TITLE_SEPARATOR}{end}"


def generate_title_sync(start_address: Optional[str], end_address: Optional[str]) -> str:
    """
    データベースの住所だけで行程タイトルを生成（ネットワーク不要）

    Args:
        start_address: 出発地の住所
        end_address: 到着地の住所

    Returns:
        str: "出発地 → 到着地"（両方不明の場合は "未知行程"）
    """
    return combine_title(
        simplify_database_address(start_address),
        simplify_database_address(end_address),
    )


class TripTitleGenerator:
    """逆ジオコーディングで補強した行程タイトルの生成"""

    def __init__(self, geocoding_service: Optional[GeocodingService]) -> None:
        """
        Args:
            geocoding_service: 逆ジオコーディングサービス（Noneの場合は住所文字列のみ使用）
        """
        self.geocoding_service = geocoding_service

    def get_enhanced_address(
        self,
        database_address: Optional[str],
        longitude: Any = None,
        latitude: Any = None,
    ) -> str:
        """
        座標があれば逆ジオコーディングし、失敗時はデータベースの住所にフォールバック

        Args:
            database_address: データベースの住所
            longitude: WGS-84経度
            latitude: WGS-84緯度

        Returns:
            str: 表示用住所
        """
        if self.geocoding_service is not None and longitude is not None and latitude is not None:
            try:
                address = self.geocoding_service.resolve_one(longitude, latitude)
                if address and address != UNKNOWN_LOCATION:
                    return address
            except Exception as e:
                logger.warning(f"Failed to resolve address, falling back to database address: {e}")

        return simplify_database_address(database_address)

    async def generate_title_async(
        self,
        start_address: Optional[str],
        end_address: Optional[str],
        start_longitude: Any = None,
        start_latitude: Any = None,
        end_longitude: Any = None,
        end_latitude: Any = None,
    ) -> str:
        """
        出発地・到着地を並行して解決し、行程タイトルを生成

        Returns:
            str: "出発地 → 到着地"（両方不明の場合は "未知行程"）
        """
        try:
            start, end = await asyncio.gather(
                asyncio.to_thread(self.get_enhanced_address, start_address, start_longitude, start_latitude),
                asyncio.to_thread(self.get_enhanced_address, end_address, end_longitude, end_latitude),
            )
        except Exception as e:
            logger.error(f"Failed to generate trip title: {e}", exc_info=True)
            return generate_title_sync(start_address, end_address)

        return combine_title(start, end)

    def generate_title_sync(self, start_address: Optional[str], end_address: Optional[str]) -> str:
        """ネットワークを使わずに行程タイトルを生成"""
        return generate_title_sync(start_address, end_address)
