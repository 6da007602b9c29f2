"""高德地図 逆ジオコーディングAPI実装"""
from typing import Any, Optional, Sequence

from ...coordinates.domain.models import Coordinate
from ..domain.models import (
    RegeocodeFailure,
    RegeocodeResult,
    RegeocodeSuccess,
    parse_regeocode,
)
from ....shared.exceptions.errors import GeocodingError, HTTPError
from ....shared.http.client import HTTPClient
from ....shared.logging.config import get_logger

logger = get_logger(__name__)

AMAP_BASE_URL = "https://restapi.amap.com"
AMAP_REGEO_PATH = "/v3/geocode/regeo"
AMAP_BATCH_LIMIT = 20  # バッチリクエスト1回あたりの最大座標数
AMAP_STATUS_OK = "1"


def format_location(coord: Coordinate) -> str:
    """高德地図の location パラメータ形式（経度,緯度 / 小数点以下6桁）"""
    return f"{coord.longitude:.6f},{coord.latitude:.6f}"


class AmapGeocoder:
    """
    高德地図 逆ジオコーディングAPI実装

    座標はGCJ-02で渡すこと（WGS-84からの変換は呼び出し側の責務）
    """

    def __init__(
        self,
        api_key: str,
        http_client: HTTPClient,
        base_url: str = AMAP_BASE_URL,
        radius: int = 1000,
        extensions: str = "all",
    ) -> None:
        """
        Args:
            api_key: 高德地図 Web API キー
            http_client: HTTPクライアント
            base_url: APIのベースURL
            radius: POI検索半径（メートル）
            extensions: "all" の場合はPOIを含めて返す
        """
        self.api_key = api_key
        self.http_client = http_client
        self.url = base_url.rstrip("/") + AMAP_REGEO_PATH
        self.radius = radius
        self.extensions = extensions

        logger.info("AmapGeocoder initialized")

    def reverse_geocode(self, coord: Coordinate) -> RegeocodeResult:
        """
        座標から住所を取得（逆ジオコーディング）

        Args:
            coord: GCJ-02座標

        Returns:
            RegeocodeResult: 成功時はRegeocodeSuccess、プロバイダーエラー時はRegeocodeFailure

        Raises:
            GeocodingError: 通信に失敗した場合
        """
        logger.debug(f"Reverse geocoding: {format_location(coord)}")

        data = self._request(format_location(coord), batch=False)

        if data.get("status") != AMAP_STATUS_OK or not isinstance(data.get("regeocode"), dict):
            reason = str(data.get("info") or "unknown error")
            logger.warning(f"AMap API returned error for {format_location(coord)}: {reason}")
            return RegeocodeFailure(reason=reason)

        regeocode = parse_regeocode(data["regeocode"])
        logger.debug(
            f"Reverse geocoded: {format_location(coord)} -> {regeocode.formatted_address} "
            f"(pois={[poi.name for poi in regeocode.pois[:5]]})"
        )
        return regeocode

    def reverse_geocode_batch(self, coords: Sequence[Coordinate]) -> list[Optional[RegeocodeSuccess]]:
        """
        複数座標をまとめて逆ジオコーディング

        レスポンスの順序はリクエストの順序と一致する。
        オブジェクトでない要素（null など）は None として返す

        Args:
            coords: GCJ-02座標のリスト（最大20件）

        Returns:
            list[Optional[RegeocodeSuccess]]: 座標ごとの結果（リクエストと同じ順序）

        Raises:
            GeocodingError: 通信失敗、またはプロバイダーがエラーを返した場合
        """
        if not coords:
            return []

        if len(coords) > AMAP_BATCH_LIMIT:
            raise GeocodingError(
                f"Too many coordinates for one batch request: {len(coords)} > {AMAP_BATCH_LIMIT}"
            )

        locations = "|".join(format_location(coord) for coord in coords)
        logger.debug(f"Batch reverse geocoding: {len(coords)} coordinates")

        data = self._request(locations, batch=True)

        regeocodes = data.get("regeocodes")
        if data.get("status") != AMAP_STATUS_OK or not isinstance(regeocodes, list):
            raise GeocodingError(f"AMap batch API returned error: {data.get('info')}")

        logger.debug(f"Batch reverse geocoded: {len(regeocodes)} results for {len(coords)} coordinates")

        return [parse_regeocode(regeocode) if isinstance(regeocode, dict) else None for regeocode in regeocodes]

    def _request(self, location: str, batch: bool) -> dict[str, Any]:
        params = {
            "key": self.api_key,
            "location": location,
            "radius": self.radius,
            "extensions": self.extensions,
            "batch": "true" if batch else "false",
            "roadlevel": 1,
        }

        try:
            data = self.http_client.get_json(self.url, params=params)
        except HTTPError as e:
            raise GeocodingError(f"AMap transport error: {e}") from e

        if not isinstance(data, dict):
            raise GeocodingError(f"Unexpected AMap response type: {type(data).__name__}")

        return data
