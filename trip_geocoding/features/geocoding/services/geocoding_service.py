"""逆ジオコーディングサービス（キャッシュ・バッチ処理）"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Optional, Sequence

from tqdm import tqdm

from ...coordinates.domain.models import Coordinate, parse_coordinate
from ...coordinates.transform import wgs84_to_gcj02
from ..address.simplifier import choose_display_address
from ..domain.models import UNKNOWN_LOCATION, RegeocodeFailure
from ..providers.address_cache import AddressCache
from ..providers.amap_geocoder import AMAP_BATCH_LIMIT, AmapGeocoder
from ....shared.exceptions.errors import GeocodingError
from ....shared.logging.config import get_logger

logger = get_logger(__name__)


class GeocodingService:
    """
    逆ジオコーディングサービス

    WGS-84座標を受け取り、GCJ-02に変換してから高德地図に問い合わせ、
    表示用の短い住所を返す。結果は AddressCache に保存する。

    住所は補助的な表示情報なので、どの失敗も例外にせず
    該当座標を "未知位置" として返す。
    """

    def __init__(
        self,
        geocoder: Optional[AmapGeocoder],
        cache: AddressCache,
        batch_size: int = AMAP_BATCH_LIMIT,
        max_workers: int = 4,
    ) -> None:
        """
        Args:
            geocoder: 高德地図ジオコーダー（APIキー未設定の場合はNone）
            cache: 住所キャッシュ（プロセス内で共有）
            batch_size: バッチリクエスト1回あたりの座標数（最大20）
            max_workers: バッチリクエストの並列数
        """
        self.geocoder = geocoder
        self.cache = cache
        self.batch_size = max(1, min(batch_size, AMAP_BATCH_LIMIT))
        self.max_workers = max(1, max_workers)

        if geocoder is None:
            logger.warning("AMap API key is not configured; all addresses will resolve to unknown location")

        logger.info(
            f"GeocodingService initialized: batch_size={self.batch_size}, max_workers={self.max_workers}"
        )

    def resolve_one(self, longitude: Any, latitude: Any) -> str:
        """
        1座標の表示用住所を取得

        Args:
            longitude: WGS-84経度（数値または数値文字列）
            latitude: WGS-84緯度（数値または数値文字列）

        Returns:
            str: 表示用住所（取得できない場合は "未知位置"）
        """
        if self.geocoder is None:
            return UNKNOWN_LOCATION

        coord = parse_coordinate(longitude, latitude)
        if coord is None:
            logger.warning(f"Invalid coordinate: ({longitude}, {latitude})")
            return UNKNOWN_LOCATION

        gcj = wgs84_to_gcj02(coord.latitude, coord.longitude)
        key = self.cache.make_key(gcj)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        return self._resolve_transformed(gcj, key)

    def resolve_batch(self, coordinates: Sequence[Any], show_progress: bool = False) -> list[str]:
        """
        複数座標の表示用住所をまとめて取得

        未キャッシュの座標を最大20件ずつのバッチに分け、並列にリクエストする。
        バッチ全体が失敗した場合は、そのバッチの座標を1件ずつ問い合わせる。

        Args:
            coordinates: WGS-84座標 (経度, 緯度) のリスト
            show_progress: プログレスバーを表示するか

        Returns:
            list[str]: 入力と同じ順序・同じ件数の表示用住所
        """
        if self.geocoder is None:
            return [UNKNOWN_LOCATION] * len(coordinates)

        results: list[Optional[str]] = [None] * len(coordinates)

        # キーごとに未解決の座標と、その座標を待っている入力位置をまとめる
        pending: dict[str, Coordinate] = {}
        waiting: dict[str, list[int]] = {}
        invalid_count = 0

        for index, item in enumerate(coordinates):
            coord = self._unpack(item)
            if coord is None:
                invalid_count += 1
                results[index] = UNKNOWN_LOCATION
                continue

            gcj = wgs84_to_gcj02(coord.latitude, coord.longitude)
            key = self.cache.make_key(gcj)

            if key in waiting:
                waiting[key].append(index)
                continue

            cached = self.cache.get(key)
            if cached is not None:
                results[index] = cached
                continue

            pending[key] = gcj
            waiting[key] = [index]

        logger.info(
            f"Batch resolve: {len(coordinates)} coordinates, {len(pending)} uncached, "
            f"{invalid_count} invalid"
        )

        if pending:
            keys = list(pending)
            chunks = [keys[i : i + self.batch_size] for i in range(0, len(keys), self.batch_size)]

            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(chunks))) as executor:
                futures = {
                    executor.submit(self._resolve_chunk, [(key, pending[key]) for key in chunk]): chunk
                    for chunk in chunks
                }

                iterator = (
                    tqdm(as_completed(futures), total=len(futures), desc="逆ジオコーディング")
                    if show_progress
                    else as_completed(futures)
                )

                for future in iterator:
                    chunk = futures[future]
                    try:
                        resolved = future.result()
                    except Exception as e:
                        logger.error(f"Unexpected error while resolving batch of {len(chunk)}: {e}", exc_info=True)
                        resolved = {}

                    for key in chunk:
                        address = resolved.get(key, UNKNOWN_LOCATION)
                        for index in waiting[key]:
                            results[index] = address

        return [address if address is not None else UNKNOWN_LOCATION for address in results]

    def get_cache_stats(self) -> dict[str, float]:
        """キャッシュ統計を取得"""
        return self.cache.get_cache_stats()

    def _resolve_chunk(self, chunk: list[tuple[str, Coordinate]]) -> dict[str, str]:
        """
        1バッチ分を解決

        バッチリクエストが失敗した場合は1件ずつのリクエストにフォールバックする

        Returns:
            dict[str, str]: キャッシュキー -> 表示用住所
        """
        assert self.geocoder is not None

        try:
            regeocodes = self.geocoder.reverse_geocode_batch([gcj for _, gcj in chunk])
        except GeocodingError as e:
            logger.error(f"Batch reverse geocoding failed, falling back to single requests: {e}")
            return {key: self._resolve_transformed(gcj, key) for key, gcj in chunk}

        resolved: dict[str, str] = {}
        for (key, gcj), regeocode in zip(chunk, regeocodes):
            # 不正な要素はキャッシュせず1件ずつ問い合わせる
            if regeocode is None:
                logger.warning(f"Batch response has malformed entry for {key}; resolving individually")
                resolved[key] = self._resolve_transformed(gcj, key)
                continue

            address = choose_display_address(regeocode)
            self.cache.set(key, address)
            resolved[key] = address

        # レスポンスが短い場合、足りない分は1件ずつ問い合わせる
        for key, gcj in chunk[len(regeocodes) :]:
            logger.warning(f"Batch response missing entry for {key}; resolving individually")
            resolved[key] = self._resolve_transformed(gcj, key)

        return resolved

    def _resolve_transformed(self, gcj: Coordinate, key: str) -> str:
        """GCJ-02変換済みの1座標を問い合わせ、成功時はキャッシュする"""
        assert self.geocoder is not None

        try:
            result = self.geocoder.reverse_geocode(gcj)
        except GeocodingError as e:
            logger.error(f"Reverse geocoding failed for {key}: {e}")
            return UNKNOWN_LOCATION
        except Exception as e:
            logger.error(f"Unexpected error during reverse geocoding for {key}: {e}", exc_info=True)
            return UNKNOWN_LOCATION

        if isinstance(result, RegeocodeFailure):
            return UNKNOWN_LOCATION

        address = choose_display_address(result)
        self.cache.set(key, address)
        return address

    @staticmethod
    def _unpack(item: Any) -> Optional[Coordinate]:
        try:
            longitude, latitude = item
        except (TypeError, ValueError):
            return None
        return parse_coordinate(longitude, latitude)
