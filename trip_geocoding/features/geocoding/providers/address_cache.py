"""逆ジオコーディング結果の住所キャッシュ"""

import threading
from typing import Optional

from ...coordinates.domain.models import Coordinate
from ....shared.logging.config import get_logger

logger = get_logger(__name__)


class AddressCache:
    """
    表示用住所のメモリ内キャッシュ

    プロセスごとに1つ生成してサービスに注入する。
    キーは変換後（GCJ-02）の座標から作るため、丸め後に同じ点になる
    WGS-84座標は同じエントリを共有する。
    上限・TTL・削除はなし（座標の種類は有限で、値は変わらない）。

    同じキーへの同時書き込みは同じ値の上書きになるため、
    ロックは統計カウンタのみに使う。
    """

    def __init__(self) -> None:
        self.cache: dict[str, str] = {}
        self.hit_count = 0
        self.miss_count = 0
        self._stats_lock = threading.Lock()

        logger.info("AddressCache initialized")

    @staticmethod
    def make_key(gcj: Coordinate) -> str:
        """
        キャッシュキーを作成（GCJ-02座標、小数点以下6桁で丸める）

        Args:
            gcj: GCJ-02座標

        Returns:
            str: "経度,緯度" 形式のキー
        """
        return f"{gcj.longitude:.6f},{gcj.latitude:.6f}"

    def get(self, key: str) -> Optional[str]:
        """
        キャッシュから住所を取得

        Args:
            key: キャッシュキー

        Returns:
            Optional[str]: 住所（キャッシュにない場合はNone）
        """
        address = self.cache.get(key)

        with self._stats_lock:
            if address is None:
                self.miss_count += 1
            else:
                self.hit_count += 1

        if address is None:
            logger.debug(f"Cache miss for coordinates: {key}")
        else:
            logger.debug(f"Cache hit for coordinates: {key}")

        return address

    def set(self, key: str, address: str) -> None:
        """住所をキャッシュに保存"""
        self.cache[key] = address

    def __contains__(self, key: object) -> bool:
        return key in self.cache

    def __len__(self) -> int:
        return len(self.cache)

    def get_cache_stats(self) -> dict[str, float]:
        """
        キャッシュ統計を取得

        Returns:
            dict[str, float]: キャッシュ統計（サイズ、ヒット数、ミス数、ヒット率）
        """
        with self._stats_lock:
            hit_count = self.hit_count
            miss_count = self.miss_count

        total_requests = hit_count + miss_count
        hit_rate = (hit_count / total_requests * 100) if total_requests > 0 else 0.0

        stats = {
            "cache_size": len(self.cache),
            "hit_count": hit_count,
            "miss_count": miss_count,
            "total_requests": total_requests,
            "hit_rate_percent": round(hit_rate, 2),
        }

        logger.info(f"Cache stats: {stats}")

        return stats
