"""サービスの組み立て（依存性注入）"""

from typing import Optional

from .features.geocoding.providers.address_cache import AddressCache
from .features.geocoding.providers.amap_geocoder import AmapGeocoder
from .features.geocoding.services.geocoding_service import GeocodingService
from .features.trips.services.title_generator import TripTitleGenerator
from .infrastructure.config.settings import Settings
from .shared.exceptions.errors import ConfigurationError
from .shared.http.client import HTTPClient
from .shared.logging.config import get_logger

logger = get_logger(__name__)

AMAP_EXTENSIONS = ("all", "base")


def create_geocoding_service(
    settings: Settings,
    cache: Optional[AddressCache] = None,
    http_client: Optional[HTTPClient] = None,
) -> GeocodingService:
    """
    逆ジオコーディングサービスを作成

    逆ジオコーディングが無効、またはAPIキー未設定の場合は
    ジオコーダーなしのサービスを返す（全座標が未知位置になる）

    Args:
        settings: アプリケーション設定
        cache: 住所キャッシュ（Noneの場合は新規作成）
        http_client: HTTPクライアント（Noneの場合は設定から作成）

    Returns:
        GeocodingService: 逆ジオコーディングサービス

    Raises:
        ConfigurationError: amap_extensions が高德地図の受け付けない値の場合
    """
    cache = cache if cache is not None else AddressCache()

    if not settings.geocoding_enabled:
        logger.info("Geocoding is disabled via settings; addresses will not be resolved")
        return GeocodingService(None, cache)

    if not settings.has_amap_key:
        logger.info("AMAP API key is not configured; addresses will not be resolved")
        return GeocodingService(None, cache)

    if settings.amap_extensions not in AMAP_EXTENSIONS:
        raise ConfigurationError(
            f"Invalid amap_extensions: {settings.amap_extensions!r} (expected one of {AMAP_EXTENSIONS})"
        )

    if http_client is None:
        http_client = HTTPClient(
            timeout=settings.http_timeout,
            max_retries=settings.http_retry,
            user_agent=settings.http_user_agent,
            pool_maxsize=max(10, settings.geocoding_max_workers),
        )

    geocoder = AmapGeocoder(
        api_key=(settings.amap_api_key or "").strip(),
        http_client=http_client,
        base_url=settings.amap_base_url,
        radius=settings.amap_radius,
        extensions=settings.amap_extensions,
    )

    return GeocodingService(
        geocoder,
        cache,
        batch_size=settings.geocoding_batch_size,
        max_workers=settings.geocoding_max_workers,
    )


class ServiceContainer:
    """
    アプリケーション全体で共有するサービス

    プロセスごとに1つ生成する（住所キャッシュはここで1回だけ作られる）
    """

    def __init__(self, settings: Settings) -> None:
        """
        Args:
            settings: アプリケーション設定
        """
        self.settings = settings
        self.address_cache = AddressCache()
        self.geocoding_service = create_geocoding_service(settings, cache=self.address_cache)
        self.title_generator = TripTitleGenerator(self.geocoding_service)

        logger.info("ServiceContainer initialized")

    def close(self) -> None:
        """HTTPセッションをクローズ"""
        geocoder = self.geocoding_service.geocoder
        if geocoder is not None:
            geocoder.http_client.close()
