"""HTTPサーバー（FastAPI）"""
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .bootstrap import ServiceContainer
from .features.coordinates.transform import wgs84_to_gcj02
from .features.geocoding.services.geocoding_service import GeocodingService
from .features.trips.services.formatting import calculate_distance, format_duration
from .features.trips.services.title_generator import TripTitleGenerator
from .infrastructure.config.settings import Settings
from .shared.logging.config import get_logger, setup_logging

# 設定を読み込み
settings = Settings()

# ロギングを設定
setup_logging(level=settings.log_level)
logger = get_logger(__name__)

# サービスはプロセスごとに1回だけ組み立てる
container = ServiceContainer(settings)

app = FastAPI(
    title="行程ジオコーディングサービス",
    description="車両の行程座標をGCJ-02に変換し、表示用の住所・行程タイトルを返すサービス",
    version="1.0.0",
)


class CoordinateIn(BaseModel):
    """WGS-84座標"""

    longitude: Optional[float] = None
    latitude: Optional[float] = None


class BatchReverseRequest(BaseModel):
    """バッチ逆ジオコーディングのリクエスト"""

    coordinates: list[CoordinateIn] = Field(default_factory=list)


class TripTitleRequest(BaseModel):
    """行程タイトル生成のリクエスト"""

    start_address: Optional[str] = None
    end_address: Optional[str] = None
    start_longitude: Optional[float] = None
    start_latitude: Optional[float] = None
    end_longitude: Optional[float] = None
    end_latitude: Optional[float] = None
    start_odometer_km: Optional[float] = Field(default=None, allow_inf_nan=False)
    end_odometer_km: Optional[float] = Field(default=None, allow_inf_nan=False)
    duration_minutes: Optional[float] = Field(default=None, allow_inf_nan=False)
    enhance: bool = True  # Falseの場合はネットワークを使わない


def get_geocoding_service() -> GeocodingService:
    return container.geocoding_service


def get_title_generator() -> TripTitleGenerator:
    return container.title_generator


@app.on_event("startup")
async def startup_event() -> None:
    """起動時の処理"""
    logger.info("Application starting up")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Project: {settings.project_name}")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """シャットダウン時の処理"""
    logger.info("Application shutting down")
    container.close()


@app.get("/")
async def root() -> dict[str, Any]:
    """ルートエンドポイント"""
    return {
        "service": "行程ジオコーディングサービス",
        "version": "1.0.0",
        "status": "running",
        "environment": settings.environment,
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """ヘルスチェックエンドポイント"""
    return {"status": "healthy"}


@app.get("/coordinates/gcj02")
async def convert_coordinate(
    lat: float = Query(..., description="WGS-84緯度", allow_inf_nan=False),
    lng: float = Query(..., description="WGS-84経度", allow_inf_nan=False),
) -> dict[str, float]:
    """WGS-84座標をGCJ-02座標に変換"""
    gcj = wgs84_to_gcj02(lat, lng)
    return {"longitude": gcj.longitude, "latitude": gcj.latitude}


@app.get("/geocode/reverse")
def reverse_geocode(
    lng: str = Query(..., description="WGS-84経度"),
    lat: str = Query(..., description="WGS-84緯度"),
    service: GeocodingService = Depends(get_geocoding_service),
) -> dict[str, Any]:
    """1座標の表示用住所を取得"""
    return {"longitude": lng, "latitude": lat, "address": service.resolve_one(lng, lat)}


@app.post("/geocode/reverse/batch")
def reverse_geocode_batch(
    request: BatchReverseRequest,
    service: GeocodingService = Depends(get_geocoding_service),
) -> dict[str, Any]:
    """複数座標の表示用住所を取得（入力と同じ順序）"""
    coordinates = [(coord.longitude, coord.latitude) for coord in request.coordinates]
    return {"addresses": service.resolve_batch(coordinates)}


@app.post("/trips/title")
async def trip_title(
    request: TripTitleRequest,
    generator: TripTitleGenerator = Depends(get_title_generator),
) -> dict[str, Any]:
    """行程タイトルと所要時間・走行距離の表示を生成"""
    if request.enhance:
        title = await generator.generate_title_async(
            request.start_address,
            request.end_address,
            request.start_longitude,
            request.start_latitude,
            request.end_longitude,
            request.end_latitude,
        )
    else:
        title = generator.generate_title_sync(request.start_address, request.end_address)

    return {
        "title": title,
        "duration": format_duration(request.duration_minutes),
        "distance_km": calculate_distance(request.start_odometer_km, request.end_odometer_km),
    }


@app.get("/geocode/cache/stats")
def cache_stats(
    service: GeocodingService = Depends(get_geocoding_service),
) -> dict[str, float]:
    """住所キャッシュの統計"""
    return service.get_cache_stats()


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """グローバル例外ハンドラー"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error", "detail": str(exc)},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
