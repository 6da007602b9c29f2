"""アプリケーション設定（Pydantic Settings）"""
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """アプリケーション設定"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Project
    project_name: str = Field(
        default="trip-geocoding",
        description="プロジェクト名",
    )
    environment: str = Field(
        default="development",
        description="環境 (development, staging, production)",
    )

    # AMap
    amap_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("amap_api_key", "amap_key", "next_public_amap_key"),
        description="高德地図 Web API キー（未設定の場合、住所は常に未知位置になる）",
    )
    amap_base_url: str = Field(
        default="https://restapi.amap.com",
        description="高德地図 APIのベースURL",
    )
    amap_radius: int = Field(
        default=1000,
        ge=0,
        le=3000,
        description="逆ジオコーディングのPOI検索半径（メートル）",
    )
    amap_extensions: str = Field(
        default="all",
        description="逆ジオコーディングの extensions（all: POIを含む / base: 基本情報のみ）",
    )

    # Geocoding
    geocoding_enabled: bool = Field(
        default=True,
        description="逆ジオコーディングを有効にするか",
    )
    geocoding_batch_size: int = Field(
        default=20,
        ge=1,
        le=20,
        description="バッチリクエスト1回あたりの座標数（高德地図の上限は20）",
    )
    geocoding_max_workers: int = Field(
        default=4,
        ge=1,
        description="バッチリクエストの並列数",
    )

    # HTTP
    http_timeout: float = Field(
        default=10.0,
        description="HTTPリクエストのタイムアウト（秒）",
    )
    http_retry: int = Field(
        default=2,
        description="HTTPリクエストのリトライ回数",
    )
    http_user_agent: str = Field(
        default="Trip-Dashboard/1.0",
        description="HTTPリクエストのUser-Agent",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Server
    port: int = Field(
        default=8080,
        description="HTTPサーバーのポート番号",
    )

    @property
    def has_amap_key(self) -> bool:
        """高德地図 APIキーが設定されているか"""
        return bool(self.amap_api_key and self.amap_api_key.strip())
