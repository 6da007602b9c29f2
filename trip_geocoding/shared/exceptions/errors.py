"""カスタム例外定義"""


class TripGeocodingError(Exception):
    """基底例外"""

    pass


class HTTPError(TripGeocodingError):
    """HTTP関連のエラー"""

    pass


class GeocodingError(TripGeocodingError):
    """逆ジオコーディングエラー"""

    pass


class ConfigurationError(TripGeocodingError):
    """設定エラー"""

    pass

