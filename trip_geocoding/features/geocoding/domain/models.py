"""逆ジオコーディング機能のドメインモデル"""
from dataclasses import dataclass, field
from typing import Any, Optional, Union

# 表示用の番兵値（エラーではなく通常の表示値として扱う）
UNKNOWN_LOCATION = "未知位置"


def _as_text(value: Any) -> str:
    """
    APIの値を文字列に正規化

    高德地図は空のフィールドを [] で返すため、文字列以外は空文字として扱う
    """
    if isinstance(value, str):
        return value.strip()
    return ""


@dataclass(frozen=True)
class AddressComponent:
    """構造化された住所要素"""

    country: str = ""
    province: str = ""
    city: str = ""
    district: str = ""  # 区・県
    township: str = ""  # 街道・鎮・郷
    street: str = ""
    street_number: str = ""
    neighborhood: str = ""
    building: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["AddressComponent"]:
        """APIレスポンスの addressComponent から生成（形式不正の場合はNone）"""
        if not isinstance(payload, dict):
            return None

        street_number = payload.get("streetNumber")
        street = ""
        number = ""
        if isinstance(street_number, dict):
            street = _as_text(street_number.get("street"))
            number = _as_text(street_number.get("number"))
        elif isinstance(street_number, str):
            number = street_number.strip()

        neighborhood = payload.get("neighborhood")
        building = payload.get("building")

        return cls(
            country=_as_text(payload.get("country")),
            province=_as_text(payload.get("province")),
            city=_as_text(payload.get("city")),
            district=_as_text(payload.get("district")),
            township=_as_text(payload.get("township")),
            street=_as_text(payload.get("street")) or street,
            street_number=number,
            neighborhood=_as_text(neighborhood.get("name")) if isinstance(neighborhood, dict) else _as_text(neighborhood),
            building=_as_text(building.get("name")) if isinstance(building, dict) else _as_text(building),
        )


@dataclass(frozen=True)
class Poi:
    """周辺のPOI（建物名・店舗名など）"""

    name: str
    id: str = ""
    type: str = ""
    address: str = ""
    distance: Optional[float] = None  # メートル

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["Poi"]:
        """APIレスポンスのPOI要素から生成（名前がない場合はNone）"""
        if not isinstance(payload, dict):
            return None

        name = _as_text(payload.get("name"))
        if not name:
            return None

        distance: Optional[float]
        try:
            distance = float(payload.get("distance"))
        except (TypeError, ValueError):
            distance = None

        return cls(
            name=name,
            id=_as_text(payload.get("id")),
            type=_as_text(payload.get("type")),
            address=_as_text(payload.get("address")),
            distance=distance,
        )


@dataclass(frozen=True)
class RegeocodeSuccess:
    """逆ジオコーディング成功（1座標分）"""

    formatted_address: Optional[str] = None
    components: Optional[AddressComponent] = None
    pois: list[Poi] = field(default_factory=list)


@dataclass(frozen=True)
class RegeocodeFailure:
    """逆ジオコーディング失敗（プロバイダーがエラーステータスを返した）"""

    reason: str


RegeocodeResult = Union[RegeocodeSuccess, RegeocodeFailure]


def parse_regeocode(payload: Any) -> RegeocodeSuccess:
    """
    regeocode オブジェクトを防御的にデコード

    形式が不正なフィールドは None / 空として扱い、例外は送出しない

    Args:
        payload: レスポンスJSONの regeocode 要素

    Returns:
        RegeocodeSuccess: デコード結果
    """
    if not isinstance(payload, dict):
        return RegeocodeSuccess()

    formatted_address = _as_text(payload.get("formatted_address")) or None

    raw_pois = payload.get("pois")
    pois: list[Poi] = []
    if isinstance(raw_pois, list):
        for raw_poi in raw_pois:
            poi = Poi.from_payload(raw_poi)
            if poi is not None:
                pois.append(poi)

    return RegeocodeSuccess(
        formatted_address=formatted_address,
        components=AddressComponent.from_payload(payload.get("addressComponent")),
        pois=pois,
    )
