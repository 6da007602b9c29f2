"""
高德地図の住所簡略化

冗長な formatted_address（例: 广东省深圳市南山区科技园路10号腾讯大厦）から
行政区画を取り除き、POI名（小区名・建物名・飲食店・ホテルなど）を優先した
短い表示用ラベルを作る。
"""

import re
from typing import Optional

from ..domain.models import UNKNOWN_LOCATION, AddressComponent, RegeocodeSuccess

MAX_LABEL_LENGTH = 25
ELLIPSIS = "..."

# 行政区画の接頭辞（上から順に1回ずつ適用）
_ADMINISTRATIVE_PREFIXES = [
    re.compile(r"^(中华人民共和国|中国)"),
    re.compile(r"^(.*?省)"),
    re.compile(r"^(.*?市)"),
    re.compile(r"^(.*?区)"),
    re.compile(r"^(.*?县)"),
    re.compile(r"^(.*?街道)"),
    re.compile(r"^(.*?镇)"),
    re.compile(r"^(.*?乡)"),
]

# POI抽出パターン（最後のキャプチャグループがPOI名）
_POI_PATTERNS = [
    # 门牌号 + POI名（220号南湖公园 -> 南湖公园）
    re.compile(r"^.*?([0-9]+号?\s*)(.+)$"),
    # 道路名 + 门牌号 + POI名（某某道784号麦佳汇 -> 麦佳汇）
    re.compile(r"^.*?[路街道大街]\s*[0-9]+号?\s*(.+)$"),
    # 道路名 + POI名（中山路肯德基 -> 肯德基）
    re.compile(r"^.*?[路街道大街]\s*(.+)$"),
]

_DIGITS_ONLY = re.compile(r"^[0-9]+$")
_ROAD_SUFFIX_ONLY = re.compile(r"^[路街道大街巷弄]$")
_DIRECTION_ONLY = re.compile(r"^[东南西北中]$")

_STREET_BASELINE = re.compile(r"^.*?[乡镇街道]")
_SEPARATORS = re.compile(r"[,，、]")

_FILLER_WORDS = "附近|周边|内部|地下|地上|室内|室外"
_CLEANUP_RULES = [
    re.compile(rf"^({_FILLER_WORDS})"),
    re.compile(rf"({_FILLER_WORDS})$"),
    re.compile(r"^([0-9]+号?-?[0-9]*[室房间层楼]?)"),  # 门牌号・部屋番号
    re.compile(r"^([0-9]+号?\s*)"),
    re.compile(r"(停车场|停车位|车位)$"),
]


def _is_valid_poi(candidate: str) -> bool:
    return (
        0 < len(candidate) <= MAX_LABEL_LENGTH
        and not _DIGITS_ONLY.match(candidate)
        and not _ROAD_SUFFIX_ONLY.match(candidate)
        and not _DIRECTION_ONLY.match(candidate)
    )


def strip_administrative_prefixes(address: str) -> str:
    """国・省・市・区・県・街道・鎮・郷の接頭辞を順に1回ずつ取り除く"""
    for pattern in _ADMINISTRATIVE_PREFIXES:
        address = pattern.sub("", address, count=1)
    return address.strip()


def extract_poi_name(address: str) -> Optional[str]:
    """
    住所文字列からPOI名を抽出

    パターンを順に試し、妥当性チェックを通過した最初の候補を返す

    Returns:
        Optional[str]: POI名（見つからない場合はNone）
    """
    for pattern in _POI_PATTERNS:
        match = pattern.match(address)
        if not match:
            continue

        candidate = match.groups()[-1].strip()
        if _is_valid_poi(candidate):
            return candidate

    return None


def _clean_up(address: str) -> str:
    if len(address) > 20:
        parts = _SEPARATORS.split(address)
        if len(parts) > 1:
            last_part = parts[-1].strip()
            if 0 < len(last_part) <= 20:
                address = last_part

    for pattern in _CLEANUP_RULES:
        address = pattern.sub("", address, count=1)
    return address.strip()


def _truncate(text: str) -> str:
    if len(text) > MAX_LABEL_LENGTH:
        return text[:MAX_LABEL_LENGTH] + ELLIPSIS
    return text


def _join_components(parts: list[str]) -> str:
    return "".join(part for part in parts if part and part != "[]")


def simplify_amap_address(
    formatted_address: Optional[str],
    components: Optional[AddressComponent] = None,
) -> str:
    """
    高德地図の formatted_address を短い表示用ラベルに簡略化

    Args:
        formatted_address: 高德地図が返した整形済み住所
        components: 構造化された住所要素（フォールバック用）

    Returns:
        str: 表示用ラベル（25文字超は切り詰めて "..." を付与）。空にはならない
    """
    if not formatted_address:
        return UNKNOWN_LOCATION

    simplified = strip_administrative_prefixes(formatted_address)

    if simplified:
        poi_name = extract_poi_name(simplified)
        if poi_name is not None:
            simplified = poi_name

        # POIが取れなかった場合のみ、区切り文字・不要語で整える
        baseline = _STREET_BASELINE.sub("", formatted_address, count=1).strip()
        if simplified == baseline:
            simplified = _clean_up(simplified)

        simplified = _truncate(simplified)

    if len(simplified) < 2:
        if components is not None:
            simplified = _truncate(
                _join_components([components.district, components.township, components.street])
            )
        else:
            simplified = ""

    return simplified or UNKNOWN_LOCATION


def choose_display_address(regeocode: RegeocodeSuccess) -> str:
    """
    逆ジオコーディング結果から表示用住所を決定

    優先順位: 先頭のPOI名 > 簡略化した formatted_address > 住所要素の連結

    Args:
        regeocode: 逆ジオコーディング結果

    Returns:
        str: 表示用住所
    """
    if regeocode.pois:
        # 先頭のPOIが最も関連度が高い
        address = regeocode.pois[0].name
    elif regeocode.formatted_address:
        address = simplify_amap_address(regeocode.formatted_address, regeocode.components)
    elif regeocode.components is not None:
        components = regeocode.components
        address = _join_components(
            [components.city, components.district, components.township, components.street]
        )
    else:
        address = ""

    return address or UNKNOWN_LOCATION
