"""逆ジオコーディングサービスのテスト"""

import math

import pytest

from trip_geocoding.features.coordinates.domain.models import Coordinate
from trip_geocoding.features.coordinates.transform import wgs84_to_gcj02
from trip_geocoding.features.geocoding.domain.models import (
    UNKNOWN_LOCATION,
    Poi,
    RegeocodeFailure,
    RegeocodeSuccess,
)
from trip_geocoding.features.geocoding.services.geocoding_service import GeocodingService
from trip_geocoding.shared.exceptions.errors import GeocodingError


def test_resolve_one_without_api_key(address_cache) -> None:
    """APIキーがなければネットワークを使わず未知位置"""
    service = GeocodingService(None, address_cache)

    assert service.resolve_one(121.4737, 31.2304) == UNKNOWN_LOCATION
    assert service.resolve_batch([(121.4737, 31.2304), (116.404, 39.915)]) == [UNKNOWN_LOCATION] * 2


def test_resolve_one_transforms_and_caches(address_cache, fake_geocoder_factory) -> None:
    """同じ座標の2回目はキャッシュから返す"""
    geocoder = fake_geocoder_factory(single=lambda coord: RegeocodeSuccess(pois=[Poi(name="人民广场")]))
    service = GeocodingService(geocoder, address_cache)

    first = service.resolve_one(121.4737, 31.2304)
    second = service.resolve_one("121.4737", "31.2304")

    assert first == second == "人民广场"
    assert len(geocoder.single_calls) == 1
    # プロバイダーにはGCJ-02座標を渡す
    assert geocoder.single_calls[0] == wgs84_to_gcj02(31.2304, 121.4737)
    assert address_cache.make_key(wgs84_to_gcj02(31.2304, 121.4737)) in address_cache


@pytest.mark.parametrize("longitude,latitude", [(None, 31.0), ("abc", 31.0), (math.nan, 31.0), (121.0, math.inf)])
def test_resolve_one_invalid_coordinate(address_cache, fake_geocoder_factory, longitude, latitude) -> None:
    """不正な座標はネットワークを使わず未知位置"""
    geocoder = fake_geocoder_factory()
    service = GeocodingService(geocoder, address_cache)

    assert service.resolve_one(longitude, latitude) == UNKNOWN_LOCATION
    assert geocoder.single_calls == []


def test_resolve_one_provider_failure_is_not_cached(address_cache, fake_geocoder_factory) -> None:
    """プロバイダーエラーは未知位置を返し、キャッシュしない"""
    geocoder = fake_geocoder_factory(single=lambda coord: RegeocodeFailure(reason="INVALID_USER_KEY"))
    service = GeocodingService(geocoder, address_cache)

    assert service.resolve_one(121.4737, 31.2304) == UNKNOWN_LOCATION
    assert service.resolve_one(121.4737, 31.2304) == UNKNOWN_LOCATION
    assert len(geocoder.single_calls) == 2
    assert len(address_cache) == 0


def test_resolve_one_transport_error_never_raises(address_cache, fake_geocoder_factory) -> None:
    """通信エラーは例外にせず未知位置"""

    def fail(coord: Coordinate) -> RegeocodeSuccess:
        raise GeocodingError("timeout")

    service = GeocodingService(fake_geocoder_factory(single=fail), address_cache)

    assert service.resolve_one(121.4737, 31.2304) == UNKNOWN_LOCATION


def test_resolve_one_unexpected_error_never_raises(address_cache, fake_geocoder_factory) -> None:
    """想定外の例外も未知位置"""

    def fail(coord: Coordinate) -> RegeocodeSuccess:
        raise RuntimeError("boom")

    service = GeocodingService(fake_geocoder_factory(single=fail), address_cache)

    assert service.resolve_one(121.4737, 31.2304) == UNKNOWN_LOCATION


def test_resolve_batch_mixed_input_keeps_slots(address_cache, fake_geocoder_factory) -> None:
    """不正・重複・キャッシュ済みが混在しても、入力と同じ件数・順序で返す"""
    geocoder = fake_geocoder_factory()
    service = GeocodingService(geocoder, address_cache)

    cached_gcj = wgs84_to_gcj02(39.915, 116.404)
    address_cache.set(address_cache.make_key(cached_gcj), "天安门")

    coordinates = [
        (121.4737, 31.2304),
        (None, 31.0),
        (116.404, 39.915),
        ("121.4737", "31.2304"),
        "not-a-pair",
        (113.9345, 22.5405),
    ]

    results = service.resolve_batch(coordinates)

    shanghai = wgs84_to_gcj02(31.2304, 121.4737)
    shenzhen = wgs84_to_gcj02(22.5405, 113.9345)
    assert results == [
        f"B{shanghai.longitude:.3f}",
        UNKNOWN_LOCATION,
        "天安门",
        f"B{shanghai.longitude:.3f}",
        UNKNOWN_LOCATION,
        f"B{shenzhen.longitude:.3f}",
    ]
    # 重複とキャッシュ済みはリクエストに含めない
    assert geocoder.batch_calls == [[shanghai, shenzhen]]
    assert geocoder.single_calls == []


def test_resolve_batch_empty_input(address_cache, fake_geocoder_factory) -> None:
    """空の入力は空のリスト"""
    geocoder = fake_geocoder_factory()
    assert GeocodingService(geocoder, address_cache).resolve_batch([]) == []
    assert geocoder.batch_calls == []


def test_resolve_batch_accepts_coordinate_values(address_cache, fake_geocoder_factory) -> None:
    """Coordinate もそのまま渡せる"""
    service = GeocodingService(fake_geocoder_factory(), address_cache)

    results = service.resolve_batch([Coordinate(-0.12, 51.5)])

    assert results == ["B-0.120"]


def test_resolve_batch_splits_into_chunks(address_cache, fake_geocoder_factory) -> None:
    """20件ずつのバッチに分割する"""
    geocoder = fake_geocoder_factory()
    service = GeocodingService(geocoder, address_cache, batch_size=20, max_workers=3)

    coordinates = [(100.0 + i * 0.5, 30.0) for i in range(45)]
    results = service.resolve_batch(coordinates, show_progress=True)

    assert len(results) == 45
    assert all(result.startswith("B") for result in results)
    assert sorted(len(call) for call in geocoder.batch_calls) == [5, 20, 20]

    # 2回目はすべてキャッシュから
    assert service.resolve_batch(coordinates) == results
    assert len(geocoder.batch_calls) == 3


def test_batch_size_is_capped_at_provider_limit(address_cache, fake_geocoder_factory) -> None:
    """バッチサイズは高德地図の上限20を超えない"""
    assert GeocodingService(fake_geocoder_factory(), address_cache, batch_size=100).batch_size == 20


def test_failed_batch_falls_back_to_single_requests(address_cache, fake_geocoder_factory) -> None:
    """1つのバッチがHTTPエラーでも、全スロットが埋まり例外は出ない"""

    def batch(coords):
        if any(coord.longitude < 109.75 for coord in coords):
            raise GeocodingError("HTTP 500")
        return [RegeocodeSuccess(pois=[Poi(name=f"B{coord.longitude:.1f}")]) for coord in coords]

    def single(coord):
        # 単発リクエストも半分は失敗する
        if int(coord.longitude) % 2 == 0:
            return RegeocodeFailure(reason="SERVICE_NOT_AVAILABLE")
        return RegeocodeSuccess(pois=[Poi(name=f"S{coord.longitude:.1f}")])

    geocoder = fake_geocoder_factory(single=single, batch=batch)
    service = GeocodingService(geocoder, address_cache, batch_size=20, max_workers=2)

    coordinates = [(100.0 + i * 0.5, 30.0) for i in range(40)]
    results = service.resolve_batch(coordinates)

    assert len(results) == 40
    assert all(isinstance(result, str) and result for result in results)

    for result in results[:20]:
        assert result == UNKNOWN_LOCATION or result.startswith("S")
    assert any(result.startswith("S") for result in results[:20])
    assert any(result == UNKNOWN_LOCATION for result in results[:20])

    for result in results[20:]:
        assert result.startswith("B")

    assert len(geocoder.single_calls) == 20


def test_all_batches_failing_never_raises(address_cache, fake_geocoder_factory) -> None:
    """すべてのバッチと単発リクエストが失敗しても未知位置で埋める"""

    def fail(*args):
        raise GeocodingError("network down")

    service = GeocodingService(fake_geocoder_factory(single=fail, batch=fail), address_cache)

    coordinates = [(100.0 + i * 0.5, 30.0) for i in range(25)]

    assert service.resolve_batch(coordinates) == [UNKNOWN_LOCATION] * 25


def test_unexpected_batch_error_fills_unknown(address_cache, fake_geocoder_factory) -> None:
    """想定外の例外でもスロットは埋まる"""

    def boom(coords):
        raise RuntimeError("boom")

    service = GeocodingService(fake_geocoder_factory(batch=boom), address_cache)

    assert service.resolve_batch([(121.4737, 31.2304)]) == [UNKNOWN_LOCATION]


def test_short_batch_response_resolves_missing_individually(address_cache, fake_geocoder_factory) -> None:
    """レスポンスが短い場合、足りない座標は単発で問い合わせる"""
    geocoder = fake_geocoder_factory(
        batch=lambda coords: [RegeocodeSuccess(pois=[Poi(name="first")])],
        single=lambda coord: RegeocodeSuccess(pois=[Poi(name="single")]),
    )
    service = GeocodingService(geocoder, address_cache)

    results = service.resolve_batch([(121.0, 31.0), (122.0, 31.0), (123.0, 31.0)])

    assert results == ["first", "single", "single"]
    assert len(geocoder.single_calls) == 2


def test_malformed_batch_entry_resolves_individually(address_cache, fake_geocoder_factory) -> None:
    """バッチの不正な要素は未知位置としてキャッシュせず、単発で問い合わせる"""
    geocoder = fake_geocoder_factory(
        batch=lambda coords: [None, RegeocodeSuccess(pois=[Poi(name="B")])],
        single=lambda coord: RegeocodeSuccess(pois=[Poi(name="REAL")]),
    )
    service = GeocodingService(geocoder, address_cache)

    results = service.resolve_batch([(121.0, 31.0), (122.0, 31.0)])

    assert results == ["REAL", "B"]
    assert geocoder.single_calls == [wgs84_to_gcj02(31.0, 121.0)]
    assert address_cache.get(address_cache.make_key(wgs84_to_gcj02(31.0, 121.0))) == "REAL"


def test_malformed_batch_entry_with_failed_retry_is_not_cached(address_cache, fake_geocoder_factory) -> None:
    """単発の再問い合わせも失敗した場合は未知位置を返し、次回は再度問い合わせる"""
    responses = [RegeocodeFailure(reason="SERVICE_NOT_AVAILABLE"), RegeocodeSuccess(pois=[Poi(name="REAL")])]
    geocoder = fake_geocoder_factory(
        batch=lambda coords: [None, RegeocodeSuccess(pois=[Poi(name="B")])],
        single=lambda coord: responses.pop(0),
    )
    service = GeocodingService(geocoder, address_cache)

    assert service.resolve_batch([(121.0, 31.0), (122.0, 31.0)]) == [UNKNOWN_LOCATION, "B"]
    assert address_cache.make_key(wgs84_to_gcj02(31.0, 121.0)) not in address_cache

    assert service.resolve_one(121.0, 31.0) == "REAL"
    assert len(geocoder.single_calls) == 2


def test_get_cache_stats(address_cache, fake_geocoder_factory) -> None:
    """キャッシュ統計を返す"""
    service = GeocodingService(fake_geocoder_factory(), address_cache)
    service.resolve_one(121.4737, 31.2304)
    service.resolve_one(121.4737, 31.2304)

    stats = service.get_cache_stats()

    assert stats["cache_size"] == 1
    assert stats["hit_count"] == 1
    assert stats["miss_count"] == 1
