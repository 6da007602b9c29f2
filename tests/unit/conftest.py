"""ユニットテスト共通のフィクスチャ"""

import threading
from typing import Any, Callable, Optional, Sequence

import pytest

from trip_geocoding.features.coordinates.domain.models import Coordinate
from trip_geocoding.features.geocoding.domain.models import (
    Poi,
    RegeocodeResult,
    RegeocodeSuccess,
)
from trip_geocoding.features.geocoding.providers.address_cache import AddressCache


def poi_result(name: str) -> RegeocodeSuccess:
    return RegeocodeSuccess(formatted_address="上海市浦东新区世纪大道1号", pois=[Poi(name=name)])


class FakeGeocoder:
    """AmapGeocoder の代替（ネットワークなし）"""

    def __init__(
        self,
        single: Optional[Callable[[Coordinate], RegeocodeResult]] = None,
        batch: Optional[Callable[[Sequence[Coordinate]], list[Optional[RegeocodeSuccess]]]] = None,
    ) -> None:
        self.single = single or (lambda coord: poi_result(f"S{coord.longitude:.3f}"))
        self.batch = batch or (lambda coords: [poi_result(f"B{c.longitude:.3f}") for c in coords])
        self.single_calls: list[Coordinate] = []
        self.batch_calls: list[list[Coordinate]] = []
        self._lock = threading.Lock()

    def reverse_geocode(self, coord: Coordinate) -> RegeocodeResult:
        with self._lock:
            self.single_calls.append(coord)
        return self.single(coord)

    def reverse_geocode_batch(self, coords: Sequence[Coordinate]) -> list[Optional[RegeocodeSuccess]]:
        with self._lock:
            self.batch_calls.append(list(coords))
        return self.batch(coords)


class FakeHTTPClient:
    """HTTPClient の代替（レスポンスを順番に返す）"""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def get_json(self, url: str, params: Optional[dict[str, Any]] = None, headers: Any = None) -> Any:
        self.calls.append((url, dict(params or {})))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def address_cache() -> AddressCache:
    return AddressCache()


@pytest.fixture
def fake_geocoder_factory() -> Callable[..., FakeGeocoder]:
    return FakeGeocoder


@pytest.fixture
def fake_http_client_factory() -> Callable[..., FakeHTTPClient]:
    return FakeHTTPClient

