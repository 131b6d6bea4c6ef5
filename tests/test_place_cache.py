"""Tests for the TTL place cache."""

import pytest

from content_intel.collaborators import GazetteerPlace
from content_intel.errors import CollaboratorUnavailableError
from content_intel.matching.place_cache import PlaceCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CountingGazetteer:
    def __init__(self, places=None) -> None:
        self.places = places or [GazetteerPlace(id=1, names=["Paris"], canonical_name="Paris")]
        self.calls = 0
        self.fail = False

    async def get_all_places(self):
        self.calls += 1
        if self.fail:
            raise ConnectionError("gazetteer down")
        return self.places

    async def get_coordinates(self, place_id):
        return None


@pytest.fixture
def clock():
    return FakeClock()


async def test_serves_cached_within_ttl(clock) -> None:
    gazetteer = CountingGazetteer()
    cache = PlaceCache(gazetteer, ttl_seconds=300, clock=clock)

    await cache.get_places()
    clock.now = 299
    await cache.get_places()

    assert gazetteer.calls == 1
    assert cache.is_fresh


async def test_refetches_after_ttl(clock) -> None:
    gazetteer = CountingGazetteer()
    cache = PlaceCache(gazetteer, ttl_seconds=300, clock=clock)

    await cache.get_places()
    clock.now = 300
    await cache.get_places()

    assert gazetteer.calls == 2


async def test_invalidate_forces_refetch(clock) -> None:
    gazetteer = CountingGazetteer()
    cache = PlaceCache(gazetteer, clock=clock)
    await cache.get_places()
    cache.invalidate()
    await cache.get_places()
    assert gazetteer.calls == 2


async def test_empty_gazetteer_is_never_fresh(clock) -> None:
    gazetteer = CountingGazetteer(places=[])
    gazetteer.places = []
    cache = PlaceCache(gazetteer, clock=clock)
    assert await cache.get_places() == []
    await cache.get_places()
    assert gazetteer.calls == 2


async def test_failed_refresh_serves_stale(clock) -> None:
    gazetteer = CountingGazetteer()
    cache = PlaceCache(gazetteer, ttl_seconds=10, clock=clock)
    first = await cache.get_places()

    gazetteer.fail = True
    clock.now = 100
    assert await cache.get_places() == first


async def test_failure_without_cache_raises(clock) -> None:
    gazetteer = CountingGazetteer()
    gazetteer.fail = True
    cache = PlaceCache(gazetteer, clock=clock)

    with pytest.raises(CollaboratorUnavailableError, match="gazetteer"):
        await cache.get_places()


async def test_names_deduplicated_canonical_first(clock) -> None:
    gazetteer = CountingGazetteer(
        places=[GazetteerPlace(id=5, names=["Lyon", "lyon", "", "Lyons"], canonical_name="Lyon")]
    )
    [place] = await PlaceCache(gazetteer, clock=clock).get_places()
    assert place.names == ["Lyon", "Lyons"]
