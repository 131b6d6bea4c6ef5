"""In-memory, TTL-bounded cache of the gazetteer place list."""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from content_intel.collaborators import Gazetteer, GazetteerPlace
from content_intel.errors import CollaboratorUnavailableError

logger = structlog.get_logger()


class PlaceCache:
    """Caches ``Gazetteer.get_all_places()`` for ``ttl_seconds``.

    A stale or empty cache triggers a refetch.  When the refetch fails,
    the previous list is served; with nothing cached the failure is raised
    as :class:`CollaboratorUnavailableError`.

    Not safe to share between instances or processes.
    """

    def __init__(
        self,
        gazetteer: Gazetteer,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gazetteer = gazetteer
        self._ttl = ttl_seconds
        self._clock = clock
        self._places: list[GazetteerPlace] = []
        self._loaded_at: float | None = None

    @property
    def is_fresh(self) -> bool:
        if not self._places or self._loaded_at is None:
            return False
        return (self._clock() - self._loaded_at) < self._ttl

    def invalidate(self) -> None:
        self._loaded_at = None

    async def get_places(self) -> list[GazetteerPlace]:
        if self.is_fresh:
            return self._places

        try:
            places = await self._gazetteer.get_all_places()
        except Exception as e:
            if self._places:
                logger.warning(
                    "place_cache_refresh_failed",
                    error=str(e),
                    serving_cached=len(self._places),
                )
                return self._places
            raise CollaboratorUnavailableError("gazetteer", str(e)) from e

        self._places = [
            GazetteerPlace(
                id=p.id,
                names=_unique_names(p),
                canonical_name=p.canonical_name,
                country_code=p.country_code,
            )
            for p in places
        ]
        self._loaded_at = self._clock()
        logger.debug("place_cache_refreshed", places=len(self._places))
        return self._places


def _unique_names(place: GazetteerPlace) -> list[str]:
    """Canonical name first, then every non-blank variant distinct ignoring case."""
    names: list[str] = []
    seen: set[str] = set()
    for name in ([place.canonical_name] if place.canonical_name else []) + list(place.names):
        if not name or not name.strip() or name.casefold() in seen:
            continue
        seen.add(name.casefold())
        names.append(name)
    return names
