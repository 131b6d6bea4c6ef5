"""Gazetteer backed by the ``places`` / ``place_names`` tables."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm import selectinload

from content_intel.collaborators import Coordinates, GazetteerPlace
from content_intel.models.place import Place


class SqlGazetteer:
    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def get_all_places(self) -> list[GazetteerPlace]:
        """Return every place with its canonical name and all variants."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Place).options(selectinload(Place.names)).order_by(Place.id)
            )
            places = result.scalars().all()

        gazetteer_places = []
        for place in places:
            names = [place.canonical_name]
            for variant in place.names:
                names.append(variant.name)
                if variant.normalized and variant.normalized.casefold() != variant.name.casefold():
                    names.append(variant.normalized)
            gazetteer_places.append(
                GazetteerPlace(
                    id=place.id,
                    names=list(dict.fromkeys(n for n in names if n)),
                    canonical_name=place.canonical_name,
                    country_code=place.country_code,
                )
            )
        return gazetteer_places

    async def get_coordinates(self, place_id: int) -> Coordinates | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Place.latitude, Place.longitude).where(Place.id == place_id)
            )
            row = result.one_or_none()

        if row is None or row.latitude is None or row.longitude is None:
            return None
        return Coordinates(latitude=row.latitude, longitude=row.longitude)
