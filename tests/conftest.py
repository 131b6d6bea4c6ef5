"""Shared test fixtures."""

import datetime as dt

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from content_intel.models import Article, ArticleEntity, Base, Place, PlaceName


@pytest.fixture
async def test_engine():
    """Create an async SQLite in-memory engine for tests."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


# (id, canonical name, variants, lat, lon, country)
GAZETTEER = [
    (1, "Springfield, Illinois", ["Springfield"], 39.7817, -89.6501, "US"),
    (2, "Springfield, Massachusetts", ["Springfield"], 42.1015, -72.5898, "US"),
    (3, "Chicago", ["Chicago"], 41.8781, -87.6298, "US"),
    (4, "Paris", ["Paris"], 48.8566, 2.3522, "FR"),
    (5, "Lyon", ["Lyon", "Lyons"], 45.7640, 4.8357, "FR"),
    (6, "Atlantis", ["Atlantis"], None, None, None),
]


@pytest.fixture
async def seeded_gazetteer(test_session_factory):
    """Seed the test DB with a small gazetteer, including an ambiguous name."""
    async with test_session_factory() as session:
        async with session.begin():
            for place_id, canonical, variants, lat, lon, country in GAZETTEER:
                session.add(
                    Place(
                        id=place_id,
                        canonical_name=canonical,
                        latitude=lat,
                        longitude=lon,
                        country_code=country,
                        names=[PlaceName(name=v, normalized=v.lower()) for v in variants],
                    )
                )
    return test_session_factory


@pytest.fixture
def add_article(test_session_factory):
    """Return a coroutine that inserts one article with optional entities."""

    async def _add(
        article_id: int,
        title: str | None = None,
        body: str | None = None,
        fingerprint: str | None = None,
        entities: list[str] | None = None,
        published_at: dt.datetime | None = None,
    ) -> None:
        async with test_session_factory() as session:
            async with session.begin():
                session.add(
                    Article(
                        id=article_id,
                        title=title,
                        body=body,
                        fingerprint=fingerprint,
                        published_at=published_at,
                        entities=[ArticleEntity(text=e, type="ORG") for e in entities or []],
                    )
                )

    return _add
