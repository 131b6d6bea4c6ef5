"""Content source backed by the ``articles`` / ``article_entities`` tables."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from content_intel.collaborators import ArticleText, Entity
from content_intel.models.article import Article, ArticleEntity
from content_intel.similarity import parse_fingerprint


class SqlContentSource:
    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def get_article_text(self, article_id: int) -> ArticleText | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Article.title, Article.body).where(Article.id == article_id)
            )
            row = result.one_or_none()
        if row is None:
            return None
        return ArticleText(title=row.title, body=row.body)

    async def get_entities(self, article_id: int) -> list[Entity]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ArticleEntity.text, ArticleEntity.type)
                .where(ArticleEntity.article_id == article_id)
                .order_by(ArticleEntity.id)
            )
            return [Entity(text=row.text, type=row.type) for row in result]

    async def get_fingerprint(self, article_id: int) -> int | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Article.fingerprint).where(Article.id == article_id)
            )
            value = result.scalar_one_or_none()
        if not value:
            return None
        return parse_fingerprint(value)

    async def get_articles(self, article_ids: list[int]) -> list[Article]:
        """Load article rows (title, publication time) for batch clustering."""
        if not article_ids:
            return []
        async with self._session_factory() as session:
            result = await session.execute(select(Article).where(Article.id.in_(article_ids)))
            by_id = {a.id: a for a in result.scalars().all()}
        return [by_id[i] for i in article_ids if i in by_id]
