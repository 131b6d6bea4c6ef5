"""Persistence of matcher output: article/place relations and mentions.

Everything written for one article happens in a single transaction, so
an article never ends up with half of its relations stored.
"""

from __future__ import annotations

import datetime as dt

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from content_intel.collaborators import MentionResult
from content_intel.matching.scoring import PlaceRelation
from content_intel.models.article_place_relation import ArticlePlaceRelation
from content_intel.models.place_mention import PlaceMention, ResolvedPlace


async def upsert_relations(
    session: AsyncSession, article_id: int, relations: list[PlaceRelation]
) -> int:
    """Insert or overwrite one row per (article, place).

    Must be called within an active ``session.begin()`` context.
    """
    result = await session.execute(
        select(ArticlePlaceRelation).where(ArticlePlaceRelation.article_id == article_id)
    )
    existing = {row.place_id: row for row in result.scalars().all()}
    now = dt.datetime.now(dt.UTC).replace(tzinfo=None)

    for relation in relations:
        row = existing.get(relation.place_id)
        if row is None:
            row = ArticlePlaceRelation(
                article_id=article_id,
                place_id=relation.place_id,
                created_at=now,
            )
            session.add(row)
            existing[relation.place_id] = row
        row.place_name = relation.place_name
        row.relation_type = relation.relation_type
        row.confidence = relation.confidence
        row.matching_rule_level = relation.rule_level
        row.evidence = relation.evidence
        row.updated_at = now

    await session.flush()
    return len(relations)


async def replace_mentions(
    session: AsyncSession, article_id: int, mentions: list[MentionResult]
) -> int:
    """Clear and rewrite an article's mentions and candidate resolutions.

    Must be called within an active ``session.begin()`` context.
    """
    mention_ids = select(PlaceMention.id).where(PlaceMention.article_id == article_id)
    # Explicit child delete: SQLite does not enforce ON DELETE CASCADE by default
    await session.execute(delete(ResolvedPlace).where(ResolvedPlace.mention_id.in_(mention_ids)))
    await session.execute(delete(PlaceMention).where(PlaceMention.article_id == article_id))

    for mention in mentions:
        row = PlaceMention(
            article_id=article_id,
            mention_text=mention.mention_text or "",
            context_snippet=mention.context_snippet,
        )
        session.add(row)
        await session.flush()  # Get auto-generated ID
        mention.mention_id = row.id

        for candidate in mention.candidates:
            session.add(
                ResolvedPlace(
                    mention_id=row.id,
                    place_id=candidate.place_id,
                    confidence=candidate.score,
                    disambiguation_method=candidate.method,
                )
            )

    await session.flush()
    return len(mentions)


class SqlRelationStore:
    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def save_article_places(
        self,
        article_id: int,
        relations: list[PlaceRelation],
        mentions: list[MentionResult],
    ) -> int:
        """Store relations and mentions for one article atomically."""
        async with self._session_factory() as session, session.begin():
            count = await upsert_relations(session, article_id, relations)
            await replace_mentions(session, article_id, mentions)
        return count

    async def get_article_places(self, article_id: int) -> list[ArticlePlaceRelation]:
        """Stored relations for an article, highest confidence first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ArticlePlaceRelation)
                .where(ArticlePlaceRelation.article_id == article_id)
                .order_by(ArticlePlaceRelation.confidence.desc(), ArticlePlaceRelation.place_id)
            )
            return list(result.scalars().all())
