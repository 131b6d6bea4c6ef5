"""Mention store: reads candidate sets for the coherence pass and writes its result."""

from __future__ import annotations

import datetime as dt

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from content_intel.collaborators import MentionCandidate, MentionResult
from content_intel.models.place import Place
from content_intel.models.place_mention import PlaceMention, ResolvedPlace


class SqlMentionStore:
    def __init__(self, session_factory: async_sessionmaker, method_marker: str = "+coherence") -> None:
        self._session_factory = session_factory
        self._marker = method_marker

    async def get_mentions(self, article_id: int) -> list[MentionResult]:
        """Return the article's mentions, each with its candidate places."""
        stmt = (
            select(
                PlaceMention.id.label("mention_id"),
                PlaceMention.mention_text,
                PlaceMention.context_snippet,
                ResolvedPlace.place_id,
                ResolvedPlace.confidence,
                ResolvedPlace.disambiguation_method,
                Place.canonical_name,
                Place.country_code,
                Place.population,
            )
            .select_from(PlaceMention)
            .outerjoin(ResolvedPlace, ResolvedPlace.mention_id == PlaceMention.id)
            .outerjoin(Place, Place.id == ResolvedPlace.place_id)
            .where(PlaceMention.article_id == article_id)
            .order_by(PlaceMention.id, ResolvedPlace.id)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()

        mentions: dict[int, MentionResult] = {}
        for row in rows:
            mention = mentions.get(row.mention_id)
            if mention is None:
                mention = MentionResult(
                    mention_id=row.mention_id,
                    candidates=[],
                    article_id=article_id,
                    mention_text=row.mention_text,
                    context_snippet=row.context_snippet,
                )
                mentions[row.mention_id] = mention
            if row.place_id is not None:
                mention.candidates.append(
                    MentionCandidate(
                        place_id=row.place_id,
                        score=row.confidence or 0.0,
                        name=row.canonical_name,
                        country_code=row.country_code,
                        population=row.population,
                        method=row.disambiguation_method,
                    )
                )
        return list(mentions.values())

    async def save_coherence_results(self, results: list[MentionResult]) -> int:
        """Write the new confidence onto each mention's top candidate.

        Only mentions the pass was applied to are touched; the method
        column gets the coherence marker appended.  One transaction for
        the whole list.
        """
        now = dt.datetime.now(dt.UTC).replace(tzinfo=None)
        updated = 0
        async with self._session_factory() as session, session.begin():
            for result in results:
                if not result.coherence_applied or not result.candidates or result.mention_id is None:
                    continue
                top = result.candidates[0]
                outcome = await session.execute(
                    sa.update(ResolvedPlace)
                    .where(
                        ResolvedPlace.mention_id == result.mention_id,
                        ResolvedPlace.place_id == top.place_id,
                    )
                    .values(
                        confidence=result.confidence,
                        disambiguation_method=sa.func.coalesce(ResolvedPlace.disambiguation_method, "")
                        + self._marker,
                        updated_at=now,
                    )
                )
                updated += outcome.rowcount or 0
        return updated
