"""Story cluster persistence."""

from __future__ import annotations

import datetime as dt

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from content_intel.collaborators import ClusterUpdate, StoryClusterRecord
from content_intel.errors import NotFoundError
from content_intel.models.story_cluster import StoryCluster


def _to_record(cluster: StoryCluster) -> StoryClusterRecord:
    return StoryClusterRecord(
        id=cluster.id,
        headline=cluster.headline,
        article_ids=list(cluster.article_ids or []),
        is_active=cluster.is_active,
        first_seen=cluster.first_seen,
        last_updated=cluster.last_updated,
        summary=cluster.summary,
        primary_topic_id=cluster.primary_topic_id,
    )


class SqlClusterStore:
    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def create_cluster(
        self,
        headline: str,
        article_ids: list[int],
        summary: str | None = None,
        primary_topic_id: int | None = None,
    ) -> StoryClusterRecord:
        now = dt.datetime.now(dt.UTC).replace(tzinfo=None)
        async with self._session_factory() as session, session.begin():
            cluster = StoryCluster(
                headline=headline,
                summary=summary,
                article_ids=list(article_ids),
                article_count=len(article_ids),
                primary_topic_id=primary_topic_id,
                is_active=True,
                first_seen=now,
                last_updated=now,
            )
            session.add(cluster)
            await session.flush()  # Get auto-generated ID
            return _to_record(cluster)

    async def get_cluster(self, cluster_id: int) -> StoryClusterRecord | None:
        async with self._session_factory() as session:
            cluster = await session.get(StoryCluster, cluster_id)
            return _to_record(cluster) if cluster is not None else None

    async def update_cluster(self, cluster_id: int, update: ClusterUpdate) -> StoryClusterRecord:
        """Apply ``update`` to one cluster in its own transaction."""
        async with self._session_factory() as session, session.begin():
            cluster = await session.get(StoryCluster, cluster_id, with_for_update=True)
            if cluster is None:
                raise NotFoundError("cluster", cluster_id)

            if update.article_ids is not None:
                cluster.article_ids = list(dict.fromkeys(update.article_ids))
                cluster.article_count = len(cluster.article_ids)
            if update.headline:
                cluster.headline = update.headline
            if update.summary is not None:
                cluster.summary = update.summary
            cluster.last_updated = update.last_updated or dt.datetime.now(dt.UTC).replace(tzinfo=None)
            await session.flush()
            return _to_record(cluster)

    async def get_active_clusters(self, limit: int | None = None) -> list[StoryClusterRecord]:
        """Active clusters, most recently updated first."""
        stmt = (
            select(StoryCluster)
            .where(StoryCluster.is_active.is_(True))
            .order_by(StoryCluster.last_updated.desc(), StoryCluster.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [_to_record(c) for c in result.scalars().all()]

    async def deactivate_before(self, cutoff: dt.datetime) -> int:
        """Flag every active cluster last updated before ``cutoff`` as inactive."""
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                sa.update(StoryCluster)
                .where(StoryCluster.is_active.is_(True), StoryCluster.last_updated < cutoff)
                .values(is_active=False)
            )
            return result.rowcount or 0
