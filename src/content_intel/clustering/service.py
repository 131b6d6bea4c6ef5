"""Story clustering service.

Assigns incoming articles to active story clusters and births new
clusters from batches of related unclustered articles.  The in-memory
index only mirrors the store for bookkeeping; every matching decision
re-reads the store.
"""

from __future__ import annotations

import asyncio
import datetime as dt
from dataclasses import dataclass, field, replace

import structlog

from content_intel.batch import should_stop
from content_intel.clustering.candidates import (
    ClusterArticle,
    PotentialClusterResult,
    find_potential_clusters,
    pick_headline,
    score_cluster_match,
    within_time_window,
)
from content_intel.collaborators import (
    ClusterStore,
    ClusterUpdate,
    ContentSource,
    Entity,
    StoryClusterRecord,
)
from content_intel.errors import InvalidInputError, NotFoundError
from content_intel.matching.config import ClusteringConfig
from content_intel.similarity import entity_overlap, hamming_distance, parse_fingerprint

logger = structlog.get_logger()


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC).replace(tzinfo=None)


@dataclass
class ClusterIndexEntry:
    id: int
    headline: str
    article_ids: set[int]
    last_updated: dt.datetime
    is_active: bool = True


@dataclass
class ClusterMatch:
    """Best qualifying cluster for an article."""

    cluster: StoryClusterRecord
    score: float
    hamming_distance: int
    shared_entities: list[str] = field(default_factory=list)


@dataclass
class ClusteringOutcome:
    """Result of :meth:`StoryClustering.process_article`.

    ``action`` is ``"joined"`` or ``"none"``; a single article never
    creates a cluster on its own.
    """

    action: str
    article_id: int
    cluster_id: int | None = None
    headline: str | None = None
    score: float | None = None
    shared_entities: list[str] = field(default_factory=list)
    article_count: int | None = None
    reason: str | None = None


class StoryClustering:
    """Groups related articles into persistent story clusters."""

    def __init__(
        self,
        store: ClusterStore,
        content: ContentSource | None = None,
        config: ClusteringConfig | None = None,
    ) -> None:
        self.config = config or ClusteringConfig()
        self._store = store
        self._content = content
        self._index: dict[int, ClusterIndexEntry] = {}
        self._initialized = False

    async def initialize(self) -> int:
        """Load active clusters into the local index once.

        Returns:
            Number of clusters in the index.
        """
        if self._initialized:
            return len(self._index)

        clusters = await self._store.get_active_clusters()
        for cluster in clusters:
            self._index[cluster.id] = ClusterIndexEntry(
                id=cluster.id,
                headline=cluster.headline,
                article_ids=set(cluster.article_ids),
                last_updated=cluster.last_updated,
                is_active=cluster.is_active,
            )

        self._initialized = True
        logger.info("story_clusters_loaded", active_clusters=len(self._index))
        return len(self._index)

    async def _member_fingerprints(self, article_ids: list[int]) -> list[int]:
        if self._content is None:
            return []
        fingerprints = []
        for article_id in article_ids[: self.config.member_sample_size]:
            try:
                fp = await self._content.get_fingerprint(article_id)
                if fp is not None:
                    fingerprints.append(parse_fingerprint(fp, self.config.fingerprint_width))
            except InvalidInputError as e:
                logger.warning("member_fingerprint_skipped", article_id=article_id, error=str(e))
        return fingerprints

    async def _member_entities(self, article_ids: list[int]) -> list[Entity]:
        if self._content is None:
            return []
        entities: list[Entity] = []
        for article_id in article_ids[: self.config.member_sample_size]:
            entities.extend(await self._content.get_entities(article_id) or [])
        return entities

    async def find_matching_cluster(self, article: ClusterArticle) -> ClusterMatch | None:
        """Return the best qualifying active cluster for ``article``, if any.

        Scans at most ``max_candidate_clusters`` of the most recently
        updated active clusters, read fresh from the store.
        """
        if article.fingerprint is None:
            return None

        width = self.config.fingerprint_width
        fingerprint = parse_fingerprint(article.fingerprint, width)
        clusters = await self._store.get_active_clusters(limit=self.config.max_candidate_clusters)

        best: ClusterMatch | None = None
        for cluster in clusters:
            if not cluster.article_ids or article.id in cluster.article_ids:
                continue

            cluster_time = cluster.last_updated or cluster.first_seen
            if not within_time_window(article.published_at, cluster_time, self.config):
                continue

            min_distance = width
            for member_fp in await self._member_fingerprints(cluster.article_ids):
                min_distance = min(min_distance, hamming_distance(fingerprint, member_fp, width))
            if min_distance > self.config.max_hamming_distance:
                continue

            overlap = entity_overlap(
                article.entities or [], await self._member_entities(cluster.article_ids)
            )
            if overlap.count < self.config.min_shared_entities:
                continue

            score = score_cluster_match(min_distance, overlap.count, self.config)
            if best is None or score > best.score:
                best = ClusterMatch(
                    cluster=cluster,
                    score=score,
                    hamming_distance=min_distance,
                    shared_entities=overlap.shared,
                )

        return best

    async def _hydrate(self, article: ClusterArticle) -> ClusterArticle:
        """Fill in a missing fingerprint or entity list from the content collaborator."""
        if self._content is None:
            return article
        fingerprint = article.fingerprint
        if fingerprint is None:
            fingerprint = await self._content.get_fingerprint(article.id)
        entities = article.entities
        if entities is None:
            entities = await self._content.get_entities(article.id) or []
        return replace(article, fingerprint=fingerprint, entities=entities)

    async def process_article(self, article: ClusterArticle) -> ClusteringOutcome:
        """Join ``article`` to its best cluster, or take no action.

        The article joins only when the best score is strictly above
        ``join_threshold``.
        """
        if article is None or article.id is None:
            raise InvalidInputError("article id is required")

        article = await self._hydrate(article)
        match = await self.find_matching_cluster(article)

        if match is not None and match.score > self.config.join_threshold:
            updated = await self.add_to_cluster(match.cluster.id, article.id)
            logger.info(
                "article_joined_cluster",
                article_id=article.id,
                cluster_id=match.cluster.id,
                score=round(match.score, 4),
                hamming_distance=match.hamming_distance,
            )
            return ClusteringOutcome(
                action="joined",
                article_id=article.id,
                cluster_id=match.cluster.id,
                headline=match.cluster.headline,
                score=match.score,
                shared_entities=match.shared_entities,
                article_count=updated.article_count,
            )

        return ClusteringOutcome(
            action="none",
            article_id=article.id,
            score=match.score if match else None,
            reason="No matching cluster found",
        )

    async def add_to_cluster(
        self, cluster_id: int, article_id: int, headline: str | None = None
    ) -> StoryClusterRecord:
        """Append ``article_id`` to a cluster and bump its ``last_updated``."""
        cluster = await self._store.get_cluster(cluster_id)
        if cluster is None:
            raise NotFoundError("cluster", cluster_id)

        article_ids = list(cluster.article_ids)
        if article_id not in article_ids:
            article_ids.append(article_id)

        now = _utcnow()
        updated = await self._store.update_cluster(
            cluster_id,
            ClusterUpdate(article_ids=article_ids, headline=headline, last_updated=now),
        )

        cached = self._index.get(cluster_id)
        if cached is not None:
            cached.article_ids.add(article_id)
            cached.last_updated = now
            if headline:
                cached.headline = headline
        return updated

    async def create_cluster(
        self,
        headline: str,
        article_ids: list[int],
        summary: str | None = None,
        primary_topic_id: int | None = None,
    ) -> StoryClusterRecord:
        """Persist a new active cluster; member ids are deduplicated in order."""
        if not headline or not headline.strip():
            raise InvalidInputError("headline is required")
        if not article_ids:
            raise InvalidInputError("article_ids are required")

        unique_ids = list(dict.fromkeys(article_ids))
        cluster = await self._store.create_cluster(
            headline=headline.strip(),
            article_ids=unique_ids,
            summary=summary,
            primary_topic_id=primary_topic_id,
        )
        self._index[cluster.id] = ClusterIndexEntry(
            id=cluster.id,
            headline=cluster.headline,
            article_ids=set(unique_ids),
            last_updated=cluster.last_updated,
        )
        logger.info("story_cluster_created", cluster_id=cluster.id, article_count=len(unique_ids))
        return cluster

    def find_potential_clusters(self, articles: list[ClusterArticle]) -> PotentialClusterResult:
        return find_potential_clusters(articles, self.config)

    async def create_clusters_from_batch(
        self,
        articles: list[ClusterArticle],
        stop_event: asyncio.Event | None = None,
    ) -> tuple[list[StoryClusterRecord], PotentialClusterResult]:
        """Create a cluster for every qualifying group in an unclustered batch.

        Articles are hydrated from the content collaborator first; one whose
        stored fingerprint is malformed is skipped.  Skipped articles and
        groups that fail to persist (once per member) are recorded in the
        returned result's ``errors`` and the rest continue.
        """
        hydrated = []
        skipped: list[tuple[int, str]] = []
        for article in articles:
            try:
                hydrated.append(await self._hydrate(article))
            except InvalidInputError as e:
                logger.warning("story_article_skipped", article_id=article.id, error=str(e))
                skipped.append((article.id, str(e)))

        potential = self.find_potential_clusters(hydrated)
        potential.errors[:0] = skipped
        created: list[StoryClusterRecord] = []
        for group in potential.clusters:
            if should_stop(stop_event):
                break
            headline = pick_headline(group.articles) or f"Story of article {group.article_ids[0]}"
            try:
                created.append(await self.create_cluster(headline, group.article_ids))
            except Exception as e:
                logger.warning("story_cluster_create_failed", article_ids=group.article_ids, error=str(e))
                potential.errors.extend((article_id, str(e)) for article_id in group.article_ids)

        logger.info(
            "story_batch_clustered",
            articles=len(articles),
            groups=len(potential.clusters),
            created=len(created),
            errors=len(potential.errors),
        )
        return created, potential

    async def deactivate_old_clusters(self, days_old: int | None = None) -> int:
        """Flag clusters not updated for ``days_old`` days as inactive.

        Nothing is deleted.  Returns the number of clusters deactivated.
        """
        if days_old is None:
            days_old = self.config.retention_days
        if days_old < 0:
            raise InvalidInputError(f"days_old must be non-negative: {days_old}")

        cutoff = _utcnow() - dt.timedelta(days=days_old)
        count = await self._store.deactivate_before(cutoff)

        for entry in self._index.values():
            if entry.last_updated < cutoff:
                entry.is_active = False

        logger.info("story_clusters_deactivated", count=count, days_old=days_old)
        return count

    def get_stats(self) -> dict:
        return {
            "initialized": self._initialized,
            "indexed_clusters": len(self._index),
            "active_clusters": sum(1 for e in self._index.values() if e.is_active),
            "max_hamming_distance": self.config.max_hamming_distance,
            "min_shared_entities": self.config.min_shared_entities,
            "max_time_diff_hours": self.config.max_time_diff_hours,
        }
