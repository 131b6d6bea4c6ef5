"""Per-article pipeline: place matching -> coherence -> story clustering.

Matching must be stored before coherence reads the article's mentions;
clustering only needs the fingerprint and entities and runs last.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import async_sessionmaker

from content_intel.batch import BatchResult, should_stop
from content_intel.clustering import ClusterArticle, StoryClustering
from content_intel.coherence import PlaceCoherence
from content_intel.matching import ArticlePlaceMatcher, IntelligenceConfig
from content_intel.stores import (
    SqlClusterStore,
    SqlContentSource,
    SqlGazetteer,
    SqlMentionStore,
    SqlRelationStore,
)

logger = structlog.get_logger()


@dataclass
class Engines:
    """The three engines sharing one set of collaborators."""

    content: SqlContentSource
    matcher: ArticlePlaceMatcher
    coherence: PlaceCoherence
    clustering: StoryClustering


def build_engines(session_factory: async_sessionmaker, config: IntelligenceConfig | None = None) -> Engines:
    """Wire the engines to the SQL-backed collaborators."""
    if config is None:
        config = IntelligenceConfig()
    gazetteer = SqlGazetteer(session_factory)
    content = SqlContentSource(session_factory)
    return Engines(
        content=content,
        matcher=ArticlePlaceMatcher(
            gazetteer, content, SqlRelationStore(session_factory), config.matcher
        ),
        coherence=PlaceCoherence(
            gazetteer,
            SqlMentionStore(session_factory, method_marker=config.coherence.method_marker),
            config.coherence,
        ),
        clustering=StoryClustering(SqlClusterStore(session_factory), content, config.clustering),
    )


async def load_cluster_articles(content: SqlContentSource, article_ids: list[int]) -> list[ClusterArticle]:
    """Build clustering inputs (title, publication time) for stored articles."""
    rows = await content.get_articles(article_ids)
    return [
        ClusterArticle(id=row.id, published_at=row.published_at, title=row.title)
        for row in rows
    ]


async def process_article(article_id: int, engines: Engines, rule_level: int = 1) -> dict:
    """Run all three engines for one article.

    Errors propagate to the caller; ``process_articles`` is the
    failure-tolerant variant.
    """
    log = logger.bind(article_id=article_id)

    relations = await engines.matcher.match_article(article_id, rule_level)
    coherence_adjusted = await engines.coherence.process_article(article_id)

    articles = await load_cluster_articles(engines.content, [article_id])
    outcome = None
    if articles:
        outcome = await engines.clustering.process_article(articles[0])

    log.info(
        "article_processed",
        relations=len(relations),
        coherence_adjusted=coherence_adjusted,
        cluster_action=outcome.action if outcome else None,
    )
    return {
        "article_id": article_id,
        "relations": len(relations),
        "coherence_adjusted": coherence_adjusted,
        "cluster_action": outcome.action if outcome else None,
        "cluster_id": outcome.cluster_id if outcome else None,
    }


async def process_articles(
    article_ids: list[int],
    engines: Engines,
    rule_level: int = 1,
    stop_event: asyncio.Event | None = None,
) -> BatchResult:
    """Run the full pipeline over articles sequentially.

    Articles that did not join an existing cluster are then grouped with
    each other, which is how new story clusters are born.
    """
    await engines.clustering.initialize()
    result = BatchResult()
    unclustered: list[int] = []
    log = logger.bind(batch_size=len(article_ids))

    for article_id in article_ids:
        if should_stop(stop_event):
            result.stopped_early = True
            break
        try:
            stats = await process_article(article_id, engines, rule_level)
        except Exception as e:
            log.warning("article_pipeline_failed", article_id=article_id, error=str(e), exc_info=True)
            result.record_failure(article_id, e, stage="pipeline")
            continue
        result.record_success(article_id, adjusted=stats["relations"] > 0)
        if stats["cluster_action"] != "joined":
            unclustered.append(article_id)

    if len(unclustered) >= engines.clustering.config.min_cluster_size and not result.stopped_early:
        articles = await load_cluster_articles(engines.content, unclustered)
        created, potential = await engines.clustering.create_clusters_from_batch(articles, stop_event)
        log.info(
            "pipeline_clusters_born",
            candidates=len(unclustered),
            created=len(created),
            skipped=len(potential.errors),
        )

    log.info(
        "pipeline_batch_complete",
        processed=result.processed,
        matched=result.adjusted,
        errors=result.errors,
    )
    return result
