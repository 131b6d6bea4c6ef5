"""Pure story-clustering logic: match scoring and batch grouping.

Two articles belong to the same story when all three signals agree:
their fingerprints are within a small Hamming distance, they were
published close together, and they share named entities.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field

from content_intel.collaborators import Entity
from content_intel.errors import InvalidInputError
from content_intel.matching.config import ClusteringConfig
from content_intel.similarity import (
    EntityOverlap,
    as_utc,
    entity_overlap,
    hamming_distance,
    parse_fingerprint,
    time_diff_hours,
)
from content_intel.similarity.fingerprint import Fingerprint


@dataclass
class ClusterArticle:
    """Clustering view of an article.

    ``fingerprint`` and ``entities`` may be left ``None``; the clustering
    service then loads them from the content collaborator.
    """

    id: int
    fingerprint: Fingerprint | None = None
    entities: list[Entity] | None = None
    published_at: dt.datetime | None = None
    title: str | None = None


@dataclass
class PotentialCluster:
    """A group of unclustered articles that qualify as one story."""

    article_ids: list[int]
    articles: list[ClusterArticle]


@dataclass
class PotentialClusterResult:
    """Groups found by :func:`find_potential_clusters`.

    Attributes:
        clusters: Groups of at least ``min_cluster_size`` articles.
        errors: ``(article_id, message)`` for articles that were skipped.
    """

    clusters: list[PotentialCluster] = field(default_factory=list)
    errors: list[tuple[int, str]] = field(default_factory=list)


def score_cluster_match(
    min_distance: int,
    shared_entities: int,
    config: ClusteringConfig | None = None,
) -> float:
    """Rank a qualifying cluster: mostly fingerprint closeness, partly entity overlap."""
    if config is None:
        config = ClusteringConfig()
    distance_score = 1 - (min_distance / config.fingerprint_width)
    entity_score = min(1.0, shared_entities / config.entity_saturation)
    return distance_score * config.distance_weight + entity_score * config.entity_weight


def within_time_window(
    a: dt.datetime | None,
    b: dt.datetime | None,
    config: ClusteringConfig,
) -> bool:
    """``True`` when either time is unknown or they are close enough."""
    if a is None or b is None:
        return True
    return time_diff_hours(a, b) <= config.max_time_diff_hours


def articles_related(
    a: ClusterArticle,
    b: ClusterArticle,
    fp_a: int,
    fp_b: int,
    config: ClusteringConfig,
) -> EntityOverlap | None:
    """Return the entity overlap when ``a`` and ``b`` pass all three checks, else ``None``."""
    if hamming_distance(fp_a, fp_b, config.fingerprint_width) > config.max_hamming_distance:
        return None
    if not within_time_window(a.published_at, b.published_at, config):
        return None
    overlap = entity_overlap(a.entities or [], b.entities or [])
    if overlap.count < config.min_shared_entities:
        return None
    return overlap


def find_potential_clusters(
    articles: list[ClusterArticle],
    config: ClusteringConfig | None = None,
) -> PotentialClusterResult:
    """Greedily group unclustered articles into new story candidates.

    Each not-yet-grouped article collects every later not-yet-grouped
    article related to it.  Groups smaller than ``min_cluster_size`` are
    dropped and their seed stays available for later seeds.  Articles
    without a fingerprint are never grouped; malformed fingerprints are
    reported in ``errors``.
    """
    if config is None:
        config = ClusteringConfig()

    result = PotentialClusterResult()
    fingerprints: dict[int, int] = {}
    for article in articles:
        if article.fingerprint is None:
            continue
        try:
            fingerprints[article.id] = parse_fingerprint(article.fingerprint, config.fingerprint_width)
        except InvalidInputError as e:
            result.errors.append((article.id, str(e)))

    grouped: set[int] = set()
    for i, seed in enumerate(articles):
        if seed.id in grouped or seed.id not in fingerprints:
            continue

        members = [seed]
        for other in articles[i + 1 :]:
            if other.id in grouped or other.id == seed.id or other.id not in fingerprints:
                continue
            if articles_related(seed, other, fingerprints[seed.id], fingerprints[other.id], config):
                members.append(other)
                grouped.add(other.id)

        if len(members) >= config.min_cluster_size:
            grouped.add(seed.id)
            result.clusters.append(
                PotentialCluster(article_ids=[m.id for m in members], articles=members)
            )

    return result


def pick_headline(articles: list[ClusterArticle]) -> str | None:
    """Title of the earliest-published member that has one; undated members come last."""
    titled = [a for a in articles if a.title and a.title.strip()]
    if not titled:
        return None
    latest = dt.datetime.max.replace(tzinfo=dt.UTC)
    earliest = min(titled, key=lambda a: as_utc(a.published_at) if a.published_at else latest)
    return earliest.title.strip()
