"""Collaborator contracts consumed by the three engines.

The engines only ever talk to these protocols.  SQLAlchemy-backed
implementations live in :mod:`content_intel.stores`; tests substitute
small in-memory fakes.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class GazetteerPlace:
    """A place with every name variant it may appear under."""

    id: int
    names: list[str]
    canonical_name: str | None = None
    country_code: str | None = None

    @property
    def display_name(self) -> str:
        if self.canonical_name:
            return self.canonical_name
        if self.names:
            return self.names[0]
        return f"Place {self.id}"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ArticleText:
    title: str | None
    body: str | None


@dataclass(frozen=True)
class Entity:
    text: str
    type: str | None = None


@dataclass
class MentionCandidate:
    """One place a mention could refer to.

    ``original_score`` and ``coherence_score`` stay ``None`` until a
    coherence pass has rescored the candidate; ``score`` is always the
    current ranking score.
    """

    place_id: int
    score: float
    name: str | None = None
    country_code: str | None = None
    population: int | None = None
    method: str | None = None
    original_score: float | None = None
    coherence_score: float | None = None


@dataclass
class MentionResult:
    """All candidate places for one place mention in an article."""

    mention_id: int | None
    candidates: list[MentionCandidate]
    article_id: int | None = None
    mention_text: str | None = None
    context_snippet: str | None = None
    confidence: float | None = None
    coherence_applied: bool = False

    @property
    def top(self) -> MentionCandidate | None:
        if not self.candidates:
            return None
        return max(self.candidates, key=lambda c: c.score)


@dataclass
class StoryClusterRecord:
    """Persistent view of a story cluster as returned by a ``ClusterStore``."""

    id: int
    headline: str
    article_ids: list[int]
    is_active: bool
    first_seen: dt.datetime
    last_updated: dt.datetime
    summary: str | None = None
    primary_topic_id: int | None = None

    @property
    def article_count(self) -> int:
        return len(self.article_ids)


@dataclass
class ClusterUpdate:
    """Fields to change on a cluster; ``None`` leaves a field untouched."""

    article_ids: list[int] | None = None
    headline: str | None = None
    summary: str | None = None
    last_updated: dt.datetime | None = None


class Gazetteer(Protocol):
    async def get_all_places(self) -> list[GazetteerPlace]: ...

    async def get_coordinates(self, place_id: int) -> Coordinates | None: ...


class ContentSource(Protocol):
    async def get_article_text(self, article_id: int) -> ArticleText | None: ...

    async def get_entities(self, article_id: int) -> list[Entity]: ...

    async def get_fingerprint(self, article_id: int) -> int | None: ...


class RelationStore(Protocol):
    async def save_article_places(
        self, article_id: int, relations: list, mentions: list[MentionResult]
    ) -> int: ...

    async def get_article_places(self, article_id: int) -> list: ...


class MentionStore(Protocol):
    async def get_mentions(self, article_id: int) -> list[MentionResult]: ...

    async def save_coherence_results(self, results: list[MentionResult]) -> int: ...


class ClusterStore(Protocol):
    async def create_cluster(
        self,
        headline: str,
        article_ids: list[int],
        summary: str | None = None,
        primary_topic_id: int | None = None,
    ) -> StoryClusterRecord: ...

    async def get_cluster(self, cluster_id: int) -> StoryClusterRecord | None: ...

    async def update_cluster(self, cluster_id: int, update: ClusterUpdate) -> StoryClusterRecord: ...

    async def get_active_clusters(self, limit: int | None = None) -> list[StoryClusterRecord]: ...

    async def deactivate_before(self, cutoff: dt.datetime) -> int: ...
