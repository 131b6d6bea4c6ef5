"""Article/place matcher.

Scans an article's text for every gazetteer name variant at a chosen
rule level, scores each hit place, and stores the accepted relations
together with the per-surface-form mentions that the coherence pass
later refines.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

import structlog

from content_intel.batch import BatchResult, should_stop
from content_intel.collaborators import (
    ContentSource,
    Gazetteer,
    MentionCandidate,
    MentionResult,
    RelationStore,
)
from content_intel.errors import InvalidInputError, NotFoundError
from content_intel.matching.config import MatcherConfig
from content_intel.matching.place_cache import PlaceCache
from content_intel.matching.rules import (
    RuleLevel,
    build_article_text,
    coerce_rule_level,
    extract_context,
    find_matches,
    headline_end,
)
from content_intel.matching.scoring import PlaceCandidate, PlaceRelation, score_candidates

logger = structlog.get_logger()


class ArticlePlaceMatcher:
    """Matches articles to gazetteer places and persists the result."""

    def __init__(
        self,
        gazetteer: Gazetteer,
        content: ContentSource,
        store: RelationStore,
        config: MatcherConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or MatcherConfig()
        self._content = content
        self._store = store
        self._places = PlaceCache(gazetteer, self.config.place_cache_ttl_seconds, clock=clock)

    async def find_place_mentions(self, text: str, rule_level: int = 1) -> list[PlaceCandidate]:
        """Return every place with at least one name hit in ``text``."""
        level = coerce_rule_level(rule_level)
        if level == RuleLevel.NONE or not text:
            return []

        places = await self._places.get_places()
        end = headline_end(text)
        candidates = []
        for place in places:
            matches = find_matches(text, place.names, level)
            if not matches:
                continue
            candidates.append(
                PlaceCandidate(
                    place_id=place.id,
                    name=place.display_name,
                    matches=matches,
                    context=extract_context(text, matches, self.config.context_window),
                    in_headline=any(p < end for m in matches for p in m.positions),
                )
            )
        return candidates

    async def score_article(self, article_id: int, rule_level: int = 1) -> list[PlaceRelation]:
        """Find and score places for one article without storing anything."""
        if article_id is None:
            raise InvalidInputError("article_id is required")
        level = coerce_rule_level(rule_level)

        article = await self._content.get_article_text(article_id)
        if article is None:
            raise NotFoundError("article", article_id)

        text = build_article_text(article.title, article.body, self.config.text_sample_limit)
        candidates = await self.find_place_mentions(text, level)
        return score_candidates(article_id, candidates, len(text), level, self.config)

    async def match_article(self, article_id: int, rule_level: int = 1) -> list[PlaceRelation]:
        """Match one article and persist its relations in a single transaction.

        Returns:
            The accepted relations, highest confidence first.

        Raises:
            InvalidInputError: Missing id or unknown rule level.
            NotFoundError: The article does not exist.
        """
        log = logger.bind(article_id=article_id, rule_level=int(rule_level))
        relations = await self.score_article(article_id, rule_level)
        mentions = build_mentions(article_id, relations)
        await self._store.save_article_places(article_id, relations, mentions)
        log.info("article_matched", relations=len(relations), mentions=len(mentions))
        return relations

    async def match_batch(
        self,
        article_ids: list[int],
        rule_level: int = 1,
        stop_event: asyncio.Event | None = None,
    ) -> BatchResult:
        """Match articles one after another, collecting per-article failures."""
        coerce_rule_level(rule_level)
        result = BatchResult()
        log = logger.bind(batch_size=len(article_ids), rule_level=int(rule_level))

        for article_id in article_ids:
            if should_stop(stop_event):
                result.stopped_early = True
                log.info("match_batch_stopped", processed=result.processed)
                break
            try:
                relations = await self.match_article(article_id, rule_level)
            except Exception as e:
                log.warning("article_match_failed", article_id=article_id, error=str(e), exc_info=True)
                result.record_failure(article_id, e, stage="matching")
                continue
            result.record_success(article_id, adjusted=bool(relations))

        log.info(
            "match_batch_complete",
            processed=result.processed,
            matched=result.adjusted,
            errors=result.errors,
        )
        return result

    async def get_article_places(self, article_id: int) -> list:
        return await self._store.get_article_places(article_id)


def build_mentions(article_id: int, relations: list[PlaceRelation]) -> list[MentionResult]:
    """Group relations into mentions keyed by matched surface form.

    A surface form shared by several places ("Springfield") becomes one
    mention with several candidates -- the ambiguity the coherence pass
    resolves.
    """
    mentions: dict[str, MentionResult] = {}
    for relation in relations:
        method = f"rule_level_{relation.rule_level}"
        contexts = relation.evidence.get("context") or []
        for match in relation.evidence.get("matches", []):
            key = match["name"].strip().lower()
            mention = mentions.get(key)
            if mention is None:
                mention = MentionResult(
                    mention_id=None,
                    candidates=[],
                    article_id=article_id,
                    mention_text=key,
                    context_snippet=contexts[0] if contexts else None,
                )
                mentions[key] = mention
            if any(c.place_id == relation.place_id for c in mention.candidates):
                continue
            mention.candidates.append(
                MentionCandidate(
                    place_id=relation.place_id,
                    name=relation.place_name,
                    score=relation.confidence,
                    method=method,
                )
            )
    return list(mentions.values())
