"""Coherence pass wired to the gazetteer and the mention store."""

from __future__ import annotations

import asyncio

import structlog

from content_intel.batch import BatchResult, should_stop
from content_intel.coherence.scorer import apply_coherence, explain
from content_intel.collaborators import Coordinates, Gazetteer, MentionResult, MentionStore
from content_intel.matching.config import CoherenceConfig

logger = structlog.get_logger()

_MISSING = object()


class PlaceCoherence:
    """Re-ranks an article's place candidates by geographic agreement.

    Coordinates are cached per place id for the lifetime of the
    instance, including places known to have none.
    """

    def __init__(
        self,
        gazetteer: Gazetteer,
        store: MentionStore,
        config: CoherenceConfig | None = None,
    ) -> None:
        self.config = config or CoherenceConfig()
        self._gazetteer = gazetteer
        self._store = store
        self._coord_cache: dict[int, Coordinates | None] = {}

    async def get_coordinates(self, place_id: int) -> Coordinates | None:
        cached = self._coord_cache.get(place_id, _MISSING)
        if cached is not _MISSING:
            return cached

        try:
            coords = await self._gazetteer.get_coordinates(place_id)
        except Exception as e:
            # Not cached: the next pass retries the lookup
            logger.warning("coordinate_lookup_failed", place_id=place_id, error=str(e))
            return None

        self._coord_cache[place_id] = coords
        return coords

    async def resolve_coordinates(self, mention_results: list[MentionResult]) -> dict[int, Coordinates | None]:
        place_ids = {c.place_id for mr in mention_results for c in mr.candidates}
        return {place_id: await self.get_coordinates(place_id) for place_id in sorted(place_ids)}

    async def apply_coherence(self, mention_results: list[MentionResult]) -> list[MentionResult]:
        """Resolve coordinates and run the pure coherence scorer."""
        if not mention_results or len(mention_results) < self.config.min_mentions:
            return mention_results
        coordinates = await self.resolve_coordinates(mention_results)
        return apply_coherence(mention_results, coordinates, self.config)

    async def explain(self, mention: MentionResult, others: list[MentionResult]) -> dict:
        coordinates = await self.resolve_coordinates([mention, *others])
        return explain(mention, others, coordinates, self.config)

    async def process_article(self, article_id: int) -> bool:
        """Run the pass for one stored article.

        Returns:
            ``True`` if adjusted results were written back, ``False`` when
            the article has too few mentions.
        """
        mentions = await self._store.get_mentions(article_id)
        if len(mentions) < self.config.min_mentions:
            return False

        adjusted = await self.apply_coherence(mentions)
        if not any(mr.coherence_applied for mr in adjusted):
            return False

        updated = await self._store.save_coherence_results(adjusted)
        logger.debug("coherence_saved", article_id=article_id, mentions=len(adjusted), rows=updated)
        return True

    async def process_batch(
        self,
        article_ids: list[int],
        stop_event: asyncio.Event | None = None,
    ) -> BatchResult:
        """Apply coherence to each article in turn, never aborting on one failure."""
        result = BatchResult()
        log = logger.bind(batch_size=len(article_ids))

        for article_id in article_ids:
            if should_stop(stop_event):
                result.stopped_early = True
                log.info("coherence_batch_stopped", processed=result.processed)
                break
            try:
                adjusted = await self.process_article(article_id)
            except Exception as e:
                log.warning("coherence_failed", article_id=article_id, error=str(e), exc_info=True)
                result.record_failure(article_id, e, stage="coherence")
                continue
            result.record_success(article_id, adjusted=adjusted)

        log.info(
            "coherence_batch_complete",
            processed=result.processed,
            adjusted=result.adjusted,
            errors=result.errors,
        )
        return result
