"""Result containers shared by the sequential batch operations."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field


@dataclass
class ArticleOutcome:
    """Outcome of one article inside a batch run.

    Attributes:
        article_id: The article that was processed.
        success: ``False`` when the article raised.
        adjusted: ``True`` when the article's stored data was changed.
        error: Exception message for failed articles.
        stage: Name of the engine that failed (``"matching"``, ``"coherence"``...).
    """

    article_id: int
    success: bool
    adjusted: bool = False
    error: str | None = None
    stage: str | None = None


@dataclass
class BatchResult:
    """Aggregate counts plus per-article outcomes for a batch run."""

    processed: int = 0
    adjusted: int = 0
    errors: int = 0
    stopped_early: bool = False
    articles: list[ArticleOutcome] = field(default_factory=list)

    def record_success(self, article_id: int, adjusted: bool) -> None:
        self.processed += 1
        if adjusted:
            self.adjusted += 1
        self.articles.append(ArticleOutcome(article_id=article_id, success=True, adjusted=adjusted))

    def record_failure(self, article_id: int, error: Exception, stage: str) -> None:
        self.errors += 1
        self.articles.append(
            ArticleOutcome(article_id=article_id, success=False, error=str(error), stage=stage)
        )

    def as_dict(self) -> dict:
        return {
            "processed": self.processed,
            "adjusted": self.adjusted,
            "errors": self.errors,
            "stopped_early": self.stopped_early,
            "articles": [
                {
                    "article_id": o.article_id,
                    "success": o.success,
                    "adjusted": o.adjusted,
                    "error": o.error,
                    "stage": o.stage,
                }
                for o in self.articles
            ],
        }


def should_stop(stop_event: asyncio.Event | None) -> bool:
    """Return ``True`` once the caller has asked a batch to stop."""
    return stop_event is not None and stop_event.is_set()
