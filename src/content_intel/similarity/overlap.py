"""Entity overlap and time proximity between articles."""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class EntityOverlap:
    """Shared entity texts between two entity lists.

    Attributes:
        count: Number of distinct shared texts.
        shared: The normalised shared texts, in first-seen order.
    """

    count: int
    shared: list[str] = field(default_factory=list)


def _entity_text(entity: Any) -> str:
    if isinstance(entity, str):
        return entity
    if isinstance(entity, dict):
        return entity.get("text") or entity.get("entity_text") or ""
    return getattr(entity, "text", "") or ""


def _normalize(text: str) -> str:
    return text.strip().lower()


def entity_overlap(entities_a: Iterable[Any], entities_b: Iterable[Any]) -> EntityOverlap:
    """Count case-insensitive, trimmed, deduplicated entity-text matches.

    Entities may be ``Entity`` objects, dicts with a ``"text"`` key or
    bare strings.  Blank texts never match.
    """
    texts_a = {_normalize(_entity_text(e)) for e in entities_a}
    texts_a.discard("")
    if not texts_a:
        return EntityOverlap(count=0)

    shared: list[str] = []
    for entity in entities_b:
        text = _normalize(_entity_text(entity))
        if text and text in texts_a and text not in shared:
            shared.append(text)
    return EntityOverlap(count=len(shared), shared=shared)


def as_utc(value: dt.datetime) -> dt.datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.UTC)
    return value.astimezone(dt.UTC)


def time_diff_hours(a: dt.datetime, b: dt.datetime) -> float:
    """Absolute difference in hours; naive datetimes are taken as UTC."""
    return abs((as_utc(a) - as_utc(b)).total_seconds()) / 3600.0
