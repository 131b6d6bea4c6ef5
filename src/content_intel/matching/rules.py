"""Text-scanning rules for finding place names in article text.

Each rule level returns a list of :class:`NameMatch` -- one per name
variant that occurs in the text.  Levels 3 and 4 are reserved for
entity disambiguation and NLP analysis and currently reuse the level 2
rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import IntEnum

from content_intel.errors import InvalidInputError

HEADLINE_PREFIX = "headline:"


class RuleLevel(IntEnum):
    NONE = 0
    BASIC = 1
    CONTEXT_AWARE = 2
    ENTITY_DISAMBIGUATION = 3
    NLP_ENHANCED = 4


RULE_NAMES: dict[RuleLevel, str] = {
    RuleLevel.NONE: "no_rules_applied",
    RuleLevel.BASIC: "basic_string_match",
    RuleLevel.CONTEXT_AWARE: "context_aware",
    RuleLevel.ENTITY_DISAMBIGUATION: "entity_disambiguation",
    RuleLevel.NLP_ENHANCED: "nlp_enhanced",
}


@dataclass
class NameMatch:
    """Occurrences of one name variant in a text.

    Attributes:
        name: The variant as spelled in the gazetteer.
        count: Number of word-boundary hits.
        positions: Character offsets of each hit.
        score: Context-weighted hit score (level 2 and up); kept as
            evidence, never used as the mention weight.
    """

    name: str
    count: int
    positions: list[int] = field(default_factory=list)
    score: float | None = None

    @property
    def weight(self) -> float:
        """Mention weight: the raw hit count, falling back to the score, then 1."""
        return float(self.count or self.score or 1)

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "count": self.count,
            "positions": list(self.positions),
            "score": self.score,
        }


def coerce_rule_level(value: int) -> RuleLevel:
    try:
        return RuleLevel(int(value))
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"unknown rule level: {value!r}") from e


def build_article_text(title: str | None, body: str | None, sample_limit: int | None = None) -> str:
    """Assemble the searchable text: a ``HEADLINE:`` block, a blank line, then the body."""
    text = ""
    if title:
        text += f"HEADLINE: {title}\n\n"
    if body:
        text += body[:sample_limit] if sample_limit else body
    return text


def headline_end(text: str) -> int:
    """Return the end offset of the headline segment, or 0 if there is none."""
    if not text.lower().startswith(HEADLINE_PREFIX):
        return 0
    end = text.find("\n\n")
    return end if end > 0 else len(text)


def find_basic_matches(text: str, names: list[str]) -> list[NameMatch]:
    """Level 1: case-insensitive, word-boundary exact match of each name."""
    matches = []
    for name in names:
        if not name or not name.strip():
            continue
        pattern = re.compile(rf"\b{re.escape(name)}\b", re.IGNORECASE)
        positions = [m.start() for m in pattern.finditer(text)]
        if positions:
            matches.append(NameMatch(name=name, count=len(positions), positions=positions))
    return matches


def find_context_aware_matches(text: str, names: list[str]) -> list[NameMatch]:
    """Level 2: level 1 hits weighted by headline presence and early position."""
    basic = find_basic_matches(text, names)
    if not basic:
        return basic

    end = headline_end(text)
    headline = text[:end].lower()

    for match in basic:
        score = float(match.count)
        if headline and match.name.lower() in headline:
            score *= 2
        if min(match.positions) / len(text) < 0.1:
            score *= 1.5
        match.score = score
    return basic


def find_matches(text: str, names: list[str], level: RuleLevel) -> list[NameMatch]:
    """Dispatch to the rule implementation for ``level``."""
    if level == RuleLevel.NONE or not text:
        return []
    if level == RuleLevel.BASIC:
        return find_basic_matches(text, names)
    # TODO: give levels 3 and 4 their own disambiguation once entity types are available here
    return find_context_aware_matches(text, names)


def extract_context(text: str, matches: list[NameMatch], window: int = 50) -> list[str]:
    """Return a snippet of ``window`` chars either side of every hit."""
    snippets = []
    for match in matches:
        for position in match.positions:
            start = max(0, position - window)
            end = min(len(text), position + len(match.name) + window)
            snippets.append(text[start:end])
    return snippets
