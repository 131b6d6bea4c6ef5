"""Confidence scoring and relation typing for place candidates.

Pure functions only -- no database or gazetteer access -- so the
heuristics can be tuned and tested in isolation.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from content_intel.matching.config import ConfidenceThresholds, MatcherConfig
from content_intel.matching.rules import RULE_NAMES, NameMatch, RuleLevel

RELATION_TYPES: dict[str, str] = {
    "primary": "Primary subject of article",
    "secondary": "Secondary location mentioned",
    "mentioned": "Briefly mentioned",
    "affected": "Impacted by events in article",
    "origin": "Origin of people/events mentioned",
}


@dataclass
class PlaceCandidate:
    """A place with at least one name hit in an article's text."""

    place_id: int
    name: str
    matches: list[NameMatch]
    context: list[str] = field(default_factory=list)
    in_headline: bool = False

    @property
    def total_weight(self) -> float:
        return sum(m.weight for m in self.matches)

    @property
    def first_position(self) -> int | None:
        positions = [p for m in self.matches for p in m.positions]
        return min(positions) if positions else None


@dataclass
class PlaceRelation:
    """A scored article/place association ready to be stored.

    Attributes:
        article_id: Article the place was found in.
        place_id: Gazetteer place id.
        place_name: Display name of the place.
        relation_type: One of :data:`RELATION_TYPES`.
        confidence: Heuristic confidence in [0, 1].
        rule_level: Rule level that produced the match.
        raw_score: Total mention weight from the text scan.
        evidence: JSON-serialisable trace of the rule and raw hits.
    """

    article_id: int
    place_id: int
    place_name: str
    relation_type: str
    confidence: float
    rule_level: int
    raw_score: float
    evidence: dict = field(default_factory=dict)


def calculate_confidence(
    candidate: PlaceCandidate,
    text_length: int,
    level: RuleLevel,
    config: MatcherConfig | None = None,
) -> float:
    """Compute a heuristic confidence in [0, 1] for a place candidate.

    Starts from a base score scaled by the rule level, then adds a
    capped frequency bonus, an early-position bonus and a headline bonus.
    """
    if config is None:
        config = MatcherConfig()

    score = config.base_score * config.rule_multipliers[int(level)]
    score += min(candidate.total_weight * config.frequency_step, config.frequency_cap)

    first = candidate.first_position
    if first is not None and text_length > 0:
        score += (1 - first / text_length) * config.position_weight

    if candidate.in_headline:
        score += config.headline_bonus

    return max(0.0, min(score, 1.0))


def determine_relation_type(candidate: PlaceCandidate) -> str:
    """Classify how central a place is to the article.

    Mention weight is checked before the headline, so a headline place
    with three or four mentions is ``"secondary"`` rather than ``"primary"``.
    """
    weight = candidate.total_weight
    if weight >= 5:
        return "primary"
    if weight >= 3:
        return "secondary"
    if candidate.in_headline:
        return "primary"
    return "mentioned"


def confidence_band(confidence: float, thresholds: ConfidenceThresholds | None = None) -> str:
    """Return ``"high"``, ``"medium"``, ``"low"`` or ``"reject"``."""
    if thresholds is None:
        thresholds = ConfidenceThresholds()
    if confidence >= thresholds.high:
        return "high"
    if confidence >= thresholds.medium:
        return "medium"
    if confidence >= thresholds.low:
        return "low"
    return "reject"


def build_evidence(candidate: PlaceCandidate, level: RuleLevel, text_length: int) -> dict:
    return {
        "rule": RULE_NAMES[level],
        "matches": [m.as_dict() for m in candidate.matches],
        "context": list(candidate.context),
        "metadata": {
            "rule_level": int(level),
            "in_headline": candidate.in_headline,
            "text_length": text_length,
        },
    }


def score_candidates(
    article_id: int,
    candidates: list[PlaceCandidate],
    text_length: int,
    level: RuleLevel,
    config: MatcherConfig | None = None,
) -> list[PlaceRelation]:
    """Turn candidates into relations, dropping anything below the reject threshold.

    Returns relations sorted by confidence, highest first.
    """
    if config is None:
        config = MatcherConfig()

    relations = []
    for candidate in candidates:
        confidence = calculate_confidence(candidate, text_length, level, config)
        if confidence < config.thresholds.reject:
            continue
        relations.append(
            PlaceRelation(
                article_id=article_id,
                place_id=candidate.place_id,
                place_name=candidate.name,
                relation_type=determine_relation_type(candidate),
                confidence=confidence,
                rule_level=int(level),
                raw_score=candidate.total_weight,
                evidence=build_evidence(candidate, level, text_length),
            )
        )
    relations.sort(key=lambda r: (-r.confidence, r.place_id))
    return relations
