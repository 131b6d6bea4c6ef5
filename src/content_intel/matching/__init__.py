"""Place matching: find, score and store place mentions in article text."""

from content_intel.matching.config import IntelligenceConfig, MatcherConfig, load_intelligence_config
from content_intel.matching.matcher import ArticlePlaceMatcher, build_mentions
from content_intel.matching.rules import RULE_NAMES, RuleLevel
from content_intel.matching.scoring import (
    RELATION_TYPES,
    PlaceCandidate,
    PlaceRelation,
    calculate_confidence,
    confidence_band,
    determine_relation_type,
)

__all__ = [
    "ArticlePlaceMatcher",
    "IntelligenceConfig",
    "MatcherConfig",
    "PlaceCandidate",
    "PlaceRelation",
    "RELATION_TYPES",
    "RULE_NAMES",
    "RuleLevel",
    "build_mentions",
    "calculate_confidence",
    "confidence_band",
    "determine_relation_type",
    "load_intelligence_config",
]
