"""Tuning parameters for matching, coherence and clustering.

All parameters can be overridden via ``content_intel/config/intelligence.yaml``.
If the file does not exist, defaults are used.
"""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, model_validator


class ConfidenceThresholds(BaseModel):
    """Confidence bands for place relations; below ``reject`` is discarded."""

    high: float = 0.8
    medium: float = 0.6
    low: float = 0.4
    reject: float = 0.2

    @model_validator(mode="after")
    def check_ordering(self) -> "ConfidenceThresholds":
        if not (self.high >= self.medium >= self.low >= self.reject):
            raise ValueError("confidence thresholds must satisfy high >= medium >= low >= reject")
        return self


class MatcherConfig(BaseModel):
    """Parameters for the article/place matcher."""

    thresholds: ConfidenceThresholds = ConfidenceThresholds()
    place_cache_ttl_seconds: float = Field(default=300.0, ge=0)
    # Index = rule level; level 0 produces no candidates so its entry is nominal
    rule_multipliers: list[float] = [1.0, 1.0, 1.2, 1.4, 1.6]
    base_score: float = 0.5
    frequency_step: float = 0.1
    frequency_cap: float = 0.3
    position_weight: float = 0.2
    headline_bonus: float = 0.2
    context_window: int = 50
    text_sample_limit: int | None = None

    @model_validator(mode="after")
    def check_multipliers(self) -> "MatcherConfig":
        if len(self.rule_multipliers) != 5:
            raise ValueError("rule_multipliers needs one entry per rule level (0-4)")
        return self


class CoherenceConfig(BaseModel):
    """Parameters for the multi-mention coherence pass."""

    coherence_weight: float = 0.15
    min_mentions: int = Field(default=2, ge=1)
    method_marker: str = "+coherence"
    # When True, reruns start from ``original_score`` instead of stacking weight
    rescore_from_original: bool = False


class ClusteringConfig(BaseModel):
    """Parameters for story clustering.

    ``max_candidate_clusters`` and ``member_sample_size`` bound the work
    per lookup; raising them trades latency for recall on old or large
    clusters.
    """

    max_hamming_distance: int = Field(default=3, ge=0)
    min_shared_entities: int = Field(default=1, ge=0)
    max_time_diff_hours: float = 48.0
    fingerprint_width: int = 64
    join_threshold: float = 0.5
    distance_weight: float = 0.6
    entity_weight: float = 0.4
    entity_saturation: int = Field(default=3, ge=1)
    max_candidate_clusters: int = Field(default=100, ge=1)
    member_sample_size: int = Field(default=10, ge=1)
    min_cluster_size: int = Field(default=2, ge=2)
    retention_days: int = Field(default=7, ge=0)


class IntelligenceConfig(BaseModel):
    """Top-level configuration combining all sub-configs."""

    matcher: MatcherConfig = MatcherConfig()
    coherence: CoherenceConfig = CoherenceConfig()
    clustering: ClusteringConfig = ClusteringConfig()


def load_intelligence_config(path: Path) -> IntelligenceConfig:
    """Load configuration from a YAML file.

    If the file does not exist, returns an ``IntelligenceConfig`` with all
    default values.  Partial overrides are supported -- only the keys
    present in the YAML file will override defaults.
    """
    if not path.exists():
        structlog.get_logger().debug("intelligence_config_missing", path=str(path))
        return IntelligenceConfig()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return IntelligenceConfig(**data)
