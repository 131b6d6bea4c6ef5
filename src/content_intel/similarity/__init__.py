"""Geo and similarity primitives -- pure functions with no state."""

from content_intel.similarity.fingerprint import (
    FINGERPRINT_WIDTH,
    format_fingerprint,
    hamming_distance,
    parse_fingerprint,
)
from content_intel.similarity.geo import (
    DISTANCE_THRESHOLDS,
    EARTH_RADIUS_KM,
    distance_to_coherence,
    haversine_km,
)
from content_intel.similarity.overlap import EntityOverlap, as_utc, entity_overlap, time_diff_hours

__all__ = [
    "DISTANCE_THRESHOLDS",
    "EARTH_RADIUS_KM",
    "EntityOverlap",
    "as_utc",
    "FINGERPRINT_WIDTH",
    "distance_to_coherence",
    "entity_overlap",
    "format_fingerprint",
    "hamming_distance",
    "haversine_km",
    "parse_fingerprint",
    "time_diff_hours",
]
