"""Great-circle distance and the distance -> coherence step function."""

from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0

# Upper bound (inclusive) in km for each coherence tier, nearest first.
DISTANCE_THRESHOLDS: tuple[tuple[float, float], ...] = (
    (50.0, 1.0),  # same city
    (200.0, 0.8),  # same region
    (1000.0, 0.5),  # same country
    (3000.0, 0.2),  # nearby
)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute the great-circle distance between two points in kilometres."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    a = min(a, 1.0)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_to_coherence(distance_km: float) -> float:
    """Map a distance to a coherence value in [0, 1].

    Closer places score higher.  A distance exactly on a threshold
    belongs to the nearer (higher) tier.
    """
    for upper_km, coherence in DISTANCE_THRESHOLDS:
        if distance_km <= upper_km:
            return coherence
    return 0.0
