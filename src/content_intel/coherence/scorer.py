"""Coherence re-scoring of place candidates.

When an article mentions several places they tend to be near each
other.  Each candidate's score is nudged by how close it lies to the
top candidates of the article's other mentions, then candidates are
re-ranked and each mention's confidence recomputed.

All functions here are pure; coordinates are resolved by the caller.
"""

from __future__ import annotations

import dataclasses

from content_intel.coherence.graph import build_coherence_graph, candidate_coherence
from content_intel.collaborators import Coordinates, MentionCandidate, MentionResult
from content_intel.matching.config import CoherenceConfig
from content_intel.similarity import distance_to_coherence, haversine_km


def mention_confidence(candidates: list[MentionCandidate]) -> float:
    """``top / (top + second)`` for 2+ candidates, 1.0 for one, 0.0 for none.

    ``candidates`` must already be sorted by score, descending.
    """
    if not candidates:
        return 0.0
    if len(candidates) == 1:
        return 1.0
    top, second = candidates[0].score, candidates[1].score
    total = top + second
    return top / total if total > 0 else 0.5


def apply_coherence(
    mention_results: list[MentionResult],
    coordinates: dict[int, Coordinates | None],
    config: CoherenceConfig | None = None,
) -> list[MentionResult]:
    """Re-score every candidate of every mention by geographic agreement.

    Returns ``mention_results`` itself, untouched, when fewer than
    ``config.min_mentions`` mentions have a candidate.  Otherwise returns
    new ``MentionResult`` objects with ``coherence_applied=True``.

    The pass stacks: feeding its output back in adds the coherence
    weight again, unless ``config.rescore_from_original`` is set.
    """
    if config is None:
        config = CoherenceConfig()

    if not mention_results or len(mention_results) < config.min_mentions:
        return mention_results

    anchors = {i: mr for i, mr in enumerate(mention_results) if mr.top is not None}
    if len(anchors) < config.min_mentions:
        return mention_results

    graph = build_coherence_graph(anchors, coordinates)

    adjusted = []
    for key, mr in enumerate(mention_results):
        candidates = []
        for candidate in mr.candidates:
            base = candidate.score
            if config.rescore_from_original and candidate.original_score is not None:
                base = candidate.original_score
            coherence = candidate_coherence(coordinates.get(candidate.place_id), graph, key)
            candidates.append(
                dataclasses.replace(
                    candidate,
                    original_score=base,
                    coherence_score=coherence,
                    score=base + coherence * config.coherence_weight,
                )
            )
        candidates.sort(key=lambda c: c.score, reverse=True)
        adjusted.append(
            dataclasses.replace(
                mr,
                candidates=candidates,
                coherence_applied=True,
                confidence=mention_confidence(candidates),
            )
        )
    return adjusted


def explain(
    mention: MentionResult,
    others: list[MentionResult],
    coordinates: dict[int, Coordinates | None],
    config: CoherenceConfig | None = None,
) -> dict:
    """Describe how coherence would score ``mention``'s current top candidate."""
    if config is None:
        config = CoherenceConfig()

    explanation: dict = {
        "mention_id": mention.mention_id,
        "coherence_applied": False,
        "reasoning": [],
        "distances": [],
    }

    if len(others) < config.min_mentions - 1:
        explanation["reasoning"].append("Not enough other mentions for coherence")
        return explanation

    top = mention.top
    if top is None:
        explanation["reasoning"].append("No candidates to evaluate")
        return explanation

    coords = coordinates.get(top.place_id)
    if coords is None:
        explanation["reasoning"].append("Missing coordinates for top candidate")
        return explanation

    for other in others:
        other_top = other.top
        if other_top is None or other_top.place_id == top.place_id:
            continue
        other_coords = coordinates.get(other_top.place_id)
        if other_coords is None:
            continue
        distance = haversine_km(
            coords.latitude, coords.longitude, other_coords.latitude, other_coords.longitude
        )
        explanation["distances"].append(
            {
                "other_place": other_top.name,
                "other_place_id": other_top.place_id,
                "distance_km": round(distance),
                "coherence_contribution": distance_to_coherence(distance),
            }
        )

    if explanation["distances"]:
        contributions = [d["coherence_contribution"] for d in explanation["distances"]]
        average = sum(contributions) / len(contributions)
        explanation["coherence_applied"] = True
        explanation["average_coherence"] = average
        explanation["reasoning"].append(
            f"Average coherence with {len(contributions)} other places: {average:.2f}"
        )

    return explanation
