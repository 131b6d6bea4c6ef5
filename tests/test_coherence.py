"""Tests for the pure coherence re-scoring."""

import pytest

from content_intel.coherence import apply_coherence, build_coherence_graph, explain, mention_confidence
from content_intel.collaborators import Coordinates, MentionCandidate, MentionResult
from content_intel.matching.config import CoherenceConfig

COORDS = {
    1: Coordinates(39.7817, -89.6501),  # Springfield, IL
    2: Coordinates(42.1015, -72.5898),  # Springfield, MA
    3: Coordinates(41.8781, -87.6298),  # Chicago
    4: Coordinates(48.8566, 2.3522),  # Paris
    5: Coordinates(45.7640, 4.8357),  # Lyon
    6: None,
}


def _mention(mention_id, *candidates):
    return MentionResult(
        mention_id=mention_id,
        candidates=[MentionCandidate(place_id=p, score=s, name=f"place-{p}") for p, s in candidates],
    )


class TestApplyCoherence:
    def test_paris_lyon_boost(self) -> None:
        mentions = [_mention(1, (4, 0.70)), _mention(2, (5, 0.60))]

        paris, lyon = apply_coherence(mentions, COORDS)

        assert paris.candidates[0].score == pytest.approx(0.775)
        assert lyon.candidates[0].score == pytest.approx(0.675)
        assert paris.candidates[0].original_score == 0.70
        assert paris.candidates[0].coherence_score == 0.5
        assert paris.coherence_applied and lyon.coherence_applied
        assert paris.confidence == 1.0

    def test_resolves_ambiguous_name(self) -> None:
        springfield = _mention(1, (1, 0.6), (2, 0.6))
        chicago = _mention(2, (3, 0.6))

        resolved, _ = apply_coherence([springfield, chicago], COORDS)

        assert [c.place_id for c in resolved.candidates] == [1, 2]
        assert resolved.candidates[0].score == pytest.approx(0.675)
        assert resolved.candidates[1].score == pytest.approx(0.63)
        assert resolved.confidence == pytest.approx(0.675 / (0.675 + 0.63))

    def test_single_mention_returned_unchanged(self) -> None:
        mentions = [_mention(1, (4, 0.7))]
        assert apply_coherence(mentions, COORDS) is mentions
        assert mentions[0].candidates[0].original_score is None

    def test_empty_input(self) -> None:
        assert apply_coherence([], COORDS) == []

    def test_input_not_mutated(self) -> None:
        mentions = [_mention(1, (4, 0.70)), _mention(2, (5, 0.60))]
        apply_coherence(mentions, COORDS)
        assert mentions[0].candidates[0].score == 0.70
        assert not mentions[0].coherence_applied

    def test_missing_coordinates_score_zero(self) -> None:
        mentions = [_mention(1, (4, 0.7)), _mention(2, (6, 0.5)), _mention(3, (5, 0.6))]

        _, atlantis, _ = apply_coherence(mentions, COORDS)

        assert atlantis.candidates[0].coherence_score == 0.0
        assert atlantis.candidates[0].score == 0.5

    def test_isolated_anchor_gets_no_boost(self) -> None:
        mentions = [_mention(1, (4, 0.7)), _mention(2, (6, 0.5))]

        paris, _ = apply_coherence(mentions, COORDS)

        assert paris.coherence_applied
        assert paris.candidates[0].score == 0.7

    def test_repeated_passes_stack(self) -> None:
        mentions = [_mention(1, (4, 0.70)), _mention(2, (5, 0.60))]
        twice = apply_coherence(apply_coherence(mentions, COORDS), COORDS)
        assert twice[0].candidates[0].score == pytest.approx(0.85)

    def test_rescore_from_original_is_idempotent(self) -> None:
        config = CoherenceConfig(rescore_from_original=True)
        mentions = [_mention(1, (4, 0.70)), _mention(2, (5, 0.60))]
        twice = apply_coherence(apply_coherence(mentions, COORDS, config), COORDS, config)
        assert twice[0].candidates[0].score == pytest.approx(0.775)
        assert twice[0].candidates[0].original_score == 0.70

    def test_weight_is_configurable(self) -> None:
        config = CoherenceConfig(coherence_weight=1.0)
        mentions = [_mention(1, (4, 0.70)), _mention(2, (5, 0.60))]
        paris, _ = apply_coherence(mentions, COORDS, config)
        assert paris.candidates[0].score == pytest.approx(1.2)


class TestMentionConfidence:
    def test_values(self) -> None:
        assert mention_confidence([]) == 0.0
        assert mention_confidence([MentionCandidate(place_id=1, score=0.3)]) == 1.0
        pair = [MentionCandidate(place_id=1, score=0.6), MentionCandidate(place_id=2, score=0.2)]
        assert mention_confidence(pair) == pytest.approx(0.75)

    def test_zero_scores(self) -> None:
        pair = [MentionCandidate(place_id=1, score=0.0), MentionCandidate(place_id=2, score=0.0)]
        assert mention_confidence(pair) == 0.5


def test_graph_edges_carry_distance_and_coherence() -> None:
    anchors = {0: _mention(1, (4, 0.7)), 1: _mention(2, (5, 0.6)), 2: _mention(3, (6, 0.5))}
    graph = build_coherence_graph(anchors, COORDS)

    assert set(graph.nodes) == {0, 1}
    edge = graph.edges[0, 1]
    assert edge["distance_km"] == pytest.approx(392, abs=3)
    assert edge["coherence"] == 0.5
    assert graph.nodes[0]["place_id"] == 4


class TestExplain:
    def test_reports_distances(self) -> None:
        paris, lyon = _mention(1, (4, 0.7)), _mention(2, (5, 0.6))

        result = explain(paris, [lyon], COORDS)

        assert result["coherence_applied"] is True
        [distance] = result["distances"]
        assert distance["other_place_id"] == 5
        assert distance["distance_km"] == pytest.approx(392, abs=3)
        assert distance["coherence_contribution"] == 0.5
        assert result["average_coherence"] == 0.5

    def test_not_enough_mentions(self) -> None:
        result = explain(_mention(1, (4, 0.7)), [], COORDS)
        assert result["coherence_applied"] is False
        assert "Not enough" in result["reasoning"][0]

    def test_missing_coordinates(self) -> None:
        result = explain(_mention(1, (6, 0.7)), [_mention(2, (5, 0.6))], COORDS)
        assert result["reasoning"] == ["Missing coordinates for top candidate"]
