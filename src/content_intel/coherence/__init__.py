"""Multi-mention coherence pass for place disambiguation."""

from content_intel.coherence.graph import build_coherence_graph, candidate_coherence
from content_intel.coherence.scorer import apply_coherence, explain, mention_confidence
from content_intel.coherence.service import PlaceCoherence

__all__ = [
    "PlaceCoherence",
    "apply_coherence",
    "build_coherence_graph",
    "candidate_coherence",
    "explain",
    "mention_confidence",
]
