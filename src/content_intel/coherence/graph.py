"""Spatial graph over the anchor (top) candidate of each mention.

Nodes are mentions carrying their anchor's coordinates; every pair of
nodes is joined by an edge weighted with the haversine distance and the
coherence value that distance maps to.
"""

from __future__ import annotations

import networkx as nx

from content_intel.collaborators import Coordinates, MentionResult
from content_intel.similarity import distance_to_coherence, haversine_km


def build_coherence_graph(
    anchors: dict[int, MentionResult],
    coordinates: dict[int, Coordinates | None],
) -> nx.Graph:
    """Build the complete graph of anchors with resolvable coordinates.

    Args:
        anchors: Node key -> mention, for mentions with at least one candidate.
            Keys are positions in the article's mention list, since
            unsaved mentions have no id yet.
        coordinates: Place id -> coordinates (``None`` when unknown).

    Returns:
        An undirected graph keyed like ``anchors``.  Node attributes:
        ``mention_id``, ``place_id``, ``latitude``, ``longitude``,
        ``score``.  Edge
        attributes: ``distance_km``, ``coherence``.
    """
    G = nx.Graph()

    for key, mention in anchors.items():
        top = mention.top
        if top is None:
            continue
        coords = coordinates.get(top.place_id)
        if coords is None:
            continue
        G.add_node(
            key,
            mention_id=mention.mention_id,
            place_id=top.place_id,
            latitude=coords.latitude,
            longitude=coords.longitude,
            score=top.score,
        )

    nodes = list(G.nodes(data=True))
    for i, (id_a, a) in enumerate(nodes):
        for id_b, b in nodes[i + 1 :]:
            distance = haversine_km(a["latitude"], a["longitude"], b["latitude"], b["longitude"])
            G.add_edge(id_a, id_b, distance_km=distance, coherence=distance_to_coherence(distance))

    return G


def candidate_coherence(
    coords: Coordinates | None,
    graph: nx.Graph,
    key: int,
) -> float:
    """Average coherence between ``coords`` and every other mention's anchor.

    Returns 0 when the candidate has no coordinates or when its own
    mention is not connected to any other anchor.
    """
    if coords is None:
        return 0.0
    if key not in graph or graph.degree(key) == 0:
        return 0.0

    values = []
    for other_key, node in graph.nodes(data=True):
        if other_key == key:
            continue
        distance = haversine_km(coords.latitude, coords.longitude, node["latitude"], node["longitude"])
        values.append(distance_to_coherence(distance))

    return sum(values) / len(values) if values else 0.0
