"""Story clustering: group related articles into persistent story threads."""

from content_intel.clustering.candidates import (
    ClusterArticle,
    PotentialCluster,
    PotentialClusterResult,
    find_potential_clusters,
    score_cluster_match,
)
from content_intel.clustering.service import (
    ClusteringOutcome,
    ClusterMatch,
    StoryClustering,
)

__all__ = [
    "ClusterArticle",
    "ClusterMatch",
    "ClusteringOutcome",
    "PotentialCluster",
    "PotentialClusterResult",
    "StoryClustering",
    "find_potential_clusters",
    "score_cluster_match",
]
