"""
Clustering module for consclust.

This module provides the base clustering algorithms used on subsamples
(k-means, PAM, hierarchical), the co-occurrence accumulator and the
consensus clustering entry procedure.
"""

from .base import (
    KMeansClusterer,
    PAMClusterer,
    HierarchicalClusterer,
    get_clusterer,
    available_clusterers,
    cut_tree
)
from .accumulator import CoOccurrenceAccumulator
from .consensus import ConsensusClustering, ConsensusResult

__all__ = [
    'KMeansClusterer',
    'PAMClusterer',
    'HierarchicalClusterer',
    'get_clusterer',
    'available_clusterers',
    'cut_tree',
    'CoOccurrenceAccumulator',
    'ConsensusClustering',
    'ConsensusResult',
]
