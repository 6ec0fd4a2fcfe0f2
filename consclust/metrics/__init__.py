"""
Metrics module for consclust.

This module provides distance metrics, consensus stability scores and
consensus-based cluster validation measures.
"""

from .distances import Metric, register_metric, get_metric, available_metrics, pairwise_dissimilarity
from .stability import (
    consensus_values,
    consensus_cdf,
    cdf_area,
    delta_area,
    pac,
    StabilityReport,
    StabilitySelector
)
from .metrics import consensus_silhouette, item_consensus, cluster_consensus

__all__ = [
    'Metric',
    'register_metric',
    'get_metric',
    'available_metrics',
    'pairwise_dissimilarity',
    'consensus_values',
    'consensus_cdf',
    'cdf_area',
    'delta_area',
    'pac',
    'StabilityReport',
    'StabilitySelector',
    'consensus_silhouette',
    'item_consensus',
    'cluster_consensus'
]
