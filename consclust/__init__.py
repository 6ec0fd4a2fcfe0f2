"""
ConsClust: Package for consensus clustering of expression data.

ConsClust discovers sample subtypes by resampling an expression matrix,
clustering each subsample with a pluggable base algorithm and distance metric,
and tallying how often samples are co-assigned. Consensus matrices, final
labels and a stability curve are reported for every candidate cluster count.

Individual modules can be imported directly:
    from consclust.clustering import ConsensusClustering, CoOccurrenceAccumulator
    from consclust.metrics import StabilitySelector, consensus_silhouette
    from consclust.pipelines import Subsampler
    from consclust.preprocessing import select_top_mad
    from consclust.utils import assign_consistently
"""

__version__ = "0.1.0"

from .exceptions import (
    ConsclustError,
    ConfigurationError,
    DegenerateInputError,
    FitCancelled,
    DegeneratePartitionWarning
)
from .clustering import ConsensusClustering, ConsensusResult
from .metrics import StabilitySelector, StabilityReport

__all__ = [
    'ConsclustError',
    'ConfigurationError',
    'DegenerateInputError',
    'FitCancelled',
    'DegeneratePartitionWarning',
    'ConsensusClustering',
    'ConsensusResult',
    'StabilitySelector',
    'StabilityReport',
]
