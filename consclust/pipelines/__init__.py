"""
Pipelines module for consclust.

This module provides the resampling of samples and features used by
consensus clustering.
"""

from .resampling import derive_rng, SubsampleDraw, Subsampler

__all__ = [
    'derive_rng',
    'SubsampleDraw',
    'Subsampler'
]
