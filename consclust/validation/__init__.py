"""
Validation module for consclust.

This module provides fail-fast checks for parameters and input matrices.
"""

from .checks import (
    check_k_range,
    check_fraction,
    check_n_resamples,
    check_expression_matrix,
    subsample_size
)

__all__ = [
    'check_k_range',
    'check_fraction',
    'check_n_resamples',
    'check_expression_matrix',
    'subsample_size'
]
