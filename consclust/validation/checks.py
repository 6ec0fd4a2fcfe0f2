"""
Fail-fast checks for consensus clustering parameters and expression matrices.

Every check raises before any resampling starts, so an invalid run never
produces partial output.
"""

import math
import numpy as np
import pandas as pd
from typing import Optional, Tuple, Union, List

from ..exceptions import ConfigurationError, DegenerateInputError


def check_k_range(k_min: int, k_max: int) -> Tuple[int, int]:
    """Validate the candidate cluster count range (k_min >= 2, k_max >= k_min)."""
    if int(k_min) != k_min or int(k_max) != k_max:
        raise ConfigurationError(f"k_min and k_max must be integers, got {k_min} and {k_max}")
    k_min, k_max = int(k_min), int(k_max)
    if k_min < 2:
        raise ConfigurationError(f"k_min must be >= 2, got {k_min}")
    if k_max < k_min:
        raise ConfigurationError(f"k_max must be >= k_min, got k_min={k_min}, k_max={k_max}")
    return k_min, k_max


def check_fraction(value: float, name: str) -> float:
    """Validate a sampling fraction in (0, 1]."""
    if not (0 < value <= 1.0):
        raise ConfigurationError(f"{name} must be between 0 (exclusive) and 1, got {value}")
    return float(value)


def check_n_resamples(n_resamples: int) -> int:
    """Validate the number of resampling repetitions."""
    if int(n_resamples) != n_resamples or n_resamples < 1:
        raise ConfigurationError(f"n_resamples must be an integer >= 1, got {n_resamples}")
    return int(n_resamples)


def check_expression_matrix(
    expression: Union[np.ndarray, pd.DataFrame],
    k_max: int,
    p_item: float = 1.0
) -> Tuple[np.ndarray, List]:
    """
    Validate an expression matrix (genes x samples) and extract sample names.

    Parameters:
    -----------
    expression : np.ndarray or pd.DataFrame
        Genes in rows, samples in columns. DataFrame columns are used as sample names.
    k_max : int
        Largest candidate cluster count.
    p_item : float, default=1.0
        Sample fraction drawn per repetition; the drawn subsample must hold at least k_max samples.

    Returns:
    --------
    Tuple[np.ndarray, List]
        The matrix as a float array and the list of sample names.

    Raises:
    -------
    DegenerateInputError
        If the matrix is not 2D, is empty, contains non-finite values or has fewer samples than k_max.
    ConfigurationError
        If the subsample drawn with p_item has fewer samples than k_max.
    """
    if isinstance(expression, pd.DataFrame):
        sample_names = list(expression.columns)
        values = expression.to_numpy()
    else:
        values = np.asarray(expression)
        sample_names = None

    if values.ndim != 2:
        raise DegenerateInputError(f"Expression matrix must be 2D (genes x samples), got {values.ndim}D")

    try:
        values = values.astype(float)
    except (TypeError, ValueError) as e:
        raise DegenerateInputError(f"Expression matrix must be numeric: {e}") from e

    n_genes, n_samples = values.shape
    if n_genes == 0 or n_samples == 0:
        raise DegenerateInputError(f"Expression matrix is empty, got shape {values.shape}")

    if not np.all(np.isfinite(values)):
        n_bad = int(np.sum(~np.isfinite(values)))
        raise DegenerateInputError(f"Expression matrix contains {n_bad} non-finite values")

    if n_samples < k_max:
        raise DegenerateInputError(
            f"Expression matrix has {n_samples} samples, fewer than k_max={k_max}"
        )

    n_drawn = subsample_size(n_samples, p_item)
    if n_drawn < k_max:
        raise ConfigurationError(
            f"p_item={p_item} draws {n_drawn} of {n_samples} samples, fewer than k_max={k_max}"
        )

    if sample_names is None:
        sample_names = list(range(n_samples))

    return values, sample_names


def subsample_size(n: int, fraction: float) -> int:
    """Number of items drawn for a fraction: ceil(fraction * n), at least 1 and at most n."""
    # round before ceil so that e.g. 0.7 * 10 is not taken as 7.000000000000001
    return int(min(n, max(1, math.ceil(round(fraction * n, 9)))))
