"""
Feature selection and centering of normalized expression matrices.

These helpers prepare the input of consensus clustering: keep the most
variable genes by median absolute deviation and center each gene. Count
filtering and variance-stabilizing normalization happen upstream.
"""

import numpy as np
import pandas as pd
from scipy.stats import median_abs_deviation
from typing import Union

Matrix = Union[np.ndarray, pd.DataFrame]


def mad(expression: Matrix) -> Union[np.ndarray, pd.Series]:
    """Median absolute deviation of each gene (row), unscaled."""
    values = median_abs_deviation(np.asarray(expression, dtype=float), axis=1, scale=1.0)
    if isinstance(expression, pd.DataFrame):
        return pd.Series(values, index=expression.index, name='mad')
    return values


def select_top_mad(expression: Matrix, n_features: int) -> Matrix:
    """
    Keep the n_features genes with the largest median absolute deviation.

    Parameters:
    -----------
    expression : np.ndarray or pd.DataFrame
        Genes in rows, samples in columns.
    n_features : int
        Number of genes to keep. All genes are kept if the matrix has fewer.

    Returns:
    --------
    np.ndarray or pd.DataFrame
        The selected rows, ordered by decreasing MAD, same type as the input.
    """
    if n_features < 1:
        raise ValueError(f"n_features must be >= 1, got {n_features}")

    scores = np.asarray(mad(expression))
    # stable sort keeps the original gene order among ties
    order = np.argsort(-scores, kind='stable')[:n_features]

    if isinstance(expression, pd.DataFrame):
        return expression.iloc[order]
    return np.asarray(expression)[order]


def center_rows(expression: Matrix, how: str = 'median') -> Matrix:
    """
    Subtract the median (or mean) of each gene across samples.

    Parameters:
    -----------
    expression : np.ndarray or pd.DataFrame
        Genes in rows, samples in columns.
    how : str, default='median'
        'median' or 'mean'.

    Returns:
    --------
    np.ndarray or pd.DataFrame
        Centered matrix, same type as the input.
    """
    if how == 'median':
        center = np.median(np.asarray(expression, dtype=float), axis=1, keepdims=True)
    elif how == 'mean':
        center = np.mean(np.asarray(expression, dtype=float), axis=1, keepdims=True)
    else:
        raise ValueError(f"Unknown centering: {how}. Available options: ['median', 'mean']")

    if isinstance(expression, pd.DataFrame):
        return expression - center
    return np.asarray(expression, dtype=float) - center
