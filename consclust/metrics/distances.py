"""
Distance metrics for consensus clustering.

A metric takes the expression matrix (genes x samples) together with the
sample and feature indices of one subsample and returns the square
dissimilarity matrix between the selected samples. Built-in metrics are kept
in a small registry and looked up by name; custom metrics can be registered
with `register_metric`.
"""

import numpy as np
from scipy.spatial.distance import pdist, squareform
from scipy.stats import rankdata
from typing import Callable, Dict, List, Optional, Union

from ..exceptions import ConfigurationError

__all__ = [
    'Metric',
    'register_metric',
    'get_metric',
    'available_metrics',
    'pairwise_dissimilarity'
]


def _correlation_distance(observations: np.ndarray) -> np.ndarray:
    """1 - Pearson correlation between rows; undefined correlations count as 0."""
    n = observations.shape[0]
    if observations.shape[1] < 2:
        # correlation needs at least two features
        D = np.ones((n, n))
        np.fill_diagonal(D, 0.0)
        return D

    centered = observations - observations.mean(axis=1, keepdims=True)
    norms = np.sqrt(np.sum(centered ** 2, axis=1))
    with np.errstate(divide='ignore', invalid='ignore'):
        corr = (centered @ centered.T) / np.outer(norms, norms)
    corr = np.nan_to_num(corr, nan=0.0, posinf=0.0, neginf=0.0)
    corr = np.clip(corr, -1.0, 1.0)

    D = 1.0 - corr
    D = (D + D.T) / 2
    np.fill_diagonal(D, 0.0)
    return D


def _pearson(observations: np.ndarray) -> np.ndarray:
    return _correlation_distance(observations)


def _spearman(observations: np.ndarray) -> np.ndarray:
    return _correlation_distance(rankdata(observations, axis=1))


def _scipy_metric(name: str) -> Callable[[np.ndarray], np.ndarray]:
    def compute(observations: np.ndarray) -> np.ndarray:
        if observations.shape[0] < 2:
            return np.zeros((observations.shape[0], observations.shape[0]))
        D = squareform(pdist(observations, metric=name))
        # canberra and jaccard give nan for all-zero pairs
        return np.nan_to_num(D, nan=0.0)
    compute.__name__ = f"_{name}"
    return compute


def _binary(observations: np.ndarray) -> np.ndarray:
    return _scipy_metric('jaccard')(observations != 0)


class Metric:
    """
    Named dissimilarity function over a subsample of an expression matrix.

    Parameters:
    -----------
    name : str
        Registry name of the metric.
    func : Callable[[np.ndarray], np.ndarray]
        Function mapping an (n_samples, n_features) observation matrix to an
        (n_samples, n_samples) dissimilarity matrix.
    """

    def __init__(self, name: str, func: Callable[[np.ndarray], np.ndarray]):
        self.name = name
        self.func = func

    def __call__(
        self,
        matrix: np.ndarray,
        sample_idx: Optional[np.ndarray] = None,
        feature_idx: Optional[np.ndarray] = None
    ) -> np.ndarray:
        """
        Compute the dissimilarity matrix between the selected samples.

        Parameters:
        -----------
        matrix : np.ndarray
            Expression matrix of shape (n_genes, n_samples).
        sample_idx : np.ndarray, optional
            Column indices of the samples to compare. All samples if None.
        feature_idx : np.ndarray, optional
            Row indices of the features to use. All features if None.

        Returns:
        --------
        np.ndarray
            Symmetric dissimilarity matrix of shape (len(sample_idx), len(sample_idx))
            with a zero diagonal.
        """
        observations = observations_view(matrix, sample_idx, feature_idx)
        D = np.asarray(self.func(observations), dtype=float)
        np.fill_diagonal(D, 0.0)
        return D

    def __repr__(self) -> str:
        return f"Metric(name='{self.name}')"


def observations_view(
    matrix: np.ndarray,
    sample_idx: Optional[np.ndarray] = None,
    feature_idx: Optional[np.ndarray] = None
) -> np.ndarray:
    """Samples x features submatrix of a genes x samples matrix."""
    if sample_idx is None:
        sample_idx = np.arange(matrix.shape[1])
    if feature_idx is None:
        feature_idx = np.arange(matrix.shape[0])
    return matrix[np.ix_(feature_idx, sample_idx)].T


_METRICS: Dict[str, Metric] = {}


def register_metric(name: str, func: Callable[[np.ndarray], np.ndarray], overwrite: bool = False) -> Metric:
    """
    Register a dissimilarity function under a name.

    Parameters:
    -----------
    name : str
        Name used to select the metric.
    func : Callable[[np.ndarray], np.ndarray]
        Function mapping (n_samples, n_features) observations to a square dissimilarity matrix.
    overwrite : bool, default=False
        Replace an existing metric with the same name.

    Returns:
    --------
    Metric
        The registered metric.
    """
    if not callable(func):
        raise ConfigurationError(f"Metric '{name}' must be callable, got {type(func)}")
    if name in _METRICS and not overwrite:
        raise ConfigurationError(f"Metric '{name}' is already registered. Use overwrite=True to replace it.")
    metric = Metric(name, func)
    _METRICS[name] = metric
    return metric


def get_metric(metric: Union[str, Metric]) -> Metric:
    """Look up a metric by name; Metric instances are returned unchanged."""
    if isinstance(metric, Metric):
        return metric
    if metric not in _METRICS:
        raise ConfigurationError(f"Unknown metric: {metric}. "
                                 f"Available options: {available_metrics()}")
    return _METRICS[metric]


def available_metrics() -> List[str]:
    """Names of all registered metrics."""
    return sorted(_METRICS)


def pairwise_dissimilarity(
    matrix: np.ndarray,
    metric: Union[str, Metric] = 'pearson',
    sample_idx: Optional[np.ndarray] = None,
    feature_idx: Optional[np.ndarray] = None
) -> np.ndarray:
    """Convenience wrapper: look up `metric` and apply it to the selected samples."""
    return get_metric(metric)(matrix, sample_idx, feature_idx)


register_metric('euclidean', _scipy_metric('euclidean'))
register_metric('pearson', _pearson)
register_metric('spearman', _spearman)
register_metric('manhattan', _scipy_metric('cityblock'))
register_metric('maximum', _scipy_metric('chebyshev'))
register_metric('canberra', _scipy_metric('canberra'))
register_metric('cosine', _scipy_metric('cosine'))
register_metric('binary', _binary)
