"""
Stability scoring of consensus matrices across candidate cluster counts.

For each k the empirical CDF of the off-diagonal consensus values is computed
and summarised by the area under it. The relative increase of that area from
k-1 to k flattens once additional clusters stop adding stability, which is
what the selector reports. The choice of k stays with the caller: the full
curve is always returned alongside the advisory recommendation.
"""

import numpy as np
import pandas as pd
from scipy.integrate import trapezoid
from typing import Dict, Mapping, Optional, Tuple

from ..exceptions import ConfigurationError

__all__ = [
    'consensus_values',
    'consensus_cdf',
    'cdf_area',
    'delta_area',
    'pac',
    'StabilityReport',
    'StabilitySelector'
]


def consensus_values(consensus_matrix: np.ndarray) -> np.ndarray:
    """Upper-triangle (i < j) entries of a consensus matrix."""
    C = np.asarray(consensus_matrix, dtype=float)
    if C.ndim != 2 or C.shape[0] != C.shape[1]:
        raise ValueError(f"Consensus matrix must be square, got shape {C.shape}")
    return C[np.triu_indices_from(C, k=1)]


def consensus_cdf(
    consensus_matrix: np.ndarray,
    grid: Optional[np.ndarray] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Empirical CDF of the off-diagonal consensus values.

    Parameters:
    -----------
    consensus_matrix : np.ndarray
        Square consensus matrix with values in [0, 1].
    grid : np.ndarray, optional
        Points at which to evaluate the CDF. Defaults to 0, the sorted distinct
        consensus values and 1.

    Returns:
    --------
    Tuple[np.ndarray, np.ndarray]
        Grid points and CDF values at those points.
    """
    values = np.sort(consensus_values(consensus_matrix))
    if grid is None:
        grid = np.unique(np.concatenate([[0.0], values, [1.0]]))
    else:
        grid = np.asarray(grid, dtype=float)

    if values.size == 0:
        return grid, np.ones_like(grid)

    cdf = np.searchsorted(values, grid, side='right') / values.size
    return grid, cdf


def cdf_area(consensus_matrix: np.ndarray, method: str = 'trapezoid', n_bins: int = 100) -> float:
    """
    Area under the consensus CDF over [0, 1].

    Parameters:
    -----------
    consensus_matrix : np.ndarray
        Square consensus matrix.
    method : str, default='trapezoid'
        - 'trapezoid': exact area of the step CDF. Each jump point is sampled
          at its left limit and at its value, so the trapezoidal rule follows
          the steps and the result equals 1 - mean(consensus values)
        - 'grid': trapezoidal rule on a regular grid of `n_bins` bins
    n_bins : int, default=100
        Number of bins for the 'grid' method.

    Returns:
    --------
    float
        Area in [0, 1].
    """
    if method == 'trapezoid':
        grid, cdf = consensus_cdf(consensus_matrix)
        values = np.sort(consensus_values(consensus_matrix))
        if values.size == 0:
            left = np.ones_like(grid)
        else:
            left = np.searchsorted(values, grid, side='left') / values.size
        grid = np.repeat(grid, 2)
        cdf = np.column_stack([left, cdf]).ravel()
    elif method == 'grid':
        if n_bins < 1:
            raise ConfigurationError(f"n_bins must be >= 1, got {n_bins}")
        grid, cdf = consensus_cdf(consensus_matrix, np.linspace(0.0, 1.0, n_bins + 1))
    else:
        raise ConfigurationError(f"Unknown area method: {method}. "
                                 f"Available options: ['trapezoid', 'grid']")

    area = float(trapezoid(cdf, grid))
    return float(np.clip(area, 0.0, 1.0))


def delta_area(areas: Mapping[int, float]) -> Dict[int, float]:
    """
    Relative increase in CDF area between consecutive k.

    delta(k) = (A(k) - A(k-1)) / A(k-1). The smallest k has no predecessor and
    gets NaN, as does any k whose predecessor area is 0 or missing.
    """
    ks = sorted(areas)
    deltas = {}
    for k in ks:
        previous = areas.get(k - 1)
        if previous is None or previous == 0:
            deltas[k] = float('nan')
        else:
            deltas[k] = float((areas[k] - previous) / previous)
    return deltas


def pac(consensus_matrix: np.ndarray, lower: float = 0.1, upper: float = 0.9) -> float:
    """Proportion of ambiguous clustering: share of consensus values in (lower, upper)."""
    if not (0 <= lower < upper <= 1):
        raise ConfigurationError(f"PAC bounds must satisfy 0 <= lower < upper <= 1, got ({lower}, {upper})")
    values = consensus_values(consensus_matrix)
    if values.size == 0:
        return 0.0
    return float(np.mean((values > lower) & (values < upper)))


class StabilityReport:
    """
    Stability curve over candidate cluster counts.

    Attributes:
    -----------
    curve : pd.DataFrame
        One row per k with columns 'k', 'area', 'delta_area' and 'pac'.
    recommended_k : int
        Advisory choice: the smallest k whose next delta area falls below
        `delta_threshold`, or the largest k if the curve never flattens.
    delta_threshold : float
        Threshold used for the recommendation.
    """

    def __init__(self, curve: pd.DataFrame, recommended_k: int, delta_threshold: float):
        self.curve = curve
        self.recommended_k = recommended_k
        self.delta_threshold = delta_threshold

    @property
    def areas(self) -> Dict[int, float]:
        return dict(zip(self.curve['k'], self.curve['area']))

    @property
    def deltas(self) -> Dict[int, float]:
        return dict(zip(self.curve['k'], self.curve['delta_area']))

    def __repr__(self) -> str:
        ks = list(self.curve['k'])
        return (f"StabilityReport(k_range=[{min(ks)}, {max(ks)}], "
                f"recommended_k={self.recommended_k}, "
                f"delta_threshold={self.delta_threshold})")


class StabilitySelector:
    """
    Scores a family of consensus matrices and recommends a cluster count.

    Parameters:
    -----------
    delta_threshold : float, default=0.1
        Relative area increase under which the curve is considered flat.
    area_method : str, default='trapezoid'
        Integration method passed to `cdf_area`.
    pac_bounds : Tuple[float, float], default=(0.1, 0.9)
        Interval used for the PAC column.
    """

    def __init__(
        self,
        delta_threshold: float = 0.1,
        area_method: str = 'trapezoid',
        pac_bounds: Tuple[float, float] = (0.1, 0.9)
    ):
        if delta_threshold < 0:
            raise ConfigurationError(f"delta_threshold must be >= 0, got {delta_threshold}")
        if area_method not in ('trapezoid', 'grid'):
            raise ConfigurationError(f"Unknown area method: {area_method}. "
                                     f"Available options: ['trapezoid', 'grid']")
        self.delta_threshold = float(delta_threshold)
        self.area_method = area_method
        self.pac_bounds = tuple(pac_bounds)

    def score(self, consensus_by_k: Mapping[int, np.ndarray]) -> StabilityReport:
        """
        Compute the stability curve for the given consensus matrices.

        Parameters:
        -----------
        consensus_by_k : Mapping[int, np.ndarray]
            Consensus matrix per candidate k.

        Returns:
        --------
        StabilityReport
        """
        if not consensus_by_k:
            raise ValueError("No consensus matrices to score")

        ks = sorted(consensus_by_k)
        areas = {k: cdf_area(consensus_by_k[k], method=self.area_method) for k in ks}
        deltas = delta_area(areas)
        pacs = {k: pac(consensus_by_k[k], *self.pac_bounds) for k in ks}

        curve = pd.DataFrame({
            'k': ks,
            'area': [areas[k] for k in ks],
            'delta_area': [deltas[k] for k in ks],
            'pac': [pacs[k] for k in ks]
        })

        return StabilityReport(curve, self.recommend(deltas), self.delta_threshold)

    def recommend(self, deltas: Mapping[int, float]) -> int:
        """Smallest k such that delta(k+1) < delta_threshold; the largest k otherwise."""
        ks = sorted(deltas)
        for k in ks:
            next_delta = deltas.get(k + 1)
            if next_delta is None or np.isnan(next_delta):
                continue
            if next_delta < self.delta_threshold:
                return k
        return ks[-1]

    def __repr__(self) -> str:
        return (f"StabilitySelector(delta_threshold={self.delta_threshold}, "
                f"area_method='{self.area_method}', pac_bounds={self.pac_bounds})")
