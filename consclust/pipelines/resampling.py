"""
Resampling of samples and features for consensus clustering.

Each repetition draws a subsample of samples (and optionally of features)
without replacement. The random stream of a repetition is derived from the
top-level seed and its (k, repetition) key, so draws are reproducible
regardless of the order in which repetitions are executed.
"""

import numpy as np
from typing import Iterator, Optional

from ..validation.checks import check_fraction, subsample_size

__all__ = [
    'derive_rng',
    'SubsampleDraw',
    'Subsampler'
]


def derive_rng(seed: int, k: int, repetition: int) -> np.random.Generator:
    """
    Random generator for one (k, repetition) unit.

    Parameters:
    -----------
    seed : int
        Top-level seed of the run.
    k : int
        Candidate cluster count.
    repetition : int
        Repetition index within k.

    Returns:
    --------
    np.random.Generator
        Generator whose stream depends only on (seed, k, repetition).
    """
    sequence = np.random.SeedSequence(entropy=seed, spawn_key=(int(k), int(repetition)))
    return np.random.default_rng(sequence)


class SubsampleDraw:
    """
    Sample and feature indices selected for one repetition.

    Attributes:
    -----------
    sample_idx : np.ndarray
        Sorted column indices of the drawn samples.
    feature_idx : np.ndarray
        Sorted row indices of the drawn features.
    k : int
        Candidate cluster count the draw belongs to.
    repetition : int
        Repetition index within k.
    random_state : int
        Seed handed to the base clustering algorithm for this repetition.
    """

    def __init__(
        self,
        sample_idx: np.ndarray,
        feature_idx: np.ndarray,
        k: int,
        repetition: int,
        random_state: int
    ):
        self.sample_idx = sample_idx
        self.feature_idx = feature_idx
        self.k = k
        self.repetition = repetition
        self.random_state = random_state

    def __repr__(self) -> str:
        return (f"SubsampleDraw(k={self.k}, repetition={self.repetition}, "
                f"n_samples={len(self.sample_idx)}, n_features={len(self.feature_idx)})")


class Subsampler:
    """
    Draws random subsets of samples and features without replacement.

    Parameters:
    -----------
    p_item : float, default=0.8
        Fraction of samples drawn per repetition (0 < p_item <= 1).
        ceil(p_item * n_samples) samples are drawn.
    p_feature : float, default=1.0
        Fraction of features drawn per repetition (0 < p_feature <= 1).
        All features are used when p_feature == 1.
    """

    def __init__(self, p_item: float = 0.8, p_feature: float = 1.0):
        self.p_item = check_fraction(p_item, 'p_item')
        self.p_feature = check_fraction(p_feature, 'p_feature')

    def draw(
        self,
        n_samples: int,
        n_features: int,
        rng: np.random.Generator,
        k: int = 0,
        repetition: int = 0
    ) -> SubsampleDraw:
        """
        Draw one subsample.

        Parameters:
        -----------
        n_samples : int
            Total number of samples.
        n_features : int
            Total number of features.
        rng : np.random.Generator
            Random source for this repetition.
        k : int, default=0
            Candidate cluster count, stored on the draw.
        repetition : int, default=0
            Repetition index, stored on the draw.

        Returns:
        --------
        SubsampleDraw
        """
        n_drawn = subsample_size(n_samples, self.p_item)
        sample_idx = np.sort(rng.choice(n_samples, size=n_drawn, replace=False))

        if self.p_feature < 1.0:
            n_feat = subsample_size(n_features, self.p_feature)
            feature_idx = np.sort(rng.choice(n_features, size=n_feat, replace=False))
        else:
            feature_idx = np.arange(n_features)

        random_state = int(rng.integers(0, 2**31 - 1))

        return SubsampleDraw(sample_idx, feature_idx, k, repetition, random_state)

    def split(
        self,
        n_samples: int,
        n_features: int,
        k: int,
        n_resamples: int,
        seed: int,
        start: int = 0,
        stop: Optional[int] = None
    ) -> Iterator[SubsampleDraw]:
        """
        Generate the draws of repetitions [start, stop) for one k.

        Parameters:
        -----------
        n_samples, n_features : int
            Matrix dimensions.
        k : int
            Candidate cluster count.
        n_resamples : int
            Total number of repetitions for k.
        seed : int
            Top-level seed.
        start, stop : int, optional
            Repetition range to generate; the full range by default.

        Yields:
        -------
        SubsampleDraw
        """
        stop = n_resamples if stop is None else min(stop, n_resamples)
        for repetition in range(start, stop):
            rng = derive_rng(seed, k, repetition)
            yield self.draw(n_samples, n_features, rng, k=k, repetition=repetition)

    def __repr__(self) -> str:
        return f"Subsampler(p_item={self.p_item}, p_feature={self.p_feature})"
