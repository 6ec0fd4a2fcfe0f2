"""
Co-occurrence accumulation for consensus clustering.

For every pair of samples the accumulator counts the repetitions in which
both were drawn (`total`) and those in which they were also assigned the
same label (`together`). Counts are integers, so merging accumulators is
exact and independent of the order in which partial results arrive.
"""

import numpy as np
from typing import List, Union

from ..utils import get_membership


class CoOccurrenceAccumulator:
    """
    Pairwise co-sampling and co-assignment counts over N samples.

    Parameters:
    -----------
    n_samples : int
        Total number of samples N.

    Attributes:
    -----------
    together : np.ndarray
        (N, N) int64 counts of repetitions where i and j were drawn and co-assigned.
    total : np.ndarray
        (N, N) int64 counts of repetitions where i and j were both drawn.
    n_updates : int
        Number of partitions folded in.
    """

    def __init__(self, n_samples: int):
        self.n_samples = int(n_samples)
        self.together = np.zeros((self.n_samples, self.n_samples), dtype=np.int64)
        self.total = np.zeros((self.n_samples, self.n_samples), dtype=np.int64)
        self.n_updates = 0

    def update(self, labels: Union[np.ndarray, List[int]], sample_idx: np.ndarray) -> 'CoOccurrenceAccumulator':
        """
        Fold one partition of a subsample into the counts.

        Parameters:
        -----------
        labels : array-like
            Label of each drawn sample; arbitrary values, only equality matters.
        sample_idx : np.ndarray
            Indices of the drawn samples in the full matrix, aligned with `labels`.

        Returns:
        --------
        self : CoOccurrenceAccumulator
        """
        sample_idx = np.asarray(sample_idx)
        if len(labels) != len(sample_idx):
            raise ValueError(f"Got {len(labels)} labels for {len(sample_idx)} drawn samples")
        if len(np.unique(sample_idx)) != len(sample_idx):
            raise ValueError("Drawn sample indices must be unique")

        membership, _ = get_membership(labels)
        block = np.ix_(sample_idx, sample_idx)
        self.total[block] += 1
        self.together[block] += membership @ membership.T
        self.n_updates += 1
        return self

    def merge(self, other: 'CoOccurrenceAccumulator') -> 'CoOccurrenceAccumulator':
        """Add the counts of another accumulator over the same samples (in place)."""
        if other.n_samples != self.n_samples:
            raise ValueError(f"Cannot merge accumulators over {self.n_samples} and {other.n_samples} samples")
        self.together += other.together
        self.total += other.total
        self.n_updates += other.n_updates
        return self

    def __add__(self, other: 'CoOccurrenceAccumulator') -> 'CoOccurrenceAccumulator':
        result = CoOccurrenceAccumulator(self.n_samples)
        result.merge(self)
        result.merge(other)
        return result

    def consensus(self) -> np.ndarray:
        """
        Consensus matrix together / total.

        Pairs that were never drawn together get 0, and the diagonal is 1.

        Returns:
        --------
        np.ndarray
            (N, N) float matrix with values in [0, 1].
        """
        C = np.zeros((self.n_samples, self.n_samples), dtype=float)
        mask = self.total > 0
        C[mask] = self.together[mask] / self.total[mask]
        np.fill_diagonal(C, 1.0)
        return C

    def __repr__(self) -> str:
        return f"CoOccurrenceAccumulator(n_samples={self.n_samples}, n_updates={self.n_updates})"
