"""
Consensus clustering over a range of candidate cluster counts.

This module provides the entry procedure that resamples an expression matrix,
clusters every subsample with a base algorithm, tallies pairwise co-assignment
into consensus matrices and scores their stability across k.
"""

import numbers
import threading
import warnings
from functools import reduce
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from joblib import Parallel, delayed, effective_n_jobs
from tqdm import tqdm

from ..exceptions import ConfigurationError, DegeneratePartitionWarning, FitCancelled
from ..metrics.distances import Metric, get_metric, observations_view
from ..metrics.metrics import cluster_consensus, consensus_silhouette, item_consensus
from ..metrics.stability import StabilityReport, StabilitySelector
from ..pipelines.resampling import SubsampleDraw, Subsampler
from ..utils import assign_consistently
from ..validation.checks import check_expression_matrix, check_k_range, check_n_resamples
from .accumulator import CoOccurrenceAccumulator
from .base import HierarchicalClusterer, cut_tree, get_clusterer


class ConsensusResult:
    """
    Consensus clustering result for one candidate k.

    Attributes:
    -----------
    k : int
        Candidate cluster count.
    consensus_matrix : np.ndarray
        (N, N) co-assignment frequencies in [0, 1], diagonal 1.
    labels : np.ndarray
        Final labels 0..k-1 from hierarchical clustering of 1 - consensus_matrix.
    linkage_matrix : np.ndarray
        Linkage matrix of the final hierarchical clustering.
    together, total : np.ndarray
        Raw co-assignment and co-sampling counts.
    n_resamples : int
        Number of repetitions folded into the counts.
    n_degenerate : int
        Repetitions whose base partition had fewer than k distinct labels.
    """

    def __init__(
        self,
        k: int,
        consensus_matrix: np.ndarray,
        labels: np.ndarray,
        linkage_matrix: np.ndarray,
        together: np.ndarray,
        total: np.ndarray,
        n_resamples: int,
        n_degenerate: int
    ):
        self.k = k
        self.consensus_matrix = consensus_matrix
        self.labels = labels
        self.linkage_matrix = linkage_matrix
        self.together = together
        self.total = total
        self.n_resamples = n_resamples
        self.n_degenerate = n_degenerate

    @property
    def distance_matrix(self) -> np.ndarray:
        """Consensus dissimilarity 1 - C with a zero diagonal."""
        D = 1.0 - self.consensus_matrix
        np.fill_diagonal(D, 0.0)
        return D

    def __repr__(self) -> str:
        return (f"ConsensusResult(k={self.k}, n_samples={len(self.labels)}, "
                f"n_clusters={len(np.unique(self.labels))}, "
                f"n_resamples={self.n_resamples}, n_degenerate={self.n_degenerate})")


class ConsensusClustering:
    """
    Resampling-based consensus clustering of samples in an expression matrix.

    For every k in [k_min, k_max] the samples are repeatedly subsampled, each
    subsample is clustered with a base algorithm, and the fraction of
    repetitions in which two samples were co-assigned (among those in which
    both were drawn) forms the consensus matrix. The final labels for k come
    from hierarchical clustering of 1 - consensus. The stability of the
    consensus matrices across k is summarised by the area under their CDF and
    its relative increase between consecutive k.

    Key Features:
    - Pluggable distance metric and base algorithm (k-means, PAM, hierarchical)
    - Optional feature subsampling
    - Reproducible results for a given seed, independent of n_jobs
    - Stability curve with an advisory recommended k
    - Item and cluster consensus, consensus silhouette
    """

    def __init__(
        self,
        k_min: int = 2,
        k_max: int = 6,
        n_resamples: int = 100,
        p_item: float = 0.8,
        p_feature: float = 1.0,
        metric: Union[str, Metric] = 'pearson',
        algorithm: Union[str, Any] = 'hc',
        inner_linkage: str = 'average',
        final_linkage: str = 'average',
        random_state: Optional[int] = None,
        n_jobs: Optional[int] = 1,
        delta_threshold: float = 0.1,
        area_method: str = 'trapezoid',
        verbose: bool = False
    ):
        """
        Initialize the ConsensusClustering.

        Parameters:
        -----------
        k_min : int, default=2
            Smallest candidate cluster count (>= 2).
        k_max : int, default=6
            Largest candidate cluster count (>= k_min).
        n_resamples : int, default=100
            Number of resampling repetitions per k.
        p_item : float, default=0.8
            Fraction of samples drawn per repetition, in (0, 1].
        p_feature : float, default=1.0
            Fraction of features drawn per repetition, in (0, 1].
        metric : str or Metric, default='pearson'
            Distance metric for the subsamples. Options: 'euclidean', 'pearson',
            'spearman', 'manhattan', 'maximum', 'canberra', 'cosine', 'binary'
            or any registered metric. Ignored by coordinate-based algorithms (k-means).
        algorithm : str or object, default='hc'
            Base clustering algorithm. Options:
            - 'hc' / 'hierarchical': agglomerative clustering with `inner_linkage`
            - 'pam': partitioning around medoids
            - 'km' / 'kmeans': k-means on the expression profiles
            - any object with `input_type` and `fit_predict(data, k, random_state)`
        inner_linkage : str, default='average'
            Linkage of the base hierarchical clustering.
        final_linkage : str, default='average'
            Linkage used to cluster 1 - consensus into the final labels.
        random_state : int, optional
            Top-level seed. If None, a seed is drawn once and stored in `seed_`.
        n_jobs : int, optional, default=1
            Number of worker threads for the repetitions of one k. -1 uses all cores.
        delta_threshold : float, default=0.1
            Relative CDF area increase under which the stability curve is
            considered flat, used for the advisory `recommended_k`.
        area_method : str, default='trapezoid'
            Integration of the consensus CDF: 'trapezoid' or 'grid'.
        verbose : bool, default=False
            Show a progress bar over k and a summary line per k.
        """
        self.k_min, self.k_max = check_k_range(k_min, k_max)
        self.n_resamples = check_n_resamples(n_resamples)
        self.subsampler = Subsampler(p_item=p_item, p_feature=p_feature)
        self.p_item = self.subsampler.p_item
        self.p_feature = self.subsampler.p_feature
        self.metric = metric
        self.algorithm = algorithm
        self.inner_linkage = inner_linkage
        self.final_linkage = final_linkage
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.delta_threshold = delta_threshold
        self.area_method = area_method
        self.verbose = verbose

        # Resolve pluggable components now so that bad names fail before fitting
        self.metric_ = get_metric(metric)
        self.clusterer_ = get_clusterer(algorithm, linkage_method=inner_linkage)
        self.final_clusterer_ = HierarchicalClusterer(linkage_method=final_linkage)
        self.selector_ = StabilitySelector(delta_threshold=delta_threshold, area_method=area_method)

        if random_state is not None:
            if not isinstance(random_state, numbers.Integral) or random_state < 0:
                raise ConfigurationError(f"random_state must be a non-negative integer, got {random_state}")
            self.random_state = int(random_state)

        if n_jobs is not None and (not isinstance(n_jobs, numbers.Integral) or n_jobs == 0):
            raise ConfigurationError(f"n_jobs must be a non-zero integer or None, got {n_jobs}")

        # Results storage
        self.results_ = {}
        self.stability_ = None
        self.sample_names_ = None
        self.seed_ = None
        self.is_fitted_ = False

    def get_params(self) -> Dict[str, Any]:
        """Constructor parameters of this instance."""
        return {
            'k_min': self.k_min,
            'k_max': self.k_max,
            'n_resamples': self.n_resamples,
            'p_item': self.p_item,
            'p_feature': self.p_feature,
            'metric': self.metric,
            'algorithm': self.algorithm,
            'inner_linkage': self.inner_linkage,
            'final_linkage': self.final_linkage,
            'random_state': self.random_state,
            'n_jobs': self.n_jobs,
            'delta_threshold': self.delta_threshold,
            'area_method': self.area_method,
            'verbose': self.verbose
        }

    def fit(
        self,
        expression: Union[np.ndarray, pd.DataFrame],
        stop_event: Optional[threading.Event] = None
    ) -> 'ConsensusClustering':
        """
        Run consensus clustering for every k in [k_min, k_max].

        Parameters:
        -----------
        expression : np.ndarray or pd.DataFrame
            Normalized, feature-selected expression matrix with genes in rows and
            samples in columns. DataFrame columns are used as sample names.
        stop_event : threading.Event, optional
            When set, the fit stops at the next repetition or k boundary and raises
            FitCancelled. Results of completed k stay in `results_`; the
            interrupted k is discarded.

        Returns:
        --------
        self : ConsensusClustering
            Returns self for method chaining.
        """
        values, sample_names = check_expression_matrix(expression, self.k_max, self.p_item)

        if self.random_state is None:
            self.seed_ = int(np.random.SeedSequence().entropy)
        else:
            self.seed_ = self.random_state

        # Clear previous results
        self.results_ = {}
        self.stability_ = None
        self.sample_names_ = sample_names
        self.is_fitted_ = False

        k_iter = range(self.k_min, self.k_max + 1)
        if self.verbose:
            k_iter = tqdm(k_iter, desc='Consensus clustering', unit='k')

        for k in k_iter:
            self._check_stop(stop_event)
            result = self._fit_k(values, k, stop_event)
            self.results_[k] = result

            if self.verbose:
                sizes = np.bincount(result.labels)
                print(f"k={k}: cluster sizes {sizes.tolist()}, "
                      f"{result.n_degenerate}/{result.n_resamples} degenerate repetitions")

        self.stability_ = self.selector_.score(
            {k: result.consensus_matrix for k, result in self.results_.items()}
        )
        self.is_fitted_ = True
        return self

    def _check_stop(self, stop_event: Optional[threading.Event]):
        if stop_event is not None and stop_event.is_set():
            raise FitCancelled(
                f"Consensus clustering cancelled after completing k={sorted(self.results_)}",
                completed_k=sorted(self.results_)
            )

    def _fit_k(
        self,
        values: np.ndarray,
        k: int,
        stop_event: Optional[threading.Event]
    ) -> ConsensusResult:
        """Resample, accumulate and derive the final labels for one k."""
        batches = self._batch_ranges()

        if len(batches) == 1:
            outputs = [self._run_batch(values, k, start, stop, stop_event) for start, stop in batches]
        else:
            outputs = Parallel(n_jobs=self.n_jobs, prefer='threads')(
                delayed(self._run_batch)(values, k, start, stop, stop_event)
                for start, stop in batches
            )

        # A batch returns None when it was stopped; the whole k is discarded
        self._check_stop(stop_event)
        if any(output is None for output in outputs):
            raise FitCancelled(f"Consensus clustering cancelled during k={k}",
                               completed_k=sorted(self.results_))

        accumulator = reduce(lambda a, b: a.merge(b), [acc for acc, _ in outputs])
        n_degenerate = sum(n for _, n in outputs)

        if n_degenerate > 0:
            warnings.warn(
                f"{n_degenerate} of {self.n_resamples} repetitions for k={k} produced fewer "
                f"than {k} clusters; their co-assignments are still counted.",
                DegeneratePartitionWarning
            )

        consensus_matrix = accumulator.consensus()
        D = 1.0 - consensus_matrix
        linkage_matrix = self.final_clusterer_.linkage(D)
        labels = cut_tree(linkage_matrix, k)

        return ConsensusResult(
            k=k,
            consensus_matrix=consensus_matrix,
            labels=labels,
            linkage_matrix=linkage_matrix,
            together=accumulator.together,
            total=accumulator.total,
            n_resamples=accumulator.n_updates,
            n_degenerate=n_degenerate
        )

    def _batch_ranges(self) -> List[Tuple[int, int]]:
        """Split the repetitions into contiguous batches, a few per worker."""
        n_workers = 1 if self.n_jobs is None else effective_n_jobs(self.n_jobs)
        if n_workers <= 1:
            return [(0, self.n_resamples)]
        n_batches = min(self.n_resamples, n_workers * 4)
        bounds = np.linspace(0, self.n_resamples, n_batches + 1).astype(int)
        return [(int(a), int(b)) for a, b in zip(bounds[:-1], bounds[1:]) if b > a]

    def _run_batch(
        self,
        values: np.ndarray,
        k: int,
        start: int,
        stop: int,
        stop_event: Optional[threading.Event]
    ) -> Optional[Tuple[CoOccurrenceAccumulator, int]]:
        """Run repetitions [start, stop) of k into a local accumulator."""
        n_features, n_samples = values.shape
        accumulator = CoOccurrenceAccumulator(n_samples)
        n_degenerate = 0

        for draw in self.subsampler.split(n_samples, n_features, k, self.n_resamples, self.seed_, start, stop):
            if stop_event is not None and stop_event.is_set():
                return None
            labels = self._partition(values, draw)
            if len(np.unique(labels)) < k:
                n_degenerate += 1
            accumulator.update(labels, draw.sample_idx)

        return accumulator, n_degenerate

    def _partition(self, values: np.ndarray, draw: SubsampleDraw) -> np.ndarray:
        """Cluster the samples of one draw into k groups."""
        if self.clusterer_.input_type == 'coordinates':
            data = observations_view(values, draw.sample_idx, draw.feature_idx)
        else:
            data = self.metric_(values, draw.sample_idx, draw.feature_idx)

        labels = np.asarray(self.clusterer_.fit_predict(data, draw.k, random_state=draw.random_state))
        if len(labels) != len(draw.sample_idx):
            raise ValueError(
                f"Clustering algorithm returned {len(labels)} labels for {len(draw.sample_idx)} samples"
            )
        return labels

    def _get_result(self, k: int) -> ConsensusResult:
        if k not in self.results_:
            if not self.results_:
                raise ValueError("Consensus clustering has not been fitted yet. Call fit() first.")
            raise ValueError(f"k={k} not found. Available k: {sorted(self.results_)}")
        return self.results_[k]

    def get_result(self, k: int) -> ConsensusResult:
        """Full result (consensus matrix, labels, counts) for one k."""
        return self._get_result(k)

    def get_consensus_matrix(self, k: int) -> np.ndarray:
        """Consensus matrix for k, values in [0, 1] with a unit diagonal."""
        return self._get_result(k).consensus_matrix.copy()

    def get_distance_matrix(self, k: int) -> np.ndarray:
        """Consensus dissimilarity 1 - C for k, as used by silhouette validation."""
        return self._get_result(k).distance_matrix

    def get_labels(self, k: int) -> pd.Series:
        """Final cluster labels for k, indexed by sample name."""
        return pd.Series(self._get_result(k).labels, index=self.sample_names_, name=k)

    def get_stability(self) -> StabilityReport:
        """Stability curve over k (area under CDF, delta area, PAC) and the advisory recommended k."""
        if self.stability_ is None:
            raise ValueError("Consensus clustering has not been fitted yet. Call fit() first.")
        return self.stability_

    def labels_frame(self, align: bool = True) -> pd.DataFrame:
        """
        Final labels of every k as a samples x k frame.

        Parameters:
        -----------
        align : bool, default=True
            Relabel each k to best match the labels of k-1, so that a cluster
            keeps its label while new clusters split off.

        Returns:
        --------
        pd.DataFrame
            One column per k, indexed by sample name.
        """
        if not self.results_:
            raise ValueError("Consensus clustering has not been fitted yet. Call fit() first.")

        columns = {}
        previous = None
        for k in sorted(self.results_):
            labels = self.results_[k].labels
            if align and previous is not None:
                labels = assign_consistently(previous, labels)
            columns[k] = labels
            previous = labels

        return pd.DataFrame(columns, index=self.sample_names_)

    def item_consensus(self, k: int) -> pd.DataFrame:
        """Mean consensus of each sample with the members of each final cluster for k."""
        result = self._get_result(k)
        return item_consensus(result.consensus_matrix, result.labels, sample_names=self.sample_names_)

    def cluster_consensus(self, k: int) -> Dict[int, float]:
        """Mean within-cluster consensus of each final cluster for k."""
        result = self._get_result(k)
        return cluster_consensus(result.consensus_matrix, result.labels)

    def silhouette(self, k: int) -> pd.Series:
        """Silhouette width of each sample on 1 - consensus with the final labels for k."""
        result = self._get_result(k)
        widths = consensus_silhouette(result.consensus_matrix, result.labels)
        return pd.Series(widths, index=self.sample_names_, name=k)

    def __repr__(self) -> str:
        return (f"ConsensusClustering(k_range=[{self.k_min}, {self.k_max}], "
                f"n_resamples={self.n_resamples}, p_item={self.p_item}, "
                f"p_feature={self.p_feature}, metric={self.metric!r}, "
                f"algorithm={self.algorithm!r}, fitted={self.is_fitted_})")
