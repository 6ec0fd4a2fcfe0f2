import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Union
from sklearn.metrics import silhouette_samples

def consensus_silhouette(consensus_matrix: np.ndarray, labels: Union[np.ndarray, List[int]]) -> np.ndarray:
    """
    Calculate per-sample silhouette widths on the consensus dissimilarity 1 - C.

    Parameters:
    -----------
    consensus_matrix : np.ndarray
        Square consensus matrix with values in [0, 1].
    labels : array-like
        Cluster label per sample.

    Returns:
    --------
    np.ndarray
        Silhouette width per sample, in [-1, 1].
    """

    C = np.asarray(consensus_matrix, dtype=float)
    labels = np.asarray(labels)
    n_labels = len(np.unique(labels))
    if not 2 <= n_labels <= len(labels) - 1:
        raise ValueError(f"Silhouette needs between 2 and n_samples - 1 clusters, got {n_labels}")

    D = 1.0 - C
    D = (D + D.T) / 2
    np.fill_diagonal(D, 0.0)

    return silhouette_samples(D, labels, metric='precomputed')

def item_consensus(
    consensus_matrix: np.ndarray,
    labels: Union[np.ndarray, List[int]],
    sample_names: Optional[List] = None
) -> pd.DataFrame:
    """
    Calculate the mean consensus of each item with the members of each cluster.

    The item itself is excluded from its own cluster's members. Clusters with no
    other member get NaN for that item.

    Parameters:
    -----------
    consensus_matrix : np.ndarray
        Square consensus matrix.
    labels : array-like
        Cluster label per sample.
    sample_names : list, optional
        Index for the returned frame.

    Returns:
    --------
    pd.DataFrame
        Items x clusters frame of mean consensus values.
    """

    C = np.asarray(consensus_matrix, dtype=float)
    labels = np.asarray(labels)
    clusters = np.unique(labels)
    n = len(labels)

    values = np.full((n, len(clusters)), np.nan)
    for j, cluster_id in enumerate(clusters):
        members = labels == cluster_id
        sums = C[:, members].sum(axis=1)
        counts = np.full(n, members.sum(), dtype=float)
        # exclude self-consensus for members of this cluster
        sums[members] -= np.diag(C)[members]
        counts[members] -= 1
        with np.errstate(divide='ignore', invalid='ignore'):
            values[:, j] = np.where(counts > 0, sums / counts, np.nan)

    index = sample_names if sample_names is not None else np.arange(n)
    return pd.DataFrame(values, index=index, columns=clusters)

def cluster_consensus(consensus_matrix: np.ndarray, labels: Union[np.ndarray, List[int]]) -> Dict:
    """
    Calculate the mean pairwise consensus within each cluster.

    Parameters:
    -----------
    consensus_matrix : np.ndarray
        Square consensus matrix.
    labels : array-like
        Cluster label per sample.

    Returns:
    --------
    Dict
        Mapping from cluster label to mean within-cluster consensus (1.0 for singletons).
    """

    C = np.asarray(consensus_matrix, dtype=float)
    labels = np.asarray(labels)

    scores = {}
    for cluster_id in np.unique(labels):
        idx = np.where(labels == cluster_id)[0]
        if len(idx) <= 1:
            scores[cluster_id.item()] = 1.0
            continue
        block = C[np.ix_(idx, idx)]
        scores[cluster_id.item()] = float(np.mean(block[np.triu_indices_from(block, k=1)]))

    return scores
