import pandas as pd
import numpy as np
from scipy.optimize import linear_sum_assignment
from typing import List, Union, Tuple

def get_membership(labels: Union[np.ndarray, List[int]]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gets the one-hot membership matrix from a label array or list.

    Labels can be arbitrary values; they are encoded in sorted order.

    Parameters:
    -----------
    labels : Union[np.ndarray, List[int]]
        Membership array or list.

    Returns:
    --------
    Tuple[np.ndarray, np.ndarray]
        Membership matrix of shape (n_items, n_labels) and the unique labels
        corresponding to its columns.
    """

    unique, inverse = np.unique(np.asarray(labels), return_inverse=True)
    matrix = np.zeros([len(inverse), len(unique)], dtype=np.int64)
    matrix[np.arange(len(inverse)), inverse] = 1

    return matrix, unique

def assign_consistently(ref: Union[np.ndarray, List[int]], v: Union[np.ndarray, List[int]]) -> np.ndarray:
    """
    Relabels `v` so that its clusters match the clusters of `ref` as closely as possible.

    The matching uses the Hungarian algorithm on the contingency table normalized
    by rows and columns. Clusters of `v` that have no partner in `ref` (when `v`
    has more clusters) receive new labels after the largest label of `ref`.

    Parameters:
    -----------
    ref : Union[np.ndarray, List[int]]
        Reference labeling.
    v : Union[np.ndarray, List[int]]
        Labeling to reassign, same length as `ref`.

    Returns:
    --------
    np.ndarray
        Reassigned labels.
    """

    ref = np.asarray(ref)
    v = np.asarray(v)
    if ref.shape != v.shape:
        raise ValueError(f"ref and v must have the same shape, got {ref.shape} and {v.shape}")

    df = pd.crosstab(pd.Series(ref, name="ref"), pd.Series(v, name="reassign")).astype(float)
    df = (df.div(df.sum(axis=1), axis=0) + df.div(df.sum(axis=0), axis=1)) / 2

    rows, cols = linear_sum_assignment(df.values, maximize=True)
    mapping = {df.columns[j]: df.index[i] for i, j in zip(rows, cols)}

    next_label = int(np.max(ref)) + 1 if len(ref) else 0
    for label in df.columns:
        if label not in mapping:
            mapping[label] = next_label
            next_label += 1

    return np.array([mapping[i] for i in v])
