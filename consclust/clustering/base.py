import warnings
import numpy as np
import kmedoids
from typing import Any, Dict, Optional, Union
from scipy.cluster.hierarchy import linkage, fcluster
from scipy.spatial.distance import squareform
from sklearn.cluster import KMeans
from sklearn.exceptions import ConvergenceWarning

from ..exceptions import ConfigurationError

LINKAGE_METHODS = ['single', 'complete', 'average', 'weighted', 'centroid', 'median', 'ward']


class KMeansClusterer:
    """
    K-means on sample coordinates.

    The base algorithm of the 'km' option of consensus clustering: samples of a
    subsample are clustered by their expression profiles directly, so the
    distance metric is implicitly Euclidean.

    Parameters:
    -----------
    n_init : int, default=10
        Number of k-means initializations per call.
    max_iter : int, default=300
        Maximum number of iterations per initialization.
    """

    input_type = 'coordinates'

    def __init__(self, n_init: int = 10, max_iter: int = 300):
        self.n_init = int(n_init)
        self.max_iter = int(max_iter)

    def fit_predict(self, X: np.ndarray, k: int, random_state: Optional[int] = None) -> np.ndarray:
        """Cluster the rows of X (n_samples, n_features) into k groups."""
        model = KMeans(n_clusters=k, n_init=self.n_init, max_iter=self.max_iter, random_state=random_state)
        with warnings.catch_warnings():
            # fewer distinct points than k is handled as a degenerate partition by the caller
            warnings.simplefilter('ignore', ConvergenceWarning)
            labels = model.fit_predict(X)
        return np.asarray(labels, dtype=int)

    def __repr__(self) -> str:
        return f"KMeansClusterer(n_init={self.n_init}, max_iter={self.max_iter})"


class PAMClusterer:
    """
    Partitioning Around Medoids on a dissimilarity matrix.

    Uses the BUILD initialization followed by SWAP iterations, which makes the
    result deterministic for a given dissimilarity matrix.

    Parameters:
    -----------
    max_iter : int, default=100
        Maximum number of SWAP iterations.
    """

    input_type = 'dissimilarity'

    def __init__(self, max_iter: int = 100):
        self.max_iter = int(max_iter)

    def fit_predict(self, D: np.ndarray, k: int, random_state: Optional[int] = None) -> np.ndarray:
        """Partition the items of the square dissimilarity matrix D into k groups."""
        D = np.ascontiguousarray(D, dtype=np.float64)
        result = kmedoids.pam(D, k, max_iter=self.max_iter, init='build', random_state=random_state)
        return np.asarray(result.labels, dtype=int)

    def __repr__(self) -> str:
        return f"PAMClusterer(max_iter={self.max_iter})"


class HierarchicalClusterer:
    """
    Agglomerative hierarchical clustering on a dissimilarity matrix, cut at k clusters.

    Parameters:
    -----------
    linkage_method : str, default='average'
        Method for computing the linkage. Options: 'single', 'complete', 'average',
        'weighted', 'centroid', 'median', 'ward'.
    """

    input_type = 'dissimilarity'

    def __init__(self, linkage_method: str = 'average'):
        if linkage_method not in LINKAGE_METHODS:
            raise ConfigurationError(f"Unknown linkage method: {linkage_method}. "
                                     f"Available options: {LINKAGE_METHODS}")
        self.linkage_method = linkage_method

    def linkage(self, D: np.ndarray) -> np.ndarray:
        """Linkage matrix of the square dissimilarity matrix D."""
        D = np.asarray(D, dtype=float)
        D = (D + D.T) / 2
        np.fill_diagonal(D, 0.0)
        return linkage(squareform(D, checks=False), method=self.linkage_method)

    def fit_predict(self, D: np.ndarray, k: int, random_state: Optional[int] = None) -> np.ndarray:
        """Cut the dendrogram of D into at most k clusters, labelled 0..k-1."""
        if D.shape[0] < 2:
            return np.zeros(D.shape[0], dtype=int)
        Z = self.linkage(D)
        return cut_tree(Z, k)

    def __repr__(self) -> str:
        return f"HierarchicalClusterer(linkage_method='{self.linkage_method}')"


def cut_tree(Z: np.ndarray, k: int) -> np.ndarray:
    """Cut a linkage matrix into at most k clusters, labelled 0..k-1 in order of first appearance."""
    clusters = fcluster(Z, k, criterion='maxclust')
    _, first_seen, inverse = np.unique(clusters, return_index=True, return_inverse=True)
    order = np.argsort(np.argsort(first_seen))
    return order[inverse].astype(int)


_CLUSTERERS: Dict[str, Any] = {
    'kmeans': KMeansClusterer,
    'km': KMeansClusterer,
    'pam': PAMClusterer,
    'hc': HierarchicalClusterer,
    'hierarchical': HierarchicalClusterer,
}


def available_clusterers():
    """Names of the built-in base clustering algorithms."""
    return sorted(_CLUSTERERS)


def get_clusterer(algorithm: Union[str, Any], linkage_method: str = 'average') -> Any:
    """
    Resolve a base clustering algorithm.

    Parameters:
    -----------
    algorithm : str or object
        Name of a built-in algorithm ('kmeans'/'km', 'pam', 'hc'/'hierarchical'),
        or an object with an `input_type` attribute ('coordinates' or 'dissimilarity')
        and a `fit_predict(data, k, random_state)` method.
    linkage_method : str, default='average'
        Linkage used when `algorithm` names hierarchical clustering.

    Returns:
    --------
    object
        Clusterer instance.
    """
    if isinstance(algorithm, str):
        if algorithm not in _CLUSTERERS:
            raise ConfigurationError(f"Unknown clustering algorithm: {algorithm}. "
                                     f"Available options: {available_clusterers()}")
        cls = _CLUSTERERS[algorithm]
        if cls is HierarchicalClusterer:
            return cls(linkage_method=linkage_method)
        return cls()

    if not hasattr(algorithm, 'fit_predict') or not callable(getattr(algorithm, 'fit_predict')):
        raise ConfigurationError(
            f"Clustering algorithm {algorithm!r} does not have a callable 'fit_predict' method. "
            f"Custom algorithms must implement fit_predict(data, k, random_state) -> labels."
        )
    if getattr(algorithm, 'input_type', None) not in ('coordinates', 'dissimilarity'):
        raise ConfigurationError(
            f"Clustering algorithm {algorithm!r} must declare input_type "
            f"'coordinates' or 'dissimilarity'."
        )
    return algorithm
