import numpy as np
import pandas as pd
import pytest
from sklearn.datasets import make_blobs


@pytest.fixture
def three_blobs():
    """Three tight, well-separated 20-sample blobs as a genes x samples matrix."""
    X, y = make_blobs(
        n_samples=60,
        n_features=20,
        centers=3,
        cluster_std=0.3,
        center_box=(-10.0, 10.0),
        random_state=1
    )
    return X.T, y


@pytest.fixture
def three_blobs_frame(three_blobs):
    expression, y = three_blobs
    samples = [f"S{i:02d}" for i in range(expression.shape[1])]
    genes = [f"G{i:02d}" for i in range(expression.shape[0])]
    return pd.DataFrame(expression, index=genes, columns=samples), y


@pytest.fixture
def block_consensus():
    """Perfect consensus matrix for labels [0, 0, 0, 1, 1, 2]."""
    labels = np.array([0, 0, 0, 1, 1, 2])
    C = (labels[:, None] == labels[None, :]).astype(float)
    return C, labels


@pytest.fixture
def random_expression():
    rng = np.random.default_rng(7)
    return rng.normal(size=(40, 30))
