import numpy as np
import pandas as pd
import pytest

from consclust import ConsensusClustering
from consclust.exceptions import ConfigurationError, DegenerateInputError
from consclust.validation import check_expression_matrix, check_k_range, subsample_size


@pytest.mark.parametrize('k_min, k_max', [(1, 3), (0, 2), (4, 3)])
def test_invalid_k_range(k_min, k_max):
    with pytest.raises(ConfigurationError):
        check_k_range(k_min, k_max)
    with pytest.raises(ConfigurationError):
        ConsensusClustering(k_min=k_min, k_max=k_max)


@pytest.mark.parametrize('kwargs', [
    {'p_item': 0.0},
    {'p_item': 1.01},
    {'p_feature': 0.0},
    {'n_resamples': 0},
    {'metric': 'not-a-metric'},
    {'algorithm': 'not-an-algorithm'},
    {'inner_linkage': 'not-a-linkage'},
    {'final_linkage': 'not-a-linkage'},
    {'random_state': -1},
    {'random_state': 1.5},
    {'random_state': np.random.RandomState(0)},
    {'n_jobs': 0},
    {'n_jobs': 'all'},
    {'delta_threshold': -0.5},
])
def test_invalid_configuration_fails_at_construction(kwargs):
    with pytest.raises(ConfigurationError):
        ConsensusClustering(**kwargs)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        ConsensusClustering(k_min=1)


def test_non_finite_values():
    matrix = np.ones((5, 6))
    matrix[2, 3] = np.nan
    with pytest.raises(DegenerateInputError):
        check_expression_matrix(matrix, k_max=3)
    matrix[2, 3] = np.inf
    with pytest.raises(DegenerateInputError):
        ConsensusClustering(k_max=3).fit(matrix)


def test_not_two_dimensional():
    with pytest.raises(DegenerateInputError):
        check_expression_matrix(np.ones(10), k_max=2)


def test_k_max_exceeding_sample_count_fails_before_fitting(random_expression):
    model = ConsensusClustering(k_min=2, k_max=31, n_resamples=5)
    with pytest.raises(DegenerateInputError):
        model.fit(random_expression)
    assert model.results_ == {}
    assert not model.is_fitted_


def test_subsample_smaller_than_k_max(random_expression):
    # 30 samples, p_item=0.1 draws 3
    with pytest.raises(ConfigurationError):
        ConsensusClustering(k_min=2, k_max=4, p_item=0.1).fit(random_expression)


def test_sample_names_from_frame():
    frame = pd.DataFrame(np.arange(12.0).reshape(3, 4), columns=list('wxyz'))
    values, names = check_expression_matrix(frame, k_max=2)
    assert names == ['w', 'x', 'y', 'z']
    assert values.shape == (3, 4)


def test_subsample_size():
    assert subsample_size(10, 0.7) == 7
    assert subsample_size(10, 0.71) == 8
    assert subsample_size(3, 0.01) == 1


def test_numpy_integer_seed_accepted():
    model = ConsensusClustering(random_state=np.int64(7), n_jobs=np.int32(2))
    assert model.random_state == 7
    assert isinstance(model.random_state, int)
