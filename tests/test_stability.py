import numpy as np
import pandas as pd
import pytest

from consclust.exceptions import ConfigurationError
from consclust.metrics.stability import (
    StabilitySelector,
    cdf_area,
    consensus_cdf,
    consensus_values,
    delta_area,
    pac
)


@pytest.fixture
def three_value_consensus():
    C = np.eye(3)
    C[0, 1] = C[1, 0] = 0.0
    C[0, 2] = C[2, 0] = 0.5
    C[1, 2] = C[2, 1] = 1.0
    return C


def test_consensus_values_upper_triangle(three_value_consensus):
    np.testing.assert_array_equal(consensus_values(three_value_consensus), [0.0, 0.5, 1.0])


def test_consensus_cdf(three_value_consensus):
    grid, cdf = consensus_cdf(three_value_consensus)
    np.testing.assert_allclose(grid, [0.0, 0.5, 1.0])
    np.testing.assert_allclose(cdf, [1 / 3, 2 / 3, 1.0])


def block_matrix(sizes):
    labels = np.repeat(np.arange(len(sizes)), sizes)
    return (labels[:, None] == labels[None, :]).astype(float)


def test_cdf_area_trapezoid(three_value_consensus):
    # Step CDF over {0, 0.5, 1}: 1/3 on [0, 0.5) and 2/3 on [0.5, 1)
    assert cdf_area(three_value_consensus) == pytest.approx(0.5)
    assert cdf_area(three_value_consensus) == pytest.approx(1 - consensus_values(three_value_consensus).mean())


def test_cdf_area_grid_in_unit_interval(three_value_consensus):
    area = cdf_area(three_value_consensus, method='grid', n_bins=100)
    assert area == pytest.approx(0.5, abs=0.01)


@pytest.mark.parametrize('method, tolerance', [('trapezoid', 1e-12), ('grid', 0.01)])
def test_cdf_area_perfectly_stable(method, tolerance):
    assert cdf_area(np.ones((10, 10)), method=method) == pytest.approx(0.0, abs=tolerance)


@pytest.mark.parametrize('method, tolerance', [('trapezoid', 1e-12), ('grid', 0.01)])
def test_cdf_area_never_together(method, tolerance):
    assert cdf_area(np.eye(10), method=method) == pytest.approx(1.0, abs=tolerance)


@pytest.mark.parametrize('method, tolerance', [('trapezoid', 1e-12), ('grid', 0.01)])
def test_cdf_area_block_matrix(method, tolerance):
    # 15 pairs, 3 + 1 of them within a block
    C = block_matrix([3, 2, 1])
    assert cdf_area(C, method=method) == pytest.approx(1 - 4 / 15, abs=tolerance)


def test_block_matrices_recommend_flattening_point():
    # Equal blocks of m samples out of 60 give A(k) = (60 - m) / 59
    matrices = {k: block_matrix([60 // k] * k) for k in (2, 3, 4, 5)}
    report = StabilitySelector(delta_threshold=0.1).score(matrices)

    np.testing.assert_allclose(report.curve['area'], [30 / 59, 40 / 59, 45 / 59, 48 / 59])
    assert report.deltas[3] == pytest.approx(1 / 3)
    assert report.deltas[4] == pytest.approx(0.125)
    assert report.deltas[5] == pytest.approx(1 / 15)
    assert report.recommended_k == 4


def test_cdf_area_unknown_method(three_value_consensus):
    with pytest.raises(ConfigurationError):
        cdf_area(three_value_consensus, method='simpson')


def test_delta_area():
    deltas = delta_area({2: 0.5, 3: 0.75, 4: 0.8})
    assert np.isnan(deltas[2])
    assert deltas[3] == pytest.approx(0.5)
    assert deltas[4] == pytest.approx(0.05 / 0.75)


def test_delta_area_zero_previous_is_nan():
    deltas = delta_area({2: 0.0, 3: 0.4})
    assert np.isnan(deltas[3])


def test_pac(three_value_consensus):
    assert pac(three_value_consensus) == pytest.approx(1 / 3)
    assert pac(np.eye(3)) == 0.0
    with pytest.raises(ConfigurationError):
        pac(three_value_consensus, lower=0.9, upper=0.1)


def test_recommend_flattening_point():
    selector = StabilitySelector(delta_threshold=0.1)
    assert selector.recommend({2: float('nan'), 3: 0.5, 4: 0.05, 5: 0.01}) == 3
    assert selector.recommend({2: float('nan'), 3: 0.5, 4: 0.4}) == 4


def test_score_exposes_full_curve(three_value_consensus):
    block = np.array([[1.0, 1.0, 0.0], [1.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
    report = StabilitySelector().score({2: block, 3: three_value_consensus})

    assert isinstance(report.curve, pd.DataFrame)
    assert list(report.curve.columns) == ['k', 'area', 'delta_area', 'pac']
    assert list(report.curve['k']) == [2, 3]
    assert report.curve['area'].between(0, 1).all()
    assert np.isnan(report.deltas[2])
    assert report.recommended_k in (2, 3)
    assert set(report.areas) == {2, 3}


def test_selector_validation():
    with pytest.raises(ConfigurationError):
        StabilitySelector(delta_threshold=-1)
    with pytest.raises(ConfigurationError):
        StabilitySelector(area_method='riemann')
    with pytest.raises(ValueError):
        StabilitySelector().score({})
