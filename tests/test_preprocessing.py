import numpy as np
import pandas as pd
import pytest

from consclust.preprocessing import center_rows, mad, select_top_mad


@pytest.fixture
def expression_frame():
    return pd.DataFrame(
        [
            [1.0, 1.0, 1.0, 1.0],
            [0.0, 10.0, 20.0, 30.0],
            [0.0, 1.0, 2.0, 3.0],
        ],
        index=['flat', 'wide', 'narrow'],
        columns=['s1', 's2', 's3', 's4']
    )


def test_mad_per_gene(expression_frame):
    scores = mad(expression_frame)
    assert scores['flat'] == 0.0
    assert scores['wide'] == pytest.approx(10.0)
    assert scores['narrow'] == pytest.approx(1.0)


def test_select_top_mad_frame(expression_frame):
    selected = select_top_mad(expression_frame, 2)
    assert list(selected.index) == ['wide', 'narrow']
    assert list(selected.columns) == ['s1', 's2', 's3', 's4']


def test_select_top_mad_array(expression_frame):
    selected = select_top_mad(expression_frame.to_numpy(), 1)
    np.testing.assert_array_equal(selected, expression_frame.loc[['wide']].to_numpy())


def test_select_top_mad_keeps_all_when_fewer(expression_frame):
    assert select_top_mad(expression_frame, 10).shape == (3, 4)
    with pytest.raises(ValueError):
        select_top_mad(expression_frame, 0)


def test_center_rows(expression_frame):
    centered = center_rows(expression_frame)
    np.testing.assert_allclose(centered.median(axis=1), 0.0)
    assert list(centered.index) == list(expression_frame.index)

    centered_mean = center_rows(expression_frame.to_numpy(), how='mean')
    np.testing.assert_allclose(centered_mean.mean(axis=1), 0.0)

    with pytest.raises(ValueError):
        center_rows(expression_frame, how='mode')
