import numpy as np
import pytest

from consclust.utils import assign_consistently, get_membership


def test_get_membership():
    matrix, unique = get_membership(['x', 'y', 'x', 'z'])
    np.testing.assert_array_equal(unique, ['x', 'y', 'z'])
    np.testing.assert_array_equal(matrix, [[1, 0, 0], [0, 1, 0], [1, 0, 0], [0, 0, 1]])
    co = matrix @ matrix.T
    assert co[0, 2] == 1
    assert co[0, 1] == 0


def test_assign_consistently_swaps_labels():
    ref = np.array([0, 0, 1, 1, 2, 2])
    v = np.array([2, 2, 0, 0, 1, 1])
    np.testing.assert_array_equal(assign_consistently(ref, v), ref)


def test_assign_consistently_new_cluster_gets_new_label():
    ref = np.array([0, 0, 0, 0, 1, 1, 1, 1])
    v = np.array([1, 1, 2, 2, 0, 0, 0, 0])
    aligned = assign_consistently(ref, v)
    np.testing.assert_array_equal(aligned[4:], [1, 1, 1, 1])
    assert aligned[0] == aligned[1]
    assert aligned[2] == aligned[3]
    assert set(aligned[:4]) == {0, 2}


def test_assign_consistently_shape_mismatch():
    with pytest.raises(ValueError):
        assign_consistently([0, 1], [0, 1, 1])
