import numpy as np
import pytest

from consclust.clustering.accumulator import CoOccurrenceAccumulator


def test_update_counts_pairs():
    acc = CoOccurrenceAccumulator(4)
    acc.update([0, 0, 1], np.array([0, 1, 3]))

    assert acc.total[0, 1] == 1
    assert acc.total[0, 3] == 1
    assert acc.total[0, 2] == 0
    assert acc.together[0, 1] == 1
    assert acc.together[0, 3] == 0
    np.testing.assert_array_equal(acc.total, acc.total.T)
    np.testing.assert_array_equal(acc.together, acc.together.T)
    assert np.all(acc.together <= acc.total)


def test_labels_are_arbitrary_values():
    acc = CoOccurrenceAccumulator(3)
    acc.update(['b', 'a', 'b'], np.array([0, 1, 2]))
    assert acc.together[0, 2] == 1
    assert acc.together[0, 1] == 0


def test_consensus_values():
    acc = CoOccurrenceAccumulator(4)
    acc.update([0, 0, 1], np.array([0, 1, 2]))
    acc.update([5, 5, 5], np.array([0, 1, 2]))
    acc.update([1, 2], np.array([0, 1]))

    C = acc.consensus()
    assert C[0, 1] == pytest.approx(2 / 3)
    assert C[0, 2] == pytest.approx(1 / 2)
    # sample 3 was never drawn
    assert C[0, 3] == 0.0
    assert np.all(np.diag(C) == 1.0)
    assert np.all((C >= 0) & (C <= 1))
    np.testing.assert_allclose(C, C.T)


def test_never_co_sampled_pairs_are_zero_not_nan():
    acc = CoOccurrenceAccumulator(4)
    acc.update([0, 0], np.array([0, 1]))
    acc.update([0, 0], np.array([2, 3]))
    C = acc.consensus()
    assert np.all(np.isfinite(C))
    assert C[0, 2] == 0.0
    assert C[1, 3] == 0.0
    assert C[0, 1] == 1.0


def test_merge_matches_sequential_updates():
    rng = np.random.default_rng(3)
    partitions = []
    for _ in range(9):
        idx = np.sort(rng.choice(10, size=6, replace=False))
        partitions.append((rng.integers(0, 3, size=6), idx))

    sequential = CoOccurrenceAccumulator(10)
    for labels, idx in partitions:
        sequential.update(labels, idx)

    parts = [CoOccurrenceAccumulator(10) for _ in range(3)]
    for i, (labels, idx) in enumerate(partitions):
        parts[i % 3].update(labels, idx)

    left = (parts[0] + parts[1]) + parts[2]
    right = parts[2] + (parts[1] + parts[0])

    for merged in (left, right):
        np.testing.assert_array_equal(merged.together, sequential.together)
        np.testing.assert_array_equal(merged.total, sequential.total)
        assert merged.n_updates == 9


def test_update_validates_input():
    acc = CoOccurrenceAccumulator(3)
    with pytest.raises(ValueError):
        acc.update([0, 1], np.array([0, 1, 2]))
    with pytest.raises(ValueError):
        acc.update([0, 1], np.array([1, 1]))
    with pytest.raises(ValueError):
        acc.merge(CoOccurrenceAccumulator(4))
