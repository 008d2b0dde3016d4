"""Tests for the point sequence buffer."""

import numpy as np
import pytest

from gesture_hmm.sequence import Point, PointSequence


def make_line(n=5, step=10):
    return PointSequence([(i * step, 0) for i in range(n)])


class TestPoint:
    def test_of_tuple(self):
        assert Point.of((3, 4)) == Point(3, 4)

    def test_of_numpy_row(self):
        p = Point.of(np.array([7.0, 9.0]))
        assert p == (7, 9)
        assert isinstance(p.x, int)

    def test_immutable(self):
        p = Point(1, 2)
        with pytest.raises(AttributeError):
            p.x = 5


class TestPointSequence:
    def test_starts_empty(self):
        seq = PointSequence()
        assert len(seq) == 0
        assert seq.to_array().shape == (0, 2)

    def test_add_preserves_order(self):
        seq = PointSequence()
        seq.add((1, 1))
        seq.add((2, 3))
        assert seq[0] == Point(1, 1)
        assert seq[-1] == Point(2, 3)
        assert list(seq) == [Point(1, 1), Point(2, 3)]

    def test_remove_tail(self):
        seq = make_line(8)
        seq.remove_tail(3)
        assert len(seq) == 5
        assert seq[-1] == Point(40, 0)

    def test_remove_tail_entire_length(self):
        seq = make_line(4)
        seq.remove_tail(4)
        assert len(seq) == 0

    def test_remove_tail_too_many_is_noop(self):
        seq = make_line(3)
        seq.remove_tail(5)
        assert len(seq) == 3

    def test_remove_tail_zero(self):
        seq = make_line(3)
        seq.remove_tail(0)
        assert len(seq) == 3

    def test_reset_returns_fresh_buffer(self):
        seq = make_line(4)
        fresh = seq.reset()
        assert len(fresh) == 0
        assert fresh is not seq
        # Old buffer still holds its points for whoever kept a reference
        assert len(seq) == 4

    def test_to_array(self):
        seq = PointSequence([(1, 2), (3, 4)])
        arr = seq.to_array()
        assert arr.dtype == np.float64
        np.testing.assert_array_equal(arr, [[1.0, 2.0], [3.0, 4.0]])

    def test_copy_is_independent(self):
        seq = make_line(3)
        dup = seq.copy()
        dup.add((99, 99))
        assert len(seq) == 3
        assert len(dup) == 4

    def test_equality(self):
        assert make_line(3) == make_line(3)
        assert make_line(3) != make_line(4)

    def test_points_tuple(self):
        seq = make_line(2)
        assert seq.points == (Point(0, 0), Point(10, 0))
