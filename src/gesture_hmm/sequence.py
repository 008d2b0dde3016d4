"""Point sequences — the trajectory buffer shared by capture and training.

A PointSequence is an ordered list of integer pixel coordinates, index 0
being the earliest point. The capture state machine fills one while a
gesture is being traced; the training synthesizer builds noisy copies of a
prototype.
"""

from __future__ import annotations

from typing import Iterable, Iterator, NamedTuple

import numpy as np


class Point(NamedTuple):
    """An integer (x, y) pixel coordinate."""
    x: int
    y: int

    @classmethod
    def of(cls, value) -> Point:
        """Coerce a pair (tuple, list, array row) to a Point."""
        x, y = value
        return cls(int(x), int(y))


class PointSequence:
    """Ordered, growable buffer of 2D points.

    Usage:
        seq = PointSequence()
        seq.add((10, 20))
        seq.remove_tail(5)
        arr = seq.to_array()   # shape (n, 2), float64
        seq = seq.reset()      # fresh empty buffer
    """

    def __init__(self, points: Iterable = ()):
        self._points: list[Point] = [Point.of(p) for p in points]

    @classmethod
    def from_points(cls, points: Iterable) -> PointSequence:
        return cls(points)

    def add(self, point) -> None:
        """Append a point at the tail."""
        self._points.append(Point.of(point))

    def remove_tail(self, count: int) -> None:
        """Drop the last `count` points. No-op if count exceeds the length."""
        if count <= 0 or count > len(self._points):
            return
        del self._points[-count:]

    def reset(self) -> PointSequence:
        """Return a new empty buffer.

        The receiver is left untouched so that a trajectory handed out
        earlier stays valid; callers must rebind to the returned instance.
        """
        return PointSequence()

    def to_array(self) -> np.ndarray:
        """Export as an (n, 2) float64 array of (x, y) pairs."""
        if not self._points:
            return np.zeros((0, 2), dtype=np.float64)
        return np.array(self._points, dtype=np.float64)

    def copy(self) -> PointSequence:
        return PointSequence(self._points)

    @property
    def points(self) -> tuple[Point, ...]:
        return tuple(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)

    def __getitem__(self, index: int) -> Point:
        return self._points[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, PointSequence):
            return NotImplemented
        return self._points == other._points

    def __repr__(self) -> str:
        return f"PointSequence(len={len(self._points)})"
