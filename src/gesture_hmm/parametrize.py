"""Trajectory parametrization: points → quantized direction symbols.

Each pair of consecutive points is reduced to the direction of the step
between them, quantized to one of `num_symbols` sectors. Absolute position
and step length are discarded, so the observation sequence depends only on
the shape of the gesture, not on where or how large it was traced.

With the default 8 symbols, 0 = +x, 2 = +y, 4 = −x, 6 = −y (image
coordinates, so 2 points down the screen).
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from gesture_hmm.sequence import PointSequence

NUM_SYMBOLS = 8


def _as_array(points) -> np.ndarray:
    if isinstance(points, PointSequence):
        return points.to_array()
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 2), dtype=np.float64)
    return arr.reshape(-1, 2)


def quantize_angles(theta: np.ndarray, num_symbols: int = NUM_SYMBOLS) -> np.ndarray:
    """Quantize angles in degrees [0, 360) to symbols in [0, num_symbols).

    Rounds half to even; 360° wraps to symbol 0.
    """
    step = 360.0 / num_symbols
    return (np.rint(theta / step).astype(np.int64)) % num_symbols


def parametrize(points, num_symbols: int = NUM_SYMBOLS) -> np.ndarray:
    """Convert a point sequence to its observation sequence.

    Args:
        points: PointSequence, (n, 2) array or list of (x, y) pairs.
        num_symbols: Alphabet size M.

    Returns:
        Int array of length n − 1 (empty for n ≤ 1).
    """
    arr = _as_array(points)
    if len(arr) < 2:
        return np.zeros(0, dtype=np.int64)

    diffs = np.diff(arr, axis=0)
    theta = np.degrees(np.arctan2(diffs[:, 1], diffs[:, 0])) % 360.0
    return quantize_angles(theta, num_symbols)


def parametrize_training_set(
    sequences: Iterable, num_symbols: int = NUM_SYMBOLS
) -> np.ndarray:
    """Parametrize every sequence and lay the results end to end."""
    parts = [parametrize(seq, num_symbols) for seq in sequences]
    if not parts:
        return np.zeros(0, dtype=np.int64)
    return np.concatenate(parts)
