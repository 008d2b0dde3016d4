"""Discrete left-to-right HMMs and the model bank.

An HMM here is the triple (A, b, pi) over N hidden states and M observation
symbols:

    A  (N, N)  transition probabilities, row-stochastic
    b  (N, M)  emission probabilities per state, row-stochastic
    pi (N,)    initial state distribution

Gesture models use the bounded left-right ("Bakis") topology: every state
either stays or advances to the next one, and the last state is absorbing.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import numpy as np


def normalise(x: np.ndarray) -> np.ndarray:
    """Scale an array so its entries sum to 1 (in place). Zero sum is left as is."""
    total = x.sum()
    x /= total if total else 1.0
    return x


def make_stochastic(m: np.ndarray) -> np.ndarray:
    """Normalise every row of a matrix to sum to 1 (in place).

    All-zero rows are divided by 1 and stay all-zero.
    """
    sums = m.sum(axis=1, keepdims=True)
    m /= np.where(sums == 0, 1.0, sums)
    return m


@dataclass(eq=False)
class HMM:
    """A discrete HMM with N states and M symbols."""
    A: np.ndarray
    b: np.ndarray
    pi: np.ndarray

    def __post_init__(self):
        self.A = np.array(self.A, dtype=np.float64)
        self.b = np.array(self.b, dtype=np.float64)
        self.pi = np.array(self.pi, dtype=np.float64).reshape(-1)

        n = self.A.shape[0] if self.A.ndim == 2 else -1
        if n < 1 or self.A.shape != (n, n):
            raise ValueError(f"A must be a non-empty square matrix, got shape {self.A.shape}")
        if self.b.ndim != 2 or self.b.shape[0] != n or self.b.shape[1] < 1:
            raise ValueError(f"b must have shape ({n}, M), got {self.b.shape}")
        if self.pi.shape != (n,):
            raise ValueError(f"pi must have {n} entries, got {self.pi.shape[0]}")

    @property
    def N(self) -> int:
        return self.A.shape[0]

    @property
    def M(self) -> int:
        return self.b.shape[1]

    def loglik(self, observations) -> float:
        """Log-likelihood of an observation sequence under this model."""
        from gesture_hmm.algorithms import forward

        ll, _ = forward(self, observations)
        return ll

    def train(
        self,
        observations,
        max_iter: int = 10,
        threshold: float = 1e-4,
    ):
        """Re-estimate parameters in place with Baum-Welch. Returns TrainingResult."""
        from gesture_hmm.algorithms import baum_welch

        return baum_welch(self, observations, max_iter=max_iter, threshold=threshold)

    def copy(self) -> HMM:
        return HMM(A=self.A.copy(), b=self.b.copy(), pi=self.pi.copy())

    def is_left_right(self, atol: float = 0.0) -> bool:
        """True if A only allows staying or advancing by one state."""
        n = self.N
        allowed = np.eye(n, dtype=bool) | np.eye(n, k=1, dtype=bool)
        return bool(np.all(np.abs(self.A[~allowed]) <= atol))

    def to_text(self, precision: int = 2) -> str:
        """Human-readable dump of pi, A and b."""
        fmt = f"{{:.{precision}f}}"
        lines = ["pi:", "  ".join(fmt.format(v) for v in self.pi), "", "A:"]
        lines.extend(" ".join(fmt.format(v) for v in row) for row in self.A)
        lines.extend(["", "b:"])
        lines.extend("  ".join(fmt.format(v) for v in row) for row in self.b)
        return "\n".join(lines)


def blr_init(N: int, M: int, p_stay: float = 0.8, p_advance: float = 0.2) -> HMM:
    """Create a bounded left-right HMM with default parameters.

    Example for N=4, M=3 (x = p_stay, y = p_advance):

            | x y 0 0 |
        A = | 0 x y 0 |    b = 1/3 everywhere    pi = | 1 0 0 0 |
            | 0 0 x y |
            | 0 0 0 1 |
    """
    if N < 1 or M < 1:
        raise ValueError(f"N and M must be >= 1, got N={N}, M={M}")
    if not (0.0 <= p_stay <= 1.0 and 0.0 <= p_advance <= 1.0):
        raise ValueError("p_stay and p_advance must be probabilities")

    A = np.zeros((N, N), dtype=np.float64)
    for i in range(N - 1):
        A[i, i] = p_stay
        A[i, i + 1] = p_advance
    A[N - 1, N - 1] = 1.0

    b = np.full((N, M), 1.0 / M, dtype=np.float64)
    pi = np.zeros(N, dtype=np.float64)
    pi[0] = 1.0
    return HMM(A=A, b=b, pi=pi)


class ModelBank:
    """Ordered collection of gesture HMMs. The index is the gesture class."""

    def __init__(self, models: Optional[list[HMM]] = None):
        self._models: list[HMM] = list(models or [])

    def add(self, model: HMM) -> int:
        """Append a model. Returns its class index."""
        self._models.append(model)
        return len(self._models) - 1

    @classmethod
    def load(cls, path: str | Path, num_symbols: Optional[int] = None) -> ModelBank:
        """Load a bank from a model file (see gesture_hmm.storage).

        With `num_symbols`, models over a different alphabet are rejected.
        """
        from gesture_hmm.storage import read_models

        return cls(read_models(path, num_symbols))

    def save(self, path: str | Path):
        from gesture_hmm.storage import write_models

        write_models(path, self._models)

    @property
    def models(self) -> list[HMM]:
        return list(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[HMM]:
        return iter(self._models)

    def __getitem__(self, index: int) -> HMM:
        return self._models[index]
