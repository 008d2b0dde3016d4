"""Core HMM algorithms: scaled forward/backward and Baum-Welch re-estimation.

Both recursions rescale every time step to sum to 1 so long observation
sequences do not underflow. The forward scale factors c_t are the
conditional likelihoods P(o_t | o_1..o_{t-1}), so the sequence
log-likelihood is sum(log c_t).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from gesture_hmm.hmm import HMM, make_stochastic, normalise

logger = logging.getLogger("gesture_hmm.algorithms")

EPS = float(np.finfo(np.float64).eps)
MAX_ITER = 10
THRESHOLD = 1e-4


@dataclass
class TrainingResult:
    """Outcome of a Baum-Welch run."""
    iterations: int = 0
    log_likelihood: float = float("-inf")
    converged: bool = False
    history: list[float] = field(default_factory=list)  # log-likelihood per iteration


def _as_observations(model: HMM, observations) -> np.ndarray:
    obs = np.asarray(observations, dtype=np.int64).reshape(-1)
    if obs.size and (obs.min() < 0 or obs.max() >= model.M):
        raise ValueError(
            f"Observation symbols must lie in [0, {model.M}), "
            f"got range [{obs.min()}, {obs.max()}]"
        )
    return obs


def forward(model: HMM, observations) -> tuple[float, np.ndarray]:
    """Scaled forward algorithm.

    Returns:
        (log_likelihood, alpha) where alpha has shape (T, N) and every row
        sums to 1 (or is all-zero once the sequence became impossible).
        An impossible sequence has log-likelihood -inf; an empty one 0.
    """
    obs = _as_observations(model, observations)
    T, N = len(obs), model.N
    emit = model.b.T  # (M, N): row o holds P(o | state)

    alpha = np.zeros((T, N), dtype=np.float64)
    scale = np.zeros(T, dtype=np.float64)

    for t, o in enumerate(obs):
        if t == 0:
            curr = model.pi * emit[o]
        else:
            curr = (alpha[t - 1] @ model.A) * emit[o]
        scale[t] = curr.sum()
        alpha[t] = normalise(curr)

    with np.errstate(divide="ignore"):
        ll = float(np.log(scale).sum())
    return ll, alpha


def score(model: HMM, observations) -> float:
    """Log-likelihood of `observations` under `model`."""
    ll, _ = forward(model, observations)
    return ll


def forward_backward(model: HMM, observations) -> tuple[np.ndarray, np.ndarray, float]:
    """Forward-backward pass computing the E-step quantities.

    Returns:
        gamma: (T, N) state-occupation posteriors, each row normalised.
        xi_sum: (N, N) transition posteriors summed over t = 0..T-2, each
            time step normalised before summing.
        log_likelihood: as returned by `forward`.
    """
    obs = _as_observations(model, observations)
    ll, alpha = forward(model, obs)
    T, N = len(obs), model.N
    emit = model.b.T

    gamma = np.zeros((T, N), dtype=np.float64)
    xi_sum = np.zeros((N, N), dtype=np.float64)
    if T == 0:
        return gamma, xi_sum, ll

    beta = np.ones(N, dtype=np.float64)
    gamma[T - 1] = normalise(alpha[T - 1] * beta)

    for t in range(T - 2, -1, -1):
        weighted = beta * emit[obs[t + 1]]
        beta = normalise(model.A @ weighted)
        gamma[t] = normalise(alpha[t] * beta)
        xi_sum += normalise(model.A * np.outer(alpha[t], weighted))

    return gamma, xi_sum, ll


def check_convergence(curr: float, prev: float, threshold: float = THRESHOLD) -> bool:
    """Relative log-likelihood change below `threshold`."""
    delta = abs(curr - prev)
    avg = (abs(curr) + abs(prev) + EPS) / 2
    return delta / avg < threshold


def baum_welch(
    model: HMM,
    observations,
    max_iter: int = MAX_ITER,
    threshold: float = THRESHOLD,
) -> TrainingResult:
    """Re-estimate `model` in place from a single observation sequence.

    Sequences that were concatenated for training are treated as one long
    chain. Zero transitions stay zero, so a left-right topology is kept.
    """
    obs = _as_observations(model, observations)
    result = TrainingResult()
    if len(obs) == 0:
        logger.warning("Baum-Welch called with an empty observation sequence")
        return result

    N, M = model.N, model.M
    prev_ll = EPS
    ll = float("-inf")

    for iteration in range(max_iter):
        gamma, xi_sum, ll = forward_backward(model, obs)

        # Expected emissions, gathered per symbol then transposed to (N, M)
        emissions = np.zeros((M, N), dtype=np.float64)
        np.add.at(emissions, obs, gamma)

        model.A = make_stochastic(xi_sum)
        model.b = make_stochastic(np.ascontiguousarray(emissions.T))
        model.pi = normalise(gamma[0].copy())

        result.iterations = iteration + 1
        result.history.append(ll)
        logger.debug("Baum-Welch iteration %d: loglik=%.4f", result.iterations, ll)

        if check_convergence(ll, prev_ll, threshold):
            result.converged = True
            break
        prev_ll = ll

    result.log_likelihood = ll
    return result
