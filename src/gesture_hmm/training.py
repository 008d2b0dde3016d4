"""Training: synthesize a noisy corpus from a prototype and fit an HMM.

Each gesture class is defined by a single hand-drawn prototype. Training
data is made by jittering every point of the prototype with Gaussian noise,
many times over, then parametrizing the copies and concatenating them into
one long observation sequence for Baum-Welch.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np

from gesture_hmm.algorithms import TrainingResult, baum_welch
from gesture_hmm.config import EngineConfig
from gesture_hmm.hmm import HMM, ModelBank, blr_init
from gesture_hmm.parametrize import parametrize_training_set
from gesture_hmm.sequence import PointSequence
from gesture_hmm.storage import GesturePrototype

logger = logging.getLogger("gesture_hmm.training")


def add_awgn(
    proto: PointSequence,
    noise_std: tuple[float, float],
    rng: np.random.Generator,
) -> PointSequence:
    """Return a copy of `proto` with zero-mean Gaussian noise on every point.

    Noise is truncated toward zero before being added to the integer coordinates.
    """
    base = proto.to_array()
    noise = rng.normal(0.0, noise_std, size=base.shape)
    return PointSequence((base + np.trunc(noise)).astype(np.int64))


def make_training_set(
    proto: PointSequence,
    num: int,
    noise_std: tuple[float, float] = (4.0, 6.0),
    rng: Optional[np.random.Generator] = None,
) -> list[PointSequence]:
    """Generate `num` noisy variants of a prototype trajectory."""
    if num < 0:
        raise ValueError(f"num must be >= 0, got {num}")
    rng = rng if rng is not None else np.random.default_rng()
    return [add_awgn(proto, noise_std, rng) for _ in range(num)]


def model_from_prototype(
    prototype: GesturePrototype,
    config: Optional[EngineConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> tuple[HMM, TrainingResult]:
    """Build and train a left-right HMM from one gesture prototype."""
    config = config or EngineConfig()
    if rng is None:
        rng = np.random.default_rng(config.seed)

    model = blr_init(prototype.N, config.num_symbols, config.p_stay, config.p_advance)
    variants = make_training_set(
        prototype.seq, config.training_sequences, config.noise_std, rng
    )
    observations = parametrize_training_set(variants, config.num_symbols)

    result = baum_welch(
        model,
        observations,
        max_iter=config.max_iterations,
        threshold=config.convergence_threshold,
    )
    logger.info(
        "Trained %s: N=%d, %d observations, %d iteration(s), loglik=%.2f%s",
        prototype.name or "model",
        model.N,
        len(observations),
        result.iterations,
        result.log_likelihood,
        " (converged)" if result.converged else "",
    )
    return model, result


def train_bank(
    prototypes: Iterable[GesturePrototype],
    config: Optional[EngineConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> ModelBank:
    """Train one model per prototype. Model i is gesture class i."""
    config = config or EngineConfig()
    if rng is None:
        rng = np.random.default_rng(config.seed)

    bank = ModelBank()
    for proto in prototypes:
        model, _ = model_from_prototype(proto, config, rng)
        bank.add(model)
    return bank
