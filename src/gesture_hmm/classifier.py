"""Maximum-likelihood gesture classification against a model bank."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from gesture_hmm.algorithms import score
from gesture_hmm.hmm import HMM, ModelBank
from gesture_hmm.parametrize import NUM_SYMBOLS, parametrize

logger = logging.getLogger("gesture_hmm.classifier")

NO_MATCH = -1


@dataclass
class ClassificationResult:
    """Winning class index (or NO_MATCH) with per-model diagnostics."""
    index: int
    scores: list[float] = field(default_factory=list)  # NaN marks a rejected score

    @property
    def matched(self) -> bool:
        return self.index != NO_MATCH

    @property
    def best_score(self) -> Optional[float]:
        return self.scores[self.index] if self.matched else None


class GestureClassifier:
    """Scores an observation sequence against every model and picks the best.

    A log-likelihood above `max_valid_score` cannot come from a proper
    probability model and means the scoring went numerically wrong; such
    scores (and NaN) are never selected. If no model yields a finite valid
    score the result is NO_MATCH.
    """

    def __init__(
        self,
        models: Optional[ModelBank | Iterable[HMM]] = None,
        num_symbols: int = NUM_SYMBOLS,
        max_valid_score: float = 1.0,
        model_path: Optional[str | Path] = None,
    ):
        self.num_symbols = num_symbols
        self.max_valid_score = max_valid_score
        if isinstance(models, ModelBank):
            self._bank = models
        else:
            self._bank = ModelBank(list(models or []))

        for i, model in enumerate(self._bank):
            if model.M != num_symbols:
                raise ValueError(
                    f"Model {i} emits {model.M} symbols, classifier expects {num_symbols}"
                )

        if model_path:
            self.load_models(model_path)

    def load_models(self, path: str | Path):
        """Replace the bank with models read from a file.

        Raises ModelFileError if a model is over a different alphabet.
        """
        self._bank = ModelBank.load(path, self.num_symbols)

    @property
    def models(self) -> ModelBank:
        return self._bank

    def is_valid(self, value: float) -> bool:
        return not math.isnan(value) and value <= self.max_valid_score

    def classify(self, observations) -> ClassificationResult:
        """Classify a parametrized observation sequence."""
        if len(observations) == 0 or len(self._bank) == 0:
            logger.debug("Nothing to classify (%d observations, %d models)",
                         len(observations), len(self._bank))
            return ClassificationResult(index=NO_MATCH)

        scores: list[float] = []
        best_index, best = NO_MATCH, float("-inf")

        for i, model in enumerate(self._bank):
            ll = score(model, observations)
            if not self.is_valid(ll):
                ll = float("nan")
            scores.append(ll)
            if not math.isnan(ll) and ll > best:
                best_index, best = i, ll

        logger.debug(
            "Scores: %s → %d",
            " ".join(f"{i}={s:.2f}" for i, s in enumerate(scores)),
            best_index,
        )
        return ClassificationResult(index=best_index, scores=scores)

    def classify_sequence(self, points) -> ClassificationResult:
        """Parametrize a point trajectory and classify it."""
        return self.classify(parametrize(points, self.num_symbols))
