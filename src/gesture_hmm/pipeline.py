"""Per-frame recognition loop: posture/centroid → trajectory → gesture class."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

import numpy as np

from gesture_hmm.capture import CaptureStateMachine, Posture
from gesture_hmm.classifier import GestureClassifier, NO_MATCH
from gesture_hmm.config import EngineConfig
from gesture_hmm.hmm import HMM, ModelBank
from gesture_hmm.parametrize import parametrize
from gesture_hmm.sequence import PointSequence

logger = logging.getLogger("gesture_hmm.pipeline")


@dataclass
class GestureEvent:
    """A completed gesture attempt and its classification."""
    index: int  # class index, NO_MATCH if every model was rejected
    label: Optional[str]
    scores: list[float]
    trajectory: PointSequence
    observations: np.ndarray
    timestamp: float

    @property
    def matched(self) -> bool:
        return self.index != NO_MATCH


@dataclass
class PipelineStats:
    total_frames: int = 0
    attempts: int = 0  # trajectories that reached the classifier
    recognized: int = 0
    rejected: int = 0
    last_scores: list[float] = field(default_factory=list)


class GesturePipeline:
    """Owns one capture state machine and one classifier.

    Usage:
        pipeline = GesturePipeline(ModelBank.load("models.yml"), labels=["up", "down"])
        pipeline.on_gesture(lambda e: print(e.label))
        # In frame loop, with posture and centroid from the hand tracker:
        event = pipeline.process(posture, centroid)
    """

    def __init__(
        self,
        models: ModelBank | Iterable[HMM],
        config: Optional[EngineConfig] = None,
        labels: Optional[list[str]] = None,
    ):
        self.config = config or EngineConfig()
        self.capture = CaptureStateMachine.from_config(self.config)
        self.classifier = GestureClassifier(
            models,
            num_symbols=self.config.num_symbols,
            max_valid_score=self.config.max_valid_score,
        )
        self.labels = list(labels) if labels else None
        self._callbacks: list[Callable[[GestureEvent], None]] = []
        self._stats = PipelineStats()

    def on_gesture(self, callback: Callable[[GestureEvent], None]):
        """Register a callback for completed gesture attempts."""
        self._callbacks.append(callback)

    def label_for(self, index: int) -> Optional[str]:
        if self.labels is None or not (0 <= index < len(self.labels)):
            return None
        return self.labels[index]

    def process(
        self, posture: Posture, centroid, timestamp: Optional[float] = None
    ) -> Optional[GestureEvent]:
        """Feed one frame. Returns a GestureEvent when an attempt completes."""
        self._stats.total_frames += 1
        if not self.capture.update(posture, centroid):
            return None

        trajectory = self.capture.sequence.copy()
        observations = parametrize(trajectory, self.config.num_symbols)
        result = self.classifier.classify(observations)

        self._stats.attempts += 1
        self._stats.last_scores = list(result.scores)
        if result.matched:
            self._stats.recognized += 1
        else:
            self._stats.rejected += 1
            logger.info("Gesture attempt with %d points matched no model", len(trajectory))

        event = GestureEvent(
            index=result.index,
            label=self.label_for(result.index),
            scores=result.scores,
            trajectory=trajectory,
            observations=observations,
            timestamp=timestamp if timestamp is not None else time.monotonic(),
        )

        for cb in self._callbacks:
            cb(event)
        return event

    @property
    def stats(self) -> PipelineStats:
        return PipelineStats(
            total_frames=self._stats.total_frames,
            attempts=self._stats.attempts,
            recognized=self._stats.recognized,
            rejected=self._stats.rejected,
            last_scores=list(self._stats.last_scores),
        )

    def reset(self):
        """Clear counters and any partial trajectory."""
        self.capture.reset()
        self._stats = PipelineStats()
