"""Posture-triggered trajectory capture.

Turns a per-frame stream of (posture, centroid) pairs into a clean point
trajectory. Closing the hand arms the machine, keeping it closed traces the
gesture, and opening it for a few frames ends the attempt:

    STOP ──closed──▶ START ──closed×3──▶ COLLECT ──not closed×3──▶ STOP

While collecting, centroids closer than `min_step` to the last accepted
point (jitter) or farther than `max_step` (tracking spikes) are dropped.
An attempt with fewer than `min_points` accepted points is discarded;
otherwise the last `trim_points` points, traced while the hand was opening,
are trimmed and the trajectory is reported ready.

Usage:
    machine = CaptureStateMachine()
    # In frame loop:
    if machine.update(posture, centroid):
        trajectory = machine.sequence
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Optional

from gesture_hmm.config import EngineConfig
from gesture_hmm.sequence import Point, PointSequence

logger = logging.getLogger("gesture_hmm.capture")


class Posture(Enum):
    """Hand posture label produced by the external posture classifier."""
    OPEN = "open"
    CLOSED = "closed"
    UNKNOWN = "unknown"


class CaptureState(Enum):
    STOP = "stop"
    START = "start"
    COLLECT = "collect"


class CaptureStateMachine:
    """Extracts gesture trajectories from a posture/centroid frame stream.

    All counters live on the instance; feed it from exactly one frame loop.
    """

    def __init__(
        self,
        arm_frames: int = 3,
        release_frames: int = 3,
        min_step: float = 4.0,
        max_step: float = 100.0,
        min_points: int = 10,
        trim_points: int = 5,
    ):
        self.arm_frames = arm_frames
        self.release_frames = release_frames
        self.min_step = min_step
        self.max_step = max_step
        self.min_points = min_points
        self.trim_points = trim_points

        self.sequence = PointSequence()
        self._state = CaptureState.STOP
        self._closed_count = 0
        self._miss_count = 0
        self._accepted = 0
        self._anchor: Optional[Point] = None

    @classmethod
    def from_config(cls, config: EngineConfig) -> CaptureStateMachine:
        return cls(
            arm_frames=config.arm_frames,
            release_frames=config.release_frames,
            min_step=config.min_step,
            max_step=config.max_step,
            min_points=config.min_points,
            trim_points=config.trim_points,
        )

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def accepted(self) -> int:
        """Points accepted during the current (or last) attempt."""
        return self._accepted

    @property
    def anchor(self) -> Optional[Point]:
        return self._anchor

    def update(self, posture: Posture, centroid) -> bool:
        """Feed one frame. Returns True when a finished trajectory is ready.

        When True, `self.sequence` holds the trimmed trajectory until the next
        attempt starts.
        """
        closed = posture == Posture.CLOSED
        point = Point.of(centroid)

        if self._state == CaptureState.STOP:
            if closed:
                self._state = CaptureState.START
                self.sequence = self.sequence.reset()
                self._accepted = 0
                self._miss_count = 0
                logger.debug("capture: STOP → START at %s", point)
            self._closed_count = 0
            return False

        if self._state == CaptureState.START:
            if not closed:
                self._closed_count = 0
                return False
            self._closed_count += 1
            if self._closed_count >= self.arm_frames:
                self._state = CaptureState.COLLECT
                self._closed_count = 0
                self._anchor = point
                logger.debug("capture: START → COLLECT, anchor %s", point)
            return False

        # COLLECT
        if closed:
            self._miss_count = 0
            dist = math.hypot(point.x - self._anchor.x, point.y - self._anchor.y)
            if self.min_step <= dist <= self.max_step:
                self.sequence.add(point)
                self._anchor = point
                self._accepted += 1
            return False

        self._miss_count += 1
        if self._miss_count < self.release_frames:
            return False

        self._state = CaptureState.STOP
        if self._accepted >= self.min_points:
            self.sequence.remove_tail(self.trim_points)
            logger.debug(
                "capture: COLLECT → STOP, trajectory ready (%d points)", len(self.sequence)
            )
            return True

        logger.debug("capture: COLLECT → STOP, aborted (%d points)", self._accepted)
        return False

    def reset(self):
        """Return to STOP and discard any partial trajectory."""
        self.sequence = PointSequence()
        self._state = CaptureState.STOP
        self._closed_count = 0
        self._miss_count = 0
        self._accepted = 0
        self._anchor = None
