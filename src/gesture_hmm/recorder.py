"""Frame stream recording and replay.

Captures the (posture, centroid) pairs the hand tracker produces so that
capture and classification can be replayed without a sensor:
- Reproducible tests of the capture state machine
- Tuning capture thresholds offline
- Replaying sessions through `gesture-hmm replay`
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Iterator, Optional

from gesture_hmm.capture import Posture
from gesture_hmm.sequence import Point

FORMAT_VERSION = 1


@dataclass
class RecordedFrame:
    """A single frame in a recording."""
    timestamp: float  # seconds from recording start
    posture: str
    centroid: list[int]


@dataclass
class ReplayFrame:
    timestamp: float
    posture: Posture
    centroid: Point


class FrameRecorder:
    """Records posture/centroid frames to a JSON file.

    Usage:
        recorder = FrameRecorder()
        recorder.start()
        # In your frame loop:
        recorder.add_frame(posture, centroid)
        recorder.stop()
        recorder.save("session.json")
    """

    def __init__(self):
        self._frames: list[RecordedFrame] = []
        self._start_time: Optional[float] = None
        self._recording = False

    def start(self):
        """Begin a new recording session."""
        self._frames = []
        self._start_time = time.monotonic()
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of frames captured."""
        self._recording = False
        return len(self._frames)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def add_frame(self, posture: Posture, centroid, timestamp: Optional[float] = None):
        """Append a frame. Ignored unless recording.

        Args:
            posture: Posture label for this frame.
            centroid: Hand centroid (x, y).
            timestamp: Seconds from start; defaults to the elapsed wall time.
        """
        if not self._recording:
            return

        if timestamp is None:
            timestamp = time.monotonic() - self._start_time
        point = Point.of(centroid)

        self._frames.append(RecordedFrame(
            timestamp=float(timestamp),
            posture=Posture(posture).value,
            centroid=[point.x, point.y],
        ))

    def save(self, path: str | Path):
        """Save recording to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": FORMAT_VERSION,
            "frame_count": len(self._frames),
            "duration": self.duration,
            "frames": [asdict(f) for f in self._frames],
        }

        with open(path, "w") as f:
            json.dump(data, f)


class FramePlayer:
    """Replays a recorded frame stream.

    Usage:
        player = FramePlayer.load("session.json")
        for frame in player.play():
            pipeline.process(frame.posture, frame.centroid, frame.timestamp)
    """

    def __init__(self, frames: list[RecordedFrame]):
        self._frames = frames

    @classmethod
    def load(cls, path: str | Path) -> FramePlayer:
        """Load recording from JSON file."""
        with open(path) as f:
            data = json.load(f)

        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported recording version {version} in {path}")

        frames = [
            RecordedFrame(
                timestamp=f["timestamp"],
                posture=f["posture"],
                centroid=list(f["centroid"]),
            )
            for f in data["frames"]
        ]
        return cls(frames)

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def play(self) -> Iterator[ReplayFrame]:
        """Iterate through all frames in order."""
        for frame in self._frames:
            yield ReplayFrame(
                timestamp=frame.timestamp,
                posture=Posture(frame.posture),
                centroid=Point.of(frame.centroid),
            )
