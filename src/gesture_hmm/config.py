"""Engine configuration — capture thresholds, HMM topology and training knobs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger("gesture_hmm.config")


@dataclass
class EngineConfig:
    # Observation alphabet: number of quantized directions
    num_symbols: int = 8
    # HMM topology
    default_states: int = 5
    p_stay: float = 0.8
    p_advance: float = 0.2
    # Baum-Welch
    max_iterations: int = 10
    convergence_threshold: float = 1e-4
    # Training-set synthesis
    training_sequences: int = 100
    noise_std_x: float = 4.0
    noise_std_y: float = 6.0
    seed: Optional[int] = None
    # Capture state machine
    arm_frames: int = 3
    release_frames: int = 3
    min_step: float = 4.0
    max_step: float = 100.0
    min_points: int = 10
    trim_points: int = 5
    # Classification
    max_valid_score: float = 1.0

    @property
    def noise_std(self) -> tuple[float, float]:
        return (self.noise_std_x, self.noise_std_y)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> EngineConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(k for k in data if k not in known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})


def load_config(path: Optional[str | Path] = None) -> EngineConfig:
    """Load configuration from a YAML file. Missing file → defaults."""
    if path is None:
        return EngineConfig()

    path = Path(path)
    if not path.exists():
        logger.debug("Config file %s not found, using defaults", path)
        return EngineConfig()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return EngineConfig.from_dict(data)


def save_config(config: EngineConfig, path: str | Path):
    """Write configuration to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
