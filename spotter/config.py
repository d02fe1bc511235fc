"""
Configuration loading for Spotter.

Config files are YAML. String values of the form ${VAR} are replaced with
the matching environment variable.

Example config.yaml:

    engine:
      dwell_duration: 2.0
      candidate_grace_interval: 0.5
      confidence_threshold: 0.5
      no_detection_timeout: 30
      movement_timeout: 15
      movement_magnitude_threshold: 0.05

    actions:
      statue:
        - {type: panorama, media: media/statue_pano.jpg}
        - {type: video, media: media/statue_story.mp4}
      spot:
        - {type: video, media: media/intro.mp4}

    logging:
      enabled: true
      dir: data/logs
"""

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path

import yaml


@dataclass
class EngineConfig:
    """Timing and threshold options for the recognition engine."""
    dwell_duration: float = 2.0
    candidate_grace_interval: float = 0.5
    confidence_threshold: float = 0.5
    no_detection_timeout: float = 30.0
    movement_timeout: float = 15.0
    movement_magnitude_threshold: float = 0.05
    verbose: bool = False

    def __post_init__(self):
        for name in ('dwell_duration', 'candidate_grace_interval',
                     'no_detection_timeout', 'movement_timeout'):
            value = float(getattr(self, name))
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
            setattr(self, name, value)

        self.confidence_threshold = float(self.confidence_threshold)
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError(f"confidence_threshold must be in [0, 1], got {self.confidence_threshold}")

        self.movement_magnitude_threshold = float(self.movement_magnitude_threshold)
        if self.movement_magnitude_threshold < 0:
            raise ValueError("movement_magnitude_threshold must not be negative")
        self.verbose = bool(self.verbose)

    @classmethod
    def from_dict(cls, data: dict = None) -> 'EngineConfig':
        """Build from a config section; unknown keys are ignored."""
        data = data or {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known and v is not None})

    def to_dict(self) -> dict:
        return asdict(self)


def expand_env(obj):
    """Replace ${VAR} strings with environment values, recursively."""
    if isinstance(obj, str) and obj.startswith('${') and obj.endswith('}'):
        env_var = obj[2:-1]
        return os.environ.get(env_var, '')
    elif isinstance(obj, dict):
        return {k: expand_env(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [expand_env(item) for item in obj]
    return obj


def load_config(config_path=None) -> dict:
    """Load configuration from a YAML file."""
    if config_path is None:
        config_path = Path.cwd() / 'config.yaml'

    with open(config_path) as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config root must be a mapping: {config_path}")
    return expand_env(config)
