"""
Observation types and per-frame candidate selection.

The classifier produces a ranked list of observations for every frame.
This module reduces that list to at most one candidate: the observation
with the highest confidence above the acceptance threshold.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

DEFAULT_CONFIDENCE_THRESHOLD = 0.5


@dataclass(frozen=True)
class BoundingBox:
    """Normalized rectangle (0-1) in image coordinates."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_value(cls, value) -> 'BoundingBox':
        """Build from a BoundingBox, a dict or a 4-item sequence."""
        if value is None:
            return cls()
        if isinstance(value, BoundingBox):
            return value
        if isinstance(value, dict):
            return cls(
                float(value.get('x', 0.0)),
                float(value.get('y', 0.0)),
                float(value.get('width', value.get('w', 0.0))),
                float(value.get('height', value.get('h', 0.0))),
            )
        if isinstance(value, (list, tuple)) and len(value) == 4:
            return cls(*(float(v) for v in value))
        raise ValueError(f"Invalid bounding box: {value!r}")

    def center(self) -> tuple:
        return self.x + self.width / 2, self.y + self.height / 2

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}


@dataclass(frozen=True)
class Observation:
    """A single classifier result for one frame."""
    label: str
    confidence: float
    bounding_box: BoundingBox = BoundingBox()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Observation':
        """
        Build an observation from a classifier payload.

        Accepts 'box' or 'bounding_box' for the rectangle.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Observation must be a dict, got {type(data).__name__}")
        if 'label' not in data or 'confidence' not in data:
            raise ValueError(f"Observation missing label/confidence: {data}")
        try:
            confidence = float(data['confidence'])
        except (TypeError, ValueError):
            raise ValueError(f"Observation confidence must be a number: {data}")
        if not math.isfinite(confidence) or not 0.0 <= confidence <= 1.0:
            raise ValueError(f"Observation confidence must be in [0, 1]: {data}")
        box = data.get('bounding_box', data.get('box'))
        return cls(
            label=str(data['label']),
            confidence=confidence,
            bounding_box=BoundingBox.from_value(box),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'confidence': self.confidence,
            'bounding_box': self.bounding_box.to_dict(),
        }


def coerce_observations(items: Optional[Iterable]) -> list:
    """Convert a mixed list of Observation objects and dicts to Observations."""
    if not items:
        return []
    return [item if isinstance(item, Observation) else Observation.from_dict(item)
            for item in items]


def select_candidate(observations: Optional[Iterable[Observation]],
                     threshold: float = DEFAULT_CONFIDENCE_THRESHOLD) -> Optional[Observation]:
    """
    Pick the best observation of a frame.

    Args:
        observations: Observations produced by the classifier for one frame
        threshold: Confidence must be strictly greater than this to count

    Returns:
        The highest-confidence observation above threshold, or None.
        Ties keep the first one encountered.
    """
    best = None
    for observation in observations or ():
        # NaN never passes this test
        if not observation.confidence > threshold:
            continue
        if best is None or observation.confidence > best.confidence:
            best = observation
    return best
