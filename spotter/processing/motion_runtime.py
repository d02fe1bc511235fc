"""
Motion runtime.

Ingests accelerometer samples (in g, nominally 10 Hz) and reports motion to
the controller whenever any axis exceeds the magnitude threshold.
"""

import threading
from typing import Callable, Optional

import numpy as np

from ..core.scheduler import Scheduler


class MotionRuntime:
    """Thresholds device acceleration into 'moved' stimuli."""

    def __init__(self, scheduler: Scheduler, threshold: float = 0.05,
                 on_motion: Optional[Callable[[], None]] = None):
        self.scheduler = scheduler
        self.threshold = float(threshold)
        self.on_motion = on_motion

        self._lock = threading.Lock()
        self._stats = {
            'samples': 0,
            'moving_samples': 0,
            'last_peak': 0.0,
        }

    def is_moving(self, samples) -> bool:
        """True if any axis of any sample exceeds the threshold."""
        values = np.abs(np.asarray(samples, dtype=float))
        return bool(np.any(values > self.threshold))

    def ingest(self, samples) -> dict:
        """
        Ingest one (x, y, z) sample or an (N, 3) batch.

        Safe to call from the sensor thread; motion is reported to the
        controller with call_soon().
        """
        try:
            values = np.asarray(samples, dtype=float)
        except (TypeError, ValueError):
            return {'success': False, 'error': 'samples must be numeric'}
        if values.ndim == 1:
            values = values.reshape(1, -1)
        if values.ndim != 2 or values.shape[1] != 3:
            return {'success': False, 'error': 'samples must be (x, y, z) triples'}
        if not np.all(np.isfinite(values)):
            return {'success': False, 'error': 'samples must be finite'}

        peak = float(np.abs(values).max()) if values.size else 0.0
        moving = self.is_moving(values)

        with self._lock:
            self._stats['samples'] += len(values)
            self._stats['last_peak'] = peak
            if moving:
                self._stats['moving_samples'] += 1

        if moving and self.on_motion:
            self.scheduler.call_soon(self.on_motion)
        return {'success': True, 'moving': moving, 'peak': peak}

    def get_status(self) -> dict:
        with self._lock:
            status = dict(self._stats)
        status['threshold'] = self.threshold
        return status
