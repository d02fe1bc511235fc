"""
Frame hand-off from the capture pipeline to the controller.

Frames arrive on the producer thread at capture rate. Only the most recent
frame is kept: if the controller has not picked up the previous one yet it
is replaced, since recognition only cares about what is in view now.
"""

import threading
import time
from typing import Callable, List

from ..core.observation import Observation, coerce_observations
from ..core.scheduler import Scheduler


class FrameRuntime:
    """Single-slot, latest-frame-wins mailbox."""

    def __init__(self, scheduler: Scheduler, handler: Callable[[List[Observation]], None],
                 verbose: bool = False):
        """
        Args:
            scheduler: Controller timeline the handler runs on
            handler: Called on the controller with each delivered frame
            verbose: Print every replaced frame
        """
        self.scheduler = scheduler
        self.handler = handler
        self.verbose = verbose

        self._lock = threading.Lock()
        self._active = False
        self._latest = None
        self._drain_pending = False
        self._stats = {
            'received_frames': 0,
            'processed_frames': 0,
            'replaced_frames': 0,
            'rejected_frames': 0,
            'last_frame_ms': 0,
        }

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def start(self):
        with self._lock:
            self._active = True

    def stop(self):
        with self._lock:
            self._active = False
            self._latest = None

    def submit(self, observations) -> dict:
        """
        Hand one frame's observations to the controller.

        Safe to call from any thread. Never blocks on engine work.
        """
        try:
            frame = coerce_observations(observations)
        except ValueError as e:
            with self._lock:
                self._stats['rejected_frames'] += 1
            return {'success': False, 'error': str(e)}

        with self._lock:
            if not self._active:
                return {'success': False, 'error': 'frame delivery stopped'}

            self._stats['received_frames'] += 1
            self._stats['last_frame_ms'] = int(time.time() * 1000)
            replaced = self._latest is not None
            self._latest = frame
            if replaced:
                self._stats['replaced_frames'] += 1
                if self.verbose:
                    print("Frame replaced before controller picked it up")

            if self._drain_pending:
                return {'success': True, 'queued': True, 'replaced': replaced}
            self._drain_pending = True

        self.scheduler.call_soon(self._drain)
        return {'success': True, 'queued': True, 'replaced': replaced}

    def _drain(self):
        with self._lock:
            frame = self._latest
            self._latest = None
            self._drain_pending = False
            if frame is None or not self._active:
                return
            self._stats['processed_frames'] += 1

        self.handler(frame)

    def get_status(self) -> dict:
        with self._lock:
            status = dict(self._stats)
            status['active'] = self._active
            status['pending'] = self._latest is not None
        return status
