"""
Session gate deciding whether incoming frames are processed.

Two writers share the gate: the controller's visibility (appear/disappear)
and the action sequencer (suspended while a viewer is on screen). Frames are
processed only when the controller is visible and no sequence holds the gate.
"""

import threading
from typing import Callable, Optional


class SessionState:
    """Per-engine detection gate."""

    def __init__(self):
        self._lock = threading.Lock()
        self._visible = False
        self._suspended = False
        self.on_change: Optional[Callable[[bool, str], None]] = None

    @property
    def enabled(self) -> bool:
        with self._lock:
            return self._visible and not self._suspended

    @property
    def visible(self) -> bool:
        with self._lock:
            return self._visible

    @property
    def suspended(self) -> bool:
        with self._lock:
            return self._suspended

    def set_visible(self, visible: bool):
        self._update(visible=visible, reason='appear' if visible else 'disappear')

    def suspend(self, reason: str = 'sequence'):
        self._update(suspended=True, reason=reason)

    def resume(self, reason: str = 'sequence'):
        self._update(suspended=False, reason=reason)

    def _update(self, visible: bool = None, suspended: bool = None, reason: str = ''):
        with self._lock:
            before = self._visible and not self._suspended
            if visible is not None:
                self._visible = visible
            if suspended is not None:
                self._suspended = suspended
            after = self._visible and not self._suspended
        if before != after:
            print(f"Detection {'enabled' if after else 'disabled'} ({reason})")
            if self.on_change:
                self.on_change(after, reason)

    def get_summary(self) -> dict:
        with self._lock:
            return {
                'enabled': self._visible and not self._suspended,
                'visible': self._visible,
                'suspended': self._suspended,
            }
