"""
Rearming timeout monitors.

A watchdog fires its callback when reset() has not been called for
`timeout` seconds. Used for "no object seen" (help affordance) and
"device not moved" (move-camera alert).
"""

from dataclasses import dataclass
from typing import Callable, Optional

from .scheduler import Scheduler, TimerHandle


@dataclass
class WatchdogState:
    last_reset_at: Optional[float] = None
    fired: bool = False
    fire_count: int = 0


class Watchdog:
    """Timeout primitive with reset(), cancel() and a fire callback."""

    def __init__(self, scheduler: Scheduler, timeout: float,
                 on_fire: Callable[[], None] = None, rearm: bool = True, name: str = 'watchdog'):
        """
        Args:
            scheduler: Controller timeline
            timeout: Seconds without a reset before firing
            on_fire: Callback invoked when the timeout elapses
            rearm: Arm again right after firing so the signal can repeat
            name: Label used in log output
        """
        self.scheduler = scheduler
        self.timeout = timeout
        self.on_fire = on_fire
        self.rearm = rearm
        self.name = name
        self.state = WatchdogState()
        self._timer: Optional[TimerHandle] = None

    @property
    def armed(self) -> bool:
        return self._timer is not None and self._timer.active

    def reset(self):
        """Restart the countdown from now."""
        self._cancel_timer()
        self.state.last_reset_at = self.scheduler.now()
        self.state.fired = False
        self._arm()

    def cancel(self):
        """Stop the countdown without firing."""
        self._cancel_timer()

    def _arm(self):
        self._timer = self.scheduler.call_later(self.timeout, self._fire)

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self):
        self._timer = None
        self.state.fired = True
        self.state.fire_count += 1
        print(f"Watchdog '{self.name}' fired after {self.timeout}s")
        if self.rearm:
            self._arm()
        if self.on_fire:
            self.on_fire()
