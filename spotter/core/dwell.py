"""
Dwell confirmation for per-frame candidates.

A candidate must stay in view for dwell_duration before it is confirmed.
Two timers run against the controller timeline:
- the dwell timer, armed when a label starts being tracked
- the grace timer, re-armed by every frame that carries a candidate

The grace timer absorbs classifier flicker: if the candidate comes back
before it elapses, tracking continues with the original start time. If it
elapses (missing candidates or no frames at all), tracking is dropped back
to Empty. The dwell timer confirms when it fires; only a grace expiry
before that point cancels it.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Union

from .observation import BoundingBox, Observation
from .scheduler import Scheduler, TimerHandle

EPSILON = 1e-9


@dataclass(frozen=True)
class Empty:
    name = 'empty'


@dataclass(frozen=True)
class Tracking:
    label: str
    started_at: float
    bounding_box: BoundingBox = BoundingBox()
    name = 'tracking'


@dataclass(frozen=True)
class Confirmed:
    label: str
    bounding_box: BoundingBox = BoundingBox()
    name = 'confirmed'


DwellState = Union[Empty, Tracking, Confirmed]


class DwellTimer:
    """Debounces candidates into a single confirmation per session."""

    def __init__(self, scheduler: Scheduler, dwell_duration: float = 2.0,
                 grace_interval: float = 0.5, verbose: bool = False):
        """
        Args:
            scheduler: Controller timeline used for both timers
            dwell_duration: Seconds a label must persist before confirmation
            grace_interval: Seconds a candidate may be missing without a reset
            verbose: Print every transition
        """
        self.scheduler = scheduler
        self.dwell_duration = dwell_duration
        self.grace_interval = grace_interval
        self.verbose = verbose

        self.state: DwellState = Empty()
        self.navigated = False
        self._dwell_timer: Optional[TimerHandle] = None
        self._grace_timer: Optional[TimerHandle] = None
        self._missing = False
        self.last_seen_at: Optional[float] = None

        # Callbacks, set by the owner
        self.on_tracking_started: Optional[Callable[[str, BoundingBox], None]] = None
        self.on_tracking_lost: Optional[Callable[[], None]] = None
        self.on_confirmed: Optional[Callable[[str, BoundingBox], None]] = None

    @property
    def suspecting_loss(self) -> bool:
        """True while the tracked candidate is missing from the latest frames."""
        return self._missing and not isinstance(self.state, Empty)

    def observe(self, candidate: Optional[Observation]):
        """Feed the best candidate of one frame (or None)."""
        if candidate is None:
            self._on_absent()
        else:
            self._on_present(candidate)

    def _on_present(self, candidate: Observation):
        now = self.scheduler.now()
        self.last_seen_at = now
        self._missing = False
        self._arm_grace()
        state = self.state

        if isinstance(state, Empty):
            self._start_tracking(candidate, now)
        elif isinstance(state, Tracking):
            if candidate.label != state.label:
                if self.verbose:
                    print(f"Dwell: label changed {state.label} -> {candidate.label}, restarting")
                self._start_tracking(candidate, now)
            else:
                self.state = Tracking(state.label, state.started_at, candidate.bounding_box)
                if now - state.started_at >= self.dwell_duration - EPSILON:
                    self._confirm()
        # Confirmed stays confirmed until the grace timer or a reset clears it

    def _on_absent(self):
        if isinstance(self.state, Empty) or self._missing:
            return
        self._missing = True
        if self.verbose:
            print(f"Dwell: candidate missing, grace {self.grace_interval}s from last sighting")

    def _arm_grace(self):
        # Counted from the last frame that carried a candidate
        self._cancel_grace()
        self._grace_timer = self.scheduler.call_later(self.grace_interval, self._on_grace_elapsed)

    def _start_tracking(self, candidate: Observation, now: float):
        self._cancel_dwell()
        self.state = Tracking(candidate.label, now, candidate.bounding_box)
        self._dwell_timer = self.scheduler.call_later(self.dwell_duration, self._on_dwell_elapsed)
        if self.verbose:
            print(f"Dwell: tracking {candidate.label} at {now:.3f}")
        if self.on_tracking_started:
            self.on_tracking_started(candidate.label, candidate.bounding_box)

    def _on_dwell_elapsed(self):
        self._dwell_timer = None
        # A grace expiry cancels this timer, so Tracking here means the label persisted
        if not isinstance(self.state, Tracking):
            return
        self._confirm()

    def _on_grace_elapsed(self):
        self._grace_timer = None
        self._missing = False
        self._cancel_dwell()
        previous = self.state
        self.state = Empty()
        if self.verbose:
            print(f"Dwell: lost {getattr(previous, 'label', None)}, back to empty")
        if self.on_tracking_lost:
            self.on_tracking_lost()

    def _confirm(self):
        state = self.state
        self._cancel_dwell()
        if self.navigated:
            return
        self.navigated = True
        self.state = Confirmed(state.label, state.bounding_box)
        print(f"Dwell: confirmed {state.label}")
        if self.on_confirmed:
            self.on_confirmed(state.label, state.bounding_box)

    def _cancel_dwell(self):
        if self._dwell_timer is not None:
            self._dwell_timer.cancel()
            self._dwell_timer = None

    def _cancel_grace(self):
        if self._grace_timer is not None:
            self._grace_timer.cancel()
            self._grace_timer = None

    def reset(self):
        """Cancel both timers and start a fresh session."""
        self._cancel_dwell()
        self._cancel_grace()
        self.state = Empty()
        self.navigated = False
        self._missing = False
        self.last_seen_at = None

    def get_summary(self) -> dict:
        state = self.state
        return {
            'state': state.name,
            'label': getattr(state, 'label', None),
            'started_at': getattr(state, 'started_at', None),
            'navigated': self.navigated,
            'suspecting_loss': self.suspecting_loss,
            'last_seen_at': self.last_seen_at,
        }
