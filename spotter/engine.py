"""
Recognition engine for Spotter.

The RecognitionEngine is the single entry point that wires together:
- FrameRuntime: latest-frame mailbox from the capture pipeline
- DwellTimer: candidate debouncing and confirmation
- Watchdogs: "no object seen" and "device not moved" timeouts
- ActionSequencer: action list execution across viewer lifecycles
- SessionState: gate deciding whether frames are processed

All engine state lives on the scheduler's controller timeline. Public
methods may be called from any thread; they hand their work to the
controller with call_soon().

Emits events via hooks for UI-specific feedback.
"""

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional

from .config import EngineConfig
from .core.actions import SPOT_LABEL, ActionRegistry
from .core.dwell import DwellTimer
from .core.observation import BoundingBox, Observation, select_candidate
from .core.scheduler import Scheduler, ThreadedScheduler
from .core.sequencer import ActionSequencer, SequenceOrigin
from .core.session import SessionState
from .core.watchdog import Watchdog
from .processing.frame_runtime import FrameRuntime
from .processing.motion_runtime import MotionRuntime


class RecognitionEngine:
    """
    Detection-to-action orchestration engine.

    Example usage:
        engine = RecognitionEngine(
            config={'dwell_duration': 2.0},
            actions={'statue': [{'type': 'panorama', 'media': 'statue.jpg'}]},
        )

        engine.on('action_requested', lambda d: viewer.open(d['action']))
        engine.on('show_help', lambda d: ui.show_help())

        engine.appear()
        engine.start()
        engine.on_frame(classifier(frame))       # from the capture thread
        engine.report_viewer_closed('panorama', 'statue')
    """

    def __init__(self, config=None, actions=None, scheduler: Scheduler = None,
                 capture=None, event_logger=None):
        """
        Initialize the engine.

        Args:
            config: EngineConfig or dict of engine options
            actions: ActionRegistry or mapping of label -> list of {type, media}
            scheduler: Controller timeline (default: a started ThreadedScheduler)
            capture: Optional capture collaborator with start_running()/stop_running()
            event_logger: Optional EventLogger for structured event logs
        """
        if isinstance(config, EngineConfig):
            self.config = config
        else:
            self.config = EngineConfig.from_dict(config)

        if isinstance(actions, ActionRegistry):
            self.actions = actions
        else:
            self.actions = ActionRegistry(actions)

        self._owns_scheduler = scheduler is None
        if scheduler is None:
            scheduler = ThreadedScheduler()
            scheduler.start()
        self.scheduler = scheduler

        self.capture = capture
        self.event_logger = event_logger
        self.verbose = self.config.verbose
        self.hooks: Dict[str, List[Callable]] = {}

        self.session = SessionState()
        self.session.on_change = self._on_session_changed

        self.dwell = DwellTimer(
            scheduler,
            dwell_duration=self.config.dwell_duration,
            grace_interval=self.config.candidate_grace_interval,
            verbose=self.verbose,
        )
        self.dwell.on_tracking_started = self._on_tracking_started
        self.dwell.on_tracking_lost = self._on_tracking_lost
        self.dwell.on_confirmed = self._on_confirmed

        self.idle_watchdog = Watchdog(
            scheduler, self.config.no_detection_timeout,
            on_fire=self._on_idle_timeout, rearm=True, name='no_detection',
        )
        self.movement_watchdog = Watchdog(
            scheduler, self.config.movement_timeout,
            on_fire=self._on_movement_timeout, rearm=True, name='movement',
        )

        self.sequencer = ActionSequencer(self.session)
        self.sequencer.on_action_requested = self._on_action_requested
        self.sequencer.on_finished = self._on_sequence_finished

        self.frames = FrameRuntime(scheduler, self._process_frame, verbose=self.verbose)
        self.motion = MotionRuntime(
            scheduler,
            threshold=self.config.movement_magnitude_threshold,
            on_motion=self._on_motion_detected,
        )

        self._last_candidate: Optional[Observation] = None
        self._ignored_frames = 0

    @classmethod
    def from_config(cls, config: Dict[str, Any], scheduler: Scheduler = None, capture=None) -> 'RecognitionEngine':
        """Build an engine from a loaded config file (see spotter.config)."""
        event_logger = None
        log_config = config.get('logging', {}) or {}
        if log_config.get('enabled', False):
            from .event_logging import EventLogger
            event_logger = EventLogger(log_dir=log_config.get('dir', 'data/logs'))

        return cls(
            config=EngineConfig.from_dict(config.get('engine')),
            actions=ActionRegistry(config.get('actions') or {}),
            scheduler=scheduler,
            capture=capture,
            event_logger=event_logger,
        )

    # ─────────────────────────────────────────────────────────────
    # Hook System
    # ─────────────────────────────────────────────────────────────

    def on(self, event: str, callback: Callable) -> None:
        """
        Register a callback for an event.

        Events:
        - candidate_changed: {label: str|None, bounding_box: BoundingBox|None}
        - tracking_started: {label: str, bounding_box: BoundingBox}
        - tracking_lost: {}
        - confirmed: {label: str, bounding_box: BoundingBox}
        - show_help: {}
        - show_movement_alert: {}
        - action_requested: {action: Action, label: str, index: int, origin: str}
        - sequence_finished: {label: str}
        - session_changed: {enabled: bool, reason: str}
        """
        self.hooks.setdefault(event, []).append(callback)

    def off(self, event: str, callback: Callable) -> None:
        """Unregister a callback."""
        if event in self.hooks and callback in self.hooks[event]:
            self.hooks[event].remove(callback)

    def _emit(self, event: str, data: Dict[str, Any] = None) -> None:
        """
        Emit an event to all registered callbacks.

        Supports both sync and async callbacks.
        Hook errors are caught and logged, not propagated.
        """
        for callback in list(self.hooks.get(event, [])):
            try:
                result = callback(data or {})
                if inspect.iscoroutine(result):
                    try:
                        loop = asyncio.get_running_loop()
                        loop.create_task(result)
                    except RuntimeError:
                        asyncio.run(result)
            except Exception as e:
                print(f"Warning: hook error ({event}): {e}")

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    def appear(self):
        """The recognition view became visible: start a fresh detection session."""
        self.scheduler.call_soon(self._appear)

    def disappear(self):
        """The recognition view was dismissed: cancel every timer and sequence."""
        self.scheduler.call_soon(self._disappear)

    def start(self):
        """Start frame delivery (and the capture run-loop on a worker)."""
        self.frames.start()
        if self.capture is not None:
            self.scheduler.run_in_worker(self.capture.start_running)
        print("Frame delivery started")

    def stop(self):
        """Stop frame delivery and drop any candidate being tracked."""
        self.frames.stop()
        self.scheduler.call_soon(self._stop_tracking)
        if self.capture is not None:
            self.capture.stop_running()
        print("Frame delivery stopped")

    def shutdown(self):
        """Stop everything, including an engine-owned controller thread."""
        self.stop()
        self.disappear()
        if self._owns_scheduler and isinstance(self.scheduler, ThreadedScheduler):
            self.scheduler.stop()

    def _appear(self):
        self.dwell.reset()
        self._last_candidate = None
        self.session.set_visible(True)

    def _stop_tracking(self):
        self.dwell.reset()
        self._last_candidate = None

    def _disappear(self):
        self.session.set_visible(False)
        self.sequencer.cancel()
        self.dwell.reset()
        self.idle_watchdog.cancel()
        self.movement_watchdog.cancel()
        self._last_candidate = None

    # ─────────────────────────────────────────────────────────────
    # Inputs
    # ─────────────────────────────────────────────────────────────

    def on_frame(self, observations) -> dict:
        """Deliver one frame's classifier observations (any thread)."""
        return self.frames.submit(observations)

    def on_motion(self, x: float, y: float, z: float) -> dict:
        """Deliver one accelerometer sample in g (any thread)."""
        return self.motion.ingest((x, y, z))

    def report_viewer_closed(self, kind=None, label: str = None, index: int = None):
        """A viewer opened for an action has closed (any thread)."""
        self.scheduler.call_soon(lambda: self.sequencer.report_viewer_closed(kind, label, index))

    def trigger(self, label: str):
        """Start the action list of a label without a visual detection."""
        self.scheduler.call_soon(lambda: self._start_manual(label))

    def trigger_spot(self):
        """Start the default 'spot' action list."""
        self.trigger(SPOT_LABEL)

    # ─────────────────────────────────────────────────────────────
    # Controller-side handlers
    # ─────────────────────────────────────────────────────────────

    def _process_frame(self, observations: List[Observation]):
        if not self.session.enabled:
            self._ignored_frames += 1
            return

        candidate = select_candidate(observations, self.config.confidence_threshold)
        self._update_overlay(candidate)

        # Watchdog reset must land before the dwell timer sees the candidate
        if candidate is not None:
            self.idle_watchdog.reset()

        self.dwell.observe(candidate)

    def _update_overlay(self, candidate: Optional[Observation]):
        previous = self._last_candidate
        self._last_candidate = candidate
        if candidate is None and previous is None:
            return
        if candidate is not None and previous is not None and \
                candidate.label == previous.label and candidate.bounding_box == previous.bounding_box:
            return
        self._emit('candidate_changed', {
            'label': candidate.label if candidate else None,
            'bounding_box': candidate.bounding_box if candidate else None,
        })

    def _on_motion_detected(self):
        if self.session.enabled:
            self.movement_watchdog.reset()

    def _on_tracking_started(self, label: str, bounding_box: BoundingBox):
        self._emit('tracking_started', {'label': label, 'bounding_box': bounding_box})

    def _on_tracking_lost(self):
        self._emit('tracking_lost', {})

    def _on_confirmed(self, label: str, bounding_box: BoundingBox):
        self._emit('confirmed', {'label': label, 'bounding_box': bounding_box})

        actions = self.actions.get(label)
        if not actions:
            print(f"Warning: no actions registered for '{label}', confirmation discarded")
            if self.event_logger:
                self.event_logger.log_confirmation(label, bounding_box.to_dict(), started=False,
                                                   reason='no_actions')
            return

        started = self.sequencer.start(label, actions, SequenceOrigin.AUTO)
        if self.event_logger:
            self.event_logger.log_confirmation(label, bounding_box.to_dict(), started=started,
                                               reason=None if started else 'sequence_in_flight')

    def _start_manual(self, label: str):
        if self.sequencer.in_flight:
            print(f"Sequence in flight, ignoring manual trigger for '{label}'")
            return
        actions = self.actions.get(label)
        if not actions:
            print(f"Warning: no actions registered for '{label}', trigger ignored")
            return
        self.dwell.reset()
        self._last_candidate = None
        self.sequencer.start(label, actions, SequenceOrigin.MANUAL)

    def _on_action_requested(self, action, label: str, index: int, origin: SequenceOrigin):
        if self.event_logger:
            self.event_logger.log_action(label, index, action.kind.value, action.media, origin.value)
        self._emit('action_requested', {
            'action': action,
            'label': label,
            'index': index,
            'origin': origin.value,
        })

    def _on_sequence_finished(self, label: str):
        # Same reset as a fresh appearance of the recognition view
        self.dwell.reset()
        self._last_candidate = None
        if self.event_logger:
            self.event_logger.log_sequence_finished(label)
        self._emit('sequence_finished', {'label': label})

    def _on_session_changed(self, enabled: bool, reason: str):
        if enabled:
            self.idle_watchdog.reset()
            self.movement_watchdog.reset()
        else:
            self.idle_watchdog.cancel()
            self.movement_watchdog.cancel()
        if self.event_logger:
            self.event_logger.log_session_change(enabled, reason)
        self._emit('session_changed', {'enabled': enabled, 'reason': reason})

    def _on_idle_timeout(self):
        if self.event_logger:
            self.event_logger.log_watchdog(self.idle_watchdog.name)
        self._emit('show_help', {})

    def _on_movement_timeout(self):
        if self.event_logger:
            self.event_logger.log_watchdog(self.movement_watchdog.name)
        self._emit('show_movement_alert', {})

    # ─────────────────────────────────────────────────────────────
    # Status
    # ─────────────────────────────────────────────────────────────

    def get_status(self) -> dict:
        """Snapshot of engine state (read from any thread, best effort)."""
        frames = self.frames.get_status()
        frames['ignored_frames'] = self._ignored_frames
        return {
            'session': self.session.get_summary(),
            'dwell': self.dwell.get_summary(),
            'sequence': self.sequencer.get_summary(),
            'watchdogs': {
                'no_detection': {
                    'armed': self.idle_watchdog.armed,
                    'fire_count': self.idle_watchdog.state.fire_count,
                },
                'movement': {
                    'armed': self.movement_watchdog.armed,
                    'fire_count': self.movement_watchdog.state.fire_count,
                },
            },
            'frames': frames,
            'motion': self.motion.get_status(),
            'config': self.config.to_dict(),
        }
