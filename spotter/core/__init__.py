"""
Core recognition components for Spotter.

This package contains observation filtering, dwell confirmation, watchdogs,
the action sequencer, the session gate and the controller schedulers.
"""

from .observation import BoundingBox, Observation, select_candidate, coerce_observations
from .dwell import DwellTimer, Empty, Tracking, Confirmed
from .watchdog import Watchdog, WatchdogState
from .actions import Action, ActionKind, ActionRegistry, SPOT_LABEL
from .sequencer import ActionSequencer, SequencerState, SequenceOrigin
from .session import SessionState
from .scheduler import Scheduler, ThreadedScheduler, ManualScheduler, TimerHandle

__all__ = [
    'BoundingBox',
    'Observation',
    'select_candidate',
    'coerce_observations',
    'DwellTimer',
    'Empty',
    'Tracking',
    'Confirmed',
    'Watchdog',
    'WatchdogState',
    'Action',
    'ActionKind',
    'ActionRegistry',
    'SPOT_LABEL',
    'ActionSequencer',
    'SequencerState',
    'SequenceOrigin',
    'SessionState',
    'Scheduler',
    'ThreadedScheduler',
    'ManualScheduler',
    'TimerHandle',
]
