"""
Spotter - Detection-to-action orchestration engine.

The spotter package provides:
- Observation filtering (best candidate per frame)
- Dwell confirmation with a grace interval for classifier flicker
- Idle and movement watchdogs
- Action sequencing across viewer lifecycles
- Controller schedulers (threaded and virtual-clock)

Example usage:
    from spotter import RecognitionEngine

    engine = RecognitionEngine(
        config={'dwell_duration': 2.0},
        actions={'statue': [{'type': 'panorama', 'media': 'statue.jpg'}]},
    )
    engine.on('confirmed', lambda d: print(f"Confirmed: {d['label']}"))
    engine.appear()
    engine.start()
"""

from .engine import RecognitionEngine
from .config import EngineConfig, load_config
from .core import (
    Action,
    ActionKind,
    ActionRegistry,
    ActionSequencer,
    BoundingBox,
    DwellTimer,
    ManualScheduler,
    Observation,
    SequenceOrigin,
    SessionState,
    ThreadedScheduler,
    Watchdog,
    select_candidate,
)

__version__ = '0.1.0'

__all__ = [
    # Main interface
    'RecognitionEngine',
    'EngineConfig',
    'load_config',

    # Core
    'Action',
    'ActionKind',
    'ActionRegistry',
    'ActionSequencer',
    'BoundingBox',
    'DwellTimer',
    'ManualScheduler',
    'Observation',
    'SequenceOrigin',
    'SessionState',
    'ThreadedScheduler',
    'Watchdog',
    'select_candidate',
]
