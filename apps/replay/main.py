"""
Spotter Replay Runner

Replays a scripted timeline of classifier frames, motion samples and viewer
closures through a RecognitionEngine on a virtual clock, printing every
event the engine emits.

Timeline format (YAML):

    until: 20.0
    steps:
      - appear: true
      - from: 0.0
        to: 2.1
        every: 0.1
        frame: [{label: statue, confidence: 0.9, box: [0.3, 0.3, 0.2, 0.4]}]
      - at: 5.0
        viewer_closed: true        # or {kind: video, label: statue}
      - at: 6.0
        motion: [0.0, 0.1, 0.0]
      - at: 7.0
        trigger: spot
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add parent directories to path for imports
ROOT_DIR = Path(__file__).parent.parent.parent
sys.path.insert(0, str(ROOT_DIR))

# Load .env file from root directory
from dotenv import load_dotenv
load_dotenv(ROOT_DIR / '.env')

import yaml

from spotter import ManualScheduler, RecognitionEngine, load_config

ENGINE_EVENTS = [
    'candidate_changed',
    'tracking_started',
    'tracking_lost',
    'confirmed',
    'show_help',
    'show_movement_alert',
    'action_requested',
    'sequence_finished',
    'session_changed',
]


def load_timeline(timeline_path) -> Dict[str, Any]:
    """Load a replay timeline from a YAML file."""
    with open(timeline_path) as f:
        data = yaml.safe_load(f) or {}
    if isinstance(data, list):
        data = {'steps': data}
    if not isinstance(data.get('steps', []), list):
        raise ValueError("Timeline 'steps' must be a list")
    return data


def expand_steps(steps: List[Dict[str, Any]]) -> List[tuple]:
    """
    Flatten timeline steps into (time, order, step) tuples sorted by time.

    A step with from/to/every repeats its payload at every tick in [from, to).
    Steps without a time run at t=0.
    """
    expanded = []
    order = 0
    for step in steps:
        if 'from' in step:
            start = float(step['from'])
            end = float(step['to'])
            every = float(step.get('every', 0.1))
            if every <= 0:
                raise ValueError(f"'every' must be positive: {step}")
            payload = {k: v for k, v in step.items() if k not in ('from', 'to', 'every')}
            tick = 0
            while start + tick * every < end - 1e-9:
                expanded.append((round(start + tick * every, 6), order, payload))
                order += 1
                tick += 1
        else:
            expanded.append((float(step.get('at', 0.0)), order, step))
            order += 1
    expanded.sort(key=lambda item: (item[0], item[1]))
    return expanded


class ReplayRunner:
    """Drives a RecognitionEngine from a timeline on a virtual clock."""

    def __init__(self, config: dict, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.scheduler = ManualScheduler()
        self.engine = RecognitionEngine.from_config(config, scheduler=self.scheduler)
        self.events: List[Dict[str, Any]] = []
        self._last_action = None

        for event in ENGINE_EVENTS:
            self.engine.on(event, lambda data, name=event: self._record(name, data))

    def _record(self, name: str, data: Dict[str, Any]):
        entry = {'t': round(self.scheduler.now(), 3), 'event': name}
        for key, value in data.items():
            if hasattr(value, 'to_dict'):
                value = value.to_dict()
            entry[key] = value
        if name == 'action_requested':
            self._last_action = data
        self.events.append(entry)

        if name == 'candidate_changed' and not self.verbose:
            return
        details = {k: v for k, v in entry.items() if k not in ('t', 'event')}
        print(f"[{entry['t']:7.3f}] {name} {json.dumps(details, default=str) if details else ''}")

    def _apply(self, step: Dict[str, Any]):
        if step.get('appear'):
            self.engine.appear()
            self.engine.start()
        if step.get('disappear'):
            self.engine.disappear()
        if 'frame' in step:
            result = self.engine.on_frame(step['frame'] or [])
            if not result.get('success'):
                print(f"Frame rejected: {result.get('error')}")
        if 'motion' in step:
            x, y, z = step['motion']
            self.engine.on_motion(x, y, z)
        if 'trigger' in step:
            self.engine.trigger(step['trigger'])
        if 'viewer_closed' in step:
            closed = step['viewer_closed']
            if isinstance(closed, dict):
                self.engine.report_viewer_closed(closed.get('kind'), closed.get('label'), closed.get('index'))
            elif self._last_action is not None:
                last = self._last_action
                self.engine.report_viewer_closed(last['action'].kind, last['label'], last['index'])
            else:
                self.engine.report_viewer_closed()

    def run(self, timeline: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Replay every step, then run the clock to 'until'."""
        for at, _, step in expand_steps(timeline.get('steps', [])):
            self.scheduler.advance_to(at)
            self._apply(step)

        until = timeline.get('until')
        if until is not None:
            self.scheduler.advance_to(float(until))
        return self.events

    def print_summary(self):
        """Print summary of the replay."""
        status = self.engine.get_status()
        print(f"\n{'='*60}")
        print("SUMMARY")
        print('='*60)
        counts = {}
        for entry in self.events:
            counts[entry['event']] = counts.get(entry['event'], 0) + 1
        for name in ENGINE_EVENTS:
            if counts.get(name):
                print(f"{name:24s} {counts[name]}")
        print('-'*60)
        frames = status['frames']
        print(f"Frames: {frames['received_frames']} received, {frames['processed_frames']} processed, "
              f"{frames['ignored_frames']} ignored while disabled")
        print(f"Dwell: {status['dwell']['state']}, sequence in flight: {status['sequence']['in_flight']}")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description='Spotter Replay Runner')
    parser.add_argument('timeline', help='Path to timeline YAML file')
    parser.add_argument('--config', '-c', help='Path to config file',
                        default=str(Path(__file__).parent / 'config.yaml'))
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output')
    parser.add_argument('--output', '-o', help='Output events to JSON file')
    args = parser.parse_args()

    config = load_config(args.config)
    if args.verbose:
        config.setdefault('engine', {})['verbose'] = True

    print("=" * 60)
    print("Spotter Replay Runner")
    print("=" * 60)

    runner = ReplayRunner(config, verbose=args.verbose)
    events = runner.run(load_timeline(args.timeline))
    runner.print_summary()

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(events, f, indent=2, default=str)
        print(f"\nEvents written to: {args.output}")


if __name__ == '__main__':
    main()
