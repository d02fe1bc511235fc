"""
Event logger for Spotter.

Logs four types of events:
1. Confirmations - a label confirmed by dwell (and discarded confirmations)
2. Sequence events - action steps dispatched and sequences completed
3. Watchdog events - help affordance and move-camera alerts
4. Session changes - detection enabled/disabled

All events are logged with timestamps in JSON format.
"""

import json
from datetime import datetime, timezone
from pathlib import Path


class EventLogger:
    """Unified event logging for recognition and sequencing."""

    def __init__(self, log_dir='data/logs'):
        """
        Initialize event logger.

        Args:
            log_dir: Base directory for log files
        """
        self.log_dir = Path(log_dir)

        self.confirmation_log_dir = self.log_dir / 'confirmations'
        self.sequence_log_dir = self.log_dir / 'sequences'
        self.watchdog_log_dir = self.log_dir / 'watchdogs'
        self.session_log_dir = self.log_dir / 'session'

        for log_dir in [self.confirmation_log_dir, self.sequence_log_dir,
                        self.watchdog_log_dir, self.session_log_dir]:
            log_dir.mkdir(parents=True, exist_ok=True)

        print(f"EventLogger initialized: {self.log_dir}")

    def log_confirmation(self, label: str, bounding_box: dict = None, started: bool = True, reason: str = None):
        """
        Log a dwell confirmation.

        Args:
            label: Confirmed label
            bounding_box: Normalized box of the confirmed candidate
            started: Whether a sequence was started for it
            reason: Why it was discarded, if it was
        """
        event = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'type': 'confirmation',
            'label': label,
            'bounding_box': bounding_box,
            'started': started,
            'reason': reason,
        }
        self._write_log(self.confirmation_log_dir, event)

    def log_action(self, label: str, index: int, kind: str, media: str, origin: str):
        """Log an action step dispatched to a viewer."""
        event = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'type': 'action',
            'label': label,
            'index': index,
            'kind': kind,
            'media': media,
            'origin': origin,
        }
        self._write_log(self.sequence_log_dir, event)

    def log_sequence_finished(self, label: str):
        event = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'type': 'sequence_finished',
            'label': label,
        }
        self._write_log(self.sequence_log_dir, event)

    def log_watchdog(self, name: str):
        event = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'type': 'watchdog',
            'name': name,
        }
        self._write_log(self.watchdog_log_dir, event)

    def log_session_change(self, enabled: bool, reason: str = None):
        event = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'type': 'session_change',
            'enabled': enabled,
            'reason': reason,
        }
        self._write_log(self.session_log_dir, event)

    def _write_log(self, log_dir: Path, event: dict):
        """
        Write a log event to a daily JSONL file.

        Args:
            log_dir: Directory to write log to
            event: Event dictionary to log
        """
        log_dir.mkdir(parents=True, exist_ok=True)

        date_str = datetime.now(timezone.utc).strftime('%Y-%m-%d')
        log_file = log_dir / f'log-{date_str}.jsonl'

        with open(log_file, 'a') as f:
            f.write(json.dumps(event) + '\n')

    def get_log_files(self, log_type='all'):
        """
        Get list of log files.

        Args:
            log_type: 'confirmation', 'sequence', 'watchdog', 'session' or 'all'

        Returns:
            List of log file paths
        """
        dirs = {
            'confirmation': self.confirmation_log_dir,
            'sequence': self.sequence_log_dir,
            'watchdog': self.watchdog_log_dir,
            'session': self.session_log_dir,
        }
        log_files = []
        for name, directory in dirs.items():
            if log_type in (name, 'all'):
                log_files.extend(directory.glob('log-*.jsonl'))
        return sorted(log_files)

    def read_log_file(self, log_file_path):
        """
        Read and parse a log file.

        Args:
            log_file_path: Path to log file

        Returns:
            List of log events
        """
        events = []
        with open(log_file_path, 'r') as f:
            for line in f:
                line = line.strip()
                if line:
                    try:
                        events.append(json.loads(line))
                    except json.JSONDecodeError:
                        print(f"Warning: Failed to parse log line: {line}")
        return events
