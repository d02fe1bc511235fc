"""
Tests for structured event logging.
"""
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from spotter import ManualScheduler, RecognitionEngine
from spotter.event_logging import EventLogger


class TestEventLogger:
    """Test JSONL writing and reading."""

    def test_log_and_read_back(self, tmp_path):
        logger = EventLogger(log_dir=str(tmp_path))
        logger.log_confirmation('statue', {'x': 0.1, 'y': 0.2, 'width': 0.3, 'height': 0.4})
        logger.log_action('statue', 0, 'panorama', 'pano.jpg', 'auto')
        logger.log_sequence_finished('statue')

        files = logger.get_log_files('confirmation')
        assert len(files) == 1
        events = logger.read_log_file(files[0])
        assert events[0]['label'] == 'statue'
        assert events[0]['started'] is True

        sequence_events = logger.read_log_file(logger.get_log_files('sequence')[0])
        assert [e['type'] for e in sequence_events] == ['action', 'sequence_finished']

    def test_bad_lines_skipped(self, tmp_path):
        logger = EventLogger(log_dir=str(tmp_path))
        path = tmp_path / 'broken.jsonl'
        path.write_text('{"type": "watchdog"}\nnot json\n\n')

        assert logger.read_log_file(path) == [{'type': 'watchdog'}]

    def test_engine_writes_logs(self, tmp_path):
        config = {
            'engine': {'no_detection_timeout': 5},
            'actions': {'statue': [{'type': 'video', 'media': 'story.mp4'}]},
            'logging': {'enabled': True, 'dir': str(tmp_path)},
        }
        scheduler = ManualScheduler()
        engine = RecognitionEngine.from_config(config, scheduler=scheduler)
        assert engine.event_logger is not None

        engine.appear()
        engine.start()
        scheduler.advance_to(5.0)
        for i in range(22):
            scheduler.advance_to(round(5.0 + i * 0.1, 6))
            engine.on_frame([{'label': 'statue', 'confidence': 0.9}])
        engine.report_viewer_closed('video', 'statue')

        logger = engine.event_logger
        confirmations = logger.read_log_file(logger.get_log_files('confirmation')[0])
        assert confirmations[0]['label'] == 'statue'
        assert confirmations[0]['started'] is True

        watchdogs = logger.read_log_file(logger.get_log_files('watchdog')[0])
        assert watchdogs[0]['name'] == 'no_detection'

        sequence_types = [e['type'] for e in logger.read_log_file(logger.get_log_files('sequence')[0])]
        assert sequence_types == ['action', 'sequence_finished']

        session = logger.read_log_file(logger.get_log_files('session')[0])
        assert [e['enabled'] for e in session] == [True, False, True]

    def test_engine_without_logging(self):
        engine = RecognitionEngine.from_config({}, scheduler=ManualScheduler())
        assert engine.event_logger is None
