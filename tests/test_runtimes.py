"""
Tests for the frame mailbox and the motion runtime.
"""
import numpy as np
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from spotter.core.scheduler import ManualScheduler, Scheduler
from spotter.processing.frame_runtime import FrameRuntime
from spotter.processing.motion_runtime import MotionRuntime


class HeldScheduler(Scheduler):
    """Queues controller tasks until run_pending() so producers can race ahead."""

    def __init__(self):
        self.tasks = []

    def now(self):
        return 0.0

    def call_soon(self, callback):
        self.tasks.append(callback)

    def run_pending(self):
        tasks, self.tasks = self.tasks, []
        for task in tasks:
            task()


class TestFrameRuntime:
    """Test latest-frame-wins delivery."""

    def setup_method(self):
        self.scheduler = HeldScheduler()
        self.delivered = []
        self.runtime = FrameRuntime(self.scheduler, self.delivered.append)
        self.runtime.start()

    def test_latest_frame_wins(self):
        for label in ('a', 'b', 'c'):
            result = self.runtime.submit([{'label': label, 'confidence': 0.9}])
            assert result['success'] is True

        assert len(self.scheduler.tasks) == 1
        self.scheduler.run_pending()

        assert len(self.delivered) == 1
        assert self.delivered[0][0].label == 'c'
        status = self.runtime.get_status()
        assert status['received_frames'] == 3
        assert status['replaced_frames'] == 2
        assert status['processed_frames'] == 1
        assert status['pending'] is False

    def test_next_frame_after_drain_is_delivered(self):
        self.runtime.submit([{'label': 'a', 'confidence': 0.9}])
        self.scheduler.run_pending()
        result = self.runtime.submit([])
        self.scheduler.run_pending()

        assert result['replaced'] is False
        assert self.delivered[1] == []

    def test_stopped_runtime_rejects(self):
        self.runtime.stop()
        result = self.runtime.submit([])

        assert result['success'] is False
        assert self.scheduler.tasks == []

    def test_stop_drops_pending_frame(self):
        self.runtime.submit([{'label': 'a', 'confidence': 0.9}])
        self.runtime.stop()
        self.scheduler.run_pending()

        assert self.delivered == []

    def test_malformed_frame_rejected(self):
        result = self.runtime.submit([{'label': 'a'}])

        assert result['success'] is False
        assert self.runtime.get_status()['rejected_frames'] == 1

    def test_immediate_delivery_on_manual_scheduler(self):
        delivered = []
        runtime = FrameRuntime(ManualScheduler(), delivered.append)
        runtime.start()
        runtime.submit([{'label': 'a', 'confidence': 0.9}])
        runtime.submit([{'label': 'b', 'confidence': 0.9}])

        assert [frame[0].label for frame in delivered] == ['a', 'b']


class TestMotionRuntime:
    """Test accelerometer thresholding."""

    def setup_method(self):
        self.scheduler = ManualScheduler()
        self.motions = []
        self.runtime = MotionRuntime(self.scheduler, threshold=0.05,
                                     on_motion=lambda: self.motions.append(True))

    def test_any_axis_over_threshold(self):
        assert self.runtime.is_moving([0.0, 0.0, 0.06]) is True
        assert self.runtime.is_moving([-0.07, 0.0, 0.0]) is True
        assert self.runtime.is_moving([0.05, -0.05, 0.01]) is False

    def test_ingest_single_sample(self):
        result = self.runtime.ingest((0.0, 0.2, 0.0))

        assert result['success'] is True
        assert result['moving'] is True
        assert result['peak'] == pytest.approx(0.2)
        assert self.motions == [True]

    def test_ingest_batch(self):
        samples = np.zeros((10, 3))
        samples[7, 1] = 0.3
        result = self.runtime.ingest(samples)

        assert result['moving'] is True
        assert len(self.motions) == 1
        assert self.runtime.get_status()['samples'] == 10

    def test_still_device(self):
        result = self.runtime.ingest(np.full((5, 3), 0.01))

        assert result['moving'] is False
        assert self.motions == []

    def test_invalid_samples(self):
        assert self.runtime.ingest((0.1, 0.2))['success'] is False
        assert self.runtime.ingest(('a', 'b', 'c'))['success'] is False
        assert self.runtime.ingest((float('nan'), 0.0, 0.0))['success'] is False
        assert self.motions == []
