"""
Tests for dwell confirmation timing.

Frames are fed every 100ms on a virtual clock.
"""
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from spotter.core.dwell import Confirmed, DwellTimer, Empty, Tracking
from spotter.core.observation import BoundingBox, Observation
from spotter.core.scheduler import ManualScheduler

STEP = 0.1


def candidate(label):
    return Observation(label, 0.9, BoundingBox(0.3, 0.3, 0.2, 0.2))


class DwellHarness:
    """DwellTimer on a virtual clock that records its callbacks."""

    def __init__(self, dwell=2.0, grace=0.5):
        self.scheduler = ManualScheduler()
        self.dwell = DwellTimer(self.scheduler, dwell_duration=dwell, grace_interval=grace)
        self.confirmations = []
        self.started = []
        self.lost = []
        self.dwell.on_confirmed = lambda label, box: self.confirmations.append((label, self.scheduler.now()))
        self.dwell.on_tracking_started = lambda label, box: self.started.append((label, self.scheduler.now()))
        self.dwell.on_tracking_lost = lambda: self.lost.append(self.scheduler.now())

    def feed(self, label, start, end):
        """Feed one frame per step for t in [start, end); label None means no candidate."""
        ticks = int(round((end - start) / STEP))
        for i in range(ticks):
            self.scheduler.advance_to(round(start + i * STEP, 6))
            self.dwell.observe(candidate(label) if label else None)


class TestConfirmation:
    """Test when a persistent candidate is confirmed."""

    def test_continuous_candidate_confirms_at_dwell(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 2.0)
        assert h.confirmations == []

        h.feed("statue", 2.0, 2.2)
        assert len(h.confirmations) == 1
        label, at = h.confirmations[0]
        assert label == "statue"
        assert at == pytest.approx(2.0)
        assert isinstance(h.dwell.state, Confirmed)

    def test_confirms_exactly_once(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 6.0)
        assert len(h.confirmations) == 1

    def test_short_gap_does_not_reset_clock(self):
        """A gap shorter than the grace interval keeps the original start time."""
        h = DwellHarness()
        h.feed("statue", 0.0, 1.0)
        h.feed(None, 1.0, 1.3)
        h.feed("statue", 1.3, 2.2)

        assert len(h.confirmations) == 1
        assert h.confirmations[0][1] == pytest.approx(2.0)
        assert h.lost == []
        assert len(h.started) == 1

    def test_label_change_restarts_clock(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 1.0)
        h.feed("mural", 1.0, 3.2)

        assert [c[0] for c in h.confirmations] == ["mural"]
        assert h.confirmations[0][1] == pytest.approx(3.0)
        assert [s[0] for s in h.started] == ["statue", "mural"]

    def test_dwell_elapsing_during_short_gap_confirms_on_time(self):
        """A gap shorter than the grace interval does not delay the dwell timer."""
        h = DwellHarness()
        h.feed("statue", 0.0, 1.9)
        h.feed(None, 1.9, 2.2)
        assert h.confirmations == [("statue", pytest.approx(2.0))]

        h.feed("statue", 2.2, 2.3)
        assert len(h.confirmations) == 1

    def test_candidate_gone_before_dwell_never_confirms(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 1.5)
        h.feed(None, 1.5, 3.0)
        assert h.confirmations == []
        assert isinstance(h.dwell.state, Empty)


class TestGraceInterval:
    """Test loss handling."""

    def test_sustained_absence_returns_to_empty(self):
        """The grace interval counts from the last frame that carried the candidate."""
        h = DwellHarness()
        h.feed("statue", 0.0, 1.0)
        h.feed(None, 1.0, 2.0)

        assert isinstance(h.dwell.state, Empty)
        assert h.lost == [pytest.approx(1.4)]

    def test_silent_producer_drops_tracking(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 1.0)
        h.scheduler.advance_to(5.0)

        assert h.confirmations == []
        assert h.lost == [pytest.approx(1.4)]
        assert isinstance(h.dwell.state, Empty)
        assert h.scheduler.pending_timers() == 0

    def test_suspected_loss_clears_when_candidate_returns(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 0.5)
        assert not h.dwell.suspecting_loss

        h.feed(None, 0.5, 0.6)
        assert h.dwell.suspecting_loss

        h.feed("statue", 0.6, 0.7)
        assert not h.dwell.suspecting_loss
        assert isinstance(h.dwell.state, Tracking)
        assert h.dwell.last_seen_at == pytest.approx(0.6)

    def test_absence_from_empty_is_ignored(self):
        h = DwellHarness()
        h.feed(None, 0.0, 5.0)
        assert h.lost == []
        assert h.scheduler.pending_timers() == 0

    def test_tracking_restarts_after_loss(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 1.0)
        h.feed(None, 1.0, 2.0)
        h.feed("statue", 3.0, 5.2)

        assert len(h.confirmations) == 1
        assert h.confirmations[0][1] == pytest.approx(5.0)

    def test_confirmed_state_clears_after_loss(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 2.2)
        h.feed(None, 2.2, 3.0)
        assert isinstance(h.dwell.state, Empty)
        assert len(h.lost) == 1


class TestNavigatedFlag:
    """Test that confirmation happens once per session."""

    def test_no_reconfirmation_until_reset(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 2.2)
        h.feed(None, 2.2, 3.0)
        h.feed("statue", 3.0, 6.0)
        assert len(h.confirmations) == 1
        assert h.dwell.navigated is True

    def test_reset_allows_new_confirmation(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 2.2)
        h.dwell.reset()
        assert isinstance(h.dwell.state, Empty)
        assert h.dwell.navigated is False

        h.feed("mural", 3.0, 5.2)
        assert [c[0] for c in h.confirmations] == ["statue", "mural"]

    def test_reset_cancels_timers(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 1.0)
        h.feed(None, 1.0, 1.1)
        h.dwell.reset()
        assert h.scheduler.pending_timers() == 0

        h.scheduler.advance(5.0)
        assert h.confirmations == []
        assert h.lost == []

    def test_summary(self):
        h = DwellHarness()
        h.feed("statue", 0.0, 0.5)
        summary = h.dwell.get_summary()
        assert summary["state"] == "tracking"
        assert summary["label"] == "statue"
        assert summary["started_at"] == pytest.approx(0.0)
