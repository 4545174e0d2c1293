"""Tests for opening/ending skip detection."""

import pytest

from episode_player.models import SkipMarkers, SkipWindow
from episode_player.skip import SkipState, SkipWindowDetector, evaluate, show_skip_ending, show_skip_opening

MARKERS = SkipMarkers(
    opening=SkipWindow(start=0.0, end=90.0),
    ending=SkipWindow(start=1300.0, end=1440.0),
)


class TestSkipOpening:
    """Test the opening window."""

    @pytest.mark.parametrize("position,expected", [
        (0.0, True),
        (45.0, True),
        (90.0, True),
        (90.5, False),
        (600.0, False),
    ])
    def test_window_is_inclusive(self, position, expected):
        assert show_skip_opening(position, MARKERS) is expected

    def test_requires_both_bounds(self):
        """Test that a half-known window never shows."""
        open_ended = SkipMarkers(opening=SkipWindow(start=10.0, end=None))
        assert show_skip_opening(20.0, open_ended) is False
        assert show_skip_opening(20.0, SkipMarkers()) is False


class TestSkipEnding:
    """Test the ending affordance."""

    def test_shows_from_ending_start(self):
        assert show_skip_ending(1299.0, MARKERS, has_next=True) is False
        assert show_skip_ending(1300.0, MARKERS, has_next=True) is True
        assert show_skip_ending(1439.0, MARKERS, has_next=True) is True

    def test_hidden_without_next_episode(self):
        """Test that the last episode never offers a skip to next."""
        assert show_skip_ending(1350.0, MARKERS, has_next=False) is False

    def test_hidden_without_marker(self):
        assert show_skip_ending(1350.0, SkipMarkers(), has_next=True) is False

    def test_evaluate_combines(self):
        assert evaluate(30.0, MARKERS, True) == SkipState(show_skip_opening=True, show_skip_ending=False)
        assert evaluate(1350.0, MARKERS, True) == SkipState(show_skip_opening=False, show_skip_ending=True)


class TestSkipWindowDetector:
    """Test the per-episode detector."""

    def test_targets(self):
        detector = SkipWindowDetector(MARKERS, next_episode_id="e3")
        assert detector.skip_opening_target() == 90.0
        assert detector.skip_ending_target() == "e3"
        assert detector.evaluate(1350.0).show_skip_ending is True

    def test_no_next_episode(self):
        detector = SkipWindowDetector(MARKERS)
        assert detector.skip_ending_target() is None
        assert detector.evaluate(1350.0).show_skip_ending is False

    def test_no_opening(self):
        detector = SkipWindowDetector(SkipMarkers(), "e3")
        assert detector.skip_opening_target() is None


class TestEpisodeScenario:
    """Test a 24 minute episode with both windows and a next episode."""

    def test_walkthrough(self):
        markers = SkipMarkers(
            opening=SkipWindow(start=0.0, end=90.0),
            ending=SkipWindow(start=1350.0, end=1440.0),
        )
        detector = SkipWindowDetector(markers, next_episode_id="ep2")
        assert detector.evaluate(45.0) == SkipState(show_skip_opening=True, show_skip_ending=False)
        assert detector.evaluate(1400.0) == SkipState(show_skip_opening=False, show_skip_ending=True)
        assert detector.skip_ending_target() == "ep2"
