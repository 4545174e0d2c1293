"""Tests for the surface presenter."""

from unittest.mock import MagicMock

import pytest

from episode_player.config import Config
from episode_player.presentation import OverlayLayer, PresentationState, SurfacePresenter
from episode_player.skip import SkipState


@pytest.fixture
def presenter() -> SurfacePresenter:
    return SurfacePresenter(Config())


class TestControlsVisibility:
    """Test auto-hiding controls."""

    def test_hide_timer_runs_only_while_playing(self, presenter):
        assert not presenter.hide_timer_active
        presenter.set_playing(True)
        assert presenter.hide_timer_active
        presenter.set_playing(False)
        assert not presenter.hide_timer_active
        assert presenter.state.controls_visible

    def test_timeout_hides_while_playing(self, presenter):
        presenter.set_playing(True)
        presenter._on_hide_timeout()
        assert presenter.state.controls_visible is False

    def test_activity_shows_and_restarts(self, presenter):
        presenter.set_playing(True)
        presenter._on_hide_timeout()
        presenter.pointer_activity()
        assert presenter.state.controls_visible
        assert presenter.hide_timer_active

    def test_pointer_left_hides_while_playing(self, presenter):
        presenter.pointer_left()
        assert presenter.state.controls_visible
        presenter.set_playing(True)
        presenter.pointer_left()
        assert presenter.state.controls_visible is False

    def test_teardown_stops_timers(self, presenter):
        presenter.set_playing(True)
        presenter.show_seek(10)
        presenter.teardown()
        assert not presenter.hide_timer_active
        assert not presenter._seek_timer.isActive()


class TestIndicators:
    """Test transient indicators."""

    def test_seek_indicator(self, presenter):
        presenter.show_seek(-10)
        indicator = presenter.state.seek_indicator
        assert indicator.value == 10 and indicator.direction == "left"
        assert presenter._seek_timer.isActive()

    def test_seek_preview_stays(self, presenter):
        presenter.show_seek_preview(23.6)
        assert presenter.state.seek_preview == 23.6
        assert presenter.state.seek_indicator.value == 24
        assert not presenter._seek_timer.isActive()
        presenter.clear_preview()
        assert presenter.state.seek_preview is None
        assert presenter.state.seek_indicator is None

    def test_volume_indicator(self, presenter):
        presenter.show_volume(0.7)
        assert presenter.state.volume_indicator.value == 70
        assert presenter._volume_timer.isActive()

    def test_brightness_clamped(self, presenter):
        presenter.set_brightness(140)
        assert presenter.state.brightness == 100.0
        presenter.set_brightness(-5)
        assert presenter.state.brightness == 0.0
        assert presenter.state.brightness_indicator.value == 0


class TestOverlays:
    """Test overlay flags and stacking."""

    def test_changed_signal(self, presenter):
        listener = MagicMock()
        presenter.changed.connect(listener)
        presenter.toggle_shortcuts()
        presenter.toggle_shortcuts()
        presenter.close_shortcuts()
        assert listener.call_count == 2

    def test_error_shows_controls(self, presenter):
        presenter.set_playing(True)
        presenter._on_hide_timeout()
        presenter.set_buffering(True)
        presenter.set_error("Network unreachable")
        assert presenter.state.controls_visible
        assert presenter.state.buffering is False

    def test_reset_keeps_fullscreen_and_brightness(self, presenter):
        presenter.set_fullscreen(True)
        presenter.set_brightness(60)
        presenter.toggle_shortcuts()
        presenter.set_error("boom")
        presenter.reset()
        state = presenter.state
        assert state.fullscreen and state.brightness == 60
        assert not state.shortcuts_visible
        assert state.error_message == ""

    def test_layer_order(self):
        state = PresentationState(
            brightness=50.0,
            buffering=True,
            skip_state=SkipState(show_skip_opening=True),
            shortcuts_visible=True,
        )
        assert state.visible_layers() == [
            OverlayLayer.VIDEO,
            OverlayLayer.BRIGHTNESS,
            OverlayLayer.BUFFERING,
            OverlayLayer.SKIP,
            OverlayLayer.CONTROLS,
            OverlayLayer.SHORTCUTS,
        ]

    def test_error_hides_buffering_layer(self):
        state = PresentationState(buffering=True, error_message="failed")
        layers = state.visible_layers()
        assert OverlayLayer.BUFFERING not in layers
        assert layers[-1] == OverlayLayer.ERROR
