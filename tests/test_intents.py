"""Tests for playback intents and the session reducer."""

from dataclasses import replace

import pytest

from episode_player.intents import Intent, IntentKind, apply
from episode_player.models import AUTO_VARIANT, PlaybackSession, Variant
from episode_player.source import SourceKind


@pytest.fixture
def session() -> PlaybackSession:
    return PlaybackSession(
        source_locator="http://cdn.test/ep.mp4",
        is_ready=True,
        total_duration=600.0,
        current_position=100.0,
        volume=0.5,
    )


class TestPlayback:
    """Test play state intents."""

    def test_toggle_play(self, session):
        """Test that toggle flips the playing flag."""
        playing = apply(Intent.toggle_play(), session)
        assert playing.is_playing is True
        assert apply(Intent.toggle_play(), playing).is_playing is False

    def test_play_and_pause_are_idempotent(self, session):
        """Test explicit play and pause."""
        playing = apply(Intent(IntentKind.PLAY), session)
        assert apply(Intent(IntentKind.PLAY), playing).is_playing is True
        assert apply(Intent(IntentKind.PAUSE), session).is_playing is False

    def test_reducer_does_not_mutate_input(self, session):
        """Test that the input session is left untouched."""
        apply(Intent.seek_delta(30), session)
        assert session.current_position == 100.0


class TestSeek:
    """Test seek intents."""

    def test_seek_delta(self, session):
        assert apply(Intent.seek_delta(10), session).current_position == 110.0
        assert apply(Intent.seek_delta(-10), session).current_position == 90.0

    def test_seek_clamps_to_start(self, session):
        """Test that seeking before zero lands on zero."""
        near_start = replace(session, current_position=4.0)
        assert apply(Intent.seek_delta(-10), near_start).current_position == 0.0

    def test_seek_clamps_to_duration(self, session):
        """Test that seeking past the end lands on the end."""
        near_end = replace(session, current_position=595.0)
        assert apply(Intent.seek_delta(10), near_end).current_position == 600.0

    def test_seek_to(self, session):
        assert apply(Intent.seek_to(250), session).current_position == 250.0
        assert apply(Intent.seek_to(-3), session).current_position == 0.0
        assert apply(Intent.seek_to(9999), session).current_position == 600.0

    def test_seek_without_duration_only_clamps_below(self, session):
        """Test that an unknown duration leaves the upper bound open."""
        unknown = replace(session, total_duration=None)
        assert apply(Intent.seek_delta(1000), unknown).current_position == 1100.0

    @pytest.mark.parametrize("digit,expected", [(0, 0.0), (5, 300.0), (9, 540.0)])
    def test_jump_to_percent(self, session, digit, expected):
        """Test that digit keys jump to a tenth of the duration."""
        assert apply(Intent.jump_to_percent(digit * 10), session).current_position == expected

    def test_jump_without_duration_is_noop(self, session):
        unknown = replace(session, total_duration=None)
        assert apply(Intent.jump_to_percent(50), unknown) == unknown


class TestVolume:
    """Test volume and mute intents."""

    def test_volume_steps(self, session):
        """Test that volume steps land on exact values."""
        louder = apply(Intent.volume_delta(0.1), session)
        assert louder.volume == 0.6
        assert apply(Intent.volume_delta(-0.1), louder).volume == 0.5

    def test_volume_clamps(self, session):
        full = replace(session, volume=0.95)
        assert apply(Intent.volume_delta(0.1), full).volume == 1.0
        assert apply(Intent.set_volume(-2), session).volume == 0.0

    def test_volume_zero_mutes(self, session):
        """Test that reaching zero volume sets muted."""
        quiet = replace(session, volume=0.1)
        silent = apply(Intent.volume_delta(-0.1), quiet)
        assert silent.volume == 0.0
        assert silent.is_muted is True

    def test_raising_volume_unmutes(self, session):
        silent = replace(session, volume=0.0, is_muted=True)
        assert apply(Intent.volume_delta(0.1), silent).is_muted is False

    def test_toggle_mute_keeps_volume(self, session):
        muted = apply(Intent(IntentKind.TOGGLE_MUTE), session)
        assert muted.is_muted is True
        assert muted.volume == 0.5


class TestSpeed:
    """Test playback rate intents."""

    def test_cycle_up_and_down(self, session):
        assert apply(Intent(IntentKind.CYCLE_SPEED, 1), session).playback_rate == 1.25
        assert apply(Intent(IntentKind.CYCLE_SPEED, -1), session).playback_rate == 0.75

    def test_cycle_wraps(self, session):
        """Test that cycling past either end wraps around."""
        fastest = replace(session, playback_rate=2.0)
        slowest = replace(session, playback_rate=0.5)
        assert apply(Intent(IntentKind.CYCLE_SPEED, 1), fastest).playback_rate == 0.5
        assert apply(Intent(IntentKind.CYCLE_SPEED, -1), slowest).playback_rate == 2.0

    def test_set_speed_rejects_unknown_rate(self, session):
        assert apply(Intent(IntentKind.SET_SPEED, 1.5), session).playback_rate == 1.5
        assert apply(Intent(IntentKind.SET_SPEED, 3.0), session).playback_rate == 1.0


class TestVariant:
    """Test variant selection."""

    def test_progressive_ignores_variant(self, session):
        """Test that quality selection is a no-op for progressive sources."""
        assert apply(Intent(IntentKind.SET_VARIANT, 1), session) == session

    def test_adaptive_variant_selection(self, session):
        adaptive = replace(
            session,
            source_kind=SourceKind.ADAPTIVE_MANIFEST,
            available_variants=(Variant(0, 360, 640, 800_000), Variant(1, 720, 1280, 2_500_000)),
        )
        pinned = apply(Intent(IntentKind.SET_VARIANT, 1), adaptive)
        assert pinned.selected_variant == 1
        assert apply(Intent(IntentKind.SET_VARIANT, AUTO_VARIANT), pinned).selected_variant == AUTO_VARIANT
        assert apply(Intent(IntentKind.SET_VARIANT, 7), adaptive).selected_variant == AUTO_VARIANT


class TestPresentationIntents:
    """Test that presentation intents leave the session alone."""

    @pytest.mark.parametrize("kind", [
        IntentKind.TOGGLE_FULLSCREEN,
        IntentKind.TOGGLE_SHORTCUTS,
        IntentKind.SEEK_PREVIEW,
        IntentKind.SKIP_OPENING,
    ])
    def test_unchanged(self, session, kind):
        intent = Intent(kind, 5.0)
        assert intent.affects_session is False
        assert apply(intent, session) == session


class TestClampingProperties:
    """Test boundary values of volume and jump intents."""

    def test_volume_never_leaves_range(self, session):
        assert apply(Intent.volume_delta(0.1), replace(session, volume=0.95)).volume == 1.0
        assert apply(Intent.volume_delta(-0.1), replace(session, volume=0.05)).volume == 0.0

    def test_digit_seven_on_short_episode(self, session):
        """Test that 7 lands on exactly 70 percent."""
        short = replace(session, total_duration=200.0)
        assert apply(Intent.jump_to_percent(70), short).current_position == 140.0
