"""Tests for the adaptive bitrate session."""

from unittest.mock import MagicMock

import pytest

from episode_player.config import Config
from episode_player.engine import ErrorKind
from episode_player.intents import Intent, IntentKind
from episode_player.models import AUTO_VARIANT
from episode_player.session import AdaptiveBitrateSession, SessionState
from episode_player.source import SourceKind

MP4 = "http://cdn.test/ep.mp4"
HLS = "http://cdn.test/ep/master.m3u8"


@pytest.fixture
def session(engine_factory, config) -> AdaptiveBitrateSession:
    return AdaptiveBitrateSession(engine_factory, config)


def ready(session, engine_factory, locator=MP4, duration=600.0, **kwargs):
    """Start a locator and report its metadata; returns the engine."""
    session.start(locator, **kwargs)
    engine = engine_factory.last
    engine.load_metadata(duration)
    return engine


class TestLifecycle:
    """Test start and teardown."""

    def test_start_picks_engine_kind(self, session, engine_factory):
        session.start(HLS)
        engine = engine_factory.last
        assert engine.kind == SourceKind.ADAPTIVE_MANIFEST
        assert ("load", HLS) in engine.calls
        assert session.state == SessionState.LOADING
        assert session.session.source_kind == SourceKind.ADAPTIVE_MANIFEST

    def test_metadata_makes_ready(self, session, engine_factory):
        ready(session, engine_factory)
        assert session.state == SessionState.READY
        assert session.session.is_ready
        assert session.session.total_duration == 600.0

    def test_teardown_is_idempotent(self, session, engine_factory):
        engine = ready(session, engine_factory)
        session.teardown()
        session.teardown()
        assert engine.count("release") == 1
        assert engine.is_destroyed
        assert session.engine is None
        assert session.state == SessionState.IDLE

    def test_start_replaces_engine(self, session, engine_factory):
        """Test that starting a new source destroys the previous engine first."""
        first = ready(session, engine_factory)
        session.start("http://cdn.test/other.mp4")
        assert first.is_destroyed
        assert len(engine_factory.engines) == 2
        assert session.engine is engine_factory.last

    def test_settings_carry_over(self, session, engine_factory):
        """Test that volume, mute and rate survive a source change."""
        ready(session, engine_factory)
        session.set_volume(0.3)
        session.set_playback_rate(1.5)
        session.set_muted(True)

        second = ready(session, engine_factory, "http://cdn.test/next.mp4")
        assert session.session.volume == 0.3
        assert session.session.is_muted is True
        assert session.session.playback_rate == 1.5
        assert ("set_volume", 0.3) in second.calls
        assert ("set_muted", True) in second.calls
        assert ("set_rate", 1.5) in second.calls

    def test_initial_position(self, session, engine_factory):
        engine = ready(session, engine_factory, initial_position=120.0)
        assert ("seek", 120.0) in engine.calls
        assert session.session.current_position == 120.0

    def test_initial_position_past_end_is_ignored(self, session, engine_factory):
        engine = ready(session, engine_factory, duration=100.0, initial_position=150.0)
        assert engine.count("seek") == 0


class TestStaleEvents:
    """Test that a torn-down engine cannot touch the session."""

    def test_events_from_old_engine_dropped(self, session, engine_factory):
        old = ready(session, engine_factory)
        ready(session, engine_factory, "http://cdn.test/next.mp4", duration=300.0)

        listener = MagicMock()
        session.session_changed.connect(listener)
        old.position_changed.emit(old, 42.0)
        old.playing_changed.emit(old, True)
        old.error_occurred.emit(old, ErrorKind.OTHER, "late")

        listener.assert_not_called()
        assert session.session.current_position == 0.0
        assert session.state == SessionState.READY

    def test_ended_from_old_engine_dropped(self, session, engine_factory):
        old = ready(session, engine_factory)
        session.teardown()
        ended = MagicMock()
        session.ended.connect(ended)
        old.ended.emit(old)
        ended.assert_not_called()


class TestIntents:
    """Test intent application and queueing."""

    def test_intents_queue_until_ready(self, session, engine_factory):
        """Test that intents before metadata are replayed in order."""
        session.start(MP4)
        engine = engine_factory.last
        session.dispatch(Intent.seek_to(30))
        session.dispatch(Intent(IntentKind.PLAY))
        assert engine.count("play") == 0
        assert len(session.pending_intents) == 2

        engine.load_metadata(600.0)
        names = engine.names()
        assert names.index("seek") < names.index("play")
        assert session.pending_intents == []
        assert session.session.is_playing

    def test_teardown_drops_queue(self, session, engine_factory):
        session.start(MP4)
        session.dispatch(Intent(IntentKind.PLAY))
        session.teardown()
        assert session.pending_intents == []

    def test_enacts_changes(self, session, engine_factory):
        engine = ready(session, engine_factory)
        session.dispatch(Intent.seek_delta(10))
        session.dispatch(Intent.volume_delta(-0.1))
        session.dispatch(Intent(IntentKind.TOGGLE_MUTE))
        assert ("seek", 10.0) in engine.calls
        assert ("set_volume", 0.9) in engine.calls
        assert ("set_muted", True) in engine.calls

    def test_presentation_intents_ignored(self, session, engine_factory):
        engine = ready(session, engine_factory)
        before = list(engine.calls)
        session.dispatch(Intent(IntentKind.TOGGLE_FULLSCREEN))
        assert engine.calls == before

    def test_variant_on_progressive_is_noop(self, session, engine_factory):
        engine = ready(session, engine_factory)
        session.set_variant(1)
        assert engine.count("set_variant") == 0

    def test_variant_on_adaptive(self, session, engine_factory, variants):
        engine = ready(session, engine_factory, HLS)
        engine.manifest_parsed.emit(engine, variants)
        session.set_variant(2)
        assert ("set_variant", 2) in engine.calls
        session.set_variant(AUTO_VARIANT)
        assert ("set_variant", AUTO_VARIANT) in engine.calls

    def test_manifest_publishes_choices(self, session, engine_factory, variants):
        listener = MagicMock()
        session.variants_changed.connect(listener)
        engine = ready(session, engine_factory, HLS)
        engine.manifest_parsed.emit(engine, variants)
        choices = listener.call_args.args[0]
        assert [c.label for c in choices] == ["Auto", "360p", "720p", "1080p"]

    def test_engine_reports_update_session(self, session, engine_factory):
        engine = ready(session, engine_factory)
        engine.playing_changed.emit(engine, True)
        engine.buffering_changed.emit(engine, True)
        engine.position_changed.emit(engine, 12.5)
        assert session.session.is_playing
        assert session.session.is_buffering
        assert session.session.current_position == 12.5

    def test_ended(self, session, engine_factory):
        engine = ready(session, engine_factory)
        ended = MagicMock()
        session.ended.connect(ended)
        engine.playing_changed.emit(engine, True)
        engine.ended.emit(engine)
        ended.assert_called_once()
        assert session.session.is_playing is False
        assert session.session.current_position == 600.0


class TestRecovery:
    """Test the fault recovery policy."""

    def test_network_error_reloads(self, session, engine_factory):
        engine = ready(session, engine_factory)
        engine.error_occurred.emit(engine, ErrorKind.NETWORK, "timeout")
        assert engine.count("reload_source") == 1
        assert session.state == SessionState.RECOVERING
        assert not session.session.failed

    def test_network_budget_exhausted_fails(self, session, engine_factory):
        """Test that a second network fault without progress is terminal."""
        engine = ready(session, engine_factory)
        failed = MagicMock()
        session.playback_failed.connect(failed)

        engine.error_occurred.emit(engine, ErrorKind.NETWORK, "timeout")
        engine.error_occurred.emit(engine, ErrorKind.NETWORK, "timeout again")

        assert engine.count("reload_source") == 1
        failed.assert_called_once_with("timeout again")
        assert engine.is_destroyed
        assert session.state == SessionState.FAILED
        assert session.session.failed
        assert session.session.error_message == "timeout again"

    def test_progress_resets_budget(self, session, engine_factory):
        engine = ready(session, engine_factory)
        engine.position_changed.emit(engine, 100.0)
        engine.error_occurred.emit(engine, ErrorKind.NETWORK, "timeout")
        engine.position_changed.emit(engine, 102.0)
        assert session.state == SessionState.READY

        engine.error_occurred.emit(engine, ErrorKind.NETWORK, "timeout")
        assert engine.count("reload_source") == 2
        assert session.state == SessionState.RECOVERING

    def test_backoff_delays_reload(self, engine_factory):
        session = AdaptiveBitrateSession(engine_factory, Config(retry_backoff_ms=1000))
        engine = ready(session, engine_factory)
        engine.error_occurred.emit(engine, ErrorKind.NETWORK, "timeout")
        assert engine.count("reload_source") == 0
        assert session._retry_timer.isActive()
        assert session._retry_timer.interval() == 1000

        session.teardown()
        assert not session._retry_timer.isActive()

    def test_media_error_recovers_once(self, session, engine_factory):
        engine = ready(session, engine_factory)
        engine.error_occurred.emit(engine, ErrorKind.MEDIA, "decode")
        assert engine.count("recover_media_error") == 1
        assert session.state == SessionState.RECOVERING

        engine.error_occurred.emit(engine, ErrorKind.MEDIA, "decode")
        assert engine.count("recover_media_error") == 1
        assert session.state == SessionState.FAILED

    def test_other_error_fails_immediately(self, session, engine_factory):
        engine = ready(session, engine_factory)
        engine.error_occurred.emit(engine, ErrorKind.OTHER, "unsupported")
        assert session.state == SessionState.FAILED
        assert session.engine is None

    def test_no_intents_after_failure(self, session, engine_factory):
        engine = ready(session, engine_factory)
        engine.error_occurred.emit(engine, ErrorKind.OTHER, "unsupported")
        session.dispatch(Intent(IntentKind.PLAY))
        assert engine.count("play") == 0
        assert session.pending_intents == []

    def test_retry_restarts_at_position(self, session, engine_factory):
        engine = ready(session, engine_factory)
        engine.position_changed.emit(engine, 250.0)
        engine.error_occurred.emit(engine, ErrorKind.OTHER, "unsupported")

        session.retry()
        fresh = engine_factory.last
        assert fresh is not engine
        assert session.state == SessionState.LOADING
        assert not session.session.failed

        fresh.load_metadata(600.0)
        assert ("seek", 250.0) in fresh.calls
