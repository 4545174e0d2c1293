"""Playback session: owns the engine and the live PlaybackSession state."""

from dataclasses import replace
from enum import Enum, auto
from typing import Callable

from PySide6.QtCore import QObject, Signal, QTimer
from rich.console import Console

from .config import Config
from .engine import ErrorKind, PlaybackEngine
from .intents import Intent, IntentKind, apply
from .models import AUTO_VARIANT, PlaybackSession
from .source import SourceKind, resolve

console = Console()

EngineFactory = Callable[[SourceKind], PlaybackEngine]


class SessionState(Enum):
    """Session lifecycle states."""
    IDLE = auto()
    LOADING = auto()     # Engine created, metadata not known yet
    READY = auto()
    RECOVERING = auto()  # Automatic recovery from a fault in progress
    FAILED = auto()      # Terminal error, needs a user-initiated retry


class AdaptiveBitrateSession(QObject):
    """Bridges one decoding engine to the PlaybackSession value.

    Exactly one engine is live at a time. Intents that arrive before the
    engine has loaded metadata are queued and replayed in order once it
    has. Engine events from an engine other than the live one are
    dropped.

    Fault handling:
    - network: reload the source, at most `network_retry_limit` times per
      fault, with doubling backoff
    - media: rebuild the decode pipeline in place, once per fault
    - anything else, or an exhausted budget: tear down and fail

    Signals:
        state_changed: lifecycle state changed
        session_changed: new PlaybackSession value
        variants_changed: variant choices, "Auto" first (list[Variant])
        position_changed: playhead position (seconds)
        duration_changed: total duration became known (seconds)
        ended: natural end of media
        playback_failed: terminal error message
    """

    state_changed = Signal(SessionState)
    session_changed = Signal(object)
    variants_changed = Signal(list)
    position_changed = Signal(float)
    duration_changed = Signal(float)
    ended = Signal()
    playback_failed = Signal(str)

    # Playback must move this far past a fault before its budget resets.
    RECOVERY_PROGRESS_SECONDS = 1.0
    MEDIA_RECOVERY_LIMIT = 1

    def __init__(self, engine_factory: EngineFactory, config: Config | None = None, parent=None):
        super().__init__(parent)
        self._engine_factory = engine_factory
        self._config = config or Config()
        self._speeds = tuple(self._config.playback_speeds)

        self._engine: PlaybackEngine | None = None
        self._session = PlaybackSession()
        self._state = SessionState.IDLE
        self._pending: list[Intent] = []
        self._initial_position = 0.0

        self._network_retries = 0
        self._media_recoveries = 0
        self._fault_position: float | None = None

        self._retry_timer = QTimer(self)
        self._retry_timer.setSingleShot(True)
        self._retry_timer.timeout.connect(self._reload_after_backoff)

    # Properties

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> PlaybackSession:
        return self._session

    @property
    def engine(self) -> PlaybackEngine | None:
        return self._engine

    @property
    def is_ready(self) -> bool:
        return self._state in (SessionState.READY, SessionState.RECOVERING)

    @property
    def pending_intents(self) -> list[Intent]:
        return list(self._pending)

    # Lifecycle

    def start(self, locator: str, kind: SourceKind | None = None, initial_position: float = 0.0) -> None:
        """Begin playback of a locator, replacing any current engine."""
        self.teardown()

        kind = kind or resolve(locator)
        previous = self._session
        self._session = PlaybackSession(
            source_locator=locator,
            source_kind=kind,
            volume=previous.volume,
            is_muted=previous.is_muted,
            playback_rate=previous.playback_rate,
        )
        self._initial_position = max(0.0, initial_position or 0.0)
        self._network_retries = 0
        self._media_recoveries = 0
        self._fault_position = None

        engine = self._engine_factory(kind)
        self._attach(engine)
        self._set_state(SessionState.LOADING)

        engine.set_volume(self._session.volume)
        engine.set_muted(self._session.is_muted)
        engine.load(locator)
        self.session_changed.emit(self._session)

    def teardown(self) -> None:
        """Release the engine and drop queued intents. Safe to repeat."""
        self._retry_timer.stop()
        self._pending.clear()

        engine = self._engine
        if engine is not None:
            self._engine = None
            self._detach(engine)
            engine.destroy()

        if self._session.is_playing or self._session.is_buffering or self._session.is_ready:
            self._session = replace(self._session, is_playing=False, is_buffering=False, is_ready=False)
        if self._state != SessionState.FAILED:
            self._set_state(SessionState.IDLE)

    def retry(self) -> None:
        """User-initiated reopen of the current source."""
        if not self._session.source_locator:
            return
        self.start(
            self._session.source_locator,
            self._session.source_kind,
            initial_position=self._session.current_position,
        )

    def _attach(self, engine: PlaybackEngine) -> None:
        self._engine = engine
        engine.metadata_loaded.connect(self._on_metadata_loaded)
        engine.position_changed.connect(self._on_position_changed)
        engine.buffering_changed.connect(self._on_buffering_changed)
        engine.playing_changed.connect(self._on_playing_changed)
        engine.ended.connect(self._on_ended)
        engine.manifest_parsed.connect(self._on_manifest_parsed)
        engine.variant_switched.connect(self._on_variant_switched)
        engine.error_occurred.connect(self._on_error)

    def _detach(self, engine: PlaybackEngine) -> None:
        engine.metadata_loaded.disconnect(self._on_metadata_loaded)
        engine.position_changed.disconnect(self._on_position_changed)
        engine.buffering_changed.disconnect(self._on_buffering_changed)
        engine.playing_changed.disconnect(self._on_playing_changed)
        engine.ended.disconnect(self._on_ended)
        engine.manifest_parsed.disconnect(self._on_manifest_parsed)
        engine.variant_switched.disconnect(self._on_variant_switched)
        engine.error_occurred.disconnect(self._on_error)

    def _set_state(self, new_state: SessionState) -> None:
        if self._state != new_state:
            self._state = new_state
            self.state_changed.emit(new_state)

    def _set_session(self, session: PlaybackSession) -> None:
        if session != self._session:
            self._session = session
            self.session_changed.emit(session)

    # Intents

    def dispatch(self, intent: Intent) -> None:
        """Apply an intent to the session and the engine."""
        if not intent.affects_session:
            return
        if self._engine is None:
            return
        if not self.is_ready:
            self._pending.append(intent)
            return

        old = self._session
        new = apply(intent, old, self._speeds)
        self._enact(old, new)
        self._set_session(new)

    def _enact(self, old: PlaybackSession, new: PlaybackSession) -> None:
        engine = self._engine
        if engine is None:
            return
        if new.volume != old.volume:
            engine.set_volume(new.volume)
        if new.is_muted != old.is_muted:
            engine.set_muted(new.is_muted)
        if new.playback_rate != old.playback_rate:
            engine.set_rate(new.playback_rate)
        if new.selected_variant != old.selected_variant:
            engine.set_variant(new.selected_variant)
        if new.current_position != old.current_position:
            engine.seek(new.current_position)
        if new.is_playing != old.is_playing:
            if new.is_playing:
                engine.play()
            else:
                engine.pause()

    def _flush_pending(self) -> None:
        pending, self._pending = self._pending, []
        for intent in pending:
            self.dispatch(intent)

    def play(self) -> None:
        self.dispatch(Intent(IntentKind.PLAY))

    def pause(self) -> None:
        self.dispatch(Intent(IntentKind.PAUSE))

    def seek_to(self, seconds: float) -> None:
        self.dispatch(Intent.seek_to(seconds))

    def set_volume(self, volume: float) -> None:
        self.dispatch(Intent.set_volume(volume))

    def set_muted(self, muted: bool) -> None:
        if muted != self._session.is_muted:
            self.dispatch(Intent(IntentKind.TOGGLE_MUTE))

    def set_playback_rate(self, rate: float) -> None:
        self.dispatch(Intent(IntentKind.SET_SPEED, rate))

    def set_variant(self, index: int = AUTO_VARIANT) -> None:
        """Pin a variant or return to automatic switching.

        Does nothing for progressive sources.
        """
        if self._session.source_kind != SourceKind.ADAPTIVE_MANIFEST:
            return
        self.dispatch(Intent(IntentKind.SET_VARIANT, index))

    # Engine events

    def _on_metadata_loaded(self, engine: PlaybackEngine, duration: float) -> None:
        if engine is not self._engine:
            return

        session = replace(self._session, total_duration=duration if duration > 0 else None)
        if duration > 0:
            self.duration_changed.emit(duration)

        if self._state == SessionState.LOADING:
            session = replace(session, is_ready=True)
            if 0 < self._initial_position < (duration or float("inf")):
                engine.seek(self._initial_position)
                session = replace(session, current_position=self._initial_position)
            self._initial_position = 0.0
            self._set_session(session)
            self._set_state(SessionState.READY)
            # The engine starts with its own defaults.
            if session.playback_rate != 1.0:
                engine.set_rate(session.playback_rate)
            self._flush_pending()
            return

        self._set_session(session)

    def _on_position_changed(self, engine: PlaybackEngine, seconds: float) -> None:
        if engine is not self._engine:
            return

        if (
            self._fault_position is not None
            and seconds > self._fault_position + self.RECOVERY_PROGRESS_SECONDS
        ):
            self._network_retries = 0
            self._media_recoveries = 0
            self._fault_position = None
            if self._state == SessionState.RECOVERING:
                self._set_state(SessionState.READY)

        self._set_session(replace(self._session, current_position=seconds))
        self.position_changed.emit(seconds)

    def _on_buffering_changed(self, engine: PlaybackEngine, buffering: bool) -> None:
        if engine is not self._engine:
            return
        self._set_session(replace(self._session, is_buffering=buffering))

    def _on_playing_changed(self, engine: PlaybackEngine, playing: bool) -> None:
        if engine is not self._engine:
            return
        self._set_session(replace(self._session, is_playing=playing))

    def _on_ended(self, engine: PlaybackEngine) -> None:
        if engine is not self._engine:
            return
        position = self._session.total_duration or self._session.current_position
        self._set_session(replace(self._session, is_playing=False, is_buffering=False, current_position=position))
        self.ended.emit()

    def _on_manifest_parsed(self, engine: PlaybackEngine, variants: list) -> None:
        if engine is not self._engine:
            return
        self._set_session(replace(self._session, available_variants=tuple(variants)))
        console.print(f"[dim]Manifest parsed: {len(variants)} variants[/dim]")
        self.variants_changed.emit(list(self._session.variant_choices))

    def _on_variant_switched(self, engine: PlaybackEngine, index: int) -> None:
        if engine is not self._engine:
            return
        if self._session.selected_variant == AUTO_VARIANT:
            console.print(f"[dim]Auto quality switched to level {index}[/dim]")

    def _on_error(self, engine: PlaybackEngine, kind: ErrorKind, message: str) -> None:
        if engine is not self._engine:
            return

        self._fault_position = self._session.current_position

        if kind == ErrorKind.NETWORK and self._network_retries < self._config.network_retry_limit:
            self._network_retries += 1
            delay = self._config.retry_backoff_ms * (2 ** (self._network_retries - 1))
            console.print(
                f"[yellow]Network error, reloading source "
                f"(attempt {self._network_retries}/{self._config.network_retry_limit}): {message}[/yellow]"
            )
            self._set_state(SessionState.RECOVERING)
            if delay > 0:
                self._retry_timer.start(delay)
            else:
                self._reload_after_backoff()
            return

        if kind == ErrorKind.MEDIA and self._media_recoveries < self.MEDIA_RECOVERY_LIMIT:
            self._media_recoveries += 1
            console.print(f"[yellow]Media error, recovering decode pipeline: {message}[/yellow]")
            self._set_state(SessionState.RECOVERING)
            engine.recover_media_error()
            return

        self._fail(message or "Playback failed")

    def _reload_after_backoff(self) -> None:
        if self._engine is not None:
            self._engine.reload_source()

    def _fail(self, message: str) -> None:
        console.print(f"[red]Fatal playback error, giving up: {message}[/red]")
        self._retry_timer.stop()
        self._pending.clear()

        engine = self._engine
        if engine is not None:
            self._engine = None
            self._detach(engine)
            engine.destroy()

        self._set_session(replace(
            self._session,
            is_playing=False,
            is_buffering=False,
            is_ready=False,
            failed=True,
            error_message=message,
        ))
        self._set_state(SessionState.FAILED)
        self.playback_failed.emit(message)
