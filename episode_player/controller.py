"""Playback controller: one playback view's session, input and overlays."""

import time
from collections import deque
from typing import Callable

from PySide6.QtCore import QObject, Signal, QTimer
from rich.console import Console

from .config import Config
from .gestures import GestureMultiplexer
from .intents import Intent, IntentKind
from .models import EpisodeMetadata, PlaybackSession, PriorProgress
from .presentation import SurfacePresenter
from .progress import Dispatch, ProgressReporter, ReportFn
from .session import AdaptiveBitrateSession, EngineFactory
from .skip import SkipWindowDetector

console = Console()

Navigator = Callable[[str], None]
FullscreenFn = Callable[[bool], None]


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class PlaybackController(QObject):
    """Owns everything whose lifetime matches one playback session.

    All input goes through dispatch(), a single FIFO queue: intents raised
    while another is being applied are appended and applied afterwards,
    never nested.

    Signals:
        session_changed: new PlaybackSession value
        variants_changed: variant choices for the quality menu
        episode_opened: EpisodeMetadata of the episode now loading
    """

    session_changed = Signal(object)
    variants_changed = Signal(list)
    episode_opened = Signal(object)

    def __init__(
        self,
        engine_factory: EngineFactory,
        navigator: Navigator | None = None,
        report_fn: ReportFn | None = None,
        config: Config | None = None,
        fullscreen_fn: FullscreenFn | None = None,
        report_dispatch: Dispatch | None = None,
        clock: Callable[[], int] = monotonic_ms,
        parent=None,
    ):
        super().__init__(parent)
        self._config = config or Config()
        self._navigator = navigator
        self._report_fn = report_fn
        self._report_dispatch = report_dispatch
        self._fullscreen_fn = fullscreen_fn
        self._clock = clock

        self._session = AdaptiveBitrateSession(engine_factory, self._config, self)
        self._gestures = GestureMultiplexer(self._config)
        self._presenter = SurfacePresenter(self._config, self)

        self._metadata: EpisodeMetadata | None = None
        self._detector: SkipWindowDetector | None = None
        self._reporter: ProgressReporter | None = None
        self._queue: deque[Intent] = deque()
        self._draining = False
        self._was_playing = False
        self._continue_playing = False

        self._tap_timer = QTimer(self)
        self._tap_timer.setSingleShot(True)
        self._tap_timer.setInterval(self._config.double_tap_ms)
        self._tap_timer.timeout.connect(self._on_tap_timeout)

        self._session.session_changed.connect(self._on_session_changed)
        self._session.position_changed.connect(self._on_position_changed)
        self._session.duration_changed.connect(self._on_duration_changed)
        self._session.variants_changed.connect(self.variants_changed)
        self._session.ended.connect(self._on_ended)
        self._session.playback_failed.connect(self._on_playback_failed)

    # Accessors

    @property
    def config(self) -> Config:
        return self._config

    @property
    def session(self) -> AdaptiveBitrateSession:
        return self._session

    @property
    def state(self) -> PlaybackSession:
        return self._session.session

    @property
    def presenter(self) -> SurfacePresenter:
        return self._presenter

    @property
    def gestures(self) -> GestureMultiplexer:
        return self._gestures

    @property
    def metadata(self) -> EpisodeMetadata | None:
        return self._metadata

    @property
    def reporter(self) -> ProgressReporter | None:
        return self._reporter

    @property
    def detector(self) -> SkipWindowDetector | None:
        return self._detector

    # Lifecycle

    def open(self, metadata: EpisodeMetadata, prior: PriorProgress | None = None, autoplay: bool = False) -> None:
        """Start playing an episode, resuming from prior progress if any."""
        autoplay = autoplay or self._continue_playing
        self.close()
        self._presenter.reset()

        self._metadata = metadata
        self._detector = SkipWindowDetector(metadata.markers, metadata.next_episode_id)
        if self._report_fn is not None and metadata.content_id:
            self._reporter = ProgressReporter(
                self._report_fn,
                metadata.content_id,
                metadata.episode_id,
                metadata.duration_seconds,
                self._config,
                self._report_dispatch,
            )

        initial = prior.position if prior and prior.position > 0 else 0.0
        self._session.start(metadata.video_url, initial_position=initial)
        self._presenter.set_skip_state(self._detector.evaluate(initial))
        self.episode_opened.emit(metadata)

        if autoplay:
            self.dispatch(Intent(IntentKind.PLAY))

    def close(self) -> None:
        """Tear down the session and every timer. Safe to repeat."""
        self._tap_timer.stop()
        self._gestures.reset()
        self._queue.clear()
        self._session.teardown()
        self._presenter.teardown()
        self._reporter = None
        self._detector = None
        self._was_playing = False
        self._continue_playing = False

    def retry(self) -> None:
        """Re-open the current source after a terminal error."""
        self._presenter.set_error("")
        self._session.retry()

    # Intent queue

    def dispatch(self, intent: Intent) -> None:
        self._queue.append(intent)
        if self._draining:
            return
        self._draining = True
        try:
            while self._queue:
                self._apply(self._queue.popleft())
        finally:
            self._draining = False

    def _apply(self, intent: Intent) -> None:
        kind = intent.kind
        presenter = self._presenter

        if kind == IntentKind.TOGGLE_FULLSCREEN:
            self._request_fullscreen(not presenter.state.fullscreen)
        elif kind == IntentKind.SET_BRIGHTNESS:
            presenter.set_brightness(intent.value)
        elif kind == IntentKind.BRIGHTNESS_DELTA:
            presenter.set_brightness(presenter.state.brightness + intent.value)
        elif kind == IntentKind.SEEK_PREVIEW:
            presenter.show_seek_preview(intent.value)
        elif kind == IntentKind.CLEAR_PREVIEW:
            presenter.clear_preview()
        elif kind == IntentKind.TOGGLE_SHORTCUTS:
            presenter.toggle_shortcuts()
        elif kind == IntentKind.CLOSE_SHORTCUTS:
            presenter.close_shortcuts()
        elif kind == IntentKind.SKIP_OPENING:
            self.skip_opening()
        elif kind == IntentKind.SKIP_ENDING:
            self.skip_ending()
        elif kind == IntentKind.NEXT_EPISODE:
            self.next_episode()
        elif kind == IntentKind.PREVIOUS_EPISODE:
            self.previous_episode()
        else:
            self._session.dispatch(intent)
            if kind == IntentKind.SEEK_DELTA:
                presenter.show_seek(intent.value)
            elif kind in (IntentKind.VOLUME_DELTA, IntentKind.SET_VOLUME):
                presenter.show_volume(self.state.volume)

    # Input surfaces

    def key_press(self, key: str, in_text_field: bool = False) -> bool:
        """Handle a key; returns True if it mapped to an intent."""
        intents = self._gestures.key_press(key, in_text_field)
        for intent in intents:
            self.dispatch(intent)
        if intents:
            self._presenter.pointer_activity()
        return bool(intents)

    def touch_start(self, x: float, y: float) -> None:
        self._gestures.touch_start(
            x, y, self._clock(),
            volume=self.state.volume,
            brightness=self._presenter.state.brightness,
        )

    def touch_move(self, x: float, y: float, width: float, height: float) -> None:
        for intent in self._gestures.touch_move(x, y, width, height):
            self.dispatch(intent)

    def touch_end(self, x: float, y: float, width: float, height: float) -> None:
        intents = self._gestures.touch_end(x, y, width, height, self._clock())
        for intent in intents:
            self.dispatch(intent)
        if self._gestures.has_pending_tap:
            self._tap_timer.start()
        else:
            self._tap_timer.stop()
        self._presenter.pointer_activity()

    def _on_tap_timeout(self) -> None:
        for intent in self._gestures.flush_pending():
            self.dispatch(intent)

    def pointer_moved(self) -> None:
        self._presenter.pointer_activity()

    def pointer_left(self) -> None:
        self._presenter.pointer_left()

    def click_surface(self) -> None:
        self.dispatch(Intent.toggle_play())

    # Direct controls

    def toggle_play(self) -> None:
        self.dispatch(Intent.toggle_play())

    def seek_to(self, seconds: float) -> None:
        self.dispatch(Intent.seek_to(seconds))

    def seek_by(self, seconds: float) -> None:
        self.dispatch(Intent.seek_delta(seconds))

    def set_volume(self, volume: float) -> None:
        self.dispatch(Intent.set_volume(volume))

    def toggle_mute(self) -> None:
        self.dispatch(Intent(IntentKind.TOGGLE_MUTE))

    def set_speed(self, rate: float) -> None:
        self.dispatch(Intent(IntentKind.SET_SPEED, rate))

    def set_variant(self, index: int) -> None:
        self.dispatch(Intent(IntentKind.SET_VARIANT, index))

    def toggle_fullscreen(self) -> None:
        self.dispatch(Intent(IntentKind.TOGGLE_FULLSCREEN))

    def toggle_shortcuts(self) -> None:
        self.dispatch(Intent(IntentKind.TOGGLE_SHORTCUTS))

    # Skip affordances and navigation

    def skip_opening(self) -> None:
        if self._detector is None:
            return
        target = self._detector.skip_opening_target()
        if target is not None:
            self._session.dispatch(Intent.seek_to(target))

    def skip_ending(self) -> None:
        if self._detector is None:
            return
        next_id = self._detector.skip_ending_target()
        if next_id is not None:
            self._navigate(next_id, keep_playing=True)

    def next_episode(self) -> None:
        if self._metadata and self._metadata.next_episode_id:
            self._navigate(self._metadata.next_episode_id, keep_playing=self.state.is_playing)

    def previous_episode(self) -> None:
        if self._metadata and self._metadata.previous_episode_id:
            self._navigate(self._metadata.previous_episode_id, keep_playing=self.state.is_playing)

    def _navigate(self, episode_id: str, keep_playing: bool = False) -> None:
        if self._navigator is None:
            console.print(f"[yellow]No navigator set, cannot open episode {episode_id}[/yellow]")
            return
        self._continue_playing = keep_playing
        self._navigator(episode_id)

    # Fullscreen

    def _request_fullscreen(self, fullscreen: bool) -> None:
        if self._fullscreen_fn is not None:
            try:
                self._fullscreen_fn(fullscreen)
            except Exception as e:
                console.print(f"[yellow]Fullscreen request failed: {e}[/yellow]")
                return
        self._presenter.set_fullscreen(fullscreen)

    def fullscreen_changed(self, fullscreen: bool) -> None:
        """The platform reports a fullscreen transition (e.g. Esc from the window manager)."""
        self._presenter.set_fullscreen(fullscreen)

    # Session events

    def _on_session_changed(self, session: PlaybackSession) -> None:
        if session.is_playing != self._was_playing:
            self._was_playing = session.is_playing
            self._presenter.set_playing(session.is_playing)
        self._presenter.set_buffering(session.is_buffering)
        self.session_changed.emit(session)

    def _on_position_changed(self, seconds: float) -> None:
        if self._detector is not None:
            self._presenter.set_skip_state(self._detector.evaluate(seconds))
        if self._reporter is not None:
            self._reporter.sample(seconds)

    def _on_duration_changed(self, duration: float) -> None:
        if self._reporter is not None:
            self._reporter.set_total_duration(duration)

    def _on_ended(self) -> None:
        if self._reporter is not None:
            self._reporter.finish()
        if self._config.autoplay_next and self._metadata and self._metadata.next_episode_id:
            self._navigate(self._metadata.next_episode_id, keep_playing=True)

    def _on_playback_failed(self, message: str) -> None:
        self._presenter.set_error(message)
