"""QtMultimedia implementations of the playback engine."""

import threading
from pathlib import Path

import requests
from PySide6.QtCore import QObject, QUrl, Signal
from PySide6.QtMultimedia import QAudioOutput, QMediaFormat, QMediaPlayer
from rich.console import Console

from .engine import BufferConfig, ErrorKind, PlaybackEngine
from .manifest import BandwidthEstimator, ManifestLoader, select_variant
from .models import AUTO_VARIANT, Variant
from .source import SourceKind

console = Console()


ERROR_KINDS = {
    QMediaPlayer.Error.NetworkError: ErrorKind.NETWORK,
    QMediaPlayer.Error.ResourceError: ErrorKind.NETWORK,
    QMediaPlayer.Error.FormatError: ErrorKind.MEDIA,
    QMediaPlayer.Error.AccessDeniedError: ErrorKind.OTHER,
}

BUFFERING_STATUSES = (
    QMediaPlayer.MediaStatus.LoadingMedia,
    QMediaPlayer.MediaStatus.StalledMedia,
    QMediaPlayer.MediaStatus.BufferingMedia,
)


def locator_to_url(locator: str) -> QUrl:
    """Local paths become file URLs, everything else is taken as a URL."""
    path = Path(locator).expanduser()
    if "://" not in locator and path.exists():
        return QUrl.fromLocalFile(str(path.resolve()))
    return QUrl.fromUserInput(locator)


class QtMediaEngine(PlaybackEngine):
    """QMediaPlayer-backed engine rendering into a shared video sink.

    Subclasses decide what URL the player gets; this class maps the
    player's signals onto the engine interface and restores position and
    play state whenever the source is re-assigned.
    """

    def __init__(self, video_sink: QObject | None, buffer_config: BufferConfig | None = None, parent=None):
        super().__init__(buffer_config, parent)
        self._locator = ""
        self._resume_ms: int | None = None
        self._resume_playing = False

        self._player = QMediaPlayer()
        self._audio_output = QAudioOutput()
        self._player.setAudioOutput(self._audio_output)
        if video_sink is not None:
            self._player.setVideoOutput(video_sink)

        self._player.positionChanged.connect(self._on_position_changed)
        self._player.durationChanged.connect(self._on_duration_changed)
        self._player.mediaStatusChanged.connect(self._on_media_status_changed)
        self._player.playbackStateChanged.connect(self._on_playback_state_changed)
        self._player.errorOccurred.connect(self._on_error)

    @property
    def locator(self) -> str:
        return self._locator

    # Engine interface

    def play(self) -> None:
        if self._destroyed:
            return
        if self._player.playbackState() != QMediaPlayer.PlaybackState.PlayingState:
            self._player.play()

    def pause(self) -> None:
        if self._destroyed:
            return
        if self._player.playbackState() == QMediaPlayer.PlaybackState.PlayingState:
            self._player.pause()

    def seek(self, seconds: float) -> None:
        if self._destroyed:
            return
        self._player.setPosition(int(max(0.0, seconds) * 1000))

    def set_rate(self, rate: float) -> None:
        if not self._destroyed:
            self._player.setPlaybackRate(rate)

    def set_volume(self, volume: float) -> None:
        if not self._destroyed:
            self._audio_output.setVolume(max(0.0, min(1.0, volume)))

    def set_muted(self, muted: bool) -> None:
        if not self._destroyed:
            self._audio_output.setMuted(muted)

    def _assign_source(self, url: QUrl, resume: bool = False) -> None:
        """Point the player at a URL, optionally restoring position and play state."""
        if resume:
            self._resume_ms = self._player.position()
            self._resume_playing = (
                self._player.playbackState() == QMediaPlayer.PlaybackState.PlayingState
            )
        self._player.setSource(url)

    def _release(self) -> None:
        self._player.positionChanged.disconnect(self._on_position_changed)
        self._player.durationChanged.disconnect(self._on_duration_changed)
        self._player.mediaStatusChanged.disconnect(self._on_media_status_changed)
        self._player.playbackStateChanged.disconnect(self._on_playback_state_changed)
        self._player.errorOccurred.disconnect(self._on_error)
        self._player.stop()
        self._player.setSource(QUrl())
        self._player.setVideoOutput(None)
        self._player.deleteLater()
        self._audio_output.deleteLater()

    # QMediaPlayer signals

    def _on_position_changed(self, position_ms: int):
        self.position_changed.emit(self, position_ms / 1000.0)

    def _on_duration_changed(self, duration_ms: int):
        if duration_ms > 0:
            self.metadata_loaded.emit(self, duration_ms / 1000.0)

    def _on_media_status_changed(self, status: QMediaPlayer.MediaStatus):
        if status == QMediaPlayer.MediaStatus.LoadedMedia:
            self._restore_after_load()
            duration_ms = self._player.duration()
            if duration_ms > 0:
                self.metadata_loaded.emit(self, duration_ms / 1000.0)

        if status in BUFFERING_STATUSES:
            self.buffering_changed.emit(self, True)
            if status == QMediaPlayer.MediaStatus.StalledMedia:
                self._on_stalled()
        elif status != QMediaPlayer.MediaStatus.InvalidMedia:
            self.buffering_changed.emit(self, False)

        if status == QMediaPlayer.MediaStatus.EndOfMedia:
            self.ended.emit(self)

    def _on_playback_state_changed(self, state: QMediaPlayer.PlaybackState):
        self.playing_changed.emit(self, state == QMediaPlayer.PlaybackState.PlayingState)

    def _on_error(self, error: QMediaPlayer.Error, error_string: str):
        if error == QMediaPlayer.Error.NoError:
            return
        kind = ERROR_KINDS.get(error, ErrorKind.OTHER)
        self.error_occurred.emit(self, kind, error_string or str(error))

    def _restore_after_load(self):
        if self._resume_ms is not None:
            self._player.setPosition(self._resume_ms)
            self._resume_ms = None
            if self._resume_playing:
                self._resume_playing = False
                self._player.play()

    def _on_stalled(self):
        pass


class QtProgressiveEngine(QtMediaEngine):
    """Plays a single file or URL as-is."""

    def load(self, locator: str) -> None:
        self._locator = locator
        self._assign_source(locator_to_url(locator))

    def reload_source(self) -> None:
        if self._destroyed:
            return
        self._assign_source(QUrl(), resume=True)
        self._player.setSource(locator_to_url(self._locator))

    def recover_media_error(self) -> None:
        self.reload_source()


class QtAdaptiveEngine(QtMediaEngine):
    """Adaptive-manifest engine on top of QMediaPlayer.

    The manifest is fetched off the UI thread; the result comes back
    through a queued signal. Variant choice follows a bandwidth estimate
    seeded with the configured initial guess: the highest rendition that
    fits is used at start, and in automatic mode a stall drops the
    estimate and re-selects. Pinning a variant turns automatic switching
    off until AUTO_VARIANT is selected again.

    QtMultimedia keeps its own segment buffer; the buffer limits in
    BufferConfig are advisory for this backend.
    """

    # generation, variants (or None), throughput sample (or the exception)
    _load_finished = Signal(int, object, object)

    STALL_PENALTY = 0.5

    def __init__(
        self,
        video_sink: QObject | None,
        buffer_config: BufferConfig | None = None,
        loader: ManifestLoader | None = None,
        parent=None,
    ):
        super().__init__(video_sink, buffer_config, parent)
        config = self._buffer_config
        self._loader = loader or ManifestLoader(timeout=config.request_timeout)
        self._estimator = BandwidthEstimator(config.initial_bandwidth_estimate)
        self._variants: list[Variant] = []
        self._current_index = AUTO_VARIANT
        self._pinned_index: int | None = None
        self._generation = 0
        self._load_thread: threading.Thread | None = None
        self._load_finished.connect(self._on_load_finished)

    @classmethod
    def is_supported(cls) -> bool:
        """Segments are MPEG-TS or fragmented MP4; the backend must decode MPEG-4."""
        formats = QMediaFormat().supportedFileFormats(QMediaFormat.ConversionMode.Decode)
        return QMediaFormat.FileFormat.MPEG4 in formats

    @property
    def variants(self) -> list[Variant]:
        return list(self._variants)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def estimator(self) -> BandwidthEstimator:
        return self._estimator

    def load(self, locator: str) -> None:
        self._locator = locator
        self._start_manifest_load()

    def _start_manifest_load(self) -> None:
        self._generation += 1
        generation = self._generation
        locator = self._locator
        loader = self._loader
        self.buffering_changed.emit(self, True)

        def run_load() -> None:
            try:
                variants, sample = loader.load(locator)
            except (requests.RequestException, ValueError) as exc:
                self._load_finished.emit(generation, None, exc)
                return
            self._load_finished.emit(generation, variants, sample)

        self._load_thread = threading.Thread(target=run_load, name="manifest-load", daemon=True)
        self._load_thread.start()

    def _on_load_finished(self, generation: int, variants, result):
        if self._destroyed or generation != self._generation:
            return

        if variants is None:
            kind = ErrorKind.NETWORK if isinstance(result, requests.RequestException) else ErrorKind.OTHER
            self.error_occurred.emit(self, kind, f"Manifest load failed: {result}")
            return

        if result:
            self._estimator.add_sample(result)
        self._variants = list(variants)
        self.manifest_parsed.emit(self, list(variants))

        index = self._pinned_index if self._is_known(self._pinned_index) else self._auto_choice()
        # A reload already captured where to resume.
        self._switch_to(index, resume=self._resume_ms is None and self._current_index != AUTO_VARIANT)

    def _is_known(self, index: int | None) -> bool:
        return index is not None and any(v.index == index for v in self._variants)

    def _auto_choice(self) -> int:
        config = self._buffer_config
        return select_variant(
            self._variants,
            self._estimator.estimate,
            self._current_index,
            config.abr_bandwidth_factor,
            config.abr_bandwidth_up_factor,
        )

    def _switch_to(self, index: int, resume: bool = True) -> None:
        variant = next((v for v in self._variants if v.index == index), None)
        if variant is None:
            return
        self._current_index = index
        self._assign_source(QUrl(variant.uri), resume=resume)
        self.variant_switched.emit(self, index)

    def set_variant(self, index: int) -> None:
        if self._destroyed:
            return
        if index == AUTO_VARIANT:
            self._pinned_index = None
            choice = self._auto_choice()
        else:
            if not self._is_known(index):
                return
            self._pinned_index = index
            choice = index
        if self._variants and choice != self._current_index:
            self._switch_to(choice)

    def _on_stalled(self):
        if self._pinned_index is not None or not self._variants:
            return
        self._estimator.penalize(self.STALL_PENALTY)
        choice = self._auto_choice()
        if choice != self._current_index:
            console.print(f"[yellow]Stalled, switching down to level {choice}[/yellow]")
            self._switch_to(choice)

    def reload_source(self) -> None:
        """Re-fetch the manifest, then resume where playback stopped."""
        if self._destroyed:
            return
        self._resume_ms = self._player.position()
        self._resume_playing = (
            self._player.playbackState() == QMediaPlayer.PlaybackState.PlayingState
        )
        self._start_manifest_load()

    def recover_media_error(self) -> None:
        """Re-create the decode pipeline on the current variant."""
        if self._destroyed or not self._is_known(self._current_index):
            return
        variant = next(v for v in self._variants if v.index == self._current_index)
        self._assign_source(QUrl(), resume=True)
        self._player.setSource(QUrl(variant.uri))

    def _release(self) -> None:
        # A manifest load still in flight reports to a dead generation.
        self._generation += 1
        self._load_finished.disconnect(self._on_load_finished)
        super()._release()
        self._loader.close()


def create_engine(
    kind: SourceKind,
    video_sink: QObject | None,
    buffer_config: BufferConfig | None = None,
) -> PlaybackEngine:
    """Build the engine for a source kind.

    Adaptive sources fall back to direct playback of the locator when the
    adaptive engine cannot run here.
    """
    if kind == SourceKind.ADAPTIVE_MANIFEST:
        if QtAdaptiveEngine.is_supported():
            return QtAdaptiveEngine(video_sink, buffer_config)
        console.print("[yellow]Adaptive playback unsupported, assigning the manifest directly[/yellow]")
    return QtProgressiveEngine(video_sink, buffer_config)
