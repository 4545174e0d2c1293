"""Decoding engine interface bridged into the playback session."""

from dataclasses import dataclass
from enum import Enum

from PySide6.QtCore import QObject, Signal

from .config import Config


class ErrorKind(Enum):
    """Classification of fatal engine faults."""
    NETWORK = "network"  # recoverable by reloading the source
    MEDIA = "media"      # recoverable by rebuilding the decode pipeline
    OTHER = "other"      # terminal


@dataclass(frozen=True)
class BufferConfig:
    """Buffering limits handed to an adaptive engine."""
    max_buffer_length: float = 30.0
    back_buffer_length: float = 90.0
    max_max_buffer_length: float = 600.0
    max_buffer_size: int = 60 * 1000 * 1000
    initial_bandwidth_estimate: int = 500_000
    abr_bandwidth_factor: float = 0.95
    abr_bandwidth_up_factor: float = 0.7
    request_timeout: float = 10.0

    @classmethod
    def from_config(cls, config: Config) -> "BufferConfig":
        return cls(
            max_buffer_length=config.max_buffer_length,
            back_buffer_length=config.back_buffer_length,
            max_max_buffer_length=config.max_max_buffer_length,
            max_buffer_size=config.max_buffer_size,
            initial_bandwidth_estimate=config.initial_bandwidth_estimate,
            abr_bandwidth_factor=config.abr_bandwidth_factor,
            abr_bandwidth_up_factor=config.abr_bandwidth_up_factor,
            request_timeout=config.request_timeout,
        )


class PlaybackEngine(QObject):
    """One decode/render engine instance, attached to the video surface.

    Every signal carries the emitting engine first, so a receiver can
    tell a live engine's events from those of an engine it already tore
    down.

    Signals:
        metadata_loaded: duration (seconds) is known
        position_changed: playhead moved (seconds)
        buffering_changed: waiting for data started / stopped
        playing_changed: engine started / stopped rendering
        ended: natural end of media
        manifest_parsed: variants of an adaptive manifest (list[Variant])
        variant_switched: engine now renders this variant index
        error_occurred: fatal fault (ErrorKind, message)
    """

    metadata_loaded = Signal(object, float)
    position_changed = Signal(object, float)
    buffering_changed = Signal(object, bool)
    playing_changed = Signal(object, bool)
    ended = Signal(object)
    manifest_parsed = Signal(object, list)
    variant_switched = Signal(object, int)
    error_occurred = Signal(object, ErrorKind, str)

    def __init__(self, buffer_config: BufferConfig | None = None, parent=None):
        super().__init__(parent)
        self._buffer_config = buffer_config or BufferConfig()
        self._destroyed = False

    @classmethod
    def is_supported(cls) -> bool:
        """Whether this engine can run on the current platform."""
        return True

    @property
    def buffer_config(self) -> BufferConfig:
        return self._buffer_config

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def load(self, locator: str) -> None:
        raise NotImplementedError

    def play(self) -> None:
        raise NotImplementedError

    def pause(self) -> None:
        raise NotImplementedError

    def seek(self, seconds: float) -> None:
        raise NotImplementedError

    def set_rate(self, rate: float) -> None:
        raise NotImplementedError

    def set_volume(self, volume: float) -> None:
        raise NotImplementedError

    def set_muted(self, muted: bool) -> None:
        raise NotImplementedError

    def set_variant(self, index: int) -> None:
        """Pin a variant, or re-enable automatic switching with AUTO_VARIANT."""

    def reload_source(self) -> None:
        """Restart loading of the current source after a network fault."""
        raise NotImplementedError

    def recover_media_error(self) -> None:
        """Rebuild the decode pipeline without re-fetching the manifest."""
        raise NotImplementedError

    def destroy(self) -> None:
        """Release every resource. Safe to call more than once."""
        if self._destroyed:
            return
        self._destroyed = True
        self._release()

    def _release(self) -> None:
        pass
