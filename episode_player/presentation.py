"""Transient on-screen affordances of the playback surface."""

from dataclasses import dataclass, field, replace
from enum import IntEnum

from PySide6.QtCore import QObject, Signal, QTimer

from .config import Config
from .skip import SkipState


class OverlayLayer(IntEnum):
    """Stacking order of the surface, bottom first. Values double as z-values."""
    VIDEO = 0
    BRIGHTNESS = 10
    BUFFERING = 20
    INDICATORS = 30
    SKIP = 40
    CONTROLS = 50
    SHORTCUTS = 60
    ERROR = 70


@dataclass(frozen=True)
class Indicator:
    """A short-lived seek/volume/brightness readout."""
    kind: str  # "seek", "volume" or "brightness"
    value: float
    direction: str | None = None  # "left" / "right" for seeks


@dataclass(frozen=True)
class PresentationState:
    controls_visible: bool = True
    fullscreen: bool = False
    shortcuts_visible: bool = False
    brightness: float = 100.0
    seek_indicator: Indicator | None = None
    volume_indicator: Indicator | None = None
    brightness_indicator: Indicator | None = None
    seek_preview: float | None = None
    skip_state: SkipState = field(default_factory=SkipState)
    buffering: bool = False
    error_message: str = ""

    def visible_layers(self) -> list[OverlayLayer]:
        """Layers currently on screen, in stacking order."""
        layers = [OverlayLayer.VIDEO]
        if self.brightness < 100.0:
            layers.append(OverlayLayer.BRIGHTNESS)
        if self.buffering and not self.error_message:
            layers.append(OverlayLayer.BUFFERING)
        if self.seek_indicator or self.volume_indicator or self.brightness_indicator:
            layers.append(OverlayLayer.INDICATORS)
        if self.skip_state.show_skip_opening or self.skip_state.show_skip_ending:
            layers.append(OverlayLayer.SKIP)
        if self.controls_visible:
            layers.append(OverlayLayer.CONTROLS)
        if self.shortcuts_visible:
            layers.append(OverlayLayer.SHORTCUTS)
        if self.error_message:
            layers.append(OverlayLayer.ERROR)
        return layers


class SurfacePresenter(QObject):
    """Drives control visibility and transient indicators.

    Controls hide after a period without pointer activity while playing
    and come back on any interaction. Indicators clear themselves after
    their display time. Every timer belongs to this object and is stopped
    by teardown().
    """

    changed = Signal(object)  # PresentationState

    def __init__(self, config: Config | None = None, parent=None):
        super().__init__(parent)
        self._config = config or Config()
        self._state = PresentationState()
        self._playing = False

        self._hide_timer = self._single_shot(self._config.controls_hide_ms, self._on_hide_timeout)
        self._seek_timer = self._single_shot(
            self._config.seek_indicator_ms, lambda: self._update(seek_indicator=None)
        )
        self._volume_timer = self._single_shot(
            self._config.level_indicator_ms, lambda: self._update(volume_indicator=None)
        )
        self._brightness_timer = self._single_shot(
            self._config.level_indicator_ms, lambda: self._update(brightness_indicator=None)
        )

    def _single_shot(self, interval_ms: int, slot) -> QTimer:
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(interval_ms)
        timer.timeout.connect(slot)
        return timer

    @property
    def state(self) -> PresentationState:
        return self._state

    @property
    def hide_timer_active(self) -> bool:
        return self._hide_timer.isActive()

    def _update(self, **changes) -> None:
        new_state = replace(self._state, **changes)
        if new_state != self._state:
            self._state = new_state
            self.changed.emit(new_state)

    # Controls visibility

    def set_playing(self, playing: bool) -> None:
        self._playing = playing
        if playing:
            self._hide_timer.start()
        else:
            self._hide_timer.stop()
            self._update(controls_visible=True)

    def pointer_activity(self) -> None:
        """Pointer moved or the viewer interacted: show controls, restart the countdown."""
        self._update(controls_visible=True)
        self._hide_timer.stop()
        if self._playing:
            self._hide_timer.start()

    def pointer_left(self) -> None:
        if self._playing:
            self._hide_timer.stop()
            self._update(controls_visible=False)

    def _on_hide_timeout(self) -> None:
        if self._playing:
            self._update(controls_visible=False)

    # Indicators

    def show_seek(self, seconds: float) -> None:
        self._update(seek_indicator=Indicator(
            "seek", abs(seconds), "right" if seconds > 0 else "left"
        ))
        self._seek_timer.start()

    def show_seek_preview(self, seconds: float) -> None:
        """Live drag preview; stays until clear_preview()."""
        self._seek_timer.stop()
        self._update(
            seek_preview=seconds,
            seek_indicator=Indicator("seek", abs(round(seconds)), "right" if seconds > 0 else "left"),
        )

    def clear_preview(self) -> None:
        self._update(seek_preview=None, seek_indicator=None)

    def show_volume(self, volume: float) -> None:
        self._update(volume_indicator=Indicator("volume", round(volume * 100)))
        self._volume_timer.start()

    def set_brightness(self, brightness: float) -> None:
        brightness = max(0.0, min(100.0, brightness))
        self._update(
            brightness=brightness,
            brightness_indicator=Indicator("brightness", round(brightness)),
        )
        self._brightness_timer.start()

    # Overlays and flags

    def toggle_shortcuts(self) -> None:
        self._update(shortcuts_visible=not self._state.shortcuts_visible)

    def close_shortcuts(self) -> None:
        self._update(shortcuts_visible=False)

    def set_fullscreen(self, fullscreen: bool) -> None:
        self._update(fullscreen=fullscreen)

    def set_skip_state(self, skip_state: SkipState) -> None:
        self._update(skip_state=skip_state)

    def set_buffering(self, buffering: bool) -> None:
        self._update(buffering=buffering)

    def set_error(self, message: str) -> None:
        self._update(error_message=message, buffering=False, controls_visible=True)

    def reset(self) -> None:
        """New episode: keep fullscreen and brightness, drop the rest."""
        self._stop_timers()
        self._playing = False
        self._state = PresentationState(
            fullscreen=self._state.fullscreen,
            brightness=self._state.brightness,
        )
        self.changed.emit(self._state)

    def teardown(self) -> None:
        self._stop_timers()
        self._playing = False

    def _stop_timers(self) -> None:
        for timer in (self._hide_timer, self._seek_timer, self._volume_timer, self._brightness_timer):
            timer.stop()
