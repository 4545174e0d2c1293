"""Keyboard and touch input normalized into playback intents."""

from dataclasses import dataclass

from .config import Config
from .intents import Intent, IntentKind, clamp


@dataclass
class GestureState:
    """Transient data of one touch interaction."""
    x: float
    y: float
    timestamp_ms: int
    start_volume: float = 1.0
    start_brightness: float = 100.0
    # Set once the drag crosses the threshold on one axis.
    axis: str | None = None
    preview_seconds: float = 0.0
    # A seek preview went on screen; it must be cleared on release.
    preview_shown: bool = False


class GestureMultiplexer:
    """Maps raw key presses and touches to intents.

    Holds no timers itself. A single tap stays pending until either a
    second tap arrives or the owner calls flush_pending() once the
    double-tap window has elapsed. Timestamps are passed in by the
    caller, in milliseconds.

    Keyboard map:
        space / k       toggle play
        m               toggle mute
        f               toggle fullscreen
        left / j        seek back
        right / l       seek forward
        up / down       volume up / down
        0-9             jump to digit * 10 percent
        > / <           cycle playback speed
        ?               toggle shortcuts overlay
        escape          close shortcuts overlay
    """

    # Touch regions
    REGION_LEFT = "left"
    REGION_MIDDLE = "middle"
    REGION_RIGHT = "right"

    AXIS_HORIZONTAL = "horizontal"
    AXIS_VERTICAL = "vertical"

    def __init__(self, config: Config | None = None):
        self._config = config or Config()
        self._touch: GestureState | None = None
        self._pending_tap_ms: int | None = None

    # Keyboard

    def key_press(self, key: str, in_text_field: bool = False) -> list[Intent]:
        """Translate one key press; keys typed into text fields are ignored."""
        if in_text_field or not key:
            return []

        step = self._config.seek_step
        name = key if key == " " else key.strip().lower()

        if name in (" ", "space", "k"):
            return [Intent(IntentKind.TOGGLE_PLAY)]
        if name == "m":
            return [Intent(IntentKind.TOGGLE_MUTE)]
        if name == "f":
            return [Intent(IntentKind.TOGGLE_FULLSCREEN)]
        if name in ("arrowleft", "left", "j"):
            return [Intent.seek_delta(-step)]
        if name in ("arrowright", "right", "l"):
            return [Intent.seek_delta(step)]
        if name in ("arrowup", "up"):
            return [Intent.volume_delta(self._config.volume_step)]
        if name in ("arrowdown", "down"):
            return [Intent.volume_delta(-self._config.volume_step)]
        if name == ">":
            return [Intent(IntentKind.CYCLE_SPEED, 1)]
        if name == "<":
            return [Intent(IntentKind.CYCLE_SPEED, -1)]
        if name == "?":
            return [Intent(IntentKind.TOGGLE_SHORTCUTS)]
        if name in ("escape", "esc"):
            return [Intent(IntentKind.CLOSE_SHORTCUTS)]
        if len(name) == 1 and name in "0123456789":
            return [Intent.jump_to_percent(int(name) * 10)]
        return []

    # Touch

    @property
    def has_pending_tap(self) -> bool:
        return self._pending_tap_ms is not None

    @property
    def active_touch(self) -> GestureState | None:
        return self._touch

    def region(self, x: float, width: float) -> str:
        """Which third of the surface an x coordinate falls in."""
        if width <= 0:
            return self.REGION_MIDDLE
        if x < width / 3:
            return self.REGION_LEFT
        if x > width * 2 / 3:
            return self.REGION_RIGHT
        return self.REGION_MIDDLE

    def touch_start(
        self,
        x: float,
        y: float,
        now_ms: int,
        volume: float = 1.0,
        brightness: float = 100.0,
    ) -> None:
        """Record where and when a touch began."""
        self._touch = GestureState(
            x=x,
            y=y,
            timestamp_ms=now_ms,
            start_volume=volume,
            start_brightness=brightness,
        )

    def touch_move(self, x: float, y: float, width: float, height: float) -> list[Intent]:
        """Live drag feedback: seek preview, volume or brightness."""
        touch = self._touch
        if touch is None or width <= 0 or height <= 0:
            return []

        dx = x - touch.x
        dy = y - touch.y
        threshold = self._config.drag_threshold_px

        if abs(dx) > abs(dy) and abs(dx) > threshold:
            touch.axis = self.AXIS_HORIZONTAL
            touch.preview_seconds = dx / width * self._config.drag_seek_span
            touch.preview_shown = True
            return [Intent(IntentKind.SEEK_PREVIEW, touch.preview_seconds)]

        if abs(dy) > abs(dx) and abs(dy) > threshold:
            touch.axis = self.AXIS_VERTICAL
            change = -dy / height
            if touch.x < width / 2:
                brightness = clamp(touch.start_brightness + change * 100.0, 0.0, 100.0)
                return [Intent.set_brightness(brightness)]
            volume = clamp(touch.start_volume + change, 0.0, 1.0)
            return [Intent.set_volume(volume)]

        return []

    def touch_end(self, x: float, y: float, width: float, height: float, now_ms: int) -> list[Intent]:
        """Finish a touch: resolve taps and drag previews."""
        touch = self._touch
        self._touch = None
        if touch is None:
            return []

        if touch.preview_shown:
            intents = [Intent(IntentKind.CLEAR_PREVIEW)]
            if self._config.commit_drag_seek and touch.preview_seconds:
                intents.append(Intent.seek_delta(touch.preview_seconds))
            return intents
        if touch.axis is not None:
            return []

        slop = self._config.tap_slop_px
        window = self._config.double_tap_ms
        is_tap = (
            abs(x - touch.x) < slop
            and abs(y - touch.y) < slop
            and now_ms - touch.timestamp_ms < window
        )
        if not is_tap:
            return []
        return self._tap(x, width, now_ms)

    def _tap(self, x: float, width: float, now_ms: int) -> list[Intent]:
        window = self._config.double_tap_ms
        pending = self._pending_tap_ms

        if pending is not None and now_ms - pending < window:
            self._pending_tap_ms = None
            region = self.region(x, width)
            if region == self.REGION_LEFT:
                return [Intent.seek_delta(-self._config.seek_step)]
            if region == self.REGION_RIGHT:
                return [Intent.seek_delta(self._config.seek_step)]
            return []

        # The earlier tap never got its companion: it stands alone.
        intents = self.flush_pending()
        self._pending_tap_ms = now_ms
        return intents

    def flush_pending(self) -> list[Intent]:
        """Resolve a pending single tap to toggle-play."""
        if self._pending_tap_ms is None:
            return []
        self._pending_tap_ms = None
        return [Intent.toggle_play()]

    def reset(self) -> None:
        """Drop any in-progress touch and pending tap."""
        self._touch = None
        self._pending_tap_ms = None
