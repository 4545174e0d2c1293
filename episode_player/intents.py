"""Playback intents and the reducer that applies them to a session."""

import math
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Any

from .models import AUTO_VARIANT, PLAYBACK_SPEEDS, PlaybackSession


class IntentKind(Enum):
    """Input-source-agnostic playback commands."""
    TOGGLE_PLAY = auto()
    PLAY = auto()
    PAUSE = auto()
    TOGGLE_MUTE = auto()
    TOGGLE_FULLSCREEN = auto()
    SEEK_DELTA = auto()       # value: seconds, signed
    SEEK_TO = auto()          # value: seconds
    JUMP_TO_PERCENT = auto()  # value: 0-100
    VOLUME_DELTA = auto()     # value: signed fraction
    SET_VOLUME = auto()       # value: 0.0-1.0
    BRIGHTNESS_DELTA = auto() # value: signed percent
    SET_BRIGHTNESS = auto()   # value: 0-100
    CYCLE_SPEED = auto()      # value: +1 / -1
    SET_SPEED = auto()        # value: rate
    SET_VARIANT = auto()      # value: variant index or AUTO_VARIANT
    SEEK_PREVIEW = auto()     # value: seconds, display only
    CLEAR_PREVIEW = auto()
    TOGGLE_SHORTCUTS = auto()
    CLOSE_SHORTCUTS = auto()
    SKIP_OPENING = auto()
    SKIP_ENDING = auto()
    NEXT_EPISODE = auto()
    PREVIOUS_EPISODE = auto()


# Intents that only concern the presentation layer or navigation.
PRESENTATION_INTENTS = frozenset({
    IntentKind.TOGGLE_FULLSCREEN,
    IntentKind.BRIGHTNESS_DELTA,
    IntentKind.SET_BRIGHTNESS,
    IntentKind.SEEK_PREVIEW,
    IntentKind.CLEAR_PREVIEW,
    IntentKind.TOGGLE_SHORTCUTS,
    IntentKind.CLOSE_SHORTCUTS,
    IntentKind.SKIP_OPENING,
    IntentKind.SKIP_ENDING,
    IntentKind.NEXT_EPISODE,
    IntentKind.PREVIOUS_EPISODE,
})


@dataclass(frozen=True)
class Intent:
    """A normalized playback command."""
    kind: IntentKind
    value: Any = None

    @property
    def affects_session(self) -> bool:
        return self.kind not in PRESENTATION_INTENTS

    @classmethod
    def toggle_play(cls) -> "Intent":
        return cls(IntentKind.TOGGLE_PLAY)

    @classmethod
    def seek_delta(cls, seconds: float) -> "Intent":
        return cls(IntentKind.SEEK_DELTA, float(seconds))

    @classmethod
    def seek_to(cls, seconds: float) -> "Intent":
        return cls(IntentKind.SEEK_TO, float(seconds))

    @classmethod
    def volume_delta(cls, delta: float) -> "Intent":
        return cls(IntentKind.VOLUME_DELTA, float(delta))

    @classmethod
    def set_volume(cls, volume: float) -> "Intent":
        return cls(IntentKind.SET_VOLUME, float(volume))

    @classmethod
    def set_brightness(cls, brightness: float) -> "Intent":
        return cls(IntentKind.SET_BRIGHTNESS, float(brightness))

    @classmethod
    def jump_to_percent(cls, percent: float) -> "Intent":
        return cls(IntentKind.JUMP_TO_PERCENT, float(percent))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _clamp_position(seconds: float, duration: float | None) -> float:
    if math.isnan(seconds):
        return 0.0
    if duration:
        return clamp(seconds, 0.0, duration)
    return max(0.0, seconds)


def _with_volume(session: PlaybackSession, volume: float) -> PlaybackSession:
    # Round away float drift so repeated 0.1 steps land on exact values.
    volume = round(clamp(volume, 0.0, 1.0), 4)
    return replace(session, volume=volume, is_muted=volume == 0.0)


def _cycle_speed(current: float, step: int, speeds=PLAYBACK_SPEEDS) -> float:
    speeds = list(speeds)
    if current in speeds:
        index = speeds.index(current)
    else:
        # Snap an off-list rate to the nearest entry before stepping.
        index = min(range(len(speeds)), key=lambda i: abs(speeds[i] - current))
    return speeds[(index + step) % len(speeds)]


def apply(intent: Intent, session: PlaybackSession, speeds=PLAYBACK_SPEEDS) -> PlaybackSession:
    """Return the session that results from applying an intent.

    Pure: the input session is never modified. Values are clamped to
    their valid ranges, so no intent can fail. Presentation-only intents
    return the session unchanged.
    """
    kind = intent.kind
    duration = session.total_duration

    if kind == IntentKind.TOGGLE_PLAY:
        return replace(session, is_playing=not session.is_playing)
    if kind == IntentKind.PLAY:
        return replace(session, is_playing=True)
    if kind == IntentKind.PAUSE:
        return replace(session, is_playing=False)

    if kind == IntentKind.TOGGLE_MUTE:
        return replace(session, is_muted=not session.is_muted)

    if kind == IntentKind.SEEK_DELTA:
        target = session.current_position + float(intent.value or 0.0)
        return replace(session, current_position=_clamp_position(target, duration))
    if kind == IntentKind.SEEK_TO:
        return replace(session, current_position=_clamp_position(float(intent.value), duration))
    if kind == IntentKind.JUMP_TO_PERCENT:
        if not duration:
            return session
        percent = clamp(float(intent.value), 0.0, 100.0)
        return replace(session, current_position=percent * duration / 100.0)

    if kind == IntentKind.VOLUME_DELTA:
        return _with_volume(session, session.volume + float(intent.value))
    if kind == IntentKind.SET_VOLUME:
        return _with_volume(session, float(intent.value))

    if kind == IntentKind.CYCLE_SPEED:
        step = 1 if (intent.value or 1) > 0 else -1
        return replace(session, playback_rate=_cycle_speed(session.playback_rate, step, speeds))
    if kind == IntentKind.SET_SPEED:
        rate = float(intent.value)
        if rate not in speeds:
            return session
        return replace(session, playback_rate=rate)

    if kind == IntentKind.SET_VARIANT:
        if not session.is_adaptive:
            return session
        index = int(intent.value)
        known = {variant.index for variant in session.available_variants}
        if index != AUTO_VARIANT and index not in known:
            return session
        return replace(session, selected_variant=index)

    return session
