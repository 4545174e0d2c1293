"""Intro/outro skip affordance detection."""

from dataclasses import dataclass

from .models import SkipMarkers


@dataclass(frozen=True)
class SkipState:
    show_skip_opening: bool = False
    show_skip_ending: bool = False


def show_skip_opening(position: float, markers: SkipMarkers) -> bool:
    """True inside the opening window; both bounds must be known."""
    start = markers.opening.start
    end = markers.opening.end
    if start is None or end is None:
        return False
    return start <= position <= end


def show_skip_ending(position: float, markers: SkipMarkers, has_next: bool) -> bool:
    """True from the ending start onwards, only when there is somewhere to go."""
    start = markers.ending.start
    if not has_next or start is None:
        return False
    return position >= start


def evaluate(position: float, markers: SkipMarkers, has_next: bool) -> SkipState:
    return SkipState(
        show_skip_opening=show_skip_opening(position, markers),
        show_skip_ending=show_skip_ending(position, markers, has_next),
    )


class SkipWindowDetector:
    """Recomputes skip state for every position update of one episode."""

    def __init__(self, markers: SkipMarkers, next_episode_id: str | None = None):
        self._markers = markers
        self._next_episode_id = next_episode_id

    @property
    def markers(self) -> SkipMarkers:
        return self._markers

    def evaluate(self, position: float) -> SkipState:
        return evaluate(position, self._markers, self._next_episode_id is not None)

    def skip_opening_target(self) -> float | None:
        """Where "skip opening" seeks to."""
        if self._markers.opening.start is None:
            return None
        return self._markers.opening.end

    def skip_ending_target(self) -> str | None:
        """Episode that "skip ending" opens."""
        return self._next_episode_id
