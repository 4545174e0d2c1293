"""Data models shared by the playback components."""

from dataclasses import dataclass, field
from typing import Any

from .source import SourceKind


AUTO_VARIANT = -1

PLAYBACK_SPEEDS = (0.5, 0.75, 1.0, 1.25, 1.5, 1.75, 2.0)


@dataclass(frozen=True)
class Variant:
    """One bitrate/resolution rendition of an adaptive stream."""
    index: int
    height: int
    width: int
    bitrate: int  # bits per second
    uri: str = ""

    @property
    def label(self) -> str:
        if self.index == AUTO_VARIANT:
            return "Auto"
        if self.height:
            return f"{self.height}p"
        return f"{round(self.bitrate / 1000)}kbps"


AUTO_ENTRY = Variant(index=AUTO_VARIANT, height=0, width=0, bitrate=0)


@dataclass(frozen=True)
class SkipWindow:
    """An intro or outro time range. Either bound may be unknown."""
    start: float | None = None
    end: float | None = None


@dataclass(frozen=True)
class SkipMarkers:
    """Opening and ending windows of one episode."""
    opening: SkipWindow = field(default_factory=SkipWindow)
    ending: SkipWindow = field(default_factory=SkipWindow)


def _optional_seconds(value: Any) -> float | None:
    # The catalog stores 0 for "not set" as often as null.
    if value is None or value == "":
        return None
    seconds = float(value)
    return seconds if seconds > 0 else None


@dataclass
class EpisodeMetadata:
    """Episode fields the player needs from the catalog."""
    content_id: str
    episode_id: str
    video_url: str
    number: int | None = None
    title: str | None = None
    thumbnail_url: str | None = None
    duration_seconds: float | None = None
    opening_start: float | None = None
    opening_end: float | None = None
    ending_start: float | None = None
    ending_end: float | None = None
    previous_episode_id: str | None = None
    next_episode_id: str | None = None

    @property
    def markers(self) -> SkipMarkers:
        return SkipMarkers(
            opening=SkipWindow(self.opening_start, self.opening_end),
            ending=SkipWindow(self.ending_start, self.ending_end),
        )

    @property
    def has_next(self) -> bool:
        return self.next_episode_id is not None

    @property
    def has_previous(self) -> bool:
        return self.previous_episode_id is not None

    @classmethod
    def from_api(
        cls,
        content_id: str,
        episode: dict[str, Any],
        previous_episode_id: str | None = None,
        next_episode_id: str | None = None,
    ) -> "EpisodeMetadata":
        """Build from one entry of the catalog's episode list."""
        duration = episode.get("duration") or episode.get("durationSeconds")
        # openingStart of 0 is a real marker, the others are not.
        opening_start = episode.get("openingStart")
        return cls(
            content_id=content_id,
            episode_id=str(episode["id"]),
            video_url=episode.get("videoUrl") or "",
            number=episode.get("number"),
            title=episode.get("title"),
            thumbnail_url=episode.get("thumbnailUrl"),
            duration_seconds=float(duration) if duration else None,
            opening_start=float(opening_start) if opening_start is not None else None,
            opening_end=_optional_seconds(episode.get("openingEnd")),
            ending_start=_optional_seconds(episode.get("endingStart")),
            ending_end=_optional_seconds(episode.get("endingEnd")),
            previous_episode_id=previous_episode_id,
            next_episode_id=next_episode_id,
        )


@dataclass(frozen=True)
class PriorProgress:
    """Where the viewer stopped last time."""
    position: float
    total_duration: float = 0.0

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> "PriorProgress | None":
        if not data:
            return None
        return cls(
            position=float(data.get("progress") or data.get("position") or 0),
            total_duration=float(data.get("duration") or data.get("totalDuration") or 0),
        )


@dataclass(frozen=True)
class ProgressReport:
    """A single progress sample forwarded to the history API."""
    content_id: str
    episode_id: str
    position: float
    total_duration: float
    completed: bool

    def to_payload(self) -> dict[str, Any]:
        """Request body for the history endpoint (whole seconds)."""
        return {
            "contentId": self.content_id,
            "episodeId": self.episode_id,
            "progress": int(self.position),
            "duration": int(self.total_duration),
            "completed": self.completed,
        }


@dataclass(frozen=True)
class PlaybackSession:
    """Live state of one playback attempt.

    Only AdaptiveBitrateSession produces new values of this; everything
    else sends intents.
    """
    source_locator: str = ""
    source_kind: SourceKind = SourceKind.PROGRESSIVE_FILE
    is_playing: bool = False
    is_muted: bool = False
    volume: float = 1.0
    playback_rate: float = 1.0
    current_position: float = 0.0
    total_duration: float | None = None
    is_buffering: bool = False
    selected_variant: int = AUTO_VARIANT
    available_variants: tuple[Variant, ...] = ()
    is_ready: bool = False
    failed: bool = False
    error_message: str = ""

    @property
    def is_adaptive(self) -> bool:
        return self.source_kind == SourceKind.ADAPTIVE_MANIFEST

    @property
    def variant_choices(self) -> tuple[Variant, ...]:
        """Variants offered to the viewer, "Auto" first."""
        if not self.available_variants:
            return ()
        return (AUTO_ENTRY, *self.available_variants)

    @property
    def progress_fraction(self) -> float:
        if not self.total_duration:
            return 0.0
        return max(0.0, min(1.0, self.current_position / self.total_duration))
