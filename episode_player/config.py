"""Configuration settings for the episode player."""

import os

from pydantic import BaseModel, Field


DEFAULT_API_URL = "http://localhost:5000"


class Config(BaseModel):
    """Configuration for the episode player."""

    # Catalog API settings
    api_url: str = Field(
        default_factory=lambda: os.getenv("EPISODE_PLAYER_API_URL", DEFAULT_API_URL),
        description="Base URL of the catalog API (episodes, history)"
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        description="Timeout (seconds) for catalog and manifest requests"
    )

    # Adaptive buffering settings
    max_buffer_length: float = Field(
        default=30.0,
        ge=5.0,
        description="Target forward buffer (seconds)"
    )
    back_buffer_length: float = Field(
        default=90.0,
        ge=0.0,
        description="Back buffer kept behind the playhead (seconds)"
    )
    max_max_buffer_length: float = Field(
        default=600.0,
        ge=30.0,
        description="Hard ceiling for the forward buffer (seconds)"
    )
    max_buffer_size: int = Field(
        default=60 * 1000 * 1000,
        ge=1_000_000,
        description="Buffer size cap (bytes)"
    )
    initial_bandwidth_estimate: int = Field(
        default=500_000,
        ge=10_000,
        description="Bandwidth guess (bits/s) used before the first measurement"
    )
    abr_bandwidth_factor: float = Field(
        default=0.95,
        gt=0.0,
        le=1.0,
        description="Share of the estimate usable when staying or switching down"
    )
    abr_bandwidth_up_factor: float = Field(
        default=0.7,
        gt=0.0,
        le=1.0,
        description="Share of the estimate usable when switching up"
    )

    # Playback controls
    seek_step: float = Field(
        default=10.0,
        gt=0.0,
        description="Seek step (seconds) for arrows, J/L and double taps"
    )
    volume_step: float = Field(
        default=0.1,
        gt=0.0,
        le=1.0,
        description="Volume step for the up/down arrow keys"
    )
    playback_speeds: list[float] = Field(
        default=[0.5, 0.75, 1.0, 1.25, 1.5, 1.75, 2.0],
        min_length=1,
        description="Selectable playback rates, in cycling order"
    )

    # Gestures
    double_tap_ms: int = Field(
        default=300,
        ge=100,
        le=1000,
        description="Window (ms) in which a second tap makes a double tap"
    )
    tap_slop_px: float = Field(
        default=10.0,
        ge=0.0,
        description="Maximum finger travel (px) for a touch to count as a tap"
    )
    drag_threshold_px: float = Field(
        default=30.0,
        ge=0.0,
        description="Minimum displacement (px) before a drag becomes a gesture"
    )
    drag_seek_span: float = Field(
        default=60.0,
        gt=0.0,
        description="Seconds of seek preview for a drag across the full width"
    )
    commit_drag_seek: bool = Field(
        default=False,
        description="Apply the drag seek preview on release instead of discarding it"
    )

    # Presentation
    controls_hide_ms: int = Field(
        default=3000,
        ge=500,
        description="Inactivity (ms) before controls hide while playing"
    )
    seek_indicator_ms: int = Field(
        default=500,
        ge=100,
        description="How long the seek indicator stays visible (ms)"
    )
    level_indicator_ms: int = Field(
        default=1000,
        ge=100,
        description="How long volume/brightness indicators stay visible (ms)"
    )

    # Progress reporting
    progress_interval: int = Field(
        default=30,
        ge=1,
        description="Report progress when the whole-second position is a multiple of this"
    )
    completion_ratio: float = Field(
        default=0.9,
        gt=0.0,
        le=1.0,
        description="Share of the duration after which an episode counts as completed"
    )

    # Recovery
    network_retry_limit: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Automatic source reloads per network fault before giving up"
    )
    retry_backoff_ms: int = Field(
        default=1000,
        ge=0,
        description="Delay (ms) before the first automatic reload, doubled per attempt"
    )

    # Navigation
    autoplay_next: bool = Field(
        default=True,
        description="Open the next episode when the current one ends"
    )
