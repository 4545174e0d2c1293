"""Episode player GUI package."""

from .main_window import WatchWindow
from .video_player import VideoPlayer
from .level_indicator import LevelIndicator

__all__ = [
    "WatchWindow",
    "VideoPlayer",
    "LevelIndicator",
]
