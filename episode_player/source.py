"""Classify a resource locator as an adaptive manifest or a progressive file."""

from enum import Enum
from urllib.parse import urlsplit


class SourceKind(str, Enum):
    """How a locator is played."""
    ADAPTIVE_MANIFEST = "adaptive"
    PROGRESSIVE_FILE = "progressive"


MANIFEST_EXTENSIONS = (".m3u8", ".m3u")
PLAYLIST_MARKER = "playlist"


def resolve(locator: str) -> SourceKind:
    """Decide which playback strategy a locator needs.

    Unrecognized locators are treated as progressive files; a progressive
    player either plays them or fails visibly at load time.
    """
    if not locator:
        return SourceKind.PROGRESSIVE_FILE

    lowered = locator.strip().lower()
    path = urlsplit(lowered).path or lowered

    if path.endswith(MANIFEST_EXTENSIONS) or ".m3u8" in lowered:
        return SourceKind.ADAPTIVE_MANIFEST
    if PLAYLIST_MARKER in lowered:
        return SourceKind.ADAPTIVE_MANIFEST
    return SourceKind.PROGRESSIVE_FILE
