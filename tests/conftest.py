"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QCoreApplication

from episode_player.config import Config
from episode_player.engine import PlaybackEngine
from episode_player.models import EpisodeMetadata, Variant
from episode_player.source import SourceKind


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """One Qt application for the whole run; timers and signals need it."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class FakeEngine(PlaybackEngine):
    """Engine that records every call and lets tests emit its signals."""

    def __init__(self, kind: SourceKind = SourceKind.PROGRESSIVE_FILE):
        super().__init__()
        self.kind = kind
        self.calls: list[tuple] = []

    def load(self, locator):
        self.calls.append(("load", locator))

    def play(self):
        self.calls.append(("play",))

    def pause(self):
        self.calls.append(("pause",))

    def seek(self, seconds):
        self.calls.append(("seek", seconds))

    def set_rate(self, rate):
        self.calls.append(("set_rate", rate))

    def set_volume(self, volume):
        self.calls.append(("set_volume", volume))

    def set_muted(self, muted):
        self.calls.append(("set_muted", muted))

    def set_variant(self, index):
        self.calls.append(("set_variant", index))

    def reload_source(self):
        self.calls.append(("reload_source",))

    def recover_media_error(self):
        self.calls.append(("recover_media_error",))

    def _release(self):
        self.calls.append(("release",))

    # Test helpers

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def count(self, name: str) -> int:
        return self.names().count(name)

    def load_metadata(self, duration: float = 1440.0):
        self.metadata_loaded.emit(self, duration)


class EngineFactory:
    """Builds FakeEngines and remembers them, newest last."""

    def __init__(self):
        self.engines: list[FakeEngine] = []

    def __call__(self, kind: SourceKind) -> FakeEngine:
        engine = FakeEngine(kind)
        self.engines.append(engine)
        return engine

    @property
    def last(self) -> FakeEngine:
        return self.engines[-1]


@pytest.fixture
def engine_factory() -> EngineFactory:
    return EngineFactory()


@pytest.fixture
def config() -> Config:
    return Config(api_url="http://catalog.test", retry_backoff_ms=0)


@pytest.fixture
def variants() -> list[Variant]:
    return [
        Variant(index=0, height=360, width=640, bitrate=800_000, uri="http://cdn.test/360.m3u8"),
        Variant(index=1, height=720, width=1280, bitrate=2_500_000, uri="http://cdn.test/720.m3u8"),
        Variant(index=2, height=1080, width=1920, bitrate=5_000_000, uri="http://cdn.test/1080.m3u8"),
    ]


@pytest.fixture
def episode() -> EpisodeMetadata:
    return EpisodeMetadata(
        content_id="c1",
        episode_id="e2",
        video_url="http://cdn.test/e2/master.m3u8",
        number=2,
        title="The Second One",
        duration_seconds=1440.0,
        opening_start=0.0,
        opening_end=90.0,
        ending_start=1300.0,
        ending_end=1440.0,
        previous_episode_id="e1",
        next_episode_id="e3",
    )
