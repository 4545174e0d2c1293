"""Watch window: one episode at a time, with catalog-driven navigation."""

import threading
from typing import Callable

import requests
from PySide6.QtCore import Qt, Signal, Slot, QEvent
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel,
    QStatusBar, QMessageBox
)
from rich.console import Console

from .video_player import VideoPlayer
from ..api import CatalogClient, CatalogError
from ..config import Config
from ..models import EpisodeMetadata, PriorProgress

console = Console()


class WatchWindow(QMainWindow):
    """
    Main application window for watching a content's episodes.

    Layout:
    - Top: header with title, episode number and prev/next buttons
    - Center: video player
    - Status bar: load state

    Episode lookups and progress reports run on background threads; their
    results come back to the UI thread through queued signals.
    """

    # generation, metadata (or None), prior progress, error message
    _episode_loaded = Signal(int, object, object, str)

    def __init__(
        self,
        content_id: str | None = None,
        episode_id: str | None = None,
        config: Config | None = None,
        client: CatalogClient | None = None,
        parent=None,
    ):
        super().__init__(parent)

        self._config = config or Config()
        self._client = client or CatalogClient(self._config)
        self._content_id = content_id
        self._metadata: EpisodeMetadata | None = None
        self._generation = 0
        self._load_thread: threading.Thread | None = None

        self.setWindowTitle("Episode Player")
        self.setMinimumSize(960, 600)

        self._setup_ui()
        self._connect_signals()
        self._apply_dark_theme()

        if content_id and episode_id:
            self.open_episode(episode_id)

    def _setup_ui(self):
        """Set up the main UI layout."""
        central = QWidget()
        self.setCentralWidget(central)

        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        # Header
        self._header = QWidget()
        header_layout = QHBoxLayout(self._header)
        header_layout.setContentsMargins(8, 6, 8, 6)

        self._prev_btn = QPushButton("◀ Previous")
        self._prev_btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        header_layout.addWidget(self._prev_btn)

        self._title_label = QLabel("")
        self._title_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        header_layout.addWidget(self._title_label, stretch=1)

        self._next_btn = QPushButton("Next ▶")
        self._next_btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        header_layout.addWidget(self._next_btn)

        main_layout.addWidget(self._header)

        # Player
        self._player = VideoPlayer(
            config=self._config,
            navigator=self.open_episode,
            report_fn=self._client.report_progress,
            report_dispatch=self._run_in_background,
        )
        main_layout.addWidget(self._player, stretch=1)

        # Status bar
        self._status_bar = QStatusBar()
        self._status_label = QLabel("No episode loaded")
        self._status_bar.addPermanentWidget(self._status_label)
        self.setStatusBar(self._status_bar)

        self._update_navigation()

    def _connect_signals(self):
        """Connect UI signals."""
        controller = self._player.controller
        self._prev_btn.clicked.connect(controller.previous_episode)
        self._next_btn.clicked.connect(controller.next_episode)
        self._player.fullscreen_requested.connect(self._set_fullscreen)
        self._episode_loaded.connect(self._on_episode_loaded)

    def _apply_dark_theme(self):
        """Apply dark theme styling."""
        self.setStyleSheet("""
            QMainWindow {
                background-color: #111;
            }
            QPushButton {
                background-color: #3d3d3d;
                color: #fff;
                border: 1px solid #555;
                border-radius: 4px;
                padding: 6px 12px;
            }
            QPushButton:hover {
                background-color: #4d4d4d;
            }
            QPushButton:pressed {
                background-color: #2d2d2d;
            }
            QPushButton:disabled {
                background-color: #2d2d2d;
                color: #666;
            }
            QStatusBar {
                background-color: #1e1e1e;
                color: #888;
            }
            QLabel {
                color: #fff;
            }
            QComboBox {
                background-color: #3d3d3d;
                color: #fff;
                border: 1px solid #555;
                border-radius: 4px;
                padding: 4px 8px;
            }
            QComboBox QAbstractItemView {
                background-color: #3d3d3d;
                color: #fff;
                selection-background-color: #8b5cf6;
            }
        """)

    # Public methods

    @property
    def player(self) -> VideoPlayer:
        return self._player

    def open_episode(self, episode_id: str):
        """Look up an episode and its prior progress, then start playback."""
        if not self._content_id:
            console.print("[yellow]No content selected, cannot open an episode[/yellow]")
            return

        self._generation += 1
        generation = self._generation
        content_id = self._content_id
        client = self._client
        self._status_label.setText(f"Loading episode {episode_id}...")

        def run_lookup():
            try:
                metadata = client.get_episode(content_id, episode_id)
            except (requests.RequestException, CatalogError) as e:
                self._episode_loaded.emit(generation, None, None, str(e))
                return
            try:
                prior = client.get_prior_progress(content_id, episode_id)
            except (requests.RequestException, CatalogError) as e:
                console.print(f"[yellow]Could not load watch history: {e}[/yellow]")
                prior = None
            self._episode_loaded.emit(generation, metadata, prior, "")

        self._load_thread = threading.Thread(target=run_lookup, name="episode-lookup", daemon=True)
        self._load_thread.start()

    def open_locator(
        self,
        locator: str,
        title: str | None = None,
        start: float = 0.0,
        opening: tuple[float, float] | None = None,
        ending_start: float | None = None,
        autoplay: bool = True,
    ):
        """Play a URL or file directly, outside the catalog."""
        self._generation += 1
        metadata = EpisodeMetadata(
            content_id="",
            episode_id="",
            video_url=locator,
            title=title or locator,
            opening_start=opening[0] if opening else None,
            opening_end=opening[1] if opening else None,
            ending_start=ending_start,
        )
        prior = PriorProgress(position=start) if start > 0 else None
        self._show_episode(metadata, prior, autoplay)

    # Private methods

    def _run_in_background(self, job: Callable[[], None]):
        threading.Thread(target=job, name="progress-report", daemon=True).start()

    @Slot(int, object, object, str)
    def _on_episode_loaded(self, generation: int, metadata, prior, error: str):
        if generation != self._generation:
            return
        if metadata is None:
            self._status_label.setText("Episode unavailable")
            QMessageBox.critical(self, "Error", f"Could not load episode: {error}")
            return
        self._show_episode(metadata, prior)

    def _show_episode(self, metadata: EpisodeMetadata, prior: PriorProgress | None, autoplay: bool = False):
        self._metadata = metadata
        self._player.controller.open(metadata, prior, autoplay=autoplay)

        title = metadata.title or "Untitled"
        if metadata.number:
            title = f"Episode {metadata.number}: {title}"
        self._title_label.setText(title)
        self.setWindowTitle(f"Episode Player - {title}")

        if prior and prior.position > 0:
            minutes, seconds = divmod(int(prior.position), 60)
            self._status_label.setText(f"Resuming at {minutes}:{seconds:02d}")
        else:
            self._status_label.setText("Ready")

        self._update_navigation()
        self._player.setFocus()

    def _update_navigation(self):
        metadata = self._metadata
        self._prev_btn.setEnabled(bool(metadata and metadata.has_previous))
        self._next_btn.setEnabled(bool(metadata and metadata.has_next))

    @Slot(bool)
    def _set_fullscreen(self, fullscreen: bool):
        self._header.setVisible(not fullscreen)
        self._status_bar.setVisible(not fullscreen)
        if fullscreen:
            self.showFullScreen()
        else:
            self.showNormal()

    def changeEvent(self, event):
        """Report fullscreen transitions made outside the player (window manager, Esc)."""
        if event.type() == QEvent.Type.WindowStateChange:
            fullscreen = self.isFullScreen()
            self._header.setVisible(not fullscreen)
            self._status_bar.setVisible(not fullscreen)
            self._player.controller.fullscreen_changed(fullscreen)
        super().changeEvent(event)

    def keyPressEvent(self, event):
        if self._player.handle_key(event.key(), event.text()):
            event.accept()
        else:
            super().keyPressEvent(event)

    def closeEvent(self, event):
        """Handle window close."""
        self._generation += 1
        self._player.controller.close()
        self._client.close()
        event.accept()
