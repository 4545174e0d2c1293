"""GUI entry point for the episode player."""

import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()  # Load .env file automatically

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt
from PySide6.QtGui import QFontDatabase

from .gui import WatchWindow


def create_application() -> QApplication:
    """Create (or reuse) the QApplication with the player's settings."""
    app = QApplication.instance()
    if app is not None:
        return app

    # Enable high DPI scaling
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)

    # Load fonts from user's font directory (ensures newly installed fonts are available)
    user_fonts_dir = Path.home() / "Library" / "Fonts"
    if user_fonts_dir.exists():
        for font_file in user_fonts_dir.glob("*.ttf"):
            QFontDatabase.addApplicationFont(str(font_file))
        for font_file in user_fonts_dir.glob("*.otf"):
            QFontDatabase.addApplicationFont(str(font_file))
    app.setApplicationName("Episode Player")
    app.setOrganizationName("EpisodePlayer")
    return app


def main():
    """Launch the episode player GUI."""
    app = create_application()

    # Optional locator argument (file path or URL)
    locator = sys.argv[1] if len(sys.argv) > 1 else None
    if locator and "://" not in locator and not Path(locator).expanduser().exists():
        print(f"Error: File not found: {locator}")
        sys.exit(1)

    # Create and show main window
    window = WatchWindow()
    if locator:
        window.open_locator(locator)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
