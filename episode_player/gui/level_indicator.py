"""Vertical level readout for the volume and brightness gestures."""

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QWidget, QSizePolicy
from PySide6.QtGui import QPainter, QColor, QPen


class LevelIndicator(QWidget):
    """Translucent pill showing a 0-100 level as a filling bar.

    Used for the transient volume and brightness indicators drawn over
    the video while a vertical drag is in progress.
    """

    def __init__(self, title: str, bar_color: QColor, parent=None):
        super().__init__(parent)

        self._title = title
        self._bar_color = bar_color
        self._level = 0.0  # 0-100

        self.setFixedSize(56, 170)
        self.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)

    @property
    def level(self) -> float:
        return self._level

    def set_level(self, level: float):
        """Set the displayed level (0-100)."""
        self._level = max(0.0, min(100.0, level))
        self.update()

    def paintEvent(self, event):
        """Paint the pill, bar and percentage."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        # Background
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor(0, 0, 0, 180))
        painter.drawRoundedRect(self.rect(), 8, 8)

        # Title
        painter.setPen(QPen(QColor(255, 255, 255), 1))
        title_rect = self.rect().adjusted(0, 8, 0, 0)
        painter.drawText(title_rect, Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignTop, self._title)

        # Track
        track_width = 4
        track_top = 32
        track_bottom = self.height() - 30
        track_height = track_bottom - track_top
        track_x = (self.width() - track_width) // 2
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor(255, 255, 255, 77))
        painter.drawRoundedRect(track_x, track_top, track_width, track_height, 2, 2)

        # Fill from the bottom up
        fill_height = int(track_height * self._level / 100.0)
        if fill_height > 0:
            painter.setBrush(self._bar_color)
            painter.drawRoundedRect(track_x, track_bottom - fill_height, track_width, fill_height, 2, 2)

        # Percentage
        painter.setPen(QPen(QColor(255, 255, 255), 1))
        label_rect = self.rect().adjusted(0, 0, 0, -8)
        painter.drawText(
            label_rect,
            Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignBottom,
            f"{round(self._level)}%",
        )

        painter.end()
