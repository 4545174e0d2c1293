"""Video player widget: playback surface, overlays and control bar."""

from PySide6.QtCore import Qt, Signal, Slot, QEvent, QPointF, QRectF, QSizeF
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QSlider, QLabel,
    QStyle, QSizePolicy, QGraphicsScene, QGraphicsView, QGraphicsRectItem,
    QGraphicsTextItem, QComboBox, QApplication, QLineEdit, QTextEdit,
    QPlainTextEdit, QAbstractSpinBox
)
from PySide6.QtMultimediaWidgets import QGraphicsVideoItem
from PySide6.QtGui import QBrush, QColor, QPen, QPainter, QCursor, QFont, QInputDevice

from ..config import Config
from ..controller import PlaybackController
from ..engine import BufferConfig
from ..models import PlaybackSession
from ..presentation import OverlayLayer, PresentationState
from ..progress import Dispatch, ReportFn
from ..qt_engine import create_engine
from .level_indicator import LevelIndicator


KEYBOARD_SHORTCUTS = [
    ("Space / K", "Play / Pause"),
    ("M", "Mute / Unmute"),
    ("F", "Fullscreen"),
    ("← / J", "Back 10 s"),
    ("→ / L", "Forward 10 s"),
    ("↑ / ↓", "Volume up / down"),
    ("0-9", "Jump to 0-90%"),
    ("> / <", "Faster / Slower"),
    ("?", "Show / hide shortcuts"),
]

KEY_NAMES = {
    Qt.Key.Key_Space: " ",
    Qt.Key.Key_Left: "arrowleft",
    Qt.Key.Key_Right: "arrowright",
    Qt.Key.Key_Up: "arrowup",
    Qt.Key.Key_Down: "arrowdown",
    Qt.Key.Key_Escape: "escape",
}

TEXT_ENTRY_WIDGETS = (QLineEdit, QTextEdit, QPlainTextEdit, QAbstractSpinBox)


def format_time(seconds: float) -> str:
    """Format seconds as M:SS (H:MM:SS past an hour)."""
    total = int(max(0.0, seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def key_name(key: int, text: str) -> str:
    """Name a Qt key the way the gesture multiplexer expects."""
    return KEY_NAMES.get(key, text)


class VideoView(QGraphicsView):
    """Graphics view hosting the video item; forwards pointer and touch input."""

    pointer_moved = Signal()
    pointer_left = Signal()
    clicked = Signal()
    touch_started = Signal(QPointF)
    touch_moved = Signal(QPointF)
    touch_ended = Signal(QPointF)
    resized = Signal()

    def __init__(self, scene: QGraphicsScene, parent=None):
        super().__init__(scene, parent)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setFrameShape(QGraphicsView.Shape.NoFrame)
        self.setBackgroundBrush(QBrush(QColor(0, 0, 0)))
        self.setRenderHint(QPainter.RenderHint.Antialiasing)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self.viewport().setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents)

    def resizeEvent(self, event):
        """Fit the scene to the view when resized."""
        super().resizeEvent(event)
        if self.scene():
            self.fitInView(self.scene().sceneRect(), Qt.AspectRatioMode.KeepAspectRatio)
        self.resized.emit()

    def viewportEvent(self, event):
        event_type = event.type()
        if event_type in (QEvent.Type.TouchBegin, QEvent.Type.TouchUpdate, QEvent.Type.TouchEnd):
            points = event.points()
            if points:
                pos = points[0].position()
                if event_type == QEvent.Type.TouchBegin:
                    self.touch_started.emit(pos)
                elif event_type == QEvent.Type.TouchUpdate:
                    self.touch_moved.emit(pos)
                else:
                    self.touch_ended.emit(pos)
            event.accept()
            return True
        return super().viewportEvent(event)

    def mouseMoveEvent(self, event):
        self.pointer_moved.emit()
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        # Touches arrive through viewportEvent; ignore their synthesized clicks.
        synthesized = event.deviceType() == QInputDevice.DeviceType.TouchScreen
        if event.button() == Qt.MouseButton.LeftButton and not synthesized:
            self.clicked.emit()
        super().mouseReleaseEvent(event)

    def mouseDoubleClickEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self.pointer_moved.emit()
        super().mouseDoubleClickEvent(event)

    def leaveEvent(self, event):
        self.pointer_left.emit()
        super().leaveEvent(event)


class VideoPlayer(QWidget):
    """Playback surface with overlays and a control bar.

    Input goes to the PlaybackController; the widget only renders what
    the controller's session and presenter report.

    Signals:
        fullscreen_requested: the controller asks for fullscreen on/off
    """

    fullscreen_requested = Signal(bool)

    def __init__(
        self,
        config: Config | None = None,
        navigator=None,
        report_fn: ReportFn | None = None,
        report_dispatch: Dispatch | None = None,
        parent=None,
    ):
        super().__init__(parent)

        self._config = config or Config()
        self._seeking = False
        self._video_width = 1920
        self._video_height = 1080

        self._setup_ui()

        buffer_config = BufferConfig.from_config(self._config)
        self._controller = PlaybackController(
            engine_factory=lambda kind: create_engine(kind, self._video_item, buffer_config),
            navigator=navigator,
            report_fn=report_fn,
            config=self._config,
            fullscreen_fn=self.fullscreen_requested.emit,
            report_dispatch=report_dispatch,
            parent=self,
        )
        self._connect_signals()
        self._apply_presentation(self._controller.presenter.state)

    @property
    def controller(self) -> PlaybackController:
        return self._controller

    def _setup_ui(self):
        """Set up the UI layout."""
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)

        # Graphics scene and view for video
        self._scene = QGraphicsScene()
        self._scene.setSceneRect(0, 0, self._video_width, self._video_height)
        self._view = VideoView(self._scene)
        self._view.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self._view.setMinimumHeight(200)

        self._video_item = QGraphicsVideoItem()
        self._video_item.setSize(QSizeF(self._video_width, self._video_height))
        self._video_item.setZValue(OverlayLayer.VIDEO)
        self._scene.addItem(self._video_item)

        # Brightness veil over the video
        self._brightness_veil = QGraphicsRectItem()
        self._brightness_veil.setBrush(QBrush(QColor(0, 0, 0)))
        self._brightness_veil.setPen(QPen(Qt.PenStyle.NoPen))
        self._brightness_veil.setZValue(OverlayLayer.BRIGHTNESS)
        self._brightness_veil.setVisible(False)
        self._scene.addItem(self._brightness_veil)

        # Buffering spinner (text)
        self._buffering_text = self._overlay_text("Loading…", 48, OverlayLayer.BUFFERING)

        # Seek indicator
        self._seek_bg = QGraphicsRectItem()
        self._seek_bg.setBrush(QBrush(QColor(0, 0, 0, 180)))
        self._seek_bg.setPen(QPen(Qt.PenStyle.NoPen))
        self._seek_bg.setZValue(OverlayLayer.INDICATORS)
        self._seek_bg.setVisible(False)
        self._scene.addItem(self._seek_bg)
        self._seek_text = self._overlay_text("", 40, OverlayLayer.INDICATORS + 1)

        # Shortcuts overlay
        self._shortcuts_bg = QGraphicsRectItem()
        self._shortcuts_bg.setBrush(QBrush(QColor(0, 0, 0, 230)))
        self._shortcuts_bg.setPen(QPen(Qt.PenStyle.NoPen))
        self._shortcuts_bg.setZValue(OverlayLayer.SHORTCUTS)
        self._shortcuts_bg.setVisible(False)
        self._scene.addItem(self._shortcuts_bg)
        shortcut_lines = "\n".join(f"{keys:<12}  {action}" for keys, action in KEYBOARD_SHORTCUTS)
        self._shortcuts_text = self._overlay_text(
            f"Keyboard shortcuts\n\n{shortcut_lines}\n\nPress ? to close",
            32,
            OverlayLayer.SHORTCUTS + 1,
            monospace=True,
        )

        # Terminal error
        self._error_text = self._overlay_text("", 40, OverlayLayer.ERROR)
        self._error_text.setDefaultTextColor(QColor(255, 120, 120))

        layout.addWidget(self._view, stretch=1)

        # Widgets floating over the view
        viewport = self._view.viewport()
        self._volume_indicator = LevelIndicator("Vol", QColor(255, 255, 255), viewport)
        self._volume_indicator.hide()
        self._brightness_indicator = LevelIndicator("Light", QColor(250, 204, 21), viewport)
        self._brightness_indicator.hide()

        self._skip_opening_btn = QPushButton("Skip opening", viewport)
        self._skip_ending_btn = QPushButton("Next episode", viewport)
        self._retry_btn = QPushButton("Retry", viewport)
        for button in (self._skip_opening_btn, self._skip_ending_btn, self._retry_btn):
            button.setFocusPolicy(Qt.FocusPolicy.NoFocus)
            button.setStyleSheet(
                "QPushButton { background: rgba(139, 92, 246, 230); color: white;"
                " padding: 8px 14px; border-radius: 6px; }"
            )
            button.hide()

        # Controls container (auto-hides while playing)
        self._controls = QWidget()
        controls_outer = QVBoxLayout(self._controls)
        controls_outer.setContentsMargins(0, 0, 0, 0)
        controls_outer.setSpacing(4)

        self._title_label = QLabel("")
        self._title_label.setContentsMargins(4, 0, 4, 0)
        controls_outer.addWidget(self._title_label)

        # Time slider
        slider_layout = QHBoxLayout()
        slider_layout.setContentsMargins(4, 0, 4, 0)

        self._time_label = QLabel("0:00")
        self._time_label.setFixedWidth(60)
        slider_layout.addWidget(self._time_label)

        self._slider = QSlider(Qt.Orientation.Horizontal)
        self._slider.setRange(0, 0)
        self._slider.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        slider_layout.addWidget(self._slider, stretch=1)

        self._duration_label = QLabel("0:00")
        self._duration_label.setFixedWidth(60)
        self._duration_label.setAlignment(Qt.AlignmentFlag.AlignRight)
        slider_layout.addWidget(self._duration_label)

        controls_outer.addLayout(slider_layout)

        # Playback controls
        controls_layout = QHBoxLayout()
        controls_layout.setContentsMargins(4, 0, 4, 4)

        self._prev_btn = self._icon_button(QStyle.StandardPixmap.SP_MediaSkipBackward, "Previous episode")
        controls_layout.addWidget(self._prev_btn)

        self._rewind_btn = self._icon_button(QStyle.StandardPixmap.SP_MediaSeekBackward, "Back 10 s")
        controls_layout.addWidget(self._rewind_btn)

        self._play_btn = self._icon_button(QStyle.StandardPixmap.SP_MediaPlay, "Play / Pause")
        controls_layout.addWidget(self._play_btn)

        self._forward_btn = self._icon_button(QStyle.StandardPixmap.SP_MediaSeekForward, "Forward 10 s")
        controls_layout.addWidget(self._forward_btn)

        self._next_btn = self._icon_button(QStyle.StandardPixmap.SP_MediaSkipForward, "Next episode")
        controls_layout.addWidget(self._next_btn)

        self._mute_btn = self._icon_button(QStyle.StandardPixmap.SP_MediaVolume, "Mute")
        controls_layout.addWidget(self._mute_btn)

        self._volume_slider = QSlider(Qt.Orientation.Horizontal)
        self._volume_slider.setRange(0, 100)
        self._volume_slider.setValue(100)
        self._volume_slider.setFixedWidth(80)
        self._volume_slider.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        controls_layout.addWidget(self._volume_slider)

        controls_layout.addStretch()

        self._shortcuts_btn = QPushButton("?")
        self._shortcuts_btn.setFixedSize(32, 32)
        self._shortcuts_btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self._shortcuts_btn.setToolTip("Keyboard shortcuts")
        controls_layout.addWidget(self._shortcuts_btn)

        self._speed_combo = QComboBox()
        self._speed_combo.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        for speed in self._config.playback_speeds:
            self._speed_combo.addItem(f"{speed:g}x", speed)
        self._speed_combo.setCurrentIndex(max(0, self._speed_combo.findData(1.0)))
        controls_layout.addWidget(self._speed_combo)

        self._quality_combo = QComboBox()
        self._quality_combo.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self._quality_combo.setVisible(False)
        controls_layout.addWidget(self._quality_combo)

        self._fullscreen_btn = self._icon_button(QStyle.StandardPixmap.SP_TitleBarMaxButton, "Fullscreen")
        controls_layout.addWidget(self._fullscreen_btn)

        controls_outer.addLayout(controls_layout)
        layout.addWidget(self._controls)

    def _icon_button(self, pixmap: QStyle.StandardPixmap, tooltip: str) -> QPushButton:
        button = QPushButton()
        button.setIcon(self.style().standardIcon(pixmap))
        button.setFixedSize(40, 32)
        button.setToolTip(tooltip)
        button.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        return button

    def _overlay_text(self, text: str, point_size: int, z: float, monospace: bool = False) -> QGraphicsTextItem:
        item = QGraphicsTextItem(text)
        font = QFont("Menlo" if monospace else "Arial", point_size)
        if monospace:
            font.setStyleHint(QFont.StyleHint.Monospace)
        font.setWeight(QFont.Weight.Bold)
        item.setFont(font)
        item.setDefaultTextColor(QColor(255, 255, 255))
        item.setZValue(z)
        item.setVisible(False)
        self._scene.addItem(item)
        return item

    def _connect_signals(self):
        """Connect internal signals."""
        controller = self._controller

        # Buttons
        self._play_btn.clicked.connect(controller.toggle_play)
        self._rewind_btn.clicked.connect(lambda: controller.seek_by(-self._config.seek_step))
        self._forward_btn.clicked.connect(lambda: controller.seek_by(self._config.seek_step))
        self._prev_btn.clicked.connect(controller.previous_episode)
        self._next_btn.clicked.connect(controller.next_episode)
        self._mute_btn.clicked.connect(controller.toggle_mute)
        self._shortcuts_btn.clicked.connect(controller.toggle_shortcuts)
        self._fullscreen_btn.clicked.connect(controller.toggle_fullscreen)
        self._skip_opening_btn.clicked.connect(controller.skip_opening)
        self._skip_ending_btn.clicked.connect(controller.skip_ending)
        self._retry_btn.clicked.connect(controller.retry)

        # Sliders and menus
        self._slider.sliderPressed.connect(self._on_slider_pressed)
        self._slider.sliderReleased.connect(self._on_slider_released)
        self._slider.sliderMoved.connect(self._on_slider_moved)
        self._volume_slider.valueChanged.connect(self._on_volume_changed)
        self._speed_combo.activated.connect(self._on_speed_selected)
        self._quality_combo.activated.connect(self._on_quality_selected)

        # Surface input
        self._view.pointer_moved.connect(controller.pointer_moved)
        self._view.pointer_left.connect(controller.pointer_left)
        self._view.clicked.connect(controller.click_surface)
        self._view.touch_started.connect(self._on_touch_started)
        self._view.touch_moved.connect(self._on_touch_moved)
        self._view.touch_ended.connect(self._on_touch_ended)
        self._view.resized.connect(self._layout_floating_widgets)

        # Controller output
        controller.session_changed.connect(self._apply_session)
        controller.variants_changed.connect(self._on_variants_changed)
        controller.episode_opened.connect(self._on_episode_opened)
        controller.presenter.changed.connect(self._apply_presentation)

        self._video_item.nativeSizeChanged.connect(self._on_native_size_changed)

    # Public API

    def handle_key(self, key: int, text: str) -> bool:
        """Forward a key press to the controller; True if it was used."""
        focus = QApplication.focusWidget()
        in_text_field = isinstance(focus, TEXT_ENTRY_WIDGETS)
        return self._controller.key_press(key_name(key, text), in_text_field)

    def keyPressEvent(self, event):
        if self.handle_key(event.key(), event.text()):
            event.accept()
        else:
            super().keyPressEvent(event)

    # Surface geometry

    @Slot(QSizeF)
    def _on_native_size_changed(self, size: QSizeF):
        """Match the scene to the video's native size once known."""
        if size.width() > 0 and size.height() > 0:
            self._video_width = int(size.width())
            self._video_height = int(size.height())
            self._video_item.setSize(size)
            self._scene.setSceneRect(0, 0, size.width(), size.height())
            self._view.fitInView(self._scene.sceneRect(), Qt.AspectRatioMode.KeepAspectRatio)
            self._apply_presentation(self._controller.presenter.state)

    def _center_text(self, item: QGraphicsTextItem, x_fraction: float = 0.5):
        rect = item.boundingRect()
        item.setPos(
            self._video_width * x_fraction - rect.width() / 2,
            self._video_height / 2 - rect.height() / 2,
        )

    @Slot()
    def _layout_floating_widgets(self):
        viewport = self._view.viewport()
        width = viewport.width()
        height = viewport.height()

        self._volume_indicator.move(width - self._volume_indicator.width() - 32,
                                    (height - self._volume_indicator.height()) // 2)
        self._brightness_indicator.move(32, (height - self._brightness_indicator.height()) // 2)

        for button in (self._skip_opening_btn, self._skip_ending_btn):
            button.adjustSize()
            button.move(width - button.width() - 16, height - button.height() - 24)

        self._retry_btn.adjustSize()
        self._retry_btn.move((width - self._retry_btn.width()) // 2, height // 2 + 60)

    # Touch

    def _surface_size(self) -> tuple[float, float]:
        viewport = self._view.viewport()
        return float(viewport.width()), float(viewport.height())

    @Slot(QPointF)
    def _on_touch_started(self, pos: QPointF):
        self._controller.touch_start(pos.x(), pos.y())

    @Slot(QPointF)
    def _on_touch_moved(self, pos: QPointF):
        width, height = self._surface_size()
        self._controller.touch_move(pos.x(), pos.y(), width, height)

    @Slot(QPointF)
    def _on_touch_ended(self, pos: QPointF):
        width, height = self._surface_size()
        self._controller.touch_end(pos.x(), pos.y(), width, height)

    # Private slots

    @Slot()
    def _on_slider_pressed(self):
        self._seeking = True

    @Slot()
    def _on_slider_released(self):
        self._seeking = False
        self._controller.seek_to(self._slider.value() / 1000.0)

    @Slot(int)
    def _on_slider_moved(self, value: int):
        self._time_label.setText(format_time(value / 1000.0))

    @Slot(int)
    def _on_volume_changed(self, value: int):
        self._controller.set_volume(value / 100.0)

    @Slot(int)
    def _on_speed_selected(self, row: int):
        self._controller.set_speed(self._speed_combo.itemData(row))

    @Slot(int)
    def _on_quality_selected(self, row: int):
        self._controller.set_variant(self._quality_combo.itemData(row))

    @Slot(list)
    def _on_variants_changed(self, variants: list):
        self._quality_combo.clear()
        for variant in variants:
            label = variant.label
            if variant.height and variant.bitrate > 0:
                label += f"  {round(variant.bitrate / 1000)}kbps"
            self._quality_combo.addItem(label, variant.index)
        self._quality_combo.setVisible(bool(variants))

    @Slot(object)
    def _on_episode_opened(self, metadata):
        title = metadata.title or ""
        if metadata.number:
            title = f"Episode {metadata.number} • {title}" if title else f"Episode {metadata.number}"
        self._title_label.setText(title)
        self._prev_btn.setVisible(metadata.has_previous)
        self._next_btn.setVisible(metadata.has_next)
        self._quality_combo.clear()
        self._quality_combo.setVisible(False)

    @Slot(object)
    def _apply_session(self, session: PlaybackSession):
        """Reflect a new PlaybackSession value in the controls."""
        pixmap = QStyle.StandardPixmap.SP_MediaPause if session.is_playing else QStyle.StandardPixmap.SP_MediaPlay
        self._play_btn.setIcon(self.style().standardIcon(pixmap))

        muted = session.is_muted or session.volume == 0
        mute_pixmap = QStyle.StandardPixmap.SP_MediaVolumeMuted if muted else QStyle.StandardPixmap.SP_MediaVolume
        self._mute_btn.setIcon(self.style().standardIcon(mute_pixmap))

        self._volume_slider.blockSignals(True)
        self._volume_slider.setValue(0 if session.is_muted else round(session.volume * 100))
        self._volume_slider.blockSignals(False)

        duration_ms = int((session.total_duration or 0) * 1000)
        if self._slider.maximum() != duration_ms:
            self._slider.setRange(0, duration_ms)
            self._duration_label.setText(format_time(session.total_duration or 0))

        if not self._seeking:
            self._slider.setValue(int(session.current_position * 1000))
            self._time_label.setText(format_time(session.current_position))

        speed_row = self._speed_combo.findData(session.playback_rate)
        if speed_row >= 0 and speed_row != self._speed_combo.currentIndex():
            self._speed_combo.setCurrentIndex(speed_row)

        quality_row = self._quality_combo.findData(session.selected_variant)
        if quality_row >= 0 and quality_row != self._quality_combo.currentIndex():
            self._quality_combo.setCurrentIndex(quality_row)

    @Slot(object)
    def _apply_presentation(self, state: PresentationState):
        """Render the presenter's state: overlays, indicators and controls."""
        video_rect = QRectF(0, 0, self._video_width, self._video_height)

        self._brightness_veil.setRect(video_rect)
        self._brightness_veil.setOpacity((100.0 - state.brightness) / 100.0 * 0.85)
        self._brightness_veil.setVisible(state.brightness < 100.0)

        self._buffering_text.setVisible(state.buffering and not state.error_message)
        self._center_text(self._buffering_text)

        seek = state.seek_indicator
        if seek is not None:
            arrow = "⏩" if seek.direction == "right" else "⏪"
            text = f"{seek.value:g}s {arrow}" if seek.direction == "right" else f"{arrow} {seek.value:g}s"
            self._seek_text.setPlainText(text)
            self._center_text(self._seek_text, 0.75 if seek.direction == "right" else 0.25)
            text_rect = self._seek_text.sceneBoundingRect().adjusted(-20, -10, 20, 10)
            self._seek_bg.setRect(text_rect)
        self._seek_text.setVisible(seek is not None)
        self._seek_bg.setVisible(seek is not None)

        self._shortcuts_bg.setRect(video_rect)
        self._shortcuts_bg.setVisible(state.shortcuts_visible)
        self._shortcuts_text.setVisible(state.shortcuts_visible)
        self._center_text(self._shortcuts_text)

        self._error_text.setPlainText(state.error_message)
        self._error_text.setVisible(bool(state.error_message))
        self._center_text(self._error_text)
        self._retry_btn.setVisible(bool(state.error_message))

        if state.volume_indicator is not None:
            self._volume_indicator.set_level(state.volume_indicator.value)
        self._volume_indicator.setVisible(state.volume_indicator is not None)
        if state.brightness_indicator is not None:
            self._brightness_indicator.set_level(state.brightness_indicator.value)
        self._brightness_indicator.setVisible(state.brightness_indicator is not None)

        self._skip_opening_btn.setVisible(state.skip_state.show_skip_opening)
        self._skip_ending_btn.setVisible(state.skip_state.show_skip_ending)

        self._controls.setVisible(state.controls_visible)
        cursor = Qt.CursorShape.ArrowCursor if state.controls_visible else Qt.CursorShape.BlankCursor
        self._view.viewport().setCursor(QCursor(cursor))

        fullscreen_pixmap = (
            QStyle.StandardPixmap.SP_TitleBarNormalButton if state.fullscreen
            else QStyle.StandardPixmap.SP_TitleBarMaxButton
        )
        self._fullscreen_btn.setIcon(self.style().standardIcon(fullscreen_pixmap))

        self._layout_floating_widgets()

    def closeEvent(self, event):
        """Release the engine with the widget."""
        self._controller.close()
        super().closeEvent(event)
