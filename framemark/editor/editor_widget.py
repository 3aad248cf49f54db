"""
Editor widgets for FrameMark - the Qt front end of the annotation editor.

This module composes the complete editor interface around a
FrameAnnotationEditor:
- Top toolbar with tool buttons, color swatches, stroke width and undo/clear
- Center canvas showing the surface and feeding it pointer gestures
- Pin comment dialog opened when a pin is placed
- Footer with pin counter and Cancel/Done
"""

from typing import Optional

from PySide6.QtCore import QPointF, QRectF, QSize, Qt, Signal
from PySide6.QtGui import QColor, QIcon, QKeyEvent, QMouseEvent, QPainter, QPainterPath, QPixmap
from PySide6.QtWidgets import (
    QButtonGroup,
    QComboBox,
    QDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QSizePolicy,
    QToolBar,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from framemark.editor.annotation_editor import FrameAnnotationEditor
from framemark.editor.pins import AnnotationResult
from framemark.editor.surface import SourcePayload
from framemark.editor.tools import ToolType
from framemark.services.config_service import ConfigService
from framemark.services.logging_service import get_logger


# (tool, tooltip, icon shape, shortcut)
TOOL_BUTTONS = [
    (ToolType.FREEHAND, "Draw", "freehand", "F"),
    (ToolType.LINE, "Line", "line", "L"),
    (ToolType.ARROW, "Arrow", "arrow", "A"),
    (ToolType.RECTANGLE, "Rect", "rectangle", "R"),
    (ToolType.CIRCLE, "Circle", "circle", "C"),
    (ToolType.TEXT, "Text", "text", "T"),
    (ToolType.PIN, "Pin", "pin", "P"),
]

TOOL_SHORTCUTS = {
    Qt.Key.Key_F: ToolType.FREEHAND,
    Qt.Key.Key_L: ToolType.LINE,
    Qt.Key.Key_A: ToolType.ARROW,
    Qt.Key.Key_R: ToolType.RECTANGLE,
    Qt.Key.Key_C: ToolType.CIRCLE,
    Qt.Key.Key_T: ToolType.TEXT,
    Qt.Key.Key_P: ToolType.PIN,
}


def _create_tool_icon(shape: str, color: QColor = QColor(220, 220, 220)) -> QIcon:
    """Draw a toolbar icon programmatically."""
    size = 24
    margin = 4

    pixmap = QPixmap(size, size)
    pixmap.fill(Qt.GlobalColor.transparent)

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    painter.setPen(color)
    painter.setBrush(Qt.BrushStyle.NoBrush)

    if shape == "freehand":
        path = QPainterPath(QPointF(4, 16))
        path.cubicTo(QPointF(8, 4), QPointF(12, 22), QPointF(20, 8))
        painter.drawPath(path)

    elif shape == "line":
        painter.drawLine(5, 19, 19, 5)

    elif shape == "arrow":
        painter.drawLine(5, 12, 19, 12)
        painter.drawLine(19, 12, 14, 7)
        painter.drawLine(19, 12, 14, 17)

    elif shape == "rectangle":
        painter.drawRect(margin, margin + 2, size - margin * 2, size - margin * 2 - 4)

    elif shape == "circle":
        painter.drawEllipse(margin, margin, size - margin * 2, size - margin * 2)

    elif shape == "text":
        font = painter.font()
        font.setPixelSize(16)
        font.setBold(True)
        painter.setFont(font)
        painter.drawText(pixmap.rect(), Qt.AlignmentFlag.AlignCenter, "T")

    elif shape == "pin":
        painter.setBrush(color)
        painter.drawEllipse(QPointF(12, 9), 5, 5)
        path = QPainterPath(QPointF(8, 12))
        path.lineTo(12, 21)
        path.lineTo(16, 12)
        path.closeSubpath()
        painter.drawPath(path)

    elif shape == "undo":
        path = QPainterPath(QPointF(8, 8))
        path.cubicTo(QPointF(16, 4), QPointF(22, 14), QPointF(14, 19))
        painter.drawPath(path)
        painter.drawLine(8, 8, 12, 4)
        painter.drawLine(8, 8, 12, 11)

    elif shape == "clear":
        painter.drawLine(6, 6, 18, 18)
        painter.drawLine(18, 6, 6, 18)

    painter.end()
    return QIcon(pixmap)


# ─── Canvas ───────────────────────────────────────────────────────────────────

class AnnotationCanvas(QWidget):
    """
    Shows the editor surface and turns mouse input into gestures.

    The surface is scaled down to fit (never up) and centred; mouse
    positions are mapped back to surface pixels before reaching the editor.
    """

    def __init__(self, editor: FrameAnnotationEditor, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._editor = editor

        self.setMinimumSize(200, 150)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setCursor(editor.active_tool.cursor)

        editor.surface_changed.connect(self.update)
        editor.tool_changed.connect(self._on_tool_changed)

    def sizeHint(self) -> QSize:
        return self._editor.surface.size

    def display_rect(self) -> QRectF:
        """Where the surface is drawn, in widget coordinates."""
        surface = self._editor.surface
        if surface.width == 0 or surface.height == 0:
            return QRectF()

        scale = min(self.width() / surface.width, self.height() / surface.height, 1.0)
        width = surface.width * scale
        height = surface.height * scale
        return QRectF(
            (self.width() - width) / 2,
            (self.height() - height) / 2,
            width,
            height,
        )

    def widget_to_surface(self, pos: QPointF) -> QPointF:
        """Convert widget coordinates to surface pixels."""
        rect = self.display_rect()
        local = QPointF(pos.x() - rect.left(), pos.y() - rect.top())
        return self._editor.surface.display_to_surface(local, rect.size())

    def _on_tool_changed(self, tool_type: ToolType) -> None:
        self.setCursor(self._editor.active_tool.cursor)

    # ─── Event Handlers ───────────────────────────────────────────────────

    def paintEvent(self, event) -> None:
        """Paint the canvas."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(26, 26, 26))
        painter.drawImage(self.display_rect(), self._editor.surface.image)
        painter.end()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton or self._editor.is_closed:
            return
        # Presses on the border around the image are ignored
        if not self.display_rect().contains(event.position()):
            return
        self._editor.gesture_start(self.widget_to_surface(event.position()))

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if not (event.buttons() & Qt.MouseButton.LeftButton) or self._editor.is_closed:
            return
        if not self.display_rect().contains(event.position()):
            self._editor.gesture_abort()
            return
        self._editor.gesture_move(self.widget_to_surface(event.position()))

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton or self._editor.is_closed:
            return
        if not self.display_rect().contains(event.position()):
            self._editor.gesture_abort()
            return
        self._editor.gesture_end(self.widget_to_surface(event.position()))

    def leaveEvent(self, event) -> None:
        if not self._editor.is_closed:
            self._editor.gesture_abort()
        super().leaveEvent(event)


# ─── Pin Comment Dialog ───────────────────────────────────────────────────────

class _CommentEdit(QPlainTextEdit):
    """Multi-line input where Enter submits and Shift+Enter breaks the line."""

    submitted = Signal()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.key() in (Qt.Key.Key_Return, Qt.Key.Key_Enter) and not (
            event.modifiers() & Qt.KeyboardModifier.ShiftModifier
        ):
            self.submitted.emit()
            return
        super().keyPressEvent(event)


class PinCommentDialog(QDialog):
    """Asks for the comment attached to a newly placed pin."""

    def __init__(self, pin_number: int, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Add Pin Comment")
        self.setModal(True)
        self.setMinimumWidth(320)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(10)

        title = QLabel(f"Pin #{pin_number}")
        title.setStyleSheet("font-weight: bold; font-size: 13px;")
        layout.addWidget(title)

        self._edit = _CommentEdit()
        self._edit.setPlaceholderText("Describe what should change here...")
        self._edit.setFixedHeight(90)
        self._edit.submitted.connect(self.accept)
        layout.addWidget(self._edit)

        buttons = QHBoxLayout()
        buttons.addStretch()
        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        buttons.addWidget(cancel_btn)
        add_btn = QPushButton("Add Pin")
        add_btn.setDefault(True)
        add_btn.clicked.connect(self.accept)
        buttons.addWidget(add_btn)
        layout.addLayout(buttons)

        self._edit.setFocus()

    @property
    def comment(self) -> str:
        return self._edit.toPlainText()

    def set_comment(self, text: str) -> None:
        self._edit.setPlainText(text)


# ─── Editor Widget ────────────────────────────────────────────────────────────

class ColorSwatch(QToolButton):
    """Checkable palette button filled with one color."""

    def __init__(self, color: QColor, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._color = QColor(color)
        self.setCheckable(True)
        self.setFixedSize(22, 22)
        self.setToolTip(self._color.name())
        self.setStyleSheet(f"""
            QToolButton {{
                background-color: {self._color.name()};
                border: 2px solid #555;
                border-radius: 11px;
                min-width: 0px;
                min-height: 0px;
                padding: 0px;
            }}
            QToolButton:checked {{
                border-color: #fff;
            }}
        """)

    @property
    def color(self) -> QColor:
        return self._color


class FrameAnnotationWidget(QWidget):
    """
    Complete annotation editor UI for one frame.

    Signals:
        saved: Emitted with the AnnotationResult when Done is pressed.
        cancelled: Emitted when Cancel is pressed.
    """

    saved = Signal(object)
    cancelled = Signal()

    def __init__(
        self,
        source: SourcePayload,
        config_service: Optional[ConfigService] = None,
        bounds: Optional[QSize] = None,
        parent: Optional[QWidget] = None
    ) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._config = config_service if config_service is not None else ConfigService(persist=False)
        self._editor = FrameAnnotationEditor(source, config=self._config, bounds=bounds, parent=self)
        self._comment_dialog: Optional[PinCommentDialog] = None

        self._setup_ui()
        self._connect_signals()
        self._sync_tool_buttons(self._editor.tool_type)

    @property
    def editor(self) -> FrameAnnotationEditor:
        return self._editor

    @property
    def canvas(self) -> AnnotationCanvas:
        return self._canvas

    @property
    def comment_dialog(self) -> Optional[PinCommentDialog]:
        """The open pin comment dialog, if any."""
        return self._comment_dialog

    def _setup_ui(self) -> None:
        """Build the UI layout."""
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        # ─── Top Toolbar ──────────────────────────────────────────────
        self._toolbar = QToolBar()
        self._toolbar.setMovable(False)
        self._toolbar.setStyleSheet("""
            QToolBar {
                background-color: #2a2a2a;
                border-bottom: 1px solid #3a3a3a;
                padding: 6px 8px;
                spacing: 4px;
            }
            QToolBar::separator {
                background-color: #444;
                width: 1px;
                margin: 4px 6px;
            }
            QToolButton {
                background-color: transparent;
                border: none;
                border-radius: 8px;
                padding: 6px 8px;
                margin: 2px;
                min-width: 32px;
                min-height: 32px;
            }
            QToolButton:hover {
                background-color: rgba(255, 255, 255, 0.1);
            }
            QToolButton:checked {
                background-color: rgba(220, 38, 38, 0.35);
            }
            QComboBox, QLineEdit {
                background-color: #3a3a3a;
                color: #ddd;
                border: 1px solid #555;
                padding: 4px;
            }
        """)

        # Tool buttons
        self._tool_group = QButtonGroup(self)
        self._tool_group.setExclusive(True)

        for tool_type, tooltip, icon_shape, shortcut in TOOL_BUTTONS:
            btn = QToolButton()
            btn.setIcon(_create_tool_icon(icon_shape))
            btn.setToolTip(f"{tooltip} ({shortcut})")
            btn.setCheckable(True)
            btn.setProperty("tool_type", tool_type)
            btn.clicked.connect(lambda checked, t=tool_type: self._select_tool(t))
            self._tool_group.addButton(btn)
            self._toolbar.addWidget(btn)

        self._toolbar.addSeparator()

        # Palette
        self._color_group = QButtonGroup(self)
        self._color_group.setExclusive(True)
        current = self._editor.style.color.name()
        for value in self._config.palette:
            swatch = ColorSwatch(QColor(value))
            swatch.clicked.connect(lambda checked, c=swatch.color: self._editor.set_color(c))
            swatch.setChecked(swatch.color.name() == current)
            self._color_group.addButton(swatch)
            self._toolbar.addWidget(swatch)

        self._toolbar.addSeparator()

        # Stroke width
        self._stroke_width = QComboBox()
        self._stroke_width.setToolTip("Stroke width")
        for width in self._config.stroke_widths:
            self._stroke_width.addItem(f"{width}px", width)
        index = self._stroke_width.findData(self._editor.style.stroke_width)
        if index >= 0:
            self._stroke_width.setCurrentIndex(index)
        self._stroke_width.currentIndexChanged.connect(self._on_stroke_width_changed)
        self._toolbar.addWidget(self._stroke_width)

        # Pending text for the text tool
        self._text_input = QLineEdit()
        self._text_input.setPlaceholderText("Text to stamp")
        self._text_input.setFixedWidth(140)
        self._text_input.textChanged.connect(self._editor.set_text)
        self._text_action = self._toolbar.addWidget(self._text_input)

        self._toolbar.addSeparator()

        # Undo / Clear
        self._undo_btn = QToolButton()
        self._undo_btn.setIcon(_create_tool_icon("undo"))
        self._undo_btn.setToolTip("Undo (Ctrl+Z)")
        self._undo_btn.clicked.connect(self._undo)
        self._toolbar.addWidget(self._undo_btn)

        clear_btn = QToolButton()
        clear_btn.setIcon(_create_tool_icon("clear"))
        clear_btn.setToolTip("Clear all")
        clear_btn.clicked.connect(self._clear_all)
        self._toolbar.addWidget(clear_btn)

        main_layout.addWidget(self._toolbar)

        # ─── Canvas ───────────────────────────────────────────────────
        self._canvas = AnnotationCanvas(self._editor)
        main_layout.addWidget(self._canvas, 1)

        # ─── Footer ───────────────────────────────────────────────────
        footer = QWidget()
        footer.setStyleSheet("""
            QWidget {
                background-color: #2a2a2a;
            }
            QLabel {
                color: #aaa;
                font-size: 11px;
            }
            QPushButton {
                background-color: #3a3a3a;
                color: #ddd;
                border: 1px solid #555;
                border-radius: 6px;
                padding: 6px 14px;
            }
            QPushButton#doneButton {
                background-color: #dc2626;
                border-color: #991b1b;
                color: white;
            }
        """)
        footer_layout = QHBoxLayout(footer)
        footer_layout.setContentsMargins(12, 8, 12, 8)

        self._pin_label = QLabel()
        footer_layout.addWidget(self._pin_label)
        footer_layout.addStretch()

        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self._cancel)
        footer_layout.addWidget(cancel_btn)

        done_btn = QPushButton("Done")
        done_btn.setObjectName("doneButton")
        done_btn.setToolTip("Save annotation (Ctrl+S)")
        done_btn.clicked.connect(self._save)
        footer_layout.addWidget(done_btn)

        main_layout.addWidget(footer)

        self._update_pin_label(self._editor.pin_count)
        self._update_undo_button()

    def _connect_signals(self) -> None:
        """Connect editor signals."""
        self._editor.tool_changed.connect(self._sync_tool_buttons)
        self._editor.pins_changed.connect(self._update_pin_label)
        self._editor.surface_changed.connect(self._update_undo_button)
        self._editor.pin_comment_requested.connect(self._on_pin_comment_requested)

    # ─── Tool Management ──────────────────────────────────────────────────

    def _select_tool(self, tool_type: ToolType) -> None:
        """Select a tool by type."""
        if self._editor.is_closed:
            return
        self._editor.set_tool(tool_type)
        self._sync_tool_buttons(tool_type)

    def _sync_tool_buttons(self, tool_type: ToolType) -> None:
        for btn in self._tool_group.buttons():
            if btn.property("tool_type") == tool_type:
                btn.setChecked(True)
                break
        self._text_action.setVisible(tool_type == ToolType.TEXT)

    def _on_stroke_width_changed(self, index: int) -> None:
        width = self._stroke_width.itemData(index)
        if width is not None and not self._editor.is_closed:
            self._editor.set_stroke_width(int(width))

    # ─── Pins ─────────────────────────────────────────────────────────────

    def _on_pin_comment_requested(self, pos: QPointF, number: int) -> None:
        dialog = PinCommentDialog(number, self)
        dialog.accepted.connect(lambda: self._editor.confirm_pin(dialog.comment))
        dialog.rejected.connect(self._editor.cancel_pin)
        dialog.finished.connect(self._on_comment_dialog_finished)
        self._comment_dialog = dialog
        dialog.open()

    def _on_comment_dialog_finished(self, result: int) -> None:
        self._comment_dialog = None

    def _update_pin_label(self, count: int) -> None:
        self._pin_label.setText(f"Pins: {count}")

    def _update_undo_button(self) -> None:
        self._undo_btn.setEnabled(self._editor.history.can_undo)

    # ─── Actions ──────────────────────────────────────────────────────────

    def _undo(self) -> None:
        if not self._editor.is_closed:
            self._editor.undo()

    def _clear_all(self) -> None:
        if not self._editor.is_closed:
            self._editor.clear_all()

    def _save(self) -> None:
        if self._editor.is_closed:
            return
        result: AnnotationResult = self._editor.save()
        self.setEnabled(False)
        self.saved.emit(result)

    def _cancel(self) -> None:
        if self._editor.is_closed:
            return
        self._editor.cancel()
        self.setEnabled(False)
        self.cancelled.emit()

    # ─── Key Events ───────────────────────────────────────────────────────

    def keyPressEvent(self, event) -> None:
        """Handle keyboard shortcuts."""
        key = event.key()
        modifiers = event.modifiers()

        if key in TOOL_SHORTCUTS and not modifiers:
            self._select_tool(TOOL_SHORTCUTS[key])
            return

        if key == Qt.Key.Key_Z and modifiers & Qt.KeyboardModifier.ControlModifier:
            self._undo()
            return

        if key == Qt.Key.Key_S and modifiers & Qt.KeyboardModifier.ControlModifier:
            self._save()
            return

        super().keyPressEvent(event)
