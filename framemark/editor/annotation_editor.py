"""
Frame annotation editor for FrameMark.

The FrameAnnotationEditor is the headless core of one editing session:
- Owns exactly one drawing surface, its snapshot history and the pin list
- Routes pointer gestures to the active tool
- Runs the two-step pin flow (click, then comment)
- Hands the encoded result and normalized pins to the host on save

The Qt front end in editor_widget drives it, but it can be driven directly
(tests, scripted annotation) without any widgets.
"""

from typing import Callable, List, Optional, Union

from PySide6.QtCore import QObject, QPointF, QSize, Signal
from PySide6.QtGui import QColor

from framemark.editor.drawing import ToolStyle
from framemark.editor.history import Snapshot, UndoStack
from framemark.editor.pin_renderer import PinRenderer
from framemark.editor.pins import AnnotationResult, PendingPin, Pin, normalize_pins
from framemark.editor.surface import SourcePayload, SurfaceManager
from framemark.editor.tools import ToolBase, ToolType, create_tool
from framemark.services.config_service import ConfigService
from framemark.services.logging_service import get_logger


class EditorClosedError(RuntimeError):
    """Raised when a closed editor (saved or cancelled) is asked to change."""


class FrameAnnotationEditor(QObject):
    """
    One annotation session over a single still frame.

    Signals:
        surface_changed: Emitted whenever surface pixels change.
        pins_changed: Emitted with the pin count after pins are added or removed.
        pin_comment_requested: Emitted with the clicked point and the number
            the pin will get, when the host should collect a comment.
        tool_changed: Emitted with the new ToolType.
        closed: Emitted once after save or cancel.
    """

    surface_changed = Signal()
    pins_changed = Signal(int)
    pin_comment_requested = Signal(QPointF, int)
    tool_changed = Signal(object)
    closed = Signal()

    def __init__(
        self,
        source: SourcePayload,
        on_save: Optional[Callable[[AnnotationResult], None]] = None,
        on_cancel: Optional[Callable[[], None]] = None,
        config: Optional[ConfigService] = None,
        bounds: Optional[QSize] = None,
        parent: Optional[QObject] = None
    ) -> None:
        """
        Create an editor and load the source frame.

        Args:
            source: Encoded image bytes, a data URL, or a QImage.
            on_save: Called with the AnnotationResult when the user saves.
            on_cancel: Called when the user cancels.
            config: Settings; an in-memory default config when omitted.
            bounds: Optional container size that further limits the surface.
        """
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._config = config if config is not None else ConfigService(persist=False)
        self._on_save = on_save
        self._on_cancel = on_cancel

        self._surface = SurfaceManager(self._config.max_width, self._config.max_height)
        self._surface.initialize(source, bounds)

        self._pins: List[Pin] = []
        self._pending_pin: Optional[PendingPin] = None
        self._history = UndoStack(self._surface, self._pins, self._config.undo_depth)
        self._pin_renderer = PinRenderer()

        self._style = ToolStyle(
            color=self._parse_color(self._config.default_color, QColor("#dc2626")),
            stroke_width=max(1, self._config.default_stroke_width),
        )
        self._tool: ToolBase = self._create_default_tool()

        self._closed = False
        self._result: Optional[AnnotationResult] = None

        self._logger.info(
            f"Editor opened on a {self._surface.width}x{self._surface.height} surface "
            f"with tool {self._tool.tool_type.config_name}"
        )

    def _parse_color(self, value: str, fallback: QColor) -> QColor:
        color = QColor(value)
        if not color.isValid():
            self._logger.warning(f"Invalid color in config: {value!r}, using {fallback.name()}")
            return QColor(fallback)
        return color

    def _create_default_tool(self) -> ToolBase:
        try:
            tool = create_tool(self._config.default_tool)
        except ValueError:
            self._logger.warning(
                f"Unknown default tool in config: {self._config.default_tool!r}, using freehand"
            )
            tool = create_tool(ToolType.FREEHAND)
        tool.style = self._style
        return tool

    # ─── Properties ───────────────────────────────────────────────────────

    @property
    def surface(self) -> SurfaceManager:
        return self._surface

    @property
    def history(self) -> UndoStack:
        return self._history

    @property
    def pins(self) -> List[Pin]:
        """Placed pins in surface pixels, in placement order (a copy)."""
        return list(self._pins)

    @property
    def pin_count(self) -> int:
        return len(self._pins)

    @property
    def pending_pin(self) -> Optional[PendingPin]:
        return self._pending_pin

    @property
    def pin_renderer(self) -> PinRenderer:
        return self._pin_renderer

    @property
    def style(self) -> ToolStyle:
        return self._style

    @property
    def active_tool(self) -> ToolBase:
        return self._tool

    @property
    def tool_type(self) -> ToolType:
        return self._tool.tool_type

    @property
    def config(self) -> ConfigService:
        return self._config

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def result(self) -> Optional[AnnotationResult]:
        """The saved result, once save() has run."""
        return self._result

    def _ensure_open(self) -> None:
        if self._closed:
            raise EditorClosedError("The editor has already been saved or cancelled")

    # ─── Tool State ───────────────────────────────────────────────────────

    def set_tool(self, tool_type: Union[ToolType, str]) -> None:
        """
        Switch the active tool.

        A gesture in progress on the old tool is aborted first.

        Raises:
            ValueError: If the tool name is unknown.
        """
        self._ensure_open()
        tool_type = ToolType.from_name(tool_type)
        if tool_type == self._tool.tool_type:
            return

        self._abort_active_gesture()
        self._tool = create_tool(tool_type)
        self._tool.style = self._style
        self._logger.debug(f"Tool changed to {tool_type.config_name}")
        self.tool_changed.emit(tool_type)

    def set_color(self, color: Union[QColor, str]) -> None:
        """
        Set the stroke color for subsequent drawing.

        Raises:
            ValueError: If the color cannot be parsed.
        """
        self._ensure_open()
        parsed = QColor(color)
        if not parsed.isValid():
            raise ValueError(f"Invalid color: {color!r}")
        self._style.color = parsed

    def set_stroke_width(self, width: int) -> None:
        """
        Set the stroke width in pixels (also scales stamped text).

        Raises:
            ValueError: If the width is not positive.
        """
        self._ensure_open()
        if width <= 0:
            raise ValueError(f"Stroke width must be positive, got {width}")
        self._style.stroke_width = int(width)

    def set_text(self, text: str) -> None:
        """Set the pending text stamped by the text tool."""
        self._ensure_open()
        self._style.text = text

    # ─── Gestures ─────────────────────────────────────────────────────────

    def gesture_start(self, pos: QPointF) -> None:
        """Pointer went down at ``pos`` (surface pixels)."""
        self._ensure_open()
        if self._pending_pin is not None:
            self._logger.debug("Gesture ignored while a pin comment is pending")
            return
        self._abort_active_gesture()
        self._tool.on_gesture_start(QPointF(pos), self)

    def gesture_move(self, pos: QPointF) -> None:
        self._ensure_open()
        if self._pending_pin is not None:
            return
        self._tool.on_gesture_move(QPointF(pos), self)

    def gesture_end(self, pos: QPointF) -> None:
        self._ensure_open()
        if self._pending_pin is not None:
            return
        self._tool.on_gesture_end(QPointF(pos), self)

    def gesture_abort(self) -> None:
        """Pointer left the surface or the gesture was otherwise interrupted."""
        self._ensure_open()
        self._abort_active_gesture()

    def _abort_active_gesture(self) -> None:
        if self._tool.is_active:
            self._tool.on_gesture_abort(self)

    # ─── History ──────────────────────────────────────────────────────────

    def update(self) -> None:
        """Notify views that surface pixels changed without a commit."""
        self.surface_changed.emit()

    def commit(self, pin_index: Optional[int] = None) -> Snapshot:
        """
        Record the current surface as a history snapshot.

        Args:
            pin_index: Index of the pin this commit placed, if any.
        """
        self._ensure_open()
        snapshot = self._history.push(pin_index)
        self.surface_changed.emit()
        return snapshot

    def undo(self) -> bool:
        """
        Revert the most recent commit.

        Returns:
            False when there was nothing to undo.
        """
        self._ensure_open()
        self._abort_active_gesture()

        pin_count = len(self._pins)
        if not self._history.pop():
            self._logger.debug("Nothing to undo")
            return False

        self.surface_changed.emit()
        if len(self._pins) != pin_count:
            self.pins_changed.emit(len(self._pins))
        return True

    def clear_all(self) -> None:
        """Drop every annotation and pin and start a fresh history."""
        self._ensure_open()
        self._abort_active_gesture()
        self._pending_pin = None

        self._history.reset()
        self._logger.info("Annotations cleared")
        self.surface_changed.emit()
        self.pins_changed.emit(0)

    # ─── Pins ─────────────────────────────────────────────────────────────

    def request_pin_comment(self, pos: QPointF) -> PendingPin:
        """
        Open a pin at ``pos`` and ask the host for its comment.

        Replaces any pin already waiting for a comment.
        """
        self._ensure_open()
        self._pending_pin = PendingPin(pos.x(), pos.y())
        number = len(self._pins) + 1
        self._logger.debug(f"Pin #{number} requested at ({pos.x():.0f}, {pos.y():.0f})")
        self.pin_comment_requested.emit(QPointF(pos), number)
        return self._pending_pin

    def confirm_pin(self, comment: str = "") -> Optional[Pin]:
        """
        Place the pending pin with ``comment`` and commit it.

        Returns:
            The placed pin, or None if no pin was pending.
        """
        self._ensure_open()
        pending = self._pending_pin
        if pending is None:
            self._logger.warning("confirm_pin called with no pending pin")
            return None

        pin = Pin(pending.x, pending.y, comment.strip())
        self._pins.append(pin)
        pin_index = len(self._pins) - 1
        self._pin_renderer.draw_pin(self._surface.image, pin, len(self._pins))
        self._pending_pin = None

        self.commit(pin_index=pin_index)
        self.pins_changed.emit(len(self._pins))
        self._logger.debug(f"Pin #{len(self._pins)} placed")
        return pin

    def cancel_pin(self) -> None:
        """Discard the pending pin; nothing else changes."""
        self._ensure_open()
        if self._pending_pin is not None:
            self._logger.debug("Pending pin discarded")
        self._pending_pin = None

    def export_pins(self) -> List[Pin]:
        """Pins mapped onto the unit square of the surface."""
        return normalize_pins(self._pins, self._surface.width, self._surface.height)

    # ─── Lifecycle ────────────────────────────────────────────────────────

    def save(self) -> AnnotationResult:
        """
        Encode the surface, hand the result to ``on_save`` and close.

        Any gesture in progress is aborted and a pending pin is discarded
        before encoding.
        """
        self._ensure_open()
        self._abort_active_gesture()
        self._pending_pin = None

        payload, fmt = self._surface.export(
            self._config.export_quality,
            self._config.export_format
        )
        result = AnnotationResult(payload, self.export_pins(), fmt)

        self._closed = True
        self._result = result
        self._logger.info(
            f"Annotation saved: {len(payload)} bytes ({fmt}), {len(result.pins)} pin(s)"
        )

        if self._on_save is not None:
            self._on_save(result)
        self.closed.emit()
        return result

    def cancel(self) -> None:
        """Discard all work, notify ``on_cancel`` and close."""
        self._ensure_open()
        self._closed = True
        self._pending_pin = None
        self._logger.info("Annotation cancelled")

        if self._on_cancel is not None:
            self._on_cancel()
        self.closed.emit()
