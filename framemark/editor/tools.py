"""
Tool framework and implementations for the FrameMark editor.

Each tool turns a pointer gesture (start, moves, end or abort) into pixels
on the editor surface and decides when the result is committed to history.

Tools:
- FreehandTool: Draws segments straight onto the surface as the pointer moves
- LineTool / ArrowTool / RectangleTool / CircleTool: Live preview over the
  last committed snapshot, committed on release
- TextTool: Stamps the pending text at the click point
- PinTool: Opens a pin at the click point and waits for its comment
"""

from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional, Union

from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QImage

from framemark.editor.drawing import (
    ToolStyle,
    draw_arrow,
    draw_circle,
    draw_line,
    draw_rectangle,
    draw_text,
)
from framemark.services.logging_service import get_logger

if TYPE_CHECKING:
    from framemark.editor.annotation_editor import FrameAnnotationEditor


class ToolType(Enum):
    """Enum for tool types."""
    FREEHAND = auto()
    LINE = auto()
    ARROW = auto()
    RECTANGLE = auto()
    CIRCLE = auto()
    TEXT = auto()
    PIN = auto()

    @property
    def config_name(self) -> str:
        """Lower-case name as stored in the config file."""
        return self.name.lower()

    @classmethod
    def from_name(cls, name: Union[str, "ToolType"]) -> "ToolType":
        """
        Resolve a tool from its config name ("freehand", "arrow", ...).

        Raises:
            ValueError: If the name is not a known tool.
        """
        if isinstance(name, ToolType):
            return name
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown tool type: {name}") from None


class ToolBase(ABC):
    """
    Base class for all tools.

    Tools receive gestures in surface pixel coordinates from the editor and
    draw with the style the editor shares with them.
    """

    def __init__(self) -> None:
        self._logger = get_logger(__name__)
        self._style: ToolStyle = ToolStyle()

    @property
    @abstractmethod
    def tool_type(self) -> ToolType:
        """Return the type of this tool."""
        pass

    @property
    def cursor(self) -> Qt.CursorShape:
        """Return the cursor to use when this tool is active."""
        return Qt.CursorShape.CrossCursor

    @property
    def style(self) -> ToolStyle:
        """Get the style used for drawing."""
        return self._style

    @style.setter
    def style(self, value: ToolStyle) -> None:
        """Set the style used for drawing."""
        self._style = value

    @property
    def is_active(self) -> bool:
        """True while a gesture is in progress."""
        return False

    @abstractmethod
    def on_gesture_start(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        """Handle the pointer going down."""
        pass

    def on_gesture_move(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        """Handle pointer movement while down."""
        pass

    def on_gesture_end(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        """Handle the pointer coming up."""
        pass

    def on_gesture_abort(self, editor: "FrameAnnotationEditor") -> None:
        """Handle the gesture being interrupted (pointer left, tool switched)."""
        pass


class FreehandTool(ToolBase):
    """
    Freehand drawing tool.

    Segments are final geometry as soon as they are drawn, so an aborted
    stroke is committed rather than thrown away.
    """

    def __init__(self) -> None:
        super().__init__()
        self._last_point: Optional[QPointF] = None
        self._has_segments: bool = False

    @property
    def tool_type(self) -> ToolType:
        return ToolType.FREEHAND

    @property
    def is_active(self) -> bool:
        return self._last_point is not None

    def on_gesture_start(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        self._last_point = QPointF(pos)
        self._has_segments = False

    def on_gesture_move(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        if self._last_point is None:
            return
        draw_line(editor.surface.image, self._last_point, pos, self._style)
        self._last_point = QPointF(pos)
        self._has_segments = True
        editor.update()

    def on_gesture_end(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        if self._last_point is None:
            return
        self._last_point = None
        self._has_segments = False
        editor.commit()

    def on_gesture_abort(self, editor: "FrameAnnotationEditor") -> None:
        if self._last_point is None:
            return
        drawn = self._has_segments
        self._last_point = None
        self._has_segments = False
        if drawn:
            self._logger.debug("Freehand stroke interrupted; keeping drawn segments")
            editor.commit()


class ShapeTool(ToolBase):
    """
    Base for anchor-to-pointer shapes.

    Every move repaints the last committed snapshot and draws the shape on
    top, so only the final shape survives into history.
    """

    def __init__(self) -> None:
        super().__init__()
        self._anchor: Optional[QPointF] = None

    @property
    def is_active(self) -> bool:
        return self._anchor is not None

    @abstractmethod
    def draw_shape(self, image: QImage, start: QPointF, end: QPointF) -> None:
        """Draw the shape from the anchor to the current point."""
        pass

    def _preview(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        editor.surface.restore(editor.history.top.image)
        self.draw_shape(editor.surface.image, self._anchor, pos)

    def on_gesture_start(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        self._anchor = QPointF(pos)

    def on_gesture_move(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        if self._anchor is None:
            return
        self._preview(pos, editor)
        editor.update()

    def on_gesture_end(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        if self._anchor is None:
            return
        self._preview(pos, editor)
        self._anchor = None
        editor.commit()

    def on_gesture_abort(self, editor: "FrameAnnotationEditor") -> None:
        if self._anchor is None:
            return
        self._anchor = None
        editor.surface.restore(editor.history.top.image)
        editor.update()


class LineTool(ShapeTool):
    """Straight line from anchor to pointer."""

    @property
    def tool_type(self) -> ToolType:
        return ToolType.LINE

    def draw_shape(self, image: QImage, start: QPointF, end: QPointF) -> None:
        draw_line(image, start, end, self._style)


class ArrowTool(ShapeTool):
    """Line with an open arrowhead at the pointer end."""

    @property
    def tool_type(self) -> ToolType:
        return ToolType.ARROW

    def draw_shape(self, image: QImage, start: QPointF, end: QPointF) -> None:
        draw_arrow(image, start, end, self._style)


class RectangleTool(ShapeTool):

    @property
    def tool_type(self) -> ToolType:
        return ToolType.RECTANGLE

    def draw_shape(self, image: QImage, start: QPointF, end: QPointF) -> None:
        draw_rectangle(image, start, end, self._style)


class CircleTool(ShapeTool):
    """Circle centred on the anchor, passing through the pointer."""

    @property
    def tool_type(self) -> ToolType:
        return ToolType.CIRCLE

    def draw_shape(self, image: QImage, start: QPointF, end: QPointF) -> None:
        draw_circle(image, start, end, self._style)


class TextTool(ToolBase):
    """Stamps the pending text on click and commits immediately."""

    @property
    def tool_type(self) -> ToolType:
        return ToolType.TEXT

    @property
    def cursor(self) -> Qt.CursorShape:
        return Qt.CursorShape.IBeamCursor

    def on_gesture_start(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        text = draw_text(editor.surface.image, pos, self._style)
        self._logger.debug(f"Stamped text {text!r} at ({pos.x():.0f}, {pos.y():.0f})")
        editor.commit()


class PinTool(ToolBase):
    """
    Pin placement tool.

    A click only opens the pin; it is drawn and committed once the host
    confirms a comment.
    """

    @property
    def tool_type(self) -> ToolType:
        return ToolType.PIN

    @property
    def cursor(self) -> Qt.CursorShape:
        return Qt.CursorShape.PointingHandCursor

    def on_gesture_start(self, pos: QPointF, editor: "FrameAnnotationEditor") -> None:
        editor.request_pin_comment(pos)


def create_tool(tool_type: Union[ToolType, str]) -> ToolBase:
    """
    Factory function to create tools by type.

    Args:
        tool_type: The type of tool to create, or its config name.

    Returns:
        A new instance of the requested tool.
    """
    tool_classes = {
        ToolType.FREEHAND: FreehandTool,
        ToolType.LINE: LineTool,
        ToolType.ARROW: ArrowTool,
        ToolType.RECTANGLE: RectangleTool,
        ToolType.CIRCLE: CircleTool,
        ToolType.TEXT: TextTool,
        ToolType.PIN: PinTool,
    }

    tool_type = ToolType.from_name(tool_type)
    if tool_type not in tool_classes:
        raise ValueError(f"Unknown tool type: {tool_type}")

    return tool_classes[tool_type]()
