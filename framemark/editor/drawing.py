"""
Raster drawing primitives for the FrameMark editor.

Every function paints straight onto a QImage; there are no retained shape
objects. Tools call these both for live previews and for the final commit.
"""

import math
from dataclasses import dataclass, field
from typing import Tuple

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QFont, QImage, QPainter, QPen


# Arrowhead strokes leave the tip at +/- this angle from the shaft
ARROW_HEAD_ANGLE = 0.4
ARROW_HEAD_MAX_LENGTH = 20.0

# Stamped when the text tool has no pending text
DEFAULT_STAMP_TEXT = "Text"


@dataclass
class ToolStyle:
    """
    Stroke settings shared by all tools.

    ``text`` is the pending content for the text tool.
    """
    color: QColor = field(default_factory=lambda: QColor("#dc2626"))
    stroke_width: int = 4
    text: str = ""

    @property
    def font_pixel_size(self) -> int:
        """Text stamp size derived from the stroke width."""
        return max(1, self.stroke_width * 4)

    def clone(self) -> "ToolStyle":
        """Create a copy of this style."""
        return ToolStyle(
            color=QColor(self.color),
            stroke_width=self.stroke_width,
            text=self.text,
        )


def make_pen(style: ToolStyle) -> QPen:
    """Round-capped, round-joined pen for the style."""
    pen = QPen(style.color)
    pen.setWidthF(style.stroke_width)
    pen.setCapStyle(Qt.PenCapStyle.RoundCap)
    pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
    return pen


def _stroke_painter(image: QImage, style: ToolStyle) -> QPainter:
    painter = QPainter(image)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    painter.setPen(make_pen(style))
    painter.setBrush(Qt.BrushStyle.NoBrush)
    return painter


def draw_line(image: QImage, start: QPointF, end: QPointF, style: ToolStyle) -> None:
    """Straight stroke; also used for each freehand segment."""
    painter = _stroke_painter(image, style)
    painter.drawLine(start, end)
    painter.end()


def arrow_head_length(stroke_width: float) -> float:
    return min(ARROW_HEAD_MAX_LENGTH, stroke_width * 4)


def arrow_head_points(
    start: QPointF,
    end: QPointF,
    stroke_width: float
) -> Tuple[QPointF, QPointF]:
    """
    Far ends of the two arrowhead strokes.

    Both strokes start at ``end`` and run back along the shaft direction
    rotated by -/+ ARROW_HEAD_ANGLE.
    """
    angle = math.atan2(end.y() - start.y(), end.x() - start.x())
    length = arrow_head_length(stroke_width)

    left = QPointF(
        end.x() - length * math.cos(angle - ARROW_HEAD_ANGLE),
        end.y() - length * math.sin(angle - ARROW_HEAD_ANGLE),
    )
    right = QPointF(
        end.x() - length * math.cos(angle + ARROW_HEAD_ANGLE),
        end.y() - length * math.sin(angle + ARROW_HEAD_ANGLE),
    )
    return left, right


def draw_arrow(image: QImage, start: QPointF, end: QPointF, style: ToolStyle) -> None:
    """Straight shaft plus two open head strokes at the end point."""
    left, right = arrow_head_points(start, end, style.stroke_width)

    painter = _stroke_painter(image, style)
    painter.drawLine(start, end)
    painter.drawLine(end, left)
    painter.drawLine(end, right)
    painter.end()


def draw_rectangle(image: QImage, start: QPointF, end: QPointF, style: ToolStyle) -> None:
    """Axis-aligned outline between two opposite corners, any drag direction."""
    painter = _stroke_painter(image, style)
    painter.drawRect(QRectF(start, end).normalized())
    painter.end()


def draw_circle(image: QImage, center: QPointF, edge: QPointF, style: ToolStyle) -> None:
    """Circle around ``center`` passing through ``edge``."""
    radius = math.hypot(edge.x() - center.x(), edge.y() - center.y())

    painter = _stroke_painter(image, style)
    painter.drawEllipse(center, radius, radius)
    painter.end()


def draw_text(image: QImage, pos: QPointF, style: ToolStyle) -> str:
    """
    Stamp the pending text with its baseline at ``pos``.

    Returns the text that was drawn.
    """
    text = style.text.strip() or DEFAULT_STAMP_TEXT

    painter = QPainter(image)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
    font = QFont()
    font.setPixelSize(style.font_pixel_size)
    painter.setFont(font)
    painter.setPen(style.color)
    painter.drawText(pos, text)
    painter.end()
    return text
