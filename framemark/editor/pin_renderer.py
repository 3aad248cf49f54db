"""
Pin glyph and comment bubble rendering for FrameMark.

A pin is a map-marker shape whose tip sits on the clicked pixel, with its
1-based number in the head. A non-empty comment is word-wrapped into a
rounded bubble placed beside the glyph, flipped or clamped to stay inside
the surface.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QFont, QFontMetricsF, QImage, QPainter, QPen, QPolygonF

from framemark.editor.pins import Pin


PIN_SIZE = 24
PIN_COLOR = QColor("#dc2626")
PIN_BORDER_COLOR = QColor("#991b1b")
PIN_NUMBER_COLOR = QColor(255, 255, 255)
PIN_NUMBER_FONT_SIZE = 12

BUBBLE_PADDING = 8
BUBBLE_MAX_WIDTH = 200
BUBBLE_LINE_HEIGHT = 16
BUBBLE_RADIUS = 6
BUBBLE_GAP = 8
BUBBLE_FONT_SIZE = 13
BUBBLE_FILL_COLOR = QColor(255, 255, 255, 242)
BUBBLE_TEXT_COLOR = QColor("#1f2937")

# Minimum distance kept between a bubble and the surface edges
EDGE_INSET = 10


def wrap_text(text: str, measure: Callable[[str], float], max_width: float) -> List[str]:
    """
    Greedily pack words into lines no wider than ``max_width``.

    A single word wider than the limit gets a line of its own.
    """
    lines: List[str] = []
    current = ""

    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if measure(candidate) > max_width:
            if current:
                lines.append(current)
            current = word
        else:
            current = candidate

    if current:
        lines.append(current)
    return lines


@dataclass
class BubbleLayout:
    """Where a comment bubble goes and what it says."""
    rect: QRectF
    lines: List[str]
    flipped: bool = False


class PinRenderer:
    """Draws numbered pins and their comment bubbles onto surfaces."""

    def __init__(self, size: int = PIN_SIZE) -> None:
        self.size = size

    # ─── Geometry ─────────────────────────────────────────────────────────

    def head_center(self, x: float, y: float) -> QPointF:
        return QPointF(x, y - self.size * 0.6)

    @property
    def head_radius(self) -> float:
        return self.size * 0.4

    def tip_polygon(self, x: float, y: float) -> QPolygonF:
        return QPolygonF([
            QPointF(x - self.size * 0.25, y - self.size * 0.35),
            QPointF(x, y),
            QPointF(x + self.size * 0.25, y - self.size * 0.35),
        ])

    def comment_font(self) -> QFont:
        font = QFont()
        font.setPixelSize(BUBBLE_FONT_SIZE)
        return font

    def number_font(self) -> QFont:
        font = QFont()
        font.setPixelSize(PIN_NUMBER_FONT_SIZE)
        font.setBold(True)
        return font

    def layout_bubble(
        self,
        x: float,
        y: float,
        comment: str,
        surface_width: float,
        surface_height: float,
        measure: Optional[Callable[[str], float]] = None
    ) -> Optional[BubbleLayout]:
        """
        Compute the comment bubble for a pin at (x, y).

        Args:
            measure: Text width function; defaults to the bubble font metrics.

        Returns:
            None when the comment is blank.
        """
        comment = comment.strip()
        if not comment:
            return None

        if measure is None:
            measure = QFontMetricsF(self.comment_font()).horizontalAdvance

        lines = wrap_text(comment, measure, BUBBLE_MAX_WIDTH - BUBBLE_PADDING * 2)
        width = max(measure(line) for line in lines) + BUBBLE_PADDING * 2
        height = len(lines) * BUBBLE_LINE_HEIGHT + BUBBLE_PADDING * 2

        # Right of the glyph, centred on the head
        left = x + self.size * 0.5 + BUBBLE_GAP
        top = self.head_center(x, y).y() - height / 2
        flipped = False

        if left + width > surface_width - EDGE_INSET:
            left = x - self.size * 0.5 - BUBBLE_GAP - width
            flipped = True
            left = max(EDGE_INSET, left)
        if top < EDGE_INSET:
            top = EDGE_INSET
        if top + height > surface_height - EDGE_INSET:
            top = surface_height - EDGE_INSET - height

        return BubbleLayout(QRectF(left, top, width, height), lines, flipped)

    # ─── Painting ─────────────────────────────────────────────────────────

    def draw_pin(self, image: QImage, pin: Pin, number: int) -> Optional[BubbleLayout]:
        """
        Paint one pin (and its bubble, if it has a comment) onto ``image``.

        Returns:
            The bubble layout used, or None if no bubble was drawn.
        """
        layout = self.layout_bubble(pin.x, pin.y, pin.comment, image.width(), image.height())

        painter = QPainter(image)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        self._paint_glyph(painter, pin.x, pin.y, number)
        if layout is not None:
            self._paint_bubble(painter, layout)
        painter.end()
        return layout

    def render_pins(self, image: QImage, pins: Iterable[Pin]) -> QImage:
        """Return a copy of ``image`` with the pixel-space pins drawn, numbered from 1."""
        result = image.copy()
        for index, pin in enumerate(pins):
            self.draw_pin(result, pin, index + 1)
        return result

    def _paint_glyph(self, painter: QPainter, x: float, y: float, number: int) -> None:
        painter.save()

        pen = QPen(PIN_BORDER_COLOR)
        pen.setWidthF(2)
        painter.setPen(pen)
        painter.setBrush(PIN_COLOR)

        # Head
        center = self.head_center(x, y)
        radius = self.head_radius
        painter.drawEllipse(center, radius, radius)

        # Tip
        painter.drawPolygon(self.tip_polygon(x, y))

        # Number
        painter.setPen(PIN_NUMBER_COLOR)
        painter.setFont(self.number_font())
        head_rect = QRectF(center.x() - radius, center.y() - radius, radius * 2, radius * 2)
        painter.drawText(head_rect, Qt.AlignmentFlag.AlignCenter, str(number))

        painter.restore()

    def _paint_bubble(self, painter: QPainter, layout: BubbleLayout) -> None:
        painter.save()

        pen = QPen(PIN_COLOR)
        pen.setWidthF(2)
        painter.setPen(pen)
        painter.setBrush(BUBBLE_FILL_COLOR)
        painter.drawRoundedRect(layout.rect, BUBBLE_RADIUS, BUBBLE_RADIUS)

        painter.setPen(BUBBLE_TEXT_COLOR)
        painter.setFont(self.comment_font())
        rect = layout.rect
        text_width = rect.width() - BUBBLE_PADDING * 2
        for i, line in enumerate(layout.lines):
            line_rect = QRectF(
                rect.left() + BUBBLE_PADDING,
                rect.top() + BUBBLE_PADDING + i * BUBBLE_LINE_HEIGHT,
                text_width,
                BUBBLE_LINE_HEIGHT,
            )
            painter.drawText(
                line_rect,
                Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop,
                line
            )

        painter.restore()
