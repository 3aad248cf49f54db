"""
Drawing surface for the FrameMark editor.

The SurfaceManager owns the single mutable pixel buffer being annotated:
- Decodes the source still (raw bytes, data URL or QImage)
- Fits it into the bounding box without ever upscaling
- Copies the whole surface out and back in for undo and shape previews
- Maps on-screen coordinates onto surface pixels
- Encodes the final surface for hand-off to the host
"""

import base64
import binascii
import math
from typing import Optional, Tuple, Union
from urllib.parse import unquote_to_bytes

from PySide6.QtCore import QBuffer, QIODevice, QPointF, QRectF, QSize, QSizeF
from PySide6.QtGui import QColor, QFont, QImage, QPainter

from framemark.services.logging_service import get_logger


SourcePayload = Union[bytes, bytearray, str, QImage]

SURFACE_FORMAT = QImage.Format.Format_RGB32

# Shown instead of the frame when the source cannot be decoded
PLACEHOLDER_SIZE = QSize(300, 150)
PLACEHOLDER_BACKGROUND = QColor("#f3f4f6")
PLACEHOLDER_TEXT_COLOR = QColor("#6b7280")
PLACEHOLDER_MESSAGE = "Failed to load image"


def _decode_data_url(url: str) -> bytes:
    """Return the payload of a ``data:`` URL, or empty bytes if malformed."""
    header, sep, data = url.partition(",")
    if not header.startswith("data:") or not sep:
        return b""

    if header.endswith(";base64"):
        try:
            return base64.b64decode(data, validate=False)
        except (binascii.Error, ValueError):
            return b""
    return unquote_to_bytes(data)


def decode_image(payload: SourcePayload) -> QImage:
    """
    Decode an encoded image payload.

    Returns a null QImage when the payload is not a decodable image.
    """
    if isinstance(payload, QImage):
        return payload.copy()

    if isinstance(payload, str):
        data = _decode_data_url(payload.strip())
    else:
        data = bytes(payload)

    image = QImage()
    if data:
        image.loadFromData(data)
    return image


def to_data_url(payload: bytes, fmt: str = "JPEG") -> str:
    """Wrap an encoded image payload in a ``data:`` URL."""
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:image/{fmt.lower()};base64,{encoded}"


class SurfaceManager:
    """
    Owner of the editable pixel surface.

    There is exactly one surface QImage per manager. Restoring a snapshot
    paints into that same image rather than replacing it, so views holding
    ``image`` keep seeing the live surface.
    """

    def __init__(self, max_width: int = 800, max_height: int = 600) -> None:
        self._logger = get_logger(__name__)
        self._max_width = max_width
        self._max_height = max_height

        self._image: QImage = QImage()
        self._source: QImage = QImage()
        self._scale: float = 1.0
        self._decode_failed: bool = False

    # ─── Initialization ───────────────────────────────────────────────────

    @staticmethod
    def fit_scale(src_width: int, src_height: int, max_width: float, max_height: float) -> float:
        """Scale that fits the source into the box, capped at 1 (no upscaling)."""
        if src_width <= 0 or src_height <= 0:
            return 1.0
        return min(max_width / src_width, max_height / src_height, 1.0)

    def _limits(self, bounds: Optional[QSize]) -> Tuple[int, int]:
        """Bounding box, narrowed by the container bounds when given."""
        max_w, max_h = self._max_width, self._max_height
        if bounds is not None:
            if bounds.width() > 0:
                max_w = min(max_w, bounds.width())
            if bounds.height() > 0:
                max_h = min(max_h, bounds.height())
        return max_w, max_h

    def initialize(self, source: SourcePayload, bounds: Optional[QSize] = None) -> bool:
        """
        Load the source still and size the surface from it.

        Args:
            source: Encoded image bytes, a data URL, or a decoded QImage.
            bounds: Optional container size further limiting the surface.

        Returns:
            True if the source was decoded. On failure the surface holds a
            placeholder and the editor stays usable.
        """
        decoded = decode_image(source)

        if decoded.isNull():
            self._decode_failed = True
            self._scale = 1.0
            self._source = self._render_placeholder()
            self._logger.warning(
                "Could not decode source image; editing a placeholder instead"
            )
        else:
            self._decode_failed = False
            max_w, max_h = self._limits(bounds)
            self._scale = self.fit_scale(decoded.width(), decoded.height(), max_w, max_h)
            width = max(1, math.floor(decoded.width() * self._scale))
            height = max(1, math.floor(decoded.height() * self._scale))
            self._source = self._render_source(decoded, width, height)
            self._logger.info(
                f"Surface initialized: {decoded.width()}x{decoded.height()} -> "
                f"{width}x{height} (scale {self._scale:.3f})"
            )

        self._image = self._source.copy()
        return not self._decode_failed

    def _render_source(self, decoded: QImage, width: int, height: int) -> QImage:
        """Draw the decoded source into a fresh surface-sized image."""
        image = QImage(width, height, SURFACE_FORMAT)
        image.fill(QColor(255, 255, 255))

        painter = QPainter(image)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.drawImage(QRectF(0, 0, width, height), decoded)
        painter.end()
        return image

    def _render_placeholder(self) -> QImage:
        """Neutral stand-in surface carrying a short diagnostic label."""
        image = QImage(PLACEHOLDER_SIZE, SURFACE_FORMAT)
        image.fill(PLACEHOLDER_BACKGROUND)

        painter = QPainter(image)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setPen(PLACEHOLDER_TEXT_COLOR)
        font = QFont()
        font.setPixelSize(14)
        painter.setFont(font)
        painter.drawText(QPointF(10, 30), PLACEHOLDER_MESSAGE)
        painter.end()
        return image

    # ─── Properties ───────────────────────────────────────────────────────

    @property
    def image(self) -> QImage:
        """The live surface. Draw on it with a QPainter."""
        return self._image

    @property
    def source_image(self) -> QImage:
        """The surface-sized source, used as the reset target."""
        return self._source

    @property
    def width(self) -> int:
        return self._image.width()

    @property
    def height(self) -> int:
        return self._image.height()

    @property
    def size(self) -> QSize:
        return self._image.size()

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def decode_failed(self) -> bool:
        return self._decode_failed

    @property
    def is_initialized(self) -> bool:
        return not self._image.isNull()

    # ─── Snapshots ────────────────────────────────────────────────────────

    def current_snapshot(self) -> QImage:
        """Return a detached copy of the whole surface."""
        return self._image.copy()

    def restore(self, snapshot: QImage) -> None:
        """Overwrite the whole surface with a snapshot of the same size."""
        if snapshot.size() != self._image.size():
            raise ValueError(
                f"Snapshot size {snapshot.width()}x{snapshot.height()} does not match "
                f"surface {self.width}x{self.height}"
            )

        painter = QPainter(self._image)
        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
        painter.drawImage(0, 0, snapshot)
        painter.end()

    def reset_to_source(self) -> None:
        """Redraw the untouched source over the surface."""
        self.restore(self._source)

    # ─── Coordinate Conversion ────────────────────────────────────────────

    def display_to_surface(self, pos: QPointF, display_size: Union[QSize, QSizeF]) -> QPointF:
        """
        Convert a point in displayed coordinates to surface pixels.

        Args:
            pos: Point relative to the top-left of the displayed surface.
            display_size: Size the surface is currently shown at.
        """
        if display_size.width() <= 0 or display_size.height() <= 0:
            return QPointF(pos)

        return QPointF(
            pos.x() * self.width / display_size.width(),
            pos.y() * self.height / display_size.height(),
        )

    # ─── Export ───────────────────────────────────────────────────────────

    def export(self, quality: float = 0.9, fmt: str = "JPEG") -> Tuple[bytes, str]:
        """
        Encode the surface for hand-off.

        Args:
            quality: Encoding quality in [0, 1] (ignored by lossless formats).
            fmt: Qt image format name, e.g. "JPEG" or "PNG".

        Returns:
            The encoded bytes and the format actually written. Falls back to
            PNG when the requested format cannot be written.
        """
        fmt = fmt.upper()
        quality = min(1.0, max(0.0, quality))
        payload = self._encode(fmt, int(round(quality * 100)))

        if payload is None and fmt != "PNG":
            self._logger.warning(f"Could not encode surface as {fmt}; falling back to PNG")
            fmt = "PNG"
            payload = self._encode(fmt, -1)

        if payload is None:
            raise RuntimeError("Could not encode the annotation surface")
        return payload, fmt

    def _encode(self, fmt: str, quality: int) -> Optional[bytes]:
        buffer = QBuffer()
        buffer.open(QIODevice.OpenModeFlag.WriteOnly)
        ok = self._image.save(buffer, fmt.upper(), quality)
        buffer.close()
        if not ok:
            return None
        return bytes(buffer.data())
