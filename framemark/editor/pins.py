"""
Pin models and the save payload for FrameMark.

While editing, pin coordinates are surface pixels. On save they are
normalized to the unit square so they stay meaningful when the frame is
shown at another resolution.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from PySide6.QtCore import QPointF

from framemark.editor.surface import to_data_url


@dataclass
class Pin:
    """A numbered point marker with an optional comment."""
    x: float
    y: float
    comment: str = ""

    @property
    def point(self) -> QPointF:
        return QPointF(self.x, self.y)

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "comment": self.comment}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pin":
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            comment=str(data.get("comment", "")),
        )


@dataclass(frozen=True)
class PendingPin:
    """A clicked location waiting for its comment."""
    x: float
    y: float
    comment: str = ""

    @property
    def point(self) -> QPointF:
        return QPointF(self.x, self.y)


def normalize_pins(pins: Iterable[Pin], width: int, height: int) -> List[Pin]:
    """Map pixel pins onto the unit square of a width x height surface."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Cannot normalize against a {width}x{height} surface")
    return [Pin(p.x / width, p.y / height, p.comment) for p in pins]


def denormalize_pins(pins: Iterable[Pin], width: int, height: int) -> List[Pin]:
    """Map unit-square pins back onto a width x height image."""
    return [Pin(p.x * width, p.y * height, p.comment) for p in pins]


@dataclass
class AnnotationResult:
    """
    What the editor hands to the host on save.

    ``pins`` are normalized. The legacy single-pin fields mirror the first
    pin and are absent (None) when no pins were placed.
    """
    annotated_image: bytes
    pins: List[Pin] = field(default_factory=list)
    image_format: str = "JPEG"

    @property
    def pin_x(self) -> Optional[float]:
        return self.pins[0].x if self.pins else None

    @property
    def pin_y(self) -> Optional[float]:
        return self.pins[0].y if self.pins else None

    @property
    def pin_comment(self) -> Optional[str]:
        return self.pins[0].comment if self.pins else None

    @property
    def annotated_data_url(self) -> str:
        return to_data_url(self.annotated_image, self.image_format)

    def to_dict(self) -> Dict[str, Any]:
        """Wire form; pin fields are omitted entirely when there are no pins."""
        result: Dict[str, Any] = {"annotatedImage": self.annotated_image}
        if self.pins:
            result["pinX"] = self.pin_x
            result["pinY"] = self.pin_y
            result["pinComment"] = self.pin_comment
            result["pins"] = [pin.to_dict() for pin in self.pins]
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any], image_format: str = "JPEG") -> "AnnotationResult":
        """
        Read a stored result back.

        Payloads written by single-pin consumers only carry pinX/pinY/pinComment;
        those become a one-pin list.
        """
        if data.get("pins"):
            pins = [Pin.from_dict(item) for item in data["pins"]]
        elif data.get("pinX") is not None and data.get("pinY") is not None:
            pins = [Pin(float(data["pinX"]), float(data["pinY"]), data.get("pinComment") or "")]
        else:
            pins = []
        return cls(bytes(data.get("annotatedImage", b"")), pins, image_format)
