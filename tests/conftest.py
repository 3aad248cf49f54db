"""Shared fixtures: a headless QApplication and small test images."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QBuffer, QIODevice
from PySide6.QtGui import QColor, QImage
from PySide6.QtWidgets import QApplication

from framemark.services.config_service import ConfigService


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


def make_image(width: int, height: int, color: str = "#3366cc") -> QImage:
    image = QImage(width, height, QImage.Format.Format_RGB32)
    image.fill(QColor(color))
    return image


def encode_png(image: QImage) -> bytes:
    buffer = QBuffer()
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buffer, "PNG")
    buffer.close()
    return bytes(buffer.data())


@pytest.fixture
def png_bytes(qapp):
    """Factory for PNG-encoded solid images."""
    def factory(width: int = 400, height: int = 300, color: str = "#3366cc") -> bytes:
        return encode_png(make_image(width, height, color))
    return factory


@pytest.fixture
def config():
    return ConfigService(persist=False)


def pixel(image: QImage, x: int, y: int) -> QColor:
    return QColor(image.pixel(x, y))


def color_close(actual: QColor, expected, tolerance: int = 40) -> bool:
    expected = QColor(expected)
    return (
        abs(actual.red() - expected.red()) <= tolerance
        and abs(actual.green() - expected.green()) <= tolerance
        and abs(actual.blue() - expected.blue()) <= tolerance
    )
