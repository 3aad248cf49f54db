from PySide6.QtCore import QEvent, QPointF, Qt
from PySide6.QtGui import QMouseEvent
from PySide6.QtTest import QTest
from PySide6.QtWidgets import QDialog

from framemark.editor.annotation_editor import FrameAnnotationEditor
from framemark.editor.editor_widget import (
    TOOL_BUTTONS,
    AnnotationCanvas,
    FrameAnnotationWidget,
    PinCommentDialog,
)
from framemark.editor.tools import ToolType


def send_mouse(canvas, kind, x, y):
    """Deliver a left-button mouse event at widget point (x, y)."""
    pos = QPointF(x, y)
    held = Qt.MouseButton.NoButton if kind == QEvent.Type.MouseButtonRelease else Qt.MouseButton.LeftButton
    button = Qt.MouseButton.NoButton if kind == QEvent.Type.MouseMove else Qt.MouseButton.LeftButton
    event = QMouseEvent(kind, pos, canvas.mapToGlobal(pos), button, held, Qt.KeyboardModifier.NoModifier)
    if kind == QEvent.Type.MouseButtonPress:
        canvas.mousePressEvent(event)
    elif kind == QEvent.Type.MouseMove:
        canvas.mouseMoveEvent(event)
    else:
        canvas.mouseReleaseEvent(event)


def test_widget_builds_toolbar(config, png_bytes):
    widget = FrameAnnotationWidget(png_bytes(200, 150), config_service=config)

    checked = [b for b in widget._tool_group.buttons() if b.isChecked()]
    assert len(widget._tool_group.buttons()) == len(TOOL_BUTTONS) == 7
    assert [b.property("tool_type") for b in checked] == [ToolType.FREEHAND]
    assert len(widget._color_group.buttons()) == 8
    assert widget._stroke_width.count() == 5
    assert widget._pin_label.text() == "Pins: 0"


def test_tool_shortcuts(config, png_bytes):
    widget = FrameAnnotationWidget(png_bytes(), config_service=config)

    QTest.keyClick(widget, Qt.Key.Key_A)
    assert widget.editor.tool_type == ToolType.ARROW

    QTest.keyClick(widget, Qt.Key.Key_P)
    assert widget.editor.tool_type == ToolType.PIN


def test_stroke_width_selector_updates_editor(config, png_bytes):
    widget = FrameAnnotationWidget(png_bytes(), config_service=config)

    widget._stroke_width.setCurrentIndex(widget._stroke_width.findData(12))
    assert widget.editor.style.stroke_width == 12


def test_pin_dialog_flow(config, png_bytes):
    widget = FrameAnnotationWidget(png_bytes(200, 150), config_service=config)
    widget.editor.set_tool("pin")

    widget.editor.gesture_start(QPointF(50, 50))
    dialog = widget.comment_dialog
    assert dialog is not None

    dialog.set_comment("wrong colour here")
    dialog.accept()

    assert [p.comment for p in widget.editor.pins] == ["wrong colour here"]
    assert widget._pin_label.text() == "Pins: 1"
    assert widget.comment_dialog is None


def test_pin_dialog_cancel(config, png_bytes):
    widget = FrameAnnotationWidget(png_bytes(200, 150), config_service=config)
    widget.editor.set_tool("pin")
    widget.editor.gesture_start(QPointF(50, 50))

    widget.comment_dialog.reject()

    assert widget.editor.pending_pin is None
    assert widget.editor.pins == []


def test_enter_submits_comment_and_shift_enter_does_not():
    dialog = PinCommentDialog(1)

    QTest.keyClick(dialog._edit, Qt.Key.Key_Return, Qt.KeyboardModifier.ShiftModifier)
    assert dialog.result() != QDialog.DialogCode.Accepted

    QTest.keyClick(dialog._edit, Qt.Key.Key_Return)
    assert dialog.result() == QDialog.DialogCode.Accepted


def test_done_emits_result(config, png_bytes):
    widget = FrameAnnotationWidget(png_bytes(), config_service=config)
    results = []
    widget.saved.connect(results.append)

    widget._save()

    assert len(results) == 1
    assert results[0].annotated_image[:2] == b"\xff\xd8"
    assert not widget.isEnabled()


def test_cancel_emits_cancelled(config, png_bytes):
    widget = FrameAnnotationWidget(png_bytes(), config_service=config)
    cancelled = []
    widget.cancelled.connect(lambda: cancelled.append(True))

    widget._cancel()

    assert cancelled == [True]
    assert widget.editor.is_closed


def test_canvas_maps_widget_points_to_surface(config, png_bytes):
    editor = FrameAnnotationEditor(png_bytes(200, 150), config=config)
    canvas = AnnotationCanvas(editor)

    # Larger widget: shown at 1:1 and centred
    canvas.resize(400, 300)
    point = canvas.widget_to_surface(QPointF(150, 100))
    assert (point.x(), point.y()) == (50, 25)

    # Smaller widget: scaled down to fit
    editor_large = FrameAnnotationEditor(png_bytes(400, 300), config=config)
    small = AnnotationCanvas(editor_large)
    small.resize(200, 150)
    point = small.widget_to_surface(QPointF(100, 75))
    assert (point.x(), point.y()) == (200, 150)


def test_press_on_border_does_not_place_pin(config, png_bytes):
    editor = FrameAnnotationEditor(png_bytes(200, 150), config=config)
    editor.set_tool("pin")
    canvas = AnnotationCanvas(editor)
    canvas.resize(400, 300)

    send_mouse(canvas, QEvent.Type.MouseButtonPress, 10, 10)
    assert editor.pending_pin is None

    send_mouse(canvas, QEvent.Type.MouseButtonPress, 200, 150)
    editor.confirm_pin("inside")

    [exported] = editor.export_pins()
    assert 0.0 <= exported.x <= 1.0
    assert 0.0 <= exported.y <= 1.0
    assert (exported.x, exported.y) == (0.5, 0.5)


def test_shape_drag_leaving_image_is_aborted(config, png_bytes):
    editor = FrameAnnotationEditor(png_bytes(200, 150), config=config)
    editor.set_tool("rectangle")
    canvas = AnnotationCanvas(editor)
    canvas.resize(400, 300)

    send_mouse(canvas, QEvent.Type.MouseButtonPress, 150, 100)
    send_mouse(canvas, QEvent.Type.MouseMove, 250, 200)
    assert editor.surface.image != editor.history.top.image

    # Still over the widget, but past the image
    send_mouse(canvas, QEvent.Type.MouseMove, 350, 200)
    assert not editor.active_tool.is_active
    assert editor.surface.image == editor.history.top.image

    send_mouse(canvas, QEvent.Type.MouseButtonRelease, 350, 200)
    assert len(editor.history) == 1
