import pytest
from PySide6.QtCore import QPointF
from PySide6.QtGui import QColor

from conftest import color_close, make_image, pixel
from framemark.editor.annotation_editor import FrameAnnotationEditor
from framemark.editor.tools import (
    ArrowTool,
    CircleTool,
    FreehandTool,
    LineTool,
    PinTool,
    RectangleTool,
    TextTool,
    ToolType,
    create_tool,
)


BACKGROUND = "#ffffff"


@pytest.fixture
def editor(config):
    config.set("default_color", "#000000")
    return FrameAnnotationEditor(make_image(100, 100, BACKGROUND), config=config)


@pytest.mark.parametrize("name, cls", [
    ("freehand", FreehandTool),
    ("line", LineTool),
    ("arrow", ArrowTool),
    ("rectangle", RectangleTool),
    ("circle", CircleTool),
    ("text", TextTool),
    ("pin", PinTool),
])
def test_create_tool_by_name(name, cls):
    tool = create_tool(name)
    assert isinstance(tool, cls)
    assert tool.tool_type.config_name == name
    assert create_tool(tool.tool_type).tool_type == tool.tool_type


def test_unknown_tool_raises():
    with pytest.raises(ValueError):
        ToolType.from_name("lasso")
    with pytest.raises(ValueError):
        create_tool("eraser")


def test_freehand_draws_live_and_commits_on_end(editor):
    editor.set_tool("freehand")
    editor.gesture_start(QPointF(10, 50))
    editor.gesture_move(QPointF(50, 50))

    assert color_close(pixel(editor.surface.image, 30, 50), "#000000")
    assert len(editor.history) == 1

    editor.gesture_end(QPointF(50, 50))
    assert len(editor.history) == 2


def test_freehand_abort_keeps_drawn_segments(editor):
    editor.gesture_start(QPointF(10, 50))
    editor.gesture_move(QPointF(90, 50))
    editor.gesture_abort()

    assert len(editor.history) == 2
    assert color_close(pixel(editor.surface.image, 50, 50), "#000000")


def test_freehand_abort_without_segments_commits_nothing(editor):
    editor.gesture_start(QPointF(10, 50))
    editor.gesture_abort()

    assert len(editor.history) == 1


def test_shape_preview_does_not_accumulate(editor):
    editor.set_tool("line")
    editor.gesture_start(QPointF(10, 10))
    editor.gesture_move(QPointF(90, 10))
    editor.gesture_move(QPointF(10, 90))
    editor.gesture_end(QPointF(10, 90))

    image = editor.surface.image
    assert pixel(image, 80, 10) == QColor(BACKGROUND)
    assert color_close(pixel(image, 10, 80), "#000000")
    assert len(editor.history) == 2


def test_shape_abort_restores_last_commit(editor):
    before = editor.surface.current_snapshot()
    editor.set_tool("rectangle")
    editor.gesture_start(QPointF(10, 10))
    editor.gesture_move(QPointF(90, 90))
    editor.gesture_abort()

    assert editor.surface.image == before
    assert len(editor.history) == 1


def test_move_and_end_without_start_are_ignored(editor):
    before = editor.surface.current_snapshot()
    for tool in ("freehand", "arrow", "circle"):
        editor.set_tool(tool)
        editor.gesture_move(QPointF(40, 40))
        editor.gesture_end(QPointF(60, 60))

    assert editor.surface.image == before
    assert len(editor.history) == 1


def test_switching_tools_aborts_the_gesture(editor):
    before = editor.surface.current_snapshot()
    editor.set_tool("arrow")
    editor.gesture_start(QPointF(10, 10))
    editor.gesture_move(QPointF(90, 90))

    editor.set_tool("circle")

    assert editor.surface.image == before
    assert not editor.active_tool.is_active
    assert len(editor.history) == 1


def test_text_tool_commits_immediately(editor):
    editor.set_tool("text")
    editor.set_text("note")
    editor.gesture_start(QPointF(10, 60))

    assert len(editor.history) == 2
    assert not editor.active_tool.is_active


def test_pin_tool_opens_a_pending_pin(editor):
    requests = []
    editor.pin_comment_requested.connect(lambda pos, n: requests.append((pos.x(), pos.y(), n)))
    editor.set_tool("pin")

    editor.gesture_start(QPointF(30, 40))

    assert editor.pending_pin is not None
    assert (editor.pending_pin.x, editor.pending_pin.y) == (30, 40)
    assert requests == [(30, 40, 1)]
    assert len(editor.history) == 1


def test_gestures_ignored_while_pin_pending(editor):
    editor.set_tool("pin")
    editor.gesture_start(QPointF(30, 40))
    editor.set_tool("line")
    before = editor.surface.current_snapshot()

    editor.gesture_start(QPointF(10, 10))
    editor.gesture_move(QPointF(90, 90))
    editor.gesture_end(QPointF(90, 90))

    assert editor.surface.image == before
    assert len(editor.history) == 1
