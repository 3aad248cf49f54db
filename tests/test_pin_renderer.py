import pytest

from conftest import color_close, make_image, pixel
from framemark.editor.pin_renderer import BUBBLE_MAX_WIDTH, BUBBLE_PADDING, PinRenderer, wrap_text
from framemark.editor.pins import Pin


def measure(text):
    return len(text) * 10


WRAP_LIMIT = BUBBLE_MAX_WIDTH - BUBBLE_PADDING * 2


def test_wrap_packs_words_greedily():
    assert wrap_text("alpha beta gamma delta", measure, WRAP_LIMIT) == ["alpha beta gamma", "delta"]


def test_wrap_gives_overlong_word_its_own_line():
    long_word = "supercalifragilisticexpialidocious"
    assert wrap_text(f"a {long_word} b", measure, WRAP_LIMIT) == ["a", long_word, "b"]


def test_wrap_collapses_whitespace():
    assert wrap_text("  one \n two  ", measure, WRAP_LIMIT) == ["one two"]
    assert wrap_text("   ", measure, WRAP_LIMIT) == []


def test_bubble_sits_right_of_glyph_centred_on_head():
    layout = PinRenderer().layout_bubble(100, 100, "hello", 800, 600, measure)

    assert not layout.flipped
    assert layout.lines == ["hello"]
    assert layout.rect.left() == pytest.approx(100 + 12 + 8)
    assert layout.rect.width() == pytest.approx(50 + 16)
    assert layout.rect.height() == pytest.approx(16 + 16)
    assert layout.rect.center().y() == pytest.approx(100 - 24 * 0.6)


def test_bubble_flips_left_near_right_edge():
    layout = PinRenderer().layout_bubble(795, 100, "hello", 800, 600, measure)

    assert layout.flipped
    assert layout.rect.left() == pytest.approx(795 - 12 - 8 - 66)
    assert layout.rect.right() <= 790


def test_flipped_bubble_stays_inside_narrow_surface():
    comment = "the logo is cropped on this frame and the caption overlaps it"
    layout = PinRenderer().layout_bubble(150, 75, comment, 300, 150, measure)

    assert layout.flipped
    assert layout.rect.width() > 150
    assert layout.rect.left() == 10


def test_bubble_is_clamped_vertically():
    renderer = PinRenderer()

    top = renderer.layout_bubble(100, 5, "hello", 800, 600, measure)
    assert top.rect.top() == 10

    bottom = renderer.layout_bubble(100, 598, "hello", 800, 600, measure)
    assert bottom.rect.bottom() == pytest.approx(590)


def test_blank_comment_has_no_bubble():
    assert PinRenderer().layout_bubble(100, 100, "  ", 800, 600, measure) is None


def test_multiline_bubble_height():
    layout = PinRenderer().layout_bubble(100, 300, "alpha beta gamma delta", 800, 600, measure)
    assert len(layout.lines) == 2
    assert layout.rect.height() == pytest.approx(2 * 16 + 16)


def test_draw_pin_paints_glyph_tip():
    image = make_image(200, 150, "#ffffff")
    layout = PinRenderer().draw_pin(image, Pin(50, 60), 1)

    assert layout is None
    tip = pixel(image, 50, 55)
    assert tip.red() > 120 and tip.green() < 90 and tip.blue() < 90


def test_draw_pin_with_comment_returns_layout():
    image = make_image(200, 150, "#ffffff")
    layout = PinRenderer().draw_pin(image, Pin(190, 60, "near the edge"), 3)

    assert layout is not None
    assert layout.flipped


def test_render_pins_leaves_input_untouched():
    image = make_image(200, 150, "#ffffff")
    original = image.copy()

    rendered = PinRenderer().render_pins(image, [Pin(50, 60), Pin(120, 90, "b")])

    assert image == original
    assert rendered != original
    assert color_close(pixel(rendered, 0, 0), "#ffffff", tolerance=0)
