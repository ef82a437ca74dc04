import pytest

from stereoalign.models import Point
from stereoalign.viewport import Viewport, ViewportMapper


@pytest.fixture
def mapper():
    return ViewportMapper(image_size=(200, 100), viewport_size=(400, 400))


def test_fit_to_view_scales_and_centers(mapper):
    v = mapper.viewport
    assert v.scale == pytest.approx(1.9)
    assert v.offset_x == pytest.approx(10)
    assert v.offset_y == pytest.approx(105)
    assert mapper.initialized


def test_fit_to_view_is_idempotent(mapper):
    mapper.zoom_in()
    mapper.fit_to_view()
    first = Viewport(**vars(mapper.viewport))
    mapper.fit_to_view()
    assert mapper.viewport == first


def test_fit_without_viewport_size_is_noop():
    mapper = ViewportMapper(image_size=(200, 100))
    assert not mapper.fit_to_view()
    assert not mapper.initialized
    assert mapper.viewport == Viewport()


def test_first_viewport_size_triggers_fit_later_ones_keep_zoom():
    mapper = ViewportMapper(image_size=(200, 100))
    mapper.set_viewport_size(400, 400)
    assert mapper.scale == pytest.approx(1.9)

    mapper.zoom_in()
    zoomed = mapper.scale
    mapper.set_viewport_size(800, 600)
    assert mapper.scale == pytest.approx(zoomed)


def test_new_image_refits(mapper):
    mapper.zoom_in()
    mapper.set_image_size(400, 400)
    assert mapper.scale == pytest.approx(0.95)


@pytest.mark.parametrize("zoom", ["zoom_in", "zoom_out"])
def test_zoom_keeps_view_center_fixed(mapper, zoom):
    mapper.pan(-37, 12)
    before = mapper.screen_to_image(200, 200)
    old_scale = mapper.scale

    getattr(mapper, zoom)()

    after = mapper.screen_to_image(200, 200)
    assert after.x == pytest.approx(before.x)
    assert after.y == pytest.approx(before.y)
    expected = old_scale * (ViewportMapper.ZOOM_IN if zoom == "zoom_in" else ViewportMapper.ZOOM_OUT)
    assert mapper.scale == pytest.approx(expected)


def test_zoom_is_clamped(mapper):
    for _ in range(100):
        mapper.zoom_in()
    assert mapper.scale == pytest.approx(ViewportMapper.MAX_SCALE)
    for _ in range(200):
        mapper.zoom_out()
    assert mapper.scale == pytest.approx(ViewportMapper.MIN_SCALE)


def test_screen_image_round_trip(mapper):
    sx, sy = mapper.image_to_screen(Point(50, 20))
    assert (sx, sy) == (pytest.approx(105), pytest.approx(143))
    back = mapper.screen_to_image(sx, sy)
    assert back.x == pytest.approx(50)
    assert back.y == pytest.approx(20)


def test_small_press_is_a_click(mapper):
    mapper.pointer_down(105, 143)
    point = mapper.pointer_up(107, 144)
    assert point is not None
    assert point.x == pytest.approx((107 - 10) / 1.9)
    assert point.y == pytest.approx((144 - 105) / 1.9)


def test_drag_pans_and_is_not_a_click(mapper):
    mapper.pointer_down(100, 150)
    mapper.pointer_move(110, 150)
    mapper.pointer_move(120, 160)
    assert mapper.pointer_up(120, 160) is None
    assert mapper.viewport.offset_x == pytest.approx(30)
    assert mapper.viewport.offset_y == pytest.approx(115)


def test_move_without_press_does_not_pan(mapper):
    mapper.pointer_move(300, 300)
    assert mapper.viewport.offset_x == pytest.approx(10)


def test_click_outside_image_is_dropped(mapper):
    mapper.pointer_down(5, 5)
    assert mapper.pointer_up(5, 5) is None


def test_click_on_image_edge_is_kept(mapper):
    mapper.viewport = Viewport(scale=2.0, offset_x=0.0, offset_y=0.0)
    mapper.pointer_down(400, 200)
    point = mapper.pointer_up(400, 200)
    assert point == Point(200, 100)


def test_leaving_the_view_cancels_the_press(mapper):
    mapper.pointer_down(105, 143)
    mapper.pointer_leave()
    assert mapper.pointer_up(105, 143) is None


def test_mappers_are_independent():
    a = ViewportMapper(image_size=(100, 100), viewport_size=(200, 200))
    b = ViewportMapper(image_size=(100, 100), viewport_size=(200, 200))
    a.zoom_in()
    a.pan(5, 5)
    assert b.viewport == Viewport(scale=pytest.approx(1.9), offset_x=pytest.approx(5), offset_y=pytest.approx(5))
    assert a.viewport != b.viewport
