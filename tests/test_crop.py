import numpy as np

from stereoalign.models import Point
from stereoalign.pipeline.crop import Cropper, CropWindow, compute_margins, window_for

GREEN = [0, 255, 0]


def test_margins_use_per_edge_minimum():
    margins = compute_margins((100, 100), (120, 100), Point(40, 50), Point(50, 50))
    assert (margins.left, margins.right, margins.top, margins.bottom) == (40, 60, 50, 50)
    assert (margins.width, margins.height) == (100, 100)


def test_margins_floor_fractional_anchors():
    margins = compute_margins((100, 80), (90, 70), Point(30.7, 20.4), Point(25.2, 22.9))
    assert margins.left == 25
    assert margins.right == 64        # floor(min(69.3, 64.8))
    assert margins.top == 20
    assert margins.bottom == 47       # floor(min(59.6, 47.1))


def test_aligned_crop_puts_anchor_at_same_pixel(make_image):
    left = make_image(100, 100)
    right = make_image(120, 100)
    left[50, 40] = GREEN
    right[50, 50] = GREEN

    out_l, out_r = Cropper().crop_aligned(left, right, Point(40, 50), Point(50, 50))

    assert out_l.shape == out_r.shape == (100, 100, 3)
    assert out_l[50, 40].tolist() == GREEN
    assert out_r[50, 40].tolist() == GREEN


def test_aligned_crop_outputs_match_for_unequal_sizes(gradient_image, make_image):
    right = make_image(150, 60, 30)
    out_l, out_r = Cropper().crop_aligned(gradient_image, right, Point(70.5, 33.3), Point(20.1, 41.8))
    assert out_l.shape == out_r.shape
    # left image content shifted by the window origin
    window = window_for(Point(70.5, 33.3), compute_margins((100, 80), (150, 60), Point(70.5, 33.3), Point(20.1, 41.8)))
    assert np.array_equal(out_l, gradient_image[window.y:window.y + window.height, window.x:window.x + window.width])


def test_equal_zoom_flag_does_not_change_result(gradient_image, make_image):
    right = make_image(90, 90, 10)
    cropper = Cropper()
    a = cropper.crop_aligned(gradient_image, right, Point(30, 30), Point(45, 20), equal_zoom=False)
    b = cropper.crop_aligned(gradient_image, right, Point(30, 30), Point(45, 20), equal_zoom=True)
    assert np.array_equal(a[0], b[0])
    assert np.array_equal(a[1], b[1])


def test_crop_outputs_are_new_read_only_buffers(gradient_image):
    out = Cropper().crop(gradient_image, CropWindow(0, 0, 100, 80))
    assert out is not gradient_image
    assert not np.shares_memory(out, gradient_image)
    assert not out.flags.writeable


def test_crop_window_outside_frame_is_black(make_image):
    out = Cropper().crop(make_image(10, 10, 255), CropWindow(5, 5, 10, 10))
    assert out.shape == (10, 10, 3)
    assert out[:5, :5].min() == 255
    assert out[5:, 5:].max() == 0


def test_anchors_on_opposite_edges_give_empty_crop(gradient_image):
    out_l, out_r = Cropper().crop_aligned(gradient_image, gradient_image, Point(0, 40), Point(100, 40))
    assert out_l.shape == out_r.shape
    assert out_l.size == 0
