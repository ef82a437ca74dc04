import cv2
import numpy as np
import pytest

from stereoalign.cli import main, parse_points
from stereoalign.io import load_image
from stereoalign.models import Point


@pytest.fixture
def pair(tmp_path, make_image):
    left = tmp_path / "left.png"
    right = tmp_path / "right.png"
    cv2.imwrite(str(left), make_image(100, 80, 200))
    cv2.imwrite(str(right), make_image(120, 90, 100))
    return left, right


def test_parse_points():
    assert parse_points("1,2,3.5,4") == [Point(1, 2), Point(3.5, 4)]


@pytest.mark.parametrize("text", ["1,2,3", "a,b", ""])
def test_parse_points_rejects_bad_input(text):
    with pytest.raises(Exception):
        parse_points(text)


def test_equal_framing_needs_no_points(pair, tmp_path):
    left, right = pair
    out = tmp_path / "out.png"
    assert main(["--left", str(left), "--right", str(right), "--out", str(out), "--equal-framing"]) == 0
    assert load_image(out).shape == (90, 220, 3)


def test_full_pipeline(pair, tmp_path):
    left, right = pair
    out = tmp_path / "out.png"
    code = main([
        "--left", str(left), "--right", str(right), "--out", str(out),
        "--rotate-points", "10,10,90,10", "10,10,110,10",
        "--scale-points", "10,10,10,50", "10,10,10,50",
        "--crop-points", "50,40", "60,45",
        "--log-level", "warning",
    ])
    assert code == 0
    result = load_image(out)
    assert result.shape == (80, 200, 3)
    assert np.all(result[:, :100] == 200)
    assert np.all(result[:, 100:] == 100)


def test_missing_stage_points_fail(pair, tmp_path):
    left, right = pair
    out = tmp_path / "out.png"
    assert main(["--left", str(left), "--right", str(right), "--out", str(out), "--equal-tilt"]) == 2
    assert not out.exists()


def test_degenerate_scale_fails(pair, tmp_path):
    left, right = pair
    code = main([
        "--left", str(left), "--right", str(right), "--out", str(tmp_path / "o.png"),
        "--equal-tilt", "--scale-points", "0,0,0,10", "0,5,0,5",
    ])
    assert code == 2
