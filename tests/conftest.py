import logging

import numpy as np
import pytest

from stereoalign.models import Point, ProcessingOptions, Side
from stereoalign.pipeline import PipelineController


def blank(width, height, value=0):
    return np.full((height, width, 3), value, dtype=np.uint8)


@pytest.fixture
def make_image():
    """Factory for solid BGR images: make_image(width, height, value=0)."""
    return blank


@pytest.fixture
def gradient_image():
    """100x80 image whose pixels all differ, so copies can be compared exactly."""
    h, w = 80, 100
    ys, xs = np.mgrid[0:h, 0:w]
    img = np.stack([xs * 2 % 256, ys * 3 % 256, (xs + ys) % 256], axis=-1)
    return img.astype(np.uint8)


@pytest.fixture
def controller_factory(make_image, caplog):
    """Build a controller with a 100x80 pair already loaded."""
    caplog.set_level(logging.DEBUG)

    def _factory(**options):
        controller = PipelineController(ProcessingOptions(**options))
        controller.load_image(Side.LEFT, make_image(100, 80, 200))
        controller.load_image(Side.RIGHT, make_image(100, 80, 100))
        return controller

    return _factory


# Points accepted by every stage of a 100x80 pair; none of them change the images.
NEUTRAL_POINTS = {
    "rotate": [Point(10, 10), Point(90, 10)],
    "scale": [Point(10, 10), Point(10, 50)],
    "crop": [Point(50, 40)],
}


@pytest.fixture
def neutral_points():
    return NEUTRAL_POINTS
