import logging
import math
from typing import Sequence

import cv2
import numpy as np

from stereoalign.buffers import copy_image, freeze
from stereoalign.errors import DegenerateScaleError
from stereoalign.models import Point

LOGGER = logging.getLogger(__name__)

# Below these thresholds the transform is skipped and a plain copy returned.
ROTATION_EPSILON = 0.01  # degrees
SCALE_EPSILON = 0.001


def calculate_angle(p1: Point, p2: Point) -> float:
    """
    Angle of the directed line p1 -> p2 in degrees, in (-180, 180].

    Image coordinates grow downwards, so a positive angle points
    clockwise on screen.
    """
    return math.degrees(math.atan2(p2.y - p1.y, p2.x - p1.x))


def rotation_delta(points_left: Sequence[Point], points_right: Sequence[Point], rotate_left: bool) -> float:
    """
    Angle to rotate the chosen side by so its line matches the other side's.

    :param rotate_left: if True the left image is the one rotated
    """
    angle_l = calculate_angle(points_left[0], points_left[1])
    angle_r = calculate_angle(points_right[0], points_right[1])
    if rotate_left:
        return angle_r - angle_l
    return angle_l - angle_r


def rotated_size(width: int, height: int, angle_degrees: float):
    """Bounding box (w, h) that fully contains the rotated image."""
    angle = math.radians(angle_degrees)
    abs_cos = abs(math.cos(angle))
    abs_sin = abs(math.sin(angle))
    new_w = math.ceil(width * abs_cos + height * abs_sin)
    new_h = math.ceil(width * abs_sin + height * abs_cos)
    return new_w, new_h


def rotate_image(image: np.ndarray, angle_degrees: float) -> np.ndarray:
    """
    Rotate an image about its center, enlarging the canvas so nothing is clipped.

    A positive angle rotates clockwise on screen. Uncovered areas are black.
    """
    if abs(angle_degrees) < ROTATION_EPSILON:
        return copy_image(image)

    h, w = image.shape[:2]
    new_w, new_h = rotated_size(w, h, angle_degrees)

    # OpenCV treats positive angles as counter-clockwise
    M = cv2.getRotationMatrix2D((w / 2, h / 2), -angle_degrees, 1.0)
    M[0, 2] += new_w / 2 - w / 2
    M[1, 2] += new_h / 2 - h / 2

    rotated = cv2.warpAffine(
        image,
        M,
        (new_w, new_h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=0,
    )
    LOGGER.debug("Rotated %dx%d by %.3f deg -> %dx%d", w, h, angle_degrees, new_w, new_h)
    return freeze(rotated)


def vertical_distance(p1: Point, p2: Point) -> float:
    return abs(p1.y - p2.y)


def scale_ratio(points_left: Sequence[Point], points_right: Sequence[Point]) -> float:
    """
    Ratio that brings the right image to the left image's zoom level.

    Uses the vertical distance between the two points picked on each side.
    """
    h_left = vertical_distance(points_left[0], points_left[1])
    h_right = vertical_distance(points_right[0], points_right[1])

    if h_left == 0 or h_right == 0:
        raise DegenerateScaleError("Vertical distance cannot be zero!")

    return h_left / h_right


def scale_image(image: np.ndarray, ratio: float) -> np.ndarray:
    """Uniformly scale an image; output size is ceil(w * ratio) x ceil(h * ratio)."""
    if ratio <= 0:
        raise ValueError(f"Scale ratio must be positive, got {ratio}")

    if abs(ratio - 1) < SCALE_EPSILON:
        return copy_image(image)

    h, w = image.shape[:2]
    new_w = max(1, math.ceil(w * ratio))
    new_h = max(1, math.ceil(h * ratio))

    interpolation = cv2.INTER_AREA if ratio < 1 else cv2.INTER_LINEAR
    scaled = cv2.resize(image, (new_w, new_h), interpolation=interpolation)
    LOGGER.debug("Scaled %dx%d by %.4f -> %dx%d", w, h, ratio, new_w, new_h)
    return freeze(scaled)
