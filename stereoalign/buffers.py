"""Helpers for image buffers: BGR ``uint8`` numpy arrays that are never modified once created."""

import cv2
import numpy as np


def freeze(image: np.ndarray) -> np.ndarray:
    """Mark a freshly allocated buffer read-only and return it."""
    image.setflags(write=False)
    return image


def copy_image(image: np.ndarray) -> np.ndarray:
    """Return an independent, read-only copy of ``image``."""
    return freeze(np.array(image, copy=True))


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Return ``image`` as a 3-channel BGR array (grayscale and BGRA are converted)."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


def size_of(image: np.ndarray):
    """(width, height) of a buffer."""
    h, w = image.shape[:2]
    return int(w), int(h)
