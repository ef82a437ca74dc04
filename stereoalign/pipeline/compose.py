import logging

import numpy as np

from stereoalign.buffers import freeze, to_bgr


class SideBySideComposer:
    """
    Places the left and right image next to each other on a black canvas.

    The canvas is as wide as both images together and as tall as the
    taller one; the shorter image is centered vertically.
    """

    def __init__(self):
        self.log = logging.getLogger("SideBySideComposer")

    def offsets(self, left: np.ndarray, right: np.ndarray):
        """Return ((x, y) of left, (x, y) of right, (width, height) of canvas)."""
        left_h, left_w = (int(v) for v in left.shape[:2])
        right_h, right_w = (int(v) for v in right.shape[:2])

        width = left_w + right_w
        height = max(left_h, right_h)

        y_left = (height - left_h) // 2
        y_right = (height - right_h) // 2

        return (0, y_left), (left_w, y_right), (width, height)

    def compose(self, left: np.ndarray, right: np.ndarray) -> np.ndarray:
        left = to_bgr(left)
        right = to_bgr(right)

        (x_l, y_l), (x_r, y_r), (width, height) = self.offsets(left, right)

        canvas = np.zeros((height, width, 3), dtype=np.uint8)

        left_h, left_w = left.shape[:2]
        right_h, right_w = right.shape[:2]
        canvas[y_l:y_l + left_h, x_l:x_l + left_w] = left
        canvas[y_r:y_r + right_h, x_r:x_r + right_w] = right

        self.log.info(f"Composed side-by-side image {width}x{height}")
        return freeze(canvas)
