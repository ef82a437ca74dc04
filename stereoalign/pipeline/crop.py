import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from stereoalign.buffers import freeze
from stereoalign.models import Point

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CropMargins:
    """Distances kept on each side of the anchor, shared by both images."""
    left: int
    right: int
    top: int
    bottom: int

    @property
    def width(self) -> int:
        return self.left + self.right

    @property
    def height(self) -> int:
        return self.top + self.bottom

    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0


@dataclass(frozen=True)
class CropWindow:
    """Region of a source image copied to the output origin."""
    x: int
    y: int
    width: int
    height: int


def compute_margins(
    size_left: Tuple[int, int],
    size_right: Tuple[int, int],
    anchor_left: Point,
    anchor_right: Point,
) -> CropMargins:
    """
    Largest margins around the anchor that fit inside both images.

    Each edge is handled independently: the kept distance is the smaller
    of the two images' anchor-to-edge distances.
    """
    w_l, h_l = size_left
    w_r, h_r = size_right

    return CropMargins(
        left=math.floor(min(anchor_left.x, anchor_right.x)),
        right=math.floor(min(w_l - anchor_left.x, w_r - anchor_right.x)),
        top=math.floor(min(anchor_left.y, anchor_right.y)),
        bottom=math.floor(min(h_l - anchor_left.y, h_r - anchor_right.y)),
    )


def window_for(anchor: Point, margins: CropMargins) -> CropWindow:
    return CropWindow(
        x=math.floor(anchor.x - margins.left),
        y=math.floor(anchor.y - margins.top),
        width=margins.width,
        height=margins.height,
    )


class Cropper:
    """
    Crops a stereo pair around a common anchor so the anchor lands on the
    same pixel in both outputs and both outputs share the same size.
    """

    def crop(self, frame: np.ndarray, window: CropWindow) -> np.ndarray:
        """
        Copy ``window`` of ``frame`` into a new buffer of the window's size.

        Parts of the window falling outside the frame stay black.
        """
        channels = frame.shape[2:]
        out = np.zeros((window.height, window.width) + channels, dtype=frame.dtype)

        h, w = frame.shape[:2]
        x1 = max(0, window.x)
        y1 = max(0, window.y)
        x2 = min(w, window.x + window.width)
        y2 = min(h, window.y + window.height)

        if x1 < x2 and y1 < y2:
            out[y1 - window.y:y2 - window.y, x1 - window.x:x2 - window.x] = frame[y1:y2, x1:x2]

        return freeze(out)

    def crop_aligned(
        self,
        left: np.ndarray,
        right: np.ndarray,
        anchor_left: Point,
        anchor_right: Point,
        equal_zoom: bool = False,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Crop both images around their anchors.

        ``equal_zoom`` is accepted for the caller's context only; the
        per-edge minimum already covers equal and unequal zoom alike.
        """
        h_l, w_l = left.shape[:2]
        h_r, w_r = right.shape[:2]

        margins = compute_margins((w_l, h_l), (w_r, h_r), anchor_left, anchor_right)
        if not margins.is_valid():
            LOGGER.warning("Degenerate crop %s (equal_zoom=%s)", margins, equal_zoom)

        out_left = self.crop(left, window_for(anchor_left, margins))
        out_right = self.crop(right, window_for(anchor_right, margins))

        LOGGER.info(
            "Cropped pair to %dx%d, anchor at (%d, %d)",
            margins.width, margins.height, margins.left, margins.top,
        )
        return out_left, out_right
