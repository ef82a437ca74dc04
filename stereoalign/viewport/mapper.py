import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from stereoalign.models import Point


@dataclass
class Viewport:
    """Affine map from image space to screen space: screen = image * scale + offset."""
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0


class ViewportMapper:
    """
    Pan/zoom state of one displayed image and the mapping of pointer
    events on its view back to image coordinates.

    Each displayed image owns its own mapper; nothing is shared.
    """

    FIT_MARGIN = 0.95
    ZOOM_IN = 1.2
    ZOOM_OUT = 0.8
    MIN_SCALE = 0.01
    MAX_SCALE = 50.0
    CLICK_TOLERANCE = 5.0  # screen pixels

    def __init__(self, image_size: Tuple[int, int] = (0, 0), viewport_size: Tuple[int, int] = (0, 0)):
        self.log = logging.getLogger("ViewportMapper")
        self.image_size = image_size
        self.viewport_size = viewport_size
        self.viewport = Viewport()
        self.initialized = False

        self._dragging = False
        self._drag_last: Optional[Tuple[float, float]] = None
        self._press_at: Optional[Tuple[float, float]] = None

        self.fit_to_view()

    # -------------------- Geometry --------------------

    @property
    def scale(self) -> float:
        return self.viewport.scale

    @property
    def zoom_percent(self) -> int:
        return int(round(self.viewport.scale * 100))

    def set_image_size(self, width: int, height: int):
        """Show a different image; the view is fitted again."""
        self.image_size = (int(width), int(height))
        self.initialized = False
        self.fit_to_view()

    def set_viewport_size(self, width: int, height: int):
        """Resize the view. Fits the image the first time a usable size is known."""
        self.viewport_size = (int(width), int(height))
        if not self.initialized:
            self.fit_to_view()

    def fit_to_view(self) -> bool:
        """Scale the whole image into the view with a small margin and center it."""
        vw, vh = self.viewport_size
        iw, ih = self.image_size
        if vw <= 0 or vh <= 0 or iw <= 0 or ih <= 0:
            return False

        scale = min(vw / iw, vh / ih) * self.FIT_MARGIN
        self.viewport = Viewport(
            scale=scale,
            offset_x=(vw - iw * scale) / 2,
            offset_y=(vh - ih * scale) / 2,
        )
        self.initialized = True
        return True

    def screen_to_image(self, x: float, y: float) -> Point:
        v = self.viewport
        return Point((x - v.offset_x) / v.scale, (y - v.offset_y) / v.scale)

    def image_to_screen(self, point: Point) -> Tuple[float, float]:
        v = self.viewport
        return (point.x * v.scale + v.offset_x, point.y * v.scale + v.offset_y)

    def contains(self, point: Point) -> bool:
        iw, ih = self.image_size
        return 0 <= point.x <= iw and 0 <= point.y <= ih

    # -------------------- Zoom / Pan --------------------

    def zoom(self, factor: float):
        """
        Multiply the scale by ``factor`` (clamped), keeping the image point
        under the view center fixed.
        """
        v = self.viewport
        new_scale = max(self.MIN_SCALE, min(self.MAX_SCALE, v.scale * factor))

        cx = self.viewport_size[0] / 2
        cy = self.viewport_size[1] / 2
        center = self.screen_to_image(cx, cy)

        self.viewport = Viewport(
            scale=new_scale,
            offset_x=cx - center.x * new_scale,
            offset_y=cy - center.y * new_scale,
        )

    def zoom_in(self):
        self.zoom(self.ZOOM_IN)

    def zoom_out(self):
        self.zoom(self.ZOOM_OUT)

    def pan(self, dx: float, dy: float):
        self.viewport.offset_x += dx
        self.viewport.offset_y += dy

    # -------------------- Pointer events --------------------

    def pointer_down(self, x: float, y: float):
        self._dragging = True
        self._drag_last = (x, y)
        self._press_at = (x, y)

    def pointer_move(self, x: float, y: float):
        if not self._dragging:
            return
        last_x, last_y = self._drag_last
        self.pan(x - last_x, y - last_y)
        self._drag_last = (x, y)

    def pointer_up(self, x: float, y: float) -> Optional[Point]:
        """
        End a press. Returns the image point if the press was a click
        (moved less than CLICK_TOLERANCE) landing inside the image, else None.
        """
        press = self._press_at
        self._dragging = False
        self._drag_last = None
        self._press_at = None

        if press is None:
            return None

        if math.hypot(x - press[0], y - press[1]) >= self.CLICK_TOLERANCE:
            return None

        point = self.screen_to_image(x, y)
        if not self.contains(point):
            self.log.debug(f"Click outside image at {point}")
            return None
        return point

    def pointer_leave(self):
        self._dragging = False
        self._drag_last = None
        self._press_at = None
