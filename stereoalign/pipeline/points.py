import logging
from typing import Dict, List, Optional

from stereoalign.models import Point, Side


class PointCollector:
    """
    Correspondence points of the current stage, per side.

    A single chronological history of side tags is shared by both sides,
    so ``undo_last`` always removes the last point added anywhere.
    Invariant: ``len(history) == len(left) + len(right)``.
    """

    def __init__(self, limit: int = 0):
        self.log = logging.getLogger("PointCollector")
        self.limit = limit
        self._points: Dict[Side, List[Point]] = {Side.LEFT: [], Side.RIGHT: []}
        self._history: List[Side] = []

    def points(self, side: Side) -> List[Point]:
        return list(self._points[Side(side)])

    @property
    def history(self) -> List[Side]:
        return list(self._history)

    def count(self, side: Side) -> int:
        return len(self._points[Side(side)])

    def is_full(self, side: Side) -> bool:
        return self.count(side) >= self.limit

    def has_at_least(self, minimum: int) -> bool:
        """True if both sides hold ``minimum`` points or more."""
        return all(len(pts) >= minimum for pts in self._points.values())

    def add_point(self, side: Side, point: Point) -> bool:
        """Append ``point`` to ``side``. Returns False if that side is full."""
        side = Side(side)
        if self.is_full(side):
            self.log.debug(f"Ignoring point on {side.value}: limit of {self.limit} reached")
            return False

        self._points[side].append(point)
        self._history.append(side)
        return True

    def undo_last(self) -> Optional[Side]:
        """Remove the most recently added point. Returns its side, or None if empty."""
        if not self._history:
            return None

        side = self._history.pop()
        self._points[side].pop()
        return side

    def clear(self):
        for pts in self._points.values():
            pts.clear()
        self._history.clear()

    def as_dict(self) -> Dict[str, List[tuple]]:
        return {side.value: [p.as_tuple() for p in pts] for side, pts in self._points.items()}
