from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from stereoalign.buffers import size_of


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class Stage(str, Enum):
    """Stages of the alignment wizard, named as in states.yaml."""
    UPLOAD = "upload"
    ROTATE = "rotate"
    SCALE = "scale"
    CROP = "crop"
    RESULT = "result"


@dataclass(frozen=True)
class Point:
    """A point in the pixel space of the image it was picked on."""
    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass
class ProcessingOptions:
    """Operator choices, fixed once the pipeline has started."""
    assume_equal_tilt: bool = False
    assume_equal_zoom: bool = False
    assume_equal_framing: bool = False
    rotate_left_image: bool = False  # if False, the right image is rotated


@dataclass(frozen=True)
class WorkingPair:
    """Current left/right buffers, replaced wholesale at each stage transition."""
    left: np.ndarray
    right: np.ndarray

    def sizes(self) -> Dict[str, Tuple[int, int]]:
        return {
            Side.LEFT.value: size_of(self.left),
            Side.RIGHT.value: size_of(self.right),
        }


@dataclass
class PipelineState:
    """
    Serializable snapshot of the pipeline.

    Buffers are represented by their (width, height) only, so the snapshot
    can be logged or dumped to JSON.
    """
    stage: Stage
    options: ProcessingOptions
    points: Dict[str, List[Tuple[float, float]]] = field(default_factory=dict)
    history: List[str] = field(default_factory=list)
    working_sizes: Dict[str, Optional[Tuple[int, int]]] = field(default_factory=dict)
    result_size: Optional[Tuple[int, int]] = None
    last_error: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["stage"] = self.stage.value
        return data
