"""
Pipeline package for the stereo pair aligner.

This package contains the components responsible for:
- Measuring angles, rotating and scaling images (geometry)
- Cropping both images around a common anchor (crop)
- Composing the side-by-side stereogram (compose)
- Tracking correspondence points with a shared undo history (points)
- Managing the whole stage-by-stage alignment process (controller)
"""

from .compose import SideBySideComposer
from .crop import Cropper
from .points import PointCollector
from .controller import PipelineController


__all__ = [
    "Cropper",
    "SideBySideComposer",
    "PointCollector",
    "PipelineController",
]
