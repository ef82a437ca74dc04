"""
Stereo pair alignment toolkit.

Aligns two photographs of the same scene into a side-by-side stereogram:
- Rotating one image so both share the same tilt (pipeline.geometry)
- Scaling the right image so both share the same zoom (pipeline.geometry)
- Cropping both around a common anchor (pipeline.crop)
- Composing the final side-by-side image (pipeline.compose)
- Driving the stage wizard (pipeline.controller, fsm)
"""

__version__ = "0.1.0"
