"""Non-interactive stereo pair alignment.

Runs the same stage pipeline as the GUI with points supplied on the
command line, then writes the side-by-side stereogram.

Usage:
    python -m stereoalign.cli --left L.jpg --right R.jpg --out pair.jpg \\
        --rotate-points 10,200,900,180 12,210,905,230 \\
        --scale-points 400,100,400,700 390,80,395,760 \\
        --crop-points 450,400 430,410

Each ``--*-points`` option takes the left image's points first, then the
right image's. Stages skipped by the option flags do not need points.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from stereoalign.io import DEFAULT_QUALITY, load_image
from stereoalign.models import Point, ProcessingOptions, Side, Stage
from stereoalign.pipeline import PipelineController

LOGGER = logging.getLogger(__name__)
LOG_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def parse_points(text: str) -> List[Point]:
    """Parse ``"x1,y1,x2,y2,..."`` into points."""
    try:
        values = [float(v) for v in text.split(",") if v.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid point list '{text}': {exc}") from exc

    if not values or len(values) % 2:
        raise argparse.ArgumentTypeError(f"Point list '{text}' needs an even number of coordinates")

    return [Point(values[i], values[i + 1]) for i in range(0, len(values), 2)]


def _configure_logging(level: str) -> None:
    numeric = LOG_LEVELS.get(level.lower())
    if numeric is None:
        raise ValueError(f"Unknown log level '{level}'. Choose from {list(LOG_LEVELS)}")

    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=numeric, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    logging.getLogger().setLevel(numeric)
    LOGGER.debug("Logging configured at %s", level.upper())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Align a stereo pair into a side-by-side image")
    parser.add_argument("--left", type=Path, required=True, help="Left image")
    parser.add_argument("--right", type=Path, required=True, help="Right image")
    parser.add_argument("--out", type=Path, required=True, help="Output image (.jpg, .png, ...)")
    parser.add_argument("--equal-tilt", action="store_true", help="Skip the rotation stage")
    parser.add_argument("--equal-zoom", action="store_true", help="Skip the scale stage")
    parser.add_argument("--equal-framing", action="store_true", help="Merge without any correction")
    parser.add_argument("--rotate-left", action="store_true", help="Rotate the left image instead of the right")
    parser.add_argument("--rotate-points", nargs=2, type=parse_points, metavar=("LEFT", "RIGHT"))
    parser.add_argument("--scale-points", nargs=2, type=parse_points, metavar=("LEFT", "RIGHT"))
    parser.add_argument("--crop-points", nargs=2, type=parse_points, metavar=("LEFT", "RIGHT"))
    parser.add_argument("--quality", type=int, default=DEFAULT_QUALITY, help="JPEG quality (0-100)")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS.keys(),
        default="info",
        help="Logging verbosity",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    controller = PipelineController(
        ProcessingOptions(
            assume_equal_tilt=args.equal_tilt,
            assume_equal_zoom=args.equal_zoom,
            assume_equal_framing=args.equal_framing,
            rotate_left_image=args.rotate_left,
        )
    )

    controller.load_image(Side.LEFT, load_image(args.left))
    controller.load_image(Side.RIGHT, load_image(args.right))

    if not controller.start():
        LOGGER.error("Could not start the pipeline")
        return 1

    stage_points = {
        Stage.ROTATE: args.rotate_points,
        Stage.SCALE: args.scale_points,
        Stage.CROP: args.crop_points,
    }

    while controller.stage != Stage.RESULT:
        stage = controller.stage
        points = stage_points.get(stage)
        if points is None:
            LOGGER.error("Stage '%s' needs --%s-points", stage.value, stage.value)
            return 2

        for side, side_points in zip((Side.LEFT, Side.RIGHT), points):
            for point in side_points:
                if not controller.add_point(side, point):
                    LOGGER.warning("Point %s on %s image was not accepted", point.as_tuple(), side.value)

        if not controller.apply():
            LOGGER.error("Stage '%s' failed: %s", stage.value, controller.last_error or "not enough valid points")
            return 2

    out_path = controller.export(args.out, args.quality)
    print(f"Saved stereogram to {out_path}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_level)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
