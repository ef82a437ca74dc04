from pathlib import Path
import logging
from typing import Optional

import numpy as np

from stereoalign.buffers import copy_image, size_of, to_bgr
from stereoalign.errors import DegenerateScaleError, InvalidStageError, MissingSourceError
from stereoalign.fsm import AlignmentFSM
from stereoalign.io import DEFAULT_QUALITY, encode_jpeg, save_image
from stereoalign.models import PipelineState, Point, ProcessingOptions, Side, Stage, WorkingPair
from stereoalign.pipeline import geometry
from stereoalign.pipeline.compose import SideBySideComposer
from stereoalign.pipeline.crop import Cropper
from stereoalign.pipeline.points import PointCollector


STAGE_INSTRUCTIONS = {
    Stage.UPLOAD: "Load a left and a right image, choose the options and start.",
    Stage.ROTATE: "Mark two points along a line that should be level on each image.",
    Stage.SCALE: "Mark the top and bottom of the same object on each image.",
    Stage.CROP: "Mark the same feature on each image to use as the crop anchor.",
    Stage.RESULT: "Done. Save the stereogram or start over.",
}


class PipelineController:
    """
    Orchestrates the alignment workflow:
    - Controls the stage FSM
    - Holds the source and working image pairs
    - Collects correspondence points for the current stage
    - Rotates, scales and crops the working pair
    - Composes the side-by-side result
    - Hands the result to the encoder
    """

    def __init__(
        self,
        options: ProcessingOptions = None,
        callbacks: dict = None,
        fsm_config: str = None,
    ):
        self.log = logging.getLogger("PipelineController")

        self.options = options or ProcessingOptions()

        # --- Core components ---
        self.points = PointCollector()
        self.cropper = Cropper()
        self.composer = SideBySideComposer()

        # --- Storage ---
        self.sources = {Side.LEFT: None, Side.RIGHT: None}  # provenance, never transformed
        self.working: Optional[WorkingPair] = None
        self.result: Optional[np.ndarray] = None
        self.last_error: Optional[str] = None

        # --- FSM ---
        self.fsm = AlignmentFSM(
            config_path=fsm_config,
            callbacks=self._fsm_callbacks(callbacks),
            options=self.options,
        )

    # ----------------------------------------------------------------------
    # FSM CALLBACKS
    # ----------------------------------------------------------------------

    def _fsm_callbacks(self, user_callbacks):
        """Merge internal callbacks with user-provided ones."""
        cb = user_callbacks.copy() if user_callbacks else {}

        cb.update(
            {
                "on_enter_upload": self._on_enter_upload,
                "on_enter_rotate": self._on_enter_point_stage,
                "on_enter_scale": self._on_enter_point_stage,
                "on_enter_crop": self._on_enter_point_stage,
                "on_enter_result": self._on_enter_result,
            }
        )
        return cb

    def _prepare_points(self):
        self.points.clear()
        self.points.limit = self.fsm.max_points()

    def _on_enter_upload(self):
        self.log.info("Waiting for source images")
        self._prepare_points()

    def _on_enter_point_stage(self):
        self.log.info(f"Entered {self.fsm.state} stage, need {self.fsm.max_points()} point(s) per side")
        self._prepare_points()

    def _on_enter_result(self):
        self._prepare_points()
        self.result = self.composer.compose(self.working.left, self.working.right)
        h, w = self.result.shape[:2]
        self.log.info(f"Result ready ({w}x{h})")

    # ----------------------------------------------------------------------
    # STATE QUERIES
    # ----------------------------------------------------------------------

    @property
    def stage(self) -> Stage:
        return Stage(self.fsm.state)

    def max_points(self) -> int:
        return self.fsm.max_points()

    def stage_instructions(self) -> str:
        return STAGE_INSTRUCTIONS[self.stage]

    def can_start(self) -> bool:
        return (
            self.stage == Stage.UPLOAD
            and self.sources[Side.LEFT] is not None
            and self.sources[Side.RIGHT] is not None
        )

    def can_apply(self) -> bool:
        """True if the current stage has enough points on both sides to be applied."""
        if self.stage not in (Stage.ROTATE, Stage.SCALE, Stage.CROP) or self.working is None:
            return False
        return self.points.has_at_least(self.max_points())

    def snapshot(self) -> PipelineState:
        return PipelineState(
            stage=self.stage,
            options=ProcessingOptions(**vars(self.options)),
            points=self.points.as_dict(),
            history=[side.value for side in self.points.history],
            working_sizes=self.working.sizes() if self.working is not None else {},
            result_size=size_of(self.result) if self.result is not None else None,
            last_error=self.last_error,
        )

    # ----------------------------------------------------------------------
    # UPLOAD STAGE
    # ----------------------------------------------------------------------

    def load_image(self, side: Side, image: np.ndarray) -> bool:
        """Set the source image for ``side``. Only allowed before the pipeline starts."""
        side = Side(side)
        if self.stage != Stage.UPLOAD:
            self.log.warning(f"Cannot load images from stage: {self.fsm.state}")
            return False
        if image is None or image.size == 0:
            self.log.warning(f"Ignoring empty {side.value} image")
            return False

        source = copy_image(to_bgr(image))
        self.sources[side] = source

        left, right = self.sources[Side.LEFT], self.sources[Side.RIGHT]
        self.working = WorkingPair(left=left, right=right) if left is not None and right is not None else None

        h, w = source.shape[:2]
        self.log.info(f"Loaded {side.value} image ({w}x{h})")
        return True

    def set_options(self, options: ProcessingOptions) -> bool:
        if self.stage != Stage.UPLOAD:
            self.log.warning(f"Cannot change options from stage: {self.fsm.state}")
            return False
        self.options = options
        self.fsm.options = options
        return True

    def set_rotate_left_image(self, rotate_left: bool) -> bool:
        """Choose which side the rotation stage rotates. Allowed until rotation is applied."""
        if self.stage not in (Stage.UPLOAD, Stage.ROTATE):
            self.log.warning(f"Cannot change rotation side from stage: {self.fsm.state}")
            return False
        self.options.rotate_left_image = bool(rotate_left)
        return True

    def _require_sources(self):
        missing = [side.value for side, image in self.sources.items() if image is None]
        if missing:
            raise MissingSourceError(f"missing {' and '.join(missing)} image")

    def start(self) -> bool:
        """Leave the upload stage. The next stage depends on the processing options."""
        if self.stage != Stage.UPLOAD:
            self.log.warning(f"Cannot start from stage: {self.fsm.state}")
            return False
        try:
            self._require_sources()
        except MissingSourceError as e:
            self.log.warning(f"Cannot start: {e}")
            return False

        self.working = WorkingPair(left=self.sources[Side.LEFT], right=self.sources[Side.RIGHT])
        self.result = None
        self.last_error = None
        self.fsm.start()
        return True

    # ----------------------------------------------------------------------
    # POINTS
    # ----------------------------------------------------------------------

    def add_point(self, side: Side, point: Point) -> bool:
        """Store a correspondence point for the current stage, within its limit and the image bounds."""
        side = Side(side)
        if self.working is None or self.max_points() == 0:
            return False

        image = self.working.left if side == Side.LEFT else self.working.right
        h, w = image.shape[:2]
        if not (0 <= point.x <= w and 0 <= point.y <= h):
            self.log.debug(f"Dropping out-of-bounds point {point} on {side.value}")
            return False

        return self.points.add_point(side, point)

    def undo_last_point(self) -> Optional[Side]:
        return self.points.undo_last()

    def clear_points(self):
        self.points.clear()

    # ----------------------------------------------------------------------
    # STAGE ACTIONS
    # ----------------------------------------------------------------------

    def apply(self) -> bool:
        """Apply whichever stage is current."""
        actions = {
            Stage.ROTATE: self.apply_rotation,
            Stage.SCALE: self.apply_scale,
            Stage.CROP: self.apply_crop,
        }
        action = actions.get(self.stage)
        if action is None:
            self.log.warning(f"Nothing to apply in stage: {self.fsm.state}")
            return False
        return action()

    def _ready(self, stage: Stage) -> bool:
        if self.stage != stage:
            self.log.warning(f"Cannot apply {stage.value} from stage: {self.fsm.state}")
            return False
        if not self.can_apply():
            self.log.warning(f"Not enough points to apply {stage.value}")
            return False
        return True

    def apply_rotation(self) -> bool:
        if not self._ready(Stage.ROTATE):
            return False

        pts_l = self.points.points(Side.LEFT)
        pts_r = self.points.points(Side.RIGHT)
        rotate_left = self.options.rotate_left_image
        angle = geometry.rotation_delta(pts_l, pts_r, rotate_left)

        if rotate_left:
            pair = WorkingPair(
                left=geometry.rotate_image(self.working.left, angle),
                right=copy_image(self.working.right),
            )
        else:
            pair = WorkingPair(
                left=copy_image(self.working.left),
                right=geometry.rotate_image(self.working.right, angle),
            )

        side = Side.LEFT if rotate_left else Side.RIGHT
        self.log.info(f"Rotated {side.value} image by {angle:.2f} deg")
        self._commit(pair)
        self.fsm.rotation_done()
        return True

    def apply_scale(self) -> bool:
        if not self._ready(Stage.SCALE):
            return False

        try:
            ratio = geometry.scale_ratio(self.points.points(Side.LEFT), self.points.points(Side.RIGHT))
        except DegenerateScaleError as e:
            self.log.error(f"Scale failed: {e}")
            self.last_error = str(e)
            return False

        pair = WorkingPair(
            left=copy_image(self.working.left),
            right=geometry.scale_image(self.working.right, ratio),
        )

        self.log.info(f"Scaled right image by {ratio:.4f}")
        self._commit(pair)
        self.fsm.scale_done()
        return True

    def apply_crop(self) -> bool:
        if not self._ready(Stage.CROP):
            return False

        anchor_l = self.points.points(Side.LEFT)[0]
        anchor_r = self.points.points(Side.RIGHT)[0]
        left, right = self.cropper.crop_aligned(
            self.working.left,
            self.working.right,
            anchor_l,
            anchor_r,
            equal_zoom=self.options.assume_equal_zoom,
        )

        self._commit(WorkingPair(left=left, right=right))
        self.fsm.crop_done()
        return True

    def _commit(self, pair: WorkingPair):
        self.working = pair
        self.last_error = None

    # ----------------------------------------------------------------------
    # RESULT
    # ----------------------------------------------------------------------

    def encode_result(self, quality: int = DEFAULT_QUALITY) -> bytes:
        if self.result is None:
            raise InvalidStageError("No result to encode")
        return encode_jpeg(self.result, quality)

    def export(self, path, quality: int = DEFAULT_QUALITY) -> Path:
        """Write the merged result to ``path``."""
        if self.result is None:
            raise InvalidStageError("No result to export")
        return save_image(self.result, path, quality)

    def reset(self):
        """Discard all images and points and return to the upload stage."""
        self.sources = {Side.LEFT: None, Side.RIGHT: None}
        self.working = None
        self.result = None
        self.last_error = None
        self.fsm.reset()
        self.log.info("Pipeline reset")

    def current_state(self):
        return self.fsm.state
