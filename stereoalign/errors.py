class AlignmentError(Exception):
    """Base class for errors raised by the alignment pipeline."""


class DegenerateScaleError(AlignmentError, ValueError):
    """Raised when the scale ratio cannot be computed (zero vertical distance)."""


class MissingSourceError(AlignmentError):
    """Raised when an operation needs both source images and one is missing."""


class InvalidStageError(AlignmentError, RuntimeError):
    """Raised when an operation is attempted from a stage that does not allow it."""
