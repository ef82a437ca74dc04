from .alignment_fsm import AlignmentFSM

__all__ = ["AlignmentFSM"]
