"""
Error types raised by the quality evaluation pipeline.

Every error is terminal for a run: the command-line front end logs it and
exits with a non-zero status without writing a partial report.
"""

from typing import Optional


class EvaluationError(Exception):
    """Base class for all evaluation failures."""


class ConfigurationError(EvaluationError):
    """Invalid command line or configuration (output directory, camera type...)."""


class FormatError(EvaluationError):
    """A ground-truth file or the estimated reconstruction could not be read."""

    def __init__(self, message: str, path: Optional[str] = None):
        if path is not None:
            message = f"{message} ({path})"
        super().__init__(message)
        self.path = path


class AlignmentError(EvaluationError):
    """The similarity transform cannot be estimated from the correspondences."""

    def __init__(self, message: str, num_correspondences: Optional[int] = None):
        if num_correspondences is not None:
            message = f"{message} [correspondences: {num_correspondences}]"
        super().__init__(message)
        self.num_correspondences = num_correspondences


class EmptyResultError(EvaluationError):
    """No camera of the reconstruction overlaps the ground truth."""
