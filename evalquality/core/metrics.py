"""
Residual position and orientation errors after similarity alignment.
"""

import numpy as np
from typing import List, Optional
import logging

from .errors import AlignmentError
from .poses import CorrespondenceSet, ErrorRecord, SimilarityTransform

logger = logging.getLogger(__name__)


def rotation_angle_deg(R_gt: np.ndarray, R_est: np.ndarray) -> float:
    """Geodesic distance between two rotations, in degrees."""
    R_rel = np.asarray(R_gt, dtype=np.float64).T @ np.asarray(R_est, dtype=np.float64)
    cos_angle = np.clip((np.trace(R_rel) - 1.0) / 2.0, -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))


def position_error(C_gt: np.ndarray, C_aligned: np.ndarray) -> float:
    """Euclidean distance between two camera centers."""
    return float(np.linalg.norm(np.asarray(C_aligned) - np.asarray(C_gt)))


def compute_errors(correspondences: CorrespondenceSet,
                   transform: Optional[SimilarityTransform]) -> List[ErrorRecord]:
    """
    Per-camera residuals of the aligned estimate against ground truth.

    Scale and translation only move camera centers; orientations are
    reoriented by the rotation part of the transform alone.

    Returns:
        One ErrorRecord per correspondence, in correspondence order
    """
    if transform is None:
        raise AlignmentError("No similarity transform available to compute residuals",
                             num_correspondences=len(correspondences))

    records = []
    for correspondence in correspondences:
        aligned = transform.apply_to_pose(correspondence.estimated)
        records.append(ErrorRecord(
            key=correspondence.key,
            position_error=position_error(correspondence.ground_truth.center, aligned.center),
            rotation_error_deg=rotation_angle_deg(correspondence.ground_truth.rotation, aligned.rotation)
        ))

    logger.debug("Computed residuals for %d cameras", len(records))
    return records


def aligned_centers(correspondences: CorrespondenceSet, transform: SimilarityTransform) -> np.ndarray:
    """Estimated camera centers mapped into the ground-truth frame."""
    return transform.apply(correspondences.est_centers)
