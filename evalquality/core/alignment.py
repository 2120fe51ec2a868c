"""
Closed-form similarity alignment of camera centers (Umeyama, 1991).

Only the camera centers drive the fit; orientations are compared afterwards
by the error metrics.
"""

import numpy as np
from typing import Any, Dict, Optional
import logging

from .errors import AlignmentError
from .poses import CorrespondenceSet, SimilarityTransform

logger = logging.getLogger(__name__)

MIN_CORRESPONDENCES = 3
RANK_TOLERANCE = 1e-9


def estimate_similarity(source: np.ndarray,
                        target: np.ndarray,
                        min_points: int = MIN_CORRESPONDENCES,
                        rank_tolerance: float = RANK_TOLERANCE) -> SimilarityTransform:
    """
    Least-squares similarity transform mapping ``source`` onto ``target``.

    Args:
        source: [N, 3] estimated camera centers
        target: [N, 3] ground-truth camera centers, index-aligned with source
        min_points: Minimum number of point pairs accepted
        rank_tolerance: Relative threshold on the second singular value of
            the cross-covariance below which the configuration is collinear

    Returns:
        SimilarityTransform such that target ~ scale * R @ source + t

    Raises:
        AlignmentError: Shape mismatch, too few points or degenerate geometry
    """
    source = np.asarray(source, dtype=np.float64)
    target = np.asarray(target, dtype=np.float64)

    if source.ndim != 2 or source.shape[1] != 3 or source.shape != target.shape:
        raise AlignmentError(
            f"Source and target must be matching [N, 3] arrays, got {source.shape} and {target.shape}")

    n_points = source.shape[0]
    if n_points < max(min_points, MIN_CORRESPONDENCES):
        raise AlignmentError(
            f"At least {max(min_points, MIN_CORRESPONDENCES)} correspondences required for similarity alignment",
            num_correspondences=n_points)

    mean_source = source.mean(axis=0)
    mean_target = target.mean(axis=0)

    source_centered = source - mean_source
    target_centered = target - mean_target

    covariance = (target_centered.T @ source_centered) / n_points
    U, D, Vt = np.linalg.svd(covariance)

    # Rank < 2 means every point lies on one line (or on one point)
    if not D[0] > 0.0 or D[1] <= rank_tolerance * D[0]:
        raise AlignmentError(
            "Degenerate configuration for similarity alignment (coincident or collinear camera centers)",
            num_correspondences=n_points)

    S = np.eye(3)
    if np.linalg.det(U) * np.linalg.det(Vt) < 0:
        S[-1, -1] = -1

    rotation = U @ S @ Vt

    var_source = np.sum(source_centered ** 2) / n_points
    scale = np.sum(D * np.diag(S)) / var_source
    translation = mean_target - scale * rotation @ mean_source

    return SimilarityTransform(scale=scale, rotation=rotation, translation=translation)


class SimilarityAligner:
    """Estimate the similarity between estimated and ground-truth trajectories."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config if config is not None else {}
        self.alignment_config = config.get('alignment', {})
        self.min_correspondences = int(self.alignment_config.get('min_correspondences', MIN_CORRESPONDENCES))
        self.rank_tolerance = float(self.alignment_config.get('rank_tolerance', RANK_TOLERANCE))

    def align(self, correspondences: CorrespondenceSet) -> SimilarityTransform:
        """Fit the transform on the correspondence centers."""
        transform = estimate_similarity(
            correspondences.est_centers,
            correspondences.gt_centers,
            min_points=self.min_correspondences,
            rank_tolerance=self.rank_tolerance
        )
        logger.info(
            "Estimated similarity from %d cameras: scale=%.6f, rotation_det=%.6f",
            len(correspondences),
            transform.scale,
            np.linalg.det(transform.rotation)
        )
        return transform
