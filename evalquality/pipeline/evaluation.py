"""
End-to-end quality evaluation of an SfM reconstruction against ground truth.

Stages, in order:
1. Ground-truth and reconstruction loading
2. Correspondence matching by image identity
3. Similarity alignment of the camera centers
4. Residual position/rotation errors
5. Summary statistics, then export of point clouds and reports

Nothing is written to the output directory until every stage succeeded.
"""

import numpy as np
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
import logging
import time
from dataclasses import dataclass, field

from ..core.errors import ConfigurationError, EmptyResultError
from ..core.poses import CorrespondenceSet, ErrorRecord, IdentifiedPose, Reconstruction, SimilarityTransform
from ..core.matching import match_correspondences
from ..core.alignment import SimilarityAligner
from ..core.metrics import aligned_centers, compute_errors
from ..core.statistics import EvaluationStatistics, aggregate
from ..readers.ground_truth import AUTO_DETECT, load_ground_truth
from ..readers.reconstruction import load_reconstruction
from ..utils.export import save_json_report, write_ply, write_registered_ply
from ..utils.report import write_report

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    """Everything computed by one evaluation run."""
    correspondences: CorrespondenceSet
    transform: SimilarityTransform
    records: List[ErrorRecord]
    statistics: EvaluationStatistics

    # Camera centers, index-aligned with the correspondences
    gt_centers: np.ndarray
    est_centers: np.ndarray  # before alignment
    aligned_centers: np.ndarray

    num_ground_truth_cameras: int
    num_posed_views: int
    ground_truth_path: Optional[Path] = None
    reconstruction_path: Optional[Path] = None
    total_time: float = 0.0
    output_files: List[Path] = field(default_factory=list)


class QualityEvaluator:
    """
    Compare an estimated camera trajectory with ground truth.

    The evaluator itself holds only configuration; every call computes its
    result from scratch.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Args:
            config: OmegaConf configuration (or plain dict) with optional
                ``alignment``, ``loading``, ``export`` and ``report`` sections
        """
        self.config = config if config is not None else {}
        self.export_config = self.config.get('export', {})
        self.report_config = self.config.get('report', {})
        self.aligner = SimilarityAligner(self.config)

    def evaluate_poses(self,
                       ground_truth: Sequence[IdentifiedPose],
                       reconstruction: Reconstruction,
                       ground_truth_path: Optional[Path] = None) -> EvaluationResult:
        """
        Run matching, alignment, metrics and statistics on loaded poses.

        Raises:
            EmptyResultError: No reconstructed camera has a ground-truth match
            AlignmentError: Fewer than 3 matches or degenerate camera layout
        """
        start_time = time.time()

        correspondences = match_correspondences(ground_truth, reconstruction)
        if len(correspondences) == 0:
            raise EmptyResultError(
                f"No overlapping cameras between ground truth ({len(ground_truth)} cameras"
                f"{', ' + str(ground_truth_path) if ground_truth_path else ''}) and reconstruction "
                f"({reconstruction.num_posed_views} posed views"
                f"{', ' + str(reconstruction.source) if reconstruction.source else ''})")

        transform = self.aligner.align(correspondences)
        records = compute_errors(correspondences, transform)
        statistics = aggregate(records)

        return EvaluationResult(
            correspondences=correspondences,
            transform=transform,
            records=records,
            statistics=statistics,
            gt_centers=correspondences.gt_centers,
            est_centers=correspondences.est_centers,
            aligned_centers=aligned_centers(correspondences, transform),
            num_ground_truth_cameras=len(ground_truth),
            num_posed_views=reconstruction.num_posed_views,
            ground_truth_path=ground_truth_path,
            reconstruction_path=reconstruction.source,
            total_time=time.time() - start_time
        )

    def evaluate(self,
                 gt_dir: Union[str, Path],
                 computed_path: Union[str, Path],
                 cam_type: int = AUTO_DETECT) -> EvaluationResult:
        """Load both trajectories from disk and evaluate them."""
        start_time = time.time()
        gt_dir = Path(gt_dir)

        logger.info("Try to read data from GT")
        ground_truth = load_ground_truth(gt_dir, cam_type, self.config)

        reconstruction = load_reconstruction(computed_path)

        result = self.evaluate_poses(ground_truth, reconstruction, ground_truth_path=gt_dir)
        result.total_time = time.time() - start_time
        return result

    def write_outputs(self, result: EvaluationResult, output_dir: Union[str, Path]) -> List[Path]:
        """Export point clouds, the JSON report and the HTML report."""
        output_dir = Path(output_dir)
        if output_dir.exists() and not output_dir.is_dir():
            raise ConfigurationError(f"Output path is not a directory: {output_dir}")
        output_dir.mkdir(parents=True, exist_ok=True)

        output_files = [
            write_ply(result.gt_centers, output_dir / self.export_config.get('gt_ply', 'camGT.ply')),
            write_ply(result.est_centers, output_dir / self.export_config.get('computed_ply', 'camComputed.ply')),
            write_registered_ply(
                result.gt_centers,
                result.aligned_centers,
                output_dir / self.export_config.get('registered_ply', 'camera_Registered.ply')
            ),
            save_json_report(result, output_dir / self.export_config.get('json_report', 'evaluation_report.json')),
            write_report(
                result,
                output_dir / self.report_config.get('filename', 'ExternalCalib_Report.html'),
                self.config
            )
        ]

        result.output_files = output_files
        return output_files

    def run(self,
            gt_dir: Union[str, Path],
            computed_path: Union[str, Path],
            output_dir: Union[str, Path],
            cam_type: int = AUTO_DETECT) -> EvaluationResult:
        """Evaluate and, on success only, write every artifact."""
        result = self.evaluate(gt_dir, computed_path, cam_type)
        self.write_outputs(result, output_dir)
        logger.info(f"Evaluation of {len(result.records)} cameras completed in {result.total_time:.2f}s")
        return result
