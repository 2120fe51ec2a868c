"""
Alignment and error evaluation of an estimated camera trajectory.

Correspondence matching, closed-form similarity alignment, residual metrics
and summary statistics.
"""

from .errors import EvaluationError, ConfigurationError, FormatError, AlignmentError, EmptyResultError
from .poses import (
    CameraPose,
    IdentifiedPose,
    Correspondence,
    CorrespondenceSet,
    SimilarityTransform,
    ErrorRecord,
    EstimatedView,
    Reconstruction,
    identity_key
)
from .matching import GroundTruthIndex, match_correspondences
from .alignment import SimilarityAligner, estimate_similarity
from .metrics import compute_errors, rotation_angle_deg
from .statistics import SummaryStatistics, EvaluationStatistics, aggregate, summarize

__all__ = [
    'EvaluationError',
    'ConfigurationError',
    'FormatError',
    'AlignmentError',
    'EmptyResultError',
    'CameraPose',
    'IdentifiedPose',
    'Correspondence',
    'CorrespondenceSet',
    'SimilarityTransform',
    'ErrorRecord',
    'EstimatedView',
    'Reconstruction',
    'identity_key',
    'GroundTruthIndex',
    'match_correspondences',
    'SimilarityAligner',
    'estimate_similarity',
    'compute_errors',
    'rotation_angle_deg',
    'SummaryStatistics',
    'EvaluationStatistics',
    'aggregate',
    'summarize'
]
