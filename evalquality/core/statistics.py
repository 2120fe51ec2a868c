"""
Summary statistics of the per-camera residuals.
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, Sequence
import logging

from .errors import EmptyResultError
from .poses import ErrorRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SummaryStatistics:
    """Min/max/mean/median/RMS of one residual distribution."""
    count: int
    minimum: float
    maximum: float
    mean: float
    median: float
    rms: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'count': self.count,
            'min': self.minimum,
            'max': self.maximum,
            'mean': self.mean,
            'median': self.median,
            'rms': self.rms
        }


@dataclass(frozen=True)
class EvaluationStatistics:
    """Position and rotation summaries, computed independently."""
    position: SummaryStatistics
    rotation: SummaryStatistics


def median(values: Sequence[float]) -> float:
    """Median of a sorted copy; even counts average the two central values."""
    ordered = sorted(values)
    n = len(ordered)
    if n == 0:
        raise EmptyResultError("Median of an empty residual set is undefined")
    middle = n // 2
    if n % 2:
        return float(ordered[middle])
    return 0.5 * (float(ordered[middle - 1]) + float(ordered[middle]))


def summarize(values: Sequence[float]) -> SummaryStatistics:
    """Reduce a residual distribution to its summary statistics."""
    values = np.asarray(values, dtype=np.float64).reshape(-1)
    if values.size == 0:
        raise EmptyResultError("Summary statistics are undefined for an empty residual set")

    return SummaryStatistics(
        count=int(values.size),
        minimum=float(np.min(values)),
        maximum=float(np.max(values)),
        mean=float(np.mean(values)),
        median=median(values.tolist()),
        rms=float(np.sqrt(np.mean(values ** 2)))
    )


def aggregate(records: Sequence[ErrorRecord]) -> EvaluationStatistics:
    """Summaries of position and rotation residuals over all cameras."""
    if len(records) == 0:
        raise EmptyResultError("No overlapping cameras between ground truth and reconstruction")

    statistics = EvaluationStatistics(
        position=summarize([r.position_error for r in records]),
        rotation=summarize([r.rotation_error_deg for r in records])
    )

    logger.info(
        "Position residual: mean=%.6f, median=%.6f, max=%.6f",
        statistics.position.mean, statistics.position.median, statistics.position.maximum
    )
    logger.info(
        "Rotation residual (deg): mean=%.4f, median=%.4f, max=%.4f",
        statistics.rotation.mean, statistics.rotation.median, statistics.rotation.maximum
    )
    return statistics
