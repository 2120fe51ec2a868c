"""
Pairing of ground-truth cameras with reconstructed views by image identity.
"""

from typing import Dict, Iterable, List, Optional
import logging

from .poses import Correspondence, CorrespondenceSet, IdentifiedPose, Reconstruction, identity_key

logger = logging.getLogger(__name__)


class GroundTruthIndex:
    """Identity key -> ground-truth pose lookup, built once."""

    def __init__(self, ground_truth: Iterable[IdentifiedPose]):
        self._exact: Dict[str, IdentifiedPose] = {}
        self._folded: Dict[str, IdentifiedPose] = {}

        for entry in ground_truth:
            table = self._exact if entry.case_sensitive else self._folded
            if entry.match_key in table:
                # First entry wins
                logger.debug("Duplicate ground-truth key %s ignored (%s)", entry.key, entry.source)
                continue
            table[entry.match_key] = entry

    def __len__(self) -> int:
        return len(self._exact) + len(self._folded)

    def lookup(self, key: str) -> Optional[IdentifiedPose]:
        entry = self._exact.get(key)
        if entry is None and self._folded:
            entry = self._folded.get(key.casefold())
        return entry


def match_correspondences(ground_truth: Iterable[IdentifiedPose],
                          reconstruction: Reconstruction) -> CorrespondenceSet:
    """
    Pair every posed view of the reconstruction with its ground-truth camera.

    Views without a pose and views whose image has no ground-truth
    counterpart are skipped; partial reconstructions are expected. The
    output keeps the iteration order of the reconstruction's views.
    """
    index = ground_truth if isinstance(ground_truth, GroundTruthIndex) else GroundTruthIndex(ground_truth)

    correspondences: List[Correspondence] = []
    n_unposed = 0
    n_unmatched = 0

    for view in reconstruction.views:
        estimated = reconstruction.get_pose(view)
        if estimated is None:
            n_unposed += 1
            logger.debug("View %s has no estimated pose, skipping", view.image_path)
            continue

        key = identity_key(view.image_path)
        entry = index.lookup(key)
        if entry is None:
            n_unmatched += 1
            logger.debug("View %s has no ground-truth camera, skipping", view.image_path)
            continue

        correspondences.append(Correspondence(key=key, ground_truth=entry.pose, estimated=estimated))

    logger.info(
        "Matched %d cameras (%d views without pose, %d without ground truth)",
        len(correspondences), n_unposed, n_unmatched
    )
    return CorrespondenceSet(correspondences)
