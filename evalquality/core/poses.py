"""
Pose data structures shared by every stage of the quality evaluation.

Rotations follow the world-to-camera convention used by both the ground-truth
camera files and the reconstruction container: a world point X maps to
camera coordinates with ``R @ (X - C)`` where C is the camera center.
"""

import numpy as np
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Union

from .errors import FormatError

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".ppm", ".pgm"}

# Tolerance on R @ R.T = I and det(R) = 1 for rotations read from text files
ROTATION_TOLERANCE = 1e-4


def identity_key(path: Union[str, Path], suffix: Optional[str] = None) -> str:
    """
    Derive the identity key used to match cameras across datasets.

    The directory part is dropped, then ``suffix`` (e.g. ``png.camera``) when
    the name ends with it, otherwise the last extension. An image extension
    left after removing ``suffix`` (``0000.png.bin``) is dropped as well.
    """
    name = Path(str(path).replace('\\', '/')).name
    if suffix:
        ending = '.' + suffix
        if name.endswith(ending) and len(name) > len(ending):
            stripped = Path(name[:-len(ending)])
            if stripped.suffix.lower() in IMAGE_EXTENSIONS and stripped.stem:
                return stripped.stem
            return stripped.name
    return Path(name).stem


@dataclass(frozen=True, eq=False)
class CameraPose:
    """Orientation and position of one camera."""
    rotation: np.ndarray  # 3x3 world-to-camera rotation
    center: np.ndarray  # 3 camera center in world coordinates

    def __post_init__(self):
        object.__setattr__(self, 'rotation', np.asarray(self.rotation, dtype=np.float64).reshape(3, 3))
        object.__setattr__(self, 'center', np.asarray(self.center, dtype=np.float64).reshape(3))

    @classmethod
    def from_extrinsics(cls, rotation: np.ndarray, translation: np.ndarray) -> 'CameraPose':
        """Build a pose from [R|t] extrinsics (C = -R^T t)."""
        rotation = np.asarray(rotation, dtype=np.float64).reshape(3, 3)
        translation = np.asarray(translation, dtype=np.float64).reshape(3)
        return cls(rotation=rotation, center=-rotation.T @ translation)

    @property
    def translation(self) -> np.ndarray:
        return -self.rotation @ self.center

    def is_valid(self, atol: float = ROTATION_TOLERANCE) -> bool:
        """True when the rotation is orthonormal with determinant +1."""
        R = self.rotation
        return bool(np.allclose(R @ R.T, np.eye(3), atol=atol) and
                    np.isclose(np.linalg.det(R), 1.0, atol=atol))

    def validate(self, path: Optional[Union[str, Path]] = None, atol: float = ROTATION_TOLERANCE) -> None:
        """
        Raises:
            FormatError: The rotation is not orthonormal with determinant +1
        """
        if not self.is_valid(atol):
            raise FormatError(
                f"Camera rotation is not a proper rotation matrix (det={np.linalg.det(self.rotation):.6g})",
                None if path is None else str(path))


@dataclass(frozen=True, eq=False)
class IdentifiedPose:
    """A ground-truth pose together with the identity key of its image."""
    key: str
    pose: CameraPose
    source: Optional[Path] = None
    case_sensitive: bool = True

    @property
    def match_key(self) -> str:
        return self.key if self.case_sensitive else self.key.casefold()


@dataclass(frozen=True, eq=False)
class Correspondence:
    """Ground-truth and estimated pose of the same image."""
    key: str
    ground_truth: CameraPose
    estimated: CameraPose


@dataclass(frozen=True, eq=False)
class CorrespondenceSet:
    """
    Ordered correspondences with index-aligned array views.

    The order is the iteration order of the estimated views and is shared by
    every array exposed here and by all downstream results.
    """
    correspondences: List[Correspondence] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.correspondences)

    def __iter__(self) -> Iterator[Correspondence]:
        return iter(self.correspondences)

    def __getitem__(self, index: int) -> Correspondence:
        return self.correspondences[index]

    @property
    def keys(self) -> List[str]:
        return [c.key for c in self.correspondences]

    @property
    def gt_centers(self) -> np.ndarray:
        return _stack([c.ground_truth.center for c in self.correspondences], (0, 3))

    @property
    def est_centers(self) -> np.ndarray:
        return _stack([c.estimated.center for c in self.correspondences], (0, 3))

    @property
    def gt_rotations(self) -> np.ndarray:
        return _stack([c.ground_truth.rotation for c in self.correspondences], (0, 3, 3))

    @property
    def est_rotations(self) -> np.ndarray:
        return _stack([c.estimated.rotation for c in self.correspondences], (0, 3, 3))


def _stack(arrays: Sequence[np.ndarray], empty_shape: tuple) -> np.ndarray:
    if not arrays:
        return np.zeros(empty_shape)
    return np.stack(arrays)


@dataclass(frozen=True, eq=False)
class SimilarityTransform:
    """Similarity p -> scale * R @ p + t."""
    scale: float
    rotation: np.ndarray  # 3x3, det +1
    translation: np.ndarray  # 3

    def __post_init__(self):
        object.__setattr__(self, 'scale', float(self.scale))
        object.__setattr__(self, 'rotation', np.asarray(self.rotation, dtype=np.float64).reshape(3, 3))
        object.__setattr__(self, 'translation', np.asarray(self.translation, dtype=np.float64).reshape(3))

    @classmethod
    def identity(cls) -> 'SimilarityTransform':
        return cls(scale=1.0, rotation=np.eye(3), translation=np.zeros(3))

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Transform a single point (3,) or an array of points (N, 3)."""
        points = np.asarray(points, dtype=np.float64)
        return self.scale * (points @ self.rotation.T) + self.translation

    def apply_to_rotation(self, rotation: np.ndarray) -> np.ndarray:
        """Reorient a world-to-camera rotation into the target frame."""
        return np.asarray(rotation, dtype=np.float64) @ self.rotation.T

    def apply_to_pose(self, pose: CameraPose) -> CameraPose:
        return CameraPose(rotation=self.apply_to_rotation(pose.rotation), center=self.apply(pose.center))

    def inverse(self) -> 'SimilarityTransform':
        rotation = self.rotation.T
        scale = 1.0 / self.scale
        return SimilarityTransform(scale=scale, rotation=rotation,
                                   translation=-scale * rotation @ self.translation)

    def to_dict(self) -> dict:
        return {
            'scale': self.scale,
            'rotation_matrix': self.rotation.tolist(),
            'translation': self.translation.tolist()
        }


@dataclass(frozen=True)
class ErrorRecord:
    """Residuals of one correspondence after alignment."""
    key: str
    position_error: float  # ground-truth length units
    rotation_error_deg: float


@dataclass(frozen=True)
class EstimatedView:
    """One image of the estimated reconstruction."""
    view_id: int
    image_path: str
    pose_id: Optional[int] = None  # None when the view was not registered


@dataclass(frozen=True, eq=False)
class Reconstruction:
    """Views and poses of an estimated reconstruction."""
    views: List[EstimatedView]
    poses: Dict[int, CameraPose]
    source: Optional[Path] = None

    def get_pose(self, view: EstimatedView) -> Optional[CameraPose]:
        if view.pose_id is None:
            return None
        return self.poses.get(view.pose_id)

    @property
    def num_posed_views(self) -> int:
        return sum(1 for view in self.views if self.get_pose(view) is not None)

    def posed_centers(self) -> np.ndarray:
        """Centers of every posed view, in view order."""
        return _stack([self.get_pose(v).center for v in self.views if self.get_pose(v) is not None], (0, 3))
