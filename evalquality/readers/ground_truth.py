"""
Readers for ground-truth camera trajectories.

Each supported on-disk format is one GroundTruthReader subclass; the reader
for a directory is chosen by ``create_ground_truth_reader`` either from an
explicit camera type or by scanning the directory for known suffixes.

Camera types:
    1: openMVG binary camera (``*.bin``, 3x4 projection matrix)
    2: Strecha camera for png images (``*.png.camera``)
    3: Strecha camera for jpg images (``*.jpg.camera``)
    4: Strecha camera for PNG images (``*.PNG.camera``)
    5: Strecha camera for JPG images (``*.JPG.camera``)
"""

import numpy as np
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

from scipy.linalg import rq
from tqdm import tqdm

from ..core.errors import ConfigurationError, FormatError
from ..core.poses import CameraPose, IdentifiedPose, identity_key

logger = logging.getLogger(__name__)

AUTO_DETECT = -1


class GroundTruthReader(ABC):
    """Read every camera file with a given suffix from a directory."""

    suffix: str = ''
    description: str = ''
    case_sensitive: bool = True

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config if config is not None else {}
        self.loading_config = config.get('loading', {})
        self.num_workers = int(self.loading_config.get('num_workers', 1))

    @abstractmethod
    def read_camera(self, path: Path) -> CameraPose:
        """Parse one camera file."""

    def list_files(self, directory: Union[str, Path]) -> List[Path]:
        """Camera files of the directory, sorted by name."""
        directory = Path(directory)
        ending = '.' + self.suffix
        return sorted(
            path for path in directory.glob(f"*{ending}")
            if path.is_file() and path.name.endswith(ending)
        )

    def read_all(self, directory: Union[str, Path]) -> List[IdentifiedPose]:
        """
        Read the whole ground-truth trajectory of a directory.

        Files are parsed in sorted name order; with more than one worker they
        are parsed concurrently but the order of the result is unchanged.

        Raises:
            ConfigurationError: The directory does not exist
            FormatError: Any camera file cannot be parsed
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise ConfigurationError(f"There is no valid ground-truth directory to read from: {directory}")

        files = self.list_files(directory)
        logger.info(f"Reading {len(files)} {self.description} files from {directory}")

        if self.num_workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.num_workers) as executor:
                poses = list(tqdm(executor.map(self.read_camera, files), total=len(files),
                                  desc="Reading ground truth"))
        else:
            poses = [self.read_camera(path) for path in tqdm(files, desc="Reading ground truth")]

        return [
            IdentifiedPose(
                key=identity_key(path, self.suffix),
                pose=pose,
                source=path,
                case_sensitive=self.case_sensitive
            )
            for path, pose in zip(files, poses)
        ]


def decompose_projection(P: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Split a projection matrix P = K [R | t] into K, R and t.

    K is normalized so that K[2, 2] = 1 with a positive diagonal, and R is a
    proper rotation.
    """
    P = np.asarray(P, dtype=np.float64).reshape(3, 4)
    K, R = rq(P[:, :3])

    signs = np.sign(np.diag(K))
    signs[signs == 0] = 1.0
    T = np.diag(signs)
    K = K @ T
    R = T @ R

    # P is defined up to scale: flip the whole matrix for det(R) = +1
    p = P[:, 3]
    if np.linalg.det(R) < 0:
        R = -R
        p = -p

    t = np.linalg.solve(K, p)
    K = K / K[2, 2]
    return K, R, t


class OpenMVGCameraReader(GroundTruthReader):
    """openMVG binary camera: 12 little-endian doubles, column-major 3x4 P."""

    suffix = 'bin'
    description = 'openMVG camera'

    def read_camera(self, path: Path) -> CameraPose:
        try:
            values = np.fromfile(path, dtype='<f8', count=12)
        except OSError as e:
            raise FormatError(f"Cannot read openMVG camera: {e}", str(path)) from e

        if values.size != 12:
            raise FormatError(f"openMVG camera must hold 12 values, found {values.size}", str(path))
        if not np.all(np.isfinite(values)):
            raise FormatError("openMVG camera contains non-finite values", str(path))

        P = values.reshape(4, 3).T
        try:
            _, R, t = decompose_projection(P)
        except np.linalg.LinAlgError as e:
            raise FormatError(f"Singular projection matrix: {e}", str(path)) from e

        pose = CameraPose.from_extrinsics(R, t)
        pose.validate(path)
        return pose


class StrechaCameraReader(GroundTruthReader):
    """
    Strecha ``.camera`` text file.

    Values, whitespace separated: K (3x3), distortion (3), camera-to-world
    rotation (3x3), camera center (3) and optionally the image size (2).
    """

    description = 'Strecha camera'
    MIN_VALUES = 9 + 3 + 9 + 3

    def __init__(self, suffix: str, case_sensitive: bool = True, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.suffix = suffix
        self.case_sensitive = case_sensitive

    def read_camera(self, path: Path) -> CameraPose:
        try:
            tokens = path.read_text().split()
        except OSError as e:
            raise FormatError(f"Cannot read Strecha camera: {e}", str(path)) from e

        try:
            values = np.array([float(token) for token in tokens], dtype=np.float64)
        except ValueError as e:
            raise FormatError(f"File is not in Strecha format: {e}", str(path)) from e

        if values.size < self.MIN_VALUES:
            raise FormatError(
                f"File is not in Strecha format: expected at least {self.MIN_VALUES} values, found {values.size}",
                str(path))

        R_cam_to_world = values[12:21].reshape(3, 3)
        center = values[21:24]
        pose = CameraPose(rotation=R_cam_to_world.T, center=center)
        pose.validate(path)
        return pose


def _reader_table(config: Optional[Dict[str, Any]]) -> Dict[int, GroundTruthReader]:
    return {
        1: OpenMVGCameraReader(config),
        2: StrechaCameraReader('png.camera', config=config),
        3: StrechaCameraReader('jpg.camera', config=config),
        4: StrechaCameraReader('PNG.camera', case_sensitive=False, config=config),
        5: StrechaCameraReader('JPG.camera', case_sensitive=False, config=config),
    }


def detect_camera_type(directory: Union[str, Path], config: Optional[Dict[str, Any]] = None) -> Optional[int]:
    """First camera type, in priority order, with files in the directory."""
    for cam_type, reader in _reader_table(config).items():
        if reader.list_files(directory):
            return cam_type
    return None


def create_ground_truth_reader(cam_type: int,
                               directory: Union[str, Path],
                               config: Optional[Dict[str, Any]] = None) -> GroundTruthReader:
    """
    Select the reader for a camera type, auto-detecting it when -1.

    Raises:
        ConfigurationError: Missing directory or unsupported/undetected type
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise ConfigurationError(f"There is no valid ground-truth directory to read from: {directory}")

    if cam_type == AUTO_DETECT:
        detected = detect_camera_type(directory, config)
        if detected is None:
            raise ConfigurationError(
                f"Unsupported camera type: no known camera files found in {directory}. "
                "Please write your camera reader.")
        cam_type = detected

    readers = _reader_table(config)
    if cam_type not in readers:
        raise ConfigurationError(f"Unsupported camera type {cam_type}. Please write your camera reader.")

    reader = readers[cam_type]
    logger.info(f"Using {reader.description} ({reader.suffix})")
    return reader


def load_ground_truth(directory: Union[str, Path],
                      cam_type: int = AUTO_DETECT,
                      config: Optional[Dict[str, Any]] = None) -> List[IdentifiedPose]:
    """Read the ground-truth trajectory of a directory."""
    reader = create_ground_truth_reader(cam_type, directory, config)
    ground_truth = reader.read_all(directory)
    logger.info(f"{len(ground_truth)} ground-truth cameras have been found")
    return ground_truth


def default_intrinsics(image_size: Tuple[int, int] = (640, 480), focal_length: Optional[float] = None) -> np.ndarray:
    width, height = image_size
    focal_length = focal_length if focal_length is not None else float(max(width, height))
    return np.array([
        [focal_length, 0, width / 2.0],
        [0, focal_length, height / 2.0],
        [0, 0, 1]
    ], dtype=np.float64)


def save_openmvg_camera(path: Path, pose: CameraPose, K: Optional[np.ndarray] = None) -> Path:
    """Write a pose as an openMVG binary camera (P = K [R | t])."""
    K = default_intrinsics() if K is None else np.asarray(K, dtype=np.float64)
    P = K @ np.hstack([pose.rotation, pose.translation.reshape(3, 1)])
    P.T.astype('<f8').tofile(path)
    return path


def save_strecha_camera(path: Path,
                        pose: CameraPose,
                        K: Optional[np.ndarray] = None,
                        image_size: Tuple[int, int] = (640, 480)) -> Path:
    """Write a pose as a Strecha ``.camera`` text file."""
    K = default_intrinsics(image_size) if K is None else np.asarray(K, dtype=np.float64)
    rows = [K[0], K[1], K[2], np.zeros(3)]
    rows += [row for row in pose.rotation.T]
    rows.append(pose.center)

    with open(path, 'w') as f:
        for row in rows:
            f.write(' '.join(f"{value:.17g}" for value in row) + '\n')
        f.write(f"{int(image_size[0])} {int(image_size[1])}\n")
    return path
