"""
Camera trajectory generation with known poses for synthetic evaluation datasets.
"""

import numpy as np
from typing import Any, Dict, List, Optional, Tuple
import logging

from ..core.poses import CameraPose, IdentifiedPose

logger = logging.getLogger(__name__)


class CameraGenerator:
    """Generate ground-truth camera trajectories."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config if config is not None else {}
        self.config = config
        self.trajectory = config.get('trajectory', 'circular')
        self.num_cameras = int(config.get('num_cameras', 8))
        self.radius = float(config.get('radius', 5.0))
        self.height = float(config.get('height', 0.0))
        self.look_at = np.array(config.get('look_at', [0.0, 0.0, 0.0]), dtype=np.float64)
        self.name_pattern = config.get('name_pattern', '{:04d}')
        self.seed = config.get('seed', 42)

    def generate_cameras(self) -> List[IdentifiedPose]:
        """
        Generate the ground-truth trajectory.

        Returns:
            One IdentifiedPose per camera, keyed by ``name_pattern``
        """
        logger.info(f"Generating {self.trajectory} trajectory with {self.num_cameras} cameras")

        if self.trajectory == 'circular':
            positions = self._circular_positions()
        elif self.trajectory == 'arc':
            positions = self._arc_positions()
        elif self.trajectory == 'spiral':
            positions = self._spiral_positions()
        elif self.trajectory == 'random':
            positions = self._random_positions()
        elif self.trajectory == 'linear':
            positions = self._linear_positions()
        else:
            raise ValueError(f"Unknown trajectory type: {self.trajectory}")

        cameras = []
        for name, eye in zip(self.get_camera_names(), positions):
            R = self._look_at_rotation(eye, self.look_at, np.array([0.0, 1.0, 0.0]))
            cameras.append(IdentifiedPose(key=name, pose=CameraPose(rotation=R, center=eye)))
        return cameras

    def _circular_positions(self) -> List[np.ndarray]:
        """Cameras on a circle around the scene."""
        angles = 2 * np.pi * np.arange(self.num_cameras) / self.num_cameras
        return [np.array([self.radius * np.cos(a), self.height, self.radius * np.sin(a)]) for a in angles]

    def _arc_positions(self) -> List[np.ndarray]:
        """Cameras along a 180 degree arc."""
        angles = np.linspace(-np.pi / 2, np.pi / 2, self.num_cameras)
        return [np.array([self.radius * np.cos(a), self.height, self.radius * np.sin(a)]) for a in angles]

    def _spiral_positions(self) -> List[np.ndarray]:
        """Two turns of a rising helix."""
        angles = np.linspace(0.0, 4 * np.pi, self.num_cameras, endpoint=False)
        heights = np.linspace(self.height - self.radius / 2, self.height + self.radius / 2, self.num_cameras)
        return [np.array([self.radius * np.cos(a), h, self.radius * np.sin(a)]) for a, h in zip(angles, heights)]

    def _linear_positions(self) -> List[np.ndarray]:
        """Cameras on a straight line (degenerate for alignment)."""
        start_pos = np.array([-self.radius, self.height, self.radius])
        end_pos = np.array([self.radius, self.height, self.radius])
        steps = np.linspace(0.0, 1.0, self.num_cameras)
        return [start_pos + s * (end_pos - start_pos) for s in steps]

    def _random_positions(self) -> List[np.ndarray]:
        """Random positions on a sphere around the look-at point."""
        rng = np.random.default_rng(self.seed)
        positions = []
        for _ in range(self.num_cameras):
            phi = rng.uniform(0, 2 * np.pi)  # Azimuth
            theta = rng.uniform(np.pi / 6, 5 * np.pi / 6)  # Elevation (avoid poles)
            positions.append(np.array([
                self.radius * np.sin(theta) * np.cos(phi),
                self.radius * np.cos(theta) + self.height,
                self.radius * np.sin(theta) * np.sin(phi)
            ]))
        return positions

    @staticmethod
    def _look_at_rotation(eye: np.ndarray, target: np.ndarray, up: np.ndarray) -> np.ndarray:
        """
        World-to-camera rotation of a camera at ``eye`` looking at ``target``.

        Camera axes: X=right, Y=up, Z=forward (into the scene).
        """
        forward = target - eye
        forward = forward / np.linalg.norm(forward)

        right = np.cross(forward, up)
        if np.linalg.norm(right) < 1e-6:  # Handle degenerate case
            right = np.array([1.0, 0.0, 0.0])
        else:
            right = right / np.linalg.norm(right)

        up_corrected = np.cross(right, forward)
        up_corrected = up_corrected / np.linalg.norm(up_corrected)

        R = np.array([right, up_corrected, forward])
        if np.linalg.det(R) < 0:
            R[1] = -R[1]
        return R

    def get_camera_names(self) -> List[str]:
        return [self.name_pattern.format(i) for i in range(self.num_cameras)]
