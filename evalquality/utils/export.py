"""
Export of camera centers and evaluation results for inspection.
"""

import json
import numpy as np
from datetime import datetime
from pathlib import Path
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)

GT_COLOR = (0, 255, 0)
COMPUTED_COLOR = (255, 0, 0)


def write_ply(points_3d: np.ndarray, output_path: Union[str, Path], colors: Optional[np.ndarray] = None) -> Path:
    """
    Export points to an ASCII PLY file.

    Args:
        points_3d: [N, 3] array of 3D points
        output_path: Destination file
        colors: [N, 3] array of RGB colors in 0-255, optional

    Returns:
        Path to the written file
    """
    output_path = Path(output_path)
    points_3d = np.asarray(points_3d, dtype=np.float64).reshape(-1, 3)
    if colors is not None:
        colors = np.asarray(colors).reshape(-1, 3)
        if len(colors) != len(points_3d):
            raise ValueError(f"Got {len(colors)} colors for {len(points_3d)} points")

    with open(output_path, 'w') as f:
        # PLY header
        f.write("ply\n")
        f.write("format ascii 1.0\n")
        f.write(f"element vertex {len(points_3d)}\n")
        f.write("property float x\n")
        f.write("property float y\n")
        f.write("property float z\n")

        if colors is not None:
            f.write("property uchar red\n")
            f.write("property uchar green\n")
            f.write("property uchar blue\n")

        f.write("end_header\n")

        for i, point in enumerate(points_3d):
            if colors is not None:
                r, g, b = np.clip(colors[i], 0, 255).astype(int)
                f.write(f"{point[0]:.6f} {point[1]:.6f} {point[2]:.6f} {r} {g} {b}\n")
            else:
                f.write(f"{point[0]:.6f} {point[1]:.6f} {point[2]:.6f}\n")

    logger.info(f"Exported {len(points_3d)} points to {output_path}")
    return output_path


def write_registered_ply(gt_centers: np.ndarray, aligned_centers: np.ndarray, output_path: Union[str, Path]) -> Path:
    """Ground-truth centers (green) and aligned estimated centers (red) in one cloud."""
    gt_centers = np.asarray(gt_centers).reshape(-1, 3)
    aligned_centers = np.asarray(aligned_centers).reshape(-1, 3)
    points = np.vstack([gt_centers, aligned_centers])
    colors = np.vstack([
        np.tile(GT_COLOR, (len(gt_centers), 1)),
        np.tile(COMPUTED_COLOR, (len(aligned_centers), 1))
    ])
    return write_ply(points, output_path, colors)


def read_ply(input_path: Union[str, Path]) -> np.ndarray:
    """Load the vertex positions of an ASCII PLY file."""
    with open(input_path, 'r') as f:
        if f.readline().strip() != 'ply':
            raise ValueError(f"Not a valid PLY file: {input_path}")

        vertex_count = 0
        while True:
            line = f.readline()
            if not line:
                raise ValueError(f"Truncated PLY header: {input_path}")
            line = line.strip()
            if line == 'end_header':
                break
            if line.startswith('element vertex'):
                vertex_count = int(line.split()[-1])

        points = [[float(v) for v in f.readline().split()[:3]] for _ in range(vertex_count)]

    return np.array(points, dtype=np.float64).reshape(-1, 3)


def save_json_report(result, output_path: Union[str, Path]) -> Path:
    """Save statistics, transform and per-camera residuals as JSON."""
    output_path = Path(output_path)
    report = {
        'timestamp': datetime.now().isoformat(),
        'ground_truth': str(result.ground_truth_path) if result.ground_truth_path else None,
        'reconstruction': str(result.reconstruction_path) if result.reconstruction_path else None,
        'num_ground_truth_cameras': result.num_ground_truth_cameras,
        'num_posed_views': result.num_posed_views,
        'num_correspondences': len(result.records),
        'alignment': result.transform.to_dict(),
        'statistics': {
            'position': result.statistics.position.to_dict(),
            'rotation_deg': result.statistics.rotation.to_dict()
        },
        'per_camera': [
            {
                'key': record.key,
                'position_error': record.position_error,
                'rotation_error_deg': record.rotation_error_deg
            }
            for record in result.records
        ]
    }

    with open(output_path, 'w') as f:
        json.dump(report, f, indent=2, default=str)

    logger.info(f"Evaluation report saved to {output_path}")
    return output_path
