"""
Synthetic evaluation datasets: a ground-truth trajectory and a reconstruction
of it expressed in another similarity frame, with optional noise.
"""

import numpy as np
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple
import logging

from scipy.spatial.transform import Rotation as ScipyRotation

from ..core.poses import CameraPose, EstimatedView, IdentifiedPose, Reconstruction, SimilarityTransform
from ..readers.ground_truth import save_openmvg_camera, save_strecha_camera
from ..readers.reconstruction import save_sfm_data

logger = logging.getLogger(__name__)

GT_SUFFIXES = {
    1: 'bin',
    2: 'png.camera',
    3: 'jpg.camera',
    4: 'PNG.camera',
    5: 'JPG.camera',
}


def random_similarity(seed: Optional[int] = None,
                      scale_range: Tuple[float, float] = (0.2, 5.0),
                      translation_range: float = 10.0) -> SimilarityTransform:
    """Random similarity transform with a uniformly sampled rotation."""
    rng = np.random.default_rng(seed)
    return SimilarityTransform(
        scale=rng.uniform(*scale_range),
        rotation=ScipyRotation.random(None, rng).as_matrix(),
        translation=rng.uniform(-translation_range, translation_range, 3)
    )


def perturb_trajectory(ground_truth: Sequence[IdentifiedPose],
                       transform: SimilarityTransform,
                       position_noise: float = 0.0,
                       rotation_noise_deg: float = 0.0,
                       missing_keys: Iterable[str] = (),
                       unregistered_keys: Iterable[str] = (),
                       image_extension: str = '.png',
                       seed: Optional[int] = None) -> Reconstruction:
    """
    Build a reconstruction whose alignment onto ``ground_truth`` is ``transform``.

    Args:
        ground_truth: Reference trajectory
        transform: Similarity mapping the generated reconstruction onto ground truth
        position_noise: Std-dev of the Gaussian noise on centers (reconstruction units)
        rotation_noise_deg: Magnitude of a random rotation applied to each camera
        missing_keys: Cameras left out of the reconstruction entirely
        unregistered_keys: Cameras present as views but without a pose
        image_extension: Extension of the generated image names
        seed: Random seed of the noise

    Returns:
        Reconstruction with one view per kept camera, in ground-truth order
    """
    rng = np.random.default_rng(seed)
    inverse = transform.inverse()
    missing = set(missing_keys)
    unregistered = set(unregistered_keys)

    views: List[EstimatedView] = []
    poses = {}

    for view_id, entry in enumerate(ground_truth):
        if entry.key in missing:
            continue

        image_path = f"images/{entry.key}{image_extension}"
        if entry.key in unregistered:
            views.append(EstimatedView(view_id=view_id, image_path=image_path, pose_id=None))
            continue

        center = inverse.apply(entry.pose.center)
        # Aligned rotation is R_est @ R^T, so R_est = R_gt @ R
        rotation = entry.pose.rotation @ transform.rotation

        if position_noise > 0:
            center = center + rng.normal(0.0, position_noise, 3)
        if rotation_noise_deg > 0:
            axis = rng.normal(size=3)
            axis /= np.linalg.norm(axis)
            noise = ScipyRotation.from_rotvec(np.radians(rotation_noise_deg) * axis).as_matrix()
            rotation = noise @ rotation

        poses[view_id] = CameraPose(rotation=rotation, center=center)
        views.append(EstimatedView(view_id=view_id, image_path=image_path, pose_id=view_id))

    logger.info(f"Generated reconstruction with {len(views)} views, {len(poses)} posed")
    return Reconstruction(views=views, poses=poses)


def write_dataset(output_dir: Path,
                  ground_truth: Sequence[IdentifiedPose],
                  reconstruction: Reconstruction,
                  cam_type: int = 2) -> Tuple[Path, Path]:
    """
    Write ground-truth camera files and ``sfm_data.json``.

    Layout:
        output_dir/gt/<key>.<suffix>
        output_dir/reconstruction/sfm_data.json

    Returns:
        (ground-truth directory, reconstruction container)
    """
    if cam_type not in GT_SUFFIXES:
        raise ValueError(f"Unknown camera type: {cam_type}")

    output_dir = Path(output_dir)
    gt_dir = output_dir / 'gt'
    recon_dir = output_dir / 'reconstruction'
    gt_dir.mkdir(parents=True, exist_ok=True)
    recon_dir.mkdir(parents=True, exist_ok=True)

    suffix = GT_SUFFIXES[cam_type]
    for entry in ground_truth:
        path = gt_dir / f"{entry.key}.{suffix}"
        if cam_type == 1:
            save_openmvg_camera(path, entry.pose)
        else:
            save_strecha_camera(path, entry.pose)

    sfm_data_path = save_sfm_data(reconstruction, recon_dir / 'sfm_data.json')
    logger.info(f"Wrote {len(ground_truth)} ground-truth cameras to {gt_dir}")
    return gt_dir, sfm_data_path
