import numpy as np
import pytest
from scipy.spatial.transform import Rotation as ScipyRotation

from evalquality.core.poses import CameraPose, EstimatedView, IdentifiedPose, Reconstruction, SimilarityTransform
from evalquality.synthetic import CameraGenerator, perturb_trajectory


def rotation_about(axis, degrees):
    axis = np.asarray(axis, dtype=np.float64)
    return ScipyRotation.from_rotvec(np.radians(degrees) * axis / np.linalg.norm(axis)).as_matrix()


def make_pose(center, rotation=None):
    return CameraPose(rotation=np.eye(3) if rotation is None else rotation, center=center)


def make_reconstruction(entries):
    """Reconstruction from (image_path, pose or None) pairs, in order."""
    views = []
    poses = {}
    for view_id, (image_path, pose) in enumerate(entries):
        if pose is None:
            views.append(EstimatedView(view_id=view_id, image_path=image_path, pose_id=None))
        else:
            poses[view_id] = pose
            views.append(EstimatedView(view_id=view_id, image_path=image_path, pose_id=view_id))
    return Reconstruction(views=views, poses=poses)


@pytest.fixture
def spiral_ground_truth():
    return CameraGenerator({'trajectory': 'spiral', 'num_cameras': 12, 'radius': 4.0}).generate_cameras()


@pytest.fixture
def known_transform():
    return SimilarityTransform(
        scale=2.5,
        rotation=rotation_about([1.0, 2.0, -0.5], 73.0),
        translation=np.array([5.0, -3.0, 0.5])
    )


@pytest.fixture
def spiral_reconstruction(spiral_ground_truth, known_transform):
    return perturb_trajectory(spiral_ground_truth, known_transform)


@pytest.fixture
def abc_ground_truth():
    return [
        IdentifiedPose(key='a', pose=make_pose([0.0, 0.0, 0.0])),
        IdentifiedPose(key='b', pose=make_pose([1.0, 0.0, 0.0])),
        IdentifiedPose(key='c', pose=make_pose([0.0, 1.0, 0.0])),
    ]
