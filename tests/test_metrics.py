import numpy as np
import pytest

from evalquality.core.errors import AlignmentError
from evalquality.core.matching import match_correspondences
from evalquality.core.metrics import compute_errors, rotation_angle_deg
from evalquality.core.poses import SimilarityTransform

from conftest import make_pose, make_reconstruction, rotation_about


def test_identical_rotations_have_zero_error():
    R = rotation_about([0.3, -1.0, 2.0], 40.0)
    assert rotation_angle_deg(R, R) == pytest.approx(0.0, abs=1e-6)


def test_half_turn_is_180_degrees():
    R_gt = np.eye(3)
    R_est = np.diag([-1.0, -1.0, 1.0])  # 180 degrees about z
    assert rotation_angle_deg(R_gt, R_est) == pytest.approx(180.0)


@pytest.mark.parametrize("degrees", [1.0, 30.0, 90.0, 135.0])
def test_angle_about_shared_axis(degrees):
    R_gt = rotation_about([1.0, 1.0, 0.0], 10.0)
    R_est = rotation_about([1.0, 1.0, 0.0], 10.0 + degrees)
    assert rotation_angle_deg(R_gt, R_est) == pytest.approx(degrees, abs=1e-6)


def test_cosine_above_one_is_clamped():
    R_est = np.eye(3) * 1.0000001
    assert rotation_angle_deg(np.eye(3), R_est) == 0.0


def test_cosine_below_minus_one_is_clamped():
    R_est = np.diag([-1.0, -1.0, 1.0]) * 1.0000001
    assert rotation_angle_deg(np.eye(3), R_est) == pytest.approx(180.0)


def test_position_and_rotation_residuals(abc_ground_truth):
    offset_rotation = rotation_about([0.0, 0.0, 1.0], 5.0)
    reconstruction = make_reconstruction([
        ("a.png", make_pose([0.0, 0.0, 0.0])),
        ("b.png", make_pose([1.0, 0.0, 0.5])),
        ("c.png", make_pose([0.0, 1.0, 0.0], offset_rotation)),
    ])
    correspondences = match_correspondences(abc_ground_truth, reconstruction)

    records = compute_errors(correspondences, SimilarityTransform.identity())

    assert [r.key for r in records] == ['a', 'b', 'c']
    assert [r.position_error for r in records] == pytest.approx([0.0, 0.5, 0.0])
    assert [r.rotation_error_deg for r in records] == pytest.approx([0.0, 0.0, 5.0], abs=1e-6)


def test_scale_and_translation_do_not_change_orientation(abc_ground_truth):
    reconstruction = make_reconstruction([
        ("a.png", make_pose([0.0, 0.0, 0.0])),
        ("b.png", make_pose([1.0, 0.0, 0.0])),
    ])
    correspondences = match_correspondences(abc_ground_truth, reconstruction)
    transform = SimilarityTransform(scale=3.0, rotation=np.eye(3), translation=[1.0, 1.0, 1.0])

    records = compute_errors(correspondences, transform)

    assert all(r.rotation_error_deg == pytest.approx(0.0) for r in records)
    assert records[1].position_error == pytest.approx(np.linalg.norm([3.0, 1.0, 1.0]))


def test_transform_rotation_reorients_estimated_cameras(abc_ground_truth):
    R_s = rotation_about([0.0, 1.0, 0.0], 90.0)
    reconstruction = make_reconstruction([("a.png", make_pose([0.0, 0.0, 0.0], R_s))])
    correspondences = match_correspondences(abc_ground_truth, reconstruction)

    aligned = compute_errors(correspondences, SimilarityTransform(1.0, R_s, np.zeros(3)))
    unaligned = compute_errors(correspondences, SimilarityTransform.identity())

    assert aligned[0].rotation_error_deg == pytest.approx(0.0, abs=1e-6)
    assert unaligned[0].rotation_error_deg == pytest.approx(90.0)


def test_missing_transform_raises(abc_ground_truth):
    reconstruction = make_reconstruction([("a.png", make_pose([0.0, 0.0, 0.0]))])
    correspondences = match_correspondences(abc_ground_truth, reconstruction)

    with pytest.raises(AlignmentError):
        compute_errors(correspondences, None)
