import numpy as np
import pytest

from evalquality.core.alignment import SimilarityAligner, estimate_similarity
from evalquality.core.errors import AlignmentError
from evalquality.core.matching import match_correspondences
from evalquality.core.metrics import compute_errors
from evalquality.synthetic import random_similarity

from conftest import rotation_about

POINTS = np.array([
    [0.0, 0.0, 0.0],
    [1.0, 0.0, 0.0],
    [0.0, 2.0, 0.0],
    [0.0, 0.0, 3.0],
    [1.0, 1.0, 1.0],
    [-2.0, 0.5, 1.5],
])


def test_identity_alignment():
    transform = estimate_similarity(POINTS, POINTS)

    assert transform.scale == pytest.approx(1.0)
    np.testing.assert_allclose(transform.rotation, np.eye(3), atol=1e-10)
    np.testing.assert_allclose(transform.translation, np.zeros(3), atol=1e-10)


@pytest.mark.parametrize("seed", [0, 7, 123])
def test_recovers_known_similarity(seed):
    expected = random_similarity(seed=seed)
    target = expected.apply(POINTS)

    transform = estimate_similarity(POINTS, target)

    assert transform.scale == pytest.approx(expected.scale, rel=1e-9)
    np.testing.assert_allclose(transform.rotation, expected.rotation, atol=1e-9)
    np.testing.assert_allclose(transform.translation, expected.translation, atol=1e-8)
    np.testing.assert_allclose(transform.apply(POINTS), target, atol=1e-8)


def test_three_points_in_general_position_are_enough():
    source = POINTS[:3]
    rotation = rotation_about([0.0, 0.0, 1.0], 90.0)
    target = 0.5 * source @ rotation.T + np.array([1.0, 2.0, 3.0])

    transform = estimate_similarity(source, target)

    assert transform.scale == pytest.approx(0.5)
    np.testing.assert_allclose(transform.rotation, rotation, atol=1e-10)


def test_mirrored_points_still_give_a_proper_rotation():
    mirrored = POINTS * np.array([1.0, 1.0, -1.0])

    transform = estimate_similarity(POINTS, mirrored)

    assert np.linalg.det(transform.rotation) == pytest.approx(1.0)
    np.testing.assert_allclose(transform.rotation @ transform.rotation.T, np.eye(3), atol=1e-10)


@pytest.mark.parametrize("n_points", [0, 1, 2])
def test_fewer_than_three_points_rejected(n_points):
    with pytest.raises(AlignmentError) as excinfo:
        estimate_similarity(POINTS[:n_points], POINTS[:n_points])

    assert excinfo.value.num_correspondences == n_points


def test_collinear_points_rejected():
    line = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [2.0, 2.0, 2.0], [5.0, 5.0, 5.0]])

    with pytest.raises(AlignmentError, match="collinear"):
        estimate_similarity(line, line * 2.0)


def test_coincident_points_rejected():
    same = np.tile([1.0, 2.0, 3.0], (4, 1))

    with pytest.raises(AlignmentError):
        estimate_similarity(same, same)


def test_shape_mismatch_rejected():
    with pytest.raises(AlignmentError):
        estimate_similarity(POINTS, POINTS[:4])


def test_noisy_alignment_close_to_truth():
    rng = np.random.default_rng(3)
    expected = random_similarity(seed=11)
    source = rng.uniform(-5, 5, (50, 3))
    target = expected.apply(source) + rng.normal(0.0, 1e-3, (50, 3))

    transform = estimate_similarity(source, target)

    assert transform.scale == pytest.approx(expected.scale, rel=1e-3)
    np.testing.assert_allclose(transform.rotation, expected.rotation, atol=1e-3)


def test_aligner_on_synthetic_trajectory(spiral_ground_truth, spiral_reconstruction, known_transform):
    correspondences = match_correspondences(spiral_ground_truth, spiral_reconstruction)

    transform = SimilarityAligner().align(correspondences)
    records = compute_errors(correspondences, transform)

    assert transform.scale == pytest.approx(known_transform.scale, rel=1e-9)
    assert max(r.position_error for r in records) < 1e-8
    assert max(r.rotation_error_deg for r in records) < 1e-5


def test_aligner_reads_min_correspondences_from_config(spiral_ground_truth, spiral_reconstruction):
    correspondences = match_correspondences(spiral_ground_truth, spiral_reconstruction)
    aligner = SimilarityAligner({'alignment': {'min_correspondences': 20}})

    with pytest.raises(AlignmentError) as excinfo:
        aligner.align(correspondences)

    assert excinfo.value.num_correspondences == 12
