import numpy as np
import pytest

from evalquality.config import load_config
from evalquality.core.errors import ConfigurationError
from evalquality.core.poses import SimilarityTransform
from evalquality.synthetic import CameraGenerator, perturb_trajectory, write_dataset

from conftest import make_pose


def test_default_config():
    cfg = load_config()

    assert cfg.alignment.min_correspondences == 3
    assert cfg.loading.num_workers == 1
    assert cfg.report.filename == 'ExternalCalib_Report.html'


def test_user_file_and_overrides(tmp_path):
    user = tmp_path / 'user.yaml'
    user.write_text("report:\n  title: Fountain\nloading:\n  num_workers: 2\n")

    cfg = load_config(user, ['loading.num_workers=8'])

    assert cfg.report.title == 'Fountain'
    assert cfg.report.histogram_bins == 20
    assert cfg.loading.num_workers == 8


def test_missing_user_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / 'absent.yaml')


@pytest.mark.parametrize("trajectory", ['circular', 'arc', 'spiral', 'random', 'linear'])
def test_generated_cameras_have_proper_rotations(trajectory):
    cameras = CameraGenerator({'trajectory': trajectory, 'num_cameras': 7}).generate_cameras()

    assert [c.key for c in cameras] == [f"{i:04d}" for i in range(7)]
    assert all(c.pose.is_valid() for c in cameras)


def test_unknown_trajectory():
    with pytest.raises(ValueError):
        CameraGenerator({'trajectory': 'zigzag'}).generate_cameras()


def test_perturbation_layout():
    cameras = CameraGenerator({'num_cameras': 5}).generate_cameras()
    reconstruction = perturb_trajectory(cameras, SimilarityTransform.identity(),
                                        missing_keys=['0001'], unregistered_keys=['0002'])

    assert [v.image_path for v in reconstruction.views] == [
        'images/0000.png', 'images/0002.png', 'images/0003.png', 'images/0004.png']
    assert reconstruction.num_posed_views == 3
    np.testing.assert_allclose(reconstruction.posed_centers()[0], cameras[0].pose.center)


def test_write_dataset_rejects_unknown_camera_type(tmp_path):
    cameras = [make_pose([0.0, 0.0, 0.0])]
    with pytest.raises(ValueError):
        write_dataset(tmp_path, cameras, None, cam_type=6)
