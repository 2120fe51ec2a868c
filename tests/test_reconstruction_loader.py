import json

import numpy as np
import pytest

from evalquality.core.errors import FormatError
from evalquality.readers import load_reconstruction, save_sfm_data
from evalquality.readers.reconstruction import UNDEFINED_INDEX

from conftest import make_pose, make_reconstruction, rotation_about


def _sfm_view(view_id, filename, id_pose, local_path=''):
    return {
        'key': view_id,
        'value': {
            'polymorphic_id': 1073741824,
            'ptr_wrapper': {
                'id': 2147483649 + view_id,
                'data': {
                    'local_path': local_path,
                    'filename': filename,
                    'width': 640,
                    'height': 480,
                    'id_view': view_id,
                    'id_intrinsic': 0,
                    'id_pose': id_pose
                }
            }
        }
    }


def test_openmvg_sfm_data(tmp_path):
    R = rotation_about([0.0, 1.0, 0.0], 20.0)
    data = {
        'sfm_data_version': '0.3',
        'root_path': '/data/images',
        'views': [
            _sfm_view(0, '0000.png', 0),
            _sfm_view(1, '0001.png', UNDEFINED_INDEX),
            _sfm_view(2, '0002.png', 2),
        ],
        'intrinsics': [],
        'extrinsics': [
            {'key': 0, 'value': {'rotation': np.eye(3).tolist(), 'center': [0.0, 0.0, 0.0]}},
            {'key': 2, 'value': {'rotation': R.tolist(), 'center': [1.0, 2.0, 3.0]}},
        ],
        'structure': [],
        'control_points': []
    }
    path = tmp_path / 'sfm_data.json'
    path.write_text(json.dumps(data))

    reconstruction = load_reconstruction(path)

    assert [v.image_path for v in reconstruction.views] == ['0000.png', '0001.png', '0002.png']
    assert reconstruction.num_posed_views == 2
    assert reconstruction.get_pose(reconstruction.views[1]) is None
    pose = reconstruction.get_pose(reconstruction.views[2])
    np.testing.assert_allclose(pose.rotation, R)
    np.testing.assert_allclose(pose.center, [1.0, 2.0, 3.0])


def test_directory_resolves_to_container(tmp_path):
    reconstruction = make_reconstruction([
        ("a.png", make_pose([0.0, 0.0, 0.0])),
        ("b.png", None),
    ])
    save_sfm_data(reconstruction, tmp_path / 'sfm_data.json')

    loaded = load_reconstruction(tmp_path)

    assert [v.image_path for v in loaded.views] == ['a.png', 'b.png']
    assert loaded.num_posed_views == 1
    assert loaded.source == tmp_path / 'sfm_data.json'


def test_camera_poses_list(tmp_path):
    pose = make_pose([1.0, 0.0, -1.0], rotation_about([1.0, 0.0, 0.0], 15.0))
    entries = [
        {'camera_id': 0, 'R': pose.rotation.tolist(), 't': pose.translation.tolist(),
         'image_path': 'frames/0000.png'},
        {'camera_id': 1, 'R': np.eye(3).tolist(), 't': [0.0, 0.0, 0.0], 'image_path': 'frames/0001.png'},
    ]
    path = tmp_path / 'camera_poses.json'
    path.write_text(json.dumps(entries))

    reconstruction = load_reconstruction(path)

    assert reconstruction.num_posed_views == 2
    np.testing.assert_allclose(reconstruction.get_pose(reconstruction.views[0]).center, pose.center, atol=1e-12)


def test_camera_poses_dict_keyed_by_image(tmp_path):
    entries = {
        'img_a.jpg': {'rotation_matrix': np.eye(3).tolist(), 'translation': [0.0, 0.0, -2.0]},
        'img_b.jpg': {'rotation_matrix': np.eye(3).tolist(), 'translation': [1.0, 0.0, 0.0]},
    }
    path = tmp_path / 'camera_poses.json'
    path.write_text(json.dumps(entries))

    reconstruction = load_reconstruction(tmp_path)

    assert [v.image_path for v in reconstruction.views] == ['img_a.jpg', 'img_b.jpg']
    np.testing.assert_allclose(reconstruction.get_pose(reconstruction.views[0]).center, [0.0, 0.0, 2.0])


def test_missing_container(tmp_path):
    with pytest.raises(FormatError, match="cannot be read"):
        load_reconstruction(tmp_path / 'absent.json')


def test_empty_directory(tmp_path):
    with pytest.raises(FormatError, match="No reconstruction container"):
        load_reconstruction(tmp_path)


def test_invalid_json(tmp_path):
    path = tmp_path / 'sfm_data.json'
    path.write_text('{"views": [')

    with pytest.raises(FormatError):
        load_reconstruction(path)


def test_unsupported_container_type(tmp_path):
    path = tmp_path / 'sfm_data.bin'
    path.write_bytes(b'\x00\x01')

    with pytest.raises(FormatError, match="Only JSON"):
        load_reconstruction(path)


def test_corrupt_extrinsics(tmp_path):
    data = {
        'views': [_sfm_view(0, 'a.png', 0)],
        'extrinsics': [{'key': 0, 'value': {'rotation': [[1.0, 0.0], [0.0, 1.0]], 'center': [0.0, 0.0, 0.0]}}]
    }
    path = tmp_path / 'sfm_data.json'
    path.write_text(json.dumps(data))

    with pytest.raises(FormatError, match="Corrupt reconstruction container"):
        load_reconstruction(path)


def test_extrinsics_without_proper_rotation(tmp_path):
    data = {
        'views': [_sfm_view(0, 'a.png', 0)],
        'extrinsics': [{'key': 0, 'value': {'rotation': (2.0 * np.eye(3)).tolist(), 'center': [0.0, 0.0, 0.0]}}]
    }
    path = tmp_path / 'sfm_data.json'
    path.write_text(json.dumps(data))

    with pytest.raises(FormatError, match="not a proper rotation"):
        load_reconstruction(path)


def test_camera_poses_without_proper_rotation(tmp_path):
    entries = [{'camera_id': 0, 'R': np.diag([1.0, -1.0, 1.0]).tolist(), 't': [0.0, 0.0, 0.0], 'image_path': 'a.png'}]
    path = tmp_path / 'camera_poses.json'
    path.write_text(json.dumps(entries))

    with pytest.raises(FormatError):
        load_reconstruction(path)
