"""
Loading of the estimated reconstruction (views and camera poses).

Supported containers:
    - openMVG ``sfm_data.json`` (views, extrinsics with rotation/center)
    - ``camera_poses.json`` as written by reconstruction pipelines, either a
      list of ``{camera_id, R, t, image_path}`` entries or a dict keyed by
      image name with ``rotation_matrix``/``translation`` entries
"""

import json
import numpy as np
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

from ..core.errors import FormatError
from ..core.poses import CameraPose, EstimatedView, Reconstruction

logger = logging.getLogger(__name__)

UNDEFINED_INDEX = 4294967295

CONTAINER_NAMES = ['sfm_data.json', 'camera_poses.json', 'data/camera_poses.json']


def find_container(path: Union[str, Path]) -> Path:
    """Resolve a reconstruction directory to the container file it holds."""
    path = Path(path)
    if path.is_file():
        return path
    if not path.is_dir():
        raise FormatError("The input reconstruction cannot be read", str(path))

    for name in CONTAINER_NAMES:
        candidate = path / name
        if candidate.is_file():
            return candidate

    raise FormatError(
        f"No reconstruction container found (looked for {', '.join(CONTAINER_NAMES)})", str(path))


def load_reconstruction(path: Union[str, Path]) -> Reconstruction:
    """
    Load the views and poses of an estimated reconstruction.

    Args:
        path: Container file or directory holding one

    Raises:
        FormatError: Missing, unreadable or structurally invalid container
    """
    container = find_container(path)

    if container.suffix.lower() != '.json':
        raise FormatError("Only JSON reconstruction containers are supported", str(container))

    try:
        with open(container, 'r') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise FormatError(f"The input reconstruction cannot be read: {e}", str(container)) from e

    try:
        if isinstance(data, dict) and 'views' in data:
            reconstruction = _parse_sfm_data(data, container)
        elif isinstance(data, (list, dict)):
            reconstruction = _parse_camera_poses(data, container)
        else:
            raise FormatError(f"Unexpected reconstruction data type {type(data).__name__}", str(container))
    except (KeyError, TypeError, ValueError) as e:
        raise FormatError(f"Corrupt reconstruction container: {e!r}", str(container)) from e

    logger.info(
        f"Loaded reconstruction from {container}: {len(reconstruction.views)} views, "
        f"{reconstruction.num_posed_views} with a pose"
    )
    return reconstruction


def _parse_pose(rotation: Any, center: Any) -> CameraPose:
    rotation = np.asarray(rotation, dtype=np.float64)
    center = np.asarray(center, dtype=np.float64).reshape(-1)
    if rotation.shape != (3, 3) or center.shape != (3,):
        raise ValueError(f"invalid pose shapes {rotation.shape} / {center.shape}")
    return CameraPose(rotation=rotation, center=center)


def _parse_sfm_data(data: Dict[str, Any], container: Path) -> Reconstruction:
    """openMVG SfM_Data serialized with cereal's JSON archive."""
    poses: Dict[int, CameraPose] = {}
    for entry in data.get('extrinsics', []):
        value = entry['value']
        pose = _parse_pose(value['rotation'], value['center'])
        pose.validate(container)
        poses[int(entry['key'])] = pose

    views: List[EstimatedView] = []
    for entry in data['views']:
        value = entry['value']
        # Polymorphic views store their payload under ptr_wrapper/data
        view_data = value.get('ptr_wrapper', {}).get('data', value)

        image_path = view_data['filename']
        local_path = view_data.get('local_path', '')
        if local_path:
            image_path = str(Path(local_path) / image_path)

        pose_id = view_data.get('id_pose', UNDEFINED_INDEX)
        pose_id = None if pose_id is None or int(pose_id) == UNDEFINED_INDEX else int(pose_id)

        views.append(EstimatedView(
            view_id=int(view_data.get('id_view', entry['key'])),
            image_path=image_path,
            pose_id=pose_id
        ))

    return Reconstruction(views=views, poses=poses, source=container)


def _parse_camera_poses(data: Union[List[Any], Dict[str, Any]], container: Path) -> Reconstruction:
    """Pipeline camera_poses.json, list or dict form."""
    if isinstance(data, dict):
        entries = []
        for name, pose_entry in data.items():
            if not isinstance(pose_entry, dict):
                logger.warning("Pose entry for %s is not a dict (type=%s), skipping", name, type(pose_entry))
                continue
            entries.append(dict(pose_entry, image_name=pose_entry.get('image_name', name)))
    else:
        entries = data

    views: List[EstimatedView] = []
    poses: Dict[int, CameraPose] = {}

    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"pose list entry {index} is not a dict")

        pose_id = int(entry.get('camera_id', index))
        image_path = entry.get('image_path') or entry.get('image_name')
        if not image_path:
            logger.warning("Pose entry %d has no image name and cannot be matched", pose_id)
            image_path = ''

        rotation = entry.get('rotation_matrix', entry.get('R'))
        translation = entry.get('translation', entry.get('t'))
        if 'center' in entry and rotation is not None:
            pose = _parse_pose(rotation, entry['center'])
        elif rotation is not None and translation is not None:
            R = np.asarray(rotation, dtype=np.float64)
            if R.shape != (3, 3):
                raise ValueError(f"invalid rotation shape {R.shape} for camera {pose_id}")
            pose = CameraPose.from_extrinsics(R, translation)
        else:
            raise ValueError(f"pose entry {pose_id} missing rotation/translation keys: {list(entry.keys())}")
        pose.validate(container)

        if pose_id in poses:
            logger.warning("Duplicate pose entry for camera %d encountered, overwriting previous value", pose_id)
        poses[pose_id] = pose
        views.append(EstimatedView(view_id=pose_id, image_path=str(image_path), pose_id=pose_id))

    return Reconstruction(views=views, poses=poses, source=container)


def save_sfm_data(reconstruction: Reconstruction, output_path: Path, root_path: str = '') -> Path:
    """Write views and poses as an openMVG-style sfm_data.json."""
    views = []
    for view in reconstruction.views:
        views.append({
            'key': view.view_id,
            'value': {
                'polymorphic_id': 1073741824,
                'ptr_wrapper': {
                    'id': 2147483649 + view.view_id,
                    'data': {
                        'local_path': '',
                        'filename': view.image_path,
                        'id_view': view.view_id,
                        'id_intrinsic': 0,
                        'id_pose': UNDEFINED_INDEX if view.pose_id is None else view.pose_id
                    }
                }
            }
        })

    extrinsics = [
        {'key': pose_id, 'value': {'rotation': pose.rotation.tolist(), 'center': pose.center.tolist()}}
        for pose_id, pose in reconstruction.poses.items()
    ]

    data = {
        'sfm_data_version': '0.3',
        'root_path': root_path,
        'views': views,
        'intrinsics': [],
        'extrinsics': extrinsics,
        'structure': [],
        'control_points': []
    }

    with open(output_path, 'w') as f:
        json.dump(data, f, indent=2)

    logger.info(f"Reconstruction saved to {output_path}")
    return output_path
