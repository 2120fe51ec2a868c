"""
Pose sources: ground-truth camera readers and the estimated reconstruction loader.
"""

from .ground_truth import (
    GroundTruthReader,
    OpenMVGCameraReader,
    StrechaCameraReader,
    create_ground_truth_reader,
    decompose_projection,
    detect_camera_type,
    load_ground_truth,
    save_openmvg_camera,
    save_strecha_camera
)
from .reconstruction import load_reconstruction, save_sfm_data

__all__ = [
    'GroundTruthReader',
    'OpenMVGCameraReader',
    'StrechaCameraReader',
    'create_ground_truth_reader',
    'decompose_projection',
    'detect_camera_type',
    'load_ground_truth',
    'save_openmvg_camera',
    'save_strecha_camera',
    'load_reconstruction',
    'save_sfm_data'
]
