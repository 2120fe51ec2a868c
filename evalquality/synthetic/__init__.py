"""
Synthetic data generation for evaluation of the quality metrics.

This module provides tools to generate camera trajectories with known ground
truth and reconstructions of them related by a known similarity transform.
"""

from .camera_generator import CameraGenerator
from .dataset import GT_SUFFIXES, perturb_trajectory, random_similarity, write_dataset

__all__ = [
    'CameraGenerator',
    'GT_SUFFIXES',
    'perturb_trajectory',
    'random_similarity',
    'write_dataset'
]
