"""
Evaluation of SfM camera trajectories against ground truth.
"""

__version__ = "0.1.0"
