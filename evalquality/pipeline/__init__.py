"""
Quality evaluation pipeline.
"""

from .evaluation import EvaluationResult, QualityEvaluator

__all__ = [
    'EvaluationResult',
    'QualityEvaluator'
]
