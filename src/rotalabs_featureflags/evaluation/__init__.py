"""
Evaluation module for rotalabs-featureflags.

This module provides ordered, short-circuiting evaluation of stage conditions.
"""

from rotalabs_featureflags.evaluation.evaluator import (
    ConditionEvaluator,
    PatternError,
    RandomSource,
    matches_any,
)

__all__ = ["ConditionEvaluator", "PatternError", "RandomSource", "matches_any"]
