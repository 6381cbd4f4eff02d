"""Core module for rotalabs-featureflags.

This module provides the configuration model and the engine that resolves
features to stages and evaluates them.
"""

from rotalabs_featureflags.core.config import (
    AllowCondition,
    Condition,
    ConfigError,
    DenyCondition,
    FeatureConfig,
    FeatureFlagConfig,
    ProbabilityCondition,
    check_stage_references,
    condition_from_dict,
)
from rotalabs_featureflags.core.engine import FeatureFlagEngine, evaluate_all, is_feature_enabled

__all__ = [
    "FeatureFlagEngine",
    "FeatureFlagConfig",
    "FeatureConfig",
    "Condition",
    "AllowCondition",
    "DenyCondition",
    "ProbabilityCondition",
    "ConfigError",
    "condition_from_dict",
    "check_stage_references",
    "is_feature_enabled",
    "evaluate_all",
]
