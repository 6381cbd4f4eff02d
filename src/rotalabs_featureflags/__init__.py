"""
rotalabs-featureflags - Declarative feature flags evaluated against a predicate.

Features are mapped to rollout stages; a stage is an ordered list of allow,
deny and probability conditions. A feature is enabled for a predicate when
any of its stages passes.

https://rotalabs.ai
"""

__version__ = "0.1.0"

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
from rotalabs_featureflags.evaluation.evaluator import (
    ConditionEvaluator,
    PatternError,
    RandomSource,
    matches_any,
)
from rotalabs_featureflags.validation.validator import (
    ConfigValidator,
    confirm_config,
    load_config_from_file,
    load_schema,
)
from rotalabs_featureflags.output.writer import write_evaluated_features_files

__all__ = [
    # Version
    "__version__",
    # Core
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
    # Evaluation
    "ConditionEvaluator",
    "PatternError",
    "RandomSource",
    "matches_any",
    # Validation
    "ConfigValidator",
    "load_schema",
    "confirm_config",
    "load_config_from_file",
    # Output
    "write_evaluated_features_files",
]
