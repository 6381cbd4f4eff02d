"""Feature flag engine.

This module resolves features to their stages and evaluates them for a
predicate, one feature at a time or for every declared feature at once.
"""

import logging
from typing import Dict, Optional

from rotalabs_featureflags.core.config import FeatureFlagConfig
from rotalabs_featureflags.evaluation.evaluator import ConditionEvaluator, RandomSource

logger = logging.getLogger(__name__)


class FeatureFlagEngine:
    """Evaluates features of one configuration against predicates.

    A feature is enabled when any of its stages passes. All stages of a
    feature are evaluated even after one passes, so the number of random
    draws per call depends only on the configuration and the predicate.

    Uses __slots__ for memory efficiency.

    Attributes:
        config: Feature flag configuration.
        evaluator: Condition evaluator used for every stage.
    """

    __slots__ = ("config", "evaluator")

    def __init__(self, config: FeatureFlagConfig, random_source: Optional[RandomSource] = None):
        """Initialize feature flag engine.

        Args:
            config: Feature flag configuration.
            random_source: Callable returning a float in [0, 1) for
                probability conditions.
        """
        self.config = config
        self.evaluator = ConditionEvaluator(random_source)

        logger.debug(f"Initialized FeatureFlagEngine: {len(config.stages)} stages, {len(config.features)} features")

    def is_feature_enabled(self, feature_name: str, predicate: str) -> bool:
        """Decide whether a feature is enabled for a predicate.

        Unknown features and features without stages are disabled. Errors
        raised while evaluating the feature are logged and the feature is
        reported disabled.

        Args:
            feature_name: Name of the feature.
            predicate: Subject string, e.g. a repository/branch identifier.

        Returns:
            True if at least one of the feature's stages passes.
        """
        feature = self.config.features.get(feature_name)
        if feature is None:
            logger.debug(f"Feature {feature_name} is not declared")
            return False
        if not feature.stages:
            logger.debug(f"Feature {feature_name} has no stages")
            return False

        try:
            enabled = False
            for stage_name in feature.stages:
                conditions = self.config.stages[stage_name]
                stage_passed = self.evaluator.evaluate(conditions, predicate)
                logger.debug(f"Stage {stage_name} for feature {feature_name}: {stage_passed}")
                enabled = stage_passed or enabled
        except Exception as e:
            logger.error(
                f"Error evaluating feature {feature_name}: {e}",
                extra={"feature": feature_name, "predicate": predicate},
                exc_info=True,
            )
            return False

        return enabled

    def evaluate_all(self, predicate: str) -> Dict[str, bool]:
        """Evaluate every declared feature for a predicate.

        Args:
            predicate: Subject string.

        Returns:
            Mapping of feature name to enabled state, in declaration order.
        """
        results = {name: self.is_feature_enabled(name, predicate) for name in self.config.features}
        logger.info(f"Evaluated {len(results)} features for {predicate}: {sum(results.values())} enabled")
        return results


def is_feature_enabled(
    feature_name: str,
    predicate: str,
    config: FeatureFlagConfig,
    random_source: Optional[RandomSource] = None,
) -> bool:
    """Decide whether a single feature is enabled. See FeatureFlagEngine.is_feature_enabled."""
    return FeatureFlagEngine(config, random_source).is_feature_enabled(feature_name, predicate)


def evaluate_all(
    predicate: str,
    config: FeatureFlagConfig,
    random_source: Optional[RandomSource] = None,
) -> Dict[str, bool]:
    """Evaluate every declared feature. See FeatureFlagEngine.evaluate_all."""
    return FeatureFlagEngine(config, random_source).evaluate_all(predicate)
