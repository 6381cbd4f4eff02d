"""
Condition evaluator for feature flag stages.

A stage is an ordered list of conditions. Evaluation walks the list in
declaration order and stops at the first condition that is not satisfied:
- Allow conditions fail when the predicate matches none of their patterns
- Deny conditions fail when the predicate matches any of their patterns
- Probability conditions fail when a fresh random draw is >= their value

Because evaluation stops early, a probability condition placed after a
failing allow/deny condition never consumes a random draw.
"""

import logging
import random
import re
from typing import Callable, Dict, Iterable, Optional, Sequence

from rotalabs_featureflags.core.config import (
    AllowCondition,
    Condition,
    DenyCondition,
    ProbabilityCondition,
)

logger = logging.getLogger(__name__)

RandomSource = Callable[[], float]


class PatternError(ValueError):
    """Raised when a condition pattern is not a valid regular expression."""

    def __init__(self, pattern: str, error: re.error):
        super().__init__(f"Invalid regex pattern {pattern!r}: {error}")
        self.pattern = pattern
        self.error = error


def compile_pattern(pattern: str, cache: Optional[Dict[str, "re.Pattern"]] = None) -> "re.Pattern":
    """
    Compile a regex pattern, optionally through a cache.

    Args:
        pattern: Regex pattern string
        cache: Mapping of already compiled patterns to reuse and fill

    Returns:
        Compiled pattern

    Raises:
        PatternError: If the pattern does not compile
    """
    if cache is not None and pattern in cache:
        return cache[pattern]

    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise PatternError(pattern, e) from e

    if cache is not None:
        cache[pattern] = compiled
    return compiled


def matches_any(
    predicate: str,
    patterns: Iterable[str],
    cache: Optional[Dict[str, "re.Pattern"]] = None,
) -> bool:
    """
    Test whether the predicate matches at least one pattern.

    Patterns are searched anywhere in the predicate; anchor them with
    ``^...$`` for an exact match. Matching is case-sensitive.

    Examples:
        >>> matches_any("storage-dev/master", ["compute", "storage.*"])
        True
        >>> matches_any("storage-dev/master", ["^dev"])
        False
    """
    for pattern in patterns:
        if compile_pattern(pattern, cache).search(predicate):
            return True
    return False


class ConditionEvaluator:
    """
    Evaluates a stage's ordered condition list against a predicate.

    The random source consulted by probability conditions is injected so
    that callers can script draws and count calls.

    Examples:
        >>> evaluator = ConditionEvaluator(random_source=lambda: 0.5)
        >>> conditions = [AllowCondition(("^prod/",)), ProbabilityCondition(0.75)]
        >>> evaluator.evaluate(conditions, "prod/api")
        True
        >>> evaluator.evaluate(conditions, "dev/api")
        False
    """

    def __init__(self, random_source: Optional[RandomSource] = None):
        """
        Initialize the evaluator.

        Args:
            random_source: Callable returning a float in [0, 1); defaults to
                ``random.random``
        """
        self.random_source: RandomSource = random_source or random.random

        # Regex cache shared by every allow/deny list this evaluator sees
        self._regex_cache: Dict[str, re.Pattern] = {}

        logger.debug("ConditionEvaluator initialized")

    def matches_any(self, predicate: str, patterns: Iterable[str]) -> bool:
        """Test the predicate against patterns using this evaluator's regex cache."""
        return matches_any(predicate, patterns, self._regex_cache)

    def evaluate(self, conditions: Sequence[Condition], predicate: str) -> bool:
        """
        Evaluate conditions in order, stopping at the first failure.

        Args:
            conditions: Ordered stage conditions
            predicate: Subject string under test

        Returns:
            True if every condition is satisfied, False otherwise

        Raises:
            PatternError: If an allow/deny pattern is invalid
            TypeError: If a condition is not one of the supported kinds
        """
        for index, condition in enumerate(conditions):
            if not self._evaluate_condition(condition, predicate):
                logger.debug(
                    "Condition failed",
                    extra={"index": index, "condition": type(condition).__name__, "predicate": predicate},
                )
                return False
        return True

    def _evaluate_condition(self, condition: Condition, predicate: str) -> bool:
        if isinstance(condition, AllowCondition):
            return self.matches_any(predicate, condition.patterns)

        elif isinstance(condition, DenyCondition):
            return not self.matches_any(predicate, condition.patterns)

        elif isinstance(condition, ProbabilityCondition):
            draw = self.random_source()
            return draw < condition.value

        raise TypeError(f"Unsupported condition type: {type(condition).__name__}")
