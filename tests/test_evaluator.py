"""Tests for the condition evaluator in rotalabs-featureflags.

Tests cover:
- Pattern matching (unanchored search, anchoring, case sensitivity)
- Allow, deny and probability conditions
- Short-circuit evaluation and random draw counts
- Probability boundary
- Error propagation for invalid patterns and unsupported conditions
"""

from unittest.mock import MagicMock

import pytest

from rotalabs_featureflags.core.config import (
    AllowCondition,
    DenyCondition,
    ProbabilityCondition,
)
from rotalabs_featureflags.evaluation.evaluator import (
    ConditionEvaluator,
    PatternError,
    compile_pattern,
    matches_any,
)


class TestMatchesAny:
    """Tests for the pattern matcher."""

    def test_unanchored_search(self):
        """Test that patterns match anywhere in the predicate."""
        assert matches_any("repo/storage-dev/master", ["storage"]) is True

    def test_anchored_pattern(self):
        """Test that anchors restrict matching."""
        assert matches_any("repo/storage-dev/master", ["^storage"]) is False
        assert matches_any("storage-dev/master", ["^storage-dev/master$"]) is True

    def test_any_of_several(self):
        """Test that one matching pattern is enough."""
        assert matches_any("compute/master", ["storage", "compute"]) is True

    def test_no_patterns(self):
        """Test that an empty pattern list never matches."""
        assert matches_any("anything", []) is False

    def test_case_sensitive(self):
        """Test that matching is case-sensitive."""
        assert matches_any("Storage/master", ["storage"]) is False

    def test_invalid_pattern_raises(self):
        """Test that invalid regex raises PatternError."""
        with pytest.raises(PatternError, match="Invalid regex pattern"):
            matches_any("x", ["("])

    def test_stops_at_first_match(self):
        """Test that later invalid patterns are not compiled after a match."""
        assert matches_any("abc", ["a", "("]) is True

    def test_compile_pattern_uses_cache(self):
        """Test that compiled patterns are stored and reused."""
        cache = {}
        first = compile_pattern("ab+", cache)
        second = compile_pattern("ab+", cache)

        assert first is second
        assert "ab+" in cache


class TestAllowDenyConditions:
    """Tests for allow and deny conditions."""

    def test_allow_all(self):
        """Test that allow .* passes every predicate."""
        evaluator = ConditionEvaluator()

        for predicate in ["", "a", "production/some-repo", "\n"]:
            assert evaluator.evaluate([AllowCondition((".*",))], predicate) is True

    def test_deny_all(self):
        """Test that deny .* fails every predicate."""
        evaluator = ConditionEvaluator()

        for predicate in ["", "a", "production/some-repo", "\n"]:
            assert evaluator.evaluate([DenyCondition((".*",))], predicate) is False

    def test_allow_then_deny(self):
        """Test the storage allow/deny example."""
        evaluator = ConditionEvaluator()
        conditions = [
            AllowCondition(("storage.*",)),
            DenyCondition(("storage-important/master", "storage-important2/master")),
        ]

        assert evaluator.evaluate(conditions, "storage-important/master") is False
        assert evaluator.evaluate(conditions, "storage-dev/master") is True
        assert evaluator.evaluate(conditions, "compute/master") is False

    def test_empty_condition_list(self):
        """Test that no conditions means every condition is satisfied."""
        assert ConditionEvaluator().evaluate([], "x") is True


class TestProbabilityCondition:
    """Tests for probability conditions."""

    def test_low_draw_passes(self):
        """Test that a draw below the probability passes."""
        evaluator = ConditionEvaluator(random_source=lambda: 0.01)

        assert evaluator.evaluate([ProbabilityCondition(0.1)], "x") is True

    def test_high_draw_fails(self):
        """Test that a draw above the probability fails."""
        evaluator = ConditionEvaluator(random_source=lambda: 0.99)

        assert evaluator.evaluate([ProbabilityCondition(0.1)], "x") is False

    def test_boundary_draw_fails(self):
        """Test that a draw equal to the probability fails."""
        evaluator = ConditionEvaluator(random_source=lambda: 0.5)

        assert evaluator.evaluate([ProbabilityCondition(0.5)], "x") is False

    def test_zero_probability_never_passes(self):
        """Test that probability 0 fails even for a draw of 0."""
        evaluator = ConditionEvaluator(random_source=lambda: 0.0)

        assert evaluator.evaluate([ProbabilityCondition(0.0)], "x") is False

    def test_full_probability_always_passes(self):
        """Test that probability 1 passes for draws in [0, 1)."""
        evaluator = ConditionEvaluator(random_source=lambda: 0.999999)

        assert evaluator.evaluate([ProbabilityCondition(1.0)], "x") is True

    def test_default_random_source(self):
        """Test that the default source is used when none is given."""
        evaluator = ConditionEvaluator()

        assert evaluator.evaluate([ProbabilityCondition(1.0)], "x") is True
        assert evaluator.evaluate([ProbabilityCondition(0.0)], "x") is False

    def test_one_draw_per_condition(self, scripted_random):
        """Test that each probability condition draws exactly once."""
        source = scripted_random([0.1, 0.2])
        evaluator = ConditionEvaluator(random_source=source)

        assert evaluator.evaluate([ProbabilityCondition(0.5), ProbabilityCondition(0.5)], "x") is True
        assert source.calls == 2


class TestShortCircuit:
    """Tests for fail-fast evaluation order."""

    def test_failed_allow_skips_probability(self):
        """Test that a failing allow prevents the random draw."""
        source = MagicMock(return_value=0.0)
        evaluator = ConditionEvaluator(random_source=source)

        result = evaluator.evaluate([AllowCondition(("^prod",)), ProbabilityCondition(0.5)], "dev/repo")

        assert result is False
        source.assert_not_called()

    def test_failed_deny_skips_probability(self):
        """Test that a matching deny prevents the random draw."""
        source = MagicMock(return_value=0.0)
        evaluator = ConditionEvaluator(random_source=source)

        result = evaluator.evaluate([DenyCondition(("dev",)), ProbabilityCondition(0.5)], "dev/repo")

        assert result is False
        source.assert_not_called()

    def test_probability_first_always_draws(self):
        """Test that a leading probability draws even when allow fails later."""
        source = MagicMock(return_value=0.0)
        evaluator = ConditionEvaluator(random_source=source)

        result = evaluator.evaluate([ProbabilityCondition(0.5), AllowCondition(("^prod",))], "dev/repo")

        assert result is False
        source.assert_called_once_with()

    def test_failed_probability_skips_rest(self):
        """Test that later conditions are not evaluated after a failed draw."""
        source = MagicMock(return_value=0.9)
        evaluator = ConditionEvaluator(random_source=source)

        result = evaluator.evaluate(
            [ProbabilityCondition(0.5), ProbabilityCondition(0.5), AllowCondition(("(",))],
            "x",
        )

        assert result is False
        assert source.call_count == 1

    def test_appending_after_failure_keeps_result(self):
        """Test that conditions appended after a failing one change nothing."""
        evaluator = ConditionEvaluator(random_source=lambda: 0.0)
        base = [AllowCondition(("^prod",))]

        for extra in ([AllowCondition((".*",))], [ProbabilityCondition(1.0)], [DenyCondition(("zzz",))]):
            assert evaluator.evaluate(base + extra, "dev") is evaluator.evaluate(base, "dev") is False


class TestErrors:
    """Tests for evaluation errors."""

    def test_invalid_pattern_propagates(self):
        """Test that PatternError escapes the evaluator."""
        with pytest.raises(PatternError):
            ConditionEvaluator().evaluate([AllowCondition(("[unclosed",))], "x")

    def test_pattern_error_is_value_error(self):
        """Test that PatternError carries the offending pattern."""
        with pytest.raises(ValueError) as exc_info:
            ConditionEvaluator().evaluate([DenyCondition(("*bad",))], "x")

        assert exc_info.value.pattern == "*bad"

    def test_unsupported_condition(self):
        """Test that unknown condition objects fail loudly."""
        with pytest.raises(TypeError, match="Unsupported condition type"):
            ConditionEvaluator().evaluate([{"allowlist": [".*"]}], "x")

    def test_evaluator_caches_patterns(self):
        """Test that an evaluator reuses compiled patterns across calls."""
        evaluator = ConditionEvaluator()
        conditions = [AllowCondition(("^a", "^b"))]

        evaluator.evaluate(conditions, "b")
        evaluator.evaluate(conditions, "a")

        assert set(evaluator._regex_cache) == {"^a", "^b"}
