"""Tests for scoring and rule policies."""
import pytest

from powerplatform_review.core.domain.models import ComponentKind, Severity
from powerplatform_review.core.domain.policy import DEFAULT_SEVERITY_WEIGHTS, RulePolicy, ScoringPolicy


class TestScoringPolicy:
    def test_defaults(self):
        policy = ScoringPolicy()
        assert policy.weight_for(Severity.CRITICAL) == 25
        assert policy.weight_for(Severity.ERROR) == 10
        assert policy.weight_for(Severity.WARNING) == 3
        assert policy.weight_for(Severity.INFO) == 0
        assert policy.ceiling == 100
        assert policy.threshold is None
        assert policy.importance(ComponentKind.FLOW) == 1.0

    def test_build_from_string_keys_merges_defaults(self):
        policy = ScoringPolicy.build(severity_weights={"warning": 5}, kind_weights={"canvas_app": 2})
        assert policy.weight_for(Severity.WARNING) == 5
        assert policy.weight_for(Severity.CRITICAL) == DEFAULT_SEVERITY_WEIGHTS[Severity.CRITICAL]
        assert policy.importance(ComponentKind.CANVAS_APP) == 2.0

    def test_build_rejects_unknown_kind(self):
        with pytest.raises(ValueError):
            ScoringPolicy.build(kind_weights={"spaceship": 1})

    def test_direct_construction_uses_fresh_defaults(self):
        first, second = ScoringPolicy(), ScoringPolicy()
        assert dict(first.severity_weights) == dict(DEFAULT_SEVERITY_WEIGHTS)
        assert first.severity_weights is not second.severity_weights
        assert dict(first.kind_weights) == {}

    @pytest.mark.parametrize("ceiling", [0, -5, 100.5, 150])
    def test_ceiling_outside_score_range_is_rejected(self, ceiling):
        with pytest.raises(ValueError, match="ceiling"):
            ScoringPolicy.build(ceiling=ceiling)

    def test_negative_kind_weight_is_rejected(self):
        with pytest.raises(ValueError, match="flow"):
            ScoringPolicy.build(kind_weights={"flow": -1})

    def test_zero_kind_weight_is_allowed(self):
        assert ScoringPolicy.build(kind_weights={"flow": 0}).importance(ComponentKind.FLOW) == 0.0

    def test_weights_are_read_only(self):
        policy = ScoringPolicy.build()
        with pytest.raises(TypeError):
            policy.severity_weights[Severity.INFO] = 1  # type: ignore[index]


class TestRulePolicy:
    def test_everything_active_by_default(self):
        assert RulePolicy().is_active("ANY")

    def test_enabled_restricts_and_disabled_wins(self):
        policy = RulePolicy.build(enabled=["A", "B"], disabled=["B"])
        assert policy.is_active("A")
        assert not policy.is_active("B")
        assert not policy.is_active("C")

    def test_params_and_overrides(self):
        policy = RulePolicy.build(severity_overrides={"A": "error"}, params={"A": {"max": 1}})
        assert policy.severity_overrides["A"] is Severity.ERROR
        assert policy.params_for("A")["max"] == 1
        assert dict(policy.params_for("missing")) == {}
