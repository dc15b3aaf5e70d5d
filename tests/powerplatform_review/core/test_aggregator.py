import pytest

from powerplatform_review.core.domain.models import (
    Component,
    ComponentKind,
    Finding,
    FindingKind,
    RawEntry,
    Severity,
)
from powerplatform_review.core.domain.policy import ScoringPolicy
from powerplatform_review.core.services.aggregator import (
    NOTICE_RULE_ID,
    ScoreAggregator,
    summarize_categories,
)


def _component(kind, name, declared=None):
    return Component(kind=kind, name=name, entries=(RawEntry(f"{name}.bin", b"x"),), declared_kind=declared)


def _finding(component, severity, rule_id="R", category="Reliability", kind=FindingKind.ISSUE, message="m"):
    return Finding(
        rule_id=rule_id,
        severity=severity,
        message=message,
        component_id=component.id if component else None,
        category=category,
        kind=kind,
    )


def _aggregate(components, findings, policy=None):
    return ScoreAggregator().aggregate(
        bundle_path="bundle.zip",
        components=components,
        findings=findings,
        policy=policy or ScoringPolicy(),
    )


class TestScores:
    def test_default_weights(self):
        flow = _component(ComponentKind.FLOW, "f")
        result = _aggregate([flow], [
            _finding(flow, Severity.CRITICAL),
            _finding(flow, Severity.ERROR, rule_id="R2"),
            _finding(flow, Severity.WARNING, rule_id="R3"),
            _finding(flow, Severity.INFO, rule_id="R4"),
        ])
        assert result.score_for("flow/f").score == 62.0
        assert result.score_for("flow/f").finding_count == 4
        assert result.overall_score == 62.0

    def test_overall_is_weighted_mean(self):
        flow = _component(ComponentKind.FLOW, "f")
        app = _component(ComponentKind.CANVAS_APP, "a")
        policy = ScoringPolicy.build(kind_weights={"flow": 3})
        result = _aggregate([app, flow], [_finding(flow, Severity.ERROR)], policy)
        # (100 * 1 + 90 * 3) / 4
        assert result.overall_score == 92.5

    def test_overall_is_rounded(self):
        comps = [_component(ComponentKind.FLOW, n) for n in ("a", "b", "c")]
        result = _aggregate(comps, [_finding(comps[0], Severity.ERROR)])
        assert result.overall_score == 96.67

    def test_sub_score_is_clamped_at_zero(self):
        flow = _component(ComponentKind.FLOW, "f")
        findings = [_finding(flow, Severity.CRITICAL, rule_id=f"R{i}") for i in range(6)]
        result = _aggregate([flow], findings)
        assert result.score_for("flow/f").score == 0.0
        assert result.overall_score == 0.0

    def test_unknown_components_are_not_scored(self):
        flow = _component(ComponentKind.FLOW, "f")
        other = _component(ComponentKind.UNKNOWN, "notes.txt")
        result = _aggregate([flow, other], [])
        assert [s.component_id for s in result.component_scores] == ["flow/f"]
        assert result.score_for(other.id) is None

    def test_malformed_uses_declared_kind_weight(self):
        broken = _component(ComponentKind.MALFORMED, "f", declared=ComponentKind.FLOW)
        app = _component(ComponentKind.CANVAS_APP, "a")
        policy = ScoringPolicy.build(kind_weights={"flow": 0.5})
        diag = _finding(broken, Severity.CRITICAL, rule_id="PP-PARSE", kind=FindingKind.CLASSIFICATION_ERROR)
        result = _aggregate([app, broken], [diag], policy)
        score = result.score_for("flow/f")
        assert score.kind is ComponentKind.MALFORMED
        assert score.weight == 0.5
        assert score.score == 75.0
        assert result.overall_score == pytest.approx((100 + 75 * 0.5) / 1.5, abs=0.01)

    def test_result_is_independent_of_finding_order(self):
        comps = [_component(ComponentKind.FLOW, n) for n in ("a", "b")]
        findings = [
            _finding(comps[0], Severity.WARNING, rule_id="R1"),
            _finding(comps[1], Severity.ERROR, rule_id="R2"),
            _finding(comps[0], Severity.CRITICAL, rule_id="R3"),
        ]
        forward = _aggregate(comps, findings)
        backward = _aggregate(comps, list(reversed(findings)))
        assert forward == backward

    @pytest.mark.parametrize("policy", [
        ScoringPolicy(),
        ScoringPolicy.build(ceiling=100, kind_weights={"flow": 5, "canvas_app": 0}),
        ScoringPolicy.build(ceiling=1, severity_weights={"warning": -50}),
        ScoringPolicy.build(severity_weights={"critical": 1000}),
    ])
    def test_scores_stay_within_range(self, policy):
        flow = _component(ComponentKind.FLOW, "f")
        app = _component(ComponentKind.CANVAS_APP, "a")
        findings = [
            _finding(flow, Severity.CRITICAL),
            _finding(flow, Severity.WARNING, rule_id="R2"),
            _finding(app, Severity.WARNING),
        ]
        result = _aggregate([flow, app], findings, policy)
        assert 0 <= result.overall_score <= 100
        assert all(0 <= s.score <= 100 for s in result.component_scores)


class TestZeroComponents:
    def test_empty_bundle_scores_ceiling_with_notice(self):
        result = _aggregate([], [])
        assert result.overall_score == 100.0
        assert result.passed
        assert len(result.findings) == 1
        notice = result.findings[0]
        assert notice.rule_id == NOTICE_RULE_ID
        assert notice.kind is FindingKind.NOTICE
        assert notice.severity is Severity.INFO
        assert notice.component_id is None

    def test_only_unknown_components(self):
        result = _aggregate([_component(ComponentKind.UNKNOWN, "readme.md")], [])
        assert result.overall_score == 100.0
        assert [f.rule_id for f in result.findings] == [NOTICE_RULE_ID]

    def test_zero_total_weight_behaves_like_no_components(self):
        flow = _component(ComponentKind.FLOW, "f")
        policy = ScoringPolicy.build(kind_weights={"flow": 0})
        result = _aggregate([flow], [_finding(flow, Severity.CRITICAL)], policy)
        assert result.overall_score == 100.0
        assert result.findings[-1].rule_id == NOTICE_RULE_ID
        assert result.score_for("flow/f").score == 75.0

    def test_custom_ceiling(self):
        result = _aggregate([], [], ScoringPolicy.build(ceiling=10))
        assert result.overall_score == 10.0


class TestThreshold:
    def test_no_threshold_always_passes(self):
        flow = _component(ComponentKind.FLOW, "f")
        findings = [_finding(flow, Severity.CRITICAL, rule_id=f"R{i}") for i in range(4)]
        result = _aggregate([flow], findings)
        assert result.threshold is None
        assert result.passed

    @pytest.mark.parametrize("threshold,passed", [(90.0, True), (90.01, False)])
    def test_threshold_is_inclusive(self, threshold, passed):
        flow = _component(ComponentKind.FLOW, "f")
        result = _aggregate([flow], [_finding(flow, Severity.ERROR)], ScoringPolicy.build(threshold=threshold))
        assert result.passed is passed


class TestOrdering:
    def test_findings_grouped_by_component_then_severity(self):
        a = _component(ComponentKind.FLOW, "a")
        b = _component(ComponentKind.FLOW, "b")
        findings = [
            _finding(b, Severity.WARNING, rule_id="R1"),
            _finding(a, Severity.INFO, rule_id="R2"),
            _finding(a, Severity.ERROR, rule_id="R3"),
        ]
        result = _aggregate([a, b], findings)
        assert [(f.component_id, f.rule_id) for f in result.findings] == [
            ("flow/a", "R3"),
            ("flow/a", "R2"),
            ("flow/b", "R1"),
        ]
        assert [f.rule_id for f in result.findings_for("flow/a")] == ["R3", "R2"]


class TestCategories:
    def test_checklist_always_lists_core_categories(self):
        statuses = summarize_categories([])
        assert [s.category for s in statuses] == ["Security", "Reliability", "Maintainability", "Performance"]
        assert all(s.passed and s.issue_count == 0 for s in statuses)

    def test_security_fails_on_error(self):
        flow = _component(ComponentKind.FLOW, "f")
        statuses = {s.category: s for s in summarize_categories([
            _finding(flow, Severity.WARNING, category="Security"),
        ])}
        assert statuses["Security"].passed
        assert statuses["Security"].issue_count == 1

        statuses = {s.category: s for s in summarize_categories([
            _finding(flow, Severity.ERROR, category="Security"),
        ])}
        assert not statuses["Security"].passed

    def test_other_categories_fail_on_warning(self):
        flow = _component(ComponentKind.FLOW, "f")
        statuses = {s.category: s for s in summarize_categories([
            _finding(flow, Severity.INFO, category="Performance"),
            _finding(flow, Severity.WARNING, category="Maintainability"),
        ])}
        assert statuses["Performance"].passed
        assert not statuses["Maintainability"].passed

    def test_only_issues_count(self):
        flow = _component(ComponentKind.FLOW, "f")
        statuses = {s.category: s for s in summarize_categories([
            _finding(flow, Severity.CRITICAL, kind=FindingKind.CLASSIFICATION_ERROR),
        ])}
        assert statuses["Reliability"].passed
        assert statuses["Reliability"].issue_count == 0

    def test_extra_categories_sort_after_checklist(self):
        flow = _component(ComponentKind.FLOW, "f")
        names = [s.category for s in summarize_categories([_finding(flow, Severity.INFO, category="Accessibility")])]
        assert names[-1] == "Accessibility"
