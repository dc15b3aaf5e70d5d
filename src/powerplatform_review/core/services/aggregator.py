from __future__ import annotations

from typing import Iterable

from ..domain.models import (
    CategoryStatus,
    Component,
    ComponentScore,
    Finding,
    FindingKind,
    ReviewResult,
    Severity,
)
from ..domain.policy import ScoringPolicy
from .rule_engine import order_findings

NOTICE_RULE_ID = "PP-NO-SCORABLE-COMPONENTS"

# Always listed in the category summary, even without findings.
CHECKLIST_CATEGORIES = ("Security", "Reliability", "Maintainability", "Performance")


class ScoreAggregator:
    """Turns per-component findings into sub-scores and one overall score.

    Scores depend only on the finding set and the policy, never on the
    order in which components finished evaluating.
    """

    def aggregate(
        self,
        *,
        bundle_path: str,
        components: list[Component],
        findings: list[Finding],
        policy: ScoringPolicy,
    ) -> ReviewResult:
        by_component: dict[str, list[Finding]] = {}
        for f in findings:
            if f.component_id is not None:
                by_component.setdefault(f.component_id, []).append(f)

        scores: list[ComponentScore] = []
        for c in components:
            if not c.scorable:
                continue
            own = by_component.get(c.id, [])
            penalty = sum(policy.weight_for(f.severity) for f in own)
            scores.append(
                ComponentScore(
                    component_id=c.id,
                    kind=c.kind,
                    score=_clamp(policy.ceiling - penalty, policy.ceiling),
                    weight=policy.importance(c.origin_kind),
                    finding_count=len(own),
                )
            )

        all_findings = list(findings)
        total_weight = sum(s.weight for s in scores)
        if total_weight <= 0:
            overall = policy.ceiling
            all_findings.append(
                Finding(
                    rule_id=NOTICE_RULE_ID,
                    severity=Severity.INFO,
                    message="No scorable components were found in the bundle",
                    component_id=None,
                    title="Nothing to score",
                    kind=FindingKind.NOTICE,
                )
            )
        else:
            overall = sum(s.score * s.weight for s in scores) / total_weight
        overall = round(_clamp(overall, policy.ceiling), 2)

        threshold = policy.threshold
        passed = True if threshold is None else overall >= threshold

        return ReviewResult(
            bundle_path=bundle_path,
            components=tuple(components),
            findings=tuple(_ordered(all_findings, components)),
            component_scores=tuple(scores),
            overall_score=overall,
            threshold=threshold,
            passed=passed,
            categories=tuple(summarize_categories(all_findings)),
        )


def summarize_categories(findings: Iterable[Finding]) -> list[CategoryStatus]:
    """PASS/FAIL per category, counting ordinary issues only.

    Security fails on any error or critical issue; other categories fail on
    any issue of warning severity or above.
    """
    issues: dict[str, list[Finding]] = {c: [] for c in CHECKLIST_CATEGORIES}
    for f in findings:
        if f.kind is FindingKind.ISSUE:
            issues.setdefault(f.category, []).append(f)

    out = []
    for category in sorted(issues, key=_category_key):
        found = issues[category]
        floor = Severity.ERROR if category == "Security" else Severity.WARNING
        failed = any(f.severity.rank >= floor.rank for f in found)
        out.append(CategoryStatus(category=category, passed=not failed, issue_count=len(found)))
    return out


def _category_key(category: str) -> tuple[int, str]:
    if category in CHECKLIST_CATEGORIES:
        return CHECKLIST_CATEGORIES.index(category), category
    return len(CHECKLIST_CATEGORIES), category


def _ordered(findings: list[Finding], components: list[Component]) -> list[Finding]:
    # Group by component in component order; bundle-level findings go last.
    position = {c.id: i for i, c in enumerate(components)}
    grouped: dict[int, list[Finding]] = {}
    for f in findings:
        key = position.get(f.component_id, len(position)) if f.component_id else len(position)
        grouped.setdefault(key, []).append(f)
    out: list[Finding] = []
    for key in sorted(grouped):
        out.extend(order_findings(grouped[key]))
    return out


def _clamp(value: float, ceiling: float) -> float:
    return max(0.0, min(float(ceiling), float(value)))
