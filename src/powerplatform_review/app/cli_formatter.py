"""CLI output formatting utilities for human-readable display."""

from __future__ import annotations

from pathlib import Path

from ..core.domain.models import Component, ReviewResult, Severity
from ..core.ports import EmitSummary
from ..core.usecases.list_rules import RuleInfo


def _severity_counts(result: ReviewResult) -> dict[Severity, int]:
    counts = {s: 0 for s in Severity}
    for f in result.findings:
        counts[f.severity] += 1
    return counts


def format_review_result(result: ReviewResult, summary: EmitSummary | None = None) -> str:
    """Format a review result for human-readable CLI output.

    Args:
        result: Review result
        summary: Written report paths, if any

    Returns:
        Formatted string for display
    """
    lines = []
    lines.append("=" * 80)
    lines.append("REVIEW RESULT")
    lines.append("=" * 80)

    lines.append(f"\nBundle: {result.bundle_path}")
    if result.threshold is None:
        verdict = "INFORMATIONAL (no threshold)"
    else:
        verdict = f"{'PASS' if result.passed else 'FAIL'} (threshold {result.threshold:g})"
    lines.append(f"Overall score: {result.overall_score:.2f}")
    lines.append(f"Verdict: {verdict}")

    counts = _severity_counts(result)
    lines.append(
        "Findings: "
        + ", ".join(f"{counts[s]} {s.value}" for s in sorted(Severity, key=lambda s: -s.rank))
    )

    # Components
    lines.append("\n" + "-" * 80)
    lines.append("COMPONENTS")
    lines.append("-" * 80)
    scores = {s.component_id: s for s in result.component_scores}
    for c in result.components:
        score = scores.get(c.id)
        shown = f"{score.score:6.1f}" if score else "     -"
        lines.append(f"{shown}  {c.kind.value:<17} {c.id}")
    if not result.components:
        lines.append("No components found.")

    # Checklist
    if result.categories:
        lines.append("\n" + "-" * 80)
        lines.append("CHECKLIST")
        lines.append("-" * 80)
        for cat in result.categories:
            status = "PASS" if cat.passed else "FAIL"
            lines.append(f"{cat.category:<17} {status}  {cat.issue_count} issue(s)")

    if summary is not None and summary.written:
        lines.append("\nReports:")
        for fmt, path in summary.written.items():
            lines.append(f"  {fmt:<6} {path}")

    lines.append("\n" + "=" * 80)
    return "\n".join(lines)


def format_components(components: list[Component], manifest: Path) -> str:
    lines = [f"Extracted {len(components)} components:", ""]
    for c in components:
        suffix = f" (declared {c.declared_kind.value})" if c.declared_kind else ""
        lines.append(f"  {c.kind.value:<17} {c.id}  [{len(c.entries)} files]{suffix}")
    lines.append("")
    lines.append(f"Manifest: {manifest}")
    return "\n".join(lines)


def format_rule_list(infos: list[RuleInfo]) -> str:
    if not infos:
        return "No rules registered."
    id_w = max(len(i.rule.id) for i in infos)
    lines = [f"{'Rule':<{id_w}}  {'Severity':<8}  {'Category':<15}  {'Active':<6}  Title", "-" * 100]
    for i in infos:
        lines.append(
            f"{i.rule.id:<{id_w}}  {i.severity.value:<8}  {i.rule.category:<15}  "
            f"{'yes' if i.active else 'no':<6}  {i.rule.title}"
        )
    return "\n".join(lines)


def rule_info_to_dict(info: RuleInfo) -> dict[str, object]:
    return {
        "id": info.rule.id,
        "title": info.rule.title,
        "severity": info.severity.value,
        "category": info.rule.category,
        "kinds": sorted(k.value for k in info.rule.kinds),
        "active": info.active,
        "description": info.rule.description,
        "params": dict(info.rule.defaults),
    }
