"""JSON report: a camelCase mirror of ReviewResult."""

from __future__ import annotations

import json
from typing import Any

from ...core.domain.models import (
    CategoryStatus,
    Component,
    ComponentKind,
    ComponentScore,
    Finding,
    FindingKind,
    Location,
    RawEntry,
    ReviewResult,
    Severity,
)

SCHEMA_VERSION = "1.0"


def _location(loc: Location | None) -> dict[str, Any] | None:
    if loc is None:
        return None
    return {"path": loc.path, "line": loc.line, "column": loc.column}


def finding_to_dict(f: Finding) -> dict[str, Any]:
    return {
        "ruleId": f.rule_id,
        "severity": f.severity.value,
        "kind": f.kind.value,
        "category": f.category,
        "title": f.title,
        "message": f.message,
        "componentId": f.component_id,
        "location": _location(f.location),
    }


def to_dict(result: ReviewResult) -> dict[str, Any]:
    return {
        "schemaVersion": SCHEMA_VERSION,
        "bundlePath": result.bundle_path,
        "overallScore": result.overall_score,
        "threshold": result.threshold,
        "passed": result.passed,
        "components": [
            {
                "id": c.id,
                "kind": c.kind.value,
                "declaredKind": c.declared_kind.value if c.declared_kind else None,
                "name": c.name,
                "paths": c.paths,
                "size": c.size,
            }
            for c in result.components
        ],
        "componentScores": [
            {
                "componentId": s.component_id,
                "kind": s.kind.value,
                "score": s.score,
                "weight": s.weight,
                "findingCount": s.finding_count,
            }
            for s in result.component_scores
        ],
        "findings": [finding_to_dict(f) for f in result.findings],
        "categories": [
            {"category": c.category, "passed": c.passed, "issueCount": c.issue_count}
            for c in result.categories
        ],
    }


def encode(result: ReviewResult) -> bytes:
    return json.dumps(to_dict(result), ensure_ascii=False, indent=2).encode("utf-8")


def _finding_from(d: dict[str, Any]) -> Finding:
    loc = d.get("location")
    return Finding(
        rule_id=d["ruleId"],
        severity=Severity(d["severity"]),
        message=d["message"],
        component_id=d.get("componentId"),
        category=d.get("category", "General"),
        title=d.get("title", ""),
        location=Location(loc["path"], loc.get("line"), loc.get("column")) if loc else None,
        kind=FindingKind(d.get("kind", FindingKind.ISSUE.value)),
    )


def decode_result(data: bytes) -> ReviewResult:
    """Rebuild a ReviewResult from `encode` output.

    Entry contents are not part of the report, so decoded components carry
    their paths with empty data. Findings, scores and verdict compare equal
    to the original.
    """
    doc = json.loads(data.decode("utf-8"))
    findings = tuple(_finding_from(f) for f in doc["findings"])

    components = []
    for c in doc["components"]:
        declared = ComponentKind(c["declaredKind"]) if c.get("declaredKind") else None
        diagnostics = tuple(
            f for f in findings
            if f.component_id == c["id"] and f.kind is FindingKind.CLASSIFICATION_ERROR
        )
        components.append(
            Component(
                kind=ComponentKind(c["kind"]),
                name=c["name"],
                entries=tuple(RawEntry(p, b"") for p in c.get("paths", [])),
                declared_kind=declared,
                diagnostics=diagnostics,
            )
        )

    return ReviewResult(
        bundle_path=doc["bundlePath"],
        components=tuple(components),
        findings=findings,
        component_scores=tuple(
            ComponentScore(
                component_id=s["componentId"],
                kind=ComponentKind(s["kind"]),
                score=float(s["score"]),
                weight=float(s["weight"]),
                finding_count=int(s["findingCount"]),
            )
            for s in doc["componentScores"]
        ),
        overall_score=float(doc["overallScore"]),
        threshold=doc.get("threshold"),
        passed=bool(doc["passed"]),
        categories=tuple(
            CategoryStatus(category=c["category"], passed=c["passed"], issue_count=c["issueCount"])
            for c in doc.get("categories", [])
        ),
    )
