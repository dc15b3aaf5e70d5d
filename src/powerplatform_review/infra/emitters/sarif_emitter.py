"""SARIF 2.1.0 report for code-scanning consumers."""

from __future__ import annotations

import json
from importlib.metadata import PackageNotFoundError, version
from typing import Any
from urllib.parse import quote

from ...core.domain.models import Finding, ReviewResult, Severity

SARIF_VERSION = "2.1.0"
SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"
TOOL_NAME = "powerplatform-review-tool"

LEVELS = {
    Severity.CRITICAL: "error",
    Severity.ERROR: "error",
    Severity.WARNING: "warning",
    Severity.INFO: "note",
}


def sarif_level(severity: Severity) -> str:
    return LEVELS[severity]


def _tool_version() -> str:
    try:
        return version(TOOL_NAME)
    except PackageNotFoundError:
        return "0.0.0"


def _driver_rules(findings: tuple[Finding, ...]) -> tuple[list[dict[str, Any]], dict[str, int]]:
    rules: dict[str, dict[str, Any]] = {}
    for f in findings:
        if f.rule_id in rules:
            continue
        rules[f.rule_id] = {
            "id": f.rule_id,
            "name": f.title or f.rule_id,
            "shortDescription": {"text": f.title or f.rule_id},
            "defaultConfiguration": {"level": sarif_level(f.severity)},
            "properties": {"category": f.category},
        }
    ordered = [rules[k] for k in sorted(rules)]
    return ordered, {r["id"]: i for i, r in enumerate(ordered)}


def _uri(path: str) -> str:
    # artifactLocation.uri is a URI reference; bundle paths may hold spaces or "#"
    return quote(path, safe="/")


def _locations(f: Finding, result: ReviewResult) -> list[dict[str, Any]]:
    if f.location is not None:
        physical: dict[str, Any] = {"artifactLocation": {"uri": _uri(f.location.path)}}
        if f.location.line is not None:
            region: dict[str, Any] = {"startLine": f.location.line}
            if f.location.column is not None:
                region["startColumn"] = f.location.column
            physical["region"] = region
        return [{"physicalLocation": physical}]
    component = result.component(f.component_id) if f.component_id else None
    if component is not None and component.paths:
        return [{"physicalLocation": {"artifactLocation": {"uri": _uri(component.paths[0])}}}]
    return []


def to_sarif(result: ReviewResult) -> dict[str, Any]:
    rules, index = _driver_rules(result.findings)
    results = []
    for f in result.findings:
        item: dict[str, Any] = {
            "ruleId": f.rule_id,
            "ruleIndex": index[f.rule_id],
            "level": sarif_level(f.severity),
            "message": {"text": f.message},
            "locations": _locations(f, result),
            "properties": {
                "severity": f.severity.value,
                "kind": f.kind.value,
                "componentId": f.component_id,
            },
        }
        results.append(item)

    return {
        "$schema": SARIF_SCHEMA,
        "version": SARIF_VERSION,
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": TOOL_NAME,
                        "version": _tool_version(),
                        "rules": rules,
                    }
                },
                "results": results,
                "properties": {
                    "overallScore": result.overall_score,
                    "threshold": result.threshold,
                    "passed": result.passed,
                },
            }
        ],
    }


def encode(result: ReviewResult) -> bytes:
    return json.dumps(to_sarif(result), ensure_ascii=False, indent=2).encode("utf-8")
