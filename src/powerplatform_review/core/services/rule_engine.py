from __future__ import annotations

from ..domain.exceptions import RuleExecutionError
from ..domain.models import Component, Finding, FindingKind, Severity
from ..domain.policy import RulePolicy
from ..ports import LoggerPort, NullLogger
from ..rules.base import Rule, RuleRegistry


def order_findings(findings: list[Finding]) -> list[Finding]:
    """Severity descending, then rule id ascending; stable for ties."""
    return sorted(findings, key=lambda f: (-f.severity.rank, f.rule_id))


class RuleEngine:
    """Runs the registry's rules against a single component.

    Each rule is isolated: an exception inside `check` is turned into one
    `rule_execution_error` finding for that rule and component, and the
    rule's partial hits are discarded. Sibling rules keep running.
    """

    def __init__(
        self,
        *,
        registry: RuleRegistry,
        policy: RulePolicy | None = None,
        logger: LoggerPort | None = None,
    ) -> None:
        self._policy = policy or RulePolicy()
        self._registry = registry.configured(self._policy)
        self._logger = logger or NullLogger()

    @property
    def registry(self) -> RuleRegistry:
        return self._registry

    def evaluate(self, component: Component) -> list[Finding]:
        findings: list[Finding] = list(component.diagnostics)
        for r in self._registry.for_kind(component.kind):
            findings.extend(self._run(r, component))
        return order_findings(_dedupe(findings))

    def _run(self, r: Rule, component: Component) -> list[Finding]:
        try:
            hits = list(r.check(component, r.context(self._policy)))
        except Exception as e:
            err = RuleExecutionError(r.id, component.id, e)
            self._logger.warning(
                "rule_failed",
                type="rule_failed",
                rule_id=r.id,
                component_id=component.id,
                error=str(err),
            )
            return [
                Finding(
                    rule_id=r.id,
                    severity=Severity.INFO,
                    message=str(err),
                    component_id=component.id,
                    category=r.category,
                    title=r.title,
                    kind=FindingKind.RULE_EXECUTION_ERROR,
                )
            ]

        return [
            Finding(
                rule_id=r.id,
                severity=r.severity,
                message=hit.message,
                component_id=component.id,
                category=r.category,
                title=r.title,
                location=hit.location,
            )
            for hit in hits
        ]


def _dedupe(findings: list[Finding]) -> list[Finding]:
    seen: set[Finding] = set()
    unique: list[Finding] = []
    for f in findings:
        if f in seen:
            continue
        seen.add(f)
        unique.append(f)
    return unique
