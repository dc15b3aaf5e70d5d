from __future__ import annotations

from dataclasses import dataclass

from ..domain.models import Severity
from ..domain.policy import RulePolicy
from ..rules import Rule, RuleRegistry


@dataclass(frozen=True)
class RuleInfo:
    rule: Rule
    active: bool
    severity: Severity


class ListRulesUseCase:
    """Use case for listing registered rules with their effective settings."""

    def __init__(self, *, registry: RuleRegistry, policy: RulePolicy) -> None:
        self._registry = registry
        self._policy = policy

    def execute(self) -> list[RuleInfo]:
        return [
            RuleInfo(
                rule=r,
                active=self._policy.is_active(r.id),
                severity=self._policy.severity_overrides.get(r.id, r.severity),
            )
            for r in self._registry
        ]
