from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from .models import ComponentKind, Severity


DEFAULT_SEVERITY_WEIGHTS: Mapping[Severity, float] = MappingProxyType({
    Severity.CRITICAL: 25.0,
    Severity.ERROR: 10.0,
    Severity.WARNING: 3.0,
    Severity.INFO: 0.0,
})


def _freeze(mapping: Mapping[Any, Any] | None) -> Mapping[Any, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class ScoringPolicy:
    """Explicit scoring configuration handed to the aggregator."""

    severity_weights: Mapping[Severity, float] = field(default_factory=lambda: _freeze(DEFAULT_SEVERITY_WEIGHTS))
    ceiling: float = 100.0
    kind_weights: Mapping[ComponentKind, float] = field(default_factory=lambda: _freeze({}))
    threshold: float | None = None

    def __post_init__(self) -> None:
        # Keeps every score inside [0, 100]
        if not 0 < self.ceiling <= 100:
            raise ValueError(f"ceiling must be in (0, 100], got {self.ceiling}")
        negative = sorted(k.value for k, w in self.kind_weights.items() if w < 0)
        if negative:
            raise ValueError(f"kind_weights must not be negative: {', '.join(negative)}")

    @classmethod
    def build(
        cls,
        *,
        severity_weights: Mapping[str, float] | None = None,
        ceiling: float = 100.0,
        kind_weights: Mapping[str, float] | None = None,
        threshold: float | None = None,
    ) -> "ScoringPolicy":
        """Build from plain string-keyed mappings (as found in config files)."""
        weights = dict(DEFAULT_SEVERITY_WEIGHTS)
        for key, value in (severity_weights or {}).items():
            weights[Severity(key)] = float(value)
        kinds = {ComponentKind(k): float(v) for k, v in (kind_weights or {}).items()}
        return cls(
            severity_weights=_freeze(weights),
            ceiling=float(ceiling),
            kind_weights=_freeze(kinds),
            threshold=threshold,
        )

    def weight_for(self, severity: Severity) -> float:
        return float(self.severity_weights.get(severity, 0.0))

    def importance(self, kind: ComponentKind) -> float:
        return float(self.kind_weights.get(kind, 1.0))


@dataclass(frozen=True)
class RulePolicy:
    """Read-only rule configuration shared by every rule evaluation.

    `enabled` restricts the registry to the listed ids when non-empty;
    `disabled` always removes ids.
    """

    enabled: frozenset[str] = frozenset()
    disabled: frozenset[str] = frozenset()
    severity_overrides: Mapping[str, Severity] = field(default_factory=lambda: _freeze({}))
    params: Mapping[str, Mapping[str, Any]] = field(default_factory=lambda: _freeze({}))

    @classmethod
    def build(
        cls,
        *,
        enabled: list[str] | None = None,
        disabled: list[str] | None = None,
        severity_overrides: Mapping[str, str] | None = None,
        params: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> "RulePolicy":
        return cls(
            enabled=frozenset(enabled or ()),
            disabled=frozenset(disabled or ()),
            severity_overrides=_freeze({k: Severity(v) for k, v in (severity_overrides or {}).items()}),
            params=_freeze({k: _freeze(v) for k, v in (params or {}).items()}),
        )

    def is_active(self, rule_id: str) -> bool:
        if rule_id in self.disabled:
            return False
        return not self.enabled or rule_id in self.enabled

    def params_for(self, rule_id: str) -> Mapping[str, Any]:
        return self.params.get(rule_id, _freeze({}))
