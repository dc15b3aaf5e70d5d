"""Rule contract and registry.

A rule is a frozen value: metadata plus a pure `check` function. Rule
modules declare rules with `@rule(...)` and export them in a `RULES` list;
the registry is assembled once at startup from those lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Mapping

from ..domain.models import Component, ComponentKind, Location, Severity
from ..domain.policy import RulePolicy


@dataclass(frozen=True)
class RuleHit:
    """What a rule reports; the engine turns it into a Finding."""
    message: str
    location: Location | None = None


@dataclass(frozen=True)
class RuleContext:
    """Read-only view handed to each rule invocation."""
    params: Mapping[str, Any]
    policy: RulePolicy

    def param(self, key: str, default: Any = None) -> Any:
        return self.params.get(key, default)


CheckFn = Callable[[Component, RuleContext], Iterable[RuleHit]]


@dataclass(frozen=True)
class Rule:
    id: str
    title: str
    severity: Severity
    category: str
    kinds: frozenset[ComponentKind]
    check: CheckFn
    defaults: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    description: str = ""

    def applies_to(self, kind: ComponentKind) -> bool:
        return kind in self.kinds

    def context(self, policy: RulePolicy) -> RuleContext:
        params = dict(self.defaults)
        params.update(policy.params_for(self.id))
        return RuleContext(params=MappingProxyType(params), policy=policy)


def rule(
    *,
    id: str,
    title: str,
    severity: Severity,
    category: str,
    kinds: Iterable[ComponentKind],
    defaults: Mapping[str, Any] | None = None,
) -> Callable[[CheckFn], Rule]:
    """Decorator turning a check function into a Rule value."""

    def wrap(fn: CheckFn) -> Rule:
        return Rule(
            id=id,
            title=title,
            severity=severity,
            category=category,
            kinds=frozenset(kinds),
            check=fn,
            defaults=MappingProxyType(dict(defaults or {})),
            description=(fn.__doc__ or "").strip(),
        )

    return wrap


class RuleRegistry:
    """Rules partitioned by component kind.

    Iteration and `for_kind` return rules ordered by id so evaluation order
    never depends on registration order.
    """

    def __init__(self, rules: Iterable[Rule]) -> None:
        by_id: dict[str, Rule] = {}
        for r in rules:
            if r.id in by_id:
                raise ValueError(f"Duplicate rule id: {r.id}")
            by_id[r.id] = r
        self._rules = dict(sorted(by_id.items()))
        self._by_kind: dict[ComponentKind, tuple[Rule, ...]] = {}
        for kind in ComponentKind:
            self._by_kind[kind] = tuple(r for r in self._rules.values() if r.applies_to(kind))

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def get(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    def for_kind(self, kind: ComponentKind) -> tuple[Rule, ...]:
        return self._by_kind.get(kind, ())

    def configured(self, policy: RulePolicy) -> "RuleRegistry":
        """Registry restricted to active rules, with severity overrides applied."""
        selected = []
        for r in self._rules.values():
            if not policy.is_active(r.id):
                continue
            override = policy.severity_overrides.get(r.id)
            selected.append(replace(r, severity=override) if override else r)
        return RuleRegistry(selected)
