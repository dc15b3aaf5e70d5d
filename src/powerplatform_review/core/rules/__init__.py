from __future__ import annotations

from . import canvas, flows, model_driven, pcf, solution
from .base import Rule, RuleContext, RuleHit, RuleRegistry, rule

BUILTIN_RULES: list[Rule] = [
    *flows.RULES,
    *canvas.RULES,
    *solution.RULES,
    *model_driven.RULES,
    *pcf.RULES,
]


def default_registry() -> RuleRegistry:
    """Registry of all built-in rules."""
    return RuleRegistry(BUILTIN_RULES)


__all__ = [
    "BUILTIN_RULES",
    "Rule",
    "RuleContext",
    "RuleHit",
    "RuleRegistry",
    "default_registry",
    "rule",
]
