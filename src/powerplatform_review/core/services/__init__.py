from __future__ import annotations

from .classifier import ComponentClassifier, Signature, DEFAULT_SIGNATURES
from .rule_engine import RuleEngine
from .aggregator import ScoreAggregator
from .review_orchestrator import ReviewOrchestrator

__all__ = [
    "ComponentClassifier",
    "Signature",
    "DEFAULT_SIGNATURES",
    "RuleEngine",
    "ScoreAggregator",
    "ReviewOrchestrator",
]
