from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from ..domain.models import Bundle, Component, Finding, ReviewResult
from ..domain.policy import ScoringPolicy
from ..ports import ArchiveLoaderPort, CancellationToken, LoggerPort
from .aggregator import ScoreAggregator
from .classifier import ComponentClassifier
from .rule_engine import RuleEngine


class ReviewOrchestrator:
    """Runs one review: load, classify, evaluate in parallel, aggregate.

    Cancellation is honoured at two points only: after the bundle is loaded
    and before each component is evaluated. A cancelled run raises
    ReviewCancelled and produces no result.
    """

    def __init__(
        self,
        *,
        loader: ArchiveLoaderPort,
        classifier: ComponentClassifier,
        engine: RuleEngine,
        aggregator: ScoreAggregator,
        scoring: ScoringPolicy,
        logger: LoggerPort,
        max_workers: int | None = None,
    ) -> None:
        self._loader = loader
        self._classifier = classifier
        self._engine = engine
        self._aggregator = aggregator
        self._scoring = scoring
        self._logger = logger
        self._max_workers = max_workers or os.cpu_count() or 1

    def review(
        self,
        *,
        bundle_path: Path,
        token: CancellationToken | None = None,
        threshold: float | None = None,
    ) -> ReviewResult:
        """Review a bundle file.

        Args:
            bundle_path: Path to the solution bundle (.zip)
            token: Optional cancellation token
            threshold: Overrides the policy threshold when given

        Returns:
            Scored review result

        Raises:
            ArchiveError: If the bundle cannot be loaded
            ReviewCancelled: If the token was cancelled at a safe point
        """
        self._logger.info(
            "review_started",
            type="review_started",
            bundle=str(bundle_path),
            workers=self._max_workers,
            rules=len(self._engine.registry),
        )

        # 1) Load
        bundle = self._loader.load(bundle_path)
        self._logger.info(
            "bundle_loaded",
            type="bundle_loaded",
            entries=len(bundle.entries),
            total_bytes=bundle.total_size,
        )
        return self.review_bundle(bundle=bundle, token=token, threshold=threshold)

    def review_bundle(
        self,
        *,
        bundle: Bundle,
        token: CancellationToken | None = None,
        threshold: float | None = None,
    ) -> ReviewResult:
        """Review an already loaded bundle."""
        token = token or CancellationToken()
        token.raise_if_cancelled("classification")

        # 2) Classify (parsing is forced here, so workers only read metadata)
        components = self._classifier.classify(bundle)

        # 3) Evaluate
        findings = self._evaluate_all(components, token)

        # 4) Aggregate
        policy = self._scoring
        if threshold is not None:
            policy = ScoringPolicy(
                severity_weights=policy.severity_weights,
                ceiling=policy.ceiling,
                kind_weights=policy.kind_weights,
                threshold=threshold,
            )
        result = self._aggregator.aggregate(
            bundle_path=bundle.source_path,
            components=components,
            findings=findings,
            policy=policy,
        )
        self._logger.info(
            "review_scored",
            type="review_scored",
            overall_score=result.overall_score,
            threshold=result.threshold,
            passed=result.passed,
            findings=len(result.findings),
        )
        return result

    def _evaluate_all(self, components: list[Component], token: CancellationToken) -> list[Finding]:
        if not components:
            return []

        def evaluate(component: Component) -> list[Finding]:
            token.raise_if_cancelled(f"evaluating {component.id}")
            found = self._engine.evaluate(component)
            self._logger.debug(
                "component_evaluated",
                type="component_evaluated",
                component_id=component.id,
                kind=component.kind.value,
                findings=len(found),
            )
            return found

        workers = min(self._max_workers, len(components))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pp-review") as pool:
            futures = [pool.submit(evaluate, c) for c in components]
            try:
                per_component = [f.result() for f in futures]
            except BaseException:
                token.cancel("evaluation aborted")
                for f in futures:
                    f.cancel()
                raise

        findings: list[Finding] = []
        for found in per_component:
            findings.extend(found)
        return findings
