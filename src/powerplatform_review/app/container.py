from __future__ import annotations

from dependency_injector import containers, providers

from ..core.domain.policy import RulePolicy, ScoringPolicy
from ..core.rules import default_registry
from ..core.services import ComponentClassifier, ReviewOrchestrator, RuleEngine, ScoreAggregator
from ..core.usecases.extract import ExtractUseCase
from ..core.usecases.list_rules import ListRulesUseCase
from ..core.usecases.review import ReviewUseCase
from ..infra.archive import ZipArchiveLoader
from ..infra.extract_store import ExtractStore
from ..infra.logging import ReviewLogger
from ..infra.report_writer import ReportWriter


class Container(containers.DeclarativeContainer):
    """DI container fed from AppConfig via `config.from_pydantic`."""

    config = providers.Configuration()

    # Policies (plain values handed to the engine and aggregator)
    scoring_policy = providers.Singleton(
        ScoringPolicy.build,
        severity_weights=config.scoring.severity_weights,
        ceiling=config.scoring.ceiling,
        kind_weights=config.scoring.kind_weights,
        threshold=config.scoring.threshold,
    )

    rule_policy = providers.Singleton(
        RulePolicy.build,
        enabled=config.rules.enabled,
        disabled=config.rules.disabled,
        severity_overrides=config.rules.severity_overrides,
        params=config.rules.params,
    )

    registry = providers.Singleton(default_registry)

    # Logger (Resource: manages lifecycle with init/shutdown)
    logger = providers.Resource(
        ReviewLogger,
        run_name=config.runtime.run_name,
        logs_dir=config.directories.logs_dir,
        logger_name=config.logging.logger_name,
        console_output=config.logging.console_output,
        level=config.logging.level,
    )

    # Adapters
    loader = providers.Singleton(
        ZipArchiveLoader,
        max_entries=config.limits.max_entries,
        max_entry_bytes=config.limits.max_entry_bytes,
        max_total_bytes=config.limits.max_total_bytes,
    )

    writer = providers.Singleton(ReportWriter)

    extract_store = providers.Singleton(ExtractStore)

    # Domain services
    classifier = providers.Factory(
        ComponentClassifier,
        logger=logger,
    )

    engine = providers.Factory(
        RuleEngine,
        registry=registry,
        policy=rule_policy,
        logger=logger,
    )

    aggregator = providers.Singleton(ScoreAggregator)

    orchestrator = providers.Factory(
        ReviewOrchestrator,
        loader=loader,
        classifier=classifier,
        engine=engine,
        aggregator=aggregator,
        scoring=scoring_policy,
        logger=logger,
        max_workers=config.engine.max_workers,
    )

    # Use cases
    review_uc = providers.Factory(
        ReviewUseCase,
        orchestrator=orchestrator,
        writer=writer,
        logger=logger,
    )

    extract_uc = providers.Factory(
        ExtractUseCase,
        loader=loader,
        classifier=classifier,
        store=extract_store,
        logger=logger,
    )

    list_rules_uc = providers.Factory(
        ListRulesUseCase,
        registry=registry,
        policy=rule_policy,
    )
