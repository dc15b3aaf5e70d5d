from __future__ import annotations

from pathlib import Path

from .config import AppConfig, load_config
from .container import Container
from ..core.domain.models import Component, ReviewResult
from ..core.ports import CancellationToken
from ..core.usecases.list_rules import RuleInfo


def _create_container(config: AppConfig | None = None) -> Container:
    """Create and initialize a container.

    Args:
        config: Optional config. If None, loads from environment variables.

    Returns:
        Initialized container instance
    """
    container = Container()

    if config is None:
        config = load_config()

    container.config.from_pydantic(config)
    container.init_resources()

    return container


def review(
    bundle: str | Path,
    *,
    output_dir: str | Path | None = None,
    formats: list[str] | None = None,
    threshold: float | None = None,
    timeout: float | None = None,
    token: CancellationToken | None = None,
    config: AppConfig | None = None,
) -> ReviewResult:
    """Review a solution bundle.

    Args:
        bundle: Path to the bundle (.zip)
        output_dir: When given, reports are written there
        formats: Report formats (defaults to the configured formats)
        threshold: Gate threshold; overrides the configured one
        timeout: Cancel after this many seconds
        token: Cancellation token the caller can trigger
        config: Optional config for testing. If None, loads from env vars.

    Returns:
        Review result

    Raises:
        ArchiveError: If the bundle cannot be loaded
        ReviewCancelled: On cancellation or timeout
    """
    config = config or load_config()
    container = _create_container(config)
    try:
        uc = container.review_uc()
        result, _ = uc.execute(
            bundle_path=Path(bundle),
            output_dir=Path(output_dir) if output_dir is not None else None,
            formats=formats if formats is not None else list(config.output.formats),
            threshold=threshold,
            timeout=timeout,
            token=token,
        )
    finally:
        container.shutdown_resources()
    return result


def extract(
    bundle: str | Path,
    output_dir: str | Path,
    *,
    config: AppConfig | None = None,
) -> list[Component]:
    """Unpack a bundle and classify its components.

    Returns:
        Classified components; `components.json` is written next to the files
    """
    container = _create_container(config)
    try:
        components, _ = container.extract_uc().execute(
            bundle_path=Path(bundle),
            output_dir=Path(output_dir),
        )
    finally:
        container.shutdown_resources()
    return components


def list_rules(config: AppConfig | None = None) -> list[RuleInfo]:
    """List registered rules with their effective severity and state."""
    container = _create_container(config)
    try:
        return container.list_rules_uc().execute()
    finally:
        container.shutdown_resources()
