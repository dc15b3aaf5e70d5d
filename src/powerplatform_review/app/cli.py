from __future__ import annotations

import json
from pathlib import Path

import typer
from dotenv import load_dotenv

from .config import AppConfig, load_config
from .container import Container
from .cli_formatter import (
    format_components,
    format_review_result,
    format_rule_list,
    rule_info_to_dict,
)
from ..core.domain.exceptions import ArchiveError, ConfigError, ReviewCancelled, ReviewError

load_dotenv()

EXIT_OK = 0
EXIT_GATE_FAILED = 1
EXIT_FATAL = 2
EXIT_CANCELLED = 3

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _fail(err: ReviewError, code: int) -> typer.Exit:
    typer.echo(f"Error [{err.code}]: {err}", err=True)
    return typer.Exit(code=code)


def _load(config_file: Path | None) -> AppConfig:
    try:
        return load_config(config_file)
    except ConfigError as e:
        raise _fail(e, EXIT_FATAL)


def _container(config: AppConfig) -> Container:
    container = Container()
    container.config.from_pydantic(config)
    container.init_resources()
    return container


def _resolve_threshold(config: AppConfig, threshold: float | None, strict: bool) -> float | None:
    if threshold is not None:
        return threshold
    if config.scoring.threshold is not None:
        return config.scoring.threshold
    if strict:
        return config.scoring.strict_threshold
    return None


def _parse_formats(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return list(default)
    return [f.strip() for f in value.split(",") if f.strip()]


@app.command()
def review(
    bundle: Path = typer.Argument(..., help="Solution bundle (.zip)"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Report directory"),
    formats: str | None = typer.Option(None, "--format", "-f", help="Comma-separated formats: json,sarif,html"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Rules/config file (.json or .toml)"),
    threshold: float | None = typer.Option(None, "--threshold", "-t", help="Fail when the overall score is below this"),
    strict: bool = typer.Option(False, "--strict", help="Enable the gate with the strict threshold"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
    debug: bool = typer.Option(False, "--debug", help="Log debug events to stderr"),
    timeout: float | None = typer.Option(None, "--timeout", help="Cancel the review after SECONDS"),
    workers: int | None = typer.Option(None, "--workers", "-w", min=1, help="Worker threads"),
):
    """Review a Power Platform solution bundle and write scored reports.

    Exit codes: 0 pass or informational, 1 below threshold, 2 fatal error,
    3 cancelled or timed out.
    """
    config = _load(config_file)
    config = config.with_overrides(
        runtime={"run_name": bundle.stem},
        logging={
            "console_output": verbose or debug or config.logging.console_output,
            "level": "DEBUG" if debug else config.logging.level,
        },
        engine={"max_workers": workers or config.engine.max_workers},
    )

    output_dir = output or config.output.directory
    gate = _resolve_threshold(config, threshold, strict)

    container = _container(config)
    try:
        uc = container.review_uc()
        result, summary = uc.execute(
            bundle_path=bundle,
            output_dir=output_dir,
            formats=_parse_formats(formats, config.output.formats),
            threshold=gate,
            timeout=timeout or config.engine.timeout_seconds,
        )
    except ArchiveError as e:
        raise _fail(e, EXIT_FATAL)
    except ReviewCancelled as e:
        raise _fail(e, EXIT_CANCELLED)
    except KeyboardInterrupt:
        raise _fail(ReviewCancelled("interrupted"), EXIT_CANCELLED)
    except ReviewError as e:
        raise _fail(e, EXIT_FATAL)
    finally:
        container.shutdown_resources()

    typer.echo(format_review_result(result, summary))
    if summary is not None:
        for err in summary.errors:
            typer.echo(f"Warning [{err.code}]: {err}", err=True)

    if not result.passed:
        raise typer.Exit(code=EXIT_GATE_FAILED)


@app.command()
def extract(
    bundle: Path = typer.Argument(..., help="Solution bundle (.zip)"),
    output: Path = typer.Option(Path("extracted"), "--output", "-o", help="Directory to unpack into"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Config file (.json or .toml)"),
):
    """Unpack a bundle and write a components.json classification manifest."""
    config = _load(config_file)
    container = _container(config)
    try:
        components, manifest = container.extract_uc().execute(bundle_path=bundle, output_dir=output)
    except ReviewError as e:
        raise _fail(e, EXIT_FATAL)
    except OSError as e:
        typer.echo(f"Error [EXTRACT_WRITE_FAILURE]: {e}", err=True)
        raise typer.Exit(code=EXIT_FATAL)
    finally:
        container.shutdown_resources()

    typer.echo(format_components(components, manifest))


@app.command(name="rules")
def rules_command(
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Config file (.json or .toml)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List the built-in rules and whether the current configuration runs them."""
    config = _load(config_file)
    container = _container(config)
    try:
        infos = container.list_rules_uc().execute()
    finally:
        container.shutdown_resources()

    if json_output:
        typer.echo(json.dumps({"rules": [rule_info_to_dict(i) for i in infos]}, ensure_ascii=False, indent=2))
    else:
        typer.echo(format_rule_list(infos))


if __name__ == "__main__":
    app()
