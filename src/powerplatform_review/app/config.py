from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

from platformdirs import PlatformDirs
from pydantic import Field, computed_field
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from ..core.domain.exceptions import ConfigError
from ..core.domain.models import ComponentKind, Severity
from ..core.domain.policy import RulePolicy, ScoringPolicy


APP_NAME = "powerplatform_review"
ENV_PREFIX = "PP_REVIEW_"


def _section(name: str) -> SettingsConfigDict:
    # Same variable names whether a section is nested or built on its own
    return SettingsConfigDict(env_prefix=f"{ENV_PREFIX}{name}__")


def _default_home() -> Path:
    """Get default home directory using platformdirs."""
    return Path(PlatformDirs(appname=APP_NAME, appauthor=False).user_cache_dir)


class DirectoryConfig(BaseSettings):
    """Directory configuration with computed paths."""

    model_config = _section("DIRECTORIES")

    home: Path = Field(
        default_factory=_default_home,
        description="Base directory for run logs",
    )

    @computed_field
    @property
    def logs_dir(self) -> Path:
        """Directory for JSONL run logs."""
        path = self.home / "logs"
        path.mkdir(parents=True, exist_ok=True)
        return path


class LimitsConfig(BaseSettings):
    """Archive limits enforced by the loader."""

    model_config = _section("LIMITS")

    max_entries: int = Field(default=10_000, ge=1, description="Maximum number of files in a bundle")
    max_entry_bytes: int = Field(default=50 * 1024 * 1024, ge=1, description="Maximum uncompressed size of one file")
    max_total_bytes: int = Field(default=200 * 1024 * 1024, ge=1, description="Maximum uncompressed size of the bundle")


class ScoringConfig(BaseSettings):
    """Score aggregation settings."""

    model_config = _section("SCORING")

    severity_weights: dict[Severity, float] = Field(
        default_factory=lambda: {
            Severity.CRITICAL: 25.0,
            Severity.ERROR: 10.0,
            Severity.WARNING: 3.0,
            Severity.INFO: 0.0,
        },
        description="Points subtracted from the ceiling per finding of each severity",
    )
    ceiling: float = Field(default=100.0, gt=0, le=100)
    kind_weights: dict[ComponentKind, Annotated[float, Field(ge=0)]] = Field(
        default_factory=dict,
        description="Importance of each component kind in the overall mean (default 1.0)",
    )
    threshold: float | None = Field(
        default=None,
        description="Minimum overall score to pass; None runs in informational mode",
    )
    strict_threshold: float = Field(
        default=70.0,
        description="Threshold applied by --strict when no explicit threshold is set",
    )


class RuleSettings(BaseSettings):
    """Rule selection and per-rule parameters."""

    model_config = _section("RULES")

    enabled: list[str] = Field(default_factory=list, description="Run only these rule ids (empty = all)")
    disabled: list[str] = Field(default_factory=list, description="Never run these rule ids")
    severity_overrides: dict[str, Severity] = Field(default_factory=dict)
    params: dict[str, dict[str, Any]] = Field(default_factory=dict)


class EngineConfig(BaseSettings):
    """Evaluation settings."""

    model_config = _section("ENGINE")

    max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Worker threads for rule evaluation (default: CPU count)",
    )
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Cancel the review after this many seconds",
    )


class OutputConfig(BaseSettings):
    """Report output settings."""

    model_config = _section("OUTPUT")

    formats: list[str] = Field(default_factory=lambda: ["json", "sarif", "html"])
    directory: Path = Field(default=Path("review-output"))


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = _section("LOGGING")

    logger_name: str = Field(default=APP_NAME)
    level: str = Field(default="INFO")
    console_output: bool = Field(default=False)


class RuntimeConfig(BaseSettings):
    """Per-run values set by the CLI or facade, not by users."""

    model_config = _section("RUNTIME")

    run_name: str | None = Field(default=None, description="Stem of the JSONL run log")


class AppConfig(BaseSettings):
    """Root application configuration.

    All configuration is loaded from environment variables with PP_REVIEW_ prefix.
    Use double underscore for nested config: PP_REVIEW_SCORING__THRESHOLD

    Example env vars:
        export PP_REVIEW_SCORING__THRESHOLD=80
        export PP_REVIEW_ENGINE__MAX_WORKERS=4
        export PP_REVIEW_RULES__DISABLED='["PP-FLOW-RETRY"]'
        export PP_REVIEW_DIRECTORIES__HOME=/custom/path

    A rules file (JSON or TOML, see `load_config`) overrides the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        frozen=True,
        extra="forbid",
    )

    directories: DirectoryConfig = Field(default_factory=DirectoryConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    rules: RuleSettings = Field(default_factory=RuleSettings)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    def to_scoring_policy(self) -> ScoringPolicy:
        return ScoringPolicy.build(
            severity_weights={k.value: v for k, v in self.scoring.severity_weights.items()},
            ceiling=self.scoring.ceiling,
            kind_weights={k.value: v for k, v in self.scoring.kind_weights.items()},
            threshold=self.scoring.threshold,
        )

    def to_rule_policy(self) -> RulePolicy:
        return RulePolicy.build(
            enabled=self.rules.enabled,
            disabled=self.rules.disabled,
            severity_overrides={k: v.value for k, v in self.rules.severity_overrides.items()},
            params=self.rules.params,
        )

    def with_overrides(self, **sections: dict[str, Any]) -> "AppConfig":
        """Copy with some fields of some sections replaced.

        Example: `config.with_overrides(scoring={"threshold": 80})`
        """
        update = {}
        for name, values in sections.items():
            update[name] = getattr(self, name).model_copy(update=values)
        return self.model_copy(update=update)


def _file_source(path: Path, settings_cls: type[BaseSettings]) -> PydanticBaseSettingsSource:
    suffix = path.suffix.lower()
    if suffix == ".json":
        return JsonConfigSettingsSource(settings_cls, json_file=path)
    if suffix == ".toml":
        return TomlConfigSettingsSource(settings_cls, toml_file=path)
    raise ConfigError(f"Unsupported config file type '{path.suffix}' (use .json or .toml): {path}")


def load_config(config_file: Path | None = None) -> AppConfig:
    """Load configuration from the environment and an optional rules file.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    if config_file is None:
        try:
            return AppConfig()
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    if not config_file.is_file():
        raise ConfigError(f"Config file not found: {config_file}")
    try:
        source = _file_source(config_file, AppConfig)
    except (ValueError, OSError) as e:
        raise ConfigError(f"Cannot read config file {config_file}: {e}") from e

    class FileBackedConfig(AppConfig):
        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,
            file_secret_settings: PydanticBaseSettingsSource,
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return (init_settings, source, env_settings, dotenv_settings, file_secret_settings)

    try:
        return FileBackedConfig()
    except (ValueError, TypeError, OSError) as e:
        raise ConfigError(f"Invalid config file {config_file}: {e}") from e
