"""Domain exceptions for powerplatform_review."""

from __future__ import annotations

from enum import Enum


class ReviewError(Exception):
    """Base class for all review failures carrying a stable error code."""

    code: str = "REVIEW_ERROR"


class ArchiveErrorCode(str, Enum):
    CORRUPT = "ARCHIVE_CORRUPT"
    TOO_LARGE = "ARCHIVE_TOO_LARGE"
    PATH_TRAVERSAL = "ARCHIVE_PATH_TRAVERSAL"
    EMPTY = "ARCHIVE_EMPTY"


class ArchiveError(ReviewError):
    """Raised when a bundle cannot be loaded.

    Always fatal to the run: no partial result is produced.
    """

    def __init__(self, code: ArchiveErrorCode, message: str, *, path: str | None = None) -> None:
        self.archive_code = code
        self.code = code.value
        self.path = path
        super().__init__(message)


class ClassificationError(ReviewError):
    """Raised by a component parser when its backing entries cannot be parsed.

    Caught by the classifier, which downgrades the component to malformed.
    """

    code = "CLASSIFICATION_ERROR"

    def __init__(self, component_id: str, message: str) -> None:
        self.component_id = component_id
        super().__init__(message)


class RuleExecutionError(ReviewError):
    """A rule raised while evaluating a component.

    Converted by the rule engine into a synthetic finding; never propagated.
    """

    code = "RULE_EXECUTION_ERROR"

    def __init__(self, rule_id: str, component_id: str, cause: BaseException) -> None:
        self.rule_id = rule_id
        self.component_id = component_id
        self.cause = cause
        super().__init__(f"Rule {rule_id} failed on {component_id}: {type(cause).__name__}: {cause}")


class EmitErrorCode(str, Enum):
    UNSUPPORTED_FORMAT = "EMIT_UNSUPPORTED_FORMAT"
    WRITE_FAILURE = "EMIT_WRITE_FAILURE"


class EmitError(ReviewError):
    def __init__(self, code: EmitErrorCode, message: str, *, fmt: str | None = None) -> None:
        self.emit_code = code
        self.code = code.value
        self.fmt = fmt
        super().__init__(message)


class ReviewCancelled(ReviewError):
    """The run was cancelled at a safe point; partial work is discarded."""

    code = "REVIEW_CANCELLED"


class ConfigError(ReviewError):
    """A rules/configuration file could not be read or validated."""

    code = "CONFIG_INVALID"
