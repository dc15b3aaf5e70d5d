from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from .domain.exceptions import EmitError, ReviewCancelled
from .domain.models import Bundle, Component, ReviewResult


class ArchiveLoaderPort(Protocol):
    """Port for turning a bundle file into an in-memory Bundle."""

    def load(self, path: Path) -> Bundle:
        """Load and validate a bundle.

        Raises:
            ArchiveError: If the archive is corrupt, too large, empty or
                contains unsafe paths.
        """
        ...


class ReportWriterPort(Protocol):
    """Port for writing emitted reports to a directory."""

    def write(self, result: ReviewResult, formats: list[str], output_dir: Path) -> "EmitSummary":
        ...


class ExtractStorePort(Protocol):
    """Port for materialising a classified bundle on disk."""

    def save(self, bundle: Bundle, components: list[Component], output_dir: Path) -> Path:
        """Write all entries plus a manifest; return the manifest path."""
        ...


class LoggerPort(Protocol):
    """Port for structured logging.

    Implementations accept arbitrary keyword fields which end up as
    structured data in the JSONL run log.
    """

    def debug(self, message: str, **kwargs) -> None:
        ...

    def info(self, message: str, **kwargs) -> None:
        ...

    def warning(self, message: str, **kwargs) -> None:
        ...

    def error(self, message: str, exc_info: bool = False, **kwargs) -> None:
        ...

    def exception(self, message: str, **kwargs) -> None:
        ...


@dataclass
class EmitSummary:
    """Outcome of writing one or more report formats."""
    written: dict[str, Path] = field(default_factory=dict)
    errors: list[EmitError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class CancellationToken:
    """Thread-safe cancellation flag checked at pipeline safe points."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = ""

    def cancel(self, reason: str = "cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def raise_if_cancelled(self, stage: str) -> None:
        if self._event.is_set():
            raise ReviewCancelled(f"Review cancelled before {stage}: {self._reason}")


class NullLogger:
    """Logger that discards everything; used when no logger is wired."""

    def debug(self, message: str, **kwargs) -> None:
        pass

    def info(self, message: str, **kwargs) -> None:
        pass

    def warning(self, message: str, **kwargs) -> None:
        pass

    def error(self, message: str, exc_info: bool = False, **kwargs) -> None:
        pass

    def exception(self, message: str, **kwargs) -> None:
        pass
