from __future__ import annotations

import logging
from pathlib import Path

from dependency_injector.resources import Resource

from .formatters import HumanReadableFormatter, JSONFormatter


class ReviewLogger(Resource):
    """Structured logger for one review run.

    Writes a JSONL run log named after the bundle and, when requested, a
    human-readable console stream. Keyword fields passed to the logging
    methods become structured fields of the record.
    """

    def init(
        self,
        *,
        run_name: str | None = None,
        logs_dir: Path,
        logger_name: str = "powerplatform_review",
        console_output: bool = False,
        level: str = "INFO",
    ) -> "ReviewLogger":
        """Initialize handlers.

        Args:
            run_name: Log file stem (usually the bundle stem); no file log when None
            logs_dir: Directory to store log files
            logger_name: Logger name
            console_output: Whether to enable console output
            level: Logging level (DEBUG, INFO, WARNING, ERROR)

        Returns:
            Self for dependency_injector Resource pattern
        """
        numeric = getattr(logging, level.upper(), logging.INFO)
        self._logger = logging.getLogger(logger_name)
        self._logger.setLevel(numeric)
        self._logger.propagate = False

        self._logger.handlers.clear()
        self._handlers = []
        self.log_file: Path | None = None

        if run_name:
            self.log_file = logs_dir / f"{run_name}.jsonl"
            file_handler = _run_log_handler(self.log_file, numeric)
            self._logger.addHandler(file_handler)
            self._handlers.append(file_handler)

        if console_output:
            console_handler = _console_handler(numeric)
            self._logger.addHandler(console_handler)
            self._handlers.append(console_handler)

        return self

    def shutdown(self, resource: "ReviewLogger") -> None:
        """Flush and close all handlers so the run log is complete on disk."""
        for handler in self._handlers:
            handler.flush()
            handler.close()
        self._logger.handlers.clear()

    def debug(self, message: str, **kwargs) -> None:
        self._logger.debug(message, extra=kwargs or None)

    def info(self, message: str, **kwargs) -> None:
        self._logger.info(message, extra=kwargs or None)

    def warning(self, message: str, **kwargs) -> None:
        self._logger.warning(message, extra=kwargs or None)

    def error(self, message: str, exc_info: bool = False, **kwargs) -> None:
        self._logger.error(message, extra=kwargs or None, exc_info=exc_info)

    def exception(self, message: str, **kwargs) -> None:
        self._logger.exception(message, extra=kwargs or None)


def _run_log_handler(path: Path, level: int) -> logging.Handler:
    # One log per run: a rerun on the same bundle replaces the previous file
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def _console_handler(level: int) -> logging.Handler:
    """stderr stream for `--verbose`; stdout carries only the review summary."""
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(HumanReadableFormatter())
    return handler
