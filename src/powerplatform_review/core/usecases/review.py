from __future__ import annotations

import threading
from pathlib import Path

from ..domain.models import ReviewResult
from ..ports import CancellationToken, EmitSummary, LoggerPort, ReportWriterPort
from ..services import ReviewOrchestrator


class ReviewUseCase:
    """Use case for reviewing a bundle and writing its reports.

    Thin layer over ReviewOrchestrator. It owns the optional timeout and
    the report writing; the library facade can skip writing entirely.
    """

    def __init__(
        self,
        *,
        orchestrator: ReviewOrchestrator,
        writer: ReportWriterPort,
        logger: LoggerPort,
    ) -> None:
        self._orchestrator = orchestrator
        self._writer = writer
        self._logger = logger

    def execute(
        self,
        *,
        bundle_path: Path,
        output_dir: Path | None = None,
        formats: list[str] | None = None,
        threshold: float | None = None,
        timeout: float | None = None,
        token: CancellationToken | None = None,
    ) -> tuple[ReviewResult, EmitSummary | None]:
        """Review a bundle and optionally write reports.

        Args:
            bundle_path: Bundle to review
            output_dir: Where to write reports; nothing is written when None
            formats: Report formats (json, sarif, html)
            threshold: Overrides the configured threshold
            timeout: Cancel the run after this many seconds
            token: External cancellation token

        Returns:
            Tuple of (result, emit summary or None when nothing was written)

        Raises:
            ArchiveError: If the bundle cannot be loaded
            ReviewCancelled: On cancellation or timeout
        """
        token = token or CancellationToken()
        timer = None
        if timeout:
            timer = threading.Timer(timeout, token.cancel, args=(f"timed out after {timeout:g}s",))
            timer.daemon = True
            timer.start()
        try:
            result = self._orchestrator.review(
                bundle_path=bundle_path,
                token=token,
                threshold=threshold,
            )
        finally:
            if timer is not None:
                timer.cancel()

        if output_dir is None or not formats:
            return result, None

        summary = self._writer.write(result, formats, output_dir)
        for fmt, path in summary.written.items():
            self._logger.info("report_written", type="report_written", format=fmt, path=str(path))
        for err in summary.errors:
            self._logger.warning(
                "emit_failed",
                type="emit_failed",
                format=err.fmt,
                code=err.code,
                error=str(err),
            )
        return result, summary
