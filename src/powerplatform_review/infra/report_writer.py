from __future__ import annotations

from pathlib import Path

from ..core.domain.exceptions import EmitError, EmitErrorCode
from ..core.domain.models import ReviewResult
from ..core.ports import EmitSummary
from .emitters import EXTENSIONS, emit

REPORT_STEM = "results"


class ReportWriter:
    """Writes `results.<ext>` for each requested format.

    Formats are independent: a failure in one is recorded in the summary
    and the remaining formats are still written.
    """

    def write(self, result: ReviewResult, formats: list[str], output_dir: Path) -> EmitSummary:
        summary = EmitSummary()
        for fmt in _unique(formats):
            try:
                data = emit(result, fmt)
            except EmitError as e:
                summary.errors.append(e)
                continue

            target = output_dir / f"{REPORT_STEM}.{EXTENSIONS[fmt.lower()]}"
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
                target.write_bytes(data)
            except OSError as e:
                summary.errors.append(
                    EmitError(EmitErrorCode.WRITE_FAILURE, f"Cannot write {target}: {e}", fmt=fmt)
                )
                continue
            summary.written[fmt.lower()] = target
        return summary


def _unique(formats: list[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for fmt in formats:
        key = fmt.strip().lower()
        if key and key not in seen:
            seen.add(key)
            out.append(key)
    return out
