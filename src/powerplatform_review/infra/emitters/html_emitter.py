"""Human-readable HTML report rendered with Jinja2."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ...core.domain.models import ReviewResult

TEMPLATES_DIR = Path(__file__).parent / "templates"


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render(result: ReviewResult) -> str:
    template = _environment().get_template("report.html.j2")
    scores = {s.component_id: s for s in result.component_scores}
    rows = []
    for c in result.components:
        findings = result.findings_for(c.id)
        rows.append({"component": c, "score": scores.get(c.id), "findings": findings})
    bundle_findings = [f for f in result.findings if f.component_id is None]
    return template.render(
        result=result,
        rows=rows,
        bundle_findings=bundle_findings,
    )


def encode(result: ReviewResult) -> bytes:
    return render(result).encode("utf-8")
