"""Rules for canvas apps (.msapp packages)."""

from __future__ import annotations

import re
from typing import Iterator

from ...shared.textscan import urls_outside
from ..domain.models import Component, ComponentKind, Location, Severity
from ..parsers import CanvasModel, Formula
from .base import RuleContext, RuleHit, rule

CANVAS = [ComponentKind.CANVAS_APP]

SECRET_RE = re.compile(
    r"(api[_-]?key|client[_-]?secret|password|token)\w*\s*[:=,]\s*\"[^\"]{4,}\"",
    re.IGNORECASE,
)
DATA_QUERY_RE = re.compile(r"\b(Filter|Search|LookUp)\s*\(", re.IGNORECASE)
NON_DELEGABLE = ("EndsWith(", " in ", "CountRows(", "Len(", "Last(")
PERF_TOKENS = ("ForAll(", "LookUp(", "Concurrent(")


def _canvas(component: Component) -> CanvasModel:
    return component.metadata


def _where(model: CanvasModel, f: Formula) -> tuple[str, Location]:
    label = f"{f.control}.{f.property}" if f.control else f.property
    return label, Location(path=f"{model.path}/{f.artifact}", line=f.line)


@rule(
    id="PP-CANVAS-HARDCODED-URL",
    title="Hardcoded URL in canvas formula",
    severity=Severity.WARNING,
    category="Maintainability",
    kinds=CANVAS,
    defaults={"allowed_hosts": []},
)
def hardcoded_url(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Absolute URLs in formulas break across environments; read them from environment variables."""
    model = _canvas(component)
    for f in model.formulas:
        urls = urls_outside(f.script, ctx.param("allowed_hosts", []))
        if urls:
            label, loc = _where(model, f)
            yield RuleHit(message=f"{label} contains hardcoded URL {urls[0]}", location=loc)


@rule(
    id="PP-CANVAS-SECRET",
    title="Secret-like literal in canvas formula",
    severity=Severity.ERROR,
    category="Security",
    kinds=CANVAS,
)
def embedded_secret(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Canvas apps ship to the client; any embedded key or password is exposed."""
    model = _canvas(component)
    for f in model.formulas:
        if SECRET_RE.search(f.script):
            label, loc = _where(model, f)
            yield RuleHit(message=f"{label} assigns a secret-like literal", location=loc)


@rule(
    id="PP-CANVAS-PATCH-IFERROR",
    title="Patch() without IfError()",
    severity=Severity.WARNING,
    category="Reliability",
    kinds=CANVAS,
)
def patch_without_iferror(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Wrap Patch in IfError(..., Notify(...)) so write failures reach the user."""
    model = _canvas(component)
    for f in model.formulas:
        if "Patch(" in f.script and "IfError(" not in f.script:
            label, loc = _where(model, f)
            yield RuleHit(message=f"{label} calls Patch without IfError handling", location=loc)


@rule(
    id="PP-CANVAS-DELEGATION",
    title="Potential delegation problem",
    severity=Severity.WARNING,
    category="Performance",
    kinds=CANVAS,
)
def delegation_smell(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Queries mixing data-source functions with non-delegable operators only see the first rows."""
    model = _canvas(component)
    for f in model.formulas:
        if not DATA_QUERY_RE.search(f.script):
            continue
        token = next((t for t in NON_DELEGABLE if t in f.script), None)
        if token:
            label, loc = _where(model, f)
            yield RuleHit(
                message=f"{label} queries data with '{token.strip()}' which may not delegate",
                location=loc,
            )


@rule(
    id="PP-CANVAS-PERF",
    title="Expensive formula pattern",
    severity=Severity.INFO,
    category="Performance",
    kinds=CANVAS,
)
def performance_smell(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """ForAll, LookUp and Concurrent can be costly when evaluated often or over large tables."""
    model = _canvas(component)
    for f in model.formulas:
        token = next((t for t in PERF_TOKENS if t in f.script), None)
        if token:
            label, loc = _where(model, f)
            yield RuleHit(message=f"{label} uses {token.rstrip('(')}", location=loc)


@rule(
    id="PP-CANVAS-NO-FORMULAS",
    title="No formulas detected",
    severity=Severity.INFO,
    category="Maintainability",
    kinds=CANVAS,
)
def no_formulas(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """The package parsed but no Power Fx was recognised, so the review is shallow."""
    model = _canvas(component)
    if not model.formulas:
        yield RuleHit(
            message=f"No Power Fx formulas found in {len(model.artifacts)} artifacts",
            location=Location(path=model.path),
        )


RULES = [
    hardcoded_url,
    embedded_secret,
    patch_without_iferror,
    delegation_smell,
    performance_smell,
    no_formulas,
]
