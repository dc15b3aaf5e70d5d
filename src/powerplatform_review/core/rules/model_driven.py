"""Rules for model-driven apps (AppModule and sitemap definitions)."""

from __future__ import annotations

from typing import Iterator

from ...shared.textscan import find_line, urls_outside
from ..domain.models import Component, ComponentKind, Location, Severity
from ..parsers import XmlModel
from .base import RuleContext, RuleHit, rule

MDA = [ComponentKind.MODEL_DRIVEN_APP]


def _mda(component: Component) -> XmlModel:
    return component.metadata


@rule(
    id="PP-MDA-SITEMAP",
    title="Model-driven app without sitemap",
    severity=Severity.WARNING,
    category="Maintainability",
    kinds=MDA,
)
def missing_sitemap(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """The sitemap defines navigation; without it users get default navigation."""
    model = _mda(component)
    if any("sitemap" in d.path.lower() or "sitemap" in d.text.lower() for d in model.documents):
        return
    yield RuleHit(
        message=f"No sitemap found for model-driven app {component.name}",
        location=Location(path=component.paths[0]) if component.paths else None,
    )


@rule(
    id="PP-MDA-HARDCODED-URL",
    title="Hardcoded URL in model-driven app",
    severity=Severity.WARNING,
    category="Maintainability",
    kinds=MDA,
    defaults={"allowed_hosts": ["schemas.microsoft.com", "www.w3.org"]},
)
def hardcoded_url(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Environment URLs embedded in app metadata break across environments."""
    for doc in _mda(component).documents:
        urls = urls_outside(doc.text, ctx.param("allowed_hosts", []))
        for url in sorted(set(urls)):
            yield RuleHit(
                message=f"Hardcoded URL {url}",
                location=Location(path=doc.path, line=find_line(doc.text, url)),
            )


@rule(
    id="PP-MDA-LARGE",
    title="Oversized model-driven app definition",
    severity=Severity.INFO,
    category="Performance",
    kinds=MDA,
    defaults={"max_bytes": 500_000},
)
def oversized(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Very large definitions usually mean too many forms, views and dashboards in one app."""
    limit = int(ctx.param("max_bytes", 500_000))
    if component.size > limit:
        yield RuleHit(message=f"App definition is {component.size} bytes (limit {limit})")


RULES = [missing_sitemap, hardcoded_url, oversized]
