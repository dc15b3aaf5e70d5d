"""Rules for Power Apps component framework (PCF) controls."""

from __future__ import annotations

import re
from typing import Iterator

from ...shared.textscan import find_line
from ..domain.models import Component, ComponentKind, Location, Severity
from ..parsers import XmlModel
from .base import RuleContext, RuleHit, rule
from .xmlutil import attr, first_named, iter_named

PCF = [ComponentKind.PCF_CONTROL]

DYNAMIC_CODE_RE = re.compile(r"\beval\s*\(|\bnew\s+Function\s*\(")


def _pcf(component: Component) -> XmlModel:
    return component.metadata


def _manifest(model: XmlModel):
    return next((d for d in model.documents if "controlmanifest" in d.path.lower()), None)


@rule(
    id="PP-PCF-VERSION",
    title="PCF control without version",
    severity=Severity.WARNING,
    category="Maintainability",
    kinds=PCF,
)
def missing_version(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """The control version drives upgrades; without it imports cannot replace the control."""
    doc = _manifest(_pcf(component))
    control = first_named(doc.root, "control") if doc is not None else None
    if doc is None or control is None:
        return
    if not (attr(control, "version") or "").strip():
        yield RuleHit(
            message=f"Control {attr(control, 'constructor') or component.name} has no version attribute",
            location=Location(path=doc.path, line=find_line(doc.text, "<control")),
        )


@rule(
    id="PP-PCF-EVAL",
    title="Dynamic code execution in control bundle",
    severity=Severity.ERROR,
    category="Security",
    kinds=PCF,
)
def dynamic_code(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """eval and new Function defeat content security policies and invite injection."""
    model = _pcf(component)
    for path in sorted(model.texts):
        if not path.lower().endswith((".js", ".ts")):
            continue
        text = model.texts[path]
        m = DYNAMIC_CODE_RE.search(text)
        if m:
            yield RuleHit(
                message=f"Bundle uses {m.group(0).strip()}",
                location=Location(path=path, line=text.count("\n", 0, m.start()) + 1),
            )


@rule(
    id="PP-PCF-EXTERNAL-SERVICE",
    title="Control calls external services",
    severity=Severity.INFO,
    category="Security",
    kinds=PCF,
)
def external_service(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """External service usage makes the control premium and sends data off-tenant."""
    doc = _manifest(_pcf(component))
    if doc is None:
        return
    for el in iter_named(doc.root, "external-service-usage"):
        if (attr(el, "enabled") or "").lower() == "true":
            domains = sorted((d.text or "").strip() for d in iter_named(el, "domain"))
            yield RuleHit(
                message=f"External service usage enabled for {', '.join(domains) or 'unspecified domains'}",
                location=Location(path=doc.path, line=find_line(doc.text, "external-service-usage")),
            )


RULES = [missing_version, dynamic_code, external_service]
