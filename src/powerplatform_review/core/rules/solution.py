"""Rules for the Dataverse customization set (solution manifest and friends)."""

from __future__ import annotations

from typing import Iterator

from ...shared.textscan import find_line
from ..domain.models import Component, ComponentKind, Location, Severity
from ..parsers import XmlModel
from .base import RuleContext, RuleHit, rule
from .xmlutil import first_named, iter_named

SOLUTION = [ComponentKind.SOLUTION]


def _solution(component: Component) -> XmlModel:
    return component.metadata


@rule(
    id="PP-SOLUTION-PUBLISHER",
    title="Solution publisher metadata missing",
    severity=Severity.WARNING,
    category="Maintainability",
    kinds=SOLUTION,
)
def publisher_metadata(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """A publisher with a unique name and prefix is needed for ALM traceability."""
    model = _solution(component)
    doc = model.find("solution.xml")
    if doc is None:
        yield RuleHit(message="solution.xml not found in the customization set")
        return
    publisher = first_named(doc.root, "Publisher")
    unique = first_named(publisher, "UniqueName") if publisher is not None else None
    if publisher is None or unique is None or not (unique.text or "").strip():
        yield RuleHit(
            message="solution.xml has no Publisher with a UniqueName",
            location=Location(path=doc.path, line=find_line(doc.text, "<SolutionManifest")),
        )


@rule(
    id="PP-SOLUTION-UNMANAGED",
    title="Unmanaged solution export",
    severity=Severity.INFO,
    category="Maintainability",
    kinds=SOLUTION,
)
def unmanaged_export(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Downstream environments should receive managed solutions."""
    doc = _solution(component).find("solution.xml")
    if doc is None:
        return
    managed = first_named(doc.root, "Managed")
    if managed is not None and (managed.text or "").strip() == "0":
        yield RuleHit(
            message="Solution is exported as unmanaged",
            location=Location(path=doc.path, line=find_line(doc.text, "<Managed>")),
        )


@rule(
    id="PP-SOLUTION-ENV-VALUES",
    title="Environment variable without value",
    severity=Severity.WARNING,
    category="Maintainability",
    kinds=SOLUTION,
)
def env_var_without_value(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Definitions without a default or current value make imports fail or need manual setup."""
    model = _solution(component)
    value_paths = [p.lower() for p in model.texts if "environmentvariablevalue" in p.lower()]
    for doc in model.under("environmentvariabledefinitions"):
        if not doc.path.lower().endswith("environmentvariabledefinition.xml"):
            continue
        default = first_named(doc.root, "defaultvalue")
        if default is not None and (default.text or "").strip():
            continue
        folder = doc.path.lower().rsplit("/", 1)[0]
        if any(p.startswith(folder + "/") or "environmentvariablevalues/" in p for p in value_paths):
            continue
        yield RuleHit(
            message=f"Environment variable {folder.rsplit('/', 1)[-1]} has neither a default nor a value",
            location=Location(path=doc.path),
        )


@rule(
    id="PP-SOLUTION-CONNECTION-REFS",
    title="No connection references",
    severity=Severity.INFO,
    category="Maintainability",
    kinds=SOLUTION,
)
def no_connection_references(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Connection references keep flows and apps environment-agnostic."""
    model = _solution(component)
    if model.under("connectionreferences"):
        return
    customizations = model.find("customizations.xml")
    if customizations is not None and next(iter_named(customizations.root, "connectionreference"), None) is not None:
        return
    yield RuleHit(
        message="No connection references found in the solution",
        location=Location(path=customizations.path) if customizations is not None else None,
    )


RULES = [publisher_metadata, unmanaged_export, env_var_without_value, no_connection_references]
