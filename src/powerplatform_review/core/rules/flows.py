"""Rules for Power Automate cloud flow definitions."""

from __future__ import annotations

import re
from typing import Iterator

from ...shared.textscan import find_line, urls_outside, walk_json
from ..domain.models import Component, ComponentKind, Location, Severity
from ..parsers import FlowModel
from .base import RuleContext, RuleHit, rule

FLOW = [ComponentKind.FLOW]

SECRET_KEY_RE = re.compile(r"(password|secret|api[_-]?key|access[_-]?token|client[_-]?secret|token)$", re.IGNORECASE)
FAILURE_STATUSES = {"Failed", "TimedOut"}


def _flow(component: Component) -> FlowModel:
    return component.metadata


def _location(model: FlowModel, needle: str | None = None) -> Location:
    line = find_line(model.text, needle) if needle else None
    return Location(path=model.path, line=line)


@rule(
    id="PP-FLOW-HARDCODED-URL",
    title="Hardcoded URL in flow definition",
    severity=Severity.WARNING,
    category="Maintainability",
    kinds=FLOW,
    defaults={"allowed_hosts": ["schema.management.azure.com"]},
)
def hardcoded_url(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Absolute URLs break when the flow moves between environments; use environment variables."""
    model = _flow(component)
    allowed = ctx.param("allowed_hosts", [])
    seen: set[str] = set()
    for path, value in walk_json(model.definition):
        if not isinstance(value, str) or path.endswith("$schema"):
            continue
        for url in urls_outside(value, allowed):
            if url in seen:
                continue
            seen.add(url)
            yield RuleHit(
                message=f"Flow contains hardcoded URL {url} at {path}",
                location=_location(model, url),
            )


@rule(
    id="PP-FLOW-SECRET",
    title="Secret-like literal in flow definition",
    severity=Severity.ERROR,
    category="Security",
    kinds=FLOW,
)
def embedded_secret(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Secrets must come from secure inputs, Key Vault or connection references."""
    model = _flow(component)
    for path, value in walk_json(model.definition):
        key = re.split(r"[.\[]", path)[-1]
        if not SECRET_KEY_RE.search(key):
            continue
        if not isinstance(value, str) or len(value.strip()) < 4:
            continue
        # Workflow expressions and parameter references are not literals
        if value.lstrip().startswith("@"):
            continue
        yield RuleHit(
            message=f"Literal value assigned to secret-like field {path}",
            location=_location(model, f'"{key}"'),
        )


@rule(
    id="PP-FLOW-RETRY",
    title="HTTP action without explicit retry policy",
    severity=Severity.INFO,
    category="Reliability",
    kinds=FLOW,
)
def missing_retry_policy(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Transient failures are common; set a retry policy on outbound HTTP calls."""
    model = _flow(component)
    for name in sorted(model.actions):
        action = model.actions[name]
        if str(action.get("type", "")).lower() != "http":
            continue
        inputs = action.get("inputs") if isinstance(action.get("inputs"), dict) else {}
        if "retryPolicy" in inputs:
            continue
        yield RuleHit(
            message=f"HTTP action '{name}' has no retryPolicy",
            location=_location(model, f'"{name}"'),
        )


@rule(
    id="PP-FLOW-RUNAFTER",
    title="No failure handling path",
    severity=Severity.INFO,
    category="Reliability",
    kinds=FLOW,
)
def missing_failure_path(component: Component, ctx: RuleContext) -> Iterator[RuleHit]:
    """Use scopes with runAfter Failed/TimedOut branches for try/catch handling."""
    model = _flow(component)
    if not model.actions:
        return
    for action in model.actions.values():
        run_after = action.get("runAfter")
        if not isinstance(run_after, dict):
            continue
        for statuses in run_after.values():
            if isinstance(statuses, list) and FAILURE_STATUSES.intersection(statuses):
                return
    yield RuleHit(
        message=f"None of the {len(model.actions)} actions runs after a Failed or TimedOut step",
        location=_location(model),
    )


RULES = [hardcoded_url, embedded_secret, missing_retry_policy, missing_failure_path]
