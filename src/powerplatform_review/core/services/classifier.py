from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from ...shared.globbing import glob_match, literal_length, literal_prefix
from ..domain.exceptions import ClassificationError
from ..domain.models import (
    Bundle,
    Component,
    ComponentKind,
    Finding,
    FindingKind,
    Location,
    RawEntry,
    Severity,
)
from ..ports import LoggerPort, NullLogger
from ..parsers import PARSERS

PARSE_ERROR_RULE_ID = "PP-PARSE-ERROR"

# Top-level folders of a solution export; a wrapper folder with one of these
# names is content, not packaging.
SOLUTION_ROOTS = {
    "workflows",
    "canvasapps",
    "appmodules",
    "appmodulesitemaps",
    "controls",
    "other",
    "environmentvariabledefinitions",
    "connectionreferences",
}

_CANVAS_SUFFIX_RE = re.compile(
    r"_(DocumentUri|BackgroundImageUri|AdditionalUris\d+_identity)(\.[^/]*)?$",
    re.IGNORECASE,
)

Namer = Callable[[str], str]
Sniffer = Callable[[RawEntry], bool]


def fixed(name: str) -> Namer:
    return lambda path: name


def segment(index: int) -> Namer:
    return lambda path: path.split("/")[index]


def stem(path: str) -> str:
    base = path.rsplit("/", 1)[-1]
    return base.split(".", 1)[0] if "." in base else base


def canvas_stem(path: str) -> str:
    base = path.rsplit("/", 1)[-1]
    trimmed = _CANVAS_SUFFIX_RE.sub("", base)
    if trimmed != base:
        return trimmed
    return stem(path)


def parent_dir(path: str) -> str:
    parts = path.split("/")
    return parts[-2] if len(parts) > 1 else stem(path)


def looks_like_logic_app(entry: RawEntry) -> bool:
    head = entry.data[:4096].decode("utf-8", errors="ignore").lower()
    return "workflowdefinition.json" in head


@dataclass(frozen=True)
class Signature:
    """Maps a path glob (plus optional content sniff) to a component kind."""
    pattern: str
    kind: ComponentKind
    namer: Namer
    sniff: Sniffer | None = None

    @property
    def specificity(self) -> tuple[int, int]:
        return len(literal_prefix(self.pattern)), literal_length(self.pattern)

    def matches(self, path: str, entry: RawEntry) -> bool:
        if not glob_match(self.pattern, path):
            return False
        return self.sniff is None or self.sniff(entry)


DEFAULT_SIGNATURES: tuple[Signature, ...] = (
    Signature("solution.xml", ComponentKind.SOLUTION, fixed("solution")),
    Signature("customizations.xml", ComponentKind.SOLUTION, fixed("solution")),
    Signature("[Content_Types].xml", ComponentKind.SOLUTION, fixed("solution")),
    Signature("Other/Solution.xml", ComponentKind.SOLUTION, fixed("solution")),
    Signature("Other/Customizations.xml", ComponentKind.SOLUTION, fixed("solution")),
    Signature("environmentvariabledefinitions/**", ComponentKind.SOLUTION, fixed("solution")),
    Signature("environmentvariablevalues/**", ComponentKind.SOLUTION, fixed("solution")),
    Signature("connectionreferences/**", ComponentKind.SOLUTION, fixed("solution")),
    Signature("Workflows/*.json", ComponentKind.FLOW, stem),
    Signature("CanvasApps/*", ComponentKind.CANVAS_APP, canvas_stem),
    Signature("AppModules/*/**", ComponentKind.MODEL_DRIVEN_APP, segment(1)),
    Signature("AppModuleSiteMaps/*/**", ComponentKind.MODEL_DRIVEN_APP, segment(1)),
    Signature("Controls/*/**", ComponentKind.PCF_CONTROL, segment(1)),
    Signature("**/ControlManifest.Input.xml", ComponentKind.PCF_CONTROL, parent_dir),
    Signature("**/*.json", ComponentKind.FLOW, stem, sniff=looks_like_logic_app),
)


def strip_wrapper_root(paths: list[str]) -> str:
    """Return a common wrapper folder prefix (with slash) or an empty string.

    Zips built by hand or downloaded from a repository often wrap
    everything in one folder, e.g. `MySolution_1_0_0_1/solution.xml`.
    """
    if not paths or any("/" not in p for p in paths):
        return ""
    roots = {p.split("/", 1)[0] for p in paths}
    if len(roots) != 1:
        return ""
    root = roots.pop()
    if root.lower() in SOLUTION_ROOTS:
        return ""
    return root + "/"


class ComponentClassifier:
    """Partitions bundle entries into typed components.

    Entries matching several signatures go to the most specific one.
    Unmatched entries become `unknown` components. A component whose
    metadata cannot be parsed is downgraded to `malformed` and carries one
    critical diagnostic finding.
    """

    def __init__(
        self,
        *,
        signatures: tuple[Signature, ...] = DEFAULT_SIGNATURES,
        logger: LoggerPort | None = None,
    ) -> None:
        # Stable sort keeps table order as the final tie-break
        self._signatures = sorted(signatures, key=lambda s: s.specificity, reverse=True)
        self._logger = logger or NullLogger()

    def match(self, path: str, entry: RawEntry) -> Signature | None:
        for sig in self._signatures:
            if sig.matches(path, entry):
                return sig
        return None

    def classify(self, bundle: Bundle) -> list[Component]:
        prefix = strip_wrapper_root(bundle.paths)

        groups: dict[tuple[ComponentKind, str], list[RawEntry]] = {}
        unknown: list[RawEntry] = []
        for entry in bundle.entries:
            rel = entry.path[len(prefix):] if prefix else entry.path
            sig = self.match(rel, entry)
            if sig is None:
                unknown.append(entry)
                continue
            key = (sig.kind, sig.namer(rel))
            groups.setdefault(key, []).append(entry)

        components: list[Component] = []
        for (kind, name), entries in groups.items():
            components.append(self._materialize(kind, name, tuple(entries)))
        for entry in unknown:
            components.append(Component(kind=ComponentKind.UNKNOWN, name=entry.path, entries=(entry,)))

        components.sort(key=lambda c: c.id)
        self._logger.info(
            "components_classified",
            type="components_classified",
            wrapper=prefix or None,
            counts=_count_kinds(components),
        )
        return components

    def _materialize(self, kind: ComponentKind, name: str, entries: tuple[RawEntry, ...]) -> Component:
        component = Component(kind=kind, name=name, entries=entries, parser=PARSERS.get(kind))
        try:
            component.metadata
        except ClassificationError as e:
            return self._malformed(component, str(e))
        except Exception as e:  # parser bug or pathological input
            return self._malformed(component, f"{type(e).__name__}: {e}")
        return component

    def _malformed(self, component: Component, reason: str) -> Component:
        self._logger.warning(
            "component_malformed",
            type="component_malformed",
            component=component.id,
            reason=reason,
        )
        finding = Finding(
            rule_id=PARSE_ERROR_RULE_ID,
            severity=Severity.CRITICAL,
            message=f"Component could not be parsed: {reason}",
            component_id=component.id,
            category="Reliability",
            title="Component could not be parsed",
            location=Location(component.entries[0].path) if component.entries else None,
            kind=FindingKind.CLASSIFICATION_ERROR,
        )
        return Component(
            kind=ComponentKind.MALFORMED,
            name=component.name,
            entries=component.entries,
            declared_kind=component.kind,
            diagnostics=(finding,),
        )


def _count_kinds(components: list[Component]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for c in components:
        counts[c.kind.value] = counts.get(c.kind.value, 0) + 1
    return counts
