from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any, Callable


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Ordering rank, higher is more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
    Severity.CRITICAL: 3,
}


class ComponentKind(str, Enum):
    CANVAS_APP = "canvas_app"
    MODEL_DRIVEN_APP = "model_driven_app"
    FLOW = "flow"
    SOLUTION = "solution"
    PCF_CONTROL = "pcf_control"
    UNKNOWN = "unknown"
    MALFORMED = "malformed"


class FindingKind(str, Enum):
    ISSUE = "issue"
    RULE_EXECUTION_ERROR = "rule_execution_error"
    CLASSIFICATION_ERROR = "classification_error"
    NOTICE = "notice"


@dataclass(frozen=True)
class RawEntry:
    """One file inside the bundle archive."""
    path: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    def text(self) -> str:
        return self.data.decode("utf-8-sig", errors="replace")


@dataclass(frozen=True)
class Bundle:
    """In-memory view of a loaded archive.

    Entries keep the archive order. Paths use forward slashes and are
    guaranteed to be relative and free of `..` segments by the loader.
    """
    source_path: str
    entries: tuple[RawEntry, ...]

    @property
    def paths(self) -> list[str]:
        return [e.path for e in self.entries]

    @property
    def total_size(self) -> int:
        return sum(e.size for e in self.entries)

    def get(self, path: str) -> RawEntry | None:
        for entry in self.entries:
            if entry.path == path:
                return entry
        return None


@dataclass(frozen=True)
class Location:
    path: str
    line: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return self.path
        if self.column is None:
            return f"{self.path}:{self.line}"
        return f"{self.path}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Finding:
    """A single flagged issue.

    `component_id` is a non-owning reference to a Component of the same
    review. It is None only for the bundle-level notice emitted when
    nothing could be scored.
    """
    rule_id: str
    severity: Severity
    message: str
    component_id: str | None
    category: str = "General"
    title: str = ""
    location: Location | None = None
    kind: FindingKind = FindingKind.ISSUE


@dataclass(frozen=True)
class Component:
    """A classified unit of the bundle (one app, one flow, ...).

    `metadata` is parsed lazily from the backing entries and memoized.
    """
    kind: ComponentKind
    name: str
    entries: tuple[RawEntry, ...]
    declared_kind: ComponentKind | None = None
    diagnostics: tuple[Finding, ...] = ()
    parser: Callable[["Component"], Any] | None = field(
        default=None, repr=False, compare=False
    )

    @property
    def origin_kind(self) -> ComponentKind:
        return self.declared_kind or self.kind

    @property
    def id(self) -> str:
        return f"{self.origin_kind.value}/{self.name}"

    @property
    def scorable(self) -> bool:
        return self.kind is not ComponentKind.UNKNOWN

    @property
    def paths(self) -> list[str]:
        return [e.path for e in self.entries]

    @property
    def size(self) -> int:
        return sum(e.size for e in self.entries)

    @cached_property
    def metadata(self) -> Any:
        if self.parser is None:
            return None
        return self.parser(self)

    def entry(self, suffix: str) -> RawEntry | None:
        """First backing entry whose path ends with `suffix` (case-insensitive)."""
        lowered = suffix.lower()
        for e in self.entries:
            if e.path.lower().endswith(lowered):
                return e
        return None


@dataclass(frozen=True)
class ComponentScore:
    component_id: str
    kind: ComponentKind
    score: float
    weight: float
    finding_count: int


@dataclass(frozen=True)
class CategoryStatus:
    category: str
    passed: bool
    issue_count: int


@dataclass(frozen=True)
class ReviewResult:
    """Aggregated, scored output of one review run."""
    bundle_path: str
    components: tuple[Component, ...]
    findings: tuple[Finding, ...]
    component_scores: tuple[ComponentScore, ...]
    overall_score: float
    threshold: float | None
    passed: bool
    categories: tuple[CategoryStatus, ...] = ()

    def component(self, component_id: str) -> Component | None:
        for c in self.components:
            if c.id == component_id:
                return c
        return None

    def score_for(self, component_id: str) -> ComponentScore | None:
        for s in self.component_scores:
            if s.component_id == component_id:
                return s
        return None

    def findings_for(self, component_id: str) -> list[Finding]:
        return [f for f in self.findings if f.component_id == component_id]
