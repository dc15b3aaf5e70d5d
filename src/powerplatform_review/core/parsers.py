"""Per-kind structural parsers used for lazy Component.metadata.

Each parser raises ClassificationError when the backing entries cannot be
understood; the classifier turns that into a malformed component.
"""

from __future__ import annotations

import io
import json
import re
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass, field
from typing import Any, Callable

from .domain.exceptions import ClassificationError
from .domain.models import Component, ComponentKind

MSAPP_MAX_ENTRIES = 5_000
MSAPP_MAX_ARTIFACT_BYTES = 5 * 1024 * 1024
MSAPP_TEXT_SUFFIXES = (".json", ".yaml", ".fx", ".txt")

_YAML_CONTROL_RE = re.compile(r"^(\s*)(?:-\s*)?([A-Za-z_][\w .]*?)\s+As\s+[\w.@]+.*:\s*$")
_YAML_FORMULA_RE = re.compile(r"^(\s*)([A-Za-z][A-Za-z0-9]*):\s*=(.*)$")


@dataclass(frozen=True)
class FlowModel:
    path: str
    text: str
    document: dict[str, Any]
    definition: dict[str, Any]
    actions: dict[str, dict[str, Any]]
    triggers: dict[str, dict[str, Any]]


@dataclass(frozen=True)
class Formula:
    artifact: str
    property: str
    script: str
    control: str | None = None
    line: int | None = None


@dataclass(frozen=True)
class CanvasModel:
    path: str
    artifacts: dict[str, str]
    formulas: tuple[Formula, ...]


@dataclass(frozen=True)
class XmlDocument:
    path: str
    text: str
    root: ET.Element


@dataclass(frozen=True)
class XmlModel:
    """Parsed XML documents of a solution, model-driven app or PCF control."""
    documents: tuple[XmlDocument, ...]
    texts: dict[str, str] = field(default_factory=dict)

    def find(self, suffix: str) -> XmlDocument | None:
        lowered = suffix.lower()
        for doc in self.documents:
            if doc.path.lower().endswith(lowered):
                return doc
        return None

    def under(self, folder: str) -> list[XmlDocument]:
        lowered = folder.lower().strip("/") + "/"
        return [d for d in self.documents if lowered in "/" + d.path.lower()]


# ---------------------------------------------------------------- flows


def _collect_actions(actions: Any, out: dict[str, dict[str, Any]]) -> None:
    if not isinstance(actions, dict):
        return
    for name, action in actions.items():
        if not isinstance(action, dict):
            continue
        out[name] = action
        _collect_actions(action.get("actions"), out)
        else_branch = action.get("else")
        if isinstance(else_branch, dict):
            _collect_actions(else_branch.get("actions"), out)
        default = action.get("default")
        if isinstance(default, dict):
            _collect_actions(default.get("actions"), out)
        cases = action.get("cases")
        if isinstance(cases, dict):
            for case in cases.values():
                if isinstance(case, dict):
                    _collect_actions(case.get("actions"), out)


def parse_flow(component: Component) -> FlowModel:
    entry = component.entry(".json")
    if entry is None:
        raise ClassificationError(component.id, "Flow component has no JSON definition")
    text = entry.text()
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ClassificationError(component.id, f"Invalid flow JSON in {entry.path}: {e}") from e
    if not isinstance(document, dict):
        raise ClassificationError(component.id, f"Flow JSON in {entry.path} is not an object")

    # Solution exports wrap the Logic Apps definition in properties.definition
    properties = document.get("properties")
    definition = properties.get("definition") if isinstance(properties, dict) else None
    if not isinstance(definition, dict):
        definition = document.get("definition") if isinstance(document.get("definition"), dict) else document

    actions: dict[str, dict[str, Any]] = {}
    _collect_actions(definition.get("actions"), actions)
    triggers = definition.get("triggers") if isinstance(definition.get("triggers"), dict) else {}
    return FlowModel(
        path=entry.path,
        text=text,
        document=document,
        definition=definition,
        actions=actions,
        triggers=triggers,
    )


# ---------------------------------------------------------------- canvas apps


def _json_formulas(artifact: str, data: Any, text: str) -> list[Formula]:
    found: list[Formula] = []

    def visit(node: Any, control: str | None) -> None:
        if isinstance(node, dict):
            name = node.get("Name")
            if isinstance(name, str) and ("Rules" in node or "Children" in node or "Template" in node):
                control = name
            prop = node.get("Property")
            script = node.get("InvariantScript")
            if isinstance(prop, str) and isinstance(script, str) and script.strip():
                line = None
                idx = text.find(json.dumps(script)[1:-1][:40])
                if idx >= 0:
                    line = text.count("\n", 0, idx) + 1
                found.append(Formula(artifact=artifact, property=prop, script=script, control=control, line=line))
            for v in node.values():
                visit(v, control)
        elif isinstance(node, list):
            for v in node:
                visit(v, control)

    visit(data, None)
    return found


def _yaml_formulas(artifact: str, text: str) -> list[Formula]:
    found: list[Formula] = []
    controls: list[tuple[int, str]] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        m = _YAML_CONTROL_RE.match(line)
        if m:
            indent = len(m.group(1))
            while controls and controls[-1][0] >= indent:
                controls.pop()
            controls.append((indent, m.group(2).strip()))
            continue
        m = _YAML_FORMULA_RE.match(line)
        if m and m.group(3).strip():
            indent = len(m.group(1))
            while controls and controls[-1][0] >= indent:
                controls.pop()
            control = controls[-1][1] if controls else None
            found.append(Formula(
                artifact=artifact,
                property=m.group(2),
                script=m.group(3).strip(),
                control=control,
                line=lineno,
            ))
    return found


def read_msapp(data: bytes, *, origin: str) -> dict[str, str]:
    """Read text artifacts from a nested .msapp package, in memory."""
    if len(data) < 4 or data[:2] != b"PK":
        raise ClassificationError(origin, "Canvas app package is not a zip container")
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise ClassificationError(origin, f"Canvas app package is corrupt: {e}") from e

    artifacts: dict[str, str] = {}
    with zf:
        infos = [i for i in zf.infolist() if not i.is_dir()]
        if len(infos) > MSAPP_MAX_ENTRIES:
            raise ClassificationError(origin, f"Canvas app package has {len(infos)} entries")
        for info in infos:
            name = info.filename.replace("\\", "/")
            if not name.lower().endswith(MSAPP_TEXT_SUFFIXES):
                continue
            if info.file_size > MSAPP_MAX_ARTIFACT_BYTES:
                continue
            try:
                raw = zf.read(info)
            except (zipfile.BadZipFile, OSError, RuntimeError) as e:
                raise ClassificationError(origin, f"Cannot read {name} from canvas app: {e}") from e
            artifacts[name] = raw.decode("utf-8-sig", errors="replace")
    return artifacts


def parse_canvas(component: Component) -> CanvasModel:
    entry = component.entry(".msapp")
    if entry is None:
        raise ClassificationError(component.id, "Canvas app component has no .msapp package")
    artifacts = read_msapp(entry.data, origin=component.id)

    formulas: list[Formula] = []
    for name in sorted(artifacts):
        text = artifacts[name]
        lowered = name.lower()
        if lowered.endswith(".json"):
            try:
                data = json.loads(text)
            except json.JSONDecodeError:
                # Some packaged json artifacts are not strict JSON; scan them as text
                formulas.extend(_yaml_formulas(name, text))
                continue
            formulas.extend(_json_formulas(name, data, text))
        elif lowered.endswith((".yaml", ".fx")):
            formulas.extend(_yaml_formulas(name, text))
    return CanvasModel(path=entry.path, artifacts=artifacts, formulas=tuple(formulas))


# ---------------------------------------------------------------- xml based kinds


def _parse_xml_entries(component: Component) -> XmlModel:
    documents: list[XmlDocument] = []
    texts: dict[str, str] = {}
    for entry in component.entries:
        lowered = entry.path.lower()
        text = entry.text()
        texts[entry.path] = text
        if not lowered.endswith(".xml"):
            continue
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise ClassificationError(component.id, f"Invalid XML in {entry.path}: {e}") from e
        documents.append(XmlDocument(path=entry.path, text=text, root=root))
    return XmlModel(documents=tuple(documents), texts=texts)


def parse_solution(component: Component) -> XmlModel:
    return _parse_xml_entries(component)


def parse_model_driven_app(component: Component) -> XmlModel:
    return _parse_xml_entries(component)


def parse_pcf_control(component: Component) -> XmlModel:
    model = _parse_xml_entries(component)
    if not any("controlmanifest" in d.path.lower() for d in model.documents):
        raise ClassificationError(component.id, "PCF control has no ControlManifest")
    return model


PARSERS: dict[ComponentKind, Callable[[Component], Any]] = {
    ComponentKind.FLOW: parse_flow,
    ComponentKind.CANVAS_APP: parse_canvas,
    ComponentKind.SOLUTION: parse_solution,
    ComponentKind.MODEL_DRIVEN_APP: parse_model_driven_app,
    ComponentKind.PCF_CONTROL: parse_pcf_control,
}
