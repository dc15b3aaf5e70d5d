"""Tests for per-kind component parsers."""
import json

import pytest

from helpers import build_zip, flow_definition, msapp
from powerplatform_review.core.domain.exceptions import ClassificationError
from powerplatform_review.core.domain.models import Component, ComponentKind, RawEntry
from powerplatform_review.core.parsers import (
    parse_canvas,
    parse_flow,
    parse_pcf_control,
    parse_solution,
    read_msapp,
)


def _component(kind, files):
    entries = tuple(RawEntry(p, d.encode("utf-8") if isinstance(d, str) else d) for p, d in files.items())
    return Component(kind=kind, name="c", entries=entries)


class TestParseFlow:
    def test_solution_export_shape(self):
        doc = flow_definition({
            "Scope": {
                "type": "Scope",
                "actions": {"Inner": {"type": "Compose"}},
            },
            "Cond": {
                "type": "If",
                "actions": {"Yes": {"type": "Compose"}},
                "else": {"actions": {"No": {"type": "Compose"}}},
            },
        })
        model = parse_flow(_component(ComponentKind.FLOW, {"Workflows/f.json": doc}))
        assert set(model.actions) == {"Scope", "Inner", "Cond", "Yes", "No"}
        assert "manual" in model.triggers
        assert model.path == "Workflows/f.json"

    def test_bare_definition(self):
        doc = json.dumps({"definition": {"actions": {"A": {"type": "Compose"}}}})
        model = parse_flow(_component(ComponentKind.FLOW, {"f.json": doc}))
        assert list(model.actions) == ["A"]

    def test_invalid_json_raises(self):
        with pytest.raises(ClassificationError):
            parse_flow(_component(ComponentKind.FLOW, {"Workflows/f.json": "{not json"}))

    def test_non_object_raises(self):
        with pytest.raises(ClassificationError):
            parse_flow(_component(ComponentKind.FLOW, {"Workflows/f.json": "[1, 2]"}))


class TestCanvas:
    def test_formulas_with_controls(self):
        data = msapp([("SaveButton", "OnSelect", "Patch(Orders, Defaults(Orders), {Title: \"x\"})")])
        model = parse_canvas(_component(ComponentKind.CANVAS_APP, {"CanvasApps/a_DocumentUri.msapp": data}))
        assert len(model.formulas) == 1
        formula = model.formulas[0]
        assert formula.control == "SaveButton"
        assert formula.property == "OnSelect"
        assert formula.artifact == "Controls/1.json"
        assert formula.line is not None

    def test_yaml_source_formulas(self):
        yaml_src = "\n".join([
            "Screen1 As screen:",
            "    OnVisible: =Set(varReady, true)",
            "    Gallery1 As gallery:",
            "        Items: =Filter(Orders, EndsWith(Title, \"x\"))",
        ])
        data = build_zip({"Src/Screen1.fx.yaml": yaml_src})
        model = parse_canvas(_component(ComponentKind.CANVAS_APP, {"CanvasApps/a.msapp": data}))
        by_prop = {f.property: f for f in model.formulas}
        assert by_prop["OnVisible"].control == "Screen1"
        assert by_prop["Items"].control == "Gallery1"
        assert by_prop["Items"].line == 4

    def test_not_a_zip_raises(self):
        with pytest.raises(ClassificationError):
            read_msapp(b"plain text", origin="canvas_app/a")

    def test_missing_package_raises(self):
        with pytest.raises(ClassificationError):
            parse_canvas(_component(ComponentKind.CANVAS_APP, {"CanvasApps/a.meta.xml": "<x/>"}))


class TestXmlKinds:
    def test_solution_documents_and_texts(self):
        model = parse_solution(_component(ComponentKind.SOLUTION, {
            "solution.xml": "<ImportExportXml><SolutionManifest/></ImportExportXml>",
            "environmentvariabledefinitions/x/environmentvariabledefinition.xml": "<environmentvariabledefinition/>",
        }))
        assert model.find("solution.xml") is not None
        assert len(model.under("environmentvariabledefinitions")) == 1
        assert "solution.xml" in model.texts

    def test_invalid_xml_raises(self):
        with pytest.raises(ClassificationError):
            parse_solution(_component(ComponentKind.SOLUTION, {"solution.xml": "<unclosed>"}))

    def test_pcf_requires_manifest(self):
        with pytest.raises(ClassificationError):
            parse_pcf_control(_component(ComponentKind.PCF_CONTROL, {"Controls/c/bundle.js": "x"}))
