"""Tests for path glob matching used by the classifier."""
import pytest

from powerplatform_review.shared.globbing import glob_match, literal_length, literal_prefix


@pytest.mark.parametrize(
    "pattern,path,expected",
    [
        ("solution.xml", "solution.xml", True),
        ("solution.xml", "Solution.XML", True),
        ("solution.xml", "Other/solution.xml", False),
        ("Workflows/*.json", "Workflows/Flow-1.json", True),
        ("Workflows/*.json", "Workflows/sub/Flow-1.json", False),
        ("Controls/*/**", "Controls/my_Control/bundle.js", True),
        ("Controls/*/**", "Controls/my_Control/css/a.css", True),
        ("**/ControlManifest.Input.xml", "ControlManifest.Input.xml", True),
        ("**/ControlManifest.Input.xml", "src/ctl/ControlManifest.Input.xml", True),
        ("CanvasApps/?pp", "CanvasApps/app", True),
        ("CanvasApps/?pp", "CanvasApps/a/p", False),
    ],
)
def test_glob_match(pattern, path, expected):
    assert glob_match(pattern, path) is expected


def test_literal_prefix_stops_at_first_wildcard():
    assert literal_prefix("Workflows/*.json") == "Workflows/"
    assert literal_prefix("**/x.json") == ""
    assert literal_prefix("solution.xml") == "solution.xml"


def test_literal_length_ignores_wildcards():
    assert literal_length("Workflows/*.json") == len("Workflows/.json")
    assert literal_length("**") == 0
