import io
import json
import zipfile
from pathlib import Path


def mark_by_dir(items, base_dir, marker):
    base = Path(base_dir).resolve()
    for item in items:
        # pytest 7/8: item.path on newer versions, item.fspath on older ones
        p = getattr(item, "path", None)
        p = Path(p) if p is not None else Path(str(getattr(item, "fspath")))
        try:
            p.resolve().relative_to(base)
        except ValueError:
            continue
        item.add_marker(marker)


def build_zip(files: dict) -> bytes:
    """Zip bytes from {name: str | bytes}; names are written verbatim."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            zf.writestr(zipfile.ZipInfo(name), data)
    return buf.getvalue()


def flow_definition(actions: dict, triggers: dict | None = None) -> str:
    """A solution-exported cloud flow document."""
    return json.dumps({
        "properties": {
            "connectionReferences": {},
            "definition": {
                "$schema": "https://schema.management.azure.com/providers/Microsoft.Logic/schemas/2016-06-01/workflowdefinition.json#",
                "contentVersion": "1.0.0.0",
                "triggers": triggers or {"manual": {"type": "Request", "kind": "Button"}},
                "actions": actions,
            },
        },
        "schemaVersion": "1.0.0.0",
    }, indent=2)


def clean_flow_with_url(url: str = "https://contoso.example.com/api/orders") -> str:
    """Flow whose only problem is one hardcoded URL."""
    return flow_definition({
        "Send_order": {
            "type": "OpenApiConnection",
            "inputs": {
                "host": {"connectionName": "shared_webcontents", "operationId": "InvokeHttp"},
                "parameters": {"request/url": url},
            },
            "runAfter": {},
        },
        "Handle_failure": {
            "type": "Compose",
            "inputs": "Order submission failed",
            "runAfter": {"Send_order": ["Failed", "TimedOut"]},
        },
    })


def msapp(rules: list[tuple[str, str, str]]) -> bytes:
    """Canvas package with one screen; rules are (control, property, formula)."""
    controls = {}
    for control, prop, script in rules:
        controls.setdefault(control, []).append({"Property": prop, "InvariantScript": script})
    screen = {
        "TopParent": {
            "Name": "Screen1",
            "Template": {"Name": "screen"},
            "Rules": [],
            "Children": [
                {"Name": name, "Template": {"Name": "button"}, "Rules": r, "Children": []}
                for name, r in controls.items()
            ],
        }
    }
    return build_zip({
        "Header.json": json.dumps({"DocVersion": "1.0"}),
        "Src/Screen1.fx.yaml": "",
        "Controls/1.json": json.dumps(screen, indent=2),
    })


def clean_canvas_app() -> bytes:
    return msapp([
        ("SaveButton", "OnSelect", 'Notify("Saved", NotificationType.Success)'),
        ("NextButton", "OnSelect", "Navigate(Screen2, ScreenTransition.Fade)"),
    ])


def e2e_bundle() -> bytes:
    """One canvas app without issues plus one flow with exactly one warning."""
    return build_zip({
        "Workflows/OrderSync-1A2B3C4D.json": clean_flow_with_url(),
        "CanvasApps/contoso_orders_DocumentUri.msapp": clean_canvas_app(),
    })
