import json

from powerplatform_review.core.domain.models import Bundle, RawEntry
from powerplatform_review.core.services import ComponentClassifier
from powerplatform_review.infra.extract_store import MANIFEST_NAME, ExtractStore


def test_writes_entries_and_manifest(tmp_path):
    bundle = Bundle(
        source_path="bundle.zip",
        entries=(
            RawEntry("Workflows/broken.json", b"{oops"),
            RawEntry("notes/readme.txt", b"hello"),
            RawEntry("solution.xml", b"<ImportExportXml/>"),
        ),
    )
    components = ComponentClassifier().classify(bundle)

    manifest_path = ExtractStore().save(bundle, components, tmp_path / "out")

    assert manifest_path == tmp_path / "out" / MANIFEST_NAME
    assert (tmp_path / "out" / "Workflows" / "broken.json").read_bytes() == b"{oops"
    assert (tmp_path / "out" / "notes" / "readme.txt").read_text(encoding="utf-8") == "hello"

    manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    assert manifest["bundlePath"] == "bundle.zip"
    assert manifest["entryCount"] == 3
    by_id = {c["id"]: c for c in manifest["components"]}
    assert by_id["flow/broken"]["kind"] == "malformed"
    assert by_id["flow/broken"]["declaredKind"] == "flow"
    assert by_id["flow/broken"]["diagnostics"][0]["kind"] == "classification_error"
    assert by_id["solution/solution"]["diagnostics"] == []
    assert by_id["unknown/notes/readme.txt"]["paths"] == ["notes/readme.txt"]
