import pytest

from helpers import build_zip
from powerplatform_review.core.domain.exceptions import ArchiveError, ArchiveErrorCode
from powerplatform_review.infra.archive import ZipArchiveLoader, normalize_entry_path


class TestNormalizeEntryPath:
    @pytest.mark.parametrize("name,expected", [
        ("solution.xml", "solution.xml"),
        ("Workflows\\flow.json", "Workflows/flow.json"),
        ("./CanvasApps//app.msapp", "CanvasApps/app.msapp"),
    ])
    def test_normalizes(self, name, expected):
        assert normalize_entry_path(name) == expected

    @pytest.mark.parametrize("name", [
        "../../etc/passwd",
        "Workflows/../../x.json",
        "..\\evil.dll",
        "/etc/passwd",
        "C:/Windows/system.ini",
        "c:evil",
    ])
    def test_rejects_unsafe(self, name):
        with pytest.raises(ArchiveError) as exc:
            normalize_entry_path(name)
        assert exc.value.archive_code is ArchiveErrorCode.PATH_TRAVERSAL
        assert exc.value.code == "ARCHIVE_PATH_TRAVERSAL"


class TestZipArchiveLoader:
    def test_loads_entries_in_archive_order(self, tmp_path):
        path = tmp_path / "bundle.zip"
        path.write_bytes(build_zip({"solution.xml": "<x/>", "Workflows/a.json": "{}", "Other/": b""}))

        bundle = ZipArchiveLoader().load(path)

        assert bundle.source_path == str(path)
        assert bundle.paths == ["solution.xml", "Workflows/a.json"]
        assert bundle.get("solution.xml").data == b"<x/>"
        assert bundle.total_size == 6

    def test_traversal_aborts_the_load(self):
        data = build_zip({"solution.xml": "<x/>", "../../etc/passwd": "root"})
        with pytest.raises(ArchiveError) as exc:
            ZipArchiveLoader().load_bytes(data)
        assert exc.value.code == "ARCHIVE_PATH_TRAVERSAL"
        assert exc.value.path == "../../etc/passwd"

    def test_missing_file_is_corrupt(self, tmp_path):
        with pytest.raises(ArchiveError) as exc:
            ZipArchiveLoader().load(tmp_path / "missing.zip")
        assert exc.value.code == "ARCHIVE_CORRUPT"

    def test_not_a_zip(self):
        with pytest.raises(ArchiveError) as exc:
            ZipArchiveLoader().load_bytes(b"this is not a zip file")
        assert exc.value.code == "ARCHIVE_CORRUPT"

    def test_undecodable_entry_name_is_corrupt(self):
        # UTF-8 flag set on a name that is not valid UTF-8
        data = build_zip({"solution_\u00e9.xml": "<x/>"}).replace(b"\xc3\xa9", b"\xff\xfe")
        with pytest.raises(ArchiveError) as exc:
            ZipArchiveLoader().load_bytes(data)
        assert exc.value.code == "ARCHIVE_CORRUPT"

    def test_empty_bytes(self):
        with pytest.raises(ArchiveError) as exc:
            ZipArchiveLoader().load_bytes(b"")
        assert exc.value.code == "ARCHIVE_EMPTY"

    def test_only_directories(self):
        with pytest.raises(ArchiveError) as exc:
            ZipArchiveLoader().load_bytes(build_zip({"Workflows/": b""}))
        assert exc.value.code == "ARCHIVE_EMPTY"

    def test_too_many_entries(self):
        data = build_zip({"a.json": "{}", "b.json": "{}", "c.json": "{}"})
        with pytest.raises(ArchiveError) as exc:
            ZipArchiveLoader(max_entries=2).load_bytes(data)
        assert exc.value.code == "ARCHIVE_TOO_LARGE"

    def test_entry_too_large(self):
        data = build_zip({"big.json": "x" * 100})
        with pytest.raises(ArchiveError) as exc:
            ZipArchiveLoader(max_entry_bytes=50).load_bytes(data)
        assert exc.value.code == "ARCHIVE_TOO_LARGE"
        assert exc.value.path == "big.json"

    def test_total_too_large(self):
        data = build_zip({"a.json": "x" * 40, "b.json": "y" * 40})
        with pytest.raises(ArchiveError) as exc:
            ZipArchiveLoader(max_total_bytes=60).load_bytes(data)
        assert exc.value.code == "ARCHIVE_TOO_LARGE"

    def test_limits_are_inclusive(self):
        data = build_zip({"a.json": "x" * 40, "b.json": "y" * 20})
        bundle = ZipArchiveLoader(max_entries=2, max_entry_bytes=40, max_total_bytes=60).load_bytes(data)
        assert len(bundle.entries) == 2
