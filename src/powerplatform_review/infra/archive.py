from __future__ import annotations

import io
import re
import zipfile
from pathlib import Path

from ..core.domain.exceptions import ArchiveError, ArchiveErrorCode
from ..core.domain.models import Bundle, RawEntry

_DRIVE_RE = re.compile(r"^[a-zA-Z]:")


def normalize_entry_path(name: str) -> str:
    """Normalise an archive member name and reject unsafe paths.

    Raises:
        ArchiveError: PATH_TRAVERSAL for absolute, drive-qualified or
            `..`-containing names.
    """
    path = (name or "").replace("\\", "/")
    if path.startswith("/") or _DRIVE_RE.match(path):
        raise ArchiveError(
            ArchiveErrorCode.PATH_TRAVERSAL,
            f"Archive entry uses an absolute path: {name}",
            path=name,
        )
    parts = [p for p in path.split("/") if p not in ("", ".")]
    if any(p == ".." for p in parts):
        raise ArchiveError(
            ArchiveErrorCode.PATH_TRAVERSAL,
            f"Archive entry escapes the bundle root: {name}",
            path=name,
        )
    return "/".join(parts)


class ZipArchiveLoader:
    """Loads a zip bundle fully into memory with size and count limits.

    Nothing is written to disk. Any violation aborts the load.
    """

    def __init__(
        self,
        *,
        max_entries: int = 10_000,
        max_entry_bytes: int = 50 * 1024 * 1024,
        max_total_bytes: int = 200 * 1024 * 1024,
    ) -> None:
        self._max_entries = max_entries
        self._max_entry_bytes = max_entry_bytes
        self._max_total_bytes = max_total_bytes

    def load(self, path: Path) -> Bundle:
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ArchiveError(ArchiveErrorCode.CORRUPT, f"Cannot read bundle {path}: {e}") from e
        return self.load_bytes(data, source_path=str(path))

    def load_bytes(self, data: bytes, *, source_path: str = "<memory>") -> Bundle:
        if not data:
            raise ArchiveError(ArchiveErrorCode.EMPTY, f"Bundle is empty: {source_path}")

        try:
            zf = zipfile.ZipFile(io.BytesIO(data), "r")
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
            # ValueError covers undecodable UTF-8 entry names
            raise ArchiveError(ArchiveErrorCode.CORRUPT, f"Not a valid zip archive: {source_path} ({e})") from e

        with zf:
            infos = [i for i in zf.infolist() if not i.is_dir()]
            if not infos:
                raise ArchiveError(ArchiveErrorCode.EMPTY, f"Bundle contains no files: {source_path}")
            if len(infos) > self._max_entries:
                raise ArchiveError(
                    ArchiveErrorCode.TOO_LARGE,
                    f"Bundle has {len(infos)} entries; limit is {self._max_entries}",
                )

            # Validate every name and declared size before reading anything
            names: list[str] = []
            declared_total = 0
            for info in infos:
                names.append(normalize_entry_path(info.filename))
                self._check_entry_size(info.filename, info.file_size)
                declared_total += info.file_size
            self._check_total(declared_total)

            entries: list[RawEntry] = []
            seen: set[str] = set()
            total = 0
            for info, name in zip(infos, names):
                if not name or name in seen:
                    continue
                seen.add(name)
                try:
                    blob = zf.read(info)
                except (
                    zipfile.BadZipFile, OSError, RuntimeError, EOFError, ValueError, NotImplementedError,
                ) as e:
                    raise ArchiveError(
                        ArchiveErrorCode.CORRUPT,
                        f"Cannot read entry {info.filename}: {e}",
                        path=info.filename,
                    ) from e
                self._check_entry_size(info.filename, len(blob))
                total += len(blob)
                self._check_total(total)
                entries.append(RawEntry(path=name, data=blob))

        if not entries:
            raise ArchiveError(ArchiveErrorCode.EMPTY, f"Bundle contains no files: {source_path}")
        return Bundle(source_path=source_path, entries=tuple(entries))

    def _check_entry_size(self, name: str, size: int) -> None:
        if size > self._max_entry_bytes:
            raise ArchiveError(
                ArchiveErrorCode.TOO_LARGE,
                f"Entry {name} is {size} bytes; limit is {self._max_entry_bytes}",
                path=name,
            )

    def _check_total(self, total: int) -> None:
        if total > self._max_total_bytes:
            raise ArchiveError(
                ArchiveErrorCode.TOO_LARGE,
                f"Bundle expands to more than {self._max_total_bytes} bytes",
            )
