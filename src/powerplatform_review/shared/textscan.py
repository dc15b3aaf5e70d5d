"""Small text helpers shared by parsers and rules."""

from __future__ import annotations

import re
from typing import Any, Iterator

URL_RE = re.compile(r"https?://([^/\s\"'<>]+)", re.IGNORECASE)


def find_line(text: str, needle: str) -> int | None:
    """Best-effort 1-based line number of the first occurrence of needle."""
    idx = text.lower().find(needle.lower())
    if idx < 0:
        return None
    return text.count("\n", 0, idx) + 1


def walk_json(obj: Any, path: str = "") -> Iterator[tuple[str, Any]]:
    """Yield (dotted path, value) for every node below obj."""
    if isinstance(obj, dict):
        for k, v in obj.items():
            new_path = f"{path}.{k}" if path else str(k)
            yield new_path, v
            yield from walk_json(v, new_path)
    elif isinstance(obj, list):
        for i, v in enumerate(obj):
            new_path = f"{path}[{i}]"
            yield new_path, v
            yield from walk_json(v, new_path)


def urls_outside(text: str, allowed_hosts: list[str] | tuple[str, ...]) -> list[str]:
    """Absolute URLs in text whose host is not in (or below) allowed_hosts."""
    allowed = [h.lower() for h in allowed_hosts]
    found = []
    for m in URL_RE.finditer(text or ""):
        host = m.group(1).split(":")[0].lower()
        if any(host == a or host.endswith("." + a) for a in allowed):
            continue
        found.append(m.group(0))
    return found
