from __future__ import annotations

import re
from functools import lru_cache


@lru_cache(maxsize=None)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a path glob into a case-insensitive regex.

    Supports `**` (any number of path segments, including none),
    `*` (anything but `/`) and `?` (one character but `/`).
    """
    out = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
            continue
        if pattern.startswith("**", i):
            out.append(".*")
            i += 2
            continue
        if ch == "*":
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("^" + "".join(out) + "$", re.IGNORECASE)


def glob_match(pattern: str, path: str) -> bool:
    return compile_glob(pattern).match(path) is not None


def literal_prefix(pattern: str) -> str:
    """Portion of the pattern before its first wildcard."""
    m = re.search(r"[*?]", pattern)
    return pattern if m is None else pattern[: m.start()]


def literal_length(pattern: str) -> int:
    return len(re.sub(r"[*?]", "", pattern))
