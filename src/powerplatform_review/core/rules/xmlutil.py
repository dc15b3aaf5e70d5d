from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Iterator


def local(tag: str) -> str:
    """Element tag without namespace, lower-cased."""
    return tag.rsplit("}", 1)[-1].lower()


def iter_named(root: ET.Element, name: str) -> Iterator[ET.Element]:
    wanted = name.lower()
    for el in root.iter():
        if isinstance(el.tag, str) and local(el.tag) == wanted:
            yield el


def first_named(root: ET.Element, name: str) -> ET.Element | None:
    return next(iter_named(root, name), None)


def attr(el: ET.Element, name: str) -> str | None:
    wanted = name.lower()
    for k, v in el.attrib.items():
        if local(k) == wanted:
            return v
    return None
