from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path


def local_name(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def parse_style(style: str) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for chunk in style.split(";"):
        chunk = chunk.strip()
        if not chunk or ":" not in chunk:
            continue
        key, value = chunk.split(":", 1)
        parsed[key.strip().lower()] = value.strip()
    return parsed


def class_names(node: ET.Element) -> set[str]:
    return {name for name in (node.get("class") or "").split() if name}


def parse_document(path: Path | str) -> ET.Element:
    tree = ET.parse(path)
    return tree.getroot()


def parent_map(root: ET.Element) -> dict[ET.Element, ET.Element]:
    return {child: parent for parent in root.iter() for child in parent}


def closest(
    node: ET.Element,
    parents: dict[ET.Element, ET.Element],
    class_name: str,
) -> ET.Element | None:
    """Return the nearest ancestor (or the node itself) carrying ``class_name``."""
    current: ET.Element | None = node
    while current is not None:
        if class_name in class_names(current):
            return current
        current = parents.get(current)
    return None
