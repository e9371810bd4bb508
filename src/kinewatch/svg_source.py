"""Source-graphic accessor for heat-map paths in an SVG/XHTML document."""
from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable

from common.xml_utils import class_names, closest, local_name, parent_map, parse_document, parse_style
from kinewatch.chapters import parse_pixel_value
from kinewatch.errors import SourceUnavailableError
from kinewatch.types import ChapterGeometry, PathSource

HEAT_MAP_CLASSES = ("ytp-modern-heat-map", "ytp-heat-map-path")
CHAPTER_CLASS = "ytp-heat-map-chapter"


def _is_heat_map_path(node: ET.Element) -> bool:
    if local_name(node.tag) != "path":
        return False
    names = class_names(node)
    return any(name in names for name in HEAT_MAP_CLASSES)


def _container_width(container: ET.Element) -> float | None:
    style = parse_style(container.get("style", ""))
    width = parse_pixel_value(style.get("width"))
    if width is None:
        width = parse_pixel_value(container.get("width"))
    return width


def chapter_geometry(
    node: ET.Element,
    parents: dict[ET.Element, ET.Element],
) -> ChapterGeometry | None:
    chapter = closest(node, parents, CHAPTER_CLASS)
    if chapter is None:
        return None
    container = parents.get(chapter)
    if container is None:
        return None
    style = parse_style(chapter.get("style", ""))
    return ChapterGeometry(
        offset_px=parse_pixel_value(style.get("left")),
        width_px=parse_pixel_value(style.get("width")),
        container_width_px=_container_width(container),
    )


def find_heat_map_sources(root: ET.Element) -> list[PathSource]:
    parents = parent_map(root)
    return [
        PathSource(d=node.get("d") or "", geometry=chapter_geometry(node, parents))
        for node in root.iter()
        if _is_heat_map_path(node)
    ]


def load_heat_map_sources(path: Path) -> list[PathSource]:
    try:
        root = parse_document(path)
    except (OSError, ET.ParseError) as exc:
        raise SourceUnavailableError(message=f"Heat map document unreadable: {exc}") from exc
    return find_heat_map_sources(root)


def file_source(path: Path) -> Callable[[], list[PathSource]]:
    """Accessor that re-reads ``path`` on every extraction attempt."""

    def _read() -> list[PathSource]:
        return load_heat_map_sources(path)

    return _read
