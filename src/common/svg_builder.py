from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import svgwrite

REQUIRED_GROUP_IDS = [
    "figure_root",
    "g_axes",
    "g_curves",
    "g_markers",
    "g_text",
]

DEFAULT_FONT_FAMILY = "Arial, sans-serif"
DEFAULT_TEXT_ANCHOR = "start"


@dataclass
class SvgBuilder:
    drawing: svgwrite.Drawing
    root: svgwrite.container.Group
    groups: dict[str, svgwrite.container.Group]
    width: int
    height: int

    @classmethod
    def create(cls, width: int, height: int) -> "SvgBuilder":
        drawing = svgwrite.Drawing(size=(width, height), profile="full")
        root = drawing.g(id="figure_root")
        drawing.add(root)

        groups: dict[str, svgwrite.container.Group] = {}
        for group_id in REQUIRED_GROUP_IDS:
            if group_id == "figure_root":
                continue
            group = drawing.g(id=group_id)
            root.add(group)
            groups[group_id] = group

        return cls(
            drawing=drawing,
            root=root,
            groups=groups,
            width=int(width),
            height=int(height),
        )

    def add_title(self, title: str, x: int = 10, y: int = 20, font_size: float = 14) -> None:
        self.groups["g_text"].add(
            self.drawing.text(
                title,
                insert=(x, y),
                id="txt_title",
                font_family=DEFAULT_FONT_FAMILY,
                text_anchor=DEFAULT_TEXT_ANCHOR,
                font_size=float(font_size),
                fill="#000000",
            )
        )

    def add_axes(self, margin: int = 10) -> None:
        axes_group = self.groups["g_axes"]
        stroke = "#000000"
        stroke_width = 1
        axes_group.add(
            self.drawing.line(
                start=(margin, self.height - margin),
                end=(self.width - margin, self.height - margin),
                stroke=stroke,
                stroke_width=stroke_width,
            )
        )
        axes_group.add(
            self.drawing.line(
                start=(margin, self.height - margin),
                end=(margin, margin),
                stroke=stroke,
                stroke_width=stroke_width,
            )
        )

    def add_polyline(
        self,
        points: list[tuple[float, float]],
        element_id: str,
        stroke: str = "#2b6cb0",
        stroke_width: float = 2,
    ) -> None:
        if len(points) < 2:
            return
        self.groups["g_curves"].add(
            self.drawing.polyline(
                points=points,
                id=element_id,
                stroke=stroke,
                stroke_width=stroke_width,
                fill="none",
            )
        )

    def add_marker(self, x: float, y: float, element_id: str, radius: float = 2.5) -> None:
        self.groups["g_markers"].add(
            self.drawing.circle(center=(x, y), r=radius, id=element_id, fill="#dd6b20")
        )

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.drawing.saveas(str(path))
