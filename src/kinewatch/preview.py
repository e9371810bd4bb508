from __future__ import annotations

import json
from pathlib import Path

from PIL import Image, ImageDraw

from common.svg_builder import SvgBuilder
from kinewatch.sampler import resample_curve
from kinewatch.types import Curve

PREVIEW_WIDTH = 1010
PREVIEW_HEIGHT = 120
PREVIEW_MARGIN = 10
RESAMPLE_COUNT = 101


def _plot_points(curve: Curve, width: int, height: int, margin: int) -> list[tuple[float, float]]:
    plot_w = width - 2 * margin
    plot_h = height - 2 * margin
    return [
        (
            round(margin + sample.time_ratio * plot_w, 2),
            round(margin + (1.0 - sample.normalized_intensity) * plot_h, 2),
        )
        for sample in curve.samples
    ]


def write_curve_artifacts(
    debug_dir: Path,
    curve: Curve,
    width: int = PREVIEW_WIDTH,
    height: int = PREVIEW_HEIGHT,
) -> dict[str, Path]:
    """Write ``curve.json`` plus SVG and PNG previews of ``curve``."""
    debug_dir.mkdir(parents=True, exist_ok=True)
    payload = curve.to_dict()
    payload["resampled"] = resample_curve(curve, RESAMPLE_COUNT)
    json_path = debug_dir / "curve.json"
    json_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    points = _plot_points(curve, width, height, PREVIEW_MARGIN)

    builder = SvgBuilder.create(width, height)
    builder.add_axes(PREVIEW_MARGIN)
    builder.add_title(f"{len(curve)} samples", x=PREVIEW_MARGIN + 4, y=PREVIEW_MARGIN + 12)
    builder.add_polyline(points, "curve_engagement")
    for index, (x, y) in enumerate(points):
        builder.add_marker(x, y, f"marker_{index}")
    svg_path = debug_dir / "curve_preview.svg"
    builder.save(svg_path)

    image = Image.new("RGBA", (width, height), color=(255, 255, 255, 255))
    draw = ImageDraw.Draw(image, "RGBA")
    draw.line(
        [(PREVIEW_MARGIN, height - PREVIEW_MARGIN), (width - PREVIEW_MARGIN, height - PREVIEW_MARGIN)],
        fill=(0, 0, 0, 255),
        width=1,
    )
    if len(points) >= 2:
        draw.line(points, fill=(43, 108, 176, 220), width=2)
    for x, y in points:
        draw.ellipse([x - 2, y - 2, x + 2, y + 2], outline=(221, 107, 32, 220), width=1)
    png_path = debug_dir / "curve_preview.png"
    image.save(png_path)

    return {"json": json_path, "svg": svg_path, "png": png_path}
