#!/usr/bin/env python3
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import typer

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) in sys.path:
    sys.path.remove(str(SRC_ROOT))
sys.path.insert(0, str(SRC_ROOT))

from kinewatch import KinewatchEngine, KinewatchError, extract_curve, map_rate, sample_curve  # noqa: E402
from kinewatch.config_store import ConfigStore  # noqa: E402
from kinewatch.errors import E1301_SPEED_RANGE_INVALID  # noqa: E402
from kinewatch.playback import SimulatedPlayback  # noqa: E402
from kinewatch.preview import write_curve_artifacts  # noqa: E402
from kinewatch.rate import DEFAULT_SPEED_LIMITS, normalize_config, raw_value_ratio, sanitize_speed  # noqa: E402
from kinewatch.settings import Settings, load_settings  # noqa: E402
from kinewatch.status import format_overlay_text  # noqa: E402
from kinewatch.svg_source import file_source, load_heat_map_sources  # noqa: E402

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

app = typer.Typer(
    add_completion=False,
    help="Extract heat-map engagement curves and map them to playback speeds.",
)
config_app = typer.Typer(add_completion=False, help="Show or change the stored speed range.")
app.add_typer(config_app, name="config")


def _fail(exc: KinewatchError) -> None:
    typer.echo(f"ERROR {exc.code}: {exc.message}", err=True)
    typer.echo(f"HINT: {exc.hint}", err=True)
    raise typer.Exit(code=1)


def _settings(path: Path | None) -> Settings:
    try:
        return load_settings(path)
    except KinewatchError as exc:
        _fail(exc)
        raise


def _extract(input_svg: Path, settings: Settings):
    return extract_curve(
        load_heat_map_sources(input_svg),
        calibration=settings.calibration,
        merge_tolerance=settings.curve.merge,
        chapter_tolerance=settings.curve.chapter,
    )


INPUT_ARGUMENT = typer.Argument(
    ...,
    exists=True,
    dir_okay=False,
    readable=True,
    help="SVG/XHTML document holding the heat-map path(s).",
)
SETTINGS_OPTION = typer.Option(
    None,
    "--settings",
    dir_okay=False,
    help="Engine settings YAML (defaults to config/kinewatch.v1.yaml).",
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(format=LOG_FORMAT, level=logging.DEBUG if verbose else logging.WARNING)


@app.command()
def extract(
    input_svg: Path = INPUT_ARGUMENT,
    out: Path | None = typer.Option(
        None,
        "--out",
        dir_okay=False,
        help="Optional path to write the curve JSON.",
    ),
    debug_dir: Path | None = typer.Option(
        None,
        "--debug-dir",
        help="Optional directory to write curve previews.",
    ),
    settings_path: Path | None = SETTINGS_OPTION,
) -> None:
    """Extract the engagement curve from a document."""
    settings = _settings(settings_path)
    try:
        curve = _extract(input_svg, settings)
    except KinewatchError as exc:
        _fail(exc)
        return
    payload = json.dumps(curve.to_dict(), indent=2, sort_keys=True)
    if out is not None:
        out.write_text(payload)
    if debug_dir is not None:
        write_curve_artifacts(debug_dir, curve)
    typer.echo(payload)


@app.command()
def sample(
    input_svg: Path = INPUT_ARGUMENT,
    ratio: float = typer.Argument(..., help="Playback position ratio in [0, 1]."),
    min_speed: float = typer.Option(1.0, "--min-speed", help="Speed at the hottest point."),
    max_speed: float = typer.Option(2.0, "--max-speed", help="Speed at the coldest point."),
    settings_path: Path | None = SETTINGS_OPTION,
) -> None:
    """Read the curve at one position and print the resulting speed."""
    settings = _settings(settings_path)
    try:
        curve = _extract(input_svg, settings)
    except KinewatchError as exc:
        _fail(exc)
        return
    config = normalize_config({"min_speed": min_speed, "max_speed": max_speed}, settings.speed)
    reading = sample_curve(curve, ratio)
    raw_ratio = raw_value_ratio(reading.raw_value if reading else None, curve.raw_range)
    result = {
        "ratio": ratio,
        "normalized_intensity": reading.normalized_intensity if reading else None,
        "raw_value": reading.raw_value if reading else None,
        "raw_ratio": raw_ratio,
        "target_speed": map_rate(raw_ratio, config, settings.speed) if raw_ratio is not None else None,
        "config": config.to_dict(),
    }
    typer.echo(json.dumps(result, indent=2, sort_keys=True))


@app.command()
def simulate(
    input_svg: Path = INPUT_ARGUMENT,
    duration: float = typer.Option(..., "--duration", help="Media duration in seconds."),
    step: float = typer.Option(1.0, "--step", help="Wall-clock seconds between ticks."),
    min_speed: float = typer.Option(1.0, "--min-speed", help="Speed at the hottest point."),
    max_speed: float = typer.Option(2.0, "--max-speed", help="Speed at the coldest point."),
    media_id: str = typer.Option("simulated", "--media-id", help="Identity of the simulated media."),
    settings_path: Path | None = SETTINGS_OPTION,
) -> None:
    """Play the media in simulation and print one status line per tick."""
    settings = _settings(settings_path)
    store = ConfigStore(limits=settings.speed)
    store.save({"min_speed": min_speed, "max_speed": max_speed})
    engine = KinewatchEngine(file_source(input_svg), store=store, settings=settings)
    try:
        playback = SimulatedPlayback(duration=duration)
        engine.observe_media(media_id, playback)
        status = engine.status()
        if not status.curve_available:
            typer.echo(f"ERROR: {status.last_error}", err=True)
            raise typer.Exit(code=1)
        while not playback.ended:
            position = playback.current_time
            reading = engine.tick()
            typer.echo(f"{position:9.2f}s  {format_overlay_text(reading)}")
            if step <= 0:
                break
            playback.advance(step)
    finally:
        engine.close()


@config_app.command("show")
def config_show(
    store_path: Path = typer.Option(..., "--store", dir_okay=False, help="Config store YAML."),
) -> None:
    """Print the stored speed range."""
    config = ConfigStore(store_path).load()
    typer.echo(json.dumps(config.to_dict(), indent=2, sort_keys=True))


@config_app.command("set")
def config_set(
    store_path: Path = typer.Option(..., "--store", dir_okay=False, help="Config store YAML."),
    min_speed: float = typer.Option(..., "--min-speed", help="Speed at the hottest point."),
    max_speed: float = typer.Option(..., "--max-speed", help="Speed at the coldest point."),
) -> None:
    """Validate and store a new speed range."""
    limits = DEFAULT_SPEED_LIMITS
    min_speed = sanitize_speed(min_speed, limits.default_min_speed, limits)
    max_speed = sanitize_speed(max_speed, limits.default_max_speed, limits)
    if min_speed > max_speed:
        _fail(
            KinewatchError(
                code=E1301_SPEED_RANGE_INVALID,
                message="Minimum speed must be less than or equal to maximum speed.",
                hint="Swap the values or lower --min-speed.",
            )
        )
    config = ConfigStore(store_path).save({"min_speed": min_speed, "max_speed": max_speed})
    typer.echo(json.dumps(config.to_dict(), indent=2, sort_keys=True))


if __name__ == "__main__":
    app(prog_name="kinewatch")
