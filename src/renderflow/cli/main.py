"""renderflow CLI.

Command-line helpers for inspecting the geometry, crop and history layers
without a UI: contain-fit math, local crops, and saved project histories.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from renderflow import __version__
from renderflow.geometry import Point
from renderflow.history import VersionGraph
from renderflow.utils.logging import configure_logging, get_logger

app = typer.Typer(
    name="renderflow",
    help="renderflow: region-based render editing with branching history",
    add_completion=False,
)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def version(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show version information."""
    if json_output:
        typer.echo(json.dumps({"version": __version__}))
    else:
        typer.echo(f"renderflow {__version__}")


@app.command()
def bounds(
    container_width: Annotated[float, typer.Argument(help="Container width (px)")],
    container_height: Annotated[float, typer.Argument(help="Container height (px)")],
    natural_width: Annotated[float, typer.Argument(help="Image natural width (px)")],
    natural_height: Annotated[float, typer.Argument(help="Image natural height (px)")],
    click: Annotated[
        tuple[float, float] | None,
        typer.Option("--click", help="Container-local click X Y to convert"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show where a contain-fit image lands inside its container."""
    from renderflow.geometry import (  # noqa: PLC0415
        ContainerRect,
        compute_contain_bounds,
        pixel_to_percentage,
    )

    image_bounds = compute_contain_bounds(
        container_width, container_height, natural_width, natural_height
    )
    if image_bounds is None:
        _fail("Bounds unavailable: image or container has zero size", json_output)

    result: dict[str, object] = {"bounds": image_bounds.model_dump()}
    if click and None not in click:
        container = ContainerRect(
            left=0, top=0, width=container_width, height=container_height
        )
        point = pixel_to_percentage(click[0], click[1], container, image_bounds)
        result["point"] = point.model_dump() if point is not None else None

    if json_output:
        typer.echo(json.dumps(result, indent=2))
        return

    typer.echo(
        f"Image at x={image_bounds.x:.2f}, y={image_bounds.y:.2f}, "
        f"{image_bounds.width:.2f}x{image_bounds.height:.2f}"
    )
    if "point" in result:
        point_data = result["point"]
        if isinstance(point_data, dict):
            typer.echo(f"Click -> ({point_data['x']:.2f}%, {point_data['y']:.2f}%)")
        else:
            typer.echo("Click -> outside (letterbox)")


@app.command()
def crop(
    image_path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Image file to crop",
        ),
    ],
    output: Annotated[Path, typer.Option("--output", "-o", help="Output image path")],
    rect: Annotated[
        tuple[float, float, float, float] | None,
        typer.Option("--rect", help="Rectangle corners X1 Y1 X2 Y2 in percent"),
    ] = None,
    polygon: Annotated[
        str | None,
        typer.Option("--polygon", help='Polygon vertices in percent: "x,y x,y x,y ..."'),
    ] = None,
    verbose: Annotated[
        int, typer.Option("--verbose", "-v", count=True, help="Increase verbosity")
    ] = 0,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Crop a region out of a local image."""
    from renderflow.core import CropEngine  # noqa: PLC0415
    from renderflow.geometry import normalize_rect  # noqa: PLC0415

    _configure_logging(verbose)
    logger = get_logger(__name__)

    has_rect = bool(rect) and None not in rect
    if has_rect == (polygon is not None):
        _fail("Pass exactly one of --rect or --polygon", json_output)

    try:
        engine = CropEngine(cache_size=0)
        if has_rect:
            assert rect is not None
            region = normalize_rect((rect[0], rect[1]), (rect[2], rect[3]))
            artifact = asyncio.run(engine.crop_rect(image_path, region))
        else:
            assert polygon is not None
            artifact = asyncio.run(engine.crop_polygon(image_path, _parse_polygon(polygon)))

        image = artifact.image
        if output.suffix.lower() in (".jpg", ".jpeg") and image.mode != "RGB":
            image = image.convert("RGB")
        image.save(output)
        logger.info("Crop saved", path=str(output))
    except typer.Exit:
        raise
    except Exception as e:
        logger.exception("Crop failed")
        _fail(str(e), json_output)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "output": str(output),
                    "size": list(artifact.size),
                    "pixel_box": list(artifact.pixel_box),
                    "source_size": list(artifact.source_size),
                },
                indent=2,
            )
        )
    else:
        width, height = artifact.size
        typer.echo(f"Saved {width}x{height} crop to {output}")


@app.command()
def history(
    project_file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Saved project JSON file",
        ),
    ],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show a saved project's render history."""
    from renderflow.persistence import ProjectStore  # noqa: PLC0415

    try:
        graph, zones = ProjectStore.load_file(project_file)
    except Exception as e:
        _fail(str(e), json_output)

    path = graph.history_path()
    if json_output:
        typer.echo(
            json.dumps(
                {
                    "project_id": graph.project_id,
                    "current_id": graph.current_id,
                    "path": [node.id for node in path],
                    "nodes": [node.model_dump(mode="json") for node in graph.nodes],
                    "zones": zones.to_list(),
                },
                indent=2,
            )
        )
        return

    typer.echo(f"Project {graph.project_id}: {len(graph)} renders, {len(zones)} zones")
    typer.echo("Current path:")
    for depth, node in enumerate(path):
        typer.echo(f"  {depth}. [{node.kind.value}] {node.id} {node.directive!r}")

    typer.echo("Tree:")
    for root in graph.roots:
        _echo_tree(graph, root.id, depth=1)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """renderflow: region-based render editing with branching history."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _configure_logging(verbose: int) -> None:
    """Configure logging based on verbosity level."""
    if verbose == 0:
        level = "WARNING"
    elif verbose == 1:
        level = "INFO"
    else:
        level = "DEBUG"

    configure_logging(level=level)


def _fail(message: str, json_output: bool) -> NoReturn:
    if json_output:
        typer.echo(json.dumps({"error": message}))
    else:
        typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _parse_polygon(text: str) -> list[Point]:
    points: list[Point] = []
    for pair in text.split():
        x_text, sep, y_text = pair.partition(",")
        if not sep:
            raise ValueError(f"Invalid polygon vertex {pair!r}; expected x,y")
        points.append(Point(x=float(x_text), y=float(y_text)))
    return points


def _echo_tree(graph: VersionGraph, node_id: str, depth: int) -> None:
    node = graph.get(node_id)
    marker = " *" if node.id == graph.current_id else ""
    typer.echo(f"{'  ' * depth}- [{node.kind.value}] {node.id}{marker}")
    for child in graph.children_of(node.id):
        _echo_tree(graph, child.id, depth + 1)


if __name__ == "__main__":  # pragma: no cover
    app()
