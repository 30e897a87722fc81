"""Command-line interface for the Mandelbrot zoom renderer."""

import time
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from mandelzoom.core.config import AnimationMode, FrameStrategy, RowStrategy, get_settings

app = typer.Typer(
    name="mandelzoom",
    help="Multi-threaded Mandelbrot frame and zoom renderer",
    add_completion=False,
)
console = Console()


def _log(message: str = ""):
    """Pipeline log sink; messages are plain text, not markup."""
    console.print(message, markup=False, highlight=False)


@app.command()
def render(
    output: Annotated[Path, typer.Argument(help="Output PNG file")] = Path("mandelbrot.png"),
    pixel_width: Annotated[Optional[int], typer.Option(help="Image width in pixels")] = None,
    pixel_height: Annotated[Optional[int], typer.Option(help="Image height in pixels")] = None,
    center_x: Annotated[float, typer.Option(help="Real part of the view center")] = -0.5,
    center_y: Annotated[float, typer.Option(help="Imaginary part of the view center")] = 0.0,
    width: Annotated[float, typer.Option(help="Plane width of the view")] = 3.0,
    max_iterations: Annotated[Optional[int], typer.Option(help="Iteration cap")] = None,
    escape_radius_squared: Annotated[Optional[float], typer.Option(help="Escape bound on |z|^2")] = None,
    frame_strategy: Annotated[Optional[FrameStrategy], typer.Option(help="Row scheduling")] = None,
    row_strategy: Annotated[Optional[RowStrategy], typer.Option(help="Pixel scheduling")] = None,
    workers: Annotated[Optional[int], typer.Option(min=1, help="Threads per parallel level")] = None,
):
    """Render a single frame to PNG."""
    from mandelzoom.core.errors import InvalidSettings
    from mandelzoom.pipeline.data import FrameSettings, RenderedFrame
    from mandelzoom.pipeline.sink import PngSink
    from mandelzoom.render.frames import create_frame_renderer

    cfg = get_settings().render
    try:
        settings = FrameSettings(
            pixel_width=pixel_width if pixel_width is not None else cfg.pixel_width,
            pixel_height=pixel_height if pixel_height is not None else cfg.pixel_height,
            center_x=center_x,
            center_y=center_y,
            width=width,
            escape_radius_squared=escape_radius_squared if escape_radius_squared is not None else cfg.escape_radius_squared,
            max_iterations=max_iterations if max_iterations is not None else cfg.max_iterations,
            output_id=output.name,
        )
    except InvalidSettings as e:
        console.print(f"[red]Invalid settings:[/red] {e}")
        raise typer.Exit(code=2)

    renderer = create_frame_renderer(
        frame_strategy if frame_strategy is not None else cfg.frame_strategy,
        row_strategy if row_strategy is not None else cfg.row_strategy,
        workers if workers is not None else cfg.max_workers,
    )
    console.print(f"[bold]Rendering {settings.pixel_width}x{settings.pixel_height} ({renderer.description})...[/bold]")

    start = time.time()
    with renderer:
        pixels = renderer.render_frame(settings)
    elapsed = time.time() - start

    PngSink(output.parent).write(RenderedFrame(settings=settings, pixels=pixels))
    console.print(f"[green]Saved {output} in {elapsed:.2f}s[/green]")


@app.command()
def animate(
    output_dir: Annotated[Optional[Path], typer.Option(help="Directory for PNG frames")] = None,
    frames: Annotated[Optional[int], typer.Option(help="Number of frames")] = None,
    zoom_factor: Annotated[Optional[float], typer.Option(help="Width multiplier per frame")] = None,
    center_x: Annotated[Optional[float], typer.Option(help="Real part of the zoom target")] = None,
    center_y: Annotated[Optional[float], typer.Option(help="Imaginary part of the zoom target")] = None,
    initial_width: Annotated[Optional[float], typer.Option(help="Plane width before the first frame")] = None,
    pixel_width: Annotated[Optional[int], typer.Option(help="Frame width in pixels")] = None,
    pixel_height: Annotated[Optional[int], typer.Option(help="Frame height in pixels")] = None,
    max_iterations: Annotated[Optional[int], typer.Option(help="Iteration cap")] = None,
    mode: Annotated[Optional[AnimationMode], typer.Option(help="Frame scheduling")] = None,
    in_flight: Annotated[Optional[int], typer.Option(help="Frames rendered concurrently")] = None,
    frame_strategy: Annotated[Optional[FrameStrategy], typer.Option(help="Row scheduling")] = None,
    row_strategy: Annotated[Optional[RowStrategy], typer.Option(help="Pixel scheduling")] = None,
    video: Annotated[Optional[Path], typer.Option(help="Also encode the frames to this mp4")] = None,
    report: Annotated[Optional[Path], typer.Option(help="Save the run report as JSON")] = None,
):
    """Render a zoom animation."""
    from mandelzoom.pipeline.pipeline import ZoomPipeline

    settings = get_settings()
    render_updates = {
        "pixel_width": pixel_width,
        "pixel_height": pixel_height,
        "max_iterations": max_iterations,
        "frame_strategy": frame_strategy,
        "row_strategy": row_strategy,
    }
    animation_updates = {
        "output_dir": output_dir,
        "frames": frames,
        "zoom_factor": zoom_factor,
        "center_x": center_x,
        "center_y": center_y,
        "initial_width": initial_width,
        "mode": mode,
        "max_frames_in_flight": in_flight,
        "video_path": video,
    }
    render_cfg = settings.render.model_copy(
        update={k: v for k, v in render_updates.items() if v is not None}
    )
    animation_cfg = settings.animation.model_copy(
        update={k: v for k, v in animation_updates.items() if v is not None}
    )

    result = ZoomPipeline(render=render_cfg, animation=animation_cfg, log_fn=_log).run()

    table = Table(title="Animation Results")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Mode", result.mode)
    table.add_row("Frames dispatched", str(result.frames_dispatched))
    table.add_row("Frames written", str(result.frames_written))
    table.add_row("Frames failed", str(len(result.failures)))
    table.add_row("Elapsed", f"{result.elapsed_seconds:.1f} s")
    console.print(table)

    if report:
        result.save(report)
        console.print(f"[green]Report saved to {report}[/green]")

    if not result.ok:
        for failure in result.failures:
            console.print(f"[red]{escape(failure.output_id)}[/red] ({failure.stage}): {escape(failure.error)}")
        raise typer.Exit(code=1)


@app.command()
def benchmark(
    pixel_width: Annotated[int, typer.Option(help="Frame width in pixels")] = 160,
    pixel_height: Annotated[int, typer.Option(help="Frame height in pixels")] = 90,
    max_iterations: Annotated[int, typer.Option(help="Iteration cap")] = 200,
    workers: Annotated[Optional[int], typer.Option(min=1, help="Threads per parallel level")] = None,
):
    """Time every frame/row strategy combination on one frame."""
    import numpy as np

    from mandelzoom.core import constants
    from mandelzoom.pipeline.data import FrameSettings
    from mandelzoom.render.frames import create_frame_renderer

    settings = FrameSettings(
        pixel_width=pixel_width,
        pixel_height=pixel_height,
        center_x=constants.ZOOM_CENTER_X,
        center_y=constants.ZOOM_CENTER_Y,
        width=constants.ZOOM_INITIAL_WIDTH * constants.ZOOM_FACTOR,
        max_iterations=max_iterations,
    )

    console.print(Panel.fit(
        f"[bold]Strategy Benchmark[/bold]\n"
        f"{pixel_width}x{pixel_height}, {max_iterations} iterations"
    ))

    table = Table(title="Render Times")
    table.add_column("Frame")
    table.add_column("Row")
    table.add_column("Seconds", justify="right")
    table.add_column("Matches serial")

    reference = None
    for frame_strategy in FrameStrategy:
        for row_strategy in RowStrategy:
            with create_frame_renderer(frame_strategy, row_strategy, workers) as renderer:
                start = time.time()
                pixels = renderer.render_frame(settings)
                elapsed = time.time() - start
            if reference is None:
                reference = pixels
            table.add_row(
                frame_strategy.value,
                row_strategy.value,
                f"{elapsed:.3f}",
                "yes" if np.array_equal(pixels, reference) else "[red]NO[/red]",
            )

    console.print(table)


@app.command()
def version():
    """Show version information."""
    from mandelzoom import __version__
    console.print(f"mandelzoom v{__version__}")


if __name__ == "__main__":
    app()
