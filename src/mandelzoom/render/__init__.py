"""Escape-time kernel and the row/frame work strategies."""

from mandelzoom.render.frames import (
    FrameRenderer,
    ParallelFrameRenderer,
    SerialFrameRenderer,
    create_frame_renderer,
)
from mandelzoom.render.kernel import iterate, iteration_color, render_pixel
from mandelzoom.render.mapping import PlaneMapping
from mandelzoom.render.rows import ParallelRowRenderer, RowRenderer, SerialRowRenderer

__all__ = [
    "FrameRenderer",
    "ParallelFrameRenderer",
    "ParallelRowRenderer",
    "PlaneMapping",
    "RowRenderer",
    "SerialFrameRenderer",
    "SerialRowRenderer",
    "create_frame_renderer",
    "iterate",
    "iteration_color",
    "render_pixel",
]
