"""Escape-time kernel and grayscale coloring.

Pure functions with no shared state; safe to call from any number of threads.
"""

import math
from typing import TYPE_CHECKING

from mandelzoom.core.constants import CHANNEL_MAX
from mandelzoom.core.types import Color

if TYPE_CHECKING:
    from mandelzoom.pipeline.data import FrameSettings


def iterate(cx: float, cy: float, escape_radius_squared: float, max_iterations: int) -> int:
    """Count iterations of z' = z*z + c before |z|^2 reaches the bound.

    The iterate starts at c itself (the z=0 step is implicit). A result of
    ``max_iterations`` means the point did not escape.

    Args:
        cx: Real part of c
        cy: Imaginary part of c
        escape_radius_squared: Bound on |z|^2
        max_iterations: Iteration cap

    Returns:
        Iteration count in [0, max_iterations]
    """
    re = cx
    im = cy
    count = 0

    while re * re + im * im < escape_radius_squared and count < max_iterations:
        re, im = re * re - im * im + cx, 2 * re * im + cy
        count += 1

    return count


def iteration_color(count: int, max_iterations: int) -> Color:
    """Map an iteration count to an opaque gray (non-escaping points are white)."""
    intensity = count / max_iterations
    channel = min(max(math.floor(intensity * CHANNEL_MAX), 0), CHANNEL_MAX)
    return (channel, channel, channel, CHANNEL_MAX)


def render_pixel(cx: float, cy: float, settings: "FrameSettings") -> Color:
    """Compute the color of the plane point (cx, cy)."""
    count = iterate(cx, cy, settings.escape_radius_squared, settings.max_iterations)
    return iteration_color(count, settings.max_iterations)
