"""Data classes for pipeline communication."""

import math
from dataclasses import dataclass

from mandelzoom.core import constants
from mandelzoom.core.errors import InvalidSettings
from mandelzoom.core.types import PixelBuffer


def _require_int(name: str, value, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidSettings(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidSettings(f"{name} must be >= {minimum}, got {value}")


def _require_positive(name: str, value) -> None:
    # NaN fails the comparison too
    if not value > 0 or math.isinf(value):
        raise InvalidSettings(f"{name} must be a positive finite number, got {value!r}")


@dataclass(frozen=True)
class FrameSettings:
    """Viewport and escape-time parameters for a single frame.

    Immutable once constructed; shared by reference across every worker
    rendering the frame.
    """

    # Output resolution
    pixel_width: int
    pixel_height: int

    # Viewport in the complex plane
    center_x: float
    center_y: float
    width: float  # plane width; height follows the pixel aspect ratio

    # Escape-time parameters
    escape_radius_squared: float = constants.ESCAPE_RADIUS_SQUARED
    max_iterations: int = constants.MAX_ITERATIONS

    # Sink-only fields
    output_id: str = "frame.png"
    frame_number: int = 0

    def __post_init__(self):
        _require_int("pixel_width", self.pixel_width, 1)
        _require_int("pixel_height", self.pixel_height, 1)
        _require_int("max_iterations", self.max_iterations, 1)
        _require_int("frame_number", self.frame_number, 0)
        _require_positive("width", self.width)
        _require_positive("escape_radius_squared", self.escape_radius_squared)
        for name in ("center_x", "center_y"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidSettings(f"{name} must be finite, got {getattr(self, name)!r}")

    @property
    def height(self) -> float:
        """Plane height spanned by the viewport."""
        return self.width * self.pixel_height / self.pixel_width


@dataclass
class RenderedFrame:
    """A fully populated pixel buffer ready for a sink.

    Ownership of ``pixels`` passes to the sink; the renderer never touches it
    again.
    """

    settings: FrameSettings
    pixels: PixelBuffer

    @property
    def output_id(self) -> str:
        return self.settings.output_id

    @property
    def frame_number(self) -> int:
        return self.settings.frame_number


# Sentinel value to signal end of queue
END_OF_STREAM = object()
