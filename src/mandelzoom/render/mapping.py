"""Pixel-to-plane coordinate mapping."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mandelzoom.pipeline.data import FrameSettings


@dataclass(frozen=True)
class PlaneMapping:
    """Affine map from pixel indices to complex-plane coordinates.

    Pixel (0, 0) is the top-left corner of the viewport; plane y decreases
    as the row index increases. Built once per frame and shared by every row
    and pixel task so all strategies see identical floating-point values.
    """

    left: float
    top: float
    hscale: float
    vscale: float

    @classmethod
    def from_settings(cls, settings: "FrameSettings") -> "PlaneMapping":
        width = settings.width
        height = width * settings.pixel_height / settings.pixel_width
        return cls(
            left=settings.center_x - width / 2,
            top=settings.center_y + height / 2,
            hscale=width / settings.pixel_width,
            vscale=height / settings.pixel_height,
        )

    def px_to_cx(self, px: int) -> float:
        return self.left + px * self.hscale

    def py_to_cy(self, py: int) -> float:
        return self.top - py * self.vscale
