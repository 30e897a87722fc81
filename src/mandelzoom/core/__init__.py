"""Core data structures and utilities."""

from mandelzoom.core.config import Settings
from mandelzoom.core.errors import (
    InvalidSettings,
    MandelzoomError,
    RenderTaskFailure,
    SinkError,
)
from mandelzoom.core.types import Color, PixelBuffer

__all__ = [
    "Color",
    "InvalidSettings",
    "MandelzoomError",
    "PixelBuffer",
    "RenderTaskFailure",
    "Settings",
    "SinkError",
]
