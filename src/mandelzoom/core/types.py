"""Type definitions for the rendering system."""

from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray

# RGBA picture element, each channel 0-255
Color: TypeAlias = tuple[int, int, int, int]

# (pixel_height, pixel_width, 4) uint8 RGBA grid
PixelBuffer: TypeAlias = NDArray[np.uint8]

CHANNELS = 4


def new_pixel_buffer(pixel_width: int, pixel_height: int) -> PixelBuffer:
    """Allocate an empty (fully transparent black) RGBA buffer."""
    return np.zeros((pixel_height, pixel_width, CHANNELS), dtype=np.uint8)
