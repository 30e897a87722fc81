"""Configuration and settings for the renderer."""

from enum import Enum
from pathlib import Path

from pydantic import Field, PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict

from mandelzoom.core import constants


class FrameStrategy(str, Enum):
    """How the rows of one frame are scheduled."""

    SERIAL = "serial"  # rows in order on the calling thread
    PARALLEL = "parallel"  # one task per row


class RowStrategy(str, Enum):
    """How the pixels of one row are scheduled."""

    SERIAL = "serial"  # pixels in order on the calling thread
    PARALLEL = "parallel"  # one task per pixel (benchmarking only)


class AnimationMode(str, Enum):
    """How frames of an animation are scheduled."""

    SERIAL = "serial"  # one frame at a time, strict order
    CONCURRENT = "concurrent"  # many frames in flight, unordered completion


class RenderSettings(BaseSettings):
    """Per-frame rendering configuration."""

    model_config = SettingsConfigDict(env_prefix="RENDER_")

    # Output resolution
    pixel_width: PositiveInt = constants.PIXEL_WIDTH
    pixel_height: PositiveInt = constants.PIXEL_HEIGHT

    # Escape-time parameters
    escape_radius_squared: PositiveFloat = constants.ESCAPE_RADIUS_SQUARED
    max_iterations: PositiveInt = constants.MAX_ITERATIONS

    # Work decomposition (parallel rows x serial pixels is the efficient pairing)
    frame_strategy: FrameStrategy = FrameStrategy.PARALLEL
    row_strategy: RowStrategy = RowStrategy.SERIAL

    # Thread pool size for parallel strategies (None = executor default)
    max_workers: PositiveInt | None = None


class AnimationSettings(BaseSettings):
    """Zoom animation configuration."""

    model_config = SettingsConfigDict(env_prefix="ANIM_")

    # Zoom target
    center_x: float = constants.ZOOM_CENTER_X
    center_y: float = constants.ZOOM_CENTER_Y

    # Sweep
    initial_width: PositiveFloat = constants.ZOOM_INITIAL_WIDTH
    zoom_factor: PositiveFloat = constants.ZOOM_FACTOR
    frames: PositiveInt = constants.ZOOM_FRAMES

    # Frame scheduling
    mode: AnimationMode = AnimationMode.CONCURRENT
    max_frames_in_flight: PositiveInt = 4
    frame_queue_size: PositiveInt = 16

    # PNG output
    output_dir: Path = Path("frames")
    filename_pattern: str = constants.FILENAME_PATTERN

    # Optional video output (None = PNG files only)
    video_path: Path | None = None
    framerate: PositiveInt = 30
    crf: int = Field(default=18, ge=0, le=51)  # Quality (lower = better)


class Settings(BaseSettings):
    """Master configuration aggregating all subsystems."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    render: RenderSettings = Field(default_factory=RenderSettings)
    animation: AnimationSettings = Field(default_factory=AnimationSettings)


def get_settings() -> Settings:
    """Load settings from environment and .env file."""
    return Settings()
