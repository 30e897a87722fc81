"""Frame-granularity work strategies.

A frame renderer turns ``FrameSettings`` into a fully populated pixel buffer
using a row strategy for the rows. Every frame/row combination produces a
bit-identical buffer; the choice only affects scheduling.
"""

from typing import TYPE_CHECKING

from mandelzoom.core.config import FrameStrategy, RowStrategy
from mandelzoom.core.errors import RenderTaskFailure
from mandelzoom.core.types import PixelBuffer, new_pixel_buffer
from mandelzoom.render.mapping import PlaneMapping
from mandelzoom.render.pool import PooledRenderer, join_all
from mandelzoom.render.rows import ParallelRowRenderer, RowRenderer, SerialRowRenderer

if TYPE_CHECKING:
    from mandelzoom.pipeline.data import FrameSettings


class FrameRenderer:
    """Renders a frame by delegating each row to a row strategy."""

    name = "frame"

    def __init__(self, row_renderer: RowRenderer | None = None):
        self.row_renderer = row_renderer or SerialRowRenderer()

    @property
    def description(self) -> str:
        return f"{self.name} frame x {self.row_renderer.name} row"

    def render_frame(self, settings: "FrameSettings") -> PixelBuffer:
        raise NotImplementedError

    def _render_row(self, mapping: PlaneMapping, py: int, settings, buffer):
        y = mapping.py_to_cy(py)
        self.row_renderer.render_row(mapping.left, mapping.hscale, y, py, settings, buffer)

    def close(self):
        """Release worker resources held by this renderer and its row strategy."""
        self.row_renderer.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class SerialFrameRenderer(FrameRenderer):
    """Renders rows in order on the calling thread."""

    name = "serial"

    def render_frame(self, settings):
        mapping = PlaneMapping.from_settings(settings)
        buffer = new_pixel_buffer(settings.pixel_width, settings.pixel_height)

        for py in range(settings.pixel_height):
            try:
                self._render_row(mapping, py, settings, buffer)
            except RenderTaskFailure:
                raise
            except Exception as e:
                raise RenderTaskFailure(f"row {py}", settings.output_id) from e

        return buffer


class ParallelFrameRenderer(PooledRenderer, FrameRenderer):
    """One task per row on a thread pool, joined before the buffer is returned.

    Rows cover disjoint pixel sets, so workers write the shared buffer
    without locking.
    """

    name = "parallel"
    thread_name_prefix = "mandelzoom-row"

    def __init__(self, row_renderer: RowRenderer | None = None, max_workers: int | None = None):
        PooledRenderer.__init__(self, max_workers=max_workers)
        FrameRenderer.__init__(self, row_renderer)

    def render_frame(self, settings):
        mapping = PlaneMapping.from_settings(settings)
        buffer = new_pixel_buffer(settings.pixel_width, settings.pixel_height)
        pool = self._pool()

        tasks = {
            pool.submit(self._render_row, mapping, py, settings, buffer): f"row {py}"
            for py in range(settings.pixel_height)
        }
        join_all(tasks, settings.output_id)

        return buffer

    def close(self):
        PooledRenderer.close(self)
        self.row_renderer.close()


def create_frame_renderer(
    frame_strategy: FrameStrategy | str = FrameStrategy.PARALLEL,
    row_strategy: RowStrategy | str = RowStrategy.SERIAL,
    max_workers: int | None = None,
) -> FrameRenderer:
    """Build a frame renderer for a frame/row strategy combination.

    Args:
        frame_strategy: Row scheduling within a frame
        row_strategy: Pixel scheduling within a row
        max_workers: Pool size for each parallel level (None = executor default)

    Returns:
        A frame renderer; close it (or use it as a context manager) when done
    """
    frame_strategy = FrameStrategy(frame_strategy)
    row_strategy = RowStrategy(row_strategy)

    if row_strategy is RowStrategy.PARALLEL:
        row_renderer: RowRenderer = ParallelRowRenderer(max_workers=max_workers)
    else:
        row_renderer = SerialRowRenderer()

    if frame_strategy is FrameStrategy.PARALLEL:
        return ParallelFrameRenderer(row_renderer, max_workers=max_workers)
    return SerialFrameRenderer(row_renderer)
