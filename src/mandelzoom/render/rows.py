"""Row-granularity work strategies.

Both strategies share one contract::

    render_row(x_start, x_step, y, row_index, settings, buffer)

and write only the pixels of ``buffer[row_index]``.
"""

from typing import TYPE_CHECKING

from mandelzoom.core.types import PixelBuffer
from mandelzoom.render.kernel import render_pixel
from mandelzoom.render.pool import PooledRenderer, join_all

if TYPE_CHECKING:
    from mandelzoom.pipeline.data import FrameSettings


class RowRenderer:
    """Renders one row of a frame into a shared buffer."""

    name = "row"

    def render_row(
        self,
        x_start: float,
        x_step: float,
        y: float,
        row_index: int,
        settings: "FrameSettings",
        buffer: PixelBuffer,
    ) -> None:
        raise NotImplementedError

    def close(self):
        """Release worker resources (no-op for serial strategies)."""

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class SerialRowRenderer(RowRenderer):
    """Computes every pixel of the row on the calling thread."""

    name = "serial"

    def render_row(self, x_start, x_step, y, row_index, settings, buffer):
        for i in range(settings.pixel_width):
            x = x_start + i * x_step
            buffer[row_index, i] = render_pixel(x, y, settings)


class ParallelRowRenderer(PooledRenderer, RowRenderer):
    """One task per pixel, joined before the row returns.

    Task overhead dwarfs the work of a single pixel, so this is only useful
    for benchmarking against the coarser strategies.
    """

    name = "parallel"
    thread_name_prefix = "mandelzoom-pixel"

    def render_row(self, x_start, x_step, y, row_index, settings, buffer):
        pool = self._pool()

        def _render(i: int):
            x = x_start + i * x_step
            buffer[row_index, i] = render_pixel(x, y, settings)

        tasks = {
            pool.submit(_render, i): f"pixel ({i}, {row_index})"
            for i in range(settings.pixel_width)
        }
        join_all(tasks, settings.output_id)
