"""Zoom pipeline orchestrator - coordinates all components."""

import sys
import time
from queue import Full, Queue
from typing import Iterator

from mandelzoom.core import constants
from mandelzoom.core.config import AnimationMode, AnimationSettings, RenderSettings
from mandelzoom.pipeline.animation import (
    AnimationRenderer,
    AnimationReport,
    ConcurrentAnimation,
    SerialAnimation,
)
from mandelzoom.pipeline.data import END_OF_STREAM, FrameSettings
from mandelzoom.pipeline.sink import FrameSink, OrderedSink, PngSink, TeeSink, VideoSink
from mandelzoom.render.frames import create_frame_renderer


def _flushing_print(*args, **kwargs):
    """Print with immediate flush for real-time progress output."""
    print(*args, **kwargs)
    sys.stdout.flush()


def zoom_frames(
    pixel_width: int = constants.PIXEL_WIDTH,
    pixel_height: int = constants.PIXEL_HEIGHT,
    center_x: float = constants.ZOOM_CENTER_X,
    center_y: float = constants.ZOOM_CENTER_Y,
    initial_width: float = constants.ZOOM_INITIAL_WIDTH,
    zoom_factor: float = constants.ZOOM_FACTOR,
    frames: int = constants.ZOOM_FRAMES,
    escape_radius_squared: float = constants.ESCAPE_RADIUS_SQUARED,
    max_iterations: int = constants.MAX_ITERATIONS,
    filename_pattern: str = constants.FILENAME_PATTERN,
) -> Iterator[FrameSettings]:
    """Generate the settings of a zoom sweep around a fixed center.

    The width shrinks before the first frame, so frame ``i`` spans
    ``initial_width * zoom_factor ** (i + 1)``.

    Args:
        pixel_width: Output width in pixels
        pixel_height: Output height in pixels
        center_x: Real part of the zoom target
        center_y: Imaginary part of the zoom target
        initial_width: Plane width before the first step
        zoom_factor: Width multiplier per frame (< 1 zooms in)
        frames: Number of frames
        escape_radius_squared: Escape bound on |z|^2
        max_iterations: Iteration cap
        filename_pattern: ``str.format`` pattern taking the frame index

    Yields:
        One FrameSettings per frame, numbered from 0
    """
    width = initial_width
    for i in range(frames):
        width = width * zoom_factor
        yield FrameSettings(
            pixel_width=pixel_width,
            pixel_height=pixel_height,
            center_x=center_x,
            center_y=center_y,
            width=width,
            escape_radius_squared=escape_radius_squared,
            max_iterations=max_iterations,
            output_id=filename_pattern.format(i),
            frame_number=i,
        )


class ZoomPipeline:
    """Drives a zoom animation from settings to files.

    The animation renderer consumes a bounded frame queue on a background
    thread while this object produces the sweep on the calling thread, then
    sends the terminator once and joins.
    """

    def __init__(
        self,
        render: RenderSettings | None = None,
        animation: AnimationSettings | None = None,
        log_fn=_flushing_print,
    ):
        self.render = render or RenderSettings()
        self.animation = animation or AnimationSettings()
        self.log = log_fn

    def frames(self) -> Iterator[FrameSettings]:
        r, a = self.render, self.animation
        return zoom_frames(
            pixel_width=r.pixel_width,
            pixel_height=r.pixel_height,
            center_x=a.center_x,
            center_y=a.center_y,
            initial_width=a.initial_width,
            zoom_factor=a.zoom_factor,
            frames=a.frames,
            escape_radius_squared=r.escape_radius_squared,
            max_iterations=r.max_iterations,
            filename_pattern=a.filename_pattern,
        )

    def build_sink(self) -> FrameSink:
        """PNG frames in ``output_dir``, plus an mp4 when ``video_path`` is set."""
        a = self.animation
        png_sink = PngSink(a.output_dir)
        if a.video_path is None:
            return png_sink

        video_sink: FrameSink = VideoSink(a.video_path, framerate=a.framerate, crf=a.crf, log_fn=self.log)
        if a.mode is AnimationMode.CONCURRENT:
            video_sink = OrderedSink(video_sink, log_fn=self.log)
        return TeeSink(png_sink, video_sink)

    def build_animation(self, frame_renderer, sink: FrameSink) -> AnimationRenderer:
        if self.animation.mode is AnimationMode.SERIAL:
            return SerialAnimation(frame_renderer, sink, log_fn=self.log)
        return ConcurrentAnimation(
            frame_renderer,
            sink,
            max_frames_in_flight=self.animation.max_frames_in_flight,
            log_fn=self.log,
        )

    def _produce(self, renderer: AnimationRenderer, frame_queue: Queue, item) -> bool:
        """Put ``item`` on the queue unless the consumer has gone away."""
        while True:
            try:
                frame_queue.put(item, timeout=0.1)
                return True
            except Full:
                if not renderer.is_running:
                    return False

    def run(self) -> AnimationReport:
        """Run the full pipeline.

        Returns:
            The animation report
        """
        r, a = self.render, self.animation
        self.log("=" * 60)
        self.log("Mandelbrot Zoom Pipeline")
        self.log("=" * 60)
        self.log(f"Resolution: {r.pixel_width}x{r.pixel_height}, {r.max_iterations} iterations")
        self.log(f"Center: ({a.center_x}, {a.center_y}), {a.frames} frames x{a.zoom_factor}")
        self.log(f"Strategy: {r.frame_strategy.value} frame x {r.row_strategy.value} row, {a.mode.value} animation")

        start_time = time.time()
        frame_renderer = create_frame_renderer(r.frame_strategy, r.row_strategy, r.max_workers)
        sink = self.build_sink()
        renderer = self.build_animation(frame_renderer, sink)
        frame_queue: Queue = Queue(maxsize=a.frame_queue_size)

        try:
            renderer.start(frame_queue)
            for settings in self.frames():
                if not self._produce(renderer, frame_queue, settings):
                    break
            self._produce(renderer, frame_queue, END_OF_STREAM)
            report = renderer.join()
        finally:
            try:
                sink.close()
            finally:
                frame_renderer.close()

        elapsed = time.time() - start_time
        self.log("\n" + "=" * 60)
        self.log("Pipeline Complete")
        self.log("=" * 60)
        self.log(f"Total time: {elapsed:.1f}s")
        self.log(f"Frames written: {report.frames_written}/{report.frames_dispatched}")
        if report.failures:
            self.log(f"Frames failed: {len(report.failures)}")
        if report.frames_written > 0:
            self.log(f"Average: {elapsed / report.frames_written:.2f}s per frame")

        return report


def run_zoom(
    frames: int = constants.ZOOM_FRAMES,
    pixel_width: int = constants.PIXEL_WIDTH,
    pixel_height: int = constants.PIXEL_HEIGHT,
    mode: AnimationMode | str = AnimationMode.CONCURRENT,
    output_dir: str = "frames",
) -> AnimationReport:
    """Convenience function to run a default zoom.

    Args:
        frames: Number of frames
        pixel_width: Output width in pixels
        pixel_height: Output height in pixels
        mode: Serial or concurrent frame scheduling
        output_dir: Directory for the PNG frames

    Returns:
        The animation report
    """
    pipeline = ZoomPipeline(
        render=RenderSettings(pixel_width=pixel_width, pixel_height=pixel_height),
        animation=AnimationSettings(frames=frames, mode=AnimationMode(mode), output_dir=output_dir),
    )
    return pipeline.run()
