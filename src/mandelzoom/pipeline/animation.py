"""Animation renderers - consume a stream of frame settings.

Each renderer pulls ``FrameSettings`` from a queue until it sees the
end-of-stream sentinel, renders each frame with a frame renderer and hands
the result to a sink::

    AWAITING_NEXT --terminator--> DONE
    AWAITING_NEXT --settings----> DISPATCHING --> AWAITING_NEXT

The terminator is consumed exactly once; anything queued after it is left
untouched.
"""

import logging
import sys
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from queue import Empty, Queue
from typing import Iterable, Literal

from pydantic import BaseModel, Field

from mandelzoom.pipeline.data import END_OF_STREAM, FrameSettings, RenderedFrame
from mandelzoom.pipeline.sink import FrameSink
from mandelzoom.render.frames import FrameRenderer

# Configure module logger
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class FrameFailure(BaseModel):
    """A frame that was dispatched but never reached its sink."""

    output_id: str
    frame_number: int
    stage: Literal["render", "sink"]
    error: str


class AnimationReport(BaseModel):
    """Outcome of one animation run."""

    mode: str
    frames_dispatched: int = 0
    frames_written: int = 0
    failures: list[FrameFailure] = Field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        """Export to dictionary for JSON serialization."""
        return self.model_dump()

    def save(self, path: Path) -> None:
        """Save report to JSON file."""
        Path(path).write_text(self.model_dump_json(indent=2))


def queue_frames(frames: Iterable[FrameSettings], terminator=END_OF_STREAM) -> Queue:
    """Build an unbounded frame queue holding ``frames`` and one terminator."""
    frame_queue: Queue = Queue()
    for settings in frames:
        frame_queue.put(settings)
    frame_queue.put(terminator)
    return frame_queue


class AnimationRenderer:
    """Base animation renderer.

    Subclasses decide how a frame is dispatched (``_dispatch``) and how the
    run waits for dispatched frames (``_await_in_flight``). A failed frame is
    logged and recorded in the report; it never stops the other frames.
    """

    mode = "animation"

    def __init__(self, frame_renderer: FrameRenderer, sink: FrameSink, log_fn=None):
        self.frame_renderer = frame_renderer
        self.sink = sink
        self.log = log_fn or logger.info

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._report_lock = threading.Lock()
        self._report: AnimationReport | None = None
        self._result: AnimationReport | None = None
        self._error: Exception | None = None

    def run(self, frame_source: Queue, terminator=END_OF_STREAM) -> AnimationReport:
        """Consume ``frame_source`` until ``terminator`` and wait for every frame.

        Args:
            frame_source: Queue of FrameSettings values
            terminator: Sentinel ending the stream

        Returns:
            Report of dispatched, written and failed frames
        """
        self._report = AnimationReport(mode=self.mode)
        start_time = time.time()
        self._begin()

        try:
            while not self._stop_event.is_set():
                try:
                    item = frame_source.get(timeout=0.1)
                except Empty:
                    continue

                if item is terminator:
                    break

                with self._report_lock:
                    self._report.frames_dispatched += 1
                self._dispatch(item)
        finally:
            self._await_in_flight()

        self._report.elapsed_seconds = time.time() - start_time
        return self._report

    def _begin(self):
        """Prepare per-run resources."""

    def _dispatch(self, settings: FrameSettings):
        raise NotImplementedError

    def _await_in_flight(self):
        """Block until every dispatched frame has finished."""

    def _render_and_deliver(self, settings: FrameSettings):
        """Render one frame and hand it to the sink, recording the outcome."""
        try:
            pixels = self.frame_renderer.render_frame(settings)
        except Exception as e:
            self._record_failure(settings, "render", e)
            return

        try:
            self.sink.write(RenderedFrame(settings=settings, pixels=pixels))
        except Exception as e:
            self._record_failure(settings, "sink", e)
            return

        with self._report_lock:
            self._report.frames_written += 1
        self.log(f"Rendered {settings.output_id}")

    def _record_failure(self, settings: FrameSettings, stage: str, error: Exception):
        self.log(f"Error ({stage}) on frame {settings.output_id}: {error}")
        failure = FrameFailure(
            output_id=settings.output_id,
            frame_number=settings.frame_number,
            stage=stage,
            error=repr(error),
        )
        with self._report_lock:
            self._report.failures.append(failure)

        # Let an order-restoring sink move past the missing number
        try:
            self.sink.skip(settings.frame_number)
        except Exception as e:
            self.log(f"Error (sink) releasing frames after {settings.output_id}: {e}")

    def _run_in_thread(self, frame_source: Queue, terminator):
        try:
            self._result = self.run(frame_source, terminator)
        except Exception as e:
            self._error = e

    def start(self, frame_source: Queue, terminator=END_OF_STREAM):
        """Start consuming ``frame_source`` on a background thread."""
        self._stop_event.clear()
        self._result = None
        self._error = None
        self._thread = threading.Thread(
            target=self._run_in_thread,
            args=(frame_source, terminator),
            name=f"mandelzoom-{self.mode}",
            daemon=True,
        )
        self._thread.start()

    def stop(self):
        """Stop pulling new frames; frames already dispatched still complete."""
        self._stop_event.set()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def join(self) -> AnimationReport:
        """Wait for the background run to finish and return its report."""
        if self._thread:
            self._thread.join()
        if self._error is not None:
            raise self._error
        if self._result is None:
            raise RuntimeError("Animation was never started")
        return self._result


class SerialAnimation(AnimationRenderer):
    """Renders one frame at a time; the sink sees frames in source order."""

    mode = "serial"

    def _dispatch(self, settings):
        self._render_and_deliver(settings)


class ConcurrentAnimation(AnimationRenderer):
    """Dispatches each frame to a thread pool without waiting for it.

    Sink order follows completion order, not source order. The run returns
    only after every dispatched frame has finished.
    """

    mode = "concurrent"

    def __init__(
        self,
        frame_renderer: FrameRenderer,
        sink: FrameSink,
        max_frames_in_flight: int | None = None,
        log_fn=None,
    ):
        super().__init__(frame_renderer, sink, log_fn=log_fn)
        self.max_frames_in_flight = max_frames_in_flight

        self._executor: ThreadPoolExecutor | None = None
        self._in_flight: list[Future] = []

    def _begin(self):
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_frames_in_flight,
            thread_name_prefix="mandelzoom-frame",
        )
        self._in_flight = []

    def _dispatch(self, settings):
        self._in_flight.append(self._executor.submit(self._render_and_deliver, settings))

    def _await_in_flight(self):
        if self._executor is None:
            return
        wait(self._in_flight)
        self._executor.shutdown(wait=True)
        self._executor = None

        in_flight, self._in_flight = self._in_flight, []
        for future in in_flight:
            # Frame failures are already recorded; anything left is a bug
            future.result()
