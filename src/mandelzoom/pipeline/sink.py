"""Output sinks for rendered frames.

A sink receives ownership of a finished ``RenderedFrame`` through ``write``
and persists it. Sinks may be called from several frame tasks at once.
"""

import io
import logging
import subprocess
import sys
import threading
from pathlib import Path

from matplotlib import image as mpimg

from mandelzoom.core.errors import SinkError
from mandelzoom.core.types import PixelBuffer
from mandelzoom.pipeline.data import RenderedFrame

# Configure module logger
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def encode_png(pixels: PixelBuffer) -> bytes:
    """Encode an RGBA buffer as PNG bytes."""
    buf = io.BytesIO()
    mpimg.imsave(buf, pixels, format="png")
    return buf.getvalue()


class FrameSink:
    """Destination for rendered frames."""

    def write(self, frame: RenderedFrame) -> None:
        raise NotImplementedError

    def skip(self, frame_number: int) -> None:
        """Note that ``frame_number`` failed upstream and will never be written."""

    def close(self) -> None:
        """Flush and release resources once no more frames will arrive."""


class PngSink(FrameSink):
    """Writes each frame as ``output_dir / output_id`` in PNG format."""

    def __init__(self, output_dir: str | Path = ".", log_fn=None):
        self.output_dir = Path(output_dir)
        self.log = log_fn or logger.debug

    def path_for(self, frame: RenderedFrame) -> Path:
        return self.output_dir / frame.output_id

    def write(self, frame):
        path = self.path_for(frame)
        path.parent.mkdir(parents=True, exist_ok=True)
        mpimg.imsave(path, frame.pixels, format="png")
        self.log(f"Wrote {path}")


class TeeSink(FrameSink):
    """Hands every frame to several sinks.

    Each sink sees every frame even when another one fails; the first
    failure is re-raised afterwards.
    """

    def __init__(self, *sinks: FrameSink):
        self.sinks = list(sinks)

    def _each(self, method: str, *args):
        error: Exception | None = None
        for sink in self.sinks:
            try:
                getattr(sink, method)(*args)
            except Exception as e:
                if error is None:
                    error = e
        if error is not None:
            raise error

    def write(self, frame):
        self._each("write", frame)

    def skip(self, frame_number):
        self._each("skip", frame_number)

    def close(self):
        self._each("close")


class OrderedSink(FrameSink):
    """Restores frame order in front of another sink.

    Frames arriving out of order are buffered by ``frame_number`` and
    released to the inner sink as soon as the sequence is contiguous.
    Numbers reported through ``skip`` count as filled.
    """

    def __init__(self, inner: FrameSink, first_frame: int = 0, log_fn=None):
        self.inner = inner
        self.log = log_fn or logger.info

        self._lock = threading.Lock()
        self._frame_buffer: dict[int, RenderedFrame] = {}
        self._skipped: set[int] = set()
        self._next_frame_to_write = first_frame

    def _flush_buffer(self):
        """Write any buffered frames that are now in sequence.

        A failing frame does not hold back the ones after it; the first
        error is raised once the run of frames has been handed over.
        """
        error: Exception | None = None
        while True:
            number = self._next_frame_to_write
            if number in self._skipped:
                self._skipped.discard(number)
                self._next_frame_to_write += 1
            elif number in self._frame_buffer:
                frame = self._frame_buffer.pop(number)
                self._next_frame_to_write += 1
                try:
                    self.inner.write(frame)
                except Exception as e:
                    if error is None:
                        error = e
            else:
                break
        if error is not None:
            raise error

    def write(self, frame):
        with self._lock:
            if frame.frame_number < self._next_frame_to_write:
                self.log(f"Warning: frame {frame.frame_number} arrived after its slot, writing as-is")
                self.inner.write(frame)
                return
            self._frame_buffer[frame.frame_number] = frame
            self._flush_buffer()

    def skip(self, frame_number):
        with self._lock:
            if frame_number < self._next_frame_to_write or frame_number in self._frame_buffer:
                return
            self._skipped.add(frame_number)
            self._flush_buffer()

    @property
    def pending(self) -> int:
        """Number of frames held back waiting for an earlier one."""
        with self._lock:
            return len(self._frame_buffer)

    def close(self):
        with self._lock:
            if self._frame_buffer:
                missing = self._next_frame_to_write
                self.log(f"Warning: frame {missing} never arrived, flushing {len(self._frame_buffer)} later frames")
            for number in sorted(self._frame_buffer):
                self.inner.write(self._frame_buffer.pop(number))
        self.inner.close()


class VideoSink(FrameSink):
    """Streams frames as PNG images into an ffmpeg H.264 encode.

    Frames are appended in the order ``write`` is called; wrap in
    ``OrderedSink`` when frames can complete out of order.
    """

    def __init__(
        self,
        output_path: str | Path,
        framerate: int = 30,
        crf: int = 18,
        log_fn=None,
    ):
        self.output_path = Path(output_path)
        self.framerate = framerate
        self.crf = crf
        self.log = log_fn or logger.info

        self._lock = threading.Lock()
        self._ffmpeg_proc: subprocess.Popen | None = None
        self._stderr_thread: threading.Thread | None = None
        self._stderr_chunks: list[bytes] = []
        self._frames_written = 0

    def _start_ffmpeg(self):
        """Start the ffmpeg process."""
        self.log(f"Starting ffmpeg (output: {self.output_path})...")
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._ffmpeg_proc = subprocess.Popen(
                [
                    "ffmpeg",
                    "-y",
                    "-f",
                    "image2pipe",
                    "-framerate",
                    str(self.framerate),
                    "-i",
                    "-",
                    "-c:v",
                    "libx264",
                    "-pix_fmt",
                    "yuv420p",
                    "-vf",
                    "pad=ceil(iw/2)*2:ceil(ih/2)*2",
                    "-crf",
                    str(self.crf),
                    str(self.output_path),
                ],
                stdin=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise SinkError("ffmpeg not found in PATH") from e

        # ffmpeg stalls on a full stderr pipe
        self._stderr_chunks = []
        self._stderr_thread = threading.Thread(
            target=self._drain_stderr,
            args=(self._ffmpeg_proc.stderr,),
            name="mandelzoom-ffmpeg-stderr",
            daemon=True,
        )
        self._stderr_thread.start()

    def _drain_stderr(self, stream):
        for chunk in iter(lambda: stream.read(4096), b""):
            self._stderr_chunks.append(chunk)

    def write(self, frame):
        png_data = encode_png(frame.pixels)
        with self._lock:
            if self._ffmpeg_proc is None:
                self._start_ffmpeg()
            try:
                self._ffmpeg_proc.stdin.write(png_data)
            except BrokenPipeError as e:
                raise SinkError(f"ffmpeg pipe broken at {frame.output_id}") from e
            self._frames_written += 1

    def close(self):
        with self._lock:
            proc, self._ffmpeg_proc = self._ffmpeg_proc, None
        if proc is None:
            return

        if proc.stdin:
            proc.stdin.close()
        proc.wait()
        if self._stderr_thread is not None:
            self._stderr_thread.join()
            self._stderr_thread = None
        stderr = b"".join(self._stderr_chunks)

        if proc.returncode != 0:
            raise SinkError(f"ffmpeg exited with {proc.returncode}: {stderr.decode(errors='replace')}")
        self.log(f"Video saved to: {self.output_path}")
        self.log(f"Total frames written: {self._frames_written}")

    @property
    def frames_written(self) -> int:
        """Return number of frames written so far."""
        return self._frames_written
