"""Shared fixtures for renderer tests."""

import io
import threading
import time

import pytest

from mandelzoom.pipeline.data import FrameSettings
from mandelzoom.pipeline.sink import FrameSink


class RecordingSink(FrameSink):
    """Sink that remembers what it received, optionally failing some frames."""

    def __init__(self, fail_on: set[str] | None = None, delay: float = 0.0):
        self.fail_on = fail_on or set()
        self.delay = delay
        self.frames = []
        self.started = 0
        self.closed = False
        self._lock = threading.Lock()

    def write(self, frame):
        with self._lock:
            self.started += 1
        if self.delay:
            time.sleep(self.delay)
        if frame.output_id in self.fail_on:
            raise OSError(f"disk full writing {frame.output_id}")
        with self._lock:
            self.frames.append(frame)

    def close(self):
        self.closed = True

    @property
    def output_ids(self) -> list[str]:
        return [f.output_id for f in self.frames]

    @property
    def frame_numbers(self) -> list[int]:
        return [f.frame_number for f in self.frames]


def make_settings(**overrides) -> FrameSettings:
    values = dict(
        pixel_width=12,
        pixel_height=8,
        center_x=-0.5,
        center_y=0.0,
        width=3.0,
        escape_radius_squared=4.0,
        max_iterations=30,
    )
    values.update(overrides)
    return FrameSettings(**values)


def make_frames(n: int, **overrides) -> list[FrameSettings]:
    return [
        make_settings(output_id=f"frame{i:05d}.png", frame_number=i, **overrides)
        for i in range(n)
    ]


class FakeStdin(io.RawIOBase):
    def __init__(self):
        self.chunks = []

    def writable(self):
        return True

    def write(self, data):
        self.chunks.append(bytes(data))
        return len(data)


class FakeFfmpeg:
    """Stand-in for the ffmpeg subprocess."""

    instances = []

    def __init__(self, args, stdin=None, stderr=None):
        self.args = args
        self.stdin = FakeStdin()
        self.stderr = io.BytesIO(b"")
        self.returncode = None
        FakeFfmpeg.instances.append(self)

    def wait(self):
        self.returncode = 0
        return 0


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def small_settings():
    return make_settings()


@pytest.fixture
def quiet_log():
    return lambda *args, **kwargs: None
