"""Tests for the zoom sweep and pipeline orchestration."""

import pytest

from mandelzoom.core.config import AnimationMode, AnimationSettings, RenderSettings
from mandelzoom.pipeline import sink as sink_module
from mandelzoom.pipeline.animation import ConcurrentAnimation, SerialAnimation
from mandelzoom.pipeline.pipeline import ZoomPipeline, zoom_frames
from mandelzoom.pipeline.sink import OrderedSink, PngSink, TeeSink, VideoSink

from conftest import FakeFfmpeg


def _small_render(**overrides) -> RenderSettings:
    values = dict(pixel_width=16, pixel_height=9, max_iterations=25, max_workers=2)
    values.update(overrides)
    return RenderSettings(**values)


class TestZoomFrames:
    """Tests for the zoom sweep generator."""

    def test_defaults_follow_zoom_target(self):
        frames = list(zoom_frames(frames=3))

        assert len(frames) == 3
        first = frames[0]
        assert (first.pixel_width, first.pixel_height) == (1920, 1080)
        assert (first.center_x, first.center_y) == (-0.746402, 0.1101995)
        assert first.escape_radius_squared == 10000.0
        assert first.max_iterations == 200

    def test_width_shrinks_before_first_frame(self):
        frames = list(zoom_frames(frames=4, initial_width=2.0, zoom_factor=0.5))

        assert [f.width for f in frames] == [1.0, 0.5, 0.25, 0.125]

    def test_numbering_and_names(self):
        frames = list(zoom_frames(frames=3, filename_pattern="zoom_{:03d}.png"))

        assert [f.frame_number for f in frames] == [0, 1, 2]
        assert [f.output_id for f in frames] == ["zoom_000.png", "zoom_001.png", "zoom_002.png"]

    def test_is_lazy(self):
        sweep = zoom_frames(frames=10_000_000)
        assert next(sweep).frame_number == 0


class TestZoomPipeline:
    """Tests for end-to-end pipeline runs."""

    @pytest.mark.parametrize("mode", list(AnimationMode))
    def test_writes_every_frame(self, tmp_path, mode, quiet_log):
        animation = AnimationSettings(frames=5, mode=mode, output_dir=tmp_path, frame_queue_size=2)
        report = ZoomPipeline(render=_small_render(), animation=animation, log_fn=quiet_log).run()

        assert report.ok
        assert report.mode == mode.value
        assert report.frames_written == 5
        assert sorted(p.name for p in tmp_path.iterdir()) == [f"frame{i:05d}.png" for i in range(5)]

    def test_logs_summary(self, tmp_path):
        messages = []
        animation = AnimationSettings(frames=2, mode=AnimationMode.SERIAL, output_dir=tmp_path)

        ZoomPipeline(render=_small_render(), animation=animation, log_fn=messages.append).run()

        assert "Pipeline Complete" in messages
        assert any(m.startswith("Frames written: 2/2") for m in messages)

    def test_video_output(self, tmp_path, monkeypatch, quiet_log):
        FakeFfmpeg.instances.clear()
        monkeypatch.setattr(sink_module.subprocess, "Popen", FakeFfmpeg)
        animation = AnimationSettings(
            frames=4,
            mode=AnimationMode.CONCURRENT,
            output_dir=tmp_path,
            video_path=tmp_path / "zoom.mp4",
        )

        report = ZoomPipeline(render=_small_render(), animation=animation, log_fn=quiet_log).run()

        assert report.frames_written == 4
        (proc,) = FakeFfmpeg.instances
        assert len(proc.stdin.chunks) == 4
        assert sorted(p.name for p in tmp_path.glob("*.png")) == [f"frame{i:05d}.png" for i in range(4)]


class TestPipelineAssembly:
    """Tests for component selection."""

    def test_png_sink_by_default(self, tmp_path):
        pipeline = ZoomPipeline(animation=AnimationSettings(output_dir=tmp_path))
        sink = pipeline.build_sink()

        assert isinstance(sink, PngSink)
        assert sink.output_dir == tmp_path

    def test_concurrent_video_is_ordered(self, tmp_path):
        pipeline = ZoomPipeline(
            animation=AnimationSettings(mode=AnimationMode.CONCURRENT, video_path=tmp_path / "z.mp4")
        )
        sink = pipeline.build_sink()

        assert isinstance(sink, TeeSink)
        png_sink, video_sink = sink.sinks
        assert isinstance(png_sink, PngSink)
        assert isinstance(video_sink, OrderedSink)
        assert isinstance(video_sink.inner, VideoSink)

    def test_serial_video_is_direct(self, tmp_path):
        pipeline = ZoomPipeline(
            animation=AnimationSettings(mode=AnimationMode.SERIAL, video_path=tmp_path / "z.mp4")
        )
        sink = pipeline.build_sink()

        assert isinstance(sink, TeeSink)
        assert [type(s) for s in sink.sinks] == [PngSink, VideoSink]

    @pytest.mark.parametrize(
        "mode, expected",
        [(AnimationMode.SERIAL, SerialAnimation), (AnimationMode.CONCURRENT, ConcurrentAnimation)],
    )
    def test_animation_by_mode(self, mode, expected, recording_sink):
        pipeline = ZoomPipeline(animation=AnimationSettings(mode=mode, max_frames_in_flight=3))
        animation = pipeline.build_animation(None, recording_sink)

        assert isinstance(animation, expected)
        if expected is ConcurrentAnimation:
            assert animation.max_frames_in_flight == 3
