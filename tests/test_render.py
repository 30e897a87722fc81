"""Tests for row and frame work strategies."""

import itertools

import numpy as np
import pytest

from mandelzoom.core.config import FrameStrategy, RowStrategy
from mandelzoom.core.errors import RenderTaskFailure
from mandelzoom.render import rows as rows_module
from mandelzoom.render.frames import (
    ParallelFrameRenderer,
    SerialFrameRenderer,
    create_frame_renderer,
)
from mandelzoom.render.kernel import iterate
from mandelzoom.render.mapping import PlaneMapping
from mandelzoom.render.rows import ParallelRowRenderer, SerialRowRenderer

from conftest import make_settings

COMBINATIONS = list(itertools.product(FrameStrategy, RowStrategy))


def _reference_buffer(settings):
    """Straight per-pixel render used as ground truth."""
    mapping = PlaneMapping.from_settings(settings)
    expected = np.zeros((settings.pixel_height, settings.pixel_width, 4), dtype=np.uint8)
    for py in range(settings.pixel_height):
        for px in range(settings.pixel_width):
            count = iterate(
                mapping.px_to_cx(px),
                mapping.py_to_cy(py),
                settings.escape_radius_squared,
                settings.max_iterations,
            )
            channel = int(count / settings.max_iterations * 255)
            expected[py, px] = (channel, channel, channel, 255)
    return expected


class TestRowRenderers:
    """Tests for single-row rendering."""

    @pytest.mark.parametrize("row_cls", [SerialRowRenderer, ParallelRowRenderer])
    def test_writes_only_its_row(self, row_cls):
        settings = make_settings()
        mapping = PlaneMapping.from_settings(settings)
        buffer = np.zeros((settings.pixel_height, settings.pixel_width, 4), dtype=np.uint8)

        with row_cls() as row_renderer:
            row_renderer.render_row(mapping.left, mapping.hscale, mapping.py_to_cy(3), 3, settings, buffer)

        assert np.all(buffer[3, :, 3] == 255)
        untouched = np.delete(buffer, 3, axis=0)
        assert not untouched.any()

    def test_parallel_row_matches_serial(self):
        settings = make_settings(pixel_width=40)
        mapping = PlaneMapping.from_settings(settings)
        y = mapping.py_to_cy(4)
        serial = np.zeros((settings.pixel_height, settings.pixel_width, 4), dtype=np.uint8)
        parallel = serial.copy()

        SerialRowRenderer().render_row(mapping.left, mapping.hscale, y, 4, settings, serial)
        with ParallelRowRenderer(max_workers=4) as row_renderer:
            row_renderer.render_row(mapping.left, mapping.hscale, y, 4, settings, parallel)

        np.testing.assert_array_equal(serial, parallel)


class TestFrameRenderers:
    """Tests for whole-frame rendering."""

    def test_matches_reference(self):
        settings = make_settings(pixel_width=24, pixel_height=16, max_iterations=40)
        with SerialFrameRenderer() as renderer:
            buffer = renderer.render_frame(settings)

        np.testing.assert_array_equal(buffer, _reference_buffer(settings))

    def test_buffer_shape_and_alpha(self, small_settings):
        with ParallelFrameRenderer(max_workers=3) as renderer:
            buffer = renderer.render_frame(small_settings)

        assert buffer.shape == (8, 12, 4)
        assert buffer.dtype == np.uint8
        assert np.all(buffer[:, :, 3] == 255)
        # Grayscale: R == G == B
        assert np.array_equal(buffer[:, :, 0], buffer[:, :, 1])
        assert np.array_equal(buffer[:, :, 1], buffer[:, :, 2])

    @pytest.mark.parametrize(
        "settings",
        [
            make_settings(),
            make_settings(pixel_width=33, pixel_height=17, center_x=-0.746402, center_y=0.1101995, width=0.01, max_iterations=80),
            make_settings(pixel_width=7, pixel_height=23, center_x=0.3, center_y=-0.5, width=1.7, escape_radius_squared=10000.0),
        ],
    )
    def test_all_combinations_identical(self, settings):
        """Every frame/row pairing yields the same bytes."""
        buffers = []
        for frame_strategy, row_strategy in COMBINATIONS:
            with create_frame_renderer(frame_strategy, row_strategy, max_workers=4) as renderer:
                buffers.append(renderer.render_frame(settings))

        for buffer in buffers[1:]:
            np.testing.assert_array_equal(buffer, buffers[0])

    @pytest.mark.parametrize("frame_strategy, row_strategy", COMBINATIONS)
    def test_single_pixel_frame(self, frame_strategy, row_strategy):
        settings = make_settings(pixel_width=1, pixel_height=1, center_x=0.0, center_y=0.0)
        with create_frame_renderer(frame_strategy, row_strategy) as renderer:
            buffer = renderer.render_frame(settings)

        assert buffer.shape == (1, 1, 4)
        # The lone pixel maps to the top-left corner (-1.5, 1.5), outside the bound
        assert tuple(buffer[0, 0]) == (0, 0, 0, 255)

    @pytest.mark.parametrize("frame_strategy, row_strategy", COMBINATIONS)
    def test_single_iteration_is_binary(self, frame_strategy, row_strategy):
        """With max_iterations=1 every pixel is either black or white."""
        settings = make_settings(pixel_width=20, pixel_height=10, width=8.0, max_iterations=1)
        with create_frame_renderer(frame_strategy, row_strategy) as renderer:
            buffer = renderer.render_frame(settings)

        assert set(np.unique(buffer[:, :, 0])) <= {0, 255}
        assert {0, 255} <= set(np.unique(buffer[:, :, 0]))

    def test_renderer_reusable_across_frames(self):
        with ParallelFrameRenderer(max_workers=2) as renderer:
            first = renderer.render_frame(make_settings(width=3.0))
            second = renderer.render_frame(make_settings(width=0.5))
            again = renderer.render_frame(make_settings(width=3.0))

        assert not np.array_equal(first, second)
        np.testing.assert_array_equal(first, again)


class TestCreateFrameRenderer:
    """Tests for strategy selection."""

    def test_default_is_parallel_rows(self):
        renderer = create_frame_renderer()
        assert isinstance(renderer, ParallelFrameRenderer)
        assert isinstance(renderer.row_renderer, SerialRowRenderer)
        assert renderer.description == "parallel frame x serial row"
        renderer.close()

    def test_accepts_strings(self):
        renderer = create_frame_renderer("serial", "parallel", max_workers=2)
        assert isinstance(renderer, SerialFrameRenderer)
        assert isinstance(renderer.row_renderer, ParallelRowRenderer)
        assert renderer.row_renderer.max_workers == 2
        renderer.close()

    def test_rejects_unknown_strategy(self):
        with pytest.raises(ValueError):
            create_frame_renderer("tiled", "serial")


class TestRenderTaskFailure:
    """Tests for failure propagation out of worker tasks."""

    @pytest.mark.parametrize("frame_strategy, row_strategy", COMBINATIONS)
    def test_failure_surfaces_at_join(self, monkeypatch, frame_strategy, row_strategy):
        real_render_pixel = rows_module.render_pixel

        def faulty_render_pixel(x, y, settings):
            if x > 0.5:
                raise ArithmeticError("kernel fault")
            return real_render_pixel(x, y, settings)

        monkeypatch.setattr(rows_module, "render_pixel", faulty_render_pixel)
        settings = make_settings(output_id="broken.png")

        with create_frame_renderer(frame_strategy, row_strategy, max_workers=2) as renderer:
            with pytest.raises(RenderTaskFailure) as excinfo:
                renderer.render_frame(settings)

        assert isinstance(excinfo.value.__cause__, ArithmeticError)
        assert excinfo.value.output_id == "broken.png"
        assert "broken.png" in str(excinfo.value)
