"""Producer/consumer pipeline turning frame settings into image files.

Architecture:
┌─────────────────┐     ┌──────────────────┐     ┌────────────────────┐
│  ZoomPipeline   │────▶│  frame_queue     │────▶│ AnimationRenderer  │
│  (zoom_frames)  │     │  (FrameSettings) │     │ (serial/concurrent)│
└─────────────────┘     └──────────────────┘     └────────────────────┘
                                                          │
                                                          ▼
                                                 ┌──────────────────┐
                                                 │  FrameRenderer   │
                                                 │  (rows / pixels) │
                                                 └──────────────────┘
                                                          │
                                                          ▼
                                                 ┌─────────────────┐
                                                 │  FrameSink      │
                                                 │  (PNG / ffmpeg) │
                                                 └─────────────────┘
"""

from mandelzoom.pipeline.animation import (
    AnimationReport,
    ConcurrentAnimation,
    SerialAnimation,
    queue_frames,
)
from mandelzoom.pipeline.data import END_OF_STREAM, FrameSettings, RenderedFrame
from mandelzoom.pipeline.pipeline import ZoomPipeline, run_zoom, zoom_frames
from mandelzoom.pipeline.sink import OrderedSink, PngSink, TeeSink, VideoSink

__all__ = [
    "END_OF_STREAM",
    "AnimationReport",
    "ConcurrentAnimation",
    "FrameSettings",
    "OrderedSink",
    "PngSink",
    "RenderedFrame",
    "SerialAnimation",
    "TeeSink",
    "VideoSink",
    "ZoomPipeline",
    "queue_frames",
    "run_zoom",
    "zoom_frames",
]
