"""Video sampling: step policy, frame sources and the sampler."""

from .policy import expected_frame_count, sampling_step
from .sources import (
    FrameSource,
    OpenCVVideoSource,
    SourceInfo,
    open_video_source,
)
from .video_sampler import iter_frames, sample, sample_at, select_window

__all__ = [
    "FrameSource",
    "OpenCVVideoSource",
    "SourceInfo",
    "open_video_source",
    "sampling_step",
    "expected_frame_count",
    "iter_frames",
    "sample",
    "sample_at",
    "select_window",
]
