"""Timestamp-based video sampling.

Turns a frame source into a bounded, ordered sequence of ``RawFrame``
thumbnails, and re-extracts chosen timestamps at full resolution for export.
Every seek-and-capture runs strictly in sequence on the source.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterator, Sequence

import numpy as np

from spritelab.config import MAX_FRAMES_TO_EXTRACT, THUMBNAIL_SCALE
from spritelab.errors import OperationCancelledError, SourceUnreadableError
from spritelab.sampling.policy import sample_timestamp, sampling_step
from spritelab.sampling.sources import FrameSource, SourceInfo
from spritelab.schemas import FrameWindow, RawFrame, SamplingResult, VideoMetadata

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


def _checked_info(source: FrameSource) -> SourceInfo:
    info = source.info
    if info.width <= 0 or info.height <= 0:
        raise SourceUnreadableError(f"Invalid video dimensions {info.width}x{info.height}")
    if info.duration < 0 or info.duration != info.duration:
        raise SourceUnreadableError(f"Invalid video duration {info.duration}")
    return info


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError("Sampling cancelled")


def iter_frames(
    source: FrameSource,
    max_frames: int = MAX_FRAMES_TO_EXTRACT,
    thumbnail_scale: float = THUMBNAIL_SCALE,
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> Iterator[RawFrame]:
    """Lazily sample ``source`` into thumbnail frames.

    Each call starts a fresh pass from t = 0. The loop stops before seeking
    once the timestamp reaches the duration or ``max_frames`` frames have
    been produced, so a zero-length video yields nothing.

    Args:
        source: Frame source to sample.
        max_frames: Hard cap on produced frames.
        thumbnail_scale: Downscale factor applied to each capture.
        on_progress: Called with the fraction of the duration covered.
        cancel_event: When set, the pass raises OperationCancelledError
            before its next seek.

    Yields:
        RawFrame thumbnails in timestamp order.

    Raises:
        SourceUnreadableError: If metadata is unusable.
        FrameCaptureError: If a seek-and-capture fails.
    """
    info = _checked_info(source)
    duration = info.duration
    step = sampling_step(duration)
    logger.debug(f"Sampling {duration:.2f}s video every {float(step):.4f}s (cap {max_frames})")

    index = 0
    while True:
        current = sample_timestamp(index, step)
        if current >= duration or index >= max_frames:
            return
        _check_cancelled(cancel_event)

        timestamp = float(current)
        raster = source.capture(timestamp, thumbnail_scale)
        yield RawFrame(
            id=f"frame-{index}",
            image_data=raster,
            timestamp_seconds=timestamp,
            sequence_index=index,
        )

        if on_progress is not None:
            on_progress(min(timestamp / duration, 1.0))
        index += 1


def sample(
    source: FrameSource,
    max_frames: int = MAX_FRAMES_TO_EXTRACT,
    thumbnail_scale: float = THUMBNAIL_SCALE,
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> SamplingResult:
    """Sample a whole video into thumbnail frames plus metadata.

    A capture failure aborts the operation; no partial sequence is returned.
    """
    info = _checked_info(source)
    frames = list(
        iter_frames(
            source,
            max_frames=max_frames,
            thumbnail_scale=thumbnail_scale,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )
    )
    metadata = VideoMetadata(
        duration_seconds=info.duration,
        width=info.width,
        height=info.height,
        approx_frame_count=len(frames),
    )
    logger.info(
        f"Sampled {len(frames)} frames from {info.duration:.2f}s "
        f"{info.width}x{info.height} video"
    )
    return SamplingResult(frames=frames, metadata=metadata)


def sample_at(
    source: FrameSource,
    timestamps: Sequence[float],
    cancel_event: threading.Event | None = None,
) -> list[np.ndarray]:
    """Capture full-resolution frames at the given timestamps, in order.

    Intended for the window being exported, so memory stays bounded by the
    window size rather than the video length.
    """
    _checked_info(source)
    rasters = []
    for timestamp in timestamps:
        _check_cancelled(cancel_event)
        rasters.append(source.capture(float(timestamp), 1.0))
    logger.info(f"Re-extracted {len(rasters)} frames at full resolution")
    return rasters


def select_window(
    frames: Sequence[RawFrame],
    start_index: int,
    length: int,
) -> list[RawFrame]:
    """Clamped contiguous slice of ``frames``."""
    return FrameWindow(start_index=start_index, length=max(length, 0)).apply(frames)
