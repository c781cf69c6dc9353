"""Video frame sources.

A frame source exposes native metadata and a single seek-and-capture
operation. ``OpenCVVideoSource`` is the production implementation; tests use
in-memory fakes that satisfy the same ``FrameSource`` protocol.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Protocol, Union

import cv2
import numpy as np

from spritelab.errors import FrameCaptureError, SourceUnreadableError

logger = logging.getLogger(__name__)

VideoInput = Union[str, Path, bytes, bytearray, IO[bytes]]

# How many frames to step back when the container overstates its length
MAX_SEEK_BACKOFF = 8


@dataclass(frozen=True)
class SourceInfo:
    """Native properties of an opened video."""

    duration: float
    width: int
    height: int
    fps: float
    frame_count: int


class FrameSource(Protocol):
    """Seekable video with one decode position at a time."""

    @property
    def info(self) -> SourceInfo: ...

    def capture(self, timestamp: float, scale: float = 1.0) -> np.ndarray:
        """Seek to ``timestamp`` and return the displayed frame as RGBA."""
        ...


def scaled_size(width: int, height: int, scale: float) -> tuple[int, int]:
    return max(1, int(width * scale)), max(1, int(height * scale))


class OpenCVVideoSource:
    """Frame source backed by ``cv2.VideoCapture``.

    Seeks are serialized with a lock because the decoder has a single
    position; concurrent seeks on the same capture are undefined.
    """

    def __init__(self, path: str | Path, cleanup_path: Path | None = None):
        """Open a video file.

        Args:
            path: Video file path.
            cleanup_path: Temporary file to delete on release.

        Raises:
            SourceUnreadableError: If the container cannot be opened or its
                duration/dimensions cannot be determined.
        """
        self.path = Path(path)
        self._cleanup_path = cleanup_path
        self._lock = threading.Lock()
        self._cap = cv2.VideoCapture(str(self.path))
        if not self._cap.isOpened():
            self.release()
            raise SourceUnreadableError(f"Could not open video: {self.path}")
        try:
            self._info = self._probe()
        except SourceUnreadableError:
            self.release()
            raise

    def _probe(self) -> SourceInfo:
        width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        fps = float(self._cap.get(cv2.CAP_PROP_FPS))
        frame_count = int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT))

        if width <= 0 or height <= 0:
            raise SourceUnreadableError(
                f"Could not determine dimensions of {self.path} ({width}x{height})"
            )
        if fps <= 0 or frame_count < 0:
            raise SourceUnreadableError(
                f"Could not determine duration of {self.path} "
                f"(fps={fps}, frames={frame_count})"
            )

        duration = frame_count / fps
        logger.debug(
            f"Opened {self.path.name}: {width}x{height}, {fps:.2f} fps, "
            f"{frame_count} frames, {duration:.2f}s"
        )
        return SourceInfo(
            duration=duration,
            width=width,
            height=height,
            fps=fps,
            frame_count=frame_count,
        )

    @property
    def info(self) -> SourceInfo:
        return self._info

    def _read_at(self, frame_index: int) -> np.ndarray | None:
        self._cap.set(cv2.CAP_PROP_POS_FRAMES, frame_index)
        ok, frame = self._cap.read()
        return frame if ok and frame is not None else None

    def capture(self, timestamp: float, scale: float = 1.0) -> np.ndarray:
        """Seek to ``timestamp`` and return that frame as an RGBA raster.

        Timestamps past the end are clamped to the last decodable frame.

        Raises:
            FrameCaptureError: If no frame can be decoded near the timestamp.
        """
        info = self._info
        last_index = max(info.frame_count - 1, 0)
        target = min(max(int(round(timestamp * info.fps)), 0), last_index)

        with self._lock:
            try:
                frame = None
                index = target
                while index >= max(target - MAX_SEEK_BACKOFF, 0):
                    frame = self._read_at(index)
                    if frame is not None:
                        break
                    index -= 1
            except cv2.error as e:
                raise FrameCaptureError(
                    f"Decoder fault seeking to {timestamp:.3f}s in {self.path}: {e}"
                ) from e

        if frame is None:
            raise FrameCaptureError(
                f"No decodable frame at {timestamp:.3f}s in {self.path}"
            )
        if index != target:
            logger.debug(f"Clamped seek {target} -> {index} in {self.path.name}")

        try:
            rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
            if scale != 1.0:
                size = scaled_size(rgba.shape[1], rgba.shape[0], scale)
                rgba = cv2.resize(rgba, size, interpolation=cv2.INTER_AREA)
        except cv2.error as e:
            raise FrameCaptureError(f"Could not convert frame at {timestamp:.3f}s: {e}") from e
        return rgba

    def release(self) -> None:
        cap = getattr(self, "_cap", None)
        if cap is not None:
            cap.release()
        if self._cleanup_path is not None:
            try:
                self._cleanup_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to remove temporary video {self._cleanup_path}: {e}")
            self._cleanup_path = None

    def __enter__(self) -> OpenCVVideoSource:
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


def open_video_source(source: VideoInput, suffix: str = ".mp4") -> OpenCVVideoSource:
    """Open a path, raw bytes or a binary file-like handle as a frame source.

    Non-path inputs are spooled to a temporary file, which is removed when
    the source is released.
    """
    if isinstance(source, (str, Path)):
        if not Path(source).exists():
            raise SourceUnreadableError(f"Video not found: {source}")
        return OpenCVVideoSource(source)

    name = getattr(source, "name", None)
    if isinstance(name, str) and Path(name).suffix:
        suffix = Path(name).suffix

    fd, tmp_name = tempfile.mkstemp(prefix="spritelab_", suffix=suffix)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as out:
            if isinstance(source, (bytes, bytearray)):
                out.write(source)
            else:
                shutil.copyfileobj(source, out)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise SourceUnreadableError(f"Could not read video data: {e}") from e

    return OpenCVVideoSource(tmp_path, cleanup_path=tmp_path)
