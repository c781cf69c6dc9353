"""WebM video export.

Frames are redrawn onto a surface at a fixed rate and fed to a
``VideoEncoder``. The encoder is a capability interface so the draw loop does
not depend on how motion is captured: ``OpenCVWebMEncoder`` writes one output
frame per fed frame, while a realtime recorder (one that samples the surface
on its own clock) gets the inter-frame waits and the trailing two-interval
hold before it is stopped.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol, Sequence

import cv2
import numpy as np

from spritelab.config import LOAD_WORKERS, TRAILING_FRAME_INTERVALS, VIDEO_TIMEOUT_MARGIN_SECONDS
from spritelab.errors import (
    EmptyInputError,
    EncoderFaultError,
    RecordingTimeoutError,
    SpriteLabError,
)
from spritelab.imaging import DrawingSurface, ImageSource, load_images

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_FPS = 24


@dataclass(frozen=True)
class VideoCodec:
    """A codec choice and the FourCC OpenCV knows it by."""

    name: str
    fourcc: str

    @property
    def mime_type(self) -> str:
        if not self.fourcc:
            return "video/webm"
        return f"video/webm;codecs={self.name}"

    def fourcc_code(self) -> int:
        if not self.fourcc:
            return 0
        return cv2.VideoWriter_fourcc(*self.fourcc)


# Most efficient first
VIDEO_CODEC_PREFERENCES = (
    VideoCodec("vp9", "VP90"),
    VideoCodec("vp8", "VP80"),
)
# Let the container pick its own default codec
WEBM_DEFAULT_CODEC = VideoCodec("webm", "")


def select_codec(
    preferences: Sequence[VideoCodec],
    probe: Callable[[VideoCodec], bool],
) -> VideoCodec | None:
    """First codec in ``preferences`` that ``probe`` reports as supported."""
    for codec in preferences:
        if probe(codec):
            return codec
        logger.debug(f"Codec {codec.name} not supported")
    return None


class VideoEncoder(Protocol):
    """Capture session that turns fed frames into a container byte stream."""

    mime_type: str
    # True when the encoder samples the surface on its own clock
    realtime: bool

    def start(self, width: int, height: int, fps: float) -> None: ...

    def feed(self, raster: np.ndarray) -> None: ...

    def stop(self) -> bytes: ...

    def abort(self) -> None: ...


class OpenCVWebMEncoder:
    """WebM encoder backed by ``cv2.VideoWriter`` and a temporary file."""

    realtime = False

    def __init__(self, preferences: Sequence[VideoCodec] = VIDEO_CODEC_PREFERENCES):
        self.preferences = tuple(preferences)
        self.codec: VideoCodec | None = None
        self._writer: cv2.VideoWriter | None = None
        self._path: Path | None = None
        self._size: tuple[int, int] = (0, 0)
        self._fps = 0.0
        self._lock = threading.Lock()

    @property
    def mime_type(self) -> str:
        return self.codec.mime_type if self.codec else "video/webm"

    def _try_open(self, codec: VideoCodec) -> bool:
        try:
            writer = cv2.VideoWriter(
                str(self._path), codec.fourcc_code(), self._fps, self._size
            )
        except cv2.error as e:
            logger.debug(f"VideoWriter rejected {codec.name}: {e}")
            return False
        if not writer.isOpened():
            writer.release()
            return False
        self._writer = writer
        return True

    def start(self, width: int, height: int, fps: float) -> None:
        if self._writer is not None:
            raise EncoderFaultError("Encoder session already started")
        fd, name = tempfile.mkstemp(prefix="spritelab_", suffix=".webm")
        os.close(fd)
        self._path = Path(name)
        self._size = (width, height)
        self._fps = float(fps)

        with self._lock:
            codec = select_codec((*self.preferences, WEBM_DEFAULT_CODEC), self._try_open)
        if codec is None:
            self._cleanup()
            raise EncoderFaultError("No supported WebM codec available")
        self.codec = codec
        logger.info(f"Using codec: {codec.mime_type}")

    def feed(self, raster: np.ndarray) -> None:
        with self._lock:
            if self._writer is None:
                raise EncoderFaultError("Encoder session is not running")
            try:
                self._writer.write(cv2.cvtColor(raster, cv2.COLOR_RGBA2BGR))
            except cv2.error as e:
                raise EncoderFaultError(f"VideoWriter failed to encode frame: {e}") from e

    def stop(self) -> bytes:
        with self._lock:
            if self._writer is None:
                raise EncoderFaultError("Encoder session is not running")
            self._writer.release()
            self._writer = None
            try:
                data = self._path.read_bytes()
            except OSError as e:
                raise EncoderFaultError(f"Could not read encoded video: {e}") from e
            finally:
                self._cleanup()
        if not data:
            raise EncoderFaultError("Encoder produced no data")
        return data

    def abort(self) -> None:
        with self._lock:
            if self._writer is not None:
                self._writer.release()
                self._writer = None
            self._cleanup()

    def _cleanup(self) -> None:
        if self._path is not None:
            try:
                self._path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to remove temporary video {self._path}: {e}")
            self._path = None


def recording_budget(
    frame_count: int,
    fps: float,
    margin: float = VIDEO_TIMEOUT_MARGIN_SECONDS,
) -> float:
    """Seconds an encode may take before it is considered stuck."""
    return frame_count / fps + margin


def encode_video(
    frames: Sequence[ImageSource],
    fps: float = DEFAULT_VIDEO_FPS,
    encoder: VideoEncoder | None = None,
    timeout: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
    max_workers: int = LOAD_WORKERS,
) -> bytes:
    """Encode frames as a video clip.

    Args:
        frames: Frames to encode, in order.
        fps: Target frame rate.
        encoder: Capture session to use; an ``OpenCVWebMEncoder`` by default.
        timeout: Seconds allowed for the draw loop; defaults to the frame
            duration plus a fixed margin.
        sleep: Wait function used for realtime encoders.
        max_workers: Thread pool size for loading frames.

    Returns:
        Encoded container bytes.

    Raises:
        EmptyInputError: If ``frames`` is empty.
        DecodeError: If any frame cannot be loaded.
        RecordingTimeoutError: If encoding does not finish within the budget.
        EncoderFaultError: If the encoder fails.
    """
    if len(frames) == 0:
        raise EmptyInputError("No frames to export")
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")

    logger.info(f"Generating video for {len(frames)} frames at {fps} fps")

    images = load_images(frames, max_workers=max_workers)
    height, width = images[0].shape[:2]
    surface = DrawingSurface(width, height, smoothing=True)

    if encoder is None:
        encoder = OpenCVWebMEncoder()
    budget = timeout if timeout is not None else recording_budget(len(images), fps)
    interval = 1.0 / fps
    stopped = threading.Event()

    try:
        encoder.start(width, height, fps)
    except SpriteLabError:
        raise
    except Exception as e:
        raise EncoderFaultError(f"Could not start video encoder: {e}") from e

    def draw_loop() -> bytes | None:
        for image in images:
            if stopped.is_set():
                return None
            surface.clear()
            surface.draw(image, 0, 0, width, height)
            encoder.feed(surface.snapshot())
            if encoder.realtime:
                sleep(interval)
        # Hold the last frame so a realtime recorder captures it before stop
        if encoder.realtime:
            sleep(interval * TRAILING_FRAME_INTERVALS)
        if stopped.is_set():
            return None
        return encoder.stop()

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="spritelab-video")
    try:
        future = executor.submit(draw_loop)
        try:
            data = future.result(timeout=budget)
        except FutureTimeoutError:
            stopped.set()
            _abort_quietly(encoder)
            raise RecordingTimeoutError(
                f"Video recording did not finish within {budget:.1f}s"
            ) from None
        except SpriteLabError:
            _abort_quietly(encoder)
            raise
        except Exception as e:
            _abort_quietly(encoder)
            raise EncoderFaultError(f"Video encoder failed: {e}") from e
    finally:
        executor.shutdown(wait=False)

    if data is None:
        raise EncoderFaultError("Video recording stopped before completion")
    logger.info(f"Video generated: {len(data)} bytes ({encoder.mime_type})")
    return data


def _abort_quietly(encoder: VideoEncoder) -> None:
    try:
        encoder.abort()
    except Exception as e:
        logger.warning(f"Encoder abort failed: {e}")
