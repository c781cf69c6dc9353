"""Functional test configuration.

Functional tests use synthetic rasters, fake frame sources and fake video
encoders. No real video codecs.
Target: <30s total, <1s each.
"""

import threading

import numpy as np
import pytest


class RecordingEncoder:
    """Video encoder double that collects fed frames as byte chunks."""

    mime_type = "video/webm"

    def __init__(self, realtime: bool = False, block_on_feed: threading.Event | None = None):
        self.realtime = realtime
        self.block_on_feed = block_on_feed
        self.started_with: tuple[int, int, float] | None = None
        self.fed: list[np.ndarray] = []
        self.chunks: list[bytes] = []
        self.stopped = False
        self.aborted = False

    def start(self, width: int, height: int, fps: float) -> None:
        self.started_with = (width, height, fps)

    def feed(self, raster: np.ndarray) -> None:
        if self.block_on_feed is not None:
            self.block_on_feed.wait(timeout=5)
        self.fed.append(raster)
        self.chunks.append(bytes([len(self.fed) % 256]))

    def stop(self) -> bytes:
        self.stopped = True
        return b"".join(self.chunks)

    def abort(self) -> None:
        self.aborted = True


@pytest.fixture
def recording_encoder():
    """Factory for RecordingEncoder instances."""
    return RecordingEncoder
