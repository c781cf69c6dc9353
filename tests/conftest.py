"""Root test configuration.

Provides shared fixtures used across multiple test layers.
Layer-specific fixtures live in each layer's own conftest.py.
"""

import numpy as np
import pytest

from spritelab.errors import FrameCaptureError
from spritelab.sampling.sources import SourceInfo, scaled_size
from spritelab.schemas import RawFrame


def pytest_collection_modifyitems(items):
    """Enforce serial execution for tests marked with @pytest.mark.serial.

    Maps the custom ``serial`` marker to ``xdist_group("serial")`` so that
    pytest-xdist schedules all serial-marked tests on the same worker,
    preventing CPU-contention issues for tight timing assertions.
    """
    for item in items:
        if item.get_closest_marker("serial"):
            item.add_marker(pytest.mark.xdist_group("serial"))


def solid_raster(
    width: int,
    height: int,
    color: tuple[int, int, int] = (128, 64, 200),
    alpha: int = 255,
) -> np.ndarray:
    """Create a uniform RGBA raster."""
    arr = np.empty((height, width, 4), dtype=np.uint8)
    arr[..., :3] = color
    arr[..., 3] = alpha
    return arr


def distinct_raster(index: int, width: int = 16, height: int = 12) -> np.ndarray:
    """Raster whose colour encodes ``index`` so frames never repeat."""
    return solid_raster(width, height, ((index * 37) % 256, (index * 91) % 256, 255 - index % 256))


class FakeFrameSource:
    """In-memory frame source with a configurable failure point.

    Captured frames are solid rasters whose red channel encodes the
    timestamp in 1/24 s units, so tests can tell captures apart.
    """

    def __init__(
        self,
        duration: float = 2.0,
        width: int = 640,
        height: int = 480,
        fps: float = 24.0,
        fail_at_call: int | None = None,
    ):
        self._info = SourceInfo(
            duration=duration,
            width=width,
            height=height,
            fps=fps,
            frame_count=int(round(duration * fps)),
        )
        self.fail_at_call = fail_at_call
        self.calls: list[tuple[float, float]] = []

    @property
    def info(self) -> SourceInfo:
        return self._info

    def capture(self, timestamp: float, scale: float = 1.0) -> np.ndarray:
        if self.fail_at_call is not None and len(self.calls) == self.fail_at_call:
            raise FrameCaptureError(f"Simulated decoder fault at {timestamp:.3f}s")
        self.calls.append((timestamp, scale))
        w, h = scaled_size(self._info.width, self._info.height, scale)
        return solid_raster(w, h, (int(round(timestamp * 24)) % 256, 32, 64))


@pytest.fixture
def make_raster():
    """Factory for uniform RGBA rasters."""
    return solid_raster


@pytest.fixture
def make_distinct_raster():
    """Factory for rasters that differ per index."""
    return distinct_raster


@pytest.fixture
def make_source():
    """Factory for FakeFrameSource instances."""
    return FakeFrameSource


@pytest.fixture
def raw_frames():
    """Factory for sequences of distinct RawFrames."""

    def _make(count: int, width: int = 16, height: int = 12) -> list[RawFrame]:
        return [
            RawFrame(
                id=f"frame-{i}",
                image_data=distinct_raster(i, width, height),
                timestamp_seconds=i / 24,
                sequence_index=i,
            )
            for i in range(count)
        ]

    return _make
