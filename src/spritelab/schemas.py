"""Pydantic schemas for sampled frames, video metadata and export artifacts.

Rasters are ``(H, W, 4)`` uint8 RGBA numpy arrays throughout the pipeline.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from spritelab.config import WINDOW_SIZE


class ExportKind(str, Enum):
    """Supported export targets."""
    PNG = "png"
    GIF = "gif"
    WEBM = "webm"


_MIME_TYPES = {
    ExportKind.PNG: "image/png",
    ExportKind.GIF: "image/gif",
    ExportKind.WEBM: "video/webm",
}

_FILENAMES = {
    ExportKind.PNG: "sprite-sheet.png",
    ExportKind.GIF: "animation.gif",
    ExportKind.WEBM: "animation.webm",
}


class RawFrame(BaseModel):
    """One sampled video frame with its timestamp and sequence index."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str = Field(..., min_length=1, description="Stable frame identifier")
    image_data: np.ndarray = Field(..., description="RGBA raster (H, W, 4) uint8")
    timestamp_seconds: float = Field(..., ge=0.0, description="Capture time in the source video")
    sequence_index: int = Field(..., ge=0, description="Position in the sampled sequence")

    @field_validator("image_data")
    @classmethod
    def validate_raster(cls, v: np.ndarray) -> np.ndarray:
        if v.ndim != 3 or v.shape[2] != 4 or v.dtype != np.uint8:
            raise ValueError(
                f"image_data must be an (H, W, 4) uint8 array, got {v.shape} {v.dtype}"
            )
        if v.flags.writeable:
            v = v.copy()
            v.setflags(write=False)
        return v

    @property
    def width(self) -> int:
        return int(self.image_data.shape[1])

    @property
    def height(self) -> int:
        return int(self.image_data.shape[0])


class VideoMetadata(BaseModel):
    """Properties of a source video, computed once per sampling pass."""

    model_config = ConfigDict(frozen=True)

    duration_seconds: float = Field(..., ge=0.0, description="Video duration")
    width: int = Field(..., gt=0, description="Native frame width in pixels")
    height: int = Field(..., gt=0, description="Native frame height in pixels")
    approx_frame_count: int = Field(..., ge=0, description="Frames produced by sampling")


class SamplingResult(BaseModel):
    """Output of a full sampling pass."""

    model_config = ConfigDict(frozen=True)

    frames: list[RawFrame] = Field(default_factory=list)
    metadata: VideoMetadata


class FrameWindow(BaseModel):
    """Contiguous slice of a frame sequence.

    Out-of-range windows are clamped rather than rejected: a negative start
    becomes 0 and a window running past the end is shortened (possibly to
    nothing).
    """

    model_config = ConfigDict(frozen=True)

    start_index: int = 0
    length: int = Field(WINDOW_SIZE, ge=0)

    def bounds(self, total: int) -> tuple[int, int]:
        """Clamped ``(start, stop)`` for a sequence of ``total`` frames."""
        start = min(max(self.start_index, 0), total)
        stop = min(start + self.length, total)
        return start, stop

    def apply(self, frames: Sequence[RawFrame]) -> list[RawFrame]:
        start, stop = self.bounds(len(frames))
        return list(frames[start:stop])


class ExportArtifact(BaseModel):
    """Encoded export handed back to the caller for saving."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(..., description="Encoded file contents")
    kind: ExportKind

    @property
    def byte_size(self) -> int:
        return len(self.data)

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self.kind]

    @property
    def filename(self) -> str:
        """Suggested download filename."""
        return _FILENAMES[self.kind]
