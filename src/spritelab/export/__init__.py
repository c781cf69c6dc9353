"""Export entry points for sprite sheets, GIFs and WebM clips.

The ``export_*`` helpers wrap the raw encoders and return an
``ExportArtifact`` carrying the bytes, MIME type and suggested filename.
"""

from __future__ import annotations

from typing import Sequence

from spritelab.config import SHEET_COLUMNS
from spritelab.export.gif import DEFAULT_GIF_FPS, encode_gif, frame_delay_ms
from spritelab.export.sprite_sheet import (
    SheetLayout,
    compute_sheet_scale,
    pack_sprite_sheet,
    plan_sprite_sheet,
)
from spritelab.export.video import (
    DEFAULT_VIDEO_FPS,
    VIDEO_CODEC_PREFERENCES,
    OpenCVWebMEncoder,
    VideoCodec,
    VideoEncoder,
    encode_video,
    recording_budget,
    select_codec,
)
from spritelab.imaging import ImageSource
from spritelab.schemas import ExportArtifact, ExportKind

__all__ = [
    "SheetLayout",
    "compute_sheet_scale",
    "plan_sprite_sheet",
    "pack_sprite_sheet",
    "frame_delay_ms",
    "encode_gif",
    "VideoCodec",
    "VideoEncoder",
    "OpenCVWebMEncoder",
    "VIDEO_CODEC_PREFERENCES",
    "select_codec",
    "recording_budget",
    "encode_video",
    "export_sprite_sheet",
    "export_gif",
    "export_video",
]


def export_sprite_sheet(
    frames: Sequence[ImageSource], columns: int = SHEET_COLUMNS, **kwargs
) -> ExportArtifact:
    return ExportArtifact(data=pack_sprite_sheet(frames, columns, **kwargs), kind=ExportKind.PNG)


def export_gif(
    frames: Sequence[ImageSource], fps: float = DEFAULT_GIF_FPS, **kwargs
) -> ExportArtifact:
    return ExportArtifact(data=encode_gif(frames, fps, **kwargs), kind=ExportKind.GIF)


def export_video(
    frames: Sequence[ImageSource], fps: float = DEFAULT_VIDEO_FPS, **kwargs
) -> ExportArtifact:
    return ExportArtifact(data=encode_video(frames, fps, **kwargs), kind=ExportKind.WEBM)
