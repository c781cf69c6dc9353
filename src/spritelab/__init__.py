"""SpriteLab: sample video clips into frame windows and export them.

Exports a selected window of sampled frames as a PNG sprite sheet, an
animated GIF or a WebM clip.
"""

from spritelab.background import isolate_background
from spritelab.config import PipelineConfig
from spritelab.errors import (
    DecodeError,
    EmptyInputError,
    EncoderFaultError,
    FrameCaptureError,
    OperationCancelledError,
    RecordingTimeoutError,
    SourceUnreadableError,
    SpriteLabError,
    SurfaceAllocationError,
)
from spritelab.export import (
    encode_gif,
    encode_video,
    export_gif,
    export_sprite_sheet,
    export_video,
    pack_sprite_sheet,
)
from spritelab.sampling import (
    open_video_source,
    sample,
    sample_at,
    sampling_step,
    select_window,
)
from spritelab.schemas import (
    ExportArtifact,
    ExportKind,
    FrameWindow,
    RawFrame,
    SamplingResult,
    VideoMetadata,
)
from spritelab.session import SpriteSession

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Schemas
    "RawFrame",
    "VideoMetadata",
    "FrameWindow",
    "ExportArtifact",
    "ExportKind",
    "SamplingResult",
    "PipelineConfig",
    # Sampling
    "open_video_source",
    "sampling_step",
    "sample",
    "sample_at",
    "select_window",
    # Export
    "pack_sprite_sheet",
    "encode_gif",
    "encode_video",
    "export_sprite_sheet",
    "export_gif",
    "export_video",
    "isolate_background",
    # Session
    "SpriteSession",
    # Errors
    "SpriteLabError",
    "SourceUnreadableError",
    "FrameCaptureError",
    "EmptyInputError",
    "DecodeError",
    "SurfaceAllocationError",
    "RecordingTimeoutError",
    "EncoderFaultError",
    "OperationCancelledError",
]
