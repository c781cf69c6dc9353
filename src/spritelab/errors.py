"""Exception taxonomy for the sampling and export pipeline.

Every failure the pipeline surfaces to its caller is a subclass of
``SpriteLabError``. Nothing is retried internally; the caller decides whether
to re-trigger an operation.
"""


class SpriteLabError(Exception):
    """Base class for all pipeline failures."""


class SourceUnreadableError(SpriteLabError):
    """Video could not be opened or its duration/dimensions are unknown."""


class FrameCaptureError(SpriteLabError):
    """A seek-and-capture cycle failed while sampling a video."""


class EmptyInputError(SpriteLabError):
    """An export was requested with no frames."""


class DecodeError(SpriteLabError):
    """A frame image could not be decoded during export."""


class SurfaceAllocationError(SpriteLabError):
    """A destination raster could not be allocated."""


class RecordingTimeoutError(SpriteLabError):
    """Video encoding did not complete within its time budget."""


class EncoderFaultError(SpriteLabError):
    """The underlying video encoder reported an error."""


class OperationCancelledError(SpriteLabError):
    """The caller cancelled a sampling pass."""


__all__ = [
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
