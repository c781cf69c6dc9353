"""Pipeline configuration.

Named constants used across the sampler and exporters, plus a validated
``PipelineConfig`` that bundles them for a session. Values can be overridden
through ``SPRITELAB_*`` environment variables via ``PipelineConfig.from_env``.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field

# Sampling
MAX_FRAMES_TO_EXTRACT = 300
THUMBNAIL_SCALE = 0.25
SHORT_CLIP_SECONDS = 5.0
LONG_CLIP_SECONDS = 30.0

# Selection / playback
WINDOW_SIZE = 25
DEFAULT_FPS = 12
MIN_FPS = 1
MAX_FPS = 60

# Sprite sheet
SHEET_COLUMNS = 5
MAX_SHEET_DIMENSION = 8192
TARGET_SHEET_DIMENSION = 2800

# Background removal
BACKGROUND_TOLERANCE = 60.0

# Video export
VIDEO_TIMEOUT_MARGIN_SECONDS = 5.0
TRAILING_FRAME_INTERVALS = 2

# Parallel frame loads during export
LOAD_WORKERS = 8

ENV_PREFIX = "SPRITELAB_"


class PipelineConfig(BaseModel):
    """Tunable limits for one sampling/export session."""

    model_config = ConfigDict(frozen=True)

    max_frames: int = Field(MAX_FRAMES_TO_EXTRACT, ge=1, description="Hard cap on sampled frames")
    thumbnail_scale: float = Field(THUMBNAIL_SCALE, gt=0.0, le=1.0, description="Downscale factor for sampled thumbnails")
    window_size: int = Field(WINDOW_SIZE, ge=1, description="Frames in the export window")
    fps: int = Field(DEFAULT_FPS, ge=MIN_FPS, le=MAX_FPS, description="Playback and export frame rate")
    sheet_columns: int = Field(SHEET_COLUMNS, ge=1, description="Sprite sheet grid columns")
    max_sheet_dimension: int = Field(MAX_SHEET_DIMENSION, ge=1, description="Raster size ceiling")
    target_sheet_dimension: int = Field(TARGET_SHEET_DIMENSION, ge=1, description="Upscale target floor")
    background_tolerance: float = Field(BACKGROUND_TOLERANCE, ge=0.0, description="RGB distance for background keying")
    video_timeout_margin: float = Field(VIDEO_TIMEOUT_MARGIN_SECONDS, ge=0.0, description="Slack added to the video encode budget")
    load_workers: int = Field(LOAD_WORKERS, ge=1, description="Thread pool size for frame loads")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> PipelineConfig:
        """Build a config, taking overrides from ``SPRITELAB_<FIELD>`` variables.

        Example: ``SPRITELAB_MAX_FRAMES=120`` caps sampling at 120 frames.
        """
        env = os.environ if environ is None else environ
        overrides = {}
        for name in cls.model_fields:
            value = env.get(f"{ENV_PREFIX}{name.upper()}")
            if value is not None and value != "":
                overrides[name] = value
        return cls(**overrides)
