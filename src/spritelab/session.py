"""Explicit application state for the sampling/export workflow.

``SpriteSession`` holds what an interactive caller needs between user
actions: the sampled frames, the selected window, playback rate and the
in-flight flags. Each user action is one method call; the pipeline modules
themselves stay stateless.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

import numpy as np

from spritelab.background import isolate_background
from spritelab.config import MAX_FPS, MIN_FPS, PipelineConfig
from spritelab.errors import EmptyInputError, SpriteLabError
from spritelab.export import export_gif, export_sprite_sheet, export_video
from spritelab.export.video import VideoEncoder, recording_budget
from spritelab.sampling import FrameSource, open_video_source, sample, sample_at
from spritelab.sampling.video_sampler import ProgressCallback
from spritelab.schemas import ExportArtifact, FrameWindow, RawFrame, VideoMetadata

logger = logging.getLogger(__name__)


def _is_frame_source(obj: Any) -> bool:
    return hasattr(obj, "capture") and hasattr(obj, "info")


class SpriteSession:
    """State and commands for one loaded video."""

    def __init__(self, config: PipelineConfig | None = None):
        self.config = config or PipelineConfig()
        self.frames: list[RawFrame] = []
        self.metadata: VideoMetadata | None = None
        self.start_index = 0
        self.window_size = self.config.window_size
        self.fps = self.config.fps
        self.seed_frame_id: str | None = None
        self.is_processing = False
        self.is_exporting = False
        self._source: FrameSource | None = None
        self._owns_source = False
        self._cancel = threading.Event()

    # -- state ---------------------------------------------------------

    @property
    def has_content(self) -> bool:
        return bool(self.frames)

    @property
    def window(self) -> FrameWindow:
        return FrameWindow(start_index=self.start_index, length=self.window_size)

    @property
    def selected_frames(self) -> list[RawFrame]:
        return self.window.apply(self.frames)

    # -- commands ------------------------------------------------------

    def load_video(self, source: Any, on_progress: ProgressCallback | None = None) -> VideoMetadata:
        """Sample a video and make it the session's content.

        ``source`` is a frame source, a path, raw bytes or a binary file
        handle. On failure the previous content is kept.
        """
        self.is_processing = True
        opened = None
        try:
            if _is_frame_source(source):
                frame_source, owned = source, False
            else:
                opened = open_video_source(source)
                frame_source, owned = opened, True

            result = sample(
                frame_source,
                max_frames=self.config.max_frames,
                thumbnail_scale=self.config.thumbnail_scale,
                on_progress=on_progress,
                cancel_event=self._cancel,
            )
            opened = None

            self._release_source()
            self._source, self._owns_source = frame_source, owned
            self.frames = result.frames
            self.metadata = result.metadata
            self.start_index = 0
            self.seed_frame_id = self.frames[0].id if self.frames else None
            return result.metadata
        finally:
            if opened is not None:
                opened.release()
            self.is_processing = False
            self._cancel.clear()

    def cancel(self) -> None:
        """Stop the current or next ``load_video`` before its next seek."""
        self._cancel.set()

    def set_window_start(self, index: int) -> None:
        self.start_index = max(0, index)

    def set_fps(self, fps: int) -> None:
        if not MIN_FPS <= fps <= MAX_FPS:
            raise ValueError(f"fps must be between {MIN_FPS} and {MAX_FPS}, got {fps}")
        self.fps = fps

    def select_seed(self, frame_id: str) -> int | None:
        """Mark a seed frame; returns its position in the window, if any."""
        self.seed_frame_id = frame_id
        for i, frame in enumerate(self.selected_frames):
            if frame.id == frame_id:
                return i
        return None

    def preview_frame(
        self,
        index: int,
        remove_background: bool = False,
        tolerance: float | None = None,
    ) -> np.ndarray | None:
        """Raster for position ``index`` in the window, optionally keyed."""
        selected = self.selected_frames
        if not selected:
            return self.frames[0].image_data if self.frames else None
        frame = selected[index] if 0 <= index < len(selected) else self.frames[0]
        if not remove_background:
            return frame.image_data
        tol = self.config.background_tolerance if tolerance is None else tolerance
        return isolate_background(frame.image_data, tol)

    def reset(self) -> None:
        self._release_source()
        self.frames = []
        self.metadata = None
        self.start_index = 0
        self.seed_frame_id = None

    def close(self) -> None:
        self._release_source()

    # -- exports -------------------------------------------------------

    def export_sprite_sheet(self, columns: int | None = None) -> ExportArtifact:
        """Pack the window, re-extracted at full resolution when possible."""
        selected = self._require_selection()
        self.is_exporting = True
        try:
            export_frames: list[Any] = list(selected)
            if self._source is not None:
                try:
                    export_frames = sample_at(
                        self._source, [f.timestamp_seconds for f in selected]
                    )
                    logger.info(f"Extracted {len(export_frames)} high-res frames for export")
                except SpriteLabError as e:
                    logger.warning(
                        f"Failed to extract high-res frames, falling back to thumbnails: {e}"
                    )
            return export_sprite_sheet(
                export_frames,
                columns or self.config.sheet_columns,
                max_dimension=self.config.max_sheet_dimension,
                target_dimension=self.config.target_sheet_dimension,
                max_workers=self.config.load_workers,
            )
        finally:
            self.is_exporting = False

    def export_gif(self) -> ExportArtifact:
        selected = self._require_selection()
        self.is_exporting = True
        try:
            return export_gif(selected, self.fps, max_workers=self.config.load_workers)
        finally:
            self.is_exporting = False

    def export_video(
        self,
        encoder: VideoEncoder | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> ExportArtifact:
        selected = self._require_selection()
        self.is_exporting = True
        try:
            return export_video(
                selected,
                self.fps,
                encoder=encoder,
                timeout=recording_budget(
                    len(selected), self.fps, self.config.video_timeout_margin
                ),
                sleep=sleep,
                max_workers=self.config.load_workers,
            )
        finally:
            self.is_exporting = False

    # -- internals -----------------------------------------------------

    def _require_selection(self) -> list[RawFrame]:
        selected = self.selected_frames
        if not selected:
            raise EmptyInputError("No frames selected for export")
        return selected

    def _release_source(self) -> None:
        if self._source is not None and self._owns_source:
            self._source.release()
        self._source = None
        self._owns_source = False
