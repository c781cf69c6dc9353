"""Smoke tests for pipeline schemas and configuration."""

import numpy as np
import pytest

from spritelab.config import MAX_FRAMES_TO_EXTRACT, PipelineConfig
from spritelab.schemas import ExportArtifact, ExportKind, FrameWindow, RawFrame, VideoMetadata


class TestRawFrame:
    """RawFrame validation and immutability."""

    def test_valid_frame(self, make_raster) -> None:
        frame = RawFrame(
            id="frame-0",
            image_data=make_raster(8, 6),
            timestamp_seconds=0.0,
            sequence_index=0,
        )
        assert (frame.width, frame.height) == (8, 6)

    def test_image_data_is_read_only(self, make_raster) -> None:
        raster = make_raster(4, 4)
        frame = RawFrame(id="f", image_data=raster, timestamp_seconds=0.0, sequence_index=0)
        with pytest.raises(ValueError):
            frame.image_data[0, 0, 0] = 1
        # The caller's array is not frozen in place
        raster[0, 0, 0] = 1

    def test_rejects_rgb_raster(self) -> None:
        with pytest.raises(ValueError):
            RawFrame(
                id="f",
                image_data=np.zeros((4, 4, 3), dtype=np.uint8),
                timestamp_seconds=0.0,
                sequence_index=0,
            )

    def test_rejects_negative_timestamp(self, make_raster) -> None:
        with pytest.raises(ValueError):
            RawFrame(id="f", image_data=make_raster(2, 2), timestamp_seconds=-1.0, sequence_index=0)

    def test_frozen(self, make_raster) -> None:
        frame = RawFrame(id="f", image_data=make_raster(2, 2), timestamp_seconds=0.0, sequence_index=0)
        with pytest.raises(ValueError):
            frame.sequence_index = 3


class TestFrameWindow:
    """Windows clamp instead of failing."""

    @pytest.mark.parametrize(
        "start,length,total,expected",
        [
            (0, 25, 48, (0, 25)),
            (40, 25, 48, (40, 48)),
            (60, 25, 48, (48, 48)),
            (-5, 25, 48, (0, 25)),
            (0, 25, 10, (0, 10)),
            (3, 0, 10, (3, 3)),
        ],
    )
    def test_bounds(self, start: int, length: int, total: int, expected: tuple[int, int]) -> None:
        assert FrameWindow(start_index=start, length=length).bounds(total) == expected

    def test_default_length(self) -> None:
        assert FrameWindow().length == 25


class TestExportArtifact:
    """Artifact metadata per export kind."""

    @pytest.mark.parametrize(
        "kind,mime,filename",
        [
            (ExportKind.PNG, "image/png", "sprite-sheet.png"),
            (ExportKind.GIF, "image/gif", "animation.gif"),
            (ExportKind.WEBM, "video/webm", "animation.webm"),
        ],
    )
    def test_kind_metadata(self, kind: ExportKind, mime: str, filename: str) -> None:
        artifact = ExportArtifact(data=b"abc", kind=kind)
        assert artifact.mime_type == mime
        assert artifact.filename == filename
        assert artifact.byte_size == 3


class TestVideoMetadata:
    def test_rejects_zero_width(self) -> None:
        with pytest.raises(ValueError):
            VideoMetadata(duration_seconds=1.0, width=0, height=10, approx_frame_count=1)


class TestPipelineConfig:
    """Defaults and environment overrides."""

    def test_defaults(self) -> None:
        config = PipelineConfig()
        assert config.max_frames == MAX_FRAMES_TO_EXTRACT
        assert config.window_size == 25
        assert config.sheet_columns == 5
        assert config.background_tolerance == 60.0

    def test_from_env_overrides(self) -> None:
        config = PipelineConfig.from_env(
            {"SPRITELAB_MAX_FRAMES": "120", "SPRITELAB_FPS": "24", "OTHER": "x"}
        )
        assert config.max_frames == 120
        assert config.fps == 24
        assert config.window_size == 25

    def test_from_env_ignores_empty_values(self) -> None:
        assert PipelineConfig.from_env({"SPRITELAB_MAX_FRAMES": ""}).max_frames == 300

    def test_from_env_validates(self) -> None:
        with pytest.raises(ValueError):
            PipelineConfig.from_env({"SPRITELAB_THUMBNAIL_SCALE": "2.0"})
