"""End-to-end sampling and export through OpenCV."""

import io

import pytest
from PIL import Image

from spritelab.errors import EncoderFaultError, SourceUnreadableError
from spritelab.export import OpenCVWebMEncoder, encode_video, pack_sprite_sheet
from spritelab.sampling import OpenCVVideoSource, open_video_source, sample, sample_at, select_window
from spritelab.session import SpriteSession

pytestmark = pytest.mark.integration

EBML_MAGIC = b"\x1a\x45\xdf\xa3"


class TestOpenCVVideoSource:
    """Metadata and seeking on a real container."""

    def test_metadata(self, test_video) -> None:
        with OpenCVVideoSource(test_video) as source:
            info = source.info
            assert (info.width, info.height) == (160, 120)
            assert info.fps == pytest.approx(24.0)
            assert info.duration == pytest.approx(2.0, abs=0.1)

    def test_seek_past_end_is_clamped(self, test_video) -> None:
        with OpenCVVideoSource(test_video) as source:
            raster = source.capture(999.0)
            assert raster.shape == (120, 160, 4)

    def test_unreadable_file(self, tmp_path) -> None:
        bogus = tmp_path / "bogus.mp4"
        bogus.write_bytes(b"\x00" * 128)
        with pytest.raises(SourceUnreadableError):
            OpenCVVideoSource(bogus)

    def test_open_from_bytes_cleans_up(self, test_video) -> None:
        source = open_video_source(test_video.read_bytes(), suffix=".avi")
        spooled = source.path
        assert spooled.exists()
        source.release()
        assert not spooled.exists()

    def test_open_from_file_handle(self, test_video) -> None:
        with test_video.open("rb") as fh, open_video_source(fh) as source:
            assert source.path.suffix == ".avi"
            assert source.info.width == 160


class TestSamplingScenario:
    """2 s clip -> ~48 thumbnails -> 25-frame window -> 5x5 sheet."""

    def test_sample_window_and_pack(self, test_video) -> None:
        with OpenCVVideoSource(test_video) as source:
            result = sample(source)
            assert abs(len(result.frames) - 48) <= 2
            assert result.frames[0].image_data.shape == (30, 40, 4)

            window = select_window(result.frames, 0, 25)
            full_res = sample_at(source, [f.timestamp_seconds for f in window])
            assert full_res[0].shape == (120, 160, 4)

        sheet = Image.open(io.BytesIO(pack_sprite_sheet(full_res, columns=5)))
        assert sheet.size[0] % 5 == 0 and sheet.size[1] % 5 == 0
        # 800x600 sheet upscaled by 3.5
        assert sheet.size == (2800, 2100)

    def test_session_round_trip(self, test_video) -> None:
        session = SpriteSession()
        session.load_video(test_video)
        try:
            artifact = session.export_sprite_sheet()
            assert artifact.byte_size > 0
        finally:
            session.close()


class TestWebMExport:
    def test_encode_webm(self, raw_frames) -> None:
        frames = raw_frames(12, width=64, height=48)
        try:
            data = encode_video(frames, fps=12, encoder=OpenCVWebMEncoder())
        except EncoderFaultError as e:
            pytest.skip(f"No WebM encoder available: {e}")
        assert data[:4] == EBML_MAGIC
