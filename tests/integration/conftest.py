"""Integration test configuration.

Integration tests decode and encode real video through OpenCV.
Tests skip when the local OpenCV build lacks the needed codec.
"""

from pathlib import Path

import cv2
import numpy as np
import pytest


def write_test_video(
    path: Path,
    seconds: float = 2.0,
    fps: int = 24,
    size: tuple[int, int] = (160, 120),
) -> bool:
    """Write an MJPG AVI whose frames step through solid colours."""
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), fps, size)
    if not writer.isOpened():
        return False
    try:
        for i in range(int(seconds * fps)):
            frame = np.zeros((size[1], size[0], 3), dtype=np.uint8)
            frame[:, :] = ((i * 5) % 256, 80, 255 - (i * 5) % 256)
            writer.write(frame)
    finally:
        writer.release()
    return path.exists() and path.stat().st_size > 0


@pytest.fixture
def test_video(tmp_path) -> Path:
    """Two-second 160x120 video at 24 fps."""
    path = tmp_path / "clip.avi"
    if not write_test_video(path):
        pytest.skip("OpenCV build cannot write MJPG video")
    return path
