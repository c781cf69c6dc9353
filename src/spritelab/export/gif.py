"""Animated GIF export.

Frames go through Pillow's per-frame GIF writer
(``GifImagePlugin.getheader`` / ``getdata``), one image descriptor per input
frame. Identical consecutive frames stay separate frames with their own delay.
"""

from __future__ import annotations

import io
import logging
import math
from typing import Sequence

from PIL import GifImagePlugin, Image

from spritelab.config import LOAD_WORKERS
from spritelab.errors import EmptyInputError
from spritelab.imaging import DrawingSurface, ImageSource, load_images

logger = logging.getLogger(__name__)

DEFAULT_GIF_FPS = 24

# Palette index reserved for transparent pixels; quantization uses the rest
TRANSPARENT_INDEX = 255
ALPHA_THRESHOLD = 128

# Restore to background before the next frame is drawn
DISPOSE_TO_BACKGROUND = 2

GIF_TRAILER = b";"


def frame_delay_ms(fps: float) -> int:
    """Per-frame delay in milliseconds, rounded half up."""
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")
    return math.floor(1000 / fps + 0.5)


def _to_palette_frame(image: Image.Image) -> Image.Image:
    """Quantize an RGBA frame to a P frame with one transparent index."""
    frame = image.convert("RGB").quantize(colors=TRANSPARENT_INDEX)
    palette = frame.getpalette() or []
    frame.putpalette(palette + [0] * (768 - len(palette)))

    transparent = image.getchannel("A").point(lambda a: 255 if a < ALPHA_THRESHOLD else 0)
    frame.paste(TRANSPARENT_INDEX, mask=transparent)
    return frame


def encode_gif(
    frames: Sequence[ImageSource],
    fps: float = DEFAULT_GIF_FPS,
    max_workers: int = LOAD_WORKERS,
) -> bytes:
    """Encode frames as a looping animated GIF with a uniform delay.

    All frames are loaded before drawing starts. Each one is drawn onto a
    surface sized to the first frame, and the surface pixels become the GIF
    frame. The output holds exactly one frame per input frame, each with
    the same delay, even when consecutive frames are identical. Any load
    failure aborts the export.

    Raises:
        EmptyInputError: If ``frames`` is empty.
        DecodeError: If any frame cannot be loaded.
    """
    if len(frames) == 0:
        raise EmptyInputError("No frames to export")

    delay = frame_delay_ms(fps)
    logger.info(f"Generating GIF for {len(frames)} frames at {fps} fps")

    images = load_images(frames, max_workers=max_workers)
    height, width = images[0].shape[:2]
    logger.debug(f"GIF dimensions: {width}x{height}, delay: {delay}ms")

    surface = DrawingSurface(width, height, smoothing=True)
    gif_frames = []
    for image in images:
        surface.clear()
        surface.draw(image, 0, 0, width, height)
        gif_frames.append(_to_palette_frame(surface.to_image()))

    buf = io.BytesIO()
    header, _ = GifImagePlugin.getheader(
        gif_frames[0],
        info={"loop": 0, "duration": delay, "transparency": TRANSPARENT_INDEX},
    )
    for block in header:
        buf.write(block)
    for frame in gif_frames:
        for block in GifImagePlugin.getdata(
            frame,
            duration=delay,
            disposal=DISPOSE_TO_BACKGROUND,
            transparency=TRANSPARENT_INDEX,
            include_color_table=True,
        ):
            buf.write(block)
    buf.write(GIF_TRAILER)

    data = buf.getvalue()
    logger.info(f"GIF generated successfully: {len(gif_frames)} frames, {len(data)} bytes")
    return data
