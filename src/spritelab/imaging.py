"""Image source adapter and drawing surface.

Loads any frame reference the pipeline accepts (sampled frames, numpy
rasters, PIL images, encoded bytes, data URLs, file paths) into an RGBA
numpy raster, and provides the reusable surface the exporters draw onto.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Sequence, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from spritelab.config import LOAD_WORKERS
from spritelab.errors import DecodeError, SurfaceAllocationError
from spritelab.schemas import RawFrame

logger = logging.getLogger(__name__)

ImageSource = Union[RawFrame, np.ndarray, Image.Image, bytes, bytearray, str, Path]

# Rasters larger than this many pixels are refused before allocation
MAX_SURFACE_PIXELS = 16384 * 16384


def _describe(source: Any) -> str:
    if isinstance(source, RawFrame):
        return source.id
    if isinstance(source, str) and source.startswith("data:"):
        return f"data URL ({len(source)} chars)"
    if isinstance(source, (bytes, bytearray)):
        return f"{len(source)} encoded bytes"
    if isinstance(source, np.ndarray):
        return f"array {source.shape}"
    return str(source)


def _array_to_rgba(arr: np.ndarray) -> np.ndarray:
    if arr.dtype != np.uint8:
        raise DecodeError(f"Unsupported raster dtype {arr.dtype}; expected uint8")
    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=-1)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4) or arr.shape[0] == 0 or arr.shape[1] == 0:
        raise DecodeError(f"Unsupported raster shape {arr.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=-1)
    return arr


def _decode_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise DecodeError("Malformed data URL: missing payload")
    if ";base64" not in header:
        raise DecodeError("Only base64 data URLs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Malformed base64 payload in data URL: {e}") from e


def load_image(source: ImageSource) -> np.ndarray:
    """Load a frame reference into an ``(H, W, 4)`` uint8 RGBA raster.

    Args:
        source: A RawFrame, numpy array, PIL image, encoded image bytes, a
            ``data:`` URL or a filesystem path.

    Returns:
        RGBA raster. Arrays that are already RGBA are returned as-is.

    Raises:
        DecodeError: If the source cannot be decoded.
    """
    if isinstance(source, RawFrame):
        return source.image_data
    if isinstance(source, np.ndarray):
        return _array_to_rgba(source)

    try:
        if isinstance(source, Image.Image):
            img = source
        elif isinstance(source, (bytes, bytearray)):
            img = Image.open(io.BytesIO(bytes(source)))
        elif isinstance(source, str) and source.startswith("data:"):
            img = Image.open(io.BytesIO(_decode_data_url(source)))
        elif isinstance(source, (str, Path)):
            img = Image.open(Path(source))
        else:
            raise DecodeError(f"Unsupported image source type: {type(source).__name__}")
        img.load()
        return np.asarray(img.convert("RGBA"), dtype=np.uint8)
    except DecodeError:
        raise
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"Failed to load image from {_describe(source)}: {e}") from e


def load_images(
    sources: Sequence[ImageSource],
    max_workers: int = LOAD_WORKERS,
) -> list[np.ndarray]:
    """Load several frame references concurrently.

    Each source is an independent handle, so loads run on a thread pool. All
    loads settle before this returns; the first failure in input order is
    raised.
    """
    if not sources:
        return []
    workers = max(1, min(max_workers, len(sources)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(load_image, s) for s in sources]
    # Leaving the with-block waits for every load
    images = [f.result() for f in futures]
    logger.debug(f"Loaded {len(images)} images with {workers} workers")
    return images


def encode_image(raster: np.ndarray, fmt: str = "PNG") -> bytes:
    """Encode an RGBA raster to image bytes."""
    img = Image.fromarray(_array_to_rgba(raster))
    if fmt.upper() in ("JPEG", "JPG"):
        img = img.convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def to_data_url(raster: np.ndarray, fmt: str = "PNG") -> str:
    """Encode a raster as a base64 ``data:`` URL."""
    mime = "image/jpeg" if fmt.upper() in ("JPEG", "JPG") else f"image/{fmt.lower()}"
    payload = base64.b64encode(encode_image(raster, fmt)).decode("ascii")
    return f"data:{mime};base64,{payload}"


class DrawingSurface:
    """Reusable RGBA raster that frames are drawn onto.

    A surface belongs to a single encode call. Callers clear it before every
    draw instead of relying on its previous contents.
    """

    def __init__(self, width: int, height: int, smoothing: bool = True):
        """Allocate the surface.

        Args:
            width: Surface width in pixels.
            height: Surface height in pixels.
            smoothing: Bilinear resampling when True, nearest-neighbour when
                False (keeps pixel-art edges crisp).

        Raises:
            SurfaceAllocationError: If the raster cannot be allocated.
        """
        if width <= 0 or height <= 0:
            raise SurfaceAllocationError(f"Invalid surface size {width}x{height}")
        if width * height > MAX_SURFACE_PIXELS:
            raise SurfaceAllocationError(
                f"Surface {width}x{height} exceeds {MAX_SURFACE_PIXELS} pixels"
            )
        try:
            self._buffer = np.zeros((height, width, 4), dtype=np.uint8)
        except MemoryError as e:
            raise SurfaceAllocationError(
                f"Could not allocate {width}x{height} surface"
            ) from e
        self.width = width
        self.height = height
        self.smoothing = smoothing

    @property
    def resample(self) -> Image.Resampling:
        return Image.Resampling.BILINEAR if self.smoothing else Image.Resampling.NEAREST

    def clear(self) -> None:
        self._buffer.fill(0)

    def draw(
        self,
        raster: np.ndarray,
        x: int = 0,
        y: int = 0,
        width: int | None = None,
        height: int | None = None,
    ) -> None:
        """Copy ``raster`` into the surface at ``(x, y)``.

        When ``width``/``height`` are given and differ from the raster size
        the raster is resampled to that size first. Anything falling outside
        the surface is clipped.
        """
        src_h, src_w = raster.shape[:2]
        dst_w = src_w if width is None else width
        dst_h = src_h if height is None else height
        if dst_w <= 0 or dst_h <= 0:
            return

        if (dst_w, dst_h) != (src_w, src_h):
            resized = Image.fromarray(raster).resize((dst_w, dst_h), self.resample)
            raster = np.asarray(resized, dtype=np.uint8)

        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + dst_w, self.width), min(y + dst_h, self.height)
        if x1 <= x0 or y1 <= y0:
            return
        self._buffer[y0:y1, x0:x1] = raster[y0 - y:y1 - y, x0 - x:x1 - x]

    def snapshot(self) -> np.ndarray:
        """Copy of the current pixel buffer."""
        return self._buffer.copy()

    def to_image(self) -> Image.Image:
        return Image.fromarray(self._buffer.copy())
