"""Sprite sheet packing.

Arranges frames in a ``rows x columns`` grid and encodes it as PNG. Sheets
that would exceed the raster ceiling are shrunk to fit; small sheets are
upscaled towards a target size when the result still fits under the
ceiling. Scaling is nearest-neighbour so pixel-art edges stay crisp.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field

from spritelab.config import LOAD_WORKERS, MAX_SHEET_DIMENSION, SHEET_COLUMNS, TARGET_SHEET_DIMENSION
from spritelab.errors import EmptyInputError
from spritelab.imaging import DrawingSurface, ImageSource, encode_image, load_image, load_images

logger = logging.getLogger(__name__)


class SheetLayout(BaseModel):
    """Computed geometry of a sprite sheet."""

    model_config = ConfigDict(frozen=True)

    columns: int = Field(..., ge=1)
    rows: int = Field(..., ge=1)
    cell_width: int = Field(..., ge=0, description="Scaled cell width in pixels")
    cell_height: int = Field(..., ge=0, description="Scaled cell height in pixels")
    scale: float = Field(..., gt=0.0, description="Factor applied to source frames")

    @property
    def width(self) -> int:
        return self.cell_width * self.columns

    @property
    def height(self) -> int:
        return self.cell_height * self.rows

    def cell_origin(self, index: int) -> tuple[int, int]:
        """Top-left pixel of the cell holding frame ``index``."""
        return (index % self.columns) * self.cell_width, (index // self.columns) * self.cell_height


def compute_sheet_scale(
    total_width: int,
    total_height: int,
    max_dimension: int = MAX_SHEET_DIMENSION,
    target_dimension: int = TARGET_SHEET_DIMENSION,
) -> float:
    """Scale factor for an unscaled sheet of ``total_width x total_height``.

    Shrinking to the ceiling takes priority. Upscaling only happens when both
    sides are under the target and the upscaled sheet stays within the
    ceiling.
    """
    if total_width > max_dimension or total_height > max_dimension:
        return min(max_dimension / total_width, max_dimension / total_height)

    if total_width < target_dimension and total_height < target_dimension:
        candidate = min(target_dimension / total_width, target_dimension / total_height)
        if (
            total_width * candidate <= max_dimension
            and total_height * candidate <= max_dimension
        ):
            return candidate

    return 1.0


def plan_sprite_sheet(
    frame_count: int,
    frame_width: int,
    frame_height: int,
    columns: int = SHEET_COLUMNS,
    max_dimension: int = MAX_SHEET_DIMENSION,
    target_dimension: int = TARGET_SHEET_DIMENSION,
) -> SheetLayout:
    """Grid geometry for ``frame_count`` frames of ``frame_width x frame_height``."""
    if frame_count <= 0:
        raise EmptyInputError("No frames to export")
    if columns < 1:
        raise ValueError(f"columns must be >= 1, got {columns}")

    rows = math.ceil(frame_count / columns)
    total_width = frame_width * columns
    total_height = frame_height * rows
    scale = compute_sheet_scale(total_width, total_height, max_dimension, target_dimension)

    if scale < 1:
        logger.warning(f"Sprite sheet too large, scaling down by {scale:.2f}")
    elif scale > 1:
        logger.info(f"Upscaling sprite sheet to target resolution (x{scale:.2f})")

    return SheetLayout(
        columns=columns,
        rows=rows,
        cell_width=math.floor(frame_width * scale),
        cell_height=math.floor(frame_height * scale),
        scale=scale,
    )


def pack_sprite_sheet(
    frames: Sequence[ImageSource],
    columns: int = SHEET_COLUMNS,
    max_dimension: int = MAX_SHEET_DIMENSION,
    target_dimension: int = TARGET_SHEET_DIMENSION,
    max_workers: int = LOAD_WORKERS,
) -> bytes:
    """Pack frames into a grid and encode it as PNG.

    The first frame sets the cell size. Frames of a different size are
    resized into their cell.

    Args:
        frames: Sampled frames, rasters, encoded images, data URLs or paths.
        columns: Grid columns.
        max_dimension: Raster size ceiling on either side.
        target_dimension: Size small sheets are upscaled towards.
        max_workers: Thread pool size for loading frames.

    Returns:
        PNG bytes.

    Raises:
        EmptyInputError: If ``frames`` is empty.
        DecodeError: If any frame cannot be loaded.
        SurfaceAllocationError: If the sheet cannot be allocated.
    """
    if len(frames) == 0:
        raise EmptyInputError("No frames to export")

    logger.info(f"Generating sprite sheet for {len(frames)} frames")

    first = load_image(frames[0])
    frame_height, frame_width = first.shape[:2]
    layout = plan_sprite_sheet(
        len(frames), frame_width, frame_height, columns, max_dimension, target_dimension
    )

    images = [first] + load_images(frames[1:], max_workers=max_workers)

    surface = DrawingSurface(layout.width, layout.height, smoothing=False)
    surface.clear()
    for i, image in enumerate(images):
        if image.shape[:2] != (frame_height, frame_width):
            logger.warning(
                f"Frame {i} is {image.shape[1]}x{image.shape[0]}, expected "
                f"{frame_width}x{frame_height}; resizing into its cell"
            )
        x, y = layout.cell_origin(i)
        surface.draw(image, x, y, layout.cell_width, layout.cell_height)

    png = encode_image(surface.snapshot(), "PNG")
    logger.info(
        f"Sprite sheet generated successfully: {layout.width}x{layout.height}, "
        f"{len(png)} bytes"
    )
    return png
