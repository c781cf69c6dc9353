"""Color-distance background keying.

The top-left pixel is taken as the background colour and every pixel within
``tolerance`` of it (Euclidean distance in RGB) becomes fully transparent.
There is no connectivity constraint, so interior regions that match the
background colour are keyed out as well.
"""

import numpy as np

from spritelab.config import BACKGROUND_TOLERANCE


def color_distance_mask(
    raster: np.ndarray,
    reference: tuple[int, int, int] | np.ndarray,
    tolerance: float = BACKGROUND_TOLERANCE,
) -> np.ndarray:
    """Boolean ``(H, W)`` mask of pixels closer than ``tolerance`` to ``reference``."""
    rgb = raster[..., :3].astype(np.float32)
    ref = np.asarray(reference, dtype=np.float32)[:3]
    distance = np.sqrt(np.sum((rgb - ref) ** 2, axis=-1))
    return distance < tolerance


def isolate_background(
    raster: np.ndarray,
    tolerance: float = BACKGROUND_TOLERANCE,
) -> np.ndarray:
    """Return a copy of an RGBA raster with the background made transparent."""
    if raster.ndim != 3 or raster.shape[2] != 4:
        raise ValueError(f"Expected an (H, W, 4) RGBA raster, got {raster.shape}")
    if raster.shape[0] == 0 or raster.shape[1] == 0:
        return raster.copy()

    out = raster.copy()
    mask = color_distance_mask(out, out[0, 0, :3], tolerance)
    out[mask, 3] = 0
    return out
