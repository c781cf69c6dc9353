"""Sampling step policy.

The step between sampled timestamps depends only on the clip duration:
short clips are sampled densely, long clips sparsely. Steps are exact
fractions so that ``t_i = i * step`` never accumulates float error and the
frame count for a duration is predictable.
"""

import math
from fractions import Fraction

from spritelab.config import LONG_CLIP_SECONDS, MAX_FRAMES_TO_EXTRACT, SHORT_CLIP_SECONDS

DENSE_STEP = Fraction(1, 24)
DEFAULT_STEP = Fraction(1, 12)
SPARSE_STEP = Fraction(1, 1)


def sampling_step(duration: float) -> Fraction:
    """Seconds between sampled timestamps for a clip of ``duration`` seconds."""
    if duration < SHORT_CLIP_SECONDS:
        return DENSE_STEP
    if duration > LONG_CLIP_SECONDS:
        return SPARSE_STEP
    return DEFAULT_STEP


def expected_frame_count(duration: float, max_frames: int = MAX_FRAMES_TO_EXTRACT) -> int:
    """Number of frames a sampling pass produces for ``duration``."""
    if duration <= 0 or max_frames <= 0:
        return 0
    step = sampling_step(duration)
    return min(math.ceil(Fraction(duration) / step), max_frames)


def sample_timestamp(index: int, step: Fraction) -> Fraction:
    return index * step
