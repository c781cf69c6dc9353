"""Smoke tests for the sampling step policy."""

import math
from fractions import Fraction

import pytest

from spritelab.sampling.policy import expected_frame_count, sampling_step


class TestSamplingStep:
    """Step selection by clip duration."""

    @pytest.mark.parametrize("duration", [0.0, 0.5, 2.0, 4.99])
    def test_short_clips_sample_densely(self, duration: float) -> None:
        assert sampling_step(duration) == Fraction(1, 24)

    @pytest.mark.parametrize("duration", [5.0, 12.0, 30.0])
    def test_medium_clips_use_default_step(self, duration: float) -> None:
        """Boundaries 5 and 30 both fall in the default band."""
        assert sampling_step(duration) == Fraction(1, 12)

    @pytest.mark.parametrize("duration", [30.01, 60.0, 600.0])
    def test_long_clips_sample_once_per_second(self, duration: float) -> None:
        assert sampling_step(duration) == 1

    @pytest.mark.parametrize("duration", [0.0, 1.0, 7.5, 45.0, 1e6])
    def test_step_is_always_positive(self, duration: float) -> None:
        assert sampling_step(duration) > 0


class TestExpectedFrameCount:
    """Frame counts implied by the policy."""

    def test_two_second_clip(self) -> None:
        assert expected_frame_count(2.0) == 48

    def test_ten_second_clip(self) -> None:
        assert expected_frame_count(10.0) == 120

    def test_partial_step_rounds_up(self) -> None:
        """A trailing partial step still produces a frame."""
        assert expected_frame_count(40.5) == 41

    def test_capped_at_max_frames(self) -> None:
        assert expected_frame_count(600.0, max_frames=300) == 300

    @pytest.mark.parametrize("duration", [0.0, -1.0])
    def test_empty_clip(self, duration: float) -> None:
        assert expected_frame_count(duration) == 0

    @pytest.mark.parametrize("duration", [0.3, 3.7, 8.25, 29.9, 31.2])
    def test_matches_ceil_of_duration_over_step(self, duration: float) -> None:
        step = sampling_step(duration)
        assert expected_frame_count(duration, max_frames=10_000) == math.ceil(
            Fraction(duration) / step
        )
