"""Unit tests for intensity conversions.

Pure function tests - no mocks needed.
"""

import math

import pytest

from trem_monitor.core.intensity import (
    INTENSITY_LIST,
    UNKNOWN_INTENSITY_TEXT,
    intensity_float_to_int,
    intensity_to_text,
    pga_to_intensity,
    pga_to_intensity_float,
)


class TestPgaToIntensityFloat:
    """Tests for pga_to_intensity_float() function."""

    def test_one_gal(self):
        """log10(1) is 0, so 1 gal maps to 0.7."""
        assert pga_to_intensity_float(1.0) == pytest.approx(0.7)

    def test_hundred_gal(self):
        """2 * log10(100) + 0.7 == 4.7."""
        assert pga_to_intensity_float(100.0) == pytest.approx(4.7)

    def test_zero_pga_is_not_finite(self):
        """Zero PGA has no intensity."""
        assert not math.isfinite(pga_to_intensity_float(0.0))

    def test_negative_pga_is_not_finite(self):
        """Negative PGA does not raise, returns a non-finite value."""
        assert not math.isfinite(pga_to_intensity_float(-3.0))


class TestIntensityFloatToInt:
    """Tests for intensity_float_to_int() function."""

    @pytest.mark.parametrize("value,expected", [
        (-1, 0),
        (3.2, 3),
        (4.49, 4),
        (4.5, 5),
        (4.99, 5),
        (5.0, 6),
        (5.49, 6),
        (5.5, 7),
        (5.99, 7),
        (6.0, 8),
        (6.49, 8),
        (6.5, 9),
    ])
    def test_breakpoints(self, value, expected):
        """Reproduces the fixed bucket table."""
        assert intensity_float_to_int(value) == expected

    def test_half_rounds_up(self):
        """Values ending in .5 round up below 4.5."""
        assert intensity_float_to_int(0.5) == 1
        assert intensity_float_to_int(2.5) == 3

    def test_large_value_caps_at_nine(self):
        """Anything past 6.5 is level 9."""
        assert intensity_float_to_int(12.0) == 9
        assert intensity_float_to_int(math.inf) == 9

    def test_non_finite_low_values(self):
        """nan and -inf map to level 0."""
        assert intensity_float_to_int(math.nan) == 0
        assert intensity_float_to_int(-math.inf) == 0

    def test_monotonic(self):
        """Never decreases as the input grows."""
        values = [x / 100 for x in range(-200, 900)]
        levels = [intensity_float_to_int(v) for v in values]
        assert levels == sorted(levels)


class TestPgaToIntensity:
    """Tests for pga_to_intensity() function."""

    def test_small_pga(self):
        """1 gal is 0.7, which rounds to 1."""
        assert pga_to_intensity(1.0) == 1

    def test_strong_pga(self):
        """100 gal is 4.7, level 5."""
        assert pga_to_intensity(100.0) == 5

    def test_non_positive_pga(self):
        """Non-positive PGA is level 0."""
        assert pga_to_intensity(0.0) == 0
        assert pga_to_intensity(-1.0) == 0


class TestIntensityToText:
    """Tests for intensity_to_text() function."""

    def test_round_trips_scale(self):
        """Every level 0-9 maps to its entry in the scale."""
        texts = [intensity_to_text(k) for k in range(10)]
        assert texts == ["0", "1", "2", "3", "4", "5-", "5+", "6-", "6+", "7"]
        assert tuple(texts) == INTENSITY_LIST

    @pytest.mark.parametrize("level", [-1, 10, 99])
    def test_out_of_range(self, level):
        """Out-of-range levels return the unknown sentinel."""
        assert intensity_to_text(level) == UNKNOWN_INTENSITY_TEXT
