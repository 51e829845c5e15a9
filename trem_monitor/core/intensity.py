"""Seismic intensity conversions - Pure functions.

Converts peak ground acceleration (PGA, in gal) into the 0-9 internal
intensity scale and its display text. The high end of the scale is
compressed into half-unit buckets ("5-", "5+", "6-", "6+").
"""

import math


# Display text for integer intensity levels 0-9
INTENSITY_LIST = ("0", "1", "2", "3", "4", "5-", "5+", "6-", "6+", "7")

UNKNOWN_INTENSITY_TEXT = "unknown"


def pga_to_intensity_float(pga: float) -> float:
    """Convert PGA to a floating point intensity value.

    Pure function. Non-positive PGA has no defined intensity; the
    result is non-finite (-inf for 0, nan for negatives) and must
    not be displayed.

    Args:
        pga: Peak ground acceleration in gal

    Returns:
        Intensity as ``2 * log10(pga) + 0.7``
    """
    if pga == 0:
        return -math.inf
    if pga < 0:
        return math.nan
    return 2 * math.log10(pga) + 0.7


def _round_half_up(value: float) -> int:
    # 0.5 goes up, matching the upstream display convention
    return math.floor(value + 0.5)


def intensity_float_to_int(value: float) -> int:
    """Bucket a floating point intensity into an integer level 0-9.

    Pure function. Below 4.5 the value is rounded to the nearest
    integer; above that the scale uses fixed half-unit breakpoints.

    Args:
        value: Floating point intensity

    Returns:
        Integer intensity level in [0, 9]
    """
    if math.isnan(value) or value < 0:
        return 0
    if value < 4.5:
        return _round_half_up(value)
    if value < 5:
        return 5
    if value < 5.5:
        return 6
    if value < 6:
        return 7
    if value < 6.5:
        return 8
    return 9


def pga_to_intensity(pga: float) -> int:
    """Convert PGA directly to an integer intensity level.

    Args:
        pga: Peak ground acceleration in gal

    Returns:
        Integer intensity level in [0, 9], 0 for non-positive PGA
    """
    if pga <= 0:
        return 0
    return intensity_float_to_int(pga_to_intensity_float(pga))


def intensity_to_text(level: int) -> str:
    """Return the display text for an integer intensity level."""
    if 0 <= level < len(INTENSITY_LIST):
        return INTENSITY_LIST[level]
    return UNKNOWN_INTENSITY_TEXT
