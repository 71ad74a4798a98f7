"""Colour conversion between Home Assistant HSV and WLED RGB.

Hue is expressed in degrees (0–360), saturation and value in percent
(0–100) and RGB channels in the device's native 0–255 range.  Every result is
rounded half-up, the way WLED's own web UI rounds, so that ``x.5`` values land
on the same integer on both sides of the wire.
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round *value* to the nearest integer, ``.5`` always rounding up."""
    return math.floor(value + 0.5)


def hsv2rgb(hue: float, saturation: float, value: float) -> tuple[int, int, int]:
    """Convert HSV to an RGB triple.

    Args:
        hue:        Hue in degrees (0–360).
        saturation: Saturation in percent (0–100).
        value:      Value / brightness in percent (0–100).

    Returns:
        ``(r, g, b)`` with each channel in 0–255.
    """
    s = saturation / 100
    v = value / 100

    def channel(n: int) -> int:
        k = (n + hue / 60) % 6
        return round_half_up((v - v * s * max(min(k, 4 - k, 1), 0)) * 255)

    return channel(5), channel(3), channel(1)


def rgb2hsv(red: float, green: float, blue: float) -> tuple[int, int, int]:
    """Convert an RGB triple to HSV.

    Args:
        red, green, blue: Channel values (0–255).

    Returns:
        ``(hue, saturation, value)``: hue in degrees (0–360), saturation and
        value in percent (0–100).
    """
    r, g, b = red / 255, green / 255, blue / 255
    high = max(r, g, b)
    low = min(r, g, b)
    delta = high - low

    s = 0.0 if high == 0 else delta / high

    if high == low:
        h = 0.0
    elif high == r:
        h = (g - b) / delta + (6 if g < b else 0)
    elif high == g:
        h = (b - r) / delta + 2
    else:
        h = (r - g) / delta + 4

    return (
        round_half_up((h * 60) % 360),
        round_half_up(s * 100),
        round_half_up(high * 100),
    )
