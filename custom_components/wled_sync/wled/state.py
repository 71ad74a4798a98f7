"""Light state model, inbound reconciliation and outbound command builders.

Inbound documents follow WLED's ``/json/state`` schema, of which only three
fields are consulted::

    {"on": bool, "bri": 0-255, "seg": [{"col": [[r, g, b], ...]}, ...]}

Every field is optional; an absent field leaves the matching part of
:class:`LightState` untouched.  A value that is not a finite number counts
as absent.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .color import hsv2rgb, rgb2hsv, round_half_up
from .exceptions import ParseError

FIELD_POWER = "power"
FIELD_BRIGHTNESS = "brightness"
FIELD_HUE = "hue"
FIELD_SATURATION = "saturation"

_RANGES: dict[str, tuple[int, int]] = {
    FIELD_BRIGHTNESS: (0, 100),
    FIELD_HUE: (0, 360),
    FIELD_SATURATION: (0, 100),
}


class ConnectionMode(Enum):
    """Synchronisation mode of a coordinator."""

    CONNECTING = "connecting"
    OPEN = "open"
    RETRY_SCHEDULED = "retry_scheduled"
    POLLING_FALLBACK = "polling_fallback"


@dataclass
class LightState:
    """Authoritative local view of the lamp.

    Numeric fields are rounded and clamped on every assignment, so the record
    can never hold an out-of-range value regardless of who writes it.
    """

    power: bool = False
    brightness: int = 100
    hue: int = 0
    saturation: int = 0

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _RANGES:
            low, high = _RANGES[name]
            value = max(low, min(high, round_half_up(value)))
        elif name == FIELD_POWER:
            value = bool(value)
        super().__setattr__(name, value)


# ── Brightness scale helpers ───────────────────────────────────────────────────

def brightness_raw_to_pct(raw: float) -> int:
    """Map WLED / HA brightness (0–255) to percent (0–100)."""
    return round_half_up(raw / 255 * 100)


def brightness_pct_to_raw(pct: float) -> int:
    """Map percent (0–100) to WLED / HA brightness (0–255)."""
    return round_half_up(pct * 255 / 100)


# ── Inbound reconciliation ─────────────────────────────────────────────────────

def _finite_number(value: Any) -> float | None:
    """Return *value* as a finite float, or ``None`` if it is not a usable number.

    Booleans are rejected, and so are integers too large for a float.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _first_segment_color(document: dict[str, Any]) -> tuple[float, float, float] | None:
    """Return ``seg[0].col[0]`` as an RGB triple, or ``None`` when absent."""
    segments = document.get("seg")
    if not isinstance(segments, list) or not segments:
        return None
    first = segments[0]
    if not isinstance(first, dict):
        return None
    colors = first.get("col")
    if not isinstance(colors, list) or not colors:
        return None
    color = colors[0]
    # RGBW strips report a fourth (white) channel which is ignored here.
    if not isinstance(color, (list, tuple)) or len(color) < 3:
        return None
    r, g, b = (_finite_number(c) for c in color[:3])
    if r is None or g is None or b is None:
        return None
    return r, g, b


def apply_state_document(state: LightState, document: Any) -> list[str]:
    """Merge a partial WLED state document into *state*.

    Rules are applied in order: ``on``, then ``bri``, then the first colour of
    the first segment.  The segment colour overwrites hue, saturation *and*
    brightness, so it wins over ``bri`` when both arrive together.

    Args:
        state:    State record to update in place.
        document: Decoded JSON state document.

    Returns:
        Names of the fields that were written, in write order.  A field may
        appear twice (``brightness`` from ``bri`` and again from the colour).

    Raises:
        ParseError: *document* is not a JSON object.
    """
    if not isinstance(document, dict):
        raise ParseError(f"Expected a JSON object, got {type(document).__name__}")

    applied: list[str] = []

    if "on" in document:
        state.power = document["on"]
        applied.append(FIELD_POWER)

    bri = _finite_number(document.get("bri"))
    if bri is not None:
        state.brightness = brightness_raw_to_pct(bri)
        applied.append(FIELD_BRIGHTNESS)

    rgb = _first_segment_color(document)
    if rgb is not None:
        hue, saturation, value = rgb2hsv(*rgb)
        state.hue = hue
        state.saturation = saturation
        state.brightness = value
        applied.extend((FIELD_HUE, FIELD_SATURATION, FIELD_BRIGHTNESS))

    return applied


# ── Outbound command builders ──────────────────────────────────────────────────

def cmd_power(on: bool) -> dict[str, Any]:
    """Build a power command."""
    return {"on": bool(on)}


def cmd_brightness(pct: float) -> dict[str, Any]:
    """Build a brightness command from a percentage (50 % → ``bri`` 128)."""
    return {"bri": brightness_pct_to_raw(pct)}


def cmd_color(hue: float, saturation: float, brightness: float) -> dict[str, Any]:
    """Build a single-segment, single-colour command from HSV."""
    r, g, b = hsv2rgb(hue, saturation, brightness)
    return {"seg": [{"col": [[r, g, b]]}]}
