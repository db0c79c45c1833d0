"""
Gain encoding.

Opus R128 tags store gain as a signed Q7.8 fixed-point integer (1/256 dB
steps). The human-readable formats store decimal strings, rendered here so
every writer formats them identically.
"""

from __future__ import annotations

import math

from loudtag.errors import InvalidGainValue
from loudtag.models import ReplayGain

Q78_MIN = -32768
Q78_MAX = 32767
Q78_SCALE = 256

# EBU R128 reference level used by Opus R128_* tags
R128_REFERENCE = -23.0


def gain_to_fixedpoint(gain_db: float) -> int:
    """
    Encode a gain in dB as a Q7.8 integer.

    Rounds half away from zero and clamps to the signed 16-bit range.

    Raises:
        InvalidGainValue: gain is NaN or infinite
    """
    if not math.isfinite(gain_db):
        raise InvalidGainValue("Gain must be a finite number", gain=gain_db)

    scaled = min(max(gain_db * Q78_SCALE, float(Q78_MIN)), float(Q78_MAX))
    if scaled >= 0:
        return int(math.floor(scaled + 0.5))
    return int(math.ceil(scaled - 0.5))


def fixedpoint_to_gain(value: int) -> float:
    """Decode a Q7.8 integer back to dB."""
    return value / Q78_SCALE


def r128_gain(replay_gain: ReplayGain) -> int:
    """Q7.8 gain relative to the R128 reference instead of the scan's reference."""
    shift = R128_REFERENCE - replay_gain.loudness_reference
    return gain_to_fixedpoint(replay_gain.gain + shift)


def _require_finite(value: float, name: str) -> None:
    if not math.isfinite(value):
        raise InvalidGainValue(f"{name} must be a finite number", **{name: value})


def format_gain(gain: float, unit: str = "dB") -> str:
    _require_finite(gain, "gain")
    return f"{gain:.2f} {unit}"


def format_peak(peak: float) -> str:
    _require_finite(peak, "peak")
    return f"{peak:.6f}"


def format_loudness(value: float, unit: str) -> str:
    """Render a loudness or range value with its unit label, e.g. ``"-18.00 LUFS"``."""
    _require_finite(value, "loudness")
    return f"{value:.2f} {unit}"
