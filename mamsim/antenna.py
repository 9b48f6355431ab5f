"""Dipole antenna with a configurable length-to-wavelength ratio."""

from __future__ import annotations

import enum
import math
from typing import Sequence

Vector = tuple[float, float, float]

_AXES: dict[str, Vector] = {
    "x": (1.0, 0.0, 0.0),
    "y": (0.0, 1.0, 0.0),
    "z": (0.0, 0.0, 1.0),
}


class PrintLevel(enum.IntEnum):
    """Detail levels for :meth:`DipoleAntenna.describe`; lower means more detail."""

    COMPLETE = -(2**31)
    TRACE = 0
    DEBUG = 1
    DETAIL = 2
    INFO = 3


def db_to_fraction(db: float) -> float:
    """Convert a decibel value to a linear power ratio."""
    return 10.0 ** (db / 10.0)


def parse_coord(text: str) -> Vector:
    """Parse an axis name ("x", "y", "z") or three comma separated numbers."""
    cleaned = text.strip()
    axis = _AXES.get(cleaned.lower())
    if axis is not None:
        return axis
    inner = cleaned.strip("()")
    parts = [part.strip() for part in inner.split(",")]
    if len(parts) != 3:
        raise ValueError(f"cannot parse coordinate: {text!r}")
    try:
        x, y, z = (float(part) for part in parts)
    except ValueError:
        raise ValueError(f"cannot parse coordinate: {text!r}") from None
    return (x, y, z)


def _ieee_divide(numerator: float, denominator: float) -> float:
    if denominator != 0.0:
        return numerator / denominator
    if numerator == 0.0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


class DipoleAntennaGain:
    """Radiation pattern of a dipole of given length at a given wavelength."""

    def __init__(
        self,
        wire_axis: str,
        length: float,
        wavelength: float,
        max_gain: float,
        min_gain: float,
    ) -> None:
        self.wire_axis = parse_coord(wire_axis)
        self.length = length
        self.wavelength = wavelength
        self.max_gain = max_gain
        self.min_gain = min_gain

    def compute_gain(self, direction: Sequence[float]) -> float:
        """Linear gain towards ``direction``, a unit vector.

        Along the wire axis the pattern is undefined and the result is NaN.
        """
        dot = sum(d * w for d, w in zip(direction, self.wire_axis))
        angle = math.acos(max(-1.0, min(1.0, dot)))
        ratio = self.length / self.wavelength
        numerator = math.cos(math.pi * ratio * math.cos(angle)) - math.cos(math.pi * ratio)
        pattern = _ieee_divide(numerator, math.sin(angle))
        normalised = _ieee_divide(pattern, 1.0 - math.cos(math.pi * ratio))
        return self.max_gain * normalised * normalised


class DipoleAntenna:
    """Dipole antenna configured with gains in decibels and sizes in metres."""

    def __init__(
        self,
        max_gain_db: float,
        min_gain_db: float,
        wire_axis: str,
        length: float,
        wavelength: float,
    ) -> None:
        self.gain = DipoleAntennaGain(
            wire_axis,
            length,
            wavelength,
            db_to_fraction(max_gain_db),
            db_to_fraction(min_gain_db),
        )

    def describe(self, level: int = PrintLevel.DETAIL) -> str:
        """One-line description; the length is shown only at detail level or finer."""
        parts = ["DipoleAntenna"]
        if level <= PrintLevel.DETAIL:
            parts.append(f"length = {self.gain.length:g} m")
        parts.append(f"maxGain = {self.gain.max_gain:g}")
        parts.append(f"minGain = {self.gain.min_gain:g}")
        parts.append(f"lambda = {self.gain.wavelength:g} m")
        return ", ".join(parts)

    def __str__(self) -> str:
        return self.describe()