"""Angle modes and conversion between degrees, radians and gradians."""

import math
from enum import Enum


class AngleMode(Enum):
    """Angle unit used by the trigonometric functions."""

    DEGREES = "DEG"
    RADIANS = "RAD"
    GRADIANS = "GRAD"

    @classmethod
    def parse(cls, value: str) -> "AngleMode":
        """Parse a mode from its label or name (case-insensitive).

        Raises:
            ValueError: If the text names no mode.
        """
        text = str(value).strip().upper()
        for mode in cls:
            if text in (mode.value, mode.name):
                return mode
        raise ValueError(f"Unknown angle mode: {value}")

    def next(self) -> "AngleMode":
        """Return the mode that follows this one in the DEG, RAD, GRAD cycle."""
        order = list(AngleMode)
        return order[(order.index(self) + 1) % len(order)]

    @property
    def suffix(self) -> str:
        """Unit suffix used when showing an angle argument."""
        return {
            AngleMode.DEGREES: "°",
            AngleMode.RADIANS: "rad",
            AngleMode.GRADIANS: "grad",
        }[self]


# Units per half turn
_HALF_TURN = {
    AngleMode.DEGREES: 180.0,
    AngleMode.GRADIANS: 200.0,
}


def convert_angle(angle: float, mode: AngleMode, to_radians: bool = True) -> float:
    """Convert an angle between the given mode and radians.

    Args:
        angle: Angle value.
        mode: Unit the non-radian side is expressed in.
        to_radians: Convert mode -> radians when True, radians -> mode otherwise.

    Returns:
        Converted angle. Radians mode returns the input unchanged.
    """
    if mode is AngleMode.RADIANS:
        return angle

    half_turn = _HALF_TURN[mode]
    if to_radians:
        return angle * (math.pi / half_turn)
    return angle * (half_turn / math.pi)
