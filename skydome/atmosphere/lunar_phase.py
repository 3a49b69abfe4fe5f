"""
LunarPhase — named phases of the moon and the illumination they imply.

A phase is identified by the moon's celestial longitude minus the sun's:
0 → new, π/2 → first quarter, π → full. CUSTOM means the difference is
supplied by the caller instead of taken from this table.
"""
from __future__ import annotations
import math
from enum import Enum
from typing import Optional

from ..core.coords import saturate


class LunarPhase(Enum):
    FULL            = "full"
    WANING_CRESCENT = "waning-crescent"
    WANING_GIBBOUS  = "waning-gibbous"
    WAXING_CRESCENT = "waxing-crescent"
    WAXING_GIBBOUS  = "waxing-gibbous"
    NEW             = "new"
    CUSTOM          = "custom"

    def describe(self) -> str:
        return self.value

    @classmethod
    def from_description(cls, description: str) -> Optional["LunarPhase"]:
        """Phase with the given description, or None if there is none."""
        for phase in cls:
            if phase.value == description:
                return phase
        return None

    @property
    def longitude_difference(self) -> Optional[float]:
        """Moon longitude minus sun longitude (radians), None for CUSTOM."""
        return _LONGITUDE_DIFFERENCE.get(self)

    @property
    def has_texture(self) -> bool:
        """True for the phases that own a slot in the sky material."""
        return self in TEXTURED_PHASES

    def image_path(self) -> Optional[str]:
        if not self.has_texture:
            return None
        return f"Textures/skies/moon/{self.value}.png"


_LONGITUDE_DIFFERENCE = {
    LunarPhase.FULL:            math.pi,
    LunarPhase.WANING_CRESCENT: 1.75 * math.pi,
    LunarPhase.WANING_GIBBOUS:  1.25 * math.pi,
    LunarPhase.WAXING_CRESCENT: 0.25 * math.pi,
    LunarPhase.WAXING_GIBBOUS:  0.75 * math.pi,
    LunarPhase.NEW:             0.0,
}

# Material slot order after the sun (slot 0)
TEXTURED_PHASES = (
    LunarPhase.FULL,
    LunarPhase.WANING_CRESCENT,
    LunarPhase.WANING_GIBBOUS,
    LunarPhase.WAXING_CRESCENT,
    LunarPhase.WAXING_GIBBOUS,
)


def nearest_textured_phase(longitude_difference: float) -> LunarPhase:
    """Textured preset whose longitude difference is angularly closest."""
    def distance(phase: LunarPhase) -> float:
        d = abs(phase.longitude_difference - longitude_difference) % (2.0 * math.pi)
        return min(d, 2.0 * math.pi - d)
    return min(TEXTURED_PHASES, key=distance)


def moon_illumination(longitude_difference: float,
                      lunar_latitude: float = 0.0) -> float:
    """
    Weight in [0, 1] of moonlight for a given phase geometry.

    1 at full moon, falling off linearly with the angle from full.
    """
    full_angle = abs(longitude_difference - math.pi)
    if lunar_latitude != 0.0:
        full_angle = math.acos(math.cos(full_angle) * math.cos(lunar_latitude))
    return 1.0 - saturate(0.6 * full_angle)
