"""
Construction-time configuration for SkyControl, plus the engine defaults.

Everything that can change while the sky runs (hour, phase, cloudiness...)
is a SkyControl setter; what fixes the geometry and the material layout is
here and cannot change afterwards.
"""
from __future__ import annotations
import math
from dataclasses import dataclass

from .core.dome_mesh import QUADRANT_SAMPLES, RIM_SAMPLES, TOP_U, TOP_V, UV_SCALE
from .core.errors import InvalidArgumentError
from .core.sun_and_stars import DEFAULT_LATITUDE
from .rendering.sky_material import STRETCH_COEFFICIENT
from .rendering.textures import DISC_DIAMETER


NUM_CLOUD_LAYERS = 6
SUN_SCALE        = 0.08      # sun texture size relative to the dome texture
MOON_SCALE       = 0.02
MAX_TOP_VERTICAL_ANGLE = 1.785   # radians, keeps the rim inside the texture

__all__ = [
    "SkyConfig", "NUM_CLOUD_LAYERS", "SUN_SCALE", "MOON_SCALE",
    "MAX_TOP_VERTICAL_ANGLE", "DEFAULT_LATITUDE", "DISC_DIAMETER",
    "QUADRANT_SAMPLES", "RIM_SAMPLES", "STRETCH_COEFFICIENT",
    "TOP_U", "TOP_V", "UV_SCALE",
]


@dataclass(frozen=True, slots=True)
class SkyConfig:
    """
    cloud_flattening : [0, 1); > 0 puts the clouds on their own flattened dome
    star_motion      : rotate the star domes with sidereal time
    bottom_dome      : add a dome below the horizon
    rim_samples      : dome samples around the rim, ≥ 3
    quadrant_samples : dome samples from rim to top, ≥ 2
    num_cloud_layers : cloud layers on the cloud-bearing material
    """
    cloud_flattening: float = 0.0
    star_motion:      bool  = False
    bottom_dome:      bool  = False
    rim_samples:      int   = RIM_SAMPLES
    quadrant_samples: int   = QUADRANT_SAMPLES
    num_cloud_layers: int   = NUM_CLOUD_LAYERS

    def __post_init__(self):
        if not (0.0 <= self.cloud_flattening < 1.0):
            raise InvalidArgumentError(
                "cloud_flattening should be between 0 and 1, "
                f"excluding 1 (got {self.cloud_flattening})")
        if self.rim_samples < 3:
            raise InvalidArgumentError(
                f"rim_samples should be at least 3 (got {self.rim_samples})")
        if self.quadrant_samples < 2:
            raise InvalidArgumentError(
                f"quadrant_samples should be at least 2 (got {self.quadrant_samples})")
        if self.num_cloud_layers < 0:
            raise InvalidArgumentError(
                f"num_cloud_layers should not be negative (got {self.num_cloud_layers})")

    @property
    def separate_clouds_dome(self) -> bool:
        return self.cloud_flattening > 0.0

    @property
    def clouds_y_scale(self) -> float:
        return 1.0 - self.cloud_flattening


def solar_scale(diameter: float) -> float:
    """Sun texture scale showing a disc of `diameter` radians."""
    return diameter * UV_SCALE / (DISC_DIAMETER * math.pi / 2.0)


def lunar_scale(diameter: float) -> float:
    """Moon texture scale showing a disc of `diameter` radians."""
    return diameter * UV_SCALE / (math.pi / 2.0)
