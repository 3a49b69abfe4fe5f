from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

Color     = Tuple[float, float, float]
ColorRGBA = Tuple[float, float, float, float]
UV        = Tuple[float, float]
Vector3   = Tuple[float, float, float]


class SlotState(Enum):
    """Lifecycle of a celestial-object slot in the material."""
    UNCONFIGURED = "unconfigured"   # never bound
    HIDDEN       = "hidden"         # bound, not drawn
    VISIBLE      = "visible"        # bound and drawn with its transform


@dataclass(frozen=True, slots=True)
class ObjectTransform:
    # texture-space placement of one object; transform_u/v are the rows of
    # the 2x2 basis, already divided by scale
    center:      UV
    scale:       float
    rotation:    Optional[UV]
    transform_u: UV
    transform_v: UV


@dataclass(frozen=True, slots=True)
class LightingSnapshot:
    """Everything the lighting sink needs for one frame."""
    ambient_color:    Color
    background_color: Color
    main_color:       Color
    main_direction:   Vector3   # toward the light source, unit length
    shadow_intensity: float     # [0, 1]
    bloom_intensity:  float     # [0, 1.7]
