"""
SkyMaterialState — procedural shading-parameter store for one sky dome.

Holds everything a dome shader needs, per frame:
  - celestial-object slots  (texture, colour, glow, texture-space transform)
  - cloud-layer slots        (alpha map, colour, glow, offset, scale)
  - global parameters        (clear colour/glow, haze, stars, top coordinate)

and answers "how much light gets through the clouds here?" by bilinearly
sampling each bound cloud alpha map.

The renderer never sees attributes directly: export_parameters() returns a
validated, read-only mapping keyed by (slot index or None, ParamKind).

Usage:
    material = SkyMaterialState(max_objects=6, max_cloud_layers=6)
    material.add_object(0, sun_disc_raster())
    material.set_object_transform(0, (0.5, 0.3), 0.08)
    material.add_clouds(0, cloud_raster)
    t = material.get_object_transmission(0)
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence, Tuple

from ..core.coords import HALF_PI, clamp, modulo
from ..core.dome_mesh import TOP_U, TOP_V, UV_SCALE
from ..core.errors import (
    ConfigurationOverflowError, IllegalStateError, InvalidArgumentError,
)
from ..core.types import UV, ColorRGBA, ObjectTransform, SlotState
from ..core import validate
from .raster import Raster


TOP_UV = (TOP_U, TOP_V)

# Radial stretch that undoes the projection's compression near the rim
STRETCH_COEFFICIENT = (HALF_PI - 1.0) / (UV_SCALE * UV_SCALE)

WHITE = (1.0, 1.0, 1.0, 1.0)
BLACK = (0.0, 0.0, 0.0, 1.0)
DEFAULT_CLEAR_COLOR = (0.4, 0.6, 1.0, 1.0)

_log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Material shapes
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class MaterialShape:
    name:             str
    max_objects:      int
    max_cloud_layers: int

    def covers(self, num_objects: int, num_cloud_layers: int) -> bool:
        return (num_objects <= self.max_objects
                and num_cloud_layers <= self.max_cloud_layers)


# Checked in order; first match wins
SHAPES: Tuple[MaterialShape, ...] = (
    MaterialShape("dome02", 0, 2),
    MaterialShape("dome20", 2, 0),
    MaterialShape("dome22", 2, 2),
    MaterialShape("dome06", 0, 6),
    MaterialShape("dome60", 6, 0),
    MaterialShape("dome66", 6, 6),
)


def pick_shape(num_objects: int, num_cloud_layers: int,
               logger: Optional[logging.Logger] = None) -> MaterialShape:
    """Smallest supported shape holding the requested slot counts."""
    log = logger or _log
    validate.non_negative(num_objects, "object count")
    validate.non_negative(num_cloud_layers, "cloud layer count")
    for shape in SHAPES:
        if shape.covers(num_objects, num_cloud_layers):
            return shape

    if num_objects > SHAPES[-1].max_objects:
        log.error("num_objects=%d", num_objects)
        raise ConfigurationOverflowError("too many objects")
    log.error("num_cloud_layers=%d", num_cloud_layers)
    raise ConfigurationOverflowError("too many cloud layers")


# ─────────────────────────────────────────────────────────────────────────────
# Parameter keys
# ─────────────────────────────────────────────────────────────────────────────

class ParamKind(Enum):
    """Every parameter the dome shader accepts, tagged with its scope."""
    CLEAR_COLOR        = ("global", "color",  "ClearColor")
    CLEAR_GLOW         = ("global", "color",  "ClearGlow")
    HAZE_COLOR         = ("global", "color",  "HazeColor")
    HAZE_ALPHA_MAP     = ("global", "raster", "HazeAlphaMap")
    STARS_COLOR_MAP    = ("global", "raster", "StarsColorMap")
    TOP_COORD          = ("global", "uv",     "TopCoord")

    OBJECT_COLOR_MAP   = ("object", "raster", "ColorMap")
    OBJECT_COLOR       = ("object", "color",  "Color")
    OBJECT_GLOW        = ("object", "color",  "Glow")
    OBJECT_CENTER      = ("object", "uv",     "Center")
    OBJECT_TRANSFORM_U = ("object", "vector", "TransformU")
    OBJECT_TRANSFORM_V = ("object", "vector", "TransformV")
    OBJECT_VISIBLE     = ("object", "flag",   "Visible")

    CLOUDS_ALPHA_MAP   = ("clouds", "raster", "AlphaMap")
    CLOUDS_COLOR       = ("clouds", "color",  "Color")
    CLOUDS_GLOW        = ("clouds", "color",  "Glow")
    CLOUDS_OFFSET      = ("clouds", "uv",     "Offset")
    CLOUDS_SCALE       = ("clouds", "scale",  "Scale")

    @property
    def scope(self) -> str:
        return self.value[0]

    @property
    def value_type(self) -> str:
        return self.value[1]

    def shader_name(self, index: Optional[int] = None) -> str:
        """Parameter name in the dome material definition."""
        if self.scope == "global":
            return self.value[2]
        prefix = "Object" if self.scope == "object" else "Clouds"
        return f"{prefix}{index}{self.value[2]}"


ParamKey = Tuple[Optional[int], ParamKind]


def _check_param(key: ParamKey, value) -> None:
    index, kind = key
    if (index is None) != (kind.scope == "global"):
        raise InvalidArgumentError(f"bad slot index {index} for {kind.name}")

    kind_type = kind.value_type
    if kind_type == "raster":
        ok = isinstance(value, Raster)
    elif kind_type == "flag":
        ok = isinstance(value, bool)
    elif kind_type == "scale":
        ok = isinstance(value, float) and value > 0.0
    else:
        size = 4 if kind_type == "color" else 2
        ok = (isinstance(value, tuple) and len(value) == size
              and all(math.isfinite(c) for c in value))
        if ok and kind_type == "color":
            ok = all(c >= 0.0 for c in value)
        if ok and kind_type == "uv":
            ok = all(0.0 <= c <= 1.0 for c in value)
    if not ok:
        raise InvalidArgumentError(f"bad value for {kind.name}: {value!r}")


def _rgba(color: Sequence[float], name: str = "color") -> ColorRGBA:
    validate.require_not_none(color, name)
    if len(color) not in (3, 4):
        raise InvalidArgumentError(
            f"{name} should have 3 or 4 components (got {len(color)})")
    if not all(math.isfinite(c) and c >= 0.0 for c in color):
        raise InvalidArgumentError(
            f"{name} components should be finite and non-negative (got {color})")
    if len(color) == 3:
        return (float(color[0]), float(color[1]), float(color[2]), 1.0)
    return tuple(float(c) for c in color)


def _uv(coordinates: Sequence[float], name: str = "coordinates") -> UV:
    validate.require_not_none(coordinates, name)
    if len(coordinates) != 2:
        raise InvalidArgumentError(
            f"{name} should have 2 components (got {len(coordinates)})")
    if not all(math.isfinite(c) for c in coordinates):
        raise InvalidArgumentError(f"{name} should be finite (got {coordinates})")
    return float(coordinates[0]), float(coordinates[1])


# ─────────────────────────────────────────────────────────────────────────────
# Slots
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(slots=True)
class ObjectSlot:
    texture:   Raster
    transform: ObjectTransform
    color:     ColorRGBA = WHITE
    glow:      ColorRGBA = BLACK
    visible:   bool      = True


@dataclass(slots=True)
class CloudSlot:
    alpha_map: Raster
    color:     Tuple[float, float, float] = (1.0, 1.0, 1.0)
    alpha:     float = 1.0
    glow:      ColorRGBA = BLACK
    offset:    UV    = (0.0, 0.0)
    scale:     float = 1.0

    def transparency(self, coordinates: UV) -> float:
        """1 − opacity of this layer at sky coordinates."""
        u = modulo(coordinates[0] * self.scale + self.offset[0], 1.0)
        v = modulo(coordinates[1] * self.scale + self.offset[1], 1.0)
        opacity = self.alpha_map.sample_red(u, v) * self.alpha
        return 1.0 - opacity


def compute_object_transform(center: UV, scale: float,
                             rotation: Optional[UV] = None) -> ObjectTransform:
    """
    Texture-space basis for an object centred at `center`.

    The basis is aligned with the radial direction from the top, shrunk
    along the tangent by the projection's stretch factor, optionally turned
    so the object's "up" follows `rotation` (a cos/sin pair), then divided
    by `scale`.
    """
    ox = center[0] - TOP_UV[0]
    oy = center[1] - TOP_UV[1]
    top_dist = math.hypot(ox, oy)

    if top_dist > 0.0:
        a = ox / top_dist
        b = oy / top_dist
        tu = (b, -a)
        tv = (a, b)
        stretch = 1.0 + STRETCH_COEFFICIENT * top_dist * top_dist
        tu = (tu[0] / stretch, tu[1] / stretch)
        if rotation is not None:
            trans_u = (tu[0] * b + tv[0] * a, tu[1] * b + tv[1] * a)
            trans_v = (tv[0] * b - tu[0] * a, tv[1] * b - tu[1] * a)
        else:
            trans_u, trans_v = tu, tv
    else:
        trans_u = (1.0, 0.0)
        trans_v = (0.0, 1.0)

    if rotation is not None:
        tu = trans_v
        tv = (-trans_u[0], -trans_u[1])
        length = math.hypot(rotation[0], rotation[1])
        nx, ny = rotation[0] / length, rotation[1] / length
        trans_u = (tu[0] * nx + tv[0] * ny, tu[1] * nx + tv[1] * ny)
        trans_v = (tv[0] * nx - tu[0] * ny, tv[1] * nx - tu[1] * ny)

    trans_u = (trans_u[0] / scale, trans_u[1] / scale)
    trans_v = (trans_v[0] / scale, trans_v[1] / scale)
    return ObjectTransform(center=(center[0], center[1]), scale=scale,
                           rotation=rotation, transform_u=trans_u,
                           transform_v=trans_v)


# ─────────────────────────────────────────────────────────────────────────────
# Material state
# ─────────────────────────────────────────────────────────────────────────────

class SkyMaterialState:
    """
    Shading parameters for a dome with up to `max_objects` celestial objects
    and `max_cloud_layers` cloud layers.

    Slots start UNCONFIGURED; add_object/add_clouds bind them. Using a slot
    before binding raises IllegalStateError; an index outside the configured
    range raises InvalidArgumentError.
    """

    def __init__(self, max_objects: int = 0, max_cloud_layers: int = 0,
                 logger: Optional[logging.Logger] = None):
        self._log = logger or _log
        self.shape = pick_shape(max_objects, max_cloud_layers, self._log)
        self.max_objects      = int(max_objects)
        self.max_cloud_layers = int(max_cloud_layers)

        self._objects: Dict[int, ObjectSlot] = {}
        self._clouds:  Dict[int, CloudSlot]  = {}
        self._globals: Dict[ParamKind, object] = {
            ParamKind.CLEAR_COLOR: DEFAULT_CLEAR_COLOR,
            ParamKind.TOP_COORD:   TOP_UV,
        }
        self._log.debug("sky material %s for %d objects, %d cloud layers",
                        self.shape.name, self.max_objects, self.max_cloud_layers)

    # ── Global parameters ────────────────────────────────────────────────────

    def set_clear_color(self, color) -> None:
        self._globals[ParamKind.CLEAR_COLOR] = _rgba(color)

    def get_clear_color(self) -> ColorRGBA:
        return self._globals[ParamKind.CLEAR_COLOR]

    def set_clear_glow(self, color) -> None:
        self._globals[ParamKind.CLEAR_GLOW] = _rgba(color)

    def get_clear_glow(self) -> Optional[ColorRGBA]:
        return self._globals.get(ParamKind.CLEAR_GLOW)

    def add_haze(self, alpha_map: Raster) -> None:
        self._globals[ParamKind.HAZE_ALPHA_MAP] = self._raster(alpha_map)

    def set_haze_color(self, color) -> None:
        self._globals[ParamKind.HAZE_COLOR] = _rgba(color)

    def get_haze_color(self) -> Optional[ColorRGBA]:
        return self._globals.get(ParamKind.HAZE_COLOR)

    def add_stars(self, color_map: Raster) -> None:
        self._globals[ParamKind.STARS_COLOR_MAP] = self._raster(color_map)

    def remove_stars(self) -> None:
        self._globals.pop(ParamKind.STARS_COLOR_MAP, None)

    def has_stars(self) -> bool:
        return ParamKind.STARS_COLOR_MAP in self._globals

    # ── Objects ──────────────────────────────────────────────────────────────

    def add_object(self, index: int, texture: Raster) -> None:
        """Bind a colour map; defaults are applied on the first bind only."""
        self._object_index(index)
        texture = self._raster(texture)
        slot = self._objects.get(index)
        if slot is None:
            self._objects[index] = ObjectSlot(
                texture=texture,
                transform=compute_object_transform(TOP_UV, 1.0, None))
        else:
            slot.texture = texture
        self._log.debug("object %d bound to %r", index, texture)

    def object_state(self, index: int) -> SlotState:
        self._object_index(index)
        slot = self._objects.get(index)
        if slot is None:
            return SlotState.UNCONFIGURED
        return SlotState.VISIBLE if slot.visible else SlotState.HIDDEN

    def set_object_color(self, index: int, color) -> None:
        slot = self._object(index)
        slot.color = _rgba(color)

    def get_object_color(self, index: int) -> ColorRGBA:
        return self._object(index).color

    def set_object_glow(self, index: int, color) -> None:
        slot = self._object(index)
        slot.glow = _rgba(color)

    def get_object_glow(self, index: int) -> ColorRGBA:
        return self._object(index).glow

    def get_object_transform(self, index: int) -> ObjectTransform:
        return self._object(index).transform

    def get_object_center(self, index: int) -> UV:
        return self._object(index).transform.center

    def get_object_scale(self, index: int) -> float:
        return self._object(index).transform.scale

    def get_object_rotation(self, index: int) -> Optional[UV]:
        return self._object(index).transform.rotation

    def get_object_texture(self, index: int) -> Raster:
        return self._object(index).texture

    def set_object_transform(self, index: int, center_uv, scale: float,
                             rotation=None) -> None:
        """
        Place an object and make it visible.

        center_uv : texture coordinates of the object's centre
        scale     : > 0, ratio of the object's size to the dome's
        rotation  : optional non-zero (cos, sin) pair for the object's "up"
        """
        self._object_index(index)
        center = _uv(center_uv, "center")
        validate.fraction(center[0], "center u")
        validate.fraction(center[1], "center v")
        validate.positive(scale, "scale")
        if rotation is not None:
            validate.non_zero_vector(rotation, "rotation vector", 2)
            rotation = (float(rotation[0]), float(rotation[1]))
        slot = self._object(index)

        slot.transform = compute_object_transform(center, float(scale), rotation)
        slot.visible = True

    def hide_object(self, index: int) -> None:
        """Stop drawing an object; its last transform is kept."""
        self._object(index).visible = False

    # ── Cloud layers ─────────────────────────────────────────────────────────

    def add_clouds(self, index: int, alpha_map: Raster) -> None:
        """Bind an alpha map; defaults are applied on the first bind only."""
        self._layer_index(index)
        alpha_map = self._raster(alpha_map)
        slot = self._clouds.get(index)
        if slot is None:
            self._clouds[index] = CloudSlot(alpha_map=alpha_map)
        else:
            slot.alpha_map = alpha_map
        self._log.debug("cloud layer %d bound to %r", index, alpha_map)

    def is_cloud_layer_bound(self, index: int) -> bool:
        self._layer_index(index)
        return index in self._clouds

    def set_clouds_color(self, index: int, color) -> None:
        """RGB becomes the layer colour; the alpha becomes its opacity."""
        rgba = _rgba(color)
        validate.fraction(rgba[3], "alpha")
        slot = self._layer(index)
        slot.color = rgba[:3]
        slot.alpha = rgba[3]

    def get_clouds_color(self, index: int) -> ColorRGBA:
        slot = self._layer(index)
        return slot.color + (slot.alpha,)

    def set_clouds_glow(self, index: int, color) -> None:
        slot = self._layer(index)
        slot.glow = _rgba(color)

    def get_clouds_glow(self, index: int) -> ColorRGBA:
        return self._layer(index).glow

    def set_clouds_offset(self, index: int, u: float, v: float) -> None:
        offset = _uv((u, v), "offset")
        slot = self._layer(index)
        slot.offset = (modulo(offset[0], 1.0), modulo(offset[1], 1.0))

    def get_clouds_offset(self, index: int) -> UV:
        return self._layer(index).offset

    def set_clouds_scale(self, index: int, scale: float) -> None:
        validate.positive(scale, "scale")
        slot = self._layer(index)
        slot.scale = float(scale)

    def get_clouds_scale(self, index: int) -> float:
        return self._layer(index).scale

    def get_clouds_texture(self, index: int) -> Raster:
        return self._layer(index).alpha_map

    # ── Transmission ─────────────────────────────────────────────────────────

    def get_transmission(self, sky_coordinates) -> float:
        """
        Fraction of light passing through every bound cloud layer at the
        given sky coordinates, in [0, 1].
        """
        coordinates = _uv(sky_coordinates)
        result = 1.0
        for index in sorted(self._clouds):
            result *= self._clouds[index].transparency(coordinates)
        return clamp(result, 0.0, 1.0)

    def get_object_transmission(self, index: int) -> float:
        """Transmission at the object's (last known) centre."""
        return self.get_transmission(self._object(index).transform.center)

    # ── Export ───────────────────────────────────────────────────────────────

    def export_parameters(self) -> Mapping[ParamKey, object]:
        """Validated read-only snapshot of every parameter, for the renderer."""
        params: Dict[ParamKey, object] = {}
        for kind, value in self._globals.items():
            params[(None, kind)] = value

        for index, obj in self._objects.items():
            t = obj.transform
            params[(index, ParamKind.OBJECT_COLOR_MAP)]   = obj.texture
            params[(index, ParamKind.OBJECT_COLOR)]       = obj.color
            params[(index, ParamKind.OBJECT_GLOW)]        = obj.glow
            params[(index, ParamKind.OBJECT_CENTER)]      = t.center
            params[(index, ParamKind.OBJECT_TRANSFORM_U)] = t.transform_u
            params[(index, ParamKind.OBJECT_TRANSFORM_V)] = t.transform_v
            params[(index, ParamKind.OBJECT_VISIBLE)]     = obj.visible

        for index, layer in self._clouds.items():
            params[(index, ParamKind.CLOUDS_ALPHA_MAP)] = layer.alpha_map
            params[(index, ParamKind.CLOUDS_COLOR)]     = layer.color + (layer.alpha,)
            params[(index, ParamKind.CLOUDS_GLOW)]      = layer.glow
            params[(index, ParamKind.CLOUDS_OFFSET)]    = layer.offset
            params[(index, ParamKind.CLOUDS_SCALE)]     = layer.scale

        for key, value in params.items():
            _check_param(key, value)
        return MappingProxyType(params)

    # ── Helpers ──────────────────────────────────────────────────────────────

    @staticmethod
    def _raster(texture) -> Raster:
        validate.require_not_none(texture, "texture")
        if not isinstance(texture, Raster):
            raise InvalidArgumentError(
                f"texture should be a Raster (got {type(texture).__name__})")
        return texture

    def _object_index(self, index: int) -> int:
        return validate.index(index, "object index", self.max_objects)

    def _layer_index(self, index: int) -> int:
        return validate.index(index, "cloud layer index", self.max_cloud_layers)

    def _object(self, index: int) -> ObjectSlot:
        self._object_index(index)
        slot = self._objects.get(index)
        if slot is None:
            raise IllegalStateError(f"object {index} not yet added")
        return slot

    def _layer(self, index: int) -> CloudSlot:
        self._layer_index(index)
        slot = self._clouds.get(index)
        if slot is None:
            raise IllegalStateError(f"cloud layer {index} not yet added")
        return slot

    def __repr__(self) -> str:
        return (f"SkyMaterialState({self.shape.name}, "
                f"objects={sorted(self._objects)}, clouds={sorted(self._clouds)})")
