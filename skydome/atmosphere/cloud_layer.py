"""
CloudLayer — one animated layer of the cloud deck.

Each layer drifts its alpha map across the dome at a constant UV rate:

    offset(t) = (u0 + t·du, v0 + t·dv)   wrapped into [0, 1)

Layer state (opacity, motion) lives here; the material only sees the
resulting colour, offset, scale and alpha map.

Usage:
    layer = CloudLayer(material, 0)
    layer.set_opacity(0.8)
    layer.set_color((1.0, 1.0, 1.0))     # alpha := opacity
    layer.update_offset(sim_time_s)
"""
from __future__ import annotations
import logging
import math
from typing import Optional, Union

import numpy as np

from ..core import validate
from ..core.errors import InvalidArgumentError
from ..core.types import Color
from ..rendering.raster import Raster
from ..rendering.sky_material import SkyMaterialState
from ..rendering.textures import ImageService, clear_raster


DEFAULT_SCALE    = 1.5          # texture repeats per dome for the default maps
DEFAULT_SIZE     = 256
DEFAULT_COVERAGE = 0.55

# (u0, du, v0, dv), cycles and cycles/second
EVEN_MOTION = (0.4, -0.0005, 0.3, 0.003)
ODD_MOTION  = (0.0, 0.0003, 0.0, 0.001)

_log = logging.getLogger(__name__)
_default_rasters: dict[int, Raster] = {}


# ─────────────────────────────────────────────────────────────────────────────
# Procedural alpha map
# ─────────────────────────────────────────────────────────────────────────────

def generate_cloud_raster(size: int = DEFAULT_SIZE,
                          coverage: float = DEFAULT_COVERAGE,
                          seed: int = 42) -> Raster:
    """
    Tileable (size, size) cloud alpha map.

    Sum of sinusoids with integer frequencies over one period, so the left
    edge continues the right edge and the top continues the bottom.

    alpha = 0.0 → clear sky, 1.0 → fully opaque cloud
    """
    validate.in_range(size, "size", 4, 4096)
    validate.fraction(coverage, "coverage")
    if coverage < 0.02:
        return Raster.from_array(np.zeros((size, size), dtype=np.float32),
                                 name="clouds (clear)")

    # Angles over one period (0 → 2π)
    yy, xx = np.mgrid[0:size, 0:size].astype(np.float32)
    xa = xx * (2.0 * math.pi / size)
    ya = yy * (2.0 * math.pi / size)
    seed_f = float(seed)

    # Layer 1: large-scale cloud structures
    n1 = np.sin(2 * xa + seed_f * 1.3) * np.cos(3 * ya + seed_f * 0.9)
    # Layer 2: medium-scale structures
    n2 = np.sin(5 * xa + 4 * ya + seed_f * 2.1) * np.cos(6 * ya + seed_f * 1.7) * 0.5
    # Layer 3: fine texture
    n3 = np.sin(11 * xa - 7 * ya + seed_f * 3.7) * 0.25
    n4 = np.cos(13 * ya + 9 * xa + seed_f * 0.4) * 0.15

    noise = n1 + n2 + n3 + n4

    # Normalize to 0..1
    noise_min = float(noise.min())
    noise_range = max(float(noise.max()) - noise_min, 1e-6)
    noise_norm = (noise - noise_min) / noise_range

    threshold = max(0.0, min(0.99, 1.0 - coverage))

    # Soft edge
    edge_width = 0.12
    mask = np.clip((noise_norm - threshold) / edge_width, 0.0, 1.0)
    return Raster.from_array(mask.astype(np.float32), name=f"clouds {seed}")


def default_cloud_raster(layer_index: int) -> Raster:
    """Procedural map for one of the two default layers, built once."""
    raster = _default_rasters.get(layer_index)
    if raster is None:
        raster = generate_cloud_raster(seed=42 + 17 * layer_index)
        _default_rasters[layer_index] = raster
    return raster


# ─────────────────────────────────────────────────────────────────────────────
# Layer
# ─────────────────────────────────────────────────────────────────────────────

class CloudLayer:
    """
    Animation state of cloud layer `index` of a SkyMaterialState.

    Layers 0 and 1 start with a procedural map; the others start clear.
    Opacity starts at 0, so no layer is visible until it is set.
    """

    def __init__(self, material: SkyMaterialState, index: int,
                 image_service: Optional[ImageService] = None,
                 logger: Optional[logging.Logger] = None):
        validate.require_not_none(material, "material")
        validate.index(index, "cloud layer index", material.max_cloud_layers)
        self._log = logger or _log
        self.material      = material
        self.index         = index
        self.image_service = image_service
        self.opacity       = 0.0

        if index % 2 == 1:
            self.u0, self.u_rate, self.v0, self.v_rate = ODD_MOTION
        else:
            self.u0, self.u_rate, self.v0, self.v_rate = EVEN_MOTION

        if index < 2:
            material.add_clouds(index, default_cloud_raster(index))
            material.set_clouds_scale(index, DEFAULT_SCALE)
        else:
            self.clear_texture()

    # ── Appearance ───────────────────────────────────────────────────────────

    def clear_texture(self) -> None:
        """Bind the transparent placeholder: the layer absorbs no light."""
        self.material.add_clouds(self.index, clear_raster())

    def set_texture(self, texture: Union[str, Raster], scale: float) -> None:
        """
        Bind an alpha map, by path (through the image service) or as a Raster.

        scale : > 0, texture repeats per dome
        """
        validate.require_not_none(texture, "texture")
        validate.positive(scale, "scale")
        if isinstance(texture, Raster):
            raster = texture
        else:
            if self.image_service is None:
                raise InvalidArgumentError(
                    "no image service to load texture paths")
            raster = self.image_service.load(texture)

        self.material.add_clouds(self.index, raster)
        self.material.set_clouds_scale(self.index, scale)
        self._log.debug("cloud layer %d texture %r, scale %.3f",
                        self.index, raster, scale)

    def set_opacity(self, alpha: float) -> None:
        """Opacity in [0, 1]; takes effect at the next set_color()."""
        if not (0.0 <= alpha <= 1.0):
            self._log.error("alpha=%s", alpha)
        self.opacity = float(validate.fraction(alpha, "alpha"))

    def set_color(self, color: Color) -> None:
        """Forward an RGB colour to the material, with the opacity as alpha."""
        validate.require_not_none(color, "color")
        self.material.set_clouds_color(
            self.index, (color[0], color[1], color[2], self.opacity))

    # ── Motion ───────────────────────────────────────────────────────────────

    def set_motion(self, u0: float, u_rate: float,
                   v0: float, v_rate: float) -> None:
        """Starting offset (cycles) and drift rate (cycles/second)."""
        for value, name in ((u0, "u0"), (u_rate, "u_rate"),
                            (v0, "v0"), (v_rate, "v_rate")):
            if not math.isfinite(value):
                raise InvalidArgumentError(f"{name} should be finite")
        self.u0, self.u_rate = float(u0), float(u_rate)
        self.v0, self.v_rate = float(v0), float(v_rate)

    def offset_at(self, time: float) -> tuple[float, float]:
        return self.u0 + time * self.u_rate, self.v0 + time * self.v_rate

    def update_offset(self, time: float) -> None:
        """Set the material offset for animation time `time` (seconds)."""
        u, v = self.offset_at(time)
        self.material.set_clouds_offset(self.index, u, v)

    def __repr__(self) -> str:
        return (f"CloudLayer({self.index}, opacity={self.opacity:.2f}, "
                f"rate=({self.u_rate}, {self.v_rate}))")
