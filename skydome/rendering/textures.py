"""
Texture sources for the sky materials.

- ImageService        : protocol for anything that turns a path into a Raster
- PygameImageService  : concrete loader backed by pygame.image, with a cache
- sun_disc_raster     : procedural sun (limb-darkened disc + gaussian glow)
- moon_phase_raster   : procedural moon disc lit for a given phase angle
- haze_raster         : horizon haze alpha map for the top dome
- clear_raster        : fully transparent placeholder

The sun disc fills DISC_DIAMETER of its texture width, leaving room for
the glow; a moon disc fills its whole texture.
"""

from __future__ import annotations
import logging
import math
from typing import Dict, Optional, Protocol

import numpy as np
import pygame

from ..core.errors import InvalidArgumentError
from ..core.dome_mesh import TOP_U, TOP_V, UV_SCALE
from .raster import Raster


DISC_DIAMETER = 0.25    # fraction of an object texture covered by the disc

SUN_DISC_COL  = (1.00, 1.00, 1.00)
SUN_GLOW_COL  = (1.00, 1.00, 1.00)
MOON_LIT_COL  = (0.95, 0.95, 0.92)
MOON_DARK_COL = (0.06, 0.06, 0.07)   # earthshine

_log = logging.getLogger(__name__)


class ImageService(Protocol):
    def load(self, path: str) -> Raster:
        ...


class PygameImageService:
    """
    Loads image files through pygame and converts them to Rasters.

    Loaded rasters are cached by path, so binding the same asset to several
    layers reads the file once. Missing or unreadable files raise
    InvalidArgumentError.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._log = logger or _log
        self._cache: Dict[str, Raster] = {}

    def load(self, path: str) -> Raster:
        key = str(path)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            surface = pygame.image.load(key)
        except (pygame.error, FileNotFoundError) as exc:
            raise InvalidArgumentError(f"cannot load texture {key!r}: {exc}") from exc

        # surfarray is indexed [x, y]; rasters are [row, column]
        rgb = pygame.surfarray.array3d(surface).transpose(1, 0, 2)
        rgb = rgb.astype(np.float32) / 255.0
        if surface.get_flags() & pygame.SRCALPHA:
            alpha = pygame.surfarray.array_alpha(surface).T.astype(np.float32) / 255.0
        else:
            alpha = np.ones(rgb.shape[:2], dtype=np.float32)

        raster = Raster(np.dstack([rgb, alpha]), name=key)
        self._cache[key] = raster
        self._log.debug("loaded texture %s (%dx%d)", key, raster.width, raster.height)
        return raster

    def clear_cache(self) -> None:
        self._cache.clear()


# ─────────────────────────────────────────────────────────────────────────────
# Procedural textures
# ─────────────────────────────────────────────────────────────────────────────

def _paint_disk(field, px, py, radius_px, colour, intensity):
    """Limb-darkened circular disk."""
    H, W = field.shape[:2]
    yy, xx = np.mgrid[0:H, 0:W].astype(np.float32)
    dr = np.sqrt((xx - px)**2 + (yy - py)**2)
    limb = np.sqrt(np.clip(1.0 - (dr / radius_px)**2, 0.0, 1.0))
    for c, col in enumerate(colour):
        field[:, :, c] += limb * intensity * col
    return dr <= radius_px


def _paint_glow(field, px, py, sigma, colour, intensity):
    """Gaussian glow/halo."""
    H, W = field.shape[:2]
    yy, xx = np.mgrid[0:H, 0:W].astype(np.float32)
    gauss = np.exp(-((xx - px)**2 + (yy - py)**2) / (2.0 * sigma**2))
    for c, col in enumerate(colour):
        field[:, :, c] += gauss * intensity * col
    return gauss


def sun_disc_raster(size: int = 128) -> Raster:
    """White sun disc with a soft glow, centred, transparent elsewhere."""
    if size < 4:
        raise InvalidArgumentError(f"size should be at least 4 (got {size})")
    c = (size - 1) / 2.0
    radius = 0.5 * DISC_DIAMETER * size

    field = np.zeros((size, size, 4), dtype=np.float32)
    inside = _paint_disk(field, c, c, radius, SUN_DISC_COL, 1.0)
    glow = _paint_glow(field, c, c, radius * 1.2, SUN_GLOW_COL, 0.35)
    field[:, :, 3] = np.where(inside, 1.0, np.clip(glow * 0.35, 0.0, 1.0))
    # flat-white disc: the material tints it by the object colour
    field[inside, :3] = 1.0
    return Raster(field, name="sun")


def moon_phase_raster(longitude_difference: float, size: int = 64) -> Raster:
    """
    Moon disc lit for an elongation (moon longitude − sun longitude).

    0 → new, π/2 → first quarter (lit on the right), π → full.
    """
    if size < 4:
        raise InvalidArgumentError(f"size should be at least 4 (got {size})")
    c = (size - 1) / 2.0
    radius = 0.5 * size - 0.5

    yy, xx = np.mgrid[0:size, 0:size].astype(np.float32)
    nx = (xx - c) / radius
    ny = (c - yy) / radius
    r2 = nx * nx + ny * ny
    inside = r2 <= 1.0
    nz = np.sqrt(np.clip(1.0 - r2, 0.0, 1.0))

    # direction to the sun as seen from the moon, viewer on +z
    sx = math.sin(longitude_difference)
    sz = -math.cos(longitude_difference)
    lit = np.clip(nx * sx + nz * sz, 0.0, 1.0)
    lit = np.clip(lit * 4.0, 0.0, 1.0)       # sharpen the terminator

    field = np.zeros((size, size, 4), dtype=np.float32)
    for ch in range(3):
        field[:, :, ch] = MOON_DARK_COL[ch] + lit * (MOON_LIT_COL[ch] - MOON_DARK_COL[ch])
    field[:, :, 3] = inside.astype(np.float32)
    field[~inside, :3] = 0.0
    return Raster(field, name=f"moon {longitude_difference:.3f}")


def clear_raster() -> Raster:
    """Fully transparent placeholder: a layer bound to it absorbs nothing."""
    return Raster.blank(1, 1, name="clear")


def haze_raster(size: int = 128) -> Raster:
    """
    Alpha map thickening toward the horizon circle of the dome texture.

    0 at the top, rising with the 4th power of the UV distance, opaque at
    and beyond the rim.
    """
    if size < 4:
        raise InvalidArgumentError(f"size should be at least 4 (got {size})")
    yy, xx = np.mgrid[0:size, 0:size].astype(np.float32)
    du = xx / size - TOP_U
    dv = yy / size - TOP_V
    r_norm = np.clip(np.sqrt(du * du + dv * dv) / UV_SCALE, 0.0, 1.0)   # 0=top, 1=horizon
    return Raster.from_array(r_norm ** 4, name="haze")
