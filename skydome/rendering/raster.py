"""
Raster — an RGBA float image held in memory, sampleable by texture coordinate.

Pixels are float32 in [0, 1], shape (H, W, 4). Row 0 corresponds to v = 0
and column 0 to u = 0; texel (x, y) sits at texture coordinate
(x / W, y / H). Sampling wraps in both directions, so cloud maps tile.
"""

from __future__ import annotations
from typing import Tuple

import numpy as np
from scipy.ndimage import map_coordinates

from ..core.errors import InvalidArgumentError


class Raster:
    __slots__ = ("_rgba", "name")

    def __init__(self, rgba: np.ndarray, name: str = ""):
        rgba = np.asarray(rgba, dtype=np.float32)
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise InvalidArgumentError(
                f"raster should have shape (H, W, 4) (got {rgba.shape})")
        if rgba.shape[0] < 1 or rgba.shape[1] < 1:
            raise InvalidArgumentError("raster should not be empty")
        self._rgba = np.clip(rgba, 0.0, 1.0)
        self._rgba.setflags(write=False)
        self.name = name

    @classmethod
    def from_array(cls, pixels: np.ndarray, name: str = "") -> "Raster":
        """
        Build from a (H, W) alpha map, an (H, W, 3) RGB image or an
        (H, W, 4) RGBA image. A single channel becomes white with that
        value in every channel (so red == alpha).
        """
        a = np.asarray(pixels, dtype=np.float32)
        if a.ndim == 2:
            rgba = np.repeat(a[:, :, np.newaxis], 4, axis=2)
        elif a.ndim == 3 and a.shape[2] == 3:
            alpha = np.ones(a.shape[:2] + (1,), dtype=np.float32)
            rgba = np.concatenate([a, alpha], axis=2)
        elif a.ndim == 3 and a.shape[2] == 4:
            rgba = a
        else:
            raise InvalidArgumentError(
                f"unsupported pixel array shape {a.shape}")
        return cls(rgba, name)

    @classmethod
    def blank(cls, width: int = 1, height: int = 1, name: str = "clear") -> "Raster":
        """Fully transparent black raster."""
        return cls(np.zeros((height, width, 4), dtype=np.float32), name)

    # ── Properties ───────────────────────────────────────────────────────────

    @property
    def width(self) -> int:
        return self._rgba.shape[1]

    @property
    def height(self) -> int:
        return self._rgba.shape[0]

    @property
    def rgba(self) -> np.ndarray:
        """Read-only (H, W, 4) view."""
        return self._rgba

    @property
    def red(self) -> np.ndarray:
        return self._rgba[:, :, 0]

    def pixel(self, x: int, y: int) -> Tuple[float, float, float, float]:
        """RGBA of one texel, integer coordinates wrapped."""
        r, g, b, a = self._rgba[y % self.height, x % self.width]
        return float(r), float(g), float(b), float(a)

    # ── Sampling ─────────────────────────────────────────────────────────────

    def sample_red(self, u: float, v: float) -> float:
        """
        Bilinear sample of the red channel at (u, v), wrapped into [0, 1).

        Blends the 4 nearest texels, weighting each by its proximity.
        """
        x = (u % 1.0) * self.width
        y = (v % 1.0) * self.height
        value = map_coordinates(self.red, [[y], [x]], order=1,
                                mode="grid-wrap")
        return float(value[0])

    def __repr__(self) -> str:
        return f"Raster({self.name!r}, {self.width}x{self.height})"
