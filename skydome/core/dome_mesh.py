"""
DomeMesh — hemispherical dome geometry with an azimuthal-equidistant UV map.

Angular distance from the dome's top maps linearly to texture distance
from the top anchor:

    uvDistance = uvScale · angleFromTop / (π/2)

and the azimuth around the vertical (+y) axis becomes the direction of the
UV offset. With the defaults the horizon lands on a circle of radius 0.44
around (0.5, 0.5).

Buffers (numpy, built once and never patched):
    positions  (N, 3) float32   unit-sphere points, top vertex last
    texcoords  (N, 2) float32
    normals    (N, 3) float32   outward, or negated when inward-facing
    indices    (T, 3) int32     triangle list

Usage:
    mesh = DomeMesh(rim_samples=60, quadrant_samples=16)
    uv   = mesh.direction_uv(sun_direction)     # None → below the rim
"""

from __future__ import annotations
import logging
import math
from typing import Optional, Tuple

import numpy as np

from .coords import HALF_PI, TWO_PI
from .errors import InvalidArgumentError
from . import validate


TOP_U     = 0.5
TOP_V     = 0.5
UV_SCALE  = 0.44     # UV distance from top to horizon
RIM_SAMPLES      = 60
QUADRANT_SAMPLES = 16

_log = logging.getLogger(__name__)


class DomeMesh:
    """
    Dome of unit radius centred on the origin, pole on +y.

    Parameters
    ----------
    rim_samples      : samples around the rim, ≥ 3
    quadrant_samples : samples from rim to top, ≥ 2
    top_u, top_v     : texture coordinates of the top vertex, [0, 1]
    uv_scale         : UV distance from top to rim (π/2 from top), (0, 0.5)
    inward_facing    : True → normals point toward the centre
    vertical_angle   : angle from top to rim, (0, π)
    """

    def __init__(self,
                 rim_samples: int = RIM_SAMPLES,
                 quadrant_samples: int = QUADRANT_SAMPLES,
                 top_u: float = TOP_U,
                 top_v: float = TOP_V,
                 uv_scale: float = UV_SCALE,
                 inward_facing: bool = True,
                 vertical_angle: float = HALF_PI,
                 logger: Optional[logging.Logger] = None):
        self._log = logger or _log

        if rim_samples < 3:
            self._log.error("rim_samples=%d", rim_samples)
            raise InvalidArgumentError("need at least 3 samples on the rim")
        if quadrant_samples < 2:
            self._log.error("quadrant_samples=%d", quadrant_samples)
            raise InvalidArgumentError(
                "need at least 2 samples per longitudinal quadrant")
        validate.fraction(top_u, "top_u")
        validate.fraction(top_v, "top_v")
        if not (0.0 < uv_scale < 0.5):
            self._log.error("uv_scale=%f", uv_scale)
            raise InvalidArgumentError(
                f"uv_scale should be between 0 and 0.5, exclusive (got {uv_scale})")
        if not (0.0 < vertical_angle < math.pi):
            self._log.error("vertical_angle=%f", vertical_angle)
            raise InvalidArgumentError(
                f"vertical_angle should be between 0 and pi, exclusive "
                f"(got {vertical_angle})")

        self.rim_samples      = int(rim_samples)
        self.quadrant_samples = int(quadrant_samples)
        self.top_u            = float(top_u)
        self.top_v            = float(top_v)
        self.uv_scale         = float(uv_scale)
        self.inward_facing    = bool(inward_facing)
        self.vertical_angle   = float(vertical_angle)

        quads_per_gore      = self.quadrant_samples - 2
        self.triangle_count = (2 * quads_per_gore + 1) * self.rim_samples
        self.vertex_count   = (self.quadrant_samples - 1) * self.rim_samples + 1

        self.positions, self.texcoords = self._build_coordinates()
        self.indices = self._build_indices()
        self.normals = -self.positions if self.inward_facing else self.positions.copy()

        self._log.debug("dome mesh: %d vertices, %d triangles",
                        self.vertex_count, self.triangle_count)

    # ─────────────────────────────────────────────────────────────────────────
    # Projection
    # ─────────────────────────────────────────────────────────────────────────

    def direction_uv(self, direction) -> Optional[Tuple[float, float]]:
        """
        Texture coordinates for a direction, or None when it falls outside
        the texture (well below the rim).
        """
        validate.non_zero_vector(direction, "direction", 3)
        x, y, z = (float(c) for c in direction)
        norm = math.sqrt(x * x + y * y + z * z)
        x, y, z = x / norm, y / norm, z / norm

        angle_from_top = math.acos(max(-1.0, min(1.0, y)))
        uv_distance = self.uv_scale * angle_from_top / HALF_PI

        xz_distance = math.hypot(x, z)
        if xz_distance == 0.0:
            # straight up or straight down
            if y < 0.0:
                return None
            return self.top_u, self.top_v

        u, v = self._uv(uv_distance, x / xz_distance, z / xz_distance)
        if u < 0.0 or u > 1.0 or v < 0.0 or v > 1.0:
            return None
        return u, v

    def elevation_angle(self, u: float, v: float) -> float:
        """Inverse of direction_uv: elevation (radians) of the point (u, v)."""
        validate.fraction(u, "u")
        validate.fraction(v, "v")
        uv_distance = math.hypot(u - self.top_u, v - self.top_v)
        angle_from_top = uv_distance / self.uv_scale * HALF_PI
        return HALF_PI - angle_from_top

    def with_vertical_angle(self, vertical_angle: float) -> "DomeMesh":
        """Freshly built copy of this mesh with a different vertical angle."""
        return DomeMesh(self.rim_samples, self.quadrant_samples,
                        self.top_u, self.top_v, self.uv_scale,
                        self.inward_facing, vertical_angle, logger=self._log)

    # ─────────────────────────────────────────────────────────────────────────
    # Buffers
    # ─────────────────────────────────────────────────────────────────────────

    def _uv(self, uv_distance: float, cos_lon: float, sin_lon: float):
        return (self.top_u + uv_distance * cos_lon,
                self.top_v - uv_distance * sin_lon)

    def _build_coordinates(self):
        rim = self.rim_samples
        positions = np.zeros((self.vertex_count, 3), dtype=np.float32)
        texcoords = np.zeros((self.vertex_count, 2), dtype=np.float32)

        quad_height = self.vertical_angle / (self.quadrant_samples - 1)
        quad_width  = TWO_PI / rim

        for parallel in range(self.quadrant_samples - 1):
            latitude = HALF_PI - self.vertical_angle + quad_height * parallel
            y = math.sin(latitude)
            xz_distance = math.cos(latitude)
            uv_distance = self.uv_scale * (HALF_PI - latitude) / HALF_PI

            for meridian in range(rim):
                longitude = quad_width * meridian
                cos_lon = math.cos(longitude)
                sin_lon = math.sin(longitude)
                vi = parallel * rim + meridian
                positions[vi] = (xz_distance * cos_lon, y, xz_distance * sin_lon)
                texcoords[vi] = self._uv(uv_distance, cos_lon, sin_lon)

        top = self.vertex_count - 1
        positions[top] = (0.0, 1.0, 0.0)
        texcoords[top] = (self.top_u, self.top_v)

        np.clip(texcoords, 0.0, 1.0, out=texcoords)
        return positions, texcoords

    def _build_indices(self) -> np.ndarray:
        rim = self.rim_samples
        quads_per_gore = self.quadrant_samples - 2
        indices = np.zeros((self.triangle_count, 3), dtype=np.int32)

        for parallel in range(quads_per_gore):
            for meridian in range(rim):
                next_meridian = (meridian + 1) % rim
                v0 = parallel * rim + meridian
                v1 = parallel * rim + next_meridian
                v2 = (parallel + 1) * rim + meridian
                v3 = (parallel + 1) * rim + next_meridian
                if self.inward_facing:
                    indices[2 * v0]     = (v0, v1, v3)
                    indices[2 * v0 + 1] = (v0, v3, v2)
                else:
                    indices[2 * v0]     = (v0, v3, v1)
                    indices[2 * v0 + 1] = (v0, v2, v3)

        # cap: one fan of triangles closing on the top vertex
        top = self.vertex_count - 1
        parallel = quads_per_gore
        for meridian in range(rim):
            v0 = parallel * rim + meridian
            v1 = parallel * rim + (meridian + 1) % rim
            tri = 2 * quads_per_gore * rim + meridian
            if self.inward_facing:
                indices[tri] = (v0, v1, top)
            else:
                indices[tri] = (v0, top, v1)

        return indices

    def __repr__(self) -> str:
        return (f"DomeMesh(rim={self.rim_samples}, quadrant={self.quadrant_samples}, "
                f"vertical_angle={self.vertical_angle:.3f}, "
                f"inward={self.inward_facing})")
