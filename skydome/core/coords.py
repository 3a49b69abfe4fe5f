"""
Scalar and vector helpers for the sky engine.

Angles are radians throughout. Vectors are float64 numpy arrays of shape (3,)
(world/equatorial) or plain (u, v) tuples (texture space).
"""
from __future__ import annotations
import math
from typing import Sequence, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

TWO_PI  = 2.0 * math.pi
HALF_PI = 0.5 * math.pi

X_AXIS = np.array([1.0, 0.0, 0.0])
Y_AXIS = np.array([0.0, 1.0, 0.0])
Z_AXIS = np.array([0.0, 0.0, 1.0])

UNIT_TOLERANCE = 1e-4


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


def saturate(x: float) -> float:
    """Clamp to [0, 1]."""
    return clamp(x, 0.0, 1.0)


def modulo(x: float, m: float) -> float:
    """
    Floored modulo, result in [0, m).

    Python's % can return exactly m for tiny negative x; that case folds
    to 0.
    """
    r = x % m
    return 0.0 if r >= m else r


def lerp(weight: float, a: float, b: float) -> float:
    return a + weight * (b - a)


def cube_root(x: float) -> float:
    return float(np.cbrt(x))


def sph_to_cart(lat: float, lon: float) -> np.ndarray:
    """Unit vector for (latitude, longitude) with +z toward latitude π/2."""
    c = math.cos(lat)
    return np.array([c * math.cos(lon), c * math.sin(lon), math.sin(lat)])


def as_vector(v: Sequence[float]) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).reshape(3)


def normalize(v: Sequence[float]) -> np.ndarray:
    a = np.asarray(v, dtype=np.float64)
    n = float(np.linalg.norm(a))
    return a / n


def is_unit_vector(v: Sequence[float], tol: float = UNIT_TOLERANCE) -> bool:
    return abs(float(np.linalg.norm(np.asarray(v, dtype=np.float64))) - 1.0) <= tol


def axis_rotation(angle: float, axis: np.ndarray) -> Rotation:
    """Right-handed rotation of `angle` radians about a unit axis."""
    return Rotation.from_rotvec(angle * np.asarray(axis, dtype=np.float64))


def rotate(vector: Sequence[float], angle: float, axis: np.ndarray) -> np.ndarray:
    return axis_rotation(angle, axis).apply(as_vector(vector))


def normalize_uv(uv: Tuple[float, float]) -> Tuple[float, float]:
    length = math.hypot(uv[0], uv[1])
    return uv[0] / length, uv[1] / length
