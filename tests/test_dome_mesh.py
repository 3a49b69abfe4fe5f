"""Tests for dome geometry and its direction → UV projection."""

import math

import numpy as np
import pytest

from skydome.core.dome_mesh import DomeMesh
from skydome.core.errors import InvalidArgumentError


def _facing(mesh):
    """Sign of (triangle normal · triangle centroid) for every triangle."""
    p = mesh.positions.astype(np.float64)[mesh.indices]
    normals = np.cross(p[:, 1] - p[:, 0], p[:, 2] - p[:, 0])
    return np.einsum("ij,ij->i", normals, p.mean(axis=1))


class TestBuffers:
    """Tests for vertex and index buffers."""

    def test_default_counts(self, mesh):
        """60 × 16 should give 901 vertices and 1740 triangles."""
        assert mesh.vertex_count == 901
        assert mesh.triangle_count == 1740
        assert mesh.positions.shape == (901, 3)
        assert mesh.texcoords.shape == (901, 2)
        assert mesh.normals.shape == (901, 3)
        assert mesh.indices.shape == (1740, 3)

    def test_smallest_mesh(self):
        """3 × 2 should be a three-triangle cap."""
        small = DomeMesh(rim_samples=3, quadrant_samples=2)
        assert small.vertex_count == 4
        assert small.triangle_count == 3
        assert (small.indices[:, 2] == 3).all()

    def test_top_vertex_last(self, mesh):
        """The final vertex should be the pole with the top UV."""
        np.testing.assert_allclose(mesh.positions[-1], (0.0, 1.0, 0.0))
        np.testing.assert_allclose(mesh.texcoords[-1], (0.5, 0.5))

    def test_positions_on_unit_sphere(self, mesh):
        """Every vertex should lie on the unit sphere."""
        radii = np.linalg.norm(mesh.positions, axis=1)
        np.testing.assert_allclose(radii, 1.0, atol=1e-6)

    def test_indices_in_range(self, mesh):
        """Every index should refer to an existing vertex."""
        assert mesh.indices.min() >= 0
        assert mesh.indices.max() == mesh.vertex_count - 1

    def test_inward_winding(self, mesh):
        """Inward-facing triangles should face the centre."""
        assert (_facing(mesh) < 0.0).all()

    def test_outward_winding(self):
        """Outward-facing triangles should face away from the centre."""
        outward = DomeMesh(inward_facing=False)
        assert (_facing(outward) > 0.0).all()

    def test_normals(self, mesh):
        """Normals should be negated positions when inward-facing."""
        np.testing.assert_allclose(mesh.normals, -mesh.positions)
        outward = DomeMesh(inward_facing=False)
        np.testing.assert_allclose(outward.normals, outward.positions)

    def test_texcoords_in_unit_square(self, mesh):
        """Texture coordinates should never leave [0, 1]."""
        assert mesh.texcoords.min() >= 0.0
        assert mesh.texcoords.max() <= 1.0

    def test_rim_on_horizon(self, mesh):
        """The first ring should sit on the horizon at UV radius 0.44."""
        rim = mesh.positions[:mesh.rim_samples]
        np.testing.assert_allclose(rim[:, 1], 0.0, atol=1e-6)
        radius = np.hypot(mesh.texcoords[:mesh.rim_samples, 0] - 0.5,
                          mesh.texcoords[:mesh.rim_samples, 1] - 0.5)
        np.testing.assert_allclose(radius, 0.44, atol=1e-6)


class TestProjection:
    """Tests for direction_uv and elevation_angle."""

    def test_zenith(self, mesh):
        """Straight up should map to the top UV."""
        assert mesh.direction_uv((0.0, 2.0, 0.0)) == (0.5, 0.5)

    def test_nadir(self, mesh):
        """Straight down should be off the texture."""
        assert mesh.direction_uv((0.0, -1.0, 0.0)) is None

    def test_east_horizon(self, mesh):
        """East on the horizon should map to (0.5, 0.06)."""
        u, v = mesh.direction_uv((0.0, 0.0, 1.0))
        assert u == pytest.approx(0.5)
        assert v == pytest.approx(0.06)

    def test_north_horizon(self, mesh):
        """North on the horizon should map to (0.94, 0.5)."""
        u, v = mesh.direction_uv((1.0, 0.0, 0.0))
        assert u == pytest.approx(0.94)
        assert v == pytest.approx(0.5)

    def test_slightly_below_horizon(self, mesh):
        """A direction just below the rim should still have a UV."""
        e = -0.1
        assert mesh.direction_uv((math.cos(e), math.sin(e), 0.0)) is not None

    def test_far_below_horizon(self, mesh):
        """A direction one radian below the rim should be off the texture."""
        e = -1.0
        assert mesh.direction_uv((math.cos(e), math.sin(e), 0.0)) is None

    def test_rejects_zero_vector(self, mesh):
        """A zero direction should be rejected."""
        with pytest.raises(InvalidArgumentError):
            mesh.direction_uv((0.0, 0.0, 0.0))

    def test_rejects_wrong_length(self, mesh):
        """A direction must have three components."""
        with pytest.raises(InvalidArgumentError):
            mesh.direction_uv((1.0, 0.0))

    @pytest.mark.parametrize("elevation,azimuth", [
        (0.3, 0.0), (1.2, 2.0), (0.05, 4.0), (-0.2, 5.5),
    ])
    def test_elevation_round_trip(self, mesh, elevation, azimuth):
        """elevation_angle should invert direction_uv."""
        c = math.cos(elevation)
        direction = (c * math.cos(azimuth), math.sin(elevation), c * math.sin(azimuth))
        u, v = mesh.direction_uv(direction)
        assert mesh.elevation_angle(u, v) == pytest.approx(elevation, abs=1e-9)

    def test_elevation_rejects_outside_texture(self, mesh):
        """UV outside [0, 1] should be rejected."""
        with pytest.raises(InvalidArgumentError):
            mesh.elevation_angle(1.2, 0.5)


class TestValidation:
    """Tests for constructor checks."""

    @pytest.mark.parametrize("kwargs", [
        {"rim_samples": 2},
        {"quadrant_samples": 1},
        {"top_u": 1.5},
        {"top_v": -0.1},
        {"uv_scale": 0.5},
        {"uv_scale": 0.0},
        {"vertical_angle": 0.0},
        {"vertical_angle": math.pi},
    ])
    def test_rejects(self, kwargs):
        """Out-of-range construction parameters should be rejected."""
        with pytest.raises(InvalidArgumentError):
            DomeMesh(**kwargs)

    def test_with_vertical_angle(self, mesh):
        """A taller dome should extend below the horizon."""
        taller = mesh.with_vertical_angle(2.0)
        assert taller.vertical_angle == 2.0
        assert taller.vertex_count == mesh.vertex_count
        assert taller.positions[:, 1].min() == pytest.approx(math.cos(2.0), abs=1e-6)
        assert mesh.vertical_angle == pytest.approx(math.pi / 2)

    def test_repr(self, mesh):
        """repr should name the sample counts."""
        assert "rim=60" in repr(mesh)
