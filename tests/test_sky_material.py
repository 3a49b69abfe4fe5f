"""Tests for the sky material parameter store."""

import math

import numpy as np
import pytest

from skydome.core.errors import (
    ConfigurationOverflowError, IllegalStateError, InvalidArgumentError,
)
from skydome.core.types import SlotState
from skydome.rendering.raster import Raster
from skydome.rendering.sky_material import (
    BLACK, DEFAULT_CLEAR_COLOR, STRETCH_COEFFICIENT, WHITE,
    ParamKind, SkyMaterialState, pick_shape,
)


class TestShapes:
    """Tests for picking a material shape."""

    @pytest.mark.parametrize("objects,layers,name", [
        (0, 0, "dome02"),
        (0, 2, "dome02"),
        (1, 0, "dome20"),
        (2, 1, "dome22"),
        (0, 3, "dome06"),
        (3, 0, "dome60"),
        (2, 6, "dome66"),
        (6, 6, "dome66"),
    ])
    def test_smallest_shape(self, objects, layers, name):
        """Should pick the first shape that holds both counts."""
        assert pick_shape(objects, layers).name == name

    def test_too_many_objects(self):
        """More than six objects should overflow."""
        with pytest.raises(ConfigurationOverflowError, match="too many objects"):
            pick_shape(7, 0)

    def test_too_many_layers(self):
        """More than six cloud layers should overflow."""
        with pytest.raises(ConfigurationOverflowError, match="too many cloud layers"):
            SkyMaterialState(max_objects=1, max_cloud_layers=7)


class TestGlobals:
    """Tests for dome-wide parameters."""

    def test_defaults(self, material):
        """A new material should carry the default clear colour only."""
        assert material.get_clear_color() == DEFAULT_CLEAR_COLOR
        assert material.get_clear_glow() is None
        assert material.get_haze_color() is None
        assert not material.has_stars()

    def test_rgb_gets_alpha(self, material):
        """Three-component colours should get alpha 1."""
        material.set_clear_color((0.1, 0.2, 0.3))
        assert material.get_clear_color() == (0.1, 0.2, 0.3, 1.0)

    @pytest.mark.parametrize("color", [(0.1, 0.2), (-0.1, 0.0, 0.0), (float("nan"), 0, 0)])
    def test_rejects_bad_colors(self, material, color):
        """Short, negative or NaN colours should be rejected."""
        with pytest.raises(InvalidArgumentError):
            material.set_clear_color(color)

    def test_clear_glow(self, material):
        """Clear glow should be stored with alpha 1."""
        material.set_clear_glow((0.2, 0.1, 0.0))
        assert material.get_clear_glow() == (0.2, 0.1, 0.0, 1.0)

    def test_stars(self, material, opaque_raster):
        """Stars can be added and removed."""
        material.add_stars(opaque_raster)
        assert material.has_stars()
        material.remove_stars()
        assert not material.has_stars()

    def test_rejects_non_raster(self, material):
        """Textures must be rasters."""
        with pytest.raises(InvalidArgumentError):
            material.add_haze("haze.png")


class TestObjects:
    """Tests for celestial-object slots."""

    def test_unbound_state(self, material):
        """Slots start unconfigured and refuse reads."""
        assert material.object_state(0) is SlotState.UNCONFIGURED
        with pytest.raises(IllegalStateError):
            material.get_object_color(0)

    def test_index_out_of_range(self, material, opaque_raster):
        """Indices beyond the configured count should be rejected."""
        with pytest.raises(InvalidArgumentError):
            material.add_object(6, opaque_raster)
        with pytest.raises(InvalidArgumentError):
            material.object_state(-1)

    def test_defaults_on_first_bind(self, material, opaque_raster):
        """First bind should apply white colour, black glow and the top centre."""
        material.add_object(0, opaque_raster)
        assert material.object_state(0) is SlotState.VISIBLE
        assert material.get_object_color(0) == WHITE
        assert material.get_object_glow(0) == BLACK
        assert material.get_object_center(0) == (0.5, 0.5)
        assert material.get_object_scale(0) == 1.0
        assert material.get_object_rotation(0) is None

    def test_rebind_keeps_state(self, material, opaque_raster):
        """Binding a new texture should keep colour and transform."""
        material.add_object(0, opaque_raster)
        material.set_object_color(0, (0.5, 0.5, 0.5))
        material.set_object_transform(0, (0.3, 0.6), 0.1)
        other = Raster.blank(2, 2)
        material.add_object(0, other)
        assert material.get_object_texture(0) is other
        assert material.get_object_color(0) == (0.5, 0.5, 0.5, 1.0)
        assert material.get_object_center(0) == (0.3, 0.6)

    def test_transform_at_top(self, material, opaque_raster):
        """At the top the basis should be the identity divided by scale."""
        material.add_object(0, opaque_raster)
        material.set_object_transform(0, (0.5, 0.5), 2.0)
        t = material.get_object_transform(0)
        assert t.transform_u == pytest.approx((0.5, 0.0))
        assert t.transform_v == pytest.approx((0.0, 0.5))

    def test_transform_radial(self, material, opaque_raster):
        """Away from the top the tangent axis should shrink by the stretch."""
        material.add_object(0, opaque_raster)
        material.set_object_transform(0, (0.7, 0.5), 0.5)
        t = material.get_object_transform(0)
        stretch = 1.0 + STRETCH_COEFFICIENT * 0.2 ** 2
        assert t.transform_u == pytest.approx((0.0, -2.0 / stretch))
        assert t.transform_v == pytest.approx((2.0, 0.0))

    def test_transform_rotated_at_top(self, material, opaque_raster):
        """A (1, 0) rotation at the top should turn the basis a quarter."""
        material.add_object(0, opaque_raster)
        material.set_object_transform(0, (0.5, 0.5), 1.0, rotation=(1.0, 0.0))
        t = material.get_object_transform(0)
        assert t.transform_u == pytest.approx((0.0, 1.0))
        assert t.transform_v == pytest.approx((-1.0, 0.0))
        assert material.get_object_rotation(0) == (1.0, 0.0)

    @pytest.mark.parametrize("center,scale,rotation", [
        ((1.2, 0.5), 1.0, None),
        ((0.5, -0.1), 1.0, None),
        ((0.5, 0.5), 0.0, None),
        ((0.5, 0.5), 1.0, (0.0, 0.0)),
        ((0.5, 0.5), 1.0, (1.0, 0.0, 0.0)),
    ])
    def test_transform_validation(self, material, opaque_raster, center, scale, rotation):
        """Bad centres, scales or rotations should be rejected."""
        material.add_object(0, opaque_raster)
        with pytest.raises(InvalidArgumentError):
            material.set_object_transform(0, center, scale, rotation)

    def test_transform_requires_bound_slot(self, material):
        """Placing an unbound object should be an illegal state."""
        with pytest.raises(IllegalStateError):
            material.set_object_transform(1, (0.5, 0.5), 1.0)

    def test_hide_and_show(self, material, opaque_raster):
        """Hiding keeps the transform; placing shows again."""
        material.add_object(0, opaque_raster)
        material.set_object_transform(0, (0.4, 0.4), 0.2)
        material.hide_object(0)
        assert material.object_state(0) is SlotState.HIDDEN
        assert material.get_object_center(0) == (0.4, 0.4)
        material.set_object_transform(0, (0.4, 0.4), 0.2)
        assert material.object_state(0) is SlotState.VISIBLE


class TestClouds:
    """Tests for cloud-layer slots and transmission."""

    def test_unbound_layer(self, material):
        """Unbound layers refuse reads."""
        assert not material.is_cloud_layer_bound(0)
        with pytest.raises(IllegalStateError):
            material.get_clouds_color(0)

    def test_defaults(self, material, opaque_raster):
        """First bind should apply white, no glow, no offset, unit scale."""
        material.add_clouds(0, opaque_raster)
        assert material.is_cloud_layer_bound(0)
        assert material.get_clouds_color(0) == (1.0, 1.0, 1.0, 1.0)
        assert material.get_clouds_glow(0) == BLACK
        assert material.get_clouds_offset(0) == (0.0, 0.0)
        assert material.get_clouds_scale(0) == 1.0

    def test_glow(self, material, opaque_raster):
        """Layer glow should be stored per layer."""
        material.add_clouds(5, opaque_raster)
        material.set_clouds_glow(5, (0.3, 0.3, 0.3, 1.0))
        assert material.get_clouds_glow(5) == (0.3, 0.3, 0.3, 1.0)

    def test_color_alpha_validated(self, material, opaque_raster):
        """Cloud alpha above one should be rejected."""
        material.add_clouds(0, opaque_raster)
        with pytest.raises(InvalidArgumentError):
            material.set_clouds_color(0, (1.0, 1.0, 1.0, 1.5))

    def test_offset_wraps(self, material, opaque_raster):
        """Offsets should wrap into [0, 1)."""
        material.add_clouds(0, opaque_raster)
        material.set_clouds_offset(0, 1.25, -0.25)
        assert material.get_clouds_offset(0) == pytest.approx((0.25, 0.75))

    def test_scale_validated(self, material, opaque_raster):
        """Scale must be positive."""
        material.add_clouds(0, opaque_raster)
        with pytest.raises(InvalidArgumentError):
            material.set_clouds_scale(0, 0.0)

    def test_no_layers_transmits_everything(self, material, opaque_raster):
        """Without cloud layers transmission should be 1."""
        material.add_object(0, opaque_raster)
        assert material.get_object_transmission(0) == 1.0

    def test_opaque_layer_blocks(self, material, opaque_raster):
        """A fully opaque layer should block all light."""
        material.add_clouds(0, opaque_raster)
        assert material.get_transmission((0.3, 0.7)) == pytest.approx(0.0)

    def test_layers_multiply(self, material, opaque_raster):
        """Two half-opaque layers should transmit a quarter."""
        material.add_clouds(0, opaque_raster)
        material.set_clouds_color(0, (1.0, 1.0, 1.0, 0.5))
        assert material.get_transmission((0.5, 0.5)) == pytest.approx(0.5)
        material.add_clouds(3, opaque_raster)
        material.set_clouds_color(3, (1.0, 1.0, 1.0, 0.5))
        assert material.get_transmission((0.5, 0.5)) == pytest.approx(0.25)

    def test_transmission_in_unit_interval(self, material):
        """Transmission should stay within [0, 1] for random layers."""
        rng = np.random.default_rng(7)
        for index in range(3):
            material.add_clouds(index, Raster.from_array(rng.random((8, 8))))
            material.set_clouds_scale(index, 1.0 + index)
            material.set_clouds_offset(index, 0.1 * index, 0.3)
        for u in np.linspace(0.0, 1.0, 11):
            for v in np.linspace(0.0, 1.0, 11):
                t = material.get_transmission((float(u), float(v)))
                assert 0.0 <= t <= 1.0

    def test_offset_shifts_sampling(self, material):
        """A half offset should sample the other column."""
        material.add_clouds(0, Raster.from_array(np.array([[1.0, 0.0]])))
        assert material.get_transmission((0.0, 0.0)) == pytest.approx(0.0)
        material.set_clouds_offset(0, 0.5, 0.0)
        assert material.get_transmission((0.0, 0.0)) == pytest.approx(1.0)


class TestExport:
    """Tests for the renderer-facing parameter snapshot."""

    def test_export_contents(self, material, opaque_raster):
        """Bound slots and globals should all be exported."""
        material.add_object(2, opaque_raster)
        material.add_clouds(1, opaque_raster)
        params = material.export_parameters()
        assert params[(None, ParamKind.CLEAR_COLOR)] == DEFAULT_CLEAR_COLOR
        assert params[(None, ParamKind.TOP_COORD)] == (0.5, 0.5)
        assert params[(2, ParamKind.OBJECT_VISIBLE)] is True
        assert params[(1, ParamKind.CLOUDS_SCALE)] == 1.0
        assert (0, ParamKind.OBJECT_COLOR) not in params

    def test_export_read_only(self, material):
        """The exported mapping should not be writable."""
        params = material.export_parameters()
        with pytest.raises(TypeError):
            params[(None, ParamKind.CLEAR_GLOW)] = WHITE

    def test_shader_names(self):
        """Shader names should combine scope, index and suffix."""
        assert ParamKind.CLEAR_COLOR.shader_name() == "ClearColor"
        assert ParamKind.OBJECT_CENTER.shader_name(2) == "Object2Center"
        assert ParamKind.CLOUDS_ALPHA_MAP.shader_name(1) == "Clouds1AlphaMap"
        assert ParamKind.OBJECT_COLOR.scope == "object"
        assert ParamKind.CLOUDS_OFFSET.value_type == "uv"
