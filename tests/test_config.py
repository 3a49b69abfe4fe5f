"""Tests for construction-time configuration."""

import dataclasses
import math

import pytest

from skydome.config import (
    DISC_DIAMETER, UV_SCALE, SkyConfig, lunar_scale, solar_scale,
)
from skydome.core.errors import InvalidArgumentError


class TestSkyConfig:
    """Tests for SkyConfig."""

    def test_defaults(self):
        """Defaults should describe a single dome with six cloud layers."""
        config = SkyConfig()
        assert config.num_cloud_layers == 6
        assert config.rim_samples == 60
        assert config.quadrant_samples == 16
        assert not config.separate_clouds_dome
        assert config.clouds_y_scale == 1.0

    def test_flattening(self):
        """Flattening should request a separate, squashed clouds dome."""
        config = SkyConfig(cloud_flattening=0.75)
        assert config.separate_clouds_dome
        assert config.clouds_y_scale == pytest.approx(0.25)

    @pytest.mark.parametrize("kwargs", [
        {"cloud_flattening": 1.0},
        {"cloud_flattening": -0.1},
        {"rim_samples": 2},
        {"quadrant_samples": 1},
        {"num_cloud_layers": -1},
    ])
    def test_validation(self, kwargs):
        """Out-of-range fields should be rejected."""
        with pytest.raises(InvalidArgumentError):
            SkyConfig(**kwargs)

    def test_frozen(self):
        """Configuration should be immutable."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            SkyConfig().star_motion = True


class TestScales:
    """Tests for angular diameter → texture scale."""

    def test_solar_scale(self):
        """A disc spanning a quarter of the texture at the horizon distance."""
        assert solar_scale(DISC_DIAMETER * math.pi / 2) == pytest.approx(UV_SCALE)

    def test_lunar_scale(self):
        """The moon fills its texture."""
        assert lunar_scale(math.pi / 2) == pytest.approx(UV_SCALE)
        assert lunar_scale(0.0) == 0.0
