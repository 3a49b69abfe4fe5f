"""Shared pytest fixtures for all tests."""

import math
from unittest.mock import MagicMock

import numpy as np
import pytest

from skydome.config import SkyConfig
from skydome.core.dome_mesh import DomeMesh
from skydome.core.sun_and_stars import SunAndStars
from skydome.rendering.raster import Raster
from skydome.rendering.sky_material import SkyMaterialState
from skydome.sky_control import SkyControl


STONEHENGE_LATITUDE = math.radians(51.1788)


@pytest.fixture
def sas():
    """Sun-and-stars state at the default latitude, midnight, equinox."""
    return SunAndStars()


@pytest.fixture
def mesh():
    """Default inward-facing dome."""
    return DomeMesh()


@pytest.fixture
def material():
    """Material with six object slots and six cloud layers."""
    return SkyMaterialState(max_objects=6, max_cloud_layers=6)


@pytest.fixture
def opaque_raster():
    """2x2 raster whose red channel is 1 everywhere."""
    return Raster.from_array(np.ones((2, 2), dtype=np.float32), name="opaque")


@pytest.fixture
def image_service():
    """Image service stub returning a blank raster for any path."""
    service = MagicMock()
    service.load.return_value = Raster.blank(2, 2, name="loaded")
    return service


@pytest.fixture
def host():
    """Scene host stub with a 1..1001 view frustum."""
    return MagicMock(frustum_near=1.0, frustum_far=1001.0)


@pytest.fixture
def sky(host, image_service):
    """Default sky control attached to a stub host, not yet enabled."""
    return SkyControl(SkyConfig(), host=host, image_service=image_service)


@pytest.fixture
def enabled_sky(sky):
    """Default sky control, enabled."""
    sky.set_enabled(True)
    return sky
