"""
skydome — sun, moon, stars and clouds for a real-time sky dome.

Computes, each frame, where the sun and moon sit on a hemispherical dome,
how a multi-layer cloud deck drifts across it, and what the scene's main
light, ambient light, shadows and bloom should look like as a result.

Usage:
    from skydome import SkyControl, SkyConfig

    sky = SkyControl(SkyConfig(), host=scene)
    sky.sun_and_stars.set_hour(18.25)
    sky.set_enabled(True)
    sky.update(dt)
    light = sky.updater.last_snapshot
"""
from .config import SkyConfig
from .core.errors import (
    SkyError, InvalidArgumentError, IllegalStateError, ConfigurationOverflowError,
)
from .core.types import LightingSnapshot, ObjectTransform, SlotState
from .core.sun_and_stars import SunAndStars
from .core.dome_mesh import DomeMesh
from .atmosphere import CloudLayer, LunarPhase, LightSource
from .rendering import Raster, SkyMaterialState, ParamKind, PygameImageService
from .updater import Updater
from .sky_control import SkyControl, SkyGeometry, SceneHost

__all__ = [
    "SkyConfig", "SkyControl", "SkyGeometry", "SceneHost", "Updater",
    "SunAndStars", "DomeMesh", "CloudLayer", "LunarPhase", "LightSource",
    "Raster", "SkyMaterialState", "ParamKind", "PygameImageService",
    "LightingSnapshot", "ObjectTransform", "SlotState",
    "SkyError", "InvalidArgumentError", "IllegalStateError",
    "ConfigurationOverflowError",
]

__version__ = "0.1.0"
