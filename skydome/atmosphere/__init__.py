"""
Atmosphere package — cloud layers, lunar phases and sky lighting.

Main exports:
    CloudLayer        — one drifting cloud layer bound to a sky material
    LunarPhase        — enum: FULL / WANING_* / WAXING_* / NEW / CUSTOM
    moon_illumination — moonlight weight for a phase geometry
    LightSource       — enum: SUN / MOON / STARS
"""
from .cloud_layer import CloudLayer, generate_cloud_raster
from .lunar_phase import LunarPhase, moon_illumination
from .sky_light import LightSource
