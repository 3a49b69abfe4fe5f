"""
Rendering package — sky material state and the rasters it samples.

Main exports:
    Raster             — RGBA float image with wrapped bilinear sampling
    SkyMaterialState   — per-dome shading parameters + cloud transmission
    ParamKind          — keys of the exported parameter mapping
    PygameImageService — loads texture files into Rasters
"""
from .raster import Raster
from .sky_material import SkyMaterialState, ParamKind, MaterialShape, pick_shape
from .textures import (
    ImageService, PygameImageService,
    sun_disc_raster, moon_phase_raster, clear_raster, haze_raster,
)
