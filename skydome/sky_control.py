"""
SkyControl — per-frame sky state machine.

Owns the dome geometry, the sky materials, the cloud layers, the
observer's time and place, and the lighting sink. Each update:

    1. advance the cloud animation
    2. place (or hide) the sun
    3. fade the clear daytime colour with the sun's altitude
    4. place (or hide) the moon, picking the slot for the current phase
    5. blend the sky/light colours for the sun, moon and starlight
    6. colour the clouds
    7. pick the main light and, optionally, attenuate it through the clouds
    8. emit a LightingSnapshot to the Updater

States: disabled (initial, no per-frame work) and enabled (attached to a
scene host, updates run).

Usage:
    sky = SkyControl(SkyConfig(cloud_flattening=0.8), host=scene)
    sky.sun_and_stars.set_hour(6.5)
    sky.set_cloudiness(0.7)
    sky.set_enabled(True)
    sky.update(dt)                       # once per frame
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple, Union

import numpy as np

from .config import (
    MAX_TOP_VERTICAL_ANGLE, MOON_SCALE, SUN_SCALE, SkyConfig,
    lunar_scale, solar_scale,
)
from .core import validate
from .core.coords import HALF_PI, TWO_PI, modulo, normalize_uv
from .core.dome_mesh import DomeMesh, UV_SCALE
from .core.errors import IllegalStateError, InvalidArgumentError
from .core.sun_and_stars import SunAndStars
from .core.types import Color, LightingSnapshot, Vector3
from .atmosphere import sky_light
from .atmosphere.cloud_layer import CloudLayer
from .atmosphere.lunar_phase import (
    TEXTURED_PHASES, LunarPhase, moon_illumination, nearest_textured_phase,
)
from .atmosphere.sky_light import LightSource
from .rendering.raster import Raster
from .rendering.sky_material import SkyMaterialState
from .rendering.textures import (
    DISC_DIAMETER, ImageService, PygameImageService,
    haze_raster, moon_phase_raster, sun_disc_raster,
)
from .updater import Updater


SUN_INDEX   = 0
NUM_OBJECTS = 1 + len(TEXTURED_PHASES)     # the sun + one slot per moon phase

# Offset used to find which way is "north" on the moon's texture
_LUNAR_ROTATION_STEP = 0.01

_log = logging.getLogger(__name__)


def moon_slot(phase: LunarPhase) -> int:
    """Top-material object index holding a textured phase."""
    return 1 + TEXTURED_PHASES.index(phase)


class SceneHost(Protocol):
    """Where the sky geometry gets attached, plus the view frustum bounds."""
    frustum_near: float
    frustum_far:  float

    def attach_sky(self, geometry: "SkyGeometry") -> None: ...
    def detach_sky(self, geometry: "SkyGeometry") -> None: ...


@dataclass(slots=True)
class SkyGeometry:
    """
    The sub-tree handed to the scene host.

    Meshes are replaced wholesale when their parameters change. The clouds
    dome, when present, is scaled by (1, clouds_y_scale, 1) and translated
    by (0, clouds_y_translation, 0).
    """
    top_mesh:      DomeMesh
    top_material:  SkyMaterialState
    bottom_mesh:   Optional[DomeMesh] = None
    bottom_color:  Color = (0.0, 0.0, 0.0)
    clouds_mesh:     Optional[DomeMesh] = None
    clouds_material: Optional[SkyMaterialState] = None
    clouds_y_scale:       float = 1.0
    clouds_y_translation: float = 0.0
    scale:         float = 1.0
    star_orientations: Optional[Tuple[np.ndarray, np.ndarray]] = None

    @property
    def cloud_mesh(self) -> DomeMesh:
        """Mesh carrying the clouds: the clouds-only dome or the top dome."""
        return self.clouds_mesh if self.clouds_mesh is not None else self.top_mesh

    @property
    def cloud_material(self) -> SkyMaterialState:
        return (self.clouds_material if self.clouds_material is not None
                else self.top_material)


class SkyControl:
    """
    Sun, moon, stars and clouds for one scene, updated once per frame.

    Parameters
    ----------
    config        : construction options (see SkyConfig)
    host          : scene attachment point; required before enabling
    image_service : loads textures given by path (default: pygame)
    updater       : lighting sink (default: a fresh Updater)
    logger        : injected logger (default: this module's)
    """

    def __init__(self,
                 config: Optional[SkyConfig] = None,
                 host: Optional[SceneHost] = None,
                 image_service: Optional[ImageService] = None,
                 updater: Optional[Updater] = None,
                 sun_and_stars: Optional[SunAndStars] = None,
                 logger: Optional[logging.Logger] = None):
        self._log = logger or _log
        self.config        = config or SkyConfig()
        self.host          = host
        self.image_service = image_service or PygameImageService(self._log)
        self.updater       = updater or Updater(self._log)
        self.sun_and_stars = sun_and_stars or SunAndStars()

        self._enabled               = False
        self._cloud_modulation      = False
        self._clouds_animation_time = 0.0
        self._clouds_rate           = 1.0
        self._moon_scale            = MOON_SCALE
        self._sun_scale             = SUN_SCALE
        self._phase: Optional[LunarPhase] = LunarPhase.FULL
        self._longitude_difference  = math.pi
        self._lunar_latitude        = 0.0

        self.geometry = self._build_geometry()
        self.cloud_layers: List[CloudLayer] = [
            CloudLayer(self.geometry.cloud_material, i,
                       image_service=self.image_service, logger=self._log)
            for i in range(self.config.num_cloud_layers)
        ]
        self._log.debug("sky control built: %r", self.config)

    def _build_geometry(self) -> SkyGeometry:
        cfg = self.config
        top_layers = 0 if cfg.separate_clouds_dome else cfg.num_cloud_layers
        top_material = SkyMaterialState(NUM_OBJECTS, top_layers, self._log)
        top_material.add_haze(haze_raster())
        top_material.add_object(SUN_INDEX, sun_disc_raster())
        for phase in TEXTURED_PHASES:
            index = moon_slot(phase)
            top_material.add_object(index, moon_phase_raster(phase.longitude_difference))
            top_material.hide_object(index)

        top_mesh = DomeMesh(cfg.rim_samples, cfg.quadrant_samples, logger=self._log)
        geometry = SkyGeometry(top_mesh=top_mesh, top_material=top_material)

        if cfg.bottom_dome:
            geometry.bottom_mesh = DomeMesh(cfg.rim_samples, 2, logger=self._log)

        if cfg.separate_clouds_dome:
            clouds_material = SkyMaterialState(0, cfg.num_cloud_layers, self._log)
            clouds_material.set_clear_color((0.0, 0.0, 0.0, 0.0))
            geometry.clouds_mesh = DomeMesh(cfg.rim_samples, cfg.quadrant_samples,
                                            logger=self._log)
            geometry.clouds_material = clouds_material
            geometry.clouds_y_scale = cfg.clouds_y_scale
        return geometry

    # ─────────────────────────────────────────────────────────────────────────
    # Enable / disable
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_host(self, host: Optional[SceneHost]) -> None:
        if self._enabled:
            raise IllegalStateError("cannot change host while enabled")
        self.host = host

    def set_enabled(self, enable: bool) -> None:
        if enable == self._enabled:
            return
        if enable:
            if self.host is None:
                self._log.error("enable requested without a scene host")
                raise IllegalStateError("no scene host to attach the sky to")
            self._rescale()
            self.host.attach_sky(self.geometry)
            self._enabled = True
            self._log.info("sky enabled")
        else:
            self.host.detach_sky(self.geometry)
            self._enabled = False
            self._log.info("sky disabled")

    def _rescale(self) -> None:
        near = float(self.host.frustum_near)
        far = float(self.host.frustum_far)
        self.geometry.scale = 0.5 * (near + far)

    # ─────────────────────────────────────────────────────────────────────────
    # Clouds
    # ─────────────────────────────────────────────────────────────────────────

    def get_cloud_layer(self, index: int) -> CloudLayer:
        validate.index(index, "cloud layer index", len(self.cloud_layers))
        return self.cloud_layers[index]

    def set_cloudiness(self, alpha: float) -> None:
        """Opacity of every cloud layer, [0, 1]."""
        if not (0.0 <= alpha <= 1.0):
            self._log.error("cloudiness=%s", alpha)
        validate.fraction(alpha, "alpha")
        for layer in self.cloud_layers:
            layer.set_opacity(alpha)

    @property
    def clouds_rate(self) -> float:
        return self._clouds_rate

    def set_clouds_rate(self, rate: float) -> None:
        """Cloud animation speed relative to real time; negative reverses it."""
        if not math.isfinite(rate):
            raise InvalidArgumentError(f"rate should be finite (got {rate})")
        self._clouds_rate = float(rate)

    @property
    def clouds_animation_time(self) -> float:
        return self._clouds_animation_time

    @property
    def cloud_modulation(self) -> bool:
        return self._cloud_modulation

    def set_cloud_modulation(self, flag: bool) -> None:
        """Whether clouds dim the main light."""
        self._cloud_modulation = bool(flag)

    def get_clouds_y_offset(self) -> float:
        g = self.geometry
        if g.clouds_mesh is None:
            return 0.0
        return -g.clouds_y_translation / g.clouds_y_scale

    def set_clouds_y_offset(self, offset: float) -> None:
        """
        Lower the clouds-only dome by `offset` of its height, [0, 1).
        Must be 0 without a clouds-only dome.
        """
        g = self.geometry
        if g.clouds_mesh is None:
            if offset != 0.0:
                self._log.error("offset=%s", offset)
                raise InvalidArgumentError("offset should be 0")
            return
        if not (0.0 <= offset < 1.0):
            self._log.error("offset=%s", offset)
            raise InvalidArgumentError(
                f"offset should be between 0 and 1, excluding 1 (got {offset})")
        g.clouds_y_translation = -offset * g.clouds_y_scale

    # ─────────────────────────────────────────────────────────────────────────
    # Sun, moon and stars
    # ─────────────────────────────────────────────────────────────────────────

    def lunar_diameter(self) -> float:
        return self._moon_scale * HALF_PI / UV_SCALE

    def set_lunar_diameter(self, diameter: float) -> None:
        """Apparent moon diameter, radians in (0, π)."""
        if not (0.0 < diameter < math.pi):
            self._log.error("diameter=%s", diameter)
            raise InvalidArgumentError(
                f"diameter should be between 0 and pi (got {diameter})")
        self._moon_scale = lunar_scale(diameter)

    def solar_diameter(self) -> float:
        return self._sun_scale * DISC_DIAMETER * HALF_PI / UV_SCALE

    def set_solar_diameter(self, diameter: float) -> None:
        """Apparent sun diameter, radians in (0, π)."""
        if not (0.0 < diameter < math.pi):
            self._log.error("diameter=%s", diameter)
            raise InvalidArgumentError(
                f"diameter should be between 0 and pi (got {diameter})")
        self._sun_scale = solar_scale(diameter)

    def set_sun_style(self, texture: Union[str, Raster]) -> None:
        """Replace the sun texture, by path or as a Raster."""
        validate.require_not_none(texture, "texture")
        raster = texture if isinstance(texture, Raster) else self.image_service.load(texture)
        self.geometry.top_material.add_object(SUN_INDEX, raster)

    @property
    def phase(self) -> Optional[LunarPhase]:
        return self._phase

    @property
    def longitude_difference(self) -> float:
        return self._longitude_difference

    @property
    def lunar_latitude(self) -> float:
        return self._lunar_latitude

    def set_phase(self, preset: Optional[LunarPhase]) -> None:
        """
        Switch to a preset phase; None removes the moon from the sky.
        A preset sets the longitude difference and keeps the lunar latitude.
        CUSTOM keeps the current longitude difference and latitude.
        """
        if preset is not None and not isinstance(preset, LunarPhase):
            self._log.error("phase=%r", preset)
            raise InvalidArgumentError(
                f"phase should be a LunarPhase or None (got {preset!r})")
        if preset is LunarPhase.CUSTOM:
            self.set_custom_phase(self._longitude_difference, self._lunar_latitude)
            return
        if preset is not None:
            self._longitude_difference = preset.longitude_difference
        self._phase = preset
        self._log.info("lunar phase %s", preset.describe() if preset else None)

    def set_custom_phase(self, longitude_difference: float,
                         lunar_latitude: float) -> None:
        """Moon at an arbitrary elongation and ecliptic latitude."""
        validate.in_range(longitude_difference, "longitude difference", 0.0, TWO_PI)
        validate.in_range(lunar_latitude, "lunar latitude", -HALF_PI, HALF_PI)
        self._phase = LunarPhase.CUSTOM
        self._longitude_difference = float(longitude_difference)
        self._lunar_latitude = float(lunar_latitude)
        self._log.info("custom lunar phase %.3f, %.3f",
                       longitude_difference, lunar_latitude)

    def get_moon_illumination(self) -> float:
        return moon_illumination(self._longitude_difference, self._lunar_latitude)

    def moon_direction(self) -> np.ndarray:
        """World direction to the moon, unit length."""
        longitude = modulo(
            self.sun_and_stars.solar_longitude + self._longitude_difference, TWO_PI)
        return self.sun_and_stars.convert_to_world(self._lunar_latitude, longitude)

    def set_star_map(self, texture: Union[str, Raster]) -> None:
        validate.require_not_none(texture, "texture")
        raster = texture if isinstance(texture, Raster) else self.image_service.load(texture)
        self.geometry.top_material.add_stars(raster)

    def clear_star_map(self) -> None:
        self.geometry.top_material.remove_stars()

    # ─────────────────────────────────────────────────────────────────────────
    # Dome shape
    # ─────────────────────────────────────────────────────────────────────────

    def get_top_vertical_angle(self) -> float:
        return self.geometry.top_mesh.vertical_angle

    def set_top_vertical_angle(self, angle: float) -> None:
        """Angle from the top to the rim of the top dome, (0, 1.785)."""
        if not (0.0 < angle < MAX_TOP_VERTICAL_ANGLE):
            self._log.error("angle=%s", angle)
            raise InvalidArgumentError(
                f"angle should be between 0 and {MAX_TOP_VERTICAL_ANGLE} (got {angle})")
        g = self.geometry
        top_mesh = g.top_mesh.with_vertical_angle(angle)
        bottom_mesh = None
        if g.bottom_mesh is not None:
            bottom_mesh = g.bottom_mesh.with_vertical_angle(math.pi - angle)
        g.top_mesh = top_mesh
        if bottom_mesh is not None:
            g.bottom_mesh = bottom_mesh

    # ─────────────────────────────────────────────────────────────────────────
    # Per-frame update
    # ─────────────────────────────────────────────────────────────────────────

    def update(self, elapsed: float) -> None:
        """Advance the sky by `elapsed` seconds (≥ 0) and relight the scene."""
        if not (elapsed >= 0.0) or not math.isfinite(elapsed):
            self._log.error("elapsed=%s", elapsed)
            raise InvalidArgumentError(
                f"elapsed time should be finite and non-negative (got {elapsed})")
        if not self._enabled:
            return

        self._rescale()
        self._update_clouds(elapsed)

        sun_direction = self._update_sun()
        clear = sky_light.COLOR_DAY + (sky_light.day_fraction(float(sun_direction[1])),)
        self.geometry.top_material.set_clear_color(clear)

        moon_direction = self._update_moon()
        self._update_lighting(sun_direction, moon_direction)

        if self.config.star_motion:
            self.geometry.star_orientations = self.sun_and_stars.star_dome_orientations()

    def _update_clouds(self, elapsed: float) -> None:
        self._clouds_animation_time += elapsed * self._clouds_rate
        for layer in self.cloud_layers:
            layer.update_offset(self._clouds_animation_time)

    def _update_sun(self) -> np.ndarray:
        direction = self.sun_and_stars.sun_direction()
        uv = self.geometry.top_mesh.direction_uv(direction)
        material = self.geometry.top_material
        if uv is None:
            material.hide_object(SUN_INDEX)
        else:
            material.set_object_transform(SUN_INDEX, uv, self._sun_scale)
        return direction

    def _displayed_phase(self) -> Optional[LunarPhase]:
        if self._phase is None or self._phase is LunarPhase.NEW:
            return None
        if self._phase is LunarPhase.CUSTOM:
            return nearest_textured_phase(self._longitude_difference)
        return self._phase

    def _update_moon(self) -> Optional[np.ndarray]:
        material = self.geometry.top_material
        shown = self._displayed_phase()
        for phase in TEXTURED_PHASES:
            if phase is not shown:
                material.hide_object(moon_slot(phase))
        if self._phase is None:
            return None

        longitude = modulo(
            self.sun_and_stars.solar_longitude + self._longitude_difference, TWO_PI)
        direction = self.sun_and_stars.convert_to_world(self._lunar_latitude, longitude)
        if shown is None:
            return direction

        uv_center = self.geometry.top_mesh.direction_uv(direction)
        if uv_center is None:
            material.hide_object(moon_slot(shown))
        else:
            rotation = self._lunar_rotation(longitude, uv_center)
            material.set_object_transform(
                moon_slot(shown), uv_center, self._moon_scale, rotation)
        return direction

    def _lunar_rotation(self, longitude: float,
                        uv_center: Tuple[float, float]) -> Optional[Tuple[float, float]]:
        """Unit UV vector pointing toward the moon's celestial north."""
        mesh = self.geometry.top_mesh
        latitude = self._lunar_latitude + _LUNAR_ROTATION_STEP
        if latitude <= HALF_PI:
            north = self.sun_and_stars.convert_to_world(latitude, longitude)
            uv_north = mesh.direction_uv(north)
            if uv_north is not None:
                offset = (uv_north[0] - uv_center[0], uv_north[1] - uv_center[1])
                if offset != (0.0, 0.0):
                    return normalize_uv(offset)

        latitude = self._lunar_latitude - _LUNAR_ROTATION_STEP
        if latitude >= -HALF_PI:
            south = self.sun_and_stars.convert_to_world(latitude, longitude)
            uv_south = mesh.direction_uv(south)
            if uv_south is not None:
                offset = (uv_center[0] - uv_south[0], uv_center[1] - uv_south[1])
                if offset != (0.0, 0.0):
                    return normalize_uv(offset)
        return None

    def _update_object_colors(self, sine_solar: float, sine_lunar: float) -> None:
        material = self.geometry.top_material
        sun = sky_light.sun_color(sine_solar)
        material.set_object_color(SUN_INDEX, sun)
        material.set_object_glow(SUN_INDEX, sun)
        moon = sky_light.moon_color(sine_lunar)
        for phase in TEXTURED_PHASES:
            material.set_object_color(moon_slot(phase), moon)

    def intersect_cloud_dome(self, direction) -> Vector3:
        """
        Point where a light direction (at or above the horizon) crosses the
        cloud dome, as a unit direction from the dome's centre.
        """
        x, y, z = (float(c) for c in direction)
        cos_squared = x * x + z * z
        if cos_squared == 0.0:
            return (0.0, 1.0, 0.0)

        g = self.geometry
        if g.clouds_mesh is None:
            delta_y, semi_minor = 0.0, 1.0
        else:
            delta_y, semi_minor = g.clouds_y_translation, g.clouds_y_scale

        cos_altitude = math.sqrt(cos_squared)
        tan_altitude = y / cos_altitude
        sma_squared = semi_minor * semi_minor
        a = tan_altitude * tan_altitude + sma_squared
        b = -2.0 * delta_y * tan_altitude
        c = delta_y * delta_y - sma_squared
        discriminant = max(0.0, b * b - 4.0 * a * c)
        w = (-b + math.sqrt(discriminant)) / (2.0 * a)
        w = min(max(w, 0.0), 1.0)       # horizontal distance on the unit dome

        distance = w / cos_altitude
        return (x * distance, math.sqrt(1.0 - w * w), z * distance)

    def _update_lighting(self, sun_direction: np.ndarray,
                         moon_direction: Optional[np.ndarray]) -> None:
        sine_solar = float(sun_direction[1])
        sine_lunar = float(moon_direction[1]) if moon_direction is not None else -1.0
        self._update_object_colors(sine_solar, sine_lunar)

        sun_up = sine_solar >= 0.0
        moon_up = sine_lunar >= 0.0
        moon_weight = self.get_moon_illumination()

        if sun_up:
            source = LightSource.SUN
            main_direction = tuple(float(c) for c in sun_direction)
        elif moon_up and moon_weight > 0.0:
            source = LightSource.MOON
            main_direction = tuple(float(c) for c in moon_direction)
        else:
            source = LightSource.STARS
            main_direction = sky_light.STARLIGHT_DIRECTION

        base = sky_light.base_color(sine_solar, moon_up, moon_weight)
        g = self.geometry
        g.top_material.set_haze_color(base)
        if g.bottom_mesh is not None:
            g.bottom_color = base

        clouds_rgb = sky_light.clouds_color(base, sun_up, moon_up, moon_weight)
        for layer in self.cloud_layers:
            layer.set_color(clouds_rgb)

        transmission = 1.0
        if self._cloud_modulation and source is not LightSource.STARS:
            intersection = self.intersect_cloud_dome(main_direction)
            uv = g.cloud_mesh.direction_uv(intersection)
            if uv is not None:
                transmission = g.cloud_material.get_transmission(uv)

        main = sky_light.main_light_color(
            source, base, transmission, sine_solar, moon_weight)
        ambient = sky_light.ambient_color(clouds_rgb, main)
        snapshot = LightingSnapshot(
            ambient_color=ambient,
            background_color=base,
            main_color=main,
            main_direction=main_direction,
            shadow_intensity=sky_light.shadow_intensity(main, ambient),
            bloom_intensity=sky_light.bloom_intensity(sine_solar),
        )
        self.updater.update(snapshot)

    def __repr__(self) -> str:
        return (f"SkyControl(enabled={self._enabled}, phase={self._phase}, "
                f"{self.sun_and_stars!r})")
