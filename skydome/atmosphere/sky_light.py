"""
Sky lighting palette and the colour blends built on it.

Inputs are sines of altitudes (the world "up" component of a unit
direction) and the moon's illumination weight; outputs are linear RGB
triples. Thresholds are tuned for appearance, not physics.

    sine_solar ≥ 0      sun up: twilight → sunlight as the sun climbs
    sine_solar < 0      sun down: twilight → (starlight ↔ moonlight)
"""
from __future__ import annotations
from enum import Enum

from ..core.coords import clamp, lerp, normalize, saturate, cube_root
from ..core.types import Color


# ── Palette ───────────────────────────────────────────────────────────────────

COLOR_DAY  = (0.4, 0.6, 1.0)     # clear daytime sky
MOONLIGHT  = (0.4, 0.4, 0.6)
STARLIGHT  = (0.03, 0.03, 0.03)
SUNLIGHT   = (0.8, 0.8, 0.75)
TWILIGHT   = (0.6, 0.3, 0.15)

LIMIT_OF_TWILIGHT = 0.1          # sine of the sun's altitude at end of twilight
SUN_BLEND_RANGE   = 0.25         # sun up: sines over which twilight fades
NIGHT_BLEND_RANGE = 0.04         # sun down: sines over which night takes over
MAX_BLOOM         = 1.7

NIGHT_CLOUD_BRIGHTNESS = 0.25    # clouds with the sun and moon both down
MOONLIT_CLOUD_GAIN     = 0.6     # extra brightness per unit of moon illumination

# Slightly off vertical so shadow maps don't alias
STARLIGHT_DIRECTION = tuple(float(c) for c in normalize((1.0, 9.0, 1.0)))


class LightSource(Enum):
    SUN   = "sun"
    MOON  = "moon"
    STARS = "stars"


def _mix(weight: float, a: Color, b: Color) -> Color:
    return (lerp(weight, a[0], b[0]),
            lerp(weight, a[1], b[1]),
            lerp(weight, a[2], b[2]))


def _scale(color: Color, factor: float) -> Color:
    return (color[0] * factor, color[1] * factor, color[2] * factor)


# ── Object colours ───────────────────────────────────────────────────────────

def sun_color(sine_solar: float) -> Color:
    """Sun disc colour: white overhead, reddening toward the horizon."""
    return (1.0, saturate(3.0 * sine_solar), saturate(sine_solar - 0.1))


def moon_color(sine_lunar: float) -> Color:
    return (1.0, saturate(2.0 * sine_lunar + 0.6), saturate(5.0 * sine_lunar + 0.1))


# ── Sky colours ──────────────────────────────────────────────────────────────

def day_fraction(sine_solar: float) -> float:
    """Opacity of the clear daytime sky colour, [0, 1]."""
    return saturate(1.0 + sine_solar / LIMIT_OF_TWILIGHT)


def base_color(sine_solar: float, moon_up: bool, moon_weight: float) -> Color:
    """Overall colour of the sky light before cloud attenuation."""
    if sine_solar >= 0.0:
        weight = saturate(sine_solar / SUN_BLEND_RANGE)
        return _mix(weight, TWILIGHT, SUNLIGHT)

    if moon_up and moon_weight > 0.0:
        blend = _mix(moon_weight, STARLIGHT, MOONLIGHT)
    else:
        blend = STARLIGHT
    weight = saturate(-sine_solar / NIGHT_BLEND_RANGE)
    return _mix(weight, TWILIGHT, blend)


def clouds_color(base: Color, sun_up: bool, moon_up: bool,
                 moon_weight: float = 0.0) -> Color:
    """
    Base colour brightened so its largest channel is 1, then dimmed at night:
    to a quarter without the moon, up to 0.85 under a full moon.
    A base with no positive channel gives white.
    """
    peak = max(base)
    color = _scale(base, 1.0 / peak) if peak > 0.0 else (1.0, 1.0, 1.0)
    if not sun_up:
        brightness = NIGHT_CLOUD_BRIGHTNESS
        if moon_up:
            brightness += MOONLIT_CLOUD_GAIN * moon_weight
        color = _scale(color, brightness)
    return color


# ── Lights ───────────────────────────────────────────────────────────────────

def main_light_color(source: LightSource, base: Color, transmission: float,
                     sine_solar: float, moon_weight: float) -> Color:
    if source is LightSource.SUN:
        return _scale(base, transmission * cube_root(sine_solar))
    if source is LightSource.MOON:
        return _mix(transmission * moon_weight, STARLIGHT, MOONLIGHT)
    return STARLIGHT


def ambient_color(clouds_rgb: Color, main_color: Color) -> Color:
    """Whatever brightness the main light leaves over, tinted by the clouds."""
    slack = 1.0 - max(main_color)
    return _scale(clouds_rgb, slack)


def shadow_intensity(main_color: Color, ambient: Color) -> float:
    """Directional energy / total energy, in [0, 1]; 0 with no light at all."""
    main_amount = sum(main_color)
    ambient_amount = sum(ambient)
    total = main_amount + ambient_amount
    if total == 0.0:
        return 0.0
    return saturate(main_amount / total)


def bloom_intensity(sine_solar: float) -> float:
    return clamp(6.0 * sine_solar, 0.0, MAX_BLOOM)

