"""
SunAndStars — observer time/place state and celestial coordinate transforms.

Deliberately simplified earth-sun model (no ephemeris, no precession): the
sun always transits the meridian at local solar noon and its declination
follows from the solar celestial longitude alone.

Coordinate frames
-----------------
    ecliptic    +x vernal equinox, +z ecliptic north pole
    equatorial  +x vernal equinox, +z celestial north pole
    world       +x north, +y up (zenith), +z east

Usage:
    sas = SunAndStars()
    sas.set_hour(9.5)
    sas.set_solar_longitude_from_date(6, 21)
    up = sas.sun_direction()[1]      # sine of the solar altitude
"""

from __future__ import annotations
import math
from datetime import date
from typing import Tuple

import numpy as np

from .coords import (
    HALF_PI, TWO_PI, X_AXIS, Y_AXIS, Z_AXIS,
    as_vector, axis_rotation, modulo, sph_to_cart,
)
from .errors import InvalidArgumentError
from . import validate


OBLIQUITY        = math.radians(23.44)   # tilt of the ecliptic
HOURS_PER_DAY    = 24
RADIANS_PER_HOUR = TWO_PI / HOURS_PER_DAY
DEFAULT_LATITUDE = math.radians(51.1788)  # Stonehenge

# Day of the (leap) year nearest the March equinox
_EQUINOX_DAY  = 80
_DAYS_IN_YEAR = 366


def convert_to_equatorial(latitude: float, longitude: float) -> np.ndarray:
    """
    Ecliptic (latitude, longitude) → equatorial unit vector.

    latitude  : [-π/2, π/2]
    longitude : [0, 2π], measured eastward from the vernal equinox
    """
    validate.in_range(latitude, "latitude", -HALF_PI, HALF_PI)
    validate.in_range(longitude, "longitude", 0.0, TWO_PI)
    return ecliptic_to_equatorial(sph_to_cart(latitude, longitude))


def ecliptic_to_equatorial(ecliptical) -> np.ndarray:
    """Rotate by the obliquity about the equinox (+x) axis."""
    validate.require_not_none(ecliptical, "coordinates")
    return axis_rotation(OBLIQUITY, X_AXIS).apply(as_vector(ecliptical))


class SunAndStars:
    """
    Time of day, observer latitude and solar longitude for one scene.

    Parameters
    ----------
    hour              : local solar time in hours, [0, 24]
    observer_latitude : radians, [-π/2, π/2]
    solar_longitude   : celestial longitude of the sun, radians, [0, 2π]
    """

    def __init__(self,
                 hour: float = 0.0,
                 observer_latitude: float = DEFAULT_LATITUDE,
                 solar_longitude: float = 0.0):
        self._hour              = 0.0
        self._observer_latitude = DEFAULT_LATITUDE
        self._solar_longitude   = 0.0
        self._solar_ra_hours    = 0.0
        self.set_hour(hour)
        self.set_observer_latitude(observer_latitude)
        self.set_solar_longitude(solar_longitude)

    # ── Properties ───────────────────────────────────────────────────────────

    @property
    def hour(self) -> float:
        return self._hour

    @property
    def observer_latitude(self) -> float:
        return self._observer_latitude

    @property
    def solar_longitude(self) -> float:
        return self._solar_longitude

    @property
    def solar_ra_hours(self) -> float:
        """Cached right ascension of the sun, hours in [0, 24)."""
        return self._solar_ra_hours

    # ── Setters ──────────────────────────────────────────────────────────────

    def set_hour(self, new_hour: float) -> None:
        self._hour = float(validate.in_range(
            new_hour, "hour", 0.0, float(HOURS_PER_DAY)))

    def set_observer_latitude(self, latitude: float) -> None:
        self._observer_latitude = float(validate.in_range(
            latitude, "latitude", -HALF_PI, HALF_PI))

    def set_solar_longitude(self, longitude: float) -> None:
        """Set the sun's celestial longitude and refresh its right ascension."""
        validate.in_range(longitude, "longitude", 0.0, TWO_PI)
        equatorial = convert_to_equatorial(0.0, longitude)
        ra = -math.atan2(equatorial[1], equatorial[0])
        ra_hours = modulo(ra / RADIANS_PER_HOUR, float(HOURS_PER_DAY))

        self._solar_longitude = float(longitude)
        self._solar_ra_hours  = ra_hours

    def set_solar_longitude_from_date(self, month: int, day: int) -> None:
        """
        Approximate the solar longitude from a calendar date.

        month: 1-12, day: valid day of that month in a leap year.
        Uses 2π·(dayOfYear − 80)/366, i.e. zero at the March equinox.
        """
        validate.in_range(month, "month", 1, 12)
        validate.in_range(day, "day", 1, 31)
        try:
            day_of_year = date(2000, month, day).timetuple().tm_yday
        except ValueError as exc:
            raise InvalidArgumentError(
                f"no day {day} in month {month}") from exc

        days_since_equinox = day_of_year - _EQUINOX_DAY
        longitude = modulo(TWO_PI * days_since_equinox / _DAYS_IN_YEAR, TWO_PI)
        self.set_solar_longitude(longitude)

    # ── Sidereal time ────────────────────────────────────────────────────────

    def sidereal_hour(self) -> float:
        """Sidereal time in hours, [0, 24)."""
        noon = 12.0
        return modulo(self._hour - noon - self._solar_ra_hours,
                      float(HOURS_PER_DAY))

    def sidereal_angle(self) -> float:
        """Sidereal time as an angle, radians in [0, 2π)."""
        return modulo(self.sidereal_hour() * RADIANS_PER_HOUR, TWO_PI)

    # ── Conversions ──────────────────────────────────────────────────────────

    def convert_to_world(self, latitude: float, longitude: float) -> np.ndarray:
        """Ecliptic (latitude, longitude) → world unit vector."""
        validate.in_range(latitude, "latitude", -HALF_PI, HALF_PI)
        validate.in_range(longitude, "longitude", 0.0, TWO_PI)
        return self.equatorial_to_world(convert_to_equatorial(latitude, longitude))

    def equatorial_to_world(self, equatorial) -> np.ndarray:
        """
        Equatorial vector → world vector (+x north, +y up, +z east).

        Rotate by −siderealAngle about the pole, tilt by (latitude − π/2)
        about the east axis, then permute the axes.
        """
        validate.require_not_none(equatorial, "coordinates")
        z_rotation = axis_rotation(-self.sidereal_angle(), Z_AXIS)
        co_latitude = HALF_PI - self._observer_latitude
        y_rotation = axis_rotation(-co_latitude, Y_AXIS)
        rotated = (y_rotation * z_rotation).apply(as_vector(equatorial))
        return np.array([-rotated[0], rotated[2], rotated[1]])

    def sun_direction(self) -> np.ndarray:
        """World direction to the sun, unit length."""
        return self.convert_to_world(0.0, self._solar_longitude)

    # ── Star orientations ────────────────────────────────────────────────────

    def equatorial_sky_orientation(self, invert: bool = False) -> np.ndarray:
        """3×3 rotation for a star sphere modelled in equatorial coordinates."""
        x_rotation = axis_rotation(-self.sidereal_angle(), X_AXIS)
        z_rotation = axis_rotation(self._observer_latitude, Z_AXIS)
        orientation = z_rotation * x_rotation
        if invert:
            orientation = orientation.inv()
        return orientation.as_matrix()

    def star_dome_orientations(self) -> Tuple[np.ndarray, np.ndarray]:
        """(north, south) 3×3 rotations for a pair of star-map domes."""
        sidereal = self.sidereal_angle()

        co_latitude = HALF_PI - self._observer_latitude
        north = (axis_rotation(-co_latitude, Z_AXIS)
                 * axis_rotation(-sidereal, Y_AXIS))

        south = (axis_rotation(HALF_PI + self._observer_latitude, Z_AXIS)
                 * axis_rotation(sidereal, Y_AXIS))

        return north.as_matrix(), south.as_matrix()

    def __repr__(self) -> str:
        return ("SunAndStars(hour=%f, lat=%f deg, long=%f deg, ra=%f)" % (
            self._hour,
            math.degrees(self._observer_latitude),
            math.degrees(self._solar_longitude),
            self._solar_ra_hours))
