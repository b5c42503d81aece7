"""
Coordinate Table and Angular/Cartesian Conversions.

This module holds the true geographic coordinates of every known city and
the conversions between angular coordinates (latitude, longitude) and
Cartesian scene coordinates on a sphere.

Scene Frame
-----------
The sphere is centred at the origin with the y-axis through the North
Pole:

- y = r sin(lat)
- x = r cos(lat) cos(-lon)
- z = r cos(lat) sin(-lon)

Longitude is negated so that east appears to the right when the globe is
viewed from outside with north up.
"""

from types import MappingProxyType
from typing import Dict, Mapping, Tuple
import numpy as np
from numpy.typing import NDArray

from common.types import CityName, PolarCoords, ProjectedPosition


# True coordinates in degrees, in catalogue order
CITY_COORDINATES: Mapping[CityName, PolarCoords] = MappingProxyType({
    CityName.ATLANTA: PolarCoords(lat=33.7490, lon=-84.3880),
    CityName.BEIJING: PolarCoords(lat=39.9042, lon=116.4074),
    CityName.LONDON: PolarCoords(lat=51.5074, lon=-0.1278),
    CityName.SYDNEY: PolarCoords(lat=-33.8688, lon=151.2093),
    CityName.RIO_DE_JANEIRO: PolarCoords(lat=-22.9068, lon=-43.1729),
    CityName.CAPE_TOWN: PolarCoords(lat=-33.9249, lon=18.4241),
    CityName.TOKYO: PolarCoords(lat=35.6762, lon=139.6503),
    CityName.MOSCOW: PolarCoords(lat=55.7558, lon=37.6173),
    CityName.MUMBAI: PolarCoords(lat=19.0760, lon=72.8777),
    CityName.MEXICO_CITY: PolarCoords(lat=19.4326, lon=-99.1332),
})


def true_coordinates(name: CityName) -> PolarCoords:
    """Look up the true coordinates of a city.

    Raises
    ------
    KeyError
        If the city is not in the catalogue.
    """
    return CITY_COORDINATES[CityName(name)]


def true_positions(n_cities: int) -> Dict[CityName, PolarCoords]:
    """Select the first `n_cities` catalogue cities with their coordinates.

    Parameters
    ----------
    n_cities : int
        Requested count. Range: [1, number of known cities].

    Returns
    -------
    dict
        CityName -> PolarCoords in catalogue order.
    """
    if not 1 <= n_cities <= len(CITY_COORDINATES):
        raise ValueError(
            f"Requested {n_cities} cities, expected between 1 and "
            f"{len(CITY_COORDINATES)}"
        )
    names = list(CITY_COORDINATES)[:n_cities]
    return {name: CITY_COORDINATES[name] for name in names}


def angular_to_cartesian(
    lat_deg: float,
    lon_deg: float,
    radius: float
) -> ProjectedPosition:
    """Convert latitude/longitude to a point on a sphere.

    Parameters
    ----------
    lat_deg, lon_deg : float
        Geographic coordinates in degrees.
    radius : float
        Sphere radius in scene units.

    Returns
    -------
    ProjectedPosition
        The point on the sphere.
    """
    lat_rad = np.radians(lat_deg)
    lon_rad = -np.radians(lon_deg)

    x = np.cos(lat_rad) * np.cos(lon_rad) * radius
    y = np.sin(lat_rad) * radius
    z = np.cos(lat_rad) * np.sin(lon_rad) * radius

    return ProjectedPosition(float(x), float(y), float(z))


def cartesian_to_angular(
    position: ProjectedPosition,
    radius: float
) -> PolarCoords:
    """Convert a point on a sphere to latitude/longitude.

    Parameters
    ----------
    position : ProjectedPosition
        Point on (or near) the sphere.
    radius : float
        Sphere radius in scene units.

    Returns
    -------
    PolarCoords
        Geographic coordinates in degrees.

    Notes
    -----
    A marker dragged slightly off the sphere can give |y| > radius; the
    ratio is clipped so the latitude saturates at the pole.
    """
    sin_lat = np.clip(position.y / radius, -1.0, 1.0)
    lat_deg = np.clip(np.degrees(np.arcsin(sin_lat)), -90.0, 90.0)
    lon_deg = -np.degrees(np.arctan2(position.z, position.x))

    return PolarCoords(lat=float(lat_deg), lon=float(lon_deg))


def unit_vector(position: ProjectedPosition) -> Tuple[NDArray[np.float64], float]:
    """Return the direction of a position and its norm."""
    vec = position.as_array()
    norm = float(np.linalg.norm(vec))
    if norm == 0.0:
        return vec, 0.0
    return vec / norm, norm
