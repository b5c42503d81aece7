"""
Destination Policies for Reset and Pin Animations.

An animation moves a city marker from where the user left it to a
destination chosen by the active projection mode. This module computes
those destinations.

Animation Intents
-----------------
- global: every city goes back to its true layout.
- fixed: the pinned city stays where it is.
- moving: every other city is placed at its true distance and bearing
  from the pinned (anchor) city, wherever the user put the anchor.

Disk Layout
-----------
The disk is an azimuthal equidistant map. The global layout is centred on
the North Pole, which reproduces the familiar flat-disk world map; the
moving layout is centred on the anchor's true coordinates so that every
distance measured from the anchor is true. Projection is done with
`pyproj` on a sphere of Earth's mean radius.

References
----------
- Snyder, J.P. (1987). Map Projections - A Working Manual. USGS Prof. Paper 1395.
"""

from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Mapping, Optional, Tuple
import numpy as np
from numpy.typing import NDArray

from pyproj import CRS, Transformer

from common.constants import SceneConstants
from common.errors import InvalidReferenceError
from common.logging_config import get_logger
from common.types import (
    AnimationTag,
    CityName,
    PolarCoords,
    ProjectedPosition,
    ProjectionMode,
)
from common.units import to_disk_units
from geospatial.coordinate_models import (
    angular_to_cartesian,
    true_coordinates,
    unit_vector,
)

logger = get_logger(__name__)

NORTH_POLE = PolarCoords(lat=90.0, lon=0.0)


class AzimuthalEquidistant:
    """Azimuthal equidistant projection on a sphere.

    Distances and bearings measured from the centre are true.

    Parameters
    ----------
    center : PolarCoords
        Projection centre in degrees.
    radius_m : float
        Sphere radius in metres.
    """

    def __init__(
        self,
        center: PolarCoords,
        radius_m: float = SceneConstants.EARTH_RADIUS.value
    ):
        self._center = center
        self._proj4 = (
            f"+proj=aeqd +lat_0={center.lat} +lon_0={center.lon} "
            f"+R={radius_m} +units=m +no_defs"
        )

        self._crs_geo = CRS.from_proj4(f"+proj=longlat +R={radius_m} +no_defs")
        self._crs_proj = CRS.from_proj4(self._proj4)
        self._to_proj = Transformer.from_crs(self._crs_geo, self._crs_proj, always_xy=True)

    @property
    def center(self) -> PolarCoords:
        return self._center

    @property
    def proj4_string(self) -> str:
        return self._proj4

    def to_projected(self, coords: PolarCoords) -> Tuple[float, float]:
        """Project to (easting, northing) in metres."""
        x, y = self._to_proj.transform(coords.lon, coords.lat)
        return float(x), float(y)


@lru_cache(maxsize=32)
def _projection_centred_on(center: PolarCoords) -> AzimuthalEquidistant:
    return AzimuthalEquidistant(center)


def disk_offset(coords: PolarCoords, center: PolarCoords) -> NDArray[np.float64]:
    """Offset on the disk, in scene units, of `coords` from `center`.

    The centre maps to the origin; the returned vector has y = 0.
    """
    easting, northing = _projection_centred_on(center).to_projected(coords)
    # Looking down on the disk, the prime meridian runs along +x.
    return np.array([
        -to_disk_units(northing),
        0.0,
        -to_disk_units(easting),
    ])


def _rotation_between(u: NDArray[np.float64], v: NDArray[np.float64]) -> NDArray[np.float64]:
    """Rotation matrix taking unit vector `u` onto unit vector `v`."""
    axis = np.cross(u, v)
    s = float(np.linalg.norm(axis))
    c = float(np.clip(np.dot(u, v), -1.0, 1.0))

    if s < SceneConstants.SLERP_EPSILON.value:
        if c > 0:
            return np.eye(3)
        # Half turn about any axis perpendicular to u
        helper = np.array([1.0, 0.0, 0.0]) if abs(u[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
        k = np.cross(u, helper)
        k /= np.linalg.norm(k)
        return 2.0 * np.outer(k, k) - np.eye(3)

    K = np.array([
        [0.0, -axis[2], axis[1]],
        [axis[2], 0.0, -axis[0]],
        [-axis[1], axis[0], 0.0],
    ])
    return np.eye(3) + K + K @ K * ((1 - c) / s**2)


class DestinationPolicy(ABC):
    """Mode-specific rule for where an animation ends.

    Given the animation intent, the city, the live positions and the
    anchor city (if any), return exactly one destination.
    """

    @property
    @abstractmethod
    def mode(self) -> ProjectionMode:
        pass

    @abstractmethod
    def true_layout_position(self, city: CityName) -> ProjectedPosition:
        """Position of the city in the true layout of this mode."""
        pass

    @abstractmethod
    def relative_position(
        self,
        city: CityName,
        anchor: CityName,
        anchor_position: ProjectedPosition
    ) -> ProjectedPosition:
        """Position at the city's true distance and bearing from the anchor."""
        pass

    def destination(
        self,
        tag: AnimationTag,
        city: CityName,
        positions: Mapping[CityName, ProjectedPosition],
        anchor: Optional[CityName] = None
    ) -> ProjectedPosition:
        """Compute the destination of one city.

        Parameters
        ----------
        tag : AnimationTag
            Animation intent of the city.
        city : CityName
            The animated city.
        positions : Mapping
            Live positions of the registered cities.
        anchor : CityName, optional
            The pinned city. Without one, `moving` falls back to the
            true layout.

        Raises
        ------
        InvalidReferenceError
            If `city` or `anchor` is not registered, or `tag` is idle.
        """
        if tag is None:
            raise InvalidReferenceError("Cannot compute a destination for an idle city")
        if city not in positions:
            raise InvalidReferenceError(f"City {city!r} is not registered")

        tag = AnimationTag(tag)
        if tag is AnimationTag.FIXED:
            return positions[city].copy()
        if tag is AnimationTag.MOVING and anchor is not None and anchor != city:
            if anchor not in positions:
                raise InvalidReferenceError(f"Anchor {anchor!r} is not registered")
            return self.relative_position(city, anchor, positions[anchor])
        return self.true_layout_position(city)


class SphericalDestinationPolicy(DestinationPolicy):
    """Destinations on the scene sphere."""

    def __init__(self, radius: float = SceneConstants.SPHERE_RADIUS.value):
        self._radius = radius

    @property
    def mode(self) -> ProjectionMode:
        return ProjectionMode.SPHERE

    def true_layout_position(self, city: CityName) -> ProjectedPosition:
        coords = true_coordinates(city)
        return angular_to_cartesian(coords.lat, coords.lon, self._radius)

    def relative_position(
        self,
        city: CityName,
        anchor: CityName,
        anchor_position: ProjectedPosition
    ) -> ProjectedPosition:
        # Rotate the true globe so the anchor lands where the user put it
        anchor_true, _ = unit_vector(self.true_layout_position(anchor))
        anchor_now, norm = unit_vector(anchor_position)
        if norm == 0.0:
            return self.true_layout_position(city)

        rotation = _rotation_between(anchor_true, anchor_now)
        city_true, _ = unit_vector(self.true_layout_position(city))
        return ProjectedPosition.from_array(rotation @ city_true * self._radius)


class PlanarDestinationPolicy(DestinationPolicy):
    """Destinations on the disk."""

    def __init__(self, elevation: float = SceneConstants.DISK_ELEVATION.value):
        self._elevation = elevation

    @property
    def mode(self) -> ProjectionMode:
        return ProjectionMode.PLANE

    def true_layout_position(self, city: CityName) -> ProjectedPosition:
        offset = disk_offset(true_coordinates(city), NORTH_POLE)
        offset[1] = self._elevation
        return ProjectedPosition.from_array(offset)

    def relative_position(
        self,
        city: CityName,
        anchor: CityName,
        anchor_position: ProjectedPosition
    ) -> ProjectedPosition:
        offset = disk_offset(true_coordinates(city), true_coordinates(anchor))
        target = anchor_position.as_array() + offset
        target[1] = self._elevation
        return ProjectedPosition.from_array(target)


def destination_policy(mode: ProjectionMode) -> DestinationPolicy:
    """Select the destination policy for a projection mode."""
    if ProjectionMode(mode) is ProjectionMode.SPHERE:
        return SphericalDestinationPolicy()
    return PlanarDestinationPolicy()
