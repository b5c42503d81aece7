"""
Distance Engine.

Pure functions measuring distances between city positions, in both
projection modes, plus aggregation of a distance matrix into a single
total that the error readout compares against reality.

Models
------
1. Sphere mode: great-circle distance by the haversine formula on a sphere
   of Earth's mean radius. Scene positions are first converted back to
   latitude/longitude, so the globe's scene radius does not matter.

2. Plane mode: Euclidean distance in the horizontal plane of the disk,
   scaled from scene units to kilometres. Vertical offsets are ignored.

Rounding
--------
Spherical distances are rounded to 0.01 km and planar distances to whole
scene units, so that marker jitter does not flicker the readout.

References
----------
- Sinnott, R.W. (1984). Virtues of the Haversine. Sky and Telescope, 68(2), 159.
"""

from typing import Dict, Mapping, Optional, Union
import numpy as np

import pint

from common.constants import SceneConstants
from common.logging_config import get_logger
from common.types import (
    CityName,
    CityTable,
    Distances,
    ErrorLevel,
    PolarCoords,
    ProjectedPosition,
    ProjectionMode,
)
from common.units import to_kilometers, validate_length
from geospatial.coordinate_models import CITY_COORDINATES, cartesian_to_angular

logger = get_logger(__name__)


def spherical_distance(
    a: PolarCoords,
    b: PolarCoords,
    radius: Union[float, pint.Quantity] = SceneConstants.EARTH_RADIUS.value
) -> float:
    """Compute the great-circle distance between two coordinates.

    Parameters
    ----------
    a, b : PolarCoords
        Coordinates in degrees.
    radius : float or pint.Quantity
        Sphere radius. Bare numbers are metres.

    Returns
    -------
    float
        Distance in kilometres, rounded to two decimals.
    """
    if isinstance(radius, pint.Quantity):
        validate_length(radius)
        radius = radius.to("m").magnitude

    lat1 = np.radians(a.lat)
    lat2 = np.radians(b.lat)
    dlat = np.radians(b.lat - a.lat)
    dlon = np.radians(b.lon - a.lon)

    h = np.sin(dlat / 2)**2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2)**2
    h = np.clip(h, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))

    return round(to_kilometers(radius * c), 2)


def planar_distance(p1: ProjectedPosition, p2: ProjectedPosition) -> int:
    """Compute the horizontal distance between two disk positions.

    Parameters
    ----------
    p1, p2 : ProjectedPosition
        Positions in scene units. The y component is ignored.

    Returns
    -------
    int
        Distance in scene units, rounded to the nearest integer.
    """
    # Halves round up
    return int(np.floor(np.hypot(p1.x - p2.x, p1.z - p2.z) + 0.5))


def total_distance(matrix: Distances) -> float:
    """Aggregate a distance matrix into one number.

    Every entry is summed, so each unordered pair contributes twice, and
    the sum is divided by the shrink factor. Rounding for display is left
    to the caller.
    """
    total = 0.0
    for row in matrix.values():
        for distance in row.values():
            total += distance
    return total / SceneConstants.DISTANCE_SHRINK_FACTOR.value


def _symmetric_matrix(names, measure) -> Distances:
    matrix: Distances = {name: {} for name in names}
    for i, name1 in enumerate(names):
        matrix[name1][name1] = 0.0
        for name2 in names[i + 1:]:
            distance = measure(name1, name2)
            matrix[name1][name2] = distance
            matrix[name2][name1] = distance
    return matrix


def calculate_distances_sphere(cities: CityTable) -> Distances:
    """Distance matrix of positions on the scene sphere, in km."""
    radius = SceneConstants.SPHERE_RADIUS.value
    coords = {
        name: cartesian_to_angular(position, radius)
        for name, position in cities.items()
    }
    return _symmetric_matrix(
        list(cities),
        lambda n1, n2: spherical_distance(coords[n1], coords[n2])
    )


def calculate_distances_plane(cities: CityTable) -> Distances:
    """Distance matrix of positions on the disk, in km."""
    scale = SceneConstants.PLANAR_SCALE_FACTOR.value
    return _symmetric_matrix(
        list(cities),
        lambda n1, n2: float(planar_distance(cities[n1], cities[n2]) * scale)
    )


def distance_strategy(mode: ProjectionMode):
    """Select the matrix computation for a projection mode."""
    if ProjectionMode(mode) is ProjectionMode.SPHERE:
        return calculate_distances_sphere
    return calculate_distances_plane


class RealDistanceCache:
    """Owned cache of the true distance matrix over all known cities.

    The matrix is computed on the first call to `get_real_distances()` and
    returned unchanged afterwards; true coordinates never change, so the
    cache is never invalidated.

    Examples
    --------
    >>> cache = RealDistanceCache()
    >>> first = cache.get_real_distances()
    >>> first is cache.get_real_distances()
    True
    """

    def __init__(self, coordinates: Optional[Mapping[CityName, PolarCoords]] = None):
        self._coordinates = coordinates if coordinates is not None else CITY_COORDINATES
        self._matrix: Optional[Distances] = None
        self._population_count = 0

    @property
    def populated(self) -> bool:
        return self._matrix is not None

    @property
    def population_count(self) -> int:
        """Number of times the matrix has been computed (0 or 1)."""
        return self._population_count

    def get_real_distances(self) -> Distances:
        if self._matrix is None:
            coords = self._coordinates
            self._matrix = _symmetric_matrix(
                list(coords),
                lambda n1, n2: spherical_distance(coords[n1], coords[n2])
            )
            self._population_count += 1
            logger.debug(f"Computed true distances for {len(coords)} cities")
        return self._matrix


def restrict(matrix: Distances, names) -> Distances:
    """Sub-matrix over the given cities."""
    names = [name for name in names if name in matrix]
    return {n1: {n2: matrix[n1][n2] for n2 in names} for n1 in names}


def total_error(curr: Distances, real: Distances) -> float:
    """Absolute difference between the current and true totals.

    The true matrix is restricted to the cities present in `curr`.
    """
    return abs(total_distance(curr) - total_distance(restrict(real, curr.keys())))


def classify_error(delta_km: float) -> ErrorLevel:
    """Classify the gap between a current and a true distance."""
    thresholds: Dict[str, float] = SceneConstants.ERROR_LEVEL_THRESHOLDS_KM
    magnitude = abs(delta_km)
    if magnitude < thresholds["close"]:
        return ErrorLevel.CLOSE
    if magnitude < thresholds["near"]:
        return ErrorLevel.NEAR
    return ErrorLevel.FAR
