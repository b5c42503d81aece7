"""
Type Definitions for the Projection Distortion Explorer.

This module defines the enums and dataclasses exchanged between the
coordinate table, the distance engine, the animation engine and the store.

Coordinate Conventions
----------------------
- `PolarCoords` are true geographic coordinates in DEGREES.
- `ProjectedPosition` is a 3D scene coordinate. On the sphere it lies at
  the sphere radius from the origin; on the disk `y` is the disk elevation
  and only `x` and `z` carry information.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple
import numpy as np
from numpy.typing import NDArray


class CityName(str, Enum):
    """Identifier of a known city.

    Member order is the catalogue order: a requested city count `n`
    selects the first `n` members.
    """
    ATLANTA = "atlanta"
    BEIJING = "beijing"
    LONDON = "london"
    SYDNEY = "sydney"
    RIO_DE_JANEIRO = "rio_de_janeiro"
    CAPE_TOWN = "cape_town"
    TOKYO = "tokyo"
    MOSCOW = "moscow"
    MUMBAI = "mumbai"
    MEXICO_CITY = "mexico_city"


class ProjectionMode(str, Enum):
    """How city positions are interpreted."""
    PLANE = "plane"
    SPHERE = "sphere"


class AnimationTag(str, Enum):
    """Non-idle animation state of a city. Idle is represented by None."""
    FIXED = "fixed"
    MOVING = "moving"
    GLOBAL = "global"


class ErrorLevel(str, Enum):
    """How far a current distance is from the true distance."""
    CLOSE = "close"
    NEAR = "near"
    FAR = "far"


class RejectionReason(str, Enum):
    """Why a store request was rejected."""
    WAVE_IN_FLIGHT = "wave_in_flight"


@dataclass(frozen=True)
class PolarCoords:
    """A true geographic coordinate.

    Attributes
    ----------
    lat : float
        Latitude in DEGREES. Range: [-90, 90].
    lon : float
        Longitude in DEGREES, positive east.
    """
    lat: float
    lon: float

    def __post_init__(self):
        """Validate latitude range."""
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(
                f"Latitude {self.lat} deg out of range [-90, 90]. "
                f"Did you pass radians or swap lat/lon?"
            )

    def to_radians(self) -> Tuple[float, float]:
        """Return (lat_rad, lon_rad)."""
        return float(np.radians(self.lat)), float(np.radians(self.lon))


@dataclass
class ProjectedPosition:
    """A mutable 3D scene position.

    Instances owned by the store are written in place, so a holder of the
    reference (for example the hovered-city record) always sees the live
    position.
    """
    x: float
    y: float
    z: float

    def as_array(self) -> NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_array(cls, values: NDArray[np.float64]) -> 'ProjectedPosition':
        return cls(float(values[0]), float(values[1]), float(values[2]))

    def set(self, x: float, y: float, z: float) -> None:
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)

    def copy_from(self, other: 'ProjectedPosition') -> None:
        self.set(other.x, other.y, other.z)

    def copy(self) -> 'ProjectedPosition':
        return ProjectedPosition(self.x, self.y, self.z)

    def distance_to(self, other: 'ProjectedPosition') -> float:
        """Euclidean distance in scene units."""
        return float(np.linalg.norm(self.as_array() - other.as_array()))


@dataclass
class HoveredCityInfo:
    """The city currently under pointer control.

    Attributes
    ----------
    name : CityName
        The hovered city.
    position : ProjectedPosition
        Live reference to the store-owned position of that city.
    """
    name: CityName
    position: ProjectedPosition


@dataclass
class ContextMenu:
    """State of the per-city context menu."""
    city_name: Optional[CityName] = None
    mouse_position: Optional[Tuple[float, float]] = None
    anchor: Optional[CityName] = None
    visible: bool = False


@dataclass(frozen=True)
class RequestResult:
    """Outcome of a request the caller is expected to check.

    Truthy exactly when the request was accepted.
    """
    accepted: bool
    reason: Optional[RejectionReason] = None

    def __bool__(self) -> bool:
        return self.accepted

    @classmethod
    def ok(cls) -> 'RequestResult':
        return cls(accepted=True)

    @classmethod
    def rejected(cls, reason: RejectionReason) -> 'RequestResult':
        return cls(accepted=False, reason=reason)


@dataclass
class PairReadout:
    """Current and true distance of one city pair, in kilometres.

    Attributes
    ----------
    curr_distance : float
        Distance in the user's current layout.
    true_distance : float
        Great-circle distance between the true coordinates.
    delta : float
        Signed difference `curr_distance - true_distance`.
    level : ErrorLevel
        Classification of `abs(delta)`.
    """
    curr_distance: float
    true_distance: float
    delta: float
    level: ErrorLevel


# Symmetric matrix of distances in km. An entry is absent when the city is
# not part of the matrix; the diagonal is stored and is 0.
Distances = Dict[CityName, Dict[CityName, float]]

# Live position per registered city. Unregistered cities are absent.
CityTable = Dict[CityName, ProjectedPosition]

# Animation tag per known city; None means idle.
Animations = Dict[CityName, Optional[AnimationTag]]
