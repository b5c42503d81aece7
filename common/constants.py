"""
Scene Constants for the Projection Distortion Explorer.

This module provides the fixed configuration of the scene: geometry of the
sphere and the disk, the animation timing and the numeric tolerances used by
the distance engine. None of these values are runtime-configurable.

Scene Units
-----------
Positions live in an abstract 3D scene. On the sphere a position is a point
at `SPHERE_RADIUS` from the origin; on the disk it is a point in the
horizontal plane `y = DISK_ELEVATION`, where one scene unit represents
`PLANAR_SCALE_FACTOR` kilometres of Earth surface.
"""

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class Constant:
    """A scene constant with its unit and meaning.

    Attributes
    ----------
    value : float
        The nominal value of the constant.
    unit : str
        The unit of the constant ("scene" for scene units).
    description : str
        Human-readable description of the constant.
    """
    value: float
    unit: str
    description: str


class SceneConstants:
    """Registry of constants used throughout the system.

    Geometry
    --------
    Sizes of the two representations of Earth and the scale that relates
    the disk to real kilometres.

    Distance Engine
    ---------------
    Radius used for true distances and the shrink factor applied when
    aggregating a distance matrix.

    Animation
    ---------
    Duration of a reset/pin animation and the tolerances that decide when
    an animation is needed at all.
    """

    # =========================================================================
    # Geometry
    # =========================================================================

    SPHERE_RADIUS: Final[Constant] = Constant(
        value=10.0,
        unit="scene",
        description="Radius of the globe on which city markers sit in sphere mode"
    )

    CIRCLE_RADIUS: Final[Constant] = Constant(
        value=100.0,
        unit="scene",
        description="Radius of the flat disk map (North Pole to its antipode)"
    )

    PLANAR_SCALE_FACTOR: Final[Constant] = Constant(
        value=200.0,
        unit="km / scene",
        description="Kilometres of Earth surface represented by one disk unit"
    )

    DISK_ELEVATION: Final[Constant] = Constant(
        value=0.0,
        unit="scene",
        description="Height of the disk plane; every planar position has this y"
    )

    # =========================================================================
    # Distance Engine
    # =========================================================================

    EARTH_RADIUS: Final[Constant] = Constant(
        value=6_371_000.0,
        unit="m",
        description="Mean Earth radius used for all great-circle distances"
    )

    DISTANCE_SHRINK_FACTOR: Final[Constant] = Constant(
        value=1000.0,
        unit="dimensionless",
        description="Divisor applied to the sum of a distance matrix"
    )

    # =========================================================================
    # Animation
    # =========================================================================

    ANIMATION_DURATION: Final[Constant] = Constant(
        value=2.0,
        unit="s",
        description="Wall-clock duration of a marker animation"
    )

    POSITION_EPSILON: Final[Constant] = Constant(
        value=0.01,
        unit="scene",
        description="Distance below which two positions are considered equal"
    )

    SLERP_EPSILON: Final[Constant] = Constant(
        value=1e-6,
        unit="rad",
        description="Angle below which spherical interpolation is degenerate"
    )

    # =========================================================================
    # Readout
    # =========================================================================

    DEFAULT_CITY_COUNT: Final[int] = 7

    SOLVED_ERROR_THRESHOLD: Final[Constant] = Constant(
        value=100.0,
        unit="dimensionless",
        description="Total error below which a layout counts as matching reality"
    )

    DISPLAY_ROUNDING: Final[Constant] = Constant(
        value=100.0,
        unit="dimensionless",
        description="Granularity of the total error shown to the user"
    )

    # Upper bounds (exclusive) of |current - true| in km for each error level
    ERROR_LEVEL_THRESHOLDS_KM: Final[dict] = {
        "close": 500.0,
        "near": 2000.0,
    }
