"""
Geospatial Module for the Projection Distortion Explorer.

All distance and projection calculations in the system originate from this
module. The store and the animation engine only call into it.

This module provides:
- The coordinate table of known cities and angular/Cartesian conversions
- The distance engine (haversine, planar, matrix totals, true-distance cache)
- Mode-specific destination policies for animations
"""

from geospatial.coordinate_models import (
    CITY_COORDINATES,
    true_coordinates,
    true_positions,
    angular_to_cartesian,
    cartesian_to_angular,
)

from geospatial.distance_calculations import (
    spherical_distance,
    planar_distance,
    total_distance,
    total_error,
    classify_error,
    calculate_distances_sphere,
    calculate_distances_plane,
    distance_strategy,
    RealDistanceCache,
)

from geospatial.projections import (
    AzimuthalEquidistant,
    DestinationPolicy,
    SphericalDestinationPolicy,
    PlanarDestinationPolicy,
    destination_policy,
)

__all__ = [
    # Coordinate table
    "CITY_COORDINATES",
    "true_coordinates",
    "true_positions",
    "angular_to_cartesian",
    "cartesian_to_angular",
    # Distance engine
    "spherical_distance",
    "planar_distance",
    "total_distance",
    "total_error",
    "classify_error",
    "calculate_distances_sphere",
    "calculate_distances_plane",
    "distance_strategy",
    "RealDistanceCache",
    # Destination policies
    "AzimuthalEquidistant",
    "DestinationPolicy",
    "SphericalDestinationPolicy",
    "PlanarDestinationPolicy",
    "destination_policy",
]
