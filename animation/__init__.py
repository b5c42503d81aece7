"""
Animation Module for the Projection Distortion Explorer.

Per-city interpolation state machines driven by a frame tick.
"""

from animation.engine import (
    AnimationEngine,
    AnimationPhase,
    CityAnimation,
    interpolate,
    lerp,
    slerp,
)

__all__ = [
    "AnimationEngine",
    "AnimationPhase",
    "CityAnimation",
    "interpolate",
    "lerp",
    "slerp",
]
