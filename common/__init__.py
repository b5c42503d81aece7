"""
Common utilities and infrastructure for the Projection Distortion Explorer.

This package provides foundational components used across all modules:
- Scene constants
- Unit registry for metre / kilometre / disk-unit conversions
- Type definitions (cities, positions, animation tags, request results)
- Error types
- Logging infrastructure
"""

from common.constants import Constant, SceneConstants
from common.units import ureg, Q_, to_kilometers, to_disk_units
from common.types import (
    CityName,
    ProjectionMode,
    AnimationTag,
    ErrorLevel,
    RejectionReason,
    PolarCoords,
    ProjectedPosition,
    HoveredCityInfo,
    ContextMenu,
    RequestResult,
    PairReadout,
    Distances,
    CityTable,
    Animations,
)
from common.errors import InvariantViolationError, InvalidReferenceError
from common.logging_config import get_logger

__all__ = [
    "Constant",
    "SceneConstants",
    "ureg",
    "Q_",
    "to_kilometers",
    "to_disk_units",
    "CityName",
    "ProjectionMode",
    "AnimationTag",
    "ErrorLevel",
    "RejectionReason",
    "PolarCoords",
    "ProjectedPosition",
    "HoveredCityInfo",
    "ContextMenu",
    "RequestResult",
    "PairReadout",
    "Distances",
    "CityTable",
    "Animations",
    "InvariantViolationError",
    "InvalidReferenceError",
    "get_logger",
]
