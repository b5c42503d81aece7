"""
Error readouts derived from the store.

These helpers are what the presentation layer displays: the distance of one
city pair against reality, and the total error of the whole layout.
"""

from typing import Optional, Union
import numpy as np

from common.constants import SceneConstants
from common.errors import InvalidReferenceError
from common.types import CityName, PairReadout
from geospatial.distance_calculations import classify_error, total_error
from state.store import PositionStore


def pair_readout(
    store: PositionStore,
    city1: Union[CityName, str],
    city2: Union[CityName, str]
) -> PairReadout:
    """Current versus true distance of one pair of registered cities.

    Raises
    ------
    InvalidReferenceError
        If either city is not registered.
    """
    city1, city2 = CityName(city1), CityName(city2)
    curr = store.curr_distances
    if city1 not in curr or city2 not in curr:
        raise InvalidReferenceError(
            f"Both {city1.value!r} and {city2.value!r} must be registered"
        )

    curr_distance = curr[city1][city2]
    true_distance = store.real_distances[city1][city2]
    delta = curr_distance - true_distance
    return PairReadout(
        curr_distance=curr_distance,
        true_distance=true_distance,
        delta=delta,
        level=classify_error(delta),
    )


def layout_error(store: PositionStore) -> float:
    """Total error of the current layout over the registered cities."""
    return total_error(store.curr_distances, store.real_distances)


def total_error_display(store: PositionStore) -> Optional[float]:
    """Total error rounded for display, or None until every city is registered."""
    if not store.is_ready:
        return None
    step = SceneConstants.DISPLAY_ROUNDING.value
    # Halves round up
    return int(np.floor(layout_error(store) / step + 0.5)) * step


def is_solved(
    store: PositionStore,
    threshold: float = SceneConstants.SOLVED_ERROR_THRESHOLD.value
) -> bool:
    """Whether the layout matches reality closely enough."""
    return store.is_ready and layout_error(store) < threshold
