"""
Position/Consistency Store.

The store is the single authority over the live marker positions, the
hovered city, the per-city animation tags and the current distance matrix.
Every position-affecting call re-derives the distance matrix before it
returns, so a reader never sees positions and distances out of step.

Lifecycle
---------
A store is created explicitly and handed to whichever component needs it:

>>> store = PositionStore()
>>> store.update_route(ProjectionMode.SPHERE)
>>> store.update_cities(CityName.ATLANTA, ProjectedPosition(10.0, 0.0, 0.0))
>>> store.n_rendered_cities
1
>>> store.dispose()

Animation Waves
---------------
At most one animation wave is in flight. While any city holds a non-idle
tag, every non-idle request is rejected. The non-idle tags always form one
of two patterns: all equal, or one `fixed` city with the others `moving`.
"""

from types import MappingProxyType
from typing import Dict, Mapping, Optional, Union

from common.constants import SceneConstants
from common.errors import InvalidReferenceError, InvariantViolationError
from common.logging_config import get_logger
from common.types import (
    AnimationTag,
    Animations,
    CityName,
    CityTable,
    ContextMenu,
    Distances,
    HoveredCityInfo,
    PolarCoords,
    ProjectedPosition,
    ProjectionMode,
    RejectionReason,
    RequestResult,
)
from geospatial.coordinate_models import CITY_COORDINATES, true_positions
from geospatial.distance_calculations import RealDistanceCache, distance_strategy

logger = get_logger(__name__)


def _fill_animation_table(tag: Optional[AnimationTag]) -> Animations:
    return {name: tag for name in CITY_COORDINATES}


def _coerce_city(name: Union[CityName, str]) -> CityName:
    try:
        return CityName(name)
    except ValueError:
        logger.error(f"Unknown city {name!r}")
        raise InvalidReferenceError(f"Unknown city {name!r}") from None


def tags_are_consistent(animations: Mapping[CityName, Optional[AnimationTag]]) -> bool:
    """Check that the non-idle tags form an allowed wave pattern."""
    active = [tag for tag in animations.values() if tag is not None]
    if not active or all(tag == active[0] for tag in active):
        return True
    n_fixed = sum(1 for tag in active if tag is AnimationTag.FIXED)
    n_moving = sum(1 for tag in active if tag is AnimationTag.MOVING)
    return n_fixed == 1 and n_fixed + n_moving == len(active)


class PositionStore:
    """Central state holder for marker positions and their distances.

    Parameters
    ----------
    n_cities : int
        Number of cities the scene is asked to show.
    real_distances : RealDistanceCache, optional
        Cache of true distances. A fresh cache is created when omitted;
        pass one in to share it between stores.

    Notes
    -----
    Positions handed to `update_cities` are copied: the store owns the
    live positions, and collaborators read them through `cities` or
    `position_of` and change them only through the store's mutators.
    """

    def __init__(
        self,
        n_cities: int = SceneConstants.DEFAULT_CITY_COUNT,
        real_distances: Optional[RealDistanceCache] = None
    ):
        self._real = real_distances if real_distances is not None else RealDistanceCache()

        self._mode: Optional[ProjectionMode] = None
        self._calculate_distances = None
        self._cities: CityTable = {}
        self._curr_distances: Distances = {}
        self._n_cities = n_cities
        self._true_positions: Dict[CityName, PolarCoords] = true_positions(n_cities)

        self._hovered: Optional[HoveredCityInfo] = None
        self._is_dragging = False
        self._move_lock = False
        self._animations: Animations = _fill_animation_table(None)
        self._animation_generation = 0
        self._is_animating = False
        self._context_menu = ContextMenu()
        self._is_picking = False
        self._controls_enabled = True
        self._disposed = False

    # =========================================================================
    # Query surface
    # =========================================================================

    @property
    def mode(self) -> Optional[ProjectionMode]:
        return self._mode

    @property
    def cities(self) -> Mapping[CityName, ProjectedPosition]:
        """Read-only view of the live positions of registered cities."""
        return MappingProxyType(self._cities)

    def position_of(self, name: Union[CityName, str]) -> ProjectedPosition:
        name = _coerce_city(name)
        if name not in self._cities:
            raise InvalidReferenceError(f"City {name.value!r} is not registered")
        return self._cities[name]

    @property
    def curr_distances(self) -> Distances:
        """Current distance matrix in km. Replaced, never patched, on change."""
        return self._curr_distances

    @property
    def real_distances(self) -> Distances:
        return self._real.get_real_distances()

    @property
    def real_distance_cache(self) -> RealDistanceCache:
        return self._real

    @property
    def n_cities(self) -> int:
        """Requested city count."""
        return self._n_cities

    @property
    def n_rendered_cities(self) -> int:
        """Registered city count."""
        return len(self._cities)

    @property
    def is_ready(self) -> bool:
        """Whether every requested city is registered."""
        return self.n_rendered_cities == self._n_cities

    @property
    def true_positions(self) -> Mapping[CityName, PolarCoords]:
        return MappingProxyType(self._true_positions)

    @property
    def hovered_city(self) -> Optional[HoveredCityInfo]:
        return self._hovered

    @property
    def animations(self) -> Mapping[CityName, Optional[AnimationTag]]:
        return MappingProxyType(self._animations)

    @property
    def animation_generation(self) -> int:
        """Counter bumped on every accepted non-idle animation request."""
        return self._animation_generation

    @property
    def wave_in_flight(self) -> bool:
        return any(tag is not None for tag in self._animations.values())

    @property
    def anchor_city(self) -> Optional[CityName]:
        """The pinned city, else the hovered city, else None."""
        for name, tag in self._animations.items():
            if tag is AnimationTag.FIXED:
                return name
        return self._hovered.name if self._hovered is not None else None

    @property
    def is_dragging(self) -> bool:
        return self._is_dragging

    @property
    def move_lock(self) -> bool:
        return self._move_lock

    @property
    def is_animating(self) -> bool:
        return self._is_animating

    @property
    def context_menu(self) -> ContextMenu:
        return self._context_menu

    @property
    def is_picking(self) -> bool:
        return self._is_picking

    @property
    def controls_enabled(self) -> bool:
        return self._controls_enabled

    @property
    def disposed(self) -> bool:
        return self._disposed

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def reset(self) -> None:
        """Clear drag, animation and menu state. Positions are untouched."""
        self._hovered = None
        self._is_dragging = False
        self._move_lock = False
        self.update_animation_state(None)
        self._is_animating = False
        self._context_menu = ContextMenu()
        logger.debug("Store reset")

    def dispose(self) -> None:
        """Release all state. The store needs `update_route` before reuse."""
        self.reset()
        self._cities = {}
        self._curr_distances = {}
        self._mode = None
        self._calculate_distances = None
        self._disposed = True
        logger.info("Store disposed")

    def update_route(self, mode: Union[ProjectionMode, str]) -> None:
        """Switch projection mode.

        Resets transient state, forgets registered cities (the new scene
        registers its own) and selects the distance strategy.
        """
        mode = ProjectionMode(mode)
        self.reset()
        self._cities = {}
        self._curr_distances = {}
        self._mode = mode
        self._calculate_distances = distance_strategy(mode)
        self._disposed = False
        logger.info(f"Projection mode set to {mode.value}")

    def update_n_cities(self, n_cities: int) -> None:
        """Set the requested city count and the matching true positions."""
        selected = true_positions(n_cities)
        self.reset()
        self._n_cities = n_cities
        self._true_positions = selected
        logger.info(f"Requested {n_cities} cities")

    # =========================================================================
    # Positions and distances
    # =========================================================================

    def _require_mode(self) -> None:
        if self._calculate_distances is None:
            logger.error("Distance recompute requested before a projection mode was set")
            raise InvariantViolationError("Projection mode not set; call update_route first")

    def update_curr_distances(self) -> None:
        """Recompute the full distance matrix from the live positions."""
        self._require_mode()
        self._curr_distances = self._calculate_distances(self._cities)

    def update_cities(
        self,
        name: Union[CityName, str],
        position: Optional[ProjectedPosition] = None,
        remove: bool = False
    ) -> None:
        """Register or unregister a city's live position.

        Unregistering a city that is not registered is a no-op.
        Re-registering a city overwrites its position in place.
        """
        name = _coerce_city(name)

        if remove:
            if name not in self._cities:
                return
            self._require_mode()
            del self._cities[name]
            if self._hovered is not None and self._hovered.name == name:
                self._hovered = None
            logger.debug(f"Unregistered {name.value}")
        else:
            if position is None:
                raise InvariantViolationError(f"No position given for {name.value!r}")
            self._require_mode()
            if name in self._cities:
                self._cities[name].copy_from(position)
            else:
                self._cities[name] = position.copy()
            logger.debug(f"Registered {name.value}")

        self.update_curr_distances()

    def update_hovered_city(self, name: Optional[Union[CityName, str]]) -> None:
        """Set or clear the city under pointer control."""
        if name is None:
            self._hovered = None
            return
        name = _coerce_city(name)
        if name not in self._cities:
            logger.error(f"Cannot hover unregistered city {name.value}")
            raise InvalidReferenceError(f"City {name.value!r} is not registered")
        self._hovered = HoveredCityInfo(name=name, position=self._cities[name])

    def move_hovered_city(
        self,
        x: float,
        y: float,
        z: float,
        lock: Optional[bool] = None
    ) -> None:
        """Write the hovered city's position and recompute distances.

        While the move lock is set, calls are ignored unless `lock` is
        explicitly False. When `lock` is given, the move lock takes its
        value after the write.

        Raises
        ------
        InvalidReferenceError
            If no city is hovered.
        """
        if self._move_lock and lock is not False:
            return
        if self._hovered is None:
            logger.error("Move requested with no hovered city")
            raise InvalidReferenceError("Trying to move without selecting a city")
        self._require_mode()

        self._hovered.position.set(x, y, z)
        self.update_curr_distances()
        if lock is not None:
            self._move_lock = lock

    def apply_animation_frame(self, frame: Mapping[CityName, ProjectedPosition]) -> None:
        """Write one animation step for several cities, then recompute once."""
        missing = [name for name in frame if name not in self._cities]
        if missing:
            raise InvalidReferenceError(
                f"Animated cities not registered: {[n.value for n in missing]}"
            )
        self._require_mode()
        for name, position in frame.items():
            self._cities[name].copy_from(position)
        self.update_curr_distances()

    # =========================================================================
    # Animation state
    # =========================================================================

    def update_animation_state(
        self,
        tag: Optional[Union[AnimationTag, str]],
        city_name: Optional[Union[CityName, str]] = None
    ) -> RequestResult:
        """Start or stop an animation wave.

        Parameters
        ----------
        tag : AnimationTag or None
            None stops. `fixed` pins `city_name` and sets every other city
            to `moving`.
        city_name : CityName, optional
            Without it the tag applies to every city.

        Returns
        -------
        RequestResult
            Rejected with `WAVE_IN_FLIGHT` when a non-idle tag is requested
            while any city is already non-idle.

        Raises
        ------
        InvalidReferenceError
            If a non-idle tag names a city that is not registered.
        """
        tag = AnimationTag(tag) if tag is not None else None
        city = _coerce_city(city_name) if city_name is not None else None

        if tag is not None and city is not None and city not in self._cities:
            logger.error(f"Cannot animate unregistered city {city.value}")
            raise InvalidReferenceError(f"City {city.value!r} is not registered")

        if tag is not None and self.wave_in_flight:
            logger.info(f"Rejected {tag.value} animation request: a wave is in flight")
            return RequestResult.rejected(RejectionReason.WAVE_IN_FLIGHT)

        if city is None:
            self._animations = _fill_animation_table(tag)
        elif tag is AnimationTag.FIXED:
            animations = _fill_animation_table(AnimationTag.MOVING)
            animations[city] = AnimationTag.FIXED
            self._animations = animations
        else:
            self._animations = {**self._animations, city: tag}

        if tag is not None:
            self._animation_generation += 1
            target = city.value if city is not None else "all cities"
            logger.info(f"Started {tag.value} animation wave for {target}")
        return RequestResult.ok()

    def finish_animation_wave(self) -> None:
        """Mark the in-flight wave as complete and recompute distances."""
        self.update_animation_state(None)
        self._is_animating = False
        if self._calculate_distances is not None:
            self.update_curr_distances()
        logger.info("Animation wave complete")

    def animations_consistent(self) -> bool:
        return tags_are_consistent(self._animations)

    # =========================================================================
    # Transient UI flags
    # =========================================================================

    def update_is_dragging(self, is_dragging: bool) -> None:
        self._is_dragging = is_dragging

    def update_move_lock(self, move_lock: bool) -> None:
        self._move_lock = move_lock

    def update_is_animating(self, is_animating: bool) -> None:
        self._is_animating = is_animating

    def update_context_menu(self, menu: ContextMenu) -> None:
        city = _coerce_city(menu.city_name) if menu.city_name is not None else None
        anchor = _coerce_city(menu.anchor) if menu.anchor is not None else None
        self._context_menu = ContextMenu(
            city_name=city,
            mouse_position=menu.mouse_position,
            anchor=anchor,
            visible=menu.visible
        )

    def update_is_picking(self, is_picking: bool) -> None:
        self._is_picking = is_picking

    def update_controls_enabled(self, controls_enabled: bool) -> None:
        self._controls_enabled = controls_enabled
