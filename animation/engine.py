"""
Animation Engine for City Markers.

Each animated city follows a small state machine, Idle -> Running -> Idle,
whose state `{phase, source, dest, elapsed}` is stored explicitly and
advanced by `AnimationEngine.advance(delta)` on every frame tick.

Interpolation
-------------
1. Sphere mode: the source and destination directions are interpolated
   along the great circle joining them (spherical linear interpolation)
   and re-scaled to the sphere radius, so the marker stays on the globe.

2. Plane mode: straight linear interpolation.

Degenerate Angles
-----------------
Spherical interpolation divides by sin(theta). When the two directions
coincide the source is returned unchanged; when they are antipodal any
great circle through both is valid, and a fixed perpendicular is used.

References
----------
- Shoemake, K. (1985). Animating rotation with quaternion curves.
  SIGGRAPH '85, 245-254.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple
import numpy as np
from numpy.typing import NDArray

from common.constants import SceneConstants
from common.logging_config import get_logger
from common.types import CityName, ProjectedPosition, ProjectionMode
from geospatial.projections import destination_policy

logger = get_logger(__name__)


class AnimationPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


def _perpendicular(u: NDArray[np.float64]) -> NDArray[np.float64]:
    helper = np.array([0.0, 1.0, 0.0]) if abs(u[1]) < 0.9 else np.array([1.0, 0.0, 0.0])
    p = np.cross(u, helper)
    return p / np.linalg.norm(p)


def slerp(
    base: NDArray[np.float64],
    dest: NDArray[np.float64],
    t: float
) -> NDArray[np.float64]:
    """Spherical linear interpolation between two unit vectors.

    Parameters
    ----------
    base, dest : ndarray
        Unit vectors.
    t : float
        Interpolation parameter in [0, 1].

    Returns
    -------
    ndarray
        Unit vector on the great circle from `base` to `dest`.
    """
    eps = SceneConstants.SLERP_EPSILON.value
    theta = float(np.arccos(np.clip(np.dot(base, dest), -1.0, 1.0)))

    if theta < eps:
        return base.copy()

    sin_theta = np.sin(theta)
    if sin_theta < eps:
        # Antipodal: rotate through a fixed perpendicular
        perp = _perpendicular(base)
        return np.cos(t * np.pi) * base + np.sin(t * np.pi) * perp

    return (
        base * (np.sin((1 - t) * theta) / sin_theta)
        + dest * (np.sin(t * theta) / sin_theta)
    )


def lerp(
    source: ProjectedPosition,
    dest: ProjectedPosition,
    t: float
) -> ProjectedPosition:
    a, b = source.as_array(), dest.as_array()
    return ProjectedPosition.from_array(a + (b - a) * t)


def interpolate(
    source: ProjectedPosition,
    dest: ProjectedPosition,
    t: float,
    mode: ProjectionMode,
    radius: float = SceneConstants.SPHERE_RADIUS.value
) -> ProjectedPosition:
    """Intermediate position at parameter `t` for the given mode."""
    if ProjectionMode(mode) is ProjectionMode.PLANE:
        return lerp(source, dest, t)

    a, b = source.as_array(), dest.as_array()
    norm_a, norm_b = np.linalg.norm(a), np.linalg.norm(b)
    if norm_a == 0.0 or norm_b == 0.0:
        return lerp(source, dest, t)
    return ProjectedPosition.from_array(slerp(a / norm_a, b / norm_b, t) * radius)


@dataclass
class CityAnimation:
    """Externally stored animation state of one city."""
    phase: AnimationPhase = AnimationPhase.IDLE
    source: Optional[ProjectedPosition] = None
    dest: Optional[ProjectedPosition] = None
    elapsed: float = 0.0

    @property
    def running(self) -> bool:
        return self.phase is AnimationPhase.RUNNING

    def start(self, source: ProjectedPosition, dest: ProjectedPosition) -> bool:
        """Enter Running unless `dest` is already reached.

        Returns
        -------
        bool
            Whether the animation is running.
        """
        if source.distance_to(dest) > SceneConstants.POSITION_EPSILON.value:
            self.phase = AnimationPhase.RUNNING
            self.source = source.copy()
            self.dest = dest.copy()
            self.elapsed = 0.0
            return True
        self.cancel()
        return False

    def cancel(self) -> None:
        self.phase = AnimationPhase.IDLE
        self.source = None
        self.dest = None
        self.elapsed = 0.0

    def advance(
        self,
        delta: float,
        mode: ProjectionMode,
        duration: float = SceneConstants.ANIMATION_DURATION.value
    ) -> Tuple[ProjectedPosition, bool]:
        """Advance one tick.

        Returns
        -------
        Tuple[ProjectedPosition, bool]
            The position for this tick and whether the animation finished.
        """
        if not self.running:
            raise RuntimeError("Cannot advance an idle animation")

        if self.elapsed > duration:
            dest = self.dest.copy()
            self.cancel()
            return dest, True

        position = interpolate(self.source, self.dest, self.elapsed / duration, mode)
        self.elapsed += delta
        return position, False


class AnimationEngine:
    """Drives city animations from a store's animation tags.

    The engine follows the store: a newly accepted wave starts the
    matching cities, a cleared tag cancels them and leaves the marker where
    it last was. Positions are only ever written through the store.

    Parameters
    ----------
    store : PositionStore
        The store whose cities are animated.
    duration : float
        Animation duration in seconds.

    Examples
    --------
    >>> engine = AnimationEngine(store)
    >>> _ = store.update_animation_state(AnimationTag.GLOBAL)
    >>> while store.wave_in_flight:
    ...     engine.advance(1 / 60)
    """

    def __init__(
        self,
        store,
        duration: float = SceneConstants.ANIMATION_DURATION.value
    ):
        self._store = store
        self._duration = duration
        self._entities: Dict[CityName, CityAnimation] = {}
        self._seen: Dict[CityName, Tuple] = {}

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def is_running(self) -> bool:
        return any(entity.running for entity in self._entities.values())

    def entity(self, name: CityName) -> CityAnimation:
        """Animation state of a city (idle when never animated)."""
        return self._entities.get(CityName(name), CityAnimation())

    def clear(self) -> None:
        """Cancel everything and forget what was observed."""
        for entity in self._entities.values():
            entity.cancel()
        self._entities = {}
        self._seen = {}

    def sync(self) -> None:
        """Start or cancel animations to match the store's tags."""
        store = self._store
        positions = store.cities

        for name in list(self._entities):
            if name not in positions:
                self._entities.pop(name).cancel()
                self._seen.pop(name, None)

        if store.mode is None:
            self.clear()
            return

        policy = destination_policy(store.mode)
        anchor = store.anchor_city
        started = 0

        for name, position in positions.items():
            tag = store.animations[name]
            key = (tag, store.animation_generation if tag is not None else None)
            if self._seen.get(name) == key:
                continue
            self._seen[name] = key

            entity = self._entities.setdefault(name, CityAnimation())
            if tag is None:
                if entity.running:
                    logger.debug(f"Cancelled animation of {name.value}")
                entity.cancel()
                continue

            dest = policy.destination(tag, name, positions, anchor)
            if entity.start(position, dest):
                started += 1

        if started:
            store.update_is_animating(True)
            logger.info(f"Animating {started} cities")
        elif store.wave_in_flight and not self.is_running:
            # Every city is already at its destination
            store.finish_animation_wave()

    def advance(self, delta: float) -> None:
        """Advance every running animation by `delta` seconds."""
        self.sync()
        running = {name: e for name, e in self._entities.items() if e.running}
        if not running:
            return

        frame = {}
        finished = False
        for name, entity in running.items():
            position, done = entity.advance(delta, self._store.mode, self._duration)
            frame[name] = position
            finished = finished or done

        self._store.apply_animation_frame(frame)

        if finished:
            self._store.finish_animation_wave()
            self.sync()
