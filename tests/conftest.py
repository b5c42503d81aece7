"""Shared fixtures for the test suite."""

import pytest

from common.types import CityName, ProjectionMode
from geospatial.distance_calculations import RealDistanceCache
from geospatial.projections import destination_policy
from state.store import PositionStore


@pytest.fixture(scope="session")
def real_cache():
    return RealDistanceCache()


def register_true_layout(store, names):
    """Register cities at their true positions for the store's mode."""
    policy = destination_policy(store.mode)
    for name in names:
        store.update_cities(name, policy.true_layout_position(name))


@pytest.fixture
def sphere_store(real_cache):
    store = PositionStore(n_cities=2, real_distances=real_cache)
    store.update_route(ProjectionMode.SPHERE)
    return store


@pytest.fixture
def plane_store(real_cache):
    store = PositionStore(n_cities=2, real_distances=real_cache)
    store.update_route(ProjectionMode.PLANE)
    return store


@pytest.fixture
def sphere_pair(sphere_store):
    """Sphere store with atlanta and beijing at their true positions."""
    register_true_layout(sphere_store, [CityName.ATLANTA, CityName.BEIJING])
    return sphere_store


@pytest.fixture
def plane_pair(plane_store):
    """Plane store with atlanta and beijing at their true positions."""
    register_true_layout(plane_store, [CityName.ATLANTA, CityName.BEIJING])
    return plane_store
