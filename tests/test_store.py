"""Tests for the position/consistency store."""

import pytest

from common.errors import InvalidReferenceError, InvariantViolationError
from common.types import (
    AnimationTag,
    CityName,
    ContextMenu,
    ErrorLevel,
    ProjectedPosition,
    ProjectionMode,
    RejectionReason,
)
from state.readout import pair_readout
from state.store import PositionStore, tags_are_consistent

from conftest import register_true_layout


class TestRegistration:

    def test_register_and_unregister(self, sphere_store):
        sphere_store.update_cities(CityName.ATLANTA, ProjectedPosition(10.0, 0.0, 0.0))
        sphere_store.update_cities("beijing", ProjectedPosition(0.0, 10.0, 0.0))
        assert sphere_store.n_rendered_cities == 2
        assert set(sphere_store.curr_distances) == {CityName.ATLANTA, CityName.BEIJING}

        sphere_store.update_cities(CityName.BEIJING, remove=True)
        assert sphere_store.n_rendered_cities == 1
        assert set(sphere_store.curr_distances) == {CityName.ATLANTA}

    def test_unregistering_unknown_city_is_noop(self, sphere_pair):
        before = sphere_pair.curr_distances
        sphere_pair.update_cities(CityName.TOKYO, remove=True)
        assert sphere_pair.n_rendered_cities == 2
        assert sphere_pair.curr_distances is before

    def test_position_is_copied(self, plane_store):
        position = ProjectedPosition(1.0, 0.0, 1.0)
        plane_store.update_cities(CityName.ATLANTA, position)
        position.set(5.0, 0.0, 5.0)
        assert plane_store.position_of(CityName.ATLANTA) == ProjectedPosition(1.0, 0.0, 1.0)

    def test_re_registering_overwrites_in_place(self, plane_store):
        plane_store.update_cities(CityName.ATLANTA, ProjectedPosition(1.0, 0.0, 1.0))
        live = plane_store.position_of(CityName.ATLANTA)
        plane_store.update_cities(CityName.ATLANTA, ProjectedPosition(2.0, 0.0, 2.0))
        assert live == ProjectedPosition(2.0, 0.0, 2.0)
        assert plane_store.n_rendered_cities == 1

    def test_requires_projection_mode(self):
        store = PositionStore(n_cities=2)
        with pytest.raises(InvariantViolationError):
            store.update_cities(CityName.ATLANTA, ProjectedPosition(1.0, 0.0, 0.0))
        assert store.n_rendered_cities == 0

    def test_missing_position(self, plane_store):
        with pytest.raises(InvariantViolationError):
            plane_store.update_cities(CityName.ATLANTA)

    def test_unknown_city_name(self, plane_store):
        with pytest.raises(InvalidReferenceError):
            plane_store.update_cities("atlantis", ProjectedPosition(0.0, 0.0, 0.0))

    def test_position_of_unregistered(self, plane_store):
        with pytest.raises(InvalidReferenceError):
            plane_store.position_of(CityName.LONDON)

    def test_cities_view_is_read_only(self, plane_pair):
        with pytest.raises(TypeError):
            plane_pair.cities[CityName.LONDON] = ProjectedPosition(0.0, 0.0, 0.0)


class TestDistanceMatrix:

    @pytest.mark.parametrize("fixture", ["sphere_store", "plane_store"])
    def test_matrix_is_symmetric_with_zero_diagonal(self, request, fixture):
        store = request.getfixturevalue(fixture)
        store.update_n_cities(3)
        register_true_layout(store, [CityName.ATLANTA, CityName.BEIJING, CityName.LONDON])

        matrix = store.curr_distances
        for a in matrix:
            assert matrix[a][a] == 0
            for b in matrix:
                assert matrix[a][b] == matrix[b][a]

    def test_true_layout_matches_reality_on_sphere(self, sphere_pair):
        readout = pair_readout(sphere_pair, CityName.ATLANTA, CityName.BEIJING)
        assert readout.delta == pytest.approx(0.0, abs=0.05)
        assert readout.level is ErrorLevel.CLOSE

    def test_coincident_cities(self, plane_store):
        spot = ProjectedPosition(3.0, 0.0, 4.0)
        plane_store.update_cities(CityName.ATLANTA, spot)
        plane_store.update_cities(CityName.BEIJING, spot)

        readout = pair_readout(plane_store, CityName.ATLANTA, CityName.BEIJING)
        assert readout.curr_distance == 0
        assert readout.level is ErrorLevel.FAR


class TestHoverAndMove:

    def test_hover_unregistered_city(self, sphere_store):
        with pytest.raises(InvalidReferenceError):
            sphere_store.update_hovered_city(CityName.ATLANTA)
        assert sphere_store.hovered_city is None

    def test_move_without_hover(self, sphere_pair):
        before = sphere_pair.curr_distances
        atlanta = sphere_pair.position_of(CityName.ATLANTA).copy()
        with pytest.raises(InvalidReferenceError, match="without selecting a city"):
            sphere_pair.move_hovered_city(0.0, 10.0, 0.0)
        assert sphere_pair.curr_distances is before
        assert sphere_pair.position_of(CityName.ATLANTA) == atlanta

    def test_move_recomputes_and_keeps_reference(self, sphere_pair):
        sphere_pair.update_hovered_city(CityName.ATLANTA)
        before = sphere_pair.curr_distances[CityName.ATLANTA][CityName.BEIJING]

        sphere_pair.move_hovered_city(0.0, 10.0, 0.0)

        assert sphere_pair.position_of(CityName.ATLANTA) == ProjectedPosition(0.0, 10.0, 0.0)
        assert sphere_pair.hovered_city.position is sphere_pair.position_of(CityName.ATLANTA)
        after = sphere_pair.curr_distances[CityName.ATLANTA][CityName.BEIJING]
        assert after != before
        # Beijing is 50.1 degrees from the pole
        assert after == pytest.approx(6371 * 0.8743, rel=1e-3)

    def test_move_lock(self, plane_pair):
        plane_pair.update_hovered_city(CityName.ATLANTA)
        plane_pair.move_hovered_city(1.0, 0.0, 1.0, lock=True)
        assert plane_pair.move_lock

        plane_pair.move_hovered_city(9.0, 0.0, 9.0)
        assert plane_pair.position_of(CityName.ATLANTA) == ProjectedPosition(1.0, 0.0, 1.0)

        plane_pair.move_hovered_city(2.0, 0.0, 2.0, lock=False)
        assert not plane_pair.move_lock
        assert plane_pair.position_of(CityName.ATLANTA) == ProjectedPosition(2.0, 0.0, 2.0)

    def test_removing_hovered_city_clears_hover(self, plane_pair):
        plane_pair.update_hovered_city(CityName.BEIJING)
        plane_pair.update_cities(CityName.BEIJING, remove=True)
        assert plane_pair.hovered_city is None

    def test_clear_hover(self, plane_pair):
        plane_pair.update_hovered_city(CityName.BEIJING)
        plane_pair.update_hovered_city(None)
        assert plane_pair.hovered_city is None


class TestAnimationState:

    def test_fixed_request_pins_one_city(self, sphere_pair):
        result = sphere_pair.update_animation_state(AnimationTag.FIXED, CityName.ATLANTA)
        assert result
        animations = sphere_pair.animations
        assert animations[CityName.ATLANTA] is AnimationTag.FIXED
        assert all(
            tag is AnimationTag.MOVING
            for name, tag in animations.items() if name is not CityName.ATLANTA
        )
        assert sphere_pair.anchor_city is CityName.ATLANTA

    def test_request_rejected_while_wave_in_flight(self, sphere_pair):
        sphere_pair.update_animation_state(AnimationTag.FIXED, CityName.ATLANTA)
        before = dict(sphere_pair.animations)
        generation = sphere_pair.animation_generation

        result = sphere_pair.update_animation_state(AnimationTag.GLOBAL)

        assert not result
        assert result.reason is RejectionReason.WAVE_IN_FLIGHT
        assert dict(sphere_pair.animations) == before
        assert sphere_pair.animation_generation == generation

    def test_single_city_request_rejected_while_pinned(self, sphere_pair):
        assert sphere_pair.update_animation_state("fixed", "atlanta")
        before = dict(sphere_pair.animations)

        result = sphere_pair.update_animation_state("moving", "beijing")

        assert not result
        assert result.reason is RejectionReason.WAVE_IN_FLIGHT
        assert dict(sphere_pair.animations) == before

    def test_pinning_unregistered_city_raises(self, sphere_pair):
        generation = sphere_pair.animation_generation
        with pytest.raises(InvalidReferenceError):
            sphere_pair.update_animation_state(AnimationTag.FIXED, CityName.TOKYO)
        assert not sphere_pair.wave_in_flight
        assert sphere_pair.animation_generation == generation

    def test_animating_unregistered_city_raises(self, plane_pair):
        with pytest.raises(InvalidReferenceError):
            plane_pair.update_animation_state(AnimationTag.GLOBAL, CityName.LONDON)
        assert not plane_pair.wave_in_flight

    def test_stopping_unregistered_city_is_allowed(self, plane_pair):
        assert plane_pair.update_animation_state(None, CityName.LONDON)

    def test_uniform_fixed_request_is_consistent(self, plane_pair):
        assert plane_pair.update_animation_state(AnimationTag.FIXED)
        assert all(tag is AnimationTag.FIXED for tag in plane_pair.animations.values())
        assert plane_pair.animations_consistent()

    def test_global_then_stop(self, plane_pair):
        assert plane_pair.update_animation_state(AnimationTag.GLOBAL)
        assert all(tag is AnimationTag.GLOBAL for tag in plane_pair.animations.values())
        assert plane_pair.wave_in_flight

        assert plane_pair.update_animation_state(None)
        assert not plane_pair.wave_in_flight

    def test_single_city_overwrite(self, plane_pair):
        assert plane_pair.update_animation_state("global", "beijing")
        animations = plane_pair.animations
        assert animations[CityName.BEIJING] is AnimationTag.GLOBAL
        assert animations[CityName.ATLANTA] is None

    def test_generation_only_counts_accepted_waves(self, plane_pair):
        start = plane_pair.animation_generation
        plane_pair.update_animation_state(AnimationTag.GLOBAL)
        plane_pair.update_animation_state(AnimationTag.MOVING)
        plane_pair.finish_animation_wave()
        plane_pair.update_animation_state(AnimationTag.MOVING)
        assert plane_pair.animation_generation == start + 2

    def test_tags_stay_consistent(self, sphere_pair):
        requests = [
            (AnimationTag.FIXED, CityName.ATLANTA),
            (AnimationTag.GLOBAL, None),
            (None, None),
            (AnimationTag.MOVING, None),
            (AnimationTag.FIXED, CityName.BEIJING),
            (None, None),
            (AnimationTag.FIXED, CityName.BEIJING),
        ]
        for tag, city in requests:
            sphere_pair.update_animation_state(tag, city)
            assert sphere_pair.animations_consistent()

    def test_anchor_falls_back_to_hover(self, plane_pair):
        assert plane_pair.anchor_city is None
        plane_pair.update_hovered_city(CityName.BEIJING)
        assert plane_pair.anchor_city is CityName.BEIJING

    def test_finish_clears_animating_flag(self, plane_pair):
        plane_pair.update_animation_state(AnimationTag.GLOBAL)
        plane_pair.update_is_animating(True)
        plane_pair.finish_animation_wave()
        assert not plane_pair.is_animating
        assert not plane_pair.wave_in_flight


@pytest.mark.parametrize("animations, expected", [
    ({}, True),
    ({CityName.ATLANTA: None, CityName.BEIJING: None}, True),
    ({CityName.ATLANTA: AnimationTag.GLOBAL, CityName.BEIJING: AnimationTag.GLOBAL}, True),
    ({CityName.ATLANTA: AnimationTag.FIXED, CityName.BEIJING: AnimationTag.MOVING}, True),
    ({CityName.ATLANTA: AnimationTag.FIXED, CityName.BEIJING: AnimationTag.FIXED}, True),
    ({CityName.ATLANTA: AnimationTag.FIXED, CityName.BEIJING: AnimationTag.FIXED,
      CityName.LONDON: AnimationTag.MOVING}, False),
    ({CityName.ATLANTA: AnimationTag.GLOBAL, CityName.BEIJING: AnimationTag.MOVING}, False),
])
def test_tags_are_consistent(animations, expected):
    assert tags_are_consistent(animations) is expected


class TestLifecycle:

    def test_reset_clears_transient_state(self, plane_pair):
        plane_pair.update_hovered_city(CityName.ATLANTA)
        plane_pair.update_is_dragging(True)
        plane_pair.update_move_lock(True)
        plane_pair.update_animation_state(AnimationTag.GLOBAL)
        plane_pair.update_is_animating(True)
        plane_pair.update_context_menu(ContextMenu(city_name="atlanta", visible=True))

        plane_pair.reset()

        assert plane_pair.hovered_city is None
        assert not plane_pair.is_dragging
        assert not plane_pair.move_lock
        assert not plane_pair.wave_in_flight
        assert not plane_pair.is_animating
        assert not plane_pair.context_menu.visible
        assert plane_pair.n_rendered_cities == 2

    def test_update_route_switches_strategy(self, sphere_pair):
        sphere_pair.update_route(ProjectionMode.PLANE)
        assert sphere_pair.mode is ProjectionMode.PLANE
        assert sphere_pair.n_rendered_cities == 0
        assert sphere_pair.curr_distances == {}

        sphere_pair.update_cities(CityName.ATLANTA, ProjectedPosition(0.0, 0.0, 0.0))
        sphere_pair.update_cities(CityName.BEIJING, ProjectedPosition(3.0, 0.0, 4.0))
        assert sphere_pair.curr_distances[CityName.ATLANTA][CityName.BEIJING] == 1000

    def test_update_n_cities(self, plane_store):
        plane_store.update_n_cities(5)
        assert plane_store.n_cities == 5
        assert list(plane_store.true_positions) == [
            CityName.ATLANTA, CityName.BEIJING, CityName.LONDON,
            CityName.SYDNEY, CityName.RIO_DE_JANEIRO,
        ]

    @pytest.mark.parametrize("n_cities", [0, 11, -1])
    def test_update_n_cities_rejects_invalid_counts(self, plane_store, n_cities):
        plane_store.update_animation_state(AnimationTag.GLOBAL)
        with pytest.raises(ValueError):
            plane_store.update_n_cities(n_cities)
        assert plane_store.n_cities == 2
        assert plane_store.wave_in_flight

    def test_is_ready(self, plane_store):
        assert not plane_store.is_ready
        plane_store.update_cities(CityName.ATLANTA, ProjectedPosition(0.0, 0.0, 0.0))
        assert not plane_store.is_ready
        plane_store.update_cities(CityName.BEIJING, ProjectedPosition(1.0, 0.0, 0.0))
        assert plane_store.is_ready

    def test_dispose(self, plane_pair):
        plane_pair.dispose()
        assert plane_pair.disposed
        assert plane_pair.mode is None
        assert plane_pair.n_rendered_cities == 0
        with pytest.raises(InvariantViolationError):
            plane_pair.update_curr_distances()

        plane_pair.update_route(ProjectionMode.SPHERE)
        assert not plane_pair.disposed

    def test_real_distances_are_shared(self, real_cache):
        first = PositionStore(n_cities=2, real_distances=real_cache)
        second = PositionStore(n_cities=3, real_distances=real_cache)
        assert first.real_distances is second.real_distances


class TestUiFlags:

    def test_context_menu_coerces_names(self, plane_pair):
        menu = ContextMenu(city_name="london", mouse_position=(10.0, 20.0),
                           anchor="tokyo", visible=True)
        plane_pair.update_context_menu(menu)

        stored = plane_pair.context_menu
        assert stored.city_name is CityName.LONDON
        assert stored.anchor is CityName.TOKYO
        assert stored.mouse_position == (10.0, 20.0)
        assert menu.city_name == "london"

    def test_context_menu_unknown_city(self, plane_pair):
        with pytest.raises(InvalidReferenceError):
            plane_pair.update_context_menu(ContextMenu(city_name="atlantis"))

    def test_flags(self, plane_store):
        plane_store.update_is_picking(True)
        plane_store.update_controls_enabled(False)
        plane_store.update_is_dragging(True)
        assert plane_store.is_picking
        assert not plane_store.controls_enabled
        assert plane_store.is_dragging
