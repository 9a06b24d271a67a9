import numpy as np
import pytest

from balloon.config import SimConfig
from balloon.models import Vector2
from balloon.core import initialize_from_config
from balloon.rupture import bounding_circle, fire_projectile, handle_click, hit_test
from balloon.solver import compute_forces, step
from balloon.state import Phase, active_spring_pairs


def test_balloon_starts_intact(state):
    assert state.phase is Phase.INTACT
    assert not state.is_ruptured


def test_far_click_is_a_miss(state):
    before = state.pos.copy()

    assert handle_click(state, (100.0, 100.0)) is False

    assert state.phase is Phase.INTACT
    assert not state.broken.any()
    np.testing.assert_array_equal(state.pos, before)


@pytest.mark.parametrize("point", [(float("nan"), 1.5), (0.0, float("inf"))])
def test_non_finite_click_is_a_miss(state, point):
    assert handle_click(state, point) is False
    assert state.phase is Phase.INTACT


def test_click_just_outside_the_edge_misses(state):
    centroid, radius = bounding_circle(state)
    edge = (centroid[0] + radius + state.config.hit_radius + 0.01, centroid[1])
    assert not hit_test(state, edge)


def test_center_click_ruptures(state):
    assert handle_click(state, tuple(state.center)) is True

    assert state.phase is Phase.RUPTURED
    assert state.broken.all()
    assert not state.active.any()
    assert len(active_spring_pairs(state)) == 0
    # Only gravity is left
    np.testing.assert_allclose(compute_forces(state), state.mass[:, None] * state.gravity)


def test_click_accepts_a_vector(state):
    assert handle_click(state, Vector2(float(state.center[0]), float(state.center[1]))) is True
    assert state.phase is Phase.RUPTURED


def test_ruptured_balloon_flattens_while_intact_one_holds(config):
    intact = initialize_from_config(config)
    burst = initialize_from_config(config)
    handle_click(burst, tuple(burst.center))

    for _ in range(180):
        step(intact, 1 / 60)
        step(burst, 1 / 60)

    assert np.ptp(burst.pos[:, 1]) < 0.1
    assert np.ptp(intact.pos[:, 1]) > 1.0


def test_rupture_is_idempotent(state):
    assert handle_click(state, tuple(state.center))
    broken = state.broken.copy()
    active = state.active.copy()

    assert handle_click(state, tuple(state.center)) is False
    assert handle_click(state, (state.center[0] + 0.3, state.center[1])) is False

    assert state.phase is Phase.RUPTURED
    np.testing.assert_array_equal(state.broken, broken)
    np.testing.assert_array_equal(state.active, active)


def test_local_policy_breaks_only_near_springs():
    config = SimConfig(center=(0.0, 1.5), rupture_policy="local", fracture_radius=0.3)
    state = initialize_from_config(config)

    assert handle_click(state, (0.0, 1.5))

    assert state.phase is Phase.RUPTURED
    assert 0 < state.broken.sum() < state.num_springs
    # The rim is far from the impact and keeps its springs
    rim = np.hypot(*(state.pos - state.center).T) > 0.9
    assert state.active[rim].all()

    # Terminal even though springs remain
    assert handle_click(state, (0.9, 1.5)) is False


def test_burst_kicks_particles_away_from_impact():
    config = SimConfig(center=(0.0, 1.5), burst_speed=2.0)
    state = initialize_from_config(config)

    handle_click(state, (0.0, 1.5))

    offset = state.pos - state.center
    dist = np.hypot(offset[:, 0], offset[:, 1])
    moving = dist > 1e-9
    speed = np.hypot(state.vel[:, 0], state.vel[:, 1])
    np.testing.assert_allclose(speed[moving], 2.0)
    # The particle sitting on the impact point has no direction to go
    np.testing.assert_array_equal(state.vel[~moving], 0.0)
    radial = (state.vel[moving] * offset[moving]).sum(axis=1)
    assert (radial > 0).all()


def test_projectile_ruptures_on_contact(state):
    projectile = fire_projectile(state, tuple(state.center))

    assert projectile is not None
    assert state.projectiles == [projectile]
    np.testing.assert_allclose(projectile.position, [state.center[0], state.ground_height])
    assert np.hypot(*projectile.velocity) == pytest.approx(state.config.projectile_speed)

    for _ in range(30):
        step(state, 1 / 60)
        if state.is_ruptured:
            break

    assert state.phase is Phase.RUPTURED
    assert state.broken.all()


def test_projectile_that_misses_leaves_the_arena():
    config = SimConfig(center=(0.0, 1.5), arena_radius=5.0)
    state = initialize_from_config(config)

    fire_projectile(state, target=(-10.0, 0.5), origin=(-3.0, 0.5))
    for _ in range(60):
        step(state, 1 / 60)

    assert state.projectiles == []
    assert state.phase is Phase.INTACT


def test_projectile_needs_a_direction(state):
    assert fire_projectile(state, (1.0, 1.0), origin=(1.0, 1.0)) is None
    assert state.projectiles == []


def test_projectile_accepts_vectors(state):
    projectile = fire_projectile(state, Vector2(3.0, 4.0), origin=Vector2(0.0, 0.0))

    assert projectile is not None
    np.testing.assert_allclose(projectile.position, [0.0, 0.0])
    np.testing.assert_allclose(projectile.velocity, np.array([0.6, 0.8]) * state.config.projectile_speed)


def test_projectile_after_rupture_changes_nothing(state):
    handle_click(state, tuple(state.center))
    broken = state.broken.copy()

    fire_projectile(state, tuple(state.center))
    step(state, 1 / 60)

    np.testing.assert_array_equal(state.broken, broken)
    assert state.phase is Phase.RUPTURED
