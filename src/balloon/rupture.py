# rupture.py
"""
Rupture controller.

The balloon has two phases, INTACT and RUPTURED, and moves from the first
to the second exactly once: when a click (or a projectile) lands on it.
RUPTURED is terminal; anything arriving later is ignored.
"""

import logging
import math

import numpy as np

from balloon.state import Phase, Projectile, SimulationState
from balloon.types import POINT, POINT_LIKE, VEC2

logger = logging.getLogger(__name__)


def bounding_circle(state: SimulationState) -> tuple[VEC2, float] | None:
    """Centroid and radius of the active particles, or None if there are none."""
    pts = state.pos[state.active]
    if len(pts) == 0:
        return None
    centroid = pts.mean(axis=0)
    radius = float(np.sqrt(((pts - centroid) ** 2).sum(axis=1)).max())
    return centroid, radius


def hit_test(state: SimulationState, point: POINT_LIKE) -> bool:
    x, y = point
    if not (math.isfinite(x) and math.isfinite(y)):
        return False

    circle = bounding_circle(state)
    if circle is None:
        return False

    centroid, radius = circle
    return math.hypot(x - centroid[0], y - centroid[1]) <= radius + state.config.hit_radius


def handle_click(state: SimulationState, point: POINT_LIKE) -> bool:
    """
    Feed a click to the controller.

    Returns True only for the click that ruptures the balloon. Misses,
    non-finite points and every click after the rupture are no-ops.
    """
    if state.phase is Phase.RUPTURED:
        return False

    x, y = (float(v) for v in point)
    if not hit_test(state, (x, y)):
        logger.debug("Click at (%.3f, %.3f) missed the balloon", x, y)
        return False

    rupture(state, (x, y))
    return True


def rupture(state: SimulationState, impact: POINT) -> None:
    """Break springs according to the configured policy and go RUPTURED."""
    if state.phase is Phase.RUPTURED:
        return

    config = state.config
    impact_arr = np.array(impact, dtype=np.float64)

    if config.rupture_policy == "local":
        midpoints = 0.5 * (state.pos[state.spring_i] + state.pos[state.spring_j])
        near = np.sqrt(((midpoints - impact_arr) ** 2).sum(axis=1)) <= config.fracture_radius
        state.broken |= near
    else:
        state.broken[:] = True

    if config.burst_speed > 0.0:
        _burst(state, impact_arr, config.burst_speed)

    state.phase = Phase.RUPTURED
    state.refresh_active()

    logger.info(
        "Balloon ruptured at (%.3f, %.3f), t=%.3fs: %d/%d springs broken (%s policy)",
        impact[0],
        impact[1],
        state.time,
        int(state.broken.sum()),
        state.num_springs,
        config.rupture_policy,
    )


def _burst(state: SimulationState, impact: VEC2, speed: float) -> None:
    """Radial kick away from the impact point; a particle sitting on it gets none."""
    offset = state.pos - impact
    dist = np.sqrt((offset**2).sum(axis=1))
    ok = dist > 1e-9
    state.vel[ok] += speed * offset[ok] / dist[ok, None]


# ===============================
# PROJECTILES
# ===============================


def fire_projectile(
    state: SimulationState,
    target: POINT_LIKE,
    origin: POINT_LIKE | None = None,
) -> Projectile | None:
    """
    Launch a projectile from ``origin`` toward ``target``.

    The default origin is on the ground right below the balloon center.
    Returns None if origin and target coincide (no direction to fly in).
    """
    config = state.config
    if origin is None:
        origin = (float(state.center[0]), state.ground_height)

    start = np.array(tuple(origin), dtype=np.float64)
    direction = np.array(tuple(target), dtype=np.float64) - start
    length = float(np.hypot(direction[0], direction[1]))
    if not (length > 1e-9 and math.isfinite(length)):
        return None

    projectile = Projectile(
        position=start,
        velocity=direction / length * config.projectile_speed,
        radius=config.projectile_radius,
    )
    state.projectiles.append(projectile)
    logger.debug("Projectile fired from (%.3f, %.3f)", start[0], start[1])
    return projectile


def advance_projectiles(state: SimulationState, dt: float) -> None:
    """Move projectiles, rupture on contact, drop the ones that left the arena."""
    if not state.projectiles:
        return

    config = state.config

    for p in state.projectiles:
        p.position = p.position + p.velocity * dt

        if state.phase is Phase.INTACT:
            reach = p.radius + config.particle_radius
            dist_sq = ((state.pos - p.position) ** 2).sum(axis=1)
            if len(dist_sq) and float(dist_sq.min()) < reach * reach:
                rupture(state, (float(p.position[0]), float(p.position[1])))

        off = p.position - state.center
        if p.position[1] < state.ground_height or float(np.hypot(off[0], off[1])) > config.arena_radius:
            p.active = False

    state.projectiles = [p for p in state.projectiles if p.active]
