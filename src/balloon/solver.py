# solver.py
"""
Mass-spring solver: force accumulation, semi-implicit Euler, ground collision.

Every kernel works in place on the ``SimulationState`` arrays. Forces go
through an index-keyed buffer so a spring never writes a particle that
another spring in the same parallel batch is writing.
"""

import logging

from numba import njit, prange  # type: ignore
import numpy as np

from balloon.config import SimConfig
from balloon.rupture import advance_projectiles
from balloon.state import SimulationState
from balloon.types import INDEX, MASK, VEC2

logger = logging.getLogger(__name__)

# Squared spring length below which the spring axis is undefined
MIN_DIST_SQ = 1e-12

STATS_EVERY = 600

# ===============================
# PHYSICS KERNELS
# ===============================


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def accumulate_spring_group(
    pos: VEC2,
    vel: VEC2,
    force: VEC2,
    group: INDEX,  # indices INTO spring_i/spring_j for this color
    spring_i: INDEX,
    spring_j: INDEX,
    rest_lengths: VEC2,
    stiffness: VEC2,
    damping: VEC2,
    broken: MASK,
) -> None:
    """
    Elastic and axial damping forces for one color group.

    Springs within a group share no particles, so prange is safe.
    The force on ``a`` is ``+f`` and on ``b`` exactly ``-f``.
    """
    for k in prange(len(group)):
        s = group[k]
        if broken[s]:
            continue

        a = spring_i[s]
        b = spring_j[s]

        dx = pos[b, 0] - pos[a, 0]
        dy = pos[b, 1] - pos[a, 1]

        dist_sq = dx * dx + dy * dy
        if dist_sq < MIN_DIST_SQ:
            continue

        dist = np.sqrt(dist_sq)
        nx = dx / dist
        ny = dy / dist

        # Relative velocity of b seen from a, along the spring only
        v_axial = (vel[b, 0] - vel[a, 0]) * nx + (vel[b, 1] - vel[a, 1]) * ny

        mag = stiffness[s] * (dist - rest_lengths[s]) + damping[s] * v_axial
        fx = mag * nx
        fy = mag * ny

        force[a, 0] += fx
        force[a, 1] += fy
        force[b, 0] -= fx
        force[b, 1] -= fy


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def integrate_symplectic(pos: VEC2, vel: VEC2, force: VEC2, mass: VEC2, dt: float) -> None:
    """Velocity first, then position with the new velocity."""
    for i in prange(len(pos)):
        inv_m = 1.0 / mass[i]
        vel[i, 0] += force[i, 0] * inv_m * dt
        vel[i, 1] += force[i, 1] * inv_m * dt
        pos[i, 0] += vel[i, 0] * dt
        pos[i, 1] += vel[i, 1] * dt


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def resolve_collisions(
    pos: VEC2,
    vel: VEC2,
    ground_y: float,
    restitution: float,
    friction: float,
    use_walls: bool,
    x_min: float,
    x_max: float,
) -> None:
    """Clamp to the ground (and walls) and bounce the normal velocity."""
    keep = 1.0 - friction
    for i in prange(len(pos)):
        # Floor collision
        if pos[i, 1] < ground_y:
            pos[i, 1] = ground_y
            if vel[i, 1] < 0.0:
                vel[i, 1] = -restitution * vel[i, 1]
            vel[i, 0] *= keep

        if use_walls:
            if pos[i, 0] < x_min:
                pos[i, 0] = x_min
                if vel[i, 0] < 0.0:
                    vel[i, 0] = -restitution * vel[i, 0]
            elif pos[i, 0] > x_max:
                pos[i, 0] = x_max
                if vel[i, 0] > 0.0:
                    vel[i, 0] = -restitution * vel[i, 0]


# ===============================
# STEP
# ===============================


def compute_forces(state: SimulationState) -> VEC2:
    """Net force per particle: springs of every color group, then gravity."""
    force = np.zeros_like(state.pos)

    for group in state.spring_groups:
        accumulate_spring_group(
            state.pos,
            state.vel,
            force,
            group,
            state.spring_i,
            state.spring_j,
            state.rest_lengths,
            state.stiffness,
            state.damping,
            state.broken,
        )

    force += state.mass[:, None] * state.gravity
    return force


def clamp_dt(dt: float, config: SimConfig) -> float:
    """Frame hitches are cut down to ``max_dt``; negative or NaN time is 0."""
    if not dt > 0.0:
        return 0.0
    return min(float(dt), config.max_dt)


def step(state: SimulationState, dt: float) -> None:
    """Advance one frame tick of (clamped) length ``dt``."""
    config = state.config
    frame_dt = clamp_dt(dt, config)
    if frame_dt == 0.0:
        return

    x_min, x_max = config.bounds if config.bounds is not None else (0.0, 0.0)
    h = frame_dt / config.substeps

    for _ in range(config.substeps):
        force = compute_forces(state)
        integrate_symplectic(state.pos, state.vel, force, state.mass, h)
        resolve_collisions(
            state.pos,
            state.vel,
            state.ground_height,
            config.restitution,
            config.ground_friction,
            config.bounds is not None,
            x_min,
            x_max,
        )
        advance_projectiles(state, h)

    state.time += frame_dt
    state.steps += 1

    if not (np.isfinite(state.pos).all() and np.isfinite(state.vel).all()):
        if not state.unstable:
            logger.warning(
                "Simulation became unstable at step %d (t=%.3fs); lower stiffness or raise substeps",
                state.steps,
                state.time,
            )
        state.unstable = True
    elif state.steps % STATS_EVERY == 0:
        speed = np.sqrt((state.vel**2).sum(axis=1))
        logger.debug(
            "Step %d | t=%.2fs | phase=%s | max speed %.4f m/s",
            state.steps,
            state.time,
            state.phase.value,
            float(speed.max()) if len(speed) else 0.0,
        )
