# state.py
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
import logging

import numpy as np

from balloon.config import SimConfig
from balloon.models import Particle, Spring
from balloon.types import INDEX, MASK, POINT, POINT_LIKE, VEC2

logger = logging.getLogger(__name__)


class Phase(Enum):
    INTACT = "intact"
    RUPTURED = "ruptured"


@dataclass
class Projectile:
    position: VEC2
    velocity: VEC2
    radius: float
    active: bool = True


def color_springs(spring_i: INDEX, spring_j: INDEX, num_points: int) -> list[INDEX]:
    """Returns list of arrays, each array is indices of non-conflicting springs."""
    if len(spring_i) == 0:
        return []

    colors = np.full(len(spring_i), -1, dtype=np.int32)
    neighbor_colors: list[set[int]] = [set() for _ in range(num_points)]

    for s in range(len(spring_i)):
        a, b = spring_i[s], spring_j[s]
        used = neighbor_colors[a] | neighbor_colors[b]
        c = 0
        while c in used:
            c += 1
        colors[s] = c
        neighbor_colors[a].add(c)
        neighbor_colors[b].add(c)

    num_colors = int(colors.max()) + 1
    return [np.where(colors == c)[0].astype(np.int32) for c in range(num_colors)]


@dataclass(eq=False)
class SimulationState:
    """
    Everything the physics step mutates, as flat numpy arrays.

    Rows of ``pos``/``vel``/``mass``/``active`` are particles; entries of the
    ``spring_*`` arrays are springs. Both orders are fixed for the whole run,
    so indices handed out by the topology builder stay valid.
    """

    center: VEC2
    gravity: VEC2
    ground_height: float
    pos: VEC2
    vel: VEC2
    mass: VEC2
    active: MASK
    spring_i: INDEX
    spring_j: INDEX
    rest_lengths: VEC2
    stiffness: VEC2
    damping: VEC2
    broken: MASK
    config: SimConfig = field(default_factory=SimConfig)
    phase: Phase = Phase.INTACT
    projectiles: list[Projectile] = field(default_factory=list)
    spring_groups: list[INDEX] = field(default_factory=list)
    time: float = 0.0
    steps: int = 0
    unstable: bool = False

    @classmethod
    def from_topology(
        cls,
        particles: list[Particle],
        springs: list[Spring],
        center: POINT_LIKE,
        gravity: POINT_LIKE,
        ground_height: float,
        config: SimConfig | None = None,
    ) -> SimulationState:
        config = config or SimConfig()

        pos = np.array([[p.pos.x, p.pos.y] for p in particles], dtype=np.float64).reshape(-1, 2)
        vel = np.array([[p.vel.x, p.vel.y] for p in particles], dtype=np.float64).reshape(-1, 2)
        mass = np.array([p.mass for p in particles], dtype=np.float64)

        p_to_idx = {id(p): i for i, p in enumerate(particles)}
        spring_i = np.array([p_to_idx[id(s.a)] for s in springs], dtype=np.int32)
        spring_j = np.array([p_to_idx[id(s.b)] for s in springs], dtype=np.int32)

        state = cls(
            center=np.array(tuple(center), dtype=np.float64),
            gravity=np.array(tuple(gravity), dtype=np.float64),
            ground_height=float(ground_height),
            pos=pos,
            vel=vel,
            mass=mass,
            active=np.array([p.active for p in particles], dtype=np.bool_),
            spring_i=spring_i,
            spring_j=spring_j,
            rest_lengths=np.array([s.rest_length for s in springs], dtype=np.float64),
            stiffness=np.array([s.stiffness for s in springs], dtype=np.float64),
            damping=np.array([s.damping for s in springs], dtype=np.float64),
            broken=np.array([s.broken for s in springs], dtype=np.bool_),
            config=config,
            spring_groups=color_springs(spring_i, spring_j, len(particles)),
        )

        logger.info(
            "State initialized: %d particles, %d springs, %d spring groups",
            state.num_particles,
            state.num_springs,
            len(state.spring_groups),
        )
        return state

    @property
    def num_particles(self) -> int:
        return len(self.pos)

    @property
    def num_springs(self) -> int:
        return len(self.spring_i)

    @property
    def is_ruptured(self) -> bool:
        return self.phase is Phase.RUPTURED

    def refresh_active(self) -> None:
        """A particle stays active while at least one unbroken spring holds it."""
        active = np.zeros(self.num_particles, dtype=np.bool_)
        intact = ~self.broken
        active[self.spring_i[intact]] = True
        active[self.spring_j[intact]] = True
        self.active = active


def positions(state: SimulationState) -> Iterator[POINT]:
    """Lazily yield (x, y) per particle from a copy taken at call time."""
    snapshot = state.pos.copy()
    return ((float(x), float(y)) for x, y in snapshot)


def position_array(state: SimulationState) -> VEC2:
    return state.pos.copy()


def active_spring_pairs(state: SimulationState) -> INDEX:
    """(M, 2) particle index pairs of the springs that still hold."""
    intact = ~state.broken
    return np.stack([state.spring_i[intact], state.spring_j[intact]], axis=1)
