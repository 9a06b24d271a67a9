# balloon.py
"""
Water balloon topology: particles on concentric rings, springs between
every pair of particles that start closer than a neighbour radius.

The spring network is what keeps the balloon round. For that the graph
has to be connected, which is a precondition on the neighbour radius
(pick it larger than both the ring spacing and the arc spacing). It is
not enforced; ``generate_balloon`` only logs a warning when it does not
hold.
"""

from collections import deque
from collections.abc import Iterable, Sequence
import logging
import math

import numpy as np

from balloon.models import Layer, Particle, Spring, Vector2
from balloon.types import GEN_BALLOON, INDEX

logger = logging.getLogger(__name__)

# Pairs closer than this are treated as coincident
MIN_REST_LENGTH = 1e-9


class TopologyError(ValueError):
    """Raised when a layer schedule cannot produce a valid balloon."""


def concentric_layers(
    radius: float,
    layer_spacing: float,
    arc_spacing: float,
    min_count: int = 6,
) -> list[Layer]:
    """
    Ring schedule for a filled disc of the given radius.

    A single particle sits at the center; each further ring is
    ``layer_spacing`` out and holds ``2*pi*r / arc_spacing`` particles, but
    never fewer than ``min_count``.
    """
    if radius < 0 or layer_spacing <= 0 or arc_spacing <= 0:
        raise TopologyError(
            f"Invalid schedule: radius={radius}, layer_spacing={layer_spacing}, arc_spacing={arc_spacing}"
        )

    layers = [Layer(0.0, 1)]
    k = 1
    # Small slack so a radius that is an exact multiple of the spacing keeps its last ring
    while k * layer_spacing <= radius + 1e-9 * layer_spacing:
        r = k * layer_spacing
        count = max(min_count, int((2.0 * math.pi * r) / arc_spacing))
        layers.append(Layer(r, count))
        k += 1
    return layers


def _check_layers(layers: Sequence[tuple[float, int]]) -> list[Layer]:
    checked = []
    for k, (radius, count) in enumerate(layers):
        if radius < 0 or not math.isfinite(radius):
            raise TopologyError(f"Layer {k}: radius must be finite and >= 0, got {radius}")
        if count < 0 or int(count) != count:
            raise TopologyError(f"Layer {k}: count must be a non-negative integer, got {count}")
        checked.append(Layer(float(radius), int(count)))
    return checked


def neighbor_pairs(positions: np.ndarray, neighbor_radius: float) -> tuple[INDEX, INDEX]:
    """All (i, j), i < j, whose distance is below ``neighbor_radius``."""
    if len(positions) < 2:
        empty = np.empty(0, dtype=np.int32)
        return empty, empty

    delta = positions[:, None, :] - positions[None, :, :]
    dist = np.sqrt(np.einsum("ijk,ijk->ij", delta, delta))
    close = np.triu(dist < neighbor_radius, k=1)
    i, j = np.nonzero(close)
    return i.astype(np.int32), j.astype(np.int32)


def is_connected(num_particles: int, spring_i: Iterable[int], spring_j: Iterable[int]) -> bool:
    """Breadth-first reachability over the spring graph."""
    if num_particles <= 1:
        return True

    adjacency: list[list[int]] = [[] for _ in range(num_particles)]
    for a, b in zip(spring_i, spring_j):
        adjacency[a].append(b)
        adjacency[b].append(a)

    seen = [False] * num_particles
    seen[0] = True
    queue = deque([0])
    reached = 1
    while queue:
        node = queue.popleft()
        for other in adjacency[node]:
            if not seen[other]:
                seen[other] = True
                reached += 1
                queue.append(other)
    return reached == num_particles


def generate_balloon(
    layers: Sequence[tuple[float, int]],
    center: Vector2 | tuple[float, float] = (0.0, 0.0),
    neighbor_radius: float = 0.2,
    mass: float = 1.0,
    stiffness: float = 150.0,
    damping: float = 0.3,
) -> GEN_BALLOON:
    """
    Build the balloon's particles and springs.

    Args:
        layers: (radius, count) per ring. A ring with count 0 adds nothing.
        center: Balloon center in world coordinates
        neighbor_radius: Particles closer than this at rest get a spring
        mass: Mass of every particle
        stiffness: Spring constant k of every spring
        damping: Axial damping coefficient c of every spring

    Returns:
        (particles, springs) tuple. Particle indices follow layer order,
        then angular order inside a layer.

    Raises:
        TopologyError: negative radius/count, non-positive neighbour radius
            or mass, or negative stiffness/damping.
    """
    checked = _check_layers(layers)
    if not neighbor_radius > 0:
        raise TopologyError(f"neighbor_radius must be > 0, got {neighbor_radius}")
    if not mass > 0:
        raise TopologyError(f"mass must be > 0, got {mass}")
    if not (stiffness >= 0 and damping >= 0):
        raise TopologyError(f"stiffness and damping must be >= 0, got {stiffness}, {damping}")

    cx, cy = center
    origin = Vector2(float(cx), float(cy))

    # 1. PARTICLES, ring by ring
    particles: list[Particle] = []
    for layer in checked:
        for i in range(layer.count):
            theta = 2.0 * math.pi * i / layer.count
            pos = origin + Vector2.polar(layer.radius, theta)
            particles.append(Particle(len(particles), pos.x, pos.y, mass=mass))

    logger.info("Generated %d particles in %d layers", len(particles), len(checked))

    # 2. SPRINGS between close neighbours
    positions = np.array([[p.pos.x, p.pos.y] for p in particles], dtype=np.float64).reshape(-1, 2)
    pair_i, pair_j = neighbor_pairs(positions, neighbor_radius)

    springs: list[Spring] = []
    coincident = 0
    for a, b in zip(pair_i, pair_j):
        spring = Spring(particles[a], particles[b], stiffness=stiffness, damping=damping)
        if spring.rest_length <= MIN_REST_LENGTH:
            coincident += 1
            continue
        springs.append(spring)

    if coincident:
        logger.warning("Skipped %d coincident particle pairs (zero rest length)", coincident)

    logger.info(
        "Generated %d springs (neighbor radius %.4f, avg rest length %.4f)",
        len(springs),
        neighbor_radius,
        float(np.mean([s.rest_length for s in springs])) if springs else 0.0,
    )

    if not is_connected(len(particles), (s.a.index for s in springs), (s.b.index for s in springs)):
        logger.warning("Spring graph is not connected; raise neighbor_radius to keep the balloon together")

    return particles, springs
