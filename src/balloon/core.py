# core.py
from collections.abc import Sequence
import logging

from balloon.config import SimConfig
from balloon.mesh.balloon import concentric_layers, generate_balloon
from balloon.state import SimulationState
from balloon.types import POINT_LIKE

logger = logging.getLogger(__name__)


def initialize(
    layers: Sequence[tuple[float, int]],
    center: POINT_LIKE,
    gravity: POINT_LIKE,
    ground_height: float,
    neighbor_radius: float,
    config: SimConfig | None = None,
) -> SimulationState:
    """
    Build a fresh balloon state.

    Material constants (mass, stiffness, damping) and the clock/rupture
    settings come from ``config``; the geometry and world arguments given
    here take precedence over the ones stored in it.
    """
    config = config or SimConfig()
    particles, springs = generate_balloon(
        layers,
        center=center,
        neighbor_radius=neighbor_radius,
        mass=config.mass,
        stiffness=config.stiffness,
        damping=config.damping,
    )
    return SimulationState.from_topology(particles, springs, center, gravity, ground_height, config)


def initialize_from_config(config: SimConfig) -> SimulationState:
    """Build the balloon described entirely by ``config``."""
    if config.layers is not None:
        layers = config.layers
    else:
        layers = concentric_layers(
            config.balloon_radius,
            config.layer_spacing,
            config.arc_spacing,
            config.min_layer_count,
        )
    logger.debug("Layer schedule: %s", layers)
    return initialize(
        layers,
        center=config.center,
        gravity=config.gravity,
        ground_height=config.ground_height,
        neighbor_radius=config.neighbor_radius,
        config=config,
    )
