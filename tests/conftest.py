import logging

import pytest

from balloon.config import SimConfig
from balloon.core import initialize, initialize_from_config
from balloon.log import LOGGER_NAME
from balloon.models import Particle, Spring
from balloon.state import SimulationState


@pytest.fixture
def config() -> SimConfig:
    return SimConfig(center=(0.0, 1.5))


@pytest.fixture
def state(config):
    return initialize_from_config(config)


@pytest.fixture
def four_particles():
    """Single ring of four particles around the origin, gravity only."""
    cfg = SimConfig(stiffness=0.0, damping=0.0, mass=1.0, substeps=1)
    return initialize(
        [(1.0, 4)],
        center=(0.0, 0.0),
        gravity=(0.0, -9.8),
        ground_height=-10.0,
        neighbor_radius=1.5,
        config=cfg,
    )


def make_pair(
    distance: float,
    rest_length: float,
    stiffness: float = 10.0,
    damping: float = 0.0,
    gravity: tuple[float, float] = (0.0, 0.0),
    **overrides,
) -> SimulationState:
    """Two unit masses on the x axis joined by one spring."""
    cfg = SimConfig(mass=1.0, substeps=1, **overrides)
    a = Particle(0, 0.0, 0.0)
    b = Particle(1, distance, 0.0)
    spring = Spring(a, b, stiffness=stiffness, damping=damping, rest_length=rest_length)
    return SimulationState.from_topology([a, b], [spring], (0.0, 0.0), gravity, -100.0, cfg)


@pytest.fixture
def restore_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved = (logger.level, logger.propagate, list(logger.handlers))
    yield logger
    for handler in logger.handlers:
        if handler not in saved[2]:
            handler.close()
    logger.setLevel(saved[0])
    logger.propagate = saved[1]
    logger.handlers[:] = saved[2]


@pytest.fixture
def pair():
    return make_pair
