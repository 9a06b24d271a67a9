"""
Water Balloon Simulation Package

A 2D soft-body simulation of a water balloon built from point masses
and viscoelastic springs, which bursts when clicked or shot.
"""

from .config import ConfigError, SimConfig, load_config
from .core import initialize, initialize_from_config
from .models import Layer, Particle, Spring, Vector2
from .rupture import fire_projectile, handle_click
from .solver import step
from .state import Phase, SimulationState, active_spring_pairs, position_array, positions

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "Layer",
    "Particle",
    "Phase",
    "SimConfig",
    "SimulationState",
    "Spring",
    "Vector2",
    "active_spring_pairs",
    "fire_projectile",
    "handle_click",
    "initialize",
    "initialize_from_config",
    "load_config",
    "position_array",
    "positions",
    "step",
]
