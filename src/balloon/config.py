# config.py
"""
Simulation parameters for the water balloon.

Units are SI-ish and y points up: lengths in meters, time in seconds,
gravity in m/s². Everything has a default, so ``SimConfig()`` gives a
balloon that is stable at 60 FPS. A JSON file with any subset of the
field names overrides the defaults (see ``load_config``).

Stability note: symplectic Euler on a spring network needs roughly
``dt_sub * sqrt(k_eff / m) < 2`` where ``k_eff`` is the stiffness times the
number of neighbours. Raising ``stiffness`` means raising ``substeps``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
import json
import math
from pathlib import Path
from typing import Any

RUPTURE_POLICIES = ("all", "local")


class ConfigError(ValueError):
    """Raised for unknown keys or out-of-range configuration values."""


@dataclass
class SimConfig:
    # --- Balloon layout ---
    balloon_radius: float = 1.0
    layer_spacing: float = 0.1  # Radial gap between rings
    arc_spacing: float = 0.125  # Target gap between neighbours on a ring
    min_layer_count: int = 6
    layers: list[tuple[float, int]] | None = None  # Explicit (radius, count) schedule
    center: tuple[float, float] = (0.0, 2.5)
    neighbor_radius: float = 0.2

    # --- Material ---
    mass: float = 0.02
    stiffness: float = 150.0
    damping: float = 0.3

    # --- World ---
    gravity: tuple[float, float] = (0.0, -9.8)
    ground_height: float = 0.0
    restitution: float = 0.3
    ground_friction: float = 0.0
    bounds: tuple[float, float] | None = None  # Side walls (x_min, x_max)

    # --- Rupture ---
    hit_radius: float = 0.05  # Slack added to the balloon's bounding circle
    rupture_policy: str = "all"
    fracture_radius: float = 0.5  # Only used by the "local" policy
    burst_speed: float = 0.0

    # --- Projectiles ---
    particle_radius: float = 0.03
    projectile_speed: float = 8.0
    projectile_radius: float = 0.05
    arena_radius: float = 20.0

    # --- Clock ---
    nominal_dt: float = 1.0 / 60.0
    max_dt_multiple: float = 3.0
    substeps: int = 12

    # --- Host window (ignored by the core) ---
    width: int = 1000
    height: int = 800
    fps: int = 60
    view_height: float = 6.0  # World meters visible vertically

    def __post_init__(self) -> None:
        self.center = _pair(self.center, "center")
        self.gravity = _pair(self.gravity, "gravity")
        if self.bounds is not None:
            self.bounds = _pair(self.bounds, "bounds")
            if self.bounds[0] >= self.bounds[1]:
                raise ConfigError(f"bounds must satisfy x_min < x_max, got {self.bounds}")
        if self.layers is not None:
            try:
                self.layers = [(float(r), int(n)) for r, n in self.layers]
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"layers must be a list of [radius, count] pairs: {exc}") from exc
        try:
            self.validate()
        except TypeError as exc:
            raise ConfigError(f"Bad config value type: {exc}") from exc

    @property
    def max_dt(self) -> float:
        return self.nominal_dt * self.max_dt_multiple

    def validate(self) -> None:
        for name in ("mass", "nominal_dt", "neighbor_radius", "max_dt_multiple"):
            _check(getattr(self, name) > 0, f"{name} must be > 0")
        for name in (
            "stiffness",
            "damping",
            "restitution",
            "ground_friction",
            "hit_radius",
            "fracture_radius",
            "burst_speed",
            "particle_radius",
            "projectile_speed",
            "projectile_radius",
            "arena_radius",
            "balloon_radius",
        ):
            _check(getattr(self, name) >= 0, f"{name} must be >= 0")
        _check(self.restitution <= 1.0, "restitution must be <= 1")
        _check(self.ground_friction <= 1.0, "ground_friction must be <= 1")
        _check(self.substeps >= 1, "substeps must be >= 1")
        _check(self.layer_spacing > 0 and self.arc_spacing > 0, "layer/arc spacing must be > 0")
        _check(self.min_layer_count >= 1, "min_layer_count must be >= 1")
        _check(
            self.rupture_policy in RUPTURE_POLICIES,
            f"rupture_policy must be one of {RUPTURE_POLICIES}, got {self.rupture_policy!r}",
        )
        _check(all(math.isfinite(v) for v in (*self.center, *self.gravity)), "center/gravity must be finite")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _check(ok: bool, message: str) -> None:
    if not ok:
        raise ConfigError(message)


def _pair(value: Any, name: str) -> tuple[float, float]:
    try:
        x, y = value
        return float(x), float(y)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a pair of numbers, got {value!r}") from exc


def config_from_dict(data: dict[str, Any]) -> SimConfig:
    known = {f.name for f in fields(SimConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
    try:
        return SimConfig(**data)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc


def load_config(path: str | Path) -> SimConfig:
    """Read a JSON object of overrides and build a validated ``SimConfig``."""
    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{path}: invalid JSON ({exc})") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a JSON object at the top level")
    return config_from_dict(data)
