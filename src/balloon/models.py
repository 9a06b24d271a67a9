# models.py
from __future__ import annotations

from collections.abc import Iterator
import math
from typing import NamedTuple


class Vector2:
    __slots__ = ["x", "y"]

    def __init__(self, x: float, y: float) -> None:
        self.x, self.y = x, y

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __repr__(self) -> str:
        return f"Vector2({self.x!r}, {self.y!r})"

    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    def __truediv__(self, scalar: float) -> Vector2:
        return Vector2(self.x / scalar, self.y / scalar)

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def distance(self, other: Vector2) -> float:
        return (other - self).length()

    @classmethod
    def polar(cls, radius: float, theta: float) -> Vector2:
        return cls(radius * math.cos(theta), radius * math.sin(theta))


class Layer(NamedTuple):
    """One ring of the balloon: its radius and how many particles sit on it."""

    radius: float
    count: int


class Particle:
    def __init__(self, index: int, x: float, y: float, mass: float = 1.0) -> None:
        self.index = index
        self.pos = Vector2(x, y)
        self.vel = Vector2(0.0, 0.0)  # Balloons start at rest
        self.mass = mass
        self.active = True


class Spring:
    def __init__(
        self,
        a: Particle,
        b: Particle,
        stiffness: float = 150.0,
        damping: float = 0.3,
        rest_length: float | None = None,
    ) -> None:
        self.a = a
        self.b = b
        self.stiffness = stiffness
        self.damping = damping
        self.broken = False
        if rest_length is None:
            self.rest_length = a.pos.distance(b.pos)
        else:
            self.rest_length = rest_length
