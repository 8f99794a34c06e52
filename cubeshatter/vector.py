"""Lightweight 3D vector math utilities.

The destruction pipeline keeps vector arithmetic small and explicit so
every seeded build step stays easy to audit. Only what the shell and
core builders need is implemented here.
"""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable, Tuple


@dataclass(frozen=True)
class Vector3:
    """Immutable 3D vector with a handful of math helpers."""

    x: float
    y: float
    z: float

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vector3":
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def __truediv__(self, scalar: float) -> "Vector3":
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def dot(self, other: "Vector3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalized(self) -> "Vector3":
        length = self.length()
        if length == 0.0:
            raise ValueError("Cannot normalize zero-length vector")
        return self / length

    def component_min(self, other: "Vector3") -> "Vector3":
        return Vector3(min(self.x, other.x), min(self.y, other.y), min(self.z, other.z))

    def component_max(self, other: "Vector3") -> "Vector3":
        return Vector3(max(self.x, other.x), max(self.y, other.y), max(self.z, other.z))

    def max_component(self) -> float:
        return max(self.x, self.y, self.z)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @staticmethod
    def zero() -> "Vector3":
        return Vector3(0.0, 0.0, 0.0)


def mean_point(points: Iterable[Vector3]) -> Vector3:
    """Arithmetic mean of a non-empty point collection."""

    total = Vector3.zero()
    count = 0
    for point in points:
        total = total + point
        count += 1
    if count == 0:
        raise ValueError("Cannot average an empty point collection")
    return total / count


def bounds_of(points: Iterable[Vector3]) -> Tuple[Vector3, Vector3]:
    """Return the axis-aligned ``(minimum, maximum)`` corners of ``points``."""

    iterator = iter(points)
    try:
        first = next(iterator)
    except StopIteration:
        raise ValueError("Cannot compute bounds of an empty point collection") from None
    low = first
    high = first
    for point in iterator:
        low = low.component_min(point)
        high = high.component_max(point)
    return low, high
