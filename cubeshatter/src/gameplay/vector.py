"""Tuple vector and quaternion helpers for the fragment runtime."""
from __future__ import annotations

import math
from typing import Iterable, Tuple

Vector3 = Tuple[float, float, float]
Quaternion = Tuple[float, float, float, float]

ZERO: Vector3 = (0.0, 0.0, 0.0)
UP: Vector3 = (0.0, 1.0, 0.0)
IDENTITY: Quaternion = (0.0, 0.0, 0.0, 1.0)


# //1.- Convert iterables into three-component float tuples.
def to_vector(components: Iterable[float]) -> Vector3:
    values = [float(component) for component in components]
    if len(values) != 3:
        raise ValueError("Vector3 requires exactly three components")
    return (values[0], values[1], values[2])


# //2.- Add vectors component-wise returning a new tuple.
def add(a: Iterable[float], b: Iterable[float]) -> Vector3:
    ax, ay, az = to_vector(a)
    bx, by, bz = to_vector(b)
    return (ax + bx, ay + by, az + bz)


# //3.- Subtract vectors component-wise returning a new tuple.
def subtract(a: Iterable[float], b: Iterable[float]) -> Vector3:
    ax, ay, az = to_vector(a)
    bx, by, bz = to_vector(b)
    return (ax - bx, ay - by, az - bz)


# //4.- Multiply a vector by a scalar value.
def scale(vector: Iterable[float], scalar: float) -> Vector3:
    vx, vy, vz = to_vector(vector)
    factor = float(scalar)
    return (vx * factor, vy * factor, vz * factor)


# //5.- Add ``vector * scalar`` to ``base``.
def add_scaled(base: Iterable[float], vector: Iterable[float], scalar: float) -> Vector3:
    return add(base, scale(vector, scalar))


# //6.- Compute the dot product between two vectors.
def dot(a: Iterable[float], b: Iterable[float]) -> float:
    ax, ay, az = to_vector(a)
    bx, by, bz = to_vector(b)
    return ax * bx + ay * by + az * bz


# //7.- Compute the cross product following right-hand rule.
def cross(a: Iterable[float], b: Iterable[float]) -> Vector3:
    ax, ay, az = to_vector(a)
    bx, by, bz = to_vector(b)
    return (ay * bz - az * by, az * bx - ax * bz, ax * by - ay * bx)


# //8.- Calculate the Euclidean length of a vector.
def length(vector: Iterable[float]) -> float:
    vx, vy, vz = to_vector(vector)
    return math.sqrt(vx * vx + vy * vy + vz * vz)


# //9.- Normalize a vector guarding against zero length inputs.
def normalize(vector: Iterable[float], fallback: Vector3 = ZERO) -> Vector3:
    vx, vy, vz = to_vector(vector)
    magnitude = math.sqrt(vx * vx + vy * vy + vz * vz)
    if magnitude == 0:
        return fallback
    inv = 1.0 / magnitude
    return (vx * inv, vy * inv, vz * inv)


# //10.- Hamilton product ``a * b`` for (x, y, z, w) quaternions.
def quat_multiply(a: Quaternion, b: Quaternion) -> Quaternion:
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return (
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    )


# //11.- Rotation of ``angle`` radians about a unit ``axis``.
def quat_from_axis_angle(axis: Iterable[float], angle: float) -> Quaternion:
    ux, uy, uz = normalize(axis, UP)
    half = angle * 0.5
    s = math.sin(half)
    return (ux * s, uy * s, uz * s, math.cos(half))


# //12.- Renormalize, falling back to identity for degenerate inputs.
def quat_normalize(q: Quaternion) -> Quaternion:
    x, y, z, w = q
    magnitude = math.sqrt(x * x + y * y + z * z + w * w)
    if magnitude == 0:
        return IDENTITY
    return (x / magnitude, y / magnitude, z / magnitude, w / magnitude)


# //13.- Rotate a vector by a unit quaternion.
def quat_rotate(q: Quaternion, vector: Iterable[float]) -> Vector3:
    vx, vy, vz = to_vector(vector)
    rotated = quat_multiply(quat_multiply(q, (vx, vy, vz, 0.0)), (-q[0], -q[1], -q[2], q[3]))
    return (rotated[0], rotated[1], rotated[2])
