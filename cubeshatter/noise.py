"""Deterministic smooth noise used for the debris pseudo-wind."""
from __future__ import annotations

import math
from typing import Tuple

_CHANNEL_OFFSETS = (101, 257, 409)


def _hash3(seed: int, x: int, y: int, z: int) -> int:
    value = seed ^ (x * 374761393) ^ (y * 668265263) ^ (z * 2147483647)
    value = (value ^ (value >> 13)) * 1274126177
    value = value ^ (value >> 16)
    return value & 0xFFFFFFFF


def _gradient(seed: int, x: int, y: int, z: int) -> Tuple[float, float, float]:
    h = _hash3(seed, x, y, z)
    # Three bytes of the hash give one unnormalized gradient each.
    gx = (h & 0xFF) / 255.0 * 2.0 - 1.0
    gy = ((h >> 8) & 0xFF) / 255.0 * 2.0 - 1.0
    gz = ((h >> 16) & 0xFF) / 255.0 * 2.0 - 1.0
    length = math.sqrt(gx * gx + gy * gy + gz * gz) or 1.0
    return gx / length, gy / length, gz / length


def _smootherstep(t: float) -> float:
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def noise3(seed: int, x: float, y: float, z: float) -> float:
    """Perlin-style gradient noise in 3D, roughly in ``[-1, 1]``."""

    xi, yi, zi = math.floor(x), math.floor(y), math.floor(z)
    xf, yf, zf = x - xi, y - yi, z - zi

    corners = []
    for dz in (0, 1):
        for dy in (0, 1):
            for dx in (0, 1):
                gx, gy, gz = _gradient(seed, xi + dx, yi + dy, zi + dz)
                corners.append((xf - dx) * gx + (yf - dy) * gy + (zf - dz) * gz)

    u = _smootherstep(xf)
    v = _smootherstep(yf)
    w = _smootherstep(zf)

    near = _lerp(_lerp(corners[0], corners[1], u), _lerp(corners[2], corners[3], u), v)
    far = _lerp(_lerp(corners[4], corners[5], u), _lerp(corners[6], corners[7], u), v)
    return _lerp(near, far, w)


def noise_vector3(seed: int, x: float, y: float, z: float) -> Tuple[float, float, float]:
    """Three decorrelated noise channels sampled at the same point."""

    return tuple(noise3(seed + offset, x, y, z) for offset in _CHANNEL_OFFSETS)  # type: ignore[return-value]

