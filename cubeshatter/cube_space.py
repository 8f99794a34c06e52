"""Canonical unit-cube frame shared by every destruction builder.

The cube is centered at the origin and spans ``[-0.5, 0.5]`` on every
axis. Each face owns a right-handed 2D basis so face polygons can be
authored in ``[-0.5, 0.5]^2`` and lifted back into cube space.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from .vector import Vector3

CUBE_HALF = 0.5
SHELL_DEPTH = 0.2
CORE_HALF = CUBE_HALF - SHELL_DEPTH

_EPSILON = 1e-9


class Face(str, Enum):
    """Symbolic cube face labels."""

    FRONT = "front"
    BACK = "back"
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


FACE_ORDER: Tuple[Face, ...] = (
    Face.FRONT,
    Face.BACK,
    Face.LEFT,
    Face.RIGHT,
    Face.TOP,
    Face.BOTTOM,
)


@dataclass(frozen=True)
class FaceBasis:
    """Origin on the face plane plus in-plane axes and the outward normal."""

    origin: Vector3
    u: Vector3
    v: Vector3
    normal: Vector3


FACE_BASIS: Dict[Face, FaceBasis] = {
    Face.FRONT: FaceBasis(
        origin=Vector3(0.0, 0.0, CUBE_HALF),
        u=Vector3(1.0, 0.0, 0.0),
        v=Vector3(0.0, 1.0, 0.0),
        normal=Vector3(0.0, 0.0, 1.0),
    ),
    Face.BACK: FaceBasis(
        origin=Vector3(0.0, 0.0, -CUBE_HALF),
        u=Vector3(-1.0, 0.0, 0.0),
        v=Vector3(0.0, 1.0, 0.0),
        normal=Vector3(0.0, 0.0, -1.0),
    ),
    Face.RIGHT: FaceBasis(
        origin=Vector3(CUBE_HALF, 0.0, 0.0),
        u=Vector3(0.0, 0.0, -1.0),
        v=Vector3(0.0, 1.0, 0.0),
        normal=Vector3(1.0, 0.0, 0.0),
    ),
    Face.LEFT: FaceBasis(
        origin=Vector3(-CUBE_HALF, 0.0, 0.0),
        u=Vector3(0.0, 0.0, 1.0),
        v=Vector3(0.0, 1.0, 0.0),
        normal=Vector3(-1.0, 0.0, 0.0),
    ),
    Face.TOP: FaceBasis(
        origin=Vector3(0.0, CUBE_HALF, 0.0),
        u=Vector3(1.0, 0.0, 0.0),
        v=Vector3(0.0, 0.0, -1.0),
        normal=Vector3(0.0, 1.0, 0.0),
    ),
    Face.BOTTOM: FaceBasis(
        origin=Vector3(0.0, -CUBE_HALF, 0.0),
        u=Vector3(1.0, 0.0, 0.0),
        v=Vector3(0.0, 0.0, 1.0),
        normal=Vector3(0.0, -1.0, 0.0),
    ),
}


@dataclass(frozen=True)
class ShellCoreFractions:
    """Per-axis split of the unit cube into two shell slabs and the core."""

    shell: float
    core: float
    total: float


def face_basis(face: Face) -> FaceBasis:
    return FACE_BASIS[Face(face)]


def face_to_cube(face: Face, x: float, y: float, depth: float = 0.0) -> Vector3:
    """Lift a face-local point to cube space, ``depth`` measured inward."""

    basis = face_basis(face)
    return basis.origin + basis.u * x + basis.v * y - basis.normal * depth


def cube_to_face(face: Face, point: Vector3) -> Tuple[float, float, float]:
    """Project ``point`` onto ``face`` returning ``(x, y, depth)``."""

    basis = face_basis(face)
    offset = point - basis.origin
    return offset.dot(basis.u), offset.dot(basis.v), -offset.dot(basis.normal)


def assert_shell_depth_invariant(shell_depth: float = SHELL_DEPTH, cube_half: float = CUBE_HALF) -> None:
    """Raise when the shell would not leave a non-empty core behind."""

    if shell_depth <= 0.0:
        raise ValueError(f"Shell depth must be positive, got {shell_depth}")
    if shell_depth >= cube_half:
        raise ValueError(f"Shell depth {shell_depth} must be smaller than the cube half extent {cube_half}")
    core_half = cube_half - shell_depth
    if abs(core_half + shell_depth - cube_half) > _EPSILON:
        raise ValueError("Shell and core extents do not add up to the cube half extent")


def shell_and_core_fractions(shell_depth: float = SHELL_DEPTH) -> ShellCoreFractions:
    assert_shell_depth_invariant(shell_depth)
    core = 2.0 * (CUBE_HALF - shell_depth)
    return ShellCoreFractions(shell=shell_depth, core=core, total=core + 2.0 * shell_depth)


def core_bounds(shell_depth: float = SHELL_DEPTH) -> Tuple[Vector3, Vector3]:
    """Axis-aligned bounds of the interior core volume."""

    assert_shell_depth_invariant(shell_depth)
    half = CUBE_HALF - shell_depth
    return Vector3(-half, -half, -half), Vector3(half, half, half)


def is_inside_core(point: Vector3, shell_depth: float = SHELL_DEPTH, tolerance: float = 0.0) -> bool:
    half = CUBE_HALF - shell_depth + tolerance
    return abs(point.x) <= half and abs(point.y) <= half and abs(point.z) <= half
