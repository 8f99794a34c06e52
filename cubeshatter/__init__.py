"""Cubeshatter package.

Procedural destruction for unit cubes: a shell of face shards wrapped
around a jittered core, lowered into renderer-neutral buffers, and a
runtime that launches, integrates and schedules the resulting debris
across a cylindrical tower of blocks.
"""

from .vector import Vector3
from .noise import noise3, noise_vector3
from .cube_space import (
    CUBE_HALF,
    SHELL_DEPTH,
    CORE_HALF,
    FACE_ORDER,
    Face,
    FaceBasis,
    face_basis,
    face_to_cube,
    cube_to_face,
    assert_shell_depth_invariant,
    shell_and_core_fractions,
    core_bounds,
)

__all__ = [
    "Vector3",
    "noise3",
    "noise_vector3",
    "CUBE_HALF",
    "SHELL_DEPTH",
    "CORE_HALF",
    "FACE_ORDER",
    "Face",
    "FaceBasis",
    "face_basis",
    "face_to_cube",
    "cube_to_face",
    "assert_shell_depth_invariant",
    "shell_and_core_fractions",
    "core_bounds",
]
