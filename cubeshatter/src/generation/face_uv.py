"""Face to texture-atlas rectangle table and UV sampling."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from ...cube_space import CUBE_HALF, Face, cube_to_face
from ...vector import Vector3
from .polygon2d import Point2


# //1.- Normalized atlas sub-rectangle; v grows downward across the face.
@dataclass(frozen=True)
class FaceUvRect:
    u0: float
    v0: float
    u1: float
    v1: float

    def __post_init__(self) -> None:
        if self.u0 > self.u1 or self.v0 > self.v1:
            raise ValueError(f"UV rect must satisfy u0 <= u1 and v0 <= v1, got {self}")

    # //2.- Map a normalized face coordinate (sx, sy) into this rectangle.
    def sample(self, sx: float, sy: float) -> Point2:
        return self.u0 + sx * (self.u1 - self.u0), self.v0 + (1.0 - sy) * (self.v1 - self.v0)


_SIDE_RECT = FaceUvRect(u0=0.08, v0=0.05, u1=0.92, v1=0.45)

DEFAULT_FACE_UV_RECTS: Dict[Face, FaceUvRect] = {
    Face.FRONT: FaceUvRect(u0=0.08, v0=0.55, u1=0.92, v1=0.95),
    Face.BACK: _SIDE_RECT,
    Face.RIGHT: _SIDE_RECT,
    Face.LEFT: _SIDE_RECT,
    Face.TOP: _SIDE_RECT,
    Face.BOTTOM: _SIDE_RECT,
}


# //3.- Resolve the rectangle for a face, honoring caller overrides.
def face_uv_rect(face: Face, overrides: Optional[Mapping[Face, FaceUvRect]] = None) -> FaceUvRect:
    if overrides and face in overrides:
        return overrides[face]
    return DEFAULT_FACE_UV_RECTS[Face(face)]


# //4.- Atlas UV for a face-local vertex in [-0.5, 0.5]^2.
def uv_for_local(rect: FaceUvRect, point: Point2) -> Point2:
    size = 2.0 * CUBE_HALF
    return rect.sample((point[0] + CUBE_HALF) / size, (point[1] + CUBE_HALF) / size)


# //5.- Atlas UV for a cube-space point lying on ``face``; None when it is off the face.
def sample_face_uv(
    face: Face,
    point: Vector3,
    rects: Optional[Mapping[Face, FaceUvRect]] = None,
    epsilon: float = 1e-4,
) -> Optional[Point2]:
    u, v, depth = cube_to_face(face, point)
    if abs(depth) > epsilon:
        return None
    limit = CUBE_HALF + epsilon
    if abs(u) > limit or abs(v) > limit:
        return None
    return uv_for_local(face_uv_rect(face, rects), (u, v))
