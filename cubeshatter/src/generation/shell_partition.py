"""Seeded Voronoi-style tessellation of one cube face."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ...cube_space import CUBE_HALF, Face
from .config import RandomSource
from .polygon2d import (
    AREA_EPSILON,
    Point2,
    clip_half_plane,
    dedupe_consecutive,
    ensure_ccw,
    point_in_polygon,
    polygon_area,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_SEED_COUNT = 5
MIN_SEED_COUNT = 5
DEFAULT_INSET = 0.02
MAX_INSET = 0.49
FACE_COVERAGE_MIN = 0.85

_SEED_SEPARATION_MIN = 1e-6


# //1.- Seed position in normalized [0, 1]^2 face coordinates.
@dataclass(frozen=True)
class FaceSeed:
    face: Face
    sx: float
    sy: float


# //2.- Counter-clockwise face-local outline owned by one seed.
@dataclass(frozen=True)
class FacePolygon:
    face: Face
    vertices: Tuple[Point2, ...]

    @property
    def area(self) -> float:
        return polygon_area(self.vertices)


# //3.- Draw inset seeds so none of them lands exactly on a face edge.
def generate_face_seeds(
    face: Face,
    rnd: RandomSource,
    *,
    count: int = DEFAULT_SEED_COUNT,
    inset: float = DEFAULT_INSET,
) -> List[FaceSeed]:
    margin = min(MAX_INSET, max(0.0, float(inset)))
    total = max(MIN_SEED_COUNT, int(count))
    span = 1.0 - 2.0 * margin
    seeds: List[FaceSeed] = []
    for _ in range(total):
        sx = margin + span * rnd()
        sy = margin + span * rnd()
        seeds.append(FaceSeed(face=Face(face), sx=sx, sy=sy))
    return seeds


# //4.- Map a normalized seed into face-local [-0.5, 0.5]^2 space.
def seed_to_local(seed: FaceSeed) -> Point2:
    size = 2.0 * CUBE_HALF
    return -CUBE_HALF + seed.sx * size, -CUBE_HALF + seed.sy * size


def _face_square() -> List[Point2]:
    return [
        (-CUBE_HALF, -CUBE_HALF),
        (CUBE_HALF, -CUBE_HALF),
        (CUBE_HALF, CUBE_HALF),
        (-CUBE_HALF, CUBE_HALF),
    ]


# //5.- Clip the face square against every perpendicular bisector, keeping the seed side.
def _voronoi_cell(index: int, seeds: Sequence[Point2]) -> List[Point2]:
    sx, sy = seeds[index]
    cell = _face_square()
    for other_index, (ox, oy) in enumerate(seeds):
        if other_index == index:
            continue
        dx = ox - sx
        dy = oy - sy
        length = (dx * dx + dy * dy) ** 0.5
        if length < _SEED_SEPARATION_MIN:
            continue
        normal = (dx / length, dy / length)
        mid_x = (sx + ox) * 0.5
        mid_y = (sy + oy) * 0.5
        cell = clip_half_plane(cell, normal, normal[0] * mid_x + normal[1] * mid_y)
        if not cell:
            break
    return dedupe_consecutive(cell)


# //6.- Build one polygon per seed, discarding degenerate leftovers.
def build_face_polygons(face: Face, seeds: Sequence[FaceSeed]) -> List[FacePolygon]:
    local = [seed_to_local(seed) for seed in seeds]
    polygons: List[FacePolygon] = []
    for index in range(len(local)):
        cell = _voronoi_cell(index, local)
        if len(cell) < 3 or polygon_area(cell) <= AREA_EPSILON:
            LOGGER.debug("Dropping degenerate cell %d on face %s", index, Face(face).value)
            continue
        polygons.append(FacePolygon(face=Face(face), vertices=tuple(ensure_ccw(cell))))
    return polygons


# //7.- Estimate the covered fraction of the face square on a regular sample grid.
def estimate_face_coverage(polygons: Sequence[FacePolygon], samples_per_axis: int = 6) -> float:
    if samples_per_axis <= 0:
        return 0.0
    size = 2.0 * CUBE_HALF
    hits = 0
    for ix in range(samples_per_axis):
        for iy in range(samples_per_axis):
            point = (
                -CUBE_HALF + (ix + 0.5) / samples_per_axis * size,
                -CUBE_HALF + (iy + 0.5) / samples_per_axis * size,
            )
            if any(point_in_polygon(point, polygon.vertices) for polygon in polygons):
                hits += 1
    return hits / float(samples_per_axis * samples_per_axis)


# //8.- Enforce the coverage invariant, returning the measured fraction.
def ensure_face_coverage(
    polygons: Sequence[FacePolygon],
    minimum: float = FACE_COVERAGE_MIN,
    samples_per_axis: int = 6,
) -> float:
    coverage = estimate_face_coverage(polygons, samples_per_axis)
    if coverage < minimum:
        raise ValueError(f"Face polygons cover {coverage:.3f} of the face, expected at least {minimum:.3f}")
    return coverage


# //9.- Seed, tessellate and verify one face in a single call.
def partition_face(
    face: Face,
    rnd: RandomSource,
    *,
    seed_count: int = DEFAULT_SEED_COUNT,
    inset: float = DEFAULT_INSET,
    seeds: Optional[Sequence[FaceSeed]] = None,
) -> List[FacePolygon]:
    chosen = list(seeds) if seeds is not None else generate_face_seeds(face, rnd, count=seed_count, inset=inset)
    polygons = build_face_polygons(face, chosen)
    coverage = ensure_face_coverage(polygons)
    LOGGER.debug("Face %s partitioned into %d polygons (coverage %.2f)", Face(face).value, len(polygons), coverage)
    return polygons
