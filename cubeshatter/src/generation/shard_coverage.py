"""Volumetric sanity checks and cached template sets for the unit cube."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ...cube_space import CUBE_HALF, cube_to_face, face_basis, face_to_cube
from ...vector import Vector3
from .config import RandomSource, random_source
from .polygon2d import point_in_polygon, polygon_centroid
from .shard_templates import ShardTemplate, TemplateGeneratorOptions, generate_shard_templates

LOGGER = logging.getLogger(__name__)

DEFAULT_COVERAGE_RESOLUTION = 8
DEFAULT_MIN_COVERED_FRACTION = 0.55
DEFAULT_TEMPLATE_SEED = 1337

_DEPTH_TOLERANCE = 1e-5


# //1.- One volumetric sample point and the templates that contain it.
@dataclass(frozen=True)
class ShardFillSample:
    position: Vector3
    hit_template_ids: Tuple[int, ...]


# //2.- Coverage samples plus the covered fraction of the sample grid.
@dataclass(frozen=True)
class ShardCoverage:
    samples: Tuple[ShardFillSample, ...]
    covered_fraction: float


# //3.- Pass/fail verdict of a coverage check.
@dataclass(frozen=True)
class ShardCoverageCheck:
    ok: bool
    covered_fraction: float
    required_fraction: float


# //4.- Validated templates bundled with their coverage verdict.
@dataclass(frozen=True)
class ShardTemplateSet:
    templates: Tuple[ShardTemplate, ...]
    coverage: ShardCoverageCheck


# //5.- Center of a template's volume: polygon centroid lifted to the mid depth.
def compute_shard_local_center(template: ShardTemplate) -> Vector3:
    cx, cy = polygon_centroid(template.polygon)
    return face_to_cube(template.face, cx, cy, (template.depth_min + template.depth_max) * 0.5)


# //6.- True when the shard center sits closer to its face plane than to the cube center.
def is_shard_surface_biased(template: ShardTemplate) -> bool:
    center = compute_shard_local_center(template)
    basis = face_basis(template.face)
    outward_distance = abs((basis.origin - center).dot(basis.normal))
    return outward_distance < center.length()


def _contains(template: ShardTemplate, point: Vector3) -> bool:
    u, v, depth = cube_to_face(template.face, point)
    if depth < template.depth_min - _DEPTH_TOLERANCE or depth > template.depth_max + _DEPTH_TOLERANCE:
        return False
    return point_in_polygon((u, v), template.polygon)


# //7.- Sample the cube on a regular grid and record which templates claim each sample.
def estimate_shard_coverage(
    templates: Sequence[ShardTemplate],
    resolution: int = DEFAULT_COVERAGE_RESOLUTION,
) -> ShardCoverage:
    if resolution <= 0:
        return ShardCoverage(samples=(), covered_fraction=0.0)
    samples: List[ShardFillSample] = []
    covered = 0
    size = 2.0 * CUBE_HALF
    for ix in range(resolution):
        for iy in range(resolution):
            for iz in range(resolution):
                position = Vector3(
                    -CUBE_HALF + (ix + 0.5) / resolution * size,
                    -CUBE_HALF + (iy + 0.5) / resolution * size,
                    -CUBE_HALF + (iz + 0.5) / resolution * size,
                )
                hits = tuple(template.id for template in templates if _contains(template, position))
                if hits:
                    covered += 1
                samples.append(ShardFillSample(position=position, hit_template_ids=hits))
    return ShardCoverage(samples=tuple(samples), covered_fraction=covered / float(resolution ** 3))


# //8.- Accept a template collection when it fills enough of the cube.
def validate_shard_coverage(
    templates: Sequence[ShardTemplate],
    *,
    resolution: int = DEFAULT_COVERAGE_RESOLUTION,
    min_covered_fraction: float = DEFAULT_MIN_COVERED_FRACTION,
) -> ShardCoverageCheck:
    coverage = estimate_shard_coverage(templates, resolution)
    return ShardCoverageCheck(
        ok=coverage.covered_fraction >= min_covered_fraction,
        covered_fraction=coverage.covered_fraction,
        required_fraction=min_covered_fraction,
    )


# //9.- Generate templates and refuse sets that leave too much of the cube empty.
def create_shard_template_set(
    rnd: RandomSource,
    options: Optional[TemplateGeneratorOptions] = None,
    *,
    coverage_resolution: int = DEFAULT_COVERAGE_RESOLUTION,
    min_covered_fraction: float = DEFAULT_MIN_COVERED_FRACTION,
) -> ShardTemplateSet:
    templates = generate_shard_templates(rnd, options)
    coverage = validate_shard_coverage(
        templates,
        resolution=coverage_resolution,
        min_covered_fraction=min_covered_fraction,
    )
    if not coverage.ok:
        raise ValueError(
            f"Shard template coverage too low: {coverage.covered_fraction:.2f} < {coverage.required_fraction}"
        )
    LOGGER.info(
        "Shard template set ready: %d templates, coverage %.2f",
        len(templates),
        coverage.covered_fraction,
    )
    return ShardTemplateSet(templates=tuple(templates), coverage=coverage)


_cached_default: Optional[ShardTemplateSet] = None


# //10.- Lazily build the shared template set for the unit cube.
def get_default_shard_template_set(seed: int = DEFAULT_TEMPLATE_SEED) -> ShardTemplateSet:
    global _cached_default
    if _cached_default is None:
        _cached_default = create_shard_template_set(random_source(seed))
    return _cached_default


# //11.- Drop the cached set so the next request regenerates it.
def reset_default_shard_template_set() -> None:
    global _cached_default
    _cached_default = None
