"""Full-cube shard template generation by recursive face bisection."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ...cube_space import CUBE_HALF, Face
from .config import RandomSource
from .polygon2d import (
    Point2,
    bounding_box,
    clamp_to_square,
    ensure_ccw,
    is_within_square,
    polygon_area,
    polygon_centroid,
    split_by_line,
    subdivide_edges,
)
from .shell_templates import DepthRange, random_depth

LOGGER = logging.getLogger(__name__)

Polygon = List[Point2]


# //1.- Tag distinguishing the two template representations.
class TemplateKind(str, Enum):
    SINGLE_DEPTH = "single_depth"
    LAYERED = "layered"


# //2.- Inclusive count band for shards generated on one face.
@dataclass(frozen=True)
class CountRange:
    min: int
    max: int


# //3.- One intermediate cross-section of a layered shard.
@dataclass(frozen=True)
class ShardLayer:
    depth: float
    polygon: Tuple[Point2, ...]


# //4.- Prism-like shard whose back cap depth is sampled per vertex in [depth_min, depth_max].
@dataclass(frozen=True)
class SingleDepthTemplate:
    id: int
    face: Face
    polygon: Tuple[Point2, ...]
    depth_min: float
    depth_max: float

    kind: ClassVar[TemplateKind] = TemplateKind.SINGLE_DEPTH


# //5.- Shard stitched through explicit cross-sections from the face plane to its deepest layer.
@dataclass(frozen=True)
class LayeredTemplate:
    id: int
    face: Face
    polygon: Tuple[Point2, ...]
    depth_min: float
    depth_max: float
    layers: Tuple[ShardLayer, ...]

    kind: ClassVar[TemplateKind] = TemplateKind.LAYERED


ShardTemplate = Union[SingleDepthTemplate, LayeredTemplate]


# //6.- Outcome of structural template validation.
@dataclass(frozen=True)
class TemplateValidation:
    valid: bool
    reason: Optional[str] = None


GENERATION_FACE_ORDER: Tuple[Face, ...] = (
    Face.FRONT,
    Face.RIGHT,
    Face.LEFT,
    Face.TOP,
    Face.BOTTOM,
    Face.BACK,
)

DEFAULT_FACE_COUNTS: Dict[Face, CountRange] = {
    Face.FRONT: CountRange(18, 32),
    Face.RIGHT: CountRange(12, 24),
    Face.LEFT: CountRange(12, 24),
    Face.TOP: CountRange(12, 24),
    Face.BOTTOM: CountRange(12, 24),
    Face.BACK: CountRange(9, 16),
}

DEFAULT_DEPTH_RANGES: Dict[Face, DepthRange] = {
    Face.FRONT: DepthRange(0.05, 0.26),
    Face.RIGHT: DepthRange(0.12, 0.42),
    Face.LEFT: DepthRange(0.12, 0.42),
    Face.TOP: DepthRange(0.145, 0.44),
    Face.BOTTOM: DepthRange(0.145, 0.44),
    Face.BACK: DepthRange(0.19, 0.5),
}

DEFAULT_MIN_AREA = 0.0075

_NARROW_SPAN = 0.12
_SEED_DIRECTION_MIN = 0.05
_SEED_DIRECTION_TRIES = 6
_AXIS_AVOIDANCE = 0.15
_ATTEMPTS_PER_TARGET = 20


# //7.- Generation knobs, defaulting to the dense ultra tessellation.
@dataclass(frozen=True)
class TemplateGeneratorOptions:
    face_counts: Mapping[Face, CountRange] = field(default_factory=lambda: dict(DEFAULT_FACE_COUNTS))
    depth_ranges: Mapping[Face, DepthRange] = field(default_factory=lambda: dict(DEFAULT_DEPTH_RANGES))
    min_area: float = DEFAULT_MIN_AREA
    layered: bool = True

    def __post_init__(self) -> None:
        if self.min_area <= 0.0:
            raise ValueError("min_area must be positive")
        for face, band in self.face_counts.items():
            if band.min < 1 or band.max < band.min:
                raise ValueError(f"Invalid shard count band for face {Face(face).value}: {band}")
        for face, depth in self.depth_ranges.items():
            if depth.min < 0.0 or depth.max > 1.0 or depth.max < depth.min:
                raise ValueError(f"Invalid depth range for face {Face(face).value}: {depth}")


# //8.- Check the structural invariants every generated template must satisfy.
def validate_shard_template(template: ShardTemplate) -> TemplateValidation:
    if not math.isfinite(float(template.id)):
        return TemplateValidation(False, "id must be a finite number")
    if template.depth_min < 0.0 or template.depth_max > 1.0:
        return TemplateValidation(False, "depth must be within [0, 1]")
    if template.depth_min > template.depth_max:
        return TemplateValidation(False, "depth_min must be <= depth_max")
    if len(template.polygon) < 3:
        return TemplateValidation(False, "polygon must have at least 3 vertices")
    if not is_within_square(template.polygon, CUBE_HALF):
        return TemplateValidation(False, "polygon vertices must lie within the face square [-0.5, 0.5]")
    if isinstance(template, LayeredTemplate):
        for layer in template.layers:
            if len(layer.polygon) < 3:
                return TemplateValidation(False, "every layer must have at least 3 vertices")
            if not is_within_square(layer.polygon, CUBE_HALF):
                return TemplateValidation(False, "layer vertices must lie within the face square [-0.5, 0.5]")
            if not template.depth_min - 1e-9 <= layer.depth <= template.depth_max + 1e-9:
                return TemplateValidation(False, "layer depth must lie within [depth_min, depth_max]")
    return TemplateValidation(True)


# //9.- Uniform integer in [minimum, maximum].
def random_int(minimum: int, maximum: int, rnd: RandomSource) -> int:
    return int(math.floor(minimum + rnd() * (maximum - minimum + 1)))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# //10.- Jittered 4x4 lattice plus a few free interior points used to pick cut directions.
def generate_seed_points(rnd: RandomSource) -> List[Point2]:
    grid = 4
    step = 1.0 / (grid - 1)
    jitter = step * 0.4
    points: List[Point2] = []
    for ix in range(grid):
        for iy in range(grid):
            base_x = -CUBE_HALF + ix * step
            base_y = -CUBE_HALF + iy * step
            jx = (rnd() * 2.0 - 1.0) * jitter
            jy = (rnd() * 2.0 - 1.0) * jitter
            points.append((_clamp(base_x + jx, -CUBE_HALF, CUBE_HALF), _clamp(base_y + jy, -CUBE_HALF, CUBE_HALF)))
    for _ in range(3):
        points.append((-0.45 + rnd() * 0.9, -0.45 + rnd() * 0.9))
    return points


# //11.- Random cut normal steered away from the coordinate axes.
def random_normal(rnd: RandomSource) -> Point2:
    angle = rnd() * math.pi * 2.0
    if abs(math.sin(angle)) < _AXIS_AVOIDANCE or abs(math.cos(angle)) < _AXIS_AVOIDANCE:
        angle += math.pi * 0.35
    return math.cos(angle), math.sin(angle)


# //12.- Cut normal along the direction between two distinct seed points.
def random_normal_from_seeds(seeds: Sequence[Point2], rnd: RandomSource) -> Optional[Point2]:
    for _ in range(_SEED_DIRECTION_TRIES):
        first = random_int(0, len(seeds) - 1, rnd)
        second = random_int(0, len(seeds) - 1, rnd)
        if first == second:
            continue
        dx = seeds[second][0] - seeds[first][0]
        dy = seeds[second][1] - seeds[first][1]
        length = math.hypot(dx, dy)
        if length < _SEED_DIRECTION_MIN:
            continue
        return dx / length, dy / length
    return None


def _accept_split(parts: Tuple[Polygon, Polygon], min_area: float) -> Optional[Tuple[Polygon, Polygon]]:
    first, second = parts
    if len(first) < 3 or len(second) < 3:
        return None
    if polygon_area(first) < min_area or polygon_area(second) < min_area:
        return None
    return first, second


# //13.- Halve a polygon at its bounding-box center along the longer axis.
def split_axis_aligned(polygon: Sequence[Point2], min_area: float) -> Optional[Tuple[Polygon, Polygon]]:
    min_x, min_y, max_x, max_y = bounding_box(polygon)
    if max_x - min_x > max_y - min_y:
        parts = split_by_line(polygon, (1.0, 0.0), (min_x + max_x) * 0.5)
    else:
        parts = split_by_line(polygon, (0.0, 1.0), (min_y + max_y) * 0.5)
    return _accept_split(parts, min_area)


# //14.- Cut along a seed or random direction, falling back to an axis-aligned split.
def split_irregular(
    polygon: Sequence[Point2],
    min_area: float,
    rnd: RandomSource,
    seeds: Sequence[Point2],
) -> Optional[Tuple[Polygon, Polygon]]:
    normal = random_normal_from_seeds(seeds, rnd) if len(seeds) >= 2 else None
    if normal is None:
        normal = random_normal(rnd)
    projections = [normal[0] * x + normal[1] * y for x, y in polygon]
    low = min(projections)
    span = max(projections) - low
    if span < _NARROW_SPAN:
        return split_axis_aligned(polygon, min_area)
    margin = span * 0.2
    distance = low + margin + rnd() * max(0.01, span - margin * 2.0)
    split = _accept_split(split_by_line(polygon, normal, distance), min_area)
    if split is not None:
        return split
    LOGGER.debug("Irregular cut rejected, using axis-aligned split")
    return split_axis_aligned(polygon, min_area)


def _largest_index(polygons: Sequence[Polygon]) -> int:
    return max(range(len(polygons)), key=lambda index: polygon_area(polygons[index]))


# //15.- Keep splitting the largest piece until the target count, then enforce the guaranteed minimum.
def split_until(
    target_count: int,
    min_area: float,
    polygons: List[Polygon],
    rnd: RandomSource,
    min_guaranteed: int,
    seeds: Sequence[Point2],
) -> List[Polygon]:
    attempts = 0
    max_attempts = target_count * _ATTEMPTS_PER_TARGET
    while len(polygons) < target_count and attempts < max_attempts:
        attempts += 1
        index = _largest_index(polygons)
        split = split_irregular(polygons[index], min_area, rnd, seeds)
        if split is not None:
            polygons[index : index + 1] = list(split)

    while len(polygons) < min_guaranteed:
        index = _largest_index(polygons)
        relaxed = min_area * 0.5
        split = split_irregular(polygons[index], relaxed, rnd, seeds)
        if split is None:
            split = split_axis_aligned(polygons[index], relaxed)
        if split is None:
            LOGGER.warning("Unable to reach %d shards, stopping at %d", min_guaranteed, len(polygons))
            break
        polygons[index : index + 1] = list(split)
    return polygons


# //16.- Central polygons get the full, deeper depth band; edge polygons keep about 80% of it.
def compute_depth_range(polygon: Sequence[Point2], base: DepthRange) -> DepthRange:
    cx, cy = polygon_centroid(polygon)
    max_radius = math.sqrt(2.0) * CUBE_HALF
    distance = _clamp(math.hypot(cx, cy) / max_radius, 0.0, 1.0)
    closeness = 1.0 - distance
    span = base.max - base.min
    span_factor = 0.8 + 0.2 * closeness
    return DepthRange(
        min=_clamp(base.min + span * span_factor * 0.5, base.min, base.max),
        max=_clamp(base.min + span * span_factor, base.min, base.max),
    )


def _perturb_layer(
    front: Sequence[Point2],
    center: Point2,
    rnd: RandomSource,
    intensity: float,
) -> List[Point2]:
    scale = 0.78 + (1.22 - 0.78) * rnd()
    cx, cy = center
    result: List[Point2] = []
    for x, y in front:
        px = cx + (x - cx) * scale + (rnd() * 2.0 - 1.0) * intensity
        py = cy + (y - cy) * scale + (rnd() * 2.0 - 1.0) * intensity
        px, py = clamp_to_square((px, py), CUBE_HALF)
        dx = px - cx
        dy = py - cy
        length = math.hypot(dx, dy)
        if length > 1e-5:
            bias = intensity * 0.6 * (rnd() * 2.0 - 1.0)
            px += dx / length * bias
            py += dy / length * bias
        result.append(clamp_to_square((px, py), CUBE_HALF))
    return ensure_ccw(result)


# //17.- Build 3-4 cross-sections: the subdivided front, perturbed middles and the deepest layer.
def build_layers(polygon: Sequence[Point2], depth_range: DepthRange, rnd: RandomSource) -> Tuple[ShardLayer, ...]:
    front = ensure_ccw(subdivide_edges(polygon))
    layer_count = 3 + int(math.floor(rnd() * 2.0))
    max_depth = random_depth(depth_range.min, depth_range.max, rnd)
    step = max_depth / max(1, layer_count - 1)
    depths = [0.0]
    for index in range(1, layer_count):
        if index == layer_count - 1:
            depths.append(max_depth)
            break
        depths.append(min(max_depth, depths[-1] + step * (0.65 + rnd() * 0.9)))

    center = polygon_centroid(front)
    layers = [ShardLayer(depth=0.0, polygon=tuple(front))]
    for depth in depths[1:]:
        ratio = depth / max_depth if max_depth > 0.0 else 0.0
        intensity = 0.02 + ratio * 0.055
        layers.append(ShardLayer(depth=depth, polygon=tuple(_perturb_layer(front, center, rnd, intensity))))
    return tuple(layers)


def _face_polygons(band: CountRange, min_area: float, rnd: RandomSource) -> List[Polygon]:
    target = random_int(band.min, band.max, rnd)
    square: Polygon = [(-CUBE_HALF, -CUBE_HALF), (CUBE_HALF, -CUBE_HALF), (CUBE_HALF, CUBE_HALF), (-CUBE_HALF, CUBE_HALF)]
    seeds = generate_seed_points(rnd)
    return split_until(target, min_area, [square], rnd, band.min, seeds)


def _to_template(
    template_id: int,
    face: Face,
    polygon: Polygon,
    base: DepthRange,
    rnd: RandomSource,
    layered: bool,
) -> ShardTemplate:
    outline = tuple(ensure_ccw(polygon))
    depth_range = compute_depth_range(outline, base)
    if not layered:
        return SingleDepthTemplate(
            id=template_id,
            face=face,
            polygon=outline,
            depth_min=depth_range.min,
            depth_max=depth_range.max,
        )
    layers = build_layers(outline, depth_range, rnd)
    return LayeredTemplate(
        id=template_id,
        face=face,
        polygon=outline,
        depth_min=0.0,
        depth_max=max(layer.depth for layer in layers),
        layers=layers,
    )


# //18.- Generate validated templates for every face, ids counting up from 1.
def generate_shard_templates(
    rnd: RandomSource,
    options: Optional[TemplateGeneratorOptions] = None,
) -> List[ShardTemplate]:
    settings = options or TemplateGeneratorOptions()
    counts = {**DEFAULT_FACE_COUNTS, **dict(settings.face_counts)}
    depths = {**DEFAULT_DEPTH_RANGES, **dict(settings.depth_ranges)}
    templates: List[ShardTemplate] = []
    next_id = 1
    for face in GENERATION_FACE_ORDER:
        polygons = _face_polygons(counts[face], settings.min_area, rnd)
        for polygon in polygons:
            template = _to_template(next_id, face, polygon, depths[face], rnd, settings.layered)
            next_id += 1
            verdict = validate_shard_template(template)
            if not verdict.valid:
                LOGGER.warning("Skipping template %d on face %s: %s", template.id, face.value, verdict.reason)
                continue
            templates.append(template)
    LOGGER.debug("Generated %d shard templates", len(templates))
    return templates
