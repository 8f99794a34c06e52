"""Single-depth shell wedges cut from a partitioned face."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from ...cube_space import SHELL_DEPTH, Face
from .config import RandomSource
from .shell_partition import FacePolygon


# //1.- Closed depth interval measured inward from the face plane.
@dataclass(frozen=True)
class DepthRange:
    min: float
    max: float


# //2.- Shell wedge: one face polygon extruded to a single inner depth.
@dataclass(frozen=True)
class ShellShardTemplate:
    id: int
    face: Face
    polygon: FacePolygon
    depth_inner: float


def default_depth_range(shell_depth: float = SHELL_DEPTH) -> DepthRange:
    return DepthRange(min=shell_depth * 0.5, max=shell_depth)


# //3.- Sample uniformly inside a depth interval, collapsing inverted ranges to their minimum.
def random_depth(minimum: float, maximum: float, rnd: RandomSource) -> float:
    if maximum < minimum:
        return minimum
    return minimum + (maximum - minimum) * rnd()


# //4.- Clamp a caller supplied range into a shell slab of the given thickness.
def sanitize_depth_range(depth_range: Optional[DepthRange], shell_depth: float = SHELL_DEPTH) -> DepthRange:
    if depth_range is None:
        return default_depth_range(shell_depth)
    minimum = min(shell_depth, max(0.0, depth_range.min))
    maximum = min(shell_depth, max(depth_range.max, minimum))
    return DepthRange(min=minimum, max=maximum)


# //5.- Assign one inner depth per polygon, ids following polygon order.
def build_shell_shard_templates(
    polygons: Sequence[FacePolygon],
    rnd: RandomSource,
    *,
    depth_range: Optional[DepthRange] = None,
    start_id: int = 0,
    shell_depth: float = SHELL_DEPTH,
) -> List[ShellShardTemplate]:
    bounds = sanitize_depth_range(depth_range, shell_depth)
    return [
        ShellShardTemplate(
            id=start_id + index,
            face=polygon.face,
            polygon=polygon,
            depth_inner=random_depth(bounds.min, bounds.max, rnd),
        )
        for index, polygon in enumerate(polygons)
    ]
