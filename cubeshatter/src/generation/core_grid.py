"""Jittered interior lattice and the hexahedral volume cells read from it."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ...cube_space import CORE_HALF
from ...vector import Vector3, bounds_of, mean_point
from .config import RandomSource

DEFAULT_DIVISIONS = 5
DEFAULT_JITTER_AMPLITUDE = 0.18
MAX_JITTER_AMPLITUDE = 0.49
CELL_BOUNDS_TOLERANCE = 1e-3


# //1.- (divisions + 1)^3 lattice nodes spanning the core cube.
@dataclass(frozen=True)
class CoreJitterGrid:
    nodes: Tuple[Vector3, ...]
    cell_size: float
    divisions: int

    def node_index(self, ix: int, iy: int, iz: int) -> int:
        n = self.divisions + 1
        return (ix * n + iy) * n + iz


# //2.- Eight jittered corners plus centroid and bounding extent of one lattice cell.
@dataclass(frozen=True)
class VolumeCell:
    id: int
    corners: Tuple[Vector3, ...]
    center: Vector3
    size_hint: Vector3


# //3.- Result of the lattice bounds check.
@dataclass(frozen=True)
class VolumeCellValidation:
    ok: bool
    out_of_bounds: int


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# //4.- Build the lattice with each node displaced by at most 49% of a cell.
def build_core_jitter_grid(
    rnd: RandomSource,
    *,
    divisions: int = DEFAULT_DIVISIONS,
    jitter_amplitude: float = DEFAULT_JITTER_AMPLITUDE,
    core_half: float = CORE_HALF,
) -> CoreJitterGrid:
    if core_half <= 0.0:
        raise ValueError(f"Core half extent must be positive, got {core_half}")
    divisions = max(2, int(math.floor(divisions)))
    cell_size = 2.0 * core_half / divisions
    amplitude = _clamp(jitter_amplitude, 0.0, MAX_JITTER_AMPLITUDE) * cell_size

    nodes: List[Vector3] = []
    for ix in range(divisions + 1):
        for iy in range(divisions + 1):
            for iz in range(divisions + 1):
                jx = (rnd() * 2.0 - 1.0) * amplitude
                jy = (rnd() * 2.0 - 1.0) * amplitude
                jz = (rnd() * 2.0 - 1.0) * amplitude
                nodes.append(
                    Vector3(
                        -core_half + ix * cell_size + jx,
                        -core_half + iy * cell_size + jy,
                        -core_half + iz * cell_size + jz,
                    )
                )
    return CoreJitterGrid(nodes=tuple(nodes), cell_size=cell_size, divisions=divisions)


# Corner order: bottom ring (z0) 000, 100, 110, 010 then top ring (z1) 001, 101, 111, 011.
_CORNER_OFFSETS = (
    (0, 0, 0),
    (1, 0, 0),
    (1, 1, 0),
    (0, 1, 0),
    (0, 0, 1),
    (1, 0, 1),
    (1, 1, 1),
    (0, 1, 1),
)


# //5.- Read one hexahedron per lattice cell, ids assigned in x, y, z order.
def build_volume_cells(grid: CoreJitterGrid) -> List[VolumeCell]:
    cells: List[VolumeCell] = []
    for ix in range(grid.divisions):
        for iy in range(grid.divisions):
            for iz in range(grid.divisions):
                corners = tuple(
                    grid.nodes[grid.node_index(ix + dx, iy + dy, iz + dz)] for dx, dy, dz in _CORNER_OFFSETS
                )
                low, high = bounds_of(corners)
                cells.append(
                    VolumeCell(
                        id=len(cells),
                        corners=corners,
                        center=mean_point(corners),
                        size_hint=high - low,
                    )
                )
    return cells


# //6.- Count corners that escaped the core bounds by more than the tolerance.
def validate_volume_cells(
    cells: Sequence[VolumeCell],
    core_half: float = CORE_HALF,
    tolerance: float = CELL_BOUNDS_TOLERANCE,
) -> VolumeCellValidation:
    limit = core_half + tolerance
    out_of_bounds = 0
    for cell in cells:
        for corner in cell.corners:
            if abs(corner.x) > limit or abs(corner.y) > limit or abs(corner.z) > limit:
                out_of_bounds += 1
    return VolumeCellValidation(ok=out_of_bounds == 0, out_of_bounds=out_of_bounds)

