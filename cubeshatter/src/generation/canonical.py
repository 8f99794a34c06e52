"""Lower shell geometry and core clusters into renderer-neutral shard buffers."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from ...cube_space import FACE_ORDER, Face, cube_to_face, face_basis
from ...vector import Vector3, bounds_of
from .config import GenerationSeeds, load_generation_config
from .core_bindings import CoreShardBinding, assert_core_bindings, build_core_shard_bindings
from .core_clusters import CoreShardCluster, build_core_shard_clusters, cluster_cells, ensure_clusters_cover_cells
from .core_grid import VolumeCell, build_core_jitter_grid, build_volume_cells, validate_volume_cells
from .polygon2d import polygon_area
from .settings import DestructionSettings, load_destruction_settings
from .shell_geometry import ShellShardGeometry, build_shell_shard_geometry
from .shell_partition import partition_face
from .shell_templates import ShellShardTemplate, build_shell_shard_templates

LOGGER = logging.getLogger(__name__)

UINT16_VERTEX_LIMIT = 65535

# Two outward-wound triangles per hexahedron side, corners ordered as in core_grid.
BOX_TRIANGLES: Tuple[Tuple[int, int, int], ...] = (
    (0, 2, 1), (0, 3, 2),  # -z
    (4, 5, 6), (4, 6, 7),  # +z
    (7, 6, 2), (7, 2, 3),  # +y
    (0, 1, 5), (0, 5, 4),  # -y
    (1, 2, 6), (1, 6, 5),  # +x
    (0, 7, 3), (0, 4, 7),  # -x
)


class MaterialKind(str, Enum):
    OUTER_SKIN = "outer-skin"
    INNER_ONLY = "inner-only"


# //1.- Provenance of a shell shard.
@dataclass(frozen=True)
class ShellShardSource:
    template_id: int
    face: Face


# //2.- Provenance of a core shard.
@dataclass(frozen=True)
class CoreShardSource:
    cluster_id: int
    cell_ids: Tuple[int, ...]


ShardSource = Union[ShellShardSource, CoreShardSource]


# //3.- Flat float32 buffers, an index buffer sized to the vertex count, a material tag and a volume.
@dataclass(frozen=True, eq=False)
class CanonicalShard:
    id: int
    positions: np.ndarray
    normals: np.ndarray
    uvs: np.ndarray
    indices: np.ndarray
    material_kind: MaterialKind
    approximate_volume: float
    source: ShardSource

    @property
    def vertex_count(self) -> int:
        return len(self.positions) // 3

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3


# //4.- Complete build output: shards plus the intermediate records that produced them.
@dataclass(frozen=True)
class CanonicalShardSet:
    shards: Tuple[CanonicalShard, ...]
    shell_templates: Tuple[ShellShardTemplate, ...]
    cells: Tuple[VolumeCell, ...]
    clusters: Tuple[CoreShardCluster, ...]
    bindings: Tuple[CoreShardBinding, ...]

    def shard(self, shard_id: int) -> CanonicalShard:
        for shard in self.shards:
            if shard.id == shard_id:
                return shard
        raise KeyError(f"Unknown canonical shard id {shard_id}")


# //5.- 16-bit indices until the vertex count no longer fits.
def index_dtype(vertex_count: int) -> type:
    return np.uint32 if vertex_count > UINT16_VERTEX_LIMIT else np.uint16


def pack_buffers(
    positions: Sequence[Vector3],
    normals: Sequence[Vector3],
    uvs: Sequence[Tuple[float, float]],
    indices: Sequence[int],
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    packed_positions = np.array([p.as_tuple() for p in positions], dtype=np.float32).reshape(-1)
    packed_normals = np.array([n.as_tuple() for n in normals], dtype=np.float32).reshape(-1)
    packed_uvs = np.array(uvs, dtype=np.float32).reshape(-1)
    packed_indices = np.array(indices, dtype=index_dtype(len(positions)))
    return packed_positions, packed_normals, packed_uvs, packed_indices


# //6.- Projected front-cap area times the mean front-to-back depth along the face normal.
def estimate_shell_volume(geometry: ShellShardGeometry) -> float:
    count = geometry.front_vertex_count
    front = geometry.positions[:count]
    back = geometry.positions[count:]
    outline = [cube_to_face(geometry.face, point)[:2] for point in front]
    normal = face_basis(geometry.face).normal
    depth = sum(abs((b - f).dot(normal)) for f, b in zip(front, back)) / max(1, len(back))
    return polygon_area(outline) * depth


# //7.- Axis-aligned bounding volume of one cell.
def cell_volume(cell: VolumeCell) -> float:
    low, high = bounds_of(cell.corners)
    size = high - low
    return abs(size.x * size.y * size.z)


def box_indices(offset: int) -> List[int]:
    return [offset + corner for triangle in BOX_TRIANGLES for corner in triangle]


# //8.- Area-weighted vertex normals: unnormalized face normals summed per vertex then normalized.
def accumulate_vertex_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    points = positions.reshape(-1, 3).astype(np.float64)
    triangles = indices.reshape(-1, 3).astype(np.int64)
    a = points[triangles[:, 0]]
    b = points[triangles[:, 1]]
    c = points[triangles[:, 2]]
    face_normals = np.cross(b - a, c - a)
    sums = np.zeros_like(points)
    for column in range(3):
        np.add.at(sums, triangles[:, column], face_normals)
    lengths = np.linalg.norm(sums, axis=1, keepdims=True)
    safe = np.where(lengths > 1e-12, lengths, 1.0)
    return (sums / safe).astype(np.float32)


# //9.- Shell geometries keep their own buffers and become outer-skin shards.
def build_canonical_shell_shards(geometries: Sequence[ShellShardGeometry], start_id: int = 0) -> List[CanonicalShard]:
    shards: List[CanonicalShard] = []
    for offset, geometry in enumerate(geometries):
        positions, normals, uvs, indices = pack_buffers(
            geometry.positions, geometry.normals, geometry.uvs, geometry.indices
        )
        shards.append(
            CanonicalShard(
                id=start_id + offset,
                positions=positions,
                normals=normals,
                uvs=uvs,
                indices=indices,
                material_kind=MaterialKind.OUTER_SKIN,
                approximate_volume=estimate_shell_volume(geometry),
                source=ShellShardSource(template_id=geometry.template_id, face=geometry.face),
            )
        )
    return shards


# //10.- Core clusters become one closed hexahedron per cell with zero UVs.
def build_canonical_core_shards(
    clusters: Sequence[CoreShardCluster],
    cells: Sequence[VolumeCell],
    start_id: int = 0,
) -> List[CanonicalShard]:
    shards: List[CanonicalShard] = []
    for offset, cluster in enumerate(clusters):
        members = cluster_cells(cluster, cells)
        corners = [corner for cell in members for corner in cell.corners]
        index_list = [index for slot in range(len(members)) for index in box_indices(slot * 8)]
        positions = np.array([corner.as_tuple() for corner in corners], dtype=np.float32).reshape(-1)
        indices = np.array(index_list, dtype=index_dtype(len(corners)))
        shards.append(
            CanonicalShard(
                id=start_id + offset,
                positions=positions,
                normals=accumulate_vertex_normals(positions, indices).reshape(-1),
                uvs=np.zeros(len(corners) * 2, dtype=np.float32),
                indices=indices,
                material_kind=MaterialKind.INNER_ONLY,
                approximate_volume=sum(cell_volume(cell) for cell in members),
                source=CoreShardSource(cluster_id=cluster.id, cell_ids=cluster.cell_ids),
            )
        )
    return shards


# //11.- Shell shards first, then core shards, with sequential ids from zero.
def assemble_canonical_shards(
    shell_geometries: Sequence[ShellShardGeometry],
    clusters: Sequence[CoreShardCluster],
    cells: Sequence[VolumeCell],
) -> List[CanonicalShard]:
    shell = build_canonical_shell_shards(shell_geometries, start_id=0)
    core = build_canonical_core_shards(clusters, cells, start_id=len(shell))
    return shell + core


# //12.- Run the full build pipeline from seeds and settings.
def build_canonical_shard_set(
    seeds: Optional[GenerationSeeds] = None,
    settings: Optional[DestructionSettings] = None,
) -> CanonicalShardSet:
    active_seeds = seeds or load_generation_config()
    active = settings or load_destruction_settings()
    generators = active_seeds.create_generators()
    shell_rnd = generators["shell"].random
    core_rnd = generators["core"].random
    core_half = active.shell.core_half

    templates: List[ShellShardTemplate] = []
    for face in FACE_ORDER:
        polygons = partition_face(face, shell_rnd, seed_count=active.shell.seed_count, inset=active.shell.inset)
        templates.extend(
            build_shell_shard_templates(
                polygons,
                shell_rnd,
                depth_range=active.shell.depth_range,
                start_id=len(templates),
                shell_depth=active.shell.shell_depth,
            )
        )
    geometries = [
        build_shell_shard_geometry(
            template,
            shell_rnd,
            back_noise_radius=active.shell.back_noise_radius,
            shell_depth=active.shell.shell_depth,
        )
        for template in templates
    ]

    grid = build_core_jitter_grid(
        core_rnd,
        divisions=active.core.divisions,
        jitter_amplitude=active.core.jitter_amplitude,
        core_half=core_half,
    )
    cells = build_volume_cells(grid)
    cell_check = validate_volume_cells(cells, core_half=core_half)
    if not cell_check.ok:
        LOGGER.debug("%d lattice corners sit outside the core bounds", cell_check.out_of_bounds)
    clusters = build_core_shard_clusters(
        cells,
        core_rnd,
        min_size=active.core.min_cluster_size,
        max_size=active.core.max_cluster_size,
    )
    ensure_clusters_cover_cells(cells, clusters)
    bindings = build_core_shard_bindings(clusters, cells, core_half=core_half)
    assert_core_bindings(bindings)

    shards = assemble_canonical_shards(geometries, clusters, cells)
    LOGGER.info(
        "Built %d canonical shards (%d shell, %d core) from %d cells",
        len(shards),
        len(geometries),
        len(clusters),
        len(cells),
    )
    return CanonicalShardSet(
        shards=tuple(shards),
        shell_templates=tuple(templates),
        cells=tuple(cells),
        clusters=tuple(clusters),
        bindings=tuple(bindings),
    )
