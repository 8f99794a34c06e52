"""Closed prism meshes for single-depth shell wedges."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from ...cube_space import SHELL_DEPTH, Face, face_to_cube
from ...vector import Vector3
from .config import RandomSource
from .face_uv import FaceUvRect, face_uv_rect, uv_for_local
from .polygon2d import Point2, ensure_ccw
from .shard_geometry import compute_locked_normals, jitter_back_ring, stitch_rings
from .shell_templates import ShellShardTemplate, random_depth

DEFAULT_BACK_NOISE_RADIUS = 0.025


# //1.- Two-ring shell mesh; both rings carry face UVs so the wedge sides show the painted skin.
@dataclass(frozen=True)
class ShellShardGeometry:
    template_id: int
    face: Face
    positions: Tuple[Vector3, ...]
    indices: Tuple[int, ...]
    normals: Tuple[Vector3, ...]
    uvs: Tuple[Point2, ...]
    depth_inner: float
    depth_inner_per_vertex: Tuple[float, ...]

    @property
    def front_vertex_count(self) -> int:
        return len(self.positions) // 2


# //2.- Extrude a shell template with per-vertex depth jitter clamped inside the shell slab.
def build_shell_shard_geometry(
    template: ShellShardTemplate,
    rnd: RandomSource,
    *,
    face_uv_rects: Optional[Mapping[Face, FaceUvRect]] = None,
    uv_rect_override: Optional[FaceUvRect] = None,
    back_noise_radius: float = DEFAULT_BACK_NOISE_RADIUS,
    depth_jitter: Optional[float] = None,
    shell_depth: float = SHELL_DEPTH,
) -> ShellShardGeometry:
    rect = uv_rect_override or face_uv_rect(template.face, face_uv_rects)
    jitter = template.depth_inner * 0.2 if depth_jitter is None else depth_jitter
    depth_min = max(shell_depth * 0.5, template.depth_inner - jitter)
    depth_max = min(shell_depth, template.depth_inner + jitter)

    outline = ensure_ccw(template.polygon.vertices)
    depths = [random_depth(depth_min, depth_max, rnd) for _ in outline]
    front = [(x, y, 0.0) for x, y in outline]
    back = jitter_back_ring(
        [(x, y, depth) for (x, y), depth in zip(outline, depths)],
        back_noise_radius,
        rnd,
        max_depth=shell_depth,
    )

    positions: List[Vector3] = [face_to_cube(template.face, u, v, d) for u, v, d in front + back]
    uvs: List[Point2] = [uv_for_local(rect, (u, v)) for u, v, _ in front + back]
    count = len(outline)
    indices = stitch_rings((0, count), count)
    normals = compute_locked_normals(positions, indices, template.face, count, count)
    return ShellShardGeometry(
        template_id=template.id,
        face=template.face,
        positions=tuple(positions),
        indices=tuple(indices),
        normals=tuple(normals),
        uvs=tuple(uvs),
        depth_inner=sum(depths) / max(1, len(depths)),
        depth_inner_per_vertex=tuple(depths),
    )
