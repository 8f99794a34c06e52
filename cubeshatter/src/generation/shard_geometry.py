"""Extrude shard templates into closed triangle meshes in unit-cube space."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

from ...cube_space import CUBE_HALF, Face, face_basis, face_to_cube
from ...vector import Vector3
from .config import RandomSource
from .face_uv import FaceUvRect, face_uv_rect, uv_for_local
from .polygon2d import Point2, align_vertex_count, ensure_ccw
from .shard_templates import LayeredTemplate, ShardLayer, ShardTemplate, SingleDepthTemplate
from .shell_templates import random_depth


DEFAULT_SIDE_NOISE_RADIUS = 0.045
MIN_INSET = 0.01
MAX_DEPTH = 2.0 * CUBE_HALF - MIN_INSET


# //1.- Mesh buffers plus the ring bookkeeping needed by downstream consumers.
@dataclass(frozen=True)
class ShardGeometry:
    template_id: int
    face: Face
    positions: Tuple[Vector3, ...]
    indices: Tuple[int, ...]
    normals: Tuple[Vector3, ...]
    uvs: Tuple[Point2, ...]
    front_vertex_count: int
    back_vertex_offset: int
    layer_depths: Tuple[float, ...]
    layer_offsets: Tuple[int, ...]

    @property
    def layer_count(self) -> int:
        return len(self.layer_offsets)

    @property
    def depth_back(self) -> float:
        return self.layer_depths[-1]


# //2.- Triangulate caps as fans and stitch consecutive rings with outward-facing quads.
def stitch_rings(ring_offsets: Sequence[int], ring_size: int) -> List[int]:
    indices: List[int] = []
    front = ring_offsets[0]
    back = ring_offsets[-1]
    for i in range(1, ring_size - 1):
        indices.extend((front, front + i, front + i + 1))
    for i in range(1, ring_size - 1):
        indices.extend((back, back + i + 1, back + i))
    for ring in range(len(ring_offsets) - 1):
        offset_a = ring_offsets[ring]
        offset_b = ring_offsets[ring + 1]
        for i in range(ring_size):
            following = (i + 1) % ring_size
            a = offset_a + i
            b = offset_a + following
            c = offset_b + following
            d = offset_b + i
            indices.extend((a, c, b))
            indices.extend((a, d, c))
    return indices


# //3.- Vertex normals averaged from unit triangle normals, then locked on the two caps.
def compute_locked_normals(
    positions: Sequence[Vector3],
    indices: Sequence[int],
    face: Face,
    front_count: int,
    back_offset: int,
) -> List[Vector3]:
    sums = [Vector3.zero() for _ in positions]
    for tri in range(0, len(indices), 3):
        ia, ib, ic = indices[tri], indices[tri + 1], indices[tri + 2]
        normal = (positions[ib] - positions[ia]).cross(positions[ic] - positions[ia])
        length = normal.length()
        if length < 1e-12:
            continue
        unit = normal / length
        sums[ia] = sums[ia] + unit
        sums[ib] = sums[ib] + unit
        sums[ic] = sums[ic] + unit
    outward = face_basis(face).normal
    normals = [total.normalized() if total.length() > 1e-12 else outward for total in sums]
    for i in range(front_count):
        normals[i] = outward
    for i in range(back_offset, back_offset + front_count):
        normals[i] = -outward
    return normals


# //4.- Jitter back-ring vertices while keeping them under the face plane and inside the face square.
def jitter_back_ring(
    ring: Sequence[Tuple[float, float, float]],
    radius: float,
    rnd: RandomSource,
    max_depth: float = MAX_DEPTH,
) -> List[Tuple[float, float, float]]:
    if radius <= 0.0:
        return list(ring)
    limit = CUBE_HALF - MIN_INSET
    jittered: List[Tuple[float, float, float]] = []
    for u, v, depth in ring:
        u += (rnd() * 2.0 - 1.0) * radius
        v += (rnd() * 2.0 - 1.0) * radius
        depth -= (rnd() * 2.0 - 1.0) * radius
        depth = min(max_depth, max(MIN_INSET, depth))
        jittered.append((max(-limit, min(limit, u)), max(-limit, min(limit, v)), depth))
    return jittered


def _aligned_layers(template: LayeredTemplate) -> List[ShardLayer]:
    ordered = sorted(template.layers, key=lambda layer: layer.depth)
    target = max(len(layer.polygon) for layer in ordered)
    aligned: List[ShardLayer] = []
    for index, layer in enumerate(ordered):
        depth = 0.0 if index == 0 else layer.depth
        aligned.append(ShardLayer(depth=depth, polygon=tuple(align_vertex_count(ensure_ccw(layer.polygon), target))))
    return aligned


def _layered_rings(template: LayeredTemplate) -> Tuple[List[List[Tuple[float, float, float]]], List[float]]:
    layers = _aligned_layers(template)
    rings = [[(x, y, layer.depth) for x, y in layer.polygon] for layer in layers]
    return rings, [layer.depth for layer in layers]


def _prism_rings(
    template: SingleDepthTemplate,
    rnd: RandomSource,
    side_noise_radius: float,
) -> Tuple[List[List[Tuple[float, float, float]]], List[float]]:
    outline = ensure_ccw(template.polygon)
    back_depths = [random_depth(template.depth_min, template.depth_max, rnd) for _ in outline]
    front = [(x, y, 0.0) for x, y in outline]
    back = [(x, y, depth) for (x, y), depth in zip(outline, back_depths)]
    back = jitter_back_ring(back, side_noise_radius, rnd)
    return [front, back], [0.0, max(back_depths)]


# //5.- Build a closed mesh for either template kind; only the front ring is texture mapped.
def build_shard_geometry(
    template: ShardTemplate,
    rnd: RandomSource,
    *,
    face_uv_rects: Optional[Mapping[Face, FaceUvRect]] = None,
    side_noise_radius: float = DEFAULT_SIDE_NOISE_RADIUS,
) -> ShardGeometry:
    if isinstance(template, LayeredTemplate) and len(template.layers) > 1:
        rings, depths = _layered_rings(template)
    elif isinstance(template, (SingleDepthTemplate, LayeredTemplate)):
        single = SingleDepthTemplate(
            id=template.id,
            face=template.face,
            polygon=template.polygon,
            depth_min=template.depth_min,
            depth_max=template.depth_max,
        )
        rings, depths = _prism_rings(single, rnd, side_noise_radius)
    else:
        raise TypeError(f"Unsupported shard template type: {type(template).__name__}")

    rect = face_uv_rect(template.face, face_uv_rects)
    ring_size = len(rings[0])
    positions: List[Vector3] = []
    uvs: List[Point2] = []
    offsets: List[int] = []
    for index, ring in enumerate(rings):
        offsets.append(len(positions))
        for u, v, depth in ring:
            positions.append(face_to_cube(template.face, u, v, depth))
            uvs.append(uv_for_local(rect, (u, v)) if index == 0 else (0.0, 0.0))

    indices = stitch_rings(offsets, ring_size)
    normals = compute_locked_normals(positions, indices, template.face, ring_size, offsets[-1])
    return ShardGeometry(
        template_id=template.id,
        face=template.face,
        positions=tuple(positions),
        indices=tuple(indices),
        normals=tuple(normals),
        uvs=tuple(uvs),
        front_vertex_count=ring_size,
        back_vertex_offset=offsets[-1],
        layer_depths=tuple(depths),
        layer_offsets=tuple(offsets),
    )
