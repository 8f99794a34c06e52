"""Bind core clusters to weighted footprints on the six cube faces."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ...cube_space import CORE_HALF, CUBE_HALF, FACE_ORDER, Face, face_basis
from ...vector import Vector3, bounds_of
from .core_clusters import CoreShardCluster, cluster_cells
from .core_grid import VolumeCell
from .face_uv import FaceUvRect

_WEIGHT_TOLERANCE = 1e-3
_RECT_TOLERANCE = 1e-6


class CoreShardLayer(str, Enum):
    OUTER = "outer"
    INNER = "inner"


# //1.- Weighted projection of a cluster onto one face.
@dataclass(frozen=True)
class FaceFootprint:
    face: Face
    weight: float
    anchor: Vector3
    rect: FaceUvRect


# //2.- Per-cluster face footprints sorted by weight, heaviest first.
@dataclass(frozen=True)
class CoreShardBinding:
    cluster_id: int
    primary_face: Face
    layer: CoreShardLayer
    faces: Tuple[FaceFootprint, ...]

    def footprint(self, face: Face) -> Optional[FaceFootprint]:
        for item in self.faces:
            if item.face == face:
                return item
        return None


# //3.- Verdict of the binding sanity check.
@dataclass(frozen=True)
class BindingValidation:
    ok: bool
    reason: Optional[str] = None


# //4.- Gap between the cluster bounds and a face of the core cube, zero when touching.
def face_distance(low: Vector3, high: Vector3, face: Face, core_half: float = CORE_HALF) -> float:
    normal = face_basis(face).normal
    extent = max(high.dot(normal), low.dot(normal))
    return max(0.0, core_half - extent)


# //5.- Bounds center pushed onto the face plane of the core cube.
def anchor_on_face(low: Vector3, high: Vector3, face: Face, core_half: float = CORE_HALF) -> Vector3:
    center = (low + high) * 0.5
    normal = face_basis(face).normal
    return center - normal * center.dot(normal) + normal * core_half


def _box_corners(low: Vector3, high: Vector3) -> List[Vector3]:
    return [
        Vector3(x, y, z)
        for x in (low.x, high.x)
        for y in (low.y, high.y)
        for z in (low.z, high.z)
    ]


# //6.- Project the clamped bounds into the face's unit square along its (u, v) axes.
def project_bounds_to_face(low: Vector3, high: Vector3, face: Face, core_half: float = CORE_HALF) -> FaceUvRect:
    clamped_low = Vector3(*(max(-core_half, min(core_half, value)) for value in low.as_tuple()))
    clamped_high = Vector3(*(max(-core_half, min(core_half, value)) for value in high.as_tuple()))
    basis = face_basis(face)
    corners = _box_corners(clamped_low, clamped_high)
    us = [corner.dot(basis.u) for corner in corners]
    vs = [corner.dot(basis.v) for corner in corners]
    span = 2.0 * core_half
    return FaceUvRect(
        u0=(min(us) + core_half) / span,
        v0=(min(vs) + core_half) / span,
        u1=(max(us) + core_half) / span,
        v1=(max(vs) + core_half) / span,
    )


def _estimate_cell_size(low: Vector3, high: Vector3) -> float:
    extent = high - low
    return max(1e-3, min(extent.x, extent.y, extent.z))


def _classify_layer(low: Vector3, high: Vector3, core_half: float, size_hint: float) -> CoreShardLayer:
    nearest = min(
        core_half - high.z,
        low.z + core_half,
        core_half - high.x,
        low.x + core_half,
        core_half - high.y,
        low.y + core_half,
    )
    threshold = max(size_hint * 0.6, (CUBE_HALF - core_half) * 0.35)
    return CoreShardLayer.OUTER if nearest <= threshold else CoreShardLayer.INNER


def _face_footprints(low: Vector3, high: Vector3, core_half: float, size_hint: float) -> List[FaceFootprint]:
    epsilon = max(1e-4, size_hint * 0.1)
    raw = [
        (face, 1.0 / (face_distance(low, high, face, core_half) + epsilon))
        for face in FACE_ORDER
    ]
    total = sum(weight for _, weight in raw)
    footprints = []
    for face, weight in raw:
        normalized = weight / total if total > 0.0 else 1.0 / len(raw)
        footprints.append(
            FaceFootprint(
                face=face,
                weight=normalized,
                anchor=anchor_on_face(low, high, face, core_half),
                rect=project_bounds_to_face(low, high, face, core_half),
            )
        )
    return footprints


# //7.- Bind every cluster; ties on weight keep the canonical face order.
def build_core_shard_bindings(
    clusters: Sequence[CoreShardCluster],
    cells: Sequence[VolumeCell],
    core_half: float = CORE_HALF,
) -> List[CoreShardBinding]:
    if core_half <= 0.0:
        raise ValueError(f"Core half extent must be positive, got {core_half}")
    bindings: List[CoreShardBinding] = []
    for cluster in clusters:
        members = cluster_cells(cluster, cells)
        if not members:
            raise ValueError(f"Cluster {cluster.id} has no cells")
        low, high = bounds_of(corner for cell in members for corner in cell.corners)
        size_hint = _estimate_cell_size(low, high)
        faces = sorted(_face_footprints(low, high, core_half, size_hint), key=lambda item: -item.weight)
        bindings.append(
            CoreShardBinding(
                cluster_id=cluster.id,
                primary_face=faces[0].face,
                layer=_classify_layer(low, high, core_half, size_hint),
                faces=tuple(faces),
            )
        )
    return bindings


# //8.- Weights sum to one, primary face present, rects ordered and inside the unit square.
def validate_core_bindings(bindings: Sequence[CoreShardBinding]) -> BindingValidation:
    for binding in bindings:
        weight_sum = sum(item.weight for item in binding.faces)
        if abs(weight_sum - 1.0) > _WEIGHT_TOLERANCE:
            return BindingValidation(ok=False, reason=f"weights not normalized for cluster {binding.cluster_id}")
        if binding.footprint(binding.primary_face) is None:
            return BindingValidation(ok=False, reason=f"primary face missing for cluster {binding.cluster_id}")
        for item in binding.faces:
            rect = item.rect
            if rect.u0 > rect.u1 + _RECT_TOLERANCE or rect.v0 > rect.v1 + _RECT_TOLERANCE:
                return BindingValidation(ok=False, reason=f"rect ranges invalid for cluster {binding.cluster_id}")
            low_edge = min(rect.u0, rect.v0)
            high_edge = max(rect.u1, rect.v1)
            if low_edge < -_RECT_TOLERANCE or high_edge > 1.0 + _RECT_TOLERANCE:
                return BindingValidation(ok=False, reason=f"rect out of bounds for cluster {binding.cluster_id}")
    return BindingValidation(ok=True)


def assert_core_bindings(bindings: Sequence[CoreShardBinding]) -> None:
    result = validate_core_bindings(bindings)
    if not result.ok:
        raise ValueError(f"Core binding validation failed: {result.reason}")
