"""Turn pre-generated shard geometry into launched fragments."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ...cube_space import Face
from ..generation.canonical import CanonicalShard, MaterialKind
from ..generation.config import RandomSource
from ..generation.core_clusters import shuffled
from ..generation.face_uv import FaceUvRect
from ..generation.polygon2d import polygon_area
from ..generation.shard_coverage import ShardTemplateSet, compute_shard_local_center, is_shard_surface_biased
from ..generation.shard_geometry import ShardGeometry, build_shard_geometry
from ..generation.shard_templates import random_int
from . import vector
from .fragments import CubeSize, CubeVisual, Fragment, FragmentKind, FragmentMaterial, create_fragment
from .presets import PHYSICS_DEFAULTS, DestructionPreset
from .spawning import compose_initial_velocity, generate_angular_velocity, random_in_range
from .vector import IDENTITY, Vector3

LOGGER = logging.getLogger(__name__)

REFERENCE_SHARD_VOLUME = 0.3
CENTER_BOOST_RADIUS = 0.9
CENTER_BOOST = 0.5
DEFAULT_JITTER_ANGLE_RAD = 0.35
DEFAULT_JITTER_STRENGTH = 0.15


# //1.- Reusable mesh for one template plus the numbers the spawner scales by.
@dataclass(frozen=True)
class ShardGeometryResource:
    template_id: int
    geometry: Optional[ShardGeometry]
    local_center: Vector3
    local_volume: float
    material: FragmentMaterial


# //2.- Multipliers derived from shard size and distance from the cube center.
@dataclass(frozen=True)
class PhysicsScales:
    normalized_volume: float
    velocity: float
    lifetime: float


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# //3.- Bigger shards fly slower and live longer; shards near the center get a launch boost.
def compute_physics_scales(local_center: Vector3, local_volume: float) -> PhysicsScales:
    normalized = _clamp(local_volume / REFERENCE_SHARD_VOLUME, 0.2, 2.5)
    mass_velocity = _clamp(1.0 / (0.7 + 0.3 * normalized), 0.55, 1.2)
    lifetime = _clamp(0.9 + 0.3 * normalized, 0.9, 1.6)
    radial_boost = 1.0 + (1.0 - _clamp(vector.length(local_center) / CENTER_BOOST_RADIUS, 0.0, 1.0)) * CENTER_BOOST
    velocity = _clamp(mass_velocity * radial_boost, 0.6, 1.6)
    return PhysicsScales(normalized_volume=normalized, velocity=velocity, lifetime=lifetime)


# //4.- Mesh every template once so explosions only instance them.
def build_shard_geometry_library(
    template_set: ShardTemplateSet,
    rnd: RandomSource,
    *,
    face_uv_rects: Optional[Mapping[Face, FaceUvRect]] = None,
) -> Tuple[ShardGeometryResource, ...]:
    library: List[ShardGeometryResource] = []
    for template in template_set.templates:
        geometry = build_shard_geometry(template, rnd, face_uv_rects=face_uv_rects)
        surface = is_shard_surface_biased(template)
        library.append(
            ShardGeometryResource(
                template_id=template.id,
                geometry=geometry,
                local_center=compute_shard_local_center(template).as_tuple(),
                local_volume=polygon_area(template.polygon) * (template.depth_max - template.depth_min),
                material=FragmentMaterial.FACE if surface else FragmentMaterial.GOLD,
            )
        )
    LOGGER.debug("Shard geometry library built with %d entries", len(library))
    return tuple(library)


# //5.- Canonical shards carry their own volume; the center is the vertex mean.
def canonical_shard_resource(shard: CanonicalShard) -> ShardGeometryResource:
    positions = np.asarray(shard.positions, dtype=np.float64).reshape(-1, 3)
    center = positions.mean(axis=0)
    material = FragmentMaterial.FACE if shard.material_kind is MaterialKind.OUTER_SKIN else FragmentMaterial.INNER
    return ShardGeometryResource(
        template_id=shard.id,
        geometry=None,
        local_center=(float(center[0]), float(center[1]), float(center[2])),
        local_volume=float(shard.approximate_volume),
        material=material,
    )


_KIND_BY_MATERIAL = {
    FragmentMaterial.FACE: FragmentKind.FACE_SHARD,
    FragmentMaterial.GOLD: FragmentKind.EDGE_SHARD,
    FragmentMaterial.INNER: FragmentKind.CORE_SHARD,
    FragmentMaterial.DUST: FragmentKind.DUST,
}


# //6.- Place one shard at its slot inside the cube and launch it outward from the tower.
def make_fragment_from_template(
    resource: ShardGeometryResource,
    cube: CubeVisual,
    size: CubeSize,
    preset: DestructionPreset,
    rnd: RandomSource,
    *,
    instance_id: int,
    tower_center: Vector3 = vector.ZERO,
    jitter_angle_rad: float = DEFAULT_JITTER_ANGLE_RAD,
    jitter_strength: float = DEFAULT_JITTER_STRENGTH,
) -> Fragment:
    scales = compute_physics_scales(resource.local_center, resource.local_volume)
    cx, cy, cz = resource.local_center
    position = vector.add(cube.world_pos, (cx * size.sx, cy * size.sy, cz * size.sz))
    radial = random_in_range(preset.radial_speed.min, preset.radial_speed.max, rnd) * scales.velocity
    tangential = random_in_range(preset.tangential_speed.min, preset.tangential_speed.max, rnd) * scales.velocity
    vertical = random_in_range(preset.vertical_speed.min, preset.vertical_speed.max, rnd) * scales.velocity
    velocity = compose_initial_velocity(
        position,
        tower_center,
        radial_speed=radial,
        tangential_speed=tangential,
        up_speed=vertical,
        jitter_angle_rad=jitter_angle_rad,
        jitter_strength=jitter_strength,
        rnd=rnd,
    )
    lifetime = random_in_range(preset.lifetime_ms.min, preset.lifetime_ms.max, rnd) * scales.lifetime
    return create_fragment(
        kind=_KIND_BY_MATERIAL[resource.material],
        position=position,
        velocity=velocity,
        rotation=IDENTITY,
        scale=(size.sx, size.sy, size.sz),
        angular_velocity=generate_angular_velocity(resource.material, rnd, mass=scales.normalized_volume),
        lifetime_ms=float(math.floor(lifetime)),
        instance_id=instance_id,
        material=resource.material,
        template_id=resource.template_id,
        linear_drag=PHYSICS_DEFAULTS.linear_drag if preset.linear_drag is None else preset.linear_drag,
        angular_drag=PHYSICS_DEFAULTS.angular_drag if preset.angular_drag is None else preset.angular_drag,
    )


# //7.- Pick a preset-sized random subset of the library and launch it.
def spawn_fragments_from_library(
    cube: CubeVisual,
    size: CubeSize,
    library: Sequence[ShardGeometryResource],
    preset: DestructionPreset,
    rnd: RandomSource,
    *,
    tower_center: Vector3 = vector.ZERO,
) -> List[Fragment]:
    if not library:
        raise ValueError("Shard library is empty")
    low = int(preset.fragment_count.min)
    high = int(preset.fragment_count.max)
    count = min(len(library), max(1, random_int(low, high, rnd)))
    order = shuffled(list(range(len(library))), rnd)[:count]
    return [
        make_fragment_from_template(
            library[index], cube, size, preset, rnd, instance_id=instance_id, tower_center=tower_center
        )
        for instance_id, index in enumerate(order)
    ]


# //8.- Launch every canonical shard so the whole cube volume flies apart.
def spawn_fragments_from_canonical_shards(
    cube: CubeVisual,
    size: CubeSize,
    shards: Sequence[CanonicalShard],
    preset: DestructionPreset,
    rnd: RandomSource,
    *,
    tower_center: Vector3 = vector.ZERO,
) -> List[Fragment]:
    return [
        make_fragment_from_template(
            canonical_shard_resource(shard), cube, size, preset, rnd, instance_id=instance_id, tower_center=tower_center
        )
        for instance_id, shard in enumerate(shards)
    ]
