"""Initial fragment state: placement, launch velocity, spin, lifetime and patterns."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..generation.config import RandomSource
from . import vector
from .fragments import (
    MATERIAL_BY_KIND,
    CubeSize,
    CubeVisual,
    Fragment,
    FragmentKind,
    FragmentMaterial,
    FragmentUvRect,
    create_fragment,
)
from .presets import PHYSICS_DEFAULTS, DestructionPreset, Range
from .vector import IDENTITY, UP, Quaternion, Vector3

DEFAULT_LIFETIME_MIN_MS = 1000.0
DEFAULT_LIFETIME_MAX_MS = 2000.0
_MIN_MASS = 0.05


# //1.- Per-kind multipliers applied on top of the preset bands.
@dataclass(frozen=True)
class KindInitialConfig:
    radial_speed: Tuple[float, float]
    tangential_speed: Tuple[float, float]
    vertical_speed: Tuple[float, float]
    lifetime: Tuple[float, float]
    scale_jitter: Tuple[float, float]
    rotation_jitter_rad: float
    color_tint: Tuple[float, float]
    linear_drag_multiplier: float
    angular_drag_multiplier: float


FRAGMENT_KIND_INITIAL_CONFIG: Dict[FragmentKind, KindInitialConfig] = {
    FragmentKind.FACE_SHARD: KindInitialConfig(
        radial_speed=(0.9, 1.05),
        tangential_speed=(1.05, 1.2),
        vertical_speed=(0.9, 1.05),
        lifetime=(1.05, 1.2),
        scale_jitter=(0.9, 1.1),
        rotation_jitter_rad=0.18,
        color_tint=(0.95, 1.05),
        linear_drag_multiplier=1.0,
        angular_drag_multiplier=1.0,
    ),
    FragmentKind.EDGE_SHARD: KindInitialConfig(
        radial_speed=(0.8, 0.95),
        tangential_speed=(0.9, 1.05),
        vertical_speed=(0.9, 1.05),
        lifetime=(1.1, 1.25),
        scale_jitter=(0.9, 1.12),
        rotation_jitter_rad=0.22,
        color_tint=(0.94, 1.06),
        linear_drag_multiplier=0.95,
        angular_drag_multiplier=1.0,
    ),
    FragmentKind.CORE_SHARD: KindInitialConfig(
        radial_speed=(0.6, 0.8),
        tangential_speed=(0.8, 0.95),
        vertical_speed=(0.85, 1.0),
        lifetime=(1.2, 1.35),
        scale_jitter=(0.92, 1.18),
        rotation_jitter_rad=0.25,
        color_tint=(0.92, 1.05),
        linear_drag_multiplier=0.75,
        angular_drag_multiplier=0.8,
    ),
    FragmentKind.DUST: KindInitialConfig(
        radial_speed=(1.1, 1.3),
        tangential_speed=(1.1, 1.3),
        vertical_speed=(1.05, 1.2),
        lifetime=(0.75, 0.95),
        scale_jitter=(0.85, 1.15),
        rotation_jitter_rad=0.5,
        color_tint=(0.98, 1.08),
        linear_drag_multiplier=1.35,
        angular_drag_multiplier=1.2,
    ),
}

DEFAULT_ANGULAR_RANGES: Dict[FragmentMaterial, Range] = {
    FragmentMaterial.GOLD: Range(2.0, 6.0),
    FragmentMaterial.FACE: Range(3.0, 8.0),
    FragmentMaterial.INNER: Range(1.5, 5.0),
    FragmentMaterial.DUST: Range(4.0, 10.0),
}


# //2.- Uniform sample in [low, high]; equal bounds skip the draw.
def random_in_range(low: float, high: float, rnd: RandomSource) -> float:
    if high < low:
        raise ValueError(f"Range max must be >= min, got {low}..{high}")
    if high == low:
        return low
    return low + (high - low) * rnd()


# //3.- Uniformly distributed direction on the unit sphere.
def random_unit_vector(rnd: RandomSource) -> Vector3:
    theta = 2.0 * math.pi * rnd()
    z = 2.0 * rnd() - 1.0
    r = math.sqrt(max(0.0, 1.0 - z * z))
    return (r * math.cos(theta), r * math.sin(theta), z)


# //4.- Random vector with length in [range.min, range.max].
def random_vector_within_sphere(speed: Range, rnd: RandomSource) -> Vector3:
    if speed.min < 0:
        raise ValueError("Speed range must be non-negative")
    if speed.max == 0:
        return vector.ZERO
    direction = random_unit_vector(rnd)
    return vector.scale(direction, speed.min + (speed.max - speed.min) * rnd())


# //5.- Spin by material; heavier fragments turn slower (mass^-0.35).
def generate_angular_velocity(
    material: FragmentMaterial,
    rnd: RandomSource,
    *,
    mass: float = 1.0,
    ranges: Optional[Mapping[FragmentMaterial, Range]] = None,
) -> Vector3:
    band = (ranges or {}).get(material, DEFAULT_ANGULAR_RANGES[material])
    factor = 1.0 / math.pow(max(_MIN_MASS, mass), 0.35)
    return random_vector_within_sphere(Range(band.min * factor, band.max * factor), rnd)


# //6.- Lifetime in milliseconds drawn from a positive band.
def generate_lifetime_ms(
    rnd: RandomSource,
    min_ms: float = DEFAULT_LIFETIME_MIN_MS,
    max_ms: float = DEFAULT_LIFETIME_MAX_MS,
) -> float:
    if min_ms <= 0 or max_ms <= 0 or max_ms < min_ms:
        raise ValueError("Lifetime range must be positive with max >= min")
    return random_in_range(min_ms, max_ms, rnd)


# //7.- Orthonormal launch frame around the tower axis.
@dataclass(frozen=True)
class VelocityBasis:
    outward: Vector3
    tangent: Vector3
    up: Vector3


def compute_velocity_basis(cube_world_pos: Vector3, tower_center: Vector3, up: Vector3 = UP) -> VelocityBasis:
    outward = vector.normalize(vector.subtract(cube_world_pos, tower_center), (0.0, 0.0, 1.0))
    up_dir = vector.normalize(up, UP)
    tangent = vector.normalize(vector.cross(up_dir, outward), (1.0, 0.0, 0.0))
    return VelocityBasis(outward=outward, tangent=tangent, up=up_dir)


def _rotate_about_axis(direction: Vector3, axis: Vector3, angle: float) -> Vector3:
    return vector.quat_rotate(vector.quat_from_axis_angle(axis, angle), direction)


# //8.- Perturb a direction by a random rotation of at most ``angle_rad``.
def random_direction_in_cone(direction: Vector3, angle_rad: float, rnd: RandomSource) -> Vector3:
    base = vector.normalize(direction, UP)
    if angle_rad <= 0:
        return base
    axis = vector.normalize((rnd() - 0.5, rnd() - 0.5, rnd() - 0.5), (1.0, 0.0, 0.0))
    angle = (rnd() * 2.0 - 1.0) * angle_rad
    return vector.normalize(_rotate_about_axis(base, axis, angle), base)


# //9.- Radial plus tangential plus vertical launch speed scaled by 1/sqrt(mass), with optional cone jitter.
def compose_initial_velocity(
    cube_world_pos: Vector3,
    tower_center: Vector3,
    *,
    radial_speed: float,
    tangential_speed: float,
    up_speed: float = 0.0,
    wave_direction_sign: float = 1.0,
    jitter_angle_rad: float = 0.0,
    jitter_strength: float = 0.0,
    mass: float = 1.0,
    rnd: Optional[RandomSource] = None,
    up: Vector3 = UP,
) -> Vector3:
    basis = compute_velocity_basis(cube_world_pos, tower_center, up)
    mass_scale = 1.0 / math.sqrt(max(_MIN_MASS, mass))
    velocity = vector.ZERO
    velocity = vector.add_scaled(velocity, basis.outward, radial_speed * mass_scale)
    velocity = vector.add_scaled(velocity, basis.tangent, tangential_speed * wave_direction_sign * mass_scale)
    velocity = vector.add_scaled(velocity, basis.up, up_speed * mass_scale)
    strength = max(0.0, jitter_strength)
    speed = vector.length(velocity)
    if strength > 0 and speed > 0:
        if rnd is None:
            raise ValueError("A random source is required when jitter_strength is positive")
        direction = random_direction_in_cone(velocity, max(0.0, jitter_angle_rad), rnd)
        velocity = vector.add_scaled(velocity, direction, speed * strength)
    return velocity


# //10.- Split a fragment budget across small cubes, plates and inner chunks.
@dataclass(frozen=True)
class FragmentAllocation:
    small_cubes: int
    plates: int
    inner_chunks: int
    total: int


DEFAULT_STYLE_WEIGHTS = (0.5, 0.3, 0.2)


def allocate_fragment_counts(total: int, weights: Sequence[float] = DEFAULT_STYLE_WEIGHTS) -> FragmentAllocation:
    if total <= 0:
        raise ValueError("Total fragment count must be positive")
    weight_sum = sum(weights)
    if len(weights) != 3 or weight_sum <= 0 or min(weights) < 0:
        raise ValueError("Fragment style weights must be three non-negative values with a positive sum")
    raw = [weight / weight_sum * total for weight in weights]
    counts = [int(math.floor(value)) for value in raw]
    remaining = total - sum(counts)
    # Largest remainder first, ties by original order.
    order = sorted(range(3), key=lambda index: (-(raw[index] - counts[index]), index))
    for index in order[:remaining]:
        counts[index] += 1
    return FragmentAllocation(small_cubes=counts[0], plates=counts[1], inner_chunks=counts[2], total=total)


# //11.- Uniform point inside the cube volume centred on its world position.
def sample_fragment_position_inside_cube(cube: CubeVisual, size: CubeSize, rnd: RandomSource) -> Vector3:
    local = ((rnd() - 0.5) * size.sx, (rnd() - 0.5) * size.sy, (rnd() - 0.5) * size.sz)
    return vector.add(cube.world_pos, local)


# //12.- Hand-authored fragment slot in unit-cube local space.
@dataclass(frozen=True)
class FragmentTemplate:
    kind: FragmentKind
    local_position: Vector3
    local_scale: Vector3
    local_rotation: Quaternion = IDENTITY
    uv_rect: Optional[FragmentUvRect] = None


def _face_tile(u0: float, v0: float, u1: float, v1: float, position: Vector3, size: float = 1.0) -> FragmentTemplate:
    return FragmentTemplate(
        kind=FragmentKind.FACE_SHARD,
        local_position=position,
        local_scale=(size, size, 1.0),
        uv_rect=FragmentUvRect(u0, v0, u1, v1),
    )


def _edge(position: Vector3, size: Vector3) -> FragmentTemplate:
    return FragmentTemplate(kind=FragmentKind.EDGE_SHARD, local_position=position, local_scale=size)


def _core(position: Vector3, size: Vector3) -> FragmentTemplate:
    return FragmentTemplate(kind=FragmentKind.CORE_SHARD, local_position=position, local_scale=size)


def _dust(position: Vector3, size: float = 0.7) -> FragmentTemplate:
    return FragmentTemplate(kind=FragmentKind.DUST, local_position=position, local_scale=(size, size, size))


CUBE_FRAGMENT_PATTERNS: Dict[str, Tuple[FragmentTemplate, ...]] = {
    # One large face tile, a pair of medium ones and plenty of gold crumbs.
    "A": (
        _face_tile(0.0, 0.0, 0.66, 0.66, (0.0, 0.1, 0.45), 1.1),
        _face_tile(0.66, 0.0, 1.0, 0.5, (0.25, 0.05, 0.45), 0.6),
        _face_tile(0.0, 0.66, 0.5, 1.0, (-0.2, -0.08, 0.45), 0.7),
        _edge((0.45, 0.15, 0.0), (0.8, 0.4, 0.5)),
        _edge((-0.45, -0.1, 0.05), (0.7, 0.35, 0.45)),
        _core((0.1, 0.0, 0.0), (0.8, 0.7, 0.8)),
        _core((-0.2, 0.2, -0.05), (0.6, 0.5, 0.7)),
        _dust((0.35, 0.35, 0.1), 0.6),
        _dust((-0.3, 0.25, -0.1), 0.5),
        _dust((0.1, -0.3, 0.2), 0.55),
        _dust((-0.15, -0.25, -0.15), 0.45),
        _dust((0.2, 0.05, -0.25), 0.5),
    ),
    # Grid of small tiles plus a few large gold chunks.
    "B": (
        _face_tile(0.0, 0.0, 0.5, 0.5, (-0.2, 0.2, 0.45), 0.55),
        _face_tile(0.5, 0.0, 1.0, 0.5, (0.2, 0.2, 0.45), 0.55),
        _face_tile(0.0, 0.5, 0.5, 1.0, (-0.2, -0.15, 0.45), 0.55),
        _face_tile(0.5, 0.5, 1.0, 1.0, (0.2, -0.15, 0.45), 0.55),
        _face_tile(0.25, 0.25, 0.75, 0.75, (0.0, 0.05, 0.46), 0.35),
        _edge((0.45, 0.25, 0.05), (0.9, 0.35, 0.5)),
        _edge((-0.45, -0.2, 0.1), (0.85, 0.32, 0.45)),
        _core((0.0, 0.0, -0.05), (1.0, 0.9, 1.0)),
        _core((0.15, -0.3, 0.05), (0.7, 0.55, 0.8)),
        _dust((0.35, 0.35, 0.1), 0.6),
        _dust((-0.35, 0.25, 0.0), 0.55),
        _dust((0.25, -0.35, -0.05), 0.5),
        _dust((-0.25, -0.3, 0.15), 0.5),
        _dust((0.0, 0.0, -0.25), 0.45),
        _dust((0.05, 0.15, 0.25), 0.4),
    ),
    # Diagonal tear, as if struck from above.
    "C": (
        _face_tile(0.0, 0.2, 0.6, 0.8, (-0.25, 0.15, 0.45), 0.7),
        _face_tile(0.4, 0.0, 1.0, 0.6, (0.25, 0.0, 0.45), 0.7),
        _face_tile(0.1, 0.7, 0.7, 1.0, (0.05, -0.25, 0.45), 0.5),
        _edge((-0.4, 0.35, 0.0), (0.9, 0.35, 0.45)),
        _edge((0.4, -0.25, 0.05), (0.95, 0.32, 0.45)),
        _core((-0.1, 0.2, -0.05), (0.9, 0.8, 0.95)),
        _core((0.2, -0.2, 0.0), (0.85, 0.7, 0.9)),
        _dust((-0.3, 0.25, 0.15), 0.55),
        _dust((0.3, -0.2, -0.1), 0.55),
        _dust((-0.05, -0.35, 0.1), 0.45),
        _dust((0.1, 0.35, -0.05), 0.5),
        _dust((0.0, 0.05, -0.25), 0.45),
    ),
}


# //13.- Choose one pattern uniformly by sorted key.
def pick_pattern(rnd: RandomSource) -> Tuple[FragmentTemplate, ...]:
    keys = sorted(CUBE_FRAGMENT_PATTERNS)
    index = min(len(keys) - 1, int(math.floor(rnd() * len(keys))))
    return CUBE_FRAGMENT_PATTERNS[keys[index]]


def _random_rotation(max_angle_rad: float, rnd: RandomSource) -> Quaternion:
    axis = vector.normalize((rnd() - 0.5, rnd() - 0.5, rnd() - 0.5), UP)
    return vector.quat_from_axis_angle(axis, rnd() * max_angle_rad)


def _sample(band: Tuple[float, float], rnd: RandomSource) -> float:
    return random_in_range(band[0], band[1], rnd)


# //14.- Instantiate every slot of a pattern with preset speeds, kind multipliers and jittered spin.
def spawn_fragments_for_cube(
    cube: CubeVisual,
    size: CubeSize,
    pattern: Sequence[FragmentTemplate],
    preset: DestructionPreset,
    rnd: RandomSource,
    *,
    tower_center: Vector3 = vector.ZERO,
) -> List[Fragment]:
    linear_drag = PHYSICS_DEFAULTS.linear_drag if preset.linear_drag is None else preset.linear_drag
    angular_drag = PHYSICS_DEFAULTS.angular_drag if preset.angular_drag is None else preset.angular_drag
    fragments: List[Fragment] = []
    for slot in pattern:
        tuning = FRAGMENT_KIND_INITIAL_CONFIG[slot.kind]
        material = MATERIAL_BY_KIND[slot.kind]
        local = (slot.local_position[0] * size.sx, slot.local_position[1] * size.sy, slot.local_position[2] * size.sz)
        radial = random_in_range(preset.radial_speed.min, preset.radial_speed.max, rnd) * _sample(tuning.radial_speed, rnd)
        tangential = random_in_range(preset.tangential_speed.min, preset.tangential_speed.max, rnd) * _sample(
            tuning.tangential_speed, rnd
        )
        vertical = random_in_range(preset.vertical_speed.min, preset.vertical_speed.max, rnd) * _sample(
            tuning.vertical_speed, rnd
        )
        velocity = compose_initial_velocity(
            cube.world_pos,
            tower_center,
            radial_speed=radial,
            tangential_speed=tangential,
        )
        lifetime = random_in_range(preset.lifetime_ms.min, preset.lifetime_ms.max, rnd) * _sample(tuning.lifetime, rnd)
        fragments.append(
            create_fragment(
                kind=slot.kind,
                position=vector.add(cube.world_pos, local),
                velocity=vector.add(velocity, (0.0, vertical, 0.0)),
                rotation=vector.quat_multiply(slot.local_rotation, _random_rotation(tuning.rotation_jitter_rad, rnd)),
                scale=vector.scale(slot.local_scale, _sample(tuning.scale_jitter, rnd)),
                angular_velocity=generate_angular_velocity(material, rnd),
                lifetime_ms=float(math.floor(lifetime)),
                instance_id=len(fragments),
                material=material,
                uv_rect=slot.uv_rect,
                color_tint=_sample(tuning.color_tint, rnd),
                linear_drag=linear_drag * tuning.linear_drag_multiplier,
                angular_drag=angular_drag * tuning.angular_drag_multiplier,
            )
        )
    return fragments
