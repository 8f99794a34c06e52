"""Per-frame fragment integrator with floor, radial wall and fade policies."""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ...noise import noise_vector3
from ..generation.settings import PhysicsSettings
from . import vector
from .fragments import CubeDestructionSim, Fragment
from .presets import PHYSICS_DEFAULTS, STANDARD_GRAVITY_MS2, DestructionPreset
from .vector import Vector3


# //1.- Horizontal floor plane with bounce, friction and optional sleep threshold.
@dataclass(frozen=True)
class FloorCollision:
    floor_y: float
    small_offset: float = 1e-3
    min_bounce_speed: float = 1.0
    bounce_factor: float = 0.4
    friction: float = 1.0
    sleep_speed: float = 0.0

    def __post_init__(self) -> None:
        if self.bounce_factor < 0 or self.friction < 0:
            raise ValueError("Floor bounce factor and friction must be non-negative")


# //2.- Cylindrical containment around a vertical axis through ``center``.
@dataclass(frozen=True)
class RadiusLimit:
    center: Vector3
    max_radius: float
    radial_damping: float = 3.0
    kill_outside: bool = False
    wall_restitution: Optional[float] = None
    wall_friction: float = 1.0
    min_bounce_speed: float = 1.0

    def __post_init__(self) -> None:
        if self.max_radius <= 0:
            raise ValueError(f"Radius limit max_radius must be positive, got {self.max_radius}")
        if self.radial_damping < 0:
            raise ValueError("Radial damping must be non-negative")


# //3.- Low-frequency pseudo wind sampled from position and time.
@dataclass(frozen=True)
class Wind:
    seed: int
    strength: float
    frequency: float = 0.35
    time_scale: float = 0.25


# //4.- Fade out fragments that have come to rest on the floor.
@dataclass(frozen=True)
class RestFade:
    speed_threshold: float
    height_epsilon: float = 0.05
    delay_ms: float = 250.0
    duration_ms: float = 600.0

    def __post_init__(self) -> None:
        if self.speed_threshold <= 0 or self.duration_ms <= 0 or self.delay_ms < 0:
            raise ValueError("Rest fade needs a positive speed threshold and duration and a non-negative delay")


# //5.- Integrator configuration; gravity in units/s^2 and drags per second.
@dataclass(frozen=True)
class FragmentPhysicsConfig:
    gravity: Vector3 = (0.0, -STANDARD_GRAVITY_MS2, 0.0)
    linear_drag: float = PHYSICS_DEFAULTS.linear_drag
    angular_drag: float = PHYSICS_DEFAULTS.angular_drag
    fade_start: float = 0.7
    fade_end: float = 1.0
    floor: Optional[FloorCollision] = None
    radius_limit: Optional[RadiusLimit] = None
    wind: Optional[Wind] = None
    rest_fade: Optional[RestFade] = None

    def __post_init__(self) -> None:
        if self.fade_end <= self.fade_start:
            raise ValueError("fade_end must be greater than fade_start")
        if self.linear_drag < 0 or self.angular_drag < 0:
            raise ValueError("Drag coefficients must be non-negative")
        if self.rest_fade is not None and self.floor is None:
            raise ValueError("Rest fade requires a floor collision plane")


DEFAULT_FRAGMENT_PHYSICS = FragmentPhysicsConfig()


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def smoothstep(edge0: float, edge1: float, x: float) -> float:
    t = _clamp01((x - edge0) / (edge1 - edge0))
    return t * t * (3.0 - 2.0 * t)


# //6.- Smoothstep fade over the [fade_start, fade_end] window of normalized lifetime.
def age_fade(age_ms: float, lifetime_ms: float, config: FragmentPhysicsConfig) -> float:
    life_t = age_ms / lifetime_ms
    if life_t >= config.fade_end:
        return 0.0
    return 1.0 - smoothstep(config.fade_start, config.fade_end, _clamp01(life_t))


def rest_fade_value(rest_ms: float, rest: RestFade) -> float:
    if rest_ms <= rest.delay_ms:
        return 1.0
    return max(0.0, 1.0 - (rest_ms - rest.delay_ms) / rest.duration_ms)


# //7.- Rotate by the axis-angle increment |omega| * dt about omega.
def integrate_rotation(rotation: vector.Quaternion, angular_velocity: Vector3, dt_sec: float) -> vector.Quaternion:
    omega = vector.length(angular_velocity)
    if omega == 0:
        return rotation
    delta = vector.quat_from_axis_angle(vector.scale(angular_velocity, 1.0 / omega), omega * dt_sec)
    return vector.quat_normalize(vector.quat_multiply(rotation, delta))


def _wind_acceleration(wind: Wind, position: Vector3, time_sec: float) -> Vector3:
    x, y, z = vector.scale(position, wind.frequency)
    drift = time_sec * wind.time_scale
    return vector.scale(noise_vector3(wind.seed, x + drift, y, z - drift), wind.strength)


def _resolve_floor(
    position: Vector3,
    velocity: Vector3,
    angular_velocity: Vector3,
    floor: FloorCollision,
) -> Tuple[Vector3, Vector3, Vector3]:
    if position[1] > floor.floor_y:
        return position, velocity, angular_velocity
    vx, vy, vz = velocity
    vy = -vy * floor.bounce_factor if abs(vy) > floor.min_bounce_speed else 0.0
    velocity = (vx * floor.friction, vy, vz * floor.friction)
    position = (position[0], floor.floor_y + floor.small_offset, position[2])
    if floor.sleep_speed > 0 and vector.length(velocity) < floor.sleep_speed:
        return position, vector.ZERO, vector.ZERO
    return position, velocity, angular_velocity


def _resolve_radius(
    position: Vector3,
    velocity: Vector3,
    limit: RadiusLimit,
    dt_sec: float,
) -> Tuple[Vector3, Vector3]:
    offset_x = position[0] - limit.center[0]
    offset_z = position[2] - limit.center[2]
    distance = math.hypot(offset_x, offset_z)
    ratio = limit.max_radius / distance
    clamped = (limit.center[0] + offset_x * ratio, position[1], limit.center[2] + offset_z * ratio)
    outward = (offset_x / distance, 0.0, offset_z / distance)
    radial_speed = vector.dot(velocity, outward)
    if radial_speed <= 0:
        return clamped, velocity
    tangential = vector.scale(vector.subtract(velocity, vector.scale(outward, radial_speed)), limit.wall_friction)
    if limit.wall_restitution is not None and radial_speed > limit.min_bounce_speed:
        radial = -radial_speed * limit.wall_restitution
    else:
        radial = radial_speed * math.exp(-limit.radial_damping * dt_sec)
    return clamped, vector.add(tangential, vector.scale(outward, radial))


def _is_resting(position: Vector3, velocity: Vector3, floor: FloorCollision, rest: RestFade) -> bool:
    near_floor = position[1] - floor.floor_y <= rest.height_epsilon + floor.small_offset
    return near_floor and vector.length(velocity) < rest.speed_threshold


def _dead(fragment: Fragment, age_ms: float) -> Tuple[Fragment, bool]:
    return replace(fragment, age_ms=age_ms, fade=0.0), False


# //8.- Advance one fragment by ``dt_ms`` milliseconds and report whether it is still alive.
def update_fragment_physics(
    fragment: Fragment,
    dt_ms: float,
    config: FragmentPhysicsConfig = DEFAULT_FRAGMENT_PHYSICS,
) -> Tuple[Fragment, bool]:
    if dt_ms < 0:
        raise ValueError(f"Time step must be non-negative, got {dt_ms}")
    dt_sec = dt_ms / 1000.0
    next_age = fragment.age_ms + dt_ms
    if next_age >= fragment.lifetime_ms:
        return _dead(fragment, next_age)

    linear_drag = config.linear_drag if fragment.linear_drag is None else fragment.linear_drag
    angular_drag = config.angular_drag if fragment.angular_drag is None else fragment.angular_drag

    velocity = vector.add_scaled(fragment.velocity, config.gravity, dt_sec)
    if config.wind is not None:
        velocity = vector.add_scaled(velocity, _wind_acceleration(config.wind, fragment.position, next_age / 1000.0), dt_sec)
    velocity = vector.scale(velocity, max(0.0, 1.0 - linear_drag * dt_sec))
    position = vector.add_scaled(fragment.position, velocity, dt_sec)
    angular_velocity = vector.scale(fragment.angular_velocity, max(0.0, 1.0 - angular_drag * dt_sec))
    rotation = integrate_rotation(fragment.rotation, angular_velocity, dt_sec)

    if config.floor is not None:
        position, velocity, angular_velocity = _resolve_floor(position, velocity, angular_velocity, config.floor)

    limit = config.radius_limit
    if limit is not None:
        radial_distance = math.hypot(position[0] - limit.center[0], position[2] - limit.center[2])
        if radial_distance > limit.max_radius:
            if limit.kill_outside:
                return _dead(fragment, next_age)
            position, velocity = _resolve_radius(position, velocity, limit, dt_sec)

    fade = age_fade(next_age, fragment.lifetime_ms, config)
    rest_ms = 0.0
    if config.rest_fade is not None and config.floor is not None:
        if _is_resting(position, velocity, config.floor, config.rest_fade):
            rest_ms = fragment.rest_ms + dt_ms
        rest = rest_fade_value(rest_ms, config.rest_fade)
        if rest <= 0.0 and rest < fade:
            return _dead(fragment, next_age)
        fade = min(fade, rest)

    updated = replace(
        fragment,
        age_ms=next_age,
        position=position,
        velocity=velocity,
        angular_velocity=angular_velocity,
        rotation=rotation,
        fade=fade,
        rest_ms=rest_ms,
    )
    return updated, True


# //9.- Step every fragment of a cube, dropping the dead; an empty cube is finished.
def update_cube_destruction_sim(
    sim: CubeDestructionSim,
    dt_ms: float,
    config: FragmentPhysicsConfig = DEFAULT_FRAGMENT_PHYSICS,
) -> CubeDestructionSim:
    survivors = []
    for fragment in sim.fragments:
        updated, alive = update_fragment_physics(fragment, dt_ms, config)
        if alive:
            survivors.append(updated)
    return replace(sim, fragments=tuple(survivors), finished=not survivors)


# //10.- Derive integrator settings from a preset, optionally adding floor and wall bounds.
def physics_config_from_preset(
    preset: DestructionPreset,
    *,
    floor_y: Optional[float] = None,
    tower_center: Vector3 = vector.ZERO,
    max_radius: Optional[float] = None,
    base: FragmentPhysicsConfig = DEFAULT_FRAGMENT_PHYSICS,
) -> FragmentPhysicsConfig:
    gravity_scale = PHYSICS_DEFAULTS.gravity_scale if preset.gravity_scale is None else preset.gravity_scale
    floor = None
    if floor_y is not None:
        floor = FloorCollision(
            floor_y=floor_y,
            bounce_factor=PHYSICS_DEFAULTS.floor_restitution if preset.floor_restitution is None else preset.floor_restitution,
            friction=PHYSICS_DEFAULTS.floor_friction if preset.floor_friction is None else preset.floor_friction,
        )
    radius_limit = None
    if max_radius is not None:
        radius_limit = RadiusLimit(
            center=tower_center,
            max_radius=max_radius,
            wall_restitution=preset.wall_restitution if preset.full_physics else None,
            wall_friction=PHYSICS_DEFAULTS.wall_friction if preset.wall_friction is None else preset.wall_friction,
        )
    return replace(
        base,
        gravity=vector.scale((0.0, -PHYSICS_DEFAULTS.gravity_ms2, 0.0), gravity_scale),
        linear_drag=base.linear_drag if preset.linear_drag is None else preset.linear_drag,
        angular_drag=base.angular_drag if preset.angular_drag is None else preset.angular_drag,
        floor=floor,
        radius_limit=radius_limit,
        rest_fade=base.rest_fade if floor is not None else None,
    )


# //11.- Build integrator settings from the loaded physics configuration file.
def physics_config_from_settings(settings: PhysicsSettings, *, tower_center: Vector3 = vector.ZERO) -> FragmentPhysicsConfig:
    floor = None
    if settings.floor_y is not None:
        floor = FloorCollision(
            floor_y=settings.floor_y,
            bounce_factor=settings.floor_restitution,
            friction=settings.floor_friction,
        )
    radius_limit = None
    if settings.radial_max_radius is not None:
        radius_limit = RadiusLimit(
            center=tower_center,
            max_radius=settings.radial_max_radius,
            wall_restitution=settings.wall_restitution,
            wall_friction=settings.wall_friction,
        )
    rest_fade = None
    if settings.rest_speed_threshold is not None and floor is not None:
        rest_fade = RestFade(
            speed_threshold=settings.rest_speed_threshold,
            height_epsilon=settings.rest_height_epsilon,
            delay_ms=settings.rest_delay_ms,
            duration_ms=settings.rest_duration_ms,
        )
    return FragmentPhysicsConfig(
        gravity=settings.gravity,
        linear_drag=settings.linear_drag,
        angular_drag=settings.angular_drag,
        fade_start=settings.fade_start,
        fade_end=settings.fade_end,
        floor=floor,
        radius_limit=radius_limit,
        rest_fade=rest_fade,
    )
