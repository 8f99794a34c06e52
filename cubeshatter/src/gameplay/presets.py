"""Quality presets for spawned destruction fragments."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

STANDARD_GRAVITY_MS2 = 9.81
DEFAULT_LINEAR_DRAG = 0.6
DEFAULT_ANGULAR_DRAG = 0.2


# //1.- Closed interval used for every sampled preset quantity.
@dataclass(frozen=True)
class Range:
    min: float
    max: float

    def __post_init__(self) -> None:
        if self.max < self.min:
            raise ValueError(f"Range max must be >= min, got {self.min}..{self.max}")


# //2.- Baseline physics tuning shared by presets; speeds are in units per second.
@dataclass(frozen=True)
class PhysicsDefaults:
    gravity_ms2: float = STANDARD_GRAVITY_MS2
    gravity_scale: float = 1.0
    linear_drag: float = DEFAULT_LINEAR_DRAG
    angular_drag: float = DEFAULT_ANGULAR_DRAG
    floor_restitution: float = 0.35
    wall_restitution: float = 0.3
    floor_friction: float = 0.7
    wall_friction: float = 0.85


PHYSICS_DEFAULTS = PhysicsDefaults()


# //3.- Fragment count, lifetime and launch speed bands plus optional physics overrides.
@dataclass(frozen=True)
class DestructionPreset:
    name: str
    fragment_count: Range
    lifetime_ms: Range
    radial_speed: Range
    tangential_speed: Range
    vertical_speed: Range
    full_physics: bool
    linear_drag: Optional[float] = PHYSICS_DEFAULTS.linear_drag
    angular_drag: Optional[float] = PHYSICS_DEFAULTS.angular_drag
    gravity_scale: Optional[float] = PHYSICS_DEFAULTS.gravity_scale
    floor_restitution: Optional[float] = PHYSICS_DEFAULTS.floor_restitution
    wall_restitution: Optional[float] = PHYSICS_DEFAULTS.wall_restitution
    floor_friction: Optional[float] = PHYSICS_DEFAULTS.floor_friction
    wall_friction: Optional[float] = PHYSICS_DEFAULTS.wall_friction


ULTRA = DestructionPreset(
    name="ultra",
    fragment_count=Range(16, 32),
    lifetime_ms=Range(2200, 3600),
    radial_speed=Range(6, 14),
    tangential_speed=Range(2, 8),
    vertical_speed=Range(-2, 6),
    full_physics=True,
)

LOW = DestructionPreset(
    name="low",
    fragment_count=Range(4, 8),
    lifetime_ms=Range(700, 1200),
    radial_speed=Range(3, 7),
    tangential_speed=Range(1, 4),
    vertical_speed=Range(-1, 3),
    full_physics=False,
)

PRESETS: Dict[str, DestructionPreset] = {ULTRA.name: ULTRA, LOW.name: LOW}


# //4.- Look a preset up by case-insensitive name.
def get_preset(name: str) -> DestructionPreset:
    key = str(name).strip().lower()
    if key not in PRESETS:
        raise KeyError(f"Unknown destruction preset '{name}'")
    return PRESETS[key]
