"""Structured loader for destruction tuning settings."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ...cube_space import CUBE_HALF, FACE_ORDER, SHELL_DEPTH, Face, assert_shell_depth_invariant
from .shard_templates import CountRange, TemplateGeneratorOptions
from .shell_templates import DepthRange


# //1.- Capture shell partitioning and extrusion knobs.
@dataclass(frozen=True)
class ShellSettings:
    seed_count: int
    inset: float
    shell_depth: float
    depth_min: float
    depth_max: float
    back_noise_radius: float

    @property
    def depth_range(self) -> DepthRange:
        return DepthRange(min=self.depth_min, max=self.depth_max)

    @property
    def core_half(self) -> float:
        return CUBE_HALF - self.shell_depth


# //2.- Record the full-cube template generator bands.
@dataclass(frozen=True)
class TemplateSettings:
    min_area: float
    layered: bool
    face_counts: Dict[Face, CountRange]
    depth_ranges: Dict[Face, DepthRange]
    min_covered_fraction: float

    def to_options(self) -> TemplateGeneratorOptions:
        return TemplateGeneratorOptions(
            face_counts=dict(self.face_counts),
            depth_ranges=dict(self.depth_ranges),
            min_area=self.min_area,
            layered=self.layered,
        )


# //3.- Describe the jittered core lattice and cluster size band.
@dataclass(frozen=True)
class CoreSettings:
    divisions: int
    jitter_amplitude: float
    min_cluster_size: int
    max_cluster_size: int


# //4.- Integrator tuning; optional sections stay None when disabled.
@dataclass(frozen=True)
class PhysicsSettings:
    gravity: Tuple[float, float, float]
    linear_drag: float
    angular_drag: float
    fade_start: float
    fade_end: float
    floor_y: Optional[float]
    floor_restitution: float
    floor_friction: float
    radial_max_radius: Optional[float]
    wall_restitution: Optional[float]
    wall_friction: float
    rest_speed_threshold: Optional[float]
    rest_height_epsilon: float
    rest_delay_ms: float
    rest_duration_ms: float


# //5.- Explosion wave timing and the preset used for runtime fragments.
@dataclass(frozen=True)
class ScheduleSettings:
    delay_between_cubes_ms: float
    preset: str


# //6.- Aggregate complete destruction settings for downstream modules.
@dataclass(frozen=True)
class DestructionSettings:
    shell: ShellSettings
    templates: TemplateSettings
    core: CoreSettings
    physics: PhysicsSettings
    schedule: ScheduleSettings


# //7.- Resolve package default configuration directory lazily.
def _default_config_directory() -> str:
    base_dir = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
    return os.path.join(base_dir, "config")


# //8.- Load a single JSON configuration file and coerce to dictionary.
def _read_json_config(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _optional_float(payload: dict, key: str) -> Optional[float]:
    value = payload.get(key)
    return None if value is None else float(value)


# //9.- Construct shell settings, keeping depths inside the configured shell slab.
def _load_shell_settings(config_dir: str) -> ShellSettings:
    payload = _read_json_config(os.path.join(config_dir, "shell.json"))
    seed_count = int(payload.get("seed_count", 5))
    shell_depth = float(payload.get("shell_depth", SHELL_DEPTH))
    assert_shell_depth_invariant(shell_depth)
    depth_min = float(payload.get("depth_min", shell_depth * 0.5))
    depth_max = float(payload.get("depth_max", shell_depth))
    if seed_count < 5:
        raise ValueError("Shell seed count must be at least 5")
    if not 0.0 < depth_min <= depth_max <= shell_depth:
        raise ValueError(f"Shell depth range must satisfy 0 < min <= max <= {shell_depth}")
    return ShellSettings(
        seed_count=seed_count,
        inset=float(payload.get("inset", 0.02)),
        shell_depth=shell_depth,
        depth_min=depth_min,
        depth_max=depth_max,
        back_noise_radius=float(payload.get("back_noise_radius", 0.025)),
    )


# //10.- Parse per-face count bands and depth ranges keyed by face name.
def _load_template_settings(config_dir: str) -> TemplateSettings:
    payload = _read_json_config(os.path.join(config_dir, "templates.json"))
    counts: Dict[Face, CountRange] = {}
    for name, band in payload.get("face_counts", {}).items():
        face = Face(str(name).strip().lower())
        counts[face] = CountRange(int(band[0]), int(band[1]))
    depths: Dict[Face, DepthRange] = {}
    for name, band in payload.get("depth_ranges", {}).items():
        face = Face(str(name).strip().lower())
        depth = DepthRange(min=float(band[0]), max=float(band[1]))
        if not 0.0 <= depth.min <= depth.max <= 1.0:
            raise ValueError(f"Depth range for face {face.value} must satisfy 0 <= min <= max <= 1")
        depths[face] = depth
    min_area = float(payload.get("min_area", 0.0075))
    if min_area <= 0:
        raise ValueError("Template minimum area must be positive")
    fraction = float(payload.get("min_covered_fraction", 0.55))
    if not 0.0 < fraction <= 1.0:
        raise ValueError("Template coverage fraction must lie in (0, 1]")
    return TemplateSettings(
        min_area=min_area,
        layered=bool(payload.get("layered", True)),
        face_counts={face: counts[face] for face in FACE_ORDER if face in counts},
        depth_ranges={face: depths[face] for face in FACE_ORDER if face in depths},
        min_covered_fraction=fraction,
    )


# //11.- Interpret lattice resolution and cluster bounds.
def _load_core_settings(config_dir: str) -> CoreSettings:
    payload = _read_json_config(os.path.join(config_dir, "core.json"))
    divisions = int(payload.get("divisions", 5))
    min_size = int(payload.get("min_cluster_size", 3))
    max_size = int(payload.get("max_cluster_size", 6))
    if divisions < 2:
        raise ValueError("Core grid needs at least 2 divisions")
    if min_size < 2 or max_size < min_size:
        raise ValueError("Core cluster sizes must satisfy 2 <= min <= max")
    return CoreSettings(
        divisions=divisions,
        jitter_amplitude=float(payload.get("jitter_amplitude", 0.18)),
        min_cluster_size=min_size,
        max_cluster_size=max_size,
    )


# //12.- Parse physics tuning including the optional floor, wall and rest sections.
def _load_physics_settings(config_dir: str) -> PhysicsSettings:
    payload = _read_json_config(os.path.join(config_dir, "physics.json"))
    components = [float(component) for component in payload.get("gravity", (0.0, -9.81, 0.0))]
    if len(components) != 3:
        raise ValueError("Gravity must have three components")
    fade_start = float(payload.get("fade_start", 0.7))
    fade_end = float(payload.get("fade_end", 1.0))
    if fade_end <= fade_start:
        raise ValueError("fade_end must be greater than fade_start")
    floor = payload.get("floor") or {}
    radial = payload.get("radial") or {}
    rest = payload.get("rest_fade") or {}
    radius = _optional_float(radial, "max_radius")
    if radius is not None and radius <= 0:
        raise ValueError("Radial containment radius must be positive")
    return PhysicsSettings(
        gravity=(components[0], components[1], components[2]),
        linear_drag=float(payload.get("linear_drag", 0.6)),
        angular_drag=float(payload.get("angular_drag", 0.2)),
        fade_start=fade_start,
        fade_end=fade_end,
        floor_y=_optional_float(floor, "y"),
        floor_restitution=float(floor.get("restitution", 0.35)),
        floor_friction=float(floor.get("friction", 0.7)),
        radial_max_radius=radius,
        wall_restitution=_optional_float(radial, "wall_restitution"),
        wall_friction=float(radial.get("wall_friction", 0.85)),
        rest_speed_threshold=_optional_float(rest, "speed_threshold"),
        rest_height_epsilon=float(rest.get("height_epsilon", 0.05)),
        rest_delay_ms=float(rest.get("delay_ms", 250.0)),
        rest_duration_ms=float(rest.get("duration_ms", 600.0)),
    )


# //13.- Read wave timing and validate the inter-cube delay.
def _load_schedule_settings(config_dir: str) -> ScheduleSettings:
    payload = _read_json_config(os.path.join(config_dir, "schedule.json"))
    delay = float(payload.get("delay_between_cubes_ms", 45.0))
    if delay <= 0:
        raise ValueError("Delay between cube explosions must be positive")
    return ScheduleSettings(delay_between_cubes_ms=delay, preset=str(payload.get("preset", "ultra")).strip().lower())


# //14.- Public helper assembling the full destruction settings bundle.
def load_destruction_settings(config_dir: str | None = None) -> DestructionSettings:
    directory = config_dir or _default_config_directory()
    return DestructionSettings(
        shell=_load_shell_settings(directory),
        templates=_load_template_settings(directory),
        core=_load_core_settings(directory),
        physics=_load_physics_settings(directory),
        schedule=_load_schedule_settings(directory),
    )
