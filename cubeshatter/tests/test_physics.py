"""Tests for the fragment integrator."""
from __future__ import annotations

from dataclasses import replace

import pytest

from cubeshatter.src.gameplay.fragments import (
    CellId,
    CubeVisual,
    FragmentKind,
    FragmentMaterial,
    create_cube_destruction_sim,
    create_fragment,
)
from cubeshatter.src.gameplay.physics import (
    DEFAULT_FRAGMENT_PHYSICS,
    FloorCollision,
    FragmentPhysicsConfig,
    RadiusLimit,
    RestFade,
    Wind,
    age_fade,
    physics_config_from_preset,
    physics_config_from_settings,
    update_cube_destruction_sim,
    update_fragment_physics,
)
from cubeshatter.src.gameplay.presets import LOW, ULTRA
from cubeshatter.src.generation.settings import load_destruction_settings


def _fragment(position=(0.0, 0.0, 0.0), velocity=(0.0, 0.0, 0.0), lifetime_ms=1000.0, **extra):
    return create_fragment(
        kind=FragmentKind.CORE_SHARD,
        position=position,
        velocity=velocity,
        lifetime_ms=lifetime_ms,
        instance_id=0,
        **extra,
    )


# //1.- Fragments die once their age reaches the lifetime.
def test_fragment_dies_at_lifetime():
    fragment = _fragment(lifetime_ms=100.0)
    updated, alive = update_fragment_physics(fragment, 100.0)
    assert not alive
    assert updated.fade == 0.0
    assert updated.age_ms == 100.0


def test_negative_time_step_is_rejected():
    with pytest.raises(ValueError):
        update_fragment_physics(_fragment(), -1.0)
    with pytest.raises(ValueError):
        create_fragment(kind=FragmentKind.DUST, position=(0, 0, 0), velocity=(0, 0, 0), lifetime_ms=0, instance_id=1)


# //2.- Gravity is integrated in seconds and drag scales the result.
def test_free_fall_applies_gravity_then_drag():
    updated, alive = update_fragment_physics(_fragment(), 100.0)
    assert alive
    expected_vy = -9.81 * 0.1 * (1.0 - 0.6 * 0.1)
    assert updated.velocity[1] == pytest.approx(expected_vy)
    assert updated.position[1] == pytest.approx(expected_vy * 0.1)
    assert updated.fade == 1.0
    assert updated.material is FragmentMaterial.INNER


def test_per_fragment_drag_overrides_config():
    updated, _ = update_fragment_physics(_fragment(velocity=(1.0, 0.0, 0.0), linear_drag=0.0), 100.0)
    assert updated.velocity[0] == pytest.approx(1.0)


def test_age_fade_window():
    assert age_fade(500.0, 1000.0, DEFAULT_FRAGMENT_PHYSICS) == 1.0
    assert age_fade(850.0, 1000.0, DEFAULT_FRAGMENT_PHYSICS) == pytest.approx(0.5)
    assert age_fade(1000.0, 1000.0, DEFAULT_FRAGMENT_PHYSICS) == 0.0


# //3.- Hitting the floor reflects the vertical speed and snaps above the plane.
def test_floor_bounce():
    config = FragmentPhysicsConfig(floor=FloorCollision(floor_y=0.0))
    updated, alive = update_fragment_physics(_fragment(position=(0.0, 0.05, 0.0), velocity=(0.0, -5.0, 0.0)), 16.0, config)
    assert alive
    falling = -(5.0 + 9.81 * 0.016) * (1.0 - 0.6 * 0.016)
    assert updated.velocity[1] == pytest.approx(-falling * 0.4)
    assert updated.position[1] == pytest.approx(1e-3)


def test_slow_floor_contact_stops_vertical_motion():
    config = FragmentPhysicsConfig(floor=FloorCollision(floor_y=0.0, sleep_speed=0.5))
    updated, _ = update_fragment_physics(_fragment(position=(0.0, 0.001, 0.0), velocity=(0.1, 0.0, 0.0)), 16.0, config)
    assert updated.velocity == (0.0, 0.0, 0.0)
    assert updated.angular_velocity == (0.0, 0.0, 0.0)


# //4.- Radial containment either kills or clamps fragments leaving the cylinder.
def test_radius_limit_kills_outside_fragments():
    config = FragmentPhysicsConfig(
        gravity=(0.0, 0.0, 0.0),
        radius_limit=RadiusLimit(center=(0.0, 0.0, 0.0), max_radius=1.0, kill_outside=True),
    )
    _, alive = update_fragment_physics(_fragment(position=(0.99, 0.0, 0.0), velocity=(10.0, 0.0, 0.0)), 16.0, config)
    assert not alive


def test_radius_limit_clamps_and_damps():
    config = FragmentPhysicsConfig(
        gravity=(0.0, 0.0, 0.0),
        radius_limit=RadiusLimit(center=(0.0, 0.0, 0.0), max_radius=1.0),
    )
    updated, alive = update_fragment_physics(_fragment(position=(0.99, 0.0, 0.0), velocity=(10.0, 0.0, 0.0)), 16.0, config)
    assert alive
    assert updated.position[0] == pytest.approx(1.0)
    assert 0.0 < updated.velocity[0] < 10.0 * (1.0 - 0.6 * 0.016)


def test_radius_limit_wall_bounce():
    config = FragmentPhysicsConfig(
        gravity=(0.0, 0.0, 0.0),
        radius_limit=RadiusLimit(center=(0.0, 0.0, 0.0), max_radius=1.0, wall_restitution=0.5),
    )
    updated, _ = update_fragment_physics(_fragment(position=(0.99, 0.0, 0.0), velocity=(10.0, 0.0, 0.0)), 16.0, config)
    assert updated.velocity[0] == pytest.approx(-10.0 * (1.0 - 0.6 * 0.016) * 0.5)


# //5.- Resting fragments fade out after the delay and die once the fade reaches zero.
def test_rest_fade_kills_resting_fragment():
    config = FragmentPhysicsConfig(
        floor=FloorCollision(floor_y=0.0),
        rest_fade=RestFade(speed_threshold=0.5, delay_ms=0.0, duration_ms=100.0),
    )
    fragment = _fragment(position=(0.0, 0.001, 0.0), lifetime_ms=10000.0)
    fades = []
    alive = True
    steps = 0
    while alive and steps < 10:
        fragment, alive = update_fragment_physics(fragment, 16.0, config)
        fades.append(fragment.fade)
        steps += 1
    assert not alive
    assert steps == 7
    assert fades[0] == pytest.approx(0.84)
    assert fades == sorted(fades, reverse=True)


def test_rest_fade_requires_floor():
    with pytest.raises(ValueError):
        FragmentPhysicsConfig(rest_fade=RestFade(speed_threshold=0.5))
    with pytest.raises(ValueError):
        RestFade(speed_threshold=0.0)
    with pytest.raises(ValueError):
        FragmentPhysicsConfig(fade_start=0.8, fade_end=0.8)


# //6.- A cube simulation finishes once every fragment is gone.
def test_cube_simulation_finishes():
    cube = CubeVisual(id=CellId(0, 0), world_pos=(0.0, 0.0, 0.0))
    sim = create_cube_destruction_sim(cube, (_fragment(lifetime_ms=100.0), _fragment(lifetime_ms=500.0)))
    sim = update_cube_destruction_sim(sim, 100.0)
    assert len(sim.fragments) == 1
    assert not sim.finished
    sim = update_cube_destruction_sim(sim, 400.0)
    assert sim.fragments == ()
    assert sim.finished


# //7.- Presets and settings translate into integrator configs.
def test_physics_config_from_preset():
    config = physics_config_from_preset(ULTRA, floor_y=0.0, max_radius=5.0)
    assert config.floor.bounce_factor == pytest.approx(0.35)
    assert config.floor.friction == pytest.approx(0.7)
    assert config.radius_limit.wall_restitution == pytest.approx(0.3)
    assert config.gravity == pytest.approx((0.0, -9.81, 0.0))
    assert config.rest_fade is None
    low = physics_config_from_preset(LOW, max_radius=5.0)
    assert low.floor is None
    assert low.radius_limit.wall_restitution is None
    heavy = physics_config_from_preset(replace(ULTRA, gravity_scale=2.0))
    assert heavy.gravity == pytest.approx((0.0, -19.62, 0.0))


def test_physics_config_from_settings():
    config = physics_config_from_settings(load_destruction_settings().physics)
    assert config.floor.floor_y == 0.0
    assert config.radius_limit.max_radius == 12.0
    assert config.rest_fade.speed_threshold == pytest.approx(0.4)
    assert config.rest_fade.duration_ms == pytest.approx(600.0)


# //8.- Wind adds a deterministic push and disappears at zero strength.
def test_wind_is_deterministic():
    calm = FragmentPhysicsConfig(wind=Wind(seed=4, strength=0.0))
    breezy = FragmentPhysicsConfig(wind=Wind(seed=4, strength=3.0))
    fragment = _fragment(position=(0.4, 1.3, -0.7))
    still, _ = update_fragment_physics(fragment, 50.0, calm)
    plain, _ = update_fragment_physics(fragment, 50.0)
    assert still.velocity == pytest.approx(plain.velocity)
    first, _ = update_fragment_physics(fragment, 50.0, breezy)
    second, _ = update_fragment_physics(fragment, 50.0, breezy)
    assert first.velocity == second.velocity
