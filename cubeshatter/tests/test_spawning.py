"""Tests for presets, launch velocities and fragment spawning."""
from __future__ import annotations

import math

import pytest

from cubeshatter.src.gameplay import vector
from cubeshatter.src.gameplay.fragments import CellId, CubeSize, CubeVisual, FragmentKind, FragmentMaterial
from cubeshatter.src.gameplay.presets import LOW, ULTRA, Range, get_preset
from cubeshatter.src.gameplay.shard_fragments import (
    ShardGeometryResource,
    build_shard_geometry_library,
    canonical_shard_resource,
    compute_physics_scales,
    spawn_fragments_from_canonical_shards,
    spawn_fragments_from_library,
)
from cubeshatter.src.gameplay.spawning import (
    CUBE_FRAGMENT_PATTERNS,
    allocate_fragment_counts,
    compose_initial_velocity,
    compute_velocity_basis,
    generate_angular_velocity,
    generate_lifetime_ms,
    pick_pattern,
    random_in_range,
    sample_fragment_position_inside_cube,
    spawn_fragments_for_cube,
)
from cubeshatter.src.generation.canonical import MaterialKind, assemble_canonical_shards
from cubeshatter.src.generation.config import cycle_source, random_source
from cubeshatter.src.generation.core_clusters import CoreShardCluster
from cubeshatter.src.generation.core_grid import build_core_jitter_grid, build_volume_cells
from cubeshatter.src.generation.shard_coverage import create_shard_template_set

CUBE = CubeVisual(id=CellId(0, 0), world_pos=(2.0, 0.0, 0.0))
SIZE = CubeSize(1.0, 1.0, 0.9)


# //1.- Presets are looked up by name and validate their bands.
def test_presets_lookup_and_validation():
    assert get_preset(" ULTRA ") is ULTRA
    assert get_preset("low") is LOW
    with pytest.raises(KeyError):
        get_preset("cinematic")
    with pytest.raises(ValueError):
        Range(2.0, 1.0)
    with pytest.raises(ValueError):
        CubeSize(1.0, 0.0, 1.0)


# //2.- Budgets split by largest remainder with ties in style order.
def test_allocate_fragment_counts():
    even = allocate_fragment_counts(10)
    assert (even.small_cubes, even.plates, even.inner_chunks) == (5, 3, 2)
    odd = allocate_fragment_counts(7)
    assert (odd.small_cubes, odd.plates, odd.inner_chunks, odd.total) == (4, 2, 1, 7)
    with pytest.raises(ValueError):
        allocate_fragment_counts(0)
    with pytest.raises(ValueError):
        allocate_fragment_counts(5, weights=(1.0, 1.0))


def test_sampling_helpers():
    rnd = random_source(3)
    for _ in range(20):
        assert 1000.0 <= generate_lifetime_ms(rnd) <= 2000.0
    assert random_in_range(2.0, 2.0, rnd) == 2.0
    with pytest.raises(ValueError):
        random_in_range(3.0, 1.0, rnd)
    with pytest.raises(ValueError):
        generate_lifetime_ms(rnd, 500.0, 100.0)


# //3.- Launch velocity is built in an outward, tangent and up frame.
def test_velocity_basis_around_tower():
    basis = compute_velocity_basis((2.0, 0.0, 0.0), (0.0, 0.0, 0.0))
    assert basis.outward == pytest.approx((1.0, 0.0, 0.0))
    assert basis.tangent == pytest.approx((0.0, 0.0, -1.0))
    assert basis.up == pytest.approx((0.0, 1.0, 0.0))


def test_compose_initial_velocity_scales_by_mass():
    velocity = compose_initial_velocity(
        (2.0, 0.0, 0.0),
        (0.0, 0.0, 0.0),
        radial_speed=2.0,
        tangential_speed=1.0,
        mass=4.0,
    )
    assert velocity == pytest.approx((1.0, 0.0, -0.5))
    reversed_wave = compose_initial_velocity(
        (2.0, 0.0, 0.0), (0.0, 0.0, 0.0), radial_speed=0.0, tangential_speed=1.0, wave_direction_sign=-1.0
    )
    assert reversed_wave == pytest.approx((0.0, 0.0, 1.0))


def test_jitter_requires_random_source():
    with pytest.raises(ValueError):
        compose_initial_velocity((2.0, 0.0, 0.0), (0.0, 0.0, 0.0), radial_speed=1.0, tangential_speed=0.0, jitter_strength=0.2)
    jittered = compose_initial_velocity(
        (2.0, 0.0, 0.0),
        (0.0, 0.0, 0.0),
        radial_speed=1.0,
        tangential_speed=0.0,
        jitter_angle_rad=0.3,
        jitter_strength=0.2,
        rnd=random_source(8),
    )
    assert 1.0 < vector.length(jittered) <= 1.2 + 1e-9


def test_angular_velocity_slows_with_mass():
    rnd = random_source(12)
    for _ in range(10):
        light = vector.length(generate_angular_velocity(FragmentMaterial.GOLD, rnd))
        assert 2.0 - 1e-9 <= light <= 6.0 + 1e-9
        heavy = vector.length(generate_angular_velocity(FragmentMaterial.GOLD, rnd, mass=8.0))
        assert heavy <= 6.0 * math.pow(8.0, -0.35) + 1e-9


def test_positions_stay_inside_cube():
    rnd = random_source(4)
    for _ in range(50):
        x, y, z = sample_fragment_position_inside_cube(CUBE, SIZE, rnd)
        assert 1.5 <= x <= 2.5
        assert -0.5 <= y <= 0.5
        assert -0.45 <= z <= 0.45


# //4.- Pattern spawning instantiates one fragment per slot.
def test_spawn_fragments_for_pattern():
    assert pick_pattern(cycle_source([0.0])) is CUBE_FRAGMENT_PATTERNS["A"]
    assert pick_pattern(cycle_source([0.99])) is CUBE_FRAGMENT_PATTERNS["C"]
    pattern = CUBE_FRAGMENT_PATTERNS["B"]
    fragments = spawn_fragments_for_cube(CUBE, SIZE, pattern, ULTRA, random_source(21))
    assert len(fragments) == len(pattern)
    assert [fragment.instance_id for fragment in fragments] == list(range(len(pattern)))
    for fragment, slot in zip(fragments, pattern):
        assert fragment.kind is slot.kind
        assert fragment.lifetime_ms == math.floor(fragment.lifetime_ms)
        assert fragment.lifetime_ms > 0
        assert fragment.velocity[0] > 0.0
    dust = [fragment for fragment in fragments if fragment.kind is FragmentKind.DUST]
    assert dust and all(fragment.linear_drag == pytest.approx(0.6 * 1.35) for fragment in dust)


# //5.- Shard-driven spawning scales launch and lifetime by shard size.
def test_physics_scales_for_reference_shard():
    scales = compute_physics_scales((0.0, 0.0, 0.0), 0.3)
    assert scales.normalized_volume == pytest.approx(1.0)
    assert scales.velocity == pytest.approx(1.5)
    assert scales.lifetime == pytest.approx(1.2)
    outer = compute_physics_scales((0.9, 0.0, 0.0), 0.3)
    assert outer.velocity == pytest.approx(1.0)


def test_spawn_from_library_respects_preset_band():
    library = [
        ShardGeometryResource(
            template_id=index,
            geometry=None,
            local_center=(0.1 * (index % 3), 0.0, 0.2),
            local_volume=0.02,
            material=FragmentMaterial.GOLD,
        )
        for index in range(40)
    ]
    fragments = spawn_fragments_from_library(CUBE, SIZE, library, LOW, random_source(5))
    assert 4 <= len(fragments) <= 8
    assert len({fragment.template_id for fragment in fragments}) == len(fragments)
    assert all(fragment.kind is FragmentKind.EDGE_SHARD for fragment in fragments)
    with pytest.raises(ValueError):
        spawn_fragments_from_library(CUBE, SIZE, [], LOW, random_source(5))


def test_spawn_from_canonical_shards():
    cells = build_volume_cells(build_core_jitter_grid(random_source(1), divisions=2, jitter_amplitude=0.0))
    shards = assemble_canonical_shards([], [CoreShardCluster(0, (0, 1)), CoreShardCluster(1, (2, 3, 4, 5, 6, 7))], cells)
    resource = canonical_shard_resource(shards[0])
    assert resource.material is FragmentMaterial.INNER
    assert shards[0].material_kind is MaterialKind.INNER_ONLY
    assert resource.local_volume == pytest.approx(shards[0].approximate_volume)
    fragments = spawn_fragments_from_canonical_shards(CUBE, SIZE, shards, ULTRA, random_source(9))
    assert [fragment.template_id for fragment in fragments] == [0, 1]
    assert all(fragment.kind is FragmentKind.CORE_SHARD for fragment in fragments)


def test_geometry_library_meshes_every_template():
    template_set = create_shard_template_set(random_source(5), min_covered_fraction=0.3)
    library = build_shard_geometry_library(template_set, random_source(6))
    assert [resource.template_id for resource in library] == [template.id for template in template_set.templates]
    for resource in library:
        assert resource.geometry is not None
        assert resource.local_volume >= 0.0
        assert resource.material in (FragmentMaterial.FACE, FragmentMaterial.GOLD)
    fragments = spawn_fragments_from_library(CUBE, SIZE, library, ULTRA, random_source(7))
    assert 1 <= len(fragments) <= 32
