"""Tests for canonical shard assembly."""
from __future__ import annotations

import json
import shutil
from pathlib import Path

import numpy as np
import pytest

from cubeshatter.cube_space import Face, cube_to_face
from cubeshatter.src.generation.canonical import (
    CoreShardSource,
    MaterialKind,
    ShellShardSource,
    accumulate_vertex_normals,
    assemble_canonical_shards,
    build_canonical_shard_set,
    cell_volume,
    index_dtype,
)
from cubeshatter.src.generation.config import GenerationSeeds, random_source
from cubeshatter.src.generation.core_clusters import CoreShardCluster
from cubeshatter.src.generation.core_grid import build_core_jitter_grid, build_volume_cells
from cubeshatter.src.generation.report import GENERATED_SET_VOLUME_TOLERANCE, validate_canonical_shard_volume
from cubeshatter.src.generation.settings import load_destruction_settings
from cubeshatter.src.generation.shell_geometry import build_shell_shard_geometry
from cubeshatter.src.generation.shell_partition import partition_face
from cubeshatter.src.generation.shell_templates import build_shell_shard_templates
from cubeshatter.vector import Vector3


def _small_assembly():
    polygons = partition_face(Face.FRONT, random_source(3))
    templates = build_shell_shard_templates(polygons, random_source(4))[:2]
    geometries = [build_shell_shard_geometry(template, random_source(5)) for template in templates]
    cells = build_volume_cells(build_core_jitter_grid(random_source(6), divisions=2, jitter_amplitude=0.0))
    clusters = [CoreShardCluster(0, (0, 1, 2, 3)), CoreShardCluster(1, (4, 5, 6, 7))]
    return geometries, clusters, cells


# //1.- Shell shards come first, core shards follow, ids run from zero.
def test_assembly_orders_shell_before_core():
    geometries, clusters, cells = _small_assembly()
    shards = assemble_canonical_shards(geometries, clusters, cells)
    assert [shard.id for shard in shards] == [0, 1, 2, 3]
    assert [shard.material_kind for shard in shards] == [
        MaterialKind.OUTER_SKIN,
        MaterialKind.OUTER_SKIN,
        MaterialKind.INNER_ONLY,
        MaterialKind.INNER_ONLY,
    ]
    assert isinstance(shards[0].source, ShellShardSource)
    assert shards[0].source.face is Face.FRONT
    assert isinstance(shards[2].source, CoreShardSource)
    assert shards[3].source.cell_ids == (4, 5, 6, 7)


# //2.- Buffers are flat float32 arrays with compact 16-bit indices.
def test_buffers_use_compact_types():
    geometries, clusters, cells = _small_assembly()
    shards = assemble_canonical_shards(geometries, clusters, cells)
    for shard in shards:
        assert shard.positions.dtype == np.float32
        assert shard.normals.dtype == np.float32
        assert shard.uvs.dtype == np.float32
        assert shard.indices.dtype == np.uint16
        assert len(shard.positions) == len(shard.normals)
        assert len(shard.uvs) == shard.vertex_count * 2
        assert int(shard.indices.max()) < shard.vertex_count
        assert shard.approximate_volume > 0.0

    core = shards[2]
    assert core.vertex_count == 4 * 8
    assert core.triangle_count == 4 * 12
    assert not core.uvs.any()
    assert core.approximate_volume == pytest.approx(sum(cell_volume(cells[i]) for i in range(4)))


def test_index_dtype_widens_past_sixteen_bits():
    assert index_dtype(65535) is np.uint16
    assert index_dtype(70000) is np.uint32


# //3.- Core hexahedra get outward pointing normals at their corners.
def test_core_corner_normals_point_outward():
    geometries, clusters, cells = _small_assembly()
    core = assemble_canonical_shards([], clusters[:1], cells)[0]
    normals = core.normals.reshape(-1, 3)
    corner = normals[0]
    assert np.linalg.norm(corner) == pytest.approx(1.0, abs=1e-5)
    expected = -np.ones(3) / np.sqrt(3.0)
    assert corner == pytest.approx(expected, abs=1e-5)


def test_accumulate_vertex_normals_on_single_triangle():
    positions = np.array([0, 0, 0, 1, 0, 0, 0, 1, 0], dtype=np.float32)
    indices = np.array([0, 1, 2], dtype=np.uint16)
    normals = accumulate_vertex_normals(positions, indices)
    assert normals.shape == (3, 3)
    for normal in normals:
        assert normal == pytest.approx([0.0, 0.0, 1.0])


# //4.- The full pipeline yields a lookup-able set whose volume roughly fills the cube.
def test_build_canonical_shard_set_from_derived_seeds():
    shard_set = build_canonical_shard_set(GenerationSeeds.derived(11))
    shards = shard_set.shards
    assert [shard.id for shard in shards] == list(range(len(shards)))
    shell_count = len(shard_set.shell_templates)
    assert shell_count > 0
    assert all(shard.material_kind is MaterialKind.OUTER_SKIN for shard in shards[:shell_count])
    assert all(shard.material_kind is MaterialKind.INNER_ONLY for shard in shards[shell_count:])
    assert len(shards) - shell_count == len(shard_set.clusters)
    assert len(shard_set.bindings) == len(shard_set.clusters)
    check = validate_canonical_shard_volume(shards, tolerance=GENERATED_SET_VOLUME_TOLERANCE)
    assert check.ok
    assert check.total_volume > 1.0
    assert shard_set.shard(0) is shards[0]
    with pytest.raises(KeyError):
        shard_set.shard(len(shards))


# //5.- A thinner configured shell yields shallower wedges and a wider core lattice.
def test_build_canonical_shard_set_with_thin_shell(tmp_path):
    config_dir = tmp_path / "config"
    shutil.copytree(Path(__file__).resolve().parents[1] / "config", config_dir)
    shell_path = config_dir / "shell.json"
    payload = json.loads(shell_path.read_text(encoding="utf-8"))
    payload.update(shell_depth=0.15, depth_min=0.08, depth_max=0.15)
    shell_path.write_text(json.dumps(payload), encoding="utf-8")
    settings = load_destruction_settings(str(config_dir))
    assert settings.shell.core_half == pytest.approx(0.35)

    shard_set = build_canonical_shard_set(GenerationSeeds.derived(4), settings)
    assert all(0.08 <= template.depth_inner <= 0.15 for template in shard_set.shell_templates)
    for shard in shard_set.shards[: len(shard_set.shell_templates)]:
        points = shard.positions.reshape(-1, 3).astype(np.float64)
        for point in points:
            depth = cube_to_face(shard.source.face, Vector3(*point))[2]
            assert depth <= 0.15 + 1e-5

    # boundary lattice nodes sit at +/-0.35 before jitter of at most 0.18 * 0.14
    extent = max(abs(value) for cell in shard_set.cells for corner in cell.corners for value in corner.as_tuple())
    assert 0.32 < extent <= 0.35 + 0.0252 + 1e-9
