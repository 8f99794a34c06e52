"""Tests for the core volume partitioner and the face binder."""
from __future__ import annotations

import pytest

from cubeshatter.cube_space import CORE_HALF, FACE_ORDER, Face
from cubeshatter.src.generation.config import cycle_source, random_source
from cubeshatter.src.generation.core_bindings import (
    CoreShardBinding,
    CoreShardLayer,
    assert_core_bindings,
    build_core_shard_bindings,
    project_bounds_to_face,
    validate_core_bindings,
)
from cubeshatter.src.generation.core_clusters import (
    CoreShardCluster,
    are_neighbors,
    build_core_shard_clusters,
    cluster_cells,
    ensure_clusters_cover_cells,
    shuffled,
    validate_clusters,
)
from cubeshatter.src.generation.core_grid import (
    VolumeCell,
    build_core_jitter_grid,
    build_volume_cells,
    validate_volume_cells,
)
from cubeshatter.vector import Vector3


def _cycled_cells(divisions: int = 3):
    grid = build_core_jitter_grid(cycle_source([0.2, 0.4, 0.6]), divisions=divisions)
    return build_volume_cells(grid)


# //1.- Lattice sizes follow the division count.
def test_grid_and_cells_have_expected_counts():
    grid = build_core_jitter_grid(random_source(4), divisions=4)
    assert len(grid.nodes) == 5 ** 3
    assert grid.cell_size == pytest.approx(2.0 * CORE_HALF / 4)
    cells = build_volume_cells(grid)
    assert len(cells) == 4 ** 3
    assert [cell.id for cell in cells] == list(range(64))
    assert all(len(cell.corners) == 8 for cell in cells)


def test_unjittered_grid_stays_inside_core():
    grid = build_core_jitter_grid(random_source(1), divisions=3, jitter_amplitude=0.0)
    cells = build_volume_cells(grid)
    assert validate_volume_cells(cells).ok
    assert cells[0].corners[0].as_tuple() == pytest.approx((-CORE_HALF, -CORE_HALF, -CORE_HALF))
    assert cells[0].size_hint.as_tuple() == pytest.approx((0.2, 0.2, 0.2))


def test_build_core_jitter_grid_rejects_empty_core():
    with pytest.raises(ValueError):
        build_core_jitter_grid(random_source(1), core_half=0.0)


# //2.- Cycled seed values clustered with min 2 and max 4 cover every cell exactly once.
def test_cycled_clusters_cover_every_cell():
    cells = _cycled_cells()
    clusters = build_core_shard_clusters(cells, cycle_source([0.2, 0.4, 0.6]), min_size=2, max_size=4)
    assert validate_clusters(cells, clusters).ok
    assert all(cluster.size >= 2 for cluster in clusters)
    assert sum(cluster.size for cluster in clusters) == 27
    ensure_clusters_cover_cells(cells, clusters)


def test_random_clusters_meet_minimum_size():
    cells = build_volume_cells(build_core_jitter_grid(random_source(99)))
    clusters = build_core_shard_clusters(cells, random_source(100))
    assert validate_clusters(cells, clusters).ok
    assert all(cluster.size >= 3 for cluster in clusters)
    assert [cluster.id for cluster in clusters] == list(range(len(clusters)))


def _isolated_cells(count: int):
    cells = []
    for index in range(count):
        center = Vector3(10.0 * index, 0.0, 0.0)
        cells.append(VolumeCell(id=index, corners=(center,) * 8, center=center, size_hint=Vector3(1.0, 1.0, 1.0)))
    return cells


# Isolated seeds fill up from the end of the shuffled pool; the last straggler joins the previous cluster.
def test_undersized_clusters_borrow_from_pool_tail():
    cells = _isolated_cells(5)
    clusters = build_core_shard_clusters(cells, cycle_source([0.99]), min_size=2, max_size=2)
    assert [cluster.cell_ids for cluster in clusters] == [(0, 4), (1, 3, 2)]
    ensure_clusters_cover_cells(cells, clusters)


def test_validate_clusters_reports_duplicates_and_gaps():
    cells = _cycled_cells(2)
    duplicated = [CoreShardCluster(0, (0, 1, 2, 3)), CoreShardCluster(1, (3, 4, 5, 6, 7))]
    missing = [CoreShardCluster(0, (0, 1, 2, 3))]
    assert validate_clusters(cells, duplicated).reason == "duplicate cell assignment"
    assert validate_clusters(cells, missing).reason == "not all cells covered"
    with pytest.raises(ValueError):
        ensure_clusters_cover_cells(cells, missing)


def test_cluster_cells_rejects_unknown_ids():
    cells = _cycled_cells(2)
    with pytest.raises(KeyError):
        cluster_cells(CoreShardCluster(0, (0, 99)), cells)


def test_shuffled_keeps_items_and_input():
    items = [0, 1, 2, 3, 4]
    result = shuffled(items, random_source(2))
    assert sorted(result) == items
    assert items == [0, 1, 2, 3, 4]


def test_adjacent_cells_are_neighbors():
    cells = build_volume_cells(build_core_jitter_grid(random_source(1), divisions=3, jitter_amplitude=0.0))
    # Cell ids run z fastest, so 0 and 1 share a face while 0 and 26 sit on opposite corners.
    assert are_neighbors(cells[0], cells[1])
    assert not are_neighbors(cells[0], cells[26])


# //3.- Bindings carry normalized weights and a primary face from the heaviest footprint.
def test_bindings_validate_for_generated_clusters():
    cells = build_volume_cells(build_core_jitter_grid(random_source(31)))
    clusters = build_core_shard_clusters(cells, random_source(32))
    bindings = build_core_shard_bindings(clusters, cells)
    assert len(bindings) == len(clusters)
    assert validate_core_bindings(bindings).ok
    assert_core_bindings(bindings)
    for binding in bindings:
        assert len(binding.faces) == len(FACE_ORDER)
        assert sum(item.weight for item in binding.faces) == pytest.approx(1.0)
        assert binding.primary_face == binding.faces[0].face
        weights = [item.weight for item in binding.faces]
        assert weights == sorted(weights, reverse=True)


def test_corner_cluster_binds_to_outer_layer():
    cells = build_volume_cells(build_core_jitter_grid(random_source(1), divisions=3, jitter_amplitude=0.0))
    center_cell = 13
    bindings = build_core_shard_bindings([CoreShardCluster(0, (0,)), CoreShardCluster(1, (center_cell,))], cells)
    assert bindings[0].layer is CoreShardLayer.OUTER
    assert bindings[1].layer is CoreShardLayer.INNER
    # Back, left and bottom all touch the corner cell; ties keep the canonical face order.
    assert bindings[0].primary_face is Face.BACK
    assert bindings[0].footprint(Face.FRONT).weight < bindings[0].faces[0].weight


def test_project_bounds_to_front_face():
    rect = project_bounds_to_face(Vector3(-0.3, -0.3, 0.1), Vector3(0.0, 0.3, 0.3), Face.FRONT)
    assert (rect.u0, rect.v0, rect.u1, rect.v1) == pytest.approx((0.0, 0.0, 0.5, 1.0))


def test_validate_core_bindings_flags_bad_weights():
    cells = _cycled_cells(2)
    binding = build_core_shard_bindings([CoreShardCluster(0, tuple(range(8)))], cells)[0]
    broken = CoreShardBinding(
        cluster_id=binding.cluster_id,
        primary_face=binding.primary_face,
        layer=binding.layer,
        faces=binding.faces[:3],
    )
    assert not validate_core_bindings([broken]).ok
    with pytest.raises(ValueError):
        assert_core_bindings([broken])
    with pytest.raises(ValueError):
        build_core_shard_bindings([CoreShardCluster(0, (0,))], cells, core_half=0.0)
