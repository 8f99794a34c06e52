"""Tests for launching, stepping and completing line destruction."""
from __future__ import annotations

import pytest

from cubeshatter.src.gameplay.board import Board, BoardToWorldMapper
from cubeshatter.src.gameplay.fragments import FragmentMaterial
from cubeshatter.src.gameplay.lifecycle import (
    complete_line_destruction_if_finished,
    get_hidden_cube_ids,
    get_whole_cubes_to_render,
    launch_scheduled_explosions,
    should_render_whole_cube,
    start_cube_explosion,
    step_destruction_simulations,
)
from cubeshatter.src.gameplay.schedule import start_line_destruction_from_board
from cubeshatter.src.gameplay.shard_fragments import ShardGeometryResource
from cubeshatter.src.generation.config import random_source


def _state(levels=(1,)):
    board = Board(3, 4)
    board.set_cell(0, 1)
    board.set_cell(2, 1)
    board.set_cell(1, 2)
    mapper = BoardToWorldMapper.for_board(board)
    return start_line_destruction_from_board(board, mapper, list(levels), 500.0)


# //1.- Cubes render whole until their slot starts, then hide behind their fragments.
def test_start_cube_explosion_hides_cube():
    state = _state()
    row = state.rows.per_level[1]
    assert should_render_whole_cube(row, 0)
    assert should_render_whole_cube(row, 7)
    start = start_cube_explosion(row, 0, 500.0, random_source(1))
    sim = start.sim
    assert sim.cube is row.cubes[0]
    assert sim.started_at_ms == 500.0
    assert len(sim.fragments) > 0
    assert should_render_whole_cube(row, 0)
    assert not should_render_whole_cube(start.row, 0)
    assert get_hidden_cube_ids(start.row) == {"0:1"}
    assert [cube.id.x for cube in get_whole_cubes_to_render(start.row)] == [2]
    with pytest.raises(ValueError):
        start_cube_explosion(row, 5, 500.0, random_source(1))


def test_start_cube_explosion_with_library():
    state = _state()
    row = state.rows.per_level[1]
    library = [
        ShardGeometryResource(
            template_id=index,
            geometry=None,
            local_center=(0.0, 0.0, 0.1 * index),
            local_volume=0.1,
            material=FragmentMaterial.FACE,
        )
        for index in range(4)
    ]
    sim = start_cube_explosion(row, 1, 545.0, random_source(2), library=library).sim
    assert len(sim.fragments) == 4
    assert {fragment.template_id for fragment in sim.fragments} == {0, 1, 2, 3}


# //2.- Launching only starts slots whose time has come.
def test_launch_follows_schedule():
    state = _state()
    launched = launch_scheduled_explosions(state, 499.0, random_source(3))
    assert launched.started == ()

    launched = launch_scheduled_explosions(state, 500.0, random_source(3))
    assert len(launched.started) == 1
    assert len(launched.state.active_cubes) == 1
    row = launched.state.rows.per_level[1]
    assert [slot.started for slot in row.explosions] == [True, False]

    launched = launch_scheduled_explosions(launched.state, 545.0, random_source(4))
    assert len(launched.started) == 1
    assert len(launched.state.active_cubes) == 2
    assert get_hidden_cube_ids(launched.state.rows.per_level[1]) == {"0:1", "2:1"}
    assert get_hidden_cube_ids(row) == {"0:1"}


# //3.- Stepping past every lifetime drains the cubes and finishes the scenario.
def test_step_until_finished():
    state = _state(levels=(1, 2))
    state = launch_scheduled_explosions(state, 10000.0, random_source(5)).state
    assert len(state.active_cubes) == 3

    step = step_destruction_simulations(state, 16.0)
    assert len(step.updated_cubes) == 3
    assert not step.state.rows.finished
    assert not step.state.rows.per_level[1].all_cubes_exploded

    step = step_destruction_simulations(step.state, 6000.0)
    assert step.updated_cubes == ()
    assert step.state.active_cubes == ()
    assert step.state.rows.finished
    assert all(row.all_cubes_exploded for row in step.state.rows.per_level.values())


def test_pending_slots_keep_scenario_running():
    state = _state()
    state = launch_scheduled_explosions(state, 500.0, random_source(6)).state
    step = step_destruction_simulations(state, 6000.0)
    assert step.state.active_cubes == ()
    assert not step.state.rows.finished


# //4.- The finish callback only runs once the scenario is done.
def test_complete_line_destruction_if_finished():
    state = _state()
    game = {"score": 0}

    def finish(current):
        return {"score": current["score"] + 100}

    same, done = complete_line_destruction_if_finished(game, state, finish)
    assert not done
    assert same is game

    state = launch_scheduled_explosions(state, 10000.0, random_source(7)).state
    state = step_destruction_simulations(state, 6000.0).state
    updated, done = complete_line_destruction_if_finished(game, state, finish)
    assert done
    assert updated == {"score": 100}


# //5.- Launching and stepping return new states and leave earlier snapshots as they were.
def test_launch_and_step_keep_previous_state_intact():
    before = _state()
    row_before = before.rows.per_level[1]
    assert len(get_whole_cubes_to_render(row_before)) == 2

    launched = launch_scheduled_explosions(before, 10000.0, random_source(8)).state
    assert len(get_whole_cubes_to_render(row_before)) == 2
    assert before.rows.per_level[1] is row_before
    assert not any(slot.started for slot in row_before.explosions)
    assert before.active_cubes == ()
    assert get_whole_cubes_to_render(launched.rows.per_level[1]) == []

    stepped = step_destruction_simulations(launched, 6000.0).state
    assert stepped.rows.finished
    assert stepped.rows.per_level[1].all_cubes_exploded
    assert not launched.rows.finished
    assert not launched.rows.per_level[1].all_cubes_exploded
    assert len(launched.active_cubes) == 2
    assert not before.rows.finished
    assert not row_before.all_cubes_exploded


def test_launch_with_nothing_due_returns_same_state():
    state = _state()
    launched = launch_scheduled_explosions(state, 0.0, random_source(9))
    assert launched.state is state
    assert launched.started == ()
