"""Per-frame destruction lifecycle: launching scheduled cubes, stepping them and reporting what to draw."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple, TypeVar

from ..generation.config import RandomSource
from .fragments import CubeDestructionSim, CubeVisual, create_cube_destruction_sim
from .physics import DEFAULT_FRAGMENT_PHYSICS, FragmentPhysicsConfig, update_cube_destruction_sim
from .schedule import DestructionSimulationState, RowDestructionSim, active_cubes_by_level
from .shard_fragments import ShardGeometryResource, spawn_fragments_from_library
from .spawning import pick_pattern, spawn_fragments_for_cube
from .vector import ZERO, Vector3

LOGGER = logging.getLogger(__name__)

GameState = TypeVar("GameState")


# //1.- The row with the cube's slot started plus the cube's new simulation.
@dataclass(frozen=True)
class CubeExplosionStart:
    row: RowDestructionSim
    sim: CubeDestructionSim


# //2.- Explode one scheduled cube; the given row is left untouched.
def start_cube_explosion(
    row: RowDestructionSim,
    cube_index: int,
    started_at_ms: float,
    rnd: RandomSource,
    *,
    library: Optional[Sequence[ShardGeometryResource]] = None,
    tower_center: Vector3 = ZERO,
) -> CubeExplosionStart:
    if row.slot_for(cube_index) is None:
        raise ValueError(f"No explosion slot for cube index {cube_index}")
    if cube_index < 0 or cube_index >= len(row.cubes):
        raise ValueError(f"Cube index {cube_index} out of range for level {row.level}")
    cube = row.cubes[cube_index]
    if library:
        fragments = spawn_fragments_from_library(
            cube, row.cube_size, library, row.preset, rnd, tower_center=tower_center
        )
    else:
        fragments = spawn_fragments_for_cube(
            cube, row.cube_size, pick_pattern(rnd), row.preset, rnd, tower_center=tower_center
        )
    LOGGER.debug("Cube %s exploded at %.0f ms with %d fragments", cube.id.key(), started_at_ms, len(fragments))
    return CubeExplosionStart(
        row=row.with_slot_started(cube_index),
        sim=create_cube_destruction_sim(cube, tuple(fragments), started_at_ms),
    )


# //3.- A cube stays intact until its slot has started; cubes without a slot always render.
def should_render_whole_cube(row: RowDestructionSim, cube_index: int) -> bool:
    slot = row.slot_for(cube_index)
    if slot is None:
        return True
    return not slot.started


@dataclass(frozen=True)
class LaunchResult:
    state: DestructionSimulationState
    started: Tuple[CubeDestructionSim, ...]


# //4.- Start every slot whose time has come; rows that changed are replaced, never edited.
def launch_scheduled_explosions(
    state: DestructionSimulationState,
    now_ms: float,
    rnd: RandomSource,
    *,
    library: Optional[Sequence[ShardGeometryResource]] = None,
    tower_center: Vector3 = ZERO,
) -> LaunchResult:
    started: List[CubeDestructionSim] = []
    per_level: Dict[int, RowDestructionSim] = {}
    for level, row in state.rows.per_level.items():
        due = [slot.cube_index for slot in row.explosions if not slot.started and now_ms >= slot.start_time_ms]
        for cube_index in due:
            start = start_cube_explosion(row, cube_index, now_ms, rnd, library=library, tower_center=tower_center)
            row = start.row
            started.append(start.sim)
        per_level[level] = row
    if not started:
        return LaunchResult(state=state, started=())
    rows = replace(state.rows, per_level=per_level)
    next_state = replace(state, rows=rows, active_cubes=state.active_cubes + tuple(started))
    return LaunchResult(state=next_state, started=tuple(started))


@dataclass(frozen=True)
class SimulationStepResult:
    state: DestructionSimulationState
    updated_cubes: Tuple[CubeDestructionSim, ...]


def _rows_with_completion_flags(
    per_level: Dict[int, RowDestructionSim],
    active: Sequence[CubeDestructionSim],
) -> Dict[int, RowDestructionSim]:
    grouped = active_cubes_by_level(active)
    flagged: Dict[int, RowDestructionSim] = {}
    for level, row in per_level.items():
        completed = all(slot.started for slot in row.explosions) and not grouped.get(row.level)
        flagged[level] = row if row.all_cubes_exploded == completed else replace(row, all_cubes_exploded=completed)
    return flagged


# //5.- Advance every active cube, drop finished ones and return a state with fresh row and scenario flags.
def step_destruction_simulations(
    state: DestructionSimulationState,
    dt_ms: float,
    config: FragmentPhysicsConfig = DEFAULT_FRAGMENT_PHYSICS,
) -> SimulationStepResult:
    updated: List[CubeDestructionSim] = []
    for sim in state.active_cubes:
        next_sim = update_cube_destruction_sim(sim, dt_ms, config)
        if not next_sim.finished:
            updated.append(next_sim)
    per_level = _rows_with_completion_flags(state.rows.per_level, updated)
    all_finished = all(row.all_cubes_exploded for row in per_level.values())
    if all_finished and not state.rows.finished:
        LOGGER.info("Line destruction finished for levels %s", state.rows.levels)
    rows = replace(state.rows, per_level=per_level, finished=all_finished)
    next_state = replace(state, rows=rows, active_cubes=tuple(updated))
    return SimulationStepResult(state=next_state, updated_cubes=tuple(updated))


# //6.- Hand the game state to ``finish`` once every row has finished.
def complete_line_destruction_if_finished(
    game: GameState,
    state: DestructionSimulationState,
    finish: Callable[[GameState], GameState],
) -> Tuple[GameState, bool]:
    if not state.rows.finished:
        return game, False
    return finish(game), True


# //7.- Cubes that should still be drawn as intact blocks this frame.
def get_whole_cubes_to_render(row: RowDestructionSim) -> List[CubeVisual]:
    return [cube for index, cube in enumerate(row.cubes) if should_render_whole_cube(row, index)]


# //8.- "x:y" keys of cubes already replaced by fragments.
def get_hidden_cube_ids(row: RowDestructionSim) -> Set[str]:
    return {cube.id.key() for index, cube in enumerate(row.cubes) if not should_render_whole_cube(row, index)}
