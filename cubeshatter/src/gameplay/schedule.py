"""Row explosion schedules and the line destruction scenario built from a board."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

from .board import Board, BoardToWorldMapper, CellContent
from .fragments import CellId, CubeDestructionSim, CubeSize, CubeVisual
from .presets import ULTRA, DestructionPreset

LOGGER = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 45.0


# //1.- When one cube of a row should explode and whether it already did.
@dataclass(frozen=True)
class CubeExplosionSlot:
    cube_index: int
    start_time_ms: float
    started: bool = False


# //2.- One destroyed level: cubes ordered around the tower and their schedule.
@dataclass(frozen=True)
class RowDestructionSim:
    level: int
    cubes: Tuple[CubeVisual, ...]
    explosions: Tuple[CubeExplosionSlot, ...]
    cube_size: CubeSize
    preset: DestructionPreset
    all_cubes_exploded: bool = False

    def slot_for(self, cube_index: int) -> Optional[CubeExplosionSlot]:
        for slot in self.explosions:
            if slot.cube_index == cube_index:
                return slot
        return None

    def with_slot_started(self, cube_index: int) -> RowDestructionSim:
        """Return a copy of the row whose slot for ``cube_index`` is marked started."""
        if self.slot_for(cube_index) is None:
            raise ValueError(f"No explosion slot for cube index {cube_index}")
        explosions = tuple(
            replace(slot, started=True) if slot.cube_index == cube_index else slot for slot in self.explosions
        )
        return replace(self, explosions=explosions)


# //3.- All levels cleared by one event plus scenario-wide timing flags.
@dataclass(frozen=True)
class LineDestructionScenario:
    levels: Tuple[int, ...]
    per_level: Dict[int, RowDestructionSim] = field(default_factory=dict)
    started_at_ms: float = 0.0
    finished: bool = False


# //4.- Scenario plus the cube simulations currently in flight.
@dataclass(frozen=True)
class DestructionSimulationState:
    rows: LineDestructionScenario
    active_cubes: Tuple[CubeDestructionSim, ...] = ()


def create_destruction_simulation_state(rows: LineDestructionScenario) -> DestructionSimulationState:
    return DestructionSimulationState(rows=rows, active_cubes=())


# //5.- Uniform step wave: cube i starts at start + i * delay.
def build_linear_explosion_wave(
    cubes: Sequence[CubeVisual],
    global_start_ms: float,
    delay_between_cubes_ms: float,
) -> Tuple[CubeExplosionSlot, ...]:
    if delay_between_cubes_ms <= 0:
        raise ValueError("delay_between_cubes_ms must be positive")
    return tuple(
        CubeExplosionSlot(cube_index=index, start_time_ms=global_start_ms + index * delay_between_cubes_ms)
        for index in range(len(cubes))
    )


def collect_cubes_for_level(board: Board, mapper: BoardToWorldMapper, level: int) -> Tuple[CubeVisual, ...]:
    row = board.ensure_valid_row(level)
    return tuple(
        CubeVisual(id=CellId(x, row), world_pos=mapper.cell_to_world_position(x, row))
        for x in range(board.width)
        if board.get_cell(x, row) is CellContent.BLOCK
    )


def build_row_simulation(
    board: Board,
    mapper: BoardToWorldMapper,
    level: int,
    started_at_ms: float,
    delay_between_cubes_ms: float,
    preset: DestructionPreset,
) -> RowDestructionSim:
    cubes = collect_cubes_for_level(board, mapper, level)
    size = CubeSize(mapper.get_block_size(), mapper.get_block_size(), mapper.get_block_depth())
    return RowDestructionSim(
        level=level,
        cubes=cubes,
        explosions=build_linear_explosion_wave(cubes, started_at_ms, delay_between_cubes_ms),
        cube_size=size,
        preset=preset,
    )


# //6.- Schedule every requested level; duplicate levels are dropped keeping first occurrence order.
def start_line_destruction_from_board(
    board: Board,
    mapper: BoardToWorldMapper,
    levels: Sequence[int],
    started_at_ms: float,
    *,
    delay_between_cubes_ms: float = DEFAULT_DELAY_MS,
    preset: DestructionPreset = ULTRA,
) -> DestructionSimulationState:
    if delay_between_cubes_ms <= 0:
        raise ValueError("delay_between_cubes_ms must be positive")
    if not levels:
        raise ValueError("At least one level must be provided to start line destruction")
    normalized = tuple(dict.fromkeys(levels))
    per_level = {
        level: build_row_simulation(board, mapper, level, started_at_ms, delay_between_cubes_ms, preset)
        for level in normalized
    }
    scenario = LineDestructionScenario(levels=normalized, per_level=per_level, started_at_ms=started_at_ms)
    LOGGER.info(
        "Line destruction scheduled for levels %s at %.0f ms (%d cubes)",
        normalized,
        started_at_ms,
        sum(len(row.cubes) for row in scenario.per_level.values()),
    )
    return create_destruction_simulation_state(scenario)


def get_default_destruction_delay_ms() -> float:
    return DEFAULT_DELAY_MS


def active_cubes_by_level(active: Sequence[CubeDestructionSim]) -> Dict[int, List[CubeDestructionSim]]:
    grouped: Dict[int, List[CubeDestructionSim]] = {}
    for sim in active:
        grouped.setdefault(sim.cube.id.y, []).append(sim)
    return grouped
