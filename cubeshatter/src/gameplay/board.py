"""Cylindrical board state and its mapping onto tower world positions."""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .vector import UP, Quaternion, Vector3, quat_from_axis_angle

DEFAULT_BLOCK_SIZE = 1.0
DEFAULT_BLOCK_DEPTH_RATIO = 0.9
DEFAULT_CIRCUMFERENTIAL_GAP_RATIO = 0.03


# //1.- Content of one board cell.
class CellContent(str, Enum):
    EMPTY = "empty"
    BLOCK = "block"


# //2.- Wrap a column index into [0, width).
def wrap_x(x: int, width: int) -> int:
    return x % width


def _ensure_integer(value: object, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise ValueError(f"Board coordinate {name} must be an integer, got {value}")
    return value


# //3.- Row-major grid whose columns wrap around the tower.
class Board:
    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("Board dimensions must be positive")
        self.width = int(width)
        self.height = int(height)
        self._cells: List[CellContent] = [CellContent.EMPTY] * (self.width * self.height)

    def _index(self, x: int, y: int) -> int:
        x = _ensure_integer(x, "x")
        y = _ensure_integer(y, "y")
        if y < 0 or y >= self.height:
            raise ValueError(f"Y coordinate out of bounds: {y}")
        return y * self.width + wrap_x(x, self.width)

    def get_cell(self, x: int, y: int) -> CellContent:
        return self._cells[self._index(x, y)]

    def set_cell(self, x: int, y: int, content: CellContent = CellContent.BLOCK) -> None:
        self._cells[self._index(x, y)] = CellContent(content)

    def ensure_valid_row(self, y: int) -> int:
        y = _ensure_integer(y, "y")
        if y < 0 or y >= self.height:
            raise ValueError(f"Level {y} is outside of board bounds [0, {self.height - 1}]")
        return y

    def is_layer_full(self, y: int) -> bool:
        row = self.ensure_valid_row(y)
        start = row * self.width
        return all(cell is CellContent.BLOCK for cell in self._cells[start : start + self.width])

    def clear_layer(self, y: int) -> None:
        row = self.ensure_valid_row(y)
        start = row * self.width
        for index in range(start, start + self.width):
            self._cells[index] = CellContent.EMPTY

    def clone(self) -> "Board":
        copy = Board(self.width, self.height)
        copy._cells = list(self._cells)
        return copy


# //4.- Tower circumference fits ``width`` blocks plus their gaps.
def calculate_tower_radius(board_width: int, block_size: float, gap: float = 0.0) -> float:
    if board_width <= 0:
        raise ValueError("Board width must be positive to calculate tower radius")
    if block_size <= 0:
        raise ValueError("block_size must be positive to calculate tower radius")
    if gap < 0:
        raise ValueError("gap must be non-negative to calculate tower radius")
    return board_width * (block_size + gap) / (2.0 * math.pi)


# //5.- Resolved block dimensions and tower layout.
@dataclass(frozen=True)
class BoardRenderConfig:
    block_size: float
    block_depth: float
    tower_radius: float
    vertical_spacing: float
    circumferential_gap: float


def create_board_render_config(
    width: int,
    height: int,
    *,
    block_size: float = DEFAULT_BLOCK_SIZE,
    block_depth: Optional[float] = None,
    vertical_spacing: Optional[float] = None,
    circumferential_gap: Optional[float] = None,
    tower_radius: Optional[float] = None,
) -> BoardRenderConfig:
    if width <= 0 or height <= 0:
        raise ValueError("Board dimensions must be positive to build render config")
    if block_size <= 0:
        raise ValueError("block_size must be positive")
    depth = block_size * DEFAULT_BLOCK_DEPTH_RATIO if block_depth is None else block_depth
    if depth <= 0:
        raise ValueError("block_depth must be positive")
    spacing = block_size if vertical_spacing is None else vertical_spacing
    if spacing <= 0:
        raise ValueError("vertical_spacing must be positive")
    gap = block_size * DEFAULT_CIRCUMFERENTIAL_GAP_RATIO if circumferential_gap is None else circumferential_gap
    if gap < 0:
        raise ValueError("circumferential_gap must be non-negative")
    radius = calculate_tower_radius(width, block_size, gap) if tower_radius is None else tower_radius
    if radius <= 0:
        raise ValueError("tower_radius must be positive")
    return BoardRenderConfig(
        block_size=block_size,
        block_depth=depth,
        tower_radius=radius,
        vertical_spacing=spacing,
        circumferential_gap=gap,
    )


# //6.- Map (x, y) cells onto the tower: x wraps around the circumference, y grows upward.
class BoardToWorldMapper:
    def __init__(self, width: int, height: int, config: Optional[BoardRenderConfig] = None) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("Board dimensions must be positive")
        self.width = int(width)
        self.height = int(height)
        self.config = config or create_board_render_config(self.width, self.height)

    @classmethod
    def for_board(cls, board: Board, config: Optional[BoardRenderConfig] = None) -> "BoardToWorldMapper":
        return cls(board.width, board.height, config)

    def column_angle(self, x: int) -> float:
        return 2.0 * math.pi * wrap_x(_ensure_integer(x, "x"), self.width) / self.width

    def cell_to_world_position(self, x: int, y: int) -> Vector3:
        x = _ensure_integer(x, "x")
        y = _ensure_integer(y, "y")
        if y < 0 or y >= self.height:
            raise ValueError(f"Board y={y} is outside vertical bounds [0, {self.height - 1}]")
        angle = self.column_angle(x)
        radius = self.config.tower_radius
        return (math.cos(angle) * radius, y * self.config.vertical_spacing, math.sin(angle) * radius)

    # Orients a cube so its +z face looks away from the tower axis.
    def radial_orientation(self, x: int) -> Quaternion:
        return quat_from_axis_angle(UP, math.pi / 2.0 - self.column_angle(x))

    def get_block_size(self) -> float:
        return self.config.block_size

    def get_block_depth(self) -> float:
        return self.config.block_depth

    def get_vertical_spacing(self) -> float:
        return self.config.vertical_spacing

    def get_tower_radius(self) -> float:
        return self.config.tower_radius
