from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Dict, List, Tuple

import numpy as np


class TetrominoType(IntEnum):
    """Piece types; the value doubles as the cell color index."""

    I = 1
    O = 2
    T = 3
    S = 4
    Z = 5
    J = 6
    L = 7


Shape = np.ndarray

ROTATION_STATES = 4


def _frozen(rows) -> Shape:
    arr = np.array(rows, dtype=np.int8)
    arr.setflags(write=False)
    return arr


def rotate_cw(shape: Shape) -> Shape:
    """Rotate a square shape 90 degrees clockwise: reverse the columns of its transpose."""
    return _frozen(np.ascontiguousarray(shape.T[:, ::-1]))


def rotate_180(shape: Shape) -> Shape:
    return _frozen(np.ascontiguousarray(shape[::-1, ::-1]))


BASE_SHAPES: Dict[TetrominoType, Shape] = {
    TetrominoType.I: _frozen([[0, 0, 0, 0], [1, 1, 1, 1], [0, 0, 0, 0], [0, 0, 0, 0]]),
    TetrominoType.O: _frozen([[1, 1], [1, 1]]),
    TetrominoType.T: _frozen([[0, 1, 0], [1, 1, 1], [0, 0, 0]]),
    TetrominoType.S: _frozen([[0, 1, 1], [1, 1, 0], [0, 0, 0]]),
    TetrominoType.Z: _frozen([[1, 1, 0], [0, 1, 1], [0, 0, 0]]),
    TetrominoType.J: _frozen([[1, 0, 0], [1, 1, 1], [0, 0, 0]]),
    TetrominoType.L: _frozen([[0, 0, 1], [1, 1, 1], [0, 0, 0]]),
}


def _build_catalog() -> Dict[TetrominoType, Tuple[Shape, ...]]:
    catalog: Dict[TetrominoType, Tuple[Shape, ...]] = {}
    for kind, base in BASE_SHAPES.items():
        states: List[Shape] = [base]
        for _ in range(ROTATION_STATES - 1):
            states.append(rotate_cw(states[-1]))
        catalog[kind] = tuple(states)
    return catalog


# SHAPES[kind][rotation] -> read-only matrix
SHAPES = _build_catalog()


def get_shape(kind: TetrominoType, rotation: int = 0) -> Shape:
    return SHAPES[TetrominoType(kind)][rotation % ROTATION_STATES]


def color_index(kind: TetrominoType) -> int:
    return int(TetrominoType(kind))


def normalize_rotation(rotation: int) -> int:
    return rotation % ROTATION_STATES


@dataclass(frozen=True)
class Piece:
    """The active piece: type, top-left anchor of its shape matrix, rotation state."""

    kind: TetrominoType
    x: int = 0
    y: int = 0
    rotation: int = 0  # 0..3, clockwise increasing

    @property
    def shape(self) -> Shape:
        return get_shape(self.kind, self.rotation)

    @property
    def position(self) -> Tuple[int, int]:
        return self.x, self.y

    @property
    def color(self) -> int:
        return color_index(self.kind)

    def moved(self, dx: int, dy: int) -> "Piece":
        return replace(self, x=self.x + dx, y=self.y + dy)

    def at(self, x: int, y: int) -> "Piece":
        return replace(self, x=x, y=y)

    def rotated(self, delta: int) -> "Piece":
        return replace(self, rotation=normalize_rotation(self.rotation + delta))

    def cells_at(self, origin_x: int, origin_y: int) -> List[Tuple[int, int]]:
        s = self.shape
        h, w = s.shape
        cells: List[Tuple[int, int]] = []
        for dy in range(h):
            for dx in range(w):
                if s[dy, dx]:
                    cells.append((origin_x + dx, origin_y + dy))
        return cells

    def cells(self) -> List[Tuple[int, int]]:
        return self.cells_at(self.x, self.y)


def spawn_piece(kind: TetrominoType, board_width: int = 10, spawn_y: int = 0) -> Piece:
    """Place a fresh piece at rotation 0, horizontally centred on the board."""
    kind = TetrominoType(kind)
    width = BASE_SHAPES[kind].shape[1]
    return Piece(kind=kind, x=board_width // 2 - width // 2, y=spawn_y, rotation=0)
