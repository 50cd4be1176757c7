from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .grid import Coordinate, GameGrid
from .kicks import RotationOutcome
from .pieces import Piece, TetrominoType


class SpinType(str, Enum):
    NONE = "none"
    MINI = "mini"
    NORMAL = "normal"


@dataclass(frozen=True)
class SpinResult:
    kind: SpinType = SpinType.NONE
    corners_filled: int = 0
    front_corners_filled: int = 0
    used_wall_kick: bool = False
    last_move_was_rotation: bool = False

    @property
    def is_spin(self) -> bool:
        return self.kind != SpinType.NONE


NO_SPIN = SpinResult()

# Corner offsets from the pivot, in the order top-left, top-right, bottom-left, bottom-right.
_CORNERS: Tuple[Coordinate, ...] = ((-1, -1), (1, -1), (-1, 1), (1, 1))

# Corners on the side the T's point faces, per rotation state.
_FRONT_CORNERS = {
    0: ((-1, -1), (1, -1)),
    1: ((1, -1), (1, 1)),
    2: ((-1, 1), (1, 1)),
    3: ((-1, -1), (-1, 1)),
}


def pivot(piece: Piece) -> Coordinate:
    """The T's centre cell sits at (1, 1) of its 3x3 matrix in every rotation."""
    return piece.x + 1, piece.y + 1


def corner_positions(piece: Piece) -> Tuple[Coordinate, ...]:
    cx, cy = pivot(piece)
    return tuple((cx + dx, cy + dy) for dx, dy in _CORNERS)


def front_corner_positions(piece: Piece) -> Tuple[Coordinate, ...]:
    cx, cy = pivot(piece)
    return tuple((cx + dx, cy + dy) for dx, dy in _FRONT_CORNERS[piece.rotation])


def classify(front_corners_filled: int, used_wall_kick: bool) -> SpinType:
    if front_corners_filled == 1 or not used_wall_kick:
        return SpinType.MINI
    return SpinType.NORMAL


def detect_spin(grid: GameGrid, piece: Piece, outcome: RotationOutcome) -> SpinResult:
    """Classify a rotation with the 3-corner rule.

    ``piece`` is the piece after the rotation (normally ``outcome.piece``) and
    ``grid`` the board it sits on, without the piece stamped. Out-of-bounds
    corners count as filled.
    """
    if piece.kind != TetrominoType.T or not outcome.success:
        return NO_SPIN

    filled = sum(1 for x, y in corner_positions(piece) if grid.is_occupied(x, y))
    if filled < 3:
        return SpinResult(SpinType.NONE, corners_filled=filled, last_move_was_rotation=True)

    used_wall_kick = outcome.used_wall_kick
    front = sum(1 for x, y in front_corner_positions(piece) if grid.is_occupied(x, y))
    return SpinResult(
        kind=classify(front, used_wall_kick),
        corners_filled=filled,
        front_corners_filled=front,
        used_wall_kick=used_wall_kick,
        last_move_was_rotation=True,
    )
