from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

import numpy as np

from .errors import InvalidRotationError
from .grid import BoardEngine, Coordinate, GameGrid
from .pieces import Piece, TetrominoType, get_shape, normalize_rotation


Offset = Tuple[int, int]

# SRS kick data in Guideline notation: +x is right, +y is up.
_JLSTZ_KICKS: Dict[Tuple[int, int], Tuple[Offset, ...]] = {
    (0, 1): ((0, 0), (-1, 0), (-1, 1), (0, -2), (-1, -2)),
    (1, 0): ((0, 0), (1, 0), (1, -1), (0, 2), (1, 2)),
    (1, 2): ((0, 0), (1, 0), (1, -1), (0, 2), (1, 2)),
    (2, 1): ((0, 0), (-1, 0), (-1, 1), (0, -2), (-1, -2)),
    (2, 3): ((0, 0), (1, 0), (1, 1), (0, -2), (1, -2)),
    (3, 2): ((0, 0), (-1, 0), (-1, -1), (0, 2), (-1, 2)),
    (3, 0): ((0, 0), (-1, 0), (-1, -1), (0, 2), (-1, 2)),
    (0, 3): ((0, 0), (1, 0), (1, 1), (0, -2), (1, -2)),
}

_I_KICKS: Dict[Tuple[int, int], Tuple[Offset, ...]] = {
    (0, 1): ((0, 0), (-2, 0), (1, 0), (-2, -1), (1, 2)),
    (1, 0): ((0, 0), (2, 0), (-1, 0), (2, 1), (-1, -2)),
    (1, 2): ((0, 0), (-1, 0), (2, 0), (-1, 2), (2, -1)),
    (2, 1): ((0, 0), (1, 0), (-2, 0), (1, -2), (-2, 1)),
    (2, 3): ((0, 0), (2, 0), (-1, 0), (2, 1), (-1, -2)),
    (3, 2): ((0, 0), (-2, 0), (1, 0), (-2, -1), (1, 2)),
    (3, 0): ((0, 0), (1, 0), (-2, 0), (1, -2), (-2, 1)),
    (0, 3): ((0, 0), (-1, 0), (2, 0), (-1, 2), (2, -1)),
}

# 180 degree kicks, shared by every piece except O
_HALF_TURN_KICKS: Dict[Tuple[int, int], Tuple[Offset, ...]] = {
    (0, 2): ((0, 0), (0, 1), (1, 1), (-1, 1), (1, 0), (-1, 0)),
    (2, 0): ((0, 0), (0, -1), (-1, -1), (1, -1), (-1, 0), (1, 0)),
    (1, 3): ((0, 0), (1, 0), (1, 2), (1, 1), (0, 2), (0, 1)),
    (3, 1): ((0, 0), (-1, 0), (-1, 2), (-1, 1), (0, 2), (0, 1)),
}

_NO_KICK: Tuple[Offset, ...] = ((0, 0),)


def _to_board_space(table: Dict[Tuple[int, int], Tuple[Offset, ...]]) -> Dict[Tuple[int, int], Tuple[Offset, ...]]:
    # board rows grow downward
    return {key: tuple((dx, -dy) for dx, dy in offsets) for key, offsets in table.items()}


JLSTZ_KICKS = _to_board_space({**_JLSTZ_KICKS, **_HALF_TURN_KICKS})
I_KICKS = _to_board_space({**_I_KICKS, **_HALF_TURN_KICKS})


def offsets_for(kind: TetrominoType, from_rotation: int, to_rotation: int) -> Tuple[Offset, ...]:
    """Ordered (dx, dy) candidates in board coordinates (y grows downward)."""
    key = (normalize_rotation(from_rotation), normalize_rotation(to_rotation))
    if key[0] == key[1]:
        raise InvalidRotationError(f"No rotation between states {key[0]} and {key[1]}")
    kind = TetrominoType(kind)
    if kind == TetrominoType.O:
        return _NO_KICK
    table = I_KICKS if kind == TetrominoType.I else JLSTZ_KICKS
    return table[key]


@dataclass(frozen=True)
class KickAttempt:
    offset: Offset
    position: Coordinate
    tested: bool


@dataclass(frozen=True)
class RotationOutcome:
    success: bool
    from_rotation: int
    to_rotation: int
    attempts: Tuple[KickAttempt, ...]
    piece: Optional[Piece] = None
    offset: Optional[Offset] = None
    failure_reason: Optional[str] = None  # "collision" or "out-of-bounds"

    @property
    def used_wall_kick(self) -> bool:
        return self.success and self.offset is not None and self.offset != (0, 0)

    @property
    def tested_attempts(self) -> Tuple[KickAttempt, ...]:
        return tuple(a for a in self.attempts if a.tested)


def _inside(grid: GameGrid, shape: np.ndarray, anchor: Coordinate) -> bool:
    ys, xs = np.nonzero(shape)
    return all(grid.is_inside(anchor[0] + int(x), anchor[1] + int(y)) for y, x in zip(ys, xs))


def try_rotate(
    engine: BoardEngine,
    grid: GameGrid,
    piece: Piece,
    to_rotation: int,
    rotated_shape: Optional[np.ndarray] = None,
) -> RotationOutcome:
    """Try each kick offset in order and stop at the first valid placement."""
    to_rotation = normalize_rotation(to_rotation)
    if rotated_shape is None:
        rotated_shape = get_shape(piece.kind, to_rotation)
    offsets = offsets_for(piece.kind, piece.rotation, to_rotation)
    candidates = [(off, (piece.x + off[0], piece.y + off[1])) for off in offsets]

    any_inside = False
    for i, (off, pos) in enumerate(candidates):
        if engine.is_valid(grid, rotated_shape, pos):
            attempts = tuple(KickAttempt(o, p, tested=j <= i) for j, (o, p) in enumerate(candidates))
            return RotationOutcome(
                success=True,
                from_rotation=piece.rotation,
                to_rotation=to_rotation,
                attempts=attempts,
                piece=replace(piece, x=pos[0], y=pos[1], rotation=to_rotation),
                offset=off,
            )
        any_inside = any_inside or _inside(grid, rotated_shape, pos)

    return RotationOutcome(
        success=False,
        from_rotation=piece.rotation,
        to_rotation=to_rotation,
        attempts=tuple(KickAttempt(o, p, tested=True) for o, p in candidates),
        failure_reason="collision" if any_inside else "out-of-bounds",
    )
