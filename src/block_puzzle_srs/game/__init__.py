"""Game module for Block Puzzle SRS.

Exports the rules engine and supporting classes:
- GameGrid / BoardEngine: immutable board and its dense and bitmask strategies
- Piece / TetrominoType: tetromino catalog with SRS rotation states
- PieceBag: 7-bag randomizer
- offsets_for / try_rotate: SRS wall kicks
- detect_spin: T-Spin 3-corner rule
- ScoringRules / score_for: line clear and T-Spin scoring
- GameState and the pure transitions (move, rotate, hard_drop, hold, ...)
"""

from .bag import PieceBag, draw
from .core import (
    GameConfig,
    GameState,
    LockInfo,
    Phase,
    Transition,
    ghost_position,
    hard_drop,
    hold,
    lock,
    move,
    move_left,
    move_right,
    new_game,
    pause,
    reset,
    resume,
    rotate,
    soft_drop,
    toggle_pause,
)
from .errors import (
    BoardCollisionError,
    GameError,
    HoldNotAllowedError,
    InvalidPieceError,
    InvalidPositionError,
    InvalidRotationError,
    InvalidStateError,
    OutOfBoundsError,
)
from .grid import (
    BitmaskBoardEngine,
    BoardEngine,
    ClearResult,
    DenseBoardEngine,
    GameGrid,
    create_board_engine,
)
from .kicks import KickAttempt, RotationOutcome, offsets_for, try_rotate
from .pieces import SHAPES, Piece, TetrominoType, get_shape, rotate_180, rotate_cw, spawn_piece
from .rules import ScoringRules, level_for_lines, score_for
from .spin import SpinResult, SpinType, detect_spin

__all__ = [
    "PieceBag",
    "draw",
    "GameConfig",
    "GameState",
    "LockInfo",
    "Phase",
    "Transition",
    "ghost_position",
    "hard_drop",
    "hold",
    "lock",
    "move",
    "move_left",
    "move_right",
    "new_game",
    "pause",
    "reset",
    "resume",
    "rotate",
    "soft_drop",
    "toggle_pause",
    "BoardCollisionError",
    "GameError",
    "HoldNotAllowedError",
    "InvalidPieceError",
    "InvalidPositionError",
    "InvalidRotationError",
    "InvalidStateError",
    "OutOfBoundsError",
    "BitmaskBoardEngine",
    "BoardEngine",
    "ClearResult",
    "DenseBoardEngine",
    "GameGrid",
    "create_board_engine",
    "KickAttempt",
    "RotationOutcome",
    "offsets_for",
    "try_rotate",
    "SHAPES",
    "Piece",
    "TetrominoType",
    "get_shape",
    "rotate_180",
    "rotate_cw",
    "spawn_piece",
    "ScoringRules",
    "level_for_lines",
    "score_for",
    "SpinResult",
    "SpinType",
    "detect_spin",
]
