from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional, Tuple

from .bag import PieceBag, draw
from .errors import (
    BoardCollisionError,
    GameError,
    HoldNotAllowedError,
    InvalidPieceError,
    InvalidRotationError,
    InvalidStateError,
    OutOfBoundsError,
)
from .grid import BoardEngine, Coordinate, GameGrid, create_board_engine, piece_cells
from .kicks import try_rotate
from .pieces import Piece, TetrominoType, rotate_180, rotate_cw, spawn_piece
from .rules import ScoringRules, clear_type_for
from .spin import NO_SPIN, SpinResult, detect_spin


@dataclass(frozen=True)
class GameConfig:
    width: int = 10
    height: int = 20
    random_seed: Optional[int] = None
    spawn_y: int = 0
    board_engine: str = "bitmask"
    rules: ScoringRules = field(default_factory=ScoringRules)
    # only used to timestamp LockInfo for presentation
    clock: Callable[[], float] = time.monotonic


class Phase(str, Enum):
    FALLING = "falling"
    PAUSED = "paused"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class LockInfo:
    """What the last lock did, for whoever draws the game."""

    placed_cells: Tuple[Coordinate, ...]
    cleared_rows: Tuple[int, ...]
    lines_cleared: int
    spin: SpinResult
    points: int
    clear_type: Optional[str]
    grid_before_clear: Optional[GameGrid]
    timestamp: float


@dataclass(frozen=True)
class GameState:
    grid: GameGrid
    piece: Optional[Piece]
    next_kind: TetrominoType
    bag: PieceBag
    held_kind: Optional[TetrominoType] = None
    can_hold: bool = True
    score: int = 0
    lines: int = 0
    level: int = 1
    game_over: bool = False
    paused: bool = False
    ghost: Optional[Coordinate] = None
    # classification of the last successful rotation; reset by any translation
    spin: SpinResult = NO_SPIN
    combo: int = 0
    last_lock: Optional[LockInfo] = None
    config: GameConfig = field(default_factory=GameConfig, repr=False)
    engine: BoardEngine = field(default_factory=create_board_engine, repr=False, compare=False)

    @property
    def phase(self) -> Phase:
        if self.game_over:
            return Phase.GAME_OVER
        if self.paused:
            return Phase.PAUSED
        return Phase.FALLING

    @property
    def is_playable(self) -> bool:
        return self.piece is not None and not self.game_over and not self.paused

    @property
    def ghost_piece(self) -> Optional[Piece]:
        if self.piece is None or self.ghost is None:
            return None
        return self.piece.at(*self.ghost)


@dataclass(frozen=True)
class Transition:
    """Result of a transition: the new state, or the untouched input state plus the error."""

    state: GameState
    error: Optional[GameError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _project(state: GameState, piece: Piece) -> Coordinate:
    return state.engine.drop_position(state.grid, piece.shape, piece.position)


def _compute_ghost(state: GameState) -> Optional[Coordinate]:
    if state.piece is None or state.game_over:
        return None
    landing = _project(state, state.piece)
    return None if landing == state.piece.position else landing


def _build(state: GameState, **changes) -> GameState:
    new_state = replace(state, **changes)
    return replace(new_state, ghost=_compute_ghost(new_state))


def _check_playable(state: GameState) -> Optional[GameError]:
    if state.game_over:
        return InvalidStateError("Game is over")
    if state.paused:
        return InvalidStateError("Game is paused")
    if state.piece is None:
        return InvalidStateError("No active piece")
    piece = state.piece
    try:
        TetrominoType(piece.kind)
    except ValueError:
        return InvalidPieceError(f"Unknown piece type: {piece.kind!r}")
    if not 0 <= piece.rotation <= 3:
        return InvalidPieceError(f"Rotation state out of range: {piece.rotation}")
    return None


def _placement_error(state: GameState, piece: Piece) -> GameError:
    x, y = piece.position
    if any(not state.grid.is_inside(cx, cy) for cx, cy in piece.cells()):
        return OutOfBoundsError(x, y, "Piece would leave the board")
    return BoardCollisionError(x, y, "Piece would overlap filled cells")


def new_game(
    config: Optional[GameConfig] = None,
    engine: Optional[BoardEngine] = None,
    bag: Optional[PieceBag] = None,
    grid: Optional[GameGrid] = None,
) -> GameState:
    """Fresh game: empty (or preset) board and two pieces drawn from a new bag."""
    config = config or GameConfig()
    engine = engine or create_board_engine(config.board_engine)
    bag = bag if bag is not None else PieceBag.new(seed=config.random_seed)
    if grid is None:
        grid = GameGrid.empty(config.width, config.height)
    elif grid.size != (config.width, config.height):
        raise ValueError(f"grid is {grid.width}x{grid.height}, config expects {config.width}x{config.height}")

    current_kind, bag = draw(bag)
    next_kind, bag = draw(bag)
    piece = spawn_piece(current_kind, config.width, config.spawn_y)
    blocked = not engine.is_valid(grid, piece.shape, piece.position)

    state = GameState(
        grid=grid,
        piece=None if blocked else piece,
        next_kind=next_kind,
        bag=bag,
        level=config.rules.level_for_lines(0),
        game_over=blocked,
        config=config,
        engine=engine,
    )
    return _build(state)


def move(state: GameState, dx: int, dy: int) -> Transition:
    """Translate the active piece. A blocked move with dy > 0 locks the piece instead."""
    error = _check_playable(state)
    if error is not None:
        return Transition(state, error)
    if dx == 0 and dy == 0:
        return Transition(state)

    target = state.piece.moved(dx, dy)
    if state.engine.is_valid(state.grid, target.shape, target.position):
        return Transition(_build(state, piece=target, spin=NO_SPIN))
    if dy > 0:
        return lock(state)
    return Transition(state, _placement_error(state, target))


def soft_drop(state: GameState) -> Transition:
    return move(state, 0, 1)


def move_left(state: GameState) -> Transition:
    return move(state, -1, 0)


def move_right(state: GameState) -> Transition:
    return move(state, 1, 0)


def rotate(state: GameState, steps: int = 1) -> Transition:
    """Rotate by +1 (clockwise), -1 (counter-clockwise) or 2 (half turn) with SRS kicks."""
    error = _check_playable(state)
    if error is not None:
        return Transition(state, error)

    piece = state.piece
    if steps == 1:
        rotated_shape = rotate_cw(piece.shape)
    elif steps == 2:
        rotated_shape = rotate_180(piece.shape)
    elif steps == -1:
        rotated_shape = rotate_cw(rotate_180(piece.shape))
    else:
        return Transition(state, InvalidRotationError(f"Unsupported rotation step: {steps}"))

    outcome = try_rotate(state.engine, state.grid, piece, piece.rotation + steps, rotated_shape)
    if not outcome.success:
        return Transition(
            state,
            InvalidRotationError(
                f"Cannot rotate from {outcome.from_rotation} to {outcome.to_rotation}",
                outcome=outcome,
                context={"reason": outcome.failure_reason},
            ),
        )
    spin = detect_spin(state.grid, outcome.piece, outcome)
    return Transition(_build(state, piece=outcome.piece, spin=spin))


def hard_drop(state: GameState) -> Transition:
    error = _check_playable(state)
    if error is not None:
        return Transition(state, error)
    landing = _project(state, state.piece)
    if landing == state.piece.position:
        return lock(state)
    return lock(replace(state, piece=state.piece.at(*landing), spin=NO_SPIN))


def ghost_position(state: GameState) -> Optional[Coordinate]:
    """Landing anchor of a straight drop, or None when it would not move the piece."""
    return _compute_ghost(state)


def lock(state: GameState) -> Transition:
    """Stamp the active piece, clear rows, score, and spawn the next piece."""
    error = _check_playable(state)
    if error is not None:
        return Transition(state, error)

    piece = state.piece
    engine = state.engine
    rules = state.config.rules
    try:
        stamped = engine.place(state.grid, piece.shape, piece.position, piece.color)
    except GameError as exc:
        return Transition(state, exc)
    cleared = engine.clear_completed(stamped)

    spin = state.spin
    lines = state.lines + cleared.cleared_count
    points = rules.score_for(cleared.cleared_count, state.level, spin.kind)

    spawned = spawn_piece(state.next_kind, state.config.width, state.config.spawn_y)
    next_kind, bag = draw(state.bag)
    blocked = not engine.is_valid(cleared.grid, spawned.shape, spawned.position)

    info = LockInfo(
        placed_cells=tuple(piece_cells(piece.shape, piece.position)),
        cleared_rows=cleared.cleared_rows,
        lines_cleared=cleared.cleared_count,
        spin=spin,
        points=points,
        clear_type=clear_type_for(cleared.cleared_count, spin.kind),
        grid_before_clear=stamped if cleared.cleared_count else None,
        timestamp=state.config.clock(),
    )
    return Transition(
        _build(
            state,
            grid=cleared.grid,
            piece=None if blocked else spawned,
            next_kind=next_kind,
            bag=bag,
            can_hold=True,
            score=state.score + points,
            lines=lines,
            level=rules.level_for_lines(lines),
            game_over=blocked,
            spin=NO_SPIN,
            combo=state.combo + 1 if cleared.cleared_count else 0,
            last_lock=info,
        )
    )


def hold(state: GameState) -> Transition:
    error = _check_playable(state)
    if error is not None:
        return Transition(state, error)
    if not state.can_hold:
        return Transition(state, HoldNotAllowedError("Hold is not allowed until the next piece locks"))

    current_kind = state.piece.kind
    if state.held_kind is None:
        incoming = spawn_piece(state.next_kind, state.config.width, state.config.spawn_y)
        next_kind, bag = draw(state.bag)
    else:
        incoming = spawn_piece(state.held_kind, state.config.width, state.config.spawn_y)
        next_kind, bag = state.next_kind, state.bag

    if not state.engine.is_valid(state.grid, incoming.shape, incoming.position):
        return Transition(state, _placement_error(state, incoming))
    return Transition(
        _build(
            state,
            piece=incoming,
            held_kind=current_kind,
            next_kind=next_kind,
            bag=bag,
            can_hold=False,
            spin=NO_SPIN,
        )
    )


def pause(state: GameState) -> Transition:
    if state.game_over:
        return Transition(state, InvalidStateError("Cannot pause a finished game"))
    if state.paused:
        return Transition(state)
    return Transition(replace(state, paused=True))


def resume(state: GameState) -> Transition:
    if not state.paused:
        return Transition(state)
    return Transition(replace(state, paused=False))


def toggle_pause(state: GameState) -> Transition:
    return resume(state) if state.paused else pause(state)


def reset(state: GameState) -> Transition:
    """Start over with the same config and engine; the bag keeps its random source."""
    bag = PieceBag(contents=(), rng_state=state.bag.rng_state)
    return Transition(new_game(state.config, engine=state.engine, bag=bag))
