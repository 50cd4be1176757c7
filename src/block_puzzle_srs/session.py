from __future__ import annotations

import logging
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from block_puzzle_srs.game import core
from block_puzzle_srs.game.core import GameConfig, GameState, Transition
from block_puzzle_srs.game.grid import BoardEngine

logger = logging.getLogger(__name__)

Listener = Callable[[dict], None]


class Action(IntEnum):
    LEFT = 0
    RIGHT = 1
    ROTATE_CW = 2
    ROTATE_CCW = 3
    SOFT_DROP = 4
    HARD_DROP = 5
    ROTATE_180 = 6
    HOLD = 7
    PAUSE = 8
    NONE = 9


_EVENTS = {
    Action.LEFT: "piece-moved",
    Action.RIGHT: "piece-moved",
    Action.ROTATE_CW: "piece-rotated",
    Action.ROTATE_CCW: "piece-rotated",
    Action.ROTATE_180: "piece-rotated",
    Action.SOFT_DROP: "piece-soft-dropped",
    Action.HARD_DROP: "piece-hard-dropped",
    Action.HOLD: "piece-held",
    Action.PAUSE: "pause-toggled",
}


class GameSession:
    """Mutable holder that threads a GameState through the pure transitions.

    Front ends map their input to ``Action`` values and call ``step``; they can
    subscribe to events such as ``"lines-cleared"`` or ``"game-over"``.
    """

    def __init__(self, config: Optional[GameConfig] = None, engine: Optional[BoardEngine] = None) -> None:
        self.config = config or GameConfig()
        self.state: GameState = core.new_game(self.config, engine=engine)
        self._listeners: Dict[str, List[Listener]] = {}

    def reset(self) -> None:
        self.state = core.reset(self.state).state
        self._emit("game-reset", {})

    def on(self, event: str, callback: Listener) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def off(self, event: str, callback: Listener) -> None:
        listeners = self._listeners.get(event)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def _emit(self, event: str, payload: dict) -> None:
        for callback in list(self._listeners.get(event, ())):
            try:
                callback(payload)
            except Exception:
                logger.exception("listener for %s failed", event)

    def _apply(self, action: Action) -> Transition:
        state = self.state
        if action == Action.LEFT:
            return core.move(state, -1, 0)
        if action == Action.RIGHT:
            return core.move(state, 1, 0)
        if action == Action.ROTATE_CW:
            return core.rotate(state, 1)
        if action == Action.ROTATE_CCW:
            return core.rotate(state, -1)
        if action == Action.ROTATE_180:
            return core.rotate(state, 2)
        if action == Action.SOFT_DROP:
            return core.soft_drop(state)
        if action == Action.HARD_DROP:
            return core.hard_drop(state)
        if action == Action.HOLD:
            return core.hold(state)
        if action == Action.PAUSE:
            return core.toggle_pause(state)
        return Transition(state)

    def step(self, action: Action) -> Tuple[np.ndarray, int, bool, dict]:
        before = self.state
        transition = self._apply(Action(action))
        self.state = transition.state

        if transition.error is not None:
            logger.debug("%s rejected: %s", Action(action).name, transition.error)
            self._emit(
                "action-rejected",
                {
                    "action": Action(action).name,
                    "error": transition.error.to_dict(),
                    "message": transition.error.user_message(),
                },
            )
        elif self.state is not before:
            event = _EVENTS.get(Action(action))
            if event:
                self._emit(event, {"action": Action(action).name})

        if self.state.last_lock is not None and self.state.last_lock is not before.last_lock:
            info = self.state.last_lock
            if info.lines_cleared:
                self._emit("lines-cleared", {"rows": info.cleared_rows, "points": info.points})
            if info.spin.is_spin:
                self._emit("t-spin", {"kind": info.spin.kind.value, "lines": info.lines_cleared})
            if self.state.level != before.level:
                self._emit("level-up", {"level": self.state.level})
        if self.state.game_over and not before.game_over:
            logger.info("game over: score=%d lines=%d", self.state.score, self.state.lines)
            self._emit("game-over", {"score": self.state.score})

        reward = self.state.score - before.score
        info = {
            "score": self.state.score,
            "lines": self.state.lines,
            "level": self.state.level,
            "height": self.state.grid.get_max_height(),
            "error": transition.error.code if transition.error is not None else None,
        }
        return self.get_state(), reward, self.state.game_over, info

    def get_state(self) -> np.ndarray:
        # Overlay current piece on a copy of the grid for observation
        state = self.state.grid.clone_state()
        piece = self.state.piece
        if piece is not None and not self.state.game_over:
            for x, y in piece.cells():
                if 0 <= y < self.state.grid.height and 0 <= x < self.state.grid.width:
                    # Use negative to indicate falling piece overlay
                    state[y, x] = -int(piece.kind)
        return state
