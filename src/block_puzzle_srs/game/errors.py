from __future__ import annotations

from typing import Any, Dict, Optional


class GameError(Exception):
    """Base class for rule violations reported by the engine.

    Transitions hand these back as values (see ``core.Transition``); only the
    low-level grid helpers raise them.
    """

    code = "GAME_ERROR"
    recoverable = True

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    def user_message(self) -> str:
        return f"Game error: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "recoverable": self.recoverable,
            "context": dict(self.context),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class InvalidStateError(GameError):
    code = "INVALID_STATE"

    def user_message(self) -> str:
        return "The game is not accepting moves right now."


class InvalidPositionError(GameError):
    code = "INVALID_POSITION"

    def __init__(self, x: int, y: int, message: str = "Cannot move piece to the specified position") -> None:
        super().__init__(message, {"x": x, "y": y})
        self.x = x
        self.y = y


class BoardCollisionError(InvalidPositionError):
    code = "BOARD_COLLISION"


class OutOfBoundsError(InvalidPositionError):
    code = "OUT_OF_BOUNDS"
    recoverable = False


class InvalidRotationError(GameError):
    code = "INVALID_ROTATION"

    def __init__(self, message: str, outcome: Any = None, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, context)
        # RotationOutcome of the failed attempt, when there was one
        self.outcome = outcome

    def user_message(self) -> str:
        return "The piece cannot rotate here."


class HoldNotAllowedError(GameError):
    code = "HOLD_NOT_ALLOWED"

    def user_message(self) -> str:
        return "Hold is already used for this piece."


class InvalidPieceError(GameError):
    code = "INVALID_PIECE"
    recoverable = False
