from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .errors import InvalidPieceError, OutOfBoundsError


Coordinate = Tuple[int, int]

MIN_COLOR = 1
MAX_COLOR = 7


class GameGrid:
    """Immutable 2D grid of cell values.

    The grid uses 0 for empty cells and 1..7 for filled cells, one value per
    tetromino type. Row 0 is the top. The backing array is read-only; every
    operation that changes cells returns a new ``GameGrid``.
    """

    __slots__ = ("_cells",)

    def __init__(self, cells: np.ndarray) -> None:
        arr = np.array(cells, dtype=np.int8)
        if arr.ndim != 2:
            raise ValueError(f"grid must be two-dimensional, got shape {arr.shape}")
        arr.setflags(write=False)
        self._cells = arr

    @classmethod
    def empty(cls, width: int = 10, height: int = 20) -> "GameGrid":
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid board dimensions: height={height}, width={width}")
        return cls(np.zeros((int(height), int(width)), dtype=np.int8))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> "GameGrid":
        return cls(np.array(rows, dtype=np.int8))

    @property
    def cells(self) -> np.ndarray:
        return self._cells

    @property
    def width(self) -> int:
        return int(self._cells.shape[1])

    @property
    def height(self) -> int:
        return int(self._cells.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> int:
        return int(self._cells[y, x])

    def is_occupied(self, x: int, y: int) -> bool:
        """Out-of-bounds positions count as occupied."""
        if not self.is_inside(x, y):
            return True
        return self._cells[y, x] != 0

    def with_cells(self, cells: Iterable[Coordinate], value: int) -> "GameGrid":
        """Return a copy with the given in-bounds cells set to ``value``."""
        arr = self._cells.copy()
        for x, y in cells:
            if not self.is_inside(x, y):
                raise OutOfBoundsError(x, y, "Cell is outside the board")
            arr[y, x] = value
        return GameGrid(arr)

    def copy(self) -> "GameGrid":
        return GameGrid(self._cells)

    def clone_state(self) -> np.ndarray:
        """Writable copy of the cells for consumers that draw on top of the board."""
        return self._cells.copy()

    def get_max_height(self) -> int:
        """Rows between the floor and the highest filled cell, inclusive."""
        filled = np.flatnonzero(self._cells.any(axis=1))
        return int(self.height - filled[0]) if filled.size else 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameGrid):
            return NotImplemented
        return self._cells.shape == other._cells.shape and bool(np.array_equal(self._cells, other._cells))

    def __hash__(self) -> int:
        return hash((self._cells.shape, self._cells.tobytes()))

    def __repr__(self) -> str:
        return f"GameGrid(width={self.width}, height={self.height}, filled={int(np.count_nonzero(self._cells))})"


def piece_cells(shape: np.ndarray, anchor: Coordinate) -> List[Coordinate]:
    """Absolute (x, y) of every filled shape cell, row-major."""
    ax, ay = anchor
    ys, xs = np.nonzero(shape)
    return [(ax + int(x), ay + int(y)) for y, x in zip(ys, xs)]


@dataclass(frozen=True)
class ClearResult:
    grid: GameGrid
    cleared_count: int
    cleared_rows: Tuple[int, ...]


def _check_color(color: int) -> int:
    color = int(color)
    if not MIN_COLOR <= color <= MAX_COLOR:
        raise InvalidPieceError(f"Invalid color index: {color}", {"color": color})
    return color


class BoardEngine(ABC):
    """Strategy for the three board operations the rules need.

    Implementations must agree cell-for-cell on every input.
    """

    name = "abstract"

    @abstractmethod
    def is_valid(self, grid: GameGrid, shape: np.ndarray, anchor: Coordinate) -> bool:
        ...

    @abstractmethod
    def place(self, grid: GameGrid, shape: np.ndarray, anchor: Coordinate, color: int) -> GameGrid:
        ...

    @abstractmethod
    def clear_completed(self, grid: GameGrid) -> ClearResult:
        ...

    def drop_position(self, grid: GameGrid, shape: np.ndarray, anchor: Coordinate) -> Coordinate:
        """Lowest valid anchor reachable by moving straight down from ``anchor``."""
        x, y = anchor
        # bounded by the board height so an invalid start cannot loop forever
        for _ in range(grid.height + shape.shape[0]):
            if not self.is_valid(grid, shape, (x, y + 1)):
                break
            y += 1
        return x, y

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class DenseBoardEngine(BoardEngine):
    """Works directly on the cell array with vectorised numpy operations."""

    name = "dense"

    def is_valid(self, grid: GameGrid, shape: np.ndarray, anchor: Coordinate) -> bool:
        ax, ay = anchor
        ys, xs = np.nonzero(shape)
        if ys.size == 0:
            return True
        bx = xs + ax
        by = ys + ay
        if bx.min() < 0 or by.min() < 0 or bx.max() >= grid.width or by.max() >= grid.height:
            return False
        return not np.any(grid.cells[by, bx])

    def place(self, grid: GameGrid, shape: np.ndarray, anchor: Coordinate, color: int) -> GameGrid:
        color = _check_color(color)
        ax, ay = anchor
        ys, xs = np.nonzero(shape)
        bx = xs + ax
        by = ys + ay
        outside = (bx < 0) | (bx >= grid.width)
        if np.any(outside):
            i = int(np.argmax(outside))
            raise OutOfBoundsError(int(bx[i]), int(by[i]), "Piece cell is outside the board horizontally")
        rows_ok = (by >= 0) & (by < grid.height)
        arr = grid.cells.copy()
        arr[by[rows_ok], bx[rows_ok]] = color
        return GameGrid(arr)

    def clear_completed(self, grid: GameGrid) -> ClearResult:
        full = np.all(grid.cells != 0, axis=1)
        full_rows = np.where(full)[0]
        if full_rows.size == 0:
            return ClearResult(grid=grid.copy(), cleared_count=0, cleared_rows=())
        num = int(full_rows.size)
        kept = grid.cells[~full]
        new_rows = np.zeros((num, grid.width), dtype=np.int8)
        return ClearResult(
            grid=GameGrid(np.vstack((new_rows, kept))),
            cleared_count=num,
            cleared_rows=tuple(int(r) for r in full_rows),
        )


class BitmaskBoardEngine(BoardEngine):
    """Packs each row's occupancy into an int (bit x is column x).

    Collision and full-row tests run on the masks; colors are still written to
    the cell array so both engines return the same grids.
    """

    name = "bitmask"

    @staticmethod
    def row_masks(grid: GameGrid) -> List[int]:
        weights = 1 << np.arange(grid.width, dtype=np.int64)
        return [int(m) for m in (grid.cells != 0).astype(np.int64) @ weights]

    @staticmethod
    def shape_masks(shape: np.ndarray) -> List[int]:
        masks = []
        for row in shape:
            m = 0
            for x, v in enumerate(row):
                if v:
                    m |= 1 << x
            masks.append(m)
        return masks

    def is_valid(self, grid: GameGrid, shape: np.ndarray, anchor: Coordinate) -> bool:
        ax, ay = anchor
        full_mask = (1 << grid.width) - 1
        board = self.row_masks(grid)
        for dy, m in enumerate(self.shape_masks(shape)):
            if not m:
                continue
            by = ay + dy
            if by < 0 or by >= grid.height:
                return False
            if ax < 0:
                # bits that would fall off the left edge
                if m & ((1 << -ax) - 1):
                    return False
                shifted = m >> -ax
            else:
                shifted = m << ax
            if shifted & ~full_mask:
                return False
            if shifted & board[by]:
                return False
        return True

    def place(self, grid: GameGrid, shape: np.ndarray, anchor: Coordinate, color: int) -> GameGrid:
        color = _check_color(color)
        ax, ay = anchor
        full_mask = (1 << grid.width) - 1
        arr = grid.cells.copy()
        for dy, m in enumerate(self.shape_masks(shape)):
            if not m:
                continue
            if ax < 0 and m & ((1 << -ax) - 1):
                bad = (m & -m).bit_length() - 1
                raise OutOfBoundsError(ax + bad, ay + dy, "Piece cell is outside the board horizontally")
            shifted = m >> -ax if ax < 0 else m << ax
            overflow = shifted & ~full_mask
            if overflow:
                bad = (overflow & -overflow).bit_length() - 1
                raise OutOfBoundsError(bad, ay + dy, "Piece cell is outside the board horizontally")
            by = ay + dy
            if by < 0 or by >= grid.height:
                continue
            x = 0
            while shifted:
                if shifted & 1:
                    arr[by, x] = color
                shifted >>= 1
                x += 1
        return GameGrid(arr)

    def clear_completed(self, grid: GameGrid) -> ClearResult:
        full_mask = (1 << grid.width) - 1
        masks = self.row_masks(grid)
        cleared = tuple(y for y, m in enumerate(masks) if m == full_mask)
        if not cleared:
            return ClearResult(grid=grid.copy(), cleared_count=0, cleared_rows=())
        cleared_set = set(cleared)
        rows = [np.zeros(grid.width, dtype=np.int8) for _ in cleared]
        rows.extend(grid.cells[y] for y in range(grid.height) if y not in cleared_set)
        return ClearResult(grid=GameGrid(np.stack(rows)), cleared_count=len(cleared), cleared_rows=cleared)


BOARD_ENGINES = {
    DenseBoardEngine.name: DenseBoardEngine,
    BitmaskBoardEngine.name: BitmaskBoardEngine,
}


def create_board_engine(kind: str = "bitmask") -> BoardEngine:
    try:
        return BOARD_ENGINES[kind]()
    except KeyError:
        raise ValueError(f"Unknown board engine type: {kind!r}") from None
