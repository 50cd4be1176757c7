from __future__ import annotations

import numpy as np
import pytest

from block_puzzle_srs.game.errors import InvalidPieceError, OutOfBoundsError
from block_puzzle_srs.game.grid import (
    BitmaskBoardEngine,
    DenseBoardEngine,
    GameGrid,
    create_board_engine,
    piece_cells,
)
from block_puzzle_srs.game.pieces import SHAPES, TetrominoType, get_shape

from helpers import grid_with


def _full_row(arr, y, value=1):
    arr[y, :] = value


def test_empty_grid_dimensions(empty_grid):
    assert empty_grid.size == (10, 20)
    assert empty_grid.get_max_height() == 0
    assert not empty_grid.cells.any()


def test_max_height_counts_from_the_floor():
    assert grid_with([(3, 19)]).get_max_height() == 1
    assert grid_with([(3, 19), (7, 15), (0, 17)]).get_max_height() == 5
    assert grid_with([(9, 0)]).get_max_height() == 20


def test_grid_is_read_only(empty_grid):
    with pytest.raises(ValueError):
        empty_grid.cells[0, 0] = 1


def test_grid_equality_and_hash():
    a = grid_with([(0, 19), (1, 19)])
    b = grid_with([(0, 19), (1, 19)])
    assert a == b
    assert hash(a) == hash(b)
    assert a != grid_with([(0, 19)])


def test_out_of_bounds_counts_as_occupied(empty_grid):
    assert empty_grid.is_occupied(-1, 5)
    assert empty_grid.is_occupied(0, 20)
    assert not empty_grid.is_occupied(0, 0)


def test_with_cells_rejects_outside(empty_grid):
    with pytest.raises(OutOfBoundsError):
        empty_grid.with_cells([(10, 0)], 1)


def test_unknown_engine_name():
    with pytest.raises(ValueError):
        create_board_engine("typed-array")
    assert isinstance(create_board_engine("dense"), DenseBoardEngine)
    assert isinstance(create_board_engine("bitmask"), BitmaskBoardEngine)


class TestIsValid:
    def test_open_space(self, engine, empty_grid):
        assert engine.is_valid(empty_grid, get_shape(TetrominoType.T), (4, 0))

    def test_above_top_is_invalid(self, engine, empty_grid):
        assert not engine.is_valid(empty_grid, get_shape(TetrominoType.T), (4, -1))

    def test_empty_padding_may_leave_board(self, engine, empty_grid):
        # I piece row 0 is padding, so y=-1 keeps the filled row at y=0
        assert engine.is_valid(empty_grid, get_shape(TetrominoType.I), (3, -1))
        # T rotation 1 has an empty left column
        assert engine.is_valid(empty_grid, get_shape(TetrominoType.T, 1), (-1, 5))

    def test_walls_and_floor(self, engine, empty_grid):
        shape = get_shape(TetrominoType.O)
        assert not engine.is_valid(empty_grid, shape, (-1, 0))
        assert not engine.is_valid(empty_grid, shape, (9, 0))
        assert not engine.is_valid(empty_grid, shape, (0, 19))
        assert engine.is_valid(empty_grid, shape, (8, 18))

    def test_collision(self, engine):
        grid = grid_with([(5, 1)])
        assert not engine.is_valid(grid, get_shape(TetrominoType.T), (4, 0))
        # the filled cell only overlaps padding of the T's third row
        grid = grid_with([(4, 2)])
        assert engine.is_valid(grid, get_shape(TetrominoType.T), (4, 0))


class TestPlace:
    def test_returns_new_grid(self, engine, empty_grid):
        placed = engine.place(empty_grid, get_shape(TetrominoType.T), (4, 18), 3)
        assert placed is not empty_grid
        assert not empty_grid.cells.any()
        assert sorted(zip(*np.nonzero(placed.cells))) == [(18, 5), (19, 4), (19, 5), (19, 6)]
        assert placed.cell(5, 18) == 3

    def test_skips_rows_above_board(self, engine, empty_grid):
        placed = engine.place(empty_grid, get_shape(TetrominoType.T), (4, -1), 3)
        assert placed.cells.sum() == 3 * 3
        assert placed.cell(4, 0) == 3

    def test_horizontal_overflow_is_an_error(self, engine, empty_grid):
        with pytest.raises(OutOfBoundsError):
            engine.place(empty_grid, get_shape(TetrominoType.I), (8, 0), 1)
        with pytest.raises(OutOfBoundsError):
            engine.place(empty_grid, get_shape(TetrominoType.O), (-1, 0), 2)

    def test_rejects_bad_color(self, engine, empty_grid):
        with pytest.raises(InvalidPieceError):
            engine.place(empty_grid, get_shape(TetrominoType.O), (0, 0), 8)


class TestClearCompleted:
    def test_no_full_rows_returns_equal_copy(self, engine):
        grid = grid_with([(0, 19), (3, 10)])
        result = engine.clear_completed(grid)
        assert result.cleared_count == 0
        assert result.cleared_rows == ()
        assert result.grid == grid
        assert result.grid is not grid

    def test_rows_above_shift_down(self, engine):
        arr = np.zeros((20, 10), dtype=np.int8)
        _full_row(arr, 19)
        _full_row(arr, 17)
        arr[18, 0] = 5
        arr[16, 2] = 6
        arr[10, 9] = 7
        result = engine.clear_completed(GameGrid(arr))

        assert result.cleared_count == 2
        assert result.cleared_rows == (17, 19)
        assert result.grid.size == (10, 20)
        # one cleared row below each survivor shifts it by that many rows
        assert result.grid.cell(0, 19) == 5
        assert result.grid.cell(2, 18) == 6
        assert result.grid.cell(9, 12) == 7
        assert int(np.count_nonzero(result.grid.cells)) == 3
        assert not result.grid.cells[:2].any()

    def test_four_lines(self, engine):
        arr = np.ones((20, 10), dtype=np.int8)
        arr[:16] = 0
        result = engine.clear_completed(GameGrid(arr))
        assert result.cleared_count == 4
        assert result.cleared_rows == (16, 17, 18, 19)
        assert not result.grid.cells.any()


def _random_grid(rng, width=10, height=20):
    arr = rng.integers(0, 8, size=(height, width)).astype(np.int8)
    arr[rng.random(size=(height, width)) < 0.45] = 0
    arr[: rng.integers(0, height)] = 0
    for y in rng.choice(height, size=rng.integers(0, 4), replace=False):
        arr[y] = rng.integers(1, 8, size=width)
    return GameGrid(arr)


def test_engines_agree_on_random_boards():
    rng = np.random.default_rng(1234)
    dense = DenseBoardEngine()
    bitmask = BitmaskBoardEngine()
    for _ in range(60):
        grid = _random_grid(rng)
        a = dense.clear_completed(grid)
        b = bitmask.clear_completed(grid)
        assert a == b
        assert a.cleared_count == len(a.cleared_rows)
        for kind, states in SHAPES.items():
            for shape in states:
                for _ in range(6):
                    anchor = (int(rng.integers(-3, 11)), int(rng.integers(-3, 21)))
                    valid = dense.is_valid(grid, shape, anchor)
                    assert valid == bitmask.is_valid(grid, shape, anchor)
                    cells = piece_cells(shape, anchor)
                    if all(0 <= x < grid.width for x, _ in cells):
                        assert dense.place(grid, shape, anchor, int(kind)) == bitmask.place(grid, shape, anchor, int(kind))
                    else:
                        with pytest.raises(OutOfBoundsError):
                            dense.place(grid, shape, anchor, int(kind))
                        with pytest.raises(OutOfBoundsError):
                            bitmask.place(grid, shape, anchor, int(kind))


def test_drop_position_lands_on_stack(engine):
    grid = grid_with([(4, 15)])
    shape = get_shape(TetrominoType.O)
    assert engine.drop_position(grid, shape, (4, 0)) == (4, 13)
    assert engine.drop_position(grid, shape, (0, 0)) == (0, 18)
