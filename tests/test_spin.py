from __future__ import annotations

import pytest

from block_puzzle_srs.game.kicks import RotationOutcome
from block_puzzle_srs.game.pieces import Piece, TetrominoType
from block_puzzle_srs.game.spin import NO_SPIN, SpinType, classify, corner_positions, detect_spin

from helpers import grid_with


def _outcome(piece, offset=(0, 0), success=True):
    return RotationOutcome(
        success=success,
        from_rotation=(piece.rotation - 1) % 4,
        to_rotation=piece.rotation,
        attempts=(),
        piece=piece if success else None,
        offset=offset if success else None,
    )


T_PIECE = Piece(TetrominoType.T, x=4, y=10, rotation=0)


def test_corners_surround_the_pivot():
    assert corner_positions(T_PIECE) == ((4, 10), (6, 10), (4, 12), (6, 12))


def test_three_corners_without_kick_is_mini():
    grid = grid_with([(4, 10), (6, 10), (4, 12)])
    result = detect_spin(grid, T_PIECE, _outcome(T_PIECE))
    assert result.kind == SpinType.MINI
    assert result.corners_filled == 3
    assert result.front_corners_filled == 2
    assert not result.used_wall_kick
    assert result.last_move_was_rotation
    assert result.is_spin


def test_four_corners_with_kick_is_normal():
    grid = grid_with([(4, 10), (6, 10), (4, 12), (6, 12)])
    result = detect_spin(grid, T_PIECE, _outcome(T_PIECE, offset=(-1, 0)))
    assert result.kind == SpinType.NORMAL
    assert result.corners_filled == 4
    assert result.used_wall_kick


def test_one_front_corner_stays_mini_after_kick():
    grid = grid_with([(4, 10), (4, 12), (6, 12)])
    result = detect_spin(grid, T_PIECE, _outcome(T_PIECE, offset=(1, -1)))
    assert result.front_corners_filled == 1
    assert result.kind == SpinType.MINI


def test_two_corners_is_not_a_spin():
    grid = grid_with([(4, 10), (6, 12)])
    result = detect_spin(grid, T_PIECE, _outcome(T_PIECE))
    assert result.kind == SpinType.NONE
    assert result.corners_filled == 2
    assert not result.is_spin


def test_walls_count_as_filled_corners():
    piece = Piece(TetrominoType.T, x=-1, y=10, rotation=1)
    grid = grid_with([(1, 12)])
    result = detect_spin(grid, piece, _outcome(piece))
    assert result.corners_filled == 3
    assert result.front_corners_filled == 1
    assert result.kind == SpinType.MINI


@pytest.mark.parametrize("kind", [k for k in TetrominoType if k != TetrominoType.T])
def test_only_t_pieces_spin(kind):
    piece = Piece(kind, x=4, y=10)
    grid = grid_with([(4, 10), (6, 10), (4, 12), (6, 12)])
    assert detect_spin(grid, piece, _outcome(piece, offset=(1, 0))) == NO_SPIN


def test_failed_rotation_is_not_a_spin():
    grid = grid_with([(4, 10), (6, 10), (4, 12), (6, 12)])
    assert detect_spin(grid, T_PIECE, _outcome(T_PIECE, success=False)) == NO_SPIN


def test_classify():
    assert classify(2, True) == SpinType.NORMAL
    assert classify(2, False) == SpinType.MINI
    assert classify(1, True) == SpinType.MINI
