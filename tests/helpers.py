from __future__ import annotations

import itertools

import numpy as np

from block_puzzle_srs.game import GameConfig, GameGrid, PieceBag, TetrominoType, new_game


def grid_with(cells, width=10, height=20, value=1):
    arr = np.zeros((height, width), dtype=np.int8)
    for x, y in cells:
        arr[y, x] = value
    return GameGrid(arr)


def game_with_queue(*kinds, grid=None, engine=None, seed=0):
    """New game whose first pieces come out in the given order."""
    kinds = [TetrominoType(k) for k in kinds]
    # the bag only holds unique types, so fill the rest with the unused ones
    rest = [k for k in TetrominoType if k not in kinds]
    queue = list(itertools.islice(itertools.chain(kinds, rest), 7))
    return new_game(GameConfig(random_seed=seed), engine=engine, bag=PieceBag.from_sequence(queue, seed=seed), grid=grid)
