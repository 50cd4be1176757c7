from __future__ import annotations

import pytest

from block_puzzle_srs.game import BitmaskBoardEngine, DenseBoardEngine, GameGrid


@pytest.fixture(params=["dense", "bitmask"])
def engine(request):
    return DenseBoardEngine() if request.param == "dense" else BitmaskBoardEngine()


@pytest.fixture
def empty_grid():
    return GameGrid.empty(10, 20)
