from __future__ import annotations

import argparse
import logging
import random
from typing import Optional, Sequence

import numpy as np

from block_puzzle_srs.game import GameConfig
from block_puzzle_srs.game.grid import BOARD_ENGINES
from block_puzzle_srs.session import Action, GameSession

logger = logging.getLogger(__name__)

PLAY_ACTIONS = [a for a in Action if a not in (Action.PAUSE, Action.NONE)]


def format_board(grid: np.ndarray) -> str:
    """Text rendering: filled cells by type letter, the falling piece in lower case."""
    letters = ".IOTSZJL"
    lines = []
    for row in grid:
        chars = []
        for cell in row:
            v = int(cell)
            chars.append(letters[-v].lower() if v < 0 else letters[v])
        lines.append("".join(chars))
    return "\n".join(lines)


def run_random(session: GameSession, steps: int, seed: Optional[int] = None) -> int:
    rng = random.Random(seed)
    for i in range(steps):
        action = rng.choice(PLAY_ACTIONS)
        _, _, done, info = session.step(action)
        if done:
            logger.info("finished after %d steps", i + 1)
            break
    return session.state.score


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play a seeded random game and print the final board.")
    p.add_argument("--steps", type=int, default=500)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--engine", choices=sorted(BOARD_ENGINES), default="bitmask")
    p.add_argument("--width", type=int, default=10)
    p.add_argument("--height", type=int, default=20)
    p.add_argument("--log-level", type=str.upper, choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="WARNING")
    return p


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    config = GameConfig(width=args.width, height=args.height, random_seed=args.seed, board_engine=args.engine)
    session = GameSession(config)
    session.on("lines-cleared", lambda e: logger.info("cleared rows %s for %d", e["rows"], e["points"]))
    session.on("t-spin", lambda e: logger.info("T-Spin %s (%d lines)", e["kind"], e["lines"]))

    score = run_random(session, args.steps, args.seed)
    state = session.state
    print(format_board(session.get_state()))
    print(f"score {score}  lines {state.lines}  level {state.level}  game over {state.game_over}")


if __name__ == "__main__":  # pragma: no cover
    main()
