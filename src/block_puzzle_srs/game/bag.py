from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional, Tuple

from .pieces import TetrominoType


CANONICAL_ORDER: Tuple[TetrominoType, ...] = tuple(TetrominoType)
BAG_SIZE = len(CANONICAL_ORDER)


@dataclass(frozen=True)
class PieceBag:
    """7-bag randomizer as a value.

    ``contents`` is the undrawn remainder of the current permutation; the next
    piece is the last element. ``rng_state`` is the captured state of the
    ``random.Random`` that shuffles the next refill, so drawing is a pure
    function of the bag value.
    """

    contents: Tuple[TetrominoType, ...] = ()
    # fresh entropy is captured once, when the bag is built
    rng_state: Tuple[Any, ...] = field(default_factory=lambda: random.Random().getstate(), repr=False)

    @classmethod
    def new(cls, seed: Optional[int] = None, rng: Optional[random.Random] = None) -> "PieceBag":
        if rng is None:
            rng = random.Random(seed)
        return cls(contents=(), rng_state=rng.getstate())

    @classmethod
    def from_sequence(cls, pieces: Iterable[TetrominoType], seed: Optional[int] = None) -> "PieceBag":
        """Bag whose next draws are ``pieces`` in order; refills randomly afterwards."""
        queue = tuple(TetrominoType(p) for p in pieces)
        if len(queue) > BAG_SIZE:
            raise ValueError(f"bag holds at most {BAG_SIZE} pieces, got {len(queue)}")
        if len(set(queue)) != len(queue):
            raise ValueError("bag contents must not repeat a piece type")
        return cls(contents=tuple(reversed(queue)), rng_state=random.Random(seed).getstate())

    def __len__(self) -> int:
        return len(self.contents)

    def is_empty(self) -> bool:
        return not self.contents

    def peek_order(self) -> Tuple[TetrominoType, ...]:
        """Undrawn pieces in the order they will come out."""
        return tuple(reversed(self.contents))

    def _rng(self) -> random.Random:
        rng = random.Random()
        rng.setstate(self.rng_state)
        return rng


def shuffled_bag(rng: random.Random) -> Tuple[TetrominoType, ...]:
    pieces = list(CANONICAL_ORDER)
    # random.shuffle is Fisher-Yates
    rng.shuffle(pieces)
    return tuple(pieces)


def draw(bag: PieceBag) -> Tuple[TetrominoType, PieceBag]:
    contents = bag.contents
    rng_state = bag.rng_state
    if not contents:
        rng = bag._rng()
        contents = shuffled_bag(rng)
        rng_state = rng.getstate()
    return contents[-1], replace(bag, contents=contents[:-1], rng_state=rng_state)
