from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union

from .spin import SpinType


LINES_PER_LEVEL = 10

_DEFAULT_TABLE: Dict[SpinType, Tuple[int, int, int, int, int]] = {
    SpinType.NONE: (0, 100, 300, 500, 800),
    # T-Spin Mini Triple and Tetris do not exist
    SpinType.MINI: (100, 200, 400, 0, 0),
    # no T-Spin Tetris
    SpinType.NORMAL: (400, 800, 1200, 1600, 0),
}

_VALID_LINES = {
    SpinType.NONE: 4,
    SpinType.MINI: 2,
    SpinType.NORMAL: 3,
}

SpinLike = Union[SpinType, str]


@dataclass(frozen=True)
class ScoringRules:
    base_scores: Dict[SpinType, Tuple[int, int, int, int, int]] = field(
        default_factory=lambda: dict(_DEFAULT_TABLE)
    )
    lines_per_level: int = LINES_PER_LEVEL

    def score_for(self, lines_cleared: int, level: int, spin: SpinLike = SpinType.NONE) -> int:
        if lines_cleared < 0 or lines_cleared > 4:
            raise ValueError(f"Invalid lines_cleared: {lines_cleared}. Must be 0-4.")
        if level < 1:
            raise ValueError(f"Invalid level: {level}. Must be >= 1.")
        return self.base_scores[SpinType(spin)][lines_cleared] * level

    def level_for_lines(self, total_lines: int) -> int:
        return total_lines // self.lines_per_level + 1


DEFAULT_RULES = ScoringRules()


def score_for(lines_cleared: int, level: int, spin: SpinLike = SpinType.NONE) -> int:
    """Points for one lock: base table entry times level. Invalid spin/line pairs score 0."""
    return DEFAULT_RULES.score_for(lines_cleared, level, spin)


def level_for_lines(total_lines: int, lines_per_level: int = LINES_PER_LEVEL) -> int:
    return total_lines // lines_per_level + 1


def is_valid_spin_combination(spin: SpinLike, lines_cleared: int) -> bool:
    return 0 <= lines_cleared <= _VALID_LINES[SpinType(spin)]


def clear_type_for(lines_cleared: int, spin: SpinLike = SpinType.NONE) -> Optional[str]:
    if SpinType(spin) != SpinType.NONE:
        return "tspin"
    return {1: "single", 2: "double", 3: "triple", 4: "tetris"}.get(lines_cleared)


INITIAL_DROP_INTERVAL_MS = 1000
MIN_DROP_INTERVAL_MS = 100
DROP_INTERVAL_STEP_MS = 100


def drop_interval_ms(level: int) -> int:
    """Gravity interval a front end should use between soft drops at ``level``."""
    return max(MIN_DROP_INTERVAL_MS, INITIAL_DROP_INTERVAL_MS - (level - 1) * DROP_INTERVAL_STEP_MS)
