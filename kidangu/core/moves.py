"""Moves and their LURD notation.

A move is a direction plus what happened: the worker walked, or the worker
pushed the crate in front of it. Lower case letters are plain walks, upper
case letters are pushes (``"ullluuuL"``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List

from kidangu.core.position import Direction


class Effect(Enum):
    WORKER_ONLY = "worker_only"
    PUSH = "push"


class MoveMode(Enum):
    SINGLE = "single"
    RUN = "run"
    PUSH_FREE_RUN = "push_free_run"


_DIRECTION_CHARS = {
    Direction.LEFT: "l",
    Direction.RIGHT: "r",
    Direction.UP: "u",
    Direction.DOWN: "d",
}
_CHAR_DIRECTIONS = {c: d for d, c in _DIRECTION_CHARS.items()}


@dataclass(frozen=True)
class Move:
    direction: Direction
    effect: Effect = Effect.WORKER_ONLY

    @property
    def is_push(self) -> bool:
        return self.effect is Effect.PUSH

    def inverse(self) -> Move:
        """Opposite direction, same effect; a push's inverse pulls the crate back."""
        return Move(self.direction.reverse(), self.effect)

    def to_char(self) -> str:
        c = _DIRECTION_CHARS[self.direction]
        return c.upper() if self.is_push else c

    @classmethod
    def from_char(cls, c: str) -> Move:
        direction = _CHAR_DIRECTIONS.get(c.lower()) if len(c) == 1 else None
        if direction is None:
            raise ValueError(f"Invalid move character: {c!r}")
        return cls(direction, Effect.PUSH if c.isupper() else Effect.WORKER_ONLY)


def parse_moves(text: str) -> List[Move]:
    """Parse a LURD string; whitespace is ignored."""
    return [Move.from_char(c) for c in text if not c.isspace()]


def moves_to_string(moves: Iterable[Move]) -> str:
    return "".join(m.to_char() for m in moves)
