"""Grid coordinates and the four movement directions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Direction(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> Tuple[int, int]:
        """Row / column offset of a single step."""
        return _DELTAS[self]

    def reverse(self) -> "Direction":
        return _REVERSE[self]


# Row / column deltas for each compass direction.
_DELTAS = {
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}

_REVERSE = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}

DIRECTIONS = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)


@dataclass(frozen=True, order=True)
class Position:
    row: int
    col: int

    def neighbour(self, direction: Direction) -> Position:
        dr, dc = direction.delta
        return Position(self.row + dr, self.col + dc)

    def direction_to(self, other: Position) -> Optional[Direction]:
        """Direction of ``other`` if it lies in the same row or column, else None."""
        if self == other:
            return None
        if self.row == other.row:
            return Direction.RIGHT if other.col > self.col else Direction.LEFT
        if self.col == other.col:
            return Direction.DOWN if other.row > self.row else Direction.UP
        return None

    def to_list(self) -> list[int]:
        return [self.row, self.col]

    @classmethod
    def from_list(cls, value) -> Position:
        row, col = value
        return cls(int(row), int(col))

    def __repr__(self) -> str:
        return f"({self.row},{self.col})"
