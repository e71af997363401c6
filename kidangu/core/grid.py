"""Static level geometry and the initial placement of a level."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, Iterator, Sequence, Tuple

from kidangu.core.errors import InvalidLevel, OutOfBounds
from kidangu.core.position import Position


class TileKind(Enum):
    WALL = "wall"
    FLOOR = "floor"
    GOAL = "goal"


class Grid:
    """Immutable ``rows x columns`` table of tiles.

    Cells outside the enclosing walls are stored as ``WALL`` and remembered
    in ``outside`` so that renderers can tell them apart from real walls.
    """

    def __init__(
        self,
        tiles: Sequence[Sequence[TileKind]],
        outside: Iterable[Position] = (),
    ) -> None:
        if not tiles or not tiles[0]:
            raise InvalidLevel("Grid has no cells")
        columns = len(tiles[0])
        if any(len(row) != columns for row in tiles):
            raise InvalidLevel("Grid rows differ in length")
        self._tiles: Tuple[Tuple[TileKind, ...], ...] = tuple(tuple(row) for row in tiles)
        self._rows = len(self._tiles)
        self._columns = columns
        self._outside: FrozenSet[Position] = frozenset(outside)
        self._goals: FrozenSet[Position] = frozenset(
            pos for pos in self.positions() if self._tiles[pos.row][pos.col] is TileKind.GOAL
        )

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def goals(self) -> FrozenSet[Position]:
        return self._goals

    @property
    def longest_dimension(self) -> int:
        return max(self._rows, self._columns)

    def positions(self) -> Iterator[Position]:
        """Every cell in row-major order."""
        for row in range(self._rows):
            for col in range(self._columns):
                yield Position(row, col)

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.row < self._rows and 0 <= pos.col < self._columns

    def tile_at(self, pos: Position) -> TileKind:
        if not self.in_bounds(pos):
            raise OutOfBounds(pos)
        return self._tiles[pos.row][pos.col]

    def is_outside(self, pos: Position) -> bool:
        return not self.in_bounds(pos) or pos in self._outside

    def is_walkable(self, pos: Position) -> bool:
        """Floor or goal inside the grid; never raises."""
        return self.in_bounds(pos) and self._tiles[pos.row][pos.col] is not TileKind.WALL

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self._tiles == other._tiles and self._outside == other._outside

    def __hash__(self) -> int:
        return hash((self._tiles, self._outside))

    def __repr__(self) -> str:
        return f"Grid(rows={self._rows}, columns={self._columns}, goals={len(self._goals)})"


@dataclass(frozen=True)
class LevelSpec:
    """A parsed level: geometry plus where the worker and crates start."""

    grid: Grid
    worker: Position
    crates: FrozenSet[Position]
    rank: int = 1
    title: str = ""

    def __post_init__(self) -> None:
        if not self.grid.goals:
            raise InvalidLevel(f"Level #{self.rank} has no goals")
        if not self.grid.is_walkable(self.worker):
            raise InvalidLevel(f"Level #{self.rank}: worker starts on a wall at {self.worker!r}")
        for pos in self.crates:
            if not self.grid.is_walkable(pos):
                raise InvalidLevel(f"Level #{self.rank}: crate on a wall at {pos!r}")
        if self.worker in self.crates:
            raise InvalidLevel(f"Level #{self.rank}: worker and crate share {self.worker!r}")
        if len(self.crates) != len(self.grid.goals):
            raise InvalidLevel(
                f"Level #{self.rank}: {len(self.crates)} crates but {len(self.grid.goals)} goals"
            )

    def text(self) -> str:
        return render(self.grid, self.worker, self.crates)


def render(grid: Grid, worker: Position, crates: FrozenSet[Position]) -> str:
    """ASCII representation of a level in the usual Sokoban notation."""
    lines = []
    for row in range(grid.rows):
        chars = []
        for col in range(grid.columns):
            pos = Position(row, col)
            if grid.is_outside(pos):
                chars.append(" ")
                continue
            tile = grid.tile_at(pos)
            if tile is TileKind.WALL:
                chars.append("#")
            elif tile is TileKind.GOAL:
                chars.append("+" if pos == worker else "*" if pos in crates else ".")
            else:
                chars.append("@" if pos == worker else "$" if pos in crates else " ")
        lines.append("".join(chars).rstrip())
    return "\n".join(lines)
