"""Linear undo/redo log of performed moves."""

from __future__ import annotations

from typing import Iterable, List, Tuple

from kidangu.core.errors import NothingToRedo, NothingToUndo
from kidangu.core.moves import Move, moves_to_string, parse_moves


class History:
    """Moves before the cursor have been performed, moves after it can be redone."""

    def __init__(self, moves: Iterable[Move] = (), cursor: int | None = None) -> None:
        self._moves: List[Move] = list(moves)
        self._cursor = len(self._moves) if cursor is None else cursor
        if not 0 <= self._cursor <= len(self._moves):
            raise ValueError(f"History cursor {self._cursor} out of range 0..{len(self._moves)}")

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._moves)

    def performed(self) -> Tuple[Move, ...]:
        return tuple(self._moves[: self._cursor])

    def all_moves(self) -> Tuple[Move, ...]:
        return tuple(self._moves)

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._moves)

    def last(self) -> Move | None:
        return self._moves[self._cursor - 1] if self._cursor else None

    def peek_undo(self) -> Move:
        if not self._cursor:
            raise NothingToUndo()
        return self._moves[self._cursor - 1]

    def peek_redo(self) -> Move:
        if self._cursor >= len(self._moves):
            raise NothingToRedo()
        return self._moves[self._cursor]

    def record(self, move: Move) -> None:
        """Append at the cursor, discarding anything that could have been redone."""
        del self._moves[self._cursor :]
        self._moves.append(move)
        self._cursor += 1

    def undo(self) -> Move:
        move = self.peek_undo()
        self._cursor -= 1
        return move

    def redo(self) -> Move:
        move = self.peek_redo()
        self._cursor += 1
        return move

    def clear(self) -> None:
        self._moves.clear()
        self._cursor = 0

    def number_of_pushes(self) -> int:
        return sum(1 for m in self._moves[: self._cursor] if m.is_push)

    def to_string(self) -> str:
        """LURD string of the performed moves."""
        return moves_to_string(self._moves[: self._cursor])

    def all_moves_to_string(self) -> str:
        """LURD string including moves that have been undone."""
        return moves_to_string(self._moves)

    @classmethod
    def from_string(cls, text: str, cursor: int | None = None) -> History:
        return cls(parse_moves(text), cursor)
