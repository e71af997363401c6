"""A collection of levels played in order.

A level can only be left forwards once it has been solved, either in this
session or in a previous one. Going back is always allowed. Once a level
has been solved its flag stays set, no matter what is undone later.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from kidangu.core.errors import LevelLocked, NoMoreLevels
from kidangu.core.grid import LevelSpec
from kidangu.core.level_state import LevelState
from kidangu.core.moves import Move, MoveMode
from kidangu.core.position import Direction, Position

logger = logging.getLogger(__name__)


class Collection:
    def __init__(
        self,
        name: str,
        levels: Sequence[LevelSpec],
        title: str = "",
        description: str = "",
        solved: Sequence[bool] | None = None,
        index: int = 0,
        unlock_all: bool = False,
    ) -> None:
        if not levels:
            raise ValueError(f"Collection {name!r} contains no levels")
        self.name = name
        self.title = title or name
        self.description = description
        self._levels: List[LevelSpec] = list(levels)
        self._solved: List[bool] = [False] * len(self._levels)
        if solved is not None:
            for i, flag in enumerate(list(solved)[: len(self._levels)]):
                self._solved[i] = bool(flag)
        if not 0 <= index < len(self._levels):
            raise ValueError(f"Level index {index} out of range for collection {name!r}")
        self._unlock_all = unlock_all
        self._index = index
        self._current = LevelState(self._levels[index])
        self._update_solved()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def index(self) -> int:
        return self._index

    @property
    def level(self) -> LevelState:
        return self._current

    @property
    def levels(self) -> List[LevelSpec]:
        return list(self._levels)

    @property
    def number_of_levels(self) -> int:
        return len(self._levels)

    @property
    def solved_flags(self) -> List[bool]:
        return list(self._solved)

    def number_of_solved_levels(self) -> int:
        return sum(self._solved)

    def is_level_solved(self, index: int) -> bool:
        return self._solved[index]

    def is_solved(self) -> bool:
        """Every level of the collection has been solved at least once."""
        return all(self._solved)

    def is_last_level(self) -> bool:
        return self._index == len(self._levels) - 1

    # ------------------------------------------------------------------
    # Level commands
    # ------------------------------------------------------------------

    def apply_direction(self, direction: Direction, mode: MoveMode = MoveMode.SINGLE) -> List[Move]:
        moves = self._current.apply_direction(direction, mode)
        self._update_solved()
        return moves

    def walk_to(self, target: Position) -> List[Move]:
        moves = self._current.walk_to(target)
        self._update_solved()
        return moves

    def walk_towards(self, target: Position) -> List[Move]:
        moves = self._current.walk_towards(target)
        self._update_solved()
        return moves

    def push_towards(self, target: Position) -> List[Move]:
        moves = self._current.push_towards(target)
        self._update_solved()
        return moves

    def move_crate_to_target(self, source: Position, target: Position) -> List[Move]:
        moves = self._current.move_crate_to_target(source, target)
        self._update_solved()
        return moves

    def undo(self) -> Move:
        move = self._current.undo()
        self._update_solved()
        return move

    def redo(self) -> Move:
        move = self._current.redo()
        self._update_solved()
        return move

    def reset(self) -> None:
        self._current.reset()

    def _update_solved(self) -> bool:
        """Latch the current level's flag; True if it was set just now."""
        if self._current.is_solved() and not self._solved[self._index]:
            self._solved[self._index] = True
            logger.info("%s: level %d solved for the first time", self.name, self._index + 1)
            return True
        return False

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def goto_next(self) -> LevelState:
        if not (self._solved[self._index] or self._unlock_all):
            raise LevelLocked(f"Level {self._index + 1} of {self.name!r} has not been solved yet")
        if self.is_last_level():
            raise NoMoreLevels(f"Level {self._index + 1} is the last level of {self.name!r}")
        return self._goto(self._index + 1)

    def goto_previous(self) -> LevelState:
        if self._index == 0:
            raise NoMoreLevels(f"Level 1 is the first level of {self.name!r}")
        return self._goto(self._index - 1)

    def _goto(self, index: int) -> LevelState:
        self._index = index
        self._current = LevelState(self._levels[index])
        logger.info("%s: switched to level %d", self.name, index + 1)
        self._update_solved()
        return self._current

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "collection": self.name,
            "index": self._index,
            "solved": list(self._solved),
            "level": self._current.snapshot(),
        }

    @classmethod
    def restore(
        cls,
        name: str,
        levels: Sequence[LevelSpec],
        snapshot: Dict[str, Any],
        title: str = "",
        description: str = "",
        unlock_all: bool = False,
    ) -> Collection:
        """Rebuild a collection from ``snapshot``; raises ValueError if it does not fit."""
        if snapshot.get("collection", name) != name:
            raise ValueError(f"Snapshot belongs to {snapshot.get('collection')!r}, not {name!r}")
        solved = snapshot.get("solved") or []
        if len(solved) > len(levels):
            raise ValueError(f"Snapshot has {len(solved)} levels, collection {name!r} has {len(levels)}")
        collection = cls(
            name,
            levels,
            title=title,
            description=description,
            solved=solved,
            index=int(snapshot.get("index", 0)),
            unlock_all=unlock_all,
        )
        level = snapshot.get("level")
        if level:
            collection._current = LevelState.restore(collection._levels[collection._index], level)
            collection._update_solved()
        return collection
