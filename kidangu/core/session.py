from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Union

from kidangu.core import config
from kidangu.core.collection import Collection
from kidangu.core.errors import SokobanError
from kidangu.core.levels import LevelRepository
from kidangu.core.macros import Macros, check_slot
from kidangu.core.moves import Move, MoveMode
from kidangu.core.position import Direction, Position
from kidangu.core.progress import ProgressStore, Solution, UpdateResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveCommand:
    direction: Direction
    mode: MoveMode = MoveMode.SINGLE


@dataclass(frozen=True)
class WalkTo:
    position: Position


@dataclass(frozen=True)
class WalkTowards:
    position: Position


@dataclass(frozen=True)
class PushTowards:
    position: Position


@dataclass(frozen=True)
class MoveCrateToTarget:
    source: Position
    target: Position


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class Redo:
    pass


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class NextLevel:
    pass


@dataclass(frozen=True)
class PreviousLevel:
    pass


@dataclass(frozen=True)
class Save:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class RecordMacro:
    slot: int

    def __post_init__(self) -> None:
        check_slot(self.slot)


@dataclass(frozen=True)
class StoreMacro:
    pass


@dataclass(frozen=True)
class ExecuteMacro:
    slot: int

    def __post_init__(self) -> None:
        check_slot(self.slot)


Command = Union[
    MoveCommand,
    WalkTo,
    WalkTowards,
    PushTowards,
    MoveCrateToTarget,
    Undo,
    Redo,
    Reset,
    NextLevel,
    PreviousLevel,
    Save,
    Quit,
    RecordMacro,
    StoreMacro,
    ExecuteMacro,
]

# Commands that act on the current level and can be recorded in a macro
_RECORDABLE = (MoveCommand, WalkTo, WalkTowards, PushTowards, MoveCrateToTarget, Undo, Redo)


@dataclass
class Response:
    """What a front end needs to redraw after a command."""

    ok: bool
    level_index: int
    worker: Position
    crates: FrozenSet[Position]
    solved: bool
    moves: List[Move] = field(default_factory=list)
    error: Optional[SokobanError] = None
    newly_solved: bool = False
    update: Optional[UpdateResponse] = None
    finished: bool = False
    macro_length: Optional[int] = None


class GameSession:
    """Runs commands against a collection and keeps the progress store in sync.

    Engine errors never escape ``execute``; they come back as a response
    with ``ok`` set to False and the level left exactly as it was. A macro
    is the exception: the commands it ran before the rejected one stay
    applied and their moves are reported with the error.
    """

    def __init__(self, collection: Collection, store: Optional[ProgressStore] = None) -> None:
        self._collection = collection
        self._store = store
        self._macros = Macros()
        self._finished = False

    @classmethod
    def open(
        cls,
        key: str,
        repository: Optional[LevelRepository] = None,
        store: Optional[ProgressStore] = None,
        unlock_all: Optional[bool] = None,
    ) -> GameSession:
        """Open a collection by name, resuming saved progress where possible."""
        repository = repository if repository is not None else LevelRepository()
        unlock_all = config.UNLOCK_ALL if unlock_all is None else unlock_all
        level_collection = repository.get(key)
        progress = store.get_collection(key) if store is not None else None

        collection = None
        if progress is not None and (progress.solved or progress.level):
            snapshot = {
                "collection": key,
                "index": progress.index,
                "solved": progress.solved,
                "level": progress.level,
            }
            try:
                collection = Collection.restore(
                    key,
                    level_collection.levels,
                    snapshot,
                    title=level_collection.title,
                    description=level_collection.description,
                    unlock_all=unlock_all,
                )
                logger.info("Resumed %s at level %d", key, collection.index + 1)
            except (ValueError, SokobanError) as e:
                logger.warning("Saved progress for %s no longer fits, starting over: %s", key, e)
        if collection is None:
            collection = Collection(
                key,
                level_collection.levels,
                title=level_collection.title,
                description=level_collection.description,
                unlock_all=unlock_all,
            )
        return cls(collection, store)

    @property
    def collection(self) -> Collection:
        return self._collection

    @property
    def macros(self) -> Macros:
        return self._macros

    @property
    def finished(self) -> bool:
        return self._finished

    def execute(self, command: Command) -> Response:
        if isinstance(command, RecordMacro):
            self._macros.start_recording(command.slot)
            return self._response(ok=True)
        if isinstance(command, StoreMacro):
            return self._response(ok=True, macro_length=self._macros.stop_recording())

        was_solved = self._collection.level.is_solved()
        moves: List[Move] = []
        error: Optional[SokobanError] = None
        try:
            self._dispatch(command, moves)
        except SokobanError as e:
            logger.debug("%s rejected: %s", type(command).__name__, e)
            error = e

        newly_solved = False
        update = None
        if moves and self._collection.level.is_solved() and not was_solved:
            newly_solved = True
            update = self._record_solution()
        return self._response(
            ok=error is None,
            error=error,
            moves=moves,
            newly_solved=newly_solved,
            update=update,
            finished=self._finished,
        )

    def _dispatch(self, command: Command, moves: List[Move]) -> None:
        """Run ``command``, appending the moves it makes to ``moves``.

        A macro runs its commands one by one and stops at the first one that
        is rejected; the commands before it stay applied.
        """
        collection = self._collection
        if isinstance(command, ExecuteMacro):
            for recorded in self._macros.get(command.slot):
                self._dispatch(recorded, moves)
            return
        if isinstance(command, MoveCommand):
            moves.extend(collection.apply_direction(command.direction, command.mode))
        elif isinstance(command, WalkTo):
            moves.extend(collection.walk_to(command.position))
        elif isinstance(command, WalkTowards):
            moves.extend(collection.walk_towards(command.position))
        elif isinstance(command, PushTowards):
            moves.extend(collection.push_towards(command.position))
        elif isinstance(command, MoveCrateToTarget):
            moves.extend(collection.move_crate_to_target(command.source, command.target))
        elif isinstance(command, Undo):
            moves.append(collection.undo())
        elif isinstance(command, Redo):
            moves.append(collection.redo())
        elif isinstance(command, Reset):
            collection.reset()
        elif isinstance(command, NextLevel):
            collection.goto_next()
            self.save()
        elif isinstance(command, PreviousLevel):
            collection.goto_previous()
            self.save()
        elif isinstance(command, Save):
            self.save()
        elif isinstance(command, Quit):
            self.save()
            self._finished = True
        else:
            raise TypeError(f"Unknown command: {command!r}")
        # macros are stored unrolled, so nested ExecuteMacro never reaches a slot
        if isinstance(command, _RECORDABLE):
            self._macros.push(command)

    def save(self) -> None:
        if self._store is not None:
            self._store.save_collection(self._collection)

    def _record_solution(self) -> Optional[UpdateResponse]:
        if self._store is None:
            return None
        collection = self._collection
        solution = Solution.from_level(collection.level)
        update = self._store.record_solution(collection.name, collection.index, solution)
        self._store.save_collection(collection)
        return update

    def _response(self, ok: bool, **kwargs) -> Response:
        collection = self._collection
        level = collection.level
        return Response(
            ok=ok,
            level_index=collection.index,
            worker=level.worker,
            crates=level.crates,
            solved=level.is_solved(),
            **kwargs,
        )
