"""The level currently being played: geometry, dynamic state and history."""

from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, List

from kidangu.core.errors import Blocked, SokobanError
from kidangu.core.grid import Grid, LevelSpec, render
from kidangu.core.history import History
from kidangu.core.moves import Move, MoveMode, parse_moves
from kidangu.core.position import Direction, Position
from kidangu.core.resolver import (
    DynamicState,
    apply_move,
    find_crate_path,
    find_path,
    is_solved,
    resolve,
    resolve_step,
    resolve_towards,
    revert_move,
)

logger = logging.getLogger(__name__)


class LevelState:
    """One level in play.

    The grid never changes. The dynamic state and the history are only ever
    replaced together, after a command has been fully resolved, so a command
    that raises leaves both exactly as they were.
    """

    def __init__(self, spec: LevelSpec) -> None:
        self._spec = spec
        self._state = DynamicState(spec.worker, spec.crates)
        self._history = History()
        self._solved = is_solved(spec.grid, self._state)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def spec(self) -> LevelSpec:
        return self._spec

    @property
    def grid(self) -> Grid:
        return self._spec.grid

    @property
    def rank(self) -> int:
        return self._spec.rank

    @property
    def title(self) -> str:
        return self._spec.title

    @property
    def state(self) -> DynamicState:
        return self._state

    @property
    def worker(self) -> Position:
        return self._state.worker

    @property
    def crates(self) -> FrozenSet[Position]:
        return self._state.crates

    @property
    def history(self) -> History:
        return self._history

    @property
    def number_of_moves(self) -> int:
        return self._history.cursor

    @property
    def number_of_pushes(self) -> int:
        return self._history.number_of_pushes()

    @property
    def worker_direction(self) -> Direction:
        """Direction the worker is facing; LEFT before the first move."""
        last = self._history.last()
        return last.direction if last else Direction.LEFT

    def is_solved(self) -> bool:
        return self._solved

    def moves_to_string(self) -> str:
        return self._history.to_string()

    def all_moves_to_string(self) -> str:
        return self._history.all_moves_to_string()

    def __str__(self) -> str:
        return render(self.grid, self._state.worker, self._state.crates)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def apply_direction(self, direction: Direction, mode: MoveMode = MoveMode.SINGLE) -> List[Move]:
        """Move the worker; every resulting step is recorded individually."""
        try:
            new_state, moves = resolve(self.grid, self._state, direction, mode)
        except Blocked as e:
            logger.debug("Level #%d: %s %s rejected: %s", self.rank, mode.value, direction.value, e)
            raise
        self._commit(new_state, moves)
        return moves

    def walk_to(self, target: Position) -> List[Move]:
        """Walk along a shortest path to ``target`` without touching any crate."""
        path = find_path(self.grid, self._state, target)
        if path is None:
            logger.debug("Level #%d: no path to %r", self.rank, target)
            raise Blocked(f"No path to {target!r}", position=target)
        return self._follow(path)

    def _follow(self, path: List[Direction]) -> List[Move]:
        state = self._state
        moves = []
        for direction in path:
            state, move = resolve_step(self.grid, state, direction)
            moves.append(move)
        self._commit(state, moves)
        return moves

    def _commit(self, state: DynamicState, moves: List[Move]) -> None:
        for move in moves:
            self._history.record(move)
        self._set_state(state)

    def walk_towards(self, target: Position) -> List[Move]:
        """Walk straight towards ``target``, stopping in front of walls and crates."""
        return self._towards(target, may_push=False)

    def push_towards(self, target: Position) -> List[Move]:
        """Walk straight towards ``target``, pushing the crate in the way along."""
        return self._towards(target, may_push=True)

    def _towards(self, target: Position, may_push: bool) -> List[Move]:
        try:
            new_state, moves = resolve_towards(self.grid, self._state, target, may_push)
        except Blocked as e:
            logger.debug("Level #%d: move towards %r rejected: %s", self.rank, target, e)
            raise
        self._commit(new_state, moves)
        return moves

    def move_crate_to_target(self, source: Position, target: Position) -> List[Move]:
        """Push the crate at ``source`` onto ``target`` with as few pushes as possible."""
        path = find_crate_path(self.grid, self._state, source, target)
        if path is None:
            logger.debug("Level #%d: cannot move crate %r to %r", self.rank, source, target)
            raise Blocked(f"Cannot move crate from {source!r} to {target!r}", position=target)
        return self._follow(path)

    def undo(self) -> Move:
        """Revert the most recent move and return it."""
        move = self._history.peek_undo()
        new_state = revert_move(self.grid, self._state, move)
        self._history.undo()
        self._set_state(new_state)
        return move

    def redo(self) -> Move:
        """Perform the most recently undone move again and return it."""
        move = self._history.peek_redo()
        new_state = apply_move(self.grid, self._state, move)
        self._history.redo()
        self._set_state(new_state)
        return move

    def reset(self) -> None:
        """Back to the initial placement with an empty history."""
        self._history.clear()
        self._set_state(DynamicState(self._spec.worker, self._spec.crates))

    def _set_state(self, state: DynamicState) -> None:
        self._state = state
        solved = is_solved(self.grid, state)
        if solved and not self._solved:
            logger.info("Level #%d solved in %d moves", self.rank, self.number_of_moves)
        self._solved = solved

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """JSON-friendly description of the dynamic state and full history."""
        return {
            "rank": self.rank,
            "worker": self._state.worker.to_list(),
            "crates": [pos.to_list() for pos in sorted(self._state.crates)],
            "moves": self._history.all_moves_to_string(),
            "cursor": self._history.cursor,
        }

    @classmethod
    def restore(cls, spec: LevelSpec, snapshot: Dict[str, Any]) -> LevelState:
        """Rebuild a level by replaying a snapshot's moves from the start."""
        if int(snapshot.get("rank", spec.rank)) != spec.rank:
            raise ValueError(f"Snapshot belongs to level #{snapshot['rank']}, not level #{spec.rank}")
        level = cls(spec)
        moves = parse_moves(str(snapshot.get("moves", "")))
        cursor = int(snapshot.get("cursor", len(moves)))
        history = History(moves, cursor)

        state = level._state
        try:
            for move in history.performed():
                state = apply_move(spec.grid, state, move)
        except SokobanError as e:
            raise ValueError(f"Snapshot does not replay on level #{spec.rank}: {e}") from e

        if "worker" in snapshot and Position.from_list(snapshot["worker"]) != state.worker:
            raise ValueError(f"Snapshot worker position disagrees with its moves on level #{spec.rank}")
        if "crates" in snapshot:
            crates = frozenset(Position.from_list(c) for c in snapshot["crates"])
            if crates != state.crates:
                raise ValueError(f"Snapshot crates disagree with its moves on level #{spec.rank}")

        level._history = history
        level._set_state(state)
        return level
