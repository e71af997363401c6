"""Move resolution.

Everything here is a pure function of a ``Grid`` and a ``DynamicState``:
callers get a new state back (or a ``Blocked`` error) and decide themselves
what to record in the history.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from kidangu.core.errors import Blocked
from kidangu.core.grid import Grid
from kidangu.core.moves import Effect, Move, MoveMode
from kidangu.core.position import DIRECTIONS, Direction, Position


@dataclass(frozen=True)
class DynamicState:
    """Where the worker and the crates are right now."""

    worker: Position
    crates: FrozenSet[Position]

    def has_crate(self, pos: Position) -> bool:
        return pos in self.crates

    def is_free(self, grid: Grid, pos: Position) -> bool:
        """Walkable and not holding a crate."""
        return grid.is_walkable(pos) and pos not in self.crates


def is_solved(grid: Grid, state: DynamicState) -> bool:
    return len(grid.goals & state.crates) == len(grid.goals)


def resolve_step(grid: Grid, state: DynamicState, direction: Direction) -> Tuple[DynamicState, Move]:
    """Take one step, pushing a crate if there is one ahead."""
    target = state.worker.neighbour(direction)
    if not grid.is_walkable(target):
        raise Blocked(f"Wall at {target!r}", position=target)

    if state.has_crate(target):
        push_target = target.neighbour(direction)
        if not state.is_free(grid, push_target):
            raise Blocked(f"Crate at {target!r} cannot move to {push_target!r}", position=push_target)
        crates = (state.crates - {target}) | {push_target}
        return DynamicState(target, frozenset(crates)), Move(direction, Effect.PUSH)

    return DynamicState(target, state.crates), Move(direction, Effect.WORKER_ONLY)


def resolve(
    grid: Grid,
    state: DynamicState,
    direction: Direction,
    mode: MoveMode = MoveMode.SINGLE,
) -> Tuple[DynamicState, List[Move]]:
    """Resolve a command in the given mode.

    SINGLE takes exactly one step. RUN keeps stepping until blocked, pushes
    at most one crate and stops once the level is solved. PUSH_FREE_RUN
    stops right in front of the first crate. A command that cannot make a
    single step raises ``Blocked``.
    """
    if mode is MoveMode.SINGLE:
        new_state, move = resolve_step(grid, state, direction)
        return new_state, [move]

    moves: List[Move] = []
    pushed = False
    for _ in range(grid.longest_dimension):
        try:
            next_state, move = resolve_step(grid, state, direction)
        except Blocked:
            if not moves:
                raise
            break
        if move.is_push and (mode is MoveMode.PUSH_FREE_RUN or pushed):
            if not moves:
                raise Blocked(f"Crate at {next_state.worker!r}", position=next_state.worker)
            break
        moves.append(move)
        state = next_state
        if move.is_push:
            pushed = True
            if is_solved(grid, state):
                break
    return state, moves


def resolve_towards(
    grid: Grid,
    state: DynamicState,
    target: Position,
    may_push: bool = False,
) -> Tuple[DynamicState, List[Move]]:
    """Walk straight towards ``target`` until the worker gets there or is stopped.

    Without ``may_push`` the worker stops in front of a crate. With it, the
    crate ahead is pushed along, and the walk ends once the level is solved.
    """
    direction = state.worker.direction_to(target)
    if direction is None:
        if state.worker == target:
            return state, []
        raise Blocked(f"{target!r} is not in line with the worker", position=target)

    moves: List[Move] = []
    while state.worker != target:
        try:
            next_state, move = resolve_step(grid, state, direction)
        except Blocked:
            if not moves:
                raise
            break
        if move.is_push and not may_push:
            if not moves:
                raise Blocked(f"Crate at {next_state.worker!r}", position=next_state.worker)
            break
        moves.append(move)
        state = next_state
        if move.is_push and is_solved(grid, state):
            break
    return state, moves


def apply_move(grid: Grid, state: DynamicState, move: Move) -> DynamicState:
    """Re-apply a recorded move, e.g. for redo or when replaying a save."""
    new_state, actual = resolve_step(grid, state, move.direction)
    if actual != move:
        raise Blocked(f"Recorded move {move.to_char()!r} does not match the level")
    return new_state


def revert_move(grid: Grid, state: DynamicState, move: Move) -> DynamicState:
    """Apply the inverse of ``move``, which must be the last move performed."""
    back = state.worker.neighbour(move.direction.reverse())
    if not state.is_free(grid, back):
        raise Blocked(f"Cannot step back to {back!r}", position=back)
    crates = state.crates
    if move.is_push:
        crate = state.worker.neighbour(move.direction)
        if crate not in crates:
            raise Blocked(f"No crate to pull back at {crate!r}", position=crate)
        crates = frozenset((crates - {crate}) | {state.worker})
    return DynamicState(back, crates)


def find_path(grid: Grid, state: DynamicState, target: Position) -> Optional[List[Direction]]:
    """Shortest crate-free walk from the worker to ``target``, or None."""
    start = state.worker
    if start == target:
        return []
    if not state.is_free(grid, target):
        return None

    came_from: Dict[Position, Tuple[Position, Direction]] = {}
    queue = deque([start])
    seen = {start}
    while queue:
        pos = queue.popleft()
        for direction in DIRECTIONS:
            nxt = pos.neighbour(direction)
            if nxt in seen or not state.is_free(grid, nxt):
                continue
            seen.add(nxt)
            came_from[nxt] = (pos, direction)
            if nxt == target:
                path = []
                while nxt != start:
                    nxt, step = came_from[nxt]
                    path.append(step)
                path.reverse()
                return path
            queue.append(nxt)
    return None


def find_crate_path(
    grid: Grid,
    state: DynamicState,
    source: Position,
    target: Position,
) -> Optional[List[Direction]]:
    """Worker steps that push the crate at ``source`` onto ``target``, or None.

    The search runs breadth first over (crate, worker) placements, so the
    crate gets there with as few pushes as possible. Between pushes the
    worker walks around without touching any crate.
    """
    if source == target or not state.has_crate(source) or not state.is_free(grid, target):
        return None

    others = state.crates - {source}
    start = (source, state.worker)
    came_from: Dict[Tuple[Position, Position], Tuple[Tuple[Position, Position], List[Direction]]] = {}
    queue = deque([start])
    seen = {start}
    while queue:
        key = queue.popleft()
        crate, worker = key
        current = DynamicState(worker, others | {crate})
        for direction in DIRECTIONS:
            ahead = crate.neighbour(direction)
            if not current.is_free(grid, ahead):
                continue
            walk = find_path(grid, current, crate.neighbour(direction.reverse()))
            if walk is None:
                continue
            nxt = (ahead, crate)
            if nxt in seen:
                continue
            seen.add(nxt)
            came_from[nxt] = (key, walk + [direction])
            if ahead == target:
                path: List[Direction] = []
                while nxt != start:
                    nxt, steps = came_from[nxt]
                    path[:0] = steps
                return path
            queue.append(nxt)
    return None
