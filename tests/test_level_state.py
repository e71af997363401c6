"""Tests for kidangu.core.level_state – playing a single level."""

from __future__ import annotations

import pytest

from kidangu.core.errors import Blocked, NothingToRedo, NothingToUndo
from kidangu.core.grid import TileKind
from kidangu.core.level_state import LevelState
from kidangu.core.levels import LevelRepository, parse_level
from kidangu.core.moves import Effect, MoveMode, parse_moves
from kidangu.core.position import Direction, Position

SIMPLE = "#####\n#@$.#\n#####"

ROOM = """\
#######
#.   .#
# $ $ #
#  @  #
#######"""

CLASSIC_SOLUTION = (
    "ullluuuLUllDlldddrRRRRRRRRRRRRurD"
    "llllllllllllllulldRRRRRRRRRRRRRRR"
    "lllllllluuululldDDuulldddrRRRRRRRRRRRdrUluR"
    "lldlllllluuulLulDDDuulldddrRRRRRRRRRRRurD"
    "lllllllluuulluuulDDDDDuulldddrRRRRRRRRRRR"
    "llllllluuulluuurDDllddddrrruuuLLulDDDuulldddrRRRRRRRRRRdrUluR"
)


def _level(text: str = SIMPLE) -> LevelState:
    return LevelState(parse_level(text))


def _assert_invariants(level: LevelState) -> None:
    assert level.worker not in level.crates
    for pos in level.crates:
        assert level.grid.tile_at(pos) is not TileKind.WALL
    assert level.grid.tile_at(level.worker) is not TileKind.WALL


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_push_onto_goal_then_undo(self):
        level = _level()
        level.apply_direction(Direction.RIGHT, MoveMode.SINGLE)
        assert level.worker == Position(1, 2)
        assert level.crates == frozenset({Position(1, 3)})
        assert level.is_solved()

        level.undo()
        assert level.worker == Position(1, 1)
        assert level.crates == frozenset({Position(1, 2)})
        assert not level.is_solved()

    def test_walking_away_never_pulls(self):
        level = _level()
        level.apply_direction(Direction.RIGHT)
        level.apply_direction(Direction.LEFT)
        assert level.worker == Position(1, 1)
        assert level.crates == frozenset({Position(1, 3)})

    def test_classic_level_solution(self):
        spec = LevelRepository().get("classic").levels[0]
        level = LevelState(spec)
        for i, move in enumerate(parse_moves(CLASSIC_SOLUTION)):
            assert level.apply_direction(move.direction), f"move #{i} failed\n{level}"
        assert level.is_solved()
        assert level.number_of_moves == len(CLASSIC_SOLUTION)


# ---------------------------------------------------------------------------
# apply_direction
# ---------------------------------------------------------------------------

class TestApplyDirection:
    def test_records_each_step(self):
        level = _level(ROOM)
        moves = level.apply_direction(Direction.LEFT, MoveMode.RUN)
        assert len(moves) == 2
        assert level.number_of_moves == 2
        assert level.history.performed() == tuple(moves)

    def test_blocked_leaves_everything_unchanged(self):
        level = _level()
        level.apply_direction(Direction.RIGHT)
        before = (level.state, level.history.all_moves(), level.history.cursor)
        with pytest.raises(Blocked):
            level.apply_direction(Direction.RIGHT)
        assert (level.state, level.history.all_moves(), level.history.cursor) == before

    def test_counters_and_direction(self):
        level = _level(ROOM)
        assert level.worker_direction is Direction.LEFT
        level.apply_direction(Direction.UP)
        level.apply_direction(Direction.UP)
        assert level.number_of_moves == 2
        assert level.number_of_pushes == 0
        assert level.worker_direction is Direction.UP
        level.apply_direction(Direction.DOWN)
        level.apply_direction(Direction.LEFT)
        assert level.number_of_pushes == 1
        assert level.worker_direction is Direction.LEFT

    def test_move_strings(self):
        level = _level()
        level.apply_direction(Direction.RIGHT)
        level.apply_direction(Direction.LEFT)
        level.undo()
        assert level.moves_to_string() == "R"
        assert level.all_moves_to_string() == "Rl"

    def test_str_renders_current_state(self):
        level = _level()
        level.apply_direction(Direction.RIGHT)
        assert str(level) == "#####\n# @*#\n#####"

    def test_invariants_hold_for_random_walk(self):
        level = _level(ROOM)
        directions = [Direction.UP, Direction.LEFT, Direction.LEFT, Direction.DOWN, Direction.RIGHT,
                      Direction.RIGHT, Direction.UP, Direction.UP, Direction.RIGHT, Direction.DOWN]
        for direction in directions:
            for mode in MoveMode:
                try:
                    level.apply_direction(direction, mode)
                except Blocked:
                    pass
                _assert_invariants(level)


# ---------------------------------------------------------------------------
# Undo / redo
# ---------------------------------------------------------------------------

class TestUndoRedo:
    def test_undo_restores_exact_state(self):
        level = _level(ROOM)
        for direction in (Direction.LEFT, Direction.UP, Direction.UP, Direction.RIGHT):
            before = level.state
            try:
                level.apply_direction(direction)
            except Blocked:
                continue
            level.undo()
            assert level.state == before
            level.redo()

    def test_undo_push_restores_crate(self):
        level = _level(ROOM)
        level.apply_direction(Direction.LEFT)
        before = level.state
        moves = level.apply_direction(Direction.UP)
        assert moves[0].effect is Effect.PUSH
        level.undo()
        assert level.state == before

    def test_redo_after_undo_round_trip(self):
        level = _level(ROOM)
        level.apply_direction(Direction.LEFT)
        level.apply_direction(Direction.UP)
        after = level.state
        level.undo()
        level.redo()
        assert level.state == after

    def test_undo_everything_then_redo_everything(self):
        level = _level(ROOM)
        start = level.state
        level.apply_direction(Direction.LEFT)
        level.apply_direction(Direction.UP)
        level.apply_direction(Direction.RIGHT, MoveMode.RUN)
        end = level.state
        count = level.number_of_moves
        for _ in range(count):
            level.undo()
        assert level.state == start
        for _ in range(count):
            level.redo()
        assert level.state == end

    def test_nothing_to_undo(self):
        with pytest.raises(NothingToUndo):
            _level().undo()

    def test_nothing_to_redo(self):
        level = _level()
        level.apply_direction(Direction.RIGHT)
        with pytest.raises(NothingToRedo):
            level.redo()

    def test_new_move_discards_redo(self):
        level = _level(ROOM)
        level.apply_direction(Direction.LEFT)
        level.undo()
        level.apply_direction(Direction.RIGHT)
        with pytest.raises(NothingToRedo):
            level.redo()

    def test_solved_recomputed_by_redo(self):
        level = _level()
        level.apply_direction(Direction.RIGHT)
        level.undo()
        assert not level.is_solved()
        level.redo()
        assert level.is_solved()


# ---------------------------------------------------------------------------
# reset / walk_to
# ---------------------------------------------------------------------------

class TestResetAndWalk:
    def test_reset(self):
        level = _level(ROOM)
        start = level.state
        level.apply_direction(Direction.LEFT)
        level.apply_direction(Direction.UP)
        level.reset()
        assert level.state == start
        assert level.number_of_moves == 0
        with pytest.raises(NothingToRedo):
            level.redo()

    def test_walk_to(self):
        level = _level(ROOM)
        moves = level.walk_to(Position(1, 3))
        assert level.worker == Position(1, 3)
        assert all(m.effect is Effect.WORKER_ONLY for m in moves)
        assert level.number_of_moves == len(moves) == 2

    def test_walk_to_is_undoable_step_by_step(self):
        level = _level(ROOM)
        start = level.state
        moves = level.walk_to(Position(1, 1))
        for _ in moves:
            level.undo()
        assert level.state == start

    def test_walk_to_unreachable(self):
        level = _level()
        with pytest.raises(Blocked):
            level.walk_to(Position(1, 3))
        assert level.number_of_moves == 0

    def test_walk_to_current_cell(self):
        level = _level()
        assert level.walk_to(level.worker) == []


# ---------------------------------------------------------------------------
# snapshot / restore
# ---------------------------------------------------------------------------

class TestSnapshot:
    def test_snapshot_contents(self):
        level = _level()
        level.apply_direction(Direction.RIGHT)
        snap = level.snapshot()
        assert snap["worker"] == [1, 2]
        assert snap["crates"] == [[1, 3]]
        assert snap["moves"] == "R"
        assert snap["cursor"] == 1

    def test_restore_keeps_redo_tail(self):
        level = _level(ROOM)
        level.apply_direction(Direction.LEFT)
        level.apply_direction(Direction.UP)
        level.undo()
        restored = LevelState.restore(level.spec, level.snapshot())
        assert restored.state == level.state
        restored.redo()
        level.redo()
        assert restored.state == level.state

    def test_restore_rejects_moves_that_do_not_fit(self):
        spec = parse_level(SIMPLE)
        with pytest.raises(ValueError):
            LevelState.restore(spec, {"moves": "l", "cursor": 1})

    def test_restore_rejects_inconsistent_position(self):
        spec = parse_level(SIMPLE)
        with pytest.raises(ValueError):
            LevelState.restore(spec, {"moves": "R", "cursor": 1, "worker": [1, 1]})

    def test_restore_rejects_snapshot_of_another_level(self):
        level = _level()
        level.apply_direction(Direction.RIGHT)
        snap = level.snapshot()
        other = parse_level(SIMPLE, rank=2)
        with pytest.raises(ValueError, match="level #1"):
            LevelState.restore(other, snap)


# ---------------------------------------------------------------------------
# walk_towards / push_towards / move_crate_to_target
# ---------------------------------------------------------------------------

CORRIDOR = "########\n#@  $ .#\n########"

OPEN = """\
#######
#     #
# $   #
#@   .#
#######"""


class TestTowardsAndCrateMoves:
    def test_walk_towards_records_steps(self):
        level = _level(CORRIDOR)
        moves = level.walk_towards(Position(1, 6))
        assert level.worker == Position(1, 3)
        assert level.number_of_moves == len(moves) == 2
        assert level.number_of_pushes == 0

    def test_push_towards(self):
        level = _level(CORRIDOR)
        level.push_towards(Position(1, 5))
        assert level.is_solved()
        assert level.moves_to_string() == "rrRR"

    def test_towards_not_in_line(self):
        level = _level(OPEN)
        with pytest.raises(Blocked):
            level.walk_towards(Position(1, 2))
        assert level.number_of_moves == 0

    def test_move_crate_to_target(self):
        level = _level(OPEN)
        start = level.state
        moves = level.move_crate_to_target(Position(2, 2), Position(3, 5))
        assert level.is_solved()
        assert level.number_of_pushes == 4
        assert level.number_of_moves == len(moves)
        for _ in moves:
            level.undo()
        assert level.state == start

    def test_move_crate_impossible(self):
        level = _level("######\n#@ .$#\n######")
        before = level.state
        with pytest.raises(Blocked):
            level.move_crate_to_target(Position(1, 4), Position(1, 3))
        assert level.state == before
        assert level.number_of_moves == 0
