"""Error kinds raised by the game engine.

All of them are recoverable except ``InvalidLevel``, which is raised while
loading level data. A command that raises leaves the level untouched.
"""

from __future__ import annotations


class SokobanError(Exception):
    """Base class for every engine error."""


class OutOfBounds(SokobanError):
    """A position lies outside the grid's rectangle."""

    def __init__(self, position) -> None:
        super().__init__(f"Position {position!r} is outside the grid")
        self.position = position


class InvalidLevel(SokobanError):
    """Level data is malformed, e.g. no worker or an open border."""


class Blocked(SokobanError):
    """A move was rejected by a wall or a crate."""

    def __init__(self, message: str = "Move blocked", position=None) -> None:
        super().__init__(message)
        self.position = position


class NothingToUndo(SokobanError):
    def __init__(self) -> None:
        super().__init__("Nothing to undo")


class NothingToRedo(SokobanError):
    def __init__(self) -> None:
        super().__init__("Nothing to redo")


class LevelLocked(SokobanError):
    """Tried to advance past a level that has not been solved."""


class NoMoreLevels(SokobanError):
    """Tried to move past either end of a collection."""
