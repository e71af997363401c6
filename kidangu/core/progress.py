from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from kidangu.core import config
from kidangu.core.collection import Collection
from kidangu.core.level_state import LevelState

logger = logging.getLogger(__name__)


@dataclass
class Solution:
    """One particular solution of a level."""

    moves: int
    pushes: int
    steps: str

    @classmethod
    def from_level(cls, level: LevelState) -> Solution:
        return cls(moves=level.number_of_moves, pushes=level.number_of_pushes, steps=level.moves_to_string())

    def min_moves(self, other: Solution) -> Solution:
        """Whichever needs fewer worker moves; pushes break ties."""
        if (self.moves, self.pushes) <= (other.moves, other.pushes):
            return self
        return other

    def min_pushes(self, other: Solution) -> Solution:
        """Whichever needs fewer crate pushes; moves break ties."""
        if (self.pushes, self.moves) <= (other.pushes, other.moves):
            return self
        return other


@dataclass
class LevelRecord:
    least_moves: Solution
    least_pushes: Solution


@dataclass
class UpdateResponse:
    first_time: bool = False
    fewer_moves: bool = False
    fewer_pushes: bool = False


@dataclass
class CollectionProgress:
    index: int = 0
    solved: List[bool] = field(default_factory=list)
    level: Optional[Dict[str, Any]] = None
    solutions: Dict[int, LevelRecord] = field(default_factory=dict)


class ProgressStore:
    """Stores per-collection progress and best solutions. Persists to disk across restarts.
    File: ~/.kidangu/progress.json unless KIDANGU_HOME says otherwise."""

    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = Path(file_path) if file_path is not None else config.PROGRESS_FILE
        self._collections = self._load()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def get_collection(self, name: str) -> CollectionProgress:
        return self._collections.get(name, CollectionProgress())

    def save_collection(self, collection: Collection) -> None:
        """Remember index, solved flags and the active level of ``collection``."""
        current = self._collections.get(collection.name, CollectionProgress())
        snapshot = collection.snapshot()
        current.index = snapshot["index"]
        current.solved = snapshot["solved"]
        current.level = snapshot["level"]
        self._collections[collection.name] = current
        self._save()

    def record_solution(self, name: str, index: int, solution: Solution) -> UpdateResponse:
        """Keep the best solutions for a level and report what improved."""
        current = self._collections.get(name, CollectionProgress())
        record = current.solutions.get(index)
        if record is None:
            current.solutions[index] = LevelRecord(least_moves=solution, least_pushes=solution)
            response = UpdateResponse(first_time=True)
        else:
            response = UpdateResponse(
                fewer_moves=solution.moves < record.least_moves.moves,
                fewer_pushes=solution.pushes < record.least_pushes.pushes,
            )
            record.least_moves = record.least_moves.min_moves(solution)
            record.least_pushes = record.least_pushes.min_pushes(solution)
        if len(current.solved) <= index:
            current.solved.extend([False] * (index + 1 - len(current.solved)))
        current.solved[index] = True
        self._collections[name] = current
        self._save()
        return response

    def reset_collection(self, name: str) -> None:
        """Forget everything about one collection."""
        self._collections.pop(name, None)
        self._save()

    def reset(self) -> None:
        """Clear all progress."""
        self._collections = {}
        self._save()

    def save(self) -> None:
        """Persist current state to disk (e.g. on exit)."""
        self._save()

    def _load(self) -> Dict[str, CollectionProgress]:
        collections: Dict[str, CollectionProgress] = {}
        if not self._file_path.exists():
            return collections
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load progress from %s: %s", self._file_path, e)
            return collections
        if not isinstance(payload, dict) or not isinstance(payload.get("collections", {}), dict):
            logger.warning("Ignoring malformed progress file %s", self._file_path)
            return collections

        for name, value in payload.get("collections", {}).items():
            try:
                collections[name] = _progress_from_dict(value)
            except (TypeError, ValueError, KeyError, AttributeError) as e:
                logger.warning("Ignoring progress for %r in %s: %s", name, self._file_path, e)
        return collections

    def _save(self) -> None:
        payload = {
            "collections": {name: _progress_to_dict(value) for name, value in self._collections.items()},
        }
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save progress to %s: %s", self._file_path, e)


def _progress_to_dict(progress: CollectionProgress) -> Dict[str, Any]:
    return {
        "index": progress.index,
        "solved": list(progress.solved),
        "level": progress.level,
        "solutions": {str(i): asdict(record) for i, record in progress.solutions.items()},
    }


def _progress_from_dict(value: Dict[str, Any]) -> CollectionProgress:
    solutions = {}
    for key, record in (value.get("solutions") or {}).items():
        solutions[int(key)] = LevelRecord(
            least_moves=Solution(**record["least_moves"]),
            least_pushes=Solution(**record["least_pushes"]),
        )
    level = value.get("level")
    return CollectionProgress(
        index=int(value.get("index", 0)),
        solved=[bool(flag) for flag in value.get("solved", [])],
        level=level if isinstance(level, dict) else None,
        solutions=solutions,
    )
