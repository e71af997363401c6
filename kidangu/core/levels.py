from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from kidangu.core import config
from kidangu.core.errors import InvalidLevel
from kidangu.core.grid import Grid, LevelSpec, TileKind
from kidangu.core.position import DIRECTIONS, Position

logger = logging.getLogger(__name__)

# symbol -> (is wall, is goal, has crate, has worker)
_SYMBOLS = {
    "#": (True, False, False, False),
    " ": (False, False, False, False),
    "-": (False, False, False, False),
    "_": (False, False, False, False),
    "$": (False, False, True, False),
    "@": (False, False, False, True),
    ".": (False, True, False, False),
    "*": (False, True, True, False),
    "+": (False, True, False, True),
}


def _is_comment(line: str) -> bool:
    return line.strip().startswith(";")


def parse_level(text: str, rank: int = 1, title: str = "") -> LevelSpec:
    """Parse the ASCII representation of a single level."""
    lines = [line.rstrip("\r") for line in text.split("\n") if not _is_comment(line)]
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        raise InvalidLevel(f"Level #{rank} is empty")

    rows = len(lines)
    columns = max(len(line) for line in lines)
    walls = set()
    goals = set()
    crates = set()
    workers = []
    for r, line in enumerate(lines):
        for c, ch in enumerate(line):
            cell = _SYMBOLS.get(ch)
            if cell is None:
                raise InvalidLevel(f"Invalid character {ch!r} in level #{rank}, line {r}, column {c}")
            is_wall, is_goal, has_crate, has_worker = cell
            pos = Position(r, c)
            if is_wall:
                walls.add(pos)
            if is_goal:
                goals.add(pos)
            if has_crate:
                crates.add(pos)
            if has_worker:
                workers.append(pos)

    if not workers:
        raise InvalidLevel(f"No worker in level #{rank}")
    if len(workers) > 1:
        raise InvalidLevel(f"More than one worker in level #{rank}")
    worker = workers[0]

    inside = _enclosed_region(worker, walls, rows, columns, rank)
    for pos in sorted(crates | goals):
        if pos not in inside:
            raise InvalidLevel(f"Level #{rank}: {pos!r} lies outside the walls")

    tiles = []
    outside = []
    for r in range(rows):
        row = []
        for c in range(columns):
            pos = Position(r, c)
            if pos in walls:
                row.append(TileKind.WALL)
            elif pos not in inside:
                row.append(TileKind.WALL)
                outside.append(pos)
            elif pos in goals:
                row.append(TileKind.GOAL)
            else:
                row.append(TileKind.FLOOR)
        tiles.append(row)

    return LevelSpec(Grid(tiles, outside), worker, frozenset(crates), rank=rank, title=title)


def _enclosed_region(worker: Position, walls: set, rows: int, columns: int, rank: int) -> set:
    """Flood fill from the worker; leaving the rectangle means the walls have a gap."""
    inside = {worker}
    queue = deque([worker])
    while queue:
        pos = queue.popleft()
        for direction in DIRECTIONS:
            nxt = pos.neighbour(direction)
            if nxt in walls or nxt in inside:
                continue
            if not (0 <= nxt.row < rows and 0 <= nxt.col < columns):
                raise InvalidLevel(f"Level #{rank} is not enclosed by walls")
            inside.add(nxt)
            queue.append(nxt)
    return inside


@dataclass(frozen=True)
class LevelCollection:
    key: str
    title: str
    description: str
    levels: List[LevelSpec]


def parse_collection_text(key: str, text: str) -> LevelCollection:
    """Parse the classic layout: a title block, then levels separated by empty lines.

    A comment line directly above a level (``; Level title``) names it.
    """
    blocks = [b.strip("\n") for b in text.replace("\r\n", "\n").split("\n\n")]
    blocks = [b for b in blocks if b.strip()]
    if len(blocks) < 2:
        raise ValueError(f"{key}: expected a title block followed by at least one level")

    head, _, rest = blocks[0].partition("\n")
    levels = []
    for rank, block in enumerate(blocks[1:], start=1):
        title = ""
        first = block.lstrip("\n").split("\n", 1)[0]
        if _is_comment(first):
            title = first.strip().lstrip(";").strip()
        levels.append(parse_level(block, rank=rank, title=title))
    return LevelCollection(key=key, title=head.strip(), description=rest.strip(), levels=levels)


def _parse_collection_yaml(path: Path) -> LevelCollection:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not raw or not isinstance(raw, dict):
        raise ValueError(f"{path.name}: expected YAML with 'title' and 'levels'")
    title = raw.get("title")
    if not title or not isinstance(title, str):
        raise ValueError(f"{path.name}: missing or invalid 'title'")
    entries = raw.get("levels")
    if entries is None:
        raise ValueError(f"{path.name}: missing 'levels'")
    if not isinstance(entries, list) or not entries:
        raise ValueError(f"{path.name}: 'levels' has no levels")

    levels = []
    for rank, entry in enumerate(entries, start=1):
        if isinstance(entry, dict):
            level_map = entry.get("map")
            level_title = str(entry.get("title") or "").strip()
        else:
            level_map, level_title = entry, ""
        if not isinstance(level_map, str):
            raise ValueError(f"{path.name}: level {rank} has no map")
        try:
            levels.append(parse_level(level_map, rank=rank, title=level_title))
        except InvalidLevel as e:
            raise InvalidLevel(f"{path.name}: {e}") from e
    description = str(raw.get("description") or "").strip()
    return LevelCollection(key=path.stem, title=title.strip(), description=description, levels=levels)


class LevelRepository:
    """All level collections found in one directory, keyed by file stem."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else config.COLLECTIONS_DIR
        self._collections = self._load_collections()

    def keys(self) -> List[str]:
        return list(self._collections)

    def get(self, key: str) -> LevelCollection:
        return self._collections[key]

    def _load_collections(self) -> Dict[str, LevelCollection]:
        base_dir = self._base_dir
        if not base_dir.exists():
            raise FileNotFoundError(f"Collections directory not found: {base_dir}")

        def _sort_key(p: Path) -> Tuple[str, int]:
            m = re.match(r"^(.*?)(\d+)$", p.stem)
            if m:
                return (m.group(1), int(m.group(2)))
            return (p.stem, -1)

        paths = [p for p in base_dir.iterdir() if p.suffix in (".yaml", ".yml", ".lvl")]
        collections: Dict[str, LevelCollection] = {}
        for path in sorted(paths, key=_sort_key):
            if path.stem in collections:
                logger.warning("Skipping %s: collection %r already loaded", path.name, path.stem)
                continue
            if path.suffix == ".lvl":
                try:
                    collection = parse_collection_text(path.stem, path.read_text(encoding="utf-8"))
                except InvalidLevel as e:
                    raise InvalidLevel(f"{path.name}: {e}") from e
            else:
                collection = _parse_collection_yaml(path)
            collections[path.stem] = collection
            logger.debug("Loaded %s with %d levels", path.name, len(collection.levels))

        if not collections:
            raise ValueError(f"No collection files (*.yaml, *.lvl) found in {base_dir}")
        return collections
