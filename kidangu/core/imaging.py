"""Convert raster images into levels and back.

The first row of an image is a colour key with eight entries: background,
wall, floor, worker, crate on goal, crate, empty goal and worker on goal.
Every following row is one row of the level, one pixel per cell.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Sequence

from PySide6.QtGui import QColor, QImage

from kidangu.core.grid import LevelSpec

logger = logging.getLogger(__name__)

KEY_SYMBOLS = (" ", "#", " ", "@", "*", "$", ".", "+")

# Colours used when writing levels as images (same order as KEY_SYMBOLS)
DEFAULT_PALETTE = (
    "#000000",
    "#7f7f7f",
    "#e0e0e0",
    "#0000ff",
    "#00ff00",
    "#ffff00",
    "#ff0000",
    "#00ffff",
)

IMAGE_SUFFIXES = (".png", ".bmp", ".gif", ".ppm", ".pbm", ".pgm", ".jpg", ".jpeg")


def _load_image(path: Path) -> QImage:
    image = QImage(str(path))
    if image.isNull():
        raise ValueError(f"Could not read image: {path}")
    return image


def _color_key(image: QImage, path: Path) -> Dict[int, str]:
    if image.width() < len(KEY_SYMBOLS):
        raise ValueError(f"{path.name}: first row must hold {len(KEY_SYMBOLS)} key colours")
    key: Dict[int, str] = {}
    for x, symbol in enumerate(KEY_SYMBOLS):
        # earlier entries win when two key colours coincide
        key.setdefault(image.pixel(x, 0), symbol)
    return key


def image_to_level_text(path: Path) -> str:
    """ASCII level for the image at ``path``; the key row is not part of the output."""
    path = Path(path)
    image = _load_image(path)
    key = _color_key(image, path)
    lines: List[str] = []
    for y in range(1, image.height()):
        chars = []
        for x in range(image.width()):
            symbol = key.get(image.pixel(x, y))
            if symbol is None:
                raise ValueError(f"{path.name}: invalid pixel at ({x},{y})")
            chars.append(symbol)
        lines.append("".join(chars).rstrip())
    return "\n".join(lines)


def directory_to_collection_text(directory: Path) -> str:
    """Build a collection from a directory of images plus ``.txt`` files (e.g. the title)."""
    directory = Path(directory)
    blocks = []
    images = 0
    for path in sorted(directory.iterdir()):
        if path.suffix == ".txt":
            blocks.append(path.read_text(encoding="utf-8").strip("\n"))
        elif path.suffix.lower() in IMAGE_SUFFIXES:
            blocks.append(image_to_level_text(path))
            images += 1
            logger.debug("Converted %s", path.name)
    if not images:
        raise ValueError(f"No images found in {directory}")
    return "\n\n".join(blocks) + "\n"


def write_collection(directory: Path) -> Path:
    """Convert ``directory`` and write the result next to it as ``<directory>.lvl``."""
    directory = Path(directory)
    output = directory.with_suffix(".lvl")
    output.write_text(directory_to_collection_text(directory), encoding="utf-8")
    logger.info("Wrote %s", output)
    return output


def level_to_image(spec: LevelSpec, path: Path, palette: Sequence[str] = DEFAULT_PALETTE) -> None:
    """Write ``spec`` as an image that ``image_to_level_text`` reads back."""
    colors = [QColor(c).rgb() for c in palette]
    if len(colors) != len(KEY_SYMBOLS):
        raise ValueError(f"Palette needs {len(KEY_SYMBOLS)} colours")
    lines = spec.text().split("\n")
    width = max(len(KEY_SYMBOLS), spec.grid.columns)
    image = QImage(width, len(lines) + 1, QImage.Format.Format_RGB32)
    image.fill(QColor(palette[0]))
    for x, color in enumerate(colors):
        image.setPixel(x, 0, color)
    symbol_colors = {}
    for color, symbol in zip(colors, KEY_SYMBOLS):
        symbol_colors.setdefault(symbol, color)
    for y, line in enumerate(lines, start=1):
        for x, ch in enumerate(line):
            image.setPixel(x, y, symbol_colors[ch])
    if not image.save(str(path)):
        raise ValueError(f"Could not write image: {path}")
