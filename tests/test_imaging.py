"""Tests for kidangu.core.imaging – image/level conversion."""

from __future__ import annotations

from pathlib import Path

import pytest

QtGui = pytest.importorskip("PySide6.QtGui")

from kidangu.core.imaging import (  # noqa: E402
    DEFAULT_PALETTE,
    directory_to_collection_text,
    image_to_level_text,
    level_to_image,
    write_collection,
)
from kidangu.core.levels import parse_collection_text, parse_level  # noqa: E402

SIMPLE = "#####\n#@$.#\n#####"
SHAPED = "  ####\n###  #\n#+$*$#\n#  . #\n######"


def _key_row_image(width: int, height: int) -> "QtGui.QImage":
    image = QtGui.QImage(width, height, QtGui.QImage.Format.Format_RGB32)
    image.fill(QtGui.QColor(DEFAULT_PALETTE[0]))
    for x, color in enumerate(DEFAULT_PALETTE):
        image.setPixel(x, 0, QtGui.QColor(color).rgb())
    return image


# ---------------------------------------------------------------------------
# Level -> image -> level
# ---------------------------------------------------------------------------

class TestRoundTrip:
    @pytest.mark.parametrize("text", [SIMPLE, SHAPED])
    def test_level_survives_image(self, tmp_path: Path, text: str):
        path = tmp_path / "level.png"
        level_to_image(parse_level(text), path)
        assert path.exists()
        assert image_to_level_text(path) == text

    def test_image_text_parses(self, tmp_path: Path):
        path = tmp_path / "level.png"
        spec = parse_level(SHAPED)
        level_to_image(spec, path)
        again = parse_level(image_to_level_text(path))
        assert again.worker == spec.worker
        assert again.crates == spec.crates
        assert again.grid.goals == spec.grid.goals

    def test_palette_size_checked(self, tmp_path: Path):
        with pytest.raises(ValueError, match="Palette"):
            level_to_image(parse_level(SIMPLE), tmp_path / "x.png", palette=DEFAULT_PALETTE[:3])


# ---------------------------------------------------------------------------
# Reading images
# ---------------------------------------------------------------------------

class TestImageToLevel:
    def test_invalid_pixel(self, tmp_path: Path):
        image = _key_row_image(8, 2)
        image.setPixel(3, 1, QtGui.QColor("#123456").rgb())
        path = tmp_path / "bad.png"
        assert image.save(str(path))
        with pytest.raises(ValueError, match=r"invalid pixel at \(3,1\)"):
            image_to_level_text(path)

    def test_key_row_too_narrow(self, tmp_path: Path):
        image = QtGui.QImage(4, 3, QtGui.QImage.Format.Format_RGB32)
        image.fill(QtGui.QColor("#000000"))
        path = tmp_path / "narrow.png"
        assert image.save(str(path))
        with pytest.raises(ValueError, match="key colours"):
            image_to_level_text(path)

    def test_unreadable_file(self, tmp_path: Path):
        path = tmp_path / "junk.png"
        path.write_bytes(b"not an image")
        with pytest.raises(ValueError, match="Could not read image"):
            image_to_level_text(path)


# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------

class TestDirectories:
    def test_directory_to_collection(self, tmp_path: Path):
        d = tmp_path / "pictures"
        d.mkdir()
        (d / "00_title.txt").write_text("Pictures\nDrawn levels.\n", encoding="utf-8")
        level_to_image(parse_level(SIMPLE), d / "01.png")
        level_to_image(parse_level(SHAPED), d / "02.png")

        text = directory_to_collection_text(d)
        col = parse_collection_text("pictures", text)
        assert col.title == "Pictures"
        assert col.description == "Drawn levels."
        assert [lv.text() for lv in col.levels] == [SIMPLE, SHAPED]

    def test_write_collection(self, tmp_path: Path):
        d = tmp_path / "set"
        d.mkdir()
        (d / "a.txt").write_text("Set\n", encoding="utf-8")
        level_to_image(parse_level(SIMPLE), d / "b.png")
        output = write_collection(d)
        assert output == tmp_path / "set.lvl"
        assert output.read_text(encoding="utf-8") == "Set\n\n" + SIMPLE + "\n"

    def test_empty_directory(self, tmp_path: Path):
        with pytest.raises(ValueError, match="No images"):
            directory_to_collection_text(tmp_path)
