"""Text-level image operations: colour strings, picture files, dictionaries and OCR."""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Sequence

from .colors import Color, ColorDelta, parse_color_deltas
from .dictionary import Dictionary
from .image import Image
from .locate import Point
from .ocr import OcrRecord, Recognizer

MAX_DICT = 10
_CONFIDENCE_SLACK = 1e-9
_OFFSET_ITEM = re.compile(r"\s*([+-]?\d+)\|\s*([+-]?\d+)\|(.*)", re.S)

OcrEngine = Callable[[Image], Sequence[OcrRecord]]


def _clamp_sim(sim: float) -> float:
    return 1.0 if sim < 0.0 or sim > 1.0 else sim


def _parse_offsets(text: str) -> list[tuple[int, int, list[ColorDelta]]]:
    """Parse ``dx|dy|RRGGBB-DRDGDB,...``; an item without a colour ends the list."""
    offsets = []
    for item in text.split(","):
        match = _OFFSET_ITEM.match(item)
        if match is None:
            continue
        color_text = match.group(3)
        if not color_text:
            break
        deltas, _ = parse_color_deltas(color_text)
        offsets.append((int(match.group(1)), int(match.group(2)), deltas))
    return offsets


class ImageProcessor(Recognizer):
    """Image searches and text recognition driven by colour and file-name strings.

    Picture files are looked up relative to ``curr_path`` and kept in a cache.
    Ten glyph dictionaries are available; when the one in use is empty, an
    optional ``engine`` callable that returns :class:`OcrRecord` items is used.
    """

    def __init__(self, curr_path: str | os.PathLike | None = None,
                 engine: OcrEngine | None = None, workers: int | None = None) -> None:
        super().__init__(workers)
        self.curr_path = os.fspath(curr_path) if curr_path is not None else os.getcwd()
        self.engine = engine
        self.dicts = [Dictionary() for _ in range(MAX_DICT)]
        self.curr_index = 0
        self.pic_cache: dict[str, Image] = {}
        self.enable_cache = True

    # ------------------------------------------------------------ helpers

    def _resolve(self, name: str) -> str | None:
        if not name:
            return None
        path = name if os.path.isabs(name) else os.path.join(self.curr_path, name)
        return path if os.path.isfile(path) else None

    def _binarize_for(self, color: str) -> None:
        colors, background = parse_color_deltas(color)
        if background:
            self.binarize_background(colors)
        else:
            self.binarize(colors)

    def _load_pictures(self, files: str) -> list[tuple[int, str, Image]]:
        loaded = []
        for number, name in enumerate(files.split("|")):
            image = self.pic_cache.get(name)
            if image is None:
                path = self._resolve(name)
                if path is None:
                    continue
                image = self.pic_cache.get(path)
                if image is None:
                    image = Image()
                    image.read(path)
                    self.pic_cache[path] = image
            loaded.append((number, name, image))
        return loaded

    def _after_search(self) -> None:
        if not self.enable_cache:
            self.pic_cache.clear()

    def _check_index(self, index: int) -> None:
        if not 0 <= index < MAX_DICT:
            raise IndexError(f"dictionary index {index} outside 0..{MAX_DICT - 1}")

    @property
    def current_dict(self) -> Dictionary:
        return self.dicts[self.curr_index]

    def _engine_records(self, sim: float) -> list[OcrRecord]:
        if self.engine is None:
            return []
        records = [r for r in self.engine(self.source) if r.confidence >= sim - _CONFIDENCE_SLACK]
        by_point = {r.left_top: r for r in records}
        return [by_point[p] for p in sorted(by_point, key=lambda p: (p[1], p[0]))]

    def _records(self, color: str, sim: float) -> list[OcrRecord]:
        self._binarize_for(color)
        sim = _clamp_sim(sim)
        if not len(self.current_dict):
            return self._engine_records(sim)
        return self.bin_ocr(self.current_dict, sim)

    # ------------------------------------------------------------ colours

    def capture(self, file_name: str) -> str:
        """Save the source picture; a bare name goes into ``curr_path``. Returns the path."""
        path = file_name
        if os.sep not in file_name and "/" not in file_name and "\\" not in file_name:
            path = os.path.join(self.curr_path, file_name)
        self.source.write(path)
        return path

    def cmp_color(self, color: str, sim: float) -> bool:  # type: ignore[override]
        """True when the top-left source pixel fits one of the colours."""
        if self.source.empty():
            return False
        deltas, _ = parse_color_deltas(color)
        return Recognizer.cmp_color(self, self._color(0, 0), deltas)

    def find_color(self, color: str, sim: float, direction: int) -> Point | None:  # type: ignore[override]
        deltas, _ = parse_color_deltas(color)
        return Recognizer.find_color(self, deltas, direction)

    def find_color_ex(self, color: str, sim: float, direction: int) -> list[Point]:  # type: ignore[override]
        deltas, _ = parse_color_deltas(color)
        return Recognizer.find_color_ex(self, deltas)

    def find_multi_color(self, first_color: str, offset_color: str, sim: float,  # type: ignore[override]
                         direction: int) -> Point | None:
        """First point of ``first_color`` whose ``dx|dy|color,...`` offsets also fit."""
        first, _ = parse_color_deltas(first_color)
        return Recognizer.find_multi_color(self, first, _parse_offsets(offset_color), sim,
                                           direction)

    def find_multi_color_ex(self, first_color: str, offset_color: str, sim: float,  # type: ignore[override]
                            direction: int) -> list[Point]:
        first, _ = parse_color_deltas(first_color)
        return Recognizer.find_multi_color_ex(self, first, _parse_offsets(offset_color), sim,
                                              direction)

    # ----------------------------------------------------------- pictures

    def find_pic(self, files: str, delta_color: str, sim: float,  # type: ignore[override]
                 direction: int) -> tuple[int, int, int] | None:
        """``(file index, x, y)`` of the first of the ``|``-separated pictures found."""
        loaded = self._load_pictures(files)
        delta = Color.parse(delta_color)
        result = Recognizer.find_pic(self, [img for _, _, img in loaded], delta,
                                     0.5 + sim / 2, direction)
        self._after_search()
        if result is None:
            return None
        index, x, y = result
        return (loaded[index][0], x, y)

    def find_pic_ex(self, files: str, delta_color: str, sim: float, direction: int,  # type: ignore[override]
                    return_id: bool = True) -> list[tuple[int | str, int, int]]:
        """Every ``(file index or name, x, y)`` where a picture is found."""
        loaded = self._load_pictures(files)
        delta = Color.parse(delta_color)
        found = Recognizer.find_pic_ex(self, [img for _, _, img in loaded], delta,
                                       0.5 + sim / 2, direction)
        self._after_search()
        return [
            (loaded[index][0] if return_id else loaded[index][1], x, y)
            for index, x, y in found
        ]

    def find_color_block(self, color: str, sim: float, count: int, height: int,  # type: ignore[override]
                         width: int) -> Point | None:
        self._binarize_for(color)
        return Recognizer.find_color_block(self, count, height, width)

    def find_color_block_ex(self, color: str, sim: float, count: int, height: int,  # type: ignore[override]
                            width: int) -> list[Point]:
        self._binarize_for(color)
        return Recognizer.find_color_block_ex(self, count, height, width)

    def get_color(self) -> str:
        """``RRGGBB`` of the top-left source pixel."""
        if self.source.empty():
            raise ValueError("no source picture")
        return self._color(0, 0).to_hex()

    def load_pic(self, files: str) -> int:
        """Load ``|``-separated pictures into the cache; return how many are there."""
        loaded = 0
        for name in files.split("|"):
            path = self._resolve(name)
            if path is None:
                continue
            if path not in self.pic_cache:
                image = Image()
                image.read(path)
                self.pic_cache[path] = image
            loaded += 1
        return loaded

    def free_pic(self, files: str) -> int:
        """Drop pictures from the cache; return how many were dropped."""
        freed = 0
        for name in files.split("|"):
            for key in (name, os.path.join(self.curr_path, name)):
                if key in self.pic_cache:
                    del self.pic_cache[key]
                    freed += 1
                    break
        return freed

    def load_mem_pic(self, file_name: str, data: bytes) -> bool:
        """Cache an encoded picture under ``file_name``; raises ValueError on bad data."""
        if file_name not in self.pic_cache:
            image = Image()
            try:
                image.read_bytes(data)
            except OSError as exc:
                raise ValueError(f"cannot decode picture {file_name!r}") from exc
            self.pic_cache[file_name] = image
        return True

    # -------------------------------------------------------- dictionaries

    def set_dict(self, index: int, file_name: str) -> bool:
        """Load a dictionary file into slot ``index``; return whether it holds glyphs."""
        self._check_index(index)
        self.dicts[index].clear()
        path = self._resolve(file_name)
        if path is None:
            raise FileNotFoundError(f"file {file_name!r} does not exist")
        if path.endswith(".txt"):
            self.dicts[index].read_dm(path)
        else:
            self.dicts[index].read(path)
        return bool(len(self.dicts[index]))

    def set_mem_dict(self, index: int, data: bytes | str) -> bool:
        """Load dm dictionary text into slot ``index``."""
        self._check_index(index)
        text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
        self.dicts[index].read_dm_text(text)
        return bool(len(self.dicts[index]))

    def use_dict(self, index: int) -> None:
        self._check_index(index)
        self.curr_index = index

    # ---------------------------------------------------------------- ocr

    def ocr_text(self, color: str, sim: float) -> str:
        """Recognised text of the source picture."""
        return "".join(r.text for r in self._records(color, sim))

    def ocr_text_ex(self, color: str, sim: float) -> list[tuple[int, int, str]]:
        """``(x, y, text)`` of every recognised piece, offset applied."""
        return [(*self._point(*r.left_top), r.text) for r in self._records(color, sim)]

    def find_text(self, text: str, color: str, sim: float) -> tuple[int, int, int] | None:
        """``(index, x, y)`` of the first of the ``|``-separated strings found."""
        return self.find_str(self._records(color, sim), text.split("|"))

    def find_text_ex(self, text: str, color: str, sim: float) -> list[tuple[int, int, int]]:
        return self.find_str_ex(self._records(color, sim), text.split("|"))

    def ocr_auto(self, sim: float) -> str:
        """Recognise with the background found automatically."""
        return self.ocr_text("", sim)

    def _read_source(self, file_name: str) -> None:
        path = self._resolve(file_name)
        if path is None:
            raise FileNotFoundError(f"file {file_name!r} does not exist")
        image = Image()
        image.read(path)
        self.set_source(image)

    def ocr_from_file(self, file_name: str, color: str, sim: float) -> str:
        self._read_source(file_name)
        return self.ocr_text(color, sim)

    def ocr_auto_from_file(self, file_name: str, sim: float) -> str:
        self._read_source(file_name)
        return self.ocr_text("", sim)

    def find_line_in(self, color: str, sim: float) -> tuple[int, int, int]:
        """Strongest line as ``(angle, distance, votes)`` after binarising by ``color``."""
        self._binarize_for(color)
        return self.find_line()