"""Bitmap text recognition against a glyph dictionary, and text search in its results."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from itertools import groupby, islice

from .dictionary import Dictionary, Glyph
from .image import get_bit
from .locate import MAX_RETURN, WORD_COLOR, Locator, Point

Rect = tuple[int, int, int, int]

MIN_CUT_W = 5
MIN_CUT_H = 2
_EXACT_LIMIT = 1.0 - 1e-5


@dataclass
class OcrRecord:
    """One recognised piece of text and the box it was found in."""

    left_top: Point
    right_bottom: Point
    text: str
    confidence: float


class Recognizer(Locator):
    """Reads text from the binary plane of the source picture."""

    def __init__(self, workers: int | None = None) -> None:
        super().__init__(workers)
        self._record = bytearray()

    # ------------------------------------------------------------ helpers

    def _full_match(self, rect: Rect, data: bytearray) -> bool:
        x1, y1, x2, y2 = rect
        width, pixels = self.binary.width, self.binary.pixels
        idx = 0
        for x in range(x1, x2):
            for y in range(y1, y2):
                if pixels[y * width + x] != get_bit(data[idx >> 3], idx & 7):
                    return False
                idx += 1
        return True

    def _part_match(self, rect: Rect, max_errors: int, data: bytearray) -> int:
        x1, y1, x2, y2 = rect
        width, pixels = self.binary.width, self.binary.pixels
        errors = 0
        idx = 0
        for x in range(x1, x2):
            for y in range(y1, y2):
                if pixels[y * width + x] != get_bit(data[idx >> 3], idx & 7):
                    errors += 1
                    if errors > max_errors:
                        return errors
                idx += 1
        return errors

    def _right_column(self, rect: Rect) -> int:
        x1, y1, x2, y2 = rect
        if x2 >= self.binary.width:
            return 0
        width, pixels = self.binary.width, self.binary.pixels
        return sum(pixels[y * width + x2] for y in range(y1, y2))

    def _fill_record(self, rect: Rect) -> None:
        x1, y1, x2, y2 = rect
        width = self.binary.width
        for y in range(y1, y2):
            start = y * width
            self._record[start + x1:start + x2] = b"\x01" * (x2 - x1)

    @staticmethod
    def _ranges(words: Sequence[Glyph]) -> tuple[int, int, int, int, int, int]:
        return (
            min(w.bit_count for w in words), max(w.bit_count for w in words),
            min(w.width for w in words), min(w.height for w in words),
            max(w.width for w in words), max(w.height for w in words),
        )

    # -------------------------------------------------------- recognition

    def _exact_ocr(self, words: list[Glyph], found: dict[Point, OcrRecord]) -> None:
        width, height = self.binary.width, self.binary.height
        cnt_min, cnt_max, w_min, h_min, w_max, h_max = self._ranges(words)
        groups = [list(g) for _, g in groupby(words, key=lambda w: (w.height, w.width))]
        for py in range(height - h_min + 1):
            for px in range(width - w_min + 1):
                if self._record[py * width + px]:
                    continue
                if self._region_sum(px, py, min(px + w_max, width),
                                    min(py + h_max, height)) < cnt_min:
                    continue
                if self._region_sum(px, py, px + w_min, py + h_min) > cnt_max:
                    continue
                for group in groups:
                    rect = (px, py, px + group[0].width, py + group[0].height)
                    if rect[3] > height or rect[2] > width:
                        continue
                    count = self._region_sum(*rect)
                    matched = False
                    for word in group:
                        if word.bit_count != count or not self._full_match(rect, word.data):
                            continue
                        if self._right_column(rect) < word.height // 2:
                            found[(px, py)] = OcrRecord((px, py), (rect[2], rect[3]),
                                                        word.name, 1.0)
                            self._fill_record(rect)
                            matched = True
                            break
                    if matched:
                        break

    def _fuzzy_ocr(self, words: list[Glyph], sim: float,
                   found: dict[Point, OcrRecord]) -> None:
        width, height = self.binary.width, self.binary.height
        cnt_min, cnt_max, w_min, h_min, w_max, h_max = self._ranges(words)
        for py in range(height - h_min + 1):
            for px in range(width - w_min + 1):
                if self._record[py * width + px]:
                    continue
                if self._region_sum(px, py, min(px + w_max, width),
                                    min(py + h_max, height)) < cnt_min * sim:
                    continue
                if self._region_sum(px, py, px + w_min, py + h_min) > cnt_max * (2 - sim):
                    continue
                for word in words:
                    rect = (px, py, px + word.width, py + word.height)
                    if rect[3] > height or rect[2] > width:
                        continue
                    tolerance = int((1 - sim) * word.width * word.height)
                    if abs(self._region_sum(*rect) - word.bit_count) > tolerance:
                        continue
                    errors = self._part_match(rect, tolerance, word.data)
                    if errors > tolerance:
                        continue
                    if self._right_column(rect) <= word.height // 2:
                        area = word.width * word.height
                        found[(px, py)] = OcrRecord((px, py), (rect[2], rect[3]), word.name,
                                                    (area - errors) / area)
                        self._fill_record(rect)
                        break

    def bin_ocr(self, dictionary: Dictionary, sim: float) -> list[OcrRecord]:
        """Recognise glyphs on the binary plane, ordered by row then column.

        ``sim`` near 1 asks for exact bitmaps; lower values allow noisy pixels.
        Positions are relative to the plane, without the offset.
        """
        words = [w for w in dictionary.words if w.width and w.height]
        if not words or self.binary.empty():
            return []
        self._record = bytearray(len(self.binary))
        self._record_sum(self.binary)
        found: dict[Point, OcrRecord] = {}
        if sim > _EXACT_LIMIT:
            self._exact_ocr(words, found)
        else:
            self._fuzzy_ocr(words, 0.5 + sim / 2, found)
        return [found[key] for key in sorted(found, key=lambda p: (p[1], p[0]))]

    def ocr(self, dictionary: Dictionary, sim: float) -> str:
        """All recognised text, joined in reading order."""
        return "".join(record.text for record in self.bin_ocr(dictionary, sim))

    def ocr_ex(self, dictionary: Dictionary, sim: float) -> list[tuple[int, int, str]]:
        """``(x, y, text)`` of every recognised glyph, offset applied, at most 1801."""
        records = islice(self.bin_ocr(dictionary, sim), MAX_RETURN + 1)
        return [(*self._point(*r.left_top), r.text) for r in records]

    # -------------------------------------------------------- text search

    def _locate(self, records: Sequence[OcrRecord], text: str, index: int) -> Point | None:
        length = 0
        for record in records:
            length += len(record.text)
            if length < index + 1:
                continue
            if text[index] in record.text:
                return self._point(*record.left_top)
        return None

    def find_str(self, records: Sequence[OcrRecord],
                 targets: Sequence[str]) -> tuple[int, int, int] | None:
        """``(target index, x, y)`` of the first target found in the joined text."""
        text = "".join(record.text for record in records)
        for number, target in enumerate(targets):
            index = text.find(target)
            if index == -1:
                continue
            if index >= len(text):
                return None
            point = self._locate(records, text, index)
            return None if point is None else (number, *point)
        return None

    def find_str_ex(self, records: Sequence[OcrRecord],
                    targets: Sequence[str]) -> list[tuple[int, int, int]]:
        """``(target index, x, y)`` of every occurrence of every target, at most 1801."""
        text = "".join(record.text for record in records)
        found: list[tuple[int, int, int]] = []
        for number, target in enumerate(targets):
            old = -1
            while True:
                index = text.find(target, old + 1)
                if index == -1 or index >= len(text):
                    break
                point = self._locate(records, text, index)
                if point is not None:
                    found.append((number, *point))
                    if len(found) > MAX_RETURN:
                        return found
                old = index
        return found

    # ----------------------------------------------------------- cutting

    def _shadow_x(self, rect: Rect) -> list[Rect]:
        x1, y1, x2, y2 = rect
        width, pixels = self.binary.width, self.binary.pixels
        counts = {
            x: sum(pixels[y * width + x] == WORD_COLOR for y in range(y1, y2))
            for x in range(x1, x2)
        }
        out: list[Rect] = []
        inblock, start = False, 0
        for x in range(x1, x2):
            if not inblock and counts[x]:
                inblock, start = True, x
            elif inblock and not counts[x] and x - start >= MIN_CUT_W:
                inblock = False
                out.append((start, y1, x, y2))
        if inblock:
            out.append((start, y1, x2, y2))
        return out

    def _shadow_y(self, rect: Rect) -> list[Rect]:
        x1, y1, x2, y2 = rect
        width, pixels = self.binary.width, self.binary.pixels
        counts = {
            y: sum(v == WORD_COLOR for v in pixels[y * width + x1:y * width + x2])
            for y in range(y1, y2)
        }
        out: list[Rect] = []
        inblock, start = False, 0
        for y in range(y1, y2):
            if not inblock and counts[y]:
                inblock, start = True, y
            if inblock and not counts[y] and y - start >= MIN_CUT_H:
                inblock = False
                out.append((x1, start, x2, y))
        if inblock:
            out.append((x1, start, x2, y2))
        return out

    def bin_image_cut(self, min_word_h: int, rect: Rect) -> Rect:
        """Shrink ``rect`` to its marked pixels; the height only if taller than ``min_word_h``."""
        x1, y1, x2, y2 = rect
        width, pixels = self.binary.width, self.binary.pixels
        rows = [y for y in range(y1, y2)
                if any(v == WORD_COLOR for v in pixels[y * width + x1:y * width + x2])]
        if not rows:
            return rect
        cols = [x for x in range(x1, x2)
                if any(pixels[y * width + x] == WORD_COLOR for y in range(y1, y2))]
        top = rows[0]
        bottom = rows[-1] + 1 if rows[-1] + 1 - top > min_word_h else y2
        return (cols[0], top, cols[-1] + 1, bottom)

    def get_rois(self, min_word_h: int) -> list[Rect]:
        """Candidate text boxes: row bands split into column blocks, then tightened."""
        rois: list[Rect] = []
        whole = (0, 0, self.binary.width, self.binary.height)
        for band in self._shadow_y(whole):
            for block in self._shadow_x(band):
                if block[2] - block[0] >= min_word_h:
                    block = self.bin_image_cut(min_word_h, block)
                rois.append(block)
        return rois