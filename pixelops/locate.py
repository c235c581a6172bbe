"""Colour, multi-point, picture, colour-block and line search over a BGRA image."""

from __future__ import annotations

import math
import os
from collections import Counter
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from itertools import accumulate, islice

from .colors import Color, ColorDelta, in_range
from .image import BinaryImage, Image

MAX_RETURN = 1800
WORD_COLOR = 1
WORD_BKCOLOR = 0
AUTO_BACKGROUND_TOLERANCE = 20
_DEGREE = 0.0174532925

Point = tuple[int, int]
OffsetColor = tuple[int, int, Sequence[ColorDelta]]


def check_transparent(image: Image) -> int:
    """Count the background pixels of a picture with a transparent background.

    A picture counts as transparent when its four corners share one colour and
    that colour covers at least half, but not all, of it; otherwise 0.
    """
    if image.width < 2 or image.height < 2:
        return 0
    first = image.pixel(0, 0)
    corners = (
        image.pixel(0, image.width - 1),
        image.pixel(image.height - 1, 0),
        image.pixel(image.height - 1, image.width - 1),
    )
    if any(corner != first for corner in corners):
        return 0
    pixels = list(image)
    count = pixels.count(first)
    total = len(pixels)
    return count if total * 0.5 <= count < total else 0


def match_points(image: Image) -> list[Point]:
    """Positions ``(y, x)`` whose colour differs from the top-left pixel."""
    if image.empty():
        return []
    background = image.pixel(0, 0)
    return [divmod(index, image.width) for index, value in enumerate(image) if value != background]


def scan_order(direction: int, width: int, height: int) -> tuple[range, range]:
    """Row and column ranges for a search direction.

    0: left to right, top to bottom; 1: right to left, top to bottom;
    2: left to right, bottom to top; anything else: right to left, bottom to top.
    """
    rows, cols = range(height), range(width)
    if direction == 0:
        return rows, cols
    if direction == 1:
        return rows, cols[::-1]
    if direction == 2:
        return rows[::-1], cols
    return rows[::-1], cols[::-1]


def _bands(rows: range, parts: int) -> list[range]:
    size = max(1, -(-len(rows) // parts))
    return [rows[start:start + size] for start in range(0, len(rows), size)]


class Locator:
    """Searches a source picture; reported points include the offset."""

    def __init__(self, workers: int | None = None) -> None:
        if workers is not None and workers < 1:
            raise ValueError("workers must be at least 1")
        self.workers = workers or os.cpu_count() or 1
        self._source = Image()
        self._colors: list[Color] = []
        self.gray = BinaryImage()
        self.binary = BinaryImage()
        self.offset: Point = (0, 0)
        self._sum: list[list[int]] = [[0]]

    @property
    def source(self) -> Image:
        return self._source

    def set_source(self, image: Image) -> None:
        """Use ``image`` as the picture to search."""
        self._source = image
        self._colors = [Color.from_pixel(value) for value in image]

    def set_offset(self, x: int, y: int) -> None:
        """Set the screen position of the source's top-left corner."""
        self.offset = (x, y)

    def _color(self, y: int, x: int) -> Color:
        return self._colors[y * self._source.width + x]

    def _point(self, x: int, y: int) -> Point:
        return (x + self.offset[0], y + self.offset[1])

    # ----------------------------------------------------------- colours

    def cmp_color(self, color: Color, deltas: Sequence[ColorDelta]) -> bool:
        """True when ``color`` fits any of ``deltas``."""
        return any(in_range(color, d.color, d.delta) for d in deltas)

    def find_color(self, deltas: Sequence[ColorDelta], direction: int) -> Point | None:
        """First point matching a colour; colours are tried in the given order."""
        rows, cols = scan_order(direction, self._source.width, self._source.height)
        for d in deltas:
            for y in rows:
                for x in cols:
                    if in_range(self._color(y, x), d.color, d.delta):
                        return self._point(x, y)
        return None

    def find_color_ex(self, deltas: Sequence[ColorDelta]) -> list[Point]:
        """All points matching any colour, row by row, at most 1801 of them."""
        width = self._source.width or 1
        hits = (
            self._point(index % width, index // width)
            for index, color in enumerate(self._colors)
            if self.cmp_color(color, deltas)
        )
        return list(islice(hits, MAX_RETURN + 1))

    def _offsets_match(self, x: int, y: int, offset_colors: Sequence[OffsetColor],
                       max_errors: int) -> bool:
        width, height = self._source.width, self._source.height
        errors = 0
        for dx, dy, deltas in offset_colors:
            px, py = x + dx, y + dy
            if not (0 <= px < width and 0 <= py < height) or not self.cmp_color(
                self._color(py, px), deltas
            ):
                errors += 1
            if errors > max_errors:
                return False
        return True

    def _multi_color_hits(self, first_colors: Sequence[ColorDelta],
                          offset_colors: Sequence[OffsetColor], sim: float,
                          direction: int) -> Iterator[Point]:
        max_errors = int(len(offset_colors) * (1.0 - sim))
        rows, cols = scan_order(direction, self._source.width, self._source.height)
        for y in rows:
            for x in cols:
                if self.cmp_color(self._color(y, x), first_colors) and self._offsets_match(
                    x, y, offset_colors, max_errors
                ):
                    yield self._point(x, y)

    def find_multi_color(self, first_colors: Sequence[ColorDelta],
                         offset_colors: Sequence[OffsetColor], sim: float,
                         direction: int) -> Point | None:
        """First point of ``first_colors`` whose ``(dx, dy, deltas)`` offsets also fit."""
        return next(self._multi_color_hits(first_colors, offset_colors, sim, direction), None)

    def find_multi_color_ex(self, first_colors: Sequence[ColorDelta],
                            offset_colors: Sequence[OffsetColor], sim: float,
                            direction: int) -> list[Point]:
        """All such points, at most 1801 of them."""
        hits = self._multi_color_hits(first_colors, offset_colors, sim, direction)
        return list(islice(hits, MAX_RETURN + 1))

    # ---------------------------------------------------------- pictures

    def _record_sum(self, plane: BinaryImage) -> None:
        width = plane.width
        previous = [0] * (width + 1)
        table = [previous]
        for y in range(plane.height):
            running = accumulate(plane.pixels[y * width:(y + 1) * width])
            previous = [0, *(above + run for above, run in zip(previous[1:], running))]
            table.append(previous)
        self._sum = table

    def _region_sum(self, x1: int, y1: int, x2: int, y2: int) -> int:
        s = self._sum
        return s[y2][x2] - s[y2][x1] - s[y1][x2] + s[y1][x1]

    def _prepare_search(self) -> None:
        self.gray = BinaryImage.from_image(self._source)
        self._record_sum(self.gray)

    def _real_match(self, x: int, y: int, pic_gray: BinaryImage, tnorm: int,
                    sim: float) -> bool:
        pw, ph = pic_gray.width, pic_gray.height
        region = self._region_sum(x, y, x + pw, y + ph)
        if tnorm == 0:
            if region != 0:
                return False
        elif abs(tnorm - region) / tnorm > 1.0 - sim:
            return False
        max_error = int((1.0 - sim) * tnorm)
        gw, source, pattern = self.gray.width, self.gray.pixels, pic_gray.pixels
        error = 0
        for row in range(ph):
            start = (y + row) * gw + x
            error += sum(
                abs(a - b)
                for a, b in zip(source[start:start + pw], pattern[row * pw:(row + 1) * pw])
            )
            if error > max_error:
                return False
        return True

    def _trans_match(self, x: int, y: int, targets: list[tuple[int, int, Color]],
                     delta: Color, max_errors: int) -> bool:
        errors = 0
        half = (len(targets) + 1) // 2
        for left, right in islice(zip(targets, reversed(targets)), half):
            for py, px, color in (left, right):
                if not in_range(self._color(y + py, x + px), color, delta):
                    errors += 1
            if errors > max_errors:
                return False
        return True

    def _pic_matcher(self, pic: Image, delta: Color, sim: float) -> Callable[[int, int], bool]:
        transparent = check_transparent(pic)
        if transparent:
            max_errors = int((pic.height * pic.width - transparent) * (1.0 - sim))
            targets = [
                (py, px, Color.from_pixel(pic.pixel(py, px))) for py, px in match_points(pic)
            ]
            return partial(self._trans_match, targets=targets, delta=delta,
                           max_errors=max_errors)
        pic_gray = BinaryImage.from_image(pic)
        return partial(self._real_match, pic_gray=pic_gray, tnorm=sum(pic_gray.pixels), sim=sim)

    def find_pic(self, pics: Sequence[Image], delta: Color, sim: float,
                 direction: int) -> tuple[int, int, int] | None:
        """First ``(index, x, y)`` where a picture is found; pictures are tried in order.

        Pictures whose corners share a background colour are compared on their
        other pixels within ``delta``; others are compared on grey levels.
        """
        self._prepare_search()
        width, height = self._source.width, self._source.height
        rows, cols = scan_order(direction, width, height)
        for index, pic in enumerate(pics):
            if pic.empty():
                continue
            match = self._pic_matcher(pic, delta, sim)
            for y in rows:
                if y + pic.height > height:
                    continue
                for x in cols:
                    if x + pic.width <= width and match(x, y):
                        return (index, *self._point(x, y))
        return None

    @staticmethod
    def _scan_band(match: Callable[[int, int], bool], last_x: int, band: range) -> list[Point]:
        return [(x, y) for y in band for x in range(last_x + 1) if match(x, y)]

    def find_pic_ex(self, pics: Sequence[Image], delta: Color, sim: float,
                    direction: int) -> list[tuple[int, int, int]]:
        """Every ``(index, x, y)`` where a picture is found, at most 1800.

        Positions come picture by picture, row by row; ``direction`` does not
        change the order.
        """
        self._prepare_search()
        width, height = self._source.width, self._source.height
        found: list[tuple[int, int, int]] = []
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            for index, pic in enumerate(pics):
                if pic.empty():
                    continue
                last_x, last_y = width - pic.width, height - pic.height
                if last_x < 0 or last_y < 0:
                    continue
                scan = partial(self._scan_band, self._pic_matcher(pic, delta, sim), last_x)
                for hits in pool.map(scan, _bands(range(last_y + 1), self.workers)):
                    for x, y in hits:
                        if len(found) < MAX_RETURN:
                            found.append((index, *self._point(x, y)))
        return found

    # ------------------------------------------------------ binarisation

    def binarize(self, colors: Sequence[ColorDelta]) -> None:
        """Mark pixels whose grey level lies within a colour's grey tolerance."""
        if self._source.empty():
            return
        targets = [(d.color.to_gray(), d.delta.to_gray()) for d in colors]
        pixels = bytearray(
            WORD_COLOR if any(abs(gray - t) <= tol for t, tol in targets) else WORD_BKCOLOR
            for gray in (c.to_gray() for c in self._colors)
        )
        self.binary = BinaryImage(self._source.width, self._source.height, pixels)

    def binarize_background(self, background_colors: Sequence[ColorDelta]) -> None:
        """Mark pixels that are not background.

        Without colours the most common grey level is the background and pixels
        within 20 of it stay unmarked; with colours a pixel is marked when it
        falls outside any of them.
        """
        if not background_colors:
            self.gray = BinaryImage.from_image(self._source)
            counts = Counter(self.gray.pixels)
            background = max(range(256), key=lambda value: counts[value])
            pixels = bytearray(
                WORD_BKCOLOR if abs(g - background) < AUTO_BACKGROUND_TOLERANCE else WORD_COLOR
                for g in self.gray.pixels
            )
        else:
            pixels = bytearray(
                WORD_COLOR
                if any(not in_range(c, d.color, d.delta) for d in background_colors)
                else WORD_BKCOLOR
                for c in self._colors
            )
        self.binary = BinaryImage(self._source.width, self._source.height, pixels)

    # ------------------------------------------------------ colour blocks

    def _block_hits(self, count: int, height: int, width: int) -> Iterator[Point]:
        self._record_sum(self.binary)
        for y in range(self.binary.height - height + 1):
            for x in range(self.binary.width - width):
                if self._region_sum(x, y, x + width, y + height) >= count:
                    yield self._point(x, y)

    def find_color_block(self, count: int, height: int, width: int) -> Point | None:
        """First ``width`` x ``height`` window of the binary plane with ``count`` marks."""
        return next(self._block_hits(count, height, width), None)

    def find_color_block_ex(self, count: int, height: int, width: int) -> list[Point]:
        """All such windows, row by row, at most 1801 of them."""
        return list(islice(self._block_hits(count, height, width), MAX_RETURN + 1))

    # -------------------------------------------------------------- lines

    def find_line(self) -> tuple[int, int, int]:
        """Strongest line of the binary plane as ``(angle, distance, votes)``.

        ``angle`` is the normal's direction in whole degrees and ``distance``
        the line's distance from the origin; ``votes`` counts marked pixels on it.
        """
        plane = self.binary
        rows = int(math.sqrt(plane.width ** 2 + plane.height ** 2)) + 2
        votes = [[0] * 360 for _ in range(rows)]
        cosines = [math.cos(t * _DEGREE) for t in range(360)]
        sines = [math.sin(t * _DEGREE) for t in range(360)]
        width = plane.width or 1
        for index, value in enumerate(plane.pixels):
            if value != WORD_COLOR:
                continue
            y, x = divmod(index, width)
            for t in range(360):
                d = int(x * cosines[t] + y * sines[t])
                if d >= 0:
                    votes[d][t] += 1
        best = (0, 0, -1)
        for distance, row in enumerate(votes):
            for angle, count in enumerate(row):
                if count > best[2]:
                    best = (angle, distance, count)
        return best