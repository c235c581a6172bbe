"""Glyph dictionaries used for bitmap text recognition."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass, field

from .image import BinaryImage, get_bit, set_bit

NAME_LIMIT = 7
DM_HEIGHT = 11
DM_MAX_HEX = 88
FORMAT_VERSION = 1
MAX_SIDE = 255

_HEADER = struct.Struct("<hhi")
_WORD_INFO = struct.Struct("<BBH16s")
_LEGACY_WORD = struct.Struct("<8shhi32I")


def _decode_name(raw: bytes) -> str:
    text = raw.decode("utf-16-le", errors="replace")
    return text.split("\0", 1)[0]


def _encode_name(name: str) -> bytes:
    encoded = name.encode("utf-16-le")[: NAME_LIMIT * 2]
    return encoded.ljust(16, b"\0")


def _dm_nibble(char: str) -> int:
    return ord(char) - ord("0") if char <= "9" else ord(char) - ord("A") + 10


@dataclass(eq=False)
class Glyph:
    """One character bitmap, stored column by column, one bit per pixel."""

    width: int
    height: int
    bit_count: int = 0
    name: str = ""
    data: bytearray = field(default_factory=bytearray)

    def __post_init__(self) -> None:
        if not (0 <= self.width <= MAX_SIDE and 0 <= self.height <= MAX_SIDE):
            raise ValueError("glyph sides must lie in 0..255")
        size = (self.width * self.height + 7) // 8
        if not self.data:
            self.data = bytearray(size)
        elif len(self.data) != size:
            raise ValueError("glyph data does not match its size")
        self.name = self.name[:NAME_LIMIT]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Glyph):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.bit_count == other.bit_count
            and self.data == other.data
        )

    __hash__ = None  # type: ignore[assignment]

    def set_name(self, name: str) -> None:
        self.name = name[:NAME_LIMIT]

    @classmethod
    def from_dm(cls, hex_text: str, name: str) -> Glyph:
        """Build a glyph from the hex bitmap of a dm text dictionary line."""
        count = min(len(hex_text), DM_MAX_HEX)
        digits = hex_text[:count]
        if count % 2:
            digits += "0"
        octets = [
            (_dm_nibble(digits[i]) << 4) | _dm_nibble(digits[i + 1])
            for i in range(0, count, 2)
        ]
        cols = (count * 4) // DM_HEIGHT
        glyph = cls(cols, DM_HEIGHT)
        for idx in range(cols * DM_HEIGHT):
            if get_bit(octets[idx >> 3], 7 - (idx & 7)):
                glyph.data[idx // 8] = set_bit(glyph.data[idx // 8], idx & 7)
                glyph.bit_count += 1
        glyph.set_name(name)
        return glyph

    @classmethod
    def _from_legacy(cls, raw: bytes) -> Glyph:
        name_raw, width, height, bits, *clines = _LEGACY_WORD.unpack(raw)
        glyph = cls(width & 0xFF, height & 0xFF, bits & 0xFFFF)
        idx = 0
        for x in range(glyph.width):
            for y in range(glyph.height):
                if x < 32 and y < 32 and get_bit(clines[x], 31 - y):
                    glyph.data[idx // 8] = set_bit(glyph.data[idx // 8], idx & 7)
                idx += 1
        glyph.set_name(_decode_name(name_raw)[:3])
        return glyph


@dataclass
class Dictionary:
    """An ordered collection of glyphs."""

    words: list[Glyph] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.words)

    def __iter__(self):
        return iter(self.words)

    def clear(self) -> None:
        self.words = []

    def read(self, path: str | os.PathLike) -> None:
        """Load a binary dictionary; a ``.txt`` path is read as a dm text dictionary."""
        path = os.fspath(path)
        if not path:
            return
        if ".txt" in path:
            self.read_dm(path)
            return
        self.clear()
        with open(path, "rb") as handle:
            content = handle.read()
        if len(content) < _HEADER.size:
            return
        version, count, check = _HEADER.unpack_from(content)
        if check != version ^ count:
            return
        pos = _HEADER.size
        if version == 0:
            for _ in range(max(count, 0)):
                if pos + _LEGACY_WORD.size > len(content):
                    break
                self.words.append(Glyph._from_legacy(content[pos:pos + _LEGACY_WORD.size]))
                pos += _LEGACY_WORD.size
        elif version == 1:
            for _ in range(max(count, 0)):
                if pos + _WORD_INFO.size > len(content):
                    break
                width, height, bits, name_raw = _WORD_INFO.unpack_from(content, pos)
                pos += _WORD_INFO.size
                size = (width * height + 7) // 8
                data = content[pos:pos + size]
                if len(data) < size:
                    break
                pos += size
                self.words.append(
                    Glyph(width, height, bits, _decode_name(name_raw), bytearray(data))
                )
        self.sort()

    def read_dm(self, path: str | os.PathLike) -> None:
        """Load a dm text dictionary file."""
        with open(path, "rb") as handle:
            raw = handle.read()
        for encoding in ("utf-8", "gbk"):
            try:
                text = raw.decode(encoding)
                break
            except UnicodeDecodeError:
                continue
        else:
            text = raw.decode("latin-1")
        self.read_dm_text(text)

    def read_dm_text(self, text: str) -> None:
        """Load dm dictionary lines of the form ``HEX$name$...``."""
        self.clear()
        for line in text.splitlines():
            first = line.find("$")
            if first == -1:
                continue
            second = line.find("$", first + 1)
            if second == -1:
                continue
            name = line[first + 1:second]
            self.add_word(Glyph.from_dm(line[:first], name))
        self.sort()

    def write(self, path: str | os.PathLike) -> None:
        """Save in the binary format; glyphs without a name are dropped first."""
        self.words = [word for word in self.words if word.name]
        count = len(self.words)
        parts = [_HEADER.pack(FORMAT_VERSION, count, FORMAT_VERSION ^ count)]
        for word in self.words:
            parts.append(_WORD_INFO.pack(word.width, word.height, word.bit_count,
                                         _encode_name(word.name)))
            parts.append(bytes(word.data))
        with open(path, "wb") as handle:
            handle.write(b"".join(parts))

    def find(self, glyph: Glyph) -> Glyph | None:
        """Return the stored glyph with the same bitmap, if any."""
        return next((word for word in self.words if word == glyph), None)

    def add_word(self, glyph: Glyph) -> None:
        """Add ``glyph``; a glyph with the same bitmap only gets the new name."""
        existing = self.find(glyph)
        if existing is None:
            self.words.append(
                Glyph(glyph.width, glyph.height, glyph.bit_count, glyph.name,
                      bytearray(glyph.data))
            )
        else:
            existing.set_name(glyph.name)

    def add_region(self, binary: BinaryImage, rect: tuple[int, int, int, int]) -> Glyph:
        """Add the bitmap of ``rect`` (x1, y1, x2, y2) of ``binary`` as an unnamed glyph."""
        x1, y1, x2, y2 = rect
        x2 = min(x1 + MAX_SIDE, x2)
        y2 = min(y1 + MAX_SIDE, y2)
        glyph = Glyph(x2 - x1, y2 - y1)
        idx = 0
        for x in range(x1, x2):
            for y in range(y1, y2):
                if binary.at(y, x) == 1:
                    glyph.data[idx // 8] = set_bit(glyph.data[idx // 8], idx & 7)
                    glyph.bit_count += 1
                idx += 1
        existing = self.find(glyph)
        if existing is not None:
            return existing
        self.words.append(glyph)
        return glyph

    def sort(self) -> None:
        """Order by height then width, largest first, then by fewest set bits."""
        self.words.sort(key=lambda w: (-w.height, -w.width, w.bit_count))

    def erase(self, glyph: Glyph) -> bool:
        """Remove the glyph with the same bitmap; return whether one was removed."""
        existing = self.find(glyph)
        if existing is None:
            return False
        self.words.remove(existing)
        return True