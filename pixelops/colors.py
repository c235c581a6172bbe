"""Colour values, colour-with-tolerance descriptions and their text forms."""

from __future__ import annotations

from dataclasses import dataclass


def hex_to_int(char: str) -> int:
    """Value of one hex-like character: digits, then letters from 10 upward; else 0."""
    if "0" <= char <= "9":
        return ord(char) - ord("0")
    if "A" <= char <= "Z":
        return ord(char) - ord("A") + 10
    if "a" <= char <= "z":
        return ord(char) - ord("a") + 10
    return 0


@dataclass(frozen=True)
class Color:
    """An RGB colour with an alpha byte."""

    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 0

    @classmethod
    def parse(cls, text: str) -> Color:
        """Parse ``RRGGBB``; missing characters count as zero."""
        chars = text.strip()[:6].ljust(6, "0")
        r, g, b = (
            (hex_to_int(chars[i]) * 16 + hex_to_int(chars[i + 1])) & 0xFF for i in (0, 2, 4)
        )
        return cls(r, g, b)

    @classmethod
    def from_pixel(cls, value: int) -> Color:
        """Colour of a BGRA little-endian pixel value."""
        return cls(
            (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF, (value >> 24) & 0xFF
        )

    @property
    def pixel(self) -> int:
        return self.b | self.g << 8 | self.r << 16 | self.a << 24

    def to_gray(self) -> int:
        return (self.r * 299 + self.g * 587 + self.b * 114 + 500) // 1000

    def to_hex(self) -> str:
        return f"{self.r:02X}{self.g:02X}{self.b:02X}"


@dataclass(frozen=True)
class ColorDelta:
    """A colour and the per-channel tolerance around it."""

    color: Color
    delta: Color = Color()


def in_range(color: Color, target: Color, delta: Color) -> bool:
    """True when every RGB channel of ``color`` lies within ``delta`` of ``target``."""
    return (
        abs(color.r - target.r) <= delta.r
        and abs(color.g - target.g) <= delta.g
        and abs(color.b - target.b) <= delta.b
    )


def parse_color_deltas(text: str) -> tuple[list[ColorDelta], bool]:
    """Parse ``RRGGBB-DRDGDB|...``.

    Returns the colours and whether they describe the background: an empty
    string or a leading ``@`` means background.
    """
    if not text:
        return [], True
    background = text.startswith("@")
    body = text[1:] if background else text
    colors = []
    for item in body.split("|"):
        if not item:
            continue
        parts = item.split("-")
        delta = parts[1] if len(parts) == 2 else "000000"
        colors.append(ColorDelta(Color.parse(parts[0]), Color.parse(delta)))
    return colors, background