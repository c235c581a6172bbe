"""Raster images: four-channel BGRA pictures and single-channel planes."""

from __future__ import annotations

import io
import os
import struct
from collections.abc import Iterator
from dataclasses import dataclass, field

from PIL import Image as _PILImage

_PIXEL = struct.Struct("<I")
_NO_ALPHA_SUFFIXES = {".jpg", ".jpeg"}


def get_bit(value: int, index: int) -> int:
    """Return bit ``index`` of ``value`` (0 or 1)."""
    return (value >> index) & 1


def set_bit(value: int, index: int) -> int:
    """Return ``value`` with bit ``index`` set."""
    return value | (1 << index)


def bit_count(value: int) -> int:
    """Return the number of set bits in a non-negative integer."""
    if value < 0:
        raise ValueError("bit_count needs a non-negative value")
    return bin(value).count("1")


def _rgba_to_bgra(raw: bytes) -> bytearray:
    data = bytearray(raw)
    data[0::4], data[2::4] = raw[2::4], raw[0::4]
    return data


def _has_alpha(img: _PILImage.Image) -> bool:
    if img.mode in ("RGBA", "LA", "PA", "RGBa", "La"):
        return True
    return img.mode == "P" and "transparency" in img.info


@dataclass(eq=False)
class Image:
    """A picture of 32-bit pixels stored row by row as B, G, R, A bytes."""

    width: int = 0
    height: int = 0
    data: bytearray = field(default_factory=bytearray)

    def create(self, width: int, height: int) -> None:
        """Allocate a zeroed ``width`` x ``height`` picture."""
        if width < 0 or height < 0:
            raise ValueError("image size must not be negative")
        self.width, self.height = width, height
        self.data = bytearray(width * height * 4)

    def clear(self) -> None:
        self.width = self.height = 0
        self.data = bytearray()

    def empty(self) -> bool:
        return self.width == 0

    def __len__(self) -> int:
        return self.width * self.height

    def __iter__(self) -> Iterator[int]:
        for (value,) in _PIXEL.iter_unpack(bytes(self.data)):
            yield value

    def _offset(self, y: int, x: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return (y * self.width + x) * 4

    def pixel(self, y: int, x: int) -> int:
        """Return the pixel at row ``y``, column ``x`` as a BGRA little-endian integer."""
        return _PIXEL.unpack_from(self.data, self._offset(y, x))[0]

    def set_pixel(self, y: int, x: int, value: int) -> None:
        _PIXEL.pack_into(self.data, self._offset(y, x), value & 0xFFFFFFFF)

    def fill(self, value: int) -> None:
        """Set every pixel to ``value``."""
        self.data = bytearray(_PIXEL.pack(value & 0xFFFFFFFF) * len(self))

    def _load(self, img: _PILImage.Image) -> None:
        img.load()
        if _has_alpha(img):
            rgba = img.convert("RGBA")
        else:
            rgba = img.convert("RGB").convert("RGBA")
        self.width, self.height = rgba.size
        self.data = _rgba_to_bgra(rgba.tobytes())

    def read(self, path: str | os.PathLike) -> None:
        """Load a picture file; grey and RGB sources get an opaque alpha channel."""
        self.clear()
        with _PILImage.open(path) as img:
            self._load(img)

    def read_bytes(self, data: bytes) -> None:
        """Load a picture from the bytes of an encoded file."""
        self.clear()
        with _PILImage.open(io.BytesIO(bytes(data))) as img:
            self._load(img)

    def write(self, path: str | os.PathLike) -> None:
        """Save the picture; the format follows the file suffix."""
        if self.empty():
            raise ValueError("cannot write an empty image")
        raw = bytes(self.data)
        img = _PILImage.frombytes("RGBA", (self.width, self.height), bytes(_rgba_to_bgra(raw)))
        if os.path.splitext(os.fspath(path))[1].lower() in _NO_ALPHA_SUFFIXES:
            img = img.convert("RGB")
        img.save(path)


@dataclass(eq=False)
class BinaryImage:
    """A single-channel picture of one byte per pixel."""

    width: int = 0
    height: int = 0
    pixels: bytearray = field(default_factory=bytearray)

    def create(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise ValueError("image size must not be negative")
        self.width, self.height = width, height
        self.pixels = bytearray(width * height)

    @classmethod
    def from_image(cls, image: Image) -> BinaryImage:
        """Grey plane of ``image`` using (R*299 + G*587 + B*114 + 500) / 1000."""
        data = image.data
        grey = bytearray(
            (r * 299 + g * 587 + b * 114 + 500) // 1000
            for b, g, r in zip(data[0::4], data[1::4], data[2::4])
        )
        return cls(image.width, image.height, grey)

    def _offset(self, y: int, x: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return y * self.width + x

    def at(self, y: int, x: int) -> int:
        return self.pixels[self._offset(y, x)]

    def set(self, y: int, x: int, value: int) -> None:
        self.pixels[self._offset(y, x)] = value & 0xFF

    def empty(self) -> bool:
        return self.width == 0

    def __len__(self) -> int:
        return self.width * self.height

    def __iter__(self) -> Iterator[int]:
        return iter(self.pixels)