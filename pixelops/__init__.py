"""Colour search, picture matching, colour-block and line detection, and dictionary OCR."""

__version__ = "0.4.2"

__all__ = [
    "astar",
    "colors",
    "dictionary",
    "image",
    "locate",
    "navigation",
    "ocr",
    "processor",
]