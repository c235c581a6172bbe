# pixelops

Image search and simple OCR on in-memory 32-bit BGRA images.

`pixelops` searches an image you give it. It can find colours,
multi-point colour patterns, pictures, colour blocks and the strongest
straight line. It can recognise text with bitmap glyph dictionaries. It
also includes a small eight-direction A* path finder.

## Installation

```
pip install pixelops
```

Pillow is the only runtime dependency. It reads and writes image files.

## Modules

| Module | What it provides |
| --- | --- |
| `pixelops.image` | `Image` (BGRA pixels) and `BinaryImage` (one byte per pixel); `get_bit`, `set_bit`, `bit_count` |
| `pixelops.colors` | `Color`, `ColorDelta`, `in_range`, `parse_color_deltas`, `hex_to_int` |
| `pixelops.dictionary` | `Glyph` and `Dictionary`: binary glyph dictionaries (read and write) and `HEX$name$...` text dictionaries (read) |
| `pixelops.astar` | `AStar`, a grid path finder with eight-way moves |
| `pixelops.navigation` | `find_nearest_pos`, `astar_find_path`, `key_code`, which work on strings |
| `pixelops.locate` | `Locator`: colour, multi-colour, picture, colour-block and line search; `check_transparent`, `match_points`, `scan_order` |
| `pixelops.ocr` | `Recognizer` and `OcrRecord`: dictionary OCR on the binary plane, and text search in the OCR results |
| `pixelops.processor` | `ImageProcessor`: takes colour and file-name strings, caches pictures and holds ten dictionaries |

## Colour strings

* A colour is written `RRGGBB`. A tolerance can follow after a dash: `RRGGBB-DRDGDB`.
* Several colours are joined with `|`, for example `ff0000-101010|00ff00`.
* A leading `@` marks the colours as background. When an image is binarised,
  a pixel counts as foreground if it falls outside them. An empty colour
  string makes the most common grey level the background.
* Offset colours for multi-colour search are written
  `dx|dy|RRGGBB[-DRDGDB],dx|dy|...`.

## Example

```python
from pixelops.image import Image
from pixelops.processor import ImageProcessor

screen = Image()
screen.read("screen.png")

proc = ImageProcessor(curr_path="pictures")
proc.set_source(screen)
proc.set_offset(0, 0)                      # added to every reported point

proc.find_color("ff0000-101010", 1.0, 0)   # (x, y) or None
proc.find_color_ex("ff0000", 1.0, 0)       # [(x, y), ...]
proc.find_pic("button.png|icon.bmp", "101010", 0.9, 0)   # (file index, x, y) or None

proc.set_dict(0, "font.txt")               # FileNotFoundError if missing
proc.ocr_text("ffffff-202020", 1.0)        # recognised text
proc.find_text("OK|Cancel", "ffffff-202020", 1.0)        # (index, x, y) or None
```

`ImageProcessor` can also take an `engine`. This is a callable that
receives the source `Image` and returns `OcrRecord` items. It is used
whenever the dictionary in use is empty. The package itself has no such
engine.

Path finding and nearest-position lookup work on plain strings:

```python
from pixelops.navigation import astar_find_path, find_nearest_pos

astar_find_path(10, 10, "1,0|1,1", 0, 0, 3, 0)   # "x,y|x,y|..." from begin to end
find_nearest_pos("1,2|3,4|5,6|7,8", 1, 3, 0)    # "1,2"
```

## Search direction

`find_color`, `find_multi_color`, `find_multi_color_ex` and `find_pic`
scan the image in this order:

| Direction | Rows | Columns |
| --- | --- | --- |
| 0 | top to bottom | left to right |
| 1 | top to bottom | right to left |
| 2 | bottom to top | left to right |
| other | bottom to top | right to left |

`find_color_ex` and `find_pic_ex` always scan row by row from the top
left, whatever direction they are given.

## Limits

`find_pic_ex` returns at most 1800 hits. The other search functions that
return lists stop after 1801 entries.

## What it does not do

* It does not capture the screen.
* It does not bind to windows or send mouse and keyboard input. `key_code`
  only maps key names to codes.
* It has no region-based front end. To search part of a screen, crop the
  `Image` yourself and pass the crop's position to `set_offset`.
* It has no built-in OCR engine apart from glyph dictionaries.
* It has no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```