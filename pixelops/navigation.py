"""Text-level helpers: nearest position lookup, path finding and key names."""

from __future__ import annotations

import re

from .astar import AStar

_POINT = re.compile(r"\s*([+-]?\d+)(?!\d),\s*([+-]?\d+)")
_XY = re.compile(r"\s*([+-]?\d+)(?!\d)\s*([+-]?\d+)")
_NAMED_XY = re.compile(r"\s*(\S+)(?!\S)\s*([+-]?\d+)(?!\d)\s*([+-]?\d+)")

_KEY_CODES: dict[str, int] = {
    "back": 8,
    "ctrl": 17,
    "alt": 18,
    "shift": 16,
    "win": 91,
    "space": ord(" "),
    "tab": 9,
    "esc": 3,
    "enter": ord("\r"),
    "up": 38,
    "down": 40,
    "left": 37,
    "right": 39,
    **{f"f{n}": 111 + n for n in range(1, 13)},
}


def find_nearest_pos(all_pos: str, kind: int, x: int, y: int) -> str:
    """Return the entry of ``all_pos`` closest to ``(x, y)``.

    With ``kind == 1`` entries are ``x,y`` and the result is ``x,y``; otherwise
    entries are ``name,x,y`` and the result is ``name,x,y``.  Entries are
    separated by ``|``.  An empty string means nothing matched.
    """
    text = all_pos.replace(",", " ")
    best = 1e9
    best_x = best_y = -1
    best_name = ""
    pos = 0
    while pos < len(text):
        rest = text[pos:]
        name = ""
        if kind == 1:
            match = _XY.match(rest)
            coords = (match.group(1), match.group(2)) if match else None
        else:
            match = _NAMED_XY.match(rest)
            if match:
                name = match.group(1)
                coords = (match.group(2), match.group(3))
            else:
                coords = None
        if coords is not None:
            x2, y2 = int(coords[0]), int(coords[1])
            distance = (x - x2) ** 2 + (y - y2) ** 2
            if distance < best:
                best, best_x, best_y, best_name = distance, x2, y2, name
        bar = text.find("|", pos)
        if bar == -1:
            break
        pos = bar + 1
    if best_name:
        return f"{best_name},{best_x},{best_y}"
    if kind == 1 and best_x != -1:
        return f"{best_x},{best_y}"
    return ""


def astar_find_path(
    width: int,
    height: int,
    disable_points: str,
    begin_x: int,
    begin_y: int,
    end_x: int,
    end_y: int,
) -> str:
    """Find a path and return it as ``x,y|x,y|...`` from begin to end.

    ``disable_points`` lists blocked cells as ``x,y|x,y``; reading stops at the
    first item that is not a pair.
    """
    walls = []
    for item in disable_points.split("|"):
        match = _POINT.match(item)
        if match is None:
            break
        walls.append((int(match.group(1)), int(match.group(2))))
    finder = AStar()
    finder.set_map(width, height, walls)
    path = finder.find_path((begin_x, begin_y), (end_x, end_y))
    return "|".join(f"{p.x},{p.y}" for p in path)


def key_code(name: str) -> int:
    """Virtual key code for a key name; unknown names give the first character's code."""
    if not name:
        raise ValueError("key name must not be empty")
    return _KEY_CODES.get(name.lower(), ord(name[0]))