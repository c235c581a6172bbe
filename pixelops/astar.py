"""Grid path finding with eight-way moves and a Manhattan-distance estimate."""

from __future__ import annotations

import heapq
from collections.abc import Iterable
from dataclasses import dataclass
from typing import NamedTuple


class Point(NamedTuple):
    """A grid position."""

    x: int
    y: int


# Neighbour order matters: it decides which of equally good nodes is found first.
DIRECTIONS: tuple[tuple[int, int], ...] = (
    (0, 1), (0, -1), (-1, 0), (1, 0), (1, 1), (-1, 1), (-1, -1), (1, -1),
)


@dataclass
class _Node:
    f: int
    g: int
    parent: Point | None


class AStar:
    """Path finder over a ``(width + 1) x (height + 1)`` grid with blocked cells."""

    def __init__(self) -> None:
        self._size = Point(0, 0)
        self._walls: frozenset[Point] = frozenset()

    def set_map(self, width: int, height: int, walls: Iterable[tuple[int, int]]) -> None:
        """Set the grid bounds and the blocked positions."""
        self._size = Point(width, height)
        self._walls = frozenset(Point(*wall) for wall in walls)

    def outside(self, pos: tuple[int, int]) -> bool:
        """True when ``pos`` lies beyond the grid; both bounds are inclusive."""
        x, y = pos
        return x < 0 or x > self._size.x or y < 0 or y > self._size.y

    def find_path(self, begin: tuple[int, int], end: tuple[int, int]) -> list[Point]:
        """Return the positions from ``begin`` to ``end``, or an empty list if none."""
        start = Point(*begin)
        goal = Point(*end)
        if self.outside(start) or self.outside(goal):
            return []

        open_nodes: dict[Point, _Node] = {start: _Node(0, 0, None)}
        heap: list[tuple[int, Point]] = [(0, start)]
        closed: dict[Point, _Node] = {}

        while open_nodes:
            f, pos = heapq.heappop(heap)
            node = open_nodes.get(pos)
            if node is None or node.f != f:
                continue
            del open_nodes[pos]
            closed[pos] = node
            if pos == goal:
                break
            for dx, dy in DIRECTIONS:
                nxt = Point(pos.x + dx, pos.y + dy)
                if nxt in closed or nxt in self._walls or self.outside(nxt):
                    continue
                g = node.g + 1
                score = g + abs(nxt.x - goal.x) + abs(nxt.y - goal.y)
                existing = open_nodes.get(nxt)
                if existing is None:
                    open_nodes[nxt] = _Node(score, g, pos)
                    heapq.heappush(heap, (score, nxt))
                elif existing.f > score:
                    # Only the score is lowered; the cost and parent stay as first found.
                    existing.f = score
                    heapq.heappush(heap, (score, nxt))

        if goal not in closed:
            return []
        path: list[Point] = []
        current: Point | None = goal
        while current is not None:
            path.append(current)
            current = closed[current].parent
        path.reverse()
        return path