import pytest

from pixelops.astar import AStar, Point


def _finder(width, height, walls=()):
    finder = AStar()
    finder.set_map(width, height, walls)
    return finder


def _assert_valid(path, begin, end, walls, width, height):
    assert path[0] == begin
    assert path[-1] == end
    for a, b in zip(path, path[1:]):
        assert max(abs(a.x - b.x), abs(a.y - b.y)) == 1
    for p in path:
        assert p not in walls or p == begin
        assert 0 <= p.x <= width and 0 <= p.y <= height


def test_outside_bounds_are_inclusive():
    finder = _finder(5, 4)
    assert finder.outside((5, 4)) is False
    assert finder.outside((6, 0)) is True
    assert finder.outside((0, -1)) is True


def test_path_on_open_grid_is_connected():
    finder = _finder(10, 10)
    path = finder.find_path((0, 0), (7, 3))
    _assert_valid(path, (0, 0), (7, 3), set(), 10, 10)


def test_path_avoids_walls():
    walls = [(3, y) for y in range(0, 9)]
    finder = _finder(10, 10, walls)
    path = finder.find_path((0, 0), (6, 0))
    _assert_valid(path, (0, 0), (6, 0), set(walls), 10, 10)
    assert any(p.y >= 9 for p in path)


def test_begin_equals_end():
    finder = _finder(3, 3)
    assert finder.find_path((2, 2), (2, 2)) == [Point(2, 2)]


def test_outside_endpoint_gives_empty():
    finder = _finder(3, 3)
    assert finder.find_path((0, 0), (4, 0)) == []
    assert finder.find_path((-1, 0), (1, 1)) == []


def test_unreachable_end_gives_empty():
    walls = [(x, y) for x in range(1, 4) for y in range(1, 4) if (x, y) != (2, 2)]
    finder = _finder(6, 6, walls)
    assert finder.find_path((0, 0), (2, 2)) == []


def test_wall_at_end_gives_empty():
    finder = _finder(4, 4, [(3, 3)])
    assert finder.find_path((0, 0), (3, 3)) == []


@pytest.mark.parametrize("end", [(0, 5), (5, 0), (5, 5), (2, 4)])
def test_paths_in_all_directions(end):
    finder = _finder(5, 5)
    path = finder.find_path((3, 2), end)
    _assert_valid(path, (3, 2), end, set(), 5, 5)
    assert len(set(path)) == len(path)