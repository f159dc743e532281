from collections import deque

import pytest

from netsim.core.types import Grid, Terminal


def is_connected_step(a, b, diagonals=False):
    dr, dc = abs(a[0] - b[0]), abs(a[1] - b[1])
    if diagonals:
        return max(dr, dc) == 1
    return dr + dc == 1


def connected(cells, diagonals=False):
    """True if the cell set forms one component under grid adjacency."""
    cells = set(cells)
    if not cells:
        return True
    start = next(iter(cells))
    seen = {start}
    queue = deque([start])
    while queue:
        r, c = queue.popleft()
        for dr in (-1, 0, 1):
            for dc in (-1, 0, 1):
                n = (r + dr, c + dc)
                if n in cells and n not in seen and is_connected_step((r, c), n, diagonals):
                    seen.add(n)
                    queue.append(n)
    return seen == cells


@pytest.fixture
def open_grid():
    return Grid.empty(10, 10)


@pytest.fixture
def wall_grid():
    """Row 5 blocked except the gap at column 9."""
    return Grid.empty(10, 10).with_obstacles([(5, c) for c in range(9)])


@pytest.fixture
def corner_terminals():
    return [Terminal.origin(0, 0), Terminal.poi(9, 9, size=3)]


@pytest.fixture
def enclosed_grid():
    """POI cell (5, 5) is walled in on all four sides."""
    return Grid.empty(10, 10).with_obstacles([(4, 5), (6, 5), (5, 4), (5, 6)])


@pytest.fixture
def scattered_grid():
    blocked = [(r, c) for r in range(12) for c in range(12)
               if (r * 7 + c * 3) % 5 == 0 and (r, c) not in ((0, 0), (11, 11), (0, 11), (11, 0))]
    return Grid.empty(12, 12).with_obstacles(blocked)
