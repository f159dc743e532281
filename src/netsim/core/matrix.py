# src/netsim/core/matrix.py
#!/usr/bin/env python3
import logging
from dataclasses import dataclass, field
from math import inf
from typing import Dict, List, Optional, Sequence, Tuple

from netsim.core.astar import find_path
from netsim.core.cost import CostModel
from netsim.core.types import Grid, Path, Terminal

logger = logging.getLogger(__name__)

UNREACHABLE = inf


@dataclass
class DistanceMatrix:
    dist: List[List[float]]                                 # path length in cells, inf if no path
    paths: Dict[Tuple[int, int], Path] = field(default_factory=dict)  # keyed (i, j) with i < j

    @property
    def size(self) -> int:
        return len(self.dist)

    def path_between(self, a: int, b: int) -> Optional[Path]:
        key = (a, b) if a < b else (b, a)
        return self.paths.get(key)


def build_distance_matrix(grid: Grid, terminals: Sequence[Terminal],
                          cost_model: CostModel,
                          allow_diagonals: bool = False) -> DistanceMatrix:
    """One A* run per unordered terminal pair."""
    n = len(terminals)
    dist = [[UNREACHABLE] * n for _ in range(n)]
    for i in range(n):
        dist[i][i] = 0
    paths: Dict[Tuple[int, int], Path] = {}

    for i in range(n):
        for j in range(i + 1, n):
            path = find_path(grid, terminals[i].cell, terminals[j].cell,
                             cost_model, allow_diagonals)
            if path is None:
                logger.debug(f"No path between terminals {i} and {j}")
                continue
            dist[i][j] = dist[j][i] = len(path)
            paths[(i, j)] = path

    return DistanceMatrix(dist, paths)
