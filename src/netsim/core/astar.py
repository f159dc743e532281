# src/netsim/core/astar.py
#!/usr/bin/env python3
"""
A* between two grid cells, one expansion per step() so a viewer can animate it.

Algorithm API:
- init(grid, start, goal) - reset() - step() -> StepResult - run() -> path | None

Heuristic:
- Manhattan for 4-connected grids.
- Octile (min(dr, dc) * sqrt(2) + |dr - dc|) when diagonals are allowed.

Priority queue entries are (f, seq, cell): lower f first, FIFO by discovery
order on ties. A cell is closed the first time it is popped; later duplicate
entries for it are dropped when they surface.

Diagonal moves are refused when either orthogonal cell of the corner is an
obstacle, so paths never squeeze between two touching walls.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple
import heapq
from math import inf

from netsim.core.cost import SQRT2, CostModel
from netsim.core.types import Cell, Grid, Path, StepResult

_ORTHO = ((-1, 0), (1, 0), (0, -1), (0, 1))
_DIAG = ((-1, -1), (-1, 1), (1, -1), (1, 1))


@dataclass
class AStarAlgo:
    name: str = "A*"
    cost_model: CostModel = field(default_factory=CostModel)
    allow_diagonals: bool = False

    # Internal state
    grid: Optional[Grid] = None
    start: Optional[Cell] = None
    goal_cell: Optional[Cell] = None
    open_pq: List[Tuple[float, int, Cell]] = field(default_factory=list)  # (f, seq, cell)
    open_set: Set[Cell] = field(default_factory=set)
    closed_set: Set[Cell] = field(default_factory=set)
    g: Dict[Cell, float] = field(default_factory=dict)
    parent: Dict[Cell, Cell] = field(default_factory=dict)
    popped_count: int = 0
    done: bool = False
    no_path: bool = False
    seq: int = 0  # monotonic counter for PQ stability

    # -------------------- lifecycle --------------------

    def init(self, grid: Grid, start: Cell, goal: Cell) -> None:
        # bounds are checked here so a bad terminal fails before any search
        grid.is_passable(start)
        grid.is_passable(goal)
        self.grid = grid
        self.start = start
        self.goal_cell = goal
        self.reset()

    def reset(self) -> None:
        """Clear all state and seed with the start node."""
        if self.grid is None:
            return
        self.open_pq.clear()
        self.open_set.clear()
        self.closed_set.clear()
        self.g.clear()
        self.parent.clear()
        self.popped_count = 0
        self.done = False
        self.no_path = False
        self.seq = 0

        s = self.start
        self.g[s] = 0.0
        heapq.heappush(self.open_pq, (self._h(s), self._bump(), s))
        self.open_set.add(s)

    # -------------------- helpers --------------------

    def _bump(self) -> int:
        self.seq += 1
        return self.seq

    def _open(self, c: Cell) -> bool:
        return self.grid.in_bounds(c) and self.grid.is_passable(c)

    def _neighbors(self, c: Cell) -> List[Cell]:
        r, col = c
        out: List[Cell] = []
        for dr, dc in _ORTHO:
            n = (r + dr, col + dc)
            if self._open(n):
                out.append(n)
        if not self.allow_diagonals:
            return out
        for dr, dc in _DIAG:
            n = (r + dr, col + dc)
            if not self._open(n):
                continue
            # no corner cutting
            if not self._open((r, col + dc)) or not self._open((r + dr, col)):
                continue
            out.append(n)
        return out

    def _h(self, c: Cell) -> float:
        dr = abs(self.goal_cell[0] - c[0])
        dc = abs(self.goal_cell[1] - c[1])
        if not self.allow_diagonals:
            return float(dr + dc)
        lo, hi = min(dr, dc), max(dr, dc)
        return lo * SQRT2 + (hi - lo)

    def _reconstruct_path(self, end: Cell) -> Path:
        path: Path = []
        cur = end
        while True:
            path.append(cur)
            if cur == self.start:
                break
            cur = self.parent[cur]
        path.reverse()
        return path

    # -------------------- main stepping logic --------------------

    def step(self) -> StepResult:
        """
        Run ONE A* expansion step:
          - Pop the lowest-f node, skipping cells that are already closed.
          - If goal, reconstruct and finish.
          - Else relax neighbors with the cost model's step cost.
        """
        if self.grid is None:
            return StepResult(status="idle", metrics={"algo": self.name})

        if self.done:
            path = self._reconstruct_path(self.goal_cell)
            return StepResult(status="done", path=path,
                              metrics=self._metrics(path_len=len(path)))

        if self.no_path:
            return StepResult(status="no_path", metrics=self._metrics())

        if not self.open_pq:
            self.no_path = True
            return StepResult(status="no_path", metrics=self._metrics())

        _, _, u = heapq.heappop(self.open_pq)

        # Ignore stale pops
        if u in self.closed_set:
            return StepResult(status="running", current=u, metrics=self._metrics())

        self.popped_count += 1
        self.open_set.discard(u)
        self.closed_set.add(u)

        if u == self.goal_cell:
            self.done = True
            path = self._reconstruct_path(u)
            return StepResult(status="done", closed=[u], current=u, path=path,
                              metrics=self._metrics(path_len=len(path)))

        opened_now: List[Cell] = []
        g_u = self.g[u]
        for v in self._neighbors(u):
            if v in self.closed_set:
                continue
            alt = g_u + self.cost_model.step_cost(u, v)
            if alt < self.g.get(v, inf):
                self.g[v] = alt
                self.parent[v] = u
                heapq.heappush(self.open_pq, (alt + self._h(v), self._bump(), v))
                if v not in self.open_set:
                    self.open_set.add(v)
                    opened_now.append(v)

        return StepResult(status="running", opened=opened_now, closed=[u], current=u,
                          metrics=self._metrics())

    def run(self) -> Optional[Path]:
        """Step until the search settles. None means the goal is unreachable."""
        while True:
            res = self.step()
            if res.status == "done":
                return res.path
            if res.status in ("no_path", "idle"):
                return None

    # -------------------- metrics --------------------

    def _metrics(self, path_len: int = 0) -> dict:
        return {
            "algo": self.name,
            "popped": self.popped_count,
            "open_size": len(self.open_set),
            "closed_count": len(self.closed_set),
            "path_len": path_len,
            "total_cost": self.g.get(self.goal_cell) if self.done else None,
        }


def find_path(grid: Grid, start: Cell, goal: Cell,
              cost_model: Optional[CostModel] = None,
              allow_diagonals: bool = False) -> Optional[Path]:
    algo = AStarAlgo(cost_model=cost_model or CostModel(), allow_diagonals=allow_diagonals)
    algo.init(grid, start, goal)
    return algo.run()
