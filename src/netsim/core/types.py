# src/netsim/core/types.py
#!/usr/bin/env python3
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from netsim.core.errors import InvalidPrecondition, OutOfBoundsCell

Cell = Tuple[int, int]  # (row, col)
Path = List[Cell]
HeatMap = List[List[float]]  # [row][col], values in [0, 1]

OBSTACLE = 1
PASSABLE = 0


@dataclass
class Grid:
    rows: int
    cols: int
    cells: List[List[int]]             # [row][col], 1 = obstacle

    def __post_init__(self):
        if self.rows <= 0 or self.cols <= 0:
            raise InvalidPrecondition(f"grid must be non-empty, got {self.rows}x{self.cols}")
        if len(self.cells) != self.rows or any(len(r) != self.cols for r in self.cells):
            raise InvalidPrecondition("cells size mismatch")

    @classmethod
    def empty(cls, rows: int, cols: int) -> "Grid":
        return cls(rows, cols, [[PASSABLE] * cols for _ in range(rows)])

    def in_bounds(self, c: Cell) -> bool:
        r, col = c
        return 0 <= r < self.rows and 0 <= col < self.cols

    def is_passable(self, c: Cell) -> bool:
        if not self.in_bounds(c):
            raise OutOfBoundsCell(c, self.rows, self.cols)
        r, col = c
        return self.cells[r][col] != OBSTACLE

    def with_obstacles(self, cells: Iterable[Cell], blocked: bool = True) -> "Grid":
        """Return a copy with the given cells set to obstacle (or cleared)."""
        out = [row[:] for row in self.cells]
        for c in cells:
            if not self.in_bounds(c):
                raise OutOfBoundsCell(c, self.rows, self.cols)
            out[c[0]][c[1]] = OBSTACLE if blocked else PASSABLE
        return Grid(self.rows, self.cols, out)


@dataclass(frozen=True)
class Terminal:
    cell: Cell
    size: int = 0                      # POI influence strength; unused for the origin
    is_origin: bool = False
    label: Optional[str] = None

    @classmethod
    def origin(cls, row: int, col: int, label: Optional[str] = "origin") -> "Terminal":
        return cls((row, col), 0, True, label)

    @classmethod
    def poi(cls, row: int, col: int, size: int = 3, label: Optional[str] = None) -> "Terminal":
        return cls((row, col), size, False, label)


@dataclass(frozen=True)
class UnreachableTerminal:
    index: int                         # position in the terminal list
    terminal: Terminal


def validate_terminals(grid: Grid, terminals: Sequence[Terminal]) -> None:
    """Raise before any computation if the terminal list cannot be synthesized."""
    if not terminals or not terminals[0].is_origin:
        raise InvalidPrecondition("terminal list must start with the origin")
    if any(t.is_origin for t in terminals[1:]):
        raise InvalidPrecondition("exactly one origin terminal is allowed")
    if len(terminals) < 2:
        raise InvalidPrecondition("at least one POI is required")
    for t in terminals:
        if not grid.is_passable(t.cell):
            raise InvalidPrecondition(f"terminal at {t.cell} sits on an obstacle")
        if t.is_origin:
            continue
        if type(t.size) is not int or t.size <= 0:
            raise InvalidPrecondition(f"POI at {t.cell} needs a positive integer size, got {t.size!r}")


@dataclass
class StepResult:
    status: str                   # "idle" | "running" | "done" | "no_path"
    opened: List[Cell] = field(default_factory=list)
    closed: List[Cell] = field(default_factory=list)
    current: Optional[Cell] = None
    path: Optional[Path] = None
    metrics: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Network:
    paths: Tuple[Tuple[Cell, ...], ...] = ()
    cells: FrozenSet[Cell] = frozenset()
    edges: Tuple[Tuple[int, int], ...] = ()     # (parent, child) terminal indices
    excluded: Tuple[int, ...] = ()              # unreachable terminal indices

    @property
    def is_empty(self) -> bool:
        return not self.paths

    @property
    def total_length(self) -> int:
        return sum(len(p) for p in self.paths)

    def nearest_cell(self, c: Cell) -> Optional[Cell]:
        """Network cell closest to `c` by Manhattan distance (snap-to-network)."""
        best: Optional[Cell] = None
        best_d = None
        # scan paths in order so ties resolve the same way every time
        for path in self.paths:
            for cell in path:
                d = abs(cell[0] - c[0]) + abs(cell[1] - c[1])
                if best_d is None or d < best_d:
                    best, best_d = cell, d
        return best

    def to_dict(self) -> dict:
        return {
            "paths": [[list(c) for c in p] for p in self.paths],
            "cells": [list(c) for c in sorted(self.cells)],
            "edges": [list(e) for e in self.edges],
            "excluded": list(self.excluded),
        }


@dataclass
class SynthesisConfig:
    trial_count: int = 20
    noise_scale: float = 0.7
    trial_influence: float = 0.5
    allow_diagonals: bool = False
    show_trials: bool = True
    workers: int = 1

    def validate(self) -> None:
        if self.trial_count < 0:
            raise InvalidPrecondition(f"trial_count must be >= 0, got {self.trial_count}")
        if not 0.0 <= self.noise_scale <= 1.0:
            raise InvalidPrecondition(f"noise_scale must be in [0, 1], got {self.noise_scale}")
        if not 0.0 <= self.trial_influence <= 1.0:
            raise InvalidPrecondition(f"trial_influence must be in [0, 1], got {self.trial_influence}")
        if self.workers < 1:
            raise InvalidPrecondition(f"workers must be >= 1, got {self.workers}")

    @property
    def effective_trials(self) -> int:
        return self.trial_count if self.show_trials else 0


@dataclass
class SynthesisResult:
    trial_networks: List[Network]
    final_network: Network
    heat_map: HeatMap
    excluded: List[UnreachableTerminal] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "trials": len(self.trial_networks),
            "final_network": self.final_network.to_dict(),
            "excluded": [
                {"index": u.index, "cell": list(u.terminal.cell), "label": u.terminal.label}
                for u in self.excluded
            ],
        }
