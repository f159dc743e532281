# src/netsim/core/cost.py
#!/usr/bin/env python3
"""
Move cost for entering a grid cell.

    cost = base * poi_discount * (1 + noise) * heat_bias

- base: 1 for an orthogonal step, sqrt(2) for a diagonal one.
- poi_discount: every POI within max(1, floor(size * 3)) Manhattan cells of the
  destination multiplies by 0.9 - min(0.35, size * 0.02); POIs compound.
- noise: only when seed != 0. pseudo_hash(row, col, seed) * noise_scale.
- heat_bias: only when a heat map is given. max(0.5, 1 - influence * heat * 0.5).

The POI list is handed to the model explicitly so the pathfinder can be
tested with any set of attractors.
"""

from dataclasses import dataclass
from math import floor, sqrt
from typing import Optional, Sequence, Tuple

from netsim.core.types import Cell, HeatMap, Terminal

SQRT2 = sqrt(2)
_MASK32 = 0xFFFFFFFF


def _int32(x: int) -> int:
    x &= _MASK32
    return x - (1 << 32) if x & 0x80000000 else x


def pseudo_hash(row: int, col: int, seed: int) -> float:
    """Deterministic integer noise in [0, 0.5)."""
    x = _int32(row * 73856093) ^ _int32(col * 19349663) ^ _int32(seed * 83492791)
    x = _int32(x << 13) ^ x
    v = (x * (x * x * 15731 + 789221) + 1376312589) & 0x7FFFFFFF
    return v / 4294967296.0


def poi_factor(poi: Terminal, c: Cell) -> float:
    dist = abs(poi.cell[0] - c[0]) + abs(poi.cell[1] - c[1])
    radius = max(1, floor(poi.size * 3))
    if dist <= radius:
        return 0.9 - min(0.35, poi.size * 0.02)
    return 1.0


@dataclass(frozen=True)
class CostModel:
    pois: Tuple[Terminal, ...] = ()
    seed: int = 0
    noise_scale: float = 0.0
    heat: Optional[HeatMap] = None
    influence: float = 0.0

    @classmethod
    def for_terminals(cls, terminals: Sequence[Terminal], **kwargs) -> "CostModel":
        return cls(pois=tuple(t for t in terminals if not t.is_origin), **kwargs)

    def step_cost(self, src: Cell, dst: Cell) -> float:
        r, c = dst
        diagonal = src[0] != r and src[1] != c
        cost = SQRT2 if diagonal else 1.0

        for poi in self.pois:
            cost *= poi_factor(poi, dst)

        if self.seed != 0:
            cost *= 1.0 + pseudo_hash(r, c, self.seed) * self.noise_scale

        if self.heat is not None:
            bias = 1.0 - self.influence * self.heat[r][c] * 0.5
            cost *= max(0.5, bias)

        return cost


def path_cost(path: Sequence[Cell], model: CostModel) -> float:
    total = 0.0
    for a, b in zip(path, path[1:]):
        total += model.step_cost(a, b)
    return total
