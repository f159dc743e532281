# src/netsim/core/maps.py
#!/usr/bin/env python3
"""
JSON map files.

    {
      "rows": 10, "cols": 10,
      "cells": [[0, 0, 1, ...], ...],        # optional, [row][col], 1 = obstacle
      "obstacles": [[5, 0], [5, 1], ...],    # optional, added on top of cells
      "origin": [0, 0],
      "pois": [{"cell": [9, 9], "size": 3, "label": "market"}],
      "config": {"trial_count": 20, "allow_diagonals": false}
    }
"""

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Union

from netsim.core.errors import InvalidPrecondition, OutOfBoundsCell
from netsim.core.types import Grid, SynthesisConfig, Terminal

logger = logging.getLogger(__name__)

_CONFIG_KEYS = {f.name for f in fields(SynthesisConfig)}


@dataclass
class MapSpec:
    grid: Grid
    terminals: List[Terminal]
    config: SynthesisConfig = field(default_factory=SynthesisConfig)
    name: str = "custom"


def _cell(value, what: str):
    try:
        r, c = value
        return int(r), int(c)
    except (TypeError, ValueError):
        raise InvalidPrecondition(f"{what} must be a [row, col] pair, got {value!r}")


def map_from_dict(data: dict, name: str = "custom") -> MapSpec:
    if not isinstance(data, dict):
        raise InvalidPrecondition(f"map {name} must be a JSON object")
    try:
        rows = int(data["rows"])
        cols = int(data["cols"])
    except KeyError as e:
        raise InvalidPrecondition(f"map is missing {e.args[0]!r}")
    except (TypeError, ValueError):
        raise InvalidPrecondition("map rows and cols must be integers")

    cells = data.get("cells")
    grid = Grid(rows, cols, [list(map(int, r)) for r in cells]) if cells else Grid.empty(rows, cols)
    obstacles = [_cell(o, "obstacle") for o in data.get("obstacles", [])]
    if obstacles:
        grid = grid.with_obstacles(obstacles)

    if "origin" not in data:
        raise InvalidPrecondition("map has no origin")
    origin = _cell(data["origin"], "origin")
    terminals = [Terminal.origin(*origin)]
    for i, p in enumerate(data.get("pois", [])):
        if not isinstance(p, dict):
            raise InvalidPrecondition(f"poi {i} must be an object with a \"cell\", got {p!r}")
        cell = _cell(p.get("cell"), f"poi {i}")
        try:
            size = int(p.get("size", 3))
        except (TypeError, ValueError):
            raise InvalidPrecondition(f"poi {i} size must be an integer, got {p.get('size')!r}")
        terminals.append(Terminal.poi(*cell, size=size, label=p.get("label")))

    for t in terminals:
        if not grid.in_bounds(t.cell):
            raise OutOfBoundsCell(t.cell, rows, cols)

    raw_cfg = data.get("config", {})
    if not isinstance(raw_cfg, dict):
        raise InvalidPrecondition(f"map config must be an object, got {raw_cfg!r}")
    unknown = set(raw_cfg) - _CONFIG_KEYS
    if unknown:
        logger.warning(f"Ignoring unknown config keys in map {name}: {sorted(unknown)}")
    config = SynthesisConfig(**{k: v for k, v in raw_cfg.items() if k in _CONFIG_KEYS})
    config.validate()

    return MapSpec(grid, terminals, config, name)


def load_map(path: Union[str, Path]) -> MapSpec:
    path = Path(path)
    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidPrecondition(f"{path}: not valid JSON ({e})")
    spec = map_from_dict(data, name=path.stem)
    logger.debug(f"Loaded map {spec.name}: {spec.grid.rows}x{spec.grid.cols}, "
                 f"{len(spec.terminals) - 1} POI(s)")
    return spec
