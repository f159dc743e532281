# src/netsim/core/stitch.py
#!/usr/bin/env python3
from typing import List, Set, Tuple

from netsim.core.matrix import DistanceMatrix
from netsim.core.mst import SpanningTree
from netsim.core.types import Cell, Network


def stitch_network(tree: SpanningTree, matrix: DistanceMatrix) -> Network:
    """Union the retained path of every tree edge into one network."""
    paths: List[Tuple[Cell, ...]] = []
    cells: Set[Cell] = set()
    for a, b in tree.edges:
        path = matrix.path_between(a, b)
        if path is None:
            # a finite tree edge always has a retained path
            raise KeyError(f"no retained path for edge ({a}, {b})")
        paths.append(tuple(path))
        cells.update(path)
    return Network(
        paths=tuple(paths),
        cells=frozenset(cells),
        edges=tuple(tree.edges),
        excluded=tuple(tree.excluded),
    )
