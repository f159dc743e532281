# src/netsim/core/mst.py
#!/usr/bin/env python3
"""
Prim's minimum spanning tree over terminals, seeded at index 0 (the origin).

Edge weights come from the distance matrix. When the cheapest remaining
candidate is infinite the rest of the terminals cannot be reached from the
tree; they are listed in `excluded` instead of being dropped.
"""

from dataclasses import dataclass, field
from math import inf
from typing import List, Sequence, Tuple


@dataclass
class SpanningTree:
    edges: List[Tuple[int, int]] = field(default_factory=list)   # (parent, child)
    excluded: List[int] = field(default_factory=list)


def prim_mst(dist: Sequence[Sequence[float]]) -> SpanningTree:
    n = len(dist)
    tree = SpanningTree()
    if n == 0:
        return tree

    in_tree = [False] * n
    min_edge = [inf] * n
    sel_edge = [-1] * n
    min_edge[0] = 0

    for _ in range(n):
        v = -1
        for i in range(n):
            if not in_tree[i] and (v == -1 or min_edge[i] < min_edge[v]):
                v = i
        if min_edge[v] == inf:
            break  # disconnected
        in_tree[v] = True
        if sel_edge[v] != -1:
            tree.edges.append((sel_edge[v], v))
        row = dist[v]
        for to in range(n):
            if not in_tree[to] and row[to] < min_edge[to]:
                min_edge[to] = row[to]
                sel_edge[to] = v

    tree.excluded = [i for i in range(n) if not in_tree[i]]
    return tree
