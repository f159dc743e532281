from math import inf

import pytest

from netsim.core.cost import CostModel
from netsim.core.matrix import UNREACHABLE, build_distance_matrix
from netsim.core.mst import prim_mst
from netsim.core.stitch import stitch_network
from netsim.core.types import Terminal


def _acyclic(edges, n):
    parent = list(range(n))

    def find(x):
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    for a, b in edges:
        ra, rb = find(a), find(b)
        if ra == rb:
            return False
        parent[ra] = rb
    return True


@pytest.mark.parametrize("seed", [0, 5])
def test_matrix_is_symmetric(scattered_grid, seed):
    terminals = [Terminal.origin(0, 0), Terminal.poi(11, 11, 2), Terminal.poi(0, 11, 1), Terminal.poi(11, 0, 4)]
    model = CostModel.for_terminals(terminals, seed=seed, noise_scale=0.7)
    m = build_distance_matrix(scattered_grid, terminals, model)
    for i in range(m.size):
        assert m.dist[i][i] == 0
        for j in range(m.size):
            assert m.dist[i][j] == m.dist[j][i]
    for (i, j), path in m.paths.items():
        assert i < j
        assert len(path) == m.dist[i][j]
        assert m.path_between(j, i) is path


def test_matrix_marks_unreachable(enclosed_grid):
    terminals = [Terminal.origin(0, 0), Terminal.poi(9, 9, 2), Terminal.poi(5, 5, 2)]
    m = build_distance_matrix(enclosed_grid, terminals, CostModel())
    assert m.dist[0][2] == UNREACHABLE == m.dist[2][0]
    assert m.dist[1][2] == UNREACHABLE
    assert m.dist[0][1] == 19
    assert (0, 2) not in m.paths
    assert m.path_between(2, 0) is None


def test_prim_picks_cheapest_edges():
    dist = [[0, 1, 4],
            [1, 0, 2],
            [4, 2, 0]]
    tree = prim_mst(dist)
    assert tree.edges == [(0, 1), (1, 2)]
    assert tree.excluded == []


def test_prim_reports_disconnected():
    dist = [[0, inf, 3],
            [inf, 0, inf],
            [3, inf, 0]]
    tree = prim_mst(dist)
    assert tree.edges == [(0, 2)]
    assert tree.excluded == [1]


def test_prim_all_disconnected():
    tree = prim_mst([[0, inf], [inf, 0]])
    assert tree.edges == []
    assert tree.excluded == [1]


def test_prim_edge_count_matches_component():
    # two components: {0, 1, 3} and {2, 4}
    dist = [[0, 2, inf, 5, inf],
            [2, 0, inf, 1, inf],
            [inf, inf, 0, inf, 3],
            [5, 1, inf, 0, inf],
            [inf, inf, 3, inf, 0]]
    tree = prim_mst(dist)
    assert len(tree.edges) == 2
    assert _acyclic(tree.edges, 5)
    assert sorted(tree.excluded) == [2, 4]


def test_prim_complete_graph_edge_count():
    n = 6
    dist = [[abs(i - j) * 3 + (i * j) % 4 if i != j else 0 for j in range(n)] for i in range(n)]
    tree = prim_mst(dist)
    assert len(tree.edges) == n - 1
    assert _acyclic(tree.edges, n)


def test_stitch_unions_paths(open_grid):
    terminals = [Terminal.origin(0, 0), Terminal.poi(0, 9, 1), Terminal.poi(9, 0, 1)]
    m = build_distance_matrix(open_grid, terminals, CostModel.for_terminals(terminals))
    net = stitch_network(prim_mst(m.dist), m)
    assert len(net.paths) == 2
    assert net.cells == {c for p in net.paths for c in p}
    assert {(0, 0), (0, 9), (9, 0)} <= net.cells


def test_stitch_empty_when_all_disconnected(enclosed_grid):
    terminals = [Terminal.origin(0, 0), Terminal.poi(5, 5, 2)]
    m = build_distance_matrix(enclosed_grid, terminals, CostModel.for_terminals(terminals))
    net = stitch_network(prim_mst(m.dist), m)
    assert net.is_empty
    assert net.cells == frozenset()
    assert net.excluded == (1,)
