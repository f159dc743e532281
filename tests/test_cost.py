from math import isclose

from netsim.core.cost import SQRT2, CostModel, path_cost, poi_factor, pseudo_hash
from netsim.core.types import Terminal


def test_pseudo_hash_range_and_determinism():
    values = [pseudo_hash(r, c, s) for r in range(0, 40, 3) for c in range(0, 60, 7) for s in (1, 2, 19, 20)]
    assert all(0.0 <= v < 0.5 for v in values)
    assert pseudo_hash(3, 4, 5) == pseudo_hash(3, 4, 5)
    # different seeds should not all collapse to the same noise field
    assert len({round(pseudo_hash(7, 11, s), 9) for s in range(1, 21)}) > 10


def test_base_costs():
    model = CostModel()
    assert model.step_cost((0, 0), (0, 1)) == 1.0
    assert isclose(model.step_cost((0, 0), (1, 1)), SQRT2)


def test_poi_attraction_radius():
    poi = Terminal.poi(5, 5, size=3)           # radius 9, factor 0.84
    assert isclose(poi_factor(poi, (5, 5)), 0.84)
    assert isclose(poi_factor(poi, (0, 1)), 0.84)   # distance 9
    assert poi_factor(poi, (0, 0)) == 1.0            # distance 10
    small = Terminal.poi(0, 0, size=1)          # radius 3
    assert poi_factor(small, (1, 2)) < 1.0
    assert poi_factor(small, (2, 2)) == 1.0


def test_poi_discount_is_capped():
    big = Terminal.poi(0, 0, size=40)
    assert isclose(poi_factor(big, (0, 1)), 0.55)


def test_pois_compound():
    a = Terminal.poi(0, 0, size=3)
    b = Terminal.poi(0, 2, size=3)
    model = CostModel(pois=(a, b))
    assert isclose(model.step_cost((0, 0), (0, 1)), 0.84 * 0.84)


def test_for_terminals_skips_origin():
    model = CostModel.for_terminals([Terminal.origin(0, 0), Terminal.poi(3, 3)])
    assert [p.cell for p in model.pois] == [(3, 3)]


def test_noise_only_with_seed():
    plain = CostModel(noise_scale=1.0)
    noisy = CostModel(seed=4, noise_scale=1.0)
    assert plain.step_cost((0, 0), (0, 1)) == 1.0
    expected = 1.0 + pseudo_hash(0, 1, 4)
    assert isclose(noisy.step_cost((0, 0), (0, 1)), expected)
    assert CostModel(seed=4, noise_scale=0.0).step_cost((0, 0), (0, 1)) == 1.0


def test_heat_bias_never_increases_and_floors_at_half():
    heat = [[0.0, 0.5, 1.0]]
    base = CostModel()
    for influence in (0.0, 0.25, 0.5, 1.0):
        biased = CostModel(heat=heat, influence=influence)
        for c in range(3):
            b = biased.step_cost((0, 0), (0, c))
            assert b <= base.step_cost((0, 0), (0, c))
            assert b >= 0.5 * base.step_cost((0, 0), (0, c))
    assert isclose(CostModel(heat=heat, influence=1.0).step_cost((0, 1), (0, 2)), 0.5)


def test_path_cost():
    model = CostModel()
    assert path_cost([(0, 0), (0, 1), (1, 2)], model) == 1.0 + SQRT2
    assert path_cost([(0, 0)], model) == 0.0
