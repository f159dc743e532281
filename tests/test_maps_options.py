import json
import logging

import pytest

from netsim.app.launcher import main
from netsim.app.options import MAP_FILES, LaunchOptions, resolve_options
from netsim.core.errors import InvalidPrecondition, OutOfBoundsCell
from netsim.core.maps import load_map, map_from_dict
from netsim.core.trials import synthesize
from netsim.core.types import SynthesisConfig


@pytest.mark.parametrize("key", sorted(MAP_FILES))
def test_bundled_maps_load(key):
    spec = load_map(MAP_FILES[key])
    assert spec.name == key
    assert spec.terminals[0].is_origin
    assert len(spec.terminals) >= 2
    for t in spec.terminals:
        assert spec.grid.is_passable(t.cell)


def test_river_map_fords():
    spec = load_map(MAP_FILES["02_river_gap"])
    assert spec.grid.is_passable((15, 8)) and spec.grid.is_passable((15, 31))
    assert not spec.grid.is_passable((15, 0))
    assert spec.config.allow_diagonals


def test_walled_garden_vault_is_unreachable():
    spec = load_map(MAP_FILES["03_walled_garden"])
    result = synthesize(spec.grid, spec.terminals, SynthesisConfig(trial_count=2))
    assert [u.terminal.label for u in result.excluded] == ["sealed vault"]
    assert (10, 20) in result.final_network.cells
    assert (10, 26) in result.final_network.cells


def test_map_from_dict_basic():
    spec = map_from_dict({
        "rows": 4, "cols": 5,
        "cells": [[0] * 5, [0, 1, 1, 1, 0], [0] * 5, [0] * 5],
        "obstacles": [[3, 2]],
        "origin": [0, 0],
        "pois": [{"cell": [3, 4], "size": 2, "label": "x"}],
        "config": {"trial_count": 3},
    })
    assert not spec.grid.is_passable((1, 2))
    assert not spec.grid.is_passable((3, 2))
    assert spec.terminals[1].size == 2 and spec.terminals[1].label == "x"
    assert spec.config.trial_count == 3


def test_map_from_dict_errors():
    with pytest.raises(InvalidPrecondition):
        map_from_dict({"rows": 3, "cols": 3, "pois": []})
    with pytest.raises(InvalidPrecondition):
        map_from_dict({"cols": 3, "origin": [0, 0]})
    with pytest.raises(OutOfBoundsCell):
        map_from_dict({"rows": 3, "cols": 3, "origin": [0, 0], "pois": [{"cell": [3, 3]}]})
    with pytest.raises(InvalidPrecondition):
        map_from_dict({"rows": 3, "cols": 3, "origin": [0, 0], "config": {"noise_scale": 3}})
    with pytest.raises(InvalidPrecondition):
        map_from_dict({"rows": 3, "cols": 3, "origin": "corner"})
    with pytest.raises(InvalidPrecondition):
        map_from_dict({"rows": 3, "cols": 3, "origin": [0, 0], "pois": [[2, 2]]})
    with pytest.raises(InvalidPrecondition):
        map_from_dict({"rows": 3, "cols": 3, "origin": [0, 0], "pois": [{"cell": [2, 2], "size": "big"}]})
    with pytest.raises(InvalidPrecondition):
        map_from_dict({"rows": 3, "cols": 3, "origin": [0, 0], "pois": [{"cell": [2, 2]}], "config": [1]})
    with pytest.raises(InvalidPrecondition):
        map_from_dict([0, 0])


def test_unknown_config_keys_are_logged(caplog):
    caplog.set_level(logging.WARNING, logger="netsim")
    spec = map_from_dict({"rows": 3, "cols": 3, "origin": [0, 0],
                          "pois": [{"cell": [2, 2]}], "config": {"zoom": 2}})
    assert spec.config == SynthesisConfig()
    assert "zoom" in caplog.text


def test_resolve_options_defaults():
    opts = resolve_options([], environ={})
    assert opts.map_path == LaunchOptions().map_path
    assert not opts.headless
    assert opts.overrides == {}
    assert opts.log_level == logging.INFO


def test_cli_overrides_env():
    env = {"NETSIM_TRIALS": "3", "NETSIM_NOISE": "0.2", "NETSIM_LOG_LEVEL": "debug"}
    opts = resolve_options(["--trials=9", "--diagonals", "--no-trials", "--headless",
                            "--map=02_river_gap", "--workers=2"], environ=env)
    assert opts.overrides == {
        "trial_count": 9, "noise_scale": 0.2, "workers": 2,
        "allow_diagonals": True, "show_trials": False,
    }
    assert opts.headless
    assert opts.map_path == MAP_FILES["02_river_gap"]
    assert opts.log_level == logging.DEBUG


def test_options_apply_over_map_config():
    opts = resolve_options(["--influence=0.9"], environ={})
    merged = opts.apply(SynthesisConfig(trial_count=4))
    assert merged.trial_count == 4 and merged.trial_influence == 0.9


def test_bad_option_values():
    with pytest.raises(InvalidPrecondition):
        resolve_options(["--trials=many"], environ={})
    with pytest.raises(InvalidPrecondition):
        resolve_options(["--log-level=chatty"], environ={})
    opts = resolve_options(["--influence=4"], environ={})
    with pytest.raises(InvalidPrecondition):
        opts.apply(SynthesisConfig())


def test_headless_launcher_prints_network(capsys):
    code = main(["--headless", "--map=03_walled_garden", "--trials=2", "--log-level=warning"])
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["map"] == "03_walled_garden"
    assert out["trials"] == 2
    assert [e["label"] for e in out["excluded"]] == ["sealed vault"]
    assert out["final_network"]["paths"]


def test_headless_launcher_missing_map(capsys, tmp_path):
    code = main(["--headless", f"--map={tmp_path / 'nope.json'}"])
    assert code == 1
    assert "netsim:" in capsys.readouterr().err


def test_load_map_rejects_broken_json(tmp_path):
    bad = tmp_path / "broken.json"
    bad.write_text("{not json")
    with pytest.raises(InvalidPrecondition):
        load_map(bad)


@pytest.mark.parametrize("content", [
    "{not json",
    '{"rows": 3, "cols": 3, "origin": [0, 0], "pois": [[2, 2]]}',
])
def test_headless_launcher_malformed_map(capsys, tmp_path, content):
    bad = tmp_path / "bad.json"
    bad.write_text(content)
    code = main(["--headless", f"--map={bad}"])
    assert code == 1
    assert "netsim:" in capsys.readouterr().err
