# src/netsim/app/options.py
#!/usr/bin/env python3
"""
Launcher options.

- ENV: NETSIM_MAP, NETSIM_TRIALS, NETSIM_NOISE, NETSIM_INFLUENCE,
       NETSIM_DIAGONALS, NETSIM_SHOW_TRIALS, NETSIM_WORKERS,
       NETSIM_LOG_LEVEL, NETSIM_LOG_FILE
- CLI: --map=PATH --trials=N --noise=F --influence=F --workers=N
       --diagonals --no-trials --headless --log-level=NAME --log-file=PATH

CLI wins over ENV; both win over the map file's own "config" block.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence

from netsim.core.errors import InvalidPrecondition
from netsim.core.types import SynthesisConfig

REPO_ROOT = Path(__file__).resolve().parents[3]
MAP_DIR = REPO_ROOT / "maps"
MAP_FILES = {
    "01_open_field":   MAP_DIR / "01_open_field.json",
    "02_river_gap":    MAP_DIR / "02_river_gap.json",
    "03_walled_garden": MAP_DIR / "03_walled_garden.json",
}
DEFAULT_MAP = "01_open_field"

_ENV_KEYS = {
    "NETSIM_MAP": "map",
    "NETSIM_TRIALS": "trials",
    "NETSIM_NOISE": "noise",
    "NETSIM_INFLUENCE": "influence",
    "NETSIM_DIAGONALS": "diagonals",
    "NETSIM_SHOW_TRIALS": "show_trials",
    "NETSIM_WORKERS": "workers",
    "NETSIM_LOG_LEVEL": "log_level",
    "NETSIM_LOG_FILE": "log_file",
}
_FLAGS = {
    "--diagonals": ("diagonals", "1"),
    "--no-trials": ("show_trials", "0"),
    "--headless": ("headless", "1"),
}
_TRUE = ("1", "true", "yes", "on")


@dataclass
class LaunchOptions:
    map_path: Path = MAP_FILES[DEFAULT_MAP]
    headless: bool = False
    log_level: int = logging.INFO
    log_file: Optional[str] = None
    overrides: Dict[str, object] = field(default_factory=dict)

    def apply(self, config: SynthesisConfig) -> SynthesisConfig:
        """Layer the ENV/CLI overrides on top of a map's config."""
        merged = replace(config, **self.overrides)
        merged.validate()
        return merged


def _parse_number(key: str, raw: str, kind):
    try:
        return kind(raw)
    except ValueError:
        raise InvalidPrecondition(f"option {key} expects a {kind.__name__}, got {raw!r}")


def resolve_options(argv: Sequence[str], environ: Mapping[str, str] = os.environ) -> LaunchOptions:
    raw: Dict[str, str] = {}
    for env_key, key in _ENV_KEYS.items():
        if env_key in environ:
            raw[key] = environ[env_key]
    for arg in argv:
        if arg in _FLAGS:
            key, value = _FLAGS[arg]
            raw[key] = value
        elif arg.startswith("--") and "=" in arg:
            key, value = arg[2:].split("=", 1)
            raw[key.replace("-", "_")] = value

    opts = LaunchOptions()
    if "map" in raw:
        m = raw["map"]
        opts.map_path = MAP_FILES[m] if m in MAP_FILES else Path(m)
    opts.headless = raw.get("headless", "0").lower() in _TRUE
    if "log_level" in raw:
        level = logging.getLevelName(raw["log_level"].upper())
        if not isinstance(level, int):
            raise InvalidPrecondition(f"unknown log level {raw['log_level']!r}")
        opts.log_level = level
    opts.log_file = raw.get("log_file")

    if "trials" in raw:
        opts.overrides["trial_count"] = _parse_number("trials", raw["trials"], int)
    if "noise" in raw:
        opts.overrides["noise_scale"] = _parse_number("noise", raw["noise"], float)
    if "influence" in raw:
        opts.overrides["trial_influence"] = _parse_number("influence", raw["influence"], float)
    if "workers" in raw:
        opts.overrides["workers"] = _parse_number("workers", raw["workers"], int)
    if "diagonals" in raw:
        opts.overrides["allow_diagonals"] = raw["diagonals"].lower() in _TRUE
    if "show_trials" in raw:
        opts.overrides["show_trials"] = raw["show_trials"].lower() in _TRUE
    return opts
