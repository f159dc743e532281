"""
netsim - connect an origin to points of interest across an obstacle grid.

Main API:
    - synthesize: trial runs, heat map, final heat-biased network
    - find_path: A* between two cells
    - load_map: read a JSON map (grid, terminals, config)
"""

from netsim.core.astar import find_path
from netsim.core.errors import InvalidPrecondition, NetworkError, OutOfBoundsCell
from netsim.core.maps import load_map
from netsim.core.trials import synthesize
from netsim.core.types import (
    Grid, Network, SynthesisConfig, SynthesisResult, Terminal, UnreachableTerminal,
)

__all__ = [
    'synthesize',
    'find_path',
    'load_map',
    'Grid',
    'Network',
    'SynthesisConfig',
    'SynthesisResult',
    'Terminal',
    'UnreachableTerminal',
    'NetworkError',
    'InvalidPrecondition',
    'OutOfBoundsCell',
]
