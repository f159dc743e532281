# src/netsim/core/errors.py
#!/usr/bin/env python3
"""
Error taxonomy for network synthesis.

- InvalidPrecondition: the call cannot start (no origin, no POIs, bad config).
- OutOfBoundsCell: a cell reference falls outside the grid.

An unreachable POI is not an exception; it is reported through
`UnreachableTerminal` records in `netsim.core.types`.
"""


class NetworkError(Exception):
    """Base class for every error raised by the engine."""


class InvalidPrecondition(NetworkError, ValueError):
    pass


class OutOfBoundsCell(NetworkError, IndexError):
    def __init__(self, cell, rows: int, cols: int):
        self.cell = tuple(cell)
        self.rows = rows
        self.cols = cols
        super().__init__(f"cell {self.cell} outside grid of {rows}x{cols}")
