"""Tools for float arithmetic, terminal minesweeper, process monitoring, process control and cross-correlation."""

__version__ = "0.1.0"