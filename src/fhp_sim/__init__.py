"""
FHP Lattice-Gas Simulation Library

This package provides a hexagonal lattice-gas cellular automaton:
- lattice: offset hex grid topology, cell kinds and the Universe snapshot
- automaton: streaming + collision step with injectable tie-breaking
- observables: particle counts, velocity projections and cell geometry
- LatticeGasSimulator: run manager recording frames for rendering
"""

from .lattice import Cell, CellKind, Direction, Universe, build_universe
from .automaton import FixedChooser, RandomChooser, collide, step, stream
from .simulator import LatticeGasConfig, LatticeGasSimulator
from . import observables, utils

__all__ = [
    # Model
    "Cell",
    "CellKind",
    "Direction",
    "Universe",
    "build_universe",
    "step",
    "stream",
    "collide",
    # Tie-breaking policies
    "FixedChooser",
    "RandomChooser",
    # Simulator
    "LatticeGasConfig",
    "LatticeGasSimulator",
    # Utilities
    "observables",
    "utils",
]
