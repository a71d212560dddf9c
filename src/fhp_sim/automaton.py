"""
FHP lattice-gas update rule.

A step is two phases applied to every air cell of the previous snapshot:

1.  **Streaming:** each cell pulls, for every direction ``d``, the particle its
    neighbour in ``d`` emitted towards it (the neighbour's bit in
    ``opposite(d)``). A wall neighbour reflects the cell's own outgoing bit
    (bounce-back); a missing neighbour contributes nothing.
2.  **Collision:** the gathered 6-bit pattern is looked up in
    ``COLLISION_TABLE``; listed patterns scatter into one of their
    alternatives, everything else passes through.

Inflow cells skip both phases and re-assert their pinned vector; walls are
copied unchanged. The compiled kernel reads only the previous snapshot and
writes each cell's result into its own row of a fresh array, so cells can be
evaluated in any order and the output stays indexed by id.
"""

from __future__ import annotations

from typing import Iterator, Sequence, Tuple

import numpy as np
from numba import njit, prange

from .lattice import NO_NEIGHBOR, OPPOSITE_INDEX, CellKind, Universe

WALL = int(CellKind.WALL)

Pattern = Tuple[int, int, int, int, int, int]

###############################################################################
# Collision table
###############################################################################

# [R, TR, TL, L, BL, BR] -> admissible post-collision patterns
COLLISION_TABLE: dict[Pattern, Tuple[Pattern, ...]] = {
    # head-on pairs rotate by +-60 degrees
    (0, 0, 1, 0, 0, 1): ((0, 1, 0, 0, 1, 0), (1, 0, 0, 1, 0, 0)),
    (0, 1, 0, 0, 1, 0): ((0, 0, 1, 0, 0, 1), (1, 0, 0, 1, 0, 0)),
    (1, 0, 0, 1, 0, 0): ((0, 0, 1, 0, 0, 1), (0, 1, 0, 0, 1, 0)),
    # symmetric triples swap sublattice
    (0, 1, 0, 1, 0, 1): ((1, 0, 1, 0, 1, 0),),
    (1, 0, 1, 0, 1, 0): ((0, 1, 0, 1, 0, 1),),
    # four particles: the two holes form a head-on pair
    (0, 1, 1, 0, 1, 1): ((1, 0, 1, 1, 0, 1), (1, 1, 0, 1, 1, 0)),
    (1, 0, 1, 1, 0, 1): ((0, 1, 1, 0, 1, 1), (1, 1, 0, 1, 1, 0)),
    (1, 1, 0, 1, 1, 0): ((0, 1, 1, 0, 1, 1), (1, 0, 1, 1, 0, 1)),
}

N_OPTIONS = 2


def pattern_code(pattern: Sequence[int]) -> int:
    """Pack a 6-slot occupation vector into an int (slot i -> bit i)."""
    if len(pattern) != 6:
        raise ValueError(f"pattern must have 6 entries, got {len(pattern)}")
    code = 0
    for i, bit in enumerate(pattern):
        if bit not in (0, 1):
            raise ValueError(f"pattern entries must be 0 or 1, got {list(pattern)}")
        code |= int(bit) << i
    return code


def code_pattern(code: int) -> Pattern:
    return tuple((code >> i) & 1 for i in range(6))  # type: ignore[return-value]


def _build_scatter_lookup() -> np.ndarray:
    lookup = np.empty((64, N_OPTIONS), dtype=np.uint8)
    for code in range(64):
        lookup[code, :] = code
    for pattern, outcomes in COLLISION_TABLE.items():
        code = pattern_code(pattern)
        for k in range(N_OPTIONS):
            lookup[code, k] = pattern_code(outcomes[k % len(outcomes)])
    return lookup


# (64, 2): post-collision code for every pre-collision code and choice
SCATTER_LOOKUP = _build_scatter_lookup()

###############################################################################
# Random choice policies
###############################################################################


class RandomChooser:
    """Uniform choice among ``n_options`` outcomes, drawn from a Generator."""

    def __init__(self, rng: np.random.Generator) -> None:
        self.rng = rng

    def choose(self, size: int, n_options: int = N_OPTIONS) -> np.ndarray:
        return self.rng.integers(0, n_options, size=size, dtype=np.int64)


class FixedChooser:
    """Always picks the same alternative. Used to make steps reproducible."""

    def __init__(self, index: int = 0) -> None:
        self.index = index

    def choose(self, size: int, n_options: int = N_OPTIONS) -> np.ndarray:
        if not 0 <= self.index < n_options:
            raise ValueError(f"index {self.index} outside [0, {n_options})")
        return np.full(size, self.index, dtype=np.int64)


def _default_chooser(chooser):
    if chooser is None:
        from . import utils

        return RandomChooser(utils.make_rng())
    return chooser


###############################################################################
# Kernels
###############################################################################


@njit(cache=True)
def _stream_code(
    i: int,
    kind: np.ndarray,
    adjacency: np.ndarray,
    velocity: np.ndarray,
    opposite: np.ndarray,
) -> int:
    """Pre-collision code of air cell ``i`` gathered from the old snapshot."""
    code = 0
    for d in range(6):
        od = opposite[d]
        n = adjacency[i, d]
        if n == NO_NEIGHBOR:
            bit = 0
        elif kind[n] == WALL:
            bit = velocity[i, d]
        else:
            bit = velocity[n, od]
        if bit:
            code |= 1 << od
    return code


@njit(cache=True, parallel=True)
def _advance(
    kind: np.ndarray,
    adjacency: np.ndarray,
    inflow: np.ndarray,
    has_inflow: np.ndarray,
    velocity: np.ndarray,
    choices: np.ndarray,
    opposite: np.ndarray,
    lookup: np.ndarray,
) -> np.ndarray:
    n_cells = velocity.shape[0]
    out = np.empty((n_cells, 6), dtype=np.uint8)
    for i in prange(n_cells):
        if kind[i] == WALL:
            for d in range(6):
                out[i, d] = velocity[i, d]
        elif has_inflow[i]:
            for d in range(6):
                out[i, d] = inflow[i, d]
        else:
            code = lookup[_stream_code(i, kind, adjacency, velocity, opposite), choices[i]]
            for d in range(6):
                out[i, d] = (code >> d) & 1
    return out


###############################################################################
# Public API
###############################################################################


def collide(pattern: Sequence[int], chooser=None) -> Pattern:
    """Apply the collision phase alone to one pre-collision pattern."""
    code = pattern_code(pattern)
    choice = int(_default_chooser(chooser).choose(1, N_OPTIONS)[0])
    return code_pattern(int(SCATTER_LOOKUP[code, choice]))


def stream(universe: Universe, cell_id: int) -> Pattern:
    """
    Apply the streaming phase alone to one air cell without inflow, returning
    its pre-collision pattern.
    """
    if not 0 <= cell_id < universe.n_cells:
        raise IndexError(f"cell id {cell_id} outside [0, {universe.n_cells})")
    if universe.kind[cell_id] == CellKind.WALL:
        raise ValueError(f"cell {cell_id} is a wall; walls are not streamed")
    if universe.has_inflow[cell_id]:
        raise ValueError(f"cell {cell_id} has a fixed inflow; inflow cells are not streamed")
    code = _stream_code(
        cell_id, universe.kind, universe.adjacency, universe.velocity, OPPOSITE_INDEX
    )
    return code_pattern(int(code))


def step(universe: Universe, chooser=None) -> Universe:
    """
    Advance ``universe`` by one synchronous time step.

    ``chooser`` supplies the tie-breaking choices (one per cell); pass a
    ``FixedChooser`` for reproducible updates. The input snapshot is left
    untouched.
    """
    universe.check_topology()
    chooser = _default_chooser(chooser)
    choices = np.asarray(chooser.choose(universe.n_cells, N_OPTIONS), dtype=np.int64)
    if choices.shape != (universe.n_cells,):
        raise ValueError(
            f"chooser returned shape {choices.shape}, expected ({universe.n_cells},)"
        )
    if choices.size and (choices.min() < 0 or choices.max() >= N_OPTIONS):
        raise ValueError(f"chooser returned choices outside [0, {N_OPTIONS})")
    velocity = _advance(
        universe.kind,
        universe.adjacency,
        universe.inflow,
        universe.has_inflow,
        universe.velocity,
        choices,
        OPPOSITE_INDEX,
        SCATTER_LOOKUP,
    )
    return universe.with_velocity(velocity)


def run(universe: Universe, steps: int, chooser=None) -> Iterator[Universe]:
    """Yield ``steps`` successive snapshots following ``universe``."""
    chooser = _default_chooser(chooser)
    for _ in range(steps):
        universe = step(universe, chooser)
        yield universe


__all__ = [
    "COLLISION_TABLE",
    "FixedChooser",
    "RandomChooser",
    "SCATTER_LOOKUP",
    "code_pattern",
    "collide",
    "pattern_code",
    "run",
    "step",
    "stream",
]
