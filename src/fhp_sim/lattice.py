"""
Hexagonal lattice topology and the per-cell state arena.

The grid uses an offset (brick-wall) layout: even rows are flush, odd rows
are shifted right by half a cell.

    00  01  02  03
      04  05  06  07
    08  09  10  11
      12  13  14  15

Cells live in flat arrays indexed by ``id = row * cols + col``; neighbours are
plain integer ids (``-1`` where the grid ends).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from . import observables, utils

NO_NEIGHBOR = -1
INFLOW_PATTERN = (1, 1, 0, 0, 0, 1)


class Direction(enum.IntEnum):
    R = 0
    TR = 1
    TL = 2
    L = 3
    BL = 4
    BR = 5

    def index(self) -> int:
        """Slot of this direction in a 6-element velocity vector."""
        return int(self.value)

    def opposite(self) -> "Direction":
        return _OPPOSITE[self]

    def __str__(self) -> str:
        return f"{self.name:>2}"


_OPPOSITE = {
    Direction.R: Direction.L,
    Direction.TR: Direction.BL,
    Direction.TL: Direction.BR,
    Direction.L: Direction.R,
    Direction.BL: Direction.TR,
    Direction.BR: Direction.TL,
}

Direction.VALUES = tuple(Direction)  # type: ignore[attr-defined]

# opposite slot per slot, for the compiled kernels
OPPOSITE_INDEX = np.array(
    [_OPPOSITE[d].index() for d in Direction], dtype=np.int64
)


class CellKind(enum.IntEnum):
    AIR = 0
    WALL = 1

    def __str__(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class Cell:
    """Read-only view of one cell of a Universe snapshot."""

    id: int
    kind: CellKind
    adjacency: Dict[Direction, int]
    fixed_inflow: Optional[Tuple[int, ...]]
    velocity: Tuple[int, ...]
    row: int
    col: int

    def total_velocity(self) -> int:
        return sum(self.velocity)

    def velocity_horizontal(self) -> float:
        return float(observables.velocity_horizontal(np.asarray([self.velocity]))[0])

    def velocity_vertical(self) -> float:
        return float(observables.velocity_vertical(np.asarray([self.velocity]))[0])

    def __str__(self) -> str:
        return (
            f"Cell ID {self.id}\tCell Type {self.kind!s}\t"
            f"Particles {list(self.velocity)}"
        )


def _freeze(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Universe:
    """
    Immutable snapshot of the automaton.

    Topology arrays (``kind``, ``adjacency``, ``inflow``, ``has_inflow``) are
    shared between successive snapshots; only ``velocity`` is replaced by a
    step.
    """

    rows: int
    cols: int
    kind: np.ndarray  # (N,) uint8, CellKind values
    adjacency: np.ndarray  # (N, 6) int64, NO_NEIGHBOR where missing
    inflow: np.ndarray  # (N, 6) uint8
    has_inflow: np.ndarray  # (N,) bool
    velocity: np.ndarray  # (N, 6) uint8

    def __post_init__(self) -> None:
        # writeable inputs still belong to the caller; keep a frozen copy
        for name in ("kind", "adjacency", "inflow", "has_inflow", "velocity"):
            arr = getattr(self, name)
            if arr.flags.writeable:
                object.__setattr__(self, name, _freeze(arr.copy()))

    @property
    def n_cells(self) -> int:
        return self.rows * self.cols

    # ------------------------------------------------------------------ views
    def cell(self, cell_id: int) -> Cell:
        if not 0 <= cell_id < self.n_cells:
            raise IndexError(f"cell id {cell_id} outside [0, {self.n_cells})")
        row, col = divmod(cell_id, self.cols)
        adjacency = {
            d: int(self.adjacency[cell_id, d.index()])
            for d in Direction
            if self.adjacency[cell_id, d.index()] != NO_NEIGHBOR
        }
        fixed = (
            tuple(int(v) for v in self.inflow[cell_id])
            if self.has_inflow[cell_id]
            else None
        )
        return Cell(
            id=cell_id,
            kind=CellKind(int(self.kind[cell_id])),
            adjacency=adjacency,
            fixed_inflow=fixed,
            velocity=tuple(int(v) for v in self.velocity[cell_id]),
            row=row,
            col=col,
        )

    @property
    def cells(self) -> List[Cell]:
        return [self.cell(i) for i in range(self.n_cells)]

    def with_velocity(self, velocity: np.ndarray) -> "Universe":
        """New snapshot with the same topology and a replaced velocity array."""
        velocity = np.array(velocity, dtype=np.uint8, copy=True)
        if velocity.shape != (self.n_cells, 6):
            raise ValueError(
                f"velocity must have shape ({self.n_cells}, 6), got {velocity.shape}"
            )
        return Universe(
            rows=self.rows,
            cols=self.cols,
            kind=self.kind,
            adjacency=self.adjacency,
            inflow=self.inflow,
            has_inflow=self.has_inflow,
            velocity=_freeze(velocity),
        )

    def check_topology(self) -> None:
        """Fail loudly on an internally inconsistent universe."""
        n = self.n_cells
        assert self.kind.shape == (n,), f"kind shape {self.kind.shape} != ({n},)"
        assert self.adjacency.shape == (n, 6), f"adjacency shape {self.adjacency.shape}"
        assert self.velocity.shape == (n, 6), f"velocity shape {self.velocity.shape}"
        assert self.inflow.shape == (n, 6), f"inflow shape {self.inflow.shape}"
        present = self.adjacency[self.adjacency != NO_NEIGHBOR]
        assert present.size == 0 or (present.min() >= 0 and present.max() < n), (
            "adjacency entry outside [0, rows*cols)"
        )

    def __str__(self) -> str:
        counts = self.velocity.sum(axis=1)
        lines = []
        for r in range(self.rows):
            row = "".join(
                f"{int(counts[r * self.cols + c]):<4}" for c in range(self.cols)
            )
            spacer = "" if r % 2 == 0 else "  "
            lines.append(f"{spacer}{row}")
        return "\n".join(lines)


###############################################################################
# Builder
###############################################################################


def _adjacency_row(r: int, c: int, rows: int, cols: int) -> np.ndarray:
    idx = r * cols + c
    last_col = cols - 1
    last_row = rows - 1
    adj = np.full(6, NO_NEIGHBOR, dtype=np.int64)

    if c != last_col:
        adj[Direction.R] = idx + 1
    if c != 0:
        adj[Direction.L] = idx - 1
    if r != last_row:
        if r % 2 == 0:
            adj[Direction.BR] = idx + cols
            if c != 0:
                adj[Direction.BL] = idx + cols - 1
        else:
            adj[Direction.BL] = idx + cols
            if c != last_col:
                adj[Direction.BR] = idx + cols + 1
    if r != 0:
        if r % 2 == 0:
            adj[Direction.TR] = idx - cols
            if c != 0:
                adj[Direction.TL] = idx - (cols + 1)
        else:
            adj[Direction.TL] = idx - cols
            if c != last_col:
                adj[Direction.TR] = idx - (cols - 1)
    return adj


def build_universe(
    rows: int, cols: int, rng: Optional[np.random.Generator] = None
) -> Universe:
    """
    Build the hexagonal channel: walls on the first and last row, an inlet
    on the first column of every air row, random occupation elsewhere.
    """
    for name, value in (("rows", rows), ("cols", cols)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise ValueError(f"{name} must be an integer, got {value!r}")
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")
    rows, cols = int(rows), int(cols)
    rng = rng if rng is not None else utils.make_rng()

    n = rows * cols
    kind = np.full(n, CellKind.WALL, dtype=np.uint8)
    adjacency = np.empty((n, 6), dtype=np.int64)
    inflow = np.zeros((n, 6), dtype=np.uint8)
    has_inflow = np.zeros(n, dtype=bool)
    velocity = np.zeros((n, 6), dtype=np.uint8)

    for r in range(rows):
        walls = r == 0 or r == rows - 1
        for c in range(cols):
            idx = r * cols + c
            adjacency[idx] = _adjacency_row(r, c, rows, cols)
            if walls:
                continue
            kind[idx] = CellKind.AIR
            if c == 0:
                inflow[idx] = INFLOW_PATTERN
                has_inflow[idx] = True

    # one Bernoulli(0.5) draw per direction of every unconstrained air cell
    free = (kind == CellKind.AIR) & ~has_inflow
    velocity[free] = rng.integers(0, 2, size=(int(free.sum()), 6), dtype=np.uint8)
    velocity[has_inflow] = inflow[has_inflow]

    universe = Universe(
        rows=rows,
        cols=cols,
        kind=kind,
        adjacency=adjacency,
        inflow=inflow,
        has_inflow=has_inflow,
        velocity=velocity,
    )
    universe.check_topology()
    return universe


__all__ = [
    "Cell",
    "CellKind",
    "Direction",
    "NO_NEIGHBOR",
    "INFLOW_PATTERN",
    "OPPOSITE_INDEX",
    "Universe",
    "build_universe",
]
