"""
Unit tests for the hexagonal grid topology builder.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from fhp_sim import utils
from fhp_sim.automaton import step, FixedChooser
from fhp_sim.lattice import (
    INFLOW_PATTERN,
    NO_NEIGHBOR,
    CellKind,
    Direction,
    Universe,
    build_universe,
)


def test_direction_opposite_is_involution():
    """Opposite pairs up the six directions."""
    for d in Direction.VALUES:
        assert d.opposite() != d
        assert d.opposite().opposite() == d
    assert Direction.R.opposite() == Direction.L
    assert Direction.TR.opposite() == Direction.BL
    assert Direction.TL.opposite() == Direction.BR


def test_direction_index_layout():
    assert [d.index() for d in Direction.VALUES] == [0, 1, 2, 3, 4, 5]
    assert [d.name for d in Direction.VALUES] == ["R", "TR", "TL", "L", "BL", "BR"]


@pytest.mark.parametrize("rows,cols", [(3, 3), (4, 5), (5, 4), (6, 7), (7, 6), (9, 3)])
def test_adjacency_is_symmetric(rows, cols):
    """If c -> n along d, then n -> c along opposite(d)."""
    universe = build_universe(rows, cols, rng=utils.make_rng(0))
    adj = universe.adjacency
    for c in range(universe.n_cells):
        for d in Direction.VALUES:
            n = adj[c, d.index()]
            if n == NO_NEIGHBOR:
                continue
            assert 0 <= n < universe.n_cells
            assert adj[n, d.opposite().index()] == c, f"cell {c} dir {d.name} -> {n}"


def test_adjacency_matches_offset_layout():
    """
    00  01  02  03
      04  05  06  07
    08  09  10  11
      12  13  14  15
    """
    universe = build_universe(4, 4, rng=utils.make_rng(0))

    assert universe.cell(0).adjacency == {Direction.R: 1, Direction.BR: 4}
    assert universe.cell(5).adjacency == {
        Direction.R: 6,
        Direction.L: 4,
        Direction.BL: 9,
        Direction.BR: 10,
        Direction.TL: 1,
        Direction.TR: 2,
    }
    assert universe.cell(10).adjacency == {
        Direction.R: 11,
        Direction.L: 9,
        Direction.BR: 14,
        Direction.BL: 13,
        Direction.TR: 6,
        Direction.TL: 5,
    }
    # odd row, last column: nothing to the right
    assert universe.cell(7).adjacency == {
        Direction.L: 6,
        Direction.BL: 11,
        Direction.TL: 3,
    }
    # even row, first column: nothing to the left
    assert universe.cell(8).adjacency == {
        Direction.R: 9,
        Direction.BR: 12,
        Direction.TR: 4,
    }


def test_cell_ids_and_coordinates():
    universe = build_universe(5, 7, rng=utils.make_rng(1))
    cells = universe.cells
    assert len(cells) == 35
    for i, cell in enumerate(cells):
        assert cell.id == i
        assert cell.row * 7 + cell.col == i


def test_walls_inflow_and_seeding():
    universe = build_universe(5, 4, rng=utils.make_rng(3))
    for cell in universe.cells:
        if cell.row in (0, 4):
            assert cell.kind == CellKind.WALL
            assert cell.velocity == (0, 0, 0, 0, 0, 0)
            assert cell.fixed_inflow is None
        else:
            assert cell.kind == CellKind.AIR
            if cell.col == 0:
                assert cell.fixed_inflow == INFLOW_PATTERN
                assert cell.velocity == INFLOW_PATTERN
            else:
                assert cell.fixed_inflow is None
                assert set(cell.velocity) <= {0, 1}


def test_seeding_is_reproducible():
    a = build_universe(8, 8, rng=utils.make_rng(42))
    b = build_universe(8, 8, rng=utils.make_rng(42))
    c = build_universe(8, 8, rng=utils.make_rng(43))
    np.testing.assert_array_equal(a.velocity, b.velocity)
    assert not np.array_equal(a.velocity, c.velocity)


def test_seeding_is_roughly_fair():
    universe = build_universe(40, 80, rng=utils.make_rng(0))
    free = (universe.kind == CellKind.AIR) & ~universe.has_inflow
    assert 0.45 < universe.velocity[free].mean() < 0.55


@pytest.mark.parametrize("rows,cols", [(0, 3), (3, 0), (-1, 4), (2.5, 3), (True, 3)])
def test_invalid_dimensions(rows, cols):
    with pytest.raises(ValueError):
        build_universe(rows, cols)


@pytest.mark.parametrize("rows", [1, 2])
def test_thin_grids_are_all_wall(rows):
    universe = build_universe(rows, 3, rng=utils.make_rng(0))
    assert np.all(universe.kind == CellKind.WALL)
    assert not universe.velocity.any()


def test_snapshot_arrays_are_read_only():
    universe = build_universe(4, 4, rng=utils.make_rng(0))
    with pytest.raises(ValueError):
        universe.velocity[5, 0] = 1
    with pytest.raises(ValueError):
        universe.adjacency[5, 0] = 0


def test_with_velocity_shares_topology():
    universe = build_universe(4, 4, rng=utils.make_rng(0))
    replaced = universe.with_velocity(np.zeros((16, 6), dtype=np.uint8))
    assert replaced.adjacency is universe.adjacency
    assert replaced.kind is universe.kind
    assert not replaced.velocity.any()
    with pytest.raises(ValueError):
        universe.with_velocity(np.zeros((15, 6), dtype=np.uint8))


def test_universe_leaves_caller_arrays_writeable():
    universe = build_universe(3, 3, rng=utils.make_rng(0))
    velocity = np.array(universe.velocity)
    adjacency = universe.adjacency.copy()
    snapshot = Universe(
        rows=3,
        cols=3,
        kind=universe.kind,
        adjacency=adjacency,
        inflow=universe.inflow,
        has_inflow=universe.has_inflow,
        velocity=velocity,
    )
    assert velocity.flags.writeable and adjacency.flags.writeable
    assert not snapshot.velocity.flags.writeable
    velocity[4] = 1
    assert snapshot.velocity[4].tolist() == list(universe.velocity[4])
    assert snapshot.kind is universe.kind


def test_inconsistent_topology_is_rejected():
    universe = build_universe(3, 3, rng=utils.make_rng(0))
    adjacency = universe.adjacency.copy()
    adjacency[4, Direction.R] = 99
    broken = Universe(
        rows=3,
        cols=3,
        kind=universe.kind,
        adjacency=adjacency,
        inflow=universe.inflow,
        has_inflow=universe.has_inflow,
        velocity=universe.velocity,
    )
    with pytest.raises(AssertionError):
        broken.check_topology()
    with pytest.raises(AssertionError):
        step(broken, FixedChooser(0))


def test_text_rendering():
    universe = build_universe(3, 3, rng=utils.make_rng(0))
    universe = universe.with_velocity(np.zeros((9, 6), dtype=np.uint8))
    lines = str(universe).split("\n")
    assert len(lines) == 3
    assert lines[0].startswith("0")
    assert lines[1].startswith("  0")

    cell = universe.cell(4)
    assert str(cell).startswith("Cell ID 4\tCell Type Air")
