from __future__ import annotations

import math
from typing import Tuple

import numpy as np

# projection of the six lattice directions (R = 0 deg, spaced 60 deg apart)
COS60 = math.cos(math.pi / 3.0)
SIN60 = math.sin(math.pi / 3.0)

HORIZONTAL_WEIGHTS = np.array([1.0, COS60, -COS60, -1.0, -COS60, COS60])
VERTICAL_WEIGHTS = np.array([0.0, SIN60, SIN60, 0.0, -SIN60, -SIN60])


def _velocity(state) -> np.ndarray:
    """Accept a Universe or an (N, 6) occupation array."""
    velocity = getattr(state, "velocity", state)
    velocity = np.asarray(velocity)
    if velocity.ndim != 2 or velocity.shape[1] != 6:
        raise ValueError(f"expected an (N, 6) velocity array, got {velocity.shape}")
    return velocity


def total_velocity(state) -> np.ndarray:
    """Particle count per cell (0-6)."""
    return _velocity(state).sum(axis=1, dtype=np.int64)


def velocity_horizontal(state) -> np.ndarray:
    return _velocity(state).astype(np.float64) @ HORIZONTAL_WEIGHTS


def velocity_vertical(state) -> np.ndarray:
    return _velocity(state).astype(np.float64) @ VERTICAL_WEIGHTS


def total_mass(state) -> int:
    return int(total_velocity(state).sum())


def total_momentum(state) -> Tuple[float, float]:
    return (
        float(velocity_horizontal(state).sum()),
        float(velocity_vertical(state).sum()),
    )


def cell_centers(rows: int, cols: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Cartesian centre of every cell, in units of the lattice spacing.

    Odd rows are shifted right by half a cell; rows are ``sqrt(3)/2`` apart
    and row 0 is at the top (y = 0, decreasing downwards).
    """
    r, c = np.divmod(np.arange(rows * cols), cols)
    x = c + 0.5 * (r % 2)
    y = -r * SIN60
    return x.astype(np.float64), y.astype(np.float64)


__all__ = [
    "cell_centers",
    "total_mass",
    "total_momentum",
    "total_velocity",
    "velocity_horizontal",
    "velocity_vertical",
]
