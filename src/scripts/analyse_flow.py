"""
Channel-flow analysis for recorded lattice-gas runs.

1. Conserved quantities over time - total particle count per frame.
2. Velocity profile - time-averaged horizontal velocity per row, compared with
   a parabolic (Poiseuille-like) profile u(y) = a + b * (y - y_c)^2.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
from matplotlib import pyplot as plt
from scipy.stats import linregress

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from fhp_sim import utils  # type: ignore[import]
from fhp_sim.lattice import CellKind  # type: ignore[import]


def particle_series(counts: np.ndarray) -> np.ndarray:
    """Total particle count of each recorded frame."""
    counts = np.asarray(counts)
    if counts.ndim != 2:
        raise ValueError(f"Expected counts of shape (T, N), got {counts.shape}")
    return counts.sum(axis=1)


def row_profile(
    frames: np.ndarray, rows: int, cols: int, kind: np.ndarray | None = None, skip: int = 0
) -> tuple[np.ndarray, np.ndarray]:
    """
    Time-averaged horizontal velocity of every air row.

    Args:
        frames: (T, N) horizontal velocity per recorded frame
        skip: number of leading frames discarded as transient

    Returns:
        Tuple of (row_indices, mean_velocity) for rows that contain air
    """
    frames = np.asarray(frames, dtype=np.float64)
    if frames.ndim != 2 or frames.shape[1] != rows * cols:
        raise ValueError(f"Expected frames of shape (T, {rows * cols}), got {frames.shape}")
    if skip >= frames.shape[0]:
        raise ValueError(f"skip={skip} leaves no frames out of {frames.shape[0]}")

    mean = frames[skip:].mean(axis=0).reshape(rows, cols)
    if kind is None:
        air_rows = np.arange(1, rows - 1)
    else:
        air = (np.asarray(kind) == CellKind.AIR).reshape(rows, cols)
        air_rows = np.flatnonzero(air.any(axis=1))
    return air_rows, mean[air_rows].mean(axis=1)


def fit_parabolic_profile(row_idx: np.ndarray, velocity: np.ndarray) -> tuple[float, float, float]:
    """
    Fit u = a + b * (y - y_c)^2 with y_c the channel centre.

    Returns:
        Tuple of (a, b, r_squared)
    """
    row_idx = np.asarray(row_idx, dtype=np.float64)
    if row_idx.size < 3:
        raise ValueError(f"Need at least 3 rows for a profile fit, got {row_idx.size}")
    y_c = 0.5 * (row_idx.min() + row_idx.max())
    x = (row_idx - y_c) ** 2
    fit = linregress(x, np.asarray(velocity, dtype=np.float64))
    return float(fit.intercept), float(fit.slope), float(fit.rvalue**2)


def main():
    parser = argparse.ArgumentParser(description="Analyse a recorded lattice-gas run")
    parser.add_argument("file", nargs="?", default="results/flow.npz", help="Path to .npz run file")
    parser.add_argument("--skip", type=int, default=50, help="transient frames to discard (default: 50)")
    parser.add_argument("--out", default=None, help="Output figure path (PNG)")
    args = parser.parse_args()

    if not Path(args.file).exists():
        raise FileNotFoundError(f"file not found: {args.file}")

    result = utils.load_run_result(args.file)
    meta = result.meta or {}
    rows, cols = int(meta["rows"]), int(meta["cols"])
    skip = min(args.skip, result.frames.shape[0] - 1)

    series = particle_series(result.counts)
    row_idx, profile = row_profile(result.frames, rows, cols, result.kind, skip=skip)
    a, b, r2 = fit_parabolic_profile(row_idx, profile)

    print(f"Frames: {result.frames.shape[0]} (skipped {skip})")
    print(f"Particles: first={series[0]}, last={series[-1]}")
    print(f"Profile fit: u = {a:.4f} + {b:.6f} * (y - y_c)^2, R^2 = {r2:.4f}")

    fig, axes = plt.subplots(1, 2, figsize=(11, 4))
    times = meta.get("times") or list(range(len(series)))
    axes[0].plot(times, series, lw=1.2)
    axes[0].set_xlabel("t")
    axes[0].set_ylabel("particles")
    axes[0].set_title("Total particle count")

    y_c = 0.5 * (row_idx.min() + row_idx.max())
    axes[1].plot(profile, row_idx, "o", ms=3, label="measured")
    axes[1].plot(a + b * (row_idx - y_c) ** 2, row_idx, "-", label=f"parabola, $R^2$={r2:.3f}")
    axes[1].invert_yaxis()
    axes[1].set_xlabel(r"$\langle u_x \rangle$")
    axes[1].set_ylabel("row")
    axes[1].set_title("Row-averaged horizontal velocity")
    axes[1].legend()

    out = args.out or str(Path(args.file).with_name(Path(args.file).stem + "_profile.png"))
    fig.tight_layout()
    fig.savefig(out, dpi=150)
    plt.close(fig)
    print(f"Saved figure to {out}")


if __name__ == "__main__":
    main()
