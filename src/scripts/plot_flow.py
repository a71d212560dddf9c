# src/scripts/plot_flow.py
import argparse
import os
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
from matplotlib import animation

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from fhp_sim import observables, utils  # type: ignore[import]
from fhp_sim.lattice import CellKind  # type: ignore[import]

VMIN, VMAX = -2.0, 2.0


def format_title(meta, t=None):
    """
    Format a title string with the run parameters from metadata.
    """
    if not meta:
        return None
    parts = [
        f"Model={meta.get('model', '?')}",
        f"{meta.get('rows', '?')}x{meta.get('cols', '?')}",
        f"seed={meta.get('seed') if meta.get('seed') is not None else '?'}",
    ]
    if t is not None:
        parts.append(f"t={t}")
    return " | ".join(parts)


def _marker_size(ax, fig, cols):
    # hexagon roughly one lattice spacing wide, in points^2
    width_pts = ax.get_position().width * fig.get_figwidth() * 72.0
    return (width_pts / (cols + 1.0)) ** 2


def _setup(rows, cols, kind, cmap):
    x, y = observables.cell_centers(rows, cols)
    if kind is None:
        walls = np.zeros(rows * cols, dtype=bool)
    else:
        walls = np.asarray(kind) == CellKind.WALL

    height = max(2.0, 8.0 * rows * observables.SIN60 / (cols + 1.0))
    fig, ax = plt.subplots(figsize=(8, height))
    fig.patch.set_facecolor("white")
    ax.set_aspect("equal")
    ax.axis("off")
    ax.set_xlim(-1.0, cols + 0.5)
    ax.set_ylim(y.min() - 1.0, 1.0)
    size = _marker_size(ax, fig, cols)

    ax.scatter(x[walls], y[walls], s=size, marker="h", c="black", linewidths=0)
    sc = ax.scatter(
        x[~walls],
        y[~walls],
        s=size,
        marker="h",
        c=np.zeros(int((~walls).sum())),
        cmap=cmap,
        vmin=VMIN,
        vmax=VMAX,
        linewidths=0,
    )
    return fig, ax, sc, ~walls


def render_frame(frame, rows, cols, kind, title=None, output=None, cmap="viridis", dpi=100):
    """
    Render one frame of horizontal velocity onto the hex grid.

    Args:
        frame: (N,) per-cell value, indexed by cell id
        rows, cols: grid dimensions
        kind: (N,) CellKind values; walls are drawn black
        output: Output file path (None to skip saving)
    """
    frame = np.asarray(frame, dtype=np.float64)
    if frame.shape != (rows * cols,):
        raise ValueError(f"frame must have shape ({rows * cols},), got {frame.shape}")
    fig, ax, sc, air = _setup(rows, cols, kind, cmap)
    sc.set_array(frame[air])
    if title:
        ax.set_title(title, pad=10)
    if output:
        os.makedirs(os.path.dirname(output) if os.path.dirname(output) else ".", exist_ok=True)
        fig.savefig(output, dpi=dpi, bbox_inches="tight", facecolor="white")
        print(f"Saved frame to {output}")
    return fig


def render_animation(result, output, cmap="viridis", fps=100, dpi=80):
    """
    Write every recorded frame of a RunResult to an animated GIF.
    """
    if not output.lower().endswith(".gif"):
        raise ValueError("Unsupported extension. Use .gif")
    meta = result.meta or {}
    rows, cols = int(meta["rows"]), int(meta["cols"])
    frames = np.asarray(result.frames, dtype=np.float64)
    if frames.ndim != 2 or frames.shape[1] != rows * cols:
        raise ValueError(f"frames must have shape (T, {rows * cols}), got {frames.shape}")
    times = meta.get("times") or list(range(frames.shape[0]))

    fig, ax, sc, air = _setup(rows, cols, result.kind, cmap)
    ttl = ax.set_title(format_title(meta, t=times[0]) or "", pad=10)

    def _update(k):
        sc.set_array(frames[k][air])
        ttl.set_text(format_title(meta, t=times[k]) or "")
        return [sc, ttl]

    anim = animation.FuncAnimation(
        fig, _update, frames=frames.shape[0], interval=1000 / fps, blit=False
    )
    os.makedirs(os.path.dirname(output) if os.path.dirname(output) else ".", exist_ok=True)
    anim.save(output, writer="pillow", fps=fps, dpi=dpi)
    plt.close(fig)
    print(f"Saved animation to {output} ({frames.shape[0]} frames)")


def main():
    parser = argparse.ArgumentParser(
        description="Render a saved lattice-gas run (.npz) to an image or animation"
    )
    parser.add_argument("file", nargs="?", default="results/flow.npz", help="Path to .npz run file")
    parser.add_argument("--out", default=None, help="Output path (.gif animates, .png renders one frame)")
    parser.add_argument("--frame", type=int, default=-1, help="Frame index for .png output (default: last)")
    parser.add_argument("--cmap", default="viridis", help="Matplotlib colormap (default: viridis)")
    parser.add_argument("--fps", type=int, default=100, help="Frames per second for .gif output")
    parser.add_argument("--dpi", type=int, default=80, help="DPI for output file (default: 80)")
    args = parser.parse_args()

    if not os.path.exists(args.file):
        raise FileNotFoundError(f"file not found: {args.file}")

    if args.out is None:
        args.out = str(Path(args.file).with_suffix(".gif"))

    result = utils.load_run_result(args.file)
    if args.out.lower().endswith(".gif"):
        render_animation(result, args.out, cmap=args.cmap, fps=args.fps, dpi=args.dpi)
        return

    meta = result.meta or {}
    times = meta.get("times") or list(range(result.frames.shape[0]))
    fig = render_frame(
        result.frames[args.frame],
        int(meta["rows"]),
        int(meta["cols"]),
        result.kind,
        title=format_title(meta, t=times[args.frame]),
        output=args.out,
        cmap=args.cmap,
        dpi=args.dpi,
    )
    plt.close(fig)


if __name__ == "__main__":
    main()
