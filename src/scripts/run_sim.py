#!/usr/bin/env python3
"""
Single Lattice-Gas Run

Runs the hexagonal channel flow, renders the horizontal velocity field to an
animated GIF and optionally stores the recorded frames as .npz.
"""

import argparse
import sys
import time
from pathlib import Path

from tqdm.auto import tqdm

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fhp_sim import LatticeGasConfig, LatticeGasSimulator, utils  # type: ignore[import]

import plot_flow  # noqa: E402

DEFAULTS = {"rows": 40, "cols": 80, "steps": 201, "seed": None, "record_every": 1}


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Run an FHP lattice-gas channel simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=str, default=None, help="JSON/TOML parameter file")
    parser.add_argument("--rows", type=int, default=None, help="grid rows (default: 40)")
    parser.add_argument("--cols", type=int, default=None, help="grid columns (default: 80)")
    parser.add_argument("--steps", type=int, default=None, help="time steps (default: 201)")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument(
        "--record-every", type=int, default=None, help="record a frame every k steps (default: 1)"
    )
    parser.add_argument("--out", type=str, default=None, help="output .gif path (auto-generated if not provided)")
    parser.add_argument("--npz", type=str, default=None, help="also save recorded frames to this .npz")
    parser.add_argument("--no-render", action="store_true", help="skip writing the animation")
    parser.add_argument("--quiet", action="store_true", help="no progress bar")
    args = parser.parse_args(argv)

    # file values first, explicit flags override
    params = dict(DEFAULTS)
    if args.config is not None:
        params.update(utils.load_params(args.config))
    for key in utils.PARAM_KEYS:
        value = getattr(args, key)
        if value is not None:
            params[key] = value

    config = LatticeGasConfig(
        rows=int(params["rows"]),
        cols=int(params["cols"]),
        seed=params["seed"],
        record_every=int(params["record_every"]),
        verbose=False,
    )
    steps = int(params["steps"])

    print(f"Running FHP lattice gas: {config.rows}x{config.cols}, steps={steps}, seed={config.seed}")
    start_time = time.time()

    sim = LatticeGasSimulator(config)
    with tqdm(total=steps, disable=args.quiet, desc="steps") as bar:
        sim.run(steps, progress=bar.update)

    elapsed_time = time.time() - start_time
    result = sim.result()
    result.annotate(time_elapsed=elapsed_time)

    if args.npz:
        utils.save_run_result(args.npz, result)
        print(f"   Frames saved to: {args.npz}")
    if not args.no_render:
        if args.out is None:
            args.out = str(
                Path("results") / f"fhp_{config.rows}x{config.cols}_S{config.seed}_{utils.now_str()}.gif"
            )
        plot_flow.render_animation(result, args.out)

    snap = sim.snapshot()
    print(f"\nSimulation completed in {elapsed_time:.2f} seconds")
    print(f"   Particles: {snap['mass']}")
    print(f"   Momentum: ({snap['momentum_x']:.1f}, {snap['momentum_y']:.1f})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
