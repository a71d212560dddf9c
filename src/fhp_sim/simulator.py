from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import numpy as np

from . import automaton, observables, utils
from .lattice import Universe, build_universe


@dataclass
class LatticeGasConfig:
    """Channel geometry and run bookkeeping."""

    rows: int = 40
    cols: int = 80
    seed: Optional[int] = None
    record_every: int = 1
    verbose: bool = True


class LatticeGasSimulator:
    """
    The Manager Class.

    Responsibilities:
    1. Own the seeded random source (initial state and collision choices).
    2. Hold the current Universe snapshot and advance it.
    3. Record frames for rendering and analysis.
    """

    def __init__(
        self,
        config: LatticeGasConfig | None = None,
        *,
        chooser=None,
    ) -> None:
        self.config = config or LatticeGasConfig()
        if self.config.record_every < 1:
            raise ValueError(
                f"record_every must be >= 1, got {self.config.record_every}"
            )
        self.rng = utils.make_rng(self.config.seed)
        self.chooser = chooser if chooser is not None else automaton.RandomChooser(self.rng)

        self.universe: Universe = build_universe(
            self.config.rows, self.config.cols, rng=self.rng
        )
        self.t = 0
        self.frames: list[np.ndarray] = []
        self.counts: list[np.ndarray] = []
        self.times: list[int] = []
        self._record()

    def _record(self) -> None:
        self.frames.append(observables.velocity_horizontal(self.universe))
        self.counts.append(observables.total_velocity(self.universe))
        self.times.append(self.t)

    # ------------------------------------------------------------------ public
    def step(self) -> Universe:
        self.universe = automaton.step(self.universe, self.chooser)
        self.t += 1
        if self.t % self.config.record_every == 0:
            self._record()
        return self.universe

    def run(
        self,
        steps: int,
        progress: Optional[Callable[[int], Any]] = None,
    ) -> Universe:
        """
        Advance ``steps`` time steps. ``progress`` is called with 1 after
        every step (e.g. ``tqdm.update``).
        """
        if steps < 0:
            raise ValueError(f"steps must be >= 0, got {steps}")
        start_time = time.time()
        report_every = max(1, steps // 10)
        for k in range(1, steps + 1):
            self.step()
            if progress is not None:
                progress(1)
            if self.config.verbose and k % report_every == 0:
                elapsed = time.time() - start_time
                print(
                    f"[fhp] step {k}/{steps}, particles={observables.total_mass(self.universe)}, "
                    f"elapsed={elapsed:.1f}s"
                )
        return self.universe

    def snapshot(self) -> Dict[str, Any]:
        px, py = observables.total_momentum(self.universe)
        return {
            "t": self.t,
            "mass": observables.total_mass(self.universe),
            "momentum_x": px,
            "momentum_y": py,
        }

    def result(self) -> utils.RunResult:
        meta = {
            "model": "fhp",
            "rows": self.config.rows,
            "cols": self.config.cols,
            "seed": self.config.seed,
            "steps": self.t,
            "record_every": self.config.record_every,
            "times": list(self.times),
        }
        return utils.RunResult(
            frames=np.vstack(self.frames),
            counts=np.vstack(self.counts),
            kind=np.array(self.universe.kind),
            meta=meta,
        )


def run_model(config: dict | None = None, steps: int = 201) -> utils.RunResult:
    params = config or {}
    sim = LatticeGasSimulator(
        LatticeGasConfig(
            rows=params.get("rows", 40),
            cols=params.get("cols", 80),
            seed=params.get("seed"),
            record_every=params.get("record_every", 1),
            verbose=params.get("verbose", True),
        )
    )
    sim.run(params.get("steps", steps))
    return sim.result()


__all__ = ["LatticeGasConfig", "LatticeGasSimulator", "run_model"]
