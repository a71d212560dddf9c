# src/fhp_sim/utils.py
from __future__ import annotations

import json
import os
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np


@dataclass
class RunResult:
    """Common container for a lattice-gas run: recorded frames plus metadata."""

    frames: Optional[np.ndarray] = None  # (T, N) horizontal velocity
    counts: Optional[np.ndarray] = None  # (T, N) particles per cell
    kind: Optional[np.ndarray] = None  # (N,) CellKind values
    meta: Optional[Dict[str, Any]] = None

    def annotate(self, **values: Any) -> Dict[str, Any]:
        """Merge extra run information (timings, host details) into ``meta``."""
        self.meta = {**(self.meta or {}), **values}
        return self.meta


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Seedable random source passed explicitly to builders and choosers."""
    return np.random.default_rng(seed)


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def save_run_result(
    path: str | os.PathLike[str], result: RunResult, *, overwrite: bool = True
) -> None:
    """Serialize a RunResult to a compressed .npz."""
    out_dir = Path(path).parent
    out_dir.mkdir(parents=True, exist_ok=True)
    if not overwrite and Path(path).exists():
        raise FileExistsError(f"{path} already exists")
    out: Dict[str, Any] = {}
    if result.frames is not None:
        out["frames"] = np.asarray(result.frames, dtype=np.float64)
    if result.counts is not None:
        out["counts"] = np.asarray(result.counts, dtype=np.uint8)
    if result.kind is not None:
        out["kind"] = np.asarray(result.kind, dtype=np.uint8)
    out["meta"] = json.dumps(result.meta or {})
    np.savez_compressed(path, **out)


def load_run_result(path: str | os.PathLike[str]) -> RunResult:
    """Load a .npz written by save_run_result."""
    with np.load(path) as data:
        frames = data["frames"].astype(np.float64) if "frames" in data else None
        counts = data["counts"].astype(np.int64) if "counts" in data else None
        kind = data["kind"].astype(np.uint8) if "kind" in data else None
        meta = json.loads(str(data["meta"])) if "meta" in data else {}
    return RunResult(frames=frames, counts=counts, kind=kind, meta=meta)


# keys a parameter file may set; anything else is most likely a typo
PARAM_KEYS = ("rows", "cols", "steps", "seed", "record_every")


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Read run parameters from a JSON or TOML file.

    TOML files may put the values at top level or under an ``[fhp]`` table.
    Unknown keys raise ``ValueError``.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix == ".json":
        params = json.loads(text)
    elif suffix == ".toml":
        params = tomllib.loads(text)
        params = params.get("fhp", params)
    else:
        raise ValueError(f"Unsupported parameter file format: {suffix or path.name}")

    if not isinstance(params, dict):
        raise ValueError(f"{path}: expected a table of parameters, got {type(params).__name__}")
    unknown = sorted(set(params) - set(PARAM_KEYS))
    if unknown:
        raise ValueError(f"{path}: unknown parameter(s) {unknown}; expected some of {list(PARAM_KEYS)}")
    return params
